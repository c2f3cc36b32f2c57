"""Sheet-name classification and status normalisation — pure functions over keyword tables."""

from __future__ import annotations

from dataclasses import dataclass

from takedown_insights.models import NormalizedStatus, SheetCategory

# ── Sheet classification ────────────────────────────────────────


@dataclass(frozen=True)
class SheetRule:
    category: SheetCategory
    contains: tuple[str, ...] = ()
    equals: tuple[str, ...] = ()

    def matches(self, name: str) -> bool:
        return name in self.equals or any(phrase in name for phrase in self.contains)


# Evaluated top to bottom; the first matching rule wins.
SHEET_RULES: tuple[SheetRule, ...] = (
    SheetRule(
        SheetCategory.USR,
        contains=("unauthorized search", "a."),
        equals=("usr",),
    ),
    SheetRule(
        SheetCategory.ATSM,
        contains=("ads tutorial", "b1"),
        equals=("atsm",),
    ),
    SheetRule(
        SheetCategory.PSSM,
        contains=("password sharing-social", "password sharing - social", "c1"),
        equals=("pssm",),
    ),
    SheetRule(
        SheetCategory.PSMP,
        contains=("password sharing-marketplace", "password sharing - marketplace", "c2"),
        equals=("psmp",),
    ),
)

# Applied only when no primary rule matched: every word must be present.
SHEET_FALLBACK_RULES: tuple[tuple[SheetCategory, tuple[str, ...]], ...] = (
    (SheetCategory.PSSM, ("password", "social")),
    (SheetCategory.PSMP, ("password", "market")),
)


def classify_sheet(sheet_name: str) -> SheetCategory | None:
    """Return the category *sheet_name* belongs to, or ``None`` to ignore it."""
    name = str(sheet_name).strip().lower()

    for rule in SHEET_RULES:
        if rule.matches(name):
            return rule.category

    for category, words in SHEET_FALLBACK_RULES:
        if all(word in name for word in words):
            return category

    return None


# ── Status normalisation ────────────────────────────────────────


STATUS_ACTIVE_KEYWORDS: tuple[str, ...] = (
    "active", "up", "live", "online", "available", "approved",
)
STATUS_REMOVED_KEYWORDS: tuple[str, ...] = (
    "removed", "down", "offline", "deleted", "taken down", "unavailable", "pending",
)


def normalize_status(status: str | None) -> NormalizedStatus:
    """Map free-text *status* onto active / removed / unknown.

    Active keywords are tested first, so ``"Pending Removal - Active"`` is
    active. Note that substring matching means ``"unavailable"`` also
    contains ``"available"`` and therefore resolves to active.
    """
    if not status:
        return "unknown"
    lower = status.strip().lower()
    if not lower:
        return "unknown"
    if any(keyword in lower for keyword in STATUS_ACTIVE_KEYWORDS):
        return "active"
    if any(keyword in lower for keyword in STATUS_REMOVED_KEYWORDS):
        return "removed"
    return "unknown"
