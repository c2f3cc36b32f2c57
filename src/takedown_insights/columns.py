"""Heuristic header detection — map a sheet's header row onto semantic roles."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import asdict, dataclass

from takedown_insights.models import SheetCategory

NOT_FOUND = -1

STATUS_KEYWORDS: tuple[str, ...] = ("status", "state", "result")

# Password-sharing sheets also accept a "URL Status" header; both keywords
# share one left-to-right scan like every other role.
CATEGORY_STATUS_KEYWORDS: dict[SheetCategory, tuple[str, ...]] = {
    SheetCategory.PSSM: ("url status", "status"),
    SheetCategory.PSMP: ("url status", "status"),
}

ROLE_KEYWORDS: dict[str, tuple[str, ...]] = {
    "market": ("market", "country", "region", "location", "geo"),
    "month": ("month", "date", "period", "time"),
    "content_owner": (
        "content owner", "owner", "content_owner", "contentowner",
        "rights holder", "rightsholder",
    ),
    "url": ("url", "link", "address", "uri"),
    "with_": ("with", "associated", "linked"),
    "google_status": ("url status google",),
    "bing_status": ("url status bing",),
    "yandex_status": ("url status yandex",),
}


@dataclass(frozen=True)
class ColumnMap:
    """Column index per semantic role; ``NOT_FOUND`` (-1) when absent."""

    status: int = NOT_FOUND
    market: int = NOT_FOUND
    month: int = NOT_FOUND
    content_owner: int = NOT_FOUND
    url: int = NOT_FOUND
    with_: int = NOT_FOUND
    google_status: int = NOT_FOUND
    bing_status: int = NOT_FOUND
    yandex_status: int = NOT_FOUND

    @property
    def search_engine_status(self) -> tuple[int, int, int]:
        """Sub-status columns in fallback priority order."""
        return (self.google_status, self.bing_status, self.yandex_status)

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


def _header_text(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip().lower()


def find_column_index(headers: Sequence[object], keywords: Sequence[str]) -> int:
    """Return the first column whose header contains any of *keywords*.

    Scan order is column order: a keyword listed first does not beat an
    earlier column that matches a later keyword.
    """
    for idx, header in enumerate(headers):
        text = _header_text(header)
        if any(keyword in text for keyword in keywords):
            return idx
    return NOT_FOUND


def status_keywords(category: SheetCategory | None) -> tuple[str, ...]:
    if category is None:
        return STATUS_KEYWORDS
    return CATEGORY_STATUS_KEYWORDS.get(category, STATUS_KEYWORDS)


def detect_columns(
    headers: Sequence[object], category: SheetCategory | None = None
) -> ColumnMap:
    """Assign a column index to every role for a sheet of *category*."""
    found = {role: find_column_index(headers, kws) for role, kws in ROLE_KEYWORDS.items()}

    status_idx = find_column_index(headers, status_keywords(category))
    return ColumnMap(status=status_idx, **found)
