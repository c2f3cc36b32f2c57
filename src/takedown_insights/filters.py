"""Display-time filtering over an existing analysis (no reparsing)."""

from __future__ import annotations

from collections.abc import Collection, Iterable
from dataclasses import dataclass

from takedown_insights.classify import normalize_status
from takedown_insights.models import Record, SheetResult, WorkbookAnalysis, removal_rate


@dataclass(frozen=True)
class OwnerStats:
    content_owner: str
    total: int = 0
    active: int = 0
    removed: int = 0

    @property
    def removal_rate_percent(self) -> float:
        return removal_rate(self.removed, self.total)

    def to_dict(self) -> dict[str, object]:
        return {
            "contentOwner": self.content_owner,
            "total": self.total,
            "active": self.active,
            "removed": self.removed,
            "removalRatePercent": self.removal_rate_percent,
        }


def _selected(value: str, selection: Collection[str] | None) -> bool:
    return not selection or value in selection


def filter_records(
    records: Iterable[Record],
    months: Collection[str] | None = None,
    markets: Collection[str] | None = None,
    content_owners: Collection[str] | None = None,
) -> list[Record]:
    """Keep records matching every non-empty selection; empty means "all"."""
    return [
        r
        for r in records
        if _selected(r.month, months)
        and _selected(r.market, markets)
        and _selected(r.content_owner, content_owners)
    ]


def count_statuses(records: Iterable[Record]) -> tuple[int, int]:
    """Return ``(active, removed)`` for *records*."""
    active = removed = 0
    for record in records:
        normalized = normalize_status(record.status)
        if normalized == "active":
            active += 1
        elif normalized == "removed":
            removed += 1
    return active, removed


def filter_analysis(
    analysis: WorkbookAnalysis,
    months: Collection[str] | None = None,
    markets: Collection[str] | None = None,
    content_owners: Collection[str] | None = None,
) -> WorkbookAnalysis:
    """Return a new analysis restricted to the selected filter values.

    Distinct-value lists are carried over unchanged so a dashboard keeps
    offering every option while a filter is applied.
    """
    if not (months or markets or content_owners):
        return analysis

    sheets: list[SheetResult] = []
    for sheet in analysis.sheets:
        kept = filter_records(sheet.records, months, markets, content_owners)
        active, removed = count_statuses(kept)
        sheets.append(
            SheetResult(
                category=sheet.category,
                records=tuple(kept),
                active_count=active,
                removed_count=removed,
            )
        )

    total = sum(s.total_count for s in sheets)
    active = sum(s.active_count for s in sheets)
    removed = sum(s.removed_count for s in sheets)
    return WorkbookAnalysis(
        sheets=tuple(sheets),
        total_count=total,
        active_count=active,
        removed_count=removed,
        removal_rate_percent=removal_rate(removed, total),
        usr_atsm_count=sheets[0].total_count + sheets[1].total_count,
        pssm_psmp_count=sheets[2].total_count + sheets[3].total_count,
        months=list(analysis.months),
        markets=list(analysis.markets),
        content_owners=list(analysis.content_owners),
    )


def content_owner_breakdown(records: Iterable[Record]) -> list[OwnerStats]:
    """Per-owner totals, largest first (ties broken by name)."""
    counts: dict[str, list[int]] = {}
    for record in records:
        bucket = counts.setdefault(record.content_owner, [0, 0, 0])
        bucket[0] += 1
        normalized = normalize_status(record.status)
        if normalized == "active":
            bucket[1] += 1
        elif normalized == "removed":
            bucket[2] += 1

    stats = [
        OwnerStats(content_owner=owner, total=t, active=a, removed=r)
        for owner, (t, a, r) in counts.items()
    ]
    return sorted(stats, key=lambda s: (-s.total, s.content_owner))
