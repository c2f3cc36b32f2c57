"""Extraction + assembly pipeline — pure functions, no side effects beyond logging."""

from __future__ import annotations

import logging
import math
import numbers
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any

import pandas as pd

from takedown_insights.classify import classify_sheet, normalize_status
from takedown_insights.columns import NOT_FOUND, ColumnMap, detect_columns
from takedown_insights.io import SheetGrid, WorkbookSource, read_workbook
from takedown_insights.models import (
    CANONICAL_ORDER,
    Record,
    SheetCategory,
    SheetResult,
    WorkbookAnalysis,
    removal_rate,
)

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"
_NULL_LITERALS = frozenset({"null", "undefined"})

# ── Cell helpers ─────────────────────────────────────────────────


def cell_text(value: Any) -> str:
    """Render one raw cell as trimmed text.

    ``None``, NaN, ``False`` and numeric zero all count as blank and become
    ``""``.
    """
    if value is None:
        return ""
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass

    if isinstance(value, numbers.Number) and not value:
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float):
        if math.isinf(value):
            return str(value)
        if value.is_integer():
            return str(int(value))
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def _cell_at(row: Sequence[Any], idx: int) -> str:
    if idx == NOT_FOUND or idx >= len(row):
        return ""
    return cell_text(row[idx])


def is_blank_row(row: Sequence[Any]) -> bool:
    """True when every cell is blank or the literal text null/undefined."""
    for cell in row:
        text = cell_text(cell)
        if text and text not in _NULL_LITERALS:
            return False
    return True


# ── Record extraction ────────────────────────────────────────────


@dataclass
class SheetExtraction:
    """A sheet's result plus the distinct filter values it contributed."""

    result: SheetResult
    months: set[str] = field(default_factory=set)
    markets: set[str] = field(default_factory=set)
    content_owners: set[str] = field(default_factory=set)


def _resolve_status(row: Sequence[Any], columns: ColumnMap, category: SheetCategory) -> str:
    status = _cell_at(row, columns.status)

    if category is SheetCategory.USR and not status:
        for idx in columns.search_engine_status:
            status = _cell_at(row, idx)
            if status:
                break

    if not status and columns.status == NOT_FOUND:
        status = _cell_at(row, 0)
    return status


def _resolve_url(row: Sequence[Any], columns: ColumnMap) -> str:
    url = _cell_at(row, columns.url)
    if not url and columns.url == NOT_FOUND:
        url = _cell_at(row, 1)
    return url


def extract_sheet(rows: Sequence[Sequence[Any]], category: SheetCategory) -> SheetExtraction:
    """Walk the data rows of one sheet and build its :class:`SheetResult`.

    ``rows[0]`` is the header row. Rows that are entirely blank, or that end
    up with neither a status nor a URL after every fallback, are skipped and
    counted nowhere.
    """
    if len(rows) < 2:
        return SheetExtraction(result=SheetResult.empty(category))

    headers = [cell_text(h) for h in rows[0]]
    columns = detect_columns(headers, category)
    logger.debug("%s columns detected: %s", category.value, columns.to_dict())

    extraction = SheetExtraction(result=SheetResult.empty(category))
    records: list[Record] = []
    active_count = 0
    removed_count = 0

    for row_number, row in enumerate(rows[1:], start=2):
        if not row or is_blank_row(row):
            continue

        status_raw = _resolve_status(row, columns, category)
        url = _resolve_url(row, columns)
        if not status_raw and not url:
            logger.debug("%s row %d skipped: no status and no url", category.value, row_number)
            continue

        status = status_raw or UNKNOWN
        normalized = normalize_status(status)
        if normalized == "active":
            active_count += 1
        elif normalized == "removed":
            removed_count += 1

        market = _cell_at(row, columns.market) or UNKNOWN
        month = _cell_at(row, columns.month)
        content_owner = _cell_at(row, columns.content_owner) or UNKNOWN

        if month:
            extraction.months.add(month)
        if market != UNKNOWN:
            extraction.markets.add(market)
        if content_owner != UNKNOWN:
            extraction.content_owners.add(content_owner)

        records.append(
            Record(
                url=url,
                status=status,
                market=market,
                month=month,
                content_owner=content_owner,
            )
        )

    extraction.result = SheetResult(
        category=category,
        records=tuple(records),
        active_count=active_count,
        removed_count=removed_count,
    )
    return extraction


# ── Workbook assembly ────────────────────────────────────────────


def assemble_workbook(sheets: Iterable[tuple[str, SheetGrid]]) -> WorkbookAnalysis:
    """Classify, extract and aggregate ``(sheet_name, rows)`` pairs.

    The first sheet resolving to a category wins; later sheets of the same
    category are ignored. Categories never seen get an empty placeholder.
    """
    found: dict[SheetCategory, SheetResult] = {}
    all_months: set[str] = set()
    all_markets: set[str] = set()
    all_owners: set[str] = set()

    for sheet_name, rows in sheets:
        category = classify_sheet(sheet_name)
        if category is None:
            logger.info("Ignoring unrecognised sheet %r", sheet_name)
            continue
        if category in found:
            logger.info(
                "Ignoring sheet %r: category %s already taken by an earlier sheet",
                sheet_name,
                category.value,
            )
            continue

        extraction = extract_sheet(rows, category)
        found[category] = extraction.result
        all_months |= extraction.months
        all_markets |= extraction.markets
        all_owners |= extraction.content_owners
        logger.info(
            "Sheet %r -> %s: %d records (%d active, %d removed)",
            sheet_name,
            category.value,
            extraction.result.total_count,
            extraction.result.active_count,
            extraction.result.removed_count,
        )

    ordered = tuple(found.get(c) or SheetResult.empty(c) for c in CANONICAL_ORDER)
    by_category = dict(zip(CANONICAL_ORDER, ordered))

    total = sum(s.total_count for s in ordered)
    active = sum(s.active_count for s in ordered)
    removed = sum(s.removed_count for s in ordered)

    return WorkbookAnalysis(
        sheets=ordered,
        total_count=total,
        active_count=active,
        removed_count=removed,
        removal_rate_percent=removal_rate(removed, total),
        usr_atsm_count=(
            by_category[SheetCategory.USR].total_count
            + by_category[SheetCategory.ATSM].total_count
        ),
        pssm_psmp_count=(
            by_category[SheetCategory.PSSM].total_count
            + by_category[SheetCategory.PSMP].total_count
        ),
        months=sorted(all_months),
        markets=sorted(all_markets),
        content_owners=sorted(all_owners),
    )


def analyze_workbook(source: WorkbookSource, filename: str | None = None) -> WorkbookAnalysis:
    """Parse *source* (bytes or a path) and assemble its analysis.

    Raises :class:`~takedown_insights.errors.WorkbookParseError` when the
    buffer is not a readable spreadsheet.
    """
    sheets = read_workbook(source, filename=filename)
    logger.debug("Workbook sheets: %s", [name for name, _rows in sheets])
    return assemble_workbook(sheets)
