"""Data models shared across the package."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from numbers import Integral
from typing import Any, Literal

NormalizedStatus = Literal["active", "removed", "unknown"]


class SheetCategory(str, Enum):
    """The four canonical record groupings, declared in canonical order."""

    USR = "USR"
    ATSM = "ATSM"
    PSSM = "PSSM"
    PSMP = "PSMP"

    @property
    def full_name(self) -> str:
        return SHEET_FULL_NAMES[self]


SHEET_FULL_NAMES: dict[SheetCategory, str] = {
    SheetCategory.USR: "Unauthorized Search Result",
    SheetCategory.ATSM: "Ads Tutorials- Social Media",
    SheetCategory.PSSM: "Password Sharing-Social Med.",
    SheetCategory.PSMP: "Password Sharing-Marketplace",
}

CANONICAL_ORDER: tuple[SheetCategory, ...] = tuple(SheetCategory)

EXPECTED_SHEET_NAMES: list[str] = [SHEET_FULL_NAMES[c] for c in CANONICAL_ORDER]


def _to_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise TypeError(f"{field_name} must be an integer")
    result = int(value)
    if result < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return result


def _to_string_list(values: Sequence[Any] | None, field_name: str) -> list[str]:
    if values is None:
        return []
    if isinstance(values, str):
        raise TypeError(f"{field_name} must be a sequence of strings")
    normalized: list[str] = []
    for item in values:
        if not isinstance(item, str):
            raise TypeError(f"{field_name} items must be strings")
        normalized.append(item)
    return normalized


@dataclass(frozen=True)
class Record:
    """One canonical row, independent of the source sheet's column layout."""

    url: str
    status: str = "Unknown"
    market: str = "Unknown"
    month: str = ""
    content_owner: str = "Unknown"

    def to_dict(self) -> dict[str, str]:
        return {
            "url": self.url,
            "status": self.status,
            "market": self.market,
            "month": self.month,
            "contentOwner": self.content_owner,
        }


@dataclass(frozen=True)
class SheetResult:
    """Records extracted from one classified sheet.

    Contract invariant: ``active_count + removed_count <= total_count``.
    Records with an unknown status count toward neither counter.
    """

    category: SheetCategory
    records: tuple[Record, ...] = ()
    active_count: int = 0
    removed_count: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.category, SheetCategory):
            raise TypeError("category must be a SheetCategory")
        object.__setattr__(self, "records", tuple(self.records))
        for record in self.records:
            if not isinstance(record, Record):
                raise TypeError("records items must be Record instances")
        active = _to_non_negative_int(self.active_count, "active_count")
        removed = _to_non_negative_int(self.removed_count, "removed_count")
        if active + removed > self.total_count:
            raise ValueError("active_count + removed_count must be <= total_count")

    @classmethod
    def empty(cls, category: SheetCategory) -> SheetResult:
        """Placeholder for a category that no sheet resolved to."""
        return cls(category=category)

    @property
    def full_name(self) -> str:
        return self.category.full_name

    @property
    def total_count(self) -> int:
        return len(self.records)

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category.value,
            "fullName": self.full_name,
            "records": [record.to_dict() for record in self.records],
            "totalCount": self.total_count,
            "activeCount": self.active_count,
            "removedCount": self.removed_count,
        }


def removal_rate(removed_count: int, total_count: int) -> float:
    """Percentage of removed records; 0 for an empty workbook."""
    if total_count == 0:
        return 0.0
    return 100 * removed_count / total_count


@dataclass(frozen=True)
class WorkbookAnalysis:
    """Aggregated result of one upload.

    Contract invariants: exactly one sheet per category in canonical order,
    ``total_count == sum(sheet.total_count)`` and the removal rate is derived
    from the summed counters.
    """

    sheets: tuple[SheetResult, ...]
    total_count: int = 0
    active_count: int = 0
    removed_count: int = 0
    removal_rate_percent: float = 0.0
    usr_atsm_count: int = 0
    pssm_psmp_count: int = 0
    months: list[str] = field(default_factory=list)
    markets: list[str] = field(default_factory=list)
    content_owners: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        object.__setattr__(self, "sheets", tuple(self.sheets))
        categories = tuple(sheet.category for sheet in self.sheets)
        if categories != CANONICAL_ORDER:
            raise ValueError("sheets must hold one entry per category in canonical order")

        for name in ("total_count", "active_count", "removed_count",
                     "usr_atsm_count", "pssm_psmp_count"):
            _to_non_negative_int(getattr(self, name), name)
        for name in ("months", "markets", "content_owners"):
            object.__setattr__(self, name, _to_string_list(getattr(self, name), name))

        if self.total_count != sum(sheet.total_count for sheet in self.sheets):
            raise ValueError("total_count must equal the sum of sheet totals")
        if self.active_count != sum(sheet.active_count for sheet in self.sheets):
            raise ValueError("active_count must equal the sum of sheet active counts")
        if self.removed_count != sum(sheet.removed_count for sheet in self.sheets):
            raise ValueError("removed_count must equal the sum of sheet removed counts")
        expected_rate = removal_rate(self.removed_count, self.total_count)
        if not math.isclose(self.removal_rate_percent, expected_rate):
            raise ValueError("removal_rate_percent must equal 100 * removed_count / total_count")

    def sheet(self, category: SheetCategory) -> SheetResult:
        return self.sheets[CANONICAL_ORDER.index(category)]

    @property
    def categories_found(self) -> list[SheetCategory]:
        """Categories whose sheet produced at least one record."""
        return [sheet.category for sheet in self.sheets if sheet.total_count > 0]

    @property
    def is_empty(self) -> bool:
        return all(sheet.total_count == 0 for sheet in self.sheets)

    def to_dict(self) -> dict[str, Any]:
        return {
            "sheets": [sheet.to_dict() for sheet in self.sheets],
            "totalCount": self.total_count,
            "activeCount": self.active_count,
            "removedCount": self.removed_count,
            "removalRatePercent": self.removal_rate_percent,
            "usrAtsmCount": self.usr_atsm_count,
            "pssmPsmpCount": self.pssm_psmp_count,
            "months": list(self.months),
            "markets": list(self.markets),
            "contentOwners": list(self.content_owners),
        }


@dataclass
class UploadSummary:
    """What the upload endpoint reports back after a successful store."""

    total_count: int = 0
    active_count: int = 0
    removed_count: int = 0
    sheets_found: list[SheetCategory] = field(default_factory=list)

    @classmethod
    def from_analysis(cls, analysis: WorkbookAnalysis) -> UploadSummary:
        return cls(
            total_count=analysis.total_count,
            active_count=analysis.active_count,
            removed_count=analysis.removed_count,
            sheets_found=analysis.categories_found,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalCount": self.total_count,
            "activeCount": self.active_count,
            "removedCount": self.removed_count,
            "sheetsFound": [category.value for category in self.sheets_found],
        }


@dataclass
class RunManifest:
    """Audit-trail manifest for a single ``analyze`` run."""

    tool: str = "takedown-insights"
    version: str = ""
    input_path: str = ""
    output_dir: str = ""
    created_at_utc: str = ""
    sheet_names: list[str] = field(default_factory=list)
    categories_found: list[str] = field(default_factory=list)
    total_count: int = 0
    sha256: str = ""
    status: str = "success"
    error_code: int | None = None
    error_message: str = ""

    def __post_init__(self) -> None:
        self.total_count = _to_non_negative_int(self.total_count, "total_count")
        self.sheet_names = _to_string_list(self.sheet_names, "sheet_names")
        self.categories_found = _to_string_list(self.categories_found, "categories_found")

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool": self.tool,
            "version": self.version,
            "input_path": self.input_path,
            "output_dir": self.output_dir,
            "created_at_utc": self.created_at_utc,
            "sheet_names": list(self.sheet_names),
            "categories_found": list(self.categories_found),
            "total_count": self.total_count,
            "sha256": self.sha256,
            "status": self.status,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }
