"""Targeted tests for record extraction and workbook assembly."""

from __future__ import annotations

import math
from datetime import datetime

import pytest

from takedown_insights.errors import WorkbookParseError
from takedown_insights.models import Record, SheetCategory
from takedown_insights.pipeline import (
    analyze_workbook,
    assemble_workbook,
    cell_text,
    extract_sheet,
    is_blank_row,
)

HEADERS = ["URL", "Status", "Market", "Month", "Content Owner"]


# ── Cell helpers ─────────────────────────────────────────────────


def test_cell_text_renders_blanks_numbers_and_dates() -> None:
    assert cell_text(None) == ""
    assert cell_text(math.nan) == ""
    assert cell_text("  US ") == "US"
    assert cell_text(2024.0) == "2024"
    assert cell_text(1.5) == "1.5"
    assert cell_text(7) == "7"
    assert cell_text(datetime(2024, 1, 1)) == "2024-01-01"
    assert cell_text(datetime(2024, 1, 1, 9, 30)) == "2024-01-01 09:30:00"


def test_cell_text_treats_zero_and_false_as_blank() -> None:
    assert cell_text(0) == ""
    assert cell_text(0.0) == ""
    assert cell_text(False) == ""
    assert cell_text(True) == "true"
    assert cell_text("0") == "0"


def test_rows_of_zeros_are_blank_and_zero_status_is_unknown() -> None:
    rows = [
        HEADERS,
        [0, False, 0, 0, 0],
        ["http://a", 0, "US", "Jan", "X"],
    ]

    result = extract_sheet(rows, SheetCategory.ATSM).result

    assert result.total_count == 1
    assert result.records[0].status == "Unknown"
    assert (result.active_count, result.removed_count) == (0, 0)


def test_is_blank_row_treats_null_and_undefined_literals_as_blank() -> None:
    assert is_blank_row(["", None, "null", " undefined ", math.nan])
    assert not is_blank_row(["", "x"])


# ── extract_sheet ────────────────────────────────────────────────


def test_sheet_without_data_rows_is_empty() -> None:
    for rows in ([], [HEADERS]):
        extraction = extract_sheet(rows, SheetCategory.ATSM)
        assert extraction.result.total_count == 0
        assert extraction.result.active_count == 0
        assert extraction.result.removed_count == 0
        assert extraction.months == set()
        assert extraction.markets == set()
        assert extraction.content_owners == set()


def test_extract_counts_and_trims_values() -> None:
    rows = [
        HEADERS,
        ["  http://a  ", " Active ", " US ", " Jan ", " Owner 1 "],
        ["http://b", "Removed", "UK", "Feb", "Owner 2"],
        ["http://c", "Investigating", "US", "Jan", "Owner 1"],
    ]

    extraction = extract_sheet(rows, SheetCategory.ATSM)
    result = extraction.result

    assert result.total_count == 3
    assert result.active_count == 1
    assert result.removed_count == 1
    assert result.records[0] == Record(
        url="http://a", status="Active", market="US", month="Jan", content_owner="Owner 1"
    )
    assert result.full_name == "Ads Tutorials- Social Media"
    assert extraction.months == {"Jan", "Feb"}
    assert extraction.markets == {"US", "UK"}
    assert extraction.content_owners == {"Owner 1", "Owner 2"}


def test_blank_and_null_rows_contribute_nothing() -> None:
    rows = [
        HEADERS,
        ["", "", "", "", ""],
        ["null", "undefined", None, "", "null"],
        ["http://a", "Active", "US", "Jan", "Owner"],
    ]

    extraction = extract_sheet(rows, SheetCategory.ATSM)

    assert extraction.result.total_count == 1


def test_row_with_status_but_blank_url_is_counted() -> None:
    rows = [HEADERS, ["", "Removed", "US", "", ""]]

    result = extract_sheet(rows, SheetCategory.ATSM).result

    assert result.total_count == 1
    assert result.removed_count == 1
    assert result.records[0].url == ""


def test_row_with_neither_status_nor_url_is_skipped() -> None:
    rows = [HEADERS, ["", "", "US", "Jan", "Owner"]]

    extraction = extract_sheet(rows, SheetCategory.ATSM)

    assert extraction.result.total_count == 0
    # Skipped rows do not feed the distinct-value sets either.
    assert extraction.markets == set()
    assert extraction.months == set()


def test_defaults_for_blank_fields_and_distinct_set_exclusions() -> None:
    rows = [HEADERS, ["http://a", "", "", "", ""]]

    extraction = extract_sheet(rows, SheetCategory.ATSM)
    record = extraction.result.records[0]

    assert record.status == "Unknown"
    assert record.market == "Unknown"
    assert record.content_owner == "Unknown"
    assert record.month == ""
    assert extraction.result.active_count == 0
    assert extraction.result.removed_count == 0
    assert extraction.months == set()
    assert extraction.markets == set()
    assert extraction.content_owners == set()


def test_literal_unknown_market_is_kept_on_record_but_not_in_distinct_set() -> None:
    rows = [HEADERS, ["http://a", "Active", "Unknown", "Jan", "Unknown"]]

    extraction = extract_sheet(rows, SheetCategory.ATSM)

    assert extraction.result.records[0].market == "Unknown"
    assert extraction.markets == set()
    assert extraction.content_owners == set()


def test_usr_status_falls_back_to_search_engine_columns_in_order() -> None:
    headers = ["URL", "Status", "URL Status Google", "URL Status Bing", "URL Status Yandex"]
    rows = [
        headers,
        ["http://a", "", "", "Removed", "Active"],
        ["http://b", "", "Active", "Removed", ""],
        ["http://c", "", "", "", "Removed"],
        ["http://d", "Live", "Removed", "", ""],
    ]

    records = extract_sheet(rows, SheetCategory.USR).result.records

    assert [r.status for r in records] == ["Removed", "Active", "Removed", "Live"]


def test_search_engine_fallback_only_applies_to_usr() -> None:
    headers = ["URL", "Status", "URL Status Google"]
    rows = [headers, ["http://a", "", "Removed"]]

    record = extract_sheet(rows, SheetCategory.ATSM).result.records[0]

    assert record.status == "Unknown"


def test_positional_fallbacks_when_columns_are_not_detected() -> None:
    rows = [["Col A", "Col B"], ["Removed", "http://x"]]

    record = extract_sheet(rows, SheetCategory.ATSM).result.records[0]

    assert record.status == "Removed"
    assert record.url == "http://x"


def test_no_positional_fallback_when_column_exists_but_is_blank() -> None:
    rows = [["Notes", "Status", "Link"], ["first cell", "", "http://x"]]

    record = extract_sheet(rows, SheetCategory.ATSM).result.records[0]

    assert record.status == "Unknown"


def test_short_rows_do_not_raise() -> None:
    rows = [HEADERS, ["http://a"]]

    record = extract_sheet(rows, SheetCategory.ATSM).result.records[0]

    assert record.url == "http://a"
    assert record.status == "Unknown"


def test_numeric_months_render_without_decimal_suffix() -> None:
    rows = [HEADERS, ["http://a", "Active", "US", 202401.0, "Owner"]]

    extraction = extract_sheet(rows, SheetCategory.ATSM)

    assert extraction.months == {"202401"}


# ── assemble_workbook ────────────────────────────────────────────


def test_round_trip_one_active_one_removed_per_category(one_row_each_status) -> None:  # type: ignore[no-untyped-def]
    analysis = assemble_workbook(one_row_each_status)

    assert analysis.total_count == 8
    assert analysis.active_count == 4
    assert analysis.removed_count == 4
    assert analysis.removal_rate_percent == 50.0
    assert analysis.usr_atsm_count == 4
    assert analysis.pssm_psmp_count == 4
    assert analysis.months == ["Feb 2024", "Jan 2024", "Mar 2024"]
    assert analysis.markets == ["DE", "FR", "UK", "US"]
    assert analysis.content_owners == ["Studio A", "Studio B", "Studio C"]


def test_sheets_are_emitted_in_canonical_order_with_placeholders() -> None:
    sheets = [
        ("Summary", [["anything"], ["x"]]),
        ("Password Sharing-Marketplace", [HEADERS, ["http://a", "Removed", "", "", ""]]),
        ("Unauthorized Search Result", [HEADERS, ["http://b", "Active", "", "", ""]]),
    ]

    analysis = assemble_workbook(sheets)

    assert [s.category for s in analysis.sheets] == [
        SheetCategory.USR,
        SheetCategory.ATSM,
        SheetCategory.PSSM,
        SheetCategory.PSMP,
    ]
    assert [s.total_count for s in analysis.sheets] == [1, 0, 0, 1]
    assert analysis.sheet(SheetCategory.ATSM).records == ()
    assert analysis.categories_found == [SheetCategory.USR, SheetCategory.PSMP]


def test_first_sheet_per_category_wins() -> None:
    sheets = [
        ("USR", [HEADERS, ["http://first", "Active", "US", "", ""]]),
        ("Unauthorized Search Result (old)", [
            HEADERS,
            ["http://second", "Removed", "UK", "", ""],
            ["http://third", "Removed", "UK", "", ""],
        ]),
    ]

    analysis = assemble_workbook(sheets)
    usr = analysis.sheet(SheetCategory.USR)

    assert [r.url for r in usr.records] == ["http://first"]
    assert analysis.total_count == 1
    # Distinct values from the ignored duplicate are not merged.
    assert analysis.markets == ["US"]


def test_empty_workbook_has_zero_removal_rate() -> None:
    analysis = assemble_workbook([("Summary", [["x"]])])

    assert analysis.total_count == 0
    assert analysis.removal_rate_percent == 0
    assert analysis.is_empty
    assert len(analysis.sheets) == 4


def test_total_count_equals_sum_of_sheet_totals(one_row_each_status) -> None:  # type: ignore[no-untyped-def]
    extra = [list(one_row_each_status[0][1][1]) for _ in range(3)]
    sheets = list(one_row_each_status)
    sheets[0] = (sheets[0][0], sheets[0][1] + extra)

    analysis = assemble_workbook(sheets)

    assert analysis.total_count == sum(s.total_count for s in analysis.sheets) == 11
    assert analysis.removal_rate_percent == pytest.approx(100 * 4 / 11)


# ── analyze_workbook ─────────────────────────────────────────────


def test_analyze_workbook_reads_xlsx_bytes(make_xlsx, one_row_each_status) -> None:  # type: ignore[no-untyped-def]
    data = make_xlsx(one_row_each_status)

    analysis = analyze_workbook(data, filename="takedowns.xlsx")

    assert analysis.total_count == 8
    assert analysis.active_count == 4
    assert analysis.removed_count == 4
    assert analysis.removal_rate_percent == 50.0


def test_analyze_workbook_propagates_parse_failures() -> None:
    with pytest.raises(WorkbookParseError):
        analyze_workbook(b"this is not a spreadsheet", filename="broken.xlsx")
