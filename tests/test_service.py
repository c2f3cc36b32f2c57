"""Upload validation, single-slot store semantics, fetch/clear."""

from __future__ import annotations

import pytest

from takedown_insights.config import Settings
from takedown_insights.errors import (
    AnalysisNotFoundError,
    FileTooLargeError,
    InvalidFileTypeError,
    MissingFileError,
    NoRecognizedSheetsError,
    UploadValidationError,
    WorkbookParseError,
)
from takedown_insights.models import SheetCategory, SheetResult, WorkbookAnalysis
from takedown_insights.service import (
    clear_analysis,
    fetch_analysis,
    process_upload,
    validate_upload,
)
from takedown_insights.store import AnalysisStore

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


# ── validate_upload ──────────────────────────────────────────────


@pytest.mark.parametrize("filename", ["book.xlsx", "BOOK.XLS", "export.csv"])
def test_whitelisted_extensions_pass_without_content_type(filename: str) -> None:
    validate_upload(filename, None, 10)


@pytest.mark.parametrize(
    "content_type",
    [XLSX_MIME, "application/vnd.ms-excel", "text/csv", "application/octet-stream",
     "text/csv; charset=utf-8"],
)
def test_whitelisted_content_types_pass_with_any_extension(content_type: str) -> None:
    validate_upload("upload.bin", content_type, 10)


def test_unknown_type_is_rejected() -> None:
    with pytest.raises(InvalidFileTypeError, match="Invalid file type"):
        validate_upload("notes.txt", "text/plain", 10)


def test_missing_file_is_rejected() -> None:
    with pytest.raises(MissingFileError, match="No file uploaded"):
        validate_upload(None, XLSX_MIME, 10)


def test_oversized_upload_raises_distinct_error() -> None:
    settings = Settings(max_upload_bytes=1024 * 1024)

    validate_upload("book.xlsx", XLSX_MIME, 1024 * 1024, settings)
    with pytest.raises(FileTooLargeError, match="Maximum size is 1MB"):
        validate_upload("book.xlsx", XLSX_MIME, 1024 * 1024 + 1, settings)


def test_default_ceiling_is_200_mib() -> None:
    validate_upload("book.xlsx", None, 200 * 1024 * 1024)
    with pytest.raises(FileTooLargeError, match="200MB"):
        validate_upload("book.xlsx", None, 200 * 1024 * 1024 + 1)


def test_validation_errors_share_a_base_class() -> None:
    for exc_type in (MissingFileError, InvalidFileTypeError, FileTooLargeError,
                     NoRecognizedSheetsError):
        assert issubclass(exc_type, UploadValidationError)
    assert not issubclass(WorkbookParseError, UploadValidationError)


# ── store ────────────────────────────────────────────────────────


def _empty_analysis() -> WorkbookAnalysis:
    return WorkbookAnalysis(sheets=tuple(SheetResult.empty(c) for c in SheetCategory))


def test_store_starts_empty_and_replaces_wholesale() -> None:
    store = AnalysisStore()
    assert store.get() is None
    assert store.is_empty

    first, second = _empty_analysis(), _empty_analysis()
    store.replace(first)
    store.replace(second)

    assert store.get() is second


def test_store_rejects_non_analysis() -> None:
    with pytest.raises(TypeError):
        AnalysisStore().replace({"sheets": []})  # type: ignore[arg-type]


# ── process / fetch / clear ──────────────────────────────────────


def test_process_upload_stores_and_summarises(make_xlsx, one_row_each_status) -> None:  # type: ignore[no-untyped-def]
    store = AnalysisStore()

    summary = process_upload("takedowns.xlsx", XLSX_MIME, make_xlsx(one_row_each_status), store)

    assert summary.total_count == 8
    assert summary.active_count == 4
    assert summary.removed_count == 4
    assert summary.sheets_found == list(SheetCategory)
    assert fetch_analysis(store).total_count == 8


def test_upload_with_no_recognised_sheets_is_rejected_and_not_stored(make_xlsx) -> None:  # type: ignore[no-untyped-def]
    store = AnalysisStore()
    data = make_xlsx([("Summary", [["URL", "Status"], ["http://a", "Active"]])])

    with pytest.raises(NoRecognizedSheetsError) as excinfo:
        process_upload("book.xlsx", XLSX_MIME, data, store)

    message = str(excinfo.value)
    for name in ("Unauthorized Search Result", "Ads Tutorials- Social Media",
                 "Password Sharing-Social Med.", "Password Sharing-Marketplace"):
        assert name in message
    assert store.get() is None


def test_failed_upload_keeps_previous_analysis(make_xlsx, one_row_each_status) -> None:  # type: ignore[no-untyped-def]
    store = AnalysisStore()
    process_upload("takedowns.xlsx", XLSX_MIME, make_xlsx(one_row_each_status), store)
    before = store.get()

    with pytest.raises(WorkbookParseError):
        process_upload("broken.xlsx", XLSX_MIME, b"not a workbook", store)

    assert store.get() is before


def test_invalid_type_is_rejected_before_parsing() -> None:
    store = AnalysisStore()

    with pytest.raises(InvalidFileTypeError):
        process_upload("notes.txt", "text/plain", b"anything", store)
    assert store.get() is None


def test_fetch_without_upload_is_not_found() -> None:
    with pytest.raises(AnalysisNotFoundError, match="upload a file first"):
        fetch_analysis(AnalysisStore())


def test_clear_then_fetch_is_not_found_and_clear_is_idempotent(make_xlsx, one_row_each_status) -> None:  # type: ignore[no-untyped-def]
    store = AnalysisStore()
    process_upload("takedowns.xlsx", XLSX_MIME, make_xlsx(one_row_each_status), store)

    clear_analysis(store)
    clear_analysis(store)

    with pytest.raises(AnalysisNotFoundError):
        fetch_analysis(store)


def test_repeated_fetch_returns_identical_results(make_xlsx, one_row_each_status) -> None:  # type: ignore[no-untyped-def]
    store = AnalysisStore()
    process_upload("takedowns.xlsx", XLSX_MIME, make_xlsx(one_row_each_status), store)

    first = fetch_analysis(store)
    second = fetch_analysis(store)

    assert first is second
    assert first.to_dict() == second.to_dict()
