"""Upload / fetch / clear operations, independent of any web framework."""

from __future__ import annotations

import logging
from pathlib import Path

from takedown_insights.config import Settings
from takedown_insights.errors import (
    AnalysisNotFoundError,
    FileTooLargeError,
    InvalidFileTypeError,
    MissingFileError,
    NoRecognizedSheetsError,
)
from takedown_insights.io import SUPPORTED_EXTENSIONS
from takedown_insights.models import EXPECTED_SHEET_NAMES, UploadSummary, WorkbookAnalysis
from takedown_insights.pipeline import analyze_workbook
from takedown_insights.store import AnalysisStore

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES: frozenset[str] = frozenset(
    {
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/vnd.ms-excel",
        "text/csv",
        "application/octet-stream",
    }
)

INVALID_TYPE_MESSAGE = "Invalid file type. Please upload an Excel file (.xlsx, .xls) or CSV file."
NOT_FOUND_MESSAGE = "No workbook data available. Please upload a file first."


def too_large_message(settings: Settings) -> str:
    return f"File is too large. Maximum size is {settings.max_upload_mb}MB."


def no_data_message() -> str:
    names = ", ".join(f"'{name}'" for name in EXPECTED_SHEET_NAMES[:-1])
    return (
        "No valid data found in the uploaded file. Please ensure your Excel file "
        f"contains sheets named {names}, or '{EXPECTED_SHEET_NAMES[-1]}'."
    )


def validate_upload(
    filename: str | None,
    content_type: str | None,
    size: int,
    settings: Settings | None = None,
) -> None:
    """Reject uploads with a bad type or size before any parsing happens.

    A file passes the type check when either its extension or its declared
    content type is whitelisted.
    """
    settings = settings or Settings()
    if not filename:
        raise MissingFileError("No file uploaded")

    has_valid_extension = Path(filename).suffix.lower() in SUPPORTED_EXTENSIONS
    mime = (content_type or "").split(";", 1)[0].strip().lower()
    if not has_valid_extension and mime not in ALLOWED_CONTENT_TYPES:
        raise InvalidFileTypeError(INVALID_TYPE_MESSAGE)

    if size > settings.max_upload_bytes:
        raise FileTooLargeError(too_large_message(settings))


def process_upload(
    filename: str | None,
    content_type: str | None,
    data: bytes,
    store: AnalysisStore,
    settings: Settings | None = None,
) -> UploadSummary:
    """Validate, analyse and store one upload; return its summary.

    Nothing is stored unless the whole analysis succeeds and at least one
    canonical sheet produced a record.
    """
    validate_upload(filename, content_type, len(data), settings)

    analysis = analyze_workbook(data, filename=filename)
    if analysis.is_empty:
        raise NoRecognizedSheetsError(no_data_message())

    store.replace(analysis)
    summary = UploadSummary.from_analysis(analysis)
    logger.info(
        "Processed %s: %d records, sheets found: %s",
        filename,
        summary.total_count,
        ", ".join(c.value for c in summary.sheets_found),
    )
    return summary


def fetch_analysis(store: AnalysisStore) -> WorkbookAnalysis:
    analysis = store.get()
    if analysis is None:
        raise AnalysisNotFoundError(NOT_FOUND_MESSAGE)
    return analysis


def clear_analysis(store: AnalysisStore) -> None:
    store.clear()
