"""Exception hierarchy shared by the pipeline, the upload service and the API."""

from __future__ import annotations


class TakedownInsightsError(Exception):
    """Base class for every error raised on purpose by this package."""


class UploadValidationError(TakedownInsightsError):
    """The upload was rejected before or after parsing (client-side fault)."""


class MissingFileError(UploadValidationError):
    """No file was attached to the upload."""


class InvalidFileTypeError(UploadValidationError):
    """The file extension and content type are both outside the whitelist."""


class FileTooLargeError(UploadValidationError):
    """The upload exceeds the configured size ceiling."""


class NoRecognizedSheetsError(UploadValidationError):
    """The workbook parsed, but no canonical sheet yielded a single record."""


class WorkbookParseError(TakedownInsightsError):
    """The buffer could not be read as a spreadsheet at all."""


class AnalysisNotFoundError(TakedownInsightsError):
    """No analysis has been stored yet (or it was cleared)."""
