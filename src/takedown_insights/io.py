"""I/O helpers — read uploaded workbooks into raw row grids, write JSON artifacts."""

from __future__ import annotations

import csv
import io
import json
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Literal, Union, cast

import pandas as pd

from takedown_insights.errors import WorkbookParseError

WorkbookSource = Union[bytes, bytearray, Path, str]
SheetGrid = list[list[Any]]

SUPPORTED_EXTENSIONS: tuple[str, ...] = (".xlsx", ".xls", ".csv")
DEFAULT_CSV_SHEET_NAME = "Sheet1"

_ZIP_MAGIC = b"PK\x03\x04"
_OLE2_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"

_CSV_DELIMITERS = (",", ";", "\t", "|")
_SNIFF_BYTES = 4096

# ── Loading ──────────────────────────────────────────────────────


def _read_bytes(source: WorkbookSource) -> tuple[bytes, str | None]:
    if isinstance(source, (bytes, bytearray)):
        return bytes(source), None
    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    return path.read_bytes(), path.name


def _sniff_format(data: bytes, filename: str | None) -> Literal["xlsx", "xls", "csv"]:
    """Pick a reader from the extension, falling back to magic bytes."""
    suffix = Path(filename).suffix.lower() if filename else ""
    if suffix in (".xlsx", ".xlsm", ".xltx", ".xltm"):
        return "xlsx"
    if suffix == ".xls":
        return "xls"
    if suffix == ".csv":
        return "csv"
    if data.startswith(_ZIP_MAGIC):
        return "xlsx"
    if data.startswith(_OLE2_MAGIC):
        return "xls"
    return "csv"


def _frame_to_grid(df: pd.DataFrame) -> SheetGrid:
    return cast(SheetGrid, df.astype(object).values.tolist())


def _decode_csv(data: bytes) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        return data.decode("latin-1")


def _csv_delimiter(text: str) -> str:
    """Pick the delimiter from the header line; single-column files use ``,``."""
    first_line = text.splitlines()[0] if text else ""
    present = [d for d in _CSV_DELIMITERS if d in first_line]
    if len(present) <= 1:
        return present[0] if present else ","
    try:
        return csv.Sniffer().sniff(text[:_SNIFF_BYTES], delimiters="".join(present)).delimiter
    except csv.Error:
        return present[0]


def _read_csv_grid(data: bytes) -> SheetGrid:
    text = _decode_csv(data)
    if not text.strip():
        return []
    sep = _csv_delimiter(text)
    try:
        # Rows may be ragged; size the frame to the widest one.
        width = max((len(row) for row in csv.reader(io.StringIO(text), delimiter=sep)), default=0)
        if width == 0:
            return []
        df = pd.read_csv(
            io.StringIO(text),
            header=None,
            names=list(range(width)),
            dtype=object,
            sep=sep,
            engine="python",
            keep_default_na=False,
            skip_blank_lines=False,
        )
    except pd.errors.EmptyDataError:
        return []
    except (pd.errors.ParserError, csv.Error) as exc:
        raise WorkbookParseError(f"Could not read CSV: {exc}") from exc
    return _frame_to_grid(df)


def _read_excel_grids(data: bytes, engine: str) -> list[tuple[str, SheetGrid]]:
    read_excel = cast(Callable[..., dict[str, pd.DataFrame]], getattr(pd, "read_excel"))
    try:
        frames = read_excel(
            io.BytesIO(data),
            sheet_name=None,
            header=None,
            dtype=object,
            engine=engine,
            keep_default_na=False,
        )
    except ImportError as exc:
        raise WorkbookParseError(
            f"Reading this workbook requires the {engine!r} package. "
            f"Install it with: pip install {engine}"
        ) from exc
    except Exception as exc:  # openpyxl, xlrd and zipfile each raise their own types
        raise WorkbookParseError(str(exc) or type(exc).__name__) from exc
    return [(str(name), _frame_to_grid(df)) for name, df in frames.items()]


def read_workbook(
    source: WorkbookSource, filename: str | None = None
) -> list[tuple[str, SheetGrid]]:
    """Parse *source* into ``(sheet_name, rows)`` pairs in workbook order.

    Each grid includes the header row. Blank cells come back as ``""`` or
    NaN depending on the reader; callers treat both as blank.

    Raises
    ------
    FileNotFoundError
        If *source* is a path that does not exist.
    WorkbookParseError
        If the bytes are not a readable spreadsheet.
    """
    data, source_name = _read_bytes(source)
    filename = filename or source_name

    fmt = _sniff_format(data, filename)
    if fmt == "csv":
        stem = Path(filename).stem if filename else ""
        return [(stem or DEFAULT_CSV_SHEET_NAME, _read_csv_grid(data))]
    if fmt == "xls":
        return _read_excel_grids(data, engine="xlrd")
    return _read_excel_grids(data, engine="openpyxl")


# ── Writing ──────────────────────────────────────────────────────


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    item = getattr(obj, "item", None)
    if callable(item):
        converted = item()
        if isinstance(converted, (str, int, float, bool)) or converted is None:
            return converted
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def write_json(path: Path, data: Any) -> Path:
    """Write *data* as pretty-printed JSON to *path* (atomic + deterministic)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    payload = json.dumps(
        data,
        indent=2,
        sort_keys=True,
        ensure_ascii=False,
        default=_json_default,
    ) + "\n"
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(payload, encoding="utf-8")
    tmp_path.replace(path)
    return path
