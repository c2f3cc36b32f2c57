"""Excel report writer — produces Takedown_Report.xlsx from an analysis."""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, cast

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table, TableStyleInfo
from openpyxl.worksheet.worksheet import Worksheet

from takedown_insights.classify import normalize_status
from takedown_insights.filters import content_owner_breakdown
from takedown_insights.models import SheetResult, WorkbookAnalysis

REPORT_FILENAME = "Takedown_Report.xlsx"

# ── Style constants ──────────────────────────────────────────────

HEADER_FONT = Font(name="Calibri", bold=True, size=11, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="2F5496", end_color="2F5496", fill_type="solid")
HEADER_ALIGN = Alignment(horizontal="center", vertical="center", wrap_text=True)

TITLE_FONT = Font(name="Calibri", bold=True, size=14, color="2F5496")
SUBTITLE_FONT = Font(name="Calibri", bold=False, size=10, color="808080")
LABEL_FONT = Font(name="Calibri", bold=True, size=11)
VALUE_FONT = Font(name="Calibri", size=11)

KPI_FILL = PatternFill(start_color="D6E4F0", end_color="D6E4F0", fill_type="solid")

INT_FMT = '#,##0'
# Removal rate arrives as percent-points (e.g. 37.5), so the sign is literal.
PCT_FMT = '0.00"%"'

RECORD_COLUMNS: list[str] = ["url", "status", "normalized_status", "market", "month", "content_owner"]

_AUTO_WIDTH_SAMPLE_ROWS = 300
_MAX_COLUMN_WIDTH = 60
_EXCEL_FORMULA_PREFIXES = ("=", "+", "-", "@")


# ── Helpers ──────────────────────────────────────────────────────


def _style_header(ws: Worksheet, ncols: int, row: int = 1) -> None:
    for c in range(1, ncols + 1):
        cell = ws.cell(row=row, column=c)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = HEADER_ALIGN


def _auto_width(ws: Worksheet) -> None:
    max_row = min(ws.max_row, _AUTO_WIDTH_SAMPLE_ROWS + 1)
    for c_idx in range(1, ws.max_column + 1):
        letter = get_column_letter(c_idx)
        width = 0
        for row in ws.iter_rows(min_row=1, max_row=max_row, min_col=c_idx, max_col=c_idx):
            width = max(width, len(str(row[0].value or "")))
        ws.column_dimensions[letter].width = min(width + 4, _MAX_COLUMN_WIDTH)


def _sanitize_table_name(name: str) -> str:
    cleaned = re.sub(r"[^A-Za-z0-9_]", "_", name)
    if not cleaned:
        cleaned = "Table"
    if not re.match(r"^[A-Za-z_]", cleaned):
        cleaned = f"_{cleaned}"
    return cleaned[:255]


def _unique_table_name(ws: Worksheet, base_name: str) -> str:
    parent = ws.parent
    if parent is None:
        return base_name

    existing: set[str] = set()
    for sheet in parent.worksheets:
        existing.update(cast(Iterable[str], sheet.tables.keys()))
    if base_name not in existing:
        return base_name

    suffix = 1
    while True:
        suffix_str = f"_{suffix}"
        candidate = f"{base_name[: 255 - len(suffix_str)]}{suffix_str}"
        if candidate not in existing:
            return candidate
        suffix += 1


def _add_excel_table(ws: Worksheet, name: str, ncols: int, nrows: int) -> None:
    """Turn the data range into a proper Excel Table object."""
    if nrows < 1 or ncols < 1:
        return
    ref = f"A1:{get_column_letter(ncols)}{nrows + 1}"
    table = Table(displayName=_unique_table_name(ws, _sanitize_table_name(name)), ref=ref)
    table.tableStyleInfo = TableStyleInfo(
        name="TableStyleMedium9", showFirstColumn=False,
        showLastColumn=False, showRowStripes=True, showColumnStripes=False,
    )
    ws.add_table(table)


def _excel_value(val: Any) -> Any:
    """Escape text that Excel would otherwise evaluate as a formula."""
    if isinstance(val, str):
        if val.startswith("'"):
            return val
        stripped = val.lstrip()
        if stripped and stripped[0] in _EXCEL_FORMULA_PREFIXES:
            return f"'{val}"
    return val


def records_frame(sheet: SheetResult) -> pd.DataFrame:
    """Records of *sheet* as a DataFrame, with the normalized status alongside."""
    rows = [
        {
            "url": r.url,
            "status": r.status,
            "normalized_status": normalize_status(r.status),
            "market": r.market,
            "month": r.month,
            "content_owner": r.content_owner,
        }
        for r in sheet.records
    ]
    return pd.DataFrame(rows, columns=RECORD_COLUMNS)


def _df_to_sheet(wb: Workbook, name: str, df: pd.DataFrame) -> None:
    ws = wb.create_sheet(title=name)
    col_names = list(df.columns)

    for c_idx, col_name in enumerate(col_names, 1):
        ws.cell(row=1, column=c_idx, value=col_name)
    for r_idx, row_vals in enumerate(df.itertuples(index=False, name=None), 2):
        for c_idx, val in enumerate(row_vals, 1):
            ws.cell(row=r_idx, column=c_idx, value=_excel_value(val))
    _style_header(ws, len(col_names))
    ws.freeze_panes = "A2"
    _auto_width(ws)
    if len(df) > 0:
        _add_excel_table(ws, name, len(col_names), len(df))


def _write_dashboard(wb: Workbook, analysis: WorkbookAnalysis) -> None:
    ws = wb.create_sheet(title="Dashboard")

    # ── Title ────────────────────────────────────────────────────
    ws.cell(row=1, column=1, value="takedown-insights — Dashboard").font = TITLE_FONT
    ws.merge_cells("A1:E1")
    generated = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
    ws.cell(row=2, column=1, value=f"Generated {generated}").font = SUBTITLE_FONT
    ws.merge_cells("A2:E2")

    # ── KPI cards ────────────────────────────────────────────────
    row = 4
    ws.cell(row=row, column=1, value="Key Metrics").font = LABEL_FONT
    ws.merge_cells(f"A{row}:E{row}")
    for c in range(1, 6):
        ws.cell(row=row, column=c).fill = KPI_FILL
    row += 1

    kpis: list[tuple[str, Any, str]] = [
        ("Total URLs", analysis.total_count, INT_FMT),
        ("Active", analysis.active_count, INT_FMT),
        ("Removed", analysis.removed_count, INT_FMT),
        ("Removal Rate %", round(analysis.removal_rate_percent, 2), PCT_FMT),
        ("USR + ATSM", analysis.usr_atsm_count, INT_FMT),
        ("PSSM + PSMP", analysis.pssm_psmp_count, INT_FMT),
    ]
    for label, value, fmt in kpis:
        lbl_cell = ws.cell(row=row, column=1, value=label)
        lbl_cell.font = LABEL_FONT
        lbl_cell.fill = KPI_FILL
        val_cell = ws.cell(row=row, column=2, value=value)
        val_cell.font = VALUE_FONT
        val_cell.fill = KPI_FILL
        val_cell.number_format = fmt
        val_cell.alignment = Alignment(horizontal="right")
        row += 1

    # ── Per-category breakdown ───────────────────────────────────
    row += 1
    headers = ["Category", "Sheet", "Total", "Active", "Removed"]
    for c_idx, header in enumerate(headers, 1):
        ws.cell(row=row, column=c_idx, value=header)
    _style_header(ws, len(headers), row=row)
    row += 1
    for sheet in analysis.sheets:
        values = [
            sheet.category.value,
            sheet.full_name,
            sheet.total_count,
            sheet.active_count,
            sheet.removed_count,
        ]
        for c_idx, value in enumerate(values, 1):
            cell = ws.cell(row=row, column=c_idx, value=value)
            cell.font = VALUE_FONT
            if isinstance(value, int):
                cell.number_format = INT_FMT
        row += 1

    ws.column_dimensions["A"].width = 22
    ws.column_dimensions["B"].width = 32
    for letter in ("C", "D", "E"):
        ws.column_dimensions[letter].width = 12


# ── Public API ───────────────────────────────────────────────────


def write_report(out_dir: Path, analysis: WorkbookAnalysis) -> Path:
    """Write ``Takedown_Report.xlsx`` into *out_dir* and return the path."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    report_path = out_dir / REPORT_FILENAME

    wb = Workbook()
    active_sheet = wb.active
    if active_sheet is not None:
        wb.remove(active_sheet)

    _write_dashboard(wb, analysis)

    for sheet in analysis.sheets:
        _df_to_sheet(wb, sheet.category.value, records_frame(sheet))

    all_records = [r for sheet in analysis.sheets for r in sheet.records]
    owners = pd.DataFrame(
        [
            {
                "content_owner": s.content_owner,
                "total": s.total,
                "active": s.active,
                "removed": s.removed,
            }
            for s in content_owner_breakdown(all_records)
        ],
        columns=["content_owner", "total", "active", "removed"],
    )
    _df_to_sheet(wb, "Content_Owners", owners)

    tmp_path = out_dir / "Takedown_Report.tmp.xlsx"
    wb.save(tmp_path)
    tmp_path.replace(report_path)
    return report_path
