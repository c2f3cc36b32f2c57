"""CLI entry point for takedown-insights."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table as RichTable

from takedown_insights import __version__
from takedown_insights.classify import classify_sheet
from takedown_insights.columns import NOT_FOUND, detect_columns
from takedown_insights.config import Settings
from takedown_insights.errors import UploadValidationError, WorkbookParseError
from takedown_insights.filters import filter_analysis
from takedown_insights.io import read_workbook, write_json
from takedown_insights.log import setup_logging
from takedown_insights.models import RunManifest, WorkbookAnalysis
from takedown_insights.pipeline import assemble_workbook, cell_text
from takedown_insights.report import write_report
from takedown_insights.service import no_data_message, validate_upload
from takedown_insights.utils import sha256_bytes, utcnow_iso, write_text_atomic

app = typer.Typer(
    name="tdinsights",
    help="takedown-insights — Classify URL takedown workbooks into dashboard-ready analyses.",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()

_INSPECT_ROLES: tuple[str, ...] = ("status", "url", "market", "month", "content_owner")


def _noop(*_args: object, **_kwargs: object) -> None:
    return None


def _printer(quiet: bool) -> Callable[..., None]:
    return _noop if quiet else console.print


def _err(msg: str) -> None:
    console.print(f"[red]x[/red] {msg}")


# ── Helpers ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"takedown-insights v{__version__}")
        raise typer.Exit()


def _load_settings() -> Settings:
    try:
        return Settings.from_env()
    except ValueError as exc:
        _err(str(exc))
        raise typer.Exit(code=2) from exc


def _write_manifest(
    out_dir: Path,
    input_file: Path,
    created_at: str,
    *,
    sha256: str = "",
    sheet_names: list[str] | None = None,
    analysis: WorkbookAnalysis | None = None,
    status: str = "success",
    error_code: int | None = None,
    error_message: str = "",
) -> Path:
    manifest = RunManifest(
        version=__version__,
        input_path=str(input_file.resolve()),
        output_dir=str(out_dir.resolve()),
        created_at_utc=created_at,
        sheet_names=sheet_names or [],
        categories_found=[c.value for c in analysis.categories_found] if analysis else [],
        total_count=analysis.total_count if analysis else 0,
        sha256=sha256,
        status=status,
        error_code=error_code,
        error_message=error_message,
    )
    return write_json(out_dir / "run_manifest.json", manifest.to_dict())


def _fail(
    out_dir: Path,
    input_file: Path,
    created_at: str,
    message: str,
    *,
    error_code: int = 2,
    sha256: str = "",
    sheet_names: list[str] | None = None,
) -> typer.Exit:
    manifest_path = _write_manifest(
        out_dir,
        input_file,
        created_at,
        sha256=sha256,
        sheet_names=sheet_names,
        status="failed",
        error_code=error_code,
        error_message=message,
    )
    _err(message)
    console.print(f"  Manifest -> {manifest_path}")
    return typer.Exit(code=error_code)


def _summary_lines(
    input_file: Path,
    analysis: WorkbookAnalysis,
    view: WorkbookAnalysis,
    filters: dict[str, list[str]],
) -> list[str]:
    lines: list[str] = [
        "takedown-insights summary",
        f"tool_version: takedown-insights v{__version__}",
        f"input_file: {input_file.name}",
        f"categories_found: {', '.join(c.value for c in analysis.categories_found)}",
    ]
    for name, values in filters.items():
        if values:
            lines.append(f"filter_{name}: {', '.join(values)}")
    lines.extend(
        [
            f"total_urls: {view.total_count}",
            f"active: {view.active_count}",
            f"removed: {view.removed_count}",
            f"removal_rate_pct: {view.removal_rate_percent:.2f}",
            f"usr_atsm: {view.usr_atsm_count}",
            f"pssm_psmp: {view.pssm_psmp_count}",
        ]
    )
    for sheet in view.sheets:
        lines.append(
            f"sheet_{sheet.category.value.lower()}: "
            f"{sheet.total_count} total, {sheet.active_count} active, "
            f"{sheet.removed_count} removed"
        )
    return lines


def _print_analysis_table(view: WorkbookAnalysis) -> None:
    tbl = RichTable(title="Takedown Summary", show_lines=True)
    tbl.add_column("Category", style="bold")
    tbl.add_column("Sheet")
    tbl.add_column("Total", justify="right")
    tbl.add_column("Active", justify="right")
    tbl.add_column("Removed", justify="right")
    for sheet in view.sheets:
        tbl.add_row(
            sheet.category.value,
            sheet.full_name,
            str(sheet.total_count),
            str(sheet.active_count),
            str(sheet.removed_count),
        )
    tbl.add_row(
        "[bold]All[/bold]",
        f"removal rate {view.removal_rate_percent:.2f}%",
        str(view.total_count),
        str(view.active_count),
        str(view.removed_count),
    )
    console.print(tbl)


# ── Callbacks ────────────────────────────────────────────────────


@app.callback()
def main(
    version: bool | None = typer.Option(
        None, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v",
        help="Log sheet classification and skipped rows.",
    ),
) -> None:
    """takedown-insights CLI."""
    setup_logging("DEBUG" if verbose else _load_settings().log_level)


# ── analyze command ──────────────────────────────────────────────


@app.command()
def analyze(
    input_file: Path = typer.Option(
        ..., "--input", "-i",
        help="Path to the XLSX, XLS or CSV workbook.",
        exists=True, readable=True, dir_okay=False,
    ),
    out_dir: Path = typer.Option(
        Path("output"), "--out-dir", "-o",
        help="Output directory for analysis JSON, report, manifest and summary.",
    ),
    months: list[str] | None = typer.Option(
        None, "--month",
        help="Only report records from this month (repeatable).",
    ),
    markets: list[str] | None = typer.Option(
        None, "--market",
        help="Only report records from this market (repeatable).",
    ),
    owners: list[str] | None = typer.Option(
        None, "--owner",
        help="Only report records for this content owner (repeatable).",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress informational output; still writes all artifacts.",
    ),
) -> None:
    """Analyse a workbook and write analysis.json + Takedown_Report.xlsx.

    Filters narrow the report and summary; analysis.json always holds the
    full, unfiltered analysis.
    """
    echo = _printer(quiet)
    settings = _load_settings()
    created_at = utcnow_iso()
    out_dir.mkdir(parents=True, exist_ok=True)

    if not quiet:
        console.print(Panel(
            f"[bold]takedown-insights[/bold] v{__version__}\n"
            f"Input:  {input_file}\nOutput: {out_dir}",
            title="Analysis Start", border_style="blue",
        ))

    # ── Load ─────────────────────────────────────────────────────
    echo("[blue]>[/blue] Loading workbook …")
    try:
        data = input_file.read_bytes()
    except OSError as exc:
        raise _fail(out_dir, input_file, created_at, f"Cannot read {input_file}: {exc}") from exc
    sha256 = sha256_bytes(data)

    try:
        validate_upload(input_file.name, None, len(data), settings)
        sheets = read_workbook(data, filename=input_file.name)
    except (UploadValidationError, WorkbookParseError) as exc:
        raise _fail(out_dir, input_file, created_at, str(exc), sha256=sha256) from exc

    sheet_names = [name for name, _rows in sheets]
    echo(f"  {len(sheets)} sheet(s): {', '.join(sheet_names)}")

    try:
        # ── Classify + extract ───────────────────────────────────
        echo("[blue]>[/blue] Classifying sheets …")
        analysis = assemble_workbook(sheets)
        if analysis.is_empty:
            raise _fail(
                out_dir, input_file, created_at, no_data_message(),
                sha256=sha256, sheet_names=sheet_names,
            )

        filters = {"month": months or [], "market": markets or [], "owner": owners or []}
        view = filter_analysis(analysis, months, markets, owners)

        # ── Write artifacts ──────────────────────────────────────
        analysis_path = write_json(out_dir / "analysis.json", analysis.to_dict())
        echo(f"  Analysis -> {analysis_path}")

        echo("[blue]>[/blue] Writing Takedown_Report.xlsx …")
        report_path = write_report(out_dir, view)
        echo(f"  Report   -> {report_path}")

        manifest_path = _write_manifest(
            out_dir, input_file, created_at,
            sha256=sha256, sheet_names=sheet_names, analysis=analysis,
        )
        echo(f"  Manifest -> {manifest_path}")

        summary_path = write_text_atomic(
            out_dir / "summary.txt",
            "\n".join(_summary_lines(input_file, analysis, view, filters)) + "\n",
        )
        echo(f"  Summary  -> {summary_path}")

        if not quiet:
            _print_analysis_table(view)
            console.print(Panel(
                f"[green]Done[/green] — {view.total_count} URLs -> {report_path}",
                title="Analysis Complete", border_style="green",
            ))
    except typer.Exit:
        raise
    except Exception as exc:
        raise _fail(
            out_dir, input_file, created_at, f"Unexpected internal error: {exc}",
            error_code=1, sha256=sha256, sheet_names=sheet_names,
        ) from exc


# ── inspect command ──────────────────────────────────────────────


@app.command()
def inspect(
    input_file: Path = typer.Option(
        ..., "--input", "-i",
        help="Path to the XLSX, XLS or CSV workbook.",
        exists=True, readable=True, dir_okay=False,
    ),
) -> None:
    """Show how each sheet is classified and which columns are detected.

    Writes nothing. Exit 0 = at least one canonical sheet found, exit 2 otherwise.
    """
    try:
        sheets = read_workbook(input_file)
    except WorkbookParseError as exc:
        _err(str(exc))
        raise typer.Exit(code=2) from exc

    tbl = RichTable(title=f"Sheets in {input_file.name}", show_lines=True)
    tbl.add_column("Sheet", style="bold")
    tbl.add_column("Category")
    tbl.add_column("Rows", justify="right")
    for role in _INSPECT_ROLES:
        tbl.add_column(role)

    seen: set[str] = set()
    for name, rows in sheets:
        category = classify_sheet(name)
        data_rows = str(max(len(rows) - 1, 0))
        if category is None:
            tbl.add_row(name, "[dim]ignored[/dim]", data_rows, *([""] * len(_INSPECT_ROLES)))
            continue
        if category.value in seen:
            tbl.add_row(
                name, f"[yellow]{category.value} (duplicate)[/yellow]", data_rows,
                *([""] * len(_INSPECT_ROLES)),
            )
            continue
        seen.add(category.value)

        headers = [cell_text(h) for h in rows[0]] if rows else []
        columns = detect_columns(headers, category).to_dict()
        cells = []
        for role in _INSPECT_ROLES:
            idx = columns[role]
            cells.append("[red]-[/red]" if idx == NOT_FOUND else f"{idx}: {headers[idx]}")
        tbl.add_row(name, f"[green]{category.value}[/green]", data_rows, *cells)

    console.print(tbl)
    if not seen:
        _err(no_data_message())
        raise typer.Exit(code=2)


# ── serve command ────────────────────────────────────────────────


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", help="Bind address (default: TDI_HOST or 127.0.0.1)."),
    port: int | None = typer.Option(None, "--port", "-p", help="Port (default: TDI_PORT or 8000)."),
) -> None:
    """Run the upload/fetch/clear HTTP API."""
    import uvicorn

    from takedown_insights.api import create_app

    settings = _load_settings()
    bind_host = host or settings.host
    bind_port = port or settings.port
    console.print(f"[blue]>[/blue] Serving on http://{bind_host}:{bind_port}")
    uvicorn.run(
        create_app(settings=settings),
        host=bind_host,
        port=bind_port,
        log_level=settings.log_level.lower(),
    )
