"""CLI entry point for action-analyzer."""

from __future__ import annotations

from collections.abc import Callable
from datetime import date
from enum import Enum
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table as RichTable

from action_analyzer import DUE_DATE_NOT_FOUND, __version__
from action_analyzer.columns import column_label, header_text, locate_columns
from action_analyzer.errors import AnalysisError, MissingActionColumn
from action_analyzer.io import load_workbook_file, write_json
from action_analyzer.models import AnalysisResult, RunManifest
from action_analyzer.pipeline import analyze_grid
from action_analyzer.report import write_report
from action_analyzer.utils import get_logger, setup_logging, sha256_file, utcnow_iso

app = typer.Typer(
    name="action-analyzer",
    help="action-analyzer: count assigned and overdue actions in a spreadsheet.",
    add_completion=False,
    no_args_is_help=True,
)
console = Console()
log = get_logger(__name__)


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


def _noop(*_args: object, **_kwargs: object) -> None:
    return None


def _printer(quiet: bool) -> Callable[..., None]:
    return _noop if quiet else console.print


def _err(msg: str) -> None:
    console.print(f"[red]x[/red] {escape(msg)}")


# ── Helpers ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"action-analyzer v{__version__}")
        raise typer.Exit()


def _parse_as_of(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise typer.BadParameter(f"expected YYYY-MM-DD, got {value!r}") from exc


def _write_manifest(
    out_dir: Path,
    input_file: Path,
    created_at: str,
    *,
    total_rows: int = 0,
    status: str = "success",
    error_code: int | None = None,
    error_message: str = "",
) -> Path:
    sha256 = ""
    try:
        sha256 = sha256_file(input_file)
    except OSError:
        log.debug("Could not hash %s", input_file, exc_info=True)

    manifest = RunManifest(
        version=__version__,
        input_path=str(input_file.resolve()),
        output_dir=str(out_dir.resolve()),
        created_at_utc=created_at,
        sha256=sha256,
        total_rows=total_rows,
        status=status,
        error_code=error_code,
        error_message=error_message,
    )
    return write_json(out_dir / "run_manifest.json", manifest.to_dict())


def _write_text_artifact(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(text, encoding="utf-8")
    tmp_path.replace(path)
    return path


def _write_summary_artifact(out_dir: Path, result: AnalysisResult) -> Path:
    lines = [result.summary]
    lines.extend(f"note: {note}" for note in result.notes)
    return _write_text_artifact(out_dir / "summary.txt", "\n".join(lines) + "\n")


def _fail(
    out_dir: Path,
    input_file: Path,
    created_at: str,
    *,
    message: str,
    error_code: int,
) -> NoReturn:
    manifest_path = _write_manifest(
        out_dir,
        input_file,
        created_at,
        status="failed",
        error_code=error_code,
        error_message=message,
    )
    _err(message)
    console.print(f"  Manifest -> {manifest_path}")
    raise typer.Exit(code=error_code)


def _results_table(result: AnalysisResult) -> RichTable:
    tbl = RichTable(title="Analysis Results", show_lines=True)
    tbl.add_column("Metric", style="bold")
    tbl.add_column("Value")

    tbl.add_row("Total rows", str(result.total_rows))
    tbl.add_row("Assigned", f"{result.assigned_count} ({result.assigned_pct}% of total)")
    tbl.add_row(
        "Overdue",
        f"{result.overdue_count} ({result.overdue_pct_of_assigned}% of assigned)",
    )
    tbl.add_row("Analysis date", result.today_iso)
    tbl.add_row("Time zone", result.timezone)
    tbl.add_row("Action column", result.columns_used.action)
    tbl.add_row("Due Date column", result.columns_used.due_date)
    for note in result.notes:
        tbl.add_row("Note", f"[yellow]{note}[/yellow]")
    return tbl


# ── Callbacks ────────────────────────────────────────────────────


@app.callback()
def main(
    version: bool | None = typer.Option(
        None, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: LogLevel = typer.Option(
        LogLevel.WARNING, "--log-level",
        help="Logging level for diagnostics written to stderr.",
    ),
) -> None:
    """action-analyzer CLI."""
    setup_logging(log_level.value, force=True)


# ── analyze command ──────────────────────────────────────────────


@app.command()
def analyze(
    input_file: Path = typer.Option(
        ..., "--input", "-i",
        help="Path to an .xlsx or .xls workbook.",
        exists=True, readable=True,
    ),
    out_dir: Path = typer.Option(
        Path("output"), "--out-dir", "-o",
        help="Output directory for result JSON, manifest, summary and report.",
    ),
    as_of: str | None = typer.Option(
        None, "--as-of",
        help="Analysis date (YYYY-MM-DD) to use instead of today in Asia/Kolkata.",
    ),
    report: bool = typer.Option(
        True, "--report/--no-report",
        help="Write Action_Report.xlsx.",
    ),
    as_json: bool = typer.Option(
        False, "--json",
        help="Print the result JSON to stdout.",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress informational output; still writes all artifacts.",
    ),
) -> None:
    """Count assigned and overdue actions in the first sheet of a workbook."""
    echo = _printer(quiet)
    created_at = utcnow_iso()
    today = _parse_as_of(as_of)
    out_dir.mkdir(parents=True, exist_ok=True)

    if not quiet:
        console.print(Panel(
            f"[bold]action-analyzer[/bold] v{__version__}\n"
            f"Input:  {input_file}\nOutput: {out_dir}",
            title="Analysis Start", border_style="blue",
        ))

    # ── Load + analyze ───────────────────────────────────────────
    echo("[blue]>[/blue] Reading workbook …")
    try:
        grid = load_workbook_file(input_file)
        echo(f"  {grid.max_row + 1} rows x {grid.max_col + 1} columns in {grid.sheet_name!r}")
        echo("[blue]>[/blue] Classifying rows …")
        result = analyze_grid(grid, today=today)
    except AnalysisError as exc:
        _fail(out_dir, input_file, created_at, message=exc.message, error_code=exc.exit_code)
    except OSError as exc:
        _fail(out_dir, input_file, created_at, message=str(exc), error_code=2)

    try:
        result_path = write_json(out_dir / "analysis_result.json", result.to_dict())
        echo(f"  Result   -> {result_path}")
        summary_path = _write_summary_artifact(out_dir, result)
        echo(f"  Summary  -> {summary_path}")
        if report:
            echo("[blue]>[/blue] Writing Action_Report.xlsx …")
            report_path = write_report(out_dir, result)
            echo(f"  Report   -> {report_path}")
        manifest_path = _write_manifest(
            out_dir, input_file, created_at, total_rows=result.total_rows
        )
        echo(f"  Manifest -> {manifest_path}")
    except Exception as exc:
        log.exception("Failed writing artifacts")
        _fail(
            out_dir,
            input_file,
            created_at,
            message=f"Unexpected internal error: {exc}",
            error_code=1,
        )

    if as_json:
        console.print_json(data=result.to_dict())
    if not quiet:
        console.print(_results_table(result))
        console.print(Panel(
            f"[green]Done[/green]: Analyzed {result.total_rows} rows successfully\n"
            f"{result.summary}",
            title="Analysis Complete", border_style="green",
        ))


# ── locate command ───────────────────────────────────────────────


@app.command()
def locate(
    input_file: Path = typer.Option(
        ..., "--input", "-i",
        help="Path to an .xlsx or .xls workbook.",
        exists=True, readable=True,
    ),
) -> None:
    """Show which columns would be used as Action and Due Date.

    Writes nothing. Exit 0 = action column found, exit 2 = not found or unreadable.
    """
    try:
        grid = load_workbook_file(input_file)
    except (AnalysisError, OSError) as exc:
        _err(getattr(exc, "message", str(exc)))
        raise typer.Exit(code=2)

    located = locate_columns(grid)

    tbl = RichTable(title=f"Header row of {grid.sheet_name!r}", show_lines=True)
    tbl.add_column("Column", style="bold")
    tbl.add_column("Header")
    tbl.add_column("Role")
    for col in range(grid.max_col + 1):
        roles = []
        if col == located.action:
            roles.append("[green]action[/green]")
        if col == located.due_date:
            roles.append("[green]due date[/green]")
        tbl.add_row(column_label(col), escape(header_text(grid.cell(0, col))), ", ".join(roles))
    console.print(tbl)

    due_label = (
        column_label(located.due_date) if located.due_date is not None else DUE_DATE_NOT_FOUND
    )
    if located.action is None:
        _err(MissingActionColumn().message)
        raise typer.Exit(code=2)
    console.print(f"  Action column:   {column_label(located.action)}")
    console.print(f"  Due Date column: {due_label}")
