"""Classification + aggregation pipeline: pure functions over a workbook grid."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Iterator
from datetime import date
from pathlib import Path
from typing import Any

from action_analyzer import DUE_DATE_NOT_FOUND, REFERENCE_TIMEZONE
from action_analyzer.columns import HEADER_ROW, column_label, locate_columns
from action_analyzer.dates import normalize_date, today_in_timezone
from action_analyzer.errors import MissingActionColumn
from action_analyzer.io import load_workbook_file, read_workbook
from action_analyzer.models import (
    AnalysisResult,
    Cell,
    ColumnsUsed,
    RowClassification,
    WorkbookGrid,
)
from action_analyzer.utils import get_logger

log = get_logger(__name__)

DUE_DATE_MISSING_NOTE = "Due Date column not found. Overdue analysis skipped."

# ── Assignment heuristic ────────────────────────────────────────

ASSIGNED_TOKENS: frozenset[str] = frozenset({"yes", "true", "assigned", "done", "1"})
UNASSIGNED_TOKENS: frozenset[str] = frozenset({"no", "false", "unassigned", "0", ""})


def _stringify(value: Any) -> str:
    # Integral floats (xlrd reads every number as float) compare as "1", not "1.0".
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def cell_text(cell: Cell) -> Any:
    """What a row check reads from a cell: display text if any, else the raw value."""
    return cell.display_text or cell.value


def is_assigned(value: Any) -> bool:
    """Decide whether an Action cell value means "assigned".

    Blank is unassigned and explicit negatives are unassigned. Every other
    non-empty value, including free text such as ``"Maybe"`` or a stray note,
    counts as assigned.
    """
    if value is None or value == "":
        return False
    token = _stringify(value).strip().lower()
    if token in ASSIGNED_TOKENS:
        return True
    return token not in UNASSIGNED_TOKENS


# ── Row classification ──────────────────────────────────────────


def classify_row(
    grid: WorkbookGrid,
    row: int,
    *,
    action_col: int,
    due_date_col: int | None,
    today: date,
) -> RowClassification:
    action_cell = grid.cell(row, action_col)
    if action_cell.is_blank and due_date_col is None:
        return RowClassification(counted=False)

    if not is_assigned(cell_text(action_cell)):
        return RowClassification(counted=True)

    overdue = False
    if due_date_col is not None:
        due = normalize_date(cell_text(grid.cell(row, due_date_col)))
        overdue = due is not None and due < today
    return RowClassification(counted=True, assigned=True, overdue=overdue)


def classify_rows(
    grid: WorkbookGrid,
    *,
    action_col: int,
    due_date_col: int | None,
    today: date,
) -> Iterator[RowClassification]:
    """Yield one classification per data row (every row after the header)."""
    for row in range(HEADER_ROW + 1, grid.max_row + 1):
        yield classify_row(
            grid, row, action_col=action_col, due_date_col=due_date_col, today=today
        )


# ── Aggregation ─────────────────────────────────────────────────


def _pct(part: int, whole: int) -> float:
    return round(100 * part / whole, 1) if whole else 0.0


def format_summary(total: int, assigned: int, overdue: int) -> str:
    """One-line summary with whole-number percentages."""
    assigned_pct = 100 * assigned / total if total else 0.0
    overdue_pct = 100 * overdue / assigned if assigned else 0.0
    return (
        f"Total: {total} | Assigned: {assigned} ({assigned_pct:.0f}%) | "
        f"Overdue: {overdue} ({overdue_pct:.0f}%)"
    )


def aggregate(
    classifications: Iterable[RowClassification],
    *,
    today: date,
    columns_used: ColumnsUsed,
    notes: Iterable[str] = (),
    timezone: str = REFERENCE_TIMEZONE,
) -> AnalysisResult:
    """Fold row classifications into the final :class:`AnalysisResult`."""
    total = assigned = overdue = 0
    for item in classifications:
        if not item.counted:
            continue
        total += 1
        if item.assigned:
            assigned += 1
            if item.overdue:
                overdue += 1

    return AnalysisResult(
        total_rows=total,
        assigned_count=assigned,
        assigned_pct=_pct(assigned, total),
        overdue_count=overdue,
        overdue_pct_of_assigned=_pct(overdue, assigned),
        today_iso=today.isoformat(),
        timezone=timezone,
        columns_used=columns_used,
        notes=tuple(notes),
        summary=format_summary(total, assigned, overdue),
    )


# ── Public API ───────────────────────────────────────────────────


def analyze_grid(grid: WorkbookGrid, *, today: date | None = None) -> AnalysisResult:
    """Run column discovery, classification and aggregation over *grid*.

    Raises
    ------
    MissingActionColumn
        If no header contains "action".
    """
    located = locate_columns(grid)
    if located.action is None:
        log.warning("No action column in header row of sheet %r", grid.sheet_name)
        raise MissingActionColumn()

    notes: list[str] = []
    if located.due_date is None:
        log.warning(DUE_DATE_MISSING_NOTE)
        notes.append(DUE_DATE_MISSING_NOTE)

    # Resolved once so every row is judged against the same cut-off.
    if today is None:
        today = today_in_timezone(REFERENCE_TIMEZONE)

    columns_used = ColumnsUsed(
        action=column_label(located.action),
        due_date=(
            column_label(located.due_date)
            if located.due_date is not None
            else DUE_DATE_NOT_FOUND
        ),
    )
    log.debug(
        "Columns: action=%s due_date=%s; today=%s (%s)",
        columns_used.action, columns_used.due_date, today.isoformat(), REFERENCE_TIMEZONE,
    )
    result = aggregate(
        classify_rows(
            grid,
            action_col=located.action,
            due_date_col=located.due_date,
            today=today,
        ),
        today=today,
        columns_used=columns_used,
        notes=notes,
    )
    log.info("Analysis complete: %s", result.summary)
    return result


def analyze(
    data: bytes, filename: str | None = None, *, today: date | None = None
) -> AnalysisResult:
    """Analyze raw workbook bytes.

    Returns a complete :class:`AnalysisResult` or raises an
    :class:`~action_analyzer.errors.AnalysisError` (``FormatError`` or
    ``MissingActionColumn``).
    """
    return analyze_grid(read_workbook(data, filename=filename), today=today)


def analyze_file(path: Path, *, today: date | None = None) -> AnalysisResult:
    """Analyze the workbook at *path*."""
    return analyze_grid(load_workbook_file(Path(path)), today=today)


async def analyze_async(
    source: bytes | Path, filename: str | None = None, *, today: date | None = None
) -> AnalysisResult:
    """Async entry point: the file read runs in a worker thread."""
    if isinstance(source, (bytes, bytearray)):
        data = bytes(source)
    else:
        path = Path(source)
        data = await asyncio.to_thread(path.read_bytes)
        filename = filename or path.name
    return analyze(data, filename=filename, today=today)
