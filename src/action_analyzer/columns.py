"""Column discovery: find the Action and Due Date columns by header text."""

from __future__ import annotations

from typing import NamedTuple

from openpyxl.utils import get_column_letter

from action_analyzer.models import Cell, WorkbookGrid

HEADER_ROW = 0

ACTION_TOKEN = "action"
DUE_TOKEN = "due"
DATE_TOKEN = "date"
DUE_DATE_EXACT = "due date"


class LocatedColumns(NamedTuple):
    """Zero-based column indices; ``None`` when the column was not found."""

    action: int | None
    due_date: int | None


def header_text(cell: Cell) -> str:
    """Lower-cased, trimmed header text (display text first, then raw value)."""
    raw = cell.display_text or cell.value
    if raw is None:
        return ""
    return str(raw).strip().lower()


def is_action_header(text: str) -> bool:
    return ACTION_TOKEN in text


def is_due_date_header(text: str) -> bool:
    return (DUE_TOKEN in text and DATE_TOKEN in text) or text == DUE_DATE_EXACT


def locate_columns(grid: WorkbookGrid) -> LocatedColumns:
    """Scan the header row left to right; the first match wins for each column.

    The two scans are independent, so one header may satisfy both.
    """
    action_col: int | None = None
    due_date_col: int | None = None

    for col in range(grid.max_col + 1):
        cell = grid.cell(HEADER_ROW, col)
        if cell.is_blank:
            continue
        text = header_text(cell)
        if action_col is None and is_action_header(text):
            action_col = col
        if due_date_col is None and is_due_date_header(text):
            due_date_col = col
        if action_col is not None and due_date_col is not None:
            break

    return LocatedColumns(action=action_col, due_date=due_date_col)


def column_label(index: int) -> str:
    """Spreadsheet letter code for a zero-based column index (0 -> ``A``)."""
    return get_column_letter(index + 1)
