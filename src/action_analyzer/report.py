"""Excel report writer: produces Action_Report.xlsx from an analysis result."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table, TableStyleInfo
from openpyxl.worksheet.worksheet import Worksheet

from action_analyzer.models import AnalysisResult

REPORT_FILENAME = "Action_Report.xlsx"

# ── Style constants ──────────────────────────────────────────────

HEADER_FONT = Font(name="Calibri", bold=True, size=11, color="FFFFFF")
HEADER_FILL = PatternFill(start_color="2F5496", end_color="2F5496", fill_type="solid")
HEADER_ALIGN = Alignment(horizontal="center", vertical="center", wrap_text=True)

TITLE_FONT = Font(name="Calibri", bold=True, size=14, color="2F5496")
SUBTITLE_FONT = Font(name="Calibri", bold=False, size=10, color="808080")
LABEL_FONT = Font(name="Calibri", bold=True, size=11)
VALUE_FONT = Font(name="Calibri", size=11)
WARN_FONT = Font(name="Calibri", italic=True, size=10, color="CC6600")

NOTE_FILL = PatternFill(start_color="FFF2CC", end_color="FFF2CC", fill_type="solid")
KPI_FILL = PatternFill(start_color="D6E4F0", end_color="D6E4F0", fill_type="solid")

INT_FMT = '#,##0'
# Percentages arrive as percent-points (e.g. 66.7), so the sign is literal
# rather than Excel's x100 percent scaling.
PCT_FMT = '0.0"%"'

_COL_FORMATS: dict[str, str] = {
    "count": INT_FMT,
    "percent": PCT_FMT,
}


# ── Helpers ──────────────────────────────────────────────────────


def _style_header(ws: Worksheet, ncols: int) -> None:
    for c in range(1, ncols + 1):
        cell = ws.cell(row=1, column=c)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = HEADER_ALIGN


def _auto_width(ws: Worksheet) -> None:
    for c_idx in range(1, ws.max_column + 1):
        letter = get_column_letter(c_idx)
        width = 0
        for row in ws.iter_rows(min_row=1, max_row=ws.max_row, min_col=c_idx, max_col=c_idx):
            width = max(width, len(str(row[0].value or "")))
        ws.column_dimensions[letter].width = min(width + 4, 40)


def _apply_number_formats(ws: Worksheet, col_names: list[str]) -> None:
    """Apply number formats to data columns (rows 2+) by column name."""
    for c_idx, name in enumerate(col_names, 1):
        fmt = _COL_FORMATS.get(name.lower())
        if not fmt:
            continue
        for row in ws.iter_rows(min_row=2, max_row=ws.max_row, min_col=c_idx, max_col=c_idx):
            for cell in row:
                cell.number_format = fmt


def _sanitize_table_name(name: str) -> str:
    cleaned = re.sub(r"[^A-Za-z0-9_]", "_", name) or "Table"
    if not re.match(r"^[A-Za-z_]", cleaned):
        cleaned = f"_{cleaned}"
    return cleaned[:255]


def _excel_value(val: Any) -> Any:
    if val is None:
        return None
    try:
        if pd.isna(val):
            return None
    except (TypeError, ValueError):
        return val
    item = getattr(val, "item", None)
    return item() if callable(item) else val


def _df_to_sheet(wb: Workbook, name: str, df: pd.DataFrame) -> None:
    ws = wb.create_sheet(title=name)
    col_names = [str(c) for c in df.columns]

    for c_idx, col_name in enumerate(col_names, 1):
        ws.cell(row=1, column=c_idx, value=col_name)
    for r_idx, row_vals in enumerate(df.itertuples(index=False, name=None), 2):
        for c_idx, val in enumerate(row_vals, 1):
            ws.cell(row=r_idx, column=c_idx, value=_excel_value(val))
    _style_header(ws, len(col_names))
    _apply_number_formats(ws, col_names)
    ws.freeze_panes = "A2"
    _auto_width(ws)

    if len(df) and col_names:
        ref = f"A1:{get_column_letter(len(col_names))}{len(df) + 1}"
        table = Table(displayName=_sanitize_table_name(name), ref=ref)
        table.tableStyleInfo = TableStyleInfo(
            name="TableStyleMedium9", showFirstColumn=False,
            showLastColumn=False, showRowStripes=True, showColumnStripes=False,
        )
        ws.add_table(table)


def metrics_frame(result: AnalysisResult) -> pd.DataFrame:
    """Tabular view of the headline counts for the Metrics sheet."""
    return pd.DataFrame(
        {
            "metric": ["Total rows", "Assigned", "Unassigned", "Overdue"],
            "count": [
                result.total_rows,
                result.assigned_count,
                result.total_rows - result.assigned_count,
                result.overdue_count,
            ],
            "percent": [
                100.0 if result.total_rows else 0.0,
                result.assigned_pct,
                round(100.0 - result.assigned_pct, 1) if result.total_rows else 0.0,
                result.overdue_pct_of_assigned,
            ],
            "basis": ["all rows", "all rows", "all rows", "assigned rows"],
        }
    )


def _fill_row(ws: Worksheet, row: int, fill: PatternFill, ncols: int = 4) -> None:
    for c in range(1, ncols + 1):
        ws.cell(row=row, column=c).fill = fill


def _write_dashboard(wb: Workbook, result: AnalysisResult) -> None:
    ws = wb.create_sheet(title="Dashboard")

    # ── Title ────────────────────────────────────────────────────
    ws.cell(row=1, column=1, value="Action Analysis").font = TITLE_FONT
    ws.merge_cells("A1:D1")
    generated = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
    ws.cell(
        row=2, column=1,
        value=f"Analysis date {result.today_iso} ({result.timezone}) · generated {generated}",
    ).font = SUBTITLE_FONT
    ws.merge_cells("A2:D2")
    ws.cell(row=3, column=1, value=result.summary).font = VALUE_FONT
    ws.merge_cells("A3:D3")

    # ── Notes block ──────────────────────────────────────────────
    row = 5
    ws.cell(row=row, column=1, value="Notes").font = LABEL_FONT
    _fill_row(ws, row, NOTE_FILL)
    ws.merge_cells(f"A{row}:D{row}")
    row += 1
    if result.notes:
        for note in result.notes:
            ws.cell(row=row, column=1, value=f"⚠ {note}").font = WARN_FONT
            _fill_row(ws, row, NOTE_FILL)
            row += 1
    else:
        ws.cell(row=row, column=1, value="No notes").font = VALUE_FONT
        _fill_row(ws, row, NOTE_FILL)
        row += 1

    # ── KPI cards ────────────────────────────────────────────────
    row += 1
    ws.cell(row=row, column=1, value="Key Metrics").font = LABEL_FONT
    ws.merge_cells(f"A{row}:D{row}")
    _fill_row(ws, row, KPI_FILL)
    row += 1

    cards: list[tuple[str, Any, str | None]] = [
        ("Total Rows", result.total_rows, INT_FMT),
        ("Assigned", result.assigned_count, INT_FMT),
        ("Assigned %", result.assigned_pct, PCT_FMT),
        ("Overdue", result.overdue_count, INT_FMT),
        ("Overdue % of Assigned", result.overdue_pct_of_assigned, PCT_FMT),
        ("Action Column", result.columns_used.action, None),
        ("Due Date Column", result.columns_used.due_date, None),
    ]
    for label, value, fmt in cards:
        lbl_cell = ws.cell(row=row, column=1, value=label)
        lbl_cell.font = LABEL_FONT
        lbl_cell.fill = KPI_FILL
        val_cell = ws.cell(row=row, column=2, value=value)
        val_cell.font = VALUE_FONT
        val_cell.fill = KPI_FILL
        if fmt:
            val_cell.number_format = fmt
            val_cell.alignment = Alignment(horizontal="right")
        row += 1

    ws.column_dimensions["A"].width = 24
    ws.column_dimensions["B"].width = 18
    ws.column_dimensions["C"].width = 18
    ws.column_dimensions["D"].width = 18


# ── Public API ───────────────────────────────────────────────────


def write_report(out_dir: Path, result: AnalysisResult) -> Path:
    """Write ``Action_Report.xlsx`` and return the path."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    report_path = out_dir / REPORT_FILENAME

    wb = Workbook()
    active_sheet = wb.active
    if active_sheet is not None:
        wb.remove(active_sheet)  # remove default sheet

    _write_dashboard(wb, result)
    _df_to_sheet(wb, "Metrics", metrics_frame(result))

    tmp_path = out_dir / "Action_Report.tmp.xlsx"
    wb.save(tmp_path)
    tmp_path.replace(report_path)
    return report_path
