"""Data models used across the package."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from numbers import Integral, Real
from typing import Any, Union

from action_analyzer import DUE_DATE_NOT_FOUND, REFERENCE_TIMEZONE

CellValue = Union[str, int, float, bool, date, datetime, None]


def _to_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise TypeError(f"{field_name} must be an integer")
    result = int(value)
    if result < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return result


def _to_percent(value: Any, field_name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise TypeError(f"{field_name} must be a number")
    result = float(value)
    if not 0.0 <= result <= 100.0:
        raise ValueError(f"{field_name} must be between 0 and 100")
    return result


def _to_string_tuple(values: Sequence[Any] | None, field_name: str) -> tuple[str, ...]:
    if values is None:
        return ()
    if isinstance(values, str):
        raise TypeError(f"{field_name} must be a sequence of strings")
    normalized: list[str] = []
    for item in values:
        if not isinstance(item, str):
            raise TypeError(f"{field_name} items must be strings")
        normalized.append(item)
    return tuple(normalized)


# ── Workbook grid ────────────────────────────────────────────────


@dataclass(frozen=True)
class Cell:
    """One spreadsheet cell: raw value plus the text a spreadsheet would show."""

    value: CellValue = None
    display_text: str | None = None

    @property
    def is_blank(self) -> bool:
        return (self.value is None or self.value == "") and not self.display_text


BLANK_CELL = Cell()


@dataclass(frozen=True)
class WorkbookGrid:
    """Zero-based rectangular grid of the first sheet.

    Row 0 is the header row. Cells outside the stored rows read as blank.
    """

    rows: tuple[tuple[Cell, ...], ...] = ()
    sheet_name: str = ""

    @classmethod
    def from_values(
        cls, rows: Sequence[Sequence[CellValue]], sheet_name: str = "Sheet1"
    ) -> WorkbookGrid:
        """Build a grid from plain values; text values display as themselves."""
        return cls(
            rows=tuple(
                tuple(
                    Cell(value=v, display_text=v if isinstance(v, str) else None)
                    for v in row
                )
                for row in rows
            ),
            sheet_name=sheet_name,
        )

    @property
    def max_row(self) -> int:
        """Highest zero-based row index, ``-1`` for an empty grid."""
        return len(self.rows) - 1

    @property
    def max_col(self) -> int:
        """Highest zero-based column index, ``-1`` for an empty grid."""
        return max((len(row) for row in self.rows), default=0) - 1

    def cell(self, row: int, col: int) -> Cell:
        if row < 0 or col < 0 or row >= len(self.rows):
            return BLANK_CELL
        cells = self.rows[row]
        if col >= len(cells):
            return BLANK_CELL
        return cells[col]


# ── Analysis output ─────────────────────────────────────────────


@dataclass(frozen=True)
class RowClassification:
    """Per-row outcome consumed by the aggregator."""

    counted: bool = False
    assigned: bool = False
    overdue: bool = False

    def __post_init__(self) -> None:
        if self.assigned and not self.counted:
            raise ValueError("assigned rows must be counted")
        if self.overdue and not self.assigned:
            raise ValueError("overdue rows must be assigned")


@dataclass(frozen=True)
class ColumnsUsed:
    action: str
    due_date: str = DUE_DATE_NOT_FOUND

    def to_dict(self) -> dict[str, str]:
        return {"action": self.action, "due_date": self.due_date}


@dataclass(frozen=True)
class AnalysisResult:
    """Outcome of one analysis run.

    Contract invariant: ``overdue_count <= assigned_count <= total_rows``.
    """

    total_rows: int
    assigned_count: int
    assigned_pct: float
    overdue_count: int
    overdue_pct_of_assigned: float
    today_iso: str
    columns_used: ColumnsUsed
    summary: str
    timezone: str = REFERENCE_TIMEZONE
    notes: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        setter = object.__setattr__
        setter(self, "total_rows", _to_non_negative_int(self.total_rows, "total_rows"))
        setter(self, "assigned_count", _to_non_negative_int(self.assigned_count, "assigned_count"))
        setter(self, "overdue_count", _to_non_negative_int(self.overdue_count, "overdue_count"))
        setter(self, "assigned_pct", _to_percent(self.assigned_pct, "assigned_pct"))
        setter(
            self,
            "overdue_pct_of_assigned",
            _to_percent(self.overdue_pct_of_assigned, "overdue_pct_of_assigned"),
        )
        setter(self, "notes", _to_string_tuple(self.notes, "notes"))
        if self.assigned_count > self.total_rows:
            raise ValueError("assigned_count must be <= total_rows")
        if self.overdue_count > self.assigned_count:
            raise ValueError("overdue_count must be <= assigned_count")
        try:
            date.fromisoformat(self.today_iso)
        except (TypeError, ValueError) as exc:
            raise ValueError("today_iso must be a YYYY-MM-DD date") from exc

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_rows": self.total_rows,
            "assigned_count": self.assigned_count,
            "assigned_pct": self.assigned_pct,
            "overdue_count": self.overdue_count,
            "overdue_pct_of_assigned": self.overdue_pct_of_assigned,
            "today_iso": self.today_iso,
            "timezone": self.timezone,
            "columns_used": self.columns_used.to_dict(),
            "notes": list(self.notes),
            "summary": self.summary,
        }


@dataclass
class RunManifest:
    """Audit-trail manifest for a single CLI run."""

    tool: str = "action-analyzer"
    version: str = ""
    input_path: str = ""
    output_dir: str = ""
    created_at_utc: str = ""
    sha256: str = ""
    total_rows: int = 0
    status: str = "success"
    error_code: int | None = None
    error_message: str = ""

    def __post_init__(self) -> None:
        self.total_rows = _to_non_negative_int(self.total_rows, "total_rows")
        if self.status not in {"success", "failed"}:
            raise ValueError("status must be 'success' or 'failed'")

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool": self.tool,
            "version": self.version,
            "input_path": self.input_path,
            "output_dir": self.output_dir,
            "created_at_utc": self.created_at_utc,
            "sha256": self.sha256,
            "total_rows": self.total_rows,
            "status": self.status,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }
