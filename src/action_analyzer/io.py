"""I/O helpers: decode workbook bytes into a grid, write JSON artifacts."""

from __future__ import annotations

import json
import zipfile
from datetime import date, datetime, time
from io import BytesIO
from pathlib import Path
from typing import Any, Literal

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from action_analyzer.errors import FormatError
from action_analyzer.models import Cell, CellValue, WorkbookGrid
from action_analyzer.utils import get_logger

log = get_logger(__name__)

WorkbookFormat = Literal["xlsx", "xls"]

OOXML_SUFFIXES = (".xlsx", ".xlsm", ".xltx", ".xltm")
BIFF_SUFFIXES = (".xls",)
SUPPORTED_SUFFIXES = OOXML_SUFFIXES + BIFF_SUFFIXES

_ZIP_MAGIC = b"PK\x03\x04"
_OLE2_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"

# ── Format detection ─────────────────────────────────────────────


def detect_format(data: bytes, filename: str | None = None) -> WorkbookFormat:
    """Decide which reader handles *data*.

    A filename only gates which uploads are accepted. The magic bytes pick
    the reader, so an ``.xlsx`` saved as ``report.xls`` still opens; the
    extension is the fallback when the content is not recognisable.

    Raises
    ------
    FormatError
        If the input is empty, the extension is unsupported, or the bytes
        look like neither an OOXML nor a legacy BIFF workbook.
    """
    if not data:
        raise FormatError("Input file is empty.")

    suffix = Path(filename).suffix.lower() if filename else ""
    if filename and suffix not in SUPPORTED_SUFFIXES:
        raise FormatError(
            f"Unsupported file type: {suffix or filename!r}. "
            "Please upload an Excel file (.xlsx or .xls)"
        )

    if data.startswith(_ZIP_MAGIC):
        return "xlsx"
    if data.startswith(_OLE2_MAGIC):
        return "xls"
    if suffix in OOXML_SUFFIXES:
        return "xlsx"
    if suffix in BIFF_SUFFIXES:
        return "xls"
    raise FormatError("Input is not an Excel workbook (.xlsx or .xls).")


# ── Cell conversion ──────────────────────────────────────────────


def _display_for_temporal(value: date | datetime | time) -> str:
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    return value.isoformat()


def _to_cell(value: Any, *, error_text: str | None = None) -> Cell:
    if error_text is not None:
        return Cell(value=None, display_text=error_text)
    if value is None:
        return Cell()
    if isinstance(value, str):
        return Cell(value=value, display_text=value)
    if isinstance(value, (datetime, date, time)):
        raw: CellValue = value if not isinstance(value, time) else None
        return Cell(value=raw, display_text=_display_for_temporal(value))
    if isinstance(value, (bool, int, float)):
        return Cell(value=value)
    return Cell(value=str(value), display_text=str(value))


# ── Readers ──────────────────────────────────────────────────────


def _read_ooxml(data: bytes) -> WorkbookGrid:
    try:
        wb = load_workbook(BytesIO(data), data_only=True, read_only=False)
    # ElementTree ParseError and lxml XMLSyntaxError both derive from SyntaxError
    except (
        InvalidFileException,
        zipfile.BadZipFile,
        SyntaxError,
        KeyError,
        ValueError,
        OSError,
    ) as exc:
        raise FormatError(f"Could not read Excel workbook (corrupt or unsupported): {exc}") from exc

    try:
        if not wb.worksheets:
            raise FormatError("Workbook has no worksheets.")
        ws = wb.worksheets[0]
        rows: list[tuple[Cell, ...]] = []
        for row in ws.iter_rows(min_row=1, max_row=ws.max_row, min_col=1, max_col=ws.max_column):
            converted: list[Cell] = []
            for cell in row:
                error_text = cell.value if cell.data_type == "e" else None
                converted.append(_to_cell(cell.value, error_text=error_text))
            rows.append(tuple(converted))
        return WorkbookGrid(rows=tuple(rows), sheet_name=ws.title)
    finally:
        wb.close()


def _read_biff(data: bytes) -> WorkbookGrid:
    try:
        import xlrd
    except ImportError as exc:
        raise FormatError(
            "Unsupported .xls input unless 'xlrd' is installed. "
            "Either convert to .xlsx or add dependency: pip install xlrd"
        ) from exc

    from xlrd.compdoc import CompDocError

    try:
        book = xlrd.open_workbook(file_contents=data)
    except (xlrd.XLRDError, CompDocError, ValueError, OSError, AssertionError) as exc:
        raise FormatError(f"Could not read Excel workbook (corrupt or unsupported): {exc}") from exc

    if book.nsheets < 1:
        raise FormatError("Workbook has no worksheets.")
    sheet = book.sheet_by_index(0)

    rows: list[tuple[Cell, ...]] = []
    for r in range(sheet.nrows):
        converted: list[Cell] = []
        for c in range(sheet.ncols):
            ctype = sheet.cell_type(r, c)
            value = sheet.cell_value(r, c)
            if ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
                converted.append(Cell())
            elif ctype == xlrd.XL_CELL_DATE:
                try:
                    converted.append(_to_cell(xlrd.xldate_as_datetime(value, book.datemode)))
                except (xlrd.xldate.XLDateError, OverflowError):
                    converted.append(Cell(value=value))
            elif ctype == xlrd.XL_CELL_BOOLEAN:
                converted.append(Cell(value=bool(value)))
            elif ctype == xlrd.XL_CELL_ERROR:
                error_text = xlrd.error_text_from_code.get(value, "#ERR")
                converted.append(_to_cell(None, error_text=error_text))
            else:
                converted.append(_to_cell(value))
        rows.append(tuple(converted))
    return WorkbookGrid(rows=tuple(rows), sheet_name=sheet.name)


def read_workbook(data: bytes, filename: str | None = None) -> WorkbookGrid:
    """Decode raw workbook bytes into the grid of the first sheet.

    Raises
    ------
    FormatError
        If the bytes are not a readable ``.xlsx``/``.xls`` workbook.
    """
    fmt = detect_format(data, filename)
    grid = _read_ooxml(data) if fmt == "xlsx" else _read_biff(data)
    log.debug(
        "Read sheet %r as %s: %d rows x %d columns",
        grid.sheet_name, fmt, grid.max_row + 1, grid.max_col + 1,
    )
    return grid


def load_workbook_file(path: Path) -> WorkbookGrid:
    """Read the workbook at *path*.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    FormatError
        If *path* is a directory or not a supported workbook.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    if path.is_dir():
        raise FormatError(f"Input path is a directory, not a file: {path}")
    return read_workbook(path.read_bytes(), filename=path.name)


# ── Writing ──────────────────────────────────────────────────────


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
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
