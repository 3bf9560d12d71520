"""Errors raised across the analysis boundary."""

from __future__ import annotations

MISSING_ACTION_COLUMN_MESSAGE = (
    "Action column not found. Please ensure your Excel file has an 'Action' column."
)


class AnalysisError(Exception):
    """Base class for errors that abort an analysis run.

    ``exit_code`` is what the CLI exits with when the error reaches it.
    """

    exit_code: int = 2

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class FormatError(AnalysisError):
    """The input bytes are not a readable, supported spreadsheet workbook."""


class MissingActionColumn(AnalysisError):
    """The header row has no column that looks like an "Action" column."""

    def __init__(self, message: str = MISSING_ACTION_COLUMN_MESSAGE) -> None:
        super().__init__(message)
