"""action-analyzer: count assigned and overdue actions in a spreadsheet."""

__version__ = "0.2.0"

REFERENCE_TIMEZONE: str = "Asia/Kolkata"
"""Civil time zone whose calendar date is used as "today"."""

DUE_DATE_NOT_FOUND: str = "Not found"
"""Reported in ``columns_used.due_date`` when no due-date column exists."""
