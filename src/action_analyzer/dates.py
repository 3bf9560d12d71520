"""Date normalisation: spreadsheet serials, free-text dates, and "today"."""

from __future__ import annotations

import math
import warnings
from datetime import date, datetime, timedelta, tzinfo
from numbers import Real
from typing import Any
from zoneinfo import ZoneInfo

import pandas as pd

from action_analyzer import REFERENCE_TIMEZONE

# ── Spreadsheet serial dates ────────────────────────────────────

SERIAL_BASE_DATE = date(1900, 1, 1)
# Serial 1 is 1900-01-01 and serial 60 is the non-existent 1900-02-29 that
# Lotus 1-2-3 invented and Excel kept. Shifting the base back two days lands
# every serial from 61 onward on the right day (epoch 1899-12-30).
SERIAL_LEAP_BUG_CORRECTION_DAYS = 2
SERIAL_EPOCH = SERIAL_BASE_DATE - timedelta(days=SERIAL_LEAP_BUG_CORRECTION_DAYS)


def serial_to_date(serial: float) -> date | None:
    """Convert a spreadsheet date serial to a calendar date.

    Fractional parts (time of day) are dropped. Returns ``None`` for values
    that are not finite or fall outside the representable date range.
    """
    if not math.isfinite(serial):
        return None
    try:
        return SERIAL_EPOCH + timedelta(days=math.floor(serial))
    except OverflowError:
        return None


def date_to_serial(value: date) -> int:
    """Return the whole-day spreadsheet serial for *value*."""
    if isinstance(value, datetime):
        value = value.date()
    return (value - SERIAL_EPOCH).days


# ── Free-text dates ─────────────────────────────────────────────


def parse_date_text(text: str) -> date | None:
    """Parse a free-text date, returning ``None`` when it is not a date."""
    text = text.strip()
    if not text:
        return None
    with warnings.catch_warnings():
        # pandas warns when it falls back to dateutil for a single string
        warnings.simplefilter("ignore", UserWarning)
        try:
            parsed = pd.to_datetime(text, errors="coerce")
        except (ValueError, OverflowError, TypeError):
            return None
    if pd.isna(parsed):
        return None
    return parsed.date()


def normalize_date(value: Any) -> date | None:
    """Turn a raw cell value into a calendar date, or ``None``.

    Never raises: anything unrecognised degrades to ``None``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, Real):
        return serial_to_date(float(value))
    if isinstance(value, str):
        return parse_date_text(value)
    return parse_date_text(str(value))


# ── Reference "today" ───────────────────────────────────────────


def today_in_timezone(
    tz: str | tzinfo = REFERENCE_TIMEZONE, now: datetime | None = None
) -> date:
    """Return the calendar date currently observed in *tz*.

    *now* may be given (timezone-aware) to pin the clock; naive values are
    taken as UTC.
    """
    zone = ZoneInfo(tz) if isinstance(tz, str) else tz
    if now is None:
        return datetime.now(zone).date()
    if now.tzinfo is None:
        now = now.replace(tzinfo=ZoneInfo("UTC"))
    return now.astimezone(zone).date()
