from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from action_analyzer.dates import (
    SERIAL_EPOCH,
    date_to_serial,
    normalize_date,
    parse_date_text,
    serial_to_date,
    today_in_timezone,
)


def test_serial_epoch_is_1899_12_30() -> None:
    assert SERIAL_EPOCH == date(1899, 12, 30)


@pytest.mark.parametrize(
    "serial, expected",
    [
        (43831, date(2020, 1, 1)),
        (45292, date(2024, 1, 1)),
        (61, date(1900, 3, 1)),
        (43831.99, date(2020, 1, 1)),
        (0, date(1899, 12, 30)),
    ],
)
def test_serial_to_date(serial: float, expected: date) -> None:
    assert serial_to_date(serial) == expected


@pytest.mark.parametrize("serial", [float("nan"), float("inf"), -float("inf"), 1e12])
def test_serial_to_date_rejects_unrepresentable_values(serial: float) -> None:
    assert serial_to_date(serial) is None


def test_serial_round_trip_across_a_plausible_range() -> None:
    day = date(1900, 3, 1)
    while day <= date(2100, 12, 31):
        assert serial_to_date(date_to_serial(day)) == day
        day += timedelta(days=97)


def test_date_to_serial_accepts_datetime() -> None:
    assert date_to_serial(datetime(2020, 1, 1, 18, 0)) == 43831


@pytest.mark.parametrize(
    "text, expected",
    [
        ("2020-01-01", date(2020, 1, 1)),
        ("  2024-03-15  ", date(2024, 3, 15)),
        ("01/15/2024", date(2024, 1, 15)),
        ("15 Jan 2024", date(2024, 1, 15)),
        ("January 5, 2024", date(2024, 1, 5)),
        ("2024-06-30 17:45", date(2024, 6, 30)),
    ],
)
def test_parse_date_text_accepts_common_forms(text: str, expected: date) -> None:
    assert parse_date_text(text) == expected


@pytest.mark.parametrize("text", ["", "   ", "N/A", "not a date", "2020-02-30", "TBD"])
def test_parse_date_text_unparseable_is_none(text: str) -> None:
    assert parse_date_text(text) is None


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, None),
        ("", None),
        (True, None),
        (43831, date(2020, 1, 1)),
        (43831.5, date(2020, 1, 1)),
        (datetime(2021, 7, 4, 9, 30), date(2021, 7, 4)),
        (date(2021, 7, 4), date(2021, 7, 4)),
        ("2021-07-04", date(2021, 7, 4)),
        ("N/A", None),
    ],
)
def test_normalize_date(value: object, expected: date | None) -> None:
    assert normalize_date(value) == expected


def test_today_in_timezone_uses_kolkata_calendar_day() -> None:
    # 18:30 UTC is midnight in Kolkata (UTC+5:30).
    before = datetime(2024, 1, 1, 18, 29, tzinfo=timezone.utc)
    after = datetime(2024, 1, 1, 18, 30, tzinfo=timezone.utc)

    assert today_in_timezone(now=before) == date(2024, 1, 1)
    assert today_in_timezone(now=after) == date(2024, 1, 2)


def test_today_in_timezone_treats_naive_now_as_utc() -> None:
    assert today_in_timezone(now=datetime(2024, 1, 1, 19, 0)) == date(2024, 1, 2)


def test_today_in_timezone_accepts_other_zones() -> None:
    now = datetime(2024, 1, 1, 3, 0, tzinfo=timezone.utc)

    assert today_in_timezone("America/New_York", now=now) == date(2023, 12, 31)
    assert today_in_timezone(ZoneInfo("UTC"), now=now) == date(2024, 1, 1)


def test_today_in_timezone_without_now_matches_clock() -> None:
    expected = datetime.now(ZoneInfo("Asia/Kolkata")).date()

    assert today_in_timezone() in {expected, expected + timedelta(days=1)}
