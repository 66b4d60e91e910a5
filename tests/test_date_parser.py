"""Tests for date parsing."""

import pytest
from datetime import date, datetime, timedelta, UTC
from dateutil.relativedelta import relativedelta

from ledgerpost.domain.errors import InvalidDateError
from ledgerpost.utils.date_parser import (
    date_bounds_to_epoch_ms,
    epoch_ms_to_ymd,
    get_date_range,
    parse_date,
    parse_timestamp,
)

MARCH_5_MS = 1709596800000  # 2024-03-05T00:00:00Z


def _today() -> date:
    return datetime.now(UTC).date()


@pytest.mark.parametrize(
    "raw",
    ["2024-03-05", "03/05/2024", "2024/03/05", "05-Mar-2024", "2024-03-05T00:00:00Z", date(2024, 3, 5)],
)
def test_parse_timestamp_formats(raw):
    assert parse_timestamp(raw) == MARCH_5_MS


def test_parse_timestamp_keeps_time_and_offset():
    assert parse_timestamp("2024-03-05T01:00:00+01:00") == MARCH_5_MS
    assert parse_timestamp("2024-03-05T14:30:00Z") == MARCH_5_MS + (14 * 60 + 30) * 60 * 1000


def test_parse_timestamp_passes_epoch_ms_through():
    assert parse_timestamp(MARCH_5_MS) == MARCH_5_MS


@pytest.mark.parametrize("raw", [None, "", "   "])
def test_parse_timestamp_missing(raw):
    with pytest.raises(InvalidDateError, match="Missing date"):
        parse_timestamp(raw)


def test_parse_timestamp_rejects_invalid_calendar_date():
    with pytest.raises(InvalidDateError):
        parse_timestamp("2024-02-30")


def test_parse_timestamp_rejects_garbage():
    with pytest.raises(InvalidDateError):
        parse_timestamp("not-a-date")


def test_epoch_ms_to_ymd_uses_utc_day():
    assert epoch_ms_to_ymd(MARCH_5_MS) == "2024-03-05"
    assert epoch_ms_to_ymd(MARCH_5_MS - 1) == "2024-03-04"


def test_date_bounds_cover_whole_end_day():
    start_ms, end_ms = date_bounds_to_epoch_ms(date(2024, 3, 5), date(2024, 3, 5))
    assert start_ms == MARCH_5_MS
    assert end_ms == MARCH_5_MS + 86_400_000 - 1
    assert date_bounds_to_epoch_ms(None, None) == (None, None)


def test_parse_absolute_date():
    assert parse_date("2024-01-15") == date(2024, 1, 15)


def test_parse_relative_dates():
    today = _today()
    assert parse_date("today") == today
    assert parse_date("yesterday") == today - timedelta(days=1)
    assert parse_date("this month") == today.replace(day=1)
    assert parse_date("last month") == (today - relativedelta(months=1)).replace(day=1)
    assert parse_date("this year") == date(today.year, 1, 1)


def test_get_date_range_last_month():
    start, end = get_date_range("last-month")
    assert start.day == 1
    assert end == _today().replace(day=1) - timedelta(days=1)


def test_get_date_range_this_week_starts_monday():
    start, end = get_date_range("this-week")
    assert start.weekday() == 0
    assert end == _today()


def test_get_date_range_invalid():
    with pytest.raises(ValueError):
        get_date_range("next-decade")
