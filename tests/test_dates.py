"""Tests for tracker/dates.py and tracker/numbers.py."""

from datetime import date, datetime, timezone

import pytest

from tracker.dates import (
    completion_key,
    date_key,
    format_full,
    format_long,
    format_short,
    iter_days,
    to_date,
    week_range,
    window_start,
)
from tracker.numbers import mean_int, percentage, round_half_up


def test_to_date_accepts_strings_and_timestamps():
    assert to_date("2024-01-02") == date(2024, 1, 2)
    assert to_date("2024-01-02T23:30:00-05:00") == date(2024, 1, 2)
    assert to_date(datetime(2024, 1, 2, 12, tzinfo=timezone.utc)) == date(2024, 1, 2)
    assert to_date(date(2024, 1, 2)) == date(2024, 1, 2)


def test_to_date_rejects_short_values():
    with pytest.raises(ValueError):
        to_date("2024-1-2")
    with pytest.raises(ValueError):
        to_date(None)


def test_iter_days_inclusive():
    days = list(iter_days("2024-02-27", "2024-03-01"))
    assert [d.isoformat() for d in days] == ["2024-02-27", "2024-02-28", "2024-02-29", "2024-03-01"]


def test_iter_days_empty_when_reversed():
    assert list(iter_days("2024-01-05", "2024-01-04")) == []


def test_window_start():
    assert window_start("2024-01-28", 28) == date(2024, 1, 1)


def test_week_range_monday_to_sunday():
    # 2024-01-10 is a Wednesday
    assert week_range("2024-01-10") == (date(2024, 1, 8), date(2024, 1, 14))
    assert week_range("2024-01-10", 1) == (date(2024, 1, 1), date(2024, 1, 7))


def test_week_range_on_sunday_stays_in_that_week():
    assert week_range("2024-01-14") == (date(2024, 1, 8), date(2024, 1, 14))


def test_completion_key():
    assert completion_key("abc", "2024-01-02T10:00:00") == "abc_2024-01-02"
    assert date_key(date(2024, 1, 2)) == "2024-01-02"


def test_display_formats():
    assert format_short("2024-01-02") == "Jan 2"
    assert format_long("2024-01-02") == "Tuesday, Jan 2"
    assert format_full("2024-01-02") == "Tuesday, January 2, 2024"


def test_percentage_rounds_half_up():
    assert percentage(1, 8) == 13  # 12.5
    assert percentage(1, 3) == 33
    assert percentage(2, 3) == 67
    assert percentage(0, 0) == 0
    assert percentage(3, 3) == 100


def test_mean_int():
    assert mean_int([50, 75]) == 63  # 62.5
    assert mean_int([]) == 0


def test_round_half_up():
    assert round_half_up(2.25, 1) == 2.3
    assert round_half_up(2.5) == 3.0
    assert round_half_up(3.14159, 1) == 3.1
