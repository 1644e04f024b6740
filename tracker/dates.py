"""Calendar-day helpers: ISO date keys, inclusive ranges, week boundaries."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import date, datetime, timedelta
from typing import Any


def to_date(value: Any) -> date:
    """Coerce a date, datetime, or ISO string to a calendar date.

    Strings are read by their 'YYYY-MM-DD' prefix only, so timestamps
    keep the calendar day they were written with.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    s = str(value or "").strip()
    if len(s) < 10:
        raise ValueError(f"Invalid date: {value!r}")
    return date.fromisoformat(s[:10])


def date_key(value: Any) -> str:
    return to_date(value).isoformat()


def iter_days(start: Any, end: Any) -> Iterator[date]:
    """Yield every day in [start, end], ascending."""
    d = to_date(start)
    last = to_date(end)
    while d <= last:
        yield d
        d += timedelta(days=1)


def window_start(end: Any, days: int) -> date:
    """First day of an inclusive window of *days* days ending at *end*."""
    return to_date(end) - timedelta(days=days - 1)


def week_range(today: Any, offset: int = 0) -> tuple[date, date]:
    """Monday and Sunday of the week *offset* weeks before today's week."""
    d = to_date(today)
    monday = d - timedelta(days=d.weekday()) - timedelta(weeks=offset)
    return monday, monday + timedelta(days=6)


def completion_key(task_id: str, day: Any) -> str:
    return f"{task_id}_{date_key(day)}"


# ── Display formats ───────────────────────────────────────────


def format_short(day: Any) -> str:
    """'Jan 2'"""
    d = to_date(day)
    return f"{d:%b} {d.day}"


def format_long(day: Any) -> str:
    """'Tuesday, Jan 2'"""
    d = to_date(day)
    return f"{d:%A}, {d:%b} {d.day}"


def format_full(day: Any) -> str:
    """'Tuesday, January 2, 2024'"""
    d = to_date(day)
    return f"{d:%A}, {d:%B} {d.day}, {d.year}"
