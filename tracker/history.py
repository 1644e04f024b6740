"""Per-day completion series for daily habits."""

from __future__ import annotations

from datetime import date
from typing import Any

from tracker.completions import completion_status_map
from tracker.dates import date_key, iter_days, to_date, window_start
from tracker.models import Completion, HistoryDay, Task
from tracker.numbers import percentage

DASHBOARD_WINDOW_DAYS = 28


def is_active_on(task: Task, day_key: str) -> bool:
    """A daily task counts from the calendar day it was created."""
    return task.type == "daily" and date_key(task.created_at) <= day_key


def calculate_history(
    tasks: list[Task],
    completions: list[Completion],
    start: Any,
    end: Any,
) -> list[HistoryDay]:
    """One HistoryDay per day in [start, end], ascending.

    No special-casing of future dates; callers bound *end* to today.
    """
    status = completion_status_map(completions)
    daily = [t for t in tasks if t.type == "daily"]
    created = {t.id: date_key(t.created_at) for t in daily}

    history = []
    for d in iter_days(start, end):
        key = d.isoformat()
        active = [t for t in daily if created[t.id] <= key]
        done = sum(1 for t in active if status.get(f"{t.id}_{key}") is True)
        history.append(HistoryDay(
            date=key,
            total=len(active),
            completed=done,
            percentage=percentage(done, len(active)),
        ))
    return history


def dashboard_window(today: Any) -> tuple[date, date]:
    """The rolling calendar: today minus 27 days through today."""
    end = to_date(today)
    return window_start(end, DASHBOARD_WINDOW_DAYS), end


def completion_color(pct: int) -> str:
    """Calendar colour bucket for a day's percentage."""
    if pct == 0:
        return "none"
    if pct < 25:
        return "red"
    if pct < 50:
        return "orange"
    if pct < 75:
        return "yellow"
    if pct < 100:
        return "lime"
    return "green"
