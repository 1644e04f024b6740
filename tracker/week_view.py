"""Week history view — per-day habits, one-time tasks and daily log for one week."""

from __future__ import annotations

from typing import Any

from tracker.completions import build_completion_index
from tracker.dates import date_key, iter_days
from tracker.history import is_active_on
from tracker.log_patterns import field_values
from tracker.models import (
    Completion,
    DailyLog,
    DayDetail,
    DayLogView,
    HabitStatus,
    LogField,
    Task,
    WeekSummary,
)
from tracker.numbers import mean_int, percentage, round_half_up
from tracker.streaks import STREAK_THRESHOLD

# Offsets count weeks back from the current one (0); twelve weeks are reachable.
MAX_WEEK_OFFSET = 11


def is_valid_week_offset(offset: int) -> bool:
    return 0 <= offset <= MAX_WEEK_OFFSET


def build_week_view(
    all_tasks: list[Task],
    completions: list[Completion],
    logs: list[DailyLog],
    fields: list[LogField],
    week_start: Any,
    week_end: Any,
    today: Any,
) -> list[DayDetail]:
    """Build one DayDetail per day, newest (Sunday) first.

    *all_tasks* must include archived tasks: an archived habit still shows
    on days where it has a completion record. Days after *today* are
    returned as empty placeholders.
    """
    today_key = date_key(today)
    index = build_completion_index(completions, today_key)
    logs_by_date = {log.log_date: log for log in logs}
    active_fields = [f for f in fields if f.is_active]

    days = [d.isoformat() for d in iter_days(week_start, week_end)]
    result = []
    for key in reversed(days):
        if key > today_key:
            result.append(DayDetail(date=key, is_future=True))
            continue

        habits = []
        for t in all_tasks:
            if not is_active_on(t, key):
                continue
            comp = index.record(t.id, key)
            if t.is_archived and comp is None:
                continue
            habits.append(HabitStatus(
                title=t.title,
                completed=comp.is_completed if comp else False,
                failure_note=comp.failure_note if comp else None,
            ))

        once_done = [
            t.title for t in all_tasks
            if t.type == "once" and index.is_completed(t.id, key)
        ]

        completed = sum(1 for h in habits if h.completed)
        log = logs_by_date.get(key)
        log_view = None
        if log is not None:
            log_view = DayLogView(
                mood=log.mood,
                notes=log.notes,
                fields=field_values(log.entries, active_fields),
            )

        result.append(DayDetail(
            date=key,
            daily_habits=habits,
            once_tasks_completed=once_done,
            completion_percentage=percentage(completed, len(habits)),
            total_daily=len(habits),
            completed_daily=completed,
            log=log_view,
        ))
    return result


def summarize_week(days: list[DayDetail]) -> WeekSummary:
    """Week header figures over the days that are not in the future."""
    past = [d for d in days if not d.is_future]
    with_tasks = [d for d in past if d.total_daily > 0]
    moods = [d.log.mood for d in past if d.log and d.log.mood]
    return WeekSummary(
        avg_completion=mean_int([d.completion_percentage for d in with_tasks]),
        days_above_80=sum(1 for d in with_tasks if d.completion_percentage >= STREAK_THRESHOLD),
        days_with_tasks=len(with_tasks),
        avg_mood=round_half_up(sum(moods) / len(moods), 1) if moods else None,
        days_logged=sum(1 for d in past if d.log),
    )
