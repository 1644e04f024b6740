"""Streak computation over a daily completion history.

A day counts toward a streak when it had at least one active daily task
and reached STREAK_THRESHOLD percent. Days without active tasks are
neutral: they neither extend nor break a streak.
"""

from __future__ import annotations

from typing import Any

from tracker.models import HistoryDay, Streaks

STREAK_THRESHOLD = 80


def is_neutral(day: HistoryDay) -> bool:
    return day.total == 0


def is_successful(day: HistoryDay) -> bool:
    return day.total > 0 and day.percentage >= STREAK_THRESHOLD


def calculate_streaks(history: list[HistoryDay]) -> Streaks:
    """Current and longest streak from an ascending history.

    current walks back from the newest day, looking through neutral days
    (a neutral newest day included) and stopping at the first failed day.
    longest is the best forward run, where only failed days reset.
    """
    current = 0
    for day in reversed(history):
        if is_neutral(day):
            continue
        if not is_successful(day):
            break
        current += 1

    longest = 0
    run = 0
    for day in history:
        if is_successful(day):
            run += 1
            longest = max(longest, run)
        elif not is_neutral(day):
            run = 0

    return Streaks(current=current, longest=longest)


def streak_runs(history: list[HistoryDay]) -> list[dict[str, Any]]:
    """Maximal streak runs as {start, end, length}, oldest first."""
    runs = []
    length = 0
    start = end = ""
    for day in history:
        if is_successful(day):
            if length == 0:
                start = day.date
            length += 1
            end = day.date
        elif not is_neutral(day):
            if length > 0:
                runs.append({"start": start, "end": end, "length": length})
            length = 0
    if length > 0:
        runs.append({"start": start, "end": end, "length": length})
    return runs
