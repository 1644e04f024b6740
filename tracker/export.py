"""Export snapshot — the bridge between tracked data and an external assistant.

Aggregates today's task state, streaks, a four-week breakdown of the
28-day history, today's daily log and the daily-log history into one
plain nested dict. The top-level keys and their nesting are consumed by
downstream agents and must stay stable.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any

from tracker.dates import date_key, format_full, format_short
from tracker.fileio import write_json_atomic
from tracker.log_patterns import build_log_history_export, mood_label
from tracker.models import DailyLog, HistoryDay, LogField, Streaks, TodayTask
from tracker.numbers import mean_int, percentage
from tracker.streaks import STREAK_THRESHOLD

WEEK_NAMES = ["Week 1 (Most Recent)", "Week 2", "Week 3", "Week 4 (Oldest)"]

CONTEXT_FOR_AI = {
    "task_types_explanation": "daily = recurring habits tracked daily, once = one-time tasks tracked until completed",
    "streak_criteria": f"Streak continues when daily task completion ≥{STREAK_THRESHOLD}%",
    "mood_scale": "1 = Very Bad, 2 = Bad, 3 = Okay, 4 = Good, 5 = Great",
    "daily_log_fields": "User-configured tracking fields with types (time/number/text). Field values provide daily context for pattern analysis.",
    "data_freshness": "All data reflects current state at export time",
}


def build_week_summaries(history: list[HistoryDay]) -> list[dict[str, Any]]:
    """Four 7-day blocks over the trailing 28 days, most recent first.

    Returns an empty list, not a partial one, when history is shorter
    than 28 days.
    """
    if len(history) < 28:
        return []
    window = history[-28:]
    weeks = []
    for i, name in enumerate(WEEK_NAMES):
        start = (3 - i) * 7
        block = window[start:start + 7]
        with_tasks = [d for d in block if d.total > 0]
        weeks.append({
            "week": f"{name} ({format_short(block[0].date)} - {format_short(block[-1].date)})",
            "avg_completion": mean_int([d.percentage for d in with_tasks]),
            "days_above_80_percent": sum(1 for d in with_tasks if d.percentage >= STREAK_THRESHOLD),
            "total_days": len(with_tasks),
        })
    return weeks


def best_and_worst_day(history: list[HistoryDay]) -> tuple[dict[str, Any], dict[str, Any]]:
    """Running best/worst over days with tasks; ties keep the first seen."""
    best = {"date": "N/A", "completion_rate": 0}
    worst = {"date": "N/A", "completion_rate": 100}
    for day in history:
        if day.total == 0:
            continue
        if day.percentage > best["completion_rate"]:
            best = {"date": day.date, "completion_rate": day.percentage}
        if day.percentage < worst["completion_rate"]:
            worst = {"date": day.date, "completion_rate": day.percentage}
    return best, worst


def _task_rows(tasks: list[TodayTask], task_type: str) -> list[dict[str, Any]]:
    return [
        {"id": t.task.id, "title": t.task.title, "completed": t.completed_today, "type": t.task.type}
        for t in tasks
        if t.task.type == task_type
    ]


def build_today_section(tasks: list[TodayTask], today: Any) -> dict[str, Any]:
    daily = _task_rows(tasks, "daily")
    once = _task_rows(tasks, "once")
    completed = sum(1 for t in tasks if t.completed_today)
    return {
        "date": date_key(today),
        "formatted_date": format_full(today),
        "daily_tasks": daily,
        "one_time_tasks": once,
        "summary": {
            "total_tasks": len(tasks),
            "completed_tasks": completed,
            "completion_rate": percentage(completed, len(tasks)),
            "daily_tasks_total": len(daily),
            "daily_tasks_completed": sum(1 for t in daily if t["completed"]),
            "once_tasks_total": len(once),
            "once_tasks_completed": sum(1 for t in once if t["completed"]),
        },
    }


def build_monthly_overview(history: list[HistoryDay]) -> dict[str, Any]:
    with_tasks = [d for d in history if d.total > 0]
    best, worst = best_and_worst_day(history)
    return {
        "period": "Last 28 days",
        "week_summaries": build_week_summaries(history),
        "overall_stats": {
            "avg_completion_rate": mean_int([d.percentage for d in with_tasks]),
            "best_day": best,
            "worst_day": worst,
            "total_days_above_80": sum(1 for d in with_tasks if d.percentage >= STREAK_THRESHOLD),
        },
    }


def build_daily_log_section(
    today_log: DailyLog | None,
    today_entries: dict[str, str],
    fields: list[LogField],
) -> dict[str, Any] | None:
    """Today's log: mood, notes and the values of active fields."""
    if today_log is None and not today_entries:
        return None
    values = {
        f.name: today_entries[f.id]
        for f in sorted(fields, key=lambda f: f.display_order)
        if today_entries.get(f.id)
    }
    mood = today_log.mood if today_log else None
    return {
        "mood": mood or None,
        "mood_label": mood_label(mood) or None,
        "notes": (today_log.notes if today_log else None) or None,
        "fields": values or None,
    }


def build_export_data(
    tasks: list[TodayTask],
    history: list[HistoryDay],
    streaks: Streaks,
    fields: list[LogField],
    today_log: DailyLog | None,
    today_entries: dict[str, str],
    log_history: list[DailyLog] | None,
    now: datetime,
    log_tracking: bool = True,
) -> dict[str, Any]:
    """Assemble the full export payload.

    *log_history* is None when the 28-day log read failed; the section is
    then exported as null rather than failing the whole export.
    """
    today = now.date()
    if log_tracking:
        daily_log = build_daily_log_section(today_log, today_entries, fields)
        log_section = build_log_history_export(log_history, fields) if log_history is not None else None
    else:
        daily_log = None
        log_section = None

    return {
        "export_metadata": {
            "export_date": today.isoformat(),
            "export_time": now.isoformat(timespec="seconds"),
            "purpose": "AI Assistant Context",
        },
        "today": build_today_section(tasks, today),
        "streaks": {
            "current_streak": streaks.current,
            "longest_streak": streaks.longest,
            "streak_explanation": f"Days with ≥{STREAK_THRESHOLD}% task completion",
        },
        "monthly_overview": build_monthly_overview(history),
        "daily_log": daily_log,
        "daily_log_history": log_section,
        "context_for_ai": dict(CONTEXT_FOR_AI),
    }


def export_json(data: dict[str, Any]) -> str:
    """Text payload handed to the clipboard or an agent."""
    return json.dumps(data, indent=2, ensure_ascii=False)


def write_export(data: dict[str, Any], path: Path) -> Path:
    write_json_atomic(path, data)
    return path
