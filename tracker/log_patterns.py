"""Daily-log analytics: mood labels, field joins, mood trend, field averages."""

from __future__ import annotations

import math
from typing import Any

from tracker.models import MOOD_EMOJIS, MOOD_LABELS, DailyLog, LogEntry, LogField
from tracker.numbers import round_half_up

MOOD_TREND_MIN_DAYS = 4
MOOD_TREND_MARGIN = 0.3


def mood_label(mood: int | None) -> str:
    return MOOD_LABELS.get(mood, "") if mood is not None else ""


def mood_emoji(mood: int | None) -> str:
    return MOOD_EMOJIS.get(mood, "") if mood is not None else ""


def field_values(entries: list[LogEntry], fields: list[LogField]) -> dict[str, str]:
    """Join entries against fields by id, in field display order.

    Entries for fields not in *fields* (deactivated ones) are dropped.
    """
    by_field = {e.field_id: e.value for e in entries}
    ordered = sorted(fields, key=lambda f: f.display_order)
    return {f.name: by_field[f.id] for f in ordered if f.id in by_field}


def parse_time_minutes(value: str) -> int | None:
    """'HH:MM' -> minutes since midnight, None if unparseable."""
    parts = value.strip().split(":")
    if len(parts) < 2:
        return None
    try:
        return int(parts[0]) * 60 + int(parts[1])
    except ValueError:
        return None


def format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def _mean(values: list[float]) -> float:
    return sum(values) / len(values)


def mood_trend(logs: list[DailyLog]) -> str:
    """Compare second-half to first-half average mood, by date.

    Fewer than MOOD_TREND_MIN_DAYS mood-bearing days is always 'stable'.
    """
    moods = sorted((log for log in logs if log.mood is not None), key=lambda log: log.log_date)
    if len(moods) < MOOD_TREND_MIN_DAYS:
        return "stable"
    mid = len(moods) // 2
    first = _mean([log.mood for log in moods[:mid]])
    second = _mean([log.mood for log in moods[mid:]])
    if second > first + MOOD_TREND_MARGIN:
        return "improving"
    if second < first - MOOD_TREND_MARGIN:
        return "declining"
    return "stable"


def field_averages(logs: list[DailyLog], fields: list[LogField]) -> dict[str, Any]:
    """Mean value per number field (1 decimal) and per time field (HH:MM)."""
    averages: dict[str, Any] = {}
    for f in sorted(fields, key=lambda f: f.display_order):
        if f.type not in ("number", "time"):
            continue
        raw = []
        for log in logs:
            for e in log.entries:
                if e.field_id == f.id and e.value:
                    raw.append(e.value)
                    break
        if f.type == "number":
            nums = []
            for v in raw:
                try:
                    n = float(v)
                except ValueError:
                    continue
                if math.isfinite(n):
                    nums.append(n)
            if nums and math.isfinite(_mean(nums)):
                averages[f.name] = round_half_up(_mean(nums), 1)
        else:
            minutes = [m for m in (parse_time_minutes(v) for v in raw) if m is not None]
            if minutes:
                averages[f.name] = format_minutes(int(round_half_up(_mean(minutes))))
    return averages


def calculate_log_patterns(logs: list[DailyLog], fields: list[LogField]) -> dict[str, Any] | None:
    if not logs:
        return None
    moods = [log.mood for log in logs if log.mood is not None]
    averages = field_averages(logs, fields)
    return {
        "avg_mood": round_half_up(_mean(moods), 1) if moods else None,
        "mood_trend": mood_trend(logs),
        "days_logged": len(logs),
        "field_averages": averages or None,
    }


def build_log_history_export(logs: list[DailyLog], fields: list[LogField]) -> dict[str, Any] | None:
    """The 28-day daily-log section of the export payload."""
    if not logs:
        return None
    entries = []
    for log in logs:
        values = field_values(log.entries, fields)
        entries.append({
            "date": log.log_date,
            "mood": log.mood,
            "mood_label": mood_label(log.mood) or None,
            "notes": log.notes,
            "fields": values or None,
        })
    return {
        "period": "Last 28 days",
        "fields_tracked": [f.name for f in sorted(fields, key=lambda f: f.display_order)],
        "entries": entries,
        "patterns": calculate_log_patterns(logs, fields),
    }
