"""Tests for tracker/log_patterns.py — mood trend, field averages, log history export."""

import json

from tracker.export import export_json
from tracker.log_patterns import (
    build_log_history_export,
    calculate_log_patterns,
    field_averages,
    mood_emoji,
    mood_label,
    mood_trend,
    parse_time_minutes,
)
from tracker.models import DailyLog, LogEntry, LogField

FIELDS = [
    LogField(id="sleep", name="Sleep", type="number", display_order=0),
    LogField(id="wake", name="Wake", type="time", display_order=1),
    LogField(id="note", name="Journal", type="text", display_order=2),
]


def _log(day, mood=None, **values):
    return DailyLog(
        id=f"log-{day}",
        log_date=day,
        mood=mood,
        entries=[LogEntry(field_id=k, value=v) for k, v in values.items()],
    )


def test_mood_labels():
    assert mood_label(1) == "Very Bad"
    assert mood_label(5) == "Great"
    assert mood_label(None) == ""
    assert mood_label(9) == ""
    assert mood_emoji(3) != ""


def test_mood_trend_needs_four_days():
    logs = [_log("2024-01-01", 1), _log("2024-01-02", 5), _log("2024-01-03", 5)]
    assert mood_trend(logs) == "stable"


def test_mood_trend_improving_regardless_of_input_order():
    logs = [_log("2024-01-04", 5), _log("2024-01-03", 4), _log("2024-01-02", 2), _log("2024-01-01", 2)]
    assert mood_trend(logs) == "improving"


def test_mood_trend_declining():
    logs = [_log("2024-01-01", 5), _log("2024-01-02", 4), _log("2024-01-03", 3), _log("2024-01-04", 3)]
    assert mood_trend(logs) == "declining"


def test_mood_trend_within_margin_is_stable():
    logs = [_log("2024-01-01", 3), _log("2024-01-02", 4), _log("2024-01-03", 4), _log("2024-01-04", 3)]
    assert mood_trend(logs) == "stable"


def test_mood_trend_ignores_days_without_mood():
    logs = [_log("2024-01-01", 2), _log("2024-01-02"), _log("2024-01-03", 2), _log("2024-01-04", 5)]
    assert mood_trend(logs) == "stable"


def test_parse_time_minutes():
    assert parse_time_minutes("07:30") == 450
    assert parse_time_minutes("7") is None
    assert parse_time_minutes("ab:cd") is None


def test_field_averages():
    logs = [
        _log("2024-01-01", sleep="7", wake="07:00", note="hello"),
        _log("2024-01-02", sleep="8.5", wake="07:31"),
        _log("2024-01-03", sleep="bad"),
    ]
    assert field_averages(logs, FIELDS) == {"Sleep": 7.8, "Wake": "07:16"}


def test_calculate_log_patterns():
    logs = [_log("2024-01-01", 3, sleep="6"), _log("2024-01-02", 4)]
    patterns = calculate_log_patterns(logs, FIELDS)
    assert patterns == {
        "avg_mood": 3.5,
        "mood_trend": "stable",
        "days_logged": 2,
        "field_averages": {"Sleep": 6.0},
    }


def test_calculate_log_patterns_empty():
    assert calculate_log_patterns([], FIELDS) is None
    patterns = calculate_log_patterns([_log("2024-01-01")], FIELDS)
    assert patterns["avg_mood"] is None
    assert patterns["field_averages"] is None


def test_build_log_history_export():
    logs = [_log("2024-01-02", 4, note="good day", sleep="8"), _log("2024-01-01")]
    section = build_log_history_export(logs, FIELDS)
    assert section["period"] == "Last 28 days"
    assert section["fields_tracked"] == ["Sleep", "Wake", "Journal"]
    assert section["entries"][0] == {
        "date": "2024-01-02",
        "mood": 4,
        "mood_label": "Good",
        "notes": None,
        "fields": {"Sleep": "8", "Journal": "good day"},
    }
    assert section["entries"][1]["fields"] is None
    assert section["entries"][1]["mood_label"] is None
    assert section["patterns"]["days_logged"] == 2


def test_build_log_history_export_empty():
    assert build_log_history_export([], FIELDS) is None


def test_field_averages_skip_non_finite_numbers():
    logs = [
        _log("2024-01-01", sleep="7"),
        _log("2024-01-02", sleep="Infinity"),
        _log("2024-01-03", sleep="nan"),
        _log("2024-01-04", sleep="-inf"),
    ]
    assert field_averages(logs, FIELDS) == {"Sleep": 7.0}
    assert field_averages([_log("2024-01-01", sleep="inf")], FIELDS) == {}


def test_log_history_export_is_strict_json_with_non_finite_values():
    logs = [_log("2024-01-02", sleep="nan"), _log("2024-01-01", sleep="7")]
    text = export_json(build_log_history_export(logs, FIELDS))

    def reject(token):
        raise ValueError(token)

    data = json.loads(text, parse_constant=reject)
    assert data["patterns"]["field_averages"] == {"Sleep": 7.0}
