"""Tests for tracker/week_view.py."""

from tracker.models import Completion, DailyLog, DayDetail, DayLogView, LogEntry, LogField, Task
from tracker.week_view import build_week_view, is_valid_week_offset, summarize_week

TASKS = [
    Task(id="a", title="Read", type="daily", created_at="2024-01-01"),
    Task(id="b", title="Walk", type="daily", created_at="2024-01-10"),
    Task(id="c", title="Call bank", type="once", created_at="2024-01-01"),
    Task(id="z", title="Retired", type="daily", created_at="2024-01-01", is_archived=True),
]

FIELDS = [
    LogField(id="f1", name="Sleep", type="number", display_order=1),
    LogField(id="f2", name="Wake", type="time", display_order=0),
]


def _build(completions=(), logs=(), fields=FIELDS, today="2024-01-10"):
    return build_week_view(TASKS, list(completions), list(logs), list(fields), "2024-01-08", "2024-01-14", today)


def _day(days, key):
    return next(d for d in days if d.date == key)


def test_days_are_newest_first_and_future_days_are_placeholders():
    days = _build()
    assert [d.date for d in days] == [
        "2024-01-14", "2024-01-13", "2024-01-12", "2024-01-11",
        "2024-01-10", "2024-01-09", "2024-01-08",
    ]
    assert [d.is_future for d in days[:4]] == [True, True, True, True]
    assert days[0].daily_habits == []
    assert not days[0].has_data()


def test_habits_follow_creation_day():
    days = _build()
    assert [h.title for h in _day(days, "2024-01-09").daily_habits] == ["Read"]
    assert [h.title for h in _day(days, "2024-01-10").daily_habits] == ["Read", "Walk"]


def test_archived_habit_only_shown_with_record():
    comps = [Completion(task_id="z", completed_date="2024-01-08", is_completed=False, failure_note="Dropped it")]
    days = _build(comps)
    monday = _day(days, "2024-01-08")
    assert [h.title for h in monday.daily_habits] == ["Read", "Retired"]
    assert monday.daily_habits[1].failure_note == "Dropped it"
    assert "Retired" not in [h.title for h in _day(days, "2024-01-09").daily_habits]


def test_completion_figures_and_once_tasks():
    comps = [
        Completion(task_id="a", completed_date="2024-01-10", is_completed=True),
        Completion(task_id="b", completed_date="2024-01-10", is_completed=False, failure_note="Rain"),
        Completion(task_id="c", completed_date="2024-01-10", is_completed=True),
    ]
    today = _day(_build(comps), "2024-01-10")
    assert today.total_daily == 2
    assert today.completed_daily == 1
    assert today.completion_percentage == 50
    assert today.once_tasks_completed == ["Call bank"]
    d = today.to_dict()
    assert d["dailyHabits"][1] == {"title": "Walk", "completed": False, "failureNote": "Rain"}
    assert d["onceTasksCompleted"] == [{"title": "Call bank"}]


def test_log_fields_joined_in_display_order_and_inactive_dropped():
    logs = [DailyLog(id="l1", log_date="2024-01-09", mood=4, notes="ok", entries=[
        LogEntry(daily_log_id="l1", field_id="f1", value="7.5"),
        LogEntry(daily_log_id="l1", field_id="f2", value="06:45"),
        LogEntry(daily_log_id="l1", field_id="gone", value="x"),
    ])]
    day = _day(_build(logs=logs), "2024-01-09")
    assert day.log.mood == 4
    assert list(day.log.fields.items()) == [("Wake", "06:45"), ("Sleep", "7.5")]


def test_summarize_week_skips_future_and_empty_days():
    days = [
        DayDetail(date="2024-01-14", is_future=True),
        DayDetail(date="2024-01-10", total_daily=2, completed_daily=2, completion_percentage=100,
                  log=DayLogView(mood=5)),
        DayDetail(date="2024-01-09", total_daily=2, completed_daily=1, completion_percentage=50,
                  log=DayLogView(mood=4)),
        DayDetail(date="2024-01-08"),
    ]
    summary = summarize_week(days)
    assert summary.avg_completion == 75
    assert summary.days_above_80 == 1
    assert summary.days_with_tasks == 2
    assert summary.avg_mood == 4.5
    assert summary.days_logged == 2


def test_summarize_week_without_moods():
    summary = summarize_week([DayDetail(date="2024-01-08")])
    assert summary.avg_mood is None
    assert summary.to_dict()["avgCompletion"] == 0


def test_week_offset_bounds():
    assert is_valid_week_offset(0)
    assert is_valid_week_offset(11)
    assert not is_valid_week_offset(12)
    assert not is_valid_week_offset(-1)
