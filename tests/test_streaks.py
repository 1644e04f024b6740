"""Tests for tracker/streaks.py."""

from tracker.history import calculate_history
from tracker.models import Completion, HistoryDay, Task
from tracker.streaks import calculate_streaks, streak_runs


def _history(*days):
    """days are percentages, or None for a day without active tasks."""
    result = []
    for i, pct in enumerate(days, start=1):
        if pct is None:
            result.append(HistoryDay(date=f"2024-01-{i:02d}", total=0, completed=0, percentage=0))
        else:
            result.append(HistoryDay(date=f"2024-01-{i:02d}", total=10, completed=pct // 10, percentage=pct))
    return result


def test_empty_history():
    streaks = calculate_streaks([])
    assert streaks.current == 0
    assert streaks.longest == 0


def test_all_successful():
    streaks = calculate_streaks(_history(80, 90, 100))
    assert streaks.current == 3
    assert streaks.longest == 3


def test_neutral_day_neither_breaks_nor_extends():
    streaks = calculate_streaks(_history(60, None, 90, 90))
    assert streaks.current == 2
    assert streaks.longest == 2


def test_neutral_between_successes_is_looked_through():
    streaks = calculate_streaks(_history(90, None, 90))
    assert streaks.current == 2
    assert streaks.longest == 2


def test_neutral_newest_day_is_skipped():
    streaks = calculate_streaks(_history(90, 90, None))
    assert streaks.current == 2


def test_failed_newest_day_resets_current():
    streaks = calculate_streaks(_history(90, 90, 90, 50))
    assert streaks.current == 0
    assert streaks.longest == 3


def test_current_stops_at_first_failure():
    streaks = calculate_streaks(_history(90, 90, 90, 70, 85))
    assert streaks.current == 1
    assert streaks.longest == 3


def test_threshold_is_inclusive():
    assert calculate_streaks(_history(80)).current == 1
    assert calculate_streaks(_history(79)).current == 0


def test_only_neutral_days():
    streaks = calculate_streaks(_history(None, None))
    assert streaks.current == 0
    assert streaks.longest == 0


def test_streak_runs():
    runs = streak_runs(_history(90, 90, 50, None, 85, None, 100))
    assert runs == [
        {"start": "2024-01-01", "end": "2024-01-02", "length": 2},
        {"start": "2024-01-05", "end": "2024-01-07", "length": 2},
    ]


def test_streaks_from_calculated_history():
    tasks = [
        Task(id="a", type="daily", created_at="2024-01-01"),
        Task(id="b", type="daily", created_at="2024-01-02"),
    ]
    comps = [
        Completion(task_id="a", completed_date="2024-01-01", is_completed=True),
        Completion(task_id="a", completed_date="2024-01-02", is_completed=True),
        Completion(task_id="b", completed_date="2024-01-02", is_completed=False, failure_note="Busy"),
    ]
    history = calculate_history(tasks, comps, "2023-12-30", "2024-01-03")
    assert [h.percentage for h in history] == [0, 0, 100, 50, 0]

    streaks = calculate_streaks(history)
    assert streaks.current == 0
    assert streaks.longest == 1
    assert streaks.longest >= streaks.current
    assert sum(h.completed for h in history) <= sum(h.total for h in history)
