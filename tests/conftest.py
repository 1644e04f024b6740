"""Shared test fixtures for DailyTrack tests."""

from __future__ import annotations

import os
from pathlib import Path

import pytest
import yaml

from tracker.models import Completion, DailyLog, LogEntry, LogField, Task
from tracker.store import MemoryStore

USER = "user-1"
TODAY = "2024-01-10"  # a Wednesday


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a temporary workspace with a profile."""
    root = tmp_path / "workspace"
    root.mkdir(parents=True)

    profile = {
        "timezone": "UTC",
        "user_id": USER,
        "log_tracking": True,
        "export_file": "export.json",
    }
    (root / "profile.yaml").write_text(
        yaml.dump(profile, default_flow_style=False), encoding="utf-8"
    )

    os.environ["TRACKER_ROOT"] = str(root)
    yield root
    if "TRACKER_ROOT" in os.environ:
        del os.environ["TRACKER_ROOT"]


def make_store() -> MemoryStore:
    """A store with two habits, one one-time task and a week of activity."""
    store = MemoryStore()
    store.seed(
        USER,
        tasks=[
            Task(id="t1", title="Read", type="daily", created_at="2024-01-01T08:00:00+00:00"),
            Task(id="t2", title="Exercise", type="daily", created_at="2024-01-05T08:00:00+00:00"),
            Task(id="t3", title="File taxes", type="once", created_at="2024-01-02"),
            Task(id="t4", title="Old habit", type="daily", created_at="2024-01-01", is_archived=True),
        ],
        completions=[
            Completion(task_id="t1", completed_date="2024-01-08", is_completed=True),
            Completion(task_id="t2", completed_date="2024-01-08", is_completed=True),
            Completion(task_id="t1", completed_date="2024-01-09", is_completed=True),
            Completion(task_id="t2", completed_date="2024-01-09", is_completed=False, failure_note="Rain"),
            Completion(task_id="t3", completed_date="2024-01-09", is_completed=True),
            Completion(task_id="t4", completed_date="2024-01-08", is_completed=True),
        ],
        fields=[
            LogField(id="f1", name="Sleep", type="number", display_order=0),
            LogField(id="f2", name="Wake", type="time", display_order=1),
            LogField(id="f3", name="Journal", type="text", display_order=2),
        ],
        logs=[
            DailyLog(log_date="2024-01-08", mood=3, notes="Busy", entries=[
                LogEntry(field_id="f1", value="7"),
                LogEntry(field_id="f2", value="07:00"),
            ]),
            DailyLog(log_date="2024-01-09", mood=4, entries=[
                LogEntry(field_id="f1", value="8"),
                LogEntry(field_id="f2", value="07:31"),
            ]),
        ],
    )
    return store


@pytest.fixture
def store() -> MemoryStore:
    return make_store()
