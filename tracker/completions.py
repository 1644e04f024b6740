"""Completion index — task x date lookups built from raw completion rows."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from tracker.dates import completion_key, date_key
from tracker.models import Completion, Task, TodayTask

# Completion reads are bounded to the most recent rows; history and streaks
# over very old or very dense data are truncated accordingly.
COMPLETIONS_LIMIT = 500


@dataclass
class TaskFlags:
    today: bool = False
    ever: bool = False


@dataclass
class CompletionIndex:
    flags: dict[str, TaskFlags] = field(default_factory=dict)
    status: dict[str, bool] = field(default_factory=dict)
    records: dict[str, Completion] = field(default_factory=dict)

    def is_completed(self, task_id: str, day: Any) -> bool:
        return self.status.get(completion_key(task_id, day)) is True

    def record(self, task_id: str, day: Any) -> Completion | None:
        return self.records.get(completion_key(task_id, day))


def build_completion_index(completions: list[Completion], today: Any) -> CompletionIndex:
    """Index completions by task and by (task, date)."""
    today_key = date_key(today)
    index = CompletionIndex()
    for comp in completions:
        flags = index.flags.setdefault(comp.task_id, TaskFlags())
        if comp.is_completed:
            flags.ever = True
            if comp.completed_date == today_key:
                flags.today = True
        key = completion_key(comp.task_id, comp.completed_date)
        index.status[key] = comp.is_completed
        index.records[key] = comp
    return index


def completion_status_map(completions: list[Completion]) -> dict[str, bool]:
    return {completion_key(c.task_id, c.completed_date): c.is_completed for c in completions}


def apply_today_flags(tasks: list[Task], index: CompletionIndex) -> list[TodayTask]:
    """Daily tasks are checked when done today; one-time tasks once ever done."""
    result = []
    for task in tasks:
        flags = index.flags.get(task.id, TaskFlags())
        done = flags.today if task.type == "daily" else flags.ever
        result.append(TodayTask(task=task, completed_today=done))
    return result
