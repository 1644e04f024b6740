"""Typed dataclasses for the DailyTrack data model.

All persisted rows use from_dict/to_dict for JSON (PostgREST) serialization.
Unknown keys are ignored; missing keys use defaults. Ids are normalised
to strings so integer and uuid keys compare the same way.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


TASK_TYPES = ("daily", "once")
FIELD_TYPES = ("text", "number", "time")

MOOD_LABELS = {1: "Very Bad", 2: "Bad", 3: "Okay", 4: "Good", 5: "Great"}
MOOD_EMOJIS = {1: "\U0001f622", 2: "\U0001f61f", 3: "\U0001f610", 4: "\U0001f642", 5: "\U0001f604"}


def _opt_str(value: Any) -> str | None:
    return None if value is None else str(value)


def _opt_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


# ── Tasks ─────────────────────────────────────────────────────


@dataclass
class Task:
    id: str = ""
    title: str = ""
    type: str = "daily"  # daily, once
    created_at: str = ""  # ISO date or timestamp
    is_archived: bool = False
    user_id: str | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Task:
        return cls(
            id=str(d.get("id", "")),
            title=str(d.get("title", "")),
            type=str(d.get("type", "daily")),
            created_at=str(d.get("created_at", "")),
            is_archived=bool(d.get("is_archived", False)),
            user_id=_opt_str(d.get("user_id")),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "type": self.type,
            "created_at": self.created_at,
            "is_archived": self.is_archived,
        }
        if self.user_id is not None:
            d["user_id"] = self.user_id
        return d


@dataclass
class TodayTask:
    """A task as shown on the dashboard, with its checkbox state."""

    task: Task
    completed_today: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.task.id,
            "title": self.task.title,
            "type": self.task.type,
            "completed": self.completed_today,
        }


@dataclass
class Completion:
    id: str = ""
    task_id: str = ""
    completed_date: str = ""
    is_completed: bool = False
    failure_note: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Completion:
        return cls(
            id=str(d.get("id", "")),
            task_id=str(d.get("task_id", "")),
            completed_date=str(d.get("completed_date", ""))[:10],
            is_completed=bool(d.get("is_completed", False)),
            failure_note=d.get("failure_note"),
            updated_at=d.get("updated_at"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "task_id": self.task_id,
            "completed_date": self.completed_date,
            "is_completed": self.is_completed,
            "failure_note": self.failure_note,
            "updated_at": self.updated_at,
        }


# ── Daily log ─────────────────────────────────────────────────


@dataclass
class LogField:
    id: str = ""
    name: str = ""
    type: str = "text"  # text, number, time
    display_order: int = 0
    is_active: bool = True

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> LogField:
        return cls(
            id=str(d.get("id", "")),
            name=str(d.get("name", "")),
            type=str(d.get("type", "text")),
            display_order=int(d.get("display_order", 0) or 0),
            is_active=bool(d.get("is_active", True)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "display_order": self.display_order,
            "is_active": self.is_active,
        }


@dataclass
class LogEntry:
    id: str = ""
    daily_log_id: str = ""
    field_id: str = ""
    value: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> LogEntry:
        value = d.get("value")
        return cls(
            id=str(d.get("id", "")),
            daily_log_id=str(d.get("daily_log_id", "")),
            field_id=str(d.get("field_id", "")),
            value="" if value is None else str(value),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "daily_log_id": self.daily_log_id,
            "field_id": self.field_id,
            "value": self.value,
        }


@dataclass
class DailyLog:
    id: str = ""
    log_date: str = ""
    mood: int | None = None
    notes: str | None = None
    user_id: str | None = None
    # Only populated by log-history reads.
    entries: list[LogEntry] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> DailyLog:
        if not d or not isinstance(d, dict):
            return cls()
        return cls(
            id=str(d.get("id", "")),
            log_date=str(d.get("log_date", ""))[:10],
            mood=_opt_int(d.get("mood")),
            notes=d.get("notes"),
            user_id=_opt_str(d.get("user_id")),
            entries=[LogEntry.from_dict(e) for e in (d.get("entries") or [])],
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "log_date": self.log_date,
            "mood": self.mood,
            "notes": self.notes,
        }
        if self.user_id is not None:
            d["user_id"] = self.user_id
        if self.entries:
            d["entries"] = [e.to_dict() for e in self.entries]
        return d


# ── Derived: history & streaks ────────────────────────────────


@dataclass
class HistoryDay:
    date: str = ""
    total: int = 0
    completed: int = 0
    percentage: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "total": self.total,
            "completed": self.completed,
            "percentage": self.percentage,
        }


@dataclass
class Streaks:
    current: int = 0
    longest: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"current": self.current, "longest": self.longest}


# ── Derived: week view ────────────────────────────────────────


@dataclass
class HabitStatus:
    title: str = ""
    completed: bool = False
    failure_note: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "completed": self.completed,
            "failureNote": self.failure_note,
        }


@dataclass
class DayLogView:
    mood: int | None = None
    notes: str | None = None
    fields: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"mood": self.mood, "notes": self.notes, "fields": dict(self.fields)}


@dataclass
class DayDetail:
    date: str = ""
    daily_habits: list[HabitStatus] = field(default_factory=list)
    once_tasks_completed: list[str] = field(default_factory=list)
    completion_percentage: int = 0
    total_daily: int = 0
    completed_daily: int = 0
    log: DayLogView | None = None
    is_future: bool = False

    def has_data(self) -> bool:
        return bool(self.daily_habits or self.once_tasks_completed or self.log)

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "dailyHabits": [h.to_dict() for h in self.daily_habits],
            "onceTasksCompleted": [{"title": t} for t in self.once_tasks_completed],
            "completionPercentage": self.completion_percentage,
            "totalDaily": self.total_daily,
            "completedDaily": self.completed_daily,
            "log": self.log.to_dict() if self.log else None,
            "isFuture": self.is_future,
        }


@dataclass
class WeekSummary:
    avg_completion: int = 0
    days_above_80: int = 0
    days_with_tasks: int = 0
    avg_mood: float | None = None
    days_logged: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "avgCompletion": self.avg_completion,
            "daysAbove80": self.days_above_80,
            "daysWithTasks": self.days_with_tasks,
            "avgMood": self.avg_mood,
            "daysLogged": self.days_logged,
        }


# ── Profile ───────────────────────────────────────────────────


@dataclass
class Profile:
    timezone: str = "UTC"
    user_id: str = ""
    log_tracking: bool = True
    export_file: str = "export.json"

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Profile:
        if not d or not isinstance(d, dict):
            return cls()
        return cls(
            timezone=str(d.get("timezone", "UTC")),
            user_id=str(d.get("user_id", "") or ""),
            log_tracking=bool(d.get("log_tracking", True)),
            export_file=str(d.get("export_file", "export.json")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "timezone": self.timezone,
            "user_id": self.user_id,
            "log_tracking": self.log_tracking,
            "export_file": self.export_file,
        }
