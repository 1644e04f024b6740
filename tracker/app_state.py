"""Application state and the async operations that fill it.

AppState holds everything the dashboard and history view show for one
user. Each operation takes the store and the state explicitly, issues
independent reads concurrently, then recomputes derived data with the
pure functions of this package. Store failures propagate to the caller
and leave the state as it was; validation failures are returned as a
list of messages and nothing is written.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

from tracker.completions import apply_today_flags, build_completion_index
from tracker.dates import date_key, week_range, window_start
from tracker.export import build_export_data
from tracker.history import DASHBOARD_WINDOW_DAYS, calculate_history, dashboard_window
from tracker.models import (
    FIELD_TYPES,
    MOOD_LABELS,
    TASK_TYPES,
    DailyLog,
    DayDetail,
    HistoryDay,
    LogField,
    Streaks,
    Task,
    TodayTask,
)
from tracker.store import Store, StoreError
from tracker.streaks import calculate_streaks
from tracker.week_view import build_week_view, is_valid_week_offset

logger = logging.getLogger(__name__)

VIEWS = ("dashboard", "history")


@dataclass
class AppState:
    user_id: str
    tz: ZoneInfo = field(default_factory=lambda: ZoneInfo("UTC"))
    log_tracking: bool = True
    tasks: list[TodayTask] = field(default_factory=list)
    history: list[HistoryDay] = field(default_factory=list)
    streaks: Streaks = field(default_factory=Streaks)
    log_fields: list[LogField] = field(default_factory=list)
    today_log: DailyLog | None = None
    today_entries: dict[str, str] = field(default_factory=dict)
    view: str = "dashboard"
    history_week_offset: int = 0
    history_week: list[DayDetail] | None = None
    all_tasks_cache: list[Task] | None = None

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def today(self) -> str:
        return self.now().date().isoformat()

    def find_task(self, task_id: str) -> TodayTask | None:
        for t in self.tasks:
            if t.task.id == task_id:
                return t
        return None


# ── Loading ───────────────────────────────────────────────────


async def load_tasks(store: Store, state: AppState, today: str | None = None) -> list[TodayTask]:
    today = today or state.today()
    tasks, completions = await asyncio.gather(
        store.fetch_tasks(state.user_id),
        store.fetch_completions(state.user_id),
    )
    index = build_completion_index(completions, today)
    state.tasks = apply_today_flags(tasks, index)
    return state.tasks


async def load_streaks_and_history(store: Store, state: AppState, today: str | None = None) -> Streaks:
    today = today or state.today()
    tasks, completions = await asyncio.gather(
        store.fetch_tasks(state.user_id),
        store.fetch_completions(state.user_id),
    )
    start, end = dashboard_window(today)
    history = calculate_history(tasks, completions, start, end)
    state.history = history
    state.streaks = calculate_streaks(history)
    return state.streaks


async def load_daily_log(store: Store, state: AppState, today: str | None = None) -> DailyLog | None:
    if not state.log_tracking:
        return None
    today = today or state.today()
    fields, log = await asyncio.gather(
        store.fetch_log_fields(state.user_id),
        store.fetch_daily_log(state.user_id, today),
    )
    entries = await store.fetch_log_entries(state.user_id, log.id) if log else []
    state.log_fields = fields
    state.today_log = log
    state.today_entries = {e.field_id: e.value for e in entries}
    return log


async def refresh_all(store: Store, state: AppState, today: str | None = None) -> None:
    await load_tasks(store, state, today)
    await load_streaks_and_history(store, state, today)
    await load_daily_log(store, state, today)


# ── History view ──────────────────────────────────────────────


def invalidate_task_cache(state: AppState) -> None:
    state.all_tasks_cache = None


def switch_view(state: AppState, view: str) -> bool:
    """Change view; entering the history view drops the cached task list."""
    if view not in VIEWS:
        return False
    state.view = view
    if view == "history":
        invalidate_task_cache(state)
    return True


async def _all_tasks(store: Store, state: AppState) -> list[Task]:
    if state.all_tasks_cache is not None:
        return state.all_tasks_cache
    return await store.fetch_all_tasks_including_archived(state.user_id)


async def _empty() -> list[Any]:
    return []


async def load_history_week(
    store: Store,
    state: AppState,
    today: str | None = None,
    offset: int | None = None,
) -> list[DayDetail]:
    """Load one week (the current offset unless *offset* is given).

    State, including the offset, changes only after every read succeeds.
    """
    today = today or state.today()
    if offset is None:
        offset = state.history_week_offset
    start, end = week_range(today, offset)
    start_key, end_key = start.isoformat(), end.isoformat()

    if state.log_tracking:
        logs_call = store.fetch_log_history(state.user_id, start_key, end_key)
        fields_call = store.fetch_log_fields(state.user_id)
    else:
        logs_call = _empty()
        fields_call = _empty()

    all_tasks, completions, logs, fields = await asyncio.gather(
        _all_tasks(store, state),
        store.fetch_week_completions(state.user_id, start_key, end_key),
        logs_call,
        fields_call,
    )
    state.all_tasks_cache = all_tasks
    if state.log_tracking:
        state.log_fields = fields

    state.history_week_offset = offset
    state.history_week = build_week_view(all_tasks, completions, logs, fields, start, end, today)
    return state.history_week


async def navigate_history_week(store: Store, state: AppState, direction: int, today: str | None = None) -> bool:
    """Move the history view by *direction* weeks (+1 older, -1 newer).

    Offsets outside the reachable range are ignored.
    """
    new_offset = state.history_week_offset + direction
    if not is_valid_week_offset(new_offset):
        return False
    await load_history_week(store, state, today, new_offset)
    return True


# ── Task actions ──────────────────────────────────────────────


def validate_new_task(title: str, task_type: str) -> list[str]:
    errors = []
    if not (title or "").strip():
        errors.append("Task title is required")
    if task_type not in TASK_TYPES:
        errors.append(f"Invalid task type: {task_type!r} (must be one of {', '.join(TASK_TYPES)})")
    return errors


def validate_failure_note(note: str | None) -> list[str]:
    if not (note or "").strip():
        return ["Please explain why this task wasn't completed"]
    return []


async def add_task(store: Store, state: AppState, title: str, task_type: str) -> list[str]:
    errors = validate_new_task(title, task_type)
    if errors:
        return errors
    await store.create_task(state.user_id, title.strip(), task_type)
    await refresh_all(store, state)
    return []


async def edit_task_title(store: Store, state: AppState, task_id: str, title: str) -> bool:
    """Rename a task; blank or unchanged titles and unknown ids are no-ops."""
    current = state.find_task(task_id)
    new_title = (title or "").strip()
    if current is None or not new_title or new_title == current.task.title:
        return False
    await store.update_task_title(state.user_id, task_id, new_title)
    await refresh_all(store, state)
    return True


async def archive_task(store: Store, state: AppState, task_id: str) -> bool:
    if state.find_task(task_id) is None:
        return False
    await store.archive_task(state.user_id, task_id)
    await refresh_all(store, state)
    return True


async def mark_complete(store: Store, state: AppState, task_id: str, today: str | None = None) -> None:
    today = today or state.today()
    try:
        await store.upsert_completion(state.user_id, task_id, today, True)
    except StoreError:
        logger.error("Failed to mark task %s complete on %s", task_id, today)
        raise
    await refresh_all(store, state, today)


async def mark_incomplete(
    store: Store,
    state: AppState,
    task_id: str,
    failure_note: str,
    today: str | None = None,
) -> list[str]:
    """Uncheck a task; a non-empty failure note is required."""
    errors = validate_failure_note(failure_note)
    if errors:
        return errors
    today = today or state.today()
    try:
        await store.upsert_completion(state.user_id, task_id, today, False, failure_note.strip())
    except StoreError:
        logger.error("Failed to mark task %s incomplete on %s", task_id, today)
        raise
    await refresh_all(store, state, today)
    return []


# ── Daily log actions ─────────────────────────────────────────


async def _ensure_today_log(store: Store, state: AppState, today: str) -> DailyLog:
    if state.today_log is None or state.today_log.log_date != today:
        state.today_log = await store.upsert_daily_log(state.user_id, today, {})
    return state.today_log


async def set_mood(store: Store, state: AppState, mood: int, today: str | None = None) -> list[str]:
    if mood not in MOOD_LABELS:
        return [f"Mood must be between 1 and {len(MOOD_LABELS)}"]
    today = today or state.today()
    state.today_log = await store.upsert_daily_log(state.user_id, today, {"mood": mood})
    return []


async def set_notes(store: Store, state: AppState, notes: str | None, today: str | None = None) -> None:
    today = today or state.today()
    cleaned = (notes or "").strip() or None
    state.today_log = await store.upsert_daily_log(state.user_id, today, {"notes": cleaned})


async def set_field_value(
    store: Store,
    state: AppState,
    field_id: str,
    value: str,
    today: str | None = None,
) -> bool:
    """Save one field value for today. Empty values are not written."""
    today = today or state.today()
    if not value:
        return False
    log = await _ensure_today_log(store, state, today)
    await store.upsert_log_entry(state.user_id, log.id, field_id, value)
    state.today_entries[field_id] = value
    return True


def validate_log_field(name: str, field_type: str) -> list[str]:
    errors = []
    if not (name or "").strip():
        errors.append("Field name is required")
    if field_type not in FIELD_TYPES:
        errors.append(f"Invalid field type: {field_type!r} (must be one of {', '.join(FIELD_TYPES)})")
    return errors


async def add_log_field(store: Store, state: AppState, name: str, field_type: str) -> list[str]:
    errors = validate_log_field(name, field_type)
    if errors:
        return errors
    order = max((f.display_order for f in state.log_fields), default=-1) + 1
    await store.create_log_field(state.user_id, name.strip(), field_type, order)
    state.log_fields = await store.fetch_log_fields(state.user_id)
    return []


async def delete_log_field(store: Store, state: AppState, field_id: str) -> bool:
    """Deactivate a field; its historical entries stay in the store."""
    if not any(f.id == field_id for f in state.log_fields):
        return False
    await store.deactivate_log_field(state.user_id, field_id)
    state.log_fields = await store.fetch_log_fields(state.user_id)
    state.today_entries.pop(field_id, None)
    return True


async def move_log_field(store: Store, state: AppState, field_id: str, direction: int) -> bool:
    """Swap a field's display order with its neighbour (-1 up, +1 down).

    Unknown fields and moves past either end are no-ops. The two order
    writes are not atomic.
    """
    index = next((i for i, f in enumerate(state.log_fields) if f.id == field_id), None)
    if index is None:
        return False
    swap = index + direction
    if swap < 0 or swap >= len(state.log_fields):
        return False
    current, other = state.log_fields[index], state.log_fields[swap]
    await asyncio.gather(
        store.update_log_field_order(state.user_id, current.id, other.display_order),
        store.update_log_field_order(state.user_id, other.id, current.display_order),
    )
    state.log_fields = await store.fetch_log_fields(state.user_id)
    return True


# ── Export ────────────────────────────────────────────────────


async def build_export(store: Store, state: AppState, now: datetime | None = None) -> dict[str, Any]:
    """Export payload from the loaded state plus a fresh 28-day log read."""
    now = now or state.now()
    today = date_key(now)
    log_history = None
    if state.log_tracking:
        start = window_start(today, DASHBOARD_WINDOW_DAYS).isoformat()
        try:
            log_history = await store.fetch_log_history(state.user_id, start, today)
        except StoreError:
            logger.exception("Failed to fetch log history for export")
    return build_export_data(
        tasks=state.tasks,
        history=state.history,
        streaks=state.streaks,
        fields=state.log_fields,
        today_log=state.today_log,
        today_entries=state.today_entries,
        log_history=log_history,
        now=now,
        log_tracking=state.log_tracking,
    )
