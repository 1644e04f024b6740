"""Persistence collaborator — the remote relational store behind the tracker.

Every read and write is scoped by an explicit user id. "One row per key"
writes (completions, daily logs, log entries) are atomic upserts on the
store's unique constraints; callers never check-then-insert.

Two implementations share the Store protocol:
- SupabaseStore talks to Supabase's PostgREST API over httpx.
- MemoryStore keeps the same tables in process (tests, offline use).
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Protocol

import httpx

from tracker.completions import COMPLETIONS_LIMIT
from tracker.dates import date_key
from tracker.models import Completion, DailyLog, LogEntry, LogField, Task

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """A read or write against the store failed."""


class Store(Protocol):
    async def fetch_tasks(self, user_id: str) -> list[Task]: ...
    async def fetch_all_tasks_including_archived(self, user_id: str) -> list[Task]: ...
    async def fetch_completions(self, user_id: str, limit: int = COMPLETIONS_LIMIT) -> list[Completion]: ...
    async def fetch_week_completions(self, user_id: str, start: str, end: str) -> list[Completion]: ...
    async def fetch_log_fields(self, user_id: str) -> list[LogField]: ...
    async def fetch_daily_log(self, user_id: str, day: str) -> DailyLog | None: ...
    async def fetch_log_entries(self, user_id: str, log_id: str) -> list[LogEntry]: ...
    async def fetch_log_history(self, user_id: str, start: str, end: str) -> list[DailyLog]: ...
    async def create_task(self, user_id: str, title: str, task_type: str) -> Task: ...
    async def update_task_title(self, user_id: str, task_id: str, title: str) -> Task | None: ...
    async def archive_task(self, user_id: str, task_id: str) -> None: ...
    async def upsert_completion(
        self, user_id: str, task_id: str, day: str, is_completed: bool, failure_note: str | None = None
    ) -> Completion: ...
    async def upsert_daily_log(self, user_id: str, day: str, updates: dict[str, Any]) -> DailyLog: ...
    async def upsert_log_entry(self, user_id: str, log_id: str, field_id: str, value: str) -> LogEntry: ...
    async def create_log_field(self, user_id: str, name: str, field_type: str, display_order: int) -> LogField: ...
    async def deactivate_log_field(self, user_id: str, field_id: str) -> None: ...
    async def update_log_field_order(self, user_id: str, field_id: str, display_order: int) -> None: ...


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ── Supabase (PostgREST over httpx) ───────────────────────────


class SupabaseStore:
    """Store backed by Supabase's REST API.

    Uses one shared httpx.AsyncClient; close it with aclose() or use the
    store as an async context manager.
    """

    def __init__(
        self,
        url: str,
        api_key: str,
        access_token: str | None = None,
        timeout: float = 10,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=f"{url.rstrip('/')}/rest/v1",
            timeout=timeout,
            transport=transport,
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {access_token or api_key}",
                "Content-Type": "application/json",
            },
        )

    async def __aenter__(self) -> SupabaseStore:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        table: str,
        params: list[tuple[str, str]] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> list[dict[str, Any]]:
        headers = {"Prefer": prefer} if prefer else {}
        try:
            resp = await self._client.request(method, f"/{table}", params=params, json=json, headers=headers)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Supabase %s %s failed: %s", method, table, e)
            raise StoreError(f"{method} {table} failed: {e}") from e
        if not resp.content:
            return []
        try:
            data = resp.json()
        except ValueError as e:
            logger.error("Supabase %s %s returned a malformed body: %s", method, table, e)
            raise StoreError(f"{method} {table} returned a malformed body") from e
        return data if isinstance(data, list) else [data]

    async def _select(self, table: str, params: list[tuple[str, str]]) -> list[dict[str, Any]]:
        return await self._request("GET", table, params=[("select", "*"), *params])

    async def _insert(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        rows = await self._request("POST", table, json=[row], prefer="return=representation")
        return rows[0] if rows else {}

    async def _upsert(self, table: str, row: dict[str, Any], on_conflict: str) -> dict[str, Any]:
        rows = await self._request(
            "POST",
            table,
            params=[("on_conflict", on_conflict)],
            json=[row],
            prefer="resolution=merge-duplicates,return=representation",
        )
        return rows[0] if rows else {}

    async def _update(self, table: str, params: list[tuple[str, str]], data: dict[str, Any]) -> list[dict[str, Any]]:
        return await self._request("PATCH", table, params=params, json=data, prefer="return=representation")

    # reads

    async def fetch_tasks(self, user_id: str) -> list[Task]:
        rows = await self._select("tasks", [
            ("user_id", f"eq.{user_id}"),
            ("is_archived", "eq.false"),
            ("order", "created_at.asc"),
        ])
        return [Task.from_dict(r) for r in rows]

    async def fetch_all_tasks_including_archived(self, user_id: str) -> list[Task]:
        rows = await self._select("tasks", [
            ("user_id", f"eq.{user_id}"),
            ("order", "created_at.asc"),
        ])
        return [Task.from_dict(r) for r in rows]

    async def fetch_completions(self, user_id: str, limit: int = COMPLETIONS_LIMIT) -> list[Completion]:
        # completions carry no user_id; scope through the owning task
        rows = await self._request("GET", "completions", params=[
            ("select", "*,tasks!inner(user_id)"),
            ("tasks.user_id", f"eq.{user_id}"),
            ("order", "completed_date.desc"),
            ("limit", str(limit)),
        ])
        return [Completion.from_dict(r) for r in rows]

    async def fetch_week_completions(self, user_id: str, start: str, end: str) -> list[Completion]:
        rows = await self._request("GET", "completions", params=[
            ("select", "*,tasks!inner(user_id)"),
            ("tasks.user_id", f"eq.{user_id}"),
            ("completed_date", f"gte.{start}"),
            ("completed_date", f"lte.{end}"),
        ])
        return [Completion.from_dict(r) for r in rows]

    async def fetch_log_fields(self, user_id: str) -> list[LogField]:
        rows = await self._select("log_fields", [
            ("user_id", f"eq.{user_id}"),
            ("is_active", "eq.true"),
            ("order", "display_order.asc"),
        ])
        return [LogField.from_dict(r) for r in rows]

    async def fetch_daily_log(self, user_id: str, day: str) -> DailyLog | None:
        rows = await self._select("daily_logs", [
            ("user_id", f"eq.{user_id}"),
            ("log_date", f"eq.{day}"),
            ("limit", "1"),
        ])
        return DailyLog.from_dict(rows[0]) if rows else None

    async def fetch_log_entries(self, user_id: str, log_id: str) -> list[LogEntry]:
        rows = await self._select("log_entries", [("daily_log_id", f"eq.{log_id}")])
        return [LogEntry.from_dict(r) for r in rows]

    async def fetch_log_history(self, user_id: str, start: str, end: str) -> list[DailyLog]:
        rows = await self._select("daily_logs", [
            ("user_id", f"eq.{user_id}"),
            ("log_date", f"gte.{start}"),
            ("log_date", f"lte.{end}"),
            ("order", "log_date.desc"),
        ])
        if not rows:
            return []
        logs = [DailyLog.from_dict(r) for r in rows]
        ids = ",".join(log.id for log in logs)
        entry_rows = await self._select("log_entries", [("daily_log_id", f"in.({ids})")])
        entries = [LogEntry.from_dict(r) for r in entry_rows]
        for log in logs:
            log.entries = [e for e in entries if e.daily_log_id == log.id]
        return logs

    # writes

    async def create_task(self, user_id: str, title: str, task_type: str) -> Task:
        row = await self._insert("tasks", {
            "title": title,
            "type": task_type,
            "is_archived": False,
            "user_id": user_id,
        })
        return Task.from_dict(row)

    async def update_task_title(self, user_id: str, task_id: str, title: str) -> Task | None:
        rows = await self._update(
            "tasks",
            [("id", f"eq.{task_id}"), ("user_id", f"eq.{user_id}")],
            {"title": title},
        )
        return Task.from_dict(rows[0]) if rows else None

    async def archive_task(self, user_id: str, task_id: str) -> None:
        await self._update(
            "tasks",
            [("id", f"eq.{task_id}"), ("user_id", f"eq.{user_id}")],
            {"is_archived": True},
        )

    async def upsert_completion(
        self, user_id: str, task_id: str, day: str, is_completed: bool, failure_note: str | None = None
    ) -> Completion:
        row = await self._upsert("completions", {
            "task_id": task_id,
            "completed_date": day,
            "is_completed": is_completed,
            "failure_note": None if is_completed else failure_note,
            "updated_at": _now_iso(),
        }, on_conflict="task_id,completed_date")
        return Completion.from_dict(row)

    async def upsert_daily_log(self, user_id: str, day: str, updates: dict[str, Any]) -> DailyLog:
        row = await self._upsert("daily_logs", {
            "user_id": user_id,
            "log_date": day,
            **updates,
            "updated_at": _now_iso(),
        }, on_conflict="user_id,log_date")
        return DailyLog.from_dict(row)

    async def upsert_log_entry(self, user_id: str, log_id: str, field_id: str, value: str) -> LogEntry:
        row = await self._upsert("log_entries", {
            "daily_log_id": log_id,
            "field_id": field_id,
            "value": value,
            "updated_at": _now_iso(),
        }, on_conflict="daily_log_id,field_id")
        return LogEntry.from_dict(row)

    async def create_log_field(self, user_id: str, name: str, field_type: str, display_order: int) -> LogField:
        row = await self._insert("log_fields", {
            "name": name,
            "type": field_type,
            "user_id": user_id,
            "display_order": display_order,
        })
        return LogField.from_dict(row)

    async def deactivate_log_field(self, user_id: str, field_id: str) -> None:
        await self._update(
            "log_fields",
            [("id", f"eq.{field_id}"), ("user_id", f"eq.{user_id}")],
            {"is_active": False},
        )

    async def update_log_field_order(self, user_id: str, field_id: str, display_order: int) -> None:
        await self._update(
            "log_fields",
            [("id", f"eq.{field_id}"), ("user_id", f"eq.{user_id}")],
            {"display_order": display_order},
        )


# ── In-memory ─────────────────────────────────────────────────


class MemoryStore:
    """In-process store with the same scoping and upsert semantics."""

    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self.tasks: dict[str, Task] = {}
        self.completions: dict[tuple[str, str], Completion] = {}
        self.logs: dict[tuple[str, str], DailyLog] = {}
        self.entries: dict[tuple[str, str], LogEntry] = {}
        self.fields: dict[str, LogField] = {}
        self.field_owner: dict[str, str] = {}

    def _next_id(self) -> str:
        return str(next(self._ids))

    def seed(
        self,
        user_id: str,
        tasks: list[Task] = (),
        completions: list[Completion] = (),
        fields: list[LogField] = (),
        logs: list[DailyLog] = (),
    ) -> None:
        """Load fixture rows as-is; missing ids are assigned."""
        for t in tasks:
            t = replace(t, id=t.id or self._next_id(), user_id=user_id)
            self.tasks[t.id] = t
        for c in completions:
            c = replace(c, id=c.id or self._next_id())
            self.completions[(c.task_id, c.completed_date)] = c
        for f in fields:
            f = replace(f, id=f.id or self._next_id())
            self.fields[f.id] = f
            self.field_owner[f.id] = user_id
        for log in logs:
            log = replace(log, id=log.id or self._next_id(), user_id=user_id, entries=[])
            self.logs[(user_id, log.log_date)] = log
        for log in logs:
            stored = self.logs[(user_id, log.log_date)]
            for e in log.entries:
                e = replace(e, id=e.id or self._next_id(), daily_log_id=stored.id)
                self.entries[(stored.id, e.field_id)] = e

    def _owned_task_ids(self, user_id: str) -> set[str]:
        return {t.id for t in self.tasks.values() if t.user_id == user_id}

    def _log_owner(self, log_id: str) -> str | None:
        for (owner, _), log in self.logs.items():
            if log.id == log_id:
                return owner
        return None

    # reads

    async def fetch_tasks(self, user_id: str) -> list[Task]:
        return [t for t in await self.fetch_all_tasks_including_archived(user_id) if not t.is_archived]

    async def fetch_all_tasks_including_archived(self, user_id: str) -> list[Task]:
        owned = [replace(t) for t in self.tasks.values() if t.user_id == user_id]
        return sorted(owned, key=lambda t: t.created_at)

    async def fetch_completions(self, user_id: str, limit: int = COMPLETIONS_LIMIT) -> list[Completion]:
        owned = self._owned_task_ids(user_id)
        rows = [replace(c) for c in self.completions.values() if c.task_id in owned]
        rows.sort(key=lambda c: c.completed_date, reverse=True)
        return rows[:limit]

    async def fetch_week_completions(self, user_id: str, start: str, end: str) -> list[Completion]:
        owned = self._owned_task_ids(user_id)
        return [
            replace(c) for c in self.completions.values()
            if c.task_id in owned and start <= c.completed_date <= end
        ]

    async def fetch_log_fields(self, user_id: str) -> list[LogField]:
        rows = [
            replace(f) for f in self.fields.values()
            if f.is_active and self.field_owner.get(f.id) == user_id
        ]
        return sorted(rows, key=lambda f: f.display_order)

    async def fetch_daily_log(self, user_id: str, day: str) -> DailyLog | None:
        log = self.logs.get((user_id, date_key(day)))
        return replace(log, entries=[]) if log else None

    async def fetch_log_entries(self, user_id: str, log_id: str) -> list[LogEntry]:
        if self._log_owner(log_id) != user_id:
            return []
        return [replace(e) for (lid, _), e in self.entries.items() if lid == log_id]

    async def fetch_log_history(self, user_id: str, start: str, end: str) -> list[DailyLog]:
        logs = [
            log for (owner, day), log in self.logs.items()
            if owner == user_id and start <= day <= end
        ]
        logs.sort(key=lambda log: log.log_date, reverse=True)
        return [
            replace(log, entries=[replace(e) for (lid, _), e in self.entries.items() if lid == log.id])
            for log in logs
        ]

    # writes

    async def create_task(self, user_id: str, title: str, task_type: str) -> Task:
        task = Task(id=self._next_id(), title=title, type=task_type, created_at=_now_iso(), user_id=user_id)
        self.tasks[task.id] = task
        return replace(task)

    async def update_task_title(self, user_id: str, task_id: str, title: str) -> Task | None:
        task = self.tasks.get(task_id)
        if task is None or task.user_id != user_id:
            return None
        task.title = title
        return replace(task)

    async def archive_task(self, user_id: str, task_id: str) -> None:
        task = self.tasks.get(task_id)
        if task is not None and task.user_id == user_id:
            task.is_archived = True

    async def upsert_completion(
        self, user_id: str, task_id: str, day: str, is_completed: bool, failure_note: str | None = None
    ) -> Completion:
        if task_id not in self._owned_task_ids(user_id):
            raise StoreError(f"Task not found: {task_id}")
        key = (task_id, date_key(day))
        comp = self.completions.get(key) or Completion(id=self._next_id(), task_id=task_id, completed_date=key[1])
        comp.is_completed = is_completed
        comp.failure_note = None if is_completed else failure_note
        comp.updated_at = _now_iso()
        self.completions[key] = comp
        return replace(comp)

    async def upsert_daily_log(self, user_id: str, day: str, updates: dict[str, Any]) -> DailyLog:
        key = (user_id, date_key(day))
        log = self.logs.get(key) or DailyLog(id=self._next_id(), log_date=key[1], user_id=user_id)
        if "mood" in updates:
            log.mood = updates["mood"]
        if "notes" in updates:
            log.notes = updates["notes"]
        self.logs[key] = log
        return replace(log, entries=[])

    async def upsert_log_entry(self, user_id: str, log_id: str, field_id: str, value: str) -> LogEntry:
        if self._log_owner(log_id) != user_id:
            raise StoreError(f"Daily log not found: {log_id}")
        key = (log_id, field_id)
        entry = self.entries.get(key) or LogEntry(id=self._next_id(), daily_log_id=log_id, field_id=field_id)
        entry.value = value
        self.entries[key] = entry
        return replace(entry)

    async def create_log_field(self, user_id: str, name: str, field_type: str, display_order: int) -> LogField:
        f = LogField(id=self._next_id(), name=name, type=field_type, display_order=display_order)
        self.fields[f.id] = f
        self.field_owner[f.id] = user_id
        return replace(f)

    async def deactivate_log_field(self, user_id: str, field_id: str) -> None:
        if self.field_owner.get(field_id) == user_id:
            self.fields[field_id].is_active = False

    async def update_log_field_order(self, user_id: str, field_id: str, display_order: int) -> None:
        if self.field_owner.get(field_id) == user_id:
            self.fields[field_id].display_order = display_order
