from __future__ import annotations

import logging
import os
import secrets
import sys
from functools import lru_cache
from typing import Any

from fastapi import Body, Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from tracker import (
    AppState,
    MemoryStore,
    Store,
    StoreError,
    SupabaseStore,
    add_log_field,
    add_task,
    archive_task,
    build_export,
    completion_color,
    delete_log_field,
    edit_task_title,
    export_json,
    export_path,
    get_user_timezone,
    is_supabase_configured,
    is_valid_week_offset,
    load_history_week,
    load_profile,
    mark_complete,
    mark_incomplete,
    mood_label,
    move_log_field,
    navigate_history_week,
    refresh_all,
    set_field_value,
    set_mood,
    set_notes,
    streak_runs,
    summarize_week,
    supabase_key,
    supabase_url,
    switch_view,
    write_export,
)


def setup_logging() -> logging.Logger:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return logging.getLogger(__name__)


logger = setup_logging()

app = FastAPI(title="DailyTrack API", version="0.1.0")

security = HTTPBasic(auto_error=False)


# ── Dependencies ──────────────────────────────────────────────


def get_current_user(credentials: HTTPBasicCredentials | None = Depends(security)) -> str:
    expected_username = os.environ.get("TRACKER_USERNAME", "")
    expected_password = os.environ.get("TRACKER_PASSWORD", "")

    if not expected_username or not expected_password:
        return "guest"

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Basic"},
        )

    correct_username = secrets.compare_digest(credentials.username.encode("utf-8"), expected_username.encode("utf-8"))
    correct_password = secrets.compare_digest(credentials.password.encode("utf-8"), expected_password.encode("utf-8"))

    if not (correct_username and correct_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )

    return credentials.username


@lru_cache(maxsize=1)
def get_store() -> Store:
    if is_supabase_configured():
        return SupabaseStore(supabase_url(), supabase_key())
    logger.warning("Supabase credentials are not configured; using an in-memory store")
    return MemoryStore()


_sessions: dict[str, AppState] = {}


def get_state(username: str = Depends(get_current_user)) -> AppState:
    """One AppState per profile user, kept for the life of the process."""
    profile = load_profile()
    user_id = profile.user_id or username
    if user_id not in _sessions:
        _sessions[user_id] = AppState(
            user_id=user_id,
            tz=get_user_timezone(),
            log_tracking=profile.log_tracking,
        )
    return _sessions[user_id]


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    logger.error("Store error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=502, content={"detail": str(exc)})


def _require(payload: dict[str, Any], key: str) -> Any:
    if key not in payload:
        raise HTTPException(status_code=400, detail=f"Missing {key}")
    return payload[key]


def _check(errors: list[str]) -> None:
    if errors:
        raise HTTPException(status_code=400, detail="; ".join(errors))


# ── Views ─────────────────────────────────────────────────────


def _dashboard(state: AppState) -> dict[str, Any]:
    log = state.today_log
    return {
        "date": state.today(),
        "view": state.view,
        "tasks": {
            "daily": [t.to_dict() for t in state.tasks if t.task.type == "daily"],
            "once": [t.to_dict() for t in state.tasks if t.task.type == "once"],
        },
        "streaks": state.streaks.to_dict(),
        "streakRuns": streak_runs(state.history),
        "calendar": [{**d.to_dict(), "color": completion_color(d.percentage)} for d in state.history],
        "dailyLog": {
            "enabled": state.log_tracking,
            "fields": [f.to_dict() for f in state.log_fields],
            "values": dict(state.today_entries),
            "mood": log.mood if log else None,
            "moodLabel": mood_label(log.mood if log else None) or None,
            "notes": log.notes if log else None,
        },
    }


def _history(state: AppState) -> dict[str, Any]:
    days = state.history_week or []
    return {
        "offset": state.history_week_offset,
        "start": days[-1].date if days else None,
        "end": days[0].date if days else None,
        "summary": summarize_week(days).to_dict(),
        "days": [d.to_dict() for d in days],
    }


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"ok": "true"}


@app.get("/api/dashboard")
async def api_dashboard(store: Store = Depends(get_store), state: AppState = Depends(get_state)) -> dict[str, Any]:
    switch_view(state, "dashboard")
    await refresh_all(store, state)
    return _dashboard(state)


# ── Tasks ─────────────────────────────────────────────────────


@app.post("/api/tasks")
async def api_create_task(
    payload: dict[str, Any] = Body(...),
    store: Store = Depends(get_store),
    state: AppState = Depends(get_state),
) -> dict[str, Any]:
    _check(await add_task(store, state, str(payload.get("title", "")), str(payload.get("type", "daily"))))
    return _dashboard(state)


@app.put("/api/tasks/{task_id}")
async def api_rename_task(
    task_id: str,
    payload: dict[str, Any] = Body(...),
    store: Store = Depends(get_store),
    state: AppState = Depends(get_state),
) -> dict[str, Any]:
    changed = await edit_task_title(store, state, task_id, str(_require(payload, "title")))
    return {"ok": True, "changed": changed}


@app.delete("/api/tasks/{task_id}")
async def api_archive_task(
    task_id: str,
    store: Store = Depends(get_store),
    state: AppState = Depends(get_state),
) -> dict[str, Any]:
    if not await archive_task(store, state, task_id):
        raise HTTPException(status_code=404, detail=f"Task not found: {task_id}")
    return {"ok": True}


@app.post("/api/tasks/{task_id}/complete")
async def api_complete_task(
    task_id: str,
    store: Store = Depends(get_store),
    state: AppState = Depends(get_state),
) -> dict[str, Any]:
    await mark_complete(store, state, task_id)
    return _dashboard(state)


@app.post("/api/tasks/{task_id}/incomplete")
async def api_incomplete_task(
    task_id: str,
    payload: dict[str, Any] = Body(default={}),
    store: Store = Depends(get_store),
    state: AppState = Depends(get_state),
) -> dict[str, Any]:
    _check(await mark_incomplete(store, state, task_id, str(payload.get("failure_note") or "")))
    return _dashboard(state)


# ── History ───────────────────────────────────────────────────


@app.post("/api/history/enter")
async def api_enter_history(store: Store = Depends(get_store), state: AppState = Depends(get_state)) -> dict[str, Any]:
    switch_view(state, "history")
    await load_history_week(store, state)
    return _history(state)


@app.get("/api/history/week")
async def api_history_week(
    offset: int | None = None,
    store: Store = Depends(get_store),
    state: AppState = Depends(get_state),
) -> dict[str, Any]:
    """Load a week by offset; offsets outside the reachable range keep the current week."""
    if offset is not None and not is_valid_week_offset(offset):
        offset = None
    await load_history_week(store, state, offset=offset)
    return _history(state)


@app.post("/api/history/navigate")
async def api_navigate_history(
    payload: dict[str, Any] = Body(...),
    store: Store = Depends(get_store),
    state: AppState = Depends(get_state),
) -> dict[str, Any]:
    try:
        direction = int(_require(payload, "direction"))
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail="direction must be an integer")
    moved = await navigate_history_week(store, state, direction)
    return {"moved": moved, **_history(state)}


# ── Daily log ─────────────────────────────────────────────────


def _require_log_tracking(state: AppState) -> None:
    if not state.log_tracking:
        raise HTTPException(status_code=404, detail="Daily log tracking is disabled")


@app.put("/api/log/mood")
async def api_set_mood(
    payload: dict[str, Any] = Body(...),
    store: Store = Depends(get_store),
    state: AppState = Depends(get_state),
) -> dict[str, Any]:
    _require_log_tracking(state)
    try:
        mood = int(_require(payload, "mood"))
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail="mood must be an integer")
    _check(await set_mood(store, state, mood))
    return {"ok": True, "mood": mood, "moodLabel": mood_label(mood)}


@app.put("/api/log/notes")
async def api_set_notes(
    payload: dict[str, Any] = Body(...),
    store: Store = Depends(get_store),
    state: AppState = Depends(get_state),
) -> dict[str, Any]:
    _require_log_tracking(state)
    await set_notes(store, state, payload.get("notes"))
    return {"ok": True, "notes": state.today_log.notes if state.today_log else None}


@app.put("/api/log/values/{field_id}")
async def api_set_field_value(
    field_id: str,
    payload: dict[str, Any] = Body(...),
    store: Store = Depends(get_store),
    state: AppState = Depends(get_state),
) -> dict[str, Any]:
    _require_log_tracking(state)
    saved = await set_field_value(store, state, field_id, str(payload.get("value") or ""))
    return {"ok": True, "saved": saved}


@app.post("/api/log/fields")
async def api_add_field(
    payload: dict[str, Any] = Body(...),
    store: Store = Depends(get_store),
    state: AppState = Depends(get_state),
) -> dict[str, Any]:
    _require_log_tracking(state)
    _check(await add_log_field(store, state, str(payload.get("name", "")), str(payload.get("type", "text"))))
    return {"fields": [f.to_dict() for f in state.log_fields]}


@app.delete("/api/log/fields/{field_id}")
async def api_delete_field(
    field_id: str,
    store: Store = Depends(get_store),
    state: AppState = Depends(get_state),
) -> dict[str, Any]:
    _require_log_tracking(state)
    if not await delete_log_field(store, state, field_id):
        raise HTTPException(status_code=404, detail=f"Field not found: {field_id}")
    return {"fields": [f.to_dict() for f in state.log_fields]}


@app.post("/api/log/fields/{field_id}/move")
async def api_move_field(
    field_id: str,
    payload: dict[str, Any] = Body(...),
    store: Store = Depends(get_store),
    state: AppState = Depends(get_state),
) -> dict[str, Any]:
    _require_log_tracking(state)
    try:
        step = int(payload.get("direction", 1))
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail="direction must be an integer")
    direction = -1 if step < 0 else 1
    moved = await move_log_field(store, state, field_id, direction)
    return {"moved": moved, "fields": [f.to_dict() for f in state.log_fields]}


# ── Export ────────────────────────────────────────────────────


@app.get("/api/export")
async def api_export(
    save: bool = False,
    store: Store = Depends(get_store),
    state: AppState = Depends(get_state),
) -> PlainTextResponse:
    await refresh_all(store, state)
    data = await build_export(store, state)
    if save:
        path = write_export(data, export_path())
        logger.info("Export written to %s", path)
    return PlainTextResponse(export_json(data), media_type="application/json")
