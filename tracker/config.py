"""Workspace root, profile, timezone and Supabase settings for DailyTrack."""

from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from tracker.fileio import read_yaml, write_yaml_atomic
from tracker.models import Profile

logger = logging.getLogger(__name__)


def workspace_root() -> Path:
    """Get the workspace root directory (holds profile.yaml and exports)."""
    return Path(
        os.environ.get("TRACKER_ROOT", str(Path.home() / "dailytrack"))
    ).expanduser().resolve()


def profile_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "profile.yaml"


def export_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / load_profile(root).export_file


def load_profile(root: Path | None = None) -> Profile:
    return Profile.from_dict(read_yaml(profile_path(root)))


def save_profile(profile: Profile, root: Path | None = None) -> None:
    write_yaml_atomic(profile_path(root), profile.to_dict())


def get_user_timezone(root: Path | None = None) -> ZoneInfo:
    """Get user's timezone from profile.yaml, defaulting to UTC."""
    name = load_profile(root).timezone
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r in profile, using UTC", name)
        return ZoneInfo("UTC")


def today_str(root: Path | None = None) -> str:
    """Get today's date string (YYYY-MM-DD) in user's timezone."""
    return now_local(root).date().isoformat()


def now_local(root: Path | None = None) -> datetime:
    """Get current datetime in user's timezone."""
    return datetime.now(get_user_timezone(root))


# ── Supabase ──────────────────────────────────────────────────


def supabase_url() -> str:
    return os.environ.get("SUPABASE_URL", "").rstrip("/")


def supabase_key() -> str:
    return os.environ.get("SUPABASE_ANON_KEY") or os.environ.get("SUPABASE_SERVICE_ROLE_KEY", "")


def is_supabase_configured() -> bool:
    url = supabase_url()
    key = supabase_key()
    placeholders = {"your_supabase_url_here", "your_supabase_anon_key_here"}
    return bool(url and key) and url not in placeholders and key not in placeholders
