"""Tests for tracker/config.py — workspace, profile and Supabase settings."""

from zoneinfo import ZoneInfo

import pytest

from tracker.config import (
    export_path,
    get_user_timezone,
    is_supabase_configured,
    load_profile,
    save_profile,
    supabase_key,
    supabase_url,
    today_str,
    workspace_root,
)
from tracker.fileio import read_json, read_yaml, write_json_atomic
from tracker.models import Profile


def test_workspace_root_from_env(workspace):
    assert workspace_root() == workspace.resolve()


def test_load_profile(workspace):
    profile = load_profile()
    assert profile.user_id == "user-1"
    assert profile.timezone == "UTC"
    assert profile.log_tracking is True


def test_missing_profile_uses_defaults(tmp_path):
    profile = load_profile(tmp_path)
    assert profile == Profile()


def test_save_profile_round_trip(workspace):
    save_profile(Profile(timezone="Europe/Berlin", user_id="u2", log_tracking=False, export_file="ctx.json"))
    profile = load_profile()
    assert profile.timezone == "Europe/Berlin"
    assert profile.log_tracking is False
    assert export_path() == workspace.resolve() / "ctx.json"


def test_timezone(workspace):
    assert get_user_timezone() == ZoneInfo("UTC")
    assert len(today_str()) == 10


def test_unknown_timezone_falls_back_to_utc(workspace):
    save_profile(Profile(timezone="Mars/Olympus"))
    assert get_user_timezone() == ZoneInfo("UTC")


@pytest.fixture
def supabase_env(monkeypatch):
    for name in ("SUPABASE_URL", "SUPABASE_ANON_KEY", "SUPABASE_SERVICE_ROLE_KEY"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_supabase_settings(supabase_env):
    assert not is_supabase_configured()
    supabase_env.setenv("SUPABASE_URL", "https://abc.supabase.co/")
    supabase_env.setenv("SUPABASE_SERVICE_ROLE_KEY", "service")
    assert supabase_url() == "https://abc.supabase.co"
    assert supabase_key() == "service"
    assert is_supabase_configured()
    supabase_env.setenv("SUPABASE_ANON_KEY", "anon")
    assert supabase_key() == "anon"


def test_placeholder_supabase_settings_rejected(supabase_env):
    supabase_env.setenv("SUPABASE_URL", "your_supabase_url_here")
    supabase_env.setenv("SUPABASE_ANON_KEY", "your_supabase_anon_key_here")
    assert not is_supabase_configured()


def test_read_yaml_non_mapping_reads_empty(tmp_path):
    path = tmp_path / "profile.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    assert read_yaml(path) == {}
    assert read_yaml(tmp_path / "missing.yaml") == {}


def test_atomic_write_leaves_no_temp_files(tmp_path):
    path = tmp_path / "nested" / "export.json"
    write_json_atomic(path, {"a": 1})
    write_json_atomic(path, {"a": 2})
    assert read_json(path) == {"a": 2}
    assert [p.name for p in path.parent.iterdir()] == ["export.json"]
