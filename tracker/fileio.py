"""Local files: the YAML profile and JSON export snapshots.

Writes go through a locked temp file in the target directory and are
moved into place with os.replace, so readers never see a partial export.
"""

from __future__ import annotations

import fcntl
import json
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml


def read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8") if path.is_file() else ""


def read_json(path: Path) -> dict[str, Any]:
    """Parsed JSON object, or {} for a missing or blank file."""
    text = read_text(path)
    return json.loads(text) if text.strip() else {}


def read_yaml(path: Path) -> dict[str, Any]:
    """Parsed YAML mapping; anything else (missing, blank, a list) reads as {}."""
    loaded = yaml.safe_load(read_text(path)) or {}
    return loaded if isinstance(loaded, dict) else {}


def write_text_atomic(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        "w", encoding="utf-8", dir=path.parent, prefix=f".{path.name}.", delete=False
    ) as tmp:
        fcntl.flock(tmp.fileno(), fcntl.LOCK_EX)
        try:
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())
        finally:
            fcntl.flock(tmp.fileno(), fcntl.LOCK_UN)
    try:
        os.replace(tmp.name, path)
    except OSError:
        os.unlink(tmp.name)
        raise


def write_json_atomic(path: Path, data: dict[str, Any]) -> None:
    write_text_atomic(path, json.dumps(data, indent=2, ensure_ascii=False) + "\n")


def write_yaml_atomic(path: Path, data: dict[str, Any]) -> None:
    write_text_atomic(path, yaml.safe_dump(data, default_flow_style=False, allow_unicode=True, sort_keys=False))
