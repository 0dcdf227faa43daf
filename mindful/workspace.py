"""Data root, settings, timezone and path helpers for MindfulMoves."""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from mindful.models import Settings


def data_root() -> Path:
    """Get the data root directory (holds settings.yaml, cache/ and logs/)."""
    return Path(
        os.environ.get("MINDFUL_ROOT", str(Path.home() / ".mindfulmoves"))
    ).expanduser().resolve()


def read_yaml(path: Path) -> dict:
    """Read a YAML mapping, returning empty dict if missing or empty."""
    if not path.exists():
        return {}
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    result = yaml.safe_load(text)
    return result if isinstance(result, dict) else {}


def write_yaml(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        yaml.dump(data, default_flow_style=False, allow_unicode=True, sort_keys=False),
        encoding="utf-8",
    )


def load_settings(root: Path | None = None) -> Settings:
    """Load settings.yaml; MINDFUL_DATABASE_URL and MINDFUL_USER_ID win over the file."""
    if root is None:
        root = data_root()
    try:
        settings = Settings.from_dict(read_yaml(settings_path(root)))
    except yaml.YAMLError:
        settings = Settings()
    if os.environ.get("MINDFUL_DATABASE_URL"):
        settings.database_url = os.environ["MINDFUL_DATABASE_URL"]
    if os.environ.get("MINDFUL_USER_ID"):
        settings.user_id = os.environ["MINDFUL_USER_ID"]
    return settings


def get_user_timezone(root: Path | None = None) -> ZoneInfo:
    """Get user's timezone from settings.yaml, defaulting to UTC."""
    try:
        return ZoneInfo(load_settings(root).timezone)
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo("UTC")


def today_str(root: Path | None = None) -> str:
    """Get today's day-key (YYYY-MM-DD) in user's timezone."""
    return datetime.now(get_user_timezone(root)).date().isoformat()


def now_local(root: Path | None = None) -> datetime:
    return datetime.now(get_user_timezone(root))


# ── Path helpers ──────────────────────────────────────────────

def settings_path(root: Path | None = None) -> Path:
    if root is None:
        root = data_root()
    return root / "settings.yaml"


def cache_dir(root: Path | None = None) -> Path:
    if root is None:
        root = data_root()
    return root / "cache"


def log_path(root: Path | None = None) -> Path:
    if root is None:
        root = data_root()
    settings = load_settings(root)
    if settings.log_file:
        return Path(settings.log_file).expanduser()
    return root / "logs" / "mindful.log"
