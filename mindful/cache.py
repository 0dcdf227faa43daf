"""Local key-value mirror for MindfulMoves.

Each key (``habits``, ``goals``, ``tasks``, ``widget_habits``) is one JSON file
under the cache directory. Writes are atomic: temp file + flock + rename.
"""

from __future__ import annotations

import fcntl
import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

HABITS_KEY = "habits"
GOALS_KEY = "goals"
TASKS_KEY = "tasks"
WIDGET_KEY = "widget_habits"

_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class LocalCache:
    """Best-effort JSON mirror keyed by fixed strings."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        if not _KEY_RE.match(key):
            raise ValueError(f"Invalid cache key: {key!r}")
        return self.directory / f"{key}.json"

    def get_item(self, key: str) -> Any | None:
        """Return the decoded value for *key*, or None if missing or malformed."""
        path = self._path(key)
        if not path.exists():
            return None
        try:
            text = path.read_text(encoding="utf-8")
            if not text.strip():
                return None
            return json.loads(text)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable cache entry %s: %s", key, e)
            return None

    def set_item(self, key: str, value: Any) -> None:
        """Atomically replace the value stored under *key*."""
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        content = json.dumps(value, indent=2, ensure_ascii=False) + "\n"
        fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=".tmp_", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_EX)
                try:
                    f.write(content)
                    f.flush()
                    os.fsync(f.fileno())
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
            os.rename(temp_path, path)
        except Exception:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise

    def remove_item(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()

    def mirror(self, key: str, value: Any) -> bool:
        """set_item that logs instead of raising. Returns False on failure."""
        try:
            self.set_item(key, value)
            return True
        except OSError as e:
            logger.warning("Local mirror write failed for %s: %s", key, e)
            return False
