"""Shared test fixtures for MindfulMoves tests."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path

import pytest
import yaml

from mindful.cache import LocalCache
from mindful.db import make_engine, make_session_factory
from mindful.models import Habit
from mindful.remote import OfflineBackend, SqlGoalBackend, SqlHabitBackend
from mindful.store import HabitStore

USER = "user-1"


class FixedClock:
    """Settable clock for stores under test."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a temporary data root with settings.yaml."""
    root = tmp_path / "workspace"
    root.mkdir(parents=True)

    settings = {
        "timezone": "UTC",
        "user_id": USER,
        "log_level": "debug",
    }
    (root / "settings.yaml").write_text(
        yaml.dump(settings, default_flow_style=False), encoding="utf-8"
    )

    # Set env var
    os.environ["MINDFUL_ROOT"] = str(root)
    yield root
    # Cleanup
    for name in ("MINDFUL_ROOT", "MINDFUL_DATABASE_URL", "MINDFUL_USER_ID"):
        os.environ.pop(name, None)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2024, 3, 15, 9, 30, tzinfo=timezone.utc))


@pytest.fixture
def cache(tmp_path: Path) -> LocalCache:
    return LocalCache(tmp_path / "cache")


@pytest.fixture
def session_factory(tmp_path: Path):
    engine = make_engine(f"sqlite:///{tmp_path / 'remote.db'}")
    yield make_session_factory(engine)
    engine.dispose()


@pytest.fixture
def habit_backend(session_factory) -> SqlHabitBackend:
    return SqlHabitBackend(session_factory)


@pytest.fixture
def goal_backend(session_factory) -> SqlGoalBackend:
    return SqlGoalBackend(session_factory)


@pytest.fixture
def offline_store(cache: LocalCache, clock: FixedClock) -> HabitStore:
    """A store whose remote side is unreachable."""
    return HabitStore(USER, OfflineBackend(), cache, clock=clock)


@pytest.fixture
def remote_store(habit_backend: SqlHabitBackend, cache: LocalCache, clock: FixedClock) -> HabitStore:
    return HabitStore(USER, habit_backend, cache, clock=clock)


def make_habit(id: str, created: str = "2024-01-01", done: tuple[str, ...] = (), name: str = "") -> Habit:
    return Habit(
        id=id,
        name=name or f"Habit {id}",
        user_id=USER,
        created_at=f"{created}T08:00:00+00:00",
        completion_dates=set(done),
    )
