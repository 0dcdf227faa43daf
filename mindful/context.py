"""Wire settings, backends, mirror and stores into one session context."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from zoneinfo import ZoneInfo

from sqlalchemy.exc import SQLAlchemyError

from mindful.cache import LocalCache
from mindful.db import make_engine, make_session_factory
from mindful.goals import GoalStore
from mindful.models import Settings
from mindful.remote import GoalBackend, HabitBackend, OfflineBackend, SqlGoalBackend, SqlHabitBackend
from mindful.store import HabitStore
from mindful.tasks import TaskStore
from mindful.workspace import cache_dir, data_root, get_user_timezone, load_settings

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    settings: Settings
    habits: HabitStore
    goals: GoalStore
    tasks: TaskStore
    cache: LocalCache
    lock: threading.RLock = field(default_factory=threading.RLock)

    def load(self) -> None:
        self.habits.load()
        self.goals.load()
        self.tasks.load()


def make_backends(settings: Settings) -> tuple[HabitBackend, GoalBackend]:
    """SQL backends when a database URL is configured, otherwise offline."""
    if not settings.database_url:
        offline = OfflineBackend()
        return offline, offline
    try:
        engine = make_engine(settings.database_url)
    except SQLAlchemyError as e:
        logger.warning("Remote store unavailable, running local-only: %s", e)
        offline = OfflineBackend()
        return offline, offline
    factory = make_session_factory(engine)
    return SqlHabitBackend(factory), SqlGoalBackend(factory)


def open_context(
    root: Path | None = None,
    habit_backend: HabitBackend | None = None,
    goal_backend: GoalBackend | None = None,
) -> AppContext:
    """Build and load the stores for the configured user."""
    if root is None:
        root = data_root()
    settings = load_settings(root)
    tz: ZoneInfo = get_user_timezone(root)
    if habit_backend is None or goal_backend is None:
        default_habits, default_goals = make_backends(settings)
        habit_backend = habit_backend or default_habits
        goal_backend = goal_backend or default_goals

    cache = LocalCache(cache_dir(root))
    ctx = AppContext(
        settings=settings,
        habits=HabitStore(settings.user_id, habit_backend, cache, tz=tz),
        goals=GoalStore(settings.user_id, goal_backend, cache),
        tasks=TaskStore(cache),
        cache=cache,
    )
    ctx.load()
    return ctx
