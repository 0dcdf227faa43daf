"""Habit store: the single owner of the signed-in user's habits.

Every mutation updates the in-memory collection first, then attempts the
remote write exactly once, then mirrors the collection to the local cache.
Remote failures are logged and swallowed; the caller never sees them.
"""

from __future__ import annotations

import logging
import time
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Any, Callable

from mindful.cache import HABITS_KEY, LocalCache
from mindful.dates import day_key, parse_day_key
from mindful.models import Habit, HabitView
from mindful.remote import HabitBackend, RemoteError

logger = logging.getLogger(__name__)

# Completion history may be edited for today and this many days back.
EDIT_WINDOW_DAYS = 2


def local_id() -> str:
    """Fallback id used when the remote store cannot assign one."""
    return str(int(time.time() * 1000))


def clean_name(name: str) -> str:
    name = (name or "").strip()
    if not name:
        raise ValueError("Habit name must not be empty")
    return name


def is_editable(day: date | datetime | str, today: date | str) -> bool:
    """True when today-2 <= day <= today."""
    d = parse_day_key(day_key(day))
    t = parse_day_key(day_key(today))
    return t - timedelta(days=EDIT_WINDOW_DAYS) <= d <= t


class HabitStore:
    """In-memory habit collection with remote sync and a local mirror."""

    def __init__(
        self,
        user_id: str,
        backend: HabitBackend,
        cache: LocalCache,
        tz: tzinfo | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.user_id = user_id
        self.backend = backend
        self.cache = cache
        self.tz = tz or timezone.utc
        self._clock = clock or (lambda: datetime.now(self.tz))
        self._habits: list[Habit] = []
        self._today = self.today()

    # ── Clock ─────────────────────────────────────────────────

    def now(self) -> datetime:
        return self._clock()

    def today(self) -> str:
        return day_key(self.now(), self.tz)

    def check_rollover(self) -> bool:
        """Re-project "today". Returns True when the calendar day changed.

        Completion history is never touched; only derived views move.
        """
        current = self.today()
        if current == self._today:
            return False
        logger.info("Day rolled over from %s to %s", self._today, current)
        self._today = current
        return True

    # ── Loading & persistence ─────────────────────────────────

    @property
    def habits(self) -> tuple[Habit, ...]:
        return tuple(self._habits)

    def load(self) -> list[Habit]:
        """Fetch habits remotely; fall back to the local mirror."""
        try:
            self._habits = self.backend.fetch_habits(self.user_id)
        except RemoteError as e:
            logger.warning("Loading habits from local mirror, remote failed: %s", e)
            self._habits = self._load_mirror()
        else:
            self._mirror()
        return list(self._habits)

    def _load_mirror(self) -> list[Habit]:
        raw = self.cache.get_item(HABITS_KEY)
        if not isinstance(raw, list):
            if raw is not None:
                logger.warning("Malformed habits mirror, starting empty")
            return []
        habits = []
        for entry in raw:
            if not isinstance(entry, dict):
                continue
            try:
                habit = Habit.from_dict(entry)
                habit.created_key(self.tz)
            except (TypeError, ValueError) as e:
                logger.warning("Skipping malformed habit in mirror: %s", e)
                continue
            if habit.id and habit.user_id == self.user_id:
                habits.append(habit)
        return habits

    def _mirror(self) -> None:
        self.cache.mirror(HABITS_KEY, [h.to_dict() for h in self._habits])

    def _remote(self, action: str, call: Callable[..., Any], *args: Any) -> Any:
        try:
            return call(*args)
        except RemoteError as e:
            logger.warning("Remote %s failed, keeping local state: %s", action, e)
            return None

    # ── Queries ───────────────────────────────────────────────

    def find(self, habit_id: str) -> Habit | None:
        for h in self._habits:
            if h.id == habit_id:
                return h
        return None

    def is_editable(self, day: date | datetime | str) -> bool:
        return is_editable(day_key(day, self.tz), self.today())

    def completed_today(self, habit_id: str) -> bool:
        habit = self.find(habit_id)
        return habit is not None and habit.is_completed_on(self._today)

    def items_for_date(self, day: date | datetime | str) -> list[HabitView]:
        """Habits that existed on *day*, each with its completion for that day."""
        key = day_key(day, self.tz)
        return [
            HabitView(habit=h, day=key, completed=h.is_completed_on(key))
            for h in self._habits
            if h.is_eligible_on(key, self.tz)
        ]

    # ── Mutations ─────────────────────────────────────────────

    def create(
        self,
        name: str,
        description: str | None = None,
        emoji: str = "",
        goal_id: str | None = None,
    ) -> Habit:
        habit = Habit(
            name=clean_name(name),
            description=description or None,
            emoji=(emoji or "").strip(),
            goal_id=goal_id or None,
            user_id=self.user_id,
            created_at=self.now().isoformat(timespec="seconds"),
        )
        stored = self._remote("insert", self.backend.insert_habit, habit)
        if stored is not None:
            habit = stored
        else:
            habit.id = local_id()
            while self.find(habit.id):
                habit.id = str(int(habit.id) + 1)
        self._habits.append(habit)
        self._mirror()
        return habit

    def rename(
        self,
        habit_id: str,
        name: str,
        description: str | None = None,
        emoji: str | None = None,
        goal_id: str | None = None,
    ) -> Habit | None:
        """Update name and description. *emoji* and *goal_id* change only when given; "" clears them."""
        habit = self.find(habit_id)
        if habit is None:
            return None
        habit.name = clean_name(name)
        habit.description = description or None
        if emoji is not None:
            habit.emoji = emoji.strip()
        if goal_id is not None:
            habit.goal_id = goal_id or None
        self._remote("update", self.backend.update_habit, habit)
        self._mirror()
        return habit

    def toggle_completion(self, habit_id: str, day: date | datetime | str) -> Habit | None:
        """Flip *day* in the habit's completion set. No-op outside the edit window."""
        key = day_key(day, self.tz)
        if not self.is_editable(key):
            return None
        habit = self.find(habit_id)
        if habit is None:
            return None
        if key in habit.completion_dates:
            habit.completion_dates.discard(key)
        else:
            habit.completion_dates.add(key)
        self._remote("update", self.backend.update_habit, habit)
        self._mirror()
        return habit

    def remove(self, habit_id: str) -> bool:
        habit = self.find(habit_id)
        if habit is None:
            return False
        self._remote("delete", self.backend.delete_habit, habit_id)
        self._habits.remove(habit)
        self._mirror()
        return True

    def reorder(self, from_index: int, to_index: int) -> bool:
        """Move a habit to a new list position. Local mirror only."""
        count = len(self._habits)
        if not (0 <= from_index < count and 0 <= to_index < count):
            return False
        if from_index != to_index:
            self._habits.insert(to_index, self._habits.pop(from_index))
            self._mirror()
        return True
