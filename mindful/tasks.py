"""Habit-linked tasks: validation, local CRUD and per-day activity."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Iterable

from mindful.cache import TASKS_KEY, LocalCache
from mindful.dates import day_key, parse_day_key
from mindful.models import DailyProgress, Task
from mindful.store import local_id

logger = logging.getLogger(__name__)


# ── Validation ────────────────────────────────────────────────


VALID_FREQUENCIES = {"one-time", "daily", "monthly"}


def validate_task(task: dict[str, Any]) -> list[str]:
    """Validate task fields and return list of errors (empty if valid)."""
    errors = []
    if not str(task.get("name", "")).strip():
        errors.append("Missing required field: name")
    if task.get("frequency", "daily") not in VALID_FREQUENCIES:
        errors.append(f"Invalid frequency: {task['frequency']}")
    return errors


# ── Per-day activity ──────────────────────────────────────────


def habit_linked(tasks: Iterable[Task]) -> list[Task]:
    return [t for t in tasks if t.habit_id]


def is_active_on(task: Task, day: date | datetime | str) -> bool:
    """Whether *task* should be shown on *day* given its frequency.

    - one-time: until it is completed that day
    - daily: always
    - monthly: on the day-of-month it was created
    """
    key = day_key(day)
    if task.frequency == "one-time":
        return key not in task.completion_dates
    if task.frequency == "monthly":
        if not task.created_at:
            return False
        return parse_day_key(key).day == parse_day_key(task.created_at).day
    return True


def active_tasks_for_date(tasks: Iterable[Task], day: date | datetime | str) -> list[Task]:
    return [t for t in tasks if is_active_on(t, day)]


def task_progress_for_date(tasks: Iterable[Task], day: date | datetime | str) -> DailyProgress:
    """Completion of habit-linked tasks active on *day*."""
    key = day_key(day)
    active = active_tasks_for_date(habit_linked(tasks), key)
    done = sum(1 for t in active if key in t.completion_dates)
    return DailyProgress(
        day=key,
        completed=done,
        total=len(active),
        percentage=(100.0 * done / len(active)) if active else 0.0,
    )


def task_completion_for_date(tasks: Iterable[Task], day: date | datetime | str) -> float:
    return task_progress_for_date(tasks, day).percentage


# ── Local store ───────────────────────────────────────────────


class TaskStore:
    """Tasks live only in the local mirror."""

    def __init__(self, cache: LocalCache) -> None:
        self.cache = cache
        self.tasks: list[Task] = []

    def load(self) -> list[Task]:
        raw = self.cache.get_item(TASKS_KEY)
        self.tasks = []
        for entry in raw if isinstance(raw, list) else []:
            if not isinstance(entry, dict):
                continue
            try:
                task = Task.from_dict(entry)
                if task.created_at:
                    parse_day_key(task.created_at)
            except (TypeError, ValueError) as e:
                logger.warning("Skipping malformed task in mirror: %s", e)
                continue
            self.tasks.append(task)
        return list(self.tasks)

    def save(self) -> None:
        self.cache.mirror(TASKS_KEY, [t.to_dict() for t in self.tasks])

    def find(self, task_id: str) -> Task | None:
        for t in self.tasks:
            if t.id == task_id:
                return t
        return None

    def add(
        self,
        name: str,
        emoji: str = "",
        frequency: str = "daily",
        habit_id: str | None = None,
    ) -> tuple[Task, list[str]]:
        """Create and add a new task. Returns (task, errors)."""
        errors = validate_task({"name": name, "frequency": frequency})
        if errors:
            return Task(), errors
        task = Task(
            id=local_id(),
            name=name.strip(),
            emoji=emoji,
            frequency=frequency,
            habit_id=habit_id or None,
            created_at=datetime.now(timezone.utc).isoformat(timespec="seconds"),
        )
        while self.find(task.id):
            task.id = str(int(task.id) + 1)
        self.tasks.append(task)
        self.save()
        return task, []

    def toggle(self, task_id: str, day: date | datetime | str) -> Task | None:
        task = self.find(task_id)
        if task is None:
            return None
        key = day_key(day)
        if key in task.completion_dates:
            task.completion_dates.discard(key)
        else:
            task.completion_dates.add(key)
        self.save()
        return task

    def remove(self, task_id: str) -> bool:
        task = self.find(task_id)
        if task is None:
            return False
        self.tasks.remove(task)
        self.save()
        return True
