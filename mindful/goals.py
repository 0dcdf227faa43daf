"""Goal CRUD with the same remote-then-local policy as habits."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from mindful.cache import GOALS_KEY, LocalCache
from mindful.models import Goal
from mindful.remote import GoalBackend, RemoteError
from mindful.store import local_id

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("title", "description", "why")


class GoalStore:
    def __init__(self, user_id: str, backend: GoalBackend, cache: LocalCache) -> None:
        self.user_id = user_id
        self.backend = backend
        self.cache = cache
        self._goals: list[Goal] = []

    @property
    def goals(self) -> tuple[Goal, ...]:
        return tuple(self._goals)

    def find(self, goal_id: str) -> Goal | None:
        for g in self._goals:
            if g.id == goal_id:
                return g
        return None

    def load(self) -> list[Goal]:
        if not self.user_id:
            self._goals = []
            return []
        try:
            self._goals = self.backend.fetch_goals(self.user_id)
        except RemoteError as e:
            logger.warning("Loading goals from local mirror, remote failed: %s", e)
            raw = self.cache.get_item(GOALS_KEY)
            self._goals = [
                Goal.from_dict(g) for g in (raw if isinstance(raw, list) else [])
                if isinstance(g, dict) and g.get("userId", g.get("user_id")) == self.user_id
            ]
        else:
            self._persist()
        return list(self._goals)

    def _persist(self) -> None:
        self.cache.mirror(GOALS_KEY, [g.to_dict() for g in self._goals])

    def add(self, title: str, description: str | None = None, why: str | None = None) -> Goal | None:
        """Add a goal. Returns None when nobody is signed in."""
        if not self.user_id:
            return None
        title = (title or "").strip()
        if not title:
            raise ValueError("Goal title must not be empty")
        goal = Goal(
            title=title,
            description=description or None,
            why=why or None,
            user_id=self.user_id,
            created_at=datetime.now(timezone.utc).isoformat(timespec="seconds"),
        )
        try:
            goal.id = self.backend.add_goal(goal)
        except RemoteError as e:
            logger.warning("Remote goal insert failed, using local id: %s", e)
            goal.id = local_id()
            while self.find(goal.id):
                goal.id = str(int(goal.id) + 1)
        self._goals.append(goal)
        self._persist()
        return goal

    def update(self, goal_id: str, **fields: Any) -> Goal | None:
        goal = self.find(goal_id)
        if goal is None:
            return None
        changes = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS}
        if "title" in changes:
            changes["title"] = (changes["title"] or "").strip()
            if not changes["title"]:
                raise ValueError("Goal title must not be empty")
        for k, v in changes.items():
            setattr(goal, k, v)
        try:
            self.backend.update_goal(goal_id, {
                "title": goal.title,
                "description": goal.description,
                "why": goal.why,
            })
        except RemoteError as e:
            logger.warning("Remote goal update failed, keeping local state: %s", e)
        self._persist()
        return goal

    def remove(self, goal_id: str) -> bool:
        goal = self.find(goal_id)
        if goal is None:
            return False
        try:
            self.backend.delete_goal(goal_id)
        except RemoteError as e:
            logger.warning("Remote goal delete failed, removing locally: %s", e)
        self._goals.remove(goal)
        self._persist()
        return True
