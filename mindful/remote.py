"""Remote store backends for MindfulMoves.

Stores talk to the remote side only through ``HabitBackend`` and
``GoalBackend``. Every failure surfaces as ``RemoteError`` so callers can
degrade to the local mirror with a single ``except`` clause.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from mindful.db import GoalDocument, HabitRow
from mindful.models import Goal, Habit

logger = logging.getLogger(__name__)


class RemoteError(Exception):
    """The remote store could not complete a request."""


class HabitBackend:
    """Relational store for habits."""

    def fetch_habits(self, user_id: str) -> list[Habit]:
        raise NotImplementedError

    def insert_habit(self, habit: Habit) -> Habit:
        """Persist a new habit and return it with the server-assigned id."""
        raise NotImplementedError

    def update_habit(self, habit: Habit) -> None:
        raise NotImplementedError

    def delete_habit(self, habit_id: str) -> None:
        raise NotImplementedError


class GoalBackend:
    """Document store for goals."""

    def fetch_goals(self, user_id: str) -> list[Goal]:
        raise NotImplementedError

    def add_goal(self, goal: Goal) -> str:
        """Store a goal document and return its id."""
        raise NotImplementedError

    def update_goal(self, goal_id: str, fields: dict[str, Any]) -> None:
        raise NotImplementedError

    def delete_goal(self, goal_id: str) -> None:
        raise NotImplementedError


class OfflineBackend(HabitBackend, GoalBackend):
    """Backend used when no remote store is configured: every call fails."""

    def _fail(self, *args: Any, **kwargs: Any) -> Any:
        raise RemoteError("remote store not configured")

    fetch_habits = insert_habit = update_habit = delete_habit = _fail
    fetch_goals = add_goal = update_goal = delete_goal = _fail


# ── SQLAlchemy implementations ────────────────────────────────


def _parse_ts(value: str) -> datetime:
    try:
        ts = datetime.fromisoformat(value) if value else datetime.now(timezone.utc)
    except ValueError:
        ts = datetime.now(timezone.utc)
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def _format_ts(value: datetime | None) -> str:
    if value is None:
        return ""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat(timespec="seconds")


class _SqlBackend:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise RemoteError(str(e)) from e
        finally:
            session.close()


class SqlHabitBackend(_SqlBackend, HabitBackend):

    @staticmethod
    def _to_habit(row: HabitRow) -> Habit:
        return Habit(
            id=row.id,
            name=row.name,
            user_id=row.user_id,
            created_at=_format_ts(row.created_at),
            description=row.description,
            emoji=row.emoji or "",
            goal_id=row.goal_id,
            completion_dates=set(row.completion_dates or []),
        )

    def fetch_habits(self, user_id: str) -> list[Habit]:
        with self._session() as session:
            rows = session.scalars(
                select(HabitRow)
                .where(HabitRow.user_id == user_id)
                .order_by(HabitRow.created_at, HabitRow.id)
            ).all()
            return [self._to_habit(r) for r in rows]

    def insert_habit(self, habit: Habit) -> Habit:
        with self._session() as session:
            row = HabitRow(
                user_id=habit.user_id,
                name=habit.name,
                description=habit.description,
                emoji=habit.emoji,
                goal_id=habit.goal_id,
                created_at=_parse_ts(habit.created_at),
                completion_dates=sorted(habit.completion_dates),
            )
            session.add(row)
            session.flush()
            return self._to_habit(row)

    def update_habit(self, habit: Habit) -> None:
        with self._session() as session:
            row = session.get(HabitRow, habit.id)
            if row is None:
                raise RemoteError(f"Habit not found remotely: {habit.id}")
            row.name = habit.name
            row.description = habit.description
            row.emoji = habit.emoji
            row.goal_id = habit.goal_id
            row.completion_dates = sorted(habit.completion_dates)

    def delete_habit(self, habit_id: str) -> None:
        with self._session() as session:
            row = session.get(HabitRow, habit_id)
            if row is not None:
                session.delete(row)


class SqlGoalBackend(_SqlBackend, GoalBackend):

    def fetch_goals(self, user_id: str) -> list[Goal]:
        with self._session() as session:
            docs = session.scalars(
                select(GoalDocument).where(GoalDocument.user_id == user_id)
            ).all()
            goals = []
            for doc in docs:
                data = dict(doc.data or {})
                data["id"] = doc.id
                goals.append(Goal.from_dict(data))
            goals.sort(key=lambda g: g.created_at)
            return goals

    def add_goal(self, goal: Goal) -> str:
        with self._session() as session:
            data = goal.to_dict()
            data.pop("id", None)
            doc = GoalDocument(user_id=goal.user_id, data=data)
            session.add(doc)
            session.flush()
            return doc.id

    def update_goal(self, goal_id: str, fields: dict[str, Any]) -> None:
        with self._session() as session:
            doc = session.get(GoalDocument, goal_id)
            if doc is None:
                raise RemoteError(f"Goal not found remotely: {goal_id}")
            doc.data = {**(doc.data or {}), **fields}

    def delete_goal(self, goal_id: str) -> None:
        with self._session() as session:
            doc = session.get(GoalDocument, goal_id)
            if doc is not None:
                session.delete(doc)
