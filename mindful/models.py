"""Typed dataclasses for the MindfulMoves data model.

All models use from_dict/to_dict for JSON/YAML serialization.
camelCase in JSON is mapped to snake_case in Python.
Unknown keys are ignored; missing keys use defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Any

from mindful.dates import day_key


def _key_set(raw: Any) -> set[str]:
    if not raw or not isinstance(raw, (list, tuple, set)):
        return set()
    return {day_key(str(k)) for k in raw if k}


# ── Habits ────────────────────────────────────────────────────


@dataclass
class Habit:
    """A trackable habit.

    ``completion_dates`` is the only record of completion history; whether the
    habit is "completed" on a day is always derived from it.
    """

    id: str = ""
    name: str = ""
    user_id: str = ""
    created_at: str = ""  # ISO timestamp
    description: str | None = None
    emoji: str = ""
    goal_id: str | None = None
    completion_dates: set[str] = field(default_factory=set)

    def created_key(self, tz: tzinfo | None = None) -> str:
        """Day-key of the creation timestamp ('' when unknown)."""
        if not self.created_at:
            return ""
        try:
            return day_key(datetime.fromisoformat(self.created_at), tz)
        except ValueError:
            return day_key(self.created_at)

    def is_eligible_on(self, key: str, tz: tzinfo | None = None) -> bool:
        """False when the creation timestamp cannot be read."""
        try:
            return self.created_key(tz) <= key
        except ValueError:
            return False

    @property
    def label(self) -> str:
        return f"{self.emoji} {self.name}" if self.emoji else self.name

    def is_completed_on(self, key: str) -> bool:
        return key in self.completion_dates

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Habit:
        description = d.get("description")
        goal_id = d.get("goalId", d.get("goal_id"))
        return cls(
            id=str(d.get("id", "")),
            name=str(d.get("name", "")),
            user_id=str(d.get("userId", d.get("user_id", "")) or ""),
            created_at=str(d.get("createdAt", d.get("created_at", "")) or ""),
            description=str(description) if description is not None else None,
            emoji=str(d.get("emoji", "") or ""),
            goal_id=str(goal_id) if goal_id else None,
            completion_dates=_key_set(d.get("completionDates", d.get("completion_dates"))),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "emoji": self.emoji,
            "goalId": self.goal_id,
            "userId": self.user_id,
            "createdAt": self.created_at,
            "completionDates": sorted(self.completion_dates),
        }


@dataclass(frozen=True)
class HabitView:
    """A habit projected onto one day."""

    habit: Habit
    day: str
    completed: bool

    @property
    def id(self) -> str:
        return self.habit.id

    @property
    def name(self) -> str:
        return self.habit.name

    def to_dict(self) -> dict[str, Any]:
        d = self.habit.to_dict()
        d["day"] = self.day
        d["completed"] = self.completed
        return d


# ── Goals ─────────────────────────────────────────────────────


@dataclass
class Goal:
    id: str = ""
    title: str = ""
    user_id: str = ""
    created_at: str = ""
    description: str | None = None
    why: str | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Goal:
        return cls(
            id=str(d.get("id", "")),
            title=str(d.get("title", "")),
            user_id=str(d.get("userId", d.get("user_id", "")) or ""),
            created_at=str(d.get("createdAt", d.get("created_at", "")) or ""),
            description=d.get("description"),
            why=d.get("why"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "why": self.why,
            "userId": self.user_id,
            "createdAt": self.created_at,
        }


# ── Tasks ─────────────────────────────────────────────────────


@dataclass
class Task:
    id: str = ""
    name: str = ""
    emoji: str = ""
    frequency: str = "daily"  # one-time, daily, monthly
    habit_id: str | None = None
    created_at: str = ""
    completion_dates: set[str] = field(default_factory=set)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Task:
        habit_id = d.get("habitId", d.get("habit_id"))
        return cls(
            id=str(d.get("id", "")),
            name=str(d.get("name", "")),
            emoji=str(d.get("emoji", "")),
            frequency=str(d.get("frequency", "daily")),
            habit_id=str(habit_id) if habit_id else None,
            created_at=str(d.get("createdAt", d.get("created_at", "")) or ""),
            completion_dates=_key_set(d.get("completionDates", d.get("completion_dates"))),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "emoji": self.emoji,
            "frequency": self.frequency,
            "createdAt": self.created_at,
            "completionDates": sorted(self.completion_dates),
        }
        if self.habit_id:
            d["habitId"] = self.habit_id
        return d


# ── Aggregates ────────────────────────────────────────────────


@dataclass
class DailyProgress:
    day: str = ""
    completed: int = 0
    total: int = 0
    percentage: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "day": self.day,
            "completed": self.completed,
            "total": self.total,
            "percentage": round(self.percentage, 1),
        }


@dataclass
class MonthStats:
    average_completion: float = 0.0
    best_day: float = 0.0
    total_items: int = 0
    days_with_data: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "averageCompletion": round(self.average_completion, 1),
            "bestDay": round(self.best_day, 1),
            "totalItems": self.total_items,
            "daysWithData": self.days_with_data,
        }


@dataclass
class CalendarCell:
    day: str = ""
    in_month: bool = True
    is_today: bool = False
    percentage: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "day": self.day,
            "inMonth": self.in_month,
            "isToday": self.is_today,
            "percentage": round(self.percentage, 1),
        }


# ── Widget ────────────────────────────────────────────────────


@dataclass
class WidgetHabit:
    id: str = ""
    name: str = ""
    completed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "completed": self.completed}


@dataclass
class WidgetSnapshot:
    habits: list[WidgetHabit] = field(default_factory=list)
    last_updated: str = ""
    total_habits: int = 0
    completed_count: int = 0

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> WidgetSnapshot:
        if not d or not isinstance(d, dict):
            return cls()
        habits = [
            WidgetHabit(
                id=str(h.get("id", "")),
                name=str(h.get("name", "")),
                completed=bool(h.get("completed", False)),
            )
            for h in (d.get("habits") or [])
            if isinstance(h, dict)
        ]
        return cls(
            habits=habits,
            last_updated=str(d.get("lastUpdated", "")),
            total_habits=int(d.get("totalHabits", len(habits))),
            completed_count=int(d.get("completedCount", 0)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "habits": [h.to_dict() for h in self.habits],
            "lastUpdated": self.last_updated,
            "totalHabits": self.total_habits,
            "completedCount": self.completed_count,
        }


# ── Settings ──────────────────────────────────────────────────


@dataclass
class Settings:
    timezone: str = "UTC"
    user_id: str = ""
    database_url: str = ""
    log_level: str = "INFO"
    log_file: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Settings:
        if not d or not isinstance(d, dict):
            return cls()
        return cls(
            timezone=str(d.get("timezone", "UTC") or "UTC"),
            user_id=str(d.get("user_id", "") or ""),
            database_url=str(d.get("database_url", "") or ""),
            log_level=str(d.get("log_level", "INFO") or "INFO").upper(),
            log_file=str(d.get("log_file", "") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"timezone": self.timezone, "user_id": self.user_id}
        if self.database_url:
            d["database_url"] = self.database_url
        if self.log_level != "INFO":
            d["log_level"] = self.log_level
        if self.log_file:
            d["log_file"] = self.log_file
        return d
