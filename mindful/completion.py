"""Per-day completion rates over a habit collection.

Only *eligible* habits (created on or before the evaluated day) count toward
a day's numerator and denominator.
"""

from __future__ import annotations

from datetime import date, datetime, tzinfo
from typing import Iterable

from mindful.dates import day_key
from mindful.models import DailyProgress, Habit


def eligible_habits(
    habits: Iterable[Habit], day: date | datetime | str, tz: tzinfo | None = None
) -> list[Habit]:
    key = day_key(day, tz)
    return [h for h in habits if h.is_eligible_on(key, tz)]


def completion_rate(
    habits: Iterable[Habit], day: date | datetime | str, tz: tzinfo | None = None
) -> float:
    """Percentage (0-100) of eligible habits completed on *day*.

    Returns 0 when no habit was eligible.
    """
    key = day_key(day, tz)
    eligible = eligible_habits(habits, key, tz)
    if not eligible:
        return 0.0
    done = sum(1 for h in eligible if h.is_completed_on(key))
    return 100.0 * done / len(eligible)


def daily_progress(
    habits: Iterable[Habit], day: date | datetime | str, tz: tzinfo | None = None
) -> DailyProgress:
    key = day_key(day, tz)
    eligible = eligible_habits(habits, key, tz)
    done = sum(1 for h in eligible if h.is_completed_on(key))
    total = len(eligible)
    return DailyProgress(
        day=key,
        completed=done,
        total=total,
        percentage=(100.0 * done / total) if total else 0.0,
    )


def all_completed(habits: Iterable[Habit], day: date | datetime | str, tz: tzinfo | None = None) -> bool:
    """True when at least one habit is eligible on *day* and every one is done."""
    progress = daily_progress(habits, day, tz)
    return progress.total > 0 and progress.completed == progress.total
