"""Streak computation for MindfulMoves.

Streaks are recomputed from completion-day sets on every call; nothing here
stores a running counter.
"""

from __future__ import annotations

from datetime import date, timedelta, tzinfo
from typing import Iterable

from mindful.dates import day_key, parse_day_key, today_key
from mindful.models import Habit

# Upper bound on how far back a streak walk goes.
MAX_STREAK_DAYS = 365


def _today(today: date | str | None, tz: tzinfo | None = None) -> date:
    if today is None:
        return parse_day_key(today_key(tz))
    return parse_day_key(day_key(today))


def current_streak(
    completion_dates: Iterable[str], today: date | str | None = None, tz: tzinfo | None = None
) -> int:
    """Consecutive completed days ending today, or yesterday if today is open.

    Capped at MAX_STREAK_DAYS.
    """
    keys = set(completion_dates)
    if not keys:
        return 0
    cursor = _today(today, tz)
    if cursor.isoformat() not in keys:
        cursor -= timedelta(days=1)

    streak = 0
    for _ in range(MAX_STREAK_DAYS):
        if cursor.isoformat() not in keys:
            break
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def longest_streak(completion_dates: Iterable[str]) -> int:
    """Longest run of consecutive days anywhere in the history."""
    days = sorted({parse_day_key(k) for k in completion_dates})
    best = run = 0
    previous = None
    for d in days:
        if previous is not None and (d - previous).days == 1:
            run += 1
        else:
            run = 1
        best = max(best, run)
        previous = d
    return best


def overall_streak(
    habits: Iterable[Habit], today: date | str | None = None, tz: tzinfo | None = None
) -> int:
    """Consecutive days on which at least one eligible habit was completed.

    Starts from today when something was logged today, otherwise yesterday.
    """
    habits = list(habits)
    if not habits:
        return 0

    def logged(key: str) -> bool:
        return any(h.is_eligible_on(key, tz) and h.is_completed_on(key) for h in habits)

    cursor = _today(today, tz)
    if not logged(cursor.isoformat()):
        cursor -= timedelta(days=1)

    streak = 0
    for _ in range(MAX_STREAK_DAYS):
        if not logged(cursor.isoformat()):
            break
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def best_current_streak(
    habits: Iterable[Habit], today: date | str | None = None, tz: tzinfo | None = None
) -> int:
    """Highest current streak across habits (0 with no habits)."""
    day = _today(today, tz)
    return max((current_streak(h.completion_dates, day) for h in habits), default=0)
