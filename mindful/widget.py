"""Home-screen widget snapshot.

A compact summary of today's habits written to the local mirror under
``widget_habits``. Widget data is non-critical: write failures are logged,
never raised.
"""

from __future__ import annotations

import logging
from datetime import datetime, tzinfo
from typing import Iterable

from mindful.cache import WIDGET_KEY, LocalCache
from mindful.dates import day_key
from mindful.models import Habit, WidgetHabit, WidgetSnapshot

logger = logging.getLogger(__name__)


def build_widget_snapshot(
    habits: Iterable[Habit], now: datetime, tz: tzinfo | None = None
) -> WidgetSnapshot:
    """Habits that exist today, with today's completion."""
    today = day_key(now, tz)
    entries = [
        WidgetHabit(id=h.id, name=h.name, completed=h.is_completed_on(today))
        for h in habits
        if h.is_eligible_on(today, tz)
    ]
    return WidgetSnapshot(
        habits=entries,
        last_updated=now.isoformat(timespec="seconds"),
        total_habits=len(entries),
        completed_count=sum(1 for e in entries if e.completed),
    )


def write_widget_snapshot(
    cache: LocalCache, habits: Iterable[Habit], now: datetime, tz: tzinfo | None = None
) -> WidgetSnapshot:
    snapshot = build_widget_snapshot(habits, now, tz)
    try:
        cache.set_item(WIDGET_KEY, snapshot.to_dict())
    except OSError as e:
        logger.error("Error writing widget data: %s", e)
    return snapshot


def read_widget_snapshot(cache: LocalCache) -> WidgetSnapshot | None:
    raw = cache.get_item(WIDGET_KEY)
    if not isinstance(raw, dict):
        return None
    try:
        return WidgetSnapshot.from_dict(raw)
    except (TypeError, ValueError) as e:
        logger.error("Error reading widget data: %s", e)
        return None
