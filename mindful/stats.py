"""Month and week statistics built on daily completion rates."""

from __future__ import annotations

from datetime import date, datetime, tzinfo
from typing import Iterable

from mindful.completion import completion_rate, daily_progress
from mindful.dates import day_key, month_days, month_grid, today_key, week_dates
from mindful.models import CalendarCell, DailyProgress, Habit, MonthStats


def month_stats(habits: Iterable[Habit], year: int, month: int, tz: tzinfo | None = None) -> MonthStats:
    """Summarize daily completion rates over the actual days of a month.

    ``total_items`` is the present-day habit count and is not filtered by
    per-day eligibility, unlike the daily rates.
    """
    habits = list(habits)
    rates = [completion_rate(habits, d, tz) for d in month_days(year, month)]
    return MonthStats(
        average_completion=(sum(rates) / len(rates)) if rates else 0.0,
        best_day=max(rates + [0.0]),
        total_items=len(habits),
        days_with_data=sum(1 for r in rates if r > 0),
    )


def calendar_cells(
    habits: Iterable[Habit],
    year: int,
    month: int,
    today: date | str | None = None,
    tz: tzinfo | None = None,
) -> list[CalendarCell]:
    """One cell per month_grid entry; filler cells always report 0%."""
    habits = list(habits)
    today_k = day_key(today) if today is not None else today_key(tz)
    cells = []
    for d in month_grid(year, month):
        in_month = d.month == month
        cells.append(CalendarCell(
            day=d.isoformat(),
            in_month=in_month,
            is_today=d.isoformat() == today_k,
            percentage=completion_rate(habits, d, tz) if in_month else 0.0,
        ))
    return cells


def week_progress(
    habits: Iterable[Habit], day: date | datetime | str, tz: tzinfo | None = None
) -> list[DailyProgress]:
    """Daily progress for each day of the Sunday-start week containing *day*."""
    habits = list(habits)
    return [daily_progress(habits, d, tz) for d in week_dates(day)]
