"""Day-key and calendar grid helpers for MindfulMoves.

A day-key is the canonical ``YYYY-MM-DD`` string for one local calendar day.
It is the join key between "today", stored completion history and calendar
cells, so every module converts through ``day_key`` rather than formatting
dates itself.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta, tzinfo


def day_key(value: date | datetime | str, tz: tzinfo | None = None) -> str:
    """Project a date, datetime or ISO string onto its local calendar day.

    Aware datetimes are converted to *tz* first when one is given; the
    time-of-day is discarded.
    """
    if isinstance(value, datetime):
        if tz is not None and value.tzinfo is not None:
            value = value.astimezone(tz)
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        return parse_day_key(value).isoformat()
    raise TypeError(f"Cannot build a day key from {type(value).__name__}")


def parse_day_key(key: str) -> date:
    """Parse 'YYYY-MM-DD' (a longer ISO timestamp is cut to its date part)."""
    text = key.strip()
    if len(text) > 10 and text[10] in "T ":
        text = text[:10]
    return date.fromisoformat(text)


def shift_day(key: str, days: int) -> str:
    return (parse_day_key(key) + timedelta(days=days)).isoformat()


def today_key(tz: tzinfo | None = None, now: datetime | None = None) -> str:
    if now is None:
        now = datetime.now(tz)
    return day_key(now, tz)


def sunday_weekday(d: date) -> int:
    """Weekday index with Sunday = 0 ... Saturday = 6."""
    return (d.weekday() + 1) % 7


def month_grid(year: int, month: int) -> list[date]:
    """Every cell needed to render *month*: leading filler days, then the month.

    The number of filler days equals the weekday index of the 1st (Sunday = 0);
    no trailing filler is added.
    """
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {month}")
    first = date(year, month, 1)
    leading = sunday_weekday(first)
    days_in_month = calendar.monthrange(year, month)[1]

    cells = [first - timedelta(days=leading - i) for i in range(leading)]
    cells.extend(date(year, month, day) for day in range(1, days_in_month + 1))
    return cells


def month_days(year: int, month: int) -> list[date]:
    """Only the actual days of *month* (no filler)."""
    return [d for d in month_grid(year, month) if d.month == month]


def week_dates(day: date | datetime | str) -> list[date]:
    """The seven days of the Sunday-start week containing *day*."""
    d = parse_day_key(day_key(day))
    start = d - timedelta(days=sunday_weekday(d))
    return [start + timedelta(days=i) for i in range(7)]
