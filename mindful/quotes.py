"""Motivational quotes shown on the dashboard."""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import date, datetime, tzinfo

from mindful.dates import day_key, parse_day_key, today_key


@dataclass(frozen=True)
class Quote:
    text: str
    author: str

    def to_dict(self) -> dict[str, str]:
        return {"text": self.text, "author": self.author}


QUOTES: tuple[Quote, ...] = (
    Quote("We are what we repeatedly do. Excellence, then, is not an act, but a habit.", "Aristotle"),
    Quote(
        "The secret of getting ahead is getting started. The secret of getting started is "
        "breaking your complex overwhelming tasks into small manageable tasks, and then "
        "starting on the first one.",
        "Mark Twain",
    ),
    Quote("Habits are the compound interest of self-improvement.", "James Clear"),
    Quote("Small changes, consistently applied, lead to remarkable results.", "Unknown"),
    Quote("The difference between who you are and who you want to be is what you do.", "Charles Duhigg"),
    Quote("Your habits determine your future.", "Unknown"),
    Quote("The best time to plant a tree was 20 years ago. The second best time is now.", "Chinese Proverb"),
    Quote("Success is the sum of small efforts, repeated day in and day out.", "Robert Collier"),
    Quote("You don't have to be great to start, but you have to start to be great.", "Zig Ziglar"),
    Quote("The chains of habit are too weak to be felt until they are too strong to be broken.", "Samuel Johnson"),
)


def quote_of_the_day(day: date | datetime | str | None = None, tz: tzinfo | None = None) -> Quote:
    """Same quote all day; rotates by day of year (Jan 1 = 1)."""
    d = parse_day_key(day_key(day, tz) if day is not None else today_key(tz))
    return QUOTES[d.timetuple().tm_yday % len(QUOTES)]


def random_quote(rng: random.Random | None = None) -> Quote:
    return (rng or random).choice(QUOTES)
