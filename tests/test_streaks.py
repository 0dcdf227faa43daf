"""Tests for mindful/streaks.py: current, longest and overall streaks."""

from datetime import date, timedelta
from zoneinfo import ZoneInfo

from conftest import make_habit

from mindful.dates import today_key
from mindful.streaks import (
    MAX_STREAK_DAYS,
    best_current_streak,
    current_streak,
    longest_streak,
    overall_streak,
)


def _run(end: str, length: int) -> set[str]:
    last = date.fromisoformat(end)
    return {(last - timedelta(days=i)).isoformat() for i in range(length)}


def test_current_streak_empty():
    assert current_streak(set(), "2024-03-10") == 0


def test_current_streak_includes_today():
    assert current_streak({"2024-03-08", "2024-03-09", "2024-03-10"}, "2024-03-10") == 3


def test_current_streak_today_still_open():
    assert current_streak({"2024-03-08", "2024-03-09"}, "2024-03-10") == 2


def test_current_streak_broken_yesterday():
    assert current_streak({"2024-03-07", "2024-03-08"}, "2024-03-10") == 0


def test_current_streak_gap_stops_count():
    keys = {"2024-03-10", "2024-03-09", "2024-03-07", "2024-03-06"}
    assert current_streak(keys, "2024-03-10") == 2


def test_current_streak_ignores_future_days():
    assert current_streak({"2024-03-10", "2024-03-11", "2024-03-12"}, "2024-03-10") == 1


def test_current_streak_capped():
    keys = _run("2024-03-10", 400)
    assert current_streak(keys, "2024-03-10") == MAX_STREAK_DAYS


def test_current_streak_exactly_at_cap():
    keys = _run("2024-03-10", MAX_STREAK_DAYS)
    assert current_streak(keys, "2024-03-10") == MAX_STREAK_DAYS


def test_longest_streak():
    keys = {"2024-01-01", "2024-01-02", "2024-01-03", "2024-02-01", "2024-02-02"}
    assert longest_streak(keys) == 3
    assert longest_streak(set()) == 0


def test_overall_streak_any_habit_counts():
    habits = [
        make_habit("a", done=("2024-03-10", "2024-03-08")),
        make_habit("b", done=("2024-03-09",)),
    ]
    assert overall_streak(habits, "2024-03-10") == 3


def test_overall_streak_starts_yesterday_when_today_open():
    habits = [make_habit("a", done=("2024-03-08", "2024-03-09"))]
    assert overall_streak(habits, "2024-03-10") == 2


def test_overall_streak_no_habits():
    assert overall_streak([], "2024-03-10") == 0


def test_best_current_streak():
    habits = [
        make_habit("a", done=("2024-03-10",)),
        make_habit("b", done=("2024-03-08", "2024-03-09", "2024-03-10")),
    ]
    assert best_current_streak(habits, "2024-03-10") == 3
    assert best_current_streak([], "2024-03-10") == 0


def test_current_streak_examples():
    today = "2024-03-10"
    assert current_streak({today}, today) == 1
    assert current_streak({"2024-03-09"}, today) == 1
    assert current_streak({"2024-03-07"}, today) == 0


def test_default_today_follows_time_zone():
    # UTC+14: usually a day ahead of the host clock
    tz = ZoneInfo("Pacific/Kiritimati")
    today = today_key(tz)
    habits = [make_habit("a", done=(today,))]
    assert current_streak({today}, tz=tz) == 1
    assert overall_streak(habits, tz=tz) == 1
    assert best_current_streak(habits, tz=tz) == 1
