"""Tests for mindful/stats.py: month stats, calendar cells, week progress."""

from zoneinfo import ZoneInfo

from conftest import make_habit

from mindful.dates import parse_day_key, today_key
from mindful.stats import calendar_cells, month_stats, week_progress


def test_month_stats_thirty_day_month():
    # Two habits in a 30-day month: one full day, two half days
    habits = [
        make_habit("a", created="2024-01-01", done=("2024-04-05", "2024-04-06")),
        make_habit("b", created="2024-01-01", done=("2024-04-05", "2024-04-07")),
    ]
    stats = month_stats(habits, 2024, 4)
    assert stats.average_completion == 200 / 30
    assert stats.best_day == 100
    assert stats.total_items == 2
    assert stats.days_with_data == 3


def test_month_stats_average_is_ten():
    habits = [make_habit("a", created="2024-01-01", done=("2024-04-01", "2024-04-02", "2024-04-03"))]
    stats = month_stats(habits, 2024, 4)
    assert stats.average_completion == 10
    assert stats.best_day == 100
    assert stats.days_with_data == 3


def test_month_stats_no_habits():
    stats = month_stats([], 2024, 4)
    assert stats.average_completion == 0
    assert stats.best_day == 0
    assert stats.total_items == 0
    assert stats.days_with_data == 0


def test_month_stats_total_items_ignores_eligibility():
    habits = [
        make_habit("a", created="2024-01-01"),
        make_habit("b", created="2024-06-01"),
    ]
    assert month_stats(habits, 2024, 4).total_items == 2


def test_month_stats_to_dict_rounds():
    habits = [make_habit("a", created="2024-01-01", done=("2024-04-05",))]
    d = month_stats(habits, 2024, 4).to_dict()
    assert d == {"averageCompletion": 3.3, "bestDay": 100.0, "totalItems": 1, "daysWithData": 1}


def test_calendar_cells_filler_reports_zero():
    # Completion recorded on a filler day (29 Feb) must not leak into March cells
    habits = [make_habit("a", created="2024-01-01", done=("2024-02-29", "2024-03-01"))]
    cells = calendar_cells(habits, 2024, 3, today="2024-03-01")
    assert len(cells) == 36
    filler = [c for c in cells if not c.in_month]
    assert len(filler) == 5
    assert all(c.percentage == 0 for c in filler)
    first = cells[5]
    assert first.day == "2024-03-01"
    assert first.percentage == 100
    assert first.is_today is True
    assert sum(1 for c in cells if c.is_today) == 1


def test_week_progress():
    habits = [make_habit("a", created="2024-03-12", done=("2024-03-13",))]
    week = week_progress(habits, "2024-03-13")
    assert [p.day for p in week][0] == "2024-03-10"
    assert [p.total for p in week] == [0, 0, 1, 1, 1, 1, 1]
    assert week[3].percentage == 100


def test_month_stats_habit_created_mid_month():
    habits = [make_habit("a", created="2024-04-10", done=("2024-04-10", "2024-04-11", "2024-04-15"))]
    stats = month_stats(habits, 2024, 4)
    assert stats.average_completion == 10
    assert stats.best_day == 100
    assert stats.days_with_data == 3


def test_calendar_cells_default_today_follows_time_zone():
    tz = ZoneInfo("Pacific/Kiritimati")
    today = today_key(tz)
    d = parse_day_key(today)
    cells = calendar_cells([], d.year, d.month, tz=tz)
    assert [c.day for c in cells if c.is_today] == [today]
