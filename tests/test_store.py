"""Tests for mindful/store.py: CRUD, toggling, edit window and fallback."""

from datetime import datetime, timedelta, timezone

from zoneinfo import ZoneInfo

import pytest
from conftest import USER, FixedClock, make_habit

from mindful.cache import HABITS_KEY
from mindful.remote import HabitBackend, OfflineBackend, RemoteError
from mindful.store import HabitStore, is_editable


class FlakyBackend(HabitBackend):
    """Fetch works, every write fails."""

    def __init__(self, habits):
        self.habits = habits

    def fetch_habits(self, user_id):
        return [h for h in self.habits if h.user_id == user_id]

    def insert_habit(self, habit):
        raise RemoteError("down")

    def update_habit(self, habit):
        raise RemoteError("down")

    def delete_habit(self, habit_id):
        raise RemoteError("down")


# ── Edit window ───────────────────────────────────────────────


def test_is_editable_window():
    assert is_editable("2024-03-15", "2024-03-15") is True
    assert is_editable("2024-03-14", "2024-03-15") is True
    assert is_editable("2024-03-13", "2024-03-15") is True
    assert is_editable("2024-03-12", "2024-03-15") is False
    assert is_editable("2024-03-16", "2024-03-15") is False


def test_is_editable_across_month_boundary():
    assert is_editable("2024-02-28", "2024-03-01") is True
    assert is_editable("2024-02-27", "2024-03-01") is False


# ── Create / rename / remove ──────────────────────────────────


def test_create_with_remote_uses_server_id(remote_store, habit_backend):
    habit = remote_store.create("  Meditate  ", "ten minutes")
    assert habit.name == "Meditate"
    assert len(habit.id) == 36
    assert habit.user_id == USER
    assert [h.id for h in habit_backend.fetch_habits(USER)] == [habit.id]


def test_create_offline_gets_local_id(offline_store, cache):
    habit = offline_store.create("Meditate")
    assert habit.id.isdigit()
    assert offline_store.find(habit.id) is habit
    mirrored = cache.get_item(HABITS_KEY)
    assert [h["id"] for h in mirrored] == [habit.id]


def test_create_rejects_blank_name(offline_store):
    with pytest.raises(ValueError):
        offline_store.create("   ")
    assert offline_store.habits == ()


def test_rename(remote_store, habit_backend):
    habit = remote_store.create("Read")
    assert remote_store.rename(habit.id, "Read 20 pages").name == "Read 20 pages"
    assert habit_backend.fetch_habits(USER)[0].name == "Read 20 pages"
    assert remote_store.rename("missing", "x") is None


def test_remove(remote_store, habit_backend, cache):
    habit = remote_store.create("Read")
    assert remote_store.remove(habit.id) is True
    assert remote_store.remove(habit.id) is False
    assert remote_store.habits == ()
    assert habit_backend.fetch_habits(USER) == []
    assert cache.get_item(HABITS_KEY) == []


def test_remove_survives_remote_failure(cache, clock):
    store = HabitStore(USER, FlakyBackend([make_habit("a")]), cache, clock=clock)
    store.load()
    assert store.remove("a") is True
    assert store.habits == ()


# ── Toggle ────────────────────────────────────────────────────


def test_toggle_twice_restores_state(remote_store, habit_backend):
    habit = remote_store.create("Read")
    remote_store.toggle_completion(habit.id, "2024-03-15")
    assert remote_store.completed_today(habit.id) is True
    assert habit_backend.fetch_habits(USER)[0].completion_dates == {"2024-03-15"}

    remote_store.toggle_completion(habit.id, "2024-03-15")
    assert remote_store.completed_today(habit.id) is False
    assert habit_backend.fetch_habits(USER)[0].completion_dates == set()


def test_toggle_yesterday_affects_only_yesterday(offline_store):
    habit = offline_store.create("Read")
    habit.created_at = "2024-03-01T00:00:00+00:00"
    offline_store.toggle_completion(habit.id, "2024-03-14")
    views = {v.day: v.completed for d in ("2024-03-14", "2024-03-15") for v in offline_store.items_for_date(d)}
    assert views == {"2024-03-14": True, "2024-03-15": False}


def test_toggle_outside_window_is_noop(offline_store):
    habit = offline_store.create("Read")
    assert offline_store.toggle_completion(habit.id, "2024-03-12") is None
    assert offline_store.toggle_completion(habit.id, "2024-03-16") is None
    assert habit.completion_dates == set()


def test_toggle_unknown_habit(offline_store):
    assert offline_store.toggle_completion("missing", "2024-03-15") is None


def test_toggle_accepts_datetime(offline_store):
    habit = offline_store.create("Read")
    offline_store.toggle_completion(habit.id, datetime(2024, 3, 15, 22, 0, tzinfo=timezone.utc))
    assert habit.completion_dates == {"2024-03-15"}


def test_toggle_remote_failure_keeps_local_change(cache, clock):
    store = HabitStore(USER, FlakyBackend([make_habit("a")]), cache, clock=clock)
    store.load()
    assert store.toggle_completion("a", "2024-03-15") is not None
    assert store.completed_today("a") is True
    assert cache.get_item(HABITS_KEY)[0]["completionDates"] == ["2024-03-15"]


# ── Loading ───────────────────────────────────────────────────


def test_load_from_remote_writes_mirror(habit_backend, cache, clock):
    habit_backend.insert_habit(make_habit("", name="Walk"))
    store = HabitStore(USER, habit_backend, cache, clock=clock)
    loaded = store.load()
    assert [h.name for h in loaded] == ["Walk"]
    assert [h["name"] for h in cache.get_item(HABITS_KEY)] == ["Walk"]


def test_load_falls_back_to_mirror(offline_store, cache):
    cache.set_item(HABITS_KEY, [
        make_habit("a").to_dict(),
        {**make_habit("b").to_dict(), "userId": "someone-else"},
        "junk",
    ])
    loaded = offline_store.load()
    assert [h.id for h in loaded] == ["a"]


def test_load_malformed_mirror_starts_empty(offline_store, cache):
    cache.directory.mkdir(parents=True)
    (cache.directory / "habits.json").write_text("[{oops", encoding="utf-8")
    assert offline_store.load() == []


def test_load_mirror_not_a_list(offline_store, cache):
    cache.set_item(HABITS_KEY, {"id": "a"})
    assert offline_store.load() == []


def test_offline_session_survives_restart(cache, clock):
    first = HabitStore(USER, OfflineBackend(), cache, clock=clock)
    habit = first.create("Stretch")
    first.toggle_completion(habit.id, "2024-03-15")

    second = HabitStore(USER, OfflineBackend(), cache, clock=clock)
    second.load()
    assert second.completed_today(habit.id) is True


# ── Views & ordering ──────────────────────────────────────────


def test_items_for_date_lists_only_existing_habits(offline_store):
    old = offline_store.create("Old")
    old.created_at = "2024-03-01T00:00:00+00:00"
    offline_store.create("New")  # created on the 15th
    assert [v.name for v in offline_store.items_for_date("2024-03-14")] == ["Old"]
    assert [v.name for v in offline_store.items_for_date("2024-03-15")] == ["Old", "New"]


def test_reorder(offline_store, cache):
    for name in ("A", "B", "C"):
        offline_store.create(name)
    ids = [h.id for h in offline_store.habits]
    assert len(set(ids)) == 3
    assert offline_store.reorder(0, 2) is True
    assert [h.name for h in offline_store.habits] == ["B", "C", "A"]
    assert [h["name"] for h in cache.get_item(HABITS_KEY)] == ["B", "C", "A"]
    assert sorted(h.id for h in offline_store.habits) == sorted(ids)


def test_reorder_out_of_range(offline_store):
    offline_store.create("A")
    assert offline_store.reorder(0, 3) is False
    assert offline_store.reorder(-1, 0) is False


# ── Clock ─────────────────────────────────────────────────────


def test_check_rollover(offline_store, clock):
    habit = offline_store.create("Read")
    offline_store.toggle_completion(habit.id, "2024-03-15")
    assert offline_store.check_rollover() is False

    clock.now += timedelta(days=1)
    assert offline_store.check_rollover() is True
    assert offline_store.check_rollover() is False
    assert offline_store.completed_today(habit.id) is False
    assert habit.completion_dates == {"2024-03-15"}


# ── Local time zones & malformed data ─────────────────────────


def test_evening_habit_in_local_zone_survives_reload(habit_backend, cache):
    tokyo = ZoneInfo("Asia/Tokyo")
    clock = FixedClock(datetime(2026, 10, 19, 20, 0, tzinfo=tokyo))
    store = HabitStore(USER, habit_backend, cache, tz=tokyo, clock=clock)
    store.create("Read")
    assert [v.name for v in store.items_for_date("2026-10-19")] == ["Read"]

    reloaded = HabitStore(USER, habit_backend, cache, tz=tokyo, clock=clock)
    [habit] = reloaded.load()
    assert habit.created_at == "2026-10-19T11:00:00+00:00"
    assert [v.name for v in reloaded.items_for_date("2026-10-19")] == ["Read"]


def test_load_mirror_skips_entries_with_bad_dates(offline_store, cache):
    cache.set_item(HABITS_KEY, [
        make_habit("a").to_dict(),
        {**make_habit("b").to_dict(), "completionDates": ["not-a-day"]},
        {**make_habit("c").to_dict(), "createdAt": "yesterday"},
    ])
    assert [h.id for h in offline_store.load()] == ["a"]
    assert [v.id for v in offline_store.items_for_date("2024-03-15")] == ["a"]


# ── Emoji & goal link ─────────────────────────────────────────


def test_create_with_emoji_and_goal(remote_store, habit_backend, cache):
    habit = remote_store.create("Run", emoji=" 🏃 ", goal_id="g1")
    assert habit.emoji == "🏃"
    assert habit.label == "🏃 Run"
    [stored] = habit_backend.fetch_habits(USER)
    assert stored.emoji == "🏃"
    assert stored.goal_id == "g1"
    assert cache.get_item(HABITS_KEY)[0]["goalId"] == "g1"


def test_rename_keeps_emoji_and_goal_unless_given(remote_store, habit_backend):
    habit = remote_store.create("Run", emoji="🏃", goal_id="g1")
    remote_store.rename(habit.id, "Jog")
    assert habit.emoji == "🏃"
    assert habit.goal_id == "g1"

    remote_store.rename(habit.id, "Jog", emoji="", goal_id="")
    [stored] = habit_backend.fetch_habits(USER)
    assert stored.name == "Jog"
    assert stored.emoji == ""
    assert stored.goal_id is None


def test_offline_emoji_survives_restart(cache, clock):
    first = HabitStore(USER, OfflineBackend(), cache, clock=clock)
    habit = first.create("Meditate", emoji="🧘", goal_id="g2")

    second = HabitStore(USER, OfflineBackend(), cache, clock=clock)
    [loaded] = second.load()
    assert loaded.id == habit.id
    assert loaded.emoji == "🧘"
    assert loaded.goal_id == "g2"
