#!/usr/bin/env python3
"""MindfulMoves TUI: daily habit check-ins in the terminal, powered by Textual."""

from __future__ import annotations

import sys

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.reactive import reactive
from textual.widgets import (
    Checkbox,
    DataTable,
    Footer,
    Header,
    Input,
    Label,
    Static,
)

from mindful import (
    AppContext,
    calendar_cells,
    current_streak,
    daily_progress,
    month_stats,
    overall_streak,
    parse_day_key,
    quote_of_the_day,
    shift_day,
    write_widget_snapshot,
)
from mindful.context import open_context
from mindful.logs import setup_logging
from mindful.rollover import DayRolloverWatcher
from mindful.workspace import data_root


# ── Stylesheet ─────────────────────────────────────────────────


CSS = """
Screen {
    background: $surface;
}

#main-layout {
    height: 1fr;
    padding: 0 1;
}

.section-title {
    text-style: bold;
    color: $text;
    margin: 1 0 0 0;
    padding: 0 1;
}

#quote {
    height: auto;
    padding: 0 1;
    color: $text-muted;
}

#habit-list {
    height: auto;
}

.habit-row {
    height: auto;
}

.habit-row Checkbox {
    width: 1fr;
    height: auto;
}

.habit-done Checkbox {
    text-style: strike;
}

.habit-streak {
    width: auto;
    padding: 1 2 0 0;
    color: $warning;
}

#new-habit {
    display: none;
    margin: 1 0 0 0;
}

.overlay-screen {
    padding: 1 2;
}

#month-stats {
    height: auto;
    padding: 0 1;
    margin: 0 0 1 0;
}

#month-table {
    height: 1fr;
}
"""


# ── Custom widgets ─────────────────────────────────────────────


class HabitItem(Horizontal):
    """One habit for the selected day: checkbox + current streak."""

    def __init__(self, habit_id: str, name: str, done: bool, streak: int, editable: bool, **kwargs) -> None:
        super().__init__(**kwargs)
        self.habit_id = habit_id
        self.habit_name = name
        self.habit_done = done
        self.streak = streak
        self.editable = editable

    def compose(self) -> ComposeResult:
        yield Checkbox(self.habit_name, value=self.habit_done, disabled=not self.editable, id=f"cb-{self.habit_id}")
        yield Label(f"🔥 {self.streak}" if self.streak else "", classes="habit-streak")

    def on_mount(self) -> None:
        self.add_class("habit-row")
        if self.habit_done:
            self.add_class("habit-done")


# ── Screens ────────────────────────────────────────────────────


class MonthScreen(Vertical):
    """Month calendar with daily completion percentages."""

    def __init__(self, ctx: AppContext, day: str, **kwargs) -> None:
        super().__init__(**kwargs)
        self.ctx = ctx
        self.day = day

    def compose(self) -> ComposeResult:
        d = parse_day_key(self.day)
        yield Label(d.strftime("%B %Y"), classes="section-title")
        yield Static(id="month-stats")
        yield DataTable(id="month-table")

    def on_mount(self) -> None:
        d = parse_day_key(self.day)
        habits = self.ctx.habits.habits
        stats = month_stats(habits, d.year, d.month, self.ctx.habits.tz)
        self.query_one("#month-stats", Static).update(
            f"Average {round(stats.average_completion)}%   "
            f"Best day {round(stats.best_day)}%   "
            f"Habits {stats.total_items}   "
            f"Active days {stats.days_with_data}"
        )

        table: DataTable = self.query_one("#month-table", DataTable)
        table.add_columns("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
        row: list[str] = []
        for cell in calendar_cells(habits, d.year, d.month, self.ctx.habits.today(), self.ctx.habits.tz):
            if cell.in_month:
                label = f"{parse_day_key(cell.day).day:>2} {round(cell.percentage):>3}%"
                row.append(f"{label}*" if cell.is_today else label)
            else:
                row.append("")
            if len(row) == 7:
                table.add_row(*row)
                row = []
        if row:
            table.add_row(*(row + [""] * (7 - len(row))))


# ── Main app ───────────────────────────────────────────────────


class MindfulApp(App):
    """MindfulMoves: interactive habit tracker."""

    TITLE = "MindfulMoves"
    CSS = CSS
    AUTO_FOCUS = None

    BINDINGS = [
        Binding("p", "previous_day", "Prev day"),
        Binding("n", "next_day", "Next day"),
        Binding("t", "goto_today", "Today"),
        Binding("a", "add_habit", "Add habit"),
        Binding("c", "toggle_month", "Calendar"),
        Binding("escape", "blur_focus", "Back"),
        Binding("q", "quit_app", "Quit"),
    ]

    current_view: reactive[str] = reactive("today")

    def __init__(self, ctx: AppContext | None = None) -> None:
        super().__init__()
        self.ctx = ctx or open_context()
        self._day = self.ctx.habits.today()
        self._watcher = DayRolloverWatcher(
            self.ctx.habits, on_rollover=lambda: self.call_from_thread(self._on_new_day)
        )

    def compose(self) -> ComposeResult:
        yield Header()
        yield VerticalScroll(
            Static(id="quote"),
            Label("", id="day-title", classes="section-title"),
            Vertical(id="habit-list"),
            Input(placeholder="New habit name…", id="new-habit"),
            id="main-layout",
        )
        yield Footer()

    def on_mount(self) -> None:
        self._refresh_view()
        self._watcher.start()

    def on_unmount(self) -> None:
        self._watcher.stop()

    # ── Rendering ──────────────────────────────────────────────

    def _refresh_view(self) -> None:
        store = self.ctx.habits
        today = store.today()
        quote = quote_of_the_day(today)
        self.query_one("#quote", Static).update(f"“{quote.text}”  ~ {quote.author}")

        title = "Today" if self._day == today else parse_day_key(self._day).strftime("%A %d %B")
        if not store.is_editable(self._day):
            title += "  (read-only)"
        self.query_one("#day-title", Label).update(title)

        habit_list = self.query_one("#habit-list", Vertical)
        habit_list.remove_children()
        editable = store.is_editable(self._day)
        views = store.items_for_date(self._day)
        if not views:
            habit_list.mount(Label("No habits yet. Press [b]a[/b] to add one."))
        for v in views:
            habit_list.mount(HabitItem(
                habit_id=v.id,
                name=v.habit.label,
                done=v.completed,
                streak=current_streak(v.habit.completion_dates, today),
                editable=editable,
            ))
        self._update_status()

    def _update_status(self) -> None:
        """Update sub_title with overall streak and day progress."""
        store = self.ctx.habits
        progress = daily_progress(store.habits, self._day, store.tz)
        streak = overall_streak(store.habits, store.today(), store.tz)
        self.sub_title = f"🔥 {streak}  {self._day}  {progress.completed}/{progress.total} ({round(progress.percentage)}%)"

    def _on_new_day(self) -> None:
        self._day = self.ctx.habits.today()
        self.notify("A new day has started.", title="Good morning")
        self._switch_to("today")

    # ── Check-ins ──────────────────────────────────────────────

    @on(Checkbox.Changed)
    def _on_checkbox_toggle(self, event: Checkbox.Changed) -> None:
        habit_id = (event.checkbox.id or "").removeprefix("cb-")
        parent = event.checkbox.parent
        if isinstance(parent, HabitItem):
            if event.value:
                parent.add_class("habit-done")
            else:
                parent.remove_class("habit-done")
        self._toggle(habit_id, self._day)

    @work(thread=True)
    def _toggle(self, habit_id: str, day: str) -> None:
        with self.ctx.lock:
            habit = self.ctx.habits.toggle_completion(habit_id, day)
            if habit is not None:
                write_widget_snapshot(self.ctx.cache, self.ctx.habits.habits, self.ctx.habits.now(), self.ctx.habits.tz)
        if habit is None:
            self.call_from_thread(self.notify, f"{day} can no longer be edited.", severity="warning")
        self.call_from_thread(self._refresh_view)

    @on(Input.Submitted, "#new-habit")
    def _on_new_habit(self, event: Input.Submitted) -> None:
        name = event.value
        event.input.value = ""
        event.input.display = False
        self._create(name)

    @work(thread=True)
    def _create(self, name: str) -> None:
        try:
            with self.ctx.lock:
                habit = self.ctx.habits.create(name)
                write_widget_snapshot(self.ctx.cache, self.ctx.habits.habits, self.ctx.habits.now(), self.ctx.habits.tz)
        except ValueError as e:
            self.call_from_thread(self.notify, str(e), title="Not added", severity="warning")
            return
        self.call_from_thread(self.notify, f"Added {habit.name}", title="Habit added")
        self.call_from_thread(self._refresh_view)

    # ── Actions ────────────────────────────────────────────────

    def action_previous_day(self) -> None:
        self._day = shift_day(self._day, -1)
        self._switch_to(self.current_view)

    def action_next_day(self) -> None:
        if self._day >= self.ctx.habits.today():
            return
        self._day = shift_day(self._day, 1)
        self._switch_to(self.current_view)

    def action_goto_today(self) -> None:
        self._day = self.ctx.habits.today()
        self._switch_to(self.current_view)

    def action_add_habit(self) -> None:
        if self.current_view != "today":
            self._switch_to("today")
        new_habit = self.query_one("#new-habit", Input)
        new_habit.display = True
        new_habit.focus()

    def action_toggle_month(self) -> None:
        self._switch_to("today" if self.current_view == "month" else "month")

    def action_blur_focus(self) -> None:
        new_habit = self.query_one("#new-habit", Input)
        if new_habit.display:
            new_habit.value = ""
            new_habit.display = False
        if self.current_view != "today":
            self._switch_to("today")
        self.set_focus(None)

    def action_quit_app(self) -> None:
        self._watcher.stop()
        self.exit()

    def _switch_to(self, view: str) -> None:
        for old in self.query(".overlay-screen"):
            old.remove()

        main = self.query_one("#main-layout", VerticalScroll)
        if view == "month":
            main.display = False
            self.mount(MonthScreen(self.ctx, self._day, classes="overlay-screen"))
        else:
            main.display = True
            self._refresh_view()
        self._update_status()
        self.current_view = view


# ── Entry point ────────────────────────────────────────────────


def main() -> None:
    root = data_root()
    if not root.exists():
        print(f"Workspace not found: {root}")
        print("Set MINDFUL_ROOT or create the directory first.")
        sys.exit(1)

    setup_logging(root, console=False)
    app = MindfulApp(open_context(root))
    app.run()


if __name__ == "__main__":
    main()
