"""MindfulMoves core library: habit model, aggregates and stores.

Public API re-exports for convenient imports:
    from mindful import day_key, completion_rate, HabitStore, ...
"""

# Dates
from mindful.dates import (
    day_key,
    parse_day_key,
    shift_day,
    today_key,
    month_grid,
    month_days,
    week_dates,
)

# Aggregates
from mindful.completion import (
    eligible_habits,
    completion_rate,
    daily_progress,
    all_completed,
)
from mindful.streaks import (
    MAX_STREAK_DAYS,
    current_streak,
    longest_streak,
    overall_streak,
    best_current_streak,
)
from mindful.stats import (
    month_stats,
    calendar_cells,
    week_progress,
)

# Stores
from mindful.cache import LocalCache
from mindful.remote import (
    RemoteError,
    HabitBackend,
    GoalBackend,
    OfflineBackend,
    SqlHabitBackend,
    SqlGoalBackend,
)
from mindful.store import HabitStore, is_editable
from mindful.goals import GoalStore
from mindful.tasks import (
    TaskStore,
    validate_task,
    active_tasks_for_date,
    task_completion_for_date,
    task_progress_for_date,
)
from mindful.widget import (
    build_widget_snapshot,
    write_widget_snapshot,
    read_widget_snapshot,
)
from mindful.quotes import Quote, quote_of_the_day, random_quote

# Models
from mindful.models import (
    Habit,
    HabitView,
    Goal,
    Task,
    DailyProgress,
    MonthStats,
    CalendarCell,
    WidgetHabit,
    WidgetSnapshot,
    Settings,
)

# Wiring
from mindful.context import AppContext, open_context
