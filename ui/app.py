from __future__ import annotations

import os
import secrets
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Body, Depends, FastAPI, HTTPException, status
from fastapi.responses import HTMLResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from mindful import (
    AppContext,
    best_current_streak,
    calendar_cells,
    current_streak,
    daily_progress,
    all_completed,
    day_key,
    month_stats,
    overall_streak,
    parse_day_key,
    quote_of_the_day,
    task_progress_for_date,
    week_progress,
    write_widget_snapshot,
)
from mindful.context import open_context
from mindful.goals import EDITABLE_FIELDS
from mindful.logs import setup_logging
from mindful.rollover import DayRolloverWatcher
from mindful.tasks import is_active_on

ASSET_V = "20261019-01"


# ── HTML helpers ──────────────────────────────────────────────


def _escape(s: str) -> str:
    return (
        s.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


# ── Auth & context ────────────────────────────────────────────


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    if _watcher is not None:
        _watcher.stop()


app = FastAPI(title="MindfulMoves", version="0.4.0", lifespan=lifespan)
security = HTTPBasic(auto_error=False)

_context: AppContext | None = None
_watcher: DayRolloverWatcher | None = None


def get_context() -> AppContext:
    global _context, _watcher
    if _context is None:
        setup_logging()
        ctx = open_context()
        _watcher = DayRolloverWatcher(ctx.habits, on_rollover=lambda: _on_new_day(ctx))
        _watcher.start()
        _context = ctx
    return _context


def get_current_user(credentials: HTTPBasicCredentials | None = Depends(security)) -> str:
    expected_username = os.environ.get("MINDFUL_USERNAME", "")
    expected_password = os.environ.get("MINDFUL_PASSWORD", "")
    if not expected_username or not expected_password:
        return "guest"
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Basic"},
        )
    correct_username = secrets.compare_digest(credentials.username.encode("utf-8"), expected_username.encode("utf-8"))
    correct_password = secrets.compare_digest(credentials.password.encode("utf-8"), expected_password.encode("utf-8"))
    if not (correct_username and correct_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )
    return credentials.username


def _day(ctx: AppContext, day: str | None) -> str:
    if not day:
        return ctx.habits.today()
    try:
        return day_key(day)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid day: {day}")


def _refresh_widget(ctx: AppContext):
    return write_widget_snapshot(ctx.cache, ctx.habits.habits, ctx.habits.now(), ctx.habits.tz)


def _on_new_day(ctx: AppContext) -> None:
    with ctx.lock:
        _refresh_widget(ctx)


# ── Pages ─────────────────────────────────────────────────────


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"ok": "true"}


@app.get("/", response_class=HTMLResponse)
def index(
    day: str | None = None,
    ctx: AppContext = Depends(get_context),
    username: str = Depends(get_current_user),
) -> HTMLResponse:
    key = _day(ctx, day)
    today = ctx.habits.today()
    views = ctx.habits.items_for_date(key)
    progress = daily_progress(ctx.habits.habits, key, ctx.habits.tz)
    streak = overall_streak(ctx.habits.habits, today, ctx.habits.tz)
    quote = quote_of_the_day(today)

    d = parse_day_key(key)
    cells = calendar_cells(ctx.habits.habits, d.year, d.month, today, ctx.habits.tz)
    stats = month_stats(ctx.habits.habits, d.year, d.month, ctx.habits.tz)

    rows = []
    for v in views:
        mark = "✔" if v.completed else "○"
        rows.append(f'<li class="{"done" if v.completed else ""}">{mark} {_escape(v.habit.label)}</li>')

    grid = []
    for i, c in enumerate(cells):
        if i % 7 == 0:
            grid.append("<tr>")
        if c.in_month:
            label = str(parse_day_key(c.day).day)
            cls = "today" if c.is_today else ""
            grid.append(f'<td class="{cls}"><b>{label}</b><br><span class="muted">{round(c.percentage)}%</span></td>')
        else:
            grid.append("<td></td>")
        if i % 7 == 6:
            grid.append("</tr>")
    if len(cells) % 7:
        grid.append("</tr>")

    html = f"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>MindfulMoves</title>
  <style>
    body {{ font-family: system-ui, sans-serif; max-width: 720px; margin: 2em auto; }}
    .muted {{ color: #888; font-size: 12px; }}
    li.done {{ text-decoration: line-through; }}
    td {{ text-align: center; padding: 4px 8px; }}
    td.today {{ background: #e8f0ff; }}
  </style>
</head>
<body>
  <h1>MindfulMoves</h1>
  <div class="muted">🔥 {streak} · {key} · {progress.completed}/{progress.total} done ({round(progress.percentage)}%)</div>
  <blockquote>“{_escape(quote.text)}” <span class="muted">~ {_escape(quote.author)}</span></blockquote>
  <h2>Habits</h2>
  <ul>{''.join(rows) if rows else '<li class="muted">No habits yet.</li>'}</ul>
  <h2>{d.strftime('%B %Y')}</h2>
  <div class="muted">Average {round(stats.average_completion)}% · Best day {round(stats.best_day)}% · Habits {stats.total_items} · Active days {stats.days_with_data}</div>
  <table>
    <tr>{''.join(f'<th>{n}</th>' for n in ('Sun', 'Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat'))}</tr>
    {''.join(grid)}
  </table>
  <footer class="muted">v{ASSET_V}</footer>
</body>
</html>"""
    return HTMLResponse(html)


# ── Habits ────────────────────────────────────────────────────


@app.get("/api/habits")
def api_list_habits(
    day: str | None = None,
    ctx: AppContext = Depends(get_context),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    """Habits for a day, each with its completion and current streak."""
    key = _day(ctx, day)
    today = ctx.habits.today()
    habits = []
    for v in ctx.habits.items_for_date(key):
        d = v.to_dict()
        d["streak"] = current_streak(v.habit.completion_dates, today)
        habits.append(d)
    return {"day": key, "editable": ctx.habits.is_editable(key), "habits": habits}


@app.post("/api/habits")
def api_create_habit(
    payload: dict[str, Any] = Body(...),
    ctx: AppContext = Depends(get_context),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    with ctx.lock:
        try:
            habit = ctx.habits.create(
                str(payload.get("name", "")),
                payload.get("description"),
                str(payload.get("emoji") or ""),
                payload.get("goalId"),
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        _refresh_widget(ctx)
    return {"ok": True, "habit": habit.to_dict()}


@app.put("/api/habits/{habit_id}")
def api_update_habit(
    habit_id: str,
    payload: dict[str, Any] = Body(...),
    ctx: AppContext = Depends(get_context),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    with ctx.lock:
        try:
            habit = ctx.habits.rename(
                habit_id,
                str(payload.get("name", "")),
                payload.get("description"),
                None if payload.get("emoji") is None else str(payload["emoji"]),
                payload.get("goalId"),
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        if habit is None:
            raise HTTPException(status_code=404, detail=f"Habit not found: {habit_id}")
        _refresh_widget(ctx)
    return {"ok": True, "habit": habit.to_dict()}


@app.post("/api/habits/reorder")
def api_reorder_habits(
    payload: dict[str, Any] = Body(...),
    ctx: AppContext = Depends(get_context),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    try:
        src, dst = int(payload["from"]), int(payload["to"])
    except (KeyError, TypeError, ValueError):
        raise HTTPException(status_code=400, detail="Expected integer 'from' and 'to'")
    with ctx.lock:
        if not ctx.habits.reorder(src, dst):
            raise HTTPException(status_code=400, detail="Index out of range")
    return {"ok": True, "order": [h.id for h in ctx.habits.habits]}


@app.post("/api/habits/{habit_id}/toggle")
def api_toggle_habit(
    habit_id: str,
    payload: dict[str, Any] = Body(default={}),
    ctx: AppContext = Depends(get_context),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    key = _day(ctx, payload.get("day"))
    with ctx.lock:
        if ctx.habits.find(habit_id) is None:
            raise HTTPException(status_code=404, detail=f"Habit not found: {habit_id}")
        habit = ctx.habits.toggle_completion(habit_id, key)
        if habit is None:
            raise HTTPException(status_code=409, detail=f"Day not editable: {key}")
        _refresh_widget(ctx)
    return {
        "ok": True,
        "day": key,
        "completed": habit.is_completed_on(key),
        "allCompleted": all_completed(ctx.habits.habits, key, ctx.habits.tz),
        "habit": habit.to_dict(),
    }


@app.delete("/api/habits/{habit_id}")
def api_delete_habit(
    habit_id: str,
    ctx: AppContext = Depends(get_context),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    with ctx.lock:
        if not ctx.habits.remove(habit_id):
            raise HTTPException(status_code=404, detail=f"Habit not found: {habit_id}")
        _refresh_widget(ctx)
    return {"ok": True, "habit_id": habit_id}


# ── Progress & calendar ───────────────────────────────────────


@app.get("/api/progress")
def api_progress(
    day: str | None = None,
    ctx: AppContext = Depends(get_context),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    key = _day(ctx, day)
    today = ctx.habits.today()
    habits = ctx.habits.habits
    return {
        "progress": daily_progress(habits, key, ctx.habits.tz).to_dict(),
        "week": [p.to_dict() for p in week_progress(habits, key, ctx.habits.tz)],
        "tasks": task_progress_for_date(ctx.tasks.tasks, key).to_dict(),
        "overallStreak": overall_streak(habits, today, ctx.habits.tz),
        "bestCurrentStreak": best_current_streak(habits, today, ctx.habits.tz),
        "allCompleted": all_completed(habits, key, ctx.habits.tz),
    }


@app.get("/api/calendar/{year}/{month}")
def api_calendar(
    year: int,
    month: int,
    ctx: AppContext = Depends(get_context),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    if not 1 <= month <= 12:
        raise HTTPException(status_code=400, detail=f"Invalid month: {month}")
    habits = ctx.habits.habits
    return {
        "year": year,
        "month": month,
        "cells": [c.to_dict() for c in calendar_cells(habits, year, month, ctx.habits.today(), ctx.habits.tz)],
        "stats": month_stats(habits, year, month, ctx.habits.tz).to_dict(),
    }


# ── Goals ─────────────────────────────────────────────────────


@app.get("/api/goals")
def api_list_goals(ctx: AppContext = Depends(get_context), username: str = Depends(get_current_user)) -> dict[str, Any]:
    return {"goals": [g.to_dict() for g in ctx.goals.goals]}


@app.post("/api/goals")
def api_create_goal(
    payload: dict[str, Any] = Body(...),
    ctx: AppContext = Depends(get_context),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    with ctx.lock:
        try:
            goal = ctx.goals.add(str(payload.get("title", "")), payload.get("description"), payload.get("why"))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    if goal is None:
        raise HTTPException(status_code=401, detail="No user configured")
    return {"ok": True, "goal": goal.to_dict()}


@app.put("/api/goals/{goal_id}")
def api_update_goal(
    goal_id: str,
    payload: dict[str, Any] = Body(...),
    ctx: AppContext = Depends(get_context),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    with ctx.lock:
        try:
            goal = ctx.goals.update(goal_id, **{k: payload[k] for k in EDITABLE_FIELDS if k in payload})
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    if goal is None:
        raise HTTPException(status_code=404, detail=f"Goal not found: {goal_id}")
    return {"ok": True, "goal": goal.to_dict()}


@app.delete("/api/goals/{goal_id}")
def api_delete_goal(goal_id: str, ctx: AppContext = Depends(get_context), username: str = Depends(get_current_user)) -> dict[str, Any]:
    with ctx.lock:
        if not ctx.goals.remove(goal_id):
            raise HTTPException(status_code=404, detail=f"Goal not found: {goal_id}")
    return {"ok": True, "goal_id": goal_id}


# ── Tasks ─────────────────────────────────────────────────────


@app.get("/api/tasks")
def api_list_tasks(
    day: str | None = None,
    ctx: AppContext = Depends(get_context),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    key = _day(ctx, day)
    tasks = []
    for t in ctx.tasks.tasks:
        d = t.to_dict()
        d["active"] = is_active_on(t, key)
        d["completed"] = key in t.completion_dates
        tasks.append(d)
    return {"day": key, "tasks": tasks}


@app.post("/api/tasks")
def api_create_task(
    payload: dict[str, Any] = Body(...),
    ctx: AppContext = Depends(get_context),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    with ctx.lock:
        task, errors = ctx.tasks.add(
            str(payload.get("name", "")),
            str(payload.get("emoji", "")),
            str(payload.get("frequency", "daily")),
            payload.get("habitId"),
        )
    if errors:
        raise HTTPException(status_code=400, detail="; ".join(errors))
    return {"ok": True, "task": task.to_dict()}


@app.post("/api/tasks/{task_id}/toggle")
def api_toggle_task(
    task_id: str,
    payload: dict[str, Any] = Body(default={}),
    ctx: AppContext = Depends(get_context),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    key = _day(ctx, payload.get("day"))
    with ctx.lock:
        task = ctx.tasks.toggle(task_id, key)
    if task is None:
        raise HTTPException(status_code=404, detail=f"Task not found: {task_id}")
    return {"ok": True, "day": key, "completed": key in task.completion_dates}


@app.delete("/api/tasks/{task_id}")
def api_delete_task(task_id: str, ctx: AppContext = Depends(get_context), username: str = Depends(get_current_user)) -> dict[str, Any]:
    with ctx.lock:
        if not ctx.tasks.remove(task_id):
            raise HTTPException(status_code=404, detail=f"Task not found: {task_id}")
    return {"ok": True, "task_id": task_id}


# ── Widget & quotes ───────────────────────────────────────────


@app.get("/api/widget")
def api_widget(ctx: AppContext = Depends(get_context), username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Snapshot rebuilt from the live store for the current day."""
    with ctx.lock:
        ctx.habits.check_rollover()
        snapshot = _refresh_widget(ctx)
    return snapshot.to_dict()


@app.get("/api/quote")
def api_quote(
    day: str | None = None,
    ctx: AppContext = Depends(get_context),
    username: str = Depends(get_current_user),
) -> dict[str, str]:
    return quote_of_the_day(_day(ctx, day)).to_dict()
