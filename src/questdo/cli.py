"""CLI commands for questdo."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import date, datetime
from pathlib import Path

from rich.logging import RichHandler

from questdo.badges import BADGES, BadgeDef, get_next_achievable_badges, load_catalog
from questdo.config import (
    DEFAULTS,
    get_badge_catalog_path,
    get_db_path,
    get_setting,
    load_config,
    set_setting,
)
from questdo.db import Database, habit_stream
from questdo.display import (
    console,
    make_presenter,
    print_badges,
    print_config,
    print_dashboard,
    print_error,
    print_habit_result,
    print_streak_calendar,
)
from questdo.engine import CelebrationDelays, GamificationEngine, GamificationEvent
from questdo.errors import QuestDoError
from questdo.levels import xp_progress_in_level
from questdo.models import UserRecord
from questdo.store import SqliteUserStore
from questdo.streaks import calculate_longest_streak, calculate_streak, get_recent_days, get_today_string
from questdo.titles import next_title
from questdo.xp import PRIORITIES, TaskCompletion

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    parser = argparse.ArgumentParser(
        prog="questdo",
        description="Level up by finishing tasks and keeping habits",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Show debug logging")
    parser.add_argument("--config", default=None, help="Path to config.json")
    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("dashboard", help="Show level, XP and streaks")
    subparsers.add_parser("badges", help="List all badges with progress")

    task_parser = subparsers.add_parser("task", help="Record a completed task")
    task_parser.add_argument("--priority", "-p", choices=PRIORITIES, default="medium")
    task_parser.add_argument("--due", type=date.fromisoformat, default=None, help="Due date (YYYY-MM-DD)")
    task_parser.add_argument("--subtasks", default=None, help="Completed/total subtasks, e.g. 3/3")
    task_parser.add_argument("--all-done", action="store_true", help="This was the last task due today")

    habit_parser = subparsers.add_parser("habit", help="Check habits and view streaks")
    habit_sub = habit_parser.add_subparsers(dest="habit_command")
    check_p = habit_sub.add_parser("check", help="Check a habit for today")
    check_p.add_argument("name")
    uncheck_p = habit_sub.add_parser("uncheck", help="Undo today's check")
    uncheck_p.add_argument("name")
    cal_p = habit_sub.add_parser("calendar", help="Show a habit's recent days")
    cal_p.add_argument("name")
    cal_p.add_argument("--days", type=int, default=28)

    config_parser = subparsers.add_parser("config", help="Show or change settings")
    config_parser.add_argument("key", nargs="?", default=None, choices=sorted(DEFAULTS))
    config_parser.add_argument("value", nargs="?", default=None)
    return parser


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _parse_subtasks(raw: str | None) -> tuple[int, int]:
    """Parse 'done/total' into (done, total). Missing or invalid -> (0, 0)."""
    if not raw:
        return (0, 0)
    try:
        done, total = raw.split("/", 1)
        return (int(done), int(total))
    except ValueError:
        logger.warning("Ignoring malformed --subtasks value %r", raw)
        return (0, 0)


def _load_catalog(config_path: Path | None) -> list[BadgeDef]:
    path = get_badge_catalog_path(config_path)
    return load_catalog(path) if path else BADGES


def build_engine(config_path: Path | None = None) -> tuple[GamificationEngine, Database]:
    """Wire database, store, presenter and engine from configuration."""
    locale = get_setting("language", config_path)
    db = Database(db_path=get_db_path(config_path))
    engine = GamificationEngine(
        SqliteUserStore(db, locale=locale),
        locale=locale,
        presenter=make_presenter(locale, animate=bool(get_setting("animate", config_path))),
        catalog=_load_catalog(config_path),
        delays=CelebrationDelays.from_config(get_setting("celebration_delays", config_path)),
    )
    return engine, db


def collect_dashboard(record: UserRecord, locale: str, catalog: list[BadgeDef]) -> dict:
    """Build the dashboard dict from a user record."""
    progression, stats = record.progression, record.stats
    xp_in_level, xp_for_next = xp_progress_in_level(progression.total_xp)
    hints = get_next_achievable_badges(stats, progression.level, record.badges, catalog)
    return {
        "level": progression.level,
        "title": progression.title,
        "total_xp": progression.total_xp,
        "xp_in_level": xp_in_level,
        "xp_for_next": xp_for_next,
        "next_title": next_title(progression.level, locale),
        "current_streak": stats.current_streak,
        "longest_streak": stats.longest_streak,
        "total_completed": stats.total_completed,
        "total_habit_checks": stats.total_habit_checks,
        "badges_earned": len(record.badges),
        "badges_total": len(catalog),
        "almost_there": [
            {
                "name": hint.badge.label(locale),
                "progress": hint.progress,
                "current": hint.current,
                "target": hint.badge.target,
            }
            for hint in hints
            if hint.progress < 1.0
        ],
    }


def collect_badges(record: UserRecord, locale: str, catalog: list[BadgeDef]) -> list[dict]:
    """Build the badge table rows for a user record."""
    progress = {
        hint.badge.id: hint
        for hint in get_next_achievable_badges(
            record.stats, record.progression.level, record.badges, catalog
        )
    }
    earned = set(record.badges)
    rows: list[dict] = []
    for badge in catalog:
        hint = progress.get(badge.id)
        rows.append({
            "id": badge.id,
            "name": badge.label(locale),
            "description": badge.summary(locale),
            "icon": badge.icon,
            "rarity": badge.rarity.value,
            "xp_reward": badge.xp_reward,
            "earned": badge.id in earned,
            "progress": hint.progress if hint else None,
            "current": hint.current if hint else 0,
            "target": badge.target,
        })
    return rows


async def do_dashboard(engine: GamificationEngine, user_id: str, today: str | None = None) -> dict:
    record = await engine.refresh_streak(user_id, today)
    data = collect_dashboard(record, engine.locale, engine.catalog)
    print_dashboard(data)
    return data


async def do_badges(engine: GamificationEngine, user_id: str) -> list[dict]:
    record = await engine.get_user(user_id)
    rows = collect_badges(record, engine.locale, engine.catalog)
    print_badges(rows)
    return rows


async def do_task(
    engine: GamificationEngine,
    user_id: str,
    priority: str = "medium",
    due: date | None = None,
    subtasks: str | None = None,
    all_done: bool = False,
    now: datetime | None = None,
) -> GamificationEvent:
    done, total = _parse_subtasks(subtasks)
    task = TaskCompletion(
        priority=priority,
        due_date=due,
        subtasks_total=total,
        subtasks_done=done,
    )
    return await engine.complete_task(user_id, task, now=now, all_done_today=all_done)


async def do_habit_check(
    engine: GamificationEngine, user_id: str, name: str, check: bool, today: str | None = None
) -> GamificationEvent | None:
    """Check (or uncheck) a habit for today. Returns None when nothing changed."""
    today_str = get_today_string(today)
    dates = await engine.store.completion_dates(user_id, habit_stream(name))
    if (today_str in dates) == check:
        state = "already checked" if check else "not checked"
        console.print(f"  [bold]{name}[/] is {state} today.")
        return None
    result = await engine.toggle_habit(user_id, name, today_str)
    print_habit_result(name, result.checked, result.habit_streak)
    return result.event


async def do_habit_calendar(
    engine: GamificationEngine, user_id: str, name: str, days: int = 28, today: str | None = None
) -> dict:
    dates = await engine.store.completion_dates(user_id, habit_stream(name))
    data = {
        "habit": name,
        "days": get_recent_days(max(days, 1), today),
        "checked": set(dates),
        "current_streak": calculate_streak(dates, today),
        "longest_streak": calculate_longest_streak(dates),
    }
    print_streak_calendar(data)
    return data


def do_config(key: str | None, value: str | None, config_path: Path | None = None) -> dict:
    """Show all settings, show one, or set one."""
    if key is None:
        merged = {**DEFAULTS, **load_config(config_path)}
        print_config(merged)
        return merged
    if value is None:
        current = {key: get_setting(key, config_path)}
        print_config(current)
        return current
    parsed: object = value
    if key == "animate":
        parsed = value.lower() in ("1", "true", "yes", "on")
    elif isinstance(DEFAULTS[key], dict):
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError as exc:
            raise QuestDoError(f"{key} expects a JSON object: {exc}") from exc
        if not isinstance(parsed, dict):
            raise QuestDoError(f"{key} expects a JSON object")
    set_setting(key, parsed, config_path)
    console.print(f"  Set [bold]{key}[/] = {parsed}")
    return {key: parsed}


async def _run(args: argparse.Namespace, config_path: Path | None) -> None:
    engine, db = build_engine(config_path)
    user_id = get_setting("user_id", config_path)
    command = args.command or "dashboard"
    try:
        if command == "dashboard":
            await do_dashboard(engine, user_id)
        elif command == "badges":
            await do_badges(engine, user_id)
        elif command == "task":
            await do_task(
                engine, user_id, priority=args.priority, due=args.due,
                subtasks=args.subtasks, all_done=args.all_done,
            )
        elif command == "habit":
            habit_cmd = getattr(args, "habit_command", None)
            if habit_cmd == "check":
                await do_habit_check(engine, user_id, args.name, check=True)
            elif habit_cmd == "uncheck":
                await do_habit_check(engine, user_id, args.name, check=False)
            elif habit_cmd == "calendar":
                await do_habit_calendar(engine, user_id, args.name, days=args.days)
            else:
                print_error("Usage: questdo habit {check,uncheck,calendar} NAME")
    finally:
        db.close()


def main() -> None:
    """Entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args()
    setup_logging(args.verbose)
    config_path = Path(args.config) if args.config else None

    try:
        if args.command == "config":
            do_config(args.key, args.value, config_path)
        else:
            asyncio.run(_run(args, config_path))
    except QuestDoError as exc:
        print_error(str(exc))
        sys.exit(1)
