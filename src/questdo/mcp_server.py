"""MCP server for questdo.

Exposes level, badge and streak information as MCP tools.
Run via: python3 -m questdo.mcp_server
"""
from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP

from questdo.config import get_setting

mcp = FastMCP(name="questdo")


def _get_engine():
    from questdo.cli import build_engine
    return build_engine()


@mcp.tool()
async def get_progress() -> dict[str, Any]:
    """Get current level, title, XP progress and streaks."""
    engine, db = _get_engine()
    try:
        from questdo.levels import get_level_info
        record = await engine.refresh_streak(get_setting("user_id"))
        progression, stats = record.progression, record.stats
        info = get_level_info(progression.level, progression.total_xp)
        return {
            "level": progression.level,
            "title": progression.title,
            "total_xp": progression.total_xp,
            "progress_pct": info.progress_percent,
            "xp_for_next": info.xp_for_next,
            "is_max_level": info.is_max_level,
            "current_streak": stats.current_streak,
            "longest_streak": stats.longest_streak,
            "total_completed": stats.total_completed,
            "total_habit_checks": stats.total_habit_checks,
        }
    finally:
        db.close()


@mcp.tool()
async def get_badges() -> dict[str, Any]:
    """Get all badges with earned status and progress."""
    engine, db = _get_engine()
    try:
        from questdo.cli import collect_badges
        record = await engine.get_user(get_setting("user_id"))
        rows = collect_badges(record, engine.locale, engine.catalog)
        return {
            "badges": rows,
            "earned_count": sum(1 for r in rows if r["earned"]),
            "total_count": len(rows),
        }
    finally:
        db.close()


@mcp.tool()
async def get_streaks(habit: str = "", days: int = 28) -> dict[str, Any]:
    """Get current and longest streak for one habit, or across all activity.

    habit: habit name; empty means every task and habit combined.
    days: how many recent days to include in the calendar.
    """
    engine, db = _get_engine()
    try:
        from questdo.db import habit_stream
        from questdo.streaks import calculate_longest_streak, calculate_streak, get_recent_days
        stream = habit_stream(habit) if habit else None
        dates = await engine.store.completion_dates(get_setting("user_id"), stream)
        checked = set(dates)
        return {
            "habit": habit or None,
            "current_streak": calculate_streak(dates),
            "longest_streak": calculate_longest_streak(dates),
            "calendar": [{"date": d, "done": d in checked} for d in get_recent_days(max(days, 1))],
        }
    finally:
        db.close()


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    main()
