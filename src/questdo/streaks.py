"""Streak tracking for questdo.

All dates are calendar-day strings (YYYY-MM-DD). Entries that fail to parse
are skipped so one bad record cannot zero a whole streak.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta

from questdo.models import UserStats

logger = logging.getLogger(__name__)


@dataclass
class StreakInfo:
    current_streak: int
    longest_streak: int
    last_active_date: str | None  # YYYY-MM-DD
    is_active_today: bool


def _parse_date(d: str) -> date:
    """Parse a YYYY-MM-DD string to a date object."""
    return date.fromisoformat(d)


def _parse_dates(dates: Iterable[str]) -> set[date]:
    parsed: set[date] = set()
    for d in dates:
        try:
            parsed.add(_parse_date(d))
        except (TypeError, ValueError):
            logger.debug("Skipping malformed completion date %r", d)
    return parsed


def _resolve_today(today: str | date | None) -> date:
    if today is None:
        return date.today()
    if isinstance(today, datetime):
        return today.date()
    if isinstance(today, date):
        return today
    return _parse_date(today)


def get_today_string(today: str | date | None = None) -> str:
    return _resolve_today(today).isoformat()


def is_today(date_str: str, today: str | date | None = None) -> bool:
    try:
        return _parse_date(date_str) == _resolve_today(today)
    except (TypeError, ValueError):
        return False


def calculate_streak(dates: Iterable[str], today: str | date | None = None) -> int:
    """Count consecutive days ending at the most recent completion.

    Rules:
    - No dates -> 0
    - The most recent date must be today or yesterday, otherwise the streak is broken
    - Walk backwards one day at a time; the first gap stops the walk
    """
    parsed = _parse_dates(dates)
    if not parsed:
        return 0

    today_date = _resolve_today(today)
    latest = max(parsed)
    if latest not in (today_date, today_date - timedelta(days=1)):
        return 0

    # Set semantics already collapse repeated days.
    streak = 0
    current = latest
    while current in parsed:
        streak += 1
        current -= timedelta(days=1)
    return streak


def calculate_longest_streak(dates: Iterable[str]) -> int:
    """Longest run of consecutive days anywhere in the history."""
    ordered = sorted(_parse_dates(dates))
    if not ordered:
        return 0

    longest = 1
    run = 1
    for prev, curr in zip(ordered, ordered[1:]):
        if (curr - prev).days == 1:
            run += 1
            longest = max(longest, run)
        else:
            run = 1
    return longest


def get_recent_days(n: int, today: str | date | None = None) -> list[str]:
    """Return the last `n` days as strings, oldest first, ending today."""
    today_date = _resolve_today(today)
    return [(today_date - timedelta(days=i)).isoformat() for i in range(n - 1, -1, -1)]


def summarize_streak(dates: Iterable[str], today: str | date | None = None) -> StreakInfo:
    """Current and longest streak plus recency details for a date set."""
    dates = list(dates)
    parsed = _parse_dates(dates)
    today_date = _resolve_today(today)
    return StreakInfo(
        current_streak=calculate_streak(dates, today_date),
        longest_streak=calculate_longest_streak(dates),
        last_active_date=max(parsed).isoformat() if parsed else None,
        is_active_today=today_date in parsed,
    )


def toggle_completion(dates: Iterable[str], day: str) -> tuple[list[str], bool]:
    """Check `day` if absent, uncheck it if present.

    Returns (new_sorted_dates, checked) where `checked` is True when the day
    was added.
    """
    current = set(dates)
    if day in current:
        current.discard(day)
        return (sorted(current), False)
    current.add(day)
    return (sorted(current), True)


def advance_daily_streak(stats: UserStats, today: str | date | None = None) -> UserStats:
    """Count today toward the user's daily streak, at most once per day.

    - Already counted today: unchanged
    - Last counted yesterday (or never): streak + 1
    - Anything older: streak restarts at 1
    """
    today_date = _resolve_today(today)
    today_str = today_date.isoformat()
    if stats.last_streak_date == today_str:
        return stats

    yesterday = (today_date - timedelta(days=1)).isoformat()
    if stats.last_streak_date in ("", yesterday):
        current = stats.current_streak + 1
    else:
        current = 1

    return replace(
        stats,
        current_streak=current,
        longest_streak=max(stats.longest_streak, current),
        last_streak_date=today_str,
    )


def expire_daily_streak(stats: UserStats, today: str | date | None = None) -> UserStats:
    """Zero the current streak if neither today nor yesterday was counted.

    `longest_streak` is never lowered.
    """
    if not stats.last_streak_date or stats.current_streak == 0:
        return stats
    today_date = _resolve_today(today)
    recent = {today_date.isoformat(), (today_date - timedelta(days=1)).isoformat()}
    if stats.last_streak_date in recent:
        return stats
    return replace(stats, current_streak=0)
