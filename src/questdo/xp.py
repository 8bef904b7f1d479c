"""XP reward rules for questdo.

Pure functions that turn a completed task or a habit check into an XP amount.
All calculations use integers.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, time

# Task rewards
XP_BASE_TASK = 10
XP_BONUS_EARLY = 5
XP_BONUS_URGENT = 5
XP_BONUS_SUBTASKS = 3
XP_BONUS_ALL_TODAY = 20

# Habit rewards
XP_BASE_HABIT = 5

# Habit streak milestones (exact streak day -> bonus)
HABIT_STREAK_BONUSES: dict[int, int] = {
    7: 15,
    30: 50,
    100: 200,
}

PRIORITIES = ("urgent", "high", "medium", "low")


@dataclass
class TaskCompletion:
    """The parts of a task that affect its XP reward."""

    priority: str = "medium"
    due_date: datetime | date | None = None
    subtasks_total: int = 0
    subtasks_done: int = 0


def _clamp_non_negative(value: int) -> int:
    """Treat negative values as 0."""
    return max(0, value)


def _as_datetime(value: datetime | date) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def is_valid_amount(amount: object) -> bool:
    """True for a finite, positive int or float."""
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        return False
    return math.isfinite(amount) and amount > 0


def calculate_task_xp(task: TaskCompletion, now: datetime | None = None) -> int:
    """XP for completing a task.

    1. Base XP_BASE_TASK.
    2. +XP_BONUS_EARLY when completed before the due date.
    3. +XP_BONUS_URGENT for urgent priority.
    4. +XP_BONUS_SUBTASKS when the task has subtasks and all are done.
    """
    now = now or datetime.now()
    xp = XP_BASE_TASK

    if task.due_date is not None:
        due = _as_datetime(task.due_date)
        if due.tzinfo is not None and now.tzinfo is None:
            now = now.astimezone()
        elif due.tzinfo is None and now.tzinfo is not None:
            due = due.replace(tzinfo=now.tzinfo)
        if now < due:
            xp += XP_BONUS_EARLY

    if task.priority == "urgent":
        xp += XP_BONUS_URGENT

    total = _clamp_non_negative(task.subtasks_total)
    done = _clamp_non_negative(task.subtasks_done)
    if total > 0 and done >= total:
        xp += XP_BONUS_SUBTASKS

    return xp


def all_today_bonus_xp() -> int:
    """Bonus for finishing every task due today."""
    return XP_BONUS_ALL_TODAY


def calculate_habit_xp(streak: int) -> int:
    """XP for a habit check. Milestone bonuses only on the exact streak day."""
    streak = _clamp_non_negative(streak)
    return XP_BASE_HABIT + HABIT_STREAK_BONUSES.get(streak, 0)


XP_RULES: dict[str, int] = {
    "task_base": XP_BASE_TASK,
    "early_bonus": XP_BONUS_EARLY,
    "urgent_bonus": XP_BONUS_URGENT,
    "subtasks_bonus": XP_BONUS_SUBTASKS,
    "all_today_bonus": XP_BONUS_ALL_TODAY,
    "habit_base": XP_BASE_HABIT,
    "streak_7_bonus": HABIT_STREAK_BONUSES[7],
    "streak_30_bonus": HABIT_STREAK_BONUSES[30],
    "streak_100_bonus": HABIT_STREAK_BONUSES[100],
}
