"""Tests for the XP reward rules."""

from datetime import date, datetime, timezone

from questdo.xp import (
    HABIT_STREAK_BONUSES,
    XP_BASE_HABIT,
    XP_BASE_TASK,
    XP_RULES,
    TaskCompletion,
    all_today_bonus_xp,
    calculate_habit_xp,
    calculate_task_xp,
    is_valid_amount,
)

NOW = datetime(2024, 3, 10, 12, 0)


class TestTaskXp:
    def test_plain_task(self):
        assert calculate_task_xp(TaskCompletion(), now=NOW) == XP_BASE_TASK

    def test_urgent(self):
        assert calculate_task_xp(TaskCompletion(priority="urgent"), now=NOW) == 15

    def test_high_priority_has_no_bonus(self):
        assert calculate_task_xp(TaskCompletion(priority="high"), now=NOW) == 10

    def test_early_completion(self):
        task = TaskCompletion(due_date=datetime(2024, 3, 11, 9, 0))
        assert calculate_task_xp(task, now=NOW) == 15

    def test_late_completion(self):
        task = TaskCompletion(due_date=datetime(2024, 3, 9, 9, 0))
        assert calculate_task_xp(task, now=NOW) == 10

    def test_due_date_as_date(self):
        assert calculate_task_xp(TaskCompletion(due_date=date(2024, 3, 11)), now=NOW) == 15
        assert calculate_task_xp(TaskCompletion(due_date=date(2024, 3, 10)), now=NOW) == 10

    def test_timezone_aware_due_date(self):
        due = datetime(2024, 3, 10, 13, 0, tzinfo=timezone.utc)
        now = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)
        assert calculate_task_xp(TaskCompletion(due_date=due), now=now) == 15

    def test_all_subtasks_done(self):
        task = TaskCompletion(subtasks_total=3, subtasks_done=3)
        assert calculate_task_xp(task, now=NOW) == 13

    def test_partial_subtasks(self):
        task = TaskCompletion(subtasks_total=3, subtasks_done=2)
        assert calculate_task_xp(task, now=NOW) == 10

    def test_no_subtasks_no_bonus(self):
        task = TaskCompletion(subtasks_total=0, subtasks_done=0)
        assert calculate_task_xp(task, now=NOW) == 10

    def test_negative_subtasks_treated_as_zero(self):
        task = TaskCompletion(subtasks_total=-2, subtasks_done=-5)
        assert calculate_task_xp(task, now=NOW) == 10

    def test_all_bonuses(self):
        task = TaskCompletion(
            priority="urgent",
            due_date=datetime(2024, 3, 12),
            subtasks_total=2,
            subtasks_done=2,
        )
        assert calculate_task_xp(task, now=NOW) == 23

    def test_all_today_bonus(self):
        assert all_today_bonus_xp() == 20


class TestHabitXp:
    def test_base(self):
        assert calculate_habit_xp(1) == XP_BASE_HABIT

    def test_milestones(self):
        assert calculate_habit_xp(7) == 20
        assert calculate_habit_xp(30) == 55
        assert calculate_habit_xp(100) == 205

    def test_no_bonus_past_milestone(self):
        assert calculate_habit_xp(8) == 5
        assert calculate_habit_xp(31) == 5

    def test_negative_streak(self):
        assert calculate_habit_xp(-7) == 5

    def test_rules_table_matches_constants(self):
        assert XP_RULES["habit_base"] == XP_BASE_HABIT
        assert XP_RULES["streak_30_bonus"] == HABIT_STREAK_BONUSES[30]


class TestValidAmount:
    def test_positive_values(self):
        assert is_valid_amount(1)
        assert is_valid_amount(2.5)

    def test_rejects_non_positive(self):
        assert not is_valid_amount(0)
        assert not is_valid_amount(-10)

    def test_rejects_non_finite(self):
        assert not is_valid_amount(float("nan"))
        assert not is_valid_amount(float("inf"))

    def test_rejects_other_types(self):
        assert not is_valid_amount(True)
        assert not is_valid_amount("10")
        assert not is_valid_amount(None)
