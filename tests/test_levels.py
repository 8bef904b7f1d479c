"""Tests for the level table and progression calculator."""

from questdo.levels import (
    LEVEL_TABLE,
    MAX_LEVEL,
    calculate_level,
    check_level_up,
    get_level_info,
    get_level_progress,
    get_xp_for_next_level,
    xp_for_level,
    xp_progress_in_level,
)


class TestLevelTable:
    def test_starts_at_zero(self):
        assert LEVEL_TABLE[0] == 0

    def test_strictly_increasing(self):
        for lower, upper in zip(LEVEL_TABLE, LEVEL_TABLE[1:]):
            assert lower < upper

    def test_max_level_is_table_length(self):
        assert MAX_LEVEL == len(LEVEL_TABLE) == 50

    def test_known_thresholds(self):
        assert LEVEL_TABLE[1] == 100
        assert LEVEL_TABLE[9] == 3200
        assert LEVEL_TABLE[-1] == 172700

    def test_gaps_accelerate(self):
        gaps = [b - a for a, b in zip(LEVEL_TABLE, LEVEL_TABLE[1:])]
        for smaller, larger in zip(gaps, gaps[1:]):
            assert smaller <= larger


class TestCalculateLevel:
    def test_zero_xp(self):
        assert calculate_level(0) == 1

    def test_negative_xp(self):
        assert calculate_level(-100) == 1

    def test_just_under_level_2(self):
        assert calculate_level(99) == 1

    def test_exact_thresholds_round_trip(self):
        for index, threshold in enumerate(LEVEL_TABLE):
            assert calculate_level(threshold) == index + 1

    def test_one_below_each_threshold(self):
        for index, threshold in enumerate(LEVEL_TABLE[1:], start=1):
            assert calculate_level(threshold - 1) == index

    def test_beyond_table_caps_at_max(self):
        assert calculate_level(LEVEL_TABLE[-1] * 10) == MAX_LEVEL

    def test_monotonic(self):
        previous = 1
        for xp in range(0, 180_000, 250):
            level = calculate_level(xp)
            assert level >= previous
            previous = level


class TestXpForNextLevel:
    def test_level_1(self):
        assert get_xp_for_next_level(1) == 100

    def test_level_2(self):
        assert get_xp_for_next_level(2) == 150

    def test_level_49(self):
        assert get_xp_for_next_level(49) == 172700 - 164600

    def test_max_level_returns_zero(self):
        assert get_xp_for_next_level(MAX_LEVEL) == 0

    def test_above_max_returns_zero(self):
        assert get_xp_for_next_level(MAX_LEVEL + 5) == 0


class TestLevelProgress:
    def test_start_of_level(self):
        assert get_level_progress(2, 100) == 0.0

    def test_half_way(self):
        assert get_level_progress(2, 175) == 0.5

    def test_clamped_above(self):
        assert get_level_progress(2, 10_000) == 1.0

    def test_clamped_below(self):
        assert get_level_progress(5, 0) == 0.0

    def test_max_level_is_complete(self):
        assert get_level_progress(MAX_LEVEL, LEVEL_TABLE[-1]) == 1.0

    def test_monotonic_within_level_and_resets(self):
        level = 3
        values = [get_level_progress(level, xp) for xp in range(250, 450, 10)]
        assert values == sorted(values)
        assert get_level_progress(calculate_level(450), 450) == 0.0


class TestXpProgressInLevel:
    def test_zero(self):
        assert xp_progress_in_level(0) == (0, 100)

    def test_mid_level(self):
        assert xp_progress_in_level(300) == (50, 200)

    def test_max_level(self):
        assert xp_progress_in_level(LEVEL_TABLE[-1] + 42) == (42, 0)

    def test_xp_for_level_clamps(self):
        assert xp_for_level(0) == 0
        assert xp_for_level(2) == 100
        assert xp_for_level(99) == LEVEL_TABLE[-1]


class TestCheckLevelUp:
    def test_no_level_up(self):
        result = check_level_up(1, 0, 50)
        assert result.did_level_up is False
        assert result.new_level == 1
        assert result.new_title is None

    def test_level_up_without_title_change(self):
        result = check_level_up(1, 90, 20)
        assert result.did_level_up is True
        assert result.new_level == 2
        assert result.new_title is None
        assert result.previous_title is None

    def test_level_up_with_title_change(self):
        result = check_level_up(4, 650, 100)
        assert result.new_level == 5
        assert result.new_title == "Diligent Doer"
        assert result.previous_title == "Novice Adventurer"

    def test_korean_titles(self):
        result = check_level_up(4, 650, 100, locale="ko")
        assert result.new_title == "성실한 실행자"

    def test_multi_level_jump(self):
        result = check_level_up(1, 0, 3200)
        assert result.new_level == 10
        assert result.previous_level == 1
        assert result.new_title == "Task Warrior"


class TestLevelInfo:
    def test_regular_level(self):
        info = get_level_info(2, 175)
        assert info.progress == 0.5
        assert info.progress_percent == 50
        assert info.xp_for_next == 150
        assert info.is_max_level is False

    def test_max_level(self):
        info = get_level_info(MAX_LEVEL, 200_000)
        assert info.progress == 1.0
        assert info.xp_for_next == 0
        assert info.is_max_level is True
