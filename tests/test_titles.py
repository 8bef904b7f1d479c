"""Tests for level titles."""

from questdo.titles import DEFAULT_LOCALE, TITLES, get_title_for_level, next_title, title_thresholds


class TestGetTitleForLevel:
    def test_level_1(self):
        assert get_title_for_level(1) == "Novice Adventurer"

    def test_below_first_threshold_is_still_level_1_title(self):
        assert get_title_for_level(4) == "Novice Adventurer"

    def test_exact_threshold(self):
        assert get_title_for_level(5) == "Diligent Doer"

    def test_step_function_between_thresholds(self):
        assert get_title_for_level(7) == "Diligent Doer"
        assert get_title_for_level(9) == "Diligent Doer"
        assert get_title_for_level(10) == "Task Warrior"

    def test_max_level(self):
        assert get_title_for_level(50) == "God of Completion"

    def test_beyond_max(self):
        assert get_title_for_level(80) == "God of Completion"

    def test_zero_falls_back_to_lowest(self):
        assert get_title_for_level(0) == "Novice Adventurer"

    def test_korean(self):
        assert get_title_for_level(15, "ko") == "습관의 달인"

    def test_unknown_locale_uses_default(self):
        assert get_title_for_level(10, "fr") == TITLES[DEFAULT_LOCALE][10]

    def test_locales_share_thresholds(self):
        assert set(TITLES["ko"]) == set(TITLES["en"])


class TestNextTitle:
    def test_from_level_1(self):
        assert next_title(1) == (5, "Diligent Doer")

    def test_on_threshold(self):
        assert next_title(5) == (10, "Task Warrior")

    def test_none_at_top(self):
        assert next_title(50) is None

    def test_thresholds_copy_for_locale(self):
        assert title_thresholds("ko")[1] == "초보 모험가"
