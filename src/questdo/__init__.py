"""QuestDo progression engine: XP, levels, streaks and badges."""
