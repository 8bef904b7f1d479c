"""Level titles per locale."""

from __future__ import annotations

DEFAULT_LOCALE = "en"

# Sparse threshold level -> title. A title holds until the next threshold.
TITLES: dict[str, dict[int, str]] = {
    "ko": {
        1: "초보 모험가",
        5: "성실한 실행자",
        10: "할 일 전사",
        15: "습관의 달인",
        20: "생산성 마법사",
        25: "퀘스트 마스터",
        30: "시간의 지배자",
        35: "불굴의 챔피언",
        40: "전설의 영웅",
        45: "궁극의 도전자",
        50: "완료의 신",
    },
    "en": {
        1: "Novice Adventurer",
        5: "Diligent Doer",
        10: "Task Warrior",
        15: "Habit Expert",
        20: "Productivity Wizard",
        25: "Quest Master",
        30: "Time Lord",
        35: "Indomitable Champion",
        40: "Legendary Hero",
        45: "Ultimate Challenger",
        50: "God of Completion",
    },
}


def title_thresholds(locale: str = DEFAULT_LOCALE) -> dict[int, str]:
    """Return the threshold table for a locale, falling back to the default."""
    return TITLES.get(locale) or TITLES[DEFAULT_LOCALE]


def get_title_for_level(level: int, locale: str = DEFAULT_LOCALE) -> str:
    """Title of the highest threshold <= level, or the lowest title as fallback."""
    titles = title_thresholds(locale)
    for threshold in sorted(titles, reverse=True):
        if level >= threshold:
            return titles[threshold]
    return titles[min(titles)]


def next_title(level: int, locale: str = DEFAULT_LOCALE) -> tuple[int, str] | None:
    """Return (threshold_level, title) of the next title above `level`, or None."""
    titles = title_thresholds(locale)
    for threshold in sorted(titles):
        if threshold > level:
            return (threshold, titles[threshold])
    return None
