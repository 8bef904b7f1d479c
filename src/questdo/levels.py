"""Level table and progression calculation. Pure functions, no side effects."""

from __future__ import annotations

from dataclasses import dataclass

from questdo.titles import DEFAULT_LOCALE, get_title_for_level

# Minimum cumulative XP for each level (index 0 = level 1).
LEVEL_TABLE: tuple[int, ...] = (
    0, 100, 250, 450, 700,
    1000, 1400, 1900, 2500, 3200,
    4000, 4900, 5900, 7000, 8200,
    9500, 11000, 12700, 14600, 16700,
    19000, 21500, 24200, 27100, 30200,
    33500, 37000, 40700, 44600, 48700,
    53000, 57500, 62200, 67100, 72200,
    77500, 83000, 88700, 94600, 100700,
    107000, 113500, 120200, 127100, 134200,
    141500, 149000, 156700, 164600, 172700,
)

MAX_LEVEL = len(LEVEL_TABLE)


@dataclass
class LevelUpResult:
    new_level: int
    previous_level: int
    did_level_up: bool
    new_title: str | None  # only set when the title changed
    previous_title: str | None


@dataclass
class LevelInfo:
    level: int
    progress: float  # 0.0 to 1.0
    xp_for_next: int
    progress_percent: int
    is_max_level: bool


def _clamp_level(level: int) -> int:
    return max(1, min(level, MAX_LEVEL))


def xp_for_level(level: int) -> int:
    """Cumulative XP needed to reach a level (0 for level 1 and below)."""
    return LEVEL_TABLE[_clamp_level(level) - 1]


def calculate_level(total_xp: float) -> int:
    """Given total XP, return the highest level whose threshold is reached (1-50)."""
    for index in range(MAX_LEVEL - 1, -1, -1):
        if total_xp >= LEVEL_TABLE[index]:
            return index + 1
    return 1


def get_xp_for_next_level(level: int) -> int:
    """XP between this level's threshold and the next. 0 at max level."""
    if level >= MAX_LEVEL:
        return 0
    level = _clamp_level(level)
    return LEVEL_TABLE[level] - LEVEL_TABLE[level - 1]


def get_level_progress(level: int, total_xp: float) -> float:
    """Fraction of the way from `level` to the next one, clamped to [0, 1]."""
    if level >= MAX_LEVEL:
        return 1.0
    level = _clamp_level(level)
    floor_xp = LEVEL_TABLE[level - 1]
    ceiling_xp = LEVEL_TABLE[level]
    progress = (total_xp - floor_xp) / (ceiling_xp - floor_xp)
    return max(0.0, min(1.0, progress))


def xp_progress_in_level(total_xp: int) -> tuple[int, int]:
    """Return (current_xp_in_level, xp_needed_for_next_level).

    If at max level, returns (xp_past_last_threshold, 0).
    """
    level = calculate_level(total_xp)
    xp_in_level = max(0, total_xp - xp_for_level(level))
    return (xp_in_level, get_xp_for_next_level(level))


def check_level_up(
    current_level: int,
    current_total_xp: int,
    added_xp: int,
    locale: str = DEFAULT_LOCALE,
) -> LevelUpResult:
    """Re-derive the level after adding XP and report title changes."""
    new_level = calculate_level(current_total_xp + added_xp)
    previous_title = get_title_for_level(current_level, locale)
    new_title = get_title_for_level(new_level, locale)
    title_changed = previous_title != new_title
    return LevelUpResult(
        new_level=new_level,
        previous_level=current_level,
        did_level_up=new_level > current_level,
        new_title=new_title if title_changed else None,
        previous_title=previous_title if title_changed else None,
    )


def get_level_info(level: int, total_xp: int) -> LevelInfo:
    progress = get_level_progress(level, total_xp)
    return LevelInfo(
        level=level,
        progress=progress,
        xp_for_next=get_xp_for_next_level(level),
        progress_percent=round(progress * 100),
        is_max_level=level >= MAX_LEVEL,
    )
