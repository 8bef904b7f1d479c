"""Badge definitions and checking for questdo."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from questdo.errors import CatalogError
from questdo.models import UserStats

logger = logging.getLogger(__name__)


class Rarity(str, Enum):
    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


class ConditionType(str, Enum):
    TASK_COMPLETE = "task_complete"
    STREAK = "streak"
    HABIT_CHECK = "habit_check"
    LEVEL = "level"
    SOCIAL = "social"
    SPECIAL = "special"


@dataclass(frozen=True)
class BadgeDef:
    id: str
    name: dict[str, str]
    description: dict[str, str]
    icon: str
    rarity: Rarity
    condition_type: str  # a ConditionType value, or a type this version doesn't know
    target: float
    xp_reward: int
    category: str | None = None

    def label(self, locale: str = "en") -> str:
        return self.name.get(locale) or self.name.get("en") or self.id

    def summary(self, locale: str = "en") -> str:
        return self.description.get(locale) or self.description.get("en") or ""


@dataclass
class BadgeCheckResult:
    new_badges: list[BadgeDef] = field(default_factory=list)
    total_xp_reward: int = 0


@dataclass
class BadgeProgress:
    badge: BadgeDef
    current: float
    progress: float  # 0.0 to 1.0


def _badge(
    id: str, ko: str, en: str, desc_ko: str, desc_en: str, icon: str,
    rarity: Rarity, condition: ConditionType, target: float, xp_reward: int,
) -> BadgeDef:
    return BadgeDef(
        id=id,
        name={"ko": ko, "en": en},
        description={"ko": desc_ko, "en": desc_en},
        icon=icon,
        rarity=rarity,
        condition_type=condition.value,
        target=target,
        xp_reward=xp_reward,
    )


BADGES: list[BadgeDef] = [
    _badge("first_quest", "첫 퀘스트", "First Quest",
           "첫 번째 할 일 완료", "Complete your first task",
           "🎯", Rarity.COMMON, ConditionType.TASK_COMPLETE, 1, 10),
    _badge("task_10", "워밍업", "Warming Up",
           "할 일 10개 완료", "Complete 10 tasks",
           "✅", Rarity.COMMON, ConditionType.TASK_COMPLETE, 10, 20),
    _badge("task_50", "실행가", "Getting Things Done",
           "할 일 50개 완료", "Complete 50 tasks",
           "📋", Rarity.RARE, ConditionType.TASK_COMPLETE, 50, 50),
    _badge("task_100", "백전백승", "Centurion",
           "할 일 100개 완료", "Complete 100 tasks",
           "💯", Rarity.RARE, ConditionType.TASK_COMPLETE, 100, 100),
    _badge("task_500", "퀘스트 사냥꾼", "Quest Hunter",
           "할 일 500개 완료", "Complete 500 tasks",
           "🏹", Rarity.EPIC, ConditionType.TASK_COMPLETE, 500, 300),
    _badge("task_1000", "천 개의 퀘스트", "Thousand Quests",
           "할 일 1,000개 완료", "Complete 1,000 tasks",
           "👑", Rarity.LEGENDARY, ConditionType.TASK_COMPLETE, 1000, 1000),
    _badge("streak_3", "불씨", "Spark",
           "3일 연속 달성", "Reach a 3-day streak",
           "✨", Rarity.COMMON, ConditionType.STREAK, 3, 15),
    _badge("streak_7", "불타는 일주일", "On Fire",
           "7일 연속 달성", "Reach a 7-day streak",
           "🔥", Rarity.COMMON, ConditionType.STREAK, 7, 30),
    _badge("streak_30", "한 달의 의지", "Iron Will",
           "30일 연속 달성", "Reach a 30-day streak",
           "💪", Rarity.RARE, ConditionType.STREAK, 30, 150),
    _badge("streak_100", "백일의 기적", "Hundred Days",
           "100일 연속 달성", "Reach a 100-day streak",
           "🌟", Rarity.EPIC, ConditionType.STREAK, 100, 500),
    _badge("streak_365", "일 년의 전설", "Year of Legends",
           "365일 연속 달성", "Reach a 365-day streak",
           "🏆", Rarity.LEGENDARY, ConditionType.STREAK, 365, 2000),
    _badge("habit_1", "첫 습관", "First Habit",
           "습관 첫 체크", "Check a habit for the first time",
           "🌱", Rarity.COMMON, ConditionType.HABIT_CHECK, 1, 10),
    _badge("habit_50", "습관 형성", "Habit Former",
           "습관 50회 체크", "Check habits 50 times",
           "🌿", Rarity.RARE, ConditionType.HABIT_CHECK, 50, 50),
    _badge("habit_100", "습관 장인", "Habit Artisan",
           "습관 100회 체크", "Check habits 100 times",
           "🌳", Rarity.RARE, ConditionType.HABIT_CHECK, 100, 100),
    _badge("habit_500", "습관의 숲", "Habit Forest",
           "습관 500회 체크", "Check habits 500 times",
           "🏞️", Rarity.EPIC, ConditionType.HABIT_CHECK, 500, 400),
    _badge("level_5", "성장 중", "Rising",
           "레벨 5 달성", "Reach level 5",
           "⬆️", Rarity.COMMON, ConditionType.LEVEL, 5, 25),
    _badge("level_10", "두 자릿수", "Double Digits",
           "레벨 10 달성", "Reach level 10",
           "🔟", Rarity.RARE, ConditionType.LEVEL, 10, 75),
    _badge("level_25", "베테랑", "Veteran",
           "레벨 25 달성", "Reach level 25",
           "🎖️", Rarity.EPIC, ConditionType.LEVEL, 25, 300),
    _badge("level_50", "정점", "Summit",
           "레벨 50 달성", "Reach level 50",
           "🗻", Rarity.LEGENDARY, ConditionType.LEVEL, 50, 0),
    _badge("first_post", "첫 공유", "First Share",
           "첫 게시글 작성", "Publish your first post",
           "📣", Rarity.COMMON, ConditionType.SOCIAL, 1, 10),
    _badge("popular", "인기인", "Popular",
           "팔로워 10명 달성", "Gain 10 followers",
           "🤝", Rarity.RARE, ConditionType.SOCIAL, 10, 50),
    _badge("early_adopter", "얼리 어답터", "Early Adopter",
           "초기 사용자", "Joined during the beta",
           "🚀", Rarity.LEGENDARY, ConditionType.SPECIAL, 1, 100),
]


def _current_value(condition_type: str, stats: UserStats, level: int) -> float | None:
    """Stat value a condition is measured against, or None if never auto-granted."""
    if condition_type == ConditionType.TASK_COMPLETE.value:
        return stats.total_completed
    if condition_type == ConditionType.STREAK.value:
        return max(stats.current_streak, stats.longest_streak)
    if condition_type == ConditionType.HABIT_CHECK.value:
        return stats.total_habit_checks
    if condition_type == ConditionType.LEVEL.value:
        return level
    # social and special are granted elsewhere; unknown types never match
    return None


def check_new_badges(
    stats: UserStats,
    level: int,
    earned_ids: Iterable[str],
    catalog: list[BadgeDef] | None = None,
) -> BadgeCheckResult:
    """Return badges newly satisfied by `stats`/`level`, in catalog order.

    Already earned badges are skipped, so feeding the result's ids back in
    yields no new badges.
    """
    catalog = BADGES if catalog is None else catalog
    earned = set(earned_ids)
    new_badges: list[BadgeDef] = []
    for badge in catalog:
        if badge.id in earned:
            continue
        current = _current_value(badge.condition_type, stats, level)
        if current is not None and current >= badge.target:
            new_badges.append(badge)
    return BadgeCheckResult(
        new_badges=new_badges,
        total_xp_reward=sum(b.xp_reward for b in new_badges),
    )


def get_next_achievable_badges(
    stats: UserStats,
    level: int,
    earned_ids: Iterable[str],
    catalog: list[BadgeDef] | None = None,
) -> list[BadgeProgress]:
    """Unearned, non-special badges sorted by progress (highest first)."""
    catalog = BADGES if catalog is None else catalog
    earned = set(earned_ids)
    results: list[BadgeProgress] = []
    for badge in catalog:
        if badge.id in earned or badge.condition_type == ConditionType.SPECIAL.value:
            continue
        current = _current_value(badge.condition_type, stats, level) or 0
        progress = min(current / badge.target, 1.0) if badge.target > 0 else 0.0
        results.append(BadgeProgress(badge=badge, current=current, progress=progress))
    results.sort(key=lambda p: p.progress, reverse=True)
    return results


def get_badge_by_id(badge_id: str, catalog: list[BadgeDef] | None = None) -> BadgeDef | None:
    catalog = BADGES if catalog is None else catalog
    return next((b for b in catalog if b.id == badge_id), None)


def get_badges_by_rarity(catalog: list[BadgeDef] | None = None) -> dict[Rarity, list[BadgeDef]]:
    catalog = BADGES if catalog is None else catalog
    return {rarity: [b for b in catalog if b.rarity == rarity] for rarity in Rarity}


def load_catalog(path: Path) -> list[BadgeDef]:
    """Load a badge catalog from a JSON list of badge objects.

    Condition types this version does not know are kept as-is; the checker
    never grants them.
    """
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise CatalogError(f"Cannot read badge catalog {path}: {exc}") from exc
    if not isinstance(raw, list):
        raise CatalogError(f"Badge catalog {path} must be a JSON list")

    catalog: list[BadgeDef] = []
    seen: set[str] = set()
    for entry in raw:
        try:
            badge = BadgeDef(
                id=str(entry["id"]),
                name=dict(entry.get("name") or {"en": entry["id"]}),
                description=dict(entry.get("description") or {}),
                icon=entry.get("icon", ""),
                rarity=Rarity(entry.get("rarity", "common")),
                condition_type=str(entry["condition"]["type"]),
                target=float(entry["condition"]["target"]),
                xp_reward=max(0, int(entry.get("xp_reward", 0))),
                category=entry["condition"].get("category"),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise CatalogError(f"Invalid badge entry in {path}: {entry!r}") from exc
        if badge.id in seen:
            raise CatalogError(f"Duplicate badge id {badge.id!r} in {path}")
        if badge.condition_type not in {c.value for c in ConditionType}:
            logger.info("Badge %s uses unknown condition type %r", badge.id, badge.condition_type)
        seen.add(badge.id)
        catalog.append(badge)
    return catalog
