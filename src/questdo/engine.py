"""Gamification orchestrator for questdo.

Awards XP, re-derives the level, grants badges and persists the result.
Awards for one user run strictly one after another: an in-process
`asyncio.Lock` per user id, plus a compare-and-swap on the record version so
writers in other processes cannot cause lost updates either.

Celebrations are handed to the presenter only after the write is confirmed.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import math
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any, TypeVar

from questdo.badges import BADGES, BadgeDef, check_new_badges
from questdo.db import TASK_STREAM, habit_stream
from questdo.errors import ConcurrentUpdateError, PersistenceError
from questdo.levels import calculate_level
from questdo.models import UserRecord, UserStats
from questdo.store import UserStore
from questdo.streaks import (
    advance_daily_streak,
    calculate_streak,
    expire_daily_streak,
    get_today_string,
)
from questdo.titles import DEFAULT_LOCALE, get_title_for_level
from questdo.xp import TaskCompletion, all_today_bonus_xp, calculate_habit_xp, calculate_task_xp, is_valid_amount

logger = logging.getLogger(__name__)

T = TypeVar("T")

StatsUpdate = Callable[[UserStats], UserStats]


@dataclass
class LevelUp:
    level: int
    new_title: str | None  # None when the level changed but the title did not


@dataclass
class GamificationEvent:
    xp_gained: int | None = None
    level_up: LevelUp | None = None
    badges_unlocked: list[BadgeDef] = field(default_factory=list)

    @property
    def badge_unlocked(self) -> BadgeDef | None:
        """First badge unlocked by this award (the one the badge modal shows)."""
        return self.badges_unlocked[0] if self.badges_unlocked else None

    @property
    def is_empty(self) -> bool:
        return self.xp_gained is None and self.level_up is None and not self.badges_unlocked


@dataclass
class AwardOutcome:
    record: UserRecord
    event: GamificationEvent
    badge_xp: int = 0


@dataclass(frozen=True)
class CelebrationDelays:
    """Seconds from the XP toast until each follow-up celebration."""

    level_up: float = 1.6
    badge: float = 1.6
    badge_after_level_up: float = 4.0

    @classmethod
    def from_config(cls, raw: dict | None) -> CelebrationDelays:
        raw = raw or {}
        default = cls()
        return cls(
            level_up=float(raw.get("level_up", default.level_up)),
            badge=float(raw.get("badge", default.badge)),
            badge_after_level_up=float(raw.get("badge_after_level_up", default.badge_after_level_up)),
        )


@dataclass
class Celebration:
    kind: str  # "xp", "level_up" or "badge"
    delay: float
    payload: Any


Presenter = Callable[[list[Celebration]], Awaitable[None] | None]


@dataclass
class HabitToggleResult:
    habit_id: str
    checked: bool
    habit_streak: int
    event: GamificationEvent


def build_celebrations(
    event: GamificationEvent, delays: CelebrationDelays | None = None
) -> list[Celebration]:
    """Order the celebrations for one award: XP toast, level-up, then badges."""
    delays = delays or CelebrationDelays()
    sequence: list[Celebration] = []
    if event.xp_gained:
        sequence.append(Celebration("xp", 0.0, event.xp_gained))
    if event.level_up is not None:
        sequence.append(Celebration("level_up", delays.level_up, event.level_up))
    if event.badges_unlocked:
        delay = delays.badge_after_level_up if event.level_up is not None else delays.badge
        for badge in event.badges_unlocked:
            sequence.append(Celebration("badge", delay, badge))
    return sequence


def compute_award(
    record: UserRecord,
    amount: int,
    locale: str = DEFAULT_LOCALE,
    catalog: list[BadgeDef] | None = None,
) -> AwardOutcome:
    """Apply `amount` XP to `record` and return the proposed record and event.

    The level is always re-derived from total XP. Badge rewards can push the
    user over another threshold, which can unlock a level badge in turn, so
    level and badge checks repeat until nothing changes.
    """
    catalog = BADGES if catalog is None else catalog
    progression = record.progression
    previous_level = calculate_level(progression.total_xp)

    total_xp = progression.total_xp + amount
    xp = progression.xp + amount
    level = calculate_level(total_xp)

    earned = list(record.badges)
    unlocked: list[BadgeDef] = []
    badge_xp = 0
    while True:
        result = check_new_badges(record.stats, level, earned, catalog)
        if not result.new_badges:
            break
        unlocked.extend(result.new_badges)
        earned.extend(b.id for b in result.new_badges)
        total_xp += result.total_xp_reward
        xp += result.total_xp_reward
        badge_xp += result.total_xp_reward
        next_level = calculate_level(total_xp)
        if next_level == level:
            break
        level = next_level

    title = get_title_for_level(level, locale)
    level_up = None
    if level > previous_level:
        previous_title = get_title_for_level(previous_level, locale)
        level_up = LevelUp(level=level, new_title=title if title != previous_title else None)

    proposed = record.with_changes(
        progression=replace(progression, level=level, xp=xp, total_xp=total_xp, title=title),
        badges=tuple(earned),
    )
    event = GamificationEvent(xp_gained=amount, level_up=level_up, badges_unlocked=unlocked)
    return AwardOutcome(record=proposed, event=event, badge_xp=badge_xp)


class GamificationEngine:
    """Coordinates XP awards, level-ups and badge unlocks for users in a store."""

    def __init__(
        self,
        store: UserStore,
        locale: str = DEFAULT_LOCALE,
        presenter: Presenter | None = None,
        catalog: list[BadgeDef] | None = None,
        delays: CelebrationDelays | None = None,
        max_retries: int = 5,
    ) -> None:
        self.store = store
        self.locale = locale
        self.presenter = presenter
        self.catalog = BADGES if catalog is None else catalog
        self.delays = delays or CelebrationDelays()
        self.max_retries = max_retries
        self._locks: dict[str, asyncio.Lock] = {}
        self._snapshots: dict[str, UserRecord] = {}

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        return self._locks.setdefault(user_id, asyncio.Lock())

    def snapshot(self, user_id: str) -> UserRecord | None:
        """Last record this engine confirmed as written for the user."""
        return self._snapshots.get(user_id)

    async def get_user(self, user_id: str) -> UserRecord:
        return await self.store.load_or_create(user_id)

    async def _transact(
        self, user_id: str, compute: Callable[[UserRecord], tuple[UserRecord, T]]
    ) -> tuple[UserRecord, T]:
        """Read, compute, compare-and-swap; redo on version conflicts.

        Caller must hold the user's lock.
        """
        extra: T | None = None
        for attempt in range(self.max_retries + 1):
            current = await self.store.load_or_create(user_id)
            proposed, extra = compute(current)
            try:
                saved = await self.store.save(proposed, current.version)
            except PersistenceError as exc:
                if exc.outcome is None:
                    exc.outcome = extra
                raise
            if saved:
                committed = replace(proposed, version=current.version + 1)
                self._snapshots[user_id] = committed
                return committed, extra
            logger.info("Version conflict for user %s (attempt %d), retrying", user_id, attempt + 1)
        raise ConcurrentUpdateError(
            f"User {user_id!r} changed concurrently {self.max_retries + 1} times", outcome=extra
        )

    async def _award(
        self, user_id: str, amount: int, update_stats: StatsUpdate | None
    ) -> AwardOutcome:
        def compute(current: UserRecord) -> tuple[UserRecord, AwardOutcome]:
            if update_stats is not None:
                current = current.with_changes(stats=update_stats(current.stats))
            outcome = compute_award(current, amount, self.locale, self.catalog)
            return outcome.record, outcome

        committed, outcome = await self._transact(user_id, compute)
        outcome.record = committed

        event = outcome.event
        if event.level_up is not None:
            logger.info("User %s reached level %d", user_id, event.level_up.level)
        for badge in event.badges_unlocked:
            logger.info("User %s unlocked badge %s (+%d XP)", user_id, badge.id, badge.xp_reward)
        return outcome

    async def _present(self, event: GamificationEvent) -> None:
        if self.presenter is None or event.is_empty:
            return
        result = self.presenter(build_celebrations(event, self.delays))
        if inspect.isawaitable(result):
            await result

    async def award_xp(
        self, user_id: str, amount: float, update_stats: StatsUpdate | None = None
    ) -> GamificationEvent:
        """Award XP to a user, persist, then present the celebrations.

        Amounts that are not finite positive numbers are ignored and produce
        an empty event. `update_stats` is applied to the freshly read stats in
        the same write. Raises PersistenceError if the write fails; nothing is
        presented in that case.
        """
        if not is_valid_amount(amount) or math.floor(amount) <= 0:
            logger.warning("Ignoring invalid XP amount %r for user %s", amount, user_id)
            return GamificationEvent()

        async with self._lock_for(user_id):
            outcome = await self._award(user_id, math.floor(amount), update_stats)
        await self._present(outcome.event)
        return outcome.event

    async def update_stats(self, user_id: str, update_stats: StatsUpdate) -> UserRecord:
        """Stats-only write with the same serialization rules as award_xp."""
        async with self._lock_for(user_id):
            committed, _ = await self._transact(
                user_id,
                lambda current: (current.with_changes(stats=update_stats(current.stats)), None),
            )
        return committed

    async def refresh_streak(self, user_id: str, today: str | date | None = None) -> UserRecord:
        """Zero the daily streak if the user missed yesterday. No-op otherwise."""
        async with self._lock_for(user_id):
            current = await self.store.load_or_create(user_id)
            if expire_daily_streak(current.stats, today) == current.stats:
                return current
            committed, _ = await self._transact(
                user_id,
                lambda rec: (rec.with_changes(stats=expire_daily_streak(rec.stats, today)), None),
            )
        logger.info("Streak for user %s expired", user_id)
        return committed

    async def complete_task(
        self,
        user_id: str,
        task: TaskCompletion,
        now: datetime | None = None,
        all_done_today: bool = False,
    ) -> GamificationEvent:
        """Count a completed task toward stats and streak, then award its XP."""
        now = now or datetime.now()
        today = get_today_string(now)
        amount = calculate_task_xp(task, now)
        if all_done_today:
            amount += all_today_bonus_xp()

        def bump(stats: UserStats) -> UserStats:
            stats = replace(stats, total_completed=stats.total_completed + 1)
            return advance_daily_streak(stats, today)

        async with self._lock_for(user_id):
            added = await self.store.add_completion(user_id, TASK_STREAM, today)
            try:
                outcome = await self._award(user_id, amount, bump)
            except PersistenceError:
                if added:
                    await self.store.remove_completion(user_id, TASK_STREAM, today)
                raise
        await self._present(outcome.event)
        return outcome.event

    async def toggle_habit(
        self, user_id: str, habit_id: str, today: str | date | None = None
    ) -> HabitToggleResult:
        """Check the habit for today, or uncheck it if already checked.

        A check awards habit XP based on the habit's streak after the check.
        An uncheck only lowers the check count; XP already earned is kept.
        """
        today_str = get_today_string(today)
        stream = habit_stream(habit_id)

        async with self._lock_for(user_id):
            dates = await self.store.completion_dates(user_id, stream)
            if today_str in dates:
                await self.store.remove_completion(user_id, stream, today_str)
                remaining = [d for d in dates if d != today_str]

                def uncheck(stats: UserStats) -> UserStats:
                    return replace(stats, total_habit_checks=max(0, stats.total_habit_checks - 1))

                try:
                    await self._transact(user_id, lambda rec: (rec.with_changes(stats=uncheck(rec.stats)), None))
                except PersistenceError:
                    await self.store.add_completion(user_id, stream, today_str)
                    raise
                return HabitToggleResult(
                    habit_id=habit_id,
                    checked=False,
                    habit_streak=calculate_streak(remaining, today_str),
                    event=GamificationEvent(),
                )

            await self.store.add_completion(user_id, stream, today_str)
            habit_streak = calculate_streak([*dates, today_str], today_str)

            def check(stats: UserStats) -> UserStats:
                stats = replace(stats, total_habit_checks=stats.total_habit_checks + 1)
                return advance_daily_streak(stats, today_str)

            try:
                outcome = await self._award(user_id, calculate_habit_xp(habit_streak), check)
            except PersistenceError:
                await self.store.remove_completion(user_id, stream, today_str)
                raise

        await self._present(outcome.event)
        return HabitToggleResult(
            habit_id=habit_id, checked=True, habit_streak=habit_streak, event=outcome.event
        )
