"""User aggregate records shared by the engine and the stores."""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from questdo.levels import calculate_level
from questdo.titles import DEFAULT_LOCALE, get_title_for_level


@dataclass(frozen=True)
class UserStats:
    total_completed: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    total_habit_checks: int = 0
    last_streak_date: str = ""  # YYYY-MM-DD of the last counted streak day


@dataclass(frozen=True)
class UserProgression:
    level: int = 1
    xp: int = 0
    total_xp: int = 0
    title: str = ""


@dataclass(frozen=True)
class UserRecord:
    """Persisted user aggregate. `version` increases by one on every write."""

    user_id: str
    progression: UserProgression = field(default_factory=UserProgression)
    stats: UserStats = field(default_factory=UserStats)
    badges: tuple[str, ...] = ()
    version: int = 0

    def with_changes(self, **changes) -> UserRecord:
        return replace(self, **changes)


def new_user(user_id: str, locale: str = DEFAULT_LOCALE) -> UserRecord:
    """Blank record for a first-time user at level 1."""
    return UserRecord(
        user_id=user_id,
        progression=UserProgression(
            level=calculate_level(0),
            title=get_title_for_level(1, locale),
        ),
    )
