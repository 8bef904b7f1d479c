"""Async user stores used by the gamification engine.

A store hands out versioned `UserRecord` snapshots and accepts a write only
if the caller's snapshot is still current (compare-and-swap on `version`).
"""

from __future__ import annotations

import asyncio
import sqlite3
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import replace
from typing import Any, TypeVar

from questdo.db import Database
from questdo.errors import PersistenceError
from questdo.models import UserRecord, new_user
from questdo.titles import DEFAULT_LOCALE

T = TypeVar("T")


class UserStore(ABC):
    """Persistence collaborator for user progression and completion dates."""

    locale: str = DEFAULT_LOCALE

    @abstractmethod
    async def load(self, user_id: str) -> UserRecord | None:
        """Return the stored record, or None."""

    @abstractmethod
    async def create(self, record: UserRecord) -> bool:
        """Insert a new record. False if the id is taken."""

    @abstractmethod
    async def save(self, record: UserRecord, expected_version: int) -> bool:
        """Write `record` if the stored version equals `expected_version`."""

    @abstractmethod
    async def add_completion(self, user_id: str, stream: str, day: str) -> bool:
        ...

    @abstractmethod
    async def remove_completion(self, user_id: str, stream: str, day: str) -> bool:
        ...

    @abstractmethod
    async def completion_dates(self, user_id: str, stream: str | None = None) -> list[str]:
        """Days for one stream, or the distinct days across all streams."""

    async def load_or_create(self, user_id: str) -> UserRecord:
        record = await self.load(user_id)
        if record is not None:
            return record
        await self.create(new_user(user_id, self.locale))
        record = await self.load(user_id)
        if record is None:
            raise PersistenceError(f"User {user_id!r} vanished right after creation")
        return record


class SqliteUserStore(UserStore):
    """UserStore backed by the SQLite `Database`.

    Each call runs in a worker thread so a busy database does not block the
    event loop. Calls are serialized on the single connection.
    """

    def __init__(self, db: Database, locale: str = DEFAULT_LOCALE) -> None:
        self.db = db
        self.locale = locale
        self._conn_lock = threading.Lock()

    async def _call(self, fn: Callable[..., T], *args: Any) -> T:
        def locked() -> T:
            with self._conn_lock:
                return fn(*args)

        return await asyncio.to_thread(locked)

    async def load(self, user_id: str) -> UserRecord | None:
        try:
            return await self._call(self.db.get_user, user_id)
        except sqlite3.Error as exc:
            raise PersistenceError(f"Cannot read user {user_id!r}: {exc}") from exc

    async def create(self, record: UserRecord) -> bool:
        try:
            return await self._call(self.db.create_user, record)
        except sqlite3.Error as exc:
            raise PersistenceError(f"Cannot create user {record.user_id!r}: {exc}") from exc

    async def save(self, record: UserRecord, expected_version: int) -> bool:
        try:
            return await self._call(self.db.compare_and_swap_user, record, expected_version)
        except sqlite3.Error as exc:
            raise PersistenceError(f"Cannot save user {record.user_id!r}: {exc}") from exc

    async def add_completion(self, user_id: str, stream: str, day: str) -> bool:
        try:
            return await self._call(self.db.add_completion, user_id, stream, day)
        except sqlite3.Error as exc:
            raise PersistenceError(f"Cannot record completion: {exc}") from exc

    async def remove_completion(self, user_id: str, stream: str, day: str) -> bool:
        try:
            return await self._call(self.db.remove_completion, user_id, stream, day)
        except sqlite3.Error as exc:
            raise PersistenceError(f"Cannot remove completion: {exc}") from exc

    async def completion_dates(self, user_id: str, stream: str | None = None) -> list[str]:
        try:
            if stream is None:
                return await self._call(self.db.get_all_completion_dates, user_id)
            return await self._call(self.db.get_completion_dates, user_id, stream)
        except sqlite3.Error as exc:
            raise PersistenceError(f"Cannot read completions: {exc}") from exc


class MemoryUserStore(UserStore):
    """In-process store. Yields to the event loop inside every call."""

    def __init__(self, locale: str = DEFAULT_LOCALE) -> None:
        self.locale = locale
        self.records: dict[str, UserRecord] = {}
        self.completions: dict[tuple[str, str], set[str]] = {}
        self.writes = 0

    async def load(self, user_id: str) -> UserRecord | None:
        await asyncio.sleep(0)
        return self.records.get(user_id)

    async def create(self, record: UserRecord) -> bool:
        await asyncio.sleep(0)
        if record.user_id in self.records:
            return False
        self.records[record.user_id] = record
        return True

    async def save(self, record: UserRecord, expected_version: int) -> bool:
        await asyncio.sleep(0)
        current = self.records.get(record.user_id)
        if current is None or current.version != expected_version:
            return False
        self.records[record.user_id] = replace(record, version=expected_version + 1)
        self.writes += 1
        return True

    async def add_completion(self, user_id: str, stream: str, day: str) -> bool:
        await asyncio.sleep(0)
        days = self.completions.setdefault((user_id, stream), set())
        if day in days:
            return False
        days.add(day)
        return True

    async def remove_completion(self, user_id: str, stream: str, day: str) -> bool:
        await asyncio.sleep(0)
        days = self.completions.get((user_id, stream), set())
        if day not in days:
            return False
        days.discard(day)
        return True

    async def completion_dates(self, user_id: str, stream: str | None = None) -> list[str]:
        await asyncio.sleep(0)
        if stream is not None:
            return sorted(self.completions.get((user_id, stream), set()))
        days: set[str] = set()
        for (uid, _), stream_days in self.completions.items():
            if uid == user_id:
                days |= stream_days
        return sorted(days)
