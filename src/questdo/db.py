"""SQLite database layer for questdo."""

import json
import sqlite3
from pathlib import Path

from questdo.models import UserProgression, UserRecord, UserStats


DEFAULT_DB_PATH = Path.home() / ".questdo" / "data.db"

TASK_STREAM = "tasks"
HABIT_STREAM_PREFIX = "habit:"


def habit_stream(habit_id: str) -> str:
    return f"{HABIT_STREAM_PREFIX}{habit_id}"


class Database:
    """SQLite database manager with WAL mode."""

    def __init__(self, db_path: Path | None = None) -> None:
        self.db_path = db_path or DEFAULT_DB_PATH
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL")
        self.init_db()

    def init_db(self) -> None:
        """Create tables if they do not exist."""
        self.conn.executescript("""
            CREATE TABLE IF NOT EXISTS users (
                id TEXT PRIMARY KEY,
                level INTEGER DEFAULT 1,
                xp INTEGER DEFAULT 0,
                total_xp INTEGER DEFAULT 0,
                title TEXT DEFAULT '',
                badges TEXT DEFAULT '[]',
                total_completed INTEGER DEFAULT 0,
                current_streak INTEGER DEFAULT 0,
                longest_streak INTEGER DEFAULT 0,
                total_habit_checks INTEGER DEFAULT 0,
                last_streak_date TEXT DEFAULT '',
                version INTEGER DEFAULT 0
            );

            CREATE TABLE IF NOT EXISTS completions (
                user_id TEXT NOT NULL,
                stream TEXT NOT NULL,
                date TEXT NOT NULL,
                PRIMARY KEY (user_id, stream, date)
            );
        """)
        self.conn.commit()

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> UserRecord:
        return UserRecord(
            user_id=row["id"],
            progression=UserProgression(
                level=row["level"],
                xp=row["xp"],
                total_xp=row["total_xp"],
                title=row["title"],
            ),
            stats=UserStats(
                total_completed=row["total_completed"],
                current_streak=row["current_streak"],
                longest_streak=row["longest_streak"],
                total_habit_checks=row["total_habit_checks"],
                last_streak_date=row["last_streak_date"] or "",
            ),
            badges=tuple(json.loads(row["badges"] or "[]")),
            version=row["version"],
        )

    def get_user(self, user_id: str) -> UserRecord | None:
        """Get a user record by id."""
        row = self.conn.execute(
            "SELECT * FROM users WHERE id = ?", (user_id,)
        ).fetchone()
        return self._row_to_record(row) if row else None

    def create_user(self, record: UserRecord) -> bool:
        """Insert a new user. Returns False if the id already exists."""
        p, s = record.progression, record.stats
        cursor = self.conn.execute(
            "INSERT INTO users (id, level, xp, total_xp, title, badges, total_completed, "
            "current_streak, longest_streak, total_habit_checks, last_streak_date, version) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?) ON CONFLICT(id) DO NOTHING",
            (
                record.user_id, p.level, p.xp, p.total_xp, p.title,
                json.dumps(list(record.badges)), s.total_completed, s.current_streak,
                s.longest_streak, s.total_habit_checks, s.last_streak_date, record.version,
            ),
        )
        self.conn.commit()
        return cursor.rowcount == 1

    def compare_and_swap_user(self, record: UserRecord, expected_version: int) -> bool:
        """Write `record` only if the stored version still equals `expected_version`.

        The stored version becomes expected_version + 1. Returns False on a
        version mismatch (someone else wrote first) or a missing row.
        """
        p, s = record.progression, record.stats
        cursor = self.conn.execute(
            "UPDATE users SET level = ?, xp = ?, total_xp = ?, title = ?, badges = ?, "
            "total_completed = ?, current_streak = ?, longest_streak = ?, "
            "total_habit_checks = ?, last_streak_date = ?, version = ? "
            "WHERE id = ? AND version = ?",
            (
                p.level, p.xp, p.total_xp, p.title, json.dumps(list(record.badges)),
                s.total_completed, s.current_streak, s.longest_streak,
                s.total_habit_checks, s.last_streak_date, expected_version + 1,
                record.user_id, expected_version,
            ),
        )
        self.conn.commit()
        return cursor.rowcount == 1

    def add_completion(self, user_id: str, stream: str, date: str) -> bool:
        """Record a completion day. Returns False if it was already there."""
        cursor = self.conn.execute(
            "INSERT INTO completions (user_id, stream, date) VALUES (?, ?, ?) "
            "ON CONFLICT DO NOTHING",
            (user_id, stream, date),
        )
        self.conn.commit()
        return cursor.rowcount == 1

    def remove_completion(self, user_id: str, stream: str, date: str) -> bool:
        """Remove a completion day. Returns False if it was not recorded."""
        cursor = self.conn.execute(
            "DELETE FROM completions WHERE user_id = ? AND stream = ? AND date = ?",
            (user_id, stream, date),
        )
        self.conn.commit()
        return cursor.rowcount == 1

    def get_completion_dates(self, user_id: str, stream: str) -> list[str]:
        """Completion days for one stream, ascending."""
        rows = self.conn.execute(
            "SELECT date FROM completions WHERE user_id = ? AND stream = ? ORDER BY date",
            (user_id, stream),
        ).fetchall()
        return [row["date"] for row in rows]

    def get_all_completion_dates(self, user_id: str) -> list[str]:
        """Distinct completion days across every stream, ascending."""
        rows = self.conn.execute(
            "SELECT DISTINCT date FROM completions WHERE user_id = ? ORDER BY date",
            (user_id,),
        ).fetchall()
        return [row["date"] for row in rows]

    def close(self) -> None:
        """Close the database connection."""
        self.conn.close()
