"""Database queries for users, weight entries and goal settings."""

from __future__ import annotations

import sqlite3
from datetime import date, datetime, timedelta
from typing import Optional

from scaletrack.tracking.models import User, UserSettings, WeightEntry


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _row_to_user(row: sqlite3.Row) -> User:
    return User(
        user_id=row["user_id"],
        username=row["username"],
        email=row["email"],
        password_hash=row["password_hash"],
        created_at=_parse_timestamp(row["created_at"]),
    )


def _row_to_entry(row: sqlite3.Row) -> WeightEntry:
    return WeightEntry(
        entry_id=row["entry_id"],
        user_id=row["user_id"],
        value=row["value"],
        measured_at=datetime.fromisoformat(row["measured_at"]),
        notes=row["notes"],
        source=row["source"],
    )


class UserQueries:
    """Database queries for accounts."""

    @staticmethod
    def create_user(conn: sqlite3.Connection, user: User) -> int:
        """Insert a new account and return its user_id."""
        cursor = conn.execute(
            """
            INSERT INTO users (username, email, password_hash)
            VALUES (?, ?, ?)
            """,
            (user.username, user.email, user.password_hash),
        )
        conn.commit()
        return cursor.lastrowid or 0

    @staticmethod
    def get_user(conn: sqlite3.Connection, user_id: int) -> Optional[User]:
        row = conn.execute(
            """
            SELECT user_id, username, email, password_hash, created_at
            FROM users WHERE user_id = ?
            """,
            (user_id,),
        ).fetchone()
        return _row_to_user(row) if row else None

    @staticmethod
    def get_by_username(conn: sqlite3.Connection, username: str) -> Optional[User]:
        row = conn.execute(
            """
            SELECT user_id, username, email, password_hash, created_at
            FROM users WHERE username = ?
            """,
            (username,),
        ).fetchone()
        return _row_to_user(row) if row else None

    @staticmethod
    def find_by_username_or_email(
        conn: sqlite3.Connection, username: str, email: str
    ) -> Optional[User]:
        """Return any account already using this username or email."""
        row = conn.execute(
            """
            SELECT user_id, username, email, password_hash, created_at
            FROM users WHERE username = ? OR email = ?
            LIMIT 1
            """,
            (username, email),
        ).fetchone()
        return _row_to_user(row) if row else None


class EntryQueries:
    """Database queries for weight entries."""

    @staticmethod
    def add_entry(
        conn: sqlite3.Connection,
        user_id: int,
        value: float,
        measured_at: Optional[datetime] = None,
        notes: Optional[str] = None,
        source: str = "manual",
    ) -> WeightEntry:
        """Record a measurement. measured_at defaults to now."""
        if measured_at is None:
            measured_at = datetime.now().replace(microsecond=0)

        entry = WeightEntry(
            entry_id=None,
            user_id=user_id,
            value=value,
            measured_at=measured_at,
            notes=notes,
            source=source,
        )
        cursor = conn.execute(
            """
            INSERT INTO weight_entries (user_id, value, notes, source, measured_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                user_id,
                value,
                notes,
                source,
                measured_at.isoformat(timespec="seconds"),
            ),
        )
        conn.commit()
        entry.entry_id = cursor.lastrowid
        return entry

    @staticmethod
    def get_entry(
        conn: sqlite3.Connection, user_id: int, entry_id: int
    ) -> Optional[WeightEntry]:
        row = conn.execute(
            """
            SELECT entry_id, user_id, value, notes, source, measured_at
            FROM weight_entries
            WHERE user_id = ? AND entry_id = ?
            """,
            (user_id, entry_id),
        ).fetchone()
        return _row_to_entry(row) if row else None

    @staticmethod
    def list_entries(
        conn: sqlite3.Connection,
        user_id: int,
        days: Optional[int] = None,
        today: Optional[date] = None,
    ) -> list[WeightEntry]:
        """
        Get a user's entries in chronological order.

        Args:
            user_id: User ID
            days: If set, only entries from the last N calendar days
                  (today included)
            today: Reference date for `days` (default: date.today())
        """
        query = """
            SELECT entry_id, user_id, value, notes, source, measured_at
            FROM weight_entries
            WHERE user_id = ?
        """
        params: list = [user_id]

        if days:
            start = (today or date.today()) - timedelta(days=days - 1)
            query += " AND measured_at >= ?"
            params.append(start.isoformat())

        query += " ORDER BY measured_at ASC, entry_id ASC"

        rows = conn.execute(query, params).fetchall()
        return [_row_to_entry(row) for row in rows]

    @staticmethod
    def update_entry(
        conn: sqlite3.Connection,
        user_id: int,
        entry_id: int,
        value: Optional[float] = None,
        notes: Optional[str] = None,
        measured_at: Optional[datetime] = None,
    ) -> Optional[WeightEntry]:
        """Change fields of an entry. Returns None if the entry doesn't exist."""
        entry = EntryQueries.get_entry(conn, user_id, entry_id)
        if entry is None:
            return None

        if value is not None:
            entry.value = value
        if notes is not None:
            entry.notes = notes
        if measured_at is not None:
            entry.measured_at = measured_at

        conn.execute(
            """
            UPDATE weight_entries
            SET value = ?, notes = ?, measured_at = ?
            WHERE user_id = ? AND entry_id = ?
            """,
            (
                entry.value,
                entry.notes,
                entry.measured_at.isoformat(timespec="seconds"),
                user_id,
                entry_id,
            ),
        )
        conn.commit()
        return entry

    @staticmethod
    def delete_entry(conn: sqlite3.Connection, user_id: int, entry_id: int) -> bool:
        """Delete one entry. Returns True if a row was removed."""
        cursor = conn.execute(
            "DELETE FROM weight_entries WHERE user_id = ? AND entry_id = ?",
            (user_id, entry_id),
        )
        conn.commit()
        return cursor.rowcount > 0

    @staticmethod
    def delete_all(conn: sqlite3.Connection, user_id: int) -> int:
        """Delete every entry for a user and return how many were removed."""
        cursor = conn.execute(
            "DELETE FROM weight_entries WHERE user_id = ?", (user_id,)
        )
        conn.commit()
        return cursor.rowcount


class SettingsQueries:
    """Database queries for per-user goal settings."""

    @staticmethod
    def get_settings(conn: sqlite3.Connection, user_id: int) -> UserSettings:
        """Get a user's settings, falling back to defaults if never saved."""
        row = conn.execute(
            """
            SELECT user_id, weight_goal, loss_rate, buffer_value,
                   carb_fat_ratio, openai_api_key, updated_at
            FROM user_settings WHERE user_id = ?
            """,
            (user_id,),
        ).fetchone()

        if row is None:
            return UserSettings(user_id=user_id)

        return UserSettings(
            user_id=row["user_id"],
            weight_goal=row["weight_goal"],
            loss_rate=row["loss_rate"],
            buffer_value=row["buffer_value"],
            carb_fat_ratio=row["carb_fat_ratio"],
            openai_api_key=row["openai_api_key"],
            updated_at=_parse_timestamp(row["updated_at"]),
        )

    @staticmethod
    def save_settings(conn: sqlite3.Connection, settings: UserSettings) -> None:
        """Insert or replace a user's settings row."""
        conn.execute(
            """
            INSERT INTO user_settings (user_id, weight_goal, loss_rate, buffer_value,
                                       carb_fat_ratio, openai_api_key, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT(user_id) DO UPDATE SET
                weight_goal = excluded.weight_goal,
                loss_rate = excluded.loss_rate,
                buffer_value = excluded.buffer_value,
                carb_fat_ratio = excluded.carb_fat_ratio,
                openai_api_key = excluded.openai_api_key,
                updated_at = CURRENT_TIMESTAMP
            """,
            (
                settings.user_id,
                settings.weight_goal,
                settings.loss_rate,
                settings.buffer_value,
                settings.carb_fat_ratio,
                settings.openai_api_key,
            ),
        )
        conn.commit()
