from __future__ import annotations

import os
import sqlite3
from typing import List, Optional

from .base import (
    ReminderState,
    ReminderStore,
    SubscriptionDirectory,
    SubscriptionState,
    UserState,
    UserStore,
)


_REMINDER_COLUMNS = "id, user_id, message, notify_at, timezone, notified, created_at"


class SQLiteReminderStore(ReminderStore, SubscriptionDirectory, UserStore):
    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        db_dir = os.path.dirname(db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self._db_path)

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    username TEXT UNIQUE NOT NULL,
                    password_hash TEXT NOT NULL,
                    created_at TEXT NOT NULL DEFAULT (datetime('now'))
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS subscriptions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL,
                    endpoint TEXT NOT NULL,
                    keys_json TEXT,
                    created_at TEXT NOT NULL DEFAULT (datetime('now'))
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS reminders (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL,
                    message TEXT NOT NULL,
                    notify_at TEXT NOT NULL,
                    timezone TEXT NOT NULL DEFAULT 'UTC',
                    notified INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL DEFAULT (datetime('now'))
                )
                """
            )
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS reminders_notified_notify_at_idx
                ON reminders (notified, notify_at)
                """
            )
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS subscriptions_user_id_idx
                ON subscriptions (user_id)
                """
            )

    def _row_to_reminder(self, row: tuple) -> ReminderState:
        return ReminderState(
            id=row[0],
            owner_id=row[1],
            message=row[2],
            notify_at=row[3],
            timezone=row[4],
            notified=bool(row[5]),
            created_at=row[6],
        )

    def _row_to_user(self, row: tuple) -> UserState:
        return UserState(
            id=row[0],
            username=row[1],
            password_hash=row[2],
            created_at=row[3],
        )

    def create_user(self, username: str, password_hash: str) -> UserState:
        with self._connect() as conn:
            try:
                cur = conn.execute(
                    "INSERT INTO users (username, password_hash) VALUES (?, ?)",
                    (username, password_hash),
                )
            except sqlite3.IntegrityError as exc:
                raise ValueError(f"Username exists: {username}") from exc
            row = conn.execute(
                "SELECT id, username, password_hash, created_at FROM users WHERE id = ?",
                (cur.lastrowid,),
            ).fetchone()
            return self._row_to_user(row)

    def get_user(self, user_id: int) -> Optional[UserState]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT id, username, password_hash, created_at FROM users WHERE id = ?",
                (user_id,),
            ).fetchone()
            return self._row_to_user(row) if row else None

    def get_user_by_username(self, username: str) -> Optional[UserState]:
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT id, username, password_hash, created_at
                FROM users
                WHERE username = ?
                """,
                (username,),
            ).fetchone()
            return self._row_to_user(row) if row else None

    def add_subscription(
        self, owner_id: int, endpoint: str, keys_json: Optional[str]
    ) -> SubscriptionState:
        with self._connect() as conn:
            cur = conn.execute(
                "INSERT INTO subscriptions (user_id, endpoint, keys_json) VALUES (?, ?, ?)",
                (owner_id, endpoint, keys_json),
            )
            row = conn.execute(
                "SELECT created_at FROM subscriptions WHERE id = ?", (cur.lastrowid,)
            ).fetchone()
            return SubscriptionState(
                id=cur.lastrowid,
                owner_id=owner_id,
                endpoint=endpoint,
                keys_json=keys_json,
                created_at=row[0],
            )

    def list_subscriptions(self, owner_id: int) -> List[SubscriptionState]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT id, user_id, endpoint, keys_json, created_at
                FROM subscriptions
                WHERE user_id = ?
                ORDER BY id ASC
                """,
                (owner_id,),
            ).fetchall()
            return [
                SubscriptionState(
                    id=row[0],
                    owner_id=row[1],
                    endpoint=row[2],
                    keys_json=row[3],
                    created_at=row[4],
                )
                for row in rows
            ]

    def create_reminder(
        self, owner_id: int, message: str, notify_at: str, timezone: str
    ) -> ReminderState:
        with self._connect() as conn:
            cur = conn.execute(
                """
                INSERT INTO reminders (user_id, message, notify_at, timezone)
                VALUES (?, ?, ?, ?)
                """,
                (owner_id, message, notify_at, timezone),
            )
            row = conn.execute(
                f"SELECT {_REMINDER_COLUMNS} FROM reminders WHERE id = ?",
                (cur.lastrowid,),
            ).fetchone()
            return self._row_to_reminder(row)

    def get_reminder(self, reminder_id: int) -> Optional[ReminderState]:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {_REMINDER_COLUMNS} FROM reminders WHERE id = ?",
                (reminder_id,),
            ).fetchone()
            return self._row_to_reminder(row) if row else None

    def list_reminders(self, owner_id: int) -> List[ReminderState]:
        with self._connect() as conn:
            rows = conn.execute(
                f"""
                SELECT {_REMINDER_COLUMNS}
                FROM reminders
                WHERE user_id = ?
                ORDER BY notify_at ASC
                """,
                (owner_id,),
            ).fetchall()
            return [self._row_to_reminder(row) for row in rows]

    def update_reminder(self, reminder: ReminderState, rearm: bool = False) -> None:
        # notified is only ever cleared here; setting it belongs to mark_notified.
        rearm_sql = ", notified = 0" if rearm else ""
        with self._connect() as conn:
            conn.execute(
                f"""
                UPDATE reminders
                SET message = ?, notify_at = ?, timezone = ?{rearm_sql}
                WHERE id = ?
                """,
                (reminder.message, reminder.notify_at, reminder.timezone, reminder.id),
            )

    def delete_reminder(self, reminder_id: int) -> bool:
        with self._connect() as conn:
            result = conn.execute("DELETE FROM reminders WHERE id = ?", (reminder_id,))
            return result.rowcount > 0

    def list_due_reminders(self, now_iso: str) -> List[ReminderState]:
        with self._connect() as conn:
            rows = conn.execute(
                f"""
                SELECT {_REMINDER_COLUMNS}
                FROM reminders
                WHERE notified = 0
                  AND notify_at <= ?
                ORDER BY notify_at ASC
                """,
                (now_iso,),
            ).fetchall()
            return [self._row_to_reminder(row) for row in rows]

    def mark_notified(self, reminder_id: int) -> bool:
        with self._connect() as conn:
            result = conn.execute(
                "UPDATE reminders SET notified = 1 WHERE id = ? AND notified = 0",
                (reminder_id,),
            )
            return result.rowcount > 0
