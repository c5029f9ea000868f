"""Card ownership boundary.

The engine only needs two things from persistence: which cards a user already
owns, and an insert that succeeds at most once per (user, card). Both
reference stores enforce that with a uniqueness check that is atomic with the
write, so two racing completions cannot grant the same card twice.
"""

from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Protocol

from . import config
from .clock import normalize_datetime
from .models import UserCardUnlock


class UnlockStore(Protocol):
    def owned_card_ids(self, user_id: str) -> set[str]: ...

    def create_unlock(self, user_id: str, card_id: str, unlocked_at: datetime) -> bool:
        """Record ownership; return False when the row already existed."""
        ...


class InMemoryUnlockStore:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._unlocks: dict[tuple[str, str], UserCardUnlock] = {}

    def owned_card_ids(self, user_id: str) -> set[str]:
        with self._lock:
            return {card_id for (owner, card_id) in self._unlocks if owner == user_id}

    def create_unlock(self, user_id: str, card_id: str, unlocked_at: datetime) -> bool:
        key = (user_id, card_id)
        with self._lock:
            if key in self._unlocks:
                return False
            self._unlocks[key] = UserCardUnlock(user_id, card_id, normalize_datetime(unlocked_at))
            return True

    def list_unlocks(self, user_id: str) -> list[UserCardUnlock]:
        with self._lock:
            rows = [unlock for (owner, _), unlock in self._unlocks.items() if owner == user_id]
        return sorted(rows, key=lambda unlock: (unlock.unlocked_at, unlock.card_id))


class SqliteUnlockStore:
    """SQLite-backed ownership table with a UNIQUE(user_id, card_id) constraint."""

    def __init__(self, db_path: Path | str | None = None) -> None:
        self.db_path = Path(db_path) if db_path is not None else config.DB_PATH

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection that commits on success and always closes."""

        connection = self._open_connection()
        try:
            yield connection
            connection.commit()
        finally:
            connection.close()

    def _open_connection(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        connection = sqlite3.connect(self.db_path, timeout=30)
        connection.row_factory = sqlite3.Row
        return connection

    def init_db(self) -> None:
        with self.connect() as connection:
            connection.execute(
                """
                CREATE TABLE IF NOT EXISTS user_card_unlocks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    card_id TEXT NOT NULL,
                    unlocked_at TEXT NOT NULL,
                    UNIQUE(user_id, card_id)
                )
                """
            )

    def owned_card_ids(self, user_id: str) -> set[str]:
        with self.connect() as connection:
            rows = connection.execute(
                "SELECT card_id FROM user_card_unlocks WHERE user_id = ?", (user_id,)
            ).fetchall()
        return {row["card_id"] for row in rows}

    def create_unlock(self, user_id: str, card_id: str, unlocked_at: datetime) -> bool:
        timestamp = normalize_datetime(unlocked_at).isoformat(timespec="seconds")
        with self.connect() as connection:
            cursor = connection.execute(
                """
                INSERT OR IGNORE INTO user_card_unlocks (user_id, card_id, unlocked_at)
                VALUES (?, ?, ?)
                """,
                (user_id, card_id, timestamp),
            )
            return cursor.rowcount == 1

    def list_unlocks(self, user_id: str) -> list[UserCardUnlock]:
        with self.connect() as connection:
            rows = connection.execute(
                """
                SELECT user_id, card_id, unlocked_at FROM user_card_unlocks
                WHERE user_id = ? ORDER BY unlocked_at ASC, card_id ASC
                """,
                (user_id,),
            ).fetchall()
        return [
            UserCardUnlock(
                user_id=row["user_id"],
                card_id=row["card_id"],
                unlocked_at=datetime.fromisoformat(row["unlocked_at"]),
            )
            for row in rows
        ]


__all__ = ["InMemoryUnlockStore", "SqliteUnlockStore", "UnlockStore"]
