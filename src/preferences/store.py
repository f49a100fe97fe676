"""Key/value persistence contract for preference data, plus two backends.

Values are JSON strings. ``InMemoryPreferenceStore`` backs tests and
ephemeral sessions; ``SqlitePreferenceStore`` keeps one ``kv`` table in WAL
mode and implements compare-and-set inside a ``BEGIN IMMEDIATE`` transaction.
"""

import threading
from datetime import datetime
from enum import StrEnum
from pathlib import Path
from typing import Optional, Protocol

import structlog

from db import wal_connect

logger = structlog.get_logger()


class StoreKey(StrEnum):
    USER_PREFERENCES = "user_preferences"
    COMPANIONS = "companions"
    MERGED_PREFERENCES = "merged_preferences"
    SUGGESTION_SETTINGS = "suggestion_settings"
    LEARNING_EVENTS = "learning_events"
    LEARNING_INSIGHTS = "learning_insights"
    SYNC_HISTORY = "sync_history"


class PreferenceStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def compare_and_set(self, key: str, expected: Optional[str], value: str) -> bool:
        """Write value only if the stored value still equals expected (None = absent)."""
        ...


class InMemoryPreferenceStore:
    """Dict-backed store. Thread-safe."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def compare_and_set(self, key: str, expected: Optional[str], value: str) -> bool:
        with self._lock:
            if self._data.get(key) != expected:
                return False
            self._data[key] = value
            return True

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._data)


class SqlitePreferenceStore:
    """SQLite-backed store: one row per key."""

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path).expanduser()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self):
        with wal_connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

    def get(self, key: str) -> Optional[str]:
        with wal_connect(self.db_path) as conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        with wal_connect(self.db_path) as conn:
            conn.execute(
                """INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?)
                   ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                                                  updated_at = excluded.updated_at""",
                (key, value, datetime.now().isoformat()),
            )

    def delete(self, key: str) -> None:
        with wal_connect(self.db_path) as conn:
            conn.execute("DELETE FROM kv WHERE key = ?", (key,))

    def compare_and_set(self, key: str, expected: Optional[str], value: str) -> bool:
        conn = wal_connect(self.db_path, autocommit=True)
        try:
            conn.execute("BEGIN IMMEDIATE")
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
            current = row[0] if row else None
            if current != expected:
                conn.execute("ROLLBACK")
                return False
            conn.execute(
                """INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?)
                   ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                                                  updated_at = excluded.updated_at""",
                (key, value, datetime.now().isoformat()),
            )
            conn.execute("COMMIT")
            return True
        except Exception:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise
        finally:
            conn.close()

    def keys(self) -> list[str]:
        with wal_connect(self.db_path) as conn:
            rows = conn.execute("SELECT key FROM kv ORDER BY key").fetchall()
        return [r[0] for r in rows]
