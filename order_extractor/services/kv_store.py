"""Durable key-value storage for learning history and custom formats.

Values are serialized documents (JSON strings) stored under fixed keys.
The SQLite store opens one connection per operation.
"""

import logging
import sqlite3
import threading
from datetime import datetime
from pathlib import Path
from typing import Protocol

from ..exceptions import StorageError

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Minimal interface the extractor needs from persistence."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class InMemoryKeyValueStore:
    """Process-local store, used in tests and when no path is configured."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


class SQLiteKeyValueStore:
    """SQLite-backed store that survives process restarts."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        self._init_database()

    def _connect(self) -> sqlite3.Connection:
        try:
            return sqlite3.connect(str(self.db_path), timeout=10)
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open store {self.db_path}: {e}") from e

    def _init_database(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = self._connect()
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key         TEXT PRIMARY KEY,
                    value       TEXT NOT NULL,
                    updated_at  TEXT NOT NULL
                )
            """)
            conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot initialize store {self.db_path}: {e}") from e
        finally:
            conn.close()
        logger.info(f"Key-value store initialized: {self.db_path}")

    def get(self, key: str) -> str | None:
        """Read a value.

        Raises:
            StorageError: If the database cannot be read

        """
        conn = self._connect()
        try:
            row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot read {key}: {e}") from e
        finally:
            conn.close()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        """Write a value, replacing any previous one.

        Raises:
            StorageError: If the database cannot be written

        """
        conn = self._connect()
        try:
            conn.execute(
                "INSERT OR REPLACE INTO kv_store (key, value, updated_at) VALUES (?, ?, ?)",
                (key, value, datetime.now().isoformat()),
            )
            conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot write {key}: {e}") from e
        finally:
            conn.close()

    def delete(self, key: str) -> None:
        conn = self._connect()
        try:
            conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot delete {key}: {e}") from e
        finally:
            conn.close()
