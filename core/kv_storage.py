# -*- coding: utf-8 -*-
"""
Key-Value Storage

String key -> string value persistence used by the catalog store.
The SQLite backend keeps everything in a single table, the same way the
translation memory was kept; the in-memory backend serves tests and
throwaway sessions.
"""

import sqlite3
import time
from pathlib import Path
from typing import Dict, Optional, Protocol

from xcforge_exceptions import StorageReadError, StorageWriteError
from xcforge_logger import get_logger

logger = get_logger("core.kv_storage")


class KeyValueStorage(Protocol):
    def get_item(self, key: str) -> Optional[str]:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...

    def remove_item(self, key: str) -> None:
        ...


class MemoryKeyValueStorage:
    """Dict-backed storage."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self):
        return list(self._items)


class SqliteKeyValueStorage:
    """
    SQLite-backed storage with a single `kv_store` table.

    Raises StorageReadError / StorageWriteError on database failures so the
    caller decides whether to degrade to memory.
    """

    def __init__(self, db_path: str):
        self.db_path = str(db_path)
        self.conn: Optional[sqlite3.Connection] = None
        try:
            if self.db_path != ':memory:':
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            self.conn = sqlite3.connect(self.db_path)
            self._create_tables()
            logger.debug(f"Opened key-value storage at {self.db_path}")
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Failed to open key-value storage {self.db_path}: {e}")
            self.conn = None

    def _create_tables(self):
        c = self.conn.cursor()
        c.execute("""
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated REAL
            )
        """)
        self.conn.commit()

    def get_item(self, key: str) -> Optional[str]:
        if not self.conn:
            raise StorageReadError("Storage is not available", key=key)
        try:
            row = self.conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as e:
            raise StorageReadError(f"Failed to read '{key}': {e}", key=key) from e
        return row[0] if row else None

    def set_item(self, key: str, value: str) -> None:
        if not self.conn:
            raise StorageWriteError("Storage is not available", key=key)
        try:
            self.conn.execute(
                "INSERT OR REPLACE INTO kv_store (key, value, updated) VALUES (?, ?, ?)",
                (key, value, time.time()),
            )
            self.conn.commit()
        except sqlite3.Error as e:
            raise StorageWriteError(f"Failed to write '{key}': {e}", key=key) from e

    def remove_item(self, key: str) -> None:
        if not self.conn:
            raise StorageWriteError("Storage is not available", key=key)
        try:
            self.conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            self.conn.commit()
        except sqlite3.Error as e:
            raise StorageWriteError(f"Failed to remove '{key}': {e}", key=key) from e

    def close(self):
        if self.conn:
            self.conn.close()
            self.conn = None
