# src/storage/kv_store.py

"""String-keyed persistent stores used by the local search cache."""

import asyncio
import logging
import sqlite3
from pathlib import Path
from typing import Protocol

from src.config.settings import Settings

logger = logging.getLogger("storefront_search.store")

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS kv (
    key        TEXT PRIMARY KEY,
    value      TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);
"""


class StorageError(Exception):
    """The backing store could not be read or written."""


class KeyValueStore(Protocol):
    """Async get/set/remove over string keys and string values."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def remove(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """Process-local store; contents vanish with the session."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def snapshot(self) -> dict[str, str]:
        """Copy of the raw contents, for inspection."""
        return dict(self._data)


class SQLiteKeyValueStore:
    """SQLite-backed store; blocking calls run in a worker thread."""

    def __init__(self, db_path: Path | None = None) -> None:
        path = db_path or Settings.STORE_DB_PATH
        path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(
            str(path), check_same_thread=False,
        )
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)
        # One connection shared across worker threads
        self._lock = asyncio.Lock()
        logger.debug("SQLiteKeyValueStore opened at %s", path)

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    # ── Blocking primitives ──────────────────────────────

    def _get_sync(self, key: str) -> str | None:
        row = self._conn.execute(
            "SELECT value FROM kv WHERE key = ?", (key,),
        ).fetchone()
        return str(row[0]) if row else None

    def _set_sync(self, key: str, value: str) -> None:
        self._conn.execute(
            "INSERT INTO kv (key, value, updated_at) "
            "VALUES (?, ?, datetime('now')) "
            "ON CONFLICT(key) DO UPDATE SET "
            "value=excluded.value, updated_at=excluded.updated_at",
            (key, value),
        )
        self._conn.commit()

    def _remove_sync(self, key: str) -> None:
        self._conn.execute("DELETE FROM kv WHERE key = ?", (key,))
        self._conn.commit()

    # ── Async interface ──────────────────────────────────

    async def get(self, key: str) -> str | None:
        async with self._lock:
            try:
                return await asyncio.to_thread(self._get_sync, key)
            except sqlite3.Error as exc:
                raise StorageError(f"read {key!r}: {exc}") from exc

    async def set(self, key: str, value: str) -> None:
        async with self._lock:
            try:
                await asyncio.to_thread(self._set_sync, key, value)
            except sqlite3.Error as exc:
                raise StorageError(f"write {key!r}: {exc}") from exc

    async def remove(self, key: str) -> None:
        async with self._lock:
            try:
                await asyncio.to_thread(self._remove_sync, key)
            except sqlite3.Error as exc:
                raise StorageError(f"remove {key!r}: {exc}") from exc
