"""
String key-value store on top of SQLite.

This is the only persistence primitive the moderation layer relies on: each
entry is a whole serialized blob under a fixed, versioned key. There is no
partial update and no query capability; writing replaces the entry.
"""

from __future__ import annotations

from typing import Optional

import aiosqlite

from warden.database.db_connection import ConnectionManager
from warden.errors import StoreError
from warden.util.logger import get_logger

logger = get_logger("kv_store")

SCHEMA = """
CREATE TABLE IF NOT EXISTS kv_store (
    key        TEXT PRIMARY KEY,
    value      TEXT NOT NULL,
    updated_at INTEGER NOT NULL DEFAULT (CAST(strftime('%s', 'now') AS INTEGER))
)
"""


class KeyValueStore:
    """Async get/set/exists/delete over the ``kv_store`` table.

    Every SQLite failure is re-raised as :class:`~warden.errors.StoreError`
    so callers only need to handle one error type.
    """

    def __init__(self, connections: ConnectionManager) -> None:
        self._connections = connections

    async def initialize(self) -> None:
        """Create the backing table if it does not exist yet."""
        try:
            async with self._connections.transaction() as conn:
                await conn.execute(SCHEMA)
        except aiosqlite.Error as exc:
            raise StoreError(f"Failed to create kv_store table: {exc}") from exc
        logger.debug("[KV STORE] Schema ready")

    async def get(self, key: str) -> Optional[str]:
        """Return the value stored under ``key``, or None when the key is missing."""
        try:
            async with self._connections.read() as conn:
                cursor = await conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
                row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            raise StoreError(f"Failed to read {key!r}: {exc}") from exc
        return None if row is None else row[0]

    async def exists(self, key: str) -> bool:
        try:
            async with self._connections.read() as conn:
                cursor = await conn.execute("SELECT 1 FROM kv_store WHERE key = ? LIMIT 1", (key,))
                row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            raise StoreError(f"Failed to check {key!r}: {exc}") from exc
        return row is not None

    async def set(self, key: str, value: str) -> None:
        """Atomically replace the value stored under ``key``."""
        try:
            async with self._connections.transaction() as conn:
                await conn.execute(
                    """
                    INSERT INTO kv_store (key, value) VALUES (?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value      = excluded.value,
                        updated_at = CAST(strftime('%s', 'now') AS INTEGER)
                    """,
                    (key, value),
                )
        except aiosqlite.Error as exc:
            raise StoreError(f"Failed to write {key!r}: {exc}") from exc

    async def delete(self, key: str) -> bool:
        """Remove ``key``. Returns True when an entry was deleted."""
        try:
            async with self._connections.transaction() as conn:
                cursor = await conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
                deleted = cursor.rowcount
        except aiosqlite.Error as exc:
            raise StoreError(f"Failed to delete {key!r}: {exc}") from exc
        return deleted > 0

