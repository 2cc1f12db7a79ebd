"""
SQLite connection owner for the moderation key-value store.

Warden keeps one aiosqlite connection open for the life of the server.
Reports, bans, audit entries and player state are all rewritten as whole
JSON blobs, so writes are few but must never interleave; they share one
semaphore. Reads run whenever the store needs them.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import aiosqlite

from warden.util.logger import get_logger

logger = get_logger("database_connection")

MEMORY_DATABASE = ":memory:"

_PRAGMAS = (
    "PRAGMA journal_mode = WAL",
    "PRAGMA synchronous = NORMAL",
    "PRAGMA temp_store = MEMORY",
    "PRAGMA wal_autocheckpoint = 1000",
)


class ConnectionManager:
    """Opens, hands out and closes the store's database connection."""

    def __init__(self) -> None:
        self._conn: aiosqlite.Connection | None = None
        self._write_lock = asyncio.Semaphore(1)
        self._path: Path | None = None

    @property
    def path(self) -> Path | None:
        return self._path

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    async def open(self, path: Path) -> None:
        """
        Connect to ``path`` and configure the connection for WAL journaling.

        ``":memory:"`` opens a throwaway database. Calling ``open`` twice keeps
        the first connection.
        """
        if self._conn is not None:
            logger.warning("[DB CONNECTION] Store already open at %s, ignoring open(%s)", self._path, path)
            return

        if str(path) != MEMORY_DATABASE:
            path.parent.mkdir(parents=True, exist_ok=True)

        conn = await aiosqlite.connect(path)
        conn.row_factory = aiosqlite.Row
        for pragma in _PRAGMAS:
            await conn.execute(pragma)
        await conn.commit()

        self._conn = conn
        self._path = path
        logger.info("[DB CONNECTION] Moderation store opened at %s", path)

    async def close(self) -> None:
        """Checkpoint the WAL into the main file, then close. No-op when closed."""
        if self._conn is None:
            return

        conn, self._conn = self._conn, None
        try:
            await conn.execute("PRAGMA wal_checkpoint(TRUNCATE)")
            await conn.commit()
        except aiosqlite.Error:
            logger.exception("[DB CONNECTION] Could not checkpoint %s before closing", self._path)
        finally:
            await conn.close()
            logger.info("[DB CONNECTION] Moderation store closed")

    def _require_open(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Moderation store is not open; call ConnectionManager.open() at startup")
        return self._conn

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Exclusive write access.

        The block's statements are committed together when it exits normally
        and rolled back when it raises.

        Raises:
            RuntimeError: The store is not open.
        """
        conn = self._require_open()
        async with self._write_lock:
            try:
                yield conn
                await conn.commit()
            except Exception:
                await conn.rollback()
                raise

    @asynccontextmanager
    async def read(self) -> AsyncIterator[aiosqlite.Connection]:
        """Connection for SELECT statements. Raises RuntimeError when the store is not open."""
        yield self._require_open()
