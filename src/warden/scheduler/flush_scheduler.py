"""Periodic flush of dirty moderation state to the key-value store.

Record caches and player states are mutated in memory and only marked dirty;
:class:`FlushScheduler` writes them back on a fixed interval and once more on
shutdown, so a failed write is simply retried on the next pass.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Sequence

from warden.moderation.player_data_manager import PlayerDataManager
from warden.storage.ban_manager import BanManager
from warden.storage.record_cache import DurableRecordCache
from warden.util.logger import get_logger

logger = get_logger("flush_scheduler")


class FlushScheduler:
    """
    Background task persisting dirty caches.

    Args:
        caches: Record caches to persist (reports, bans, audit log).
        player_data: Owner of per-player moderation state.
        get_interval: Callable returning the interval in seconds (called at start).
        bans: Ban cache whose expired records are pruned before each flush.
    """

    def __init__(
        self,
        caches: Sequence[DurableRecordCache],
        player_data: PlayerDataManager,
        get_interval: Callable[[], float],
        bans: BanManager | None = None,
    ) -> None:
        self._caches = tuple(caches)
        self._player_data = player_data
        self._get_interval = get_interval
        self._bans = bans
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def flush(self) -> bool:
        """Persist every dirty cache and player state. Returns False if any write failed."""
        if self._bans is not None:
            self._bans.prune_expired()

        ok = True
        for cache in self._caches:
            if not await cache.persist():
                ok = False
        await self._player_data.save_dirty()
        return ok

    async def _run_loop(self, interval: float) -> None:
        """Infinite loop: sleep, flush, repeat."""
        logger.info("[FLUSH] Starting periodic flush (interval=%.1fs)", interval)
        try:
            while True:
                await asyncio.sleep(interval)
                try:
                    if not await self.flush():
                        logger.warning("[FLUSH] Some records could not be persisted, will retry")
                except asyncio.CancelledError:
                    raise
                except Exception as exc:
                    logger.error("[FLUSH] Unexpected error during flush: %s", exc)
        except asyncio.CancelledError:
            logger.info("[FLUSH] Periodic flush cancelled")
            raise

    def start(self) -> None:
        """Start the background flush task if not already running."""
        if self.is_running:
            logger.warning("[FLUSH] Flush task already running")
            return
        interval = self._get_interval()
        logger.info("[FLUSH] Creating flush task with interval %.1fs", interval)
        self._task = asyncio.create_task(self._run_loop(interval))

    async def shutdown(self) -> None:
        """Stop the task and run a final flush."""
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None

        if not await self.flush():
            logger.warning("[FLUSH] Final flush left unsaved records")
        logger.info("[FLUSH] Scheduler shutdown complete")
