"""
Active bans, persisted under ``warden:bans_v1``.

A target has at most one ban record; banning again replaces it. Expired
records are treated as absent and pruned whenever a lookup meets them.
"""

from __future__ import annotations

import math
from typing import Optional

from warden.database.kv_store import KeyValueStore
from warden.datatypes.moderation_datatypes import BanRecord
from warden.datatypes.player_datatypes import Player
from warden.storage.record_cache import DurableRecordCache, generate_record_id, now_ms
from warden.util.logger import get_logger

logger = get_logger("ban_manager")

BANS_KEY = "warden:bans_v1"
MAX_BANS = 500


class BanManager(DurableRecordCache[BanRecord]):
    def __init__(self, store: KeyValueStore, max_bans: int = MAX_BANS) -> None:
        super().__init__(store, BANS_KEY, BanRecord.from_dict, max_bans, "BAN MANAGER")

    async def add_ban(
        self,
        target: Player,
        duration_ms: float,
        reason: str,
        banned_by: str,
        is_automod_action: bool = False,
        automod_check_type: Optional[str] = None,
    ) -> Optional[BanRecord]:
        """
        Ban ``target`` for ``duration_ms`` milliseconds (``math.inf`` for permanent).

        The record is applied in memory and then persisted. A failed write is
        logged and left to the next flush; the ban itself stays in effect.

        Returns:
            BanRecord | None: The new record, or None when the target has no
            id or name, or the duration is not positive.
        """
        if not getattr(target, "id", None) or not getattr(target, "name", None):
            logger.warning("[BAN MANAGER] add_ban called without a valid target")
            return None
        if duration_ms is None or duration_ms <= 0:
            logger.warning("[BAN MANAGER] add_ban called with invalid duration %r for %s", duration_ms, target.name)
            return None

        timestamp = now_ms()
        record = BanRecord(
            id=generate_record_id(timestamp),
            timestamp=timestamp,
            target_id=target.id,
            target_name=target.name,
            reason=reason,
            banned_by=banned_by,
            unban_time=None if math.isinf(duration_ms) else timestamp + int(duration_ms),
            is_automod_action=is_automod_action,
            automod_check_type=automod_check_type,
        )

        self._remove_where(lambda existing: existing.target_id == target.id)
        self._insert(record)
        logger.info(
            "[BAN MANAGER] %s banned by %s (%s)",
            record.target_name,
            banned_by,
            "permanent" if record.is_permanent else f"until {record.unban_time}",
        )

        if not await self.persist():
            logger.warning("[BAN MANAGER] Ban of %s kept in memory, will retry persisting", record.target_name)
        return record

    def get_ban_info(self, target_id: str) -> Optional[BanRecord]:
        """Active ban of ``target_id``, or None. An expired record is removed and reads as None."""
        record = next((ban for ban in self._records if ban.target_id == target_id), None)
        if record is None:
            return None
        if record.is_expired(now_ms()):
            self._remove_where(lambda ban: ban.id == record.id)
            logger.info("[BAN MANAGER] Ban of %s expired", record.target_name)
            return None
        return record

    def is_banned(self, target_id: str) -> bool:
        return self.get_ban_info(target_id) is not None

    def find_by_name(self, target_name: str) -> Optional[BanRecord]:
        """Active ban whose target name matches (case-insensitive)."""
        wanted = target_name.lower()
        record = next((ban for ban in self._records if ban.target_name.lower() == wanted), None)
        if record is None:
            return None
        return self.get_ban_info(record.target_id)

    async def remove_ban(self, target_id: str) -> bool:
        """Lift the ban of ``target_id``. False when there was none."""
        record = self.get_ban_info(target_id)
        if record is None:
            return False
        return await self.remove_by_id(record.id)

    def prune_expired(self) -> int:
        """Drop every expired record from memory. Returns how many were dropped."""
        current = now_ms()
        removed = self._remove_where(lambda ban: ban.is_expired(current))
        if removed:
            logger.info("[BAN MANAGER] Pruned %d expired ban(s)", removed)
        return removed
