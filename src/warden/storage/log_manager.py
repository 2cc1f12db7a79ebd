"""
Append-only audit log of administrative and automated actions.

Entries are kept newest first under ``warden:logs_v1`` and flushed by the
flush scheduler; adding an entry never blocks on the store.
"""

from __future__ import annotations

from typing import List, Optional

from warden.database.kv_store import KeyValueStore
from warden.datatypes.moderation_datatypes import LogEntry
from warden.storage.record_cache import DurableRecordCache, generate_record_id, now_ms
from warden.util.logger import get_logger

logger = get_logger("log_manager")

LOGS_KEY = "warden:logs_v1"
MAX_LOG_ENTRIES = 200


class LogManager(DurableRecordCache[LogEntry]):
    def __init__(self, store: KeyValueStore, max_entries: int = MAX_LOG_ENTRIES) -> None:
        super().__init__(store, LOGS_KEY, LogEntry.from_dict, max_entries, "LOG MANAGER")

    def add_log(
        self,
        action_type: str,
        admin_name: str = "System",
        target_name: Optional[str] = None,
        details: Optional[str] = None,
        duration: Optional[str] = None,
        reason: Optional[str] = None,
        is_automod: bool = False,
        check_type: Optional[str] = None,
    ) -> LogEntry:
        """Append an entry and mark the log dirty."""
        timestamp = now_ms()
        entry = LogEntry(
            id=generate_record_id(timestamp),
            timestamp=timestamp,
            admin_name=admin_name,
            action_type=action_type,
            target_name=target_name,
            details=details,
            duration=duration,
            reason=reason,
            is_automod=is_automod,
            check_type=check_type,
        )
        self._insert(entry)
        logger.debug("[LOG MANAGER] %s by %s on %s", action_type, admin_name, target_name or "-")
        return entry

    def get_logs(self, action_type: Optional[str] = None, target_name: Optional[str] = None) -> List[LogEntry]:
        """Entries, newest first, optionally filtered by action type and/or target name."""
        entries = self.get_all()
        if action_type is not None:
            entries = [entry for entry in entries if entry.action_type == action_type]
        if target_name is not None:
            wanted = target_name.lower()
            entries = [entry for entry in entries if (entry.target_name or "").lower() == wanted]
        return entries
