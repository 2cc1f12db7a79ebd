"""
Player-submitted reports.

Reports live in a :class:`~warden.storage.record_cache.DurableRecordCache`
under ``warden:reports_v1``, newest first, capped at ``max_reports``.
"""

from __future__ import annotations

from typing import List, Optional

from warden.database.kv_store import KeyValueStore
from warden.datatypes.moderation_datatypes import ReportEntry
from warden.datatypes.player_datatypes import Player
from warden.storage.record_cache import DurableRecordCache, generate_record_id, now_ms
from warden.util.logger import get_logger

logger = get_logger("report_manager")

REPORTS_KEY = "warden:reports_v1"
MAX_REPORTS = 100


def _has_identity(player: Optional[Player]) -> bool:
    return bool(player is not None and getattr(player, "id", None) and getattr(player, "name", None))


class ReportManager(DurableRecordCache[ReportEntry]):
    def __init__(self, store: KeyValueStore, max_reports: int = MAX_REPORTS) -> None:
        super().__init__(store, REPORTS_KEY, ReportEntry.from_dict, max_reports, "REPORT MANAGER")

    def add_report(self, reporter: Player, reported: Player, reason: str) -> Optional[ReportEntry]:
        """
        Record a new report, newest first.

        Args:
            reporter: Player filing the report.
            reported: Player being reported.
            reason: Free-text reason; stored trimmed.

        Returns:
            ReportEntry | None: The new report, or None (and no change) when a
            player lacks an id or name, or the reason is blank.
        """
        if not _has_identity(reporter) or not _has_identity(reported) or not reason or not reason.strip():
            logger.warning("[REPORT MANAGER] add_report called with invalid arguments")
            return None

        timestamp = now_ms()
        report = ReportEntry(
            id=generate_record_id(timestamp),
            timestamp=timestamp,
            reporter_id=reporter.id,
            reporter_name=reporter.name,
            reported_id=reported.id,
            reported_name=reported.name,
            reason=reason.strip(),
        )
        self._insert(report)
        logger.info(
            "[REPORT MANAGER] %s reported %s. Cache size: %d",
            report.reporter_name,
            report.reported_name,
            len(self),
        )
        return report

    def get_reports_for(self, player_name: str) -> List[ReportEntry]:
        """Reports filed against ``player_name`` (case-insensitive), newest first."""
        wanted = player_name.lower()
        return [report for report in self.get_all() if report.reported_name.lower() == wanted]
