"""
Broadcast channel to connected administrators.
"""

from __future__ import annotations

from typing import Optional

from warden.datatypes.moderation_datatypes import PlayerModerationState
from warden.datatypes.player_datatypes import Player
from warden.moderation.player_data_manager import PlayerDataManager
from warden.moderation.rank_manager import RankManager
from warden.util.logger import get_logger
from warden.world import World

logger = get_logger("admin_notifier")

NOTIFY_PREFIX = "§7[§cAC§7] §r"


class AdminNotifier:
    """Sends a line to every connected admin who has not muted notifications."""

    def __init__(self, world: World, ranks: RankManager, player_data: PlayerDataManager) -> None:
        self._world = world
        self._ranks = ranks
        self._player_data = player_data

    def notify_admins(
        self,
        message: str,
        player: Optional[Player] = None,
        pdata: Optional[PlayerModerationState] = None,
    ) -> int:
        """
        Fire-and-forget broadcast.

        Args:
            message: Already formatted notification text.
            player: Player the notification originates from, if any.
            pdata: Moderation state of the subject, used to mark watched players.

        Returns:
            int: Number of admins the message was delivered to.
        """
        text = NOTIFY_PREFIX + message
        if pdata is not None and pdata.is_watched:
            text += " §e(Watched)"

        delivered = 0
        for admin in self._world.get_players():
            if not self._ranks.is_admin(admin):
                continue
            admin_state = self._player_data.get_player_data(admin.id)
            if admin_state is not None and admin_state.notifications_muted:
                continue
            try:
                admin.send_message(text)
                delivered += 1
            except Exception:
                logger.exception("[ADMIN NOTIFIER] Failed to notify %s", admin.name)

        logger.debug(
            "[ADMIN NOTIFIER] Delivered to %d admin(s)%s: %s",
            delivered,
            f" from {player.name}" if player is not None else "",
            message,
        )
        return delivered
