"""
Runtime wiring.

:class:`WardenRuntime` constructs every manager once, hands them to each other
explicitly and exposes the hooks a host adapter calls: player join/leave, chat
messages and violations reported by detection checks.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Optional

from warden.commands.ban import ban_kick_message
from warden.commands.command_manager import CommandManager
from warden.commands.registry import COMMAND_MODULES
from warden.configuration.app_configuration import AppConfig
from warden.database.db_connection import ConnectionManager
from warden.database.kv_store import KeyValueStore
from warden.datatypes.command_datatypes import ChatMessageEvent
from warden.datatypes.moderation_datatypes import Primitive, ViolationEvent
from warden.datatypes.player_datatypes import Player, actor_for
from warden.errors import PlayerDisconnectedError
from warden.moderation.action_manager import ActionManager
from warden.moderation.admin_notifier import AdminNotifier
from warden.moderation.automod import AutoModPolicy
from warden.moderation.player_data_manager import PlayerDataManager
from warden.moderation.rank_manager import RankManager
from warden.scheduler.flush_scheduler import FlushScheduler
from warden.storage.ban_manager import BanManager
from warden.storage.log_manager import LogManager
from warden.storage.report_manager import ReportManager
from warden.util.logger import get_logger
from warden.world import World

logger = get_logger("runtime")


class WardenRuntime:
    """Owns the moderation components of one server."""

    def __init__(self, config: AppConfig) -> None:
        self.config = config
        self.world = World()
        self.connections = ConnectionManager()
        self.store = KeyValueStore(self.connections)

        self.ranks = RankManager(config)
        self.player_data = PlayerDataManager(self.store)
        self.reports = ReportManager(self.store, config.max_reports)
        self.bans = BanManager(self.store)
        self.logs = LogManager(self.store, config.max_log_entries)
        self.notifier = AdminNotifier(self.world, self.ranks, self.player_data)

        # Profiles are validated by AppConfig and bound here; a reload needs a new runtime.
        self.actions = ActionManager(config.check_action_profiles, self.player_data, self.logs, self.notifier)
        self.commands = CommandManager(
            config,
            self.world,
            self.ranks,
            COMMAND_MODULES,
            player_data=self.player_data,
            bans=self.bans,
            reports=self.reports,
            logs=self.logs,
            notifier=self.notifier,
        )
        self.automod = AutoModPolicy(config.automod_rules, self.commands, config.automod_enabled)
        self.player_data.add_flag_listener(self.automod.on_flag)

        self.scheduler = FlushScheduler(
            (self.reports, self.bans, self.logs),
            self.player_data,
            lambda: self.config.flush_interval_seconds,
            bans=self.bans,
        )

    # ========== Lifecycle ==========

    async def start(self, db_path: Optional[Path | str] = None) -> None:
        """Open the store, load every cache and start the flush scheduler."""
        path = db_path if db_path is not None else self.config.database_path
        await self.connections.open(Path(path))
        await self.store.initialize()

        for cache in (self.reports, self.bans, self.logs):
            await cache.load()
        pruned = self.bans.prune_expired()

        self.scheduler.start()
        logger.info(
            "[RUNTIME] Started: %d report(s), %d ban(s) (%d expired pruned), %d log entries",
            len(self.reports),
            len(self.bans),
            pruned,
            len(self.logs),
        )

    async def shutdown(self) -> None:
        """Flush everything and close the store."""
        try:
            await self.scheduler.shutdown()
        finally:
            await self.connections.close()
        logger.info("[RUNTIME] Shutdown complete")

    # ========== Host hooks ==========

    async def on_player_join(self, player: Player) -> bool:
        """
        Admit a connecting player.

        Returns:
            bool: False when the player is banned and was kicked.
        """
        ban = self.bans.get_ban_info(player.id)
        if ban is not None:
            logger.info("[RUNTIME] Banned player %s tried to join", player.name)
            try:
                player.kick(ban_kick_message(ban.reason, ban.banned_by, ban.unban_time))
            except PlayerDisconnectedError as exc:
                logger.debug("[RUNTIME] Could not kick %s: %s", player.name, exc)
            return False

        self.world.join(player)
        await self.player_data.ensure_player(player)
        return True

    async def on_player_leave(self, player_id: str) -> None:
        player = self.world.leave(player_id)
        if player is not None:
            await self.player_data.release_player(player_id)

    async def on_chat(self, sender: Player, message: str) -> ChatMessageEvent:
        """Route a chat message. ``event.cancel`` tells the host to keep it out of chat."""
        event = ChatMessageEvent(sender=sender, message=message)
        await self.commands.handle_chat_message(event)
        return event

    async def report_violation(
        self,
        player: Optional[Player],
        check_type: str,
        details: Optional[Mapping[str, Primitive]] = None,
    ) -> None:
        """Entry point for detection checks. ``player`` None means a world-level detection."""
        await self.actions.handle_violation(ViolationEvent(actor_for(player), check_type, dict(details or {})))
