"""
Chat command gateway.

:class:`CommandManager` builds its lookup tables once from a static list of
command modules, then turns prefixed chat messages into executor calls:

    Received -> Parsed -> AliasResolved -> LookedUp -> EnablementChecked
             -> PermissionChecked -> Dispatched -> Completed | Failed

Every stop before ``Dispatched`` answers the player and consumes the message.
Executor errors are caught here; one failing command never breaks dispatch.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Iterable, Optional

from warden.configuration.app_configuration import AppConfig
from warden.datatypes.command_datatypes import (
    PLAYER_INVOCATION,
    Capabilities,
    ChatMessageEvent,
    CommandCategory,
    CommandDefinition,
    CommandExecutor,
    CommandModule,
    InfoCapabilities,
    Invocation,
    ModerationCapabilities,
)
from warden.datatypes.player_datatypes import AUTOMOD, Actor, HumanActor, PermissionLevel
from warden.moderation.admin_notifier import AdminNotifier
from warden.moderation.player_data_manager import PlayerDataManager
from warden.moderation.rank_manager import RankManager
from warden.storage.ban_manager import BanManager
from warden.storage.log_manager import LogManager
from warden.storage.report_manager import ReportManager
from warden.util.logger import get_logger
from warden.util.player_utils import debug_log, warn_player
from warden.world import World

logger = get_logger("command_manager")
audit_logger = get_logger("audit")

PERMISSION_DENIED_MESSAGE = "You do not have permission to use this command."


class CommandManager:
    """
    Registers chat commands and dispatches chat messages to them.

    Args:
        config: Server configuration (prefix, aliases, per-command overrides).
        world: Connected players.
        ranks: Permission level resolver.
        modules: Command modules, each with ``definition`` and ``execute``.
        player_data: Moderation state owner (watch status, flags).
        bans, reports, logs, notifier: Collaborators handed to moderation commands.
    """

    def __init__(
        self,
        config: AppConfig,
        world: World,
        ranks: RankManager,
        modules: Iterable[CommandModule],
        player_data: Optional[PlayerDataManager] = None,
        bans: Optional[BanManager] = None,
        reports: Optional[ReportManager] = None,
        logs: Optional[LogManager] = None,
        notifier: Optional[AdminNotifier] = None,
    ) -> None:
        self._config = config
        self._ranks = ranks
        self._player_data = player_data
        self._logs = logs
        self._definitions: Dict[str, CommandDefinition] = {}
        self._executors: Dict[str, CommandExecutor] = {}

        self._register_all(modules)

        self._info_capabilities = InfoCapabilities(
            config=config,
            world=world,
            ranks=ranks,
            commands=self._definitions,
        )
        self._moderation_capabilities = ModerationCapabilities(
            config=config,
            world=world,
            ranks=ranks,
            commands=self._definitions,
            player_data=player_data,
            bans=bans,
            reports=reports,
            logs=logs,
            notifier=notifier,
        )

    # ========== Registration ==========

    def _register_all(self, modules: Iterable[CommandModule]) -> None:
        for module in modules:
            definition = getattr(module, "definition", None)
            execute = getattr(module, "execute", None)
            if not isinstance(definition, CommandDefinition) or not callable(execute):
                logger.warning("[COMMAND MANAGER] Skipping invalid command module %r", module)
                continue

            name = definition.name.lower()
            if name in self._definitions:
                logger.warning("[COMMAND MANAGER] Duplicate command name detected and overwritten: %s", name)
            self._definitions[name] = definition
            self._executors[name] = execute

        logger.info("[COMMAND MANAGER] Loaded %d command definition(s)", len(self._definitions))

    @property
    def definitions(self) -> Dict[str, CommandDefinition]:
        """Copy of the command definition table."""
        return dict(self._definitions)

    def is_enabled(self, name: str) -> bool:
        """Effective enablement: the per-installation override wins over the compiled-in default."""
        definition = self._definitions.get(name)
        if definition is None:
            return False
        override = self._config.command_enabled_override(name)
        return definition.enabled if override is None else override

    def unknown_command_message(self, name: str) -> str:
        prefix = self._config.prefix
        return f"§cUnknown command: {prefix}{name}§r. Type {prefix}help for assistance."

    def _capabilities_for(self, definition: CommandDefinition) -> Capabilities:
        if definition.category is CommandCategory.MODERATION:
            return self._moderation_capabilities
        return self._info_capabilities

    # ========== Dispatch ==========

    def is_command(self, message: str) -> bool:
        return message.startswith(self._config.prefix)

    async def handle_chat_message(self, event: ChatMessageEvent) -> bool:
        """Entry point for every chat message. Returns True when it was a command."""
        if not self.is_command(event.message):
            return False
        await self.handle_chat_command(event)
        return True

    async def handle_chat_command(self, event: ChatMessageEvent) -> None:
        """Parse, authorize and run a prefixed chat message. Never raises."""
        player = event.sender
        message = event.message
        prefix = self._config.prefix

        args = message[len(prefix):].strip().split()
        name_input = args.pop(0).lower() if args else ""

        pdata = self._player_data.get_player_data(player.id) if self._player_data else None
        watched_name = player.name if pdata is not None and pdata.is_watched else None
        debug_log(
            logger,
            f"{player.name} issued command attempt: {name_input!r} with args: [{', '.join(args)}]",
            watched_name,
        )

        if not name_input:
            player.send_message(f"§cPlease enter a command after the prefix. Type {prefix}help for a list of commands.")
            event.cancel = True
            return

        alias_target = self._config.command_aliases.get(name_input)
        command_name = alias_target or name_input
        if alias_target:
            debug_log(logger, f"Command alias {name_input!r} resolved to {command_name!r}", watched_name)

        definition = self._definitions.get(command_name)
        execute = self._executors.get(command_name)
        if definition is None or execute is None:
            player.send_message(self.unknown_command_message(command_name))
            event.cancel = True
            return

        if not self.is_enabled(command_name):
            player.send_message(self.unknown_command_message(command_name))
            event.cancel = True
            debug_log(logger, f"Command {command_name!r} is disabled. Access denied for {player.name}.", watched_name)
            return

        user_level = self._ranks.get_permission_level(player)
        if user_level > definition.permission_level:
            warn_player(player, PERMISSION_DENIED_MESSAGE)
            debug_log(
                logger,
                f"Command {definition.name!r} denied for {player.name}: "
                f"required {int(definition.permission_level)}, has {int(user_level)}",
                watched_name,
            )
            event.cancel = True
            return

        event.cancel = True

        if user_level <= PermissionLevel.ADMIN:
            timestamp = datetime.now(timezone.utc).isoformat()
            audit_logger.warning("[ADMIN COMMAND] %s - Player: %s - Command: %s", timestamp, player.name, message)

        if pdata is not None and pdata.is_watched and user_level <= PermissionLevel.ADMIN:
            debug_log(logger, f"Watched admin {player.name} is executing command: {message}", player.name)

        try:
            await execute(HumanActor(player), args, self._capabilities_for(definition))
            debug_log(logger, f"Executed command {command_name!r} for {player.name}", watched_name)
        except Exception as exc:
            player.send_message(f"§cAn error occurred while executing command '{command_name}'. Please report this.")
            logger.exception("[COMMAND MANAGER] Error executing command %s for %s", command_name, player.name)
            self._log_command_error(command_name, player.name, args, exc)

    async def execute_as(
        self,
        actor: Actor,
        name: str,
        args: list[str],
        invocation: Invocation = PLAYER_INVOCATION,
    ) -> bool:
        """
        Run a command outside chat, skipping parsing and permission checks.

        Used by automation and the operator console.

        Args:
            actor: Who the command runs as (normally a system actor).
            name: Command name or alias (case-insensitive).
            args: Positional arguments, as a player would type them.
            invocation: Marks automation-originated runs and the triggering check.

        Returns:
            bool: False when the command is unknown, disabled, or raised.
        """
        command_name = name.lower()
        command_name = self._config.command_aliases.get(command_name, command_name)
        definition = self._definitions.get(command_name)
        execute = self._executors.get(command_name)
        if definition is None or execute is None or not self.is_enabled(command_name):
            logger.warning("[COMMAND MANAGER] %s invoked unavailable command %r", actor.label, command_name)
            return False

        try:
            await execute(actor, args, self._capabilities_for(definition), invocation)
        except Exception as exc:
            logger.exception("[COMMAND MANAGER] Error executing command %s for %s", command_name, actor.label)
            self._log_command_error(command_name, actor.label, args, exc)
            return False
        return True

    async def execute_automated(self, name: str, args: list[str], check_type: Optional[str] = None) -> bool:
        """Run a command as AutoMod on behalf of the detection layer."""
        return await self.execute_as(AUTOMOD, name, args, Invocation(automated=True, check_type=check_type))

    def _log_command_error(self, command_name: str, actor_name: str, args: list[str], exc: Exception) -> None:
        if self._logs is None:
            return
        self._logs.add_log(
            action_type="command_error",
            admin_name=actor_name,
            details=f"Cmd: {command_name}, Player: {actor_name}, Args: [{', '.join(args)}], Error: {exc}",
        )
