"""
Chat command definitions and the capability sets handed to command executors.

Each command module exposes a :class:`CommandDefinition` named ``definition``
and an async ``execute(actor, args, capabilities, invocation=...)``. What an
executor may touch depends on its category: informational commands receive
:class:`InfoCapabilities` (lookups only), moderation commands receive
:class:`ModerationCapabilities` (bans, reports, audit log, notifications).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Awaitable, Mapping, Optional, Protocol, Tuple, Union

from warden.datatypes.player_datatypes import Actor, PermissionLevel, Player
from warden.util.player_utils import parse_duration

if TYPE_CHECKING:
    from warden.configuration.app_configuration import AppConfig
    from warden.moderation.admin_notifier import AdminNotifier
    from warden.moderation.player_data_manager import PlayerDataManager
    from warden.moderation.rank_manager import RankManager
    from warden.storage.ban_manager import BanManager
    from warden.storage.log_manager import LogManager
    from warden.storage.report_manager import ReportManager
    from warden.world import World


class CommandCategory(Enum):
    """Decides which capability set a command receives."""

    INFO = "info"
    MODERATION = "moderation"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class CommandDefinition:
    """Static description of a chat command.

    Attributes:
        name: Unique command name; matched case-insensitively.
        syntax: Usage line shown to players (``{prefix}`` is filled in).
        description: One-line help text.
        permission_level: Highest numeric level allowed to run it.
        enabled: Compiled-in default; ``command_settings`` may override it.
        category: Capability set the executor receives.
    """
    name: str
    syntax: str
    description: str
    permission_level: PermissionLevel
    enabled: bool = True
    category: CommandCategory = CommandCategory.INFO


@dataclass(frozen=True, slots=True)
class Invocation:
    """How a command was invoked: by a player in chat, or by automation."""
    automated: bool = False
    check_type: Optional[str] = None


PLAYER_INVOCATION = Invocation()


@dataclass
class ChatMessageEvent:
    """A chat message sent by a player. Setting ``cancel`` keeps it out of ordinary chat."""
    sender: Player
    message: str
    cancel: bool = False


@dataclass(frozen=True)
class InfoCapabilities:
    """Read-only collaborators for informational commands."""
    config: "AppConfig"
    world: "World"
    ranks: "RankManager"
    commands: Mapping[str, CommandDefinition] = field(default_factory=dict)
    permission_levels: type[PermissionLevel] = PermissionLevel

    def find_player(self, name: str) -> Optional[Player]:
        return self.world.find_player(name)

    @staticmethod
    def parse_duration(duration_string: str | None) -> Optional[float]:
        return parse_duration(duration_string)

    def get_permission_level(self, player: Player) -> PermissionLevel:
        return self.ranks.get_permission_level(player)


@dataclass(frozen=True)
class ModerationCapabilities(InfoCapabilities):
    """Collaborators for commands that change moderation state."""
    player_data: Optional["PlayerDataManager"] = None
    bans: Optional["BanManager"] = None
    reports: Optional["ReportManager"] = None
    logs: Optional["LogManager"] = None
    notifier: Optional["AdminNotifier"] = None


Capabilities = Union[InfoCapabilities, ModerationCapabilities]


class CommandExecutor(Protocol):
    def __call__(
        self,
        actor: Actor,
        args: list[str],
        capabilities: Capabilities,
        invocation: Invocation = PLAYER_INVOCATION,
    ) -> Awaitable[None]: ...


class CommandModule(Protocol):
    definition: CommandDefinition
    execute: CommandExecutor


CommandModules = Tuple[CommandModule, ...]
