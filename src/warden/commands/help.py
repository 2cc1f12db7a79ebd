"""``help [command]``: lists the commands the issuer may use, or shows one command's syntax."""

from __future__ import annotations

from typing import List

from warden.datatypes.command_datatypes import (
    PLAYER_INVOCATION,
    CommandDefinition,
    InfoCapabilities,
    Invocation,
)
from warden.datatypes.player_datatypes import Actor, HumanActor, PermissionLevel, SystemActor
from warden.util.logger import get_logger
from warden.util.player_utils import reply

logger = get_logger("cmd_help")

definition = CommandDefinition(
    name="help",
    syntax="{prefix}help [command]",
    description="Shows available commands or help for a specific command.",
    permission_level=PermissionLevel.MEMBER,
)


def _is_enabled(command: CommandDefinition, capabilities: InfoCapabilities) -> bool:
    override = capabilities.config.command_enabled_override(command.name)
    return command.enabled if override is None else override


def _issuer_level(actor: Actor, capabilities: InfoCapabilities) -> PermissionLevel:
    match actor:
        case HumanActor(player=player):
            return capabilities.get_permission_level(player)
        case SystemActor():
            return PermissionLevel.OWNER


def available_commands(actor: Actor, capabilities: InfoCapabilities) -> List[CommandDefinition]:
    """Enabled commands ``actor`` is allowed to run, sorted by name."""
    level = _issuer_level(actor, capabilities)
    return sorted(
        (
            command
            for command in capabilities.commands.values()
            if _is_enabled(command, capabilities) and level <= command.permission_level
        ),
        key=lambda command: command.name,
    )


async def execute(
    actor: Actor,
    args: list[str],
    capabilities: InfoCapabilities,
    invocation: Invocation = PLAYER_INVOCATION,
) -> None:
    prefix = capabilities.config.prefix
    commands = available_commands(actor, capabilities)

    if args:
        wanted = args[0].lower()
        wanted = capabilities.config.command_aliases.get(wanted, wanted)
        command = next((command for command in commands if command.name == wanted), None)
        if command is None:
            reply(actor, f"§cUnknown command: {prefix}{wanted}§r. Type {prefix}help for assistance.", logger)
            return
        reply(
            actor,
            f"§6{command.syntax.format(prefix=prefix)}\n§7{command.description}",
            logger,
        )
        return

    lines = ["§6Available commands:"]
    for command in commands:
        lines.append(f"§e{command.syntax.format(prefix=prefix)} §7- {command.description}")
    reply(actor, "\n".join(lines), logger)
