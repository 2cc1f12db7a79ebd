"""``unban <player>``: lifts an active ban by the banned player's name."""

from __future__ import annotations

from warden.datatypes.command_datatypes import (
    PLAYER_INVOCATION,
    CommandCategory,
    CommandDefinition,
    Invocation,
    ModerationCapabilities,
)
from warden.datatypes.player_datatypes import Actor, PermissionLevel
from warden.util.logger import get_logger
from warden.util.player_utils import reply

logger = get_logger("cmd_unban")

definition = CommandDefinition(
    name="unban",
    syntax="{prefix}unban <playername>",
    description="Removes an active ban.",
    permission_level=PermissionLevel.ADMIN,
    category=CommandCategory.MODERATION,
)


async def execute(
    actor: Actor,
    args: list[str],
    capabilities: ModerationCapabilities,
    invocation: Invocation = PLAYER_INVOCATION,
) -> None:
    if not args:
        reply(actor, f"§cUsage: {definition.syntax.format(prefix=capabilities.config.prefix)}", logger)
        return

    target_name = args[0]
    if capabilities.bans is None:
        logger.warning("[UNBAN] Ban manager unavailable")
        reply(actor, "§cBan storage is unavailable.", logger)
        return

    record = capabilities.bans.find_by_name(target_name)
    if record is None:
        reply(actor, f"§cNo active ban found for '{target_name}'.", logger)
        return

    if not await capabilities.bans.remove_ban(record.target_id):
        logger.warning("[UNBAN] Unban of %s applied in memory only, will retry persisting", record.target_name)

    reply(actor, f"§aUnbanned {record.target_name}.", logger)

    if capabilities.notifier is not None:
        capabilities.notifier.notify_admins(f"§e{actor.label}§r unbanned §e{record.target_name}§r.")
    if capabilities.logs is not None:
        capabilities.logs.add_log(
            action_type="unban",
            admin_name=actor.label,
            target_name=record.target_name,
            reason=record.reason,
        )
