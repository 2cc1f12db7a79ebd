"""
``ban <player> [duration] [reason...]``

Bans a connected player, kicks them with the ban details, tells the admins and
writes a ``ban`` audit entry. Also reachable from automation through
:meth:`~warden.commands.command_manager.CommandManager.execute_automated`, in
which case the hierarchy checks are skipped and the ban is attributed to AutoMod.
"""

from __future__ import annotations

import math

from warden.datatypes.command_datatypes import (
    PLAYER_INVOCATION,
    CommandCategory,
    CommandDefinition,
    Invocation,
    ModerationCapabilities,
)
from warden.datatypes.player_datatypes import Actor, HumanActor, PermissionLevel, Player, SystemActor
from warden.errors import PlayerDisconnectedError
from warden.storage.record_cache import now_ms
from warden.util.format_utils import MAX_TIMESTAMP_MS, humanize_timestamp
from warden.util.logger import get_logger
from warden.util.player_utils import reply

logger = get_logger("cmd_ban")

DEFAULT_DURATION = "perm"
DEFAULT_REASON = "Banned by an administrator."

definition = CommandDefinition(
    name="ban",
    syntax="{prefix}ban <playername> [duration] [reason]",
    description="Bans a player for a specified duration (e.g., 7d, 2h, perm).",
    permission_level=PermissionLevel.ADMIN,
    category=CommandCategory.MODERATION,
)


def _hierarchy_denial(
    issuer: Player,
    issuer_level: PermissionLevel,
    target: Player,
    target_level: PermissionLevel,
    owner_peer_bans: bool,
) -> str | None:
    """Message explaining why ``issuer`` may not ban ``target``, or None when allowed."""
    if target_level <= PermissionLevel.ADMIN and issuer_level > PermissionLevel.OWNER:
        return "You do not have permission to ban this player."
    if target_level == PermissionLevel.OWNER and issuer_level > PermissionLevel.OWNER:
        return "Only the owner can ban another owner."
    if (
        target_level == PermissionLevel.OWNER
        and issuer_level == PermissionLevel.OWNER
        and target.id != issuer.id
        and not owner_peer_bans
    ):
        return "Owners cannot ban other owners."
    return None


def _issuing_player(actor: Actor) -> Player | None:
    match actor:
        case HumanActor(player=player):
            return player
        case SystemActor():
            return None


def _responsible_identity(actor: Actor, invocation: Invocation) -> str:
    if invocation.automated:
        return "AutoMod"
    match actor:
        case HumanActor(player=player):
            return player.name
        case SystemActor():
            return "System"


def ban_kick_message(reason: str, banned_by: str, unban_time: int | None) -> str:
    lines = [
        "§cYou have been banned from this server.",
        f"§fReason: §e{reason}",
        f"§fBanned by: §e{banned_by}",
    ]
    if unban_time is None:
        lines.append("§fThis ban is permanent.")
    else:
        lines.append(f"§fExpires: §e{humanize_timestamp(unban_time)}")
    return "\n".join(lines)


async def execute(
    actor: Actor,
    args: list[str],
    capabilities: ModerationCapabilities,
    invocation: Invocation = PLAYER_INVOCATION,
) -> None:
    prefix = capabilities.config.prefix

    if not args:
        reply(actor, f"§cUsage: {definition.syntax.format(prefix=prefix)}", logger)
        return

    target_name = args[0]
    duration_string = args[1] if len(args) > 1 else DEFAULT_DURATION
    reason = " ".join(args[2:])
    if not reason:
        reason = f"AutoMod action for {invocation.check_type or 'violations'}." if invocation.automated else DEFAULT_REASON

    target = capabilities.find_player(target_name)
    if target is None:
        reply(actor, f"§cPlayer '{target_name}' not found.", logger)
        return

    if not invocation.automated:
        match actor:
            case HumanActor(player=issuer):
                if issuer.id == target.id:
                    reply(actor, "§cYou cannot ban yourself.", logger)
                    return
                denial = _hierarchy_denial(
                    issuer,
                    capabilities.get_permission_level(issuer),
                    target,
                    capabilities.get_permission_level(target),
                    capabilities.config.owner_peer_bans,
                )
                if denial is not None:
                    reply(actor, f"§c{denial}", logger)
                    logger.debug("[BAN] %s denied banning %s: %s", issuer.name, target.name, denial)
                    return
            case SystemActor():
                pass

    duration_ms = capabilities.parse_duration(duration_string)
    if (
        duration_ms is None
        or (duration_ms <= 0 and not math.isinf(duration_ms))
        or (not math.isinf(duration_ms) and now_ms() + duration_ms > MAX_TIMESTAMP_MS)
    ):
        reply(actor, f"§cInvalid duration format: {duration_string}. Use e.g. 7d, 2h, 30m, or perm.", logger)
        return

    banned_by = _responsible_identity(actor, invocation)

    if capabilities.bans is None:
        logger.warning("[BAN] Ban manager unavailable, cannot ban %s", target.name)
        reply(actor, f"§cFailed to ban {target.name}. Check server logs.", logger)
        return

    record = await capabilities.bans.add_ban(
        target,
        duration_ms,
        reason,
        banned_by,
        is_automod_action=invocation.automated,
        automod_check_type=invocation.check_type,
    )
    if record is None:
        reply(actor, f"§cFailed to ban {target.name}. Check server logs.", logger)
        return

    try:
        target.kick(ban_kick_message(reason, banned_by, record.unban_time))
    except PlayerDisconnectedError as exc:
        logger.debug("[BAN] Could not kick %s (already disconnected?): %s", target.name, exc)

    duration_text = "permanently" if record.is_permanent else f"for {duration_string}"
    reply(actor, f"§aSuccessfully banned {target.name} {duration_text}. Reason: {reason}", logger)

    if capabilities.notifier is not None:
        capabilities.notifier.notify_admins(
            f"§e{banned_by}§r banned §e{target.name}§r {duration_text}. Reason: {reason}",
            _issuing_player(actor),
            capabilities.player_data.get_player_data(target.id) if capabilities.player_data else None,
        )

    if capabilities.logs is not None:
        capabilities.logs.add_log(
            action_type="ban",
            admin_name=banned_by,
            target_name=target.name,
            duration=duration_string,
            reason=reason,
            is_automod=invocation.automated,
            check_type=invocation.check_type,
        )
