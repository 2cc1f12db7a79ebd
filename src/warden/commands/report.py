"""``report <player> <reason...>``: any player can flag someone for admin review."""

from __future__ import annotations

from warden.datatypes.command_datatypes import (
    PLAYER_INVOCATION,
    CommandCategory,
    CommandDefinition,
    Invocation,
    ModerationCapabilities,
)
from warden.datatypes.player_datatypes import Actor, HumanActor, PermissionLevel, SystemActor
from warden.util.logger import get_logger
from warden.util.player_utils import reply

logger = get_logger("cmd_report")

definition = CommandDefinition(
    name="report",
    syntax="{prefix}report <playername> <reason>",
    description="Reports a player to the server admins.",
    permission_level=PermissionLevel.MEMBER,
    category=CommandCategory.MODERATION,
)


async def execute(
    actor: Actor,
    args: list[str],
    capabilities: ModerationCapabilities,
    invocation: Invocation = PLAYER_INVOCATION,
) -> None:
    match actor:
        case SystemActor():
            reply(actor, "§cReports can only be filed by players.", logger)
            return
        case HumanActor(player=reporter):
            pass

    if len(args) < 2:
        reply(actor, f"§cUsage: {definition.syntax.format(prefix=capabilities.config.prefix)}", logger)
        return

    target_name = args[0]
    reason = " ".join(args[1:])

    reported = capabilities.find_player(target_name)
    if reported is None:
        reply(actor, f"§cPlayer '{target_name}' not found.", logger)
        return
    if reported.id == reporter.id:
        reply(actor, "§cYou cannot report yourself.", logger)
        return

    if capabilities.reports is None:
        logger.warning("[REPORT] Report manager unavailable")
        reply(actor, "§cReports are unavailable right now.", logger)
        return

    report = capabilities.reports.add_report(reporter, reported, reason)
    if report is None:
        reply(actor, "§cCould not file your report. Please provide a reason.", logger)
        return

    if not await capabilities.reports.persist():
        logger.warning("[REPORT] Report %s kept in memory, will retry persisting", report.id)

    reply(actor, f"§aThank you. Your report against {reported.name} has been submitted.", logger)

    if capabilities.notifier is not None:
        capabilities.notifier.notify_admins(
            f"§e{reporter.name}§r reported §e{reported.name}§r: {report.reason}",
            reported,
            capabilities.player_data.get_player_data(reported.id) if capabilities.player_data else None,
        )
