"""``clearreports <id|all>``: removes one report, or all of them."""

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

logger = get_logger("cmd_clearreports")

definition = CommandDefinition(
    name="clearreports",
    syntax="{prefix}clearreports <reportid|all>",
    description="Deletes a report by id, or every report.",
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
    if capabilities.reports is None:
        reply(actor, "§cReports are unavailable right now.", logger)
        return

    selector = args[0]
    if selector.lower() == "all":
        count = len(capabilities.reports)
        if not await capabilities.reports.clear_all():
            logger.warning("[CLEAR REPORTS] Cleared %d report(s) in memory only, will retry persisting", count)
        reply(actor, f"§aCleared {count} report(s).", logger)
        details = f"Cleared all {count} report(s)"
    else:
        if capabilities.reports.find_by_id(selector) is None:
            reply(actor, f"§cNo report found with id '{selector}'.", logger)
            return
        if not await capabilities.reports.remove_by_id(selector):
            logger.warning("[CLEAR REPORTS] Removed report %s in memory only, will retry persisting", selector)
        reply(actor, f"§aRemoved report {selector}.", logger)
        details = f"Removed report {selector}"

    if capabilities.logs is not None:
        capabilities.logs.add_log(action_type="clear_reports", admin_name=actor.label, details=details)
