"""``viewreports [player]``: lists the most recent reports, optionally for one player."""

from __future__ import annotations

from warden.datatypes.command_datatypes import (
    PLAYER_INVOCATION,
    CommandCategory,
    CommandDefinition,
    Invocation,
    ModerationCapabilities,
)
from warden.datatypes.player_datatypes import Actor, PermissionLevel
from warden.util.format_utils import humanize_timestamp
from warden.util.logger import get_logger
from warden.util.player_utils import reply

logger = get_logger("cmd_viewreports")

MAX_LISTED = 10

definition = CommandDefinition(
    name="viewreports",
    syntax="{prefix}viewreports [playername]",
    description="Shows recent player reports.",
    permission_level=PermissionLevel.ADMIN,
    category=CommandCategory.MODERATION,
)


async def execute(
    actor: Actor,
    args: list[str],
    capabilities: ModerationCapabilities,
    invocation: Invocation = PLAYER_INVOCATION,
) -> None:
    if capabilities.reports is None:
        reply(actor, "§cReports are unavailable right now.", logger)
        return

    if args:
        reports = capabilities.reports.get_reports_for(args[0])
        heading = f"§6Reports against {args[0]} ({len(reports)}):"
    else:
        reports = capabilities.reports.get_all()
        heading = f"§6Recent reports ({len(reports)}):"

    if not reports:
        reply(actor, "§7No reports found.", logger)
        return

    lines = [heading]
    for report in reports[:MAX_LISTED]:
        lines.append(
            f"§7[{report.id}] §f{humanize_timestamp(report.timestamp)} "
            f"§e{report.reporter_name}§f -> §c{report.reported_name}§f: {report.reason}"
        )
    if len(reports) > MAX_LISTED:
        lines.append(f"§7...and {len(reports) - MAX_LISTED} more.")
    reply(actor, "\n".join(lines), logger)
