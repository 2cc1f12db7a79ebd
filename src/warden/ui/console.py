"""Interactive operator console for a running Warden server."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass

from prompt_toolkit import print_formatted_text
from prompt_toolkit.formatted_text import FormattedText
from prompt_toolkit.patch_stdout import patch_stdout
from prompt_toolkit.shortcuts import PromptSession

from warden.datatypes.player_datatypes import SYSTEM
from warden.runtime import WardenRuntime
from warden.util.format_utils import humanize_timestamp
from warden.util.logger import get_logger

BOX_WIDTH = 60

logger = get_logger("console")

CommandHandler = Callable[["ConsoleControl", list[str]], Awaitable[None]]


def console_print(message: str, style: str = "") -> None:
    """Print without breaking the active prompt."""
    formatted: FormattedText | str
    if style:
        formatted = FormattedText([(style, message)])
    else:
        formatted = message
    print_formatted_text(formatted)


def print_boxed_title(title: str, color: str = "") -> None:
    inner_width = BOX_WIDTH - 2
    pad_left = (inner_width - len(title)) // 2
    pad_right = inner_width - len(title) - pad_left
    for line in (
        f"╔{'═' * inner_width}╗",
        f"║{' ' * pad_left}{title}{' ' * pad_right}║",
        f"╚{'═' * inner_width}╝",
    ):
        console_print(line, color)


@dataclass
class Command:
    """
    A console command.

    Attributes:
        name: Primary name.
        handler: Async function run with the control object and the arguments.
        aliases: Alternative names.
        description: Help text.
        usage: Optional syntax line.
    """
    name: str
    handler: CommandHandler
    aliases: list[str]
    description: str
    usage: str = ""

    def matches(self, input_cmd: str) -> bool:
        return input_cmd == self.name or input_cmd in self.aliases


class ConsoleControl:
    """Shutdown signalling between the console and the main loop, plus access to the runtime."""

    def __init__(self, runtime: WardenRuntime) -> None:
        self.runtime = runtime
        self.shutdown_event = asyncio.Event()

    def request_shutdown(self) -> None:
        self.shutdown_event.set()

    def is_shutdown_requested(self) -> bool:
        return self.shutdown_event.is_set()


# ==================== Command Handlers ====================

async def cmd_help(control: ConsoleControl, args: list[str]) -> None:
    print_boxed_title("Console Commands Reference", "ansigreen")
    for cmd in COMMANDS:
        aliases_str = f" (aliases: {', '.join(cmd.aliases)})" if cmd.aliases else ""
        console_print(f"\n  {cmd.name}{aliases_str}", "ansicyan")
        console_print(f"    {cmd.description}")
        if cmd.usage:
            console_print(f"    Usage: {cmd.usage}", "ansibrightblack")
    console_print("")


async def cmd_status(control: ConsoleControl, args: list[str]) -> None:
    runtime = control.runtime
    print_boxed_title("Warden Status", "ansimagenta")
    console_print(f"  Store:      {'🟢 Open' if runtime.connections.is_open else '🔴 Closed'}")
    console_print(f"  Flushing:   {'🟢 Running' if runtime.scheduler.is_running else '🔴 Stopped'}")
    console_print(f"  AutoMod:    {'🟢 Enabled' if runtime.automod.enabled else '⚪ Disabled'}")
    console_print(f"  Players:    {len(runtime.world.get_players())}")
    console_print(f"  Reports:    {len(runtime.reports)}{' (unsaved)' if runtime.reports.is_dirty else ''}")
    console_print(f"  Bans:       {len(runtime.bans)}{' (unsaved)' if runtime.bans.is_dirty else ''}")
    console_print(f"  Log:        {len(runtime.logs)}{' (unsaved)' if runtime.logs.is_dirty else ''}")
    console_print("")


async def cmd_players(control: ConsoleControl, args: list[str]) -> None:
    runtime = control.runtime
    players = runtime.world.get_players()
    if not players:
        console_print("No players connected.", "ansiyellow")
        return

    print_boxed_title(f"Connected Players ({len(players)})", "ansiblue")
    for player in players:
        pdata = runtime.player_data.get_player_data(player.id)
        flags = pdata.total_flags if pdata else 0
        watched = " [watched]" if pdata and pdata.is_watched else ""
        console_print(f"  • {player.name} ({runtime.ranks.get_permission_level(player)}, flags: {flags}){watched}")
    console_print("")


async def cmd_bans(control: ConsoleControl, args: list[str]) -> None:
    bans = control.runtime.bans.get_all()
    if not bans:
        console_print("No active bans.", "ansiyellow")
        return

    print_boxed_title(f"Bans ({len(bans)})", "ansired")
    for ban in bans:
        expiry = "permanent" if ban.is_permanent else f"until {humanize_timestamp(ban.unban_time)}"
        console_print(f"  • {ban.target_name} by {ban.banned_by} ({expiry}): {ban.reason}")
    console_print("")


async def cmd_flush(control: ConsoleControl, args: list[str]) -> None:
    if await control.runtime.scheduler.flush():
        console_print("All moderation state persisted.", "ansigreen")
    else:
        console_print("Some records could not be persisted; see the log.", "ansibrightred")


async def cmd_run(control: ConsoleControl, args: list[str]) -> None:
    if not args:
        console_print("Usage: run <command> [args...]", "ansiyellow")
        return
    if not await control.runtime.commands.execute_as(SYSTEM, args[0], args[1:]):
        console_print(f"Command '{args[0]}' did not complete; see the log.", "ansibrightred")


async def cmd_shutdown(control: ConsoleControl, args: list[str]) -> None:
    console_print("Shutdown requested.", "ansiyellow")
    control.request_shutdown()


# ==================== Command Registry ====================

COMMANDS: list[Command] = [
    Command(
        name="help",
        handler=cmd_help,
        aliases=["h", "?"],
        description="Show this help message with all available commands",
    ),
    Command(
        name="status",
        handler=cmd_status,
        aliases=["stat", "info"],
        description="Display store, scheduler and cache status",
    ),
    Command(
        name="players",
        handler=cmd_players,
        aliases=["list", "p"],
        description="List connected players with their rank and flag count",
    ),
    Command(
        name="bans",
        handler=cmd_bans,
        aliases=[],
        description="List active bans",
    ),
    Command(
        name="flush",
        handler=cmd_flush,
        aliases=["save"],
        description="Persist every dirty cache now",
    ),
    Command(
        name="run",
        handler=cmd_run,
        aliases=["cmd"],
        description="Run a chat command as the System actor",
        usage="run <command> [args...]",
    ),
    Command(
        name="shutdown",
        handler=cmd_shutdown,
        aliases=["stop", "quit", "exit"],
        description="Flush state and shut down",
    ),
]


# ==================== Command Dispatcher ====================

async def handle_console_command(command: str, control: ConsoleControl) -> None:
    """Parse one console line and run the matching handler."""
    if not command.strip():
        return

    parts = command.strip().split()
    cmd_name = parts[0].lower()
    args = parts[1:]

    for cmd in COMMANDS:
        if cmd.matches(cmd_name):
            try:
                await cmd.handler(control, args)
            except Exception as exc:
                logger.exception("Error executing console command '%s': %s", cmd_name, exc)
                console_print(f"Error executing command: {exc}", "ansibrightred")
            return

    console_print(f"Unknown command '{cmd_name}'. Type 'help' for available commands.", "ansibrightred")


async def run_console(control: ConsoleControl) -> None:
    """Read console lines until shutdown is requested."""
    session = PromptSession("> ")

    print_boxed_title("Warden Operator Console", "ansicyan")
    console_print("Type 'help' for available commands or 'exit' to quit.\n", "ansibrightblack")

    with patch_stdout():
        while not control.is_shutdown_requested():
            try:
                line = await session.prompt_async()
                if line.strip():
                    await handle_console_command(line, control)
            except (EOFError, KeyboardInterrupt):
                console_print("\nShutdown requested by user.", "ansibrightyellow")
                control.request_shutdown()
                break
            except Exception as exc:  # pragma: no cover
                logger.exception("Error in console input loop: %s", exc)
                console_print(f"Error: {exc}", "ansibrightred")


@asynccontextmanager
async def console_session(control: ConsoleControl) -> AsyncIterator[ConsoleControl]:
    """Run the console in a background task for the duration of the context."""
    console_task = asyncio.create_task(run_console(control))
    try:
        yield control
    finally:
        control.request_shutdown()
        console_task.cancel()
        try:
            await console_task
        except asyncio.CancelledError:
            pass
