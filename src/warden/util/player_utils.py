"""
Player-facing helpers shared by the action engine and chat commands.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Iterable, Optional

from warden.datatypes.player_datatypes import Actor, HumanActor, Player, SystemActor
from warden.util.format_utils import strip_color_codes

PERMANENT_DURATION = math.inf
PERMANENT_KEYWORDS = {"perm", "permanent"}

DURATION_UNITS_MS = {
    "s": 1000,
    "m": 60 * 1000,
    "h": 60 * 60 * 1000,
    "d": 24 * 60 * 60 * 1000,
    "w": 7 * 24 * 60 * 60 * 1000,
}

DURATION_PATTERN = re.compile(r"^(\d+)([smhdw]?)$")


def parse_duration(duration_string: str | None) -> Optional[float]:
    """
    Convert a duration like ``"30m"``, ``"7d"`` or ``"perm"`` to milliseconds.

    A bare number is read as minutes.

    Args:
        duration_string: Duration typed by an administrator.

    Returns:
        float | None: Milliseconds, ``PERMANENT_DURATION`` (infinity) for a
        permanent duration, or None when the string cannot be parsed.
    """
    if not duration_string:
        return None

    value = duration_string.strip().lower()
    if value in PERMANENT_KEYWORDS:
        return PERMANENT_DURATION

    match = DURATION_PATTERN.match(value)
    if match is None:
        return None

    amount, unit = match.groups()
    return int(amount) * DURATION_UNITS_MS[unit or "m"]


def find_player(name: str, players: Iterable[Player]) -> Optional[Player]:
    """Find a connected player by name, ignoring case. Returns None when absent."""
    if not name:
        return None
    wanted = name.strip().lower()
    for player in players:
        if player.name.lower() == wanted:
            return player
    return None


def warn_player(player: Player, message: str) -> None:
    """Send a red warning line to a player."""
    player.send_message(f"§c{message}")


def debug_log(logger: logging.Logger, message: str, watched_name: str | None = None) -> None:
    """
    Emit an operator trace.

    When ``watched_name`` is set the trace concerns a watched player and is
    raised to INFO so it shows on the console, prefixed with their name.
    """
    if watched_name:
        logger.info("[WATCHED: %s] %s", watched_name, message)
    else:
        logger.debug(message)


def reply(actor: Actor, message: str, logger: logging.Logger) -> None:
    """Send ``message`` to a human actor, or write it to the server log for the system actor."""
    match actor:
        case HumanActor(player=player):
            player.send_message(message)
        case SystemActor():
            logger.info("[%s] %s", actor.label, strip_color_codes(message))
