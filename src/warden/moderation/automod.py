"""
Threshold-based automated moderation.

:class:`AutoModPolicy` listens to flag increments and, once a player's count for
a flag type reaches a configured threshold, runs the rule's action through the
command gateway's automation path.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Sequence

from warden.configuration.action_profiles import AutoModRule
from warden.datatypes.player_datatypes import Player
from warden.util.logger import get_logger

if TYPE_CHECKING:
    from warden.commands.command_manager import CommandManager

logger = get_logger("automod")


class AutoModPolicy:
    """
    Args:
        rules: Validated automod rules.
        commands: Gateway used to run the rule action.
        enabled: Master switch (``automod.enabled``).
    """

    def __init__(self, rules: Sequence[AutoModRule], commands: "CommandManager", enabled: bool = True) -> None:
        self._rules: Dict[str, AutoModRule] = {rule.flag_type: rule for rule in rules}
        self._commands = commands
        self._enabled = enabled

    @property
    def enabled(self) -> bool:
        return self._enabled

    async def on_flag(self, player: Player, flag_type: str, count: int, reason: str) -> None:
        """Flag listener. Fires the rule exactly when ``count`` reaches its threshold."""
        if not self._enabled:
            return
        rule = self._rules.get(flag_type)
        if rule is None or count != rule.threshold:
            return

        logger.info(
            "[AUTOMOD] %s reached %d %s flag(s), applying %s (%s)",
            player.name,
            count,
            flag_type,
            rule.action,
            rule.duration,
        )
        args = [player.name, rule.duration]
        if rule.reason:
            args.extend(rule.reason.split())
        if not await self._commands.execute_automated(rule.action, args, flag_type):
            logger.warning("[AUTOMOD] %s action against %s did not complete", rule.action, player.name)
