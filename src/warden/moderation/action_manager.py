"""
Executes the consequences configured for a detected violation.

Detection checks hand a violation to :meth:`ActionManager.execute_check_action`,
which looks up the check's action profile and applies, in order:

1. flagging (human actors only; increments awaited one after another),
2. an audit log entry,
3. an admin notification,
4. the item context of the violation on the player's moderation state.

Every collaborator is optional. A missing one disables its consequence only,
so a detection check never fails because a subsystem is unavailable.
"""

from __future__ import annotations

from typing import Mapping, Optional

from warden.configuration.action_profiles import DEFAULT_FLAG_REASON, ActionProfile
from warden.datatypes.moderation_datatypes import LastViolationDetail, Primitive, ViolationEvent
from warden.datatypes.player_datatypes import Actor, HumanActor, SystemActor
from warden.moderation.admin_notifier import AdminNotifier
from warden.moderation.player_data_manager import PlayerDataManager
from warden.storage.log_manager import LogManager
from warden.storage.record_cache import now_ms
from warden.util.format_utils import format_details, format_message
from warden.util.logger import get_logger

logger = get_logger("action_manager")


class ActionManager:
    """
    Applies check action profiles to violations.

    Args:
        profiles: Validated action profiles keyed by check type.
        player_data: Flag store and moderation state owner.
        log_manager: Audit log sink.
        notifier: Admin notification channel.
    """

    def __init__(
        self,
        profiles: Mapping[str, ActionProfile],
        player_data: Optional[PlayerDataManager] = None,
        log_manager: Optional[LogManager] = None,
        notifier: Optional[AdminNotifier] = None,
    ) -> None:
        self._profiles = profiles
        self._player_data = player_data
        self._log_manager = log_manager
        self._notifier = notifier

    async def handle_violation(self, event: ViolationEvent) -> None:
        await self.execute_check_action(event.actor, event.check_type, event.details)

    async def execute_check_action(
        self,
        actor: Actor,
        check_type: str,
        details: Optional[Mapping[str, Primitive]] = None,
    ) -> None:
        """
        Run every consequence configured for ``check_type``.

        Args:
            actor: Player who triggered the check, or the system actor.
            check_type: Identifier of the check that fired.
            details: Check-specific values; may be empty.
        """
        details = details or {}
        actor_label = actor.label

        profile = self._profiles.get(check_type)
        if profile is None:
            logger.debug("[ACTION MANAGER] No action profile for check %r. Context: %s", check_type, actor_label)
            return
        if not profile.enabled:
            logger.debug("[ACTION MANAGER] Actions for check %r are disabled. Context: %s", check_type, actor_label)
            return

        reason_template = profile.flag.reason if profile.flag and profile.flag.reason else DEFAULT_FLAG_REASON
        flag_reason = format_message(reason_template, actor_label, check_type, details)

        await self._apply_flags(actor, check_type, details, profile, flag_reason)
        self._append_log(actor_label, check_type, details, profile, flag_reason)
        self._notify(actor, check_type, details, profile)
        self._record_item_context(actor, check_type, details)

    async def _apply_flags(
        self,
        actor: Actor,
        check_type: str,
        details: Mapping[str, Primitive],
        profile: ActionProfile,
        flag_reason: str,
    ) -> None:
        if profile.flag is None:
            return

        match actor:
            case SystemActor():
                logger.debug("[ACTION MANAGER] Skipping flags for %r: no player involved", check_type)
            case HumanActor(player=player):
                if self._player_data is None:
                    logger.debug("[ACTION MANAGER] Player data manager unavailable, cannot flag %s", player.name)
                    return
                flag_type = profile.flag.type or check_type
                details_string = format_details(details)
                for _ in range(profile.flag.increment):
                    await self._player_data.add_flag(player, flag_type, flag_reason, details_string)
                logger.debug(
                    "[ACTION MANAGER] Flagged %s for %s (x%d). Reason: %r",
                    player.name,
                    flag_type,
                    profile.flag.increment,
                    flag_reason,
                )

    def _append_log(
        self,
        actor_label: str,
        check_type: str,
        details: Mapping[str, Primitive],
        profile: ActionProfile,
        flag_reason: str,
    ) -> None:
        if profile.log is None:
            return
        if self._log_manager is None:
            logger.debug("[ACTION MANAGER] Log manager unavailable, skipping log for %r", check_type)
            return

        log_details = profile.log.details_prefix
        if profile.log.include_violation_details:
            log_details += format_details(details)

        self._log_manager.add_log(
            action_type=profile.log.action_type or f"detected_{check_type}",
            admin_name="System",
            target_name=actor_label,
            details=log_details.strip(),
            reason=flag_reason,
        )

    def _notify(
        self,
        actor: Actor,
        check_type: str,
        details: Mapping[str, Primitive],
        profile: ActionProfile,
    ) -> None:
        if profile.notify_admins is None:
            return
        if self._notifier is None:
            logger.debug("[ACTION MANAGER] Admin notifier unavailable, skipping notification for %r", check_type)
            return

        message = format_message(profile.notify_admins.message, actor.label, check_type, details)
        match actor:
            case HumanActor(player=player):
                pdata = self._player_data.get_player_data(player.id) if self._player_data else None
                self._notifier.notify_admins(message, player, pdata)
            case SystemActor():
                self._notifier.notify_admins(message, None, None)

    def _record_item_context(self, actor: Actor, check_type: str, details: Mapping[str, Primitive]) -> None:
        item_type_id = details.get("itemTypeId")
        if not item_type_id:
            return

        match actor:
            case SystemActor():
                logger.debug("[ACTION MANAGER] Skipping item context for %r: no player involved", check_type)
            case HumanActor(player=player):
                pdata = self._player_data.get_player_data(player.id) if self._player_data else None
                if pdata is None:
                    logger.debug(
                        "[ACTION MANAGER] Could not store item %r for %r: no state for %s",
                        item_type_id,
                        check_type,
                        player.name,
                    )
                    return
                pdata.last_violation_details_map[check_type] = LastViolationDetail(
                    item_type_id=str(item_type_id),
                    timestamp=now_ms(),
                )
                pdata.is_dirty_for_save = True
                logger.debug("[ACTION MANAGER] Stored item %r for %r on %s", item_type_id, check_type, player.name)
