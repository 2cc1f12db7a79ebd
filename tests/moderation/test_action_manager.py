from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from warden.configuration.action_profiles import parse_action_profiles
from warden.datatypes.moderation_datatypes import PlayerModerationState, ViolationEvent
from warden.datatypes.player_datatypes import SYSTEM, HumanActor
from warden.moderation.action_manager import ActionManager
from warden.moderation.player_data_manager import PlayerDataManager

PROFILES = parse_action_profiles(
    {
        "fly_hover": {
            "enabled": True,
            "flag": {"type": "movement", "increment": 3, "reason": "{playerName} hovered ({detailsString})"},
            "log": {"detailsPrefix": "Hover: "},
            "notifyAdmins": {"message": "{playerName} flagged for {checkType} at {height}m"},
        },
        "nuker": {"enabled": True, "log": {"actionType": "nuker_detected", "includeViolationDetails": False}},
        "disabled_check": {
            "enabled": False,
            "flag": {"increment": 5},
            "log": {},
            "notifyAdmins": {"message": "never"},
        },
    }
)


def make_managers():
    player_data = PlayerDataManager(SimpleNamespace(get=AsyncMock(return_value=None), set=AsyncMock()))
    logs = MagicMock()
    notifier = MagicMock()
    return player_data, logs, notifier


@pytest.mark.asyncio
async def test_full_profile_flags_logs_and_notifies(make_player):
    player_data, logs, notifier = make_managers()
    alice = make_player("Alice")
    await player_data.ensure_player(alice)
    manager = ActionManager(PROFILES, player_data, logs, notifier)

    await manager.execute_check_action(HumanActor(alice), "fly_hover", {"height": 4})

    state = player_data.get_player_data(alice.id)
    assert state.flags["movement"].count == 3
    assert state.total_flags == 3
    assert state.last_flag_type == "movement"

    logs.add_log.assert_called_once_with(
        action_type="detected_fly_hover",
        admin_name="System",
        target_name="Alice",
        details="Hover: height: 4",
        reason="Alice hovered (height: 4)",
    )
    notifier.notify_admins.assert_called_once_with("Alice flagged for fly_hover at 4m", alice, state)


@pytest.mark.asyncio
async def test_flag_increments_are_sequential(make_player):
    player_data, logs, notifier = make_managers()
    alice = make_player("Alice")
    seen = []

    async def listener(player, flag_type, count, reason):
        seen.append(count)

    player_data.add_flag_listener(listener)
    manager = ActionManager(PROFILES, player_data, logs, notifier)

    await manager.handle_violation(ViolationEvent(HumanActor(alice), "fly_hover", {"height": 2}))

    assert seen == [1, 2, 3]


@pytest.mark.asyncio
async def test_disabled_profile_has_no_consequences(make_player):
    player_data, logs, notifier = make_managers()
    alice = make_player("Alice")
    await player_data.ensure_player(alice)
    manager = ActionManager(PROFILES, player_data, logs, notifier)

    for details in ({}, {"itemTypeId": "minecraft:tnt"}, {"a": 1}):
        await manager.execute_check_action(HumanActor(alice), "disabled_check", details)
        await manager.execute_check_action(SYSTEM, "disabled_check", details)

    assert player_data.get_player_data(alice.id).total_flags == 0
    assert player_data.get_player_data(alice.id).last_violation_details_map == {}
    logs.add_log.assert_not_called()
    notifier.notify_admins.assert_not_called()


@pytest.mark.asyncio
async def test_unknown_check_type_is_ignored(make_player):
    player_data, logs, notifier = make_managers()
    manager = ActionManager(PROFILES, player_data, logs, notifier)

    await manager.execute_check_action(HumanActor(make_player("Alice")), "nope", {})

    logs.add_log.assert_not_called()


@pytest.mark.asyncio
async def test_system_actor_skips_flags_but_logs_and_notifies():
    player_data, logs, notifier = make_managers()
    player_data.add_flag = AsyncMock()
    manager = ActionManager(PROFILES, player_data, logs, notifier)

    await manager.execute_check_action(SYSTEM, "fly_hover", {"height": 9})

    player_data.add_flag.assert_not_awaited()
    assert logs.add_log.call_args.kwargs["target_name"] == "System"
    notifier.notify_admins.assert_called_once_with("System flagged for fly_hover at 9m", None, None)


@pytest.mark.asyncio
async def test_log_action_type_and_details_toggle(make_player):
    player_data, logs, notifier = make_managers()
    manager = ActionManager(PROFILES, player_data, logs, notifier)

    await manager.execute_check_action(HumanActor(make_player("Alice")), "nuker", {"blocks": 40})

    kwargs = logs.add_log.call_args.kwargs
    assert kwargs["action_type"] == "nuker_detected"
    assert kwargs["details"] == ""
    assert kwargs["reason"] == "Triggered nuker"
    notifier.notify_admins.assert_not_called()


@pytest.mark.asyncio
async def test_missing_collaborators_degrade_silently(make_player):
    manager = ActionManager(PROFILES)

    await manager.execute_check_action(HumanActor(make_player("Alice")), "fly_hover", {"itemTypeId": "x"})
    await manager.execute_check_action(SYSTEM, "fly_hover", None)


@pytest.mark.asyncio
async def test_item_context_recorded_on_player_state(make_player):
    player_data, logs, notifier = make_managers()
    alice = make_player("Alice")
    state = await player_data.ensure_player(alice)
    state.is_dirty_for_save = False
    manager = ActionManager(PROFILES, player_data, logs, notifier)

    await manager.execute_check_action(HumanActor(alice), "nuker", {"itemTypeId": "minecraft:diamond_pickaxe"})

    detail = state.last_violation_details_map["nuker"]
    assert detail.item_type_id == "minecraft:diamond_pickaxe"
    assert state.is_dirty_for_save
    assert isinstance(state, PlayerModerationState)
