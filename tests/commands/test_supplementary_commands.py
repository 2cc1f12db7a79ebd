import math
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from warden.commands import help as help_command
from warden.commands.command_manager import CommandManager
from warden.commands.registry import COMMAND_MODULES
from warden.datatypes.command_datatypes import ChatMessageEvent
from warden.datatypes.player_datatypes import SYSTEM, HumanActor
from warden.moderation.admin_notifier import NOTIFY_PREFIX, AdminNotifier
from warden.moderation.player_data_manager import PlayerDataManager
from warden.moderation.rank_manager import RankManager
from warden.storage.ban_manager import BanManager
from warden.storage.log_manager import LogManager
from warden.storage.report_manager import ReportManager
from warden.world import World


def build(make_config, *players, **config):
    store = SimpleNamespace(get=AsyncMock(return_value=None), exists=AsyncMock(return_value=True), set=AsyncMock())
    cfg = make_config(**config)
    world = World()
    for player in players:
        world.join(player)
    ranks = RankManager(cfg)
    player_data = PlayerDataManager(store)
    env = SimpleNamespace(
        store=store,
        world=world,
        bans=BanManager(store),
        reports=ReportManager(store),
        logs=LogManager(store),
    )
    env.manager = CommandManager(
        cfg,
        world,
        ranks,
        COMMAND_MODULES,
        player_data=player_data,
        bans=env.bans,
        reports=env.reports,
        logs=env.logs,
        notifier=AdminNotifier(world, ranks, player_data),
    )
    return env


async def say(env, player, message):
    event = ChatMessageEvent(player, message)
    await env.manager.handle_chat_command(event)
    return event


def test_registry_names():
    assert [module.definition.name for module in COMMAND_MODULES] == [
        "ban",
        "unban",
        "report",
        "viewreports",
        "clearreports",
        "help",
    ]


@pytest.mark.asyncio
async def test_unban_removes_active_ban(make_config, make_player):
    owner = make_player("Owner")
    alice = make_player("Alice")
    env = build(make_config, owner)
    await env.bans.add_ban(alice, math.inf, "griefing", "Owner")

    await say(env, owner, "!unban alice")

    assert not env.bans.is_banned(alice.id)
    assert "§aUnbanned Alice." in owner.messages
    entry = env.logs.get_logs(action_type="unban")[0]
    assert entry.target_name == "Alice"
    assert entry.admin_name == "Owner"


@pytest.mark.asyncio
async def test_unban_unknown_player(make_config, make_player):
    owner = make_player("Owner")
    env = build(make_config, owner)

    await say(env, owner, "!unban Ghost")
    await say(env, owner, "!unban")

    assert owner.messages == [
        "§cNo active ban found for 'Ghost'.",
        "§cUsage: !unban <playername>",
    ]


@pytest.mark.asyncio
async def test_report_files_persists_and_notifies(make_config, make_player):
    alice = make_player("Alice")
    bob = make_player("Bob")
    admin = make_player("Mod", tags={"admin"})
    env = build(make_config, alice, bob, admin)

    await say(env, alice, "!report bob is flying around")

    report = env.reports.get_all()[0]
    assert report.reporter_name == "Alice"
    assert report.reported_name == "Bob"
    assert report.reason == "is flying around"
    assert not env.reports.is_dirty
    assert alice.messages == ["§aThank you. Your report against Bob has been submitted."]
    assert admin.messages == [NOTIFY_PREFIX + "§eAlice§r reported §eBob§r: is flying around"]


@pytest.mark.asyncio
async def test_report_rejections(make_config, make_player):
    alice = make_player("Alice")
    env = build(make_config, alice)

    await say(env, alice, "!report Alice cheating")
    await say(env, alice, "!report Ghost cheating")
    await say(env, alice, "!report Ghost")

    assert alice.messages == [
        "§cYou cannot report yourself.",
        "§cPlayer 'Ghost' not found.",
        "§cUsage: !report <playername> <reason>",
    ]
    assert len(env.reports) == 0


@pytest.mark.asyncio
async def test_report_from_console_is_refused(make_config, make_player):
    env = build(make_config, make_player("Alice"))

    assert await env.manager.execute_as(SYSTEM, "report", ["Alice", "x"]) is True
    assert len(env.reports) == 0


@pytest.mark.asyncio
async def test_viewreports_lists_and_filters(make_config, make_player):
    owner = make_player("Owner")
    alice, bob, carol = make_player("Alice"), make_player("Bob"), make_player("Carol")
    env = build(make_config, owner)
    env.reports.add_report(alice, bob, "flying")
    env.reports.add_report(alice, carol, "x-ray")

    await say(env, owner, "!viewreports")
    await say(env, owner, "!viewreports carol")
    await say(env, owner, "!viewreports nobody")

    listing, filtered, empty = owner.messages
    assert listing.startswith("§6Recent reports (2):")
    assert "flying" in listing and "x-ray" in listing
    assert filtered.startswith("§6Reports against carol (1):")
    assert "flying" not in filtered
    assert empty == "§7No reports found."


@pytest.mark.asyncio
async def test_viewreports_is_admin_only(make_config, make_player):
    alice = make_player("Alice")
    env = build(make_config, alice)

    await say(env, alice, "!viewreports")

    assert alice.messages == ["§cYou do not have permission to use this command."]


@pytest.mark.asyncio
async def test_clearreports_by_id_and_all(make_config, make_player):
    owner = make_player("Owner")
    alice, bob = make_player("Alice"), make_player("Bob")
    env = build(make_config, owner)
    first = env.reports.add_report(alice, bob, "one")
    env.reports.add_report(bob, alice, "two")

    await say(env, owner, f"!clearreports {first.id}")
    await say(env, owner, "!clearreports nope")
    assert len(env.reports) == 1

    await say(env, owner, "!clearreports ALL")
    assert len(env.reports) == 0

    assert owner.messages == [
        f"§aRemoved report {first.id}.",
        "§cNo report found with id 'nope'.",
        "§aCleared 1 report(s).",
    ]
    assert len(env.logs.get_logs(action_type="clear_reports")) == 2


@pytest.mark.asyncio
async def test_help_lists_only_usable_enabled_commands(make_config, make_player):
    alice = make_player("Alice")
    owner = make_player("Owner")
    env = build(make_config, alice, owner, command_settings={"unban": {"enabled": False}})

    await say(env, alice, "!help")
    await say(env, owner, "!help")

    member_listing, owner_listing = alice.messages[0], owner.messages[0]
    assert "!report" in member_listing and "!help" in member_listing
    assert "!ban" not in member_listing
    assert "!ban" in owner_listing
    assert "!unban" not in owner_listing


@pytest.mark.asyncio
async def test_help_for_single_command(make_config, make_player):
    alice = make_player("Alice")
    env = build(make_config, alice, command_aliases={"r": "report"})

    await say(env, alice, "!help r")
    await say(env, alice, "!help ban")

    assert alice.messages[0].startswith("§6!report <playername> <reason>")
    assert alice.messages[1] == "§cUnknown command: !ban§r. Type !help for assistance."


def test_available_commands_for_system_actor(make_config, make_player):
    env = build(make_config)
    capabilities = env.manager._capabilities_for(help_command.definition)

    names = [command.name for command in help_command.available_commands(SYSTEM, capabilities)]
    member_names = [
        command.name for command in help_command.available_commands(HumanActor(make_player("Alice")), capabilities)
    ]

    assert names == sorted(["ban", "unban", "report", "viewreports", "clearreports", "help"])
    assert member_names == ["help", "report"]
