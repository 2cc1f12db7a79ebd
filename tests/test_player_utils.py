import logging
import math
from unittest.mock import MagicMock

import pytest

from warden.datatypes.player_datatypes import HumanActor, SystemActor, actor_for
from warden.util import player_utils


@pytest.mark.parametrize(
    "value, expected",
    [
        ("30s", 30_000),
        ("5", 5 * 60_000),
        ("5m", 5 * 60_000),
        ("2h", 2 * 3_600_000),
        ("7d", 7 * 86_400_000),
        ("1w", 604_800_000),
        ("0m", 0),
        (" 7D ", 7 * 86_400_000),
    ],
)
def test_parse_duration_units(value, expected):
    assert player_utils.parse_duration(value) == expected


@pytest.mark.parametrize("value", ["perm", "permanent", "PERM"])
def test_parse_duration_permanent(value):
    assert math.isinf(player_utils.parse_duration(value))


@pytest.mark.parametrize("value", ["", None, "abc", "-5m", "7y", "1.5h", "d7"])
def test_parse_duration_rejects_garbage(value):
    assert player_utils.parse_duration(value) is None


def test_find_player_is_case_insensitive(make_player):
    alice = make_player("Alice")
    bob = make_player("Bob")

    assert player_utils.find_player("aLiCe", [alice, bob]) is alice
    assert player_utils.find_player("carol", [alice, bob]) is None
    assert player_utils.find_player("", [alice, bob]) is None


def test_warn_player_prefixes_red(make_player):
    alice = make_player("Alice")

    player_utils.warn_player(alice, "Nope.")

    assert alice.messages == ["§cNope."]


def test_debug_log_raises_watched_traces_to_info():
    logger = MagicMock(spec=logging.Logger)

    player_utils.debug_log(logger, "hello")
    player_utils.debug_log(logger, "watched", "Alice")

    logger.debug.assert_called_once_with("hello")
    logger.info.assert_called_once_with("[WATCHED: %s] %s", "Alice", "watched")


def test_reply_routes_by_actor(make_player):
    alice = make_player("Alice")
    logger = MagicMock(spec=logging.Logger)

    player_utils.reply(HumanActor(alice), "§aDone", logger)
    player_utils.reply(SystemActor("AutoMod"), "§aDone", logger)

    assert alice.messages == ["§aDone"]
    logger.info.assert_called_once_with("[%s] %s", "AutoMod", "Done")


def test_actor_for_wraps_optional_player(make_player):
    alice = make_player("Alice")

    assert actor_for(alice) == HumanActor(alice)
    assert actor_for(None).label == "System"
