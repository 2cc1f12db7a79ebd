from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from warden.errors import PlayerDisconnectedError
from warden.moderation.admin_notifier import NOTIFY_PREFIX, AdminNotifier
from warden.moderation.player_data_manager import PlayerDataManager
from warden.moderation.rank_manager import RankManager
from warden.world import World


@pytest.mark.asyncio
async def test_notify_admins_skips_members_and_muted_admins(make_player, make_config):
    world = World()
    player_data = PlayerDataManager(SimpleNamespace(get=AsyncMock(return_value=None), set=AsyncMock()))
    owner = make_player("Owner")
    admin = make_player("Mod", tags={"admin"})
    muted = make_player("Muted", tags={"admin"})
    member = make_player("Member")
    for player in (owner, admin, muted, member):
        world.join(player)
        await player_data.ensure_player(player)
    player_data.get_player_data(muted.id).notifications_muted = True

    notifier = AdminNotifier(world, RankManager(make_config()), player_data)
    delivered = notifier.notify_admins("Alice flagged")

    assert delivered == 2
    assert owner.messages == [NOTIFY_PREFIX + "Alice flagged"]
    assert admin.messages == [NOTIFY_PREFIX + "Alice flagged"]
    assert muted.messages == []
    assert member.messages == []


@pytest.mark.asyncio
async def test_notify_admins_marks_watched_players_and_survives_send_failure(make_player, make_config):
    world = World()
    player_data = PlayerDataManager(SimpleNamespace(get=AsyncMock(return_value=None), set=AsyncMock()))
    admin = make_player("Mod", tags={"admin"})
    broken = make_player("Broken", tags={"admin"})

    def fail_send(message):
        raise PlayerDisconnectedError("gone")

    broken.send_message = fail_send
    target = make_player("Alice")
    world.join(broken)
    world.join(admin)
    state = await player_data.ensure_player(target)
    state.is_watched = True

    notifier = AdminNotifier(world, RankManager(make_config()), player_data)
    delivered = notifier.notify_admins("Alice flagged", target, state)

    assert delivered == 1
    assert admin.messages[0].endswith("(Watched)")


def test_rank_manager_levels(make_player, make_config):
    ranks = RankManager(make_config(owner_player_name="Steve", admin_tag="staff"))

    assert ranks.get_permission_level(make_player("steve")).name == "OWNER"
    assert ranks.get_permission_level(make_player("Mod", tags={"staff"})).name == "ADMIN"
    assert ranks.get_permission_level(make_player("Mod", tags={"admin"})).name == "MEMBER"
    assert ranks.is_admin(make_player("Steve"))
    assert not ranks.is_admin(make_player("Alex"))
