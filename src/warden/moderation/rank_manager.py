"""Resolves the permission level of players and actors."""

from __future__ import annotations

from warden.configuration.app_configuration import AppConfig
from warden.datatypes.player_datatypes import Actor, HumanActor, PermissionLevel, Player


class RankManager:
    """
    Maps a player to a :class:`PermissionLevel`.

    The configured owner name is OWNER, players carrying the admin tag are
    ADMIN, everyone else is MEMBER. The system actor always ranks as OWNER.
    """

    def __init__(self, config: AppConfig) -> None:
        self._config = config

    def get_permission_level(self, player: Player) -> PermissionLevel:
        owner_name = self._config.owner_player_name
        if owner_name and player.name.lower() == owner_name.lower():
            return PermissionLevel.OWNER
        if player.has_tag(self._config.admin_tag):
            return PermissionLevel.ADMIN
        return PermissionLevel.MEMBER

    def get_actor_level(self, actor: Actor) -> PermissionLevel:
        if isinstance(actor, HumanActor):
            return self.get_permission_level(actor.player)
        return PermissionLevel.OWNER

    def is_admin(self, player: Player) -> bool:
        return self.get_permission_level(player) <= PermissionLevel.ADMIN
