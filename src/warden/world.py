"""Registry of the players currently connected to the server."""

from __future__ import annotations

from typing import Dict, List, Optional

from warden.datatypes.player_datatypes import Player
from warden.util.logger import get_logger
from warden.util.player_utils import find_player

logger = get_logger("world")


class World:
    """Connected players, keyed by id. The host adapter calls join/leave."""

    def __init__(self) -> None:
        self._players: Dict[str, Player] = {}

    def join(self, player: Player) -> None:
        self._players[player.id] = player
        logger.debug("[WORLD] %s joined (%d online)", player.name, len(self._players))

    def leave(self, player_id: str) -> Optional[Player]:
        player = self._players.pop(player_id, None)
        if player is not None:
            logger.debug("[WORLD] %s left (%d online)", player.name, len(self._players))
        return player

    def get_players(self) -> List[Player]:
        return list(self._players.values())

    def get_player(self, player_id: str) -> Optional[Player]:
        return self._players.get(player_id)

    def find_player(self, name: str) -> Optional[Player]:
        return find_player(name, self._players.values())
