"""
Per-player moderation state: flag counters, watch status and violation context.

States are loaded when a player joins, mutated in place while they play and
written back to the key-value store (one entry per player) by
:meth:`PlayerDataManager.save_dirty`, which the flush scheduler calls.
"""

from __future__ import annotations

import json
from typing import Awaitable, Callable, Dict, List, Optional

from warden.database.kv_store import KeyValueStore
from warden.datatypes.moderation_datatypes import FlagCounter, PlayerModerationState
from warden.datatypes.player_datatypes import Player
from warden.errors import StoreError
from warden.storage.record_cache import now_ms
from warden.util.logger import get_logger

logger = get_logger("player_data_manager")

PLAYER_KEY_PREFIX = "warden:pdata_v1:"

# listener(player, flag_type, new_count, reason)
FlagListener = Callable[[Player, str, int, str], Awaitable[None]]


def player_key(player_id: str) -> str:
    return f"{PLAYER_KEY_PREFIX}{player_id}"


class PlayerDataManager:
    """Owner of every connected player's :class:`PlayerModerationState`."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store
        self._states: Dict[str, PlayerModerationState] = {}
        self._flag_listeners: List[FlagListener] = []

    # ========== Lifecycle ==========

    async def ensure_player(self, player: Player) -> PlayerModerationState:
        """Return the state of ``player``, loading it from the store or creating it."""
        state = self._states.get(player.id)
        if state is not None:
            return state

        state = await self._load(player)
        if state is None:
            state = PlayerModerationState(player_id=player.id, player_name=player.name)
            logger.debug("[PLAYER DATA] Created new state for %s", player.name)
        elif state.player_name != player.name:
            state.player_name = player.name
            state.is_dirty_for_save = True

        self._states[player.id] = state
        return state

    async def _load(self, player: Player) -> Optional[PlayerModerationState]:
        try:
            raw = await self._store.get(player_key(player.id))
        except (StoreError, RuntimeError) as exc:
            logger.warning("[PLAYER DATA] Could not load state of %s: %s", player.name, exc)
            return None
        if raw is None:
            return None
        try:
            return PlayerModerationState.from_dict(json.loads(raw))
        except (json.JSONDecodeError, TypeError, ValueError) as exc:
            logger.warning("[PLAYER DATA] Stored state of %s is malformed, starting fresh: %s", player.name, exc)
            return None

    async def release_player(self, player_id: str) -> None:
        """Flush and forget the state of a player who left."""
        state = self._states.get(player_id)
        if state is None:
            return
        if state.is_dirty_for_save and not await self._save(state):
            # Keep it in memory so the next flush retries
            return
        del self._states[player_id]

    # ========== Access ==========

    def get_player_data(self, player_id: str) -> Optional[PlayerModerationState]:
        return self._states.get(player_id)

    def add_flag_listener(self, listener: FlagListener) -> None:
        """Register a coroutine awaited after every flag increment."""
        self._flag_listeners.append(listener)

    async def add_flag(self, player: Player, flag_type: str, reason: str, details: str = "") -> int:
        """
        Increment one flag of ``flag_type`` for ``player``.

        Listeners are awaited in registration order before returning, so
        a caller incrementing in a loop lets each listener observe every
        intermediate count.

        Returns:
            int: The new count for ``flag_type``.
        """
        state = self._states.get(player.id)
        if state is None:
            state = PlayerModerationState(player_id=player.id, player_name=player.name)
            self._states[player.id] = state

        counter = state.flags.setdefault(flag_type, FlagCounter())
        counter.count += 1
        counter.last_detection_time = now_ms()
        state.total_flags += 1
        state.last_flag_type = flag_type
        state.is_dirty_for_save = True

        logger.info(
            "[PLAYER DATA] %s flagged for %s (%d). Reason: %s. Details: %s",
            player.name,
            flag_type,
            counter.count,
            reason,
            details or "N/A",
        )

        for listener in self._flag_listeners:
            await listener(player, flag_type, counter.count, reason)
        return counter.count

    def reset_flags(self, player_id: str) -> bool:
        state = self._states.get(player_id)
        if state is None:
            return False
        state.flags.clear()
        state.total_flags = 0
        state.last_flag_type = None
        state.is_dirty_for_save = True
        return True

    def set_watched(self, player_id: str, watched: bool) -> bool:
        state = self._states.get(player_id)
        if state is None:
            return False
        state.is_watched = watched
        state.is_dirty_for_save = True
        return True

    # ========== Persistence ==========

    async def _save(self, state: PlayerModerationState) -> bool:
        try:
            await self._store.set(player_key(state.player_id), json.dumps(state.to_dict()))
        except (StoreError, RuntimeError, TypeError, ValueError) as exc:
            logger.error("[PLAYER DATA] Failed to save state of %s: %s", state.player_name, exc)
            return False
        state.is_dirty_for_save = False
        return True

    async def save_dirty(self) -> int:
        """Persist every dirty state. Returns how many were written; failures stay dirty."""
        saved = 0
        for state in list(self._states.values()):
            if state.is_dirty_for_save and await self._save(state):
                saved += 1
        if saved:
            logger.debug("[PLAYER DATA] Saved %d dirty state(s)", saved)
        return saved
