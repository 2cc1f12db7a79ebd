"""
Pytest configuration and fixtures for Warden tests.
"""

import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import List

import pytest

# Add src directory to path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from warden.configuration.app_configuration import AppConfig  # noqa: E402
from warden.database.db_connection import ConnectionManager  # noqa: E402
from warden.database.kv_store import KeyValueStore  # noqa: E402


class FakePlayer:
    """Minimal stand-in for a host player."""

    def __init__(self, name: str, player_id: str | None = None, tags=(), disconnected: bool = False):
        self.id = player_id or f"id-{name.lower()}"
        self.name = name
        self.tags = set(tags)
        self.messages: List[str] = []
        self.kicks: List[str] = []
        self.disconnected = disconnected

    def send_message(self, message: str) -> None:
        self.messages.append(message)

    def kick(self, reason: str) -> None:
        from warden.errors import PlayerDisconnectedError

        if self.disconnected:
            raise PlayerDisconnectedError(f"{self.name} is not connected")
        self.kicks.append(reason)

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags


@pytest.fixture()
def make_player():
    def _make(name: str, **kwargs) -> FakePlayer:
        return FakePlayer(name, **kwargs)

    return _make


@pytest.fixture()
def make_config():
    def _make(**data) -> AppConfig:
        base = {"owner_player_name": "Owner", "admin_tag": "admin"}
        base.update(data)
        return AppConfig.from_mapping(base)

    return _make


@pytest.fixture()
def memory_store():
    """Factory for an initialized in-memory key-value store, closed on exit."""

    @asynccontextmanager
    async def _open():
        connections = ConnectionManager()
        await connections.open(Path(":memory:"))
        store = KeyValueStore(connections)
        await store.initialize()
        try:
            yield store
        finally:
            await connections.close()

    return _open
