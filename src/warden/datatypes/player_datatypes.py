"""
Player, permission and actor types.

The host server owns player objects; Warden only relies on the small
:class:`Player` protocol below. Anything that triggers a moderation action is
an :data:`Actor`: either a connected human player or the system itself
(detection checks, automation, the operator console).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Protocol, Union, runtime_checkable


class PermissionLevel(IntEnum):
    """Permission ranks. A lower value means more privilege."""

    OWNER = 0
    ADMIN = 1
    MEMBER = 1024

    def __str__(self) -> str:
        return self.name.lower()


@runtime_checkable
class Player(Protocol):
    """Connected player as exposed by the host server."""

    id: str
    name: str

    def send_message(self, message: str) -> None: ...

    def kick(self, reason: str) -> None: ...

    def has_tag(self, tag: str) -> bool: ...


@dataclass(frozen=True, slots=True)
class HumanActor:
    """A connected player acting (or being acted upon) in the world."""

    player: Player

    @property
    def label(self) -> str:
        return self.player.name


@dataclass(frozen=True, slots=True)
class SystemActor:
    """The server itself: detection checks, automation, or the console."""

    name: str = "System"

    @property
    def label(self) -> str:
        return self.name


Actor = Union[HumanActor, SystemActor]

SYSTEM = SystemActor()
AUTOMOD = SystemActor("AutoMod")


def actor_for(player: Player | None) -> Actor:
    """Wrap an optional player reference into an :data:`Actor`."""
    if player is None:
        return SYSTEM
    return HumanActor(player)
