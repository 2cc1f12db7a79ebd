"""Exception types shared across Warden."""

from __future__ import annotations


class WardenError(Exception):
    """Base class for errors raised by Warden itself."""


class ConfigurationError(WardenError):
    """Raised at load time when the configuration file holds an invalid value."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path
        self.message = message


class StoreError(WardenError):
    """Raised when the key-value store cannot read or write an entry."""


class PlayerDisconnectedError(WardenError):
    """Raised by the host when an operation targets a player who already left."""
