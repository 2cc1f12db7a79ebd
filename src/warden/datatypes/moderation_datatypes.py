"""
Data structures for violations, moderation records and per-player state.

Records persisted through a :class:`~warden.storage.record_cache.DurableRecordCache`
(reports, bans, audit log entries) implement ``to_dict``/``from_dict`` so the
cache can store them as one JSON array.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, Mapping, Optional, Union

from warden.datatypes.player_datatypes import Actor

Primitive = Union[str, int, float, bool, None]


def _known_fields(cls, data: Mapping[str, Any]) -> Dict[str, Any]:
    """Keep only the keys of ``data`` that are fields of dataclass ``cls``."""
    names = {f.name for f in fields(cls)}
    return {key: value for key, value in data.items() if key in names}


@dataclass(slots=True)
class ViolationEvent:
    """A detection signal. Never persisted.

    Attributes:
        actor: Player who triggered the check, or the system for world-level checks.
        check_type: Identifier of the check (e.g. ``"fly_hover"``).
        details: Check-specific values such as measured speed or item type.
    """
    actor: Actor
    check_type: str
    details: Dict[str, Primitive] = field(default_factory=dict)


@dataclass(slots=True)
class ReportEntry:
    """A player-submitted report."""
    id: str
    timestamp: int
    reporter_id: str
    reporter_name: str
    reported_id: str
    reported_name: str
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ReportEntry":
        return cls(**_known_fields(cls, data))


@dataclass(slots=True)
class BanRecord:
    """An active ban.

    ``unban_time`` is an epoch-millisecond instant, or ``None`` for a
    permanent ban.
    """
    id: str
    timestamp: int
    target_id: str
    target_name: str
    reason: str
    banned_by: str
    unban_time: Optional[int] = None
    is_automod_action: bool = False
    automod_check_type: Optional[str] = None

    @property
    def is_permanent(self) -> bool:
        return self.unban_time is None

    def is_expired(self, now_ms: int) -> bool:
        return self.unban_time is not None and self.unban_time <= now_ms

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BanRecord":
        return cls(**_known_fields(cls, data))


@dataclass(slots=True)
class LogEntry:
    """Audit log entry for administrative and automated actions."""
    id: str
    timestamp: int
    admin_name: str
    action_type: str
    target_name: Optional[str] = None
    details: Optional[str] = None
    duration: Optional[str] = None
    reason: Optional[str] = None
    is_automod: bool = False
    check_type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LogEntry":
        return cls(**_known_fields(cls, data))


@dataclass(slots=True)
class FlagCounter:
    """Accumulated flags of one type for one player."""
    count: int = 0
    last_detection_time: int = 0


@dataclass(slots=True)
class LastViolationDetail:
    """Item context recorded for the most recent violation of a check."""
    item_type_id: str
    timestamp: int


@dataclass(slots=True)
class PlayerModerationState:
    """Moderation state of a single player.

    Mutated in place by the action engine and commands; ``is_dirty_for_save``
    tells the player data manager that the state must be flushed.
    """
    player_id: str
    player_name: str
    flags: Dict[str, FlagCounter] = field(default_factory=dict)
    total_flags: int = 0
    last_flag_type: Optional[str] = None
    last_violation_details_map: Dict[str, LastViolationDetail] = field(default_factory=dict)
    is_watched: bool = False
    notifications_muted: bool = False
    is_dirty_for_save: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data.pop("is_dirty_for_save")
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PlayerModerationState":
        values = _known_fields(cls, data)
        values["flags"] = {
            flag_type: FlagCounter(**counter)
            for flag_type, counter in (data.get("flags") or {}).items()
        }
        values["last_violation_details_map"] = {
            check_type: LastViolationDetail(**detail)
            for check_type, detail in (data.get("last_violation_details_map") or {}).items()
        }
        values.pop("is_dirty_for_save", None)
        return cls(**values)
