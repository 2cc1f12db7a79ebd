"""
Typed schema for check action profiles and automod rules.

Profiles arrive from YAML as plain mappings. They are validated once, when the
configuration is loaded, and turned into frozen dataclasses; an invalid
profile raises :class:`~warden.errors.ConfigurationError` instead of being
skipped at detection time.

Example profile::

    check_action_profiles:
      fly_hover:
        enabled: true
        flag:
          type: movement
          increment: 2
          reason: "{playerName} hovered for {duration}s"
        log:
          detailsPrefix: "Hover: "
        notifyAdmins:
          message: "§e{playerName} flagged for {checkType} ({detailsString})"
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

from warden.errors import ConfigurationError
from warden.util.player_utils import parse_duration

DEFAULT_FLAG_REASON = "Triggered {checkType}"

PROFILE_KEYS = {"enabled", "flag", "log", "notifyAdmins"}
FLAG_KEYS = {"type", "increment", "reason"}
LOG_KEYS = {"actionType", "detailsPrefix", "includeViolationDetails"}
NOTIFY_KEYS = {"message"}
AUTOMOD_RULE_KEYS = {"flagType", "threshold", "action", "duration", "reason"}
AUTOMOD_ACTIONS = {"ban"}


@dataclass(frozen=True, slots=True)
class FlagConsequence:
    type: Optional[str] = None
    increment: int = 1
    reason: Optional[str] = None


@dataclass(frozen=True, slots=True)
class LogConsequence:
    action_type: Optional[str] = None
    details_prefix: str = ""
    include_violation_details: bool = True


@dataclass(frozen=True, slots=True)
class NotifyConsequence:
    message: str


@dataclass(frozen=True, slots=True)
class ActionProfile:
    """Consequences configured for one check type. ``None`` disables a consequence."""
    check_type: str
    enabled: bool = True
    flag: Optional[FlagConsequence] = None
    log: Optional[LogConsequence] = None
    notify_admins: Optional[NotifyConsequence] = None


@dataclass(frozen=True, slots=True)
class AutoModRule:
    """Automated action taken once a player's flag count reaches a threshold."""
    flag_type: str
    threshold: int
    action: str = "ban"
    duration: str = "perm"
    reason: Optional[str] = None


def _require_mapping(value: Any, path: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ConfigurationError(path, "must be a mapping")
    return value


def _check_keys(value: Mapping[str, Any], allowed: set[str], path: str) -> None:
    unknown = set(value) - allowed
    if unknown:
        raise ConfigurationError(path, f"unknown keys {sorted(unknown)}")


def _optional_str(value: Mapping[str, Any], key: str, path: str) -> Optional[str]:
    raw = value.get(key)
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise ConfigurationError(f"{path}.{key}", "must be a string")
    return raw


def _bool(value: Mapping[str, Any], key: str, path: str, default: bool) -> bool:
    raw = value.get(key, default)
    if not isinstance(raw, bool):
        raise ConfigurationError(f"{path}.{key}", "must be a boolean")
    return raw


def _positive_int(value: Mapping[str, Any], key: str, path: str, default: int) -> int:
    raw = value.get(key, default)
    # bool is an int subclass; reject it explicitly
    if isinstance(raw, bool) or not isinstance(raw, int) or raw < 1:
        raise ConfigurationError(f"{path}.{key}", "must be an integer >= 1")
    return raw


def parse_action_profile(check_type: str, raw: Any) -> ActionProfile:
    path = f"check_action_profiles.{check_type}"
    data = _require_mapping(raw, path)
    _check_keys(data, PROFILE_KEYS, path)

    flag = None
    if data.get("flag") is not None:
        flag_path = f"{path}.flag"
        flag_data = _require_mapping(data["flag"], flag_path)
        _check_keys(flag_data, FLAG_KEYS, flag_path)
        flag = FlagConsequence(
            type=_optional_str(flag_data, "type", flag_path),
            increment=_positive_int(flag_data, "increment", flag_path, 1),
            reason=_optional_str(flag_data, "reason", flag_path),
        )

    log = None
    if data.get("log") is not None:
        log_path = f"{path}.log"
        log_data = _require_mapping(data["log"], log_path)
        _check_keys(log_data, LOG_KEYS, log_path)
        log = LogConsequence(
            action_type=_optional_str(log_data, "actionType", log_path),
            details_prefix=_optional_str(log_data, "detailsPrefix", log_path) or "",
            include_violation_details=_bool(log_data, "includeViolationDetails", log_path, True),
        )

    notify = None
    if data.get("notifyAdmins") is not None:
        notify_path = f"{path}.notifyAdmins"
        notify_data = _require_mapping(data["notifyAdmins"], notify_path)
        _check_keys(notify_data, NOTIFY_KEYS, notify_path)
        message = _optional_str(notify_data, "message", notify_path)
        if message:
            notify = NotifyConsequence(message=message)

    if "enabled" not in data:
        raise ConfigurationError(f"{path}.enabled", "is required")

    return ActionProfile(
        check_type=check_type,
        enabled=_bool(data, "enabled", path, False),
        flag=flag,
        log=log,
        notify_admins=notify,
    )


def parse_action_profiles(raw: Any) -> Dict[str, ActionProfile]:
    """Validate the ``check_action_profiles`` section and return profiles keyed by check type."""
    if raw is None:
        return {}
    data = _require_mapping(raw, "check_action_profiles")
    return {str(check_type): parse_action_profile(str(check_type), profile) for check_type, profile in data.items()}


def parse_automod_rules(raw: Any) -> Tuple[AutoModRule, ...]:
    """Validate the ``automod.rules`` list."""
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ConfigurationError("automod.rules", "must be a list")

    rules = []
    for index, item in enumerate(raw):
        path = f"automod.rules[{index}]"
        data = _require_mapping(item, path)
        _check_keys(data, AUTOMOD_RULE_KEYS, path)
        flag_type = _optional_str(data, "flagType", path)
        if not flag_type:
            raise ConfigurationError(f"{path}.flagType", "is required")
        action = _optional_str(data, "action", path) or "ban"
        if action not in AUTOMOD_ACTIONS:
            raise ConfigurationError(f"{path}.action", f"must be one of {sorted(AUTOMOD_ACTIONS)}")
        duration = _optional_str(data, "duration", path) or "perm"
        if parse_duration(duration) is None:
            raise ConfigurationError(f"{path}.duration", f"cannot parse duration {duration!r}")
        rules.append(
            AutoModRule(
                flag_type=flag_type,
                threshold=_positive_int(data, "threshold", path, 1),
                action=action,
                duration=duration,
                reason=_optional_str(data, "reason", path),
            )
        )
    return tuple(rules)
