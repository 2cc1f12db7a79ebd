from __future__ import annotations
from pathlib import Path
import fcntl
import os
from typing import Any, Dict, Optional, Tuple
import yaml

from warden.configuration.action_profiles import (
    ActionProfile,
    AutoModRule,
    parse_action_profiles,
    parse_automod_rules,
)
from warden.errors import ConfigurationError
from warden.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path(os.getenv("WARDEN_CONFIG", "./config/app_config.yml")).resolve()

DEFAULT_PREFIX = "!"
DEFAULT_ADMIN_TAG = "admin"
DEFAULT_MAX_REPORTS = 100
DEFAULT_MAX_LOG_ENTRIES = 200
DEFAULT_FLUSH_INTERVAL = 60.0


class AppConfig:
    """File-lock based accessor around the YAML-based server configuration.

    The class caches the contents of ``./config/app_config.yml`` and exposes
    dictionary-like helpers plus typed properties. Action profiles and automod
    rules are validated on every (re)load, so an invalid profile raises
    :class:`~warden.errors.ConfigurationError` at startup rather than being
    ignored when a violation arrives.
    """

    def __init__(self, config_path: Path = CONFIG_PATH) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self._profiles: Dict[str, ActionProfile] = {}
        self._automod_rules: Tuple[AutoModRule, ...] = ()
        self.reload()

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "AppConfig":
        """Build a configuration from an in-memory mapping (no file involved)."""
        config = cls.__new__(cls)
        config.config_path = None
        config._apply(dict(data))
        return config

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                data = yaml.safe_load(f)
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
                return data if isinstance(data, dict) else {}
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found.", self.config_path)
        except (OSError, yaml.YAMLError) as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
        return {}

    def _apply(self, data: Dict[str, Any]) -> None:
        profiles = parse_action_profiles(data.get("check_action_profiles"))
        automod = data.get("automod") or {}
        if not isinstance(automod, dict):
            raise ConfigurationError("automod", "must be a mapping")
        rules = parse_automod_rules(automod.get("rules"))

        self._data = data
        self._profiles = profiles
        self._automod_rules = rules

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Reload configuration from disk and return the loaded mapping.

        A missing or unreadable file yields an empty mapping (all defaults).
        Invalid action profiles raise ConfigurationError and leave the
        previously loaded configuration in place.
        """
        self._apply(self.load_from_disk())
        logger.info("[APP CONFIGURATION] Loaded %d action profile(s)", len(self._profiles))
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Return the current cached configuration mapping. Callers should not mutate it."""
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Safe lookup for top-level configuration keys."""
        return self._data.get(key, default)

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def prefix(self) -> str:
        """Chat prefix that marks a message as a command."""
        return str(self._data.get("prefix") or DEFAULT_PREFIX)

    @property
    def owner_player_name(self) -> str:
        return str(self._data.get("owner_player_name") or "")

    @property
    def admin_tag(self) -> str:
        return str(self._data.get("admin_tag") or DEFAULT_ADMIN_TAG)

    @property
    def command_aliases(self) -> Dict[str, str]:
        """Alias -> command name, both lower-cased."""
        aliases = self._data.get("command_aliases") or {}
        if not isinstance(aliases, dict):
            return {}
        return {str(alias).lower(): str(target).lower() for alias, target in aliases.items()}

    def command_enabled_override(self, command_name: str) -> Optional[bool]:
        """Return the per-installation enabled override for a command, or None when unset."""
        settings = self._data.get("command_settings") or {}
        if not isinstance(settings, dict):
            return None
        entry = settings.get(command_name)
        if isinstance(entry, dict) and isinstance(entry.get("enabled"), bool):
            return entry["enabled"]
        return None

    @property
    def check_action_profiles(self) -> Dict[str, ActionProfile]:
        return self._profiles

    @property
    def automod_enabled(self) -> bool:
        automod = self._data.get("automod") or {}
        return bool(automod.get("enabled", False))

    @property
    def automod_rules(self) -> Tuple[AutoModRule, ...]:
        return self._automod_rules

    @property
    def owner_peer_bans(self) -> bool:
        """Whether an owner may ban a different owner. Forbidden unless enabled."""
        return bool(self._data.get("owner_peer_bans", False))

    @property
    def enable_debug_logging(self) -> bool:
        return bool(self._data.get("enable_debug_logging", False))

    @property
    def max_reports(self) -> int:
        return int(self._data.get("max_reports", DEFAULT_MAX_REPORTS))

    @property
    def max_log_entries(self) -> int:
        return int(self._data.get("max_log_entries", DEFAULT_MAX_LOG_ENTRIES))

    @property
    def flush_interval_seconds(self) -> float:
        """Interval at which dirty caches are flushed to the key-value store."""
        return float(self._data.get("flush_interval_seconds", DEFAULT_FLUSH_INTERVAL))

    @property
    def database_path(self) -> Path:
        raw = os.getenv("WARDEN_DB_PATH") or self._data.get("database_path") or "./data/warden.db"
        return Path(raw).resolve()
