"""
hdfsgate configuration.

Values for the HDFS_* keys declared in schema.py are resolved from, in order:

1. the process environment (after loading ``.env`` with python-dotenv)
2. ``data/config.json``
3. the schema default

ConfigManager remembers which source supplied each value so get_status can
report it.
"""

import json
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from dotenv import load_dotenv, set_key

from hdfsgate.shared.gate import GateLogger
from hdfsgate.Config.schema import (
    CONFIG_SCHEMA,
    ConfigCategory,
    ConfigField,
    ConfigType,
    get_schema_by_key,
    schema_to_dict,
)

_log = GateLogger.get("Config")

PROJECT_ROOT = Path(__file__).resolve().parents[2]
ENV_FILE = PROJECT_ROOT / ".env"
CONFIG_JSON = PROJECT_ROOT / "data" / "config.json"

_TRUE_WORDS = ("true", "1", "yes", "on")
_EMPTY = (None, "", [])


def coerce(value: Any, config_type: ConfigType) -> Any:
    """Convert a raw env or JSON value to the schema type."""
    if value is None:
        return None
    if config_type == ConfigType.BOOLEAN:
        return value if isinstance(value, bool) else str(value).strip().lower() in _TRUE_WORDS
    if config_type == ConfigType.LIST:
        items = value if isinstance(value, (list, tuple)) else str(value).split(",")
        return [str(item).strip() for item in items if str(item).strip()]
    return str(value) if value != "" else None


def to_env_string(value: Any, config_type: ConfigType) -> str:
    """Render a typed value the way it is written to .env."""
    if config_type == ConfigType.BOOLEAN:
        return "true" if value else "false"
    if config_type == ConfigType.LIST and isinstance(value, (list, tuple)):
        return ",".join(value)
    return "" if value is None else str(value)


def is_required(field: ConfigField, values: Dict[str, Any]) -> bool:
    """Whether a field must be set, given the HA switch in values."""
    if field.required:
        return True
    if field.depends_on:
        return bool(values.get(field.depends_on))
    if field.required_unless:
        return not values.get(field.required_unless)
    return False


class ConfigManager:
    """Resolved HDFS_* settings with their sources."""

    def __init__(
        self,
        env_file: Optional[Union[str, Path]] = None,
        config_json: Optional[Union[str, Path]] = None,
    ):
        self.env_file = Path(env_file) if env_file else ENV_FILE
        self.config_json = Path(config_json) if config_json else CONFIG_JSON
        self._values: Dict[str, Any] = {}
        self._sources: Dict[str, str] = {}
        self._load()

    def _read_json(self) -> Dict[str, Any]:
        if not self.config_json.exists():
            return {}
        try:
            with open(self.config_json, encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            _log.warning(f"Ignoring unreadable {self.config_json}: {e}")
            return {}

    def _load(self):
        load_dotenv(self.env_file)
        stored = self._read_json()

        for field in CONFIG_SCHEMA:
            if os.environ.get(field.env_var) is not None:
                raw, source = os.environ[field.env_var], "env"
            elif stored.get(field.key) is not None:
                raw, source = stored[field.key], "json"
            else:
                raw, source = field.default, "default"
            self._values[field.key] = coerce(raw, field.config_type)
            self._sources[field.key] = source

    def get(self, key: str, default: Any = None) -> Any:
        """Value of key, or default when unset."""
        value = self._values.get(key)
        return default if value is None else value

    def source_of(self, key: str) -> Optional[str]:
        """"env", "json" or "default" for a known key."""
        return self._sources.get(key)

    def set(self, key: str, value: Any, persist: bool = True) -> bool:
        """
        Change a value.

        Args:
            key: Schema key
            value: New value, converted to the schema type
            persist: Also write config.json and .env

        Returns:
            False for a key that is not in the schema
        """
        field = get_schema_by_key(key)
        if field is None:
            return False

        self._values[key] = coerce(value, field.config_type)
        self._sources[key] = "runtime"
        if persist:
            self._write_json()
            self._write_env(field)
        return True

    def _write_json(self):
        """Store values that differ from their defaults in config.json."""
        to_save = {
            field.key: self._values[field.key]
            for field in CONFIG_SCHEMA
            if self._values.get(field.key) is not None
            and self._values.get(field.key) != field.default
        }
        self.config_json.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_json, "w", encoding="utf-8") as f:
            json.dump(to_save, f, indent=2)

    def _write_env(self, field: ConfigField):
        rendered = to_env_string(self._values.get(field.key), field.config_type)
        try:
            self.env_file.touch(exist_ok=True)
            set_key(str(self.env_file), field.env_var, rendered)
            os.environ[field.env_var] = rendered
        except OSError as e:
            _log.warning(f"Could not update {self.env_file}: {e}")

    def get_all(self) -> Dict[str, Any]:
        """Every key with its value."""
        return {field.key: self._values.get(field.key) for field in CONFIG_SCHEMA}

    def missing(self) -> List[str]:
        """Required keys that have no value for the current mode."""
        return [
            field.key for field in CONFIG_SCHEMA
            if is_required(field, self._values) and self._values.get(field.key) in _EMPTY
        ]

    def validate(self) -> Tuple[bool, List[str]]:
        """
        Check required keys, formats and enumerated options.

        Returns:
            (is_valid, list of error messages)
        """
        errors = [f"Required config missing: {key}" for key in self.missing()]

        for field in CONFIG_SCHEMA:
            value = self._values.get(field.key)
            if value in _EMPTY:
                continue
            if field.validation and not re.match(field.validation, str(value)):
                errors.append(f"Invalid format for {field.key}")
            if field.options and value not in field.options:
                errors.append(f"Invalid option for {field.key}: {value}")

        return not errors, errors

    def get_status(self) -> Dict[str, Any]:
        """Summary for health pages: mode, missing keys, errors and sources."""
        ok, errors = self.validate()
        return {
            "status": "ok" if ok else "incomplete",
            "mode": "ha" if self._values.get("HDFS_IS_HA") else "simple",
            "missing": self.missing(),
            "errors": errors,
            "sources": dict(self._sources),
            "total_count": len(CONFIG_SCHEMA),
        }


_manager: Optional[ConfigManager] = None


def get_manager() -> ConfigManager:
    """The process-wide ConfigManager, created on first use."""
    global _manager
    if _manager is None:
        _manager = ConfigManager()
    return _manager


def reload() -> ConfigManager:
    """Re-read .env, config.json and the environment."""
    global _manager
    _manager = ConfigManager()
    return _manager


def get(key: str, default: Any = None) -> Any:
    return get_manager().get(key, default)


def set(key: str, value: Any, persist: bool = True) -> bool:
    return get_manager().set(key, value, persist)


def get_all() -> Dict[str, Any]:
    return get_manager().get_all()


def get_status() -> Dict[str, Any]:
    return get_manager().get_status()


def validate() -> Tuple[bool, List[str]]:
    return get_manager().validate()


def get_schema() -> Dict[str, Any]:
    """Schema grouped by category, for documentation."""
    return schema_to_dict()


__all__ = [
    "ConfigManager",
    "ConfigField",
    "ConfigType",
    "ConfigCategory",
    "coerce",
    "is_required",
    "get_manager",
    "reload",
    "get",
    "set",
    "get_all",
    "get_status",
    "validate",
    "get_schema",
]
