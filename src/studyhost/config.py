"""Runtime configuration.

Configuration comes from an optional YAML file, either under a
``studyhost:`` section or at the top level::

    studyhost:
      plugin_root: ./studies
      extensions: [".py"]
      ignore_hidden: true
      drain_yield_seconds: 0.01
      watch_debounce_seconds: 0.25
      log_level: INFO

followed by environment overrides ``STUDYHOST_PLUGIN_ROOT``,
``STUDYHOST_LOG_LEVEL`` and ``STUDYHOST_DRAIN_YIELD``.
"""
from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import yaml

from studyhost.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("studyhost.yaml")
SECTION = "studyhost"

_LOG_LEVELS = frozenset({"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"})
_ENV_OVERRIDES = {
    "STUDYHOST_PLUGIN_ROOT": "plugin_root",
    "STUDYHOST_LOG_LEVEL": "log_level",
    "STUDYHOST_DRAIN_YIELD": "drain_yield_seconds",
}


@dataclass(frozen=True)
class RuntimeConfig:
    plugin_root: Path = Path("./studies")
    extensions: tuple[str, ...] = (".py",)
    ignore_hidden: bool = True
    drain_yield_seconds: float = 0.01
    watch_debounce_seconds: float = 0.25
    log_level: str = "INFO"
    extra: dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> RuntimeConfig:
        """Build a config from a plain mapping, validating every value.

        Raises
        ------
        ConfigError
            If a value has the wrong type or is out of range.
        """
        known = {f.name for f in fields(cls)} - {"extra"}
        values: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for key, value in raw.items():
            if key in known:
                values[key] = _coerce(key, value)
            else:
                extra[key] = value
        if extra:
            logger.debug("Unrecognised config keys: %s", sorted(extra))
        return cls(extra=extra, **values)

    def with_overrides(self, **overrides: Any) -> RuntimeConfig:
        """Return a copy with the given (non-``None``) values replaced."""
        values = {k: _coerce(k, v) for k, v in overrides.items() if v is not None}
        return replace(self, **values) if values else self

    def to_dict(self) -> dict[str, Any]:
        return {
            "plugin_root": str(self.plugin_root),
            "extensions": list(self.extensions),
            "ignore_hidden": self.ignore_hidden,
            "drain_yield_seconds": self.drain_yield_seconds,
            "watch_debounce_seconds": self.watch_debounce_seconds,
            "log_level": self.log_level,
        }


def _coerce(key: str, value: Any) -> Any:
    try:
        if key == "plugin_root":
            return Path(str(value)).expanduser()
        if key == "extensions":
            items = [value] if isinstance(value, str) else list(value)
            exts = tuple(e if str(e).startswith(".") else f".{e}" for e in map(str, items))
            if not exts:
                raise ValueError("at least one extension is required")
            return exts
        if key == "ignore_hidden":
            if isinstance(value, str):
                return value.strip().lower() in {"1", "true", "yes", "on"}
            return bool(value)
        if key in ("drain_yield_seconds", "watch_debounce_seconds"):
            number = float(value)
            if number < 0:
                raise ValueError("must not be negative")
            return number
        if key == "log_level":
            level = str(value).strip().upper()
            if level not in _LOG_LEVELS:
                raise ValueError(f"expected one of {sorted(_LOG_LEVELS)}")
            return level
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid value for {key!r}: {value!r} ({exc})") from exc
    raise ConfigError(f"unknown config key {key!r}")


def load_config(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> RuntimeConfig:
    """Load the runtime configuration.

    Parameters
    ----------
    path:
        YAML file to read. When omitted, ``studyhost.yaml`` in the current
        directory is used if it exists.
    environ:
        Environment to read overrides from; defaults to ``os.environ``.

    Raises
    ------
    ConfigError
        If an explicitly given file is missing, the YAML is malformed or
        not a mapping, or a value is invalid.
    """
    payload: dict[str, Any] = {}
    cfg_path = Path(path).expanduser() if path else DEFAULT_CONFIG_PATH
    if cfg_path.exists():
        try:
            loaded = yaml.safe_load(cfg_path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"cannot read config {cfg_path}: {exc}") from exc
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigError(f"config {cfg_path} must contain a mapping")
        section = loaded.get(SECTION, loaded)
        if not isinstance(section, dict):
            raise ConfigError(f"section {SECTION!r} in {cfg_path} must be a mapping")
        payload = section
        logger.debug("Loaded config from %s", cfg_path)
    elif path:
        raise ConfigError(f"config file {cfg_path} does not exist")

    env = os.environ if environ is None else environ
    for variable, key in _ENV_OVERRIDES.items():
        if env.get(variable):
            payload = {**payload, key: env[variable]}
            logger.debug("Config %s overridden from %s", key, variable)

    return RuntimeConfig.from_mapping(payload)
