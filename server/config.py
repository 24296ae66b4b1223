from __future__ import annotations

import logging
import os
from typing import Any, Dict

from shared.settings import SETTINGS

DEFAULT_SERVER_CONFIG: Dict[str, Any] = {
    "backlog": 100,
    "workers": 0,  # 0 = one compute process per CPU
    "inline_limit": 10_000,  # indexes up to this are computed on the event loop
    "log_level": "",  # empty = the shared FIB_LOG_LEVEL
}

SERVER_CONFIG = DEFAULT_SERVER_CONFIG.copy()


class ConfigError(Exception):
    """Raised when server environment values are invalid."""

    pass


def load_server_config() -> Dict[str, Any]:
    loaded: Dict[str, Any] = {}
    for key, default_value in DEFAULT_SERVER_CONFIG.items():
        value = os.getenv(f"SERVER_{key.upper()}", default_value)
        loaded[key] = _coerce_type(value, type(default_value))
    loaded["log_level"] = (loaded["log_level"] or SETTINGS.log_level).upper()

    _validate_config(loaded)
    SERVER_CONFIG.update(loaded)
    return SERVER_CONFIG


def _coerce_type(value: Any, target_type: type) -> Any:
    if isinstance(value, target_type):
        return value
    try:
        return target_type(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Cannot convert {value!r} to {target_type.__name__}") from exc


def _validate_config(config: Dict[str, Any]) -> None:
    if config["backlog"] <= 0:
        raise ConfigError("backlog must be positive")
    if config["workers"] < 0:
        raise ConfigError("workers must not be negative")
    if config["inline_limit"] < 1:
        raise ConfigError("inline_limit must be at least 1")
    if not isinstance(logging.getLevelName(config["log_level"]), int):
        raise ConfigError(f"Unknown log_level: {config['log_level']}")


__all__ = ["SERVER_CONFIG", "DEFAULT_SERVER_CONFIG", "ConfigError", "load_server_config"]
