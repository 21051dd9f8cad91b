"""Process-wide JSON configuration."""

from __future__ import annotations

import json
import logging
from types import MappingProxyType
from typing import Any, Mapping

log = logging.getLogger(__name__)

_config: dict[str, Any] = {}


class ConfigError(Exception):
    """Raised when the configuration file is not valid JSON."""


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant {name!r}")


def load_global_config(path) -> Mapping[str, Any]:
    """Load the JSON file at *path* as the global configuration.

    A missing file leaves the current configuration untouched, a file that
    cannot be read clears it, and a file that is not valid JSON raises
    ConfigError.
    """
    try:
        with open(path, "rb") as handle:
            content = handle.read()
    except FileNotFoundError:
        return get_config()
    except OSError as exc:
        log.warning("配置文件%s读取失败: %s", path, exc)
        _config.clear()
        return get_config()

    try:
        parsed = json.loads(content, parse_constant=_reject_constant)
    except ValueError as exc:
        log.error("配置文件%s不是合法JSON，请检查", path)
        _config.clear()
        raise ConfigError(f"configuration file {path} is not valid JSON") from exc

    _config.clear()
    if isinstance(parsed, dict):
        _config.update(parsed)
    else:
        log.warning("配置文件%s的顶层不是JSON对象，已忽略", path)
    return get_config()


def get_config() -> Mapping[str, Any]:
    """Return a read-only view of the current configuration."""
    return MappingProxyType(_config)