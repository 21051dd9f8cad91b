"""Input validation and small helpers shared by the service front ends."""

from __future__ import annotations

import math
import re
import sys
import uuid
from collections.abc import Mapping
from pathlib import Path
from typing import Any

_UINT64_MAX = 2**64 - 1

_URL_RE = re.compile(r"(?:rtsp|http|https)://\S+", re.IGNORECASE)
_UUID_RE = re.compile(
    r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"
)
_HOST_RE = re.compile(
    r"[a-zA-Z0-9\-.]+"
    r"|((25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)\.){3}"
    r"(25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)"
)


class CameraIdError(ValueError):
    """Raised when a camera id field is missing or malformed."""


def executable_dir() -> Path:
    """Return the directory holding the running program."""
    if sys.argv and sys.argv[0]:
        return Path(sys.argv[0]).resolve().parent
    return Path(".").resolve()


def is_digits(s: str) -> bool:
    """True if *s* is non-empty and made of ASCII digits only."""
    return bool(s) and s.isascii() and s.isdigit()


def parse_camera_id(data: Any, key: str) -> int:
    """Extract an unsigned 64-bit camera id stored under *key* in *data*.

    Accepts digit strings, integers and floats (truncated).
    """
    if not isinstance(data, Mapping) or key not in data:
        raise CameraIdError(f"{key} 字段缺失")
    value = data[key]
    if isinstance(value, str):
        if not is_digits(value):
            raise CameraIdError(f"{key} 必须为数字字符串")
        number = int(value)
        if number > _UINT64_MAX:
            raise CameraIdError(f"{key} 字段解析异常")
        return number
    if isinstance(value, bool):
        raise CameraIdError(f"{key} 字段类型不支持")
    if isinstance(value, int):
        return value % (_UINT64_MAX + 1)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise CameraIdError(f"{key} 字段解析异常")
        return int(value) % (_UINT64_MAX + 1)
    raise CameraIdError(f"{key} 字段类型不支持")


def is_valid_url(url: str) -> bool:
    """True for rtsp, http or https URLs without whitespace."""
    return _URL_RE.fullmatch(url) is not None


def is_valid_uuid(value: str) -> bool:
    """True if *value* has the canonical 8-4-4-4-12 hexadecimal form."""
    return _UUID_RE.fullmatch(value) is not None


def is_valid_host(host: str) -> bool:
    """True for an IPv4 address or a name of letters, digits, '-' and '.'."""
    return _HOST_RE.fullmatch(host) is not None


def generate_uuid() -> str:
    """Return a new random UUID in lower-case canonical form."""
    return str(uuid.uuid4())