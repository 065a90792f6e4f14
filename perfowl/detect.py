"""Telling Firefox profiles from Chrome traces."""

from __future__ import annotations

import os
from enum import Enum
from typing import Any

from .jsonio import ProfileError, read_json_file


class BrowserType(str, Enum):
    """The browser that recorded a profile."""

    FIREFOX = "firefox"
    CHROME = "chrome"
    UNKNOWN = "unknown"


def parse_browser_type(s: str) -> BrowserType:
    """Parse a browser name, case-insensitively; "auto" and anything else give UNKNOWN."""
    lowered = s.lower()
    if lowered == "firefox":
        return BrowserType.FIREFOX
    if lowered == "chrome":
        return BrowserType.CHROME
    return BrowserType.UNKNOWN


def _checked(data: dict, key: str, kind: type, expected: str) -> Any:
    value = data.get(key)
    if value is not None and not isinstance(value, kind):
        raise ProfileError(
            f"cannot decode {key}: expected {expected}, got {type(value).__name__}"
        )
    return value


def detect_from_data(data: Any) -> BrowserType:
    """Classify decoded profile JSON; raises ProfileError if its shape is wrong."""
    if data is None:
        return BrowserType.UNKNOWN
    if not isinstance(data, dict):
        raise ProfileError(f"cannot decode profile: expected object, got {type(data).__name__}")
    meta = _checked(data, "meta", dict, "object")
    if meta is not None:
        _checked(meta, "product", str, "string")
    threads = _checked(data, "threads", list, "array")
    events = _checked(data, "traceEvents", list, "array")

    if meta is not None and threads:
        return BrowserType.FIREFOX
    if events:
        return BrowserType.CHROME
    return BrowserType.UNKNOWN


def detect_browser_type(path: str | os.PathLike[str]) -> BrowserType:
    """Read a profile file and tell which browser recorded it."""
    data = read_json_file(path, "JSON")
    try:
        return detect_from_data(data)
    except ProfileError as exc:
        raise ProfileError(f"failed to decode JSON: {exc}") from exc