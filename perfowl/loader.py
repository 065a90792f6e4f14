"""Loading profiles from files or streams, with optional browser detection."""

from __future__ import annotations

import json
import os
from typing import IO, Any

from .chrome import load_chrome_profile
from .convert import convert_chrome_to_profile
from .detect import BrowserType, detect_browser_type
from .jsonio import ProfileError, read_json_file
from .profile import Profile

_WHAT = "profile JSON"
_JSON_WHITESPACE = " \t\n\r"


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON literal {name!r}")


_DECODER = json.JSONDecoder(parse_constant=_reject_constant)


def _profile_from(data: Any) -> Profile:
    try:
        return Profile.from_dict(data)
    except ProfileError as exc:
        raise ProfileError(f"failed to decode {_WHAT}: {exc}") from exc


def load_profile(path: str | os.PathLike[str]) -> Profile:
    """Load a Firefox Profiler JSON file, plain or gzip-compressed."""
    return _profile_from(read_json_file(path, _WHAT))


def load_profile_from_reader(reader: IO[Any]) -> Profile:
    """Load a Firefox profile from a text or binary stream."""
    content = reader.read()
    try:
        text = content.decode("utf-8") if isinstance(content, (bytes, bytearray)) else content
        value, _ = _DECODER.raw_decode(text.lstrip(_JSON_WHITESPACE))
    except ValueError as exc:
        raise ProfileError(f"failed to decode {_WHAT}: {exc}") from exc
    return _profile_from(value)


def load_profile_auto(path: str | os.PathLike[str]) -> tuple[Profile, BrowserType]:
    """Detect which browser recorded the file, then load it."""
    try:
        browser_type = detect_browser_type(path)
    except ProfileError as exc:
        raise ProfileError(f"failed to detect browser type: {exc}") from exc
    return load_profile_with_type(path, browser_type)


def _load_chrome(path: str | os.PathLike[str]) -> Profile:
    return convert_chrome_to_profile(load_chrome_profile(path))


def load_profile_with_type(
    path: str | os.PathLike[str], browser_type: BrowserType
) -> tuple[Profile, BrowserType]:
    """Load a profile as the given browser's format; UNKNOWN detects or tries both."""
    if browser_type == BrowserType.FIREFOX:
        return load_profile(path), BrowserType.FIREFOX
    if browser_type == BrowserType.CHROME:
        return _load_chrome(path), BrowserType.CHROME

    try:
        detected = detect_browser_type(path)
    except ProfileError:
        detected = BrowserType.UNKNOWN
    if detected != BrowserType.UNKNOWN:
        return load_profile_with_type(path, detected)

    try:
        return load_profile(path), BrowserType.FIREFOX
    except ProfileError:
        pass
    try:
        chrome = load_chrome_profile(path)
    except ProfileError as exc:
        raise ProfileError("failed to parse as Firefox or Chrome profile") from exc
    return convert_chrome_to_profile(chrome), BrowserType.CHROME