"""Opening profile files, plain or gzip-compressed, and decoding their JSON."""

from __future__ import annotations

import gzip
import json
import os
from contextlib import contextmanager
from typing import IO, Any, Iterator

_GZIP_SUFFIXES = frozenset({".gz", ".gzip"})
_GZIP_MAGIC = b"\x1f\x8b"
_JSON_WHITESPACE = " \t\n\r"


class ProfileError(Exception):
    """Raised when a profile cannot be opened, decompressed or decoded."""


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON literal {name!r}")


_DECODER = json.JSONDecoder(parse_constant=_reject_constant)


def _is_gzip_path(path: str | os.PathLike[str]) -> bool:
    return os.path.splitext(os.fspath(path))[1].lower() in _GZIP_SUFFIXES


@contextmanager
def open_profile_file(path: str | os.PathLike[str]) -> Iterator[IO[bytes]]:
    """Open a profile file for binary reading, decompressing .gz and .gzip files."""
    try:
        raw = open(path, "rb")
    except OSError as exc:
        raise ProfileError(f"failed to open profile: {exc}") from exc
    with raw:
        if not _is_gzip_path(path):
            yield raw
            return
        if raw.read(len(_GZIP_MAGIC)) != _GZIP_MAGIC:
            raise ProfileError("failed to create gzip reader: invalid header")
        raw.seek(0)
        with gzip.GzipFile(fileobj=raw, mode="rb") as stream:
            yield stream


def _decode_first_value(content: bytes, what: str) -> Any:
    try:
        text = content.decode("utf-8")
        value, _ = _DECODER.raw_decode(text.lstrip(_JSON_WHITESPACE))
    except ValueError as exc:
        raise ProfileError(f"failed to decode {what}: {exc}") from exc
    return value


def read_json_file(path: str | os.PathLike[str], what: str) -> Any:
    """Read the first JSON value from a profile file.

    ``what`` names the content in error messages, e.g. ``"profile JSON"``.
    """
    with open_profile_file(path) as stream:
        try:
            content = stream.read()
        except (OSError, EOFError) as exc:
            raise ProfileError(f"failed to decode {what}: {exc}") from exc
    return _decode_first_value(content, what)