"""Chrome DevTools performance traces: event model and loading."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .jsonio import ProfileError, read_json_file


class Phase(str, Enum):
    """Trace event phases (the ``ph`` field)."""

    BEGIN = "B"
    END = "E"
    DURATION = "X"
    METADATA = "M"
    INSTANT = "I"
    COUNTER = "C"
    ASYNC_START = "S"
    ASYNC_END = "F"
    ASYNC_BEGIN = "b"
    ASYNC_END2 = "e"
    ASYNC_STEP = "n"
    FLOW_START = "s"
    FLOW_END = "f"
    SAMPLE = "P"
    OBJECT = "O"
    CREATE = "N"
    DESTROY = "D"
    MARK = "R"


def _mismatch(where: str, expected: str, value: Any) -> ProfileError:
    return ProfileError(
        f"cannot decode {where}: expected {expected}, got {type(value).__name__}"
    )


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _object(value: Any, where: str) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise _mismatch(where, "object", value)
    return value


def _string(data: dict, key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    raise _mismatch(key, "string", value)


def _number(data: dict, key: str) -> float:
    value = data.get(key)
    if value is None:
        return 0.0
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    raise _mismatch(key, "number", value)


def _as_int(value: Any, where: str) -> int:
    if value is None:
        return 0
    if _is_int(value):
        return value
    raise _mismatch(where, "integer", value)


def _integer(data: dict, key: str) -> int:
    return _as_int(data.get(key), key)


def _array(data: dict, key: str) -> list:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise _mismatch(key, "array", value)
    return value


def _integers(data: dict, key: str) -> list[int]:
    return [_as_int(item, key) for item in _array(data, key)]


@dataclass
class ChromeMetadata:
    """Metadata block of a trace file."""

    enhanced_trace_version: int = 0
    source: str = ""
    start_time: str = ""
    data_origin: str = ""
    host_dpr: float = 0.0
    source_maps: list[Any] = field(default_factory=list)
    resources: list[Any] = field(default_factory=list)
    modifications: Any = None


def _metadata(value: Any) -> ChromeMetadata:
    data = _object(value, "metadata")
    return ChromeMetadata(
        enhanced_trace_version=_integer(data, "enhancedTraceVersion"),
        source=_string(data, "source"),
        start_time=_string(data, "startTime"),
        data_origin=_string(data, "dataOrigin"),
        host_dpr=_number(data, "hostDPR"),
        source_maps=list(_array(data, "sourceMaps")),
        resources=list(_array(data, "resources")),
        modifications=data.get("modifications"),
    )


@dataclass
class ChromeEvent:
    """A single trace event; times are in microseconds."""

    name: str = ""
    cat: str = ""
    ph: str = ""
    ts: float = 0.0
    dur: float = 0.0
    tdur: float = 0.0
    pid: int = 0
    tid: int = 0
    tts: float = 0.0
    args: Any = None
    id: Any = None
    scope: str = ""
    bp: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> ChromeEvent:
        """Build an event from decoded JSON; raises ProfileError on a type mismatch."""
        obj = _object(data, "trace event")
        return cls(
            name=_string(obj, "name"),
            cat=_string(obj, "cat"),
            ph=_string(obj, "ph"),
            ts=_number(obj, "ts"),
            dur=_number(obj, "dur"),
            tdur=_number(obj, "tdur"),
            pid=_integer(obj, "pid"),
            tid=_integer(obj, "tid"),
            tts=_number(obj, "tts"),
            args=obj.get("args"),
            id=obj.get("id"),
            scope=_string(obj, "scope"),
            bp=_string(obj, "bp"),
        )


@dataclass
class V8CallFrame:
    """A call frame of a V8 CPU profile node."""

    function_name: str = ""
    script_id: Any = None
    url: str = ""
    line_number: int = 0
    column_number: int = 0
    code_type: str = ""


def _call_frame(value: Any) -> V8CallFrame:
    data = _object(value, "callFrame")
    return V8CallFrame(
        function_name=_string(data, "functionName"),
        script_id=data.get("scriptId"),
        url=_string(data, "url"),
        line_number=_integer(data, "lineNumber"),
        column_number=_integer(data, "columnNumber"),
        code_type=_string(data, "codeType"),
    )


@dataclass
class V8Node:
    """A node of the V8 CPU profile tree."""

    id: int = 0
    call_frame: V8CallFrame = field(default_factory=V8CallFrame)
    hit_count: int = 0
    children: list[int] = field(default_factory=list)
    parent: int = 0


def _node(value: Any) -> V8Node:
    data = _object(value, "node")
    return V8Node(
        id=_integer(data, "id"),
        call_frame=_call_frame(data.get("callFrame")),
        hit_count=_integer(data, "hitCount"),
        children=_integers(data, "children"),
        parent=_integer(data, "parent"),
    )


@dataclass
class V8CPUProfile:
    """V8 CPU profile data carried by ProfileChunk events."""

    nodes: list[V8Node] = field(default_factory=list)
    samples: list[int] = field(default_factory=list)
    time_deltas: list[int] = field(default_factory=list)
    start_time: int = 0
    end_time: int = 0

    @classmethod
    def from_dict(cls, data: Any) -> V8CPUProfile:
        """Build a CPU profile from decoded JSON; raises ProfileError on a type mismatch."""
        obj = _object(data, "cpuProfile")
        return cls(
            nodes=[_node(item) for item in _array(obj, "nodes")],
            samples=_integers(obj, "samples"),
            time_deltas=_integers(obj, "timeDeltas"),
            start_time=_integer(obj, "startTime"),
            end_time=_integer(obj, "endTime"),
        )


@dataclass
class ProfileChunkData:
    """The ``data`` part of a ProfileChunk event's args."""

    cpu_profile: V8CPUProfile = field(default_factory=V8CPUProfile)
    time_deltas: list[int] = field(default_factory=list)

    @classmethod
    def from_args(cls, args: Any) -> ProfileChunkData:
        """Decode a ProfileChunk event's args; raises ProfileError if they are missing or malformed."""
        if args is None:
            raise ProfileError("cannot decode profile chunk: missing args")
        data = _object(_object(args, "args").get("data"), "data")
        return cls(
            cpu_profile=V8CPUProfile.from_dict(data.get("cpuProfile")),
            time_deltas=_integers(data, "timeDeltas"),
        )


@dataclass
class ChromeProfile:
    """A Chrome DevTools performance trace."""

    metadata: ChromeMetadata = field(default_factory=ChromeMetadata)
    trace_events: list[ChromeEvent] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> ChromeProfile:
        """Build a trace from decoded JSON; raises ProfileError on a type mismatch."""
        obj = _object(data, "Chrome profile")
        return cls(
            metadata=_metadata(obj.get("metadata")),
            trace_events=[ChromeEvent.from_dict(item) for item in _array(obj, "traceEvents")],
        )


def load_chrome_profile(path: str | os.PathLike[str]) -> ChromeProfile:
    """Load a Chrome trace file, plain or gzip-compressed."""
    what = "Chrome profile JSON"
    data = read_json_file(path, what)
    try:
        return ChromeProfile.from_dict(data)
    except ProfileError as exc:
        raise ProfileError(f"failed to decode {what}: {exc}") from exc