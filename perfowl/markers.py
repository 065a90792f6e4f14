"""Extracting, filtering and summarising markers of a profiled thread."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Any, Iterable, Sequence

from .profile import Category, Thread


class MarkerType(str, Enum):
    """Marker types known by name; other types are kept as plain strings."""

    GC_MAJOR = "GCMajor"
    GC_MINOR = "GCMinor"
    GC_SLICE = "GCSlice"
    CC = "CC"
    CC_SLICE = "CCSlice"
    DOM_EVENT = "DOMEvent"
    STYLES = "Styles"
    USER_TIMING = "UserTiming"
    MAIN_THREAD_LONG_TASK = "MainThreadLongTask"
    TRACING = "tracing"
    CHANNEL_MARKER = "ChannelMarker"
    HOST_RESOLVER = "HostResolver"
    JS_ACTOR_MESSAGE = "JSActorMessage"
    FRAME_MESSAGE = "FrameMessage"
    AWAKE = "Awake"
    TEXT = "Text"
    PREFERENCE = "Preference"
    IPC = "IPC"


def _plain(value: str) -> str:
    return value.value if isinstance(value, MarkerType) else value


@dataclass
class ParsedMarker:
    """A marker resolved against the thread's strings and the profile's categories."""

    name: str = ""
    type: str = ""
    category: str = ""
    start_time: float = 0.0
    end_time: float = 0.0
    duration: float = 0.0
    phase: int = 0
    data: dict[str, Any] | None = None
    thread_name: str = ""
    thread_pid: str = ""

    def is_duration(self) -> bool:
        return self.duration > 0

    def duration_ms(self) -> float:
        return self.duration

    def duration_time(self) -> timedelta:
        return timedelta(milliseconds=self.duration)


@dataclass
class MarkerStats:
    """Counts and duration statistics of a set of markers."""

    total_count: int = 0
    by_type: dict[str, int] = field(default_factory=dict)
    by_category: dict[str, int] = field(default_factory=dict)
    total_duration: float = 0.0
    avg_duration: float = 0.0
    max_duration: float = 0.0
    min_duration: float = -1.0


def _at(seq: Sequence[Any], index: int, default: Any) -> Any:
    return seq[index] if 0 <= index < len(seq) else default


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def infer_marker_type(name: str) -> str:
    """Return the known MarkerType for ``name``, or ``name`` itself."""
    try:
        return MarkerType(name)
    except ValueError:
        return name


def extract_markers(thread: Thread, categories: Sequence[Category]) -> list[ParsedMarker]:
    """Parse every marker of ``thread``."""
    table = thread.markers
    strings = thread.string_array
    markers = []
    for i in range(table.length):
        name_index = _at(table.name, i, -1)
        name = strings[name_index] if 0 <= name_index < len(strings) else ""

        category_index = _at(table.category, i, -1)
        category = (
            categories[category_index].name if 0 <= category_index < len(categories) else ""
        )

        start_time = _at(table.start_time, i, 0.0)
        end_time = duration = 0.0
        end = _at(table.end_time, i, None)
        if _is_number(end):
            end_time = float(end)
            if end_time > start_time:
                duration = end_time - start_time

        payload = _at(table.data, i, None)
        data = payload if isinstance(payload, dict) else None
        marker_type = ""
        if data is not None:
            type_value = data.get("type")
            if isinstance(type_value, str):
                marker_type = type_value
            data_name = data.get("name")
            if not name and isinstance(data_name, str):
                name = data_name
        if not marker_type:
            marker_type = infer_marker_type(name)

        markers.append(
            ParsedMarker(
                name=name,
                type=marker_type,
                category=category,
                start_time=start_time,
                end_time=end_time,
                duration=duration,
                phase=_at(table.phase, i, 0),
                data=data,
                thread_name=thread.name,
                thread_pid=thread.pid,
            )
        )
    return markers


def filter_markers_by_type(markers: Iterable[ParsedMarker], marker_type: str) -> list[ParsedMarker]:
    """Markers whose type, or name, equals ``marker_type``."""
    wanted = _plain(marker_type)
    return [m for m in markers if _plain(m.type) == wanted or m.name == wanted]


def filter_markers_by_category(markers: Iterable[ParsedMarker], category: str) -> list[ParsedMarker]:
    return [m for m in markers if m.category == category]


def filter_markers_by_duration(markers: Iterable[ParsedMarker], min_ms: float) -> list[ParsedMarker]:
    """Markers lasting at least ``min_ms`` milliseconds."""
    return [m for m in markers if m.duration >= min_ms]


def filter_markers_by_name(markers: Iterable[ParsedMarker], pattern: str) -> list[ParsedMarker]:
    """Markers whose name contains ``pattern``, ignoring case."""
    needle = pattern.lower()
    return [m for m in markers if needle in m.name.lower()]


def get_marker_stats(markers: Sequence[ParsedMarker]) -> MarkerStats:
    """Count markers by type and category and summarise positive durations."""
    positive = [m.duration for m in markers if m.duration > 0]
    total = sum(positive)
    count = len(markers)
    return MarkerStats(
        total_count=count,
        by_type=dict(Counter(_plain(m.type) for m in markers)),
        by_category=dict(Counter(m.category for m in markers)),
        total_duration=total,
        avg_duration=total / count if count else 0.0,
        max_duration=max(positive, default=0.0),
        min_duration=min(positive, default=-1.0),
    )