"""Data model of a profile in the Firefox Profiler processed format."""

import dataclasses
import re
import types
import typing
from dataclasses import dataclass, field
from functools import lru_cache
from itertools import islice
from typing import Any, Union

from .jsonio import ProfileError

_NUMBER_RE = re.compile(r"-?(?:0|[1-9]\d*)(?:\.\d+)?(?:[eE][+-]?\d+)?")


def _key(name: str | None = None, *, omitempty: bool = False, number: bool = False) -> dict:
    return {"key": name, "omitempty": omitempty, "number": number}


def _json_key(f: dataclasses.Field) -> str:
    explicit = f.metadata.get("key")
    if explicit:
        return explicit
    first, *rest = f.name.split("_")
    return first + "".join(part.capitalize() for part in rest)


@dataclass
class Category:
    """A profiling category such as JavaScript or Layout."""

    name: str = ""
    color: str = ""
    subcategories: list[str] = field(default_factory=list)


@dataclass
class Extensions:
    """Browser extensions installed while profiling, as parallel columns."""

    length: int = 0
    id: list[str] = field(default_factory=list)
    name: list[str] = field(default_factory=list)
    base_url: list[str] = field(default_factory=list, metadata=_key("baseURL"))


@dataclass
class MarkerSchema:
    """Describes how a marker type is displayed."""

    name: str = ""
    display: list[str] = field(default_factory=list)
    fields: list[dict[str, Any]] = field(default_factory=list)
    tooltip_label: str = field(default="", metadata=_key(omitempty=True))
    table_label: str = field(default="", metadata=_key(omitempty=True))
    chart_label: str = field(default="", metadata=_key(omitempty=True))
    description: str = field(default="", metadata=_key(omitempty=True))
    is_stack_based: bool = field(default=False, metadata=_key(omitempty=True))


@dataclass
class Configuration:
    """Profiler configuration used for the recording."""

    features: list[str] = field(default_factory=list)
    threads: list[str] = field(default_factory=list)
    interval: float = 0.0
    capacity: int = 0
    active_tab_id: int = field(default=0, metadata=_key("activeTabID"))


@dataclass
class SampleUnits:
    """Units of the sample columns."""

    time: str = ""
    event_delay: str = ""
    thread_cpu_delta: str = field(default="", metadata=_key("threadCPUDelta"))


@dataclass
class Meta:
    """Profile metadata."""

    interval: float = 0.0
    start_time: float = 0.0
    profiling_start_time: float = 0.0
    profiling_end_time: float = 0.0
    abi: str = ""
    oscpu: str = ""
    platform: str = ""
    process_type: int = 0
    product: str = ""
    version: int = 0
    stackwalk: int = 0
    debug: bool = False
    toolkit: str = ""
    cpu_name: str = field(default="", metadata=_key("CPUName"))
    physical_cpus: int = field(default=0, metadata=_key("physicalCPUs"))
    logical_cpus: int = field(default=0, metadata=_key("logicalCPUs"))
    symbolicated: bool = False
    update_channel: str = ""
    app_build_id: str = field(default="", metadata=_key("appBuildID"))
    source_url: str = field(default="", metadata=_key("sourceURL"))
    preprocessed_profile_version: int = 0
    extensions: Extensions = field(default_factory=Extensions)
    categories: list[Category] = field(default_factory=list)
    marker_schema: list[MarkerSchema] = field(default_factory=list)
    configuration: Configuration = field(default_factory=Configuration)
    sample_units: SampleUnits = field(default_factory=SampleUnits)


@dataclass
class Lib:
    """A library loaded into a profiled process."""

    arch: str = ""
    name: str = ""
    path: str = ""
    debug_name: str = ""
    debug_path: str = ""
    breakpad_id: str = ""
    code_id: str = ""


@dataclass
class Shared:
    """Data shared by all threads."""

    string_array: list[str] = field(default_factory=list)


@dataclass
class Samples:
    """Sample table of a thread."""

    length: int = 0
    stack: list[int] = field(default_factory=list)
    time: list[float] = field(default_factory=list)
    weight: list[int] = field(default_factory=list, metadata=_key(omitempty=True))
    weight_type: str = field(default="", metadata=_key(omitempty=True))
    thread_cpu_delta: list[int] = field(
        default_factory=list, metadata=_key("threadCPUDelta", omitempty=True)
    )


@dataclass
class Markers:
    """Marker table of a thread; ``data`` holds decoded JSON payloads or None."""

    length: int = 0
    category: list[int] = field(default_factory=list)
    data: list[Any] = field(default_factory=list)
    end_time: list[Any] = field(default_factory=list)
    name: list[int] = field(default_factory=list)
    phase: list[int] = field(default_factory=list)
    start_time: list[float] = field(default_factory=list)


@dataclass
class StackTable:
    """Stack table of a thread."""

    length: int = 0
    frame: list[int] = field(default_factory=list)
    category: list[int] = field(default_factory=list)
    prefix: list[int] = field(default_factory=list)


@dataclass
class FrameTable:
    """Frame table of a thread."""

    length: int = 0
    address: list[Any] = field(default_factory=list)
    inline_depth: list[int] = field(default_factory=list)
    category: list[int] = field(default_factory=list)
    subcategory: list[int] = field(default_factory=list)
    func: list[int] = field(default_factory=list)
    native_symbol: list[Any] = field(default_factory=list)
    inner_window_id: list[Any] = field(default_factory=list, metadata=_key("innerWindowID"))
    implementation: list[Any] = field(default_factory=list)
    line: list[Any] = field(default_factory=list)
    column: list[Any] = field(default_factory=list)


@dataclass
class FuncTable:
    """Function table of a thread."""

    length: int = 0
    name: list[int] = field(default_factory=list)
    is_js: list[bool] = field(default_factory=list, metadata=_key("isJS"))
    relevant_for_js: list[bool] = field(default_factory=list, metadata=_key("relevantForJS"))
    resource: list[int] = field(default_factory=list)
    file_name: list[int] = field(default_factory=list)
    line_number: list[int] = field(default_factory=list)
    column_number: list[int] = field(default_factory=list)


@dataclass
class ResourceTable:
    """Resource table of a thread."""

    length: int = 0
    lib: list[int] = field(default_factory=list)
    name: list[int] = field(default_factory=list)
    host: list[int] = field(default_factory=list)
    type: list[int] = field(default_factory=list)


@dataclass
class NativeSymbols:
    """Native symbol table of a thread."""

    length: int = 0
    address: list[Any] = field(default_factory=list)
    function_size: list[Any] = field(default_factory=list)
    lib_index: list[int] = field(default_factory=list)
    name: list[int] = field(default_factory=list)


@dataclass
class Thread:
    """A profiled thread; ``pid`` and ``tid`` keep the numbers as text."""

    name: str = ""
    is_main_thread: bool = False
    process_type: str = ""
    process_name: str = ""
    process_startup_time: float = 0.0
    process_shutdown_time: float | None = None
    register_time: float = 0.0
    unregister_time: float | None = None
    pid: str = field(default="", metadata=_key(number=True))
    tid: str = field(default="", metadata=_key(number=True))
    samples: Samples = field(default_factory=Samples)
    markers: Markers = field(default_factory=Markers)
    stack_table: StackTable = field(default_factory=StackTable)
    frame_table: FrameTable = field(default_factory=FrameTable)
    string_array: list[str] = field(default_factory=list)
    func_table: FuncTable = field(default_factory=FuncTable)
    resource_table: ResourceTable = field(default_factory=ResourceTable)
    native_symbols: NativeSymbols = field(default_factory=NativeSymbols)


@dataclass
class Profile:
    """A whole profile: metadata, libraries, threads and shared strings."""

    meta: Meta = field(default_factory=Meta)
    libs: list[Lib] = field(default_factory=list)
    threads: list[Thread] = field(default_factory=list)
    shared: Shared = field(default_factory=Shared)

    @classmethod
    def from_dict(cls, data: Any) -> "Profile":
        """Build a profile from decoded JSON; raises ProfileError on a type mismatch."""
        if data is None:
            return cls()
        return _decode(cls, data, "profile")

    def to_dict(self) -> dict[str, Any]:
        """Return the profile as JSON-ready data."""
        return _dump(self)

    def duration(self) -> float:
        """Profile duration in milliseconds."""
        return self.meta.profiling_end_time - self.meta.profiling_start_time

    def duration_seconds(self) -> float:
        """Profile duration in seconds."""
        return self.duration() / 1000.0

    def extension_count(self) -> int:
        return self.meta.extensions.length

    def get_extensions(self) -> dict[str, str]:
        """Map extension ID to name."""
        ext = self.meta.extensions
        return dict(islice(zip(ext.id, ext.name), max(ext.length, 0)))

    def get_extension_base_urls(self) -> dict[str, str]:
        """Map extension ID to base URL."""
        ext = self.meta.extensions
        return dict(islice(zip(ext.id, ext.base_url), max(ext.length, 0)))

    def get_category_by_index(self, index: int) -> Category | None:
        categories = self.meta.categories
        if 0 <= index < len(categories):
            return categories[index]
        return None

    def thread_count(self) -> int:
        return len(self.threads)

    def get_main_threads(self) -> list[Thread]:
        return [thread for thread in self.threads if thread.is_main_thread]


@lru_cache(maxsize=None)
def _layout(cls: type) -> tuple[dict, dict]:
    exact = {_json_key(f): (f, f.type) for f in dataclasses.fields(cls)}
    folded = {key.lower(): entry for key, entry in exact.items()}
    return exact, folded


def _is_union(tp: Any) -> bool:
    return typing.get_origin(tp) in (Union, types.UnionType)


def _zero(tp: Any) -> Any:
    if tp is Any or _is_union(tp):
        return None
    if dataclasses.is_dataclass(tp):
        return tp()
    origin = typing.get_origin(tp)
    if origin is list:
        return []
    if origin is dict:
        return {}
    return {bool: False, int: 0, float: 0.0, str: ""}[tp]


def _mismatch(where: str, expected: str, value: Any) -> ProfileError:
    return ProfileError(
        f"cannot decode {where}: expected {expected}, got {type(value).__name__}"
    )


def _decode(tp: Any, value: Any, where: str) -> Any:
    if tp is Any:
        return value
    if value is None:
        return _zero(tp)
    if _is_union(tp):
        inner = next(arg for arg in typing.get_args(tp) if arg is not type(None))
        return _decode(inner, value, where)
    if dataclasses.is_dataclass(tp):
        if not isinstance(value, dict):
            raise _mismatch(where, "object", value)
        return _load(tp, value)
    origin = typing.get_origin(tp)
    if origin is list:
        if not isinstance(value, list):
            raise _mismatch(where, "array", value)
        (item_tp,) = typing.get_args(tp)
        return [_decode(item_tp, item, where) for item in value]
    if origin is dict:
        if not isinstance(value, dict):
            raise _mismatch(where, "object", value)
        return value
    if tp is bool:
        if isinstance(value, bool):
            return value
        raise _mismatch(where, "boolean", value)
    if tp is int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        raise _mismatch(where, "integer", value)
    if tp is float:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        raise _mismatch(where, "number", value)
    if tp is str:
        if isinstance(value, str):
            return value
        raise _mismatch(where, "string", value)
    raise ProfileError(f"cannot decode {where}: unsupported type {tp!r}")


def _decode_number(value: Any, where: str) -> str:
    if isinstance(value, bool):
        raise _mismatch(where, "number", value)
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str) and (value == "" or _NUMBER_RE.fullmatch(value)):
        return value
    raise ProfileError(f"cannot decode {where}: invalid number {value!r}")


def _load(cls: type, data: dict) -> Any:
    exact, folded = _layout(cls)
    kwargs: dict[str, Any] = {}
    for key, value in data.items():
        entry = exact.get(key) or folded.get(key.lower()) if isinstance(key, str) else None
        if entry is None or value is None:
            continue
        f, tp = entry
        if f.metadata.get("number"):
            kwargs[f.name] = _decode_number(value, key)
        else:
            kwargs[f.name] = _decode(tp, value, key)
    return cls(**kwargs)


def _number_out(text: str) -> int | float:
    if not text:
        return 0
    try:
        return int(text)
    except ValueError:
        return float(text)


def _encode(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _dump(value)
    if isinstance(value, list):
        return [_encode(item) for item in value]
    if isinstance(value, dict):
        return {key: _encode(item) for key, item in value.items()}
    return value


def _dump(obj: Any) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for f in dataclasses.fields(obj):
        value = getattr(obj, f.name)
        if f.metadata.get("omitempty") and not value:
            continue
        out[_json_key(f)] = _number_out(value) if f.metadata.get("number") else _encode(value)
    return out