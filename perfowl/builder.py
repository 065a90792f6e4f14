"""Building Firefox-format thread tables from Chrome trace data."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, MutableSet

from .chrome import V8CallFrame
from .profile import (
    Category,
    FrameTable,
    FuncTable,
    Markers,
    Samples,
    StackTable,
    Thread,
)

CHROME_CATEGORY_MAP: dict[str, str] = {
    "devtools.timeline": "JavaScript",
    "disabled-by-default-devtools.timeline": "Other",
    "disabled-by-default-devtools.timeline.frame": "Graphics",
    "disabled-by-default-devtools.timeline.stack": "JavaScript",
    "v8": "JavaScript",
    "v8.execute": "JavaScript",
    "v8.compile": "JavaScript",
    "disabled-by-default-v8.gc": "GC / CC",
    "disabled-by-default-v8.cpu_profiler": "JavaScript",
    "blink": "Layout",
    "blink.user_timing": "UserTiming",
    "blink.console": "JavaScript",
    "loading": "Network",
    "net": "Network",
    "netlog": "Network",
    "gpu": "Graphics",
    "cc": "Graphics",
    "viz": "Graphics",
    "benchmark": "Other",
    "rail": "Other",
    "__metadata": "Other",
    "toplevel": "Other",
    "ipc": "IPC",
}

_EXTENSION_PREFIX = "chrome-extension://"
_EXTENSION_ID_LENGTH = 32
_UNKNOWN_URL = "(unknown)"

_CATEGORY_COLORS = (
    ("Idle", "transparent"),
    ("Other", "grey"),
    ("Layout", "purple"),
    ("JavaScript", "yellow"),
    ("GC / CC", "orange"),
    ("Network", "lightblue"),
    ("Graphics", "green"),
    ("DOM", "blue"),
    ("UserTiming", "yellow"),
    ("IPC", "lightgreen"),
)


def default_categories() -> list[Category]:
    """The categories used for profiles converted from Chrome traces."""
    return [
        Category(name=name, color=color, subcategories=["Other"])
        for name, color in _CATEGORY_COLORS
    ]


@dataclass
class StringTable:
    """An interned list of strings; each string is stored once."""

    strings: list[str] = field(default_factory=list)
    _index: dict[str, int] = field(default_factory=dict, repr=False)

    def intern(self, s: str) -> int:
        """Return the index of ``s``, adding it if it is new."""
        index = self._index.get(s)
        if index is None:
            index = len(self.strings)
            self._index[s] = index
            self.strings.append(s)
        return index

    def __len__(self) -> int:
        return len(self.strings)


def map_category(chrome_categories: str, category_index: Mapping[str, int]) -> int:
    """Map comma-separated Chrome categories to a category index; the first known one wins."""
    for part in chrome_categories.split(","):
        mapped = CHROME_CATEGORY_MAP.get(part.strip())
        if mapped is not None and mapped in category_index:
            return category_index[mapped]
    return category_index.get("Other", 1)


def extract_extension_id(url: str) -> str | None:
    """Return the 32-character extension ID of a chrome-extension:// URL, or None."""
    if not url.startswith(_EXTENSION_PREFIX):
        return None
    rest = url[len(_EXTENSION_PREFIX):]
    slash = rest.find("/")
    ext_id = rest[:slash] if slash > 0 else rest
    if len(ext_id) == _EXTENSION_ID_LENGTH:
        return ext_id
    return None


def category_for_call_frame(
    call_frame: V8CallFrame,
    category_index: Mapping[str, int],
    extensions: MutableSet[str],
) -> int:
    """Choose a category for a V8 call frame, recording extension IDs seen in its URL."""
    url = call_frame.url
    if _EXTENSION_PREFIX in url:
        ext_id = extract_extension_id(url)
        if ext_id is not None:
            extensions.add(ext_id)
        return category_index.get("Other", 0)
    if url.startswith("http") or url.startswith("file"):
        return category_index.get("JavaScript", 0)
    if call_frame.code_type == "other" or call_frame.function_name in ("(root)", "(program)"):
        return category_index.get("Other", 0)
    return category_index.get("JavaScript", 0)


def _process_type(process_name: str) -> str:
    if "Browser" in process_name:
        return "default"
    if "GPU" in process_name:
        return "gpu"
    if "Extension" in process_name:
        return "extension"
    return "tab"


@dataclass
class ThreadBuilder:
    """Accumulates markers, samples and stack tables for one thread."""

    pid: int
    tid: int
    name: str = ""
    process_name: str = ""
    markers: Markers = field(default_factory=Markers)
    samples: Samples = field(default_factory=Samples)
    stack_table: StackTable = field(default_factory=StackTable)
    frame_table: FrameTable = field(default_factory=FrameTable)
    func_table: FuncTable = field(default_factory=FuncTable)
    _funcs: dict[tuple[str, str, int], int] = field(default_factory=dict, repr=False)
    _frames: dict[tuple[int, int], int] = field(default_factory=dict, repr=False)
    _stacks: dict[tuple[int, int], int] = field(default_factory=dict, repr=False)

    def add_marker(
        self,
        start_time: float,
        end_time: float | None,
        name: int,
        category: int,
        data: Any,
        phase: int,
    ) -> None:
        """Append a marker; an empty object as data is stored as None."""
        table = self.markers
        table.start_time.append(start_time)
        table.end_time.append(end_time)
        table.name.append(name)
        table.category.append(category)
        table.phase.append(phase)
        table.data.append(None if data is None or data == {} else data)
        table.length = len(table.name)

    def get_or_create_func(self, call_frame: V8CallFrame, strings: StringTable) -> int:
        """Index of the function for ``call_frame``, keyed by name, URL and line."""
        url = call_frame.url or _UNKNOWN_URL
        key = (call_frame.function_name, url, call_frame.line_number)
        index = self._funcs.get(key)
        if index is not None:
            return index
        table = self.func_table
        index = len(table.name)
        self._funcs[key] = index
        table.name.append(strings.intern(call_frame.function_name))
        table.is_js.append(True)
        table.relevant_for_js.append(True)
        table.resource.append(-1)
        table.file_name.append(strings.intern(url))
        table.line_number.append(call_frame.line_number)
        table.column_number.append(call_frame.column_number)
        table.length = len(table.name)
        return index

    def get_or_create_frame(self, func_index: int, category: int) -> int:
        """Index of the frame for a function in a category."""
        key = (func_index, category)
        index = self._frames.get(key)
        if index is not None:
            return index
        table = self.frame_table
        index = len(table.func)
        self._frames[key] = index
        table.address.append(None)
        table.inline_depth.append(0)
        table.category.append(category)
        table.subcategory.append(0)
        table.func.append(func_index)
        table.native_symbol.append(None)
        table.inner_window_id.append(None)
        table.implementation.append(None)
        table.line.append(None)
        table.column.append(None)
        table.length = len(table.func)
        return index

    def get_or_create_stack(self, frame_index: int, prefix_index: int, category: int) -> int:
        """Index of the stack for a frame on top of a prefix stack (-1 for none)."""
        key = (frame_index, prefix_index)
        index = self._stacks.get(key)
        if index is not None:
            return index
        table = self.stack_table
        index = len(table.frame)
        self._stacks[key] = index
        table.frame.append(frame_index)
        table.prefix.append(prefix_index)
        table.category.append(category)
        table.length = len(table.frame)
        return index

    def add_sample(self, stack: int, time: float, cpu_delta: int) -> None:
        """Append a sample of weight 1; ``cpu_delta`` is in microseconds."""
        samples = self.samples
        samples.stack.append(stack)
        samples.time.append(time)
        samples.weight.append(1)
        samples.thread_cpu_delta.append(cpu_delta)
        samples.length = len(samples.stack)

    def build(self, string_array: list[str]) -> Thread:
        """Assemble the thread, deciding whether it is a main thread and its process type."""
        is_main = "Main" in self.name or self.name in ("CrBrowserMain", "CrRendererMain")
        self.samples.weight_type = "samples"
        self.samples.length = len(self.samples.stack)
        self.markers.length = len(self.markers.name)
        self.stack_table.length = len(self.stack_table.frame)
        self.frame_table.length = len(self.frame_table.func)
        self.func_table.length = len(self.func_table.name)
        return Thread(
            name=self.name,
            is_main_thread=is_main,
            process_type=_process_type(self.process_name),
            process_name=self.process_name,
            pid=str(self.pid),
            tid=str(self.tid),
            string_array=string_array,
            samples=self.samples,
            markers=self.markers,
            stack_table=self.stack_table,
            frame_table=self.frame_table,
            func_table=self.func_table,
        )