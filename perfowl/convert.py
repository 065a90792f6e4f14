"""Converting Chrome DevTools traces into Firefox Profiler profiles."""

from __future__ import annotations

import math
import re
from datetime import datetime, timedelta, timezone
from typing import Any

from .builder import (
    StringTable,
    ThreadBuilder,
    category_for_call_frame,
    default_categories,
    map_category,
)
from .chrome import ChromeEvent, ChromeProfile, Phase, ProfileChunkData
from .jsonio import ProfileError
from .profile import Extensions, Meta, Profile, Shared

_RFC3339_RE = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?"
    r"(?:(Z)|([+-])(\d{2}):(\d{2}))"
)
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def event_id_to_string(event_id: Any) -> str:
    """Render a trace event ID, which may be a string or a number, as text."""
    if event_id is None:
        return ""
    if isinstance(event_id, str):
        return event_id
    if isinstance(event_id, bool):
        return "true" if event_id else "false"
    if isinstance(event_id, int):
        return str(event_id)
    if isinstance(event_id, float):
        if math.isfinite(event_id):
            return str(int(event_id))
        return str(event_id)
    return str(event_id)


def _parse_rfc3339_ms(text: str) -> float | None:
    match = _RFC3339_RE.fullmatch(text)
    if match is None:
        return None
    year, month, day, hour, minute, second = (int(g) for g in match.group(1, 2, 3, 4, 5, 6))
    fraction = match.group(7) or ""
    if match.group(8):
        offset = timedelta(0)
    else:
        off_hours, off_minutes = int(match.group(10)), int(match.group(11))
        if off_hours >= 24 or off_minutes >= 60:
            return None
        offset = timedelta(hours=off_hours, minutes=off_minutes)
        if match.group(9) == "-":
            offset = -offset
    try:
        moment = datetime(year, month, day, hour, minute, second, tzinfo=timezone(offset))
    except ValueError:
        return None
    delta = moment - _EPOCH
    millis = int((fraction + "000")[:3])
    return float(delta.days * 86_400_000 + delta.seconds * 1000 + millis)


def _thread_name_arg(args: Any) -> str:
    if isinstance(args, dict):
        name = args.get("name")
        if isinstance(name, str):
            return name
    return ""


class _Converter:
    def __init__(self, chrome: ChromeProfile) -> None:
        self.chrome = chrome
        self.threads: dict[tuple[int, int], ThreadBuilder] = {}
        self.process_names: dict[int, str] = {}
        self.strings = StringTable()
        self.categories = default_categories()
        self.category_index = {cat.name: i for i, cat in enumerate(self.categories)}
        self.min_time = -1.0
        self.max_time = 0.0
        self.profile_targets: dict[str, tuple[int, int]] = {}
        self.extensions: set[str] = set()

    def thread(self, pid: int, tid: int) -> ThreadBuilder:
        builder = self.threads.get((pid, tid))
        if builder is None:
            builder = self.threads[(pid, tid)] = ThreadBuilder(pid=pid, tid=tid)
        return builder

    def run(self) -> Profile:
        self.parse_metadata()
        self.process_events()
        self.map_profile_targets()
        self.extract_cpu_profiles()
        return self.build_profile()

    def parse_metadata(self) -> None:
        for event in self.chrome.trace_events:
            if event.ph != Phase.METADATA.value:
                continue
            name = _thread_name_arg(event.args)
            if not name:
                continue
            if event.name == "thread_name":
                self.thread(event.pid, event.tid).name = name
            elif event.name == "process_name":
                self.process_names[event.pid] = name

    def process_events(self) -> None:
        events = self.chrome.trace_events
        start = next(
            (e.ts for e in events if e.name == "TracingStartedInBrowser" and e.ts > 0), None
        )
        if start is not None:
            self.min_time = start

        for event in events:
            if event.ts > 0:
                if start is None and (self.min_time < 0 or event.ts < self.min_time):
                    self.min_time = event.ts
                self.max_time = max(self.max_time, event.ts + event.dur)

            if event.ph == Phase.DURATION.value:
                self.add_marker(event, instant=False)
            elif event.ph in (Phase.INSTANT.value, Phase.MARK.value):
                self.add_marker(event, instant=True)

    def add_marker(self, event: ChromeEvent, *, instant: bool) -> None:
        builder = self.thread(event.pid, event.tid)
        start_time = (event.ts - self.min_time) / 1000.0
        end_time = None if instant else start_time + event.dur / 1000.0
        name = self.strings.intern(event.name)
        category = map_category(event.cat, self.category_index)
        builder.add_marker(start_time, end_time, name, category, event.args, 0 if instant else 1)

    def map_profile_targets(self) -> None:
        for event in self.chrome.trace_events:
            if event.ph != Phase.SAMPLE.value or event.name != "Profile":
                continue
            key = event_id_to_string(event.id)
            if key:
                self.profile_targets[key] = (event.pid, event.tid)

    def extract_cpu_profiles(self) -> None:
        for event in self.chrome.trace_events:
            if event.name != "ProfileChunk":
                continue
            try:
                chunk = ProfileChunkData.from_args(event.args)
            except ProfileError:
                continue
            cpu = chunk.cpu_profile
            if not cpu.nodes and not cpu.samples:
                continue
            pid, tid = self.profile_targets.get(
                event_id_to_string(event.id), (event.pid, event.tid)
            )
            self.add_cpu_profile(self.thread(pid, tid), chunk, event.ts)

    def add_cpu_profile(self, builder: ThreadBuilder, chunk: ProfileChunkData, base_ts: float) -> None:
        cpu = chunk.cpu_profile
        node_stacks: dict[int, int] = {}
        for node in cpu.nodes:
            func = builder.get_or_create_func(node.call_frame, self.strings)
            category = category_for_call_frame(
                node.call_frame, self.category_index, self.extensions
            )
            frame = builder.get_or_create_frame(func, category)
            prefix = node_stacks.get(node.parent, -1) if node.parent > 0 else -1
            node_stacks[node.id] = builder.get_or_create_stack(frame, prefix, category)

        deltas = chunk.time_deltas or cpu.time_deltas
        current = (base_ts - self.min_time) / 1000.0
        for i, node_id in enumerate(cpu.samples):
            delta = deltas[i] / 1000.0 if i < len(deltas) else 0.0
            builder.add_sample(node_stacks.get(node_id, -1), current, int(delta * 1000))
            current += delta

    def build_extensions(self) -> Extensions:
        if not self.extensions:
            return Extensions()
        ids = sorted(self.extensions)
        return Extensions(
            length=len(ids),
            id=ids,
            name=list(ids),
            base_url=[f"chrome-extension://{ext_id}/" for ext_id in ids],
        )

    def build_profile(self) -> Profile:
        for (pid, _), builder in self.threads.items():
            if pid in self.process_names:
                builder.process_name = self.process_names[pid]

        ordered = sorted(self.threads.items(), key=lambda item: f"{item[0][0]}:{item[0][1]}")
        string_array = self.strings.strings
        threads = [builder.build(string_array) for _, builder in ordered]

        start_ms = 0.0
        if self.chrome.metadata.start_time:
            start_ms = _parse_rfc3339_ms(self.chrome.metadata.start_time) or 0.0

        return Profile(
            meta=Meta(
                interval=1.0,
                start_time=start_ms,
                profiling_start_time=0.0,
                profiling_end_time=(self.max_time - self.min_time) / 1000.0,
                product="Chrome",
                version=1,
                platform="Chrome DevTools",
                categories=self.categories,
                extensions=self.build_extensions(),
            ),
            threads=threads,
            shared=Shared(string_array=string_array),
        )


def convert_chrome_to_profile(chrome: ChromeProfile) -> Profile:
    """Convert a Chrome trace into the Firefox Profiler profile structure."""
    return _Converter(chrome).run()