import pytest

from perfowl.chrome import ChromeEvent, ChromeMetadata, ChromeProfile
from perfowl.convert import convert_chrome_to_profile, event_id_to_string


def _find(profile, name):
    return next(t for t in profile.threads if t.name == name)


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, ""),
        ("0x1", "0x1"),
        ("abc123", "abc123"),
        (12345.0, "12345"),
        (42.0, "42"),
        (7, "7"),
    ],
)
def test_event_id_to_string(value, expected):
    assert event_id_to_string(value) == expected


def test_minimal_profile():
    chrome = ChromeProfile(
        metadata=ChromeMetadata(source="Chrome DevTools", start_time="2024-01-01T00:00:00Z"),
        trace_events=[
            ChromeEvent(name="thread_name", cat="__metadata", ph="M", ts=0, pid=1, tid=1,
                        args={"name": "CrRendererMain"}),
            ChromeEvent(name="FunctionCall", cat="devtools.timeline", ph="X", ts=1000000,
                        dur=5000, pid=1, tid=1),
        ],
    )
    profile = convert_chrome_to_profile(chrome)
    assert profile.meta.product == "Chrome"
    assert profile.meta.start_time == 1704067200000.0
    renderer = _find(profile, "CrRendererMain")
    assert renderer.markers.length == 1
    assert renderer.is_main_thread is True


def test_process_names():
    chrome = ChromeProfile(
        trace_events=[
            ChromeEvent(name="process_name", cat="__metadata", ph="M", pid=1, tid=0,
                        args={"name": "Browser"}),
            ChromeEvent(name="thread_name", cat="__metadata", ph="M", pid=1, tid=1,
                        args={"name": "CrBrowserMain"}),
            ChromeEvent(name="SomeEvent", ph="X", ts=1000000, dur=1000, pid=1, tid=1),
        ]
    )
    browser = _find(convert_chrome_to_profile(chrome), "CrBrowserMain")
    assert browser.process_name == "Browser"
    assert browser.process_type == "default"


def test_duration_events():
    chrome = ChromeProfile(
        trace_events=[
            ChromeEvent(name="FunctionCall", cat="devtools.timeline", ph="X", ts=1000000,
                        dur=50000, pid=1, tid=1, args={"data": {"functionName": "test"}}),
        ]
    )
    thread = convert_chrome_to_profile(chrome).threads[0]
    assert thread.markers.length == 1
    assert thread.markers.start_time[0] == 0
    assert thread.markers.end_time[0] == 50
    assert thread.markers.phase[0] == 1
    assert thread.markers.data[0] == {"data": {"functionName": "test"}}


def test_instant_events_have_no_end_time():
    chrome = ChromeProfile(
        trace_events=[ChromeEvent(name="LayoutShift", cat="loading", ph="I", ts=1000000,
                                  pid=1, tid=1)]
    )
    thread = convert_chrome_to_profile(chrome).threads[0]
    assert thread.markers.length == 1
    assert thread.markers.end_time[0] is None
    assert thread.markers.phase[0] == 0


def test_v8_cpu_profile():
    args = {
        "data": {
            "cpuProfile": {
                "nodes": [
                    {"id": 1, "callFrame": {"functionName": "(root)", "scriptId": 0, "url": ""}},
                    {"id": 2, "callFrame": {"functionName": "main", "scriptId": 1,
                                            "url": "file://test.js", "lineNumber": 10},
                     "parent": 1},
                ],
                "samples": [1, 2, 2, 1],
            },
            "timeDeltas": [1000, 1000, 1000, 1000],
        }
    }
    chrome = ChromeProfile(
        trace_events=[ChromeEvent(name="ProfileChunk", cat="disabled-by-default-v8.cpu_profiler",
                                  ph="P", ts=1000000, pid=1, tid=1, args=args)]
    )
    thread = convert_chrome_to_profile(chrome).threads[0]
    assert thread.samples.length == 4
    assert thread.func_table.length >= 2
    assert thread.frame_table.length >= 2
    assert thread.stack_table.length >= 2
    assert thread.samples.time == [0.0, 1.0, 2.0, 3.0]
    assert thread.samples.thread_cpu_delta == [1000, 1000, 1000, 1000]
    assert thread.stack_table.prefix == [-1, 0]
    assert thread.samples.stack == [0, 1, 1, 0]


def test_category_mapping():
    cats = ["devtools.timeline", "blink", "loading", "gpu", "disabled-by-default-v8.gc"]
    chrome = ChromeProfile(
        trace_events=[
            ChromeEvent(name=f"Event{i + 1}", cat=cat, ph="X", ts=1000000 + i * 1000,
                        dur=1000, pid=1, tid=1)
            for i, cat in enumerate(cats)
        ]
    )
    profile = convert_chrome_to_profile(chrome)
    names = [profile.meta.categories[i].name for i in profile.threads[0].markers.category]
    assert names == ["JavaScript", "Layout", "Network", "Graphics", "GC / CC"]


def test_string_deduplication():
    chrome = ChromeProfile(
        trace_events=[
            ChromeEvent(name="FunctionCall", ph="X", ts=1000000 + i * 1000, dur=1000, pid=1, tid=1)
            for i in range(3)
        ]
    )
    profile = convert_chrome_to_profile(chrome)
    assert profile.shared.string_array.count("FunctionCall") == 1


def test_time_range():
    chrome = ChromeProfile(
        trace_events=[
            ChromeEvent(name="thread_name", ph="M", ts=0, pid=1, tid=1, args={"name": "Main"}),
            ChromeEvent(name="Event1", ph="X", ts=5000000, dur=1000000, pid=1, tid=1),
            ChromeEvent(name="Event2", ph="X", ts=10000000, dur=2000000, pid=1, tid=1),
        ]
    )
    assert convert_chrome_to_profile(chrome).meta.profiling_end_time == 7000.0


def test_tracing_started_sets_start():
    chrome = ChromeProfile(
        trace_events=[
            ChromeEvent(name="Early", ph="X", ts=1000000, dur=1000, pid=1, tid=1),
            ChromeEvent(name="TracingStartedInBrowser", ph="I", ts=2000000, pid=1, tid=1),
        ]
    )
    thread = convert_chrome_to_profile(chrome).threads[0]
    assert thread.markers.start_time == [-1000.0, 0.0]


def test_empty_profile():
    profile = convert_chrome_to_profile(ChromeProfile(trace_events=[]))
    assert profile.meta.product == "Chrome"
    assert profile.threads == []


def test_threads_sorted_by_key_text():
    chrome = ChromeProfile(
        trace_events=[
            ChromeEvent(name="A", ph="X", ts=1000, dur=1, pid=1, tid=2),
            ChromeEvent(name="B", ph="X", ts=1000, dur=1, pid=1, tid=10),
        ]
    )
    assert [t.tid for t in convert_chrome_to_profile(chrome).threads] == ["10", "2"]


def test_extensions_discovered():
    ext_id = "a" * 32
    args = {
        "data": {
            "cpuProfile": {
                "nodes": [
                    {"id": 1, "callFrame": {"functionName": "bg",
                                            "url": f"chrome-extension://{ext_id}/bg.js"}},
                ],
                "samples": [1],
            }
        }
    }
    chrome = ChromeProfile(
        trace_events=[ChromeEvent(name="ProfileChunk", ph="P", ts=1000, pid=1, tid=1, args=args)]
    )
    profile = convert_chrome_to_profile(chrome)
    assert profile.extension_count() == 1
    assert profile.get_extension_base_urls() == {ext_id: f"chrome-extension://{ext_id}/"}


def test_profile_target_mapping():
    args = {
        "data": {
            "cpuProfile": {
                "nodes": [
                    {"id": 1, "callFrame": {"functionName": "(root)", "scriptId": 0, "url": ""}},
                    {"id": 2, "callFrame": {"functionName": "workerFunc", "scriptId": 1,
                                            "url": "worker.js", "lineNumber": 5}, "parent": 1},
                ],
                "samples": [1, 2, 2, 2],
            },
            "timeDeltas": [100, 100, 100, 100],
        }
    }
    chrome = ChromeProfile(
        trace_events=[
            ChromeEvent(name="thread_name", cat="__metadata", ph="M", pid=1, tid=100,
                        args={"name": "DedicatedWorker thread"}),
            ChromeEvent(name="thread_name", cat="__metadata", ph="M", pid=1, tid=200,
                        args={"name": "v8:ProfEvntProc"}),
            ChromeEvent(name="Profile", cat="disabled-by-default-v8.cpu_profiler", ph="P",
                        ts=1000000, pid=1, tid=100, id="0x1"),
            ChromeEvent(name="ProfileChunk", cat="disabled-by-default-v8.cpu_profiler", ph="P",
                        ts=1001000, pid=1, tid=200, id="0x1", args=args),
        ]
    )
    profile = convert_chrome_to_profile(chrome)
    worker = _find(profile, "DedicatedWorker thread")
    profiler = _find(profile, "v8:ProfEvntProc")
    assert worker.samples.length == 4
    assert profiler.samples.length == 0
    names = [worker.string_array[i] for i in worker.func_table.name]
    assert "workerFunc" in names