import pytest

from perfowl.builder import (
    StringTable,
    ThreadBuilder,
    category_for_call_frame,
    default_categories,
    extract_extension_id,
    map_category,
)
from perfowl.chrome import V8CallFrame

EXT_ID = "abcdefghijklmnopabcdefghijklmnop"


@pytest.fixture
def categories():
    return default_categories()


@pytest.fixture
def index(categories):
    return {c.name: i for i, c in enumerate(categories)}


def test_default_categories_names():
    names = [c.name for c in default_categories()]
    assert names == [
        "Idle", "Other", "Layout", "JavaScript", "GC / CC",
        "Network", "Graphics", "DOM", "UserTiming", "IPC",
    ]


def test_default_categories_colors():
    cats = default_categories()
    assert cats[0].color == "transparent"
    assert cats[9].color == "lightgreen"
    assert all(c.subcategories == ["Other"] for c in cats)


@pytest.mark.parametrize(
    "chrome_category, expected",
    [
        ("devtools.timeline", "JavaScript"),
        ("v8", "JavaScript"),
        ("v8.execute", "JavaScript"),
        ("v8.compile", "JavaScript"),
        ("disabled-by-default-v8.gc", "GC / CC"),
        ("blink", "Layout"),
        ("blink.user_timing", "UserTiming"),
        ("loading", "Network"),
        ("net", "Network"),
        ("netlog", "Network"),
        ("gpu", "Graphics"),
        ("cc", "Graphics"),
        ("viz", "Graphics"),
        ("ipc", "IPC"),
        ("__metadata", "Other"),
        ("toplevel", "Other"),
        ("v8,devtools.timeline", "JavaScript"),
        ("unknown_category", "Other"),
        ("", "Other"),
        ("unknown, blink", "Layout"),
    ],
)
def test_map_category(categories, index, chrome_category, expected):
    assert categories[map_category(chrome_category, index)].name == expected


def test_map_category_fallback_without_other():
    assert map_category("unknown", {"JavaScript": 0}) == 1


def test_intern_string():
    table = StringTable()
    assert table.intern("hello") == 0
    assert table.intern("hello") == 0
    assert table.intern("world") == 1
    assert table.strings == ["hello", "world"]
    assert len(table) == 2


@pytest.mark.parametrize(
    "frame, expected",
    [
        (V8CallFrame(function_name="test", url="https://example.com/script.js"), "JavaScript"),
        (V8CallFrame(function_name="test", url="file:///path/to/script.js"), "JavaScript"),
        (V8CallFrame(function_name="test", url="chrome-extension://abcd1234/script.js"), "Other"),
        (V8CallFrame(function_name="(root)"), "Other"),
        (V8CallFrame(function_name="(program)"), "Other"),
        (V8CallFrame(function_name="f", code_type="other"), "Other"),
        (V8CallFrame(function_name="f", url="worker.js"), "JavaScript"),
    ],
)
def test_category_for_call_frame(categories, index, frame, expected):
    seen = set()
    assert categories[category_for_call_frame(frame, index, seen)].name == expected
    assert seen == set()


def test_category_for_call_frame_records_extension(categories, index):
    seen = set()
    frame = V8CallFrame(function_name="f", url=f"chrome-extension://{EXT_ID}/bg.js")
    assert categories[category_for_call_frame(frame, index, seen)].name == "Other"
    assert seen == {EXT_ID}


@pytest.mark.parametrize(
    "url, expected",
    [
        (f"chrome-extension://{EXT_ID}/a/b.js", EXT_ID),
        (f"chrome-extension://{EXT_ID}", EXT_ID),
        ("chrome-extension://abcd1234/script.js", None),
        ("https://example.com/x.js", None),
        ("chrome-extension://", None),
    ],
)
def test_extract_extension_id(url, expected):
    assert extract_extension_id(url) == expected


def test_func_deduplication_and_unknown_url():
    strings = StringTable()
    tb = ThreadBuilder(pid=1, tid=2)
    frame = V8CallFrame(function_name="main", line_number=10, column_number=3)
    first = tb.get_or_create_func(frame, strings)
    second = tb.get_or_create_func(frame, strings)
    other = tb.get_or_create_func(V8CallFrame(function_name="main", line_number=11), strings)
    assert (first, second, other) == (0, 0, 1)
    assert strings.strings == ["main", "(unknown)"]
    table = tb.func_table
    assert table.length == 2
    assert table.file_name == [1, 1]
    assert table.line_number == [10, 11]
    assert table.column_number == [3, 0]
    assert table.resource == [-1, -1]
    assert table.is_js == [True, True]


def test_frame_and_stack_deduplication():
    tb = ThreadBuilder(pid=1, tid=1)
    assert tb.get_or_create_frame(0, 3) == 0
    assert tb.get_or_create_frame(0, 3) == 0
    assert tb.get_or_create_frame(0, 1) == 1
    assert tb.frame_table.category == [3, 1]
    assert tb.frame_table.address == [None, None]
    assert tb.get_or_create_stack(0, -1, 3) == 0
    assert tb.get_or_create_stack(1, 0, 1) == 1
    assert tb.get_or_create_stack(0, -1, 1) == 0
    assert tb.stack_table.prefix == [-1, 0]
    assert tb.stack_table.length == 2


def test_add_marker_and_sample():
    tb = ThreadBuilder(pid=1, tid=1)
    tb.add_marker(0.0, 50.0, 0, 3, {"data": {"x": 1}}, 1)
    tb.add_marker(5.0, None, 1, 1, {}, 0)
    tb.add_sample(2, 1.5, 1000)
    assert tb.markers.length == 2
    assert tb.markers.end_time == [50.0, None]
    assert tb.markers.data == [{"data": {"x": 1}}, None]
    assert tb.markers.phase == [1, 0]
    assert tb.samples.stack == [2]
    assert tb.samples.weight == [1]
    assert tb.samples.thread_cpu_delta == [1000]


@pytest.mark.parametrize(
    "name, process_name, is_main, process_type",
    [
        ("CrBrowserMain", "Browser", True, "default"),
        ("CrRendererMain", "Renderer", True, "tab"),
        ("Compositor", "GPU Process", False, "gpu"),
        ("Worker", "Extension Host", False, "extension"),
        ("", "", False, "tab"),
    ],
)
def test_build_thread(name, process_name, is_main, process_type):
    tb = ThreadBuilder(pid=7, tid=9, name=name, process_name=process_name)
    tb.add_sample(0, 0.0, 0)
    strings = ["a"]
    thread = tb.build(strings)
    assert thread.is_main_thread is is_main
    assert thread.process_type == process_type
    assert thread.pid == "7"
    assert thread.tid == "9"
    assert thread.string_array is strings
    assert thread.samples.weight_type == "samples"
    assert thread.samples.length == 1
    assert thread.resource_table.length == 0