# perfowl

perfowl is a library that reads browser performance profiles and puts them into one common shape. It reads two kinds of file:

- **Firefox Profiler** JSON files. These load directly into a `perfowl.profile.Profile`.
- **Chrome DevTools** performance traces (files with a `traceEvents` array). These are converted into the same `Profile` structure:
  - duration, instant and mark events become markers;
  - V8 `ProfileChunk` data becomes samples, with stack, frame and function tables.

Files whose names end in `.gz` or `.gzip` are decompressed as they are read.

## Installation

```
pip install perfowl
```

perfowl has no dependencies outside the standard library.

## Loading a profile

```python
from perfowl.loader import load_profile_auto

profile, browser = load_profile_auto("trace.json.gz")
print(browser.value, profile.duration_seconds(), "s")
print(profile.thread_count(), "threads")
for thread in profile.get_main_threads():
    print(thread.name)
```

`load_profile_auto` returns a pair: the `Profile`, and a `perfowl.detect.BrowserType`. The browser type is `FIREFOX` or `CHROME`.

If you already know the format, name the browser yourself:

```python
from perfowl.detect import parse_browser_type
from perfowl.loader import load_profile_with_type

profile, browser = load_profile_with_type("trace.json", parse_browser_type("chrome"))
```

About `parse_browser_type`:

- It ignores case.
- `"firefox"` gives `BrowserType.FIREFOX` and `"chrome"` gives `BrowserType.CHROME`.
- Any other name, `"auto"` included, gives `BrowserType.UNKNOWN`.

When `load_profile_with_type` is given `BrowserType.UNKNOWN`, it first tries to detect the format. If that fails, it tries the Firefox format and then the Chrome format.

There are two more ways to load a Firefox profile:

- `perfowl.loader.load_profile(path)` loads a Firefox profile file.
- `perfowl.loader.load_profile_from_reader(stream)` reads one from a text or binary stream.

To decide only which format a file is in, use `perfowl.detect.detect_browser_type(path)`.

The loaders raise `perfowl.jsonio.ProfileError` in these cases:

- a file cannot be opened;
- a gzip file has a bad header;
- the JSON cannot be decoded;
- a field has the wrong type.

## The profile model

`perfowl.profile` defines the profile as dataclasses: `Profile`, `Meta`, `Thread`, and the thread's tables (`Samples`, `Markers`, `StackTable`, `FrameTable`, `FuncTable`, and so on).

- `Profile.from_dict(data)` builds a profile from decoded JSON.
- `Profile.to_dict()` turns it back into JSON-ready data that uses the format's camelCase keys.

Other helpers on `Profile`:

| Method | What it returns |
| --- | --- |
| `duration()` | length of the recording in milliseconds |
| `duration_seconds()` | length of the recording in seconds |
| `extension_count()` | number of extensions |
| `get_extensions()` | dictionary of extension ID to name |
| `get_extension_base_urls()` | dictionary of extension ID to base URL |
| `get_category_by_index(i)` | the category at index `i`, or `None` if there is none |

## Working with markers

```python
from perfowl.markers import (
    MarkerType,
    extract_markers,
    filter_markers_by_duration,
    filter_markers_by_name,
    filter_markers_by_type,
    get_marker_stats,
)

thread = profile.threads[0]
markers = extract_markers(thread, profile.meta.categories)

gc = filter_markers_by_type(markers, MarkerType.GC_MAJOR)
slow = filter_markers_by_duration(markers, 50.0)
mine = filter_markers_by_name(markers, "login")   # substring match, case-insensitive
stats = get_marker_stats(markers)
print(stats.total_count, stats.max_duration, stats.by_type)
```

### What each `ParsedMarker` holds

- The marker's name, type, category, start time, end time and duration, all in milliseconds.
- Its decoded data.
- The name and process ID of its thread.

How some of these values are filled in:

- A marker whose end time is not after its start time has a duration of 0.
- If the marker's data has no `type` field, the type is taken from the marker's name.
- If the name is empty, it is taken from the `name` field in the data.

`duration_time()` returns the duration as a `datetime.timedelta`.

## Chrome traces

You can also load and convert a Chrome trace in two separate steps:

```python
from perfowl.chrome import load_chrome_profile
from perfowl.convert import convert_chrome_to_profile

profile = convert_chrome_to_profile(load_chrome_profile("trace.json"))
```

How the conversion works:

- **Categories.** Chrome categories are mapped onto Firefox-style categories: Other, Layout, JavaScript, GC / CC, Network, Graphics, UserTiming and IPC. A category Chrome uses that has no mapping becomes Other.
- **Times.** Times are given in milliseconds. They count from the `TracingStartedInBrowser` event if the trace has one. Otherwise they count from the earliest event.
- **Threads.** Threads are named from `thread_name` metadata events. Each thread gets the process name from `process_name` metadata events.
- **V8 samples.** Samples from `ProfileChunk` events are placed on the thread named by the matching `Profile` event.
- **Extensions.** IDs of 32 characters found in `chrome-extension://` URLs are recorded in `profile.meta.extensions`.

## What perfowl does not do

perfowl is a library only. It has:

- no command-line tool;
- no server;
- no way to write profiles back to disk.

Its analysis goes as far as extracting, filtering and counting markers. For anything beyond that, build it on the `Profile` data.

## Running the tests

```
pip install -e ".[test]"
pytest
```