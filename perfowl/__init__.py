"""Load Firefox Profiler files and Chrome DevTools traces into one profile model and inspect their markers."""

__version__ = "0.1.0"