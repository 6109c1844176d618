"""
Profiling utilities for salegen runs.

`profile_block` measures a block of code:
- Wall-clock time (perf_counter)
- CPU usage of the process (psutil)
- Peak RSS of the process and its pool children via a sampling thread (psutil)

Usage:
    from salegen.utils.profiler import profile_block

    with profile_block("generate") as stats:
        run_pipeline()

    print(stats.duration_seconds, stats.peak_rss_bytes)
"""

from __future__ import annotations

import contextlib
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Generator, Optional

import psutil


@dataclass
class ProfileStats:
    """
    Container for profiling measurements.
    """

    label: str
    start_ts: float = field(default=0.0)
    end_ts: float = field(default=0.0)
    duration_seconds: float = field(default=0.0)
    peak_rss_bytes: Optional[int] = field(default=None)
    cpu_percent: Optional[float] = field(default=None)
    extra: dict[str, Any] = field(default_factory=dict)


def _tree_rss(process: psutil.Process, include_children: bool) -> int:
    """RSS of `process`, plus its live descendants when asked."""
    rss = process.memory_info().rss
    if include_children:
        for child in process.children(recursive=True):
            try:
                rss += child.memory_info().rss
            except psutil.Error:
                # Children come and go as the pool spawns and reaps them.
                continue
    return rss


@contextlib.contextmanager
def profile_block(
    label: str, sample_interval_ms: int = 50, include_children: bool = True
) -> Generator[ProfileStats, None, None]:
    """
    Context manager to profile a block of code.

    Parameters
    ----------
    label : str
        Human-friendly label for the profiled block.
    sample_interval_ms : int
        Interval in milliseconds for RSS sampling. Lower = more accurate but higher overhead.
    include_children : bool
        Add the RSS of child processes to each sample, so process-pool
        workers count toward the peak.

    Notes
    -----
    Worker threads share the process RSS. CPU percent covers this process
    only.
    """
    stats = ProfileStats(label=label)
    process = psutil.Process()
    peak_rss = _tree_rss(process, include_children)
    stop_sampling = threading.Event()

    def _sample_memory() -> None:
        nonlocal peak_rss
        while not stop_sampling.is_set():
            try:
                peak_rss = max(peak_rss, _tree_rss(process, include_children))
            except psutil.Error:
                return
            stop_sampling.wait(timeout=sample_interval_ms / 1000.0)

    # cpu_percent needs a priming call
    process.cpu_percent(interval=None)

    sampler = threading.Thread(target=_sample_memory, name=f"profiler-{label}", daemon=True)
    sampler.start()

    stats.start_ts = time.perf_counter()
    try:
        yield stats
    finally:
        stats.end_ts = time.perf_counter()
        stats.duration_seconds = stats.end_ts - stats.start_ts

        stop_sampling.set()
        sampler.join(timeout=1.0)

        stats.peak_rss_bytes = peak_rss if peak_rss > 0 else None
        stats.cpu_percent = process.cpu_percent(interval=None)
        stats.extra["include_children"] = include_children


__all__ = ["ProfileStats", "profile_block"]
