"""
Timing utilities for the history pipeline.

Wraps pipeline stages (topic discovery, fan-out fetch, reconciliation) so their
wall-clock duration can be logged and reported alongside the response.

Usage:
    from oracle_history.utils.profiler import profile_block

    with profile_block("fetch") as stats:
        await fetch_all_topics(...)

    print(stats.duration_ms)
"""

from __future__ import annotations

import contextlib
import time
from dataclasses import dataclass, field
from typing import Any, Generator


@dataclass
class ProfileStats:
    """
    Container for timing measurements.
    """

    label: str
    start_ts: float = field(default=0.0)
    end_ts: float = field(default=0.0)
    duration_seconds: float = field(default=0.0)
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def duration_ms(self) -> int:
        return int(round(self.duration_seconds * 1000))


@contextlib.contextmanager
def profile_block(label: str) -> Generator[ProfileStats, None, None]:
    """
    Context manager measuring the wall-clock duration of a block.

    Works around ``await`` points too: the measured span includes any time the
    block spent suspended on I/O.
    """
    stats = ProfileStats(label=label)
    stats.start_ts = time.perf_counter()
    try:
        yield stats
    finally:
        stats.end_ts = time.perf_counter()
        stats.duration_seconds = stats.end_ts - stats.start_ts


__all__ = ["ProfileStats", "profile_block"]
