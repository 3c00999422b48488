# Copyright (c) 2026 AgentSync Contributors. All Rights Reserved.

"""
Metrics — In-memory counters for loader and sync observability.

One ``Metrics`` instance lives on the SyncContext and is shared by the
loader and the sync service. Latency samples are kept in a sliding window
so a long-running service reports recent fetch behaviour, not its lifetime
average.
"""

from __future__ import annotations

import time
from collections import defaultdict, deque
from contextlib import contextmanager
from typing import Any, Deque, Dict, Iterator, Optional

DEFAULT_WINDOW = 1000


def _percentile(ordered: list, pct: float) -> float:
    index = min(len(ordered) - 1, int(round(pct * (len(ordered) - 1))))
    return ordered[index]


class Metrics:
    """Counters, gauges and windowed latency samples."""

    def __init__(self, window: int = DEFAULT_WINDOW):
        self._window = window
        self._counters: Dict[str, int] = defaultdict(int)
        self._gauges: Dict[str, float] = {}
        self._samples: Dict[str, Deque[float]] = {}
        self._start_time = time.time()

    def inc(self, name: str, amount: int = 1) -> None:
        self._counters[name] += amount

    def get_counter(self, name: str) -> int:
        return self._counters.get(name, 0)

    def set_gauge(self, name: str, value: float) -> None:
        self._gauges[name] = value

    def get_gauge(self, name: str) -> float:
        return self._gauges.get(name, 0.0)

    def observe(self, name: str, value: float) -> None:
        """Record one sample (milliseconds for latencies)."""
        samples = self._samples.get(name)
        if samples is None:
            samples = self._samples[name] = deque(maxlen=self._window)
        samples.append(value)

    @contextmanager
    def timed(self, name: str) -> Iterator[None]:
        """Observe the wall time of the block in milliseconds, even if it raises."""
        start = time.monotonic()
        try:
            yield
        finally:
            self.observe(name, (time.monotonic() - start) * 1000)

    def ratio(self, hits: str, misses: str) -> Optional[float]:
        """hits / (hits + misses), or None before the first event."""
        total = self.get_counter(hits) + self.get_counter(misses)
        if not total:
            return None
        return round(self.get_counter(hits) / total, 4)

    def snapshot(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "uptime_seconds": round(time.time() - self._start_time, 1),
            "counters": dict(self._counters),
            "gauges": dict(self._gauges),
            "latency": {},
        }
        for name, samples in self._samples.items():
            if not samples:
                continue
            ordered = sorted(samples)
            result["latency"][name] = {
                "count": len(ordered),
                "avg": round(sum(ordered) / len(ordered), 2),
                "p50": round(_percentile(ordered, 0.5), 2),
                "p95": round(_percentile(ordered, 0.95), 2),
                "max": round(ordered[-1], 2),
            }
        return result
