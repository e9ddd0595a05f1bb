"""Thread-safe latency and failure accumulation for one run or phase.

Every virtual actor in a phase writes into the same accumulator, so all
mutation happens under a single lock. Readers get a ``MetricsSnapshot``
computed under that lock, which is consistent but may be momentarily stale
while actors are still running.
"""

import math
import statistics
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime

from loadengine.engine.errors import AccumulatorBusyError


def _interpolate(sorted_data: list[float], pct: float) -> float:
    if not sorted_data:
        return 0.0
    k = (len(sorted_data) - 1) * (pct / 100.0)
    f = math.floor(k)
    c = math.ceil(k)
    if f == c:
        return sorted_data[int(k)]
    return sorted_data[f] * (c - k) + sorted_data[c] * (k - f)


def percentile(data: list[float], pct: float) -> float:
    """Linear-interpolated percentile of *data*; 0.0 for an empty list."""
    return _interpolate(sorted(data), pct)


def error_rate_percent(failures: int, total: int) -> float:
    if total == 0:
        return 0.0
    return failures / total * 100.0


@dataclass(frozen=True)
class MetricsSnapshot:
    """Point-in-time view of an accumulator."""

    successes: int = 0
    failures: int = 0
    avg_ms: float = 0.0
    min_ms: float = 0.0
    max_ms: float = 0.0
    p50_ms: float = 0.0
    p95_ms: float = 0.0
    p99_ms: float = 0.0
    started_at: datetime | None = None
    ended_at: datetime | None = None
    elapsed_seconds: float = 0.0

    @property
    def total(self) -> int:
        return self.successes + self.failures

    @property
    def error_rate(self) -> float:
        """Failures as a percentage of all recorded calls."""
        return error_rate_percent(self.failures, self.total)


class MetricsAccumulator:
    """Shared store of per-call latencies (ms) and a failure counter."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._latencies: list[float] = []
        self._failures = 0
        self._writers = 0
        self._started_at: datetime | None = None
        self._ended_at: datetime | None = None
        self._start_mono: float | None = None
        self._end_mono: float | None = None

    # ---- writes -------------------------------------------------------------

    def record_success(self, latency_ms: float) -> None:
        with self._lock:
            self._latencies.append(latency_ms)

    def record_failure(self) -> None:
        with self._lock:
            self._failures += 1

    @contextmanager
    def writer(self) -> Iterator["MetricsAccumulator"]:
        """Register an active writer for the duration of the block.

        ``reset()`` refuses to run while any writer is registered.
        """
        with self._lock:
            self._writers += 1
        try:
            yield self
        finally:
            with self._lock:
                self._writers -= 1

    @property
    def active_writers(self) -> int:
        with self._lock:
            return self._writers

    # ---- lifecycle ----------------------------------------------------------

    def mark_started(self) -> None:
        with self._lock:
            self._started_at = datetime.now(UTC)
            self._start_mono = time.monotonic()
            self._ended_at = None
            self._end_mono = None

    def mark_finished(self) -> None:
        with self._lock:
            self._ended_at = datetime.now(UTC)
            self._end_mono = time.monotonic()

    def reset(self) -> None:
        """Discard all recorded data. Only valid between runs or phases."""
        with self._lock:
            if self._writers:
                raise AccumulatorBusyError(
                    f"cannot reset metrics while {self._writers} actor(s) are still writing"
                )
            self._latencies = []
            self._failures = 0
            self._started_at = None
            self._ended_at = None
            self._start_mono = None
            self._end_mono = None

    # ---- reads --------------------------------------------------------------

    def snapshot(self) -> MetricsSnapshot:
        with self._lock:
            latencies = list(self._latencies)
            failures = self._failures
            started_at = self._started_at
            ended_at = self._ended_at
            start_mono = self._start_mono
            end_mono = self._end_mono

        if start_mono is None:
            elapsed = 0.0
        else:
            elapsed = (end_mono if end_mono is not None else time.monotonic()) - start_mono

        # sorted once, outside the lock, for min/max and all percentiles
        ordered = sorted(latencies)
        return MetricsSnapshot(
            successes=len(ordered),
            failures=failures,
            avg_ms=statistics.fmean(ordered) if ordered else 0.0,
            min_ms=ordered[0] if ordered else 0.0,
            max_ms=ordered[-1] if ordered else 0.0,
            p50_ms=_interpolate(ordered, 50),
            p95_ms=_interpolate(ordered, 95),
            p99_ms=_interpolate(ordered, 99),
            started_at=started_at,
            ended_at=ended_at,
            elapsed_seconds=elapsed,
        )
