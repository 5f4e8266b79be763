"""Cache statistics."""

import threading
from dataclasses import dataclass


@dataclass(frozen=True)
class CacheStats:
    """Immutable snapshot of cache counters.

    Attributes:
        hit_count: Lookups that found a loaded entry
        miss_count: Lookups that had to load or wait for a load
        load_success_count: Loads that installed an entry
        load_exception_count: Loads that raised
        total_load_time: Seconds spent in loads
    """

    hit_count: int = 0
    miss_count: int = 0
    load_success_count: int = 0
    load_exception_count: int = 0
    total_load_time: float = 0.0

    @property
    def request_count(self) -> int:
        return self.hit_count + self.miss_count

    @property
    def hit_rate(self) -> float:
        """Ratio of hits to requests, 1.0 when there were no requests."""
        requests = self.request_count
        return 1.0 if requests == 0 else self.hit_count / requests

    @property
    def miss_rate(self) -> float:
        """Ratio of misses to requests, 0.0 when there were no requests."""
        requests = self.request_count
        return 0.0 if requests == 0 else self.miss_count / requests

    @property
    def load_count(self) -> int:
        return self.load_success_count + self.load_exception_count

    @property
    def load_exception_rate(self) -> float:
        """Ratio of failed loads to loads, 0.0 when nothing was loaded."""
        loads = self.load_count
        return 0.0 if loads == 0 else self.load_exception_count / loads

    @property
    def average_load_penalty(self) -> float:
        """Average seconds per load."""
        loads = self.load_count
        return 0.0 if loads == 0 else self.total_load_time / loads


class StatsCounter:
    """Thread-safe accumulator behind CacheStats."""

    def __init__(self):
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._load_successes = 0
        self._load_exceptions = 0
        self._total_load_time = 0.0

    def record_hit(self) -> None:
        with self._lock:
            self._hits += 1

    def record_miss(self) -> None:
        with self._lock:
            self._misses += 1

    def record_load_success(self, load_time: float) -> None:
        with self._lock:
            self._load_successes += 1
            self._total_load_time += load_time

    def record_load_exception(self, load_time: float) -> None:
        with self._lock:
            self._load_exceptions += 1
            self._total_load_time += load_time

    def snapshot(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                hit_count=self._hits,
                miss_count=self._misses,
                load_success_count=self._load_successes,
                load_exception_count=self._load_exceptions,
                total_load_time=self._total_load_time,
            )
