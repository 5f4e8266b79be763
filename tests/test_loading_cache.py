"""Tests for the single-flight loading cache."""

import threading
import time

import pytest

from fetchcache.cache.loading import LoadingCache
from fetchcache.cache.stats import CacheStats, StatsCounter


class CountingLoader:
    """Loader that records calls and can block or fail."""

    def __init__(self, release=None, fail=False):
        self.calls = []
        self.release = release
        self.fail = fail
        self._lock = threading.Lock()

    def __call__(self, key):
        with self._lock:
            self.calls.append(key)
            version = len(self.calls)
        if self.release is not None:
            self.release.wait(timeout=5)
        if self.fail:
            raise RuntimeError(f"cannot load {key}")
        return f"{key}-v{version}"


class TestLoadingCache:
    """Test LoadingCache get/refresh/invalidate."""

    def test_get_loads_once(self):
        loader = CountingLoader()
        cache = LoadingCache(loader)

        assert cache.get("a") == "a-v1"
        assert cache.get("a") == "a-v1"
        assert loader.calls == ["a"]

    def test_get_if_present_does_not_load(self):
        loader = CountingLoader()
        cache = LoadingCache(loader)

        assert cache.get_if_present("a") is None
        assert loader.calls == []
        assert cache.stats().request_count == 0

    def test_failed_load_is_not_cached(self):
        loader = CountingLoader(fail=True)
        cache = LoadingCache(loader)

        with pytest.raises(RuntimeError, match="cannot load a"):
            cache.get("a")
        assert cache.get_if_present("a") is None

        loader.fail = False
        assert cache.get("a") == "a-v2"

    def test_invalidate(self):
        loader = CountingLoader()
        cache = LoadingCache(loader)
        cache.get("a")

        cache.invalidate("a")

        assert cache.get_if_present("a") is None
        assert cache.get("a") == "a-v2"

    def test_refresh_discards_old_value(self):
        loader = CountingLoader()
        cache = LoadingCache(loader)
        cache.get("a")
        discarded = []

        assert cache.refresh("a", discard=discarded.append) == "a-v2"
        assert discarded == ["a-v1"]
        assert cache.get("a") == "a-v2"

    def test_refresh_missing_key_loads(self):
        cache = LoadingCache(CountingLoader())
        discarded = []

        assert cache.refresh("a", discard=discarded.append) == "a-v1"
        assert discarded == []

    def test_refresh_discard_failure_leaves_no_entry(self):
        cache = LoadingCache(CountingLoader())
        cache.get("a")

        def failing_discard(value):
            raise OSError("disk error")

        with pytest.raises(OSError, match="disk error"):
            cache.refresh("a", discard=failing_discard)
        assert cache.get_if_present("a") is None
        assert cache.get("a") == "a-v2"

    def test_concurrent_get_single_flight(self):
        release = threading.Event()
        loader = CountingLoader(release=release)
        cache = LoadingCache(loader)
        results = []

        threads = [
            threading.Thread(target=lambda: results.append(cache.get("a")))
            for _ in range(10)
        ]
        for thread in threads:
            thread.start()
        time.sleep(0.2)
        release.set()
        for thread in threads:
            thread.join(timeout=10)

        assert loader.calls == ["a"]
        assert results == ["a-v1"] * 10

    def test_get_waits_for_refresh_in_flight(self):
        release = threading.Event()
        loader = CountingLoader()
        cache = LoadingCache(loader)
        cache.get("a")
        loader.release = release
        results = {}

        refresher = threading.Thread(
            target=lambda: results.setdefault("refresh", cache.refresh("a"))
        )
        refresher.start()
        time.sleep(0.1)
        reader = threading.Thread(target=lambda: results.setdefault("get", cache.get("a")))
        reader.start()
        time.sleep(0.1)
        release.set()
        refresher.join(timeout=10)
        reader.join(timeout=10)

        assert loader.calls == ["a", "a"]
        assert results == {"refresh": "a-v2", "get": "a-v2"}

    def test_distinct_keys_load_independently(self):
        loader = CountingLoader()
        cache = LoadingCache(loader)

        assert cache.get("a") == "a-v1"
        assert cache.get("b") == "b-v2"
        assert cache.size() == 2

    def test_stats(self):
        loader = CountingLoader()
        cache = LoadingCache(loader)
        cache.get("a")
        cache.get("a")
        cache.get("a")
        loader.fail = True
        with pytest.raises(RuntimeError):
            cache.get("b")

        stats = cache.stats()
        assert stats.hit_count == 2
        assert stats.miss_count == 2
        assert stats.load_success_count == 1
        assert stats.load_exception_count == 1
        assert stats.hit_rate == 0.5
        assert stats.load_exception_rate == 0.5


class TestCacheStats:
    """Test rate computations."""

    def test_empty_stats(self):
        stats = CacheStats()
        assert stats.hit_rate == 1.0
        assert stats.miss_rate == 0.0
        assert stats.load_exception_rate == 0.0
        assert stats.average_load_penalty == 0.0

    def test_rates(self):
        stats = CacheStats(
            hit_count=3,
            miss_count=1,
            load_success_count=3,
            load_exception_count=1,
            total_load_time=2.0,
        )
        assert stats.request_count == 4
        assert stats.hit_rate == 0.75
        assert stats.miss_rate == 0.25
        assert stats.load_count == 4
        assert stats.load_exception_rate == 0.25
        assert stats.average_load_penalty == 0.5

    def test_counter_snapshot(self):
        counter = StatsCounter()
        counter.record_hit()
        counter.record_miss()
        counter.record_load_success(0.5)
        counter.record_load_exception(0.25)

        assert counter.snapshot() == CacheStats(
            hit_count=1,
            miss_count=1,
            load_success_count=1,
            load_exception_count=1,
            total_load_time=0.75,
        )
