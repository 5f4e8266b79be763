"""In-memory loading cache with single-flight loads per key."""

import logging
import threading
import time
from concurrent.futures import Future
from typing import Callable, Dict, Generic, Optional, Tuple, TypeVar

from fetchcache.cache.stats import CacheStats, StatsCounter

logger = logging.getLogger(__name__)

K = TypeVar("K")
V = TypeVar("V")


class LoadingCache(Generic[K, V]):
    """Thread-safe mapping that computes missing values with a loader.

    At most one load runs per key. Callers that ask for a key while its
    load is in flight wait for that load and receive its value or its
    exception. A failed load installs nothing, so the next call loads again.

    Examples:
        >>> cache = LoadingCache(lambda key: key.upper())
        >>> cache.get('a')
        'A'
        >>> cache.get_if_present('a')
        'A'
        >>> cache.stats().hit_count, cache.stats().miss_count
        (0, 1)
    """

    def __init__(self, loader: Callable[[K], V]):
        self._loader = loader
        self._values: Dict[K, V] = {}
        self._loading: Dict[K, Future] = {}
        self._lock = threading.Lock()
        self._stats = StatsCounter()

    def get_if_present(self, key: K) -> Optional[V]:
        """Return the loaded value for key without loading or recording stats."""
        with self._lock:
            return self._values.get(key)

    def get(self, key: K) -> V:
        """Return the value for key, loading it if needed.

        Raises:
            Exception: Whatever the loader raised for this key
        """
        future, owner = self._lookup(key)
        if owner:
            return self._load(key, future)
        return future.result()

    def refresh(self, key: K, discard: Optional[Callable[[V], None]] = None) -> V:
        """Drop the current value for key and load it again.

        The reload is registered as the in-flight load before the old value is
        removed, so concurrent get() calls for key wait for the new value
        instead of starting their own load. If a load is already in flight
        for key, its result is returned.

        Args:
            key: Key to reload
            discard: Called with the old value after it is unmapped and
                before the loader runs

        Returns:
            The newly loaded value
        """
        with self._lock:
            in_flight = self._loading.get(key)
            if in_flight is None:
                old_value = self._values.pop(key, None)
                future: Future = Future()
                self._loading[key] = future
        if in_flight is not None:
            return in_flight.result()

        if discard is not None and old_value is not None:
            try:
                discard(old_value)
            except BaseException as e:
                self._finish(key, future, error=e)
                raise
        self._stats.record_miss()
        return self._load(key, future)

    def invalidate(self, key: K) -> None:
        """Remove the value for key, if any. In-flight loads are unaffected."""
        with self._lock:
            self._values.pop(key, None)

    def size(self) -> int:
        with self._lock:
            return len(self._values)

    def stats(self) -> CacheStats:
        return self._stats.snapshot()

    def _lookup(self, key: K) -> Tuple[Future, bool]:
        """Find the value or in-flight load for key, or claim the load.

        Returns:
            (future, owner) where owner is True if the caller must run the load
        """
        with self._lock:
            if key in self._values:
                future: Future = Future()
                future.set_result(self._values[key])
                self._stats.record_hit()
                return future, False
            self._stats.record_miss()
            if key in self._loading:
                return self._loading[key], False
            future = Future()
            self._loading[key] = future
            return future, True

    def _load(self, key: K, future: Future) -> V:
        start = time.perf_counter()
        try:
            value = self._loader(key)
        except BaseException as e:
            self._stats.record_load_exception(time.perf_counter() - start)
            logger.debug(f"Load failed for {key!r}: {e}")
            self._finish(key, future, error=e)
            raise
        self._stats.record_load_success(time.perf_counter() - start)
        self._finish(key, future, value=value)
        return value

    def _finish(
        self,
        key: K,
        future: Future,
        value: Optional[V] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        with self._lock:
            if error is None:
                self._values[key] = value
            if self._loading.get(key) is future:
                del self._loading[key]
        if error is None:
            future.set_result(value)
        else:
            future.set_exception(error)
