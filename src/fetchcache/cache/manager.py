"""Caching file transfer service.

Files fetched from remote locations are kept under a local cache directory,
one file per remote path, named by derive_cache_key(). Before a cached file
is reused, the remote modification time is compared with the local one and
the file is refreshed when the remote copy is newer.
"""

import logging
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

from fetchcache.cache.config import CacheConfig, get_global_config
from fetchcache.cache.directory import ensure_cache_directory
from fetchcache.cache.loading import LoadingCache
from fetchcache.cache.stats import CacheStats
from fetchcache.exceptions import CacheFetchError, CacheIOError, TransferError
from fetchcache.storage.backend import FileTransfer, LocalFileTransfer
from fetchcache.storage.registry import TransferRegistry, get_default_registry
from fetchcache.utils import derive_cache_key, normalize_path

logger = logging.getLogger(__name__)

# Attempts to copy a cached file that a concurrent refresh keeps replacing
MAX_COPY_ATTEMPTS = 3


class CachingFileTransferService:
    """Read-through cache of remote files on local disk.

    Thread-safe: concurrent requests for the same missing path share a
    single download, and refreshes of stale files are serialized by one
    cache-wide lock.

    Examples:
        >>> service = CachingFileTransferService(config=CacheConfig(cache_dir='/tmp/fc'))
        >>> service.materialize('s3://bucket/a.txt', '/tmp/work/a.txt')
        >>> service.stats().miss_count
        1
    """

    def __init__(
        self,
        config: Optional[CacheConfig] = None,
        registry: Optional[TransferRegistry] = None,
        local_transfer: Optional[FileTransfer] = None,
    ):
        """Initialize the caching service.

        Args:
            config: Cache configuration (uses global if None)
            registry: Resolves remote paths to transfers (default registry if None)
            local_transfer: Transfer used for the final local copy

        Raises:
            CacheConfigurationError: If the cache directory cannot be created
        """
        self.config = config or get_global_config()
        self.cache_dir = ensure_cache_directory(self.config.cache_dir)
        self.registry = registry or get_default_registry()
        self.local_transfer = local_transfer or LocalFileTransfer()

        self._file_cache: LoadingCache[str, Path] = LoadingCache(self._load_file)
        self._invalidation_lock = threading.Lock()

    def materialize(
        self, remote_path: str, destination_path: Union[str, Path]
    ) -> None:
        """Place a copy of a remote file at a local destination.

        Args:
            remote_path: Path of the file in the remote location
            destination_path: Local path where the file is placed

        Local source paths are resolved to absolute paths first, so relative
        names are cached per directory.

        Raises:
            ValueError: If either path is empty or blank
            CacheFetchError: If the file cannot be fetched, refreshed or copied
        """
        if not remote_path or not remote_path.strip():
            raise ValueError("Source file path cannot be empty.")
        # Path("") collapses to "."
        if not str(destination_path).strip() or Path(destination_path) == Path(""):
            raise ValueError("Destination local path cannot be empty.")

        logger.debug(
            f"Called with src path {remote_path} and destination path {destination_path}"
        )
        try:
            remote_path = normalize_path(remote_path)
            cached_file = self._resolve(remote_path)
            self._copy_cached_file(remote_path, cached_file, destination_path)
        except Exception as e:
            message = f"Failed getting the file {remote_path}"
            logger.error(f"{message}: {e}")
            raise CacheFetchError(
                message,
                {"remote_path": remote_path, "destination_path": str(destination_path)},
            ) from e

    def get_cache_path(self, remote_path: str) -> Path:
        """Get the path where a remote file is (or would be) cached."""
        return self.cache_dir / derive_cache_key(normalize_path(remote_path))

    def stats(self) -> CacheStats:
        return self._file_cache.stats()

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics.

        Returns:
            Statistics dict with counters, rates and the cache directory
        """
        stats = self.stats()
        return {
            "cache_dir": str(self.cache_dir),
            "cached_files": self._file_cache.size(),
            "cache_hits": stats.hit_count,
            "cache_misses": stats.miss_count,
            "load_successes": stats.load_success_count,
            "load_exceptions": stats.load_exception_count,
            "cache_hit_rate": stats.hit_rate,
            "cache_miss_rate": stats.miss_rate,
            "load_exception_rate": stats.load_exception_rate,
            "average_load_penalty": stats.average_load_penalty,
        }

    def gauges(self) -> Dict[str, Callable[[], float]]:
        """Gauges for an external metrics poller.

        Returns:
            Mapping of gauge name to a callable reading the current value
        """
        prefix = self.config.metric_prefix
        return {
            f"{prefix}.hitRate": lambda: self.stats().hit_rate,
            f"{prefix}.missRate": lambda: self.stats().miss_rate,
            f"{prefix}.loadExceptionRate": lambda: self.stats().load_exception_rate,
        }

    def _resolve(self, remote_path: str) -> Path:
        """Get a fresh cached file for remote_path."""
        if self._file_cache.get_if_present(remote_path) is None:
            return self._file_cache.get(remote_path)

        cached_file = self._file_cache.get(remote_path)
        # Check whether the remote file was modified after it was cached
        remote_modified = self.registry.get(remote_path).get_last_modified_time(
            remote_path
        )
        if self._is_stale(cached_file, remote_modified):
            with self._invalidation_lock:
                # Another thread may have refreshed the file while we waited
                if self._is_stale(cached_file, remote_modified):
                    logger.info(f"Refreshing stale cached copy of {remote_path}")
                    cached_file = self._file_cache.refresh(
                        remote_path, discard=self._delete_file
                    )
        return cached_file

    @staticmethod
    def _is_stale(cached_file: Path, remote_modified: float) -> bool:
        try:
            local_modified = cached_file.stat().st_mtime
        except FileNotFoundError:
            return True
        return remote_modified > local_modified

    def _copy_cached_file(
        self,
        remote_path: str,
        cached_file: Path,
        destination_path: Union[str, Path],
    ) -> None:
        """Copy the cached file to the destination.

        The cached file can disappear between resolution and copy, removed
        by a concurrent refresh or from outside the process. In that case the
        entry is dropped and looked up again: the lookup either waits for the
        refresh in flight or loads the file anew.
        """
        for attempt in range(1, MAX_COPY_ATTEMPTS + 1):
            try:
                self.local_transfer.fetch(str(cached_file), destination_path)
                return
            except TransferError:
                if cached_file.exists() or attempt == MAX_COPY_ATTEMPTS:
                    raise
            logger.debug(f"Cached copy of {remote_path} disappeared, retrying")
            self._file_cache.invalidate(remote_path)
            cached_file = self._file_cache.get(remote_path)

    def _delete_file(self, cached_file: Path) -> None:
        try:
            cached_file.unlink(missing_ok=True)
        except OSError as e:
            raise CacheIOError(
                f"Cannot delete cached file {cached_file}: {e}",
                {"cache_path": str(cached_file)},
            ) from e

    def _load_file(self, remote_path: str) -> Path:
        """Load a remote file into the cache directory.

        The file is stored under the cache directory with its derived key as
        name. A file already there (left by an earlier process) is reused
        only if the remote file is not newer; otherwise it is replaced.

        Args:
            remote_path: Normalized path of the file to load

        Returns:
            Path of the cached file

        Raises:
            BackendResolutionError: If no transfer handles the path
            TransferError: If the transfer or the modification time query fails
        """
        transfer = self.registry.get(remote_path)
        cache_path = self.cache_dir / derive_cache_key(remote_path)
        if cache_path.exists():
            remote_modified = transfer.get_last_modified_time(remote_path)
            if not self._is_stale(cache_path, remote_modified):
                logger.debug(f"Reusing cached copy of {remote_path} found on disk")
                return cache_path
            logger.info(f"Replacing stale cached copy of {remote_path} found on disk")

        temp_path = cache_path.with_name(cache_path.name + ".tmp")
        logger.debug(f"Loading {remote_path} into {cache_path}")
        try:
            transfer.fetch(remote_path, temp_path)
            temp_path.replace(cache_path)
        except BaseException:
            if temp_path.exists():
                try:
                    temp_path.unlink()
                except OSError as cleanup_error:
                    logger.warning(
                        f"Failed to clean up temp file {temp_path}: {cleanup_error}"
                    )
            raise
        return cache_path
