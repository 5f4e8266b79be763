"""fetchcache: Local on-disk caching of files fetched from remote locations."""

__version__ = "0.1.0"

from fetchcache.cache import CacheConfig, CachingFileTransferService
from fetchcache.exceptions import (
    BackendResolutionError,
    CacheConfigurationError,
    CacheFetchError,
    CacheIOError,
    FetchCacheError,
    TransferError,
)
from fetchcache.utils import derive_cache_key, normalize_path

__all__ = [
    "CachingFileTransferService",
    "CacheConfig",
    "derive_cache_key",
    "normalize_path",
    "FetchCacheError",
    "CacheConfigurationError",
    "BackendResolutionError",
    "TransferError",
    "CacheIOError",
    "CacheFetchError",
    "__version__",
]
