"""Local read-through caching of remote files.

This module caches remote files on local disk and refreshes them when the
remote copy is modified.

Key components:
- CachingFileTransferService: Main cache interface
- CacheConfig: Configuration management
- LoadingCache: Single-flight in-memory mapping
- CacheStats: Hit, miss and load counters
"""

from fetchcache.cache.config import CacheConfig
from fetchcache.cache.directory import ensure_cache_directory
from fetchcache.cache.loading import LoadingCache
from fetchcache.cache.manager import CachingFileTransferService
from fetchcache.cache.stats import CacheStats

__all__ = [
    "CachingFileTransferService",
    "CacheConfig",
    "CacheStats",
    "LoadingCache",
    "ensure_cache_directory",
]
