"""Exception hierarchy for fetchcache.

All exceptions inherit from FetchCacheError, which carries an optional
context dict for structured logging.
"""

from typing import Any, Dict, Optional


class FetchCacheError(Exception):
    """Base exception for all fetchcache errors.

    Attributes:
        message: Human-readable error message
        context: Optional structured context (remote path, cache path, ...)
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx_str})"
        return self.message


class CacheConfigurationError(FetchCacheError):
    """Raised when the cache root directory cannot be created or resolved."""

    pass


class BackendResolutionError(FetchCacheError):
    """Raised when no transfer is registered for a path's scheme."""

    pass


class TransferError(FetchCacheError):
    """Raised when a backend fetch or modification time query fails."""

    pass


class CacheIOError(FetchCacheError):
    """Raised when a local file operation fails during invalidation."""

    pass


class CacheFetchError(FetchCacheError):
    """Raised by the caching service when a file cannot be materialized.

    The underlying cause is always chained as ``__cause__``.
    """

    pass
