"""Cache root directory bootstrap."""

import logging
from pathlib import Path
from typing import Union

from fetchcache.exceptions import CacheConfigurationError
from fetchcache.utils import to_local_path

logger = logging.getLogger(__name__)


def ensure_cache_directory(location: Union[str, Path]) -> Path:
    """Make sure the cache root exists and return its absolute path.

    Args:
        location: Local directory path or file:// URI

    Returns:
        Resolved absolute path of the cache root

    Raises:
        CacheConfigurationError: If the location is not local, is not a
            directory, or cannot be created

    Examples:
        >>> ensure_cache_directory('file:///tmp/fetchcache')
        PosixPath('/tmp/fetchcache')
    """
    if not str(location).strip():
        raise CacheConfigurationError(
            f"Failed creating the cache location {location!r}: empty path",
            {"location": str(location)},
        )

    try:
        path = to_local_path(location)
    except ValueError as e:
        raise CacheConfigurationError(
            f"Failed creating the cache location {location}: not a local path",
            {"location": str(location)},
        ) from e

    if path.exists() and not path.is_dir():
        raise CacheConfigurationError(
            f"Failed creating the cache location {location}: not a directory",
            {"location": str(location)},
        )

    try:
        path.mkdir(parents=True, exist_ok=True)
        resolved = path.resolve()
    except OSError as e:
        raise CacheConfigurationError(
            f"Failed creating the cache location {location}: {e}",
            {"location": str(location)},
        ) from e

    logger.debug(f"Using cache directory {resolved}")
    return resolved
