"""Utility functions for fetchcache."""

import hashlib
import uuid
from pathlib import Path
from typing import Union
from urllib.parse import urlparse

LOCAL_SCHEME = "file"


def derive_cache_key(remote_path: str) -> str:
    """Derive the cache file name for a remote path.

    The key is a name-based (version 3) UUID built from the MD5 digest of
    the UTF-8 encoded path, identical to Java's ``UUID.nameUUIDFromBytes``.
    The same path always yields the same key, across processes.

    Args:
        remote_path: Remote path (any URI scheme)

    Returns:
        UUID string, e.g. '1b4e28ba-2fa1-3d2b-a83e-1f7a9c1d3a05'

    Examples:
        >>> derive_cache_key('s3://bucket/a.txt') == derive_cache_key('s3://bucket/a.txt')
        True
        >>> len(derive_cache_key('s3://bucket/a.txt'))
        36
    """
    digest = hashlib.md5(remote_path.encode("utf-8")).digest()
    return str(uuid.UUID(bytes=digest, version=3))


def get_scheme(path: Union[str, Path]) -> str:
    """Get the URI scheme of a path.

    Plain filesystem paths have no scheme and are reported as 'file'.

    Args:
        path: Path or URI

    Returns:
        Lower-case scheme name

    Examples:
        >>> get_scheme('s3://bucket/file.txt')
        's3'
        >>> get_scheme('/local/path/file.txt')
        'file'
    """
    path_str = str(path)
    if "://" not in path_str:
        return LOCAL_SCHEME
    return path_str.split("://", 1)[0].lower()


def is_cloud_path(path: Union[str, Path]) -> bool:
    """Check if a path points somewhere other than the local filesystem.

    Examples:
        >>> is_cloud_path('gs://bucket/file.parquet')
        True
        >>> is_cloud_path('file:///tmp/file.parquet')
        False
    """
    return get_scheme(path) != LOCAL_SCHEME


def to_local_path(path: Union[str, Path]) -> Path:
    """Convert a plain path or a file:// URI to a Path.

    Args:
        path: Local path or file:// URI

    Returns:
        Path object (not resolved)

    Raises:
        ValueError: If the path uses a non-local scheme
    """
    if is_cloud_path(path):
        raise ValueError(f"Not a local path: {path}")
    path_str = str(path)
    if path_str.lower().startswith("file://"):
        return Path(urlparse(path_str).path)
    return Path(path_str).expanduser()


def normalize_path(path: Union[str, Path]) -> str:
    """Return the canonical form of a path used for cache keys and loads.

    Local paths (plain or file://) become absolute and resolved, so the same
    relative name read from different working directories does not share a
    cache entry. Remote paths are returned unchanged.

    Examples:
        >>> normalize_path('s3://bucket/a.txt')
        's3://bucket/a.txt'
        >>> normalize_path('file:///tmp/../tmp/a.txt')
        '/tmp/a.txt'
    """
    if is_cloud_path(path):
        return str(path)
    return str(to_local_path(path).resolve())


def split_remote_path(path: str) -> tuple:
    """Split a remote path into (directory, filename).

    Examples:
        >>> split_remote_path('s3://bucket/dir/file.txt')
        ('s3://bucket/dir', 'file.txt')
    """
    parts = path.rsplit("/", 1)
    if len(parts) == 2:
        return parts[0], parts[1]
    return "", parts[0]
