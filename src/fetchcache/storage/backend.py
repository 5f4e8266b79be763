"""File transfer backends.

A transfer knows how to fetch a file for a set of URI schemes and how to
report the remote file's last modification time. The caching service only
talks to this interface, so adding a new remote source means registering a
new transfer, not touching the cache.
"""

import logging
import os
import shutil
from abc import ABC, abstractmethod
from datetime import datetime
from email.utils import parsedate_to_datetime
from pathlib import Path
from typing import Any, Tuple, Union

from fetchcache.exceptions import TransferError
from fetchcache.utils import split_remote_path, to_local_path

logger = logging.getLogger(__name__)


class FileTransfer(ABC):
    """Abstract base class for file transfers.

    Subclasses declare the URI schemes they serve and implement fetch()
    and get_last_modified_time().

    Examples:
        >>> class MemoryTransfer(FileTransfer):
        ...     schemes = ("mem",)
        ...     def fetch(self, remote_path, local_path): ...
        ...     def get_last_modified_time(self, remote_path): ...
    """

    schemes: Tuple[str, ...] = ()

    @abstractmethod
    def fetch(self, remote_path: str, local_path: Union[str, Path]) -> None:
        """Copy the file at remote_path to local_path.

        Args:
            remote_path: Source path
            local_path: Local destination file

        Raises:
            TransferError: If the file cannot be fetched
        """
        pass

    @abstractmethod
    def get_last_modified_time(self, remote_path: str) -> float:
        """Get the last modification time of a remote file.

        Args:
            remote_path: Source path

        Returns:
            POSIX timestamp in seconds

        Raises:
            TransferError: If the time cannot be determined
        """
        pass


def _write_atomic(local_path: Union[str, Path], content: bytes) -> None:
    """Write bytes to local_path through a temporary sibling file."""
    dst = Path(local_path)
    temp_path = dst.with_name(dst.name + ".part")
    try:
        with open(temp_path, "wb") as f:
            f.write(content)
        os.replace(temp_path, dst)
    except BaseException:
        temp_path.unlink(missing_ok=True)
        raise


class LocalFileTransfer(FileTransfer):
    """Transfer for local paths and file:// URIs.

    Copies keep the source modification time, so a cached copy of a local
    file is fresh until the source changes.

    Examples:
        >>> transfer = LocalFileTransfer()
        >>> transfer.fetch('/data/input.csv', '/tmp/input.csv')
    """

    schemes = ("file",)

    def fetch(self, remote_path: str, local_path: Union[str, Path]) -> None:
        src = to_local_path(remote_path)
        dst = Path(local_path)
        temp_path = dst.with_name(dst.name + ".part")
        logger.debug(f"Copying {src} to {dst}")
        try:
            shutil.copy2(src, temp_path)
            os.replace(temp_path, dst)
        except OSError as e:
            temp_path.unlink(missing_ok=True)
            if not src.exists():
                raise TransferError(
                    f"File not found: {remote_path}", {"remote_path": remote_path}
                ) from e
            raise TransferError(
                f"Cannot copy {remote_path} to {local_path}: {e}",
                {"remote_path": remote_path},
            ) from e

    def get_last_modified_time(self, remote_path: str) -> float:
        try:
            return to_local_path(remote_path).stat().st_mtime
        except OSError as e:
            raise TransferError(
                f"Cannot stat {remote_path}: {e}", {"remote_path": remote_path}
            ) from e


def _parse_last_modified(value: Any) -> float:
    """Convert a Last-Modified header value to a POSIX timestamp."""
    if isinstance(value, datetime):
        return value.timestamp()
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return parsedate_to_datetime(value).timestamp()
        except (TypeError, ValueError):
            return datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp()
    raise ValueError(f"Unsupported Last-Modified value: {value!r}")


class CloudFileTransfer(FileTransfer):
    """Transfer for object storage and HTTP paths via cloudfiles.

    Examples:
        >>> transfer = CloudFileTransfer()
        >>> transfer.fetch('s3://bucket/data/input.csv', '/tmp/input.csv')
        >>> transfer.get_last_modified_time('gs://bucket/data/input.csv')
        1718000000.0
    """

    schemes = ("s3", "gs", "http", "https")

    _LAST_MODIFIED_KEYS = ("Last-Modified", "last-modified", "LastModified", "updated")

    def fetch(self, remote_path: str, local_path: Union[str, Path]) -> None:
        from cloudfiles import CloudFiles

        dir_path, filename = split_remote_path(remote_path)
        logger.debug(f"Downloading {remote_path} to {local_path}")
        try:
            cf = CloudFiles(dir_path) if dir_path else CloudFiles(remote_path)
            content = cf.get(filename)
        except Exception as e:
            raise TransferError(
                f"Cannot download {remote_path}: {e}", {"remote_path": remote_path}
            ) from e

        if content is None:
            raise TransferError(
                f"File not found: {remote_path}", {"remote_path": remote_path}
            )

        try:
            _write_atomic(local_path, content)
        except OSError as e:
            raise TransferError(
                f"Cannot write {local_path}: {e}", {"remote_path": remote_path}
            ) from e

    def get_last_modified_time(self, remote_path: str) -> float:
        from cloudfiles import CloudFiles

        dir_path, filename = split_remote_path(remote_path)
        try:
            cf = CloudFiles(dir_path) if dir_path else CloudFiles(remote_path)
            headers = cf.head(filename)
        except Exception as e:
            raise TransferError(
                f"Cannot read metadata for {remote_path}: {e}",
                {"remote_path": remote_path},
            ) from e

        if not headers:
            raise TransferError(
                f"File not found: {remote_path}", {"remote_path": remote_path}
            )

        for key in self._LAST_MODIFIED_KEYS:
            if headers.get(key) is not None:
                try:
                    return _parse_last_modified(headers[key])
                except ValueError as e:
                    raise TransferError(
                        f"Invalid modification time for {remote_path}: {e}",
                        {"remote_path": remote_path},
                    ) from e

        raise TransferError(
            f"No modification time reported for {remote_path}",
            {"remote_path": remote_path},
        )
