"""Shared fixtures for fetchcache tests."""

import os
import tempfile
import threading
import time
from pathlib import Path

import pytest

from fetchcache.cache.config import CacheConfig
from fetchcache.cache.manager import CachingFileTransferService
from fetchcache.exceptions import TransferError
from fetchcache.storage.backend import FileTransfer
from fetchcache.storage.registry import TransferRegistry


class FakeTransfer(FileTransfer):
    """In-memory remote store that records every call.

    fetch() writes the content and stamps the local file with the remote
    modification time, like a copy that preserves timestamps.
    """

    schemes = ("s3",)

    def __init__(self):
        self.files = {}
        self.fetch_calls = []
        self.mtime_calls = []
        self.fail_fetch = False
        self.release = None  # threading.Event that fetch waits on
        self._lock = threading.Lock()

    def put(self, path, content, mtime=None):
        self.files[path] = (content, time.time() - 60 if mtime is None else mtime)

    def touch(self, path, content, delta=60):
        """Replace the remote file with newer content."""
        _, mtime = self.files[path]
        self.files[path] = (content, mtime + delta)

    def fetch_count(self, path=None):
        with self._lock:
            if path is None:
                return len(self.fetch_calls)
            return self.fetch_calls.count(path)

    def fetch(self, remote_path, local_path):
        with self._lock:
            self.fetch_calls.append(remote_path)
        if self.release is not None:
            self.release.wait(timeout=5)
        if self.fail_fetch:
            # Leave a partial file behind, like an interrupted download
            Path(local_path).write_bytes(b"partial")
            raise TransferError(f"Simulated failure for {remote_path}")
        if remote_path not in self.files:
            raise TransferError(f"File not found: {remote_path}")
        content, mtime = self.files[remote_path]
        Path(local_path).write_bytes(content)
        os.utime(local_path, (mtime, mtime))

    def get_last_modified_time(self, remote_path):
        with self._lock:
            self.mtime_calls.append(remote_path)
        if remote_path not in self.files:
            raise TransferError(f"File not found: {remote_path}")
        return self.files[remote_path][1]


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fake_transfer():
    """Create a fake remote transfer for s3:// paths."""
    return FakeTransfer()


@pytest.fixture
def registry(fake_transfer):
    """Create a registry that resolves s3:// paths to the fake transfer."""
    registry = TransferRegistry()
    registry.register(fake_transfer)
    return registry


@pytest.fixture
def service(temp_dir, registry):
    """Create a caching service with a temporary cache directory."""
    config = CacheConfig(cache_dir=temp_dir / "cache")
    return CachingFileTransferService(config=config, registry=registry)
