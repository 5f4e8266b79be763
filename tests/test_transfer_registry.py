"""Tests for the transfer registry."""

import pytest

from fetchcache.exceptions import BackendResolutionError
from fetchcache.storage.backend import (
    CloudFileTransfer,
    FileTransfer,
    LocalFileTransfer,
)
from fetchcache.storage.registry import TransferRegistry, get_default_registry


class MemoryTransfer(FileTransfer):
    schemes = ("mem",)

    def fetch(self, remote_path, local_path):
        pass

    def get_last_modified_time(self, remote_path):
        return 0.0


class TestTransferRegistry:
    """Test registration and resolution."""

    def test_register_and_get(self):
        registry = TransferRegistry()
        transfer = MemoryTransfer()
        registry.register(transfer)

        assert registry.get("mem://bucket/file") is transfer
        assert registry.is_registered("mem")
        assert registry.is_registered("MEM")
        assert registry.list_schemes() == ["mem"]

    def test_all_schemes_are_registered(self):
        registry = TransferRegistry()
        transfer = CloudFileTransfer()
        registry.register(transfer)

        for scheme in ("s3", "gs", "http", "https"):
            assert registry.get(f"{scheme}://host/file") is transfer

    def test_duplicate_scheme(self):
        registry = TransferRegistry()
        registry.register(MemoryTransfer())

        with pytest.raises(ValueError, match="already registered"):
            registry.register(MemoryTransfer())

    def test_transfer_without_schemes(self):
        class NoSchemes(MemoryTransfer):
            schemes = ()

        with pytest.raises(ValueError, match="does not declare"):
            TransferRegistry().register(NoSchemes())

    def test_unknown_scheme(self):
        registry = TransferRegistry()
        registry.register(MemoryTransfer())

        with pytest.raises(BackendResolutionError, match="'s3'") as exc_info:
            registry.get("s3://bucket/file")

        assert "Available schemes: mem" in str(exc_info.value)

    def test_plain_path_resolves_as_file(self):
        registry = TransferRegistry()
        transfer = LocalFileTransfer()
        registry.register(transfer)

        assert registry.get("/tmp/file.txt") is transfer
        assert registry.get("file:///tmp/file.txt") is transfer


class TestDefaultRegistry:
    """Test the built-in registry."""

    def test_builtin_transfers(self):
        registry = get_default_registry()

        assert isinstance(registry.get("/tmp/file"), LocalFileTransfer)
        assert isinstance(registry.get("s3://bucket/file"), CloudFileTransfer)
        assert isinstance(registry.get("https://host/file"), CloudFileTransfer)

    def test_is_singleton(self):
        assert get_default_registry() is get_default_registry()
