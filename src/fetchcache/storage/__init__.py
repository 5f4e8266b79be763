"""File transfer backends and the registry that resolves them by scheme."""

from fetchcache.storage.backend import (
    CloudFileTransfer,
    FileTransfer,
    LocalFileTransfer,
)
from fetchcache.storage.registry import (
    TransferRegistry,
    get_default_registry,
    register_transfer,
)

__all__ = [
    "FileTransfer",
    "LocalFileTransfer",
    "CloudFileTransfer",
    "TransferRegistry",
    "get_default_registry",
    "register_transfer",
]
