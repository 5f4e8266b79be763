"""Transfer registry for resolving a path to its transfer backend.

The registry supports:
1. Registering transfers by URI scheme
2. Resolving the transfer for a path
"""

from typing import Dict, List

from fetchcache.exceptions import BackendResolutionError
from fetchcache.storage.backend import (
    CloudFileTransfer,
    FileTransfer,
    LocalFileTransfer,
)
from fetchcache.utils import get_scheme


class TransferRegistry:
    """Registry of file transfers keyed by URI scheme.

    Examples:
        >>> registry = TransferRegistry()
        >>> registry.register(LocalFileTransfer())
        >>> transfer = registry.get('/local/file.txt')
        >>> isinstance(transfer, LocalFileTransfer)
        True
    """

    def __init__(self):
        """Initialize an empty registry."""
        self._transfers: Dict[str, FileTransfer] = {}

    def register(self, transfer: FileTransfer) -> None:
        """Register a transfer for all of its schemes.

        Args:
            transfer: Transfer instance to register

        Raises:
            ValueError: If the transfer declares no schemes, or one of its
                schemes is already registered
        """
        if not transfer.schemes:
            raise ValueError(
                f"{transfer.__class__.__name__} does not declare any schemes"
            )
        for scheme in transfer.schemes:
            if scheme.lower() in self._transfers:
                raise ValueError(
                    f"Transfer already registered for scheme: {scheme}. "
                    f"Cannot register {transfer.__class__.__name__}."
                )
        for scheme in transfer.schemes:
            self._transfers[scheme.lower()] = transfer

    def get(self, path: str) -> FileTransfer:
        """Get the transfer able to fetch a path.

        Args:
            path: Remote or local path

        Returns:
            Transfer registered for the path's scheme

        Raises:
            BackendResolutionError: If no transfer handles the scheme
        """
        scheme = get_scheme(path)
        if scheme not in self._transfers:
            available = ", ".join(sorted(self._transfers.keys()))
            raise BackendResolutionError(
                f"No transfer registered for scheme: '{scheme}'. "
                f"Available schemes: {available}",
                {"path": path},
            )
        return self._transfers[scheme]

    def list_schemes(self) -> List[str]:
        """List all registered schemes."""
        return list(self._transfers.keys())

    def is_registered(self, scheme: str) -> bool:
        """Check if a transfer is registered for the given scheme."""
        return scheme.lower() in self._transfers


_default_registry = None


def get_default_registry() -> TransferRegistry:
    """Get the process-wide registry with the built-in transfers.

    Returns:
        TransferRegistry serving file, s3, gs, http and https paths
    """
    global _default_registry
    if _default_registry is None:
        registry = TransferRegistry()
        registry.register(LocalFileTransfer())
        registry.register(CloudFileTransfer())
        _default_registry = registry
    return _default_registry


def register_transfer(transfer: FileTransfer) -> None:
    """Register a transfer in the default registry.

    Raises:
        ValueError: If one of its schemes is already registered
    """
    get_default_registry().register(transfer)
