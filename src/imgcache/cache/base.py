"""
Base classes for the image cache store.

ImageStore is the interface the resolution policy depends on. Every method
degrades to an absence value instead of raising; implementations absorb
DecodeError, TransferError and StorageError internally.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from imgcache.types import ResourceId

# Raw bytes, an inline data: payload, or a remote URL
ImageSource = bytes | str


class ImageStore(ABC):
    """Abstract interface for image cache stores."""

    @abstractmethod
    def path_for(self, resource_id: ResourceId) -> Path:
        """Deterministic local path for a resource. No I/O."""
        ...

    @abstractmethod
    def exists(self, resource_id: ResourceId) -> bool:
        """Check whether a complete entry is cached."""
        ...

    @abstractmethod
    def read(self, resource_id: ResourceId) -> Path | None:
        """Path of the cached entry, or None if absent."""
        ...

    @abstractmethod
    async def write(self, resource_id: ResourceId, source: ImageSource) -> Path | None:
        """Persist an image and return its path, or None on failure."""
        ...

    @abstractmethod
    def delete(self, resource_id: ResourceId) -> None:
        """Remove one entry if present."""
        ...

    @abstractmethod
    def clear(self) -> None:
        """Remove every entry."""
        ...

    async def close(self) -> None:
        """Release any held resources."""
        return None
