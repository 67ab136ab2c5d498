"""
Abstract base class for storage backends.

Every backend must make ``save`` durable before it returns: a caller that
sees ``save`` complete may assume the bytes survive a process restart, and a
caller that sees it raise may assume the previous value under that key is
untouched.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from inkwell.core.exceptions import PersistenceError


@dataclass
class StorageMetadata:
    """Metadata for stored objects."""

    key: str
    size: int
    modified_at: datetime
    content_type: str
    custom_metadata: dict[str, Any] = field(default_factory=dict)


class StorageBackend(ABC):
    """Abstract base class for storage backends."""

    def __init__(self, **config):
        self.config = config

    @abstractmethod
    async def save(
        self,
        key: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        metadata: dict[str, Any] | None = None,
    ) -> StorageMetadata:
        """Durably and atomically replace the value stored under *key*."""

    @abstractmethod
    async def load(self, key: str) -> bytes:
        """Load data from storage. Raises StorageKeyError if not found."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check if a key exists in storage."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete an object. Returns True if deleted, False if didn't exist."""

    @abstractmethod
    async def list_keys(self, prefix: str = "", limit: int | None = None) -> AsyncIterator[str]:
        """List keys with optional prefix filter, in sorted order."""

    @abstractmethod
    async def get_url(self, key: str) -> str:
        """Get a stable URL for accessing the object."""

    @abstractmethod
    def key_for_url(self, url: str) -> str:
        """Map a URL returned by ``get_url`` back to its key. Raises StorageKeyError."""


class StorageError(PersistenceError):
    """Base exception for storage errors."""


class StorageKeyError(StorageError, KeyError):
    """Raised when a storage key doesn't exist."""


class StoragePermissionError(StorageError):
    """Raised when storage operation is not permitted."""


class StorageQuotaError(StorageError):
    """Raised when the device is out of space or over quota."""
