"""
Storage backends for inkwell.

Provides an async blob storage interface with durable, atomic writes and a
local filesystem implementation. Journal entries and uploaded page images
both live behind this interface.
"""

from .base import (
    StorageBackend,
    StorageError,
    StorageKeyError,
    StorageMetadata,
    StoragePermissionError,
    StorageQuotaError,
)
from .local import LocalStorage

__all__ = [
    "LocalStorage",
    "StorageBackend",
    "StorageError",
    "StorageKeyError",
    "StorageMetadata",
    "StoragePermissionError",
    "StorageQuotaError",
]
