"""
Local filesystem storage backend.

Writes go to a temporary sibling file which is flushed, fsynced, and then
atomically renamed over the target, so a reader (or a restarted process)
sees either the previous bytes or the new ones, never a torn file.
"""

import asyncio
import errno
import os
import uuid
from collections.abc import AsyncIterator
from datetime import datetime
from pathlib import Path
from typing import Any
from urllib.parse import urlparse
from urllib.request import url2pathname

import aiofiles
import aiofiles.os
from loguru import logger

from .base import (
    StorageBackend,
    StorageError,
    StorageKeyError,
    StorageMetadata,
    StoragePermissionError,
    StorageQuotaError,
)

_TMP_SUFFIX = ".tmp"
_QUOTA_ERRNOS = {errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)}


def _is_temp_file(name: str) -> bool:
    return name.startswith(".") and name.endswith(_TMP_SUFFIX)


def _fsync_directory(directory: Path) -> None:
    """Persist a rename by fsyncing its parent directory (POSIX only)."""
    if os.name != "posix":
        return
    fd = os.open(directory, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


class LocalStorage(StorageBackend):
    """Local filesystem storage backend."""

    def __init__(self, base_path: str = "~/.inkwell-data/storage", **config):
        super().__init__(**config)
        self.base_path = Path(base_path).expanduser().resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _get_full_path(self, key: str) -> Path:
        """Resolve a storage key to an absolute path under ``base_path``.

        Rejects unsafe keys (absolute paths, traversal, empty keys, and
        backslash-delimited paths) to prevent writes outside ``base_path``.
        """
        raw_key = key.strip()
        if not raw_key:
            raise StoragePermissionError("Storage key cannot be empty.")
        if "\x00" in raw_key:
            raise StoragePermissionError("Storage key cannot contain null bytes.")
        if "\\" in raw_key:
            raise StoragePermissionError("Storage key cannot contain backslashes. Use '/' separators.")

        key_path = Path(raw_key)
        if key_path.is_absolute() or raw_key.startswith("~"):
            raise StoragePermissionError(f"Unsafe storage key '{key}': absolute paths are not allowed.")

        full_path = (self.base_path / key_path).resolve()
        try:
            full_path.relative_to(self.base_path)
        except ValueError as e:
            raise StoragePermissionError(f"Unsafe storage key '{key}': path traversal is not allowed.") from e
        if _is_temp_file(full_path.name):
            raise StoragePermissionError(f"Storage key '{key}' collides with the temporary file pattern.")
        return full_path

    def _missing_directories(self, directory: Path) -> list[Path]:
        """Directories between ``base_path`` and *directory* that do not exist yet, deepest first."""
        missing: list[Path] = []
        while directory != self.base_path and not directory.exists():
            missing.append(directory)
            directory = directory.parent
        return missing

    @staticmethod
    def _translate_os_error(e: OSError, path: Path) -> StorageError:
        if isinstance(e, PermissionError):
            return StoragePermissionError(f"Cannot write to {path}: {e}")
        if e.errno in _QUOTA_ERRNOS:
            return StorageQuotaError(f"Out of space writing {path}: {e}")
        return StorageError(f"Failed to write {path}: {e}")

    async def save(
        self,
        key: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        metadata: dict[str, Any] | None = None,
    ) -> StorageMetadata:
        path = self._get_full_path(key)
        tmp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex}{_TMP_SUFFIX}")
        loop = asyncio.get_running_loop()

        created = self._missing_directories(path.parent)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(tmp_path, "wb") as f:
                await f.write(data)
                await f.flush()
                await loop.run_in_executor(None, os.fsync, f.fileno())
            await aiofiles.os.replace(tmp_path, path)
            # Deepest first: the file's directory, then each parent that gained a new subdirectory.
            for directory in [path.parent, *(d.parent for d in created)]:
                await loop.run_in_executor(None, _fsync_directory, directory)
        except OSError as e:
            if tmp_path.exists():
                tmp_path.unlink()
            logger.error(f"Storage write failed for key '{key}': {e}")
            raise self._translate_os_error(e, path) from e

        stat = await aiofiles.os.stat(path)
        return StorageMetadata(
            key=key,
            size=stat.st_size,
            modified_at=datetime.fromtimestamp(stat.st_mtime),
            content_type=content_type,
            custom_metadata=metadata or {},
        )

    async def load(self, key: str) -> bytes:
        path = self._get_full_path(key)
        if not path.is_file():
            raise StorageKeyError(f"Key not found: {key}")

        try:
            async with aiofiles.open(path, "rb") as f:
                return await f.read()
        except PermissionError as e:
            raise StoragePermissionError(f"Cannot read {path}: {e}") from e

    async def exists(self, key: str) -> bool:
        return self._get_full_path(key).is_file()

    async def delete(self, key: str) -> bool:
        path = self._get_full_path(key)
        if not path.is_file():
            return False
        try:
            await aiofiles.os.remove(path)
        except OSError as e:
            raise self._translate_os_error(e, path) from e
        await asyncio.get_running_loop().run_in_executor(None, _fsync_directory, path.parent)
        return True

    async def list_keys(self, prefix: str = "", limit: int | None = None) -> AsyncIterator[str]:
        count = 0
        for root, dirs, files in os.walk(self.base_path):
            dirs.sort()
            for file in sorted(files):
                if _is_temp_file(file):
                    continue
                key = (Path(root) / file).relative_to(self.base_path).as_posix()
                if prefix and not key.startswith(prefix):
                    continue
                yield key
                count += 1
                if limit and count >= limit:
                    return

    async def get_url(self, key: str) -> str:
        path = self._get_full_path(key)
        if not path.is_file():
            raise StorageKeyError(f"Key not found: {key}")
        return path.as_uri()

    def key_for_url(self, url: str) -> str:
        """Inverse of ``get_url``."""
        parsed = urlparse(url)
        if parsed.scheme != "file":
            raise StorageKeyError(f"Not a local storage URL: {url}")
        path = Path(url2pathname(parsed.path)).resolve()
        try:
            return path.relative_to(self.base_path).as_posix()
        except ValueError:
            raise StorageKeyError(f"URL is outside this storage: {url}") from None
