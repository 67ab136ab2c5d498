"""Raw-image uploads.

Compressed page images are stored once under a namespace (the owning user)
and referenced from entries by a stable URL. ``ImageUploader`` keeps them in
the same storage backend as the entries, so a local install needs nothing
else running.
"""

from __future__ import annotations

import re
import uuid

from loguru import logger

from inkwell.core.exceptions import ValidationError
from inkwell.core.storage import StorageBackend
from inkwell.imaging.data_url import decode_data_url, split_data_url, to_data_url

IMAGE_PREFIX = "images"

_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
    "image/heic": "heic",
}
_MIME_TYPES = {ext: mime for mime, ext in _EXTENSIONS.items()}
_NAMESPACE_RE = re.compile(r"^[A-Za-z0-9_.@-]+$")


class ImageUploader:
    """Stores page images and hands back references to them."""

    def __init__(self, storage: StorageBackend) -> None:
        self.storage = storage

    async def upload(self, image_data: str, namespace: str) -> str:
        """Store a data URL under *namespace*; returns a stable reference.

        Raises:
            ValidationError: on a missing image or an unsafe namespace.
            CaptureError: if the image is not a decodable data URL.
            PersistenceError: if the write fails.
        """
        if not image_data or not namespace:
            raise ValidationError("Missing image data or namespace")
        if not _NAMESPACE_RE.match(namespace) or namespace in (".", ".."):
            raise ValidationError(f"Invalid upload namespace: {namespace!r}")

        mime_type, _ = split_data_url(image_data)
        payload = decode_data_url(image_data)
        key = f"{IMAGE_PREFIX}/{namespace}/{uuid.uuid4().hex}.{_EXTENSIONS.get(mime_type, 'bin')}"
        await self.storage.save(key, payload, content_type=mime_type)
        logger.debug(f"Uploaded {len(payload)} bytes to {key}")
        return await self.storage.get_url(key)

    async def load(self, reference: str) -> str:
        """Read an uploaded image back as a data URL."""
        key = self.storage.key_for_url(reference)
        ext = key.rsplit(".", 1)[-1]
        return to_data_url(await self.storage.load(key), _MIME_TYPES.get(ext, "application/octet-stream"))

    async def remove(self, reference: str) -> bool:
        return await self.storage.delete(self.storage.key_for_url(reference))
