"""Data URL helpers.

Captured pages travel through the engine as ``data:<mime>;base64,<payload>``
strings, the same shape a browser canvas or file reader produces.
"""

from __future__ import annotations

import base64
import binascii

from inkwell.core.exceptions import CaptureError

_PREFIX = "data:"
_BASE64_MARKER = ";base64"


def to_data_url(data: bytes, mime_type: str = "image/jpeg") -> str:
    """Wrap raw bytes in a base64 data URL."""
    return f"{_PREFIX}{mime_type}{_BASE64_MARKER},{base64.b64encode(data).decode('ascii')}"


def split_data_url(data_url: str) -> tuple[str, str]:
    """Return ``(mime_type, base64_payload)``.

    Raises:
        CaptureError: if the string is not a base64 data URL.
    """
    if not isinstance(data_url, str) or not data_url.startswith(_PREFIX) or "," not in data_url:
        raise CaptureError("Image is not a data URL")
    header, payload = data_url.split(",", 1)
    if not header.endswith(_BASE64_MARKER):
        raise CaptureError("Only base64 data URLs are supported")
    return header[len(_PREFIX) : -len(_BASE64_MARKER)] or "application/octet-stream", payload


def decode_data_url(data_url: str) -> bytes:
    """Decode a data URL to raw bytes."""
    _, payload = split_data_url(data_url)
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise CaptureError(f"Invalid base64 payload: {e}") from e


def payload_size_kb(data_url: str) -> float:
    """Approximate decoded size in KB from the base64 payload length.

    Anything without a payload counts as 0.
    """
    payload = data_url.split(",", 1)[1] if isinstance(data_url, str) and "," in data_url else ""
    return (len(payload) * 3 / 4) / 1024
