"""
Inkwell exception hierarchy.

All inkwell exceptions inherit from InkwellError, making it easy for consumers
to catch library-level errors while still distinguishing specific failure modes.

Compression and per-page extraction failures are normally recovered where they
happen and surfaced as data; the classes exist so the recovery sites (and
adapters that prefer raising) share one vocabulary.
"""


class InkwellError(Exception):
    """Base exception class for all inkwell errors."""


class ConfigurationError(InkwellError):
    """Raised for configuration errors (missing keys, invalid values)."""


class CaptureError(InkwellError):
    """Raised when a source image cannot be read at all."""


class CompressionError(InkwellError):
    """Raised when an image cannot be decoded, resized, or re-encoded."""


class ExtractionError(InkwellError):
    """Raised for text-extraction provider failures (network, rate limit, provider)."""


class PersistenceError(InkwellError):
    """Raised when the entry store cannot commit a write."""


class ValidationError(InkwellError, ValueError):
    """Raised when input is missing required fields or names unknown ones."""


class EntryNotFoundError(InkwellError, KeyError):
    """Raised when a journal entry id does not exist for the given user."""

    def __init__(self, entry_id: str, user_id: str = ""):
        self.entry_id = entry_id
        self.user_id = user_id
        super().__init__(f"Entry not found: {entry_id}")

    def __str__(self) -> str:
        return f"Entry not found: {self.entry_id}"
