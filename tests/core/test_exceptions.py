"""Tests for inkwell.core.exceptions."""

import pytest

from inkwell.core.exceptions import (
    CaptureError,
    CompressionError,
    ConfigurationError,
    EntryNotFoundError,
    ExtractionError,
    InkwellError,
    PersistenceError,
    ValidationError,
)
from inkwell.core.storage import StorageError, StorageKeyError


class TestHierarchy:
    @pytest.mark.parametrize(
        "exc_class",
        [
            CaptureError,
            CompressionError,
            ConfigurationError,
            ExtractionError,
            PersistenceError,
            ValidationError,
            StorageError,
        ],
    )
    def test_all_inherit_from_base(self, exc_class):
        assert issubclass(exc_class, InkwellError)

    def test_validation_error_is_value_error(self):
        with pytest.raises(ValueError):
            raise ValidationError("bad")

    def test_storage_errors_are_persistence_errors(self):
        assert issubclass(StorageError, PersistenceError)
        assert issubclass(StorageKeyError, KeyError)


class TestEntryNotFoundError:
    def test_message_and_fields(self):
        err = EntryNotFoundError("abc123", user_id="alice")
        assert err.entry_id == "abc123"
        assert err.user_id == "alice"
        assert str(err) == "Entry not found: abc123"

    def test_catchable_as_key_error(self):
        with pytest.raises(KeyError):
            raise EntryNotFoundError("missing")
