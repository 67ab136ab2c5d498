"""Entry store: the single durable home of journal entries.

``EntryStore`` is the contract; ``LocalEntryStore`` is the one implementation,
writing each entry as a JSON document under ``entries/<user_id>/<id>.json``
through a ``StorageBackend``. Every operation names its user explicitly.

A call that returns has committed to disk. A call that raises has changed
nothing: validation happens before any write, and the backend replaces files
atomically, so a failed update leaves the previous record intact.
"""

from __future__ import annotations

import json
import re
import uuid
from collections.abc import Callable
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Protocol, runtime_checkable

from loguru import logger

from inkwell.core.exceptions import EntryNotFoundError, PersistenceError, ValidationError
from inkwell.core.storage import LocalStorage, StorageBackend, StorageKeyError

from .models import EntryPage, JournalEntry, normalize_timestamp, string_list, utcnow

ENTRY_PREFIX = "entries"
DEFAULT_PAGE_SIZE = 20

# Fields a caller may change after creation.
UPDATABLE_FIELDS = frozenset({"title", "text", "images", "qualifiers", "entry_date"})

_SAFE_ID_RE = re.compile(r"^[A-Za-z0-9_.@-]+$")


@runtime_checkable
class EntryStore(Protocol):
    """Protocol for durable journal entry storage."""

    async def create(
        self,
        user_id: str,
        *,
        title: str = "",
        text: str = "",
        images: list[str] | None = None,
        qualifiers: list[str] | None = None,
        entry_date: datetime | date | None = None,
    ) -> JournalEntry:
        """Create an entry with a new id and commit it."""
        ...

    async def get(self, user_id: str, entry_id: str) -> JournalEntry:
        """Return an entry. Raises EntryNotFoundError."""
        ...

    async def update(self, user_id: str, entry_id: str, **changes: Any) -> JournalEntry:
        """Merge *changes* into an existing entry. Raises EntryNotFoundError."""
        ...

    async def delete(self, user_id: str, entry_id: str) -> None:
        """Remove an entry. Raises EntryNotFoundError."""
        ...

    async def list_entries(
        self,
        user_id: str,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        *,
        query: str | None = None,
        qualifiers: list[str] | None = None,
        newest_first: bool = True,
    ) -> EntryPage:
        """Return one page of the user's entries, by entry date."""
        ...


def check_user_id(user_id: str) -> str:
    if not user_id or not _SAFE_ID_RE.match(user_id) or user_id in (".", ".."):
        raise ValidationError(f"Invalid user id: {user_id!r}")
    return user_id


def validate_changes(changes: dict[str, Any]) -> dict[str, Any]:
    """Check and normalize update fields before anything is written."""
    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        raise ValidationError(f"Cannot update field(s): {', '.join(sorted(unknown))}")

    normalized: dict[str, Any] = {}
    for key, value in changes.items():
        if key in ("title", "text"):
            if not isinstance(value, str):
                raise ValidationError(f"{key} must be a string")
            normalized[key] = value
        elif key in ("images", "qualifiers"):
            normalized[key] = string_list(value, key)
        elif key == "entry_date":
            entry_date = normalize_timestamp(value)
            if entry_date is None:
                raise ValidationError("entry_date cannot be empty")
            normalized[key] = entry_date
    return normalized


class LocalEntryStore:
    """JSON-document entry store over a ``StorageBackend``.

    Single writer per record is assumed; two writers racing on one id resolve
    as last-writer-wins.
    """

    def __init__(self, storage: StorageBackend, clock: Callable[[], datetime] = utcnow) -> None:
        self.storage = storage
        self._clock = clock

    @classmethod
    def open(cls, base_path: str) -> LocalEntryStore:
        """Open (creating if needed) a store rooted at *base_path*."""
        return cls(LocalStorage(base_path=base_path))

    def _key(self, user_id: str, entry_id: str) -> str:
        return f"{self._prefix(user_id)}{entry_id}.json"

    @staticmethod
    def _prefix(user_id: str) -> str:
        return f"{ENTRY_PREFIX}/{check_user_id(user_id)}/"

    def _now(self) -> datetime:
        return normalize_timestamp(self._clock())

    async def _write(self, entry: JournalEntry) -> None:
        payload = json.dumps(entry.to_record(), ensure_ascii=False, indent=2).encode("utf-8")
        await self.storage.save(self._key(entry.user_id, entry.id), payload, content_type="application/json")

    async def _read(self, key: str, entry_id: str, user_id: str) -> JournalEntry:
        try:
            raw = await self.storage.load(key)
        except StorageKeyError:
            raise EntryNotFoundError(entry_id, user_id) from None
        try:
            return JournalEntry.from_record(json.loads(raw.decode("utf-8")))
        except (ValueError, KeyError, TypeError) as e:
            raise PersistenceError(f"Corrupt entry record {key}: {e}") from e

    # -- CRUD ---------------------------------------------------------------

    async def create(
        self,
        user_id: str,
        *,
        title: str = "",
        text: str = "",
        images: list[str] | None = None,
        qualifiers: list[str] | None = None,
        entry_date: datetime | date | None = None,
    ) -> JournalEntry:
        check_user_id(user_id)
        fields = validate_changes(
            {"title": title, "text": text, "images": images or [], "qualifiers": qualifiers or []}
        )
        now = self._now()
        entry = JournalEntry(
            id=uuid.uuid4().hex,
            user_id=user_id,
            entry_date=normalize_timestamp(entry_date) or now,
            created_at=now,
            updated_at=now,
            **fields,
        )
        await self._write(entry)
        logger.debug(f"Created entry {entry.id} for user {user_id}")
        return entry

    async def get(self, user_id: str, entry_id: str) -> JournalEntry:
        if not entry_id or not _SAFE_ID_RE.match(entry_id):
            raise EntryNotFoundError(entry_id, user_id)
        return await self._read(self._key(user_id, entry_id), entry_id, user_id)

    async def update(self, user_id: str, entry_id: str, **changes: Any) -> JournalEntry:
        normalized = validate_changes(changes)
        current = await self.get(user_id, entry_id)
        updated = replace(current, **normalized, updated_at=max(self._now(), current.updated_at))
        await self._write(updated)
        logger.debug(f"Updated entry {entry_id} ({', '.join(sorted(normalized)) or 'timestamp only'})")
        return updated

    async def delete(self, user_id: str, entry_id: str) -> None:
        if not entry_id or not _SAFE_ID_RE.match(entry_id):
            raise EntryNotFoundError(entry_id, user_id)
        if not await self.storage.delete(self._key(user_id, entry_id)):
            raise EntryNotFoundError(entry_id, user_id)
        logger.debug(f"Deleted entry {entry_id} for user {user_id}")

    # -- Query --------------------------------------------------------------

    async def _all_entries(self, user_id: str) -> list[JournalEntry]:
        prefix = self._prefix(user_id)
        entries: list[JournalEntry] = []
        async for key in self.storage.list_keys(prefix=prefix):
            if not key.endswith(".json") or "/" in key[len(prefix) :]:
                continue
            entry_id = key[len(prefix) : -len(".json")]
            try:
                entries.append(await self._read(key, entry_id, user_id))
            except PersistenceError as e:
                logger.warning(f"Skipping unreadable entry {key}: {e}")
        return entries

    async def list_entries(
        self,
        user_id: str,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
        *,
        query: str | None = None,
        qualifiers: list[str] | None = None,
        newest_first: bool = True,
    ) -> EntryPage:
        """Return one page of *user_id*'s entries.

        Args:
            user_id: Owner whose entries are listed; nobody else's are visible.
            page: 1-based page number.
            page_size: Entries per page.
            query: Case-insensitive substring over title, text, and qualifiers.
            qualifiers: Every listed qualifier must be on the entry
                (case-insensitive exact match).
            newest_first: Sort by entry date descending (default) or ascending.
        """
        if page < 1 or page_size < 1:
            raise ValidationError("page and page_size must be positive")

        entries = await self._all_entries(user_id)
        if query:
            entries = [e for e in entries if e.matches(query)]
        if qualifiers:
            wanted = {q.lower() for q in qualifiers}
            entries = [e for e in entries if wanted <= {q.lower() for q in e.qualifiers}]

        entries.sort(key=lambda e: (e.entry_date, e.created_at), reverse=newest_first)
        start = (page - 1) * page_size
        return EntryPage(
            entries=entries[start : start + page_size],
            total_count=len(entries),
            page=page,
            page_size=page_size,
        )

    async def count(self, user_id: str) -> int:
        return len(await self._all_entries(user_id))
