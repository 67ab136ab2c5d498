"""Journal entry records.

``JournalEntry`` is the only durable object in inkwell. On disk it is a JSON
document with the keys ``id, userId, title, text, images, qualifiers,
entryDate, createdAt, updatedAt``; timestamps are ISO-8601 in UTC.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any

from inkwell.core.exceptions import ValidationError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_timestamp(value: datetime | date | str | None) -> datetime | None:
    """Coerce to an aware UTC datetime. Naive values are taken as UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError as e:
            raise ValidationError(f"Invalid timestamp: {value!r}") from e
    elif isinstance(value, date) and not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    if not isinstance(value, datetime):
        raise ValidationError(f"Expected a datetime, got {type(value).__name__}")
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def string_list(value: Any, field_name: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        raise ValidationError(f"{field_name} must be a list of strings")
    return list(value)


@dataclass
class JournalEntry:
    """One journal entry: its page images, final text, and qualifiers.

    Attributes:
        id: Store-assigned identifier; never changes after creation.
        user_id: Owner of the entry.
        title: Free-form title.
        text: Final (possibly edited) text.
        images: References to the page images, in capture order.
        qualifiers: ``"Key: Value"`` tags such as ``"Tone: Reflective"``.
        entry_date: The day the entry is about; defaults to creation time.
        created_at: When the store first committed the entry.
        updated_at: When the store last committed a change.
    """

    id: str
    user_id: str
    title: str = ""
    text: str = ""
    images: list[str] = field(default_factory=list)
    qualifiers: list[str] = field(default_factory=list)
    entry_date: datetime = field(default_factory=utcnow)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def to_record(self) -> dict[str, Any]:
        """Serialize to the persisted record shape."""
        return {
            "id": self.id,
            "userId": self.user_id,
            "title": self.title,
            "text": self.text,
            "images": list(self.images),
            "qualifiers": list(self.qualifiers),
            "entryDate": self.entry_date.isoformat(),
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> JournalEntry:
        created_at = normalize_timestamp(record["createdAt"])
        return cls(
            id=record["id"],
            user_id=record["userId"],
            title=record.get("title", "") or "",
            text=record.get("text", "") or "",
            images=string_list(record.get("images"), "images"),
            qualifiers=string_list(record.get("qualifiers"), "qualifiers"),
            entry_date=normalize_timestamp(record.get("entryDate")) or created_at,
            created_at=created_at,
            updated_at=normalize_timestamp(record.get("updatedAt")) or created_at,
        )

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match over title, text, and qualifiers."""
        needle = query.lower()
        return (
            needle in self.title.lower()
            or needle in self.text.lower()
            or any(needle in q.lower() for q in self.qualifiers)
        )

    def __repr__(self) -> str:
        preview = self.text[:40] + "..." if len(self.text) > 40 else self.text
        return f"JournalEntry(id='{self.id}', title='{self.title}', text='{preview}')"


@dataclass
class EntryPage:
    """One page of ``list_entries`` output."""

    entries: list[JournalEntry]
    total_count: int
    page: int = 1
    page_size: int = 20

    @property
    def has_more(self) -> bool:
        return self.page * self.page_size < self.total_count
