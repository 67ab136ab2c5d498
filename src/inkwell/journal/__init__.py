"""Journal entries: models, the local-first entry store, and the save path.

``LocalEntryStore`` is the one durable store; ``JournalService`` ties image
compression, uploads, extraction, and saving together.
"""

from .models import EntryPage, JournalEntry
from .qualifiers import build_qualifiers, format_qualifier, get_qualifier, parse_qualifier, set_qualifier
from .service import JournalService
from .store import EntryStore, LocalEntryStore
from .uploads import ImageUploader

__all__ = [
    "EntryPage",
    "EntryStore",
    "ImageUploader",
    "JournalEntry",
    "JournalService",
    "LocalEntryStore",
    "build_qualifiers",
    "format_qualifier",
    "get_qualifier",
    "parse_qualifier",
    "set_qualifier",
]
