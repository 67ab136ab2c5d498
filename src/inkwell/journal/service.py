"""Journal service: the save path from captured pages to a committed entry.

Typical flow::

    service = JournalService.from_config(config)
    entry = await service.start_entry(user_id, captured_pages)          # images only
    batch = await service.extract(user_id, entry.id, adapter)            # in memory
    reconciler = DualViewReconciler(batch)
    ...                                                                  # user edits
    await service.save_session(user_id, entry.id, reconciler)            # commit text

Nothing between ``extract`` and ``save_session`` touches the store; leaving
the session early leaves the entry exactly as ``start_entry`` wrote it.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime
from typing import TYPE_CHECKING

from loguru import logger

from inkwell.core.exceptions import InkwellError, ValidationError
from inkwell.core.storage import LocalStorage, StorageKeyError
from inkwell.extraction.batch import BatchExtractor
from inkwell.imaging.compression import ImageCompressor
from inkwell.imaging.tiers import CompressionTier, tier_table_from_config

from .models import JournalEntry
from .store import EntryStore, LocalEntryStore, check_user_id, validate_changes
from .uploads import ImageUploader

if TYPE_CHECKING:
    from inkwell.core.config import Config
    from inkwell.core.events import EventBus
    from inkwell.extraction.adapter import TextExtractionAdapter
    from inkwell.extraction.models import BatchResult
    from inkwell.extraction.reconciler import DualViewReconciler


def _require_text(value: str | None, what: str) -> str:
    if value is None or not value.strip() or value.strip() == "<p></p>":
        raise ValidationError(f"Please provide {what} for the entry.")
    return value


class JournalService:
    def __init__(
        self,
        store: EntryStore,
        uploader: ImageUploader,
        compressor: ImageCompressor | None = None,
        tier: str | CompressionTier = CompressionTier.MEDIUM,
    ) -> None:
        self.store = store
        self.uploader = uploader
        self.compressor = compressor or ImageCompressor()
        self.tier = CompressionTier.parse(tier)

    @classmethod
    def from_config(cls, config: Config) -> JournalService:
        """Wire a store, uploader, and compressor from *config*."""
        storage = LocalStorage(base_path=config.get_storage_dir())
        return cls(
            store=LocalEntryStore(storage),
            uploader=ImageUploader(storage),
            compressor=ImageCompressor(tier_table_from_config(config)),
            tier=config.get("compression.default_tier", CompressionTier.MEDIUM),
        )

    async def _upload_pages(self, user_id: str, images: Sequence[str]) -> list[str]:
        """Compress and upload pages in order; undo partial uploads on failure."""
        references: list[str] = []
        try:
            for index, image in enumerate(images, start=1):
                compressed = self.compressor.compress(image, self.tier)
                logger.info(
                    f"Uploading page {index} of {len(images)} "
                    f"({compressed.original_size_kb:.0f}KB -> {compressed.compressed_size_kb:.0f}KB)"
                )
                references.append(await self.uploader.upload(compressed.data_url, user_id))
        except InkwellError:
            await self._discard(references)
            raise
        return references

    async def _discard(self, references: list[str]) -> None:
        for reference in references:
            await self.uploader.remove(reference)

    async def _create_with_pages(self, user_id: str, images: Sequence[str], **fields: object) -> JournalEntry:
        """Validate, upload, then create; uploads are removed if the entry is not committed."""
        check_user_id(user_id)
        validate_changes({key: value for key, value in fields.items() if value is not None})
        references = await self._upload_pages(user_id, images)
        try:
            return await self.store.create(user_id, images=references, **fields)
        except InkwellError:
            logger.warning(f"Entry not created; removing {len(references)} uploaded page(s)")
            await self._discard(references)
            raise

    async def start_entry(
        self,
        user_id: str,
        images: Sequence[str],
        *,
        title: str = "",
        entry_date: datetime | date | None = None,
    ) -> JournalEntry:
        """Create a partial entry holding the captured pages, ready for extraction."""
        if not images:
            raise ValidationError("At least one page image is required.")
        return await self._create_with_pages(user_id, images, title=title, entry_date=entry_date)

    async def process_and_save_entry(
        self,
        user_id: str,
        title: str,
        text: str,
        images: Sequence[str] = (),
        qualifiers: list[str] | None = None,
        entry_date: datetime | date | None = None,
    ) -> JournalEntry:
        """Validate, upload the pages, and create a complete entry in one go."""
        if not user_id:
            raise ValidationError("You must be signed in to save an entry.")
        _require_text(title, "a title")
        _require_text(text, "some content")
        return await self._create_with_pages(
            user_id,
            images,
            title=title,
            text=text,
            qualifiers=qualifiers or [],
            entry_date=entry_date,
        )

    async def extract(
        self,
        user_id: str,
        entry_id: str,
        adapter: TextExtractionAdapter,
        bus: EventBus | None = None,
    ) -> BatchResult:
        """Run a batch over the entry's stored pages. Writes nothing."""
        extractor = BatchExtractor(adapter, bus=bus)
        return await extractor.process_entry(self.store, user_id, entry_id, load_source=self.uploader.load)

    async def save_session(
        self,
        user_id: str,
        entry_id: str,
        reconciler: DualViewReconciler,
        *,
        title: str | None = None,
        qualifiers: list[str] | None = None,
    ) -> JournalEntry:
        """Commit the session's combined text (plus optional title/qualifiers) in one update."""
        changes: dict[str, object] = {"text": _require_text(reconciler.combined_text, "some content")}
        if title is not None:
            changes["title"] = title
        if qualifiers is not None:
            changes["qualifiers"] = qualifiers
        return await self.store.update(user_id, entry_id, **changes)

    async def delete_entry(self, user_id: str, entry_id: str) -> None:
        """Delete an entry and the page images it references."""
        entry = await self.store.get(user_id, entry_id)
        await self.store.delete(user_id, entry_id)
        for reference in entry.images:
            try:
                await self.uploader.remove(reference)
            except StorageKeyError as e:
                logger.warning(f"Not removing image outside local storage: {e}")
