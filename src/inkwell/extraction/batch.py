"""Batch extraction over an ordered list of page images.

Pages are sent to the adapter strictly one at a time, in capture order.
Each page ends up as an ``ExtractionResult`` at its original position; a
failed page is recorded as a failure and simply left out of the combined
text. Nothing raised by an adapter escapes the batch, and nothing is written
to the entry store here: a session only becomes durable through an explicit
save (see ``inkwell.journal.service``).

State machine::

    UNSTARTED -> LOADING_SOURCE_IMAGES -> EXTRACTING -> ALL_FAILED
                                  |                  -> PARTIAL_SUCCESS
                                  +-> ALL_FAILED     -> ALL_SUCCEEDED
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from typing import TYPE_CHECKING

from loguru import logger

from inkwell.core.events import EventBus, batch_state_event, page_event
from inkwell.core.exceptions import InkwellError

from .adapter import TextExtractionAdapter
from .annotator import annotate
from .models import (
    BATCH_TRANSITIONS,
    DEFAULT_FAILURE_REASON,
    AdapterResponse,
    BatchResult,
    BatchState,
    ExtractionResult,
)

if TYPE_CHECKING:
    from inkwell.journal.store import EntryStore

# Turns a stored image reference into submittable image data.
SourceLoader = Callable[[str], Awaitable[str]]


class BatchExtractor:
    """Drives a ``TextExtractionAdapter`` over the pages of one entry.

    A re-run (the only form of retry) is just another call to
    ``process_images``; each call starts from ``UNSTARTED``.
    """

    def __init__(self, adapter: TextExtractionAdapter, bus: EventBus | None = None):
        self.adapter = adapter
        self.bus = bus or EventBus()
        self.state = BatchState.UNSTARTED

    async def _transition(self, batch: BatchResult, target: BatchState) -> None:
        if target not in BATCH_TRANSITIONS[self.state]:
            raise RuntimeError(f"Invalid batch transition: {self.state.value} -> {target.value}")
        previous, self.state = self.state, target
        batch.state = target
        await self.bus.emit(batch_state_event(previous.value, target.value, batch.error))

    async def _extract_page(self, page_number: int, image_ref: str, image_data: str) -> ExtractionResult:
        try:
            response = await self.adapter.submit(image_data)
        except Exception as e:
            logger.warning(f"Adapter raised on page {page_number}: {e}")
            response = AdapterResponse.failure(str(e) or "Processing error")

        if response.success and response.text:
            return ExtractionResult(
                image_ref=image_ref,
                extracted_text=response.text,
                success=True,
                page_number=page_number,
                error_ranges=annotate(response.text),
            )

        reason = response.error or DEFAULT_FAILURE_REASON
        logger.warning(f"Extraction failed for page {page_number}: {reason}")
        return ExtractionResult(
            image_ref=image_ref,
            extracted_text="",
            success=False,
            page_number=page_number,
            error=reason,
        )

    async def _extract(self, batch: BatchResult, pages: Sequence[tuple[str, str]]) -> BatchResult:
        await self._transition(batch, BatchState.EXTRACTING)

        total = len(pages)
        combined = ""
        for index, (image_ref, image_data) in enumerate(pages, start=1):
            logger.info(f"Processing image {index} of {total}")
            result = await self._extract_page(index, image_ref, image_data)
            batch.results.append(result)
            if result.success:
                combined += f"{result.label}\n{result.extracted_text}\n\n"
            await self.bus.emit(page_event(index, total, result.success, result.error))

        batch.combined_text = combined.rstrip()

        succeeded = len(batch.succeeded)
        if succeeded == 0:
            batch.error = batch.error or "No text could be extracted from any page"
            final = BatchState.ALL_FAILED
        elif succeeded < total:
            final = BatchState.PARTIAL_SUCCESS
        else:
            final = BatchState.ALL_SUCCEEDED
        logger.info(f"Batch finished: {succeeded}/{total} pages extracted ({final.value})")
        await self._transition(batch, final)
        return batch

    async def process_images(self, images: Sequence[str]) -> BatchResult:
        """Extract text from *images* (data URLs) in order.

        Returns:
            BatchResult with one result per image, in input order.
        """
        self.state = BatchState.UNSTARTED
        batch = BatchResult()
        await self._transition(batch, BatchState.LOADING_SOURCE_IMAGES)
        return await self._extract(batch, [(image, image) for image in images])

    async def process_entry(
        self,
        store: EntryStore,
        user_id: str,
        entry_id: str,
        load_source: SourceLoader | None = None,
    ) -> BatchResult:
        """Load a stored entry's page images and extract them.

        Args:
            store: Entry store holding the entry.
            user_id: Owner of the entry.
            entry_id: Entry whose ``images`` are the pages, in order.
            load_source: Resolves a stored image reference to image data.
                References that are already data URLs are used as-is.

        A missing entry, an entry without images, or an unreadable image ends
        the batch in ``ALL_FAILED`` with ``error`` set and no results.
        """
        self.state = BatchState.UNSTARTED
        batch = BatchResult()
        await self._transition(batch, BatchState.LOADING_SOURCE_IMAGES)

        try:
            entry = await store.get(user_id, entry_id)
            if not entry.images:
                raise InkwellError("Entry contains no images.")
            pages = []
            for ref in entry.images:
                data = ref if ref.startswith("data:") or load_source is None else await load_source(ref)
                pages.append((ref, data))
        except (InkwellError, KeyError) as e:
            logger.error(f"Error loading images for entry {entry_id}: {e}")
            batch.error = f"Error loading images: {e}"
            await self._transition(batch, BatchState.ALL_FAILED)
            return batch

        return await self._extract(batch, pages)
