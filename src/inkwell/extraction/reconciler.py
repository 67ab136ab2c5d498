"""Per-page and combined editing views over one ``BatchResult``.

Edits flow one way. Editing a page rewrites that page's text and rebuilds the
combined text from every successful page under its original label. Editing
the combined text replaces only the combined text; the per-page texts keep
their pre-edit values, so switching back to the per-page view shows the text
as it was before the combined edit.

Observers receive ``(combined_text, results)`` after every edit, either as a
direct subscriber or through ``TEXT_CHANGED`` events on the bus.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import StrEnum

from inkwell.core.events import EventBus, text_changed_event, view_changed_event

from .models import BatchResult, ErrorRange, ExtractionResult, join_pages

TextObserver = Callable[[str, list[ExtractionResult]], None]


class EditorView(StrEnum):
    PER_PAGE = "per_page"
    COMBINED = "combined"


class DualViewReconciler:
    """Editing state for one extraction session.

    Example::

        reconciler = DualViewReconciler(batch)
        reconciler.subscribe(lambda text, results: autosave(text))
        reconciler.edit_page(0, "Dear diary, ...")
        reconciler.switch_view(EditorView.COMBINED)
    """

    def __init__(self, batch: BatchResult, bus: EventBus | None = None):
        self.batch = batch
        self.bus = bus or EventBus()
        self.view = EditorView.PER_PAGE
        self.current_index = 0
        self._observers: list[TextObserver] = []

    # -- State --------------------------------------------------------------

    @property
    def combined_text(self) -> str:
        return self.batch.combined_text

    @property
    def results(self) -> list[ExtractionResult]:
        return self.batch.results

    @property
    def page_count(self) -> int:
        return len(self.batch.results)

    @property
    def current_result(self) -> ExtractionResult | None:
        if not self.batch.results:
            return None
        return self.batch.results[self.current_index]

    @property
    def current_page_text(self) -> str:
        """Text shown in the per-page editor; failed pages start empty."""
        result = self.current_result
        if result is None:
            return ""
        return result.extracted_text

    @property
    def current_error_ranges(self) -> list[ErrorRange]:
        result = self.current_result
        if result is None or not result.success:
            return []
        return list(result.error_ranges)

    @property
    def visible_text(self) -> str:
        """Projection of the current state for the active view."""
        if self.view is EditorView.COMBINED:
            return self.combined_text
        return self.current_page_text

    # -- Observers ----------------------------------------------------------

    def subscribe(self, observer: TextObserver) -> None:
        self._observers.append(observer)

    def unsubscribe(self, observer: TextObserver) -> None:
        try:
            self._observers.remove(observer)
        except ValueError:
            pass

    def _notify(self) -> None:
        combined, results = self.batch.combined_text, self.batch.results
        for observer in list(self._observers):
            observer(combined, results)
        self.bus.emit_sync(text_changed_event(combined, results, self.view.value))

    # -- Edits --------------------------------------------------------------

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.batch.results):
            raise IndexError(f"Page index {index} out of range for {len(self.batch.results)} pages")

    def edit_page(self, index: int, text: str) -> str:
        """Replace page *index* (0-based) and rebuild the combined text.

        A failed page accepts manually typed text but stays failed, so it
        still does not contribute to the combined text.
        """
        self._check_index(index)
        self.batch.results[index].extracted_text = text
        self.batch.combined_text = join_pages(self.batch.results)
        self._notify()
        return self.batch.combined_text

    def edit_current_page(self, text: str) -> str:
        return self.edit_page(self.current_index, text)

    def edit_combined(self, text: str) -> str:
        """Replace the combined text only; per-page texts are left as they were."""
        self.batch.combined_text = text
        self._notify()
        return text

    def edit(self, text: str) -> str:
        """Apply an edit to whichever view is active."""
        if self.view is EditorView.COMBINED:
            return self.edit_combined(text)
        return self.edit_current_page(text)

    # -- Navigation (pure projections) ----------------------------------------

    def switch_view(self, view: EditorView | str) -> EditorView:
        self.view = EditorView(view)
        self.bus.emit_sync(view_changed_event(self.view.value))
        return self.view

    def go_to_page(self, index: int) -> ExtractionResult:
        self._check_index(index)
        self.current_index = index
        return self.batch.results[index]

    def next_page(self) -> ExtractionResult | None:
        if self.current_index + 1 >= len(self.batch.results):
            return None
        return self.go_to_page(self.current_index + 1)

    def previous_page(self) -> ExtractionResult | None:
        if self.current_index == 0 or not self.batch.results:
            return None
        return self.go_to_page(self.current_index - 1)
