"""Data models for one extraction session.

These objects are ephemeral: they live in memory for the duration of an
editing session and only reach the entry store through an explicit save.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

DEFAULT_FAILURE_REASON = "Extraction failed"


@dataclass(frozen=True)
class ErrorRange:
    """Half-open ``[start, end)`` span of low-confidence text."""

    start: int
    end: int

    def to_dict(self) -> dict[str, int]:
        return {"start": self.start, "end": self.end}


@dataclass
class AdapterResponse:
    """What a text-extraction adapter returns for one image.

    Failures are values: ``success=False`` with an ``error`` message.
    """

    success: bool
    text: str | None = None
    error_ranges: list[ErrorRange] = field(default_factory=list)
    error: str | None = None

    @classmethod
    def failure(cls, error: str) -> AdapterResponse:
        return cls(success=False, error=error)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AdapterResponse:
        """Build from a JSON-style payload (``errorRanges`` or ``error_ranges``)."""
        raw_ranges = data.get("error_ranges", data.get("errorRanges")) or []
        return cls(
            success=bool(data.get("success")),
            text=data.get("text"),
            error_ranges=[ErrorRange(int(r["start"]), int(r["end"])) for r in raw_ranges],
            error=data.get("error"),
        )


@dataclass
class ExtractionResult:
    """Outcome for one page, at the same position as its input image."""

    image_ref: str
    extracted_text: str
    success: bool
    page_number: int
    error_ranges: list[ErrorRange] = field(default_factory=list)
    error: str | None = None

    @property
    def label(self) -> str:
        return f"[Page {self.page_number}]"


class BatchState(StrEnum):
    UNSTARTED = "unstarted"
    LOADING_SOURCE_IMAGES = "loading_source_images"
    EXTRACTING = "extracting"
    ALL_FAILED = "all_failed"
    PARTIAL_SUCCESS = "partial_success"
    ALL_SUCCEEDED = "all_succeeded"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = {BatchState.ALL_FAILED, BatchState.PARTIAL_SUCCESS, BatchState.ALL_SUCCEEDED}

# Valid transitions: from_state -> set of allowed to_states
BATCH_TRANSITIONS: dict[BatchState, set[BatchState]] = {
    BatchState.UNSTARTED: {BatchState.LOADING_SOURCE_IMAGES},
    BatchState.LOADING_SOURCE_IMAGES: {BatchState.EXTRACTING, BatchState.ALL_FAILED},
    BatchState.EXTRACTING: set(_TERMINAL_STATES),
    BatchState.ALL_FAILED: set(),
    BatchState.PARTIAL_SUCCESS: set(),
    BatchState.ALL_SUCCEEDED: set(),
}


@dataclass
class BatchResult:
    """All page results, in capture order, plus the page-labeled combined text."""

    results: list[ExtractionResult] = field(default_factory=list)
    combined_text: str = ""
    state: BatchState = BatchState.UNSTARTED
    error: str | None = None

    @property
    def succeeded(self) -> list[ExtractionResult]:
        return [r for r in self.results if r.success]

    @property
    def failed_pages(self) -> list[int]:
        """1-based page numbers that need a failure badge."""
        return [r.page_number for r in self.results if not r.success]

    @property
    def manual_entry_available(self) -> bool:
        """Whether the caller should offer typing the entry by hand instead."""
        return self.state is BatchState.ALL_FAILED


def page_block(result: ExtractionResult) -> str:
    """Label a page's text with its original 1-based position."""
    return f"{result.label}\n{result.extracted_text}"


def join_pages(results: list[ExtractionResult]) -> str:
    """Rebuild the combined text from the successful pages, in order."""
    return "\n\n".join(page_block(r) for r in results if r.success).rstrip()
