"""Batch text extraction, uncertainty annotation, and dual-view editing.

Pages are extracted one at a time through a pluggable adapter, joined into
page-labeled combined text, and edited through ``DualViewReconciler``.
"""

from .adapter import LiteLLMVisionAdapter, TextExtractionAdapter
from .annotator import annotate
from .batch import BatchExtractor
from .models import (
    AdapterResponse,
    BatchResult,
    BatchState,
    ErrorRange,
    ExtractionResult,
    join_pages,
)
from .reconciler import DualViewReconciler, EditorView

__all__ = [
    "AdapterResponse",
    "BatchExtractor",
    "BatchResult",
    "BatchState",
    "DualViewReconciler",
    "EditorView",
    "ErrorRange",
    "ExtractionResult",
    "LiteLLMVisionAdapter",
    "TextExtractionAdapter",
    "annotate",
    "join_pages",
]
