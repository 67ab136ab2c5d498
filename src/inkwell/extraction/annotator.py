"""Locate low-confidence spans in extracted text.

The extraction prompt asks the model to wrap words it is unsure of in square
brackets. Each ``[...]`` span becomes an ``ErrorRange`` over the original
text, brackets included.
"""

from __future__ import annotations

import re

from .models import ErrorRange

# Lazy match: the first "]" after a "[" closes the span. "." does not cross
# newlines, so an unclosed "[" is skipped and scanning resumes after it.
_UNCERTAIN_SPAN_RE = re.compile(r"\[(.*?)\]")


def annotate(text: str) -> list[ErrorRange]:
    """Return non-overlapping ``[start, end)`` ranges of bracketed spans, left to right."""
    if not text:
        return []
    return [ErrorRange(m.start(), m.end()) for m in _UNCERTAIN_SPAN_RE.finditer(text)]
