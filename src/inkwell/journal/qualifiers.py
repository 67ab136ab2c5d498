"""Helpers for ``"Key: Value"`` qualifiers.

The store keeps qualifiers as an ordered list of free-form strings and does
not enforce unique keys. Callers that want at most one ``Tone:`` (and so on)
go through ``set_qualifier``.
"""

from __future__ import annotations

SEPARATOR = ": "

TONE = "Tone"
TOPIC = "Topic"
MOOD = "Mood"
CONTEXT = "Context"


def format_qualifier(key: str, value: str) -> str:
    return f"{key.strip()}{SEPARATOR}{value.strip()}"


def parse_qualifier(qualifier: str) -> tuple[str, str] | None:
    """Split ``"Key: Value"``; returns None for bare tags like ``"Work"``."""
    key, sep, value = qualifier.partition(":")
    if not sep or not key.strip():
        return None
    return key.strip(), value.strip()


def _same_key(qualifier: str, key: str) -> bool:
    parsed = parse_qualifier(qualifier)
    return parsed is not None and parsed[0].lower() == key.strip().lower()


def get_qualifier(qualifiers: list[str], key: str) -> str | None:
    """Value of the first qualifier with *key* (case-insensitive)."""
    for qualifier in qualifiers:
        if _same_key(qualifier, key):
            return parse_qualifier(qualifier)[1]
    return None


def set_qualifier(qualifiers: list[str], key: str, value: str | None) -> list[str]:
    """Return a copy with exactly one *key* qualifier set to *value*.

    The new qualifier takes the position of the first existing one with the
    same key, or goes at the end. An empty *value* removes the key.
    """
    result: list[str] = []
    placed = False
    for qualifier in qualifiers:
        if not _same_key(qualifier, key):
            result.append(qualifier)
        elif value and not placed:
            result.append(format_qualifier(key, value))
            placed = True
    if value and not placed:
        result.append(format_qualifier(key, value))
    return result


def build_qualifiers(
    tone: str | None = None,
    topic: str | None = None,
    mood: str | None = None,
    context: str | None = None,
) -> list[str]:
    """Qualifiers for the standard keys, skipping the ones left empty."""
    pairs = [(TONE, tone), (TOPIC, topic), (MOOD, mood), (CONTEXT, context)]
    return [format_qualifier(key, value) for key, value in pairs if value and value.strip()]
