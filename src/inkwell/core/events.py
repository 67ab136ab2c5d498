"""Event bus for observers of extraction sessions.

A batch publishes its state changes and per-page outcomes; a reconciler
publishes text edits and view switches. Views (a CLI, a UI layer, a test)
subscribe by name without the engine knowing who listens.

Build events with the helpers below so every publisher uses the same
payload keys::

    from inkwell.core.events import EventBus, TEXT_CHANGED

    bus = EventBus()
    bus.on(TEXT_CHANGED, lambda event: print(event.payload["combined_text"]))
"""

from __future__ import annotations

import asyncio
import inspect
from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from time import time
from typing import Any

from loguru import logger

BATCH_STATE_CHANGED = "extraction.batch.state"
PAGE_EXTRACTED = "extraction.page.done"
TEXT_CHANGED = "extraction.text.changed"
VIEW_CHANGED = "extraction.view.changed"

WILDCARD = "*"

Hook = Callable[["Event"], None] | Callable[["Event"], Awaitable[None]]


@dataclass(frozen=True)
class Event:
    name: str
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time)
    source: str = ""


def batch_state_event(previous: str, state: str, error: str | None = None) -> Event:
    return Event(BATCH_STATE_CHANGED, {"previous": previous, "state": state, "error": error}, source="batch")


def page_event(page: int, total: int, success: bool, error: str | None = None) -> Event:
    """Outcome of one page; ``page`` is 1-based."""
    return Event(
        PAGE_EXTRACTED,
        {"page": page, "total": total, "success": success, "error": error},
        source="batch",
    )


def text_changed_event(combined_text: str, results: list[Any], view: str) -> Event:
    return Event(
        TEXT_CHANGED,
        {"combined_text": combined_text, "results": results, "view": view},
        source="reconciler",
    )


def view_changed_event(view: str) -> Event:
    return Event(VIEW_CHANGED, {"view": view}, source="reconciler")


class EventBus:
    """Named pub/sub with sync and async hooks.

    Hooks run in registration order, name-specific hooks before wildcard
    ones. A hook that raises is logged and skipped.
    """

    def __init__(self) -> None:
        self._hooks: dict[str, list[Hook]] = defaultdict(list)
        self._pending: set[asyncio.Task] = set()

    def on(self, event_name: str, hook: Hook) -> None:
        self._hooks[event_name].append(hook)

    def on_all(self, hook: Hook) -> None:
        self._hooks[WILDCARD].append(hook)

    def off(self, event_name: str, hook: Hook) -> None:
        hooks = self._hooks.get(event_name, [])
        if hook in hooks:
            hooks.remove(hook)

    def _subscribers(self, event_name: str) -> list[Hook]:
        return [*self._hooks.get(event_name, []), *self._hooks.get(WILDCARD, [])]

    @staticmethod
    def _report(event: Event, exc: Exception) -> None:
        logger.warning(f"Event hook failed for {event.name}: {exc}")

    async def emit(self, event: Event) -> None:
        """Deliver *event*, awaiting async hooks one after another."""
        for hook in self._subscribers(event.name):
            try:
                outcome = hook(event)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as exc:
                self._report(event, exc)

    def emit_sync(self, event: Event) -> None:
        """Deliver *event* from synchronous code.

        Async hooks are scheduled on the running loop; with no loop running
        they are skipped.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        for hook in self._subscribers(event.name):
            if inspect.iscoroutinefunction(hook):
                if loop is None:
                    logger.debug(f"No running loop; skipping async hook for {event.name}")
                    continue
                task = loop.create_task(self._run_async(hook, event))
                self._pending.add(task)
                task.add_done_callback(self._pending.discard)
                continue
            try:
                hook(event)
            except Exception as exc:
                self._report(event, exc)

    async def _run_async(self, hook: Hook, event: Event) -> None:
        try:
            await hook(event)
        except Exception as exc:
            self._report(event, exc)
