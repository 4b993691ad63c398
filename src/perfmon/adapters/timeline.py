"""In-process performance timeline.

Plays the role a browser's PerformanceObserver plays for a page: producers
(request handlers, a RUM ingestion endpoint, tests) record entries, and
subscribed observers receive them in batches.
"""

import logging
from collections.abc import Callable, Sequence
from typing import Any

from perfmon.core.entries import NavigationEntry
from perfmon.core.errors import ObserverUnavailableError
from perfmon.core.ports import EntryCallback

logger = logging.getLogger(__name__)

ALL_ENTRY_TYPES = frozenset(
    {
        "paint",
        "largest-contentful-paint",
        "layout-shift",
        "first-input",
        "resource",
        "navigation",
    }
)


class PerformanceTimeline:
    """PerformanceSourcePort implementation driven by explicit records.

    Args:
        supported_entry_types: Entry types observers may subscribe to.
            Subscribing to anything else raises ObserverUnavailableError.
    """

    def __init__(self, supported_entry_types: frozenset[str] = ALL_ENTRY_TYPES) -> None:
        self._supported = supported_entry_types
        self._subscribers: dict[str, list[EntryCallback]] = {}
        self._load_callbacks: list[Callable[[], None]] = []
        self._loaded = False
        self._navigation: NavigationEntry | None = None

    def observe(self, entry_type: str, callback: EntryCallback) -> Callable[[], None]:
        """Subscribe callback to entries of entry_type."""
        if entry_type not in self._supported:
            raise ObserverUnavailableError(entry_type)
        callbacks = self._subscribers.setdefault(entry_type, [])
        callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe

    def record(self, entry_type: str, entries: Sequence[Any]) -> None:
        """Deliver one batch of entries to every subscriber of entry_type.

        A failing subscriber is logged and does not affect the others.
        """
        if not entries:
            return
        for callback in list(self._subscribers.get(entry_type, [])):
            try:
                callback(entries)
            except Exception:
                logger.exception(
                    "Performance observer callback failed",
                    extra={"entry_type": entry_type},
                )

    def set_navigation_entry(self, entry: NavigationEntry) -> None:
        """Store the navigation timing record for the current load."""
        self._navigation = entry

    def navigation_entry(self) -> NavigationEntry | None:
        return self._navigation

    def on_load(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Run callback on load; immediately if load already fired."""
        if self._loaded:
            callback()
            return lambda: None
        self._load_callbacks.append(callback)

        def cancel() -> None:
            if callback in self._load_callbacks:
                self._load_callbacks.remove(callback)

        return cancel

    def fire_load(self) -> None:
        """Signal that loading finished. Later calls are no-ops."""
        if self._loaded:
            return
        self._loaded = True
        callbacks, self._load_callbacks = self._load_callbacks, []
        for callback in callbacks:
            callback()
