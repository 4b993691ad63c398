"""Port interfaces for sinks, beacons and performance sources.

These protocols define the contracts that adapters must implement.
The pipeline depends only on these interfaces, not concrete implementations.
"""

from collections.abc import AsyncIterable, Callable, Sequence
from typing import Any, Protocol, runtime_checkable

from perfmon.core.entries import NavigationEntry
from perfmon.core.models import Metric, MetricExtra, MetricKind

EntryCallback = Callable[[Sequence[Any]], None]


@runtime_checkable
class MetricSinkPort(Protocol):
    """Port for batch delivery to the remote metrics store.

    Examples: InMemoryMetricSink, SQLiteMetricSink, RestMetricSink.
    """

    async def insert_many(self, metrics: Sequence[Metric]) -> None:
        """Write a whole batch in one operation.

        Raises:
            Exception: Any failure; the caller requeues the whole batch.
        """
        ...


@runtime_checkable
class MetricReaderPort(Protocol):
    """Port for the read side of the metrics store."""

    def read_since(self, timestamp: str) -> AsyncIterable[Metric]:
        """Read metrics captured at or after the given ISO-8601 timestamp.

        Returns:
            AsyncIterable of Metric objects, newest first.
        """
        ...


@runtime_checkable
class BeaconPort(Protocol):
    """Port for fire-and-forget delivery at shutdown."""

    def send(self, url: str, body: str) -> bool:
        """Submit a payload without waiting for confirmation.

        Returns:
            True if the payload was handed off. Never raises.
        """
        ...


@runtime_checkable
class PerformanceSourcePort(Protocol):
    """Port for a runtime performance timeline."""

    def observe(self, entry_type: str, callback: EntryCallback) -> Callable[[], None]:
        """Subscribe to entries of one type.

        Returns:
            Callable that removes the subscription.

        Raises:
            ObserverUnavailableError: The entry type is not supported.
        """
        ...

    def on_load(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Run callback once the page (or application) has loaded.

        Returns:
            Callable that cancels the callback if load has not fired yet.
        """
        ...

    def navigation_entry(self) -> NavigationEntry | None:
        """Return the navigation timing record, if one exists."""
        ...


@runtime_checkable
class MetricRecorderPort(Protocol):
    """Port through which observers submit metrics."""

    def record(
        self,
        name: str,
        value: float,
        kind: MetricKind,
        extra: MetricExtra | None = None,
    ) -> Metric:
        """Build a Metric in the current capture context and enqueue it."""
        ...

    def schedule_later(self, delay: float, callback: Callable[[], None]) -> None:
        """Run callback after delay seconds."""
        ...
