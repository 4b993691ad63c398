"""In-memory metric sink."""

from collections.abc import AsyncIterable, Sequence

from perfmon.core.models import Metric


class InMemoryMetricSink:
    """In-memory implementation of MetricSinkPort and MetricReaderPort.

    Keeps every delivered batch. Suitable for testing and low-volume
    applications where persistence is not required.
    """

    def __init__(self) -> None:
        self._batches: list[list[Metric]] = []

    @property
    def batches(self) -> list[list[Metric]]:
        """Delivered batches, in delivery order."""
        return [list(batch) for batch in self._batches]

    @property
    def metrics(self) -> list[Metric]:
        """All delivered metrics, in delivery order."""
        return [m for batch in self._batches for m in batch]

    async def insert_many(self, metrics: Sequence[Metric]) -> None:
        """Store one batch."""
        self._batches.append(list(metrics))

    async def read_since(self, timestamp: str) -> AsyncIterable[Metric]:
        """Read metrics at or after the timestamp, newest first."""
        matching = [m for m in self.metrics if m.timestamp >= timestamp]
        for metric in sorted(matching, key=lambda m: m.timestamp, reverse=True):
            yield metric

    def clear(self) -> None:
        """Forget all delivered batches."""
        self._batches.clear()
