"""Bounded FIFO buffer for metrics awaiting delivery."""

from collections import deque
from collections.abc import Iterable

from perfmon.core.models import Metric


class BatchQueue:
    """In-memory metric queue with ring-buffer eviction.

    All operations are synchronous, so under asyncio's run-to-completion
    scheduling ``take_all`` cannot interleave with ``append``.

    Args:
        max_size: Maximum number of queued metrics. When exceeded, the
            oldest metrics are evicted.
    """

    def __init__(self, max_size: int) -> None:
        self._max_size = max_size
        self._items: deque[Metric] = deque()

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    @property
    def max_size(self) -> int:
        return self._max_size

    def append(self, metric: Metric) -> int:
        """Append a metric at the back.

        Returns:
            Number of metrics evicted to stay within max_size.
        """
        self._items.append(metric)
        return self._evict()

    def requeue_front(self, batch: Iterable[Metric]) -> int:
        """Put a failed batch back at the front, keeping its order.

        Returns:
            Number of metrics evicted to stay within max_size.
        """
        self._items.extendleft(reversed(list(batch)))
        return self._evict()

    def take_all(self) -> list[Metric]:
        """Remove and return every queued metric in FIFO order."""
        batch = list(self._items)
        self._items.clear()
        return batch

    def snapshot(self) -> list[Metric]:
        """Return the queued metrics without removing them."""
        return list(self._items)

    def _evict(self) -> int:
        evicted = 0
        while len(self._items) > self._max_size:
            self._items.popleft()
            evicted += 1
        return evicted
