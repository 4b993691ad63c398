"""Base class for performance signal observers."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import Any, ClassVar

from perfmon.core.ports import MetricRecorderPort, PerformanceSourcePort

logger = logging.getLogger(__name__)


class Observer(ABC):
    """Translates entries of one performance entry type into metrics."""

    entry_type: ClassVar[str]

    def install(
        self, source: PerformanceSourcePort, recorder: MetricRecorderPort
    ) -> Callable[[], None] | None:
        """Subscribe to the source.

        An unavailable entry type is logged as a warning, never raised.

        Returns:
            Callable removing the subscription, or None if unavailable.
        """
        try:
            return source.observe(
                self.entry_type, lambda entries: self.handle(entries, recorder)
            )
        except Exception as e:
            logger.warning(
                "Failed to observe %s",
                self.entry_type,
                extra={"entry_type": self.entry_type, "error": str(e)},
            )
            return None

    @abstractmethod
    def handle(self, entries: Sequence[Any], recorder: MetricRecorderPort) -> None:
        """Process one callback's worth of entries."""
