"""Navigation timing observer."""

import logging
from collections.abc import Callable, Sequence
from typing import Any

from perfmon.core.navigation import derive_navigation_timings
from perfmon.core.ports import MetricRecorderPort, PerformanceSourcePort
from perfmon.observers.base import Observer

logger = logging.getLogger(__name__)


class NavigationTimingObserver(Observer):
    """Reads the navigation record once, shortly after load.

    The delay gives the runtime time to finalize load-event timings.

    Args:
        delay: Seconds to wait after the load event.
    """

    entry_type = "navigation"

    def __init__(self, delay: float = 1.0) -> None:
        self._delay = delay

    def install(
        self, source: PerformanceSourcePort, recorder: MetricRecorderPort
    ) -> Callable[[], None] | None:
        try:
            return source.on_load(
                lambda: recorder.schedule_later(
                    self._delay, lambda: self.collect(source, recorder)
                )
            )
        except Exception as e:
            logger.warning(
                "Failed to observe navigation",
                extra={"entry_type": self.entry_type, "error": str(e)},
            )
            return None

    def collect(
        self, source: PerformanceSourcePort, recorder: MetricRecorderPort
    ) -> None:
        """Emit one navigation metric per derived duration."""
        entry = source.navigation_entry()
        if entry is None:
            logger.debug("No navigation timing record available")
            return
        self.handle([entry], recorder)

    def handle(self, entries: Sequence[Any], recorder: MetricRecorderPort) -> None:
        for entry in entries:
            for name, value in derive_navigation_timings(entry).items():
                recorder.record(name, value, "navigation")
