"""Observers translating runtime performance entries into metrics."""

from collections.abc import Callable

from perfmon.core.ports import MetricRecorderPort, PerformanceSourcePort
from perfmon.observers.base import Observer
from perfmon.observers.navigation import NavigationTimingObserver
from perfmon.observers.resources import ResourceTimingObserver
from perfmon.observers.web_vitals import (
    FirstInputObserver,
    LargestContentfulPaintObserver,
    LayoutShiftObserver,
    PaintObserver,
)


def default_observers(navigation_delay: float = 1.0) -> list[Observer]:
    """Return one instance of every built-in observer."""
    return [
        PaintObserver(),
        LargestContentfulPaintObserver(),
        LayoutShiftObserver(),
        FirstInputObserver(),
        NavigationTimingObserver(delay=navigation_delay),
        ResourceTimingObserver(),
    ]


def install_observers(
    source: PerformanceSourcePort,
    recorder: MetricRecorderPort,
    observers: list[Observer],
) -> list[Callable[[], None]]:
    """Install observers, skipping any the source cannot support.

    Returns:
        Unsubscribe callables for the observers that were installed.
    """
    unsubscribers = []
    for observer in observers:
        unsubscribe = observer.install(source, recorder)
        if unsubscribe is not None:
            unsubscribers.append(unsubscribe)
    return unsubscribers


def install_default_observers(
    source: PerformanceSourcePort,
    recorder: MetricRecorderPort,
    navigation_delay: float = 1.0,
) -> list[Callable[[], None]]:
    """Install every built-in observer on source."""
    return install_observers(source, recorder, default_observers(navigation_delay))


__all__ = [
    "FirstInputObserver",
    "LargestContentfulPaintObserver",
    "LayoutShiftObserver",
    "NavigationTimingObserver",
    "Observer",
    "PaintObserver",
    "ResourceTimingObserver",
    "default_observers",
    "install_default_observers",
    "install_observers",
]
