"""Metrics collection pipeline: batch queue, delivery and lifecycle hooks."""

import asyncio
import atexit
import contextlib
import logging
from collections.abc import Awaitable, Callable, Coroutine, Mapping
from dataclasses import dataclass
from datetime import datetime
from types import TracebackType
from typing import Any

from perfmon.adapters.capture_context import CaptureContext, get_capture_context
from perfmon.core.config import PipelineConfig
from perfmon.core.encoding.rows import encode_batch
from perfmon.core.models import (
    ComponentRenderExtra,
    CustomExtra,
    Metric,
    MetricExtra,
    MetricKind,
    create_metric,
    utc_now,
)
from perfmon.core.ports import (
    BeaconPort,
    MetricReaderPort,
    MetricSinkPort,
    PerformanceSourcePort,
)
from perfmon.core.queue import BatchQueue
from perfmon.observers import install_default_observers

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class PerformanceReport:
    """Raw read-side report over the configured window.

    Attributes:
        since: ISO-8601 lower bound of the window.
        metrics: Metrics in the window, newest first.
    """

    since: str
    metrics: tuple[Metric, ...]

    @property
    def total_metrics(self) -> int:
        return len(self.metrics)


class MetricsPipeline:
    """Collects metrics and delivers them to a sink in batches.

    Metrics are queued in memory. A batch is delivered when the queue reaches
    ``batch_size``, when the flush timer fires, when visibility turns hidden,
    or on stop(). A failed or timed-out delivery puts the whole batch back
    at the front of the queue. At interpreter exit the remaining queue is
    handed to the beacon instead.

    Example:
        ```python
        sink = SQLiteMetricSink("metrics.db")
        async with MetricsPipeline(sink) as pipeline:
            pipeline.track_page_load_time(1234)
        ```

    Args:
        sink: Delivery target implementing MetricSinkPort.
        config: Pipeline configuration (default: PipelineConfig()).
        beacon: Fire-and-forget transport used by on_unload().
        context_provider: Returns the capture context for new metrics
            (default: the contextvar-backed capture context).
        sleep: Awaitable sleep used by timers (injectable for tests).
        clock: Returns the current aware datetime (injectable for tests).
    """

    def __init__(
        self,
        sink: MetricSinkPort,
        config: PipelineConfig | None = None,
        beacon: BeaconPort | None = None,
        context_provider: Callable[[], CaptureContext] | None = None,
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.config = config or PipelineConfig()
        self._sink = sink
        self._beacon = beacon
        self._context_provider = context_provider or get_capture_context
        self._sleep = sleep
        self._clock = clock
        self._queue = BatchQueue(self.config.max_queue_size)
        self._timer_task: asyncio.Task[None] | None = None
        self._pending: set[asyncio.Task[Any]] = set()
        self._scheduled: set[asyncio.Task[None]] = set()
        self._unsubscribers: list[Callable[[], None]] = []
        self._exit_hook_installed = False

    # --- Queue ---

    @property
    def queue_size(self) -> int:
        return len(self._queue)

    def queued(self) -> list[Metric]:
        """Return a copy of the queued metrics, oldest first."""
        return self._queue.snapshot()

    @property
    def running(self) -> bool:
        return self._timer_task is not None and not self._timer_task.done()

    def record(
        self,
        name: str,
        value: float,
        kind: MetricKind,
        extra: MetricExtra | None = None,
    ) -> Metric:
        """Build a Metric in the current capture context and enqueue it."""
        context = self._context_provider()
        metric = create_metric(
            name=name,
            value=value,
            kind=kind,
            page_url=context.page_url,
            user_agent=context.user_agent,
            user_id=context.user_id,
            extra=extra,
            now=self._clock(),
        )
        self.enqueue(metric)
        return metric

    def enqueue(self, metric: Metric) -> None:
        """Append a metric; reaching batch_size starts a delivery.

        The batch is taken from the queue synchronously, so metrics enqueued
        while it is being delivered go into the next batch. Without a running
        event loop the batch stays queued for the next flush.
        """
        self._log_eviction(self._queue.append(metric))
        if len(self._queue) < self.config.batch_size:
            return
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.debug(
                "No running event loop, deferring batch",
                extra={"queue_size": len(self._queue)},
            )
            return
        self.spawn(self._deliver(self._queue.take_all()))

    async def flush(self) -> None:
        """Deliver everything queued. No-op when the queue is empty."""
        if not self._queue:
            return
        await self._deliver(self._queue.take_all())

    async def _deliver(self, batch: list[Metric]) -> bool:
        try:
            async with asyncio.timeout(self.config.delivery_timeout):
                await self._sink.insert_many(batch)
        except asyncio.CancelledError:
            self._requeue(batch)
            raise
        except Exception:
            logger.exception(
                "Failed to deliver performance metrics",
                extra={"batch_size": len(batch)},
            )
            self._requeue(batch)
            return False
        logger.debug("Delivered performance metrics", extra={"batch_size": len(batch)})
        return True

    def _requeue(self, batch: list[Metric]) -> None:
        self._log_eviction(self._queue.requeue_front(batch))

    def _log_eviction(self, evicted: int) -> None:
        if evicted:
            logger.warning(
                "Metrics queue full, dropped oldest metrics",
                extra={"dropped": evicted, "max_queue_size": self._queue.max_size},
            )

    # --- Scheduling ---

    def spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        """Run a coroutine as a task that stop() waits for."""
        task = asyncio.get_running_loop().create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    def schedule_later(self, delay: float, callback: Callable[[], None]) -> None:
        """Run callback after delay seconds (immediately without a loop).

        Callbacks still waiting when stop() is called are cancelled.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            callback()
            return

        async def _later() -> None:
            await self._sleep(delay)
            callback()

        task = loop.create_task(_later())
        self._scheduled.add(task)
        task.add_done_callback(self._scheduled.discard)

    async def _run_timer(self) -> None:
        while True:
            await self._sleep(self.config.flush_interval)
            await self.flush()

    # --- Lifecycle ---

    async def start(
        self,
        source: PerformanceSourcePort | None = None,
        install_exit_hook: bool = False,
    ) -> None:
        """Arm the flush timer and optionally attach observers.

        Args:
            source: Performance source to install the default observers on.
            install_exit_hook: Register on_unload() with atexit.
        """
        if self.running:
            return
        self._timer_task = asyncio.get_running_loop().create_task(self._run_timer())
        if source is not None:
            self._unsubscribers = install_default_observers(
                source, self, self.config.navigation_delay
            )
        if install_exit_hook and not self._exit_hook_installed:
            atexit.register(self.on_unload)
            self._exit_hook_installed = True
        logger.debug("Metrics pipeline started")

    async def stop(self) -> None:
        """Disarm the timer, detach observers and flush what is left."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        if self._timer_task is not None:
            self._timer_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._timer_task
            self._timer_task = None
        for task in list(self._scheduled):
            task.cancel()
        # In-flight deliveries are bounded by delivery_timeout
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        await self.flush()
        if self._exit_hook_installed:
            atexit.unregister(self.on_unload)
            self._exit_hook_installed = False
        logger.debug("Metrics pipeline stopped")

    async def __aenter__(self) -> "MetricsPipeline":
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.stop()

    async def on_visibility_change(self, state: str) -> None:
        """Flush promptly when the client reports it is hidden."""
        if state == "hidden":
            await self.flush()

    def on_unload(self) -> bool:
        """Hand the whole queue to the beacon; no requeue is possible after.

        Returns:
            True if a non-empty payload was handed to the beacon.
        """
        if not self._queue:
            return False
        if self._beacon is None:
            logger.warning(
                "No beacon configured, metrics not sent at unload",
                extra={"queue_size": len(self._queue)},
            )
            return False
        try:
            body = encode_batch(self._queue.snapshot())
        except (TypeError, ValueError):
            logger.exception(
                "Failed to encode metrics for unload",
                extra={"queue_size": len(self._queue)},
            )
            return False
        self._queue.take_all()
        return self._beacon.send(self.config.beacon_url, body)

    # --- Public tracking API ---

    def track_custom_metric(
        self, name: str, value: float, extra: Mapping[str, Any] | None = None
    ) -> None:
        """Record a caller-defined metric. Never raises."""
        try:
            self.record(
                name, value, "custom", CustomExtra(extra) if extra is not None else None
            )
        except Exception:
            logger.exception(
                "Failed to track custom metric", extra={"metric_name": name}
            )

    def track_page_load_time(self, duration_ms: float) -> None:
        """Record a page_load_time timing metric. Never raises."""
        try:
            self.record("page_load_time", duration_ms, "timing")
        except Exception:
            logger.exception("Failed to track page load time")

    def track_component_render_time(
        self, component_name: str, duration_ms: float
    ) -> None:
        """Record a component_render_time metric. Never raises."""
        try:
            self.record(
                "component_render_time",
                duration_ms,
                "custom",
                ComponentRenderExtra(component_name=component_name),
            )
        except Exception:
            logger.exception(
                "Failed to track component render time",
                extra={"component_name": component_name},
            )

    # --- Read side ---

    async def get_performance_report(
        self, reader: MetricReaderPort | None = None
    ) -> PerformanceReport | None:
        """Read the metrics captured within report_window, newest first.

        Args:
            reader: Read side of the store (default: the sink, if it can read).

        Returns:
            PerformanceReport, or None if the read failed.

        Raises:
            ValueError: No reader given and the sink cannot read.
        """
        if reader is None:
            if not isinstance(self._sink, MetricReaderPort):
                raise ValueError("sink does not support reads; pass a reader")
            reader = self._sink
        since = (self._clock() - self.config.report_window).isoformat(
            timespec="microseconds"
        )
        try:
            metrics = [m async for m in reader.read_since(since)]
        except Exception:
            logger.exception("Failed to get performance report")
            return None
        return PerformanceReport(since=since, metrics=tuple(metrics))
