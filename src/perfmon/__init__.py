"""perfmon - batched performance metrics collection."""

from perfmon.adapters.beacon import HttpBeacon
from perfmon.adapters.capture_context import (
    CaptureContext,
    clear_capture_context,
    get_capture_context,
    set_capture_context,
    update_capture_context,
)
from perfmon.adapters.http_client import (
    InstrumentedSyncTransport,
    InstrumentedTransport,
    instrumented_client,
    instrumented_sync_client,
)
from perfmon.adapters.sinks import InMemoryMetricSink, RestMetricSink, SQLiteMetricSink
from perfmon.adapters.timeline import PerformanceTimeline
from perfmon.core.config import PipelineConfig
from perfmon.core.errors import DeliveryError, ObserverUnavailableError, PerfmonError
from perfmon.core.models import (
    ApiCallExtra,
    ComponentRenderExtra,
    CustomExtra,
    Metric,
    ResourceTimingExtra,
    WebVitalExtra,
    create_metric,
)
from perfmon.core.rating import rating
from perfmon.runtime import MetricsPipeline, PerformanceReport

__version__ = "0.1.0"

__all__ = [
    "ApiCallExtra",
    "CaptureContext",
    "ComponentRenderExtra",
    "CustomExtra",
    "DeliveryError",
    "HttpBeacon",
    "InMemoryMetricSink",
    "InstrumentedSyncTransport",
    "InstrumentedTransport",
    "Metric",
    "MetricsPipeline",
    "ObserverUnavailableError",
    "PerfmonError",
    "PerformanceReport",
    "PerformanceTimeline",
    "PipelineConfig",
    "ResourceTimingExtra",
    "RestMetricSink",
    "SQLiteMetricSink",
    "WebVitalExtra",
    "clear_capture_context",
    "create_metric",
    "get_capture_context",
    "instrumented_client",
    "instrumented_sync_client",
    "rating",
    "set_capture_context",
    "update_capture_context",
]
