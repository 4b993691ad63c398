"""FastAPI adapter for the metric collector endpoints."""

import json
import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from fastapi import APIRouter, Request, Response

from perfmon.adapters.frameworks.asgi import (
    DEFAULT_COLLECTOR_PATH,
    DEFAULT_REPORT_WINDOW,
)
from perfmon.core.encoding.ndjson import encode_metrics_async
from perfmon.core.encoding.rows import decode_batch
from perfmon.core.models import utc_now
from perfmon.core.ports import MetricReaderPort, MetricSinkPort

logger = logging.getLogger(__name__)


def _json_response(status_code: int, payload: dict[str, object]) -> Response:
    return Response(
        content=json.dumps(payload),
        status_code=status_code,
        media_type="application/json",
    )


def create_performance_router(
    sink: MetricSinkPort,
    reader: MetricReaderPort | None = None,
    path: str = DEFAULT_COLLECTOR_PATH,
    clock: Callable[[], datetime] = utc_now,
    report_window: timedelta = DEFAULT_REPORT_WINDOW,
) -> APIRouter:
    """Create a FastAPI router with the collector and report endpoints.

    Args:
        sink: Where beaconed metrics are stored.
        reader: Read side for the report (default: sink, if it can read).
        path: Collector path (default: "/api/performance-metrics").
        clock: Returns the current aware datetime.
        report_window: How far back the report reads.

    Returns:
        APIRouter with POST {path} and GET {path}/report configured.
    """
    if reader is None and isinstance(sink, MetricReaderPort):
        reader = sink
    router = APIRouter()

    @router.post(path)
    async def collect_metrics(request: Request) -> Response:
        """Store a JSON array of metric rows sent by an unload beacon."""
        try:
            metrics = decode_batch(await request.body())
        except ValueError as e:
            return _json_response(400, {"error": str(e)})
        if metrics:
            try:
                await sink.insert_many(metrics)
            except Exception:
                logger.exception(
                    "Failed to store beaconed metrics",
                    extra={"batch_size": len(metrics)},
                )
                return _json_response(500, {"error": "Internal Server Error"})
        return _json_response(202, {"accepted": len(metrics)})

    if reader is not None:
        report_reader = reader

        @router.get(f"{path}/report")
        async def performance_report() -> Response:
            """Return metrics within the report window as NDJSON, newest first."""
            since = (clock() - report_window).isoformat(timespec="microseconds")
            body = await encode_metrics_async(report_reader.read_since(since))
            return Response(content=body, media_type="application/x-ndjson")

    return router
