"""ASGI adapters: metric collector endpoints and capture-context middleware.

These work with any ASGI server (uvicorn, hypercorn, daphne) without
requiring FastAPI as a dependency.
"""

import json
import logging
from collections.abc import Callable, Coroutine
from datetime import datetime, timedelta
from typing import Any

from perfmon.adapters.capture_context import (
    clear_capture_context,
    set_capture_context,
)
from perfmon.core.encoding.ndjson import encode_metrics_async
from perfmon.core.encoding.rows import decode_batch
from perfmon.core.models import utc_now
from perfmon.core.ports import MetricReaderPort, MetricSinkPort

logger = logging.getLogger(__name__)

# ASGI type aliases
Scope = dict[str, Any]
Receive = Callable[[], Coroutine[Any, Any, dict[str, Any]]]
Send = Callable[[dict[str, Any]], Coroutine[Any, Any, None]]
ASGIApp = Callable[[Scope, Receive, Send], Coroutine[Any, Any, None]]

DEFAULT_COLLECTOR_PATH = "/api/performance-metrics"
DEFAULT_REPORT_WINDOW = timedelta(hours=24)
MAX_BODY_BYTES = 1_048_576


def _get_header(scope: Scope, header_name: str) -> str | None:
    """Return a request header value (case-insensitive), or None."""
    header_bytes = header_name.lower().encode()
    headers: list[tuple[bytes, bytes]] = scope.get("headers", [])
    for name, value in headers:
        if name.lower() == header_bytes:
            return value.decode("utf-8", errors="replace")
    return None


def _request_url(scope: Scope) -> str:
    """Reconstruct the full request URL from an ASGI scope."""
    scheme = scope.get("scheme", "http")
    host = _get_header(scope, "host")
    if host is None:
        server = scope.get("server")
        host = f"{server[0]}:{server[1]}" if server else "localhost"
    url = f"{scheme}://{host}{scope.get('root_path', '')}{scope['path']}"
    query_string = scope.get("query_string", b"")
    if query_string:
        url += "?" + query_string.decode(errors="replace")
    return url


async def _read_body(receive: Receive, limit: int = MAX_BODY_BYTES) -> bytes:
    """Read the full request body.

    Raises:
        ValueError: The body exceeds limit bytes.
    """
    chunks: list[bytes] = []
    size = 0
    while True:
        message = await receive()
        if message["type"] != "http.request":
            break
        chunk = message.get("body", b"")
        size += len(chunk)
        if size > limit:
            raise ValueError("request body too large")
        chunks.append(chunk)
        if not message.get("more_body", False):
            break
    return b"".join(chunks)


async def _send_response(send: Send, status: int, content_type: str, body: str) -> None:
    """Send an HTTP response with headers and body."""
    headers = [(b"content-type", content_type.encode())]
    await send({"type": "http.response.start", "status": status, "headers": headers})
    await send({"type": "http.response.body", "body": body.encode()})


async def _send_json(send: Send, status: int, payload: dict[str, Any]) -> None:
    await _send_response(send, status, "application/json", json.dumps(payload))


async def _collect(receive: Receive, send: Send, sink: MetricSinkPort) -> None:
    """Store a JSON array of metric rows posted by an unload beacon."""
    try:
        metrics = decode_batch(await _read_body(receive))
    except ValueError as e:
        await _send_json(send, 400, {"error": str(e)})
        return
    if metrics:
        try:
            await sink.insert_many(metrics)
        except Exception:
            logger.exception(
                "Failed to store beaconed metrics", extra={"batch_size": len(metrics)}
            )
            await _send_json(send, 500, {"error": "Internal Server Error"})
            return
    await _send_json(send, 202, {"accepted": len(metrics)})


async def _report(
    send: Send,
    reader: MetricReaderPort,
    clock: Callable[[], datetime],
    window: timedelta,
) -> None:
    """Send the metrics captured within window as NDJSON, newest first."""
    since = (clock() - window).isoformat(timespec="microseconds")
    try:
        body = await encode_metrics_async(reader.read_since(since))
    except Exception:
        logger.exception("Error encoding performance report")
        await _send_json(send, 500, {"error": "Internal Server Error"})
        return
    await _send_response(send, 200, "application/x-ndjson", body)


def create_collector_app(
    sink: MetricSinkPort,
    reader: MetricReaderPort | None = None,
    path: str = DEFAULT_COLLECTOR_PATH,
    clock: Callable[[], datetime] = utc_now,
    report_window: timedelta = DEFAULT_REPORT_WINDOW,
) -> ASGIApp:
    """Create an ASGI app receiving beacons and serving the report.

    Routes:
        POST {path}         - JSON array of metric rows (202, 400 if malformed)
        GET  {path}/report  - NDJSON of metrics in report_window, newest first

    Args:
        sink: Where beaconed metrics are stored.
        reader: Read side for the report (default: sink, if it can read).
        path: Collector path (default: "/api/performance-metrics").
        clock: Returns the current aware datetime.
        report_window: How far back the report reads.

    Returns:
        ASGI application callable.
    """
    if reader is None and isinstance(sink, MetricReaderPort):
        reader = sink
    report_path = f"{path}/report"

    async def app(scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            return

        request_path = scope["path"]
        method = scope["method"]

        if request_path == path:
            if method != "POST":
                await _send_response(send, 405, "text/plain", "Method Not Allowed")
                return
            await _collect(receive, send, sink)
        elif request_path == report_path and reader is not None:
            if method != "GET":
                await _send_response(send, 405, "text/plain", "Method Not Allowed")
                return
            await _report(send, reader, clock, report_window)
        else:
            await _send_response(send, 404, "text/plain", "Not Found")

    return app


class CaptureContextMiddleware:
    """ASGI middleware that stamps metrics with the current request.

    For each HTTP request, sets the capture context to the full request URL,
    the User-Agent header and, if present, the user id header. Metrics
    recorded while the request is handled carry these values.
    """

    def __init__(self, app: ASGIApp, user_id_header: str | None = "X-User-ID") -> None:
        """Initialize the middleware.

        Args:
            app: The ASGI application to wrap.
            user_id_header: Header carrying the authenticated user id, or
                None to never set a user id.
        """
        self.app = app
        self.user_id_header = user_id_header

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        user_id = (
            _get_header(scope, self.user_id_header) if self.user_id_header else None
        )
        set_capture_context(
            page_url=_request_url(scope),
            user_agent=_get_header(scope, "user-agent"),
            user_id=user_id,
        )
        try:
            await self.app(scope, receive, send)
        finally:
            clear_capture_context()
