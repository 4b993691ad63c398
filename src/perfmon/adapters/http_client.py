"""httpx transports that time API calls and record them as metrics.

Wrap the transport of the client the application uses for backend calls:

    client = instrumented_client(pipeline, base_url="https://xyz.supabase.co")

Calls whose URL contains the API path marker or a backend host produce an
``api_response_time`` metric, or ``api_error`` when the transport raises.
Responses and exceptions reach the caller unchanged.
"""

import logging
import time
from typing import Any

import httpx

from perfmon.core.models import ApiCallExtra
from perfmon.core.ports import MetricRecorderPort
from perfmon.core.resources import is_api_url

logger = logging.getLogger(__name__)

DEFAULT_API_PATH_MARKER = "/api/"
DEFAULT_API_HOSTS = ("supabase.co",)


class _ApiCallRecorder:
    """Shared matching and recording logic for both transports."""

    def __init__(
        self,
        recorder: MetricRecorderPort,
        api_path_marker: str,
        api_hosts: tuple[str, ...],
    ) -> None:
        self._recorder = recorder
        self._api_path_marker = api_path_marker
        self._api_hosts = api_hosts

    def matches(self, request: httpx.Request) -> bool:
        return is_api_url(str(request.url), self._api_path_marker, self._api_hosts)

    def success(self, request: httpx.Request, status: int, duration_ms: float) -> None:
        self._safe_record(
            "api_response_time",
            duration_ms,
            ApiCallExtra(
                api_url=str(request.url), method=request.method, status=status
            ),
        )

    def failure(
        self, request: httpx.Request, error: BaseException, duration_ms: float
    ) -> None:
        self._safe_record(
            "api_error",
            duration_ms,
            ApiCallExtra(
                api_url=str(request.url),
                method=request.method,
                error=str(error) or type(error).__name__,
            ),
        )

    def _safe_record(self, name: str, value: float, extra: ApiCallExtra) -> None:
        try:
            self._recorder.record(name, value, "custom", extra)
        except Exception:
            logger.exception(
                "Failed to record API call metric", extra={"metric_name": name}
            )


class InstrumentedTransport(httpx.AsyncBaseTransport):
    """Async transport wrapper that records API call timings.

    Args:
        recorder: Where metrics go (usually a MetricsPipeline).
        transport: Wrapped transport (default: httpx.AsyncHTTPTransport()).
        api_path_marker: URL substring identifying API calls.
        api_hosts: Backend host fragments identifying API calls.
    """

    def __init__(
        self,
        recorder: MetricRecorderPort,
        transport: httpx.AsyncBaseTransport | None = None,
        api_path_marker: str = DEFAULT_API_PATH_MARKER,
        api_hosts: tuple[str, ...] = DEFAULT_API_HOSTS,
    ) -> None:
        self._transport = transport or httpx.AsyncHTTPTransport()
        self._calls = _ApiCallRecorder(recorder, api_path_marker, api_hosts)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        if not self._calls.matches(request):
            return await self._transport.handle_async_request(request)
        start = time.perf_counter()
        try:
            response = await self._transport.handle_async_request(request)
        except Exception as e:
            self._calls.failure(request, e, (time.perf_counter() - start) * 1000)
            raise
        self._calls.success(
            request, response.status_code, (time.perf_counter() - start) * 1000
        )
        return response

    async def aclose(self) -> None:
        await self._transport.aclose()


class InstrumentedSyncTransport(httpx.BaseTransport):
    """Sync counterpart of InstrumentedTransport for httpx.Client."""

    def __init__(
        self,
        recorder: MetricRecorderPort,
        transport: httpx.BaseTransport | None = None,
        api_path_marker: str = DEFAULT_API_PATH_MARKER,
        api_hosts: tuple[str, ...] = DEFAULT_API_HOSTS,
    ) -> None:
        self._transport = transport or httpx.HTTPTransport()
        self._calls = _ApiCallRecorder(recorder, api_path_marker, api_hosts)

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        if not self._calls.matches(request):
            return self._transport.handle_request(request)
        start = time.perf_counter()
        try:
            response = self._transport.handle_request(request)
        except Exception as e:
            self._calls.failure(request, e, (time.perf_counter() - start) * 1000)
            raise
        self._calls.success(
            request, response.status_code, (time.perf_counter() - start) * 1000
        )
        return response

    def close(self) -> None:
        self._transport.close()


def _matching_kwargs(recorder: MetricRecorderPort) -> dict[str, Any]:
    """Take API matching settings from a pipeline's config, when it has one."""
    config = getattr(recorder, "config", None)
    if config is None:
        return {}
    return {"api_path_marker": config.api_path_marker, "api_hosts": config.api_hosts}


def instrumented_client(
    recorder: MetricRecorderPort,
    transport: httpx.AsyncBaseTransport | None = None,
    **client_kwargs: Any,
) -> httpx.AsyncClient:
    """Create an httpx.AsyncClient whose API calls are recorded."""
    return httpx.AsyncClient(
        transport=InstrumentedTransport(
            recorder, transport, **_matching_kwargs(recorder)
        ),
        **client_kwargs,
    )


def instrumented_sync_client(
    recorder: MetricRecorderPort,
    transport: httpx.BaseTransport | None = None,
    **client_kwargs: Any,
) -> httpx.Client:
    """Create an httpx.Client whose API calls are recorded."""
    return httpx.Client(
        transport=InstrumentedSyncTransport(
            recorder, transport, **_matching_kwargs(recorder)
        ),
        **client_kwargs,
    )
