"""Shared test fixtures for all test modules."""

from collections.abc import AsyncIterator
from pathlib import Path

import pytest

from perfmon.adapters.capture_context import CaptureContext, clear_capture_context
from perfmon.adapters.sinks.in_memory import InMemoryMetricSink
from perfmon.core.config import PipelineConfig
from perfmon.runtime.pipeline import MetricsPipeline
from tests.helpers import FakeClock, RecordingBeacon, settle as _settle

try:
    import httpx
except ImportError:
    httpx = None


@pytest.fixture(autouse=True)
def _reset_capture_context() -> None:
    clear_capture_context()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settle():
    """Coroutine function that lets pending event loop callbacks run."""
    return _settle


@pytest.fixture
def sink() -> InMemoryMetricSink:
    return InMemoryMetricSink()


@pytest.fixture
def beacon() -> RecordingBeacon:
    return RecordingBeacon()


@pytest.fixture
def capture_context() -> CaptureContext:
    return CaptureContext(
        page_url="https://learn.example.com/courses/42",
        user_agent="Mozilla/5.0 (X11; Linux x86_64)",
        user_id="user-7",
    )


@pytest.fixture
def make_pipeline(fake_clock: FakeClock, beacon: RecordingBeacon, capture_context):
    """Factory fixture building pipelines wired to the fake clock."""

    def _make(sink, config: PipelineConfig | None = None, **kwargs) -> MetricsPipeline:
        kwargs.setdefault("beacon", beacon)
        kwargs.setdefault("context_provider", lambda: capture_context)
        return MetricsPipeline(
            sink,
            config=config,
            sleep=fake_clock.sleep,
            clock=fake_clock,
            **kwargs,
        )

    return _make


@pytest.fixture
async def pipeline(
    make_pipeline, sink: InMemoryMetricSink
) -> AsyncIterator[MetricsPipeline]:
    """Unstarted pipeline over an in-memory sink; stopped after the test."""
    pipeline = make_pipeline(sink)
    yield pipeline
    await pipeline.stop()


@pytest.fixture
def metrics_db_path(tmp_path: Path) -> str:
    """Provide a temporary database path for sink tests."""
    return str(tmp_path / "metrics.db")


@pytest.fixture
def asgi_test_client():
    """Factory fixture that creates an httpx.AsyncClient for ASGI testing.

    Usage:
        async def test_something(asgi_test_client):
            app = create_collector_app(sink)
            async with asgi_test_client(app) as client:
                response = await client.post("/api/performance-metrics", ...)
    """
    if httpx is None:
        pytest.skip("httpx not installed")

    def _get_client(app):
        return httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        )

    return _get_client
