"""Example FastAPI application collecting performance metrics.

Run with:
    uvicorn examples.fastapi_example:app --reload

Endpoints:
    /api/performance-metrics          - POST beacon payloads (JSON array)
    /api/performance-metrics/report   - NDJSON of the last 24 hours
    /courses/{course_id}              - Demo page that records metrics

Instrumentation:
    Requests are stamped with their URL, User-Agent and X-User-ID header by
    CaptureContextMiddleware. Backend calls made through the instrumented
    client produce api_response_time / api_error metrics, and handlers
    record render timings through the pipeline's tracking API.
"""

import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from perfmon import (
    HttpBeacon,
    MetricsPipeline,
    SQLiteMetricSink,
    instrumented_client,
)
from perfmon.adapters.frameworks.asgi import CaptureContextMiddleware
from perfmon.adapters.frameworks.fastapi import create_performance_router

sink = SQLiteMetricSink("performance_metrics.db")
pipeline = MetricsPipeline(sink, beacon=HttpBeacon("http://127.0.0.1:8000"))


def _catalog(request: httpx.Request) -> httpx.Response:
    """Stand-in for the course catalog backend."""
    course_id = request.url.path.rsplit("/", 1)[-1]
    return httpx.Response(200, json={"id": course_id, "title": "Intro to Python"})


backend = instrumented_client(
    pipeline,
    transport=httpx.MockTransport(_catalog),
    base_url="https://catalog.internal",
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    await pipeline.start(install_exit_hook=True)
    yield
    await pipeline.stop()
    await backend.aclose()


app = FastAPI(title="Performance Metrics Example", lifespan=lifespan)
app.include_router(create_performance_router(sink))
app.add_middleware(CaptureContextMiddleware)


@app.get("/courses/{course_id}")
async def course_page(course_id: str) -> dict[str, object]:
    """Fetch a course and record how long the page took to assemble."""
    start = time.perf_counter()
    response = await backend.get(f"/api/courses/{course_id}")
    course = response.json()

    render_start = time.perf_counter()
    page = {"course": course, "sections": ["Overview", "Lessons", "Reviews"]}
    pipeline.track_component_render_time(
        "CoursePage", (time.perf_counter() - render_start) * 1000
    )
    pipeline.track_page_load_time((time.perf_counter() - start) * 1000)
    return page
