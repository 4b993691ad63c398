"""BDD step definitions for pipeline delivery features.

Steps drive one event loop kept in the scenario context, so the pipeline's
timer task survives from one step to the next.
"""

import asyncio
import json
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

import pytest
from pytest_bdd import given, parsers, then, when

from perfmon.adapters.capture_context import CaptureContext
from perfmon.runtime.pipeline import MetricsPipeline
from tests.helpers import FakeClock, FlakySink, RecordingBeacon, settle


@dataclass
class PipelineScenarioContext:
    """Shared state between steps in a pipeline scenario."""

    loop: asyncio.AbstractEventLoop = field(default_factory=asyncio.new_event_loop)
    clock: FakeClock = field(default_factory=FakeClock)
    sink: FlakySink = field(default_factory=lambda: FlakySink(failures=0))
    beacon: RecordingBeacon = field(default_factory=RecordingBeacon)
    pipeline: MetricsPipeline | None = None
    tracked: list[str] = field(default_factory=list)

    def run_async(self, coro: Any) -> Any:
        """Run a coroutine on the scenario's event loop."""
        return self.loop.run_until_complete(coro)


@pytest.fixture
def ctx() -> Iterator[PipelineScenarioContext]:
    """Fresh scenario context for each test; stops the pipeline afterwards."""
    context = PipelineScenarioContext()
    yield context
    if context.pipeline is not None:
        context.run_async(context.pipeline.stop())
    context.loop.close()


def _pipeline(ctx: PipelineScenarioContext) -> MetricsPipeline:
    assert ctx.pipeline is not None, "pipeline not started"
    return ctx.pipeline


async def _track(ctx: PipelineScenarioContext, names: list[str], value: float) -> None:
    """Track metrics inside the loop so batch deliveries can be spawned."""
    pipeline = _pipeline(ctx)
    for name in names:
        if name == "page_load_time":
            pipeline.track_page_load_time(value)
        else:
            pipeline.track_custom_metric(name, value)
        ctx.tracked.append(name)
    await settle()


# === Given ===


@given("a running pipeline delivering to a remote store")
def step_running_pipeline(ctx: PipelineScenarioContext) -> None:
    context = CaptureContext(
        page_url="https://learn.example.com/courses/42", user_agent="Mozilla/5.0"
    )
    ctx.pipeline = MetricsPipeline(
        ctx.sink,
        beacon=ctx.beacon,
        context_provider=lambda: context,
        sleep=ctx.clock.sleep,
        clock=ctx.clock,
    )
    ctx.run_async(ctx.pipeline.start())


@given("the store rejects the next delivery")
def step_store_rejects(ctx: PipelineScenarioContext) -> None:
    ctx.sink.failures = 1


# === When ===


@when(parsers.parse("the page load time {duration:d} ms is tracked"))
def step_track_page_load(ctx: PipelineScenarioContext, duration: int) -> None:
    ctx.run_async(_track(ctx, ["page_load_time"], duration))


@when(parsers.parse("{count:d} custom metrics are tracked"))
def step_track_custom(ctx: PipelineScenarioContext, count: int) -> None:
    start = len(ctx.tracked)
    names = [f"metric_{i}" for i in range(start, start + count)]
    ctx.run_async(_track(ctx, names, 1))


@when(parsers.parse("{seconds:d} seconds pass"))
def step_time_passes(ctx: PipelineScenarioContext, seconds: int) -> None:
    ctx.run_async(ctx.clock.advance(seconds))


@when("the page becomes hidden")
def step_page_hidden(ctx: PipelineScenarioContext) -> None:
    ctx.run_async(_pipeline(ctx).on_visibility_change("hidden"))


@when("the page unloads")
def step_page_unloads(ctx: PipelineScenarioContext) -> None:
    _pipeline(ctx).on_unload()


# === Then ===


@then(parsers.re(r"(?P<count>\d+) metrics? (?:is|are) queued"))
def step_queued_count(ctx: PipelineScenarioContext, count: str) -> None:
    assert _pipeline(ctx).queue_size == int(count)


@then("the queue is empty")
def step_queue_empty(ctx: PipelineScenarioContext) -> None:
    assert _pipeline(ctx).queue_size == 0


@then("the store received 0 batches")
def step_no_batches(ctx: PipelineScenarioContext) -> None:
    assert ctx.sink.batches == []


@then(
    parsers.re(
        r"the store received (?P<batches>[1-9]\d*) batch(?:es)? "
        r"of (?P<size>\d+) metrics?"
    )
)
def step_batches_received(
    ctx: PipelineScenarioContext, batches: str, size: str
) -> None:
    assert len(ctx.sink.batches) == int(batches)
    assert all(len(batch) == int(size) for batch in ctx.sink.batches)


@then("the delivered metrics are in tracking order")
def step_tracking_order(ctx: PipelineScenarioContext) -> None:
    delivered = [m.name for batch in ctx.sink.batches for m in batch]
    assert delivered == ctx.tracked


@then(parsers.parse('the queued metric names are "{names}"'))
def step_queued_names(ctx: PipelineScenarioContext, names: str) -> None:
    expected = [name.strip() for name in names.split(",")]
    assert [m.name for m in _pipeline(ctx).queued()] == expected


@then(parsers.parse("the beacon sent {count:d} metrics"))
def step_beacon_sent(ctx: PipelineScenarioContext, count: int) -> None:
    [(url, body)] = ctx.beacon.sent
    assert url == "/api/performance-metrics"
    assert len(json.loads(body)) == count


@then("the beacon sent nothing")
def step_beacon_nothing(ctx: PipelineScenarioContext) -> None:
    assert ctx.beacon.sent == []
