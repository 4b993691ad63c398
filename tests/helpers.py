"""Test doubles shared across test modules."""

import asyncio
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta

from perfmon.core.errors import DeliveryError
from perfmon.core.models import Metric

START_TIME = datetime(2026, 10, 19, 12, 0, 0, tzinfo=UTC)


async def settle(rounds: int = 20) -> None:
    """Let pending event loop callbacks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeClock:
    """Deterministic clock driving both timestamps and pipeline sleeps.

    Calling the clock returns the current fake datetime. ``sleep`` suspends
    until ``advance`` moves fake time past the sleeper's deadline.
    """

    def __init__(self, start: datetime = START_TIME) -> None:
        self.start = start
        self.elapsed = 0.0
        self._sleepers: list[tuple[float, asyncio.Future[None]]] = []

    def __call__(self) -> datetime:
        return self.start + timedelta(seconds=self.elapsed)

    async def sleep(self, seconds: float) -> None:
        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._sleepers.append((self.elapsed + seconds, future))
        await future

    @property
    def sleepers(self) -> int:
        return sum(1 for _, f in self._sleepers if not f.done())

    async def advance(self, seconds: float) -> None:
        """Move fake time forward and let woken tasks run to completion."""
        await settle()
        self.elapsed += seconds
        due = [s for s in self._sleepers if s[0] <= self.elapsed]
        self._sleepers = [s for s in self._sleepers if s[0] > self.elapsed]
        for _, future in due:
            if not future.done():
                future.set_result(None)
        await settle()


class FlakySink:
    """Sink that fails the first ``failures`` batches, then stores them."""

    def __init__(self, failures: int = 1) -> None:
        self.failures = failures
        self.attempts: list[list[Metric]] = []
        self.batches: list[list[Metric]] = []

    async def insert_many(self, metrics: Sequence[Metric]) -> None:
        self.attempts.append(list(metrics))
        if self.failures > 0:
            self.failures -= 1
            raise DeliveryError("remote store unavailable")
        self.batches.append(list(metrics))


class HangingSink:
    """Sink whose writes never complete."""

    def __init__(self) -> None:
        self.attempts = 0

    async def insert_many(self, metrics: Sequence[Metric]) -> None:
        self.attempts += 1
        await asyncio.Event().wait()


class RecordingBeacon:
    """BeaconPort double that records payloads."""

    def __init__(self, accept: bool = True) -> None:
        self.accept = accept
        self.sent: list[tuple[str, str]] = []

    def send(self, url: str, body: str) -> bool:
        self.sent.append((url, body))
        return self.accept
