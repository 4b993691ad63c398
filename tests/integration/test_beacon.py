"""Tests for the HTTP unload beacon."""

import logging

import httpx
import pytest

from perfmon.adapters.beacon import HttpBeacon
from perfmon.core.ports import BeaconPort

pytestmark = pytest.mark.integration


def _beacon(handler) -> HttpBeacon:
    client = httpx.Client(
        base_url="https://learn.example.com", transport=httpx.MockTransport(handler)
    )
    return HttpBeacon(client=client)


class TestHttpBeacon:
    def test_implements_beacon_port(self) -> None:
        assert isinstance(HttpBeacon(), BeaconPort)

    def test_posts_json_body(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(202)

        sent = _beacon(handler).send("/api/performance-metrics", '[{"a": 1}]')

        assert sent is True
        [request] = requests
        assert request.url == "https://learn.example.com/api/performance-metrics"
        assert request.headers["content-type"] == "application/json"
        assert request.content == b'[{"a": 1}]'

    def test_server_error_still_counts_as_handed_off(self) -> None:
        """Responses are never inspected."""
        assert _beacon(lambda request: httpx.Response(500)).send("/x", "[]") is True

    def test_transport_failure_returns_false(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        with caplog.at_level(logging.WARNING, logger="perfmon.adapters.beacon"):
            sent = _beacon(handler).send("/api/performance-metrics", "[]")

        assert sent is False
        assert "Beacon delivery failed" in caplog.text

    def test_invalid_url_returns_false(self, caplog: pytest.LogCaptureFixture) -> None:
        beacon = _beacon(lambda request: httpx.Response(202))

        with caplog.at_level(logging.WARNING, logger="perfmon.adapters.beacon"):
            sent = beacon.send("http://[invalid", "[]")

        assert sent is False
        assert "Beacon delivery failed" in caplog.text

    def test_closed_client_returns_false(self) -> None:
        beacon = _beacon(lambda request: httpx.Response(202))
        beacon.close()

        assert beacon.send("/api/performance-metrics", "[]") is False
