"""Tests for performance_metrics row encoding."""

import json

import pytest

from perfmon.core.encoding.rows import (
    ROW_FIELDS,
    decode_batch,
    encode_batch,
    from_row,
    to_row,
)
from perfmon.core.models import ApiCallExtra, Metric, WebVitalExtra

pytestmark = pytest.mark.encoding


@pytest.fixture
def lcp_metric() -> Metric:
    return Metric(
        name="LCP",
        value=2600.0,
        kind="timing",
        page_url="https://learn.example.com/courses/42",
        user_agent="Mozilla/5.0",
        timestamp="2026-10-19T12:00:00.000000+00:00",
        user_id="user-7",
        extra=WebVitalExtra(rating="needs-improvement", element="IMG"),
    )


class TestToRow:
    """Metric to row conversion."""

    def test_row_has_store_columns(self, lcp_metric: Metric) -> None:
        row = to_row(lcp_metric)

        assert tuple(row) == ROW_FIELDS
        assert row["metric_name"] == "LCP"
        assert row["metric_value"] == 2600.0
        assert row["metric_type"] == "timing"
        assert row["user_id"] == "user-7"
        assert row["additional_data"] == {
            "rating": "needs-improvement",
            "element": "IMG",
        }

    def test_missing_extra_is_null(self) -> None:
        metric = Metric("page_load_time", 10.0, "timing", "/", "UA", "t")

        row = to_row(metric)

        assert row["additional_data"] is None
        assert row["user_id"] is None


class TestFromRow:
    """Row to Metric conversion."""

    def test_rebuilds_typed_extra(self, lcp_metric: Metric) -> None:
        assert from_row(to_row(lcp_metric)) == lcp_metric

    def test_missing_column_raises_key_error(self) -> None:
        with pytest.raises(KeyError):
            from_row({"metric_name": "x"})

    @pytest.mark.parametrize(
        "timestamp",
        [
            "2026-10-19T12:00:00Z",
            "2026-10-19T12:00:00.000Z",
            "2026-10-19T14:00:00+02:00",
            "2026-10-19T12:00:00",
        ],
    )
    def test_timestamp_is_normalized_to_utc_offset(
        self, lcp_metric: Metric, timestamp: str
    ) -> None:
        row = to_row(lcp_metric) | {"timestamp": timestamp}

        assert from_row(row).timestamp == "2026-10-19T12:00:00.000000+00:00"

    def test_invalid_timestamp_is_rejected(self, lcp_metric: Metric) -> None:
        row = to_row(lcp_metric) | {"timestamp": "yesterday"}

        with pytest.raises(ValueError):
            decode_batch(json.dumps([row]))


class TestBatchCodec:
    """JSON array encoding used by beacons and the collector."""

    def test_encode_batch_is_json_array(self, lcp_metric: Metric) -> None:
        api = Metric(
            name="api_response_time",
            value=85.0,
            kind="custom",
            page_url="/",
            user_agent="UA",
            timestamp="2026-10-19T12:00:01.000000+00:00",
            extra=ApiCallExtra(api_url="/api/courses", method="GET", status=200),
        )

        payload = json.loads(encode_batch([lcp_metric, api]))

        assert [row["metric_name"] for row in payload] == ["LCP", "api_response_time"]
        assert payload[1]["additional_data"]["status"] == 200

    def test_decode_batch_accepts_bytes(self, lcp_metric: Metric) -> None:
        body = encode_batch([lcp_metric]).encode()

        assert decode_batch(body) == [lcp_metric]

    def test_decode_empty_array(self) -> None:
        assert decode_batch("[]") == []

    @pytest.mark.parametrize(
        "body",
        [
            '{"metric_name": "x"}',
            '[{"metric_name": "x"}]',
            '["not a row"]',
            "not json",
        ],
    )
    def test_decode_rejects_malformed_bodies(self, body: str) -> None:
        with pytest.raises(ValueError):
            decode_batch(body)

    def test_decode_rejects_unknown_kind(self, lcp_metric: Metric) -> None:
        row = to_row(lcp_metric) | {"metric_type": "memory"}

        with pytest.raises(ValueError, match="unknown metric kind"):
            decode_batch(json.dumps([row]))
