"""Row encoding for the performance_metrics store."""

import json
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

from perfmon.core.models import Metric, extra_from_dict

ROW_FIELDS = (
    "metric_name",
    "metric_value",
    "metric_type",
    "page_url",
    "user_id",
    "user_agent",
    "timestamp",
    "additional_data",
)


def to_row(metric: Metric) -> dict[str, Any]:
    """Convert a Metric to a performance_metrics row.

    Args:
        metric: The metric to encode.

    Returns:
        Dictionary keyed by the store's column names.
    """
    return {
        "metric_name": metric.name,
        "metric_value": metric.value,
        "metric_type": metric.kind,
        "page_url": metric.page_url,
        "user_id": metric.user_id,
        "user_agent": metric.user_agent,
        "timestamp": metric.timestamp,
        "additional_data": metric.extra_data,
    }


def normalize_timestamp(value: str) -> str:
    """Rewrite an ISO-8601 timestamp in the form the stores compare lexically.

    Accepts the `Z` suffix browsers emit. Naive values are taken as UTC.
    """
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC).isoformat(timespec="microseconds")


def from_row(row: Mapping[str, Any]) -> Metric:
    """Convert a performance_metrics row back to a Metric.

    Raises:
        KeyError: A required column is missing.
        ValueError: The value, kind or timestamp is invalid.
    """
    name = row["metric_name"]
    return Metric(
        name=name,
        value=float(row["metric_value"]),
        kind=row["metric_type"],
        page_url=row["page_url"],
        user_agent=row["user_agent"],
        timestamp=normalize_timestamp(row["timestamp"]),
        user_id=row.get("user_id"),
        extra=extra_from_dict(name, row.get("additional_data")),
    )


def encode_batch(metrics: Iterable[Metric]) -> str:
    """Encode metrics as a JSON array of rows."""
    return json.dumps([to_row(m) for m in metrics])


def decode_batch(body: str | bytes) -> list[Metric]:
    """Decode a JSON array of rows.

    Raises:
        ValueError: The body is not a JSON array of valid rows.
    """
    payload = json.loads(body)
    if not isinstance(payload, list):
        raise ValueError("expected a JSON array of metrics")
    try:
        return [from_row(row) for row in payload]
    except (KeyError, TypeError, AttributeError) as e:
        raise ValueError(f"invalid metric row: {e}") from e
