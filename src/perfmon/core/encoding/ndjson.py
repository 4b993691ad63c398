"""NDJSON encoder for metrics."""

import json
from collections.abc import AsyncIterable, Iterable

from perfmon.core.encoding.rows import to_row
from perfmon.core.models import Metric


def encode_metrics(metrics: Iterable[Metric]) -> str:
    """Encode metrics to newline-delimited JSON.

    Args:
        metrics: An iterable of Metric objects.

    Returns:
        NDJSON string with one row object per line.
        Empty string if no metrics.
    """
    lines = [json.dumps(to_row(m)) for m in metrics]
    if not lines:
        return ""
    return "\n".join(lines) + "\n"


async def encode_metrics_async(metrics: AsyncIterable[Metric]) -> str:
    """Encode an async stream of metrics to newline-delimited JSON."""
    return encode_metrics([m async for m in metrics])
