"""Wire encodings for metrics."""

from perfmon.core.encoding.ndjson import encode_metrics, encode_metrics_async
from perfmon.core.encoding.rows import decode_batch, encode_batch, from_row, to_row

__all__ = [
    "decode_batch",
    "encode_batch",
    "encode_metrics",
    "encode_metrics_async",
    "from_row",
    "to_row",
]
