"""SQLite metric sink."""

import json
from collections.abc import AsyncIterable, Sequence
from typing import Any

import aiosqlite

from perfmon.adapters.sinks.sqlite_base import AsyncConnectionManager
from perfmon.core.encoding.rows import from_row, to_row
from perfmon.core.models import Metric

_SCHEMA = """
CREATE TABLE IF NOT EXISTS performance_metrics (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    metric_name TEXT NOT NULL,
    metric_value REAL NOT NULL,
    metric_type TEXT NOT NULL,
    page_url TEXT NOT NULL,
    user_id TEXT,
    user_agent TEXT NOT NULL,
    timestamp TEXT NOT NULL,
    additional_data TEXT
);
CREATE INDEX IF NOT EXISTS idx_performance_metrics_timestamp
    ON performance_metrics(timestamp);
"""

_INSERT_METRIC = """
INSERT INTO performance_metrics (
    metric_name, metric_value, metric_type, page_url,
    user_id, user_agent, timestamp, additional_data
) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
"""

_SELECT_METRICS_SINCE = """
SELECT metric_name, metric_value, metric_type, page_url,
       user_id, user_agent, timestamp, additional_data
FROM performance_metrics
WHERE timestamp >= ?
ORDER BY timestamp DESC, id DESC
"""

_COUNT_METRICS = "SELECT COUNT(*) FROM performance_metrics"

_DELETE_METRICS_BEFORE = "DELETE FROM performance_metrics WHERE timestamp < ?"


def _to_params(metric: Metric) -> tuple[Any, ...]:
    row = to_row(metric)
    extra = row["additional_data"]
    return (
        row["metric_name"],
        row["metric_value"],
        row["metric_type"],
        row["page_url"],
        row["user_id"],
        row["user_agent"],
        row["timestamp"],
        json.dumps(extra) if extra is not None else None,
    )


def _from_db_row(row: aiosqlite.Row) -> Metric:
    return from_row(
        {
            "metric_name": row[0],
            "metric_value": row[1],
            "metric_type": row[2],
            "page_url": row[3],
            "user_id": row[4],
            "user_agent": row[5],
            "timestamp": row[6],
            "additional_data": json.loads(row[7]) if row[7] is not None else None,
        }
    )


class SQLiteMetricSink:
    """SQLite implementation of MetricSinkPort and MetricReaderPort.

    Each batch is written with a single executemany in one transaction, so
    a failed batch leaves no partial rows behind. Uses WAL mode for
    file-based databases.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._manager = AsyncConnectionManager(db_path, _SCHEMA)

    async def insert_many(self, metrics: Sequence[Metric]) -> None:
        """Write a batch of metrics in one transaction."""
        if not metrics:
            return
        async with self._manager.connection() as db:
            try:
                await db.executemany(_INSERT_METRIC, [_to_params(m) for m in metrics])
                await db.commit()
            except Exception:
                await db.rollback()
                raise

    async def read_since(self, timestamp: str) -> AsyncIterable[Metric]:
        """Read metrics at or after the timestamp, newest first."""
        async with self._manager.connection() as db:
            async with db.execute(_SELECT_METRICS_SINCE, (timestamp,)) as cursor:
                async for row in cursor:
                    yield _from_db_row(row)

    async def count(self) -> int:
        """Return total number of stored metrics."""
        async with self._manager.connection() as db:
            async with db.execute(_COUNT_METRICS) as cursor:
                row = await cursor.fetchone()
                return row[0] if row else 0

    async def delete_before(self, timestamp: str) -> int:
        """Delete metrics captured before the timestamp."""
        async with self._manager.connection() as db:
            cursor = await db.execute(_DELETE_METRICS_BEFORE, (timestamp,))
            deleted = cursor.rowcount
            await db.commit()
            return deleted

    async def close(self) -> None:
        """Close persistent connection (for :memory: databases)."""
        await self._manager.close()
