"""REST metric sink for a hosted PostgREST-style backend."""

from collections.abc import AsyncIterable, Sequence

import httpx

from perfmon.core.encoding.rows import from_row, to_row
from perfmon.core.errors import DeliveryError
from perfmon.core.models import Metric

DEFAULT_TABLE = "performance_metrics"


class RestMetricSink:
    """MetricSinkPort/MetricReaderPort backed by a REST table endpoint.

    Writes a batch as a single ``POST /rest/v1/<table>`` with a JSON array
    body, the bulk-insert shape hosted Postgres backends accept.

    Args:
        base_url: Backend project URL (e.g., "https://xyz.supabase.co").
        api_key: Backend API key, sent as ``apikey`` and bearer token.
        table: Table name (default: "performance_metrics").
        client: Optional preconfigured httpx.AsyncClient (tests, pooling).
        timeout: Request timeout in seconds when no client is given.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        table: str = DEFAULT_TABLE,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._path = f"/rest/v1/{table}"
        self._headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
        }
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def insert_many(self, metrics: Sequence[Metric]) -> None:
        """POST a batch as one JSON array.

        Raises:
            DeliveryError: Transport failure or non-2xx response.
        """
        try:
            response = await self._client.post(
                self._path,
                json=[to_row(m) for m in metrics],
                headers={**self._headers, "Prefer": "return=minimal"},
            )
        except httpx.HTTPError as e:
            raise DeliveryError(f"metrics insert failed: {e}") from e
        if response.is_error:
            raise DeliveryError(
                f"metrics insert rejected with status {response.status_code}: "
                f"{response.text}"
            )

    async def read_since(self, timestamp: str) -> AsyncIterable[Metric]:
        """Read metrics at or after the timestamp, newest first.

        Raises:
            DeliveryError: Transport failure or non-2xx response.
        """
        try:
            response = await self._client.get(
                self._path,
                params={
                    "select": "*",
                    "timestamp": f"gte.{timestamp}",
                    "order": "timestamp.desc",
                },
                headers=self._headers,
            )
        except httpx.HTTPError as e:
            raise DeliveryError(f"metrics query failed: {e}") from e
        if response.is_error:
            raise DeliveryError(
                f"metrics query rejected with status {response.status_code}"
            )
        for row in response.json():
            yield from_row(row)

    async def close(self) -> None:
        """Close the underlying client if this sink created it."""
        if self._owns_client:
            await self._client.aclose()
