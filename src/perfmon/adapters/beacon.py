"""Fire-and-forget HTTP beacon for shutdown-time delivery."""

import logging

import httpx

logger = logging.getLogger(__name__)


class HttpBeacon:
    """BeaconPort implementation that POSTs a JSON body and moves on.

    The request uses a short timeout and its outcome is never reported back
    to the caller beyond "handed off". It runs synchronously because it is
    used from atexit hooks, where no event loop is available.

    Args:
        base_url: Origin the beacon path is resolved against.
        timeout: Seconds to wait before abandoning the request.
        client: Optional preconfigured httpx.Client (tests, pooling).
    """

    def __init__(
        self,
        base_url: str = "",
        timeout: float = 2.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout)

    def send(self, url: str, body: str) -> bool:
        """POST body to url.

        Returns:
            True if the request was sent, False if the transport failed.
        """
        try:
            self._client.post(
                url,
                content=body.encode(),
                headers={"content-type": "application/json"},
            )
        except Exception as e:
            logger.warning(
                "Beacon delivery failed", extra={"url": url, "error": str(e)}
            )
            return False
        return True

    def close(self) -> None:
        self._client.close()
