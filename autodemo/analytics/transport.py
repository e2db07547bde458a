"""Delivery transports for analytics batches.

Two paths exist: the regular asynchronous flush, and a synchronous
short-timeout delivery used from the process teardown hook, where no
event loop is available anymore.
"""

import time
from abc import ABC, abstractmethod

import httpx

from autodemo.exceptions import AnalyticsDeliveryError
from autodemo.models.events import AnalyticsBatch
from autodemo.observability.logging import get_logger

logger = get_logger(__name__)


class AnalyticsTransport(ABC):
    """Interface for shipping analytics batches to the collector."""

    @abstractmethod
    async def send(self, batch: AnalyticsBatch) -> None:
        """Deliver a batch.

        Raises:
            AnalyticsDeliveryError: If the collector did not accept the batch
        """
        pass

    @abstractmethod
    def send_beacon(self, batch: AnalyticsBatch) -> bool:
        """Best-effort synchronous delivery. Never raises."""
        pass

    async def close(self) -> None:
        """Release any underlying connections."""
        return None


class HttpAnalyticsTransport(AnalyticsTransport):
    """POSTs batches as JSON to the collector endpoint using httpx."""

    def __init__(
        self,
        endpoint: str,
        timeout_seconds: float = 5.0,
        beacon_timeout_seconds: float = 2.0,
    ) -> None:
        self._endpoint = endpoint
        self._timeout_seconds = timeout_seconds
        self._beacon_timeout_seconds = beacon_timeout_seconds
        self._client: httpx.AsyncClient | None = None

    @property
    def endpoint(self) -> str:
        return self._endpoint

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout_seconds)
        return self._client

    async def send(self, batch: AnalyticsBatch) -> None:
        client = await self._ensure_client()
        start_time = time.time()

        try:
            response = await client.post(
                self._endpoint,
                json=batch.to_wire(),
                headers={"Content-Type": "application/json"},
            )
        except httpx.HTTPError as e:
            raise AnalyticsDeliveryError(f"Failed to flush demo analytics: {e}") from e

        response_time_ms = int((time.time() - start_time) * 1000)

        if not 200 <= response.status_code < 300:
            raise AnalyticsDeliveryError(
                f"Failed to flush demo analytics: {response.status_code}",
                status_code=response.status_code,
            )

        logger.debug(
            "analytics_batch_delivered",
            session_id=batch.session_id,
            events=len(batch.events),
            status_code=response.status_code,
            response_time_ms=response_time_ms,
        )

    def send_beacon(self, batch: AnalyticsBatch) -> bool:
        try:
            with httpx.Client(timeout=self._beacon_timeout_seconds) as client:
                response = client.post(self._endpoint, json=batch.to_wire())
        except httpx.HTTPError as e:
            logger.warning(
                "analytics_beacon_failed",
                session_id=batch.session_id,
                error=str(e),
            )
            return False

        return 200 <= response.status_code < 300

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
