"""Slack notification for completed tours."""

import httpx

from autodemo.collector.models import AnalyticsRecord
from autodemo.observability.logging import get_logger

logger = get_logger(__name__)


class CompletionNotifier:
    """Posts a short message to a Slack incoming webhook when a tour completes.

    A notifier without a webhook URL is disabled and does nothing.
    """

    def __init__(self, webhook_url: str | None = None, timeout_seconds: float = 5.0) -> None:
        self._webhook_url = webhook_url
        self._timeout_seconds = timeout_seconds
        self._client: httpx.AsyncClient | None = None

    @property
    def enabled(self) -> bool:
        return bool(self._webhook_url)

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout_seconds)
        return self._client

    async def notify_completed(self, record: AnalyticsRecord) -> bool:
        """Send the completion notice. Failures are logged, never raised.

        Returns:
            True if the webhook accepted the message
        """
        if not self._webhook_url:
            return False

        duration = record.metadata.get("duration", "unknown")
        text = f"AutoDemo completed for session {record.session_id} after {duration}ms"

        try:
            client = await self._ensure_client()
            response = await client.post(
                self._webhook_url,
                json={"text": text},
                headers={"Content-Type": "application/json"},
            )
        except httpx.HTTPError as e:
            logger.warning(
                "completion_notify_failed",
                session_id=record.session_id,
                error=str(e),
            )
            return False

        if not 200 <= response.status_code < 300:
            logger.warning(
                "completion_notify_rejected",
                session_id=record.session_id,
                status_code=response.status_code,
            )
            return False

        logger.info("completion_notified", session_id=record.session_id)
        return True

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
