"""Analytics recorder for one tour session.

Events go to two lists: a durable history that is never purged (the
controller displays it) and a pending buffer that is drained only by
successful deliveries. Flushes are single-flight, so the buffer can be
appended to from anywhere without coordination.
"""

import asyncio
import atexit
from typing import Any

from autodemo.analytics.transport import AnalyticsTransport, HttpAnalyticsTransport
from autodemo.config.models.analytics import AnalyticsConfig
from autodemo.exceptions import AnalyticsDeliveryError
from autodemo.models.enums import EventType
from autodemo.models.events import (
    AnalyticsBatch,
    AnalyticsEvent,
    AnalyticsMetadata,
    Session,
    now_ms,
)
from autodemo.observability.logging import get_logger
from autodemo.observability.metrics import ANALYTICS_FLUSHES

logger = get_logger(__name__)


class AnalyticsRecorder:
    """Buffers lifecycle events and ships them to the collector in batches.

    Delivery failures are logged and counted, never raised. Events that were
    part of a failed delivery stay in the pending buffer and ride along with
    the next flush.

    With register_teardown_hook enabled the recorder registers a process-exit
    hook that holds a reference to it until close() is awaited.
    """

    def __init__(
        self,
        transport: AnalyticsTransport | None = None,
        config: AnalyticsConfig | None = None,
        *,
        session: Session | None = None,
        batch_size: int | None = None,
        referrer: str | None = None,
    ) -> None:
        """Initialize the recorder.

        Args:
            transport: Delivery transport (default: HTTP to config.endpoint)
            config: Analytics configuration
            session: Session identity (default: freshly generated)
            batch_size: Override for config.batch_size
            referrer: Override for config.referrer

        Raises:
            ValueError: If batch_size is given and below 1
        """
        if batch_size is not None and batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")

        self._config = config or AnalyticsConfig()
        self._transport = transport or HttpAnalyticsTransport(
            self._config.endpoint,
            timeout_seconds=self._config.timeout_seconds,
            beacon_timeout_seconds=self._config.beacon_timeout_seconds,
        )
        self._session = session or Session()
        self._batch_size = batch_size if batch_size is not None else self._config.batch_size
        self._referrer = referrer if referrer is not None else self._config.referrer

        self._history: list[AnalyticsEvent] = []
        self._buffer: list[AnalyticsEvent] = []
        self._inflight: asyncio.Task[None] | None = None
        self._scheduled: set[asyncio.Task[None]] = set()
        self._teardown_registered = False

        if self._config.register_teardown_hook:
            atexit.register(self._deliver_on_teardown)
            self._teardown_registered = True

    @property
    def session_id(self) -> str:
        return self._session.session_id

    @property
    def start_time(self) -> int:
        return self._session.start_time

    @property
    def pending_events(self) -> list[AnalyticsEvent]:
        """Events not yet acknowledged by the collector."""
        return list(self._buffer)

    def get_events(self) -> list[AnalyticsEvent]:
        """Copy of every event recorded in this session."""
        return list(self._history)

    def track_event(
        self,
        event_type: EventType | str,
        step_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> AnalyticsEvent:
        """Stamp and enqueue an event, scheduling a flush once a batch is full."""
        event = AnalyticsEvent(
            type=EventType(event_type),
            step_id=step_id,
            details=details,
            session_id=self._session.session_id,
            timestamp=now_ms(),
        )
        self._history.append(event)
        self._buffer.append(event)

        if len(self._buffer) >= self._batch_size:
            self._schedule_flush()

        return event

    async def flush(self) -> None:
        """Deliver the pending buffer.

        Overlapping calls wait on the delivery already in flight instead of
        issuing a second request.
        """
        if not self._buffer:
            return

        if self._inflight is not None:
            await asyncio.shield(self._inflight)
            return

        snapshot = list(self._buffer)
        batch = AnalyticsBatch(
            session_id=self._session.session_id,
            events=snapshot,
            metadata=self._build_metadata(),
        )
        self._inflight = asyncio.create_task(self._deliver(batch, snapshot))
        await asyncio.shield(self._inflight)

    async def wait_idle(self) -> None:
        """Wait until no flush is scheduled or in flight."""
        while self._scheduled or self._inflight is not None:
            pending: list[asyncio.Task[None]] = list(self._scheduled)
            if self._inflight is not None:
                pending.append(self._inflight)
            await asyncio.gather(*pending, return_exceptions=True)

    async def close(self) -> None:
        """Unregister the teardown hook and release the transport."""
        if self._teardown_registered:
            atexit.unregister(self._deliver_on_teardown)
            self._teardown_registered = False
        await self.wait_idle()
        await self._transport.close()

    def _schedule_flush(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("analytics_flush_deferred", pending=len(self._buffer))
            return

        task = loop.create_task(self.flush())
        self._scheduled.add(task)
        task.add_done_callback(self._scheduled.discard)

    async def _deliver(self, batch: AnalyticsBatch, snapshot: list[AnalyticsEvent]) -> None:
        try:
            await self._transport.send(batch)
        except AnalyticsDeliveryError as e:
            ANALYTICS_FLUSHES.labels(outcome="failed").inc()
            logger.error(
                "analytics_flush_failed",
                session_id=batch.session_id,
                events=len(snapshot),
                status_code=e.status_code,
                error=e.message,
            )
            return
        except Exception as e:
            ANALYTICS_FLUSHES.labels(outcome="failed").inc()
            logger.error(
                "analytics_flush_error",
                session_id=batch.session_id,
                events=len(snapshot),
                error=str(e),
                error_type=type(e).__name__,
            )
            return
        finally:
            self._inflight = None

        delivered = {id(event) for event in snapshot}
        self._buffer = [event for event in self._buffer if id(event) not in delivered]
        ANALYTICS_FLUSHES.labels(outcome="delivered").inc()
        logger.debug(
            "analytics_flushed",
            session_id=batch.session_id,
            events=len(snapshot),
            still_pending=len(self._buffer),
        )

    def _build_metadata(self) -> AnalyticsMetadata:
        completed = any(event.type == EventType.COMPLETE for event in self._history)
        interaction_points = sum(
            1 for event in self._history if event.type == EventType.USER_INTERACTION
        )
        return AnalyticsMetadata(
            referrer=self._referrer,
            duration=max(0, now_ms() - self._session.start_time),
            completed=completed,
            interaction_points=interaction_points,
        )

    def _deliver_on_teardown(self) -> None:
        # Runs at interpreter exit: fire once, leave in-memory state untouched.
        if not self._buffer:
            return
        batch = AnalyticsBatch(
            session_id=self._session.session_id,
            events=list(self._buffer),
            metadata=self._build_metadata(),
        )
        delivered = self._transport.send_beacon(batch)
        logger.info(
            "analytics_teardown_delivery",
            session_id=batch.session_id,
            events=len(batch.events),
            delivered=delivered,
        )
