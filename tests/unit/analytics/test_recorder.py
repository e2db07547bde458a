"""Unit tests for AnalyticsRecorder buffering and flush behaviour."""

import asyncio
from unittest.mock import patch

import pytest

from autodemo.analytics.recorder import AnalyticsRecorder
from autodemo.config.models.analytics import AnalyticsConfig
from autodemo.models.enums import EventType
from autodemo.models.events import Session


@pytest.fixture
def analytics_config() -> AnalyticsConfig:
    """Analytics config without the process-exit hook."""
    return AnalyticsConfig(batch_size=5, register_teardown_hook=False, referrer="https://docs")


@pytest.fixture
def recorder(transport, analytics_config) -> AnalyticsRecorder:
    """Create recorder writing to the recording transport."""
    return AnalyticsRecorder(transport=transport, config=analytics_config)


class TestTrackEvent:
    """Tests for event stamping and buffering."""

    def test_event_is_stamped(self, transport, analytics_config) -> None:
        """Events carry the session id and a timestamp."""
        session = Session(session_id="s-1", start_time=1000)
        recorder = AnalyticsRecorder(transport=transport, config=analytics_config, session=session)

        event = recorder.track_event(EventType.STEP_START, step_id="intro")

        assert event.session_id == "s-1"
        assert event.step_id == "intro"
        assert event.timestamp >= 1000

    def test_accepts_event_type_values(self, recorder: AnalyticsRecorder) -> None:
        """Plain string event types are coerced."""
        event = recorder.track_event("pause")
        assert event.type == EventType.PAUSE

    def test_history_and_buffer_are_copies(self, recorder: AnalyticsRecorder) -> None:
        """Returned lists do not alias internal state."""
        recorder.track_event(EventType.START)
        recorder.get_events().clear()
        recorder.pending_events.clear()

        assert len(recorder.get_events()) == 1
        assert len(recorder.pending_events) == 1

    def test_full_batch_without_loop_defers_flush(self, transport) -> None:
        """Outside an event loop a full batch stays pending."""
        config = AnalyticsConfig(batch_size=1, register_teardown_hook=False)
        recorder = AnalyticsRecorder(transport=transport, config=config)

        recorder.track_event(EventType.START)

        assert transport.attempts == 0
        assert len(recorder.pending_events) == 1

    @pytest.mark.parametrize("batch_size", [0, -1])
    def test_rejects_non_positive_batch_size(
        self, transport, analytics_config, batch_size
    ) -> None:
        """An explicit batch size below one is an error, not a fallback to config."""
        with pytest.raises(ValueError, match="batch_size"):
            AnalyticsRecorder(transport=transport, config=analytics_config, batch_size=batch_size)


@pytest.mark.asyncio
class TestFlush:
    """Tests for batch delivery."""

    async def test_below_batch_size_does_not_flush(self, recorder, transport) -> None:
        """Four events stay buffered."""
        for _ in range(4):
            recorder.track_event(EventType.STEP_START, step_id="a")
        await recorder.wait_idle()

        assert transport.attempts == 0
        assert len(recorder.pending_events) == 4

    async def test_full_batch_triggers_single_flush(self, recorder, transport) -> None:
        """Five events produce exactly one delivery containing all five."""
        for i in range(5):
            recorder.track_event(EventType.STEP_START, step_id=f"s{i}")
        await recorder.wait_idle()

        assert transport.attempts == 1
        assert len(transport.batches[0].events) == 5
        assert recorder.pending_events == []
        assert len(recorder.get_events()) == 5

    async def test_batch_size_override_wins_over_config(
        self, transport, analytics_config
    ) -> None:
        """The constructor batch size replaces the configured one."""
        recorder = AnalyticsRecorder(transport=transport, config=analytics_config, batch_size=1)

        recorder.track_event(EventType.START)
        await recorder.wait_idle()

        assert transport.attempts == 1
        assert recorder.pending_events == []

    async def test_failed_events_ride_along_with_next_flush(self, recorder, transport) -> None:
        """After a failed delivery the next batch carries all six events."""
        transport.fail = True
        for i in range(5):
            recorder.track_event(EventType.STEP_START, step_id=f"s{i}")
        await recorder.wait_idle()

        assert transport.attempts == 1
        assert len(recorder.pending_events) == 5

        transport.fail = False
        recorder.track_event(EventType.STEP_COMPLETE, step_id="s4")
        await recorder.wait_idle()

        assert transport.attempts == 2
        assert len(transport.batches[1].events) == 6
        assert recorder.pending_events == []

    async def test_empty_buffer_is_not_sent(self, recorder, transport) -> None:
        """Flushing with nothing pending makes no request."""
        await recorder.flush()
        assert transport.attempts == 0

    async def test_overlapping_flushes_share_one_delivery(self, recorder, transport) -> None:
        """Flush calls made during a delivery join it instead of sending again."""
        transport.gate = asyncio.Event()
        recorder.track_event(EventType.START)
        first = asyncio.create_task(recorder.flush())
        await asyncio.sleep(0)

        joined = asyncio.gather(recorder.flush(), recorder.flush())
        await asyncio.sleep(0)
        transport.gate.set()
        await asyncio.gather(first, joined)

        assert transport.attempts == 1

    async def test_events_added_during_delivery_stay_pending(self, recorder, transport) -> None:
        """Only the delivered snapshot is removed from the buffer."""
        transport.gate = asyncio.Event()
        recorder.track_event(EventType.START)
        delivery = asyncio.create_task(recorder.flush())
        await asyncio.sleep(0)

        late = recorder.track_event(EventType.STEP_START, step_id="intro")
        transport.gate.set()
        await delivery

        assert recorder.pending_events == [late]

    async def test_metadata_reports_completion_and_interactions(
        self, recorder, transport
    ) -> None:
        """Metadata is derived from the whole session history."""
        recorder.track_event(EventType.USER_INTERACTION, step_id="a")
        recorder.track_event(EventType.USER_INTERACTION, step_id="b")
        recorder.track_event(EventType.COMPLETE)
        await recorder.flush()

        metadata = transport.batches[0].metadata
        assert metadata.completed is True
        assert metadata.interaction_points == 2
        assert metadata.referrer == "https://docs"
        assert metadata.duration >= 0

    async def test_unexpected_transport_error_is_contained(self, recorder, transport) -> None:
        """Errors other than delivery failures are logged, not raised."""

        async def broken_send(batch):
            raise RuntimeError("boom")

        transport.send = broken_send
        recorder.track_event(EventType.START)

        await recorder.flush()

        assert len(recorder.pending_events) == 1


class TestTeardown:
    """Tests for the process-exit delivery hook."""

    def test_registers_and_unregisters_hook(self, transport) -> None:
        """The atexit hook follows the configuration and is removed on close."""
        config = AnalyticsConfig(register_teardown_hook=True)
        with (
            patch("autodemo.analytics.recorder.atexit.register") as register,
            patch("autodemo.analytics.recorder.atexit.unregister") as unregister,
        ):
            recorder = AnalyticsRecorder(transport=transport, config=config)
            asyncio.run(recorder.close())

        register.assert_called_once()
        unregister.assert_called_once()
        assert transport.closed is True

    def test_teardown_sends_pending_events_once(self, recorder, transport) -> None:
        """Pending events go out through the beacon without touching state."""
        recorder.track_event(EventType.START)
        recorder.track_event(EventType.EXIT)

        recorder._deliver_on_teardown()

        assert len(transport.beacons) == 1
        assert len(transport.beacons[0].events) == 2
        assert len(recorder.pending_events) == 2

    def test_teardown_with_nothing_pending(self, recorder, transport) -> None:
        """No beacon is sent when the buffer is empty."""
        recorder._deliver_on_teardown()
        assert transport.beacons == []
