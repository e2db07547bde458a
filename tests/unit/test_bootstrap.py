"""Unit tests for bootstrap_demo wiring."""

from unittest.mock import patch

import pytest

from autodemo.bootstrap import bootstrap_demo
from autodemo.config.models import AnalyticsConfig, OrchestratorConfig
from autodemo.config.settings import Settings, set_toml_config
from autodemo.models.enums import EventType
from autodemo.models.step import Scenario
from autodemo.orchestration.interaction import InteractionBus, InteractionEvent, InteractionKind


@pytest.fixture
def settings(fast_config: OrchestratorConfig) -> Settings:
    """Settings with fast timings and no exit hook."""
    set_toml_config({})
    return Settings(
        orchestrator=fast_config.model_copy(update={"auto_pause_on_interaction": True}),
        analytics=AnalyticsConfig(register_teardown_hook=False, batch_size=50),
    )


@pytest.fixture
def scenario(make_step) -> Scenario:
    return Scenario(id="onboarding", name="Onboarding", steps=[make_step("a"), make_step("b")])


@pytest.mark.asyncio
class TestBootstrapDemo:
    """Tests for bootstrap_demo."""

    async def test_runs_scenario_end_to_end(
        self, scenario, settings, transport, document
    ) -> None:
        """The wired orchestrator records into the wired recorder."""
        orchestrator, recorder = bootstrap_demo(
            scenario,
            settings=settings,
            transport=transport,
            document=document,
            interactions=InteractionBus(),
            configure_logging=False,
        )

        await orchestrator.start()
        await orchestrator.join()
        await recorder.close()

        assert transport.batches[-1].session_id == recorder.session_id
        assert [e.type for e in transport.batches[-1].events][-1] == EventType.COMPLETE
        assert transport.closed is True

    async def test_uses_configured_interaction_behaviour(
        self, scenario, settings, transport
    ) -> None:
        """Auto-pause from settings subscribes to the given bus."""
        bus = InteractionBus()
        orchestrator, recorder = bootstrap_demo(
            scenario,
            settings=settings,
            transport=transport,
            interactions=bus,
            configure_logging=False,
        )

        assert bus.listener_count == 1
        await orchestrator.start()
        bus.publish(InteractionEvent(InteractionKind.CLICK))
        assert orchestrator.is_paused

        await orchestrator.cleanup()
        await orchestrator.join()
        await recorder.close()

    async def test_configures_logging_from_settings(self, scenario, settings, transport) -> None:
        """Logging is set up from the observability section."""
        with patch("autodemo.bootstrap.setup_logging") as setup:
            orchestrator, recorder = bootstrap_demo(
                scenario, settings=settings, transport=transport, interactions=InteractionBus()
            )

        setup.assert_called_once_with(level="INFO", format="json", redact_pii=True)
        await recorder.close()
