"""Bootstrap module for wiring a tour from configuration.

Controllers call this instead of assembling the recorder and orchestrator
by hand. Handles:
- Loading configuration from TOML files
- Configuring structured logging
- Creating the analytics recorder
- Creating the orchestrator for a scenario

Example usage:

    from autodemo.bootstrap import bootstrap_demo

    orchestrator, recorder = bootstrap_demo(scenario, callbacks=callbacks, document=document)
    await orchestrator.start()
    ...
    await orchestrator.cleanup()
    await recorder.close()
"""

from autodemo.analytics.recorder import AnalyticsRecorder
from autodemo.analytics.transport import AnalyticsTransport
from autodemo.config import get_settings
from autodemo.config.settings import Settings
from autodemo.dom.document import DocumentQuery
from autodemo.models.step import Scenario
from autodemo.observability.logging import get_logger, setup_logging
from autodemo.orchestration.callbacks import DemoCallbacks
from autodemo.orchestration.interaction import InteractionBus, default_bus
from autodemo.orchestration.orchestrator import DemoOrchestrator

logger = get_logger(__name__)


def bootstrap_demo(
    scenario: Scenario,
    *,
    settings: Settings | None = None,
    callbacks: DemoCallbacks | None = None,
    document: DocumentQuery | None = None,
    interactions: InteractionBus | None = None,
    transport: AnalyticsTransport | None = None,
    configure_logging: bool = True,
) -> tuple[DemoOrchestrator, AnalyticsRecorder]:
    """Create a recorder and an orchestrator for scenario.

    Args:
        scenario: Tour to run
        settings: Configuration (default: loaded from config/*.toml)
        callbacks: Controller hooks
        document: Document capability
        interactions: Interaction bus (default: the process-wide bus)
        transport: Analytics transport (default: HTTP to the configured endpoint)
        configure_logging: Whether to apply the logging configuration

    Returns:
        Tuple of (orchestrator, recorder)
    """
    settings = settings or get_settings()

    if configure_logging:
        logging_config = settings.observability.logging
        setup_logging(
            level=logging_config.level,
            format=logging_config.format,
            redact_pii=logging_config.redact_pii,
        )

    recorder = AnalyticsRecorder(transport=transport, config=settings.analytics)
    orchestrator = DemoOrchestrator.from_scenario(
        scenario,
        analytics=recorder,
        callbacks=callbacks,
        document=document,
        interactions=interactions or default_bus,
        config=settings.orchestrator,
    )

    logger.info(
        "demo_bootstrapped",
        scenario_id=scenario.id,
        session_id=recorder.session_id,
        steps=len(scenario.steps),
        estimated_duration_ms=scenario.estimated_duration,
    )

    return orchestrator, recorder
