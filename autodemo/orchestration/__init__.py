"""Tour orchestration: run loop, state machine and interaction handling."""

from autodemo.orchestration.callbacks import DemoCallbacks
from autodemo.orchestration.interaction import (
    InteractionBus,
    InteractionEvent,
    InteractionKind,
    default_bus,
)
from autodemo.orchestration.orchestrator import DemoOrchestrator
from autodemo.orchestration.state import OrchestratorState, RunPhase

__all__ = [
    "DemoCallbacks",
    "DemoOrchestrator",
    "InteractionBus",
    "InteractionEvent",
    "InteractionKind",
    "OrchestratorState",
    "RunPhase",
    "default_bus",
]
