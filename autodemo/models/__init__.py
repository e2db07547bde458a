"""Tour domain models."""

from autodemo.models.enums import EventType
from autodemo.models.events import (
    AnalyticsBatch,
    AnalyticsEvent,
    AnalyticsMetadata,
    Session,
    now_ms,
)
from autodemo.models.step import Scenario, Step, StepAction, ensure_unique_step_ids

__all__ = [
    "AnalyticsBatch",
    "AnalyticsEvent",
    "AnalyticsMetadata",
    "EventType",
    "Scenario",
    "Session",
    "Step",
    "StepAction",
    "ensure_unique_step_ids",
    "now_ms",
]
