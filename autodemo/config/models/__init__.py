"""Configuration model exports.

    from autodemo.config.models import OrchestratorConfig, AnalyticsConfig
"""

from autodemo.config.models.analytics import AnalyticsConfig, CollectorConfig
from autodemo.config.models.observability import LoggingConfig, ObservabilityConfig
from autodemo.config.models.orchestrator import OrchestratorConfig

__all__ = [
    "AnalyticsConfig",
    "CollectorConfig",
    "LoggingConfig",
    "ObservabilityConfig",
    "OrchestratorConfig",
]
