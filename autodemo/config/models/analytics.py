"""Analytics recorder and collector configuration models."""

from pydantic import BaseModel, Field, SecretStr


class AnalyticsConfig(BaseModel):
    """Client-side analytics recorder configuration."""

    endpoint: str = Field(
        default="http://localhost:8787/api/demo-analytics",
        description="Collector endpoint receiving analytics batches",
    )
    batch_size: int = Field(
        default=5,
        ge=1,
        description="Pending events that trigger an automatic flush",
    )
    timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Timeout for a regular flush request",
    )
    beacon_timeout_seconds: float = Field(
        default=2.0,
        gt=0,
        description="Timeout for the best-effort delivery at process exit",
    )
    referrer: str | None = Field(
        default=None,
        description="Referrer reported in batch metadata",
    )
    register_teardown_hook: bool = Field(
        default=True,
        description="Register an atexit hook delivering still-pending events",
    )


class CollectorConfig(BaseModel):
    """Server-side analytics collector configuration."""

    retention_seconds: int = Field(
        default=60 * 60 * 24 * 30,
        gt=0,
        description="How long received batches are kept",
    )
    slack_webhook_url: SecretStr | None = Field(
        default=None,
        description="Slack incoming webhook notified when a tour completes",
    )
    notify_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Timeout for the completion notification request",
    )
