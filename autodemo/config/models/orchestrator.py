"""Orchestrator configuration models.

Timing constants for the tour run loop. All durations are milliseconds,
matching the planned durations on steps.
"""

from pydantic import BaseModel, Field


class OrchestratorConfig(BaseModel):
    """Run loop behaviour and timing."""

    manual_advance: bool = Field(
        default=False,
        description="Require an explicit next-step signal to pass each gate",
    )
    auto_pause_on_interaction: bool = Field(
        default=False,
        description="Pause when a trusted user interaction is observed",
    )
    wait_timeout_ms: int = Field(
        default=12_000,
        ge=0,
        description="Upper bound for a wait_for_selector poll",
    )
    wait_slice_ms: int = Field(
        default=100,
        gt=0,
        description="Granularity of interruptible duration waits",
    )
    selector_poll_interval_ms: int = Field(
        default=200,
        gt=0,
        description="Interval between selector existence checks",
    )
    manual_settle_cap_ms: int = Field(
        default=400,
        ge=0,
        description="Cap on the post-action wait when in manual-advance mode",
    )
    highlight_marker: str = Field(
        default="demo-highlight",
        min_length=1,
        description="Marker applied to highlighted elements",
    )
