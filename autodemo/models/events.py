"""Analytics event and wire payload models.

Events are serialized with camelCase keys because the collector endpoint
receives them from browser clients as well as from Python ones.
"""

import time
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from autodemo.models.enums import EventType


def now_ms() -> int:
    """Current wall time as epoch milliseconds."""
    return int(time.time() * 1000)


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnalyticsEvent(_WireModel):
    """A single lifecycle event, stamped when enqueued."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    type: EventType
    step_id: str | None = None
    timestamp: int = Field(default_factory=now_ms, description="Epoch milliseconds")
    session_id: str
    details: dict[str, Any] | None = None


class Session(BaseModel):
    """Identity of one analytics recorder instance."""

    model_config = ConfigDict(frozen=True)

    session_id: str = Field(default_factory=lambda: str(uuid4()))
    start_time: int = Field(default_factory=now_ms, description="Epoch milliseconds")


class AnalyticsMetadata(_WireModel):
    """Derived metadata sent alongside each batch."""

    referrer: str | None = None
    duration: int = Field(ge=0, description="Milliseconds since the session started")
    completed: bool = False
    interaction_points: int = Field(default=0, ge=0)


class AnalyticsBatch(_WireModel):
    """Payload POSTed to the collector endpoint."""

    session_id: str
    events: list[AnalyticsEvent] = Field(default_factory=list)
    metadata: AnalyticsMetadata

    def to_wire(self) -> dict[str, Any]:
        """JSON-compatible dict with camelCase keys and unset optionals dropped."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
