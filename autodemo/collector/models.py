"""Collector request and storage models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from autodemo.models.events import now_ms


class CollectorPayload(BaseModel):
    """Incoming batch as sent by recorders.

    Parsing is lenient: browser clients send whatever they buffered, and a
    malformed batch should still be stored rather than dropped.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    session_id: str | None = None
    events: list[Any] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("events", mode="before")
    @classmethod
    def _events_as_list(cls, value: Any) -> list[Any]:
        return value if isinstance(value, list) else []

    @field_validator("metadata", mode="before")
    @classmethod
    def _metadata_as_dict(cls, value: Any) -> dict[str, Any]:
        return value if isinstance(value, dict) else {}


class AnalyticsRecord(BaseModel):
    """One stored batch."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    session_id: str
    events: list[Any] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    received_at: int = Field(default_factory=now_ms)
    user_agent: str | None = None

    @property
    def key(self) -> str:
        return f"demo:{self.session_id}:{self.received_at}"

    @property
    def completed(self) -> bool:
        return bool(self.metadata.get("completed"))


class CollectorResponse(BaseModel):
    success: bool
    detail: str | None = None
