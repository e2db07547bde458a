"""Step and scenario models.

A scenario is an ordered, immutable list of steps. Each step carries its
narration, an opaque asynchronous action and the optional selectors the
orchestrator waits for and highlights once the action has settled.
"""

from collections.abc import Awaitable, Callable, Sequence

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, computed_field, model_validator

from autodemo.exceptions import ScenarioValidationError

StepAction = Callable[[], Awaitable[None]]


class Step(BaseModel):
    """One unit of scripted behavior: narration, action, completion gate."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(min_length=1, description="Unique within its scenario")
    narration: str = Field(default="", description="Text shown or spoken for this step")
    planned_duration: int = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("planned_duration", "duration"),
        description="Advisory duration in milliseconds",
    )
    action: StepAction = Field(description="Zero-argument coroutine function")
    wait_for_selector: str | None = Field(
        default=None,
        description="Selector polled after the action settles",
    )
    highlight_selectors: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("highlight_selectors", "highlights"),
        description="Selectors marked once the selector wait resolves",
    )
    allow_interaction: bool = Field(
        default=False,
        description="Reserved for controllers; not consumed by the orchestrator",
    )


def ensure_unique_step_ids(steps: Sequence[Step]) -> None:
    """Raise ScenarioValidationError if two steps share an id."""
    seen: set[str] = set()
    duplicates: list[str] = []
    for step in steps:
        if step.id in seen:
            duplicates.append(step.id)
        seen.add(step.id)
    if duplicates:
        raise ScenarioValidationError(
            f"Duplicate step ids: {', '.join(sorted(set(duplicates)))}"
        )


class Scenario(BaseModel):
    """An ordered list of steps representing one complete guided tour."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str = Field(default="")
    steps: list[Step] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def estimated_duration(self) -> int:
        """Sum of planned step durations in milliseconds (informational)."""
        return sum(step.planned_duration for step in self.steps)

    @model_validator(mode="after")
    def _check_step_ids(self) -> "Scenario":
        ensure_unique_step_ids(self.steps)
        return self
