"""Run state machine for the tour orchestrator.

The orchestrator never mutates its state directly. Every public call and
every step of the run loop is expressed as a command and passed through
`transition`, a pure function returning the next state together with the
ordered list of effects to perform. A rejected command (failed guard)
yields no state change and no effects.

Phases:
    IDLE --Start--> WAITING_TURN
    WAITING_TURN --BeginStep--> EXECUTING_STEP
    EXECUTING_STEP --SettleStep--> WAITING_COMPLETION
    WAITING_COMPLETION --Advance--> WAITING_TURN   (or --Complete--> COMPLETED)
    any running phase --Pause--> PAUSED --Resume--> the phase it was in
    any running phase or PAUSED --Stop--> STOPPED
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

from autodemo.models.enums import EventType
from autodemo.models.step import Step


class RunPhase(str, Enum):
    """Where the run loop currently is."""

    IDLE = "idle"
    WAITING_TURN = "waiting_turn"
    EXECUTING_STEP = "executing_step"
    WAITING_COMPLETION = "waiting_completion"
    PAUSED = "paused"
    COMPLETED = "completed"
    STOPPED = "stopped"


RUNNING_PHASES: frozenset[RunPhase] = frozenset({
    RunPhase.WAITING_TURN,
    RunPhase.EXECUTING_STEP,
    RunPhase.WAITING_COMPLETION,
})


class OrchestratorState(BaseModel):
    """Runtime state of one orchestrator. Never persisted."""

    model_config = ConfigDict(frozen=True)

    phase: RunPhase = RunPhase.IDLE
    resume_phase: RunPhase | None = None
    current_step_index: int = 0
    manual_advance_requested: bool = False
    rewind_pending: bool = False

    @property
    def is_running(self) -> bool:
        return self.phase in RUNNING_PHASES or self.phase == RunPhase.PAUSED

    @property
    def is_paused(self) -> bool:
        return self.phase == RunPhase.PAUSED

    @property
    def active_phase(self) -> RunPhase:
        """The running phase, looking through a pause."""
        if self.phase == RunPhase.PAUSED and self.resume_phase is not None:
            return self.resume_phase
        return self.phase

    def with_phase(self, phase: RunPhase) -> "OrchestratorState":
        """Move to phase, or record it as the resume target while paused."""
        if self.is_paused:
            return self.model_copy(update={"resume_phase": phase})
        return self.model_copy(update={"phase": phase})


@dataclass(frozen=True)
class RunContext:
    """Fixed per-orchestrator inputs the guards depend on."""

    steps: Sequence[Step]
    manual_advance: bool = False
    auto_pause_on_interaction: bool = False

    def step_id_at(self, index: int) -> str | None:
        if 0 <= index < len(self.steps):
            return self.steps[index].id
        return None


# Commands


@dataclass(frozen=True)
class Start:
    pass


@dataclass(frozen=True)
class Stop:
    pass


@dataclass(frozen=True)
class Pause:
    pass


@dataclass(frozen=True)
class Resume:
    pass


@dataclass(frozen=True)
class UserInteraction:
    """A trusted, unsuppressed interaction observed while auto-pause is on."""


@dataclass(frozen=True)
class RequestAdvance:
    """Operator asked to pass the current gate (manual mode)."""


@dataclass(frozen=True)
class PassGate:
    """Loop consumes the pending advance flag."""


@dataclass(frozen=True)
class Rewind:
    """Operator asked to go one step back (manual mode)."""


@dataclass(frozen=True)
class BeginStep:
    index: int


@dataclass(frozen=True)
class SettleStep:
    """The step action has settled; post-action waits begin."""


@dataclass(frozen=True)
class FinishStep:
    index: int


@dataclass(frozen=True)
class Advance:
    pass


@dataclass(frozen=True)
class Complete:
    pass


Command = (
    Start
    | Stop
    | Pause
    | Resume
    | UserInteraction
    | RequestAdvance
    | PassGate
    | Rewind
    | BeginStep
    | SettleStep
    | FinishStep
    | Advance
    | Complete
)


# Effects


@dataclass(frozen=True)
class TrackEvent:
    event_type: EventType
    step_id: str | None = None


@dataclass(frozen=True)
class InvokeCallback:
    name: str
    args: tuple[Any, ...] = ()


@dataclass(frozen=True)
class ClearHighlights:
    pass


@dataclass(frozen=True)
class ReportProgress:
    percent: float


@dataclass(frozen=True)
class FlushAnalytics:
    pass


Effect = TrackEvent | InvokeCallback | ClearHighlights | ReportProgress | FlushAnalytics


@dataclass(frozen=True)
class Transition:
    """Outcome of applying a command."""

    state: OrchestratorState
    effects: list[Effect] = field(default_factory=list)
    accepted: bool = True


def _reject(state: OrchestratorState) -> Transition:
    return Transition(state=state, effects=[], accepted=False)


def _progress(index: int, total: int) -> ReportProgress:
    if total <= 0:
        return ReportProgress(percent=100.0)
    return ReportProgress(percent=min(100.0, index / total * 100))


def transition(state: OrchestratorState, command: Command, context: RunContext) -> Transition:
    """Apply command to state under the guards of context."""
    total = len(context.steps)

    match command:
        case Start():
            if state.is_running:
                return _reject(state)
            return Transition(
                state=OrchestratorState(
                    phase=RunPhase.WAITING_TURN,
                    current_step_index=0,
                    # The first step needs no operator signal.
                    manual_advance_requested=context.manual_advance,
                ),
                effects=[TrackEvent(EventType.START)],
            )

        case Stop():
            if not state.is_running:
                return _reject(state)
            return Transition(
                state=state.model_copy(
                    update={
                        "phase": RunPhase.STOPPED,
                        "resume_phase": None,
                        "manual_advance_requested": False,
                        "rewind_pending": False,
                    }
                ),
                effects=[
                    ClearHighlights(),
                    TrackEvent(EventType.EXIT, context.step_id_at(state.current_step_index)),
                    InvokeCallback("on_exit"),
                ],
            )

        case Pause() | UserInteraction():
            if not state.is_running or state.is_paused:
                return _reject(state)
            if isinstance(command, UserInteraction) and not context.auto_pause_on_interaction:
                return _reject(state)
            step_id = context.step_id_at(state.current_step_index)
            effects: list[Effect] = [
                TrackEvent(EventType.PAUSE, step_id),
                InvokeCallback("on_pause"),
            ]
            if isinstance(command, UserInteraction):
                effects.append(TrackEvent(EventType.USER_INTERACTION, step_id))
            return Transition(
                state=state.model_copy(
                    update={"phase": RunPhase.PAUSED, "resume_phase": state.phase}
                ),
                effects=effects,
            )

        case Resume():
            if not state.is_paused:
                return _reject(state)
            return Transition(
                state=state.model_copy(
                    update={"phase": state.active_phase, "resume_phase": None}
                ),
                effects=[
                    TrackEvent(EventType.RESUME, context.step_id_at(state.current_step_index)),
                    InvokeCallback("on_resume"),
                ],
            )

        case RequestAdvance():
            if not context.manual_advance or not state.is_running:
                return _reject(state)
            return Transition(state=state.model_copy(update={"manual_advance_requested": True}))

        case PassGate():
            if not state.is_running or not state.manual_advance_requested:
                return _reject(state)
            return Transition(state=state.model_copy(update={"manual_advance_requested": False}))

        case Rewind():
            if not context.manual_advance or not state.is_running:
                return _reject(state)
            phase = state.active_phase
            if phase == RunPhase.WAITING_COMPLETION:
                shown = state.current_step_index
            elif phase == RunPhase.WAITING_TURN:
                shown = state.current_step_index - 1
            else:
                return _reject(state)
            if shown <= 0:
                return _reject(state)
            target = shown - 1
            return Transition(
                state=state.model_copy(
                    update={
                        "current_step_index": target,
                        # Still inside the shown step: the coming Advance must not increment.
                        "rewind_pending": phase == RunPhase.WAITING_COMPLETION,
                        "manual_advance_requested": True,
                    }
                ),
                effects=[ClearHighlights(), _progress(target, total)],
            )

        case BeginStep(index=index):
            if not state.is_running or state.active_phase != RunPhase.WAITING_TURN:
                return _reject(state)
            if not 0 <= index < total:
                return _reject(state)
            step = context.steps[index]
            effects = []
            if context.manual_advance:
                effects.append(ClearHighlights())
            effects.extend([
                InvokeCallback("on_step_start", (step, index)),
                TrackEvent(EventType.STEP_START, step.id),
                InvokeCallback("on_narration", (step.narration,)),
            ])
            return Transition(
                state=state.model_copy(update={"current_step_index": index}).with_phase(
                    RunPhase.EXECUTING_STEP
                ),
                effects=effects,
            )

        case SettleStep():
            if not state.is_running or state.active_phase != RunPhase.EXECUTING_STEP:
                return _reject(state)
            return Transition(state=state.with_phase(RunPhase.WAITING_COMPLETION))

        case FinishStep(index=index):
            if not state.is_running or not 0 <= index < total:
                return _reject(state)
            step = context.steps[index]
            effects = []
            if not context.manual_advance:
                effects.append(ClearHighlights())
            effects.extend([
                TrackEvent(EventType.STEP_COMPLETE, step.id),
                InvokeCallback("on_step_complete", (step, index)),
            ])
            return Transition(state=state, effects=effects)

        case Advance():
            if not state.is_running:
                return _reject(state)
            if state.rewind_pending:
                index = state.current_step_index
            else:
                index = state.current_step_index + 1
            next_state = state.model_copy(
                update={"current_step_index": index, "rewind_pending": False}
            ).with_phase(RunPhase.WAITING_TURN)
            return Transition(state=next_state, effects=[_progress(index, total)])

        case Complete():
            if not state.is_running:
                return _reject(state)
            effects = [TrackEvent(EventType.COMPLETE)]
            if total == 0:
                effects.append(_progress(0, total))
            effects.extend([
                ClearHighlights(),
                FlushAnalytics(),
                InvokeCallback("on_complete"),
            ])
            return Transition(
                state=state.model_copy(
                    update={
                        "phase": RunPhase.COMPLETED,
                        "resume_phase": None,
                        "manual_advance_requested": False,
                        "rewind_pending": False,
                    }
                ),
                effects=effects,
            )

    raise TypeError(f"Unknown command: {command!r}")
