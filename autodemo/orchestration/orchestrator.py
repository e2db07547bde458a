"""Tour orchestrator.

Sequences the steps of a scenario on a single asyncio task. Every state
change goes through the transition reducer in `state.py`; this module owns
the suspension points (action, selector poll, duration slices, manual gate,
pause waiter) and performs the effects the reducer returns, in order.

Nothing that happens during a run is fatal: failing actions are logged and
skipped, missing elements time out with a warning, analytics problems stay
inside the recorder.
"""

import asyncio
from collections.abc import Callable, Sequence
from typing import Any

from autodemo.analytics.recorder import AnalyticsRecorder
from autodemo.config.models.orchestrator import OrchestratorConfig
from autodemo.dom.document import DocumentQuery
from autodemo.exceptions import SelectorTimeout, StepActionFailure
from autodemo.models.step import Scenario, Step, ensure_unique_step_ids
from autodemo.observability.logging import get_logger
from autodemo.observability.metrics import (
    DEMO_RUNS,
    SELECTOR_TIMEOUTS,
    STEP_EXECUTIONS,
    STEP_LATENCY,
)
from autodemo.orchestration.callbacks import DemoCallbacks
from autodemo.orchestration.interaction import InteractionBus, InteractionEvent
from autodemo.orchestration.state import (
    Advance,
    BeginStep,
    ClearHighlights,
    Command,
    Complete,
    Effect,
    FinishStep,
    FlushAnalytics,
    InvokeCallback,
    OrchestratorState,
    PassGate,
    Pause,
    ReportProgress,
    RequestAdvance,
    Resume,
    Rewind,
    RunContext,
    RunPhase,
    SettleStep,
    Start,
    Stop,
    TrackEvent,
    Transition,
    UserInteraction,
    transition,
)

logger = get_logger(__name__)


class DemoOrchestrator:
    """Drives a scenario's steps to completion exactly once per run.

    Supports pause/resume, operator-gated (manual) advance with one-step
    rewind, bounded selector waits and highlight side effects, and can be
    stopped at any suspension point.

    The analytics recorder is borrowed, not owned: cleanup() flushes it but
    leaves it open. Callers that created the recorder must also await
    recorder.close() to release its process-exit hook and transport:

        await orchestrator.cleanup()
        await recorder.close()
    """

    def __init__(
        self,
        steps: Sequence[Step],
        *,
        analytics: AnalyticsRecorder | None = None,
        callbacks: DemoCallbacks | None = None,
        document: DocumentQuery | None = None,
        interactions: InteractionBus | None = None,
        auto_pause_on_interaction: bool | None = None,
        manual_advance: bool | None = None,
        wait_timeout_ms: int | None = None,
        config: OrchestratorConfig | None = None,
        scenario_id: str | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            steps: Steps in execution order
            analytics: Recorder receiving lifecycle events
            callbacks: Controller hooks
            document: Document capability for selector waits and highlights
            interactions: Bus to watch when auto-pause is enabled
            auto_pause_on_interaction: Override for config value
            manual_advance: Override for config value
            wait_timeout_ms: Override for config value
            config: Timing and behaviour defaults
            scenario_id: Bound into log context

        Raises:
            ScenarioValidationError: If two steps share an id
        """
        self._steps: tuple[Step, ...] = tuple(steps)
        ensure_unique_step_ids(self._steps)
        self._config = config or OrchestratorConfig()
        self._analytics = analytics
        self._callbacks = callbacks or DemoCallbacks()
        self._document = document
        self._interactions = interactions

        self._manual_advance = (
            manual_advance if manual_advance is not None else self._config.manual_advance
        )
        self._auto_pause = (
            auto_pause_on_interaction
            if auto_pause_on_interaction is not None
            else self._config.auto_pause_on_interaction
        )
        self._wait_timeout_ms = (
            wait_timeout_ms if wait_timeout_ms is not None else self._config.wait_timeout_ms
        )

        self._context = RunContext(
            steps=self._steps,
            manual_advance=self._manual_advance,
            auto_pause_on_interaction=self._auto_pause,
        )
        self._state = OrchestratorState()
        self._destroyed = False
        self._run_task: asyncio.Task[None] | None = None
        self._waiters: list[asyncio.Future[None]] = []
        self._background: set[asyncio.Task[Any]] = set()
        self._log = logger.bind(scenario_id=scenario_id) if scenario_id else logger

        if self._auto_pause and self._interactions is not None:
            self._interactions.subscribe(self._handle_interaction)

    @classmethod
    def from_scenario(cls, scenario: Scenario, **kwargs: Any) -> "DemoOrchestrator":
        """Build an orchestrator for every step of scenario."""
        return cls(scenario.steps, scenario_id=scenario.id, **kwargs)

    # Accessors

    @property
    def state(self) -> OrchestratorState:
        return self._state

    @property
    def phase(self) -> RunPhase:
        return self._state.phase

    @property
    def steps(self) -> tuple[Step, ...]:
        return self._steps

    @property
    def current_step_index(self) -> int:
        return self._state.current_step_index

    @property
    def current_step(self) -> Step | None:
        index = self._state.current_step_index
        if 0 <= index < len(self._steps):
            return self._steps[index]
        return None

    @property
    def is_running(self) -> bool:
        return self._state.is_running

    @property
    def is_paused(self) -> bool:
        return self._state.is_paused

    @property
    def manual_advance(self) -> bool:
        return self._manual_advance

    # Public operations

    async def start(self) -> None:
        """Begin from step 0 on a background task. No-op if already running."""
        if self._destroyed or self._state.is_running:
            return

        previous = self._run_task
        if previous is not None and not previous.done() and previous is not asyncio.current_task():
            # A stopped run winds down at its next suspension check.
            await previous

        if not self._dispatch(Start()):
            return

        self._log.info(
            "demo_started",
            steps=len(self._steps),
            manual_advance=self._manual_advance,
        )
        self._run_task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Terminate the run. Idempotent when not running."""
        index = self._state.current_step_index
        if not self._dispatch(Stop()):
            return
        DEMO_RUNS.labels(outcome="stopped").inc()
        self._log.info("demo_stopped", step_index=index)

    async def pause(self) -> None:
        """Freeze post-action waits. In-flight actions keep running."""
        if self._dispatch(Pause()):
            self._log.info("demo_paused", step_index=self._state.current_step_index)

    async def resume(self) -> None:
        if self._dispatch(Resume()):
            self._log.info("demo_resumed", step_index=self._state.current_step_index)

    def request_next_step(self) -> None:
        """Arm the manual gate. Repeated calls before the gate opens count once."""
        self._dispatch(RequestAdvance())

    def go_to_previous_step(self) -> None:
        """Make the next executed step the one before the step shown."""
        if self._dispatch(Rewind()):
            self._log.info("demo_rewound", step_index=self._state.current_step_index)

    async def cleanup(self) -> None:
        """Destroy the instance: stop, detach listeners, flush analytics.

        The recorder stays open; close it separately.
        """
        self._destroyed = True
        await self.stop()

        if self._interactions is not None:
            self._interactions.unsubscribe(self._handle_interaction)

        self._notify()

        if self._analytics is not None:
            await self._analytics.flush()

    async def join(self) -> None:
        """Wait for the current run task, if any, to finish."""
        task = self._run_task
        if task is not None and task is not asyncio.current_task():
            await task

    # Dispatch

    def _commit(self, command: Command) -> Transition | None:
        result = transition(self._state, command, self._context)
        if not result.accepted:
            return None
        self._state = result.state
        return result

    def _dispatch(self, command: Command) -> bool:
        result = self._commit(command)
        if result is None:
            return False
        for effect in result.effects:
            if isinstance(effect, FlushAnalytics):
                self._spawn_flush()
            else:
                self._apply(effect)
        self._notify()
        return True

    async def _dispatch_async(self, command: Command) -> bool:
        result = self._commit(command)
        if result is None:
            return False
        self._notify()
        for effect in result.effects:
            if isinstance(effect, FlushAnalytics):
                if self._analytics is not None:
                    await self._analytics.flush()
            else:
                self._apply(effect)
        return True

    def _apply(self, effect: Effect) -> None:
        if isinstance(effect, TrackEvent):
            if self._analytics is not None:
                self._analytics.track_event(effect.event_type, step_id=effect.step_id)
        elif isinstance(effect, InvokeCallback):
            self._emit(effect.name, *effect.args)
        elif isinstance(effect, ClearHighlights):
            self._clear_highlights()
        elif isinstance(effect, ReportProgress):
            self._emit("on_progress", effect.percent)

    def _spawn_flush(self) -> None:
        if self._analytics is None:
            return
        task = asyncio.get_running_loop().create_task(self._analytics.flush())
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    def _emit(self, name: str, *args: Any) -> None:
        callback: Callable[..., None] | None = getattr(self._callbacks, name)
        if callback is None:
            return
        try:
            callback(*args)
        except Exception as e:
            self._log.error("callback_failed", callback=name, error=str(e))

    # Suspension helpers

    def _active(self) -> bool:
        return self._state.is_running and not self._destroyed

    def _notify(self) -> None:
        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(None)

    async def _wait_until(
        self, predicate: Callable[[], bool], timeout: float | None = None
    ) -> bool:
        """Suspend until predicate holds; re-checked on every state change.

        Returns:
            The final value of predicate (False on timeout)
        """
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout

        while not predicate():
            remaining = None
            if deadline is not None:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    return False
            waiter: asyncio.Future[None] = loop.create_future()
            self._waiters.append(waiter)
            try:
                await asyncio.wait_for(waiter, remaining)
            except asyncio.TimeoutError:
                return predicate()
            finally:
                if waiter in self._waiters:
                    self._waiters.remove(waiter)

        return True

    async def _sleep(self, ms: float) -> None:
        """Sleep up to ms, returning early only when the run ends."""
        await self._wait_until(lambda: not self._active(), timeout=ms / 1000)

    async def _wait_while_paused(self) -> None:
        await self._wait_until(lambda: not self._state.is_paused or not self._active())

    async def _wait_for_manual_advance(self) -> None:
        await self._wait_until(
            lambda: self._state.manual_advance_requested or not self._active()
        )
        if self._active():
            self._dispatch(PassGate())

    async def _wait_duration(self, duration_ms: int) -> None:
        """Wait duration_ms in interruptible slices; paused time does not count."""
        elapsed = 0
        while elapsed < duration_ms and self._active():
            if self._state.is_paused:
                await self._wait_while_paused()
                continue
            chunk = min(duration_ms - elapsed, self._config.wait_slice_ms)
            await self._sleep(chunk)
            elapsed += chunk

    async def _wait_for_selector(self, selector: str) -> bool:
        """Poll for selector up to the wait timeout. Never raises."""
        if self._document is None:
            return True

        waited = 0
        while self._active():
            if self._document.exists(selector):
                return True
            if waited >= self._wait_timeout_ms:
                break
            if self._state.is_paused:
                await self._wait_while_paused()
                continue
            chunk = min(self._config.selector_poll_interval_ms, self._wait_timeout_ms - waited)
            await self._sleep(chunk)
            waited += chunk

        if not self._active():
            return False

        timeout = SelectorTimeout(selector, self._wait_timeout_ms)
        SELECTOR_TIMEOUTS.inc()
        self._log.warning(
            "selector_wait_timeout",
            selector=selector,
            timeout_ms=self._wait_timeout_ms,
            error=timeout.message,
        )
        return False

    # Highlights

    def _highlight(self, selectors: list[str]) -> None:
        if self._document is not None:
            for selector in selectors:
                self._document.add_marker(selector, self._config.highlight_marker)
        self._emit("on_highlight_change", list(selectors))

    def _clear_highlights(self) -> None:
        if self._document is not None:
            self._document.clear_marker(self._config.highlight_marker)
        self._emit("on_highlight_change", [])

    # Run loop

    async def _run(self) -> None:
        total = len(self._steps)

        while self._active() and self._state.current_step_index < total:
            await self._wait_while_paused()
            if not self._active():
                break

            if self._manual_advance:
                await self._wait_for_manual_advance()
                if not self._active():
                    break
                await self._wait_while_paused()
                if not self._active():
                    break

            index = self._state.current_step_index
            if index >= total:
                break

            await self._execute_step(index)
            if not self._active():
                break

            self._dispatch(Advance())

        if self._active():
            await self._dispatch_async(Complete())
            DEMO_RUNS.labels(outcome="completed").inc()
            self._log.info("demo_completed", steps=total)

    async def _execute_step(self, index: int) -> None:
        step = self._steps[index]
        if not self._dispatch(BeginStep(index)):
            return

        loop = asyncio.get_running_loop()
        started = loop.time()

        await self._run_action(step)
        if not self._active():
            return
        self._dispatch(SettleStep())

        if step.wait_for_selector:
            await self._wait_for_selector(step.wait_for_selector)
            if not self._active():
                return

        if step.highlight_selectors:
            self._highlight(step.highlight_selectors)

        if self._manual_advance:
            if step.planned_duration > 0:
                await self._wait_duration(
                    min(step.planned_duration, self._config.manual_settle_cap_ms)
                )
        else:
            await self._wait_duration(step.planned_duration)

        if not self._active():
            return

        self._dispatch(FinishStep(index))
        STEP_LATENCY.observe(loop.time() - started)

    async def _run_action(self, step: Step) -> None:
        """Await the step action unless the run ends first.

        The action runs on its own task and is never cancelled here; after a
        stop its outcome is only logged.
        """
        try:
            action = asyncio.ensure_future(step.action())
        except Exception as e:
            self._record_action_failure(step, e)
            return

        action.add_done_callback(lambda _task: self._notify())
        await self._wait_until(lambda: action.done() or not self._active())

        if not action.done():
            action.add_done_callback(self._make_orphan_logger(step.id))
            return

        if action.cancelled():
            STEP_EXECUTIONS.labels(status="cancelled").inc()
            self._log.warning("step_action_cancelled", step_id=step.id)
            return

        error = action.exception()
        if error is not None:
            self._record_action_failure(step, error)
            return

        STEP_EXECUTIONS.labels(status="succeeded").inc()

    def _record_action_failure(self, step: Step, error: BaseException) -> None:
        failure = StepActionFailure(step.id, error)
        STEP_EXECUTIONS.labels(status="failed").inc()
        self._log.error(
            "step_action_failed",
            step_id=step.id,
            error=failure.message,
            error_type=type(error).__name__,
        )

    def _make_orphan_logger(self, step_id: str) -> Callable[["asyncio.Future[Any]"], None]:
        def _log_outcome(task: "asyncio.Future[Any]") -> None:
            if task.cancelled():
                return
            error = task.exception()
            self._log.debug(
                "step_action_finished_after_stop",
                step_id=step_id,
                error=str(error) if error else None,
            )

        return _log_outcome

    def _handle_interaction(self, event: InteractionEvent) -> None:
        if not event.is_trusted:
            return
        if self._interactions is not None and self._interactions.suppressed:
            return
        if self._dispatch(UserInteraction()):
            self._log.info(
                "demo_paused_by_interaction",
                kind=event.kind.value,
                step_index=self._state.current_step_index,
            )
