"""Controller-facing callback surface."""

from collections.abc import Callable
from dataclasses import dataclass

from autodemo.models.step import Step


@dataclass
class DemoCallbacks:
    """Hooks a controller registers to render the tour.

    All hooks are optional and synchronous. Exceptions raised by a hook are
    logged by the orchestrator and never interrupt the run.
    """

    on_narration: Callable[[str], None] | None = None
    on_step_start: Callable[[Step, int], None] | None = None
    on_step_complete: Callable[[Step, int], None] | None = None
    on_progress: Callable[[float], None] | None = None
    on_pause: Callable[[], None] | None = None
    on_resume: Callable[[], None] | None = None
    on_complete: Callable[[], None] | None = None
    on_exit: Callable[[], None] | None = None
    on_highlight_change: Callable[[list[str]], None] | None = None
