"""Process-wide interaction bus.

Hosts publish user input (clicks, key presses, touches) here; an
orchestrator with auto-pause enabled subscribes and pauses on trusted
input. Programmatic input generated by step actions should be wrapped in
`suppress()` so it does not interrupt the tour it belongs to.
"""

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum

from autodemo.observability.logging import get_logger

logger = get_logger(__name__)


class InteractionKind(str, Enum):
    """Input categories that count as a user interaction."""

    CLICK = "click"
    KEYDOWN = "keydown"
    TOUCHSTART = "touchstart"


@dataclass(frozen=True)
class InteractionEvent:
    """One input event as seen at the top level of the host."""

    kind: InteractionKind
    is_trusted: bool = True


InteractionListener = Callable[[InteractionEvent], None]


class InteractionBus:
    """Fan-out of interaction events with a nestable suppression counter."""

    def __init__(self) -> None:
        self._listeners: list[InteractionListener] = []
        self._suppress_depth = 0

    @property
    def suppressed(self) -> bool:
        return self._suppress_depth > 0

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: InteractionListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: InteractionListener) -> bool:
        if listener in self._listeners:
            self._listeners.remove(listener)
            return True
        return False

    @contextmanager
    def suppress(self) -> Iterator[None]:
        """Mark input published inside the block as caller-generated."""
        self._suppress_depth += 1
        try:
            yield
        finally:
            self._suppress_depth -= 1

    def publish(self, event: InteractionEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(
                    "interaction_listener_failed",
                    kind=event.kind.value,
                    error=str(e),
                )


# Shared by hosts that have a single top-level input source.
default_bus = InteractionBus()
