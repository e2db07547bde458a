"""Enums for the tour domain."""

from enum import Enum


class EventType(str, Enum):
    """Lifecycle events reported to the analytics sink."""

    START = "start"
    PAUSE = "pause"
    RESUME = "resume"
    COMPLETE = "complete"
    EXIT = "exit"
    STEP_START = "step_start"
    STEP_COMPLETE = "step_complete"
    USER_INTERACTION = "user_interaction"
