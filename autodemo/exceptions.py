"""Exception hierarchy for autodemo.

Only scenario validation is raised to callers. The remaining failures are
recovered inside the run loop or the analytics recorder; the classes exist
so those paths log and count a named failure.
"""


class AutodemoError(Exception):
    """Base exception for autodemo errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ScenarioValidationError(AutodemoError):
    """A scenario definition is inconsistent (e.g. duplicate step ids)."""


class StepActionFailure(AutodemoError):
    """A step action raised; the run continues with the next phase."""

    def __init__(self, step_id: str, cause: BaseException) -> None:
        super().__init__(f"Step '{step_id}' action failed: {cause}")
        self.step_id = step_id
        self.cause = cause


class SelectorTimeout(AutodemoError):
    """A wait_for_selector poll exceeded its bound; the run continues."""

    def __init__(self, selector: str, timeout_ms: int) -> None:
        super().__init__(f"Timed out after {timeout_ms}ms waiting for element {selector}")
        self.selector = selector
        self.timeout_ms = timeout_ms


class AnalyticsDeliveryError(AutodemoError):
    """An analytics batch was not accepted by the collector."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
