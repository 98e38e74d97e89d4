"""Error taxonomy for encounter generation and the session state machine.

Every error carries a stable ``error_code`` so the HTTP surface and the
command line can map it without string matching. None of these errors is
fatal: the registry always lands back in a usable state after raising one.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(eq=False)
class EncounterBuilderError(Exception):
    """Base class for encounter builder domain errors."""

    message: str
    error_code: str

    def __str__(self) -> str:
        return f"{self.error_code}: {self.message}"


class EncounterValidationError(EncounterBuilderError):
    """A request is missing or has an unusable variant-specific field."""

    def __init__(self, message: str, field: str) -> None:
        super().__init__(message=message, error_code="validation_failed")
        self.field = field


class GenerationError(EncounterBuilderError):
    kind = "generation"

    def __init__(self, message: str) -> None:
        super().__init__(message=message, error_code=self.kind)


class GenerationTimeout(GenerationError):
    kind = "timeout"

    def __init__(self, variant: str, deadline_s: float) -> None:
        super().__init__(f"Generating a {variant} encounter took longer than {deadline_s:g} seconds")
        self.variant = variant
        self.deadline_s = deadline_s


class GenerationTransportError(GenerationError):
    kind = "transport"

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class GenerationRejected(GenerationError):
    kind = "rejected"


class RegenerateWithoutContextError(EncounterBuilderError):
    def __init__(self, message: str = "No previous request is available to regenerate") -> None:
        super().__init__(message=message, error_code="nothing_to_regenerate")


class InvalidTransitionError(EncounterBuilderError):
    def __init__(self, action: str, state: str, message: str | None = None) -> None:
        super().__init__(
            message=message or f"Cannot {action} while the builder is {state}",
            error_code="invalid_transition",
        )
        self.action = action
        self.state = state


class RequestInFlightError(InvalidTransitionError):
    def __init__(self) -> None:
        super().__init__(
            action="submit",
            state="requesting",
            message="An encounter is already being generated",
        )
        self.error_code = "request_in_flight"


_NOTICE_PREFIXES = {
    "validation_failed": "Invalid request",
    "timeout": "Generation timed out",
    "transport": "Generation service unavailable",
    "rejected": "Generation failed",
    "nothing_to_regenerate": "Nothing to regenerate",
    "invalid_transition": "Action not possible",
    "request_in_flight": "Please wait",
}


def describe_error(exc: EncounterBuilderError) -> str:
    """Render a short notice naming the failure kind."""
    prefix = _NOTICE_PREFIXES.get(exc.error_code, "Error")
    notice = f"{prefix}: {exc.message.rstrip('.')}."
    if isinstance(exc, GenerationError):
        notice += " Please try again."
    return notice
