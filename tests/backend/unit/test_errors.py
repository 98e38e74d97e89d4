from encounterbuilder.backend.errors import (
    EncounterValidationError,
    GenerationRejected,
    GenerationTimeout,
    GenerationTransportError,
    RegenerateWithoutContextError,
    RequestInFlightError,
    describe_error,
)


def test_describe_error_names_failure_kind_and_suggests_retry_for_generation() -> None:
    timeout = describe_error(GenerationTimeout(variant="research", deadline_s=300.0))
    transport = describe_error(GenerationTransportError("Server error: 502 Bad Gateway", status=502))
    rejected = describe_error(GenerationRejected("No creatures match."))

    assert timeout.startswith("Generation timed out:")
    assert "300 seconds" in timeout
    assert transport == "Generation service unavailable: Server error: 502 Bad Gateway. Please try again."
    assert rejected == "Generation failed: No creatures match. Please try again."


def test_describe_error_for_non_generation_errors_has_no_retry_hint() -> None:
    validation = describe_error(EncounterValidationError("Field 'context' must not be empty", field="context"))
    regenerate = describe_error(RegenerateWithoutContextError())
    in_flight = describe_error(RequestInFlightError())

    assert validation == "Invalid request: Field 'context' must not be empty."
    assert regenerate.startswith("Nothing to regenerate:")
    assert in_flight.startswith("Please wait:")
    assert "try again" not in validation


def test_error_codes_are_stable() -> None:
    assert GenerationTimeout(variant="combat", deadline_s=120.0).error_code == "timeout"
    assert GenerationTransportError("down").error_code == "transport"
    assert GenerationRejected("no").error_code == "rejected"
    assert RequestInFlightError().error_code == "request_in_flight"
    assert str(GenerationRejected("no")) == "rejected: no"
