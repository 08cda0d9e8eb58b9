"""Handling of responses whose HTTP status is not the success status."""

import logging

from src.models.envelope import ExpectedFixture, ResponseEnvelope
from src.models.outcome import ErrorKind, Shape, StepOutcome
from src.validation.validator import compare


logger = logging.getLogger(__name__)


def error_field(body, name: str):
    """Read ``name`` from ``body["error"]``, falling back to the top level."""
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, dict) and name in error:
        return error[name]
    return body.get(name)


def describe_error(envelope: ResponseEnvelope) -> str:
    code = error_field(envelope.body, "code")
    message = error_field(envelope.body, "message")
    return f"HTTP {envelope.status} code={code!r} message={message!r}"


def check_error_response(envelope: ResponseEnvelope, fixture: ExpectedFixture) -> StepOutcome:
    """Default handler for non-success responses.

    Passes only when the fixture declares this exact status and every field
    of the fixture's ``error`` object matches the response's ``error``.
    """
    if fixture.status != envelope.status:
        logger.error(
            "Unexpected status %d (fixture expects %d): %s",
            envelope.status, fixture.status, describe_error(envelope),
        )
        return StepOutcome.failed(
            ErrorKind.UNEXPECTED_STATUS,
            f"expected HTTP {fixture.status}, got {describe_error(envelope)}",
            envelope=envelope,
        )

    expected_error = fixture.body.get("error")
    if isinstance(expected_error, dict):
        actual_error = envelope.body.get("error") if isinstance(envelope.body, dict) else None
        if not isinstance(actual_error, dict):
            return StepOutcome.failed(
                ErrorKind.VALIDATION_MISMATCH,
                "response has no error object",
                envelope=envelope,
            )
        mismatches = compare(expected_error, actual_error)
        if mismatches:
            return StepOutcome.failed(
                ErrorKind.VALIDATION_MISMATCH,
                "error object differs from fixture",
                mismatches=mismatches,
                envelope=envelope,
            )
    return StepOutcome.passed(Shape.EXPECTED_FAILURE, envelope=envelope)
