"""Capture method x authentication type decision table.

Every 200 response that carries ``capture_method`` and
``authentication_type`` is resolved against ``DECISION_TABLE``. Values
outside the enumerations are fatal for the step and quoted in the outcome.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, NamedTuple, Sequence

from src.models.envelope import ExpectedFixture
from src.models.outcome import ErrorKind, Shape, StepOutcome
from src.models.payment import AuthenticationType, CaptureMethod, ContinuationKind, ContinuationToken
from src.validation.validator import compare


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Decision:
    shape: Shape
    requires_continuation: bool
    validate_fixture: bool


DECISION_TABLE: dict[tuple[CaptureMethod, AuthenticationType], Decision] = {
    (CaptureMethod.AUTOMATIC, AuthenticationType.THREE_DS): Decision(
        Shape.REDIRECT_PENDING, requires_continuation=True, validate_fixture=True,
    ),
    (CaptureMethod.AUTOMATIC, AuthenticationType.NO_THREE_DS): Decision(
        Shape.SUCCEEDED, requires_continuation=False, validate_fixture=True,
    ),
    (CaptureMethod.MANUAL, AuthenticationType.THREE_DS): Decision(
        Shape.REDIRECT_PENDING, requires_continuation=True, validate_fixture=False,
    ),
    (CaptureMethod.MANUAL, AuthenticationType.NO_THREE_DS): Decision(
        Shape.REQUIRES_CAPTURE, requires_continuation=False, validate_fixture=True,
    ),
}


class ValidationMode(Enum):
    # no_three_ds responses are checked field-for-field against the fixture
    FIXTURE = "fixture"
    # no_three_ds responses must also reach the status the capture method implies
    TERMINAL_STATUS = "terminal_status"


_STATUS_SHAPES = {
    "succeeded": Shape.SUCCEEDED,
    "requires_capture": Shape.REQUIRES_CAPTURE,
    "failed": Shape.FAILED,
}


class Axes(NamedTuple):
    capture_method: CaptureMethod
    authentication_type: AuthenticationType


def non_object_body(body: Any) -> StepOutcome | None:
    """Fatal outcome for a 200 body that is not a JSON object, else None."""
    if isinstance(body, Mapping):
        return None
    logger.error("Response body is a %s, not an object: %r", type(body).__name__, body)
    return StepOutcome.failed(
        ErrorKind.UNHANDLED_RESPONSE_SHAPE,
        f"response body is a {type(body).__name__}, not an object",
    )


def resolve_axes(body: Any) -> Axes | StepOutcome:
    """Parse both axes, or return the fatal outcome naming the bad value."""
    unexpected = non_object_body(body)
    if unexpected is not None:
        return unexpected
    raw_capture = body.get("capture_method")
    try:
        capture_method = CaptureMethod(raw_capture)
    except ValueError:
        logger.error("Invalid capture method %r", raw_capture)
        return StepOutcome.failed(
            ErrorKind.INVALID_CAPTURE_METHOD, f"Invalid capture method {raw_capture!r}",
        )

    raw_auth = body.get("authentication_type")
    try:
        authentication_type = AuthenticationType(raw_auth)
    except ValueError:
        logger.error("Invalid authentication type %r", raw_auth)
        return StepOutcome.failed(
            ErrorKind.INVALID_AUTHENTICATION_TYPE, f"Invalid authentication type {raw_auth!r}",
        )

    return Axes(capture_method, authentication_type)


def extract_continuation(body: dict, kinds: Sequence[ContinuationKind]) -> ContinuationToken | None:
    """First non-null ``next_action`` field among ``kinds``, in order."""
    next_action = body.get("next_action")
    if not isinstance(next_action, dict):
        return None
    for kind in kinds:
        url = next_action.get(kind.value)
        if url:
            return ContinuationToken(kind=kind, url=url)
    return None


def missing_continuation(kinds: Sequence[ContinuationKind]) -> StepOutcome:
    fields = " or ".join(f"next_action.{k.value}" for k in kinds)
    return StepOutcome.failed(ErrorKind.UNHANDLED_RESPONSE_SHAPE, f"response has no {fields}")


class OutcomeClassifier:
    """Chooses the validation branch for a successful (HTTP 200) response."""

    def __init__(self, table: dict[tuple[CaptureMethod, AuthenticationType], Decision] | None = None):
        self.table = table or DECISION_TABLE

    def decide(self, axes: Axes) -> Decision:
        return self.table[(axes.capture_method, axes.authentication_type)]

    def classify(
        self,
        body: dict,
        fixture: ExpectedFixture,
        mode: ValidationMode = ValidationMode.FIXTURE,
        continuation_kinds: Sequence[ContinuationKind] = (ContinuationKind.REDIRECT_TO_URL,),
    ) -> StepOutcome:
        axes = resolve_axes(body)
        if isinstance(axes, StepOutcome):
            return axes
        decision = self.decide(axes)

        continuation = None
        if decision.requires_continuation:
            continuation = extract_continuation(body, continuation_kinds)
            if continuation is None:
                return missing_continuation(continuation_kinds)

        if decision.validate_fixture:
            mismatches = compare(fixture.body, body)
            if mismatches:
                return StepOutcome.failed(
                    ErrorKind.VALIDATION_MISMATCH,
                    f"{axes.capture_method.value}/{axes.authentication_type.value} response differs from fixture",
                    mismatches=mismatches,
                )

        shape = decision.shape
        if not decision.requires_continuation:
            if mode is ValidationMode.TERMINAL_STATUS:
                if body.get("status") != decision.shape.value:
                    return StepOutcome.failed(
                        ErrorKind.VALIDATION_MISMATCH,
                        f"expected status {decision.shape.value!r}, got {body.get('status')!r}",
                    )
            else:
                shape = _STATUS_SHAPES.get(body.get("status"), Shape.FIXTURE_MATCH)

        return StepOutcome.passed(shape, continuation=continuation)
