from dataclasses import dataclass, field
from enum import Enum

from src.models.envelope import ResponseEnvelope
from src.models.payment import ContinuationToken


class Shape(Enum):
    """Response shape a classified step resolved to."""

    REDIRECT_PENDING = "redirect_pending"
    SUCCEEDED = "succeeded"
    REQUIRES_CAPTURE = "requires_capture"
    FAILED = "failed"
    WAIT_SCREEN = "wait_screen"
    FIXTURE_MATCH = "fixture_match"
    EXPECTED_FAILURE = "expected_failure"
    SKIPPED = "skipped"


class ErrorKind(Enum):
    INVALID_CAPTURE_METHOD = "invalid_capture_method"
    INVALID_AUTHENTICATION_TYPE = "invalid_authentication_type"
    INVALID_PAYMENT_METHOD_TYPE = "invalid_payment_method_type"
    UNHANDLED_RESPONSE_SHAPE = "unhandled_response_shape"
    VALIDATION_MISMATCH = "validation_mismatch"
    UNEXPECTED_STATUS = "unexpected_status"
    TRANSPORT_FAILURE = "transport_failure"


class _Missing:
    def __repr__(self) -> str:
        return "<missing>"


# Stands in for the actual value of a key the response does not carry
MISSING = _Missing()


@dataclass(frozen=True)
class FieldMismatch:
    key: str
    expected: object
    actual: object

    @property
    def missing(self) -> bool:
        return self.actual is MISSING

    def __str__(self) -> str:
        if self.missing:
            return f"{self.key}: expected {self.expected!r}, key missing from response"
        return f"{self.key}: expected {self.expected!r}, got {self.actual!r}"


@dataclass
class StepOutcome:
    ok: bool
    shape: Shape | None = None
    error: ErrorKind | None = None
    detail: str = ""
    mismatches: list[FieldMismatch] = field(default_factory=list)
    continuation: ContinuationToken | None = None
    envelope: ResponseEnvelope | None = None

    @classmethod
    def passed(cls, shape: Shape, **kwargs) -> "StepOutcome":
        return cls(ok=True, shape=shape, **kwargs)

    @classmethod
    def failed(cls, error: ErrorKind, detail: str, **kwargs) -> "StepOutcome":
        return cls(ok=False, error=error, detail=detail, **kwargs)

    @property
    def needs_redirection(self) -> bool:
        return self.ok and self.continuation is not None

    def raise_for_failure(self) -> "StepOutcome":
        if not self.ok:
            raise StepFailed(self)
        return self


class StepFailed(Exception):
    """Raised when a step outcome is a failure and the caller wants exception flow."""

    def __init__(self, outcome: StepOutcome):
        self.outcome = outcome
        message = f"{outcome.error.value if outcome.error else 'failure'}: {outcome.detail}"
        if outcome.mismatches:
            message += "; " + "; ".join(str(m) for m in outcome.mismatches)
        super().__init__(message)
