from .payment import (
    AuthenticationType,
    CaptureMethod,
    ContinuationKind,
    ContinuationToken,
    PaymentMethodFamily,
    RedirectionFlow,
)
from .envelope import ExpectedFixture, ResponseEnvelope
from .outcome import MISSING, ErrorKind, FieldMismatch, Shape, StepFailed, StepOutcome
from .mandate import Mandate, MandateStatus
from .payout import Payout, PayoutStatus

__all__ = [
    "AuthenticationType", "CaptureMethod", "ContinuationKind", "ContinuationToken",
    "PaymentMethodFamily", "RedirectionFlow",
    "ExpectedFixture", "ResponseEnvelope",
    "MISSING", "ErrorKind", "FieldMismatch", "Shape", "StepFailed", "StepOutcome",
    "Mandate", "MandateStatus",
    "Payout", "PayoutStatus",
]
