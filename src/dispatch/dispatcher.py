"""Payment-method specialisation of the outcome classifier.

Each payment-method family owns the ``next_action`` field(s) its
continuation lives in, the redirection flow tag, and whether a ``failed``
domain status is an acceptable terminal answer.
"""

import logging
from dataclasses import dataclass
from typing import Any

from src.dispatch.classifier import (
    OutcomeClassifier,
    extract_continuation,
    missing_continuation,
    non_object_body,
    resolve_axes,
)
from src.dispatch.overrides import ConnectorOverrides, Override
from src.models.envelope import ExpectedFixture
from src.models.outcome import ErrorKind, FieldMismatch, Shape, StepOutcome
from src.models.payment import (
    AuthenticationType,
    ContinuationKind,
    PaymentMethodFamily,
    RedirectionFlow,
)
from src.scenario.context import ContextKey, ScenarioContext
from src.transport.api import ApiController
from src.transport.client import Transport
from src.validation.validator import values_equal


logger = logging.getLogger(__name__)

WAIT_SCREEN_NEXT_ACTION = "wait_screen_information"


@dataclass(frozen=True)
class FamilyRule:
    family: PaymentMethodFamily
    flow: RedirectionFlow
    continuation: tuple[ContinuationKind, ...]
    # Follow the capture method x authentication type table; otherwise a
    # continuation is required for every valid combination.
    follows_auth_table: bool = True
    # A `failed` status under three_ds is answered by the error code alone
    failed_is_terminal: bool = False
    # Require a continuation even on table rows that do not ask for one
    continuation_required: bool = False


FAMILY_RULES: dict[PaymentMethodFamily, FamilyRule] = {
    PaymentMethodFamily.CARD: FamilyRule(
        PaymentMethodFamily.CARD, RedirectionFlow.THREE_DS,
        (ContinuationKind.REDIRECT_TO_URL,),
    ),
    PaymentMethodFamily.BANK_REDIRECT: FamilyRule(
        PaymentMethodFamily.BANK_REDIRECT, RedirectionFlow.BANK_REDIRECT,
        (ContinuationKind.REDIRECT_TO_URL,),
        failed_is_terminal=True,
        continuation_required=True,
    ),
    PaymentMethodFamily.BANK_TRANSFER: FamilyRule(
        PaymentMethodFamily.BANK_TRANSFER, RedirectionFlow.BANK_TRANSFER,
        (ContinuationKind.REDIRECT_TO_URL,),
        follows_auth_table=False,
    ),
    PaymentMethodFamily.UPI: FamilyRule(
        PaymentMethodFamily.UPI, RedirectionFlow.UPI,
        (ContinuationKind.REDIRECT_TO_URL,),
        follows_auth_table=False,
    ),
    PaymentMethodFamily.WALLET: FamilyRule(
        PaymentMethodFamily.WALLET, RedirectionFlow.WALLET,
        (ContinuationKind.REDIRECT_TO_URL,),
    ),
}

# Payment method types whose continuation field differs from their family's
CONTINUATION_BY_METHOD_TYPE: dict[str, tuple[ContinuationKind, ...]] = {
    "pix": (ContinuationKind.QR_CODE_URL, ContinuationKind.IMAGE_DATA_URL),
    "upi_collect": (ContinuationKind.REDIRECT_TO_URL,),
    "upi_intent": (ContinuationKind.QR_CODE_FETCH_URL,),
}


def continuation_kinds(rule: FamilyRule, payment_method_type: str | None) -> tuple[ContinuationKind, ...]:
    if payment_method_type in CONTINUATION_BY_METHOD_TYPE:
        return CONTINUATION_BY_METHOD_TYPE[payment_method_type]
    return rule.continuation


class PaymentMethodDispatcher(ApiController):
    """Confirms payments and interprets the response per payment-method family."""

    def __init__(
        self,
        transport: Transport,
        classifier: OutcomeClassifier | None = None,
        overrides: ConnectorOverrides | None = None,
    ):
        super().__init__(transport)
        self.classifier = classifier or OutcomeClassifier()
        self.overrides = overrides or ConnectorOverrides.defaults()

    def rule_for(self, payment_method: str | None) -> FamilyRule | None:
        try:
            return FAMILY_RULES[PaymentMethodFamily(payment_method)]
        except ValueError:
            return None

    def classify(
        self,
        body: Any,
        fixture: ExpectedFixture,
        connector_id: str | None = None,
        payment_method: str | None = None,
    ) -> StepOutcome:
        """Classify a 200 confirm response.

        ``payment_method`` from the request is used when the response does
        not echo one.
        """
        unexpected = non_object_body(body)
        if unexpected is not None:
            return unexpected
        raw_family = body.get("payment_method") or payment_method
        rule = self.rule_for(raw_family)
        if rule is None:
            logger.error("Invalid payment method %r", raw_family)
            return StepOutcome.failed(
                ErrorKind.INVALID_PAYMENT_METHOD_TYPE, f"Invalid payment method {raw_family!r}",
            )
        method_type = body.get("payment_method_type")
        kinds = continuation_kinds(rule, method_type)

        axes = resolve_axes(body)
        if isinstance(axes, StepOutcome):
            return axes

        three_ds = axes.authentication_type is AuthenticationType.THREE_DS
        if rule.failed_is_terminal and three_ds and body.get("status") == "failed":
            return self._terminal_failure(body, fixture)

        override = self.overrides.lookup(connector_id, method_type)
        if override is Override.WAIT_SCREEN and three_ds:
            return self._wait_screen(body, connector_id, method_type)

        if not rule.follows_auth_table:
            continuation = extract_continuation(body, kinds)
            if continuation is None:
                return missing_continuation(kinds)
            return StepOutcome.passed(Shape.REDIRECT_PENDING, continuation=continuation)

        outcome = self.classifier.classify(body, fixture, continuation_kinds=kinds)
        if outcome.ok and outcome.continuation is None and rule.continuation_required:
            continuation = extract_continuation(body, kinds)
            if continuation is None:
                return missing_continuation(kinds)
            outcome.shape = Shape.REDIRECT_PENDING
            outcome.continuation = continuation
        return outcome

    @staticmethod
    def _terminal_failure(body: dict, fixture: ExpectedFixture) -> StepOutcome:
        expected = fixture.body.get("error_code")
        actual = body.get("error_code")
        if not values_equal(expected, actual):
            return StepOutcome.failed(
                ErrorKind.VALIDATION_MISMATCH,
                "failed payment carries an unexpected error code",
                mismatches=[FieldMismatch("error_code", expected, actual)],
            )
        return StepOutcome.passed(Shape.FAILED)

    @staticmethod
    def _wait_screen(body: dict, connector_id, method_type) -> StepOutcome:
        next_action = body.get("next_action")
        if isinstance(next_action, dict) and next_action.get("type") == WAIT_SCREEN_NEXT_ACTION:
            return StepOutcome.passed(Shape.WAIT_SCREEN)
        return StepOutcome.failed(
            ErrorKind.UNHANDLED_RESPONSE_SHAPE,
            f"{connector_id}/{method_type} should answer with next_action.type "
            f"{WAIT_SCREEN_NEXT_ACTION!r}",
        )

    def confirm(
        self,
        context: ScenarioContext,
        confirm_body: dict,
        req_data: dict,
        fixture: ExpectedFixture,
        confirm: bool = True,
    ) -> StepOutcome:
        """Confirm the current payment with the publishable key."""
        payment_id = context.get(ContextKey.PAYMENT_ID)
        body = {**confirm_body, **req_data}
        body["confirm"] = confirm
        body["client_secret"] = context.get(ContextKey.CLIENT_SECRET)
        if body.get("payment_method"):
            context.set(ContextKey.PAYMENT_METHOD, body["payment_method"])
        if body.get("payment_method_type"):
            context.set(ContextKey.PAYMENT_METHOD_TYPE, body["payment_method_type"])

        envelope = self.call(
            context, "POST", f"/payments/{payment_id}/confirm",
            context.get(ContextKey.PUBLISHABLE_KEY), body,
        )
        if isinstance(envelope, StepOutcome):
            return envelope
        if not self.succeeded(envelope, fixture):
            return self.match_fixture(envelope, fixture)

        outcome = self.classify(
            envelope.body,
            fixture,
            connector_id=context.get(ContextKey.CONNECTOR_ID),
            payment_method=body.get("payment_method"),
        )
        outcome.envelope = envelope
        if outcome.ok:
            self.record(context, payment_id, outcome)
        return outcome

    @staticmethod
    def record(context: ScenarioContext, payment_id: str, outcome: StepOutcome) -> None:
        context.set(ContextKey.PAYMENT_ID, payment_id)
        if outcome.continuation is not None:
            context.set(ContextKey.NEXT_ACTION_URL, outcome.continuation.url)
            context.set(ContextKey.NEXT_ACTION_TYPE, outcome.continuation.kind.value)
            logger.info(
                "Stored %s continuation for %s", outcome.continuation.kind.value, payment_id,
            )
