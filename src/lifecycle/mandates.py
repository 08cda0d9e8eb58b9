"""Customer-initiated / merchant-initiated transaction sequences.

Mandate states move ``none -> pending -> active -> revoked``. The current
mandate lives in the scenario context: ``mandate_id``, ``mandate_status``
and, when the CIT declared one, ``mandate_amount`` (the ceiling).
"""

import logging

from src.dispatch.classifier import OutcomeClassifier, ValidationMode
from src.dispatch.dispatcher import PaymentMethodDispatcher
from src.models.envelope import ExpectedFixture, ResponseEnvelope
from src.models.mandate import (
    MANDATE_ALREADY_REVOKED_REASON,
    MANDATE_CEILING_ERROR_CODE,
    MANDATE_CEILING_ERROR_MESSAGE,
    MANDATE_CEILING_ERROR_REASON,
    Mandate,
    MandateStatus,
)
from src.models.outcome import ErrorKind, Shape, StepOutcome
from src.scenario.context import ContextKey, ScenarioContext
from src.transport.api import ApiController
from src.transport.client import Transport
from src.validation.errors import describe_error, error_field


logger = logging.getLogger(__name__)


def mandate_ceiling(mandate_data: dict | None) -> int | None:
    """Amount declared by ``mandate_data.mandate_type.{single_use,multi_use}``."""
    if not mandate_data:
        return None
    mandate_type = mandate_data.get("mandate_type") or {}
    for usage in ("single_use", "multi_use"):
        details = mandate_type.get(usage)
        if isinstance(details, dict) and details.get("amount") is not None:
            return details["amount"]
    return None


def is_ceiling_rejection(envelope: ResponseEnvelope) -> bool:
    return (
        envelope.status == 400
        and error_field(envelope.body, "code") == MANDATE_CEILING_ERROR_CODE
        and error_field(envelope.body, "message") == MANDATE_CEILING_ERROR_MESSAGE
        and error_field(envelope.body, "reason") == MANDATE_CEILING_ERROR_REASON
    )


class MandateController(ApiController):
    def __init__(self, transport: Transport, classifier: OutcomeClassifier | None = None):
        super().__init__(transport)
        self.classifier = classifier or OutcomeClassifier()

    @staticmethod
    def current(context: ScenarioContext) -> Mandate:
        return Mandate(
            mandate_id=context.get(ContextKey.MANDATE_ID),
            status=MandateStatus(context.get(ContextKey.MANDATE_STATUS)),
            ceiling_amount=context.get_optional(ContextKey.MANDATE_AMOUNT),
        )

    def cit(
        self,
        context: ScenarioContext,
        request: dict,
        req_data: dict,
        fixture: ExpectedFixture,
        amount: int,
        confirm: bool,
        capture_method: str,
        payment_type: str | None = None,
    ) -> StepOutcome:
        """Customer-initiated transaction.

        With ``mandate_data`` the response must carry a mandate id, which
        becomes the active mandate. Without it, the response must carry a
        ``payment_method_id`` for later MITs by payment method.
        """
        body = {**request, **req_data}
        body["payment_type"] = payment_type
        body["confirm"] = confirm
        body["amount"] = amount
        body["capture_method"] = capture_method
        body["customer_id"] = context.get(ContextKey.CUSTOMER_ID)
        context.set(ContextKey.PAYMENT_AMOUNT, amount)

        mandate_data = body.get("mandate_data")
        if mandate_data is not None:
            context.set(ContextKey.MANDATE_STATUS, MandateStatus.PENDING.value)

        envelope = self.call(context, "POST", "/payments", context.get(ContextKey.API_KEY), body)
        if isinstance(envelope, StepOutcome):
            return envelope
        if not self.succeeded(envelope, fixture):
            return self.match_fixture(envelope, fixture)

        resp = envelope.body
        payment_id = resp.get("payment_id")
        context.set(ContextKey.PAYMENT_ID, payment_id)

        if mandate_data is None:
            failure = self.expect(envelope, "payment_method_id" in resp, "one-off CIT has no payment_method_id")
            if failure:
                return failure
            context.set(ContextKey.PAYMENT_METHOD_ID, resp["payment_method_id"])
        else:
            failure = self.expect(envelope, bool(resp.get("mandate_id")), "CIT with mandate_data has no mandate_id")
            if failure:
                return failure
            context.set(ContextKey.MANDATE_ID, resp["mandate_id"])
            context.set(ContextKey.MANDATE_STATUS, MandateStatus.ACTIVE.value)
            ceiling = mandate_ceiling(mandate_data)
            if ceiling is not None:
                context.set(ContextKey.MANDATE_AMOUNT, ceiling)
            logger.info("Mandate %s active (ceiling %s)", resp["mandate_id"], ceiling)

        outcome = self.classifier.classify(resp, fixture)
        outcome.envelope = envelope
        if outcome.ok:
            PaymentMethodDispatcher.record(context, payment_id, outcome)
        return outcome

    def mit(
        self,
        context: ScenarioContext,
        request: dict,
        amount: int,
        confirm: bool,
        capture_method: str,
    ) -> StepOutcome:
        """Merchant-initiated transaction against the stored mandate.

        An amount above the mandate ceiling must be rejected with the fixed
        HE_03 error; the rejected payment never becomes the current one.
        """
        body = dict(request)
        body["amount"] = amount
        body["confirm"] = confirm
        body["capture_method"] = capture_method
        mandate = self.current(context)
        body["mandate_id"] = mandate.mandate_id
        body["customer_id"] = context.get(ContextKey.CUSTOMER_ID)
        ceiling = mandate.ceiling_amount
        over_ceiling = not mandate.allows(amount)

        envelope = self.call(context, "POST", "/payments", context.get(ContextKey.API_KEY), body)
        if isinstance(envelope, StepOutcome):
            return envelope

        if envelope.status == 200:
            if over_ceiling:
                return StepOutcome.failed(
                    ErrorKind.UNHANDLED_RESPONSE_SHAPE,
                    f"MIT of {amount} accepted above mandate amount {ceiling}",
                    envelope=envelope,
                )
            return self._merchant_initiated_success(context, envelope, amount)

        if is_ceiling_rejection(envelope) and (ceiling is None or over_ceiling):
            logger.info("MIT of %s rejected by mandate amount %s", amount, ceiling)
            return StepOutcome.passed(Shape.EXPECTED_FAILURE, envelope=envelope)

        return StepOutcome.failed(
            ErrorKind.UNHANDLED_RESPONSE_SHAPE,
            f"Error Response: {describe_error(envelope)}",
            envelope=envelope,
        )

    def mit_using_payment_method_id(
        self,
        context: ScenarioContext,
        request: dict,
        amount: int,
        confirm: bool,
        capture_method: str,
    ) -> StepOutcome:
        body = dict(request)
        body["amount"] = amount
        body["confirm"] = confirm
        body["capture_method"] = capture_method
        body["recurring_details"] = {
            **(body.get("recurring_details") or {"type": "payment_method_id"}),
            "data": context.get(ContextKey.PAYMENT_METHOD_ID),
        }
        body["customer_id"] = context.get(ContextKey.CUSTOMER_ID)

        envelope = self.call(context, "POST", "/payments", context.get(ContextKey.API_KEY), body)
        if isinstance(envelope, StepOutcome):
            return envelope
        if envelope.status != 200:
            return StepOutcome.failed(
                ErrorKind.UNHANDLED_RESPONSE_SHAPE,
                f"Error Response: {describe_error(envelope)}",
                envelope=envelope,
            )
        return self._merchant_initiated_success(context, envelope, amount)

    def _merchant_initiated_success(
        self, context: ScenarioContext, envelope: ResponseEnvelope, amount: int,
    ) -> StepOutcome:
        payment_id = envelope.body.get("payment_id")
        outcome = self.classifier.classify(
            envelope.body, ExpectedFixture(), mode=ValidationMode.TERMINAL_STATUS,
        )
        outcome.envelope = envelope
        if outcome.ok:
            context.set(ContextKey.PAYMENT_AMOUNT, amount)
            PaymentMethodDispatcher.record(context, payment_id, outcome)
        return outcome

    def list_mandates(self, context: ScenarioContext) -> StepOutcome:
        """The stored mandate must be listed with the status the context holds."""
        customer_id = context.get(ContextKey.CUSTOMER_ID)
        envelope = self.call(
            context, "GET", f"/customers/{customer_id}/mandates", context.get(ContextKey.API_KEY),
        )
        if isinstance(envelope, StepOutcome):
            return envelope
        failure = self.expect(
            envelope, envelope.status == 200 and isinstance(envelope.body, list), "mandate list is not a list",
        )
        if failure:
            return failure

        mandate = self.current(context)
        for entry in envelope.body:
            if entry.get("mandate_id") == mandate.mandate_id:
                failure = self.expect(
                    envelope,
                    entry.get("status") == mandate.status.value,
                    f"mandate {mandate.mandate_id} listed as {entry.get('status')!r}, "
                    f"expected {mandate.status.value!r}",
                )
                if failure:
                    return failure
        return StepOutcome.passed(Shape.FIXTURE_MATCH, envelope=envelope)

    def revoke(self, context: ScenarioContext, fixture: ExpectedFixture | None = None) -> StepOutcome:
        """Revoke the stored mandate.

        From ``active`` the answer must be status ``revoked``; from
        ``revoked`` it must be the documented "already revoked" reason, with
        the HTTP status and reason taken from ``fixture`` when one is given
        (400 and the stock reason otherwise).
        """
        mandate = self.current(context)
        if mandate.status is MandateStatus.PENDING:
            return StepOutcome.failed(
                ErrorKind.UNHANDLED_RESPONSE_SHAPE,
                f"mandate {mandate.mandate_id} is still pending",
            )
        envelope = self.call(
            context, "POST", f"/mandates/revoke/{mandate.mandate_id}", context.get(ContextKey.API_KEY),
        )
        if isinstance(envelope, StepOutcome):
            return envelope

        if mandate.status is MandateStatus.REVOKED:
            expected_status = fixture.status if fixture else 400
            expected_reason = MANDATE_ALREADY_REVOKED_REASON
            if fixture and error_field(fixture.body, "reason"):
                expected_reason = error_field(fixture.body, "reason")
            reason = error_field(envelope.body, "reason")
            failure = self.expect(
                envelope,
                envelope.status == expected_status and reason == expected_reason,
                f"second revoke answered {describe_error(envelope)} reason={reason!r}",
            )
            return failure or StepOutcome.passed(Shape.EXPECTED_FAILURE, envelope=envelope)

        status = envelope.body.get("status") if isinstance(envelope.body, dict) else None
        failure = self.expect(
            envelope,
            envelope.status == 200 and status == MandateStatus.REVOKED.value,
            f"revoke answered HTTP {envelope.status} with status {status!r}",
        )
        if failure:
            return failure
        context.set(ContextKey.MANDATE_STATUS, MandateStatus.REVOKED.value)
        logger.info("Mandate %s revoked", mandate.mandate_id)
        return StepOutcome.passed(Shape.FIXTURE_MATCH, envelope=envelope)
