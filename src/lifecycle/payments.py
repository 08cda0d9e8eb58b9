import logging

from src.dispatch.classifier import OutcomeClassifier
from src.dispatch.dispatcher import PaymentMethodDispatcher
from src.models.envelope import ExpectedFixture
from src.models.outcome import ErrorKind, Shape, StepOutcome
from src.scenario.context import ContextKey, ScenarioContext
from src.transport.api import ApiController
from src.transport.client import Transport
from src.validation.validator import compare


logger = logging.getLogger(__name__)


class PaymentsController(ApiController):
    """Create, confirm, capture, void, retrieve and refund payments."""

    def __init__(
        self,
        transport: Transport,
        dispatcher: PaymentMethodDispatcher | None = None,
        classifier: OutcomeClassifier | None = None,
    ):
        super().__init__(transport)
        self.classifier = classifier or OutcomeClassifier()
        self.dispatcher = dispatcher or PaymentMethodDispatcher(transport, classifier=self.classifier)

    def create_intent(
        self,
        context: ScenarioContext,
        request: dict,
        req_data: dict,
        fixture: ExpectedFixture,
        authentication_type: str,
        capture_method: str,
    ) -> StepOutcome:
        if not req_data.get("currency") or not authentication_type:
            raise ValueError("create_intent needs a currency and an authentication type")
        body = dict(request)
        body["currency"] = req_data["currency"]
        body["authentication_type"] = authentication_type
        body["capture_method"] = capture_method
        body["setup_future_usage"] = req_data.get("setup_future_usage")
        body["customer_acceptance"] = req_data.get("customer_acceptance")
        body["customer_id"] = context.get(ContextKey.CUSTOMER_ID)
        context.set(ContextKey.PAYMENT_AMOUNT, body.get("amount"))

        envelope = self.call(context, "POST", "/payments", context.get(ContextKey.API_KEY), body)
        if isinstance(envelope, StepOutcome):
            return envelope
        if not self.succeeded(envelope, fixture):
            return self.match_fixture(envelope, fixture)

        resp = envelope.body
        failure = self.expect(envelope, "client_secret" in resp, "response has no client_secret")
        if failure:
            return failure
        context.set(ContextKey.CLIENT_SECRET, resp["client_secret"])
        context.set(ContextKey.PAYMENT_ID, resp.get("payment_id"))

        expected = dict(fixture.body)
        expected.setdefault("amount", body.get("amount"))
        expected.setdefault("amount_received", None)
        expected.setdefault("amount_capturable", body.get("amount"))
        actual = dict(resp)
        actual.setdefault("amount_received", None)
        mismatches = compare(expected, actual)
        if mismatches:
            return StepOutcome.failed(
                ErrorKind.VALIDATION_MISMATCH,
                "created payment differs from fixture",
                mismatches=mismatches,
                envelope=envelope,
            )
        return StepOutcome.passed(Shape.FIXTURE_MATCH, envelope=envelope)

    def payment_methods(self, context: ScenarioContext) -> StepOutcome:
        """List payment methods available to the current client secret."""
        client_secret = context.get(ContextKey.CLIENT_SECRET)
        envelope = self.call(
            context, "GET", f"/account/payment_methods?client_secret={client_secret}",
            context.get(ContextKey.PUBLISHABLE_KEY),
        )
        if isinstance(envelope, StepOutcome):
            return envelope
        resp = envelope.body if isinstance(envelope.body, dict) else {}
        failure = self.expect(
            envelope,
            envelope.status == 200 and "redirect_url" in resp and "payment_methods" in resp,
            "payment methods response lacks redirect_url or payment_methods",
        )
        if failure:
            return failure
        context.set(ContextKey.PAYMENT_ID, client_secret.split("_secret_")[0])
        return StepOutcome.passed(Shape.FIXTURE_MATCH, envelope=envelope)

    def confirm(
        self,
        context: ScenarioContext,
        confirm_body: dict,
        req_data: dict,
        fixture: ExpectedFixture,
        confirm: bool = True,
    ) -> StepOutcome:
        return self.dispatcher.confirm(context, confirm_body, req_data, fixture, confirm)

    def create_and_confirm(
        self,
        context: ScenarioContext,
        request: dict,
        req_data: dict,
        fixture: ExpectedFixture,
        authentication_type: str,
        capture_method: str,
    ) -> StepOutcome:
        body = dict(request)
        body["authentication_type"] = authentication_type
        body["capture_method"] = capture_method
        body["customer_id"] = context.get(ContextKey.CUSTOMER_ID)
        body.update(req_data)

        envelope = self.call(context, "POST", "/payments", context.get(ContextKey.API_KEY), body)
        if isinstance(envelope, StepOutcome):
            return envelope
        if not self.succeeded(envelope, fixture):
            return self.match_fixture(envelope, fixture)

        failure = self.expect(envelope, "status" in envelope.body, "response has no status")
        if failure:
            return failure
        context.set(ContextKey.PAYMENT_AMOUNT, body.get("amount"))
        payment_id = envelope.body.get("payment_id")

        outcome = self.classifier.classify(envelope.body, fixture)
        outcome.envelope = envelope
        if outcome.ok:
            self.dispatcher.record(context, payment_id, outcome)
        return outcome

    def save_card_confirm(
        self,
        context: ScenarioContext,
        confirm_body: dict,
        req_data: dict,
        fixture: ExpectedFixture,
    ) -> StepOutcome:
        """Confirm the current payment with a saved card's payment token."""
        payment_id = context.get(ContextKey.PAYMENT_ID)
        body = dict(confirm_body)
        if req_data.get("setup_future_usage") == "on_session":
            body["card_cvc"] = req_data["payment_method_data"]["card"]["card_cvc"]
        body["payment_token"] = context.get(ContextKey.PAYMENT_TOKEN)
        body["client_secret"] = context.get(ContextKey.CLIENT_SECRET)

        envelope = self.call(
            context, "POST", f"/payments/{payment_id}/confirm",
            context.get(ContextKey.PUBLISHABLE_KEY), body,
        )
        if isinstance(envelope, StepOutcome):
            return envelope
        if not self.succeeded(envelope, fixture):
            return self.match_fixture(envelope, fixture)

        outcome = self.classifier.classify(envelope.body, fixture)
        outcome.envelope = envelope
        if not outcome.ok:
            return outcome
        if outcome.continuation is None:
            customer_id = context.get(ContextKey.CUSTOMER_ID)
            failure = self.expect(
                envelope,
                envelope.body.get("customer_id") == customer_id,
                f"saved card payment belongs to {envelope.body.get('customer_id')!r}, not {customer_id!r}",
            )
            if failure:
                return failure
        self.dispatcher.record(context, payment_id, outcome)
        return outcome

    def capture(
        self,
        context: ScenarioContext,
        request: dict,
        fixture: ExpectedFixture,
        amount_to_capture: int,
    ) -> StepOutcome:
        payment_id = context.get(ContextKey.PAYMENT_ID)
        body = {**request, "amount_to_capture": amount_to_capture}
        envelope = self.call(
            context, "POST", f"/payments/{payment_id}/capture", context.get(ContextKey.API_KEY), body,
        )
        if isinstance(envelope, StepOutcome):
            return envelope
        if envelope.status == 200:
            failure = self.expect(
                envelope,
                envelope.body.get("payment_id") == payment_id,
                f"capture answered for {envelope.body.get('payment_id')!r}, not {payment_id!r}",
            )
            if failure:
                return failure
        return self.match_fixture(envelope, fixture)

    def void(self, context: ScenarioContext, request: dict, fixture: ExpectedFixture) -> StepOutcome:
        payment_id = context.get(ContextKey.PAYMENT_ID)
        envelope = self.call(
            context, "POST", f"/payments/{payment_id}/cancel", context.get(ContextKey.API_KEY), dict(request),
        )
        if isinstance(envelope, StepOutcome):
            return envelope
        return self.match_fixture(envelope, fixture)

    def retrieve(self, context: ScenarioContext) -> StepOutcome:
        """Force-sync the current payment and cross-check its id and amount."""
        payment_id = context.get(ContextKey.PAYMENT_ID)
        envelope = self.call(
            context, "GET", f"/payments/{payment_id}?force_sync=true", context.get(ContextKey.API_KEY),
        )
        if isinstance(envelope, StepOutcome):
            return envelope
        expected = {"payment_id": payment_id, "amount": context.get(ContextKey.PAYMENT_AMOUNT)}
        outcome = self.match_fixture(envelope, ExpectedFixture(status=200, body=expected))
        if outcome.ok:
            context.set(ContextKey.PAYMENT_ID, envelope.body["payment_id"])
        return outcome

    def refund(
        self,
        context: ScenarioContext,
        request: dict,
        fixture: ExpectedFixture,
        refund_amount: int,
    ) -> StepOutcome:
        payment_id = context.get(ContextKey.PAYMENT_ID)
        body = {**request, "payment_id": payment_id, "amount": refund_amount}
        envelope = self.call(context, "POST", "/refunds", context.get(ContextKey.API_KEY), body)
        if isinstance(envelope, StepOutcome):
            return envelope
        if not self.succeeded(envelope, fixture):
            return self.match_fixture(envelope, fixture)

        context.set(ContextKey.REFUND_ID, envelope.body.get("refund_id"))
        return self.match_fixture(
            envelope, ExpectedFixture(status=200, body={**fixture.body, "payment_id": payment_id}),
        )

    def sync_refund(self, context: ScenarioContext, fixture: ExpectedFixture) -> StepOutcome:
        refund_id = context.get(ContextKey.REFUND_ID)
        envelope = self.call(context, "GET", f"/refunds/{refund_id}", context.get(ContextKey.API_KEY))
        if isinstance(envelope, StepOutcome):
            return envelope
        return self.match_fixture(envelope, fixture)

    def list_refunds(self, context: ScenarioContext, request: dict) -> StepOutcome:
        envelope = self.call(context, "POST", "/refunds/list", context.get(ContextKey.API_KEY), dict(request))
        if isinstance(envelope, StepOutcome):
            return envelope
        data = envelope.body.get("data") if isinstance(envelope.body, dict) else None
        failure = self.expect(
            envelope,
            envelope.status == 200 and isinstance(data, list) and len(data) > 0,
            "refund list is empty",
        )
        return failure or StepOutcome.passed(Shape.FIXTURE_MATCH, envelope=envelope)

    def list_customer_payment_methods(self, context: ScenarioContext) -> StepOutcome:
        """Store the first saved payment token, or require an empty list."""
        customer_id = context.get(ContextKey.CUSTOMER_ID)
        envelope = self.call(
            context, "GET", f"/customers/{customer_id}/payment_methods", context.get(ContextKey.API_KEY),
        )
        if isinstance(envelope, StepOutcome):
            return envelope
        methods = envelope.body.get("customer_payment_methods") if isinstance(envelope.body, dict) else None
        failure = self.expect(
            envelope, isinstance(methods, list), "response has no customer_payment_methods list",
        )
        if failure:
            return failure
        if methods and methods[0].get("payment_token"):
            context.set(ContextKey.PAYMENT_TOKEN, methods[0]["payment_token"])
            logger.info("Stored payment token for customer %s", customer_id)
        else:
            failure = self.expect(envelope, not methods, "saved payment method has no payment_token")
            if failure:
                return failure
        return StepOutcome.passed(Shape.FIXTURE_MATCH, envelope=envelope)
