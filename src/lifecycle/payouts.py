import logging

from src.models.envelope import ExpectedFixture
from src.models.outcome import ErrorKind, StepOutcome
from src.models.payout import TERMINAL_PAYOUT_STATUSES, Payout, PayoutStatus, confirmed_payout_statuses
from src.scenario.context import ContextKey, ScenarioContext
from src.transport.api import ApiController


logger = logging.getLogger(__name__)


class PayoutController(ApiController):
    """Create/confirm, fulfill, update and retrieve payouts.

    The id and amount captured at creation are what ``retrieve`` checks the
    backend against.
    """

    @staticmethod
    def current(context: ScenarioContext) -> Payout:
        return Payout(
            payout_id=context.get(ContextKey.PAYOUT_ID),
            amount=context.get(ContextKey.PAYOUT_AMOUNT),
            status=context.get_optional(ContextKey.PAYOUT_STATUS),
        )

    @staticmethod
    def record_status(context: ScenarioContext, body) -> None:
        raw = body.get("status") if isinstance(body, dict) else None
        if raw in {s.value for s in PayoutStatus}:
            context.set(ContextKey.PAYOUT_STATUS, PayoutStatus(raw))

    def create_confirm(
        self,
        context: ScenarioContext,
        request: dict,
        req_data: dict,
        fixture: ExpectedFixture,
        confirm: bool,
        auto_fulfill: bool,
    ) -> StepOutcome:
        body = {**request, **req_data}
        body["auto_fulfill"] = auto_fulfill
        body["confirm"] = confirm
        body["customer_id"] = context.get(ContextKey.CUSTOMER_ID)
        return self._create(context, body, fixture)

    def create_confirm_with_token(
        self,
        context: ScenarioContext,
        request: dict,
        req_data: dict,
        fixture: ExpectedFixture,
        confirm: bool,
        auto_fulfill: bool,
    ) -> StepOutcome:
        """Same as ``create_confirm`` but pays out to the saved payment token."""
        body = {**request, **req_data}
        body["customer_id"] = context.get(ContextKey.CUSTOMER_ID)
        body["payout_token"] = context.get(ContextKey.PAYMENT_TOKEN)
        body["auto_fulfill"] = auto_fulfill
        body["confirm"] = confirm
        return self._create(context, body, fixture)

    def _create(self, context: ScenarioContext, body: dict, fixture: ExpectedFixture) -> StepOutcome:
        envelope = self.call(context, "POST", "/payouts/create", context.get(ContextKey.API_KEY), body)
        if isinstance(envelope, StepOutcome):
            return envelope
        if self.succeeded(envelope, fixture):
            failure = self.expect(
                envelope,
                bool(envelope.body.get("payout_id")),
                "created payout has no payout_id",
            )
            if failure:
                return failure
            expected = {**fixture.body, "amount": body.get("amount")}
            outcome = self.match_fixture(envelope, ExpectedFixture(status=200, body=expected))
            if outcome.ok and body.get("confirm") and "status" not in fixture.body:
                failure = self._check_confirmed_status(envelope, bool(body.get("auto_fulfill")))
                if failure:
                    return failure
            if outcome.ok:
                context.set(ContextKey.PAYOUT_AMOUNT, body.get("amount"))
                context.set(ContextKey.PAYOUT_ID, envelope.body["payout_id"])
                self.record_status(context, envelope.body)
                logger.info(
                    "Payout %s created (auto_fulfill=%s)", envelope.body["payout_id"], body.get("auto_fulfill"),
                )
            return outcome
        return self.match_fixture(envelope, fixture)

    def _check_confirmed_status(self, envelope, auto_fulfill: bool) -> StepOutcome | None:
        """Without an explicit fixture status, auto_fulfill decides what creation must report."""
        allowed = confirmed_payout_statuses(auto_fulfill)
        status = envelope.body.get("status")
        return self.expect(
            envelope,
            status in {s.value for s in allowed},
            f"payout created with auto_fulfill={auto_fulfill} reported status {status!r}, "
            f"expected one of {sorted(s.value for s in allowed)}",
        )

    def fulfill(self, context: ScenarioContext, request: dict, fixture: ExpectedFixture) -> StepOutcome:
        payout_id = context.get(ContextKey.PAYOUT_ID)
        status = context.get_optional(ContextKey.PAYOUT_STATUS)
        if status in TERMINAL_PAYOUT_STATUSES:
            return StepOutcome.failed(
                ErrorKind.UNHANDLED_RESPONSE_SHAPE,
                f"payout {payout_id} is already {status.value} and cannot be fulfilled",
            )
        body = {**request, "payout_id": payout_id}
        envelope = self.call(
            context, "POST", f"/payouts/{payout_id}/fulfill", context.get(ContextKey.API_KEY), body,
        )
        if isinstance(envelope, StepOutcome):
            return envelope
        outcome = self.match_fixture(envelope, fixture)
        if outcome.ok:
            self.record_status(context, envelope.body)
        return outcome

    def update(
        self,
        context: ScenarioContext,
        request: dict,
        fixture: ExpectedFixture,
        auto_fulfill: bool,
    ) -> StepOutcome:
        payout_id = context.get(ContextKey.PAYOUT_ID)
        body = {**request, "confirm": True, "auto_fulfill": auto_fulfill}
        envelope = self.call(
            context, "PUT", f"/payouts/{payout_id}", context.get(ContextKey.API_KEY), body,
        )
        if isinstance(envelope, StepOutcome):
            return envelope
        outcome = self.match_fixture(envelope, fixture)
        if outcome.ok:
            self.record_status(context, envelope.body)
        return outcome

    def retrieve(self, context: ScenarioContext, fixture: ExpectedFixture | None = None) -> StepOutcome:
        """Read the payout back; its id and amount must equal what creation stored."""
        payout = self.current(context)
        envelope = self.call(
            context, "GET", f"/payouts/{payout.payout_id}", context.get(ContextKey.API_KEY),
        )
        if isinstance(envelope, StepOutcome):
            return envelope
        expected = dict(fixture.body) if fixture else {}
        expected["payout_id"] = payout.payout_id
        expected["amount"] = payout.amount
        return self.match_fixture(envelope, ExpectedFixture(status=200, body=expected))
