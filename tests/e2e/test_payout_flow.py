"""E2E tests for payout scenarios run against the sandbox backend."""

import pytest

from src.config.credentials import CredentialStore
from src.lifecycle.accounts import AccountsController
from src.lifecycle.payouts import PayoutController
from src.models.envelope import ExpectedFixture
from src.models.outcome import Shape
from src.models.payout import PayoutStatus
from src.scenario.context import ContextKey
from src.scenario.runner import Scenario, ScenarioRunner
from src.utils.factories import AccountRequestFactory, PayoutRequestFactory


pytestmark = pytest.mark.e2e


class TestPayoutFlow:
    """Payout connector setup, create, fulfill and retrieve."""

    def test_create_fulfill_retrieve(self, http_transport, sandbox, sandbox_context):
        store = CredentialStore({"stripe_payout": {"connector_account_details": {"api_key": "sk_po"}}})
        accounts = AccountsController(http_transport, credentials=store)
        payouts = PayoutController(http_transport)
        sandbox.route("POST", "/account/*/connectors", 200, {"connector_name": "stripe", "merchant_connector_id": "mca_po"})
        sandbox.route("POST", "/payouts/create", 200, {"payout_id": "po_e2e", "amount": 1, "status": "requires_fulfillment"})
        sandbox.route("POST", "/payouts/po_e2e/fulfill", 200, {"payout_id": "po_e2e", "status": "success"})
        sandbox.route("GET", "/payouts/po_e2e", 200, {"payout_id": "po_e2e", "amount": 1, "status": "success"})

        scenario = (
            Scenario("payout")
            .step("payout connector", lambda ctx: accounts.create_payout_connector(ctx, AccountRequestFactory.connector()))
            .step("create", lambda ctx: payouts.create_confirm(
                ctx, PayoutRequestFactory.create_payout(), {},
                ExpectedFixture(body={"status": "requires_fulfillment"}), confirm=True, auto_fulfill=False,
            ))
            .step("fulfill", lambda ctx: payouts.fulfill(ctx, {}, ExpectedFixture(body={"status": "success"})))
            .step("retrieve", lambda ctx: payouts.retrieve(ctx, ExpectedFixture(body={"status": "success"})))
        )
        report = ScenarioRunner().run(scenario, sandbox_context)

        assert report.passed is True, report.failed_step
        assert payouts.current(sandbox_context).status is PayoutStatus.SUCCESS
        assert sandbox_context.get_optional(ContextKey.PAYOUTS_EXECUTION) is True

    def test_payouts_skipped_without_credentials(self, http_transport, sandbox, sandbox_context):
        accounts = AccountsController(http_transport, credentials=CredentialStore({}))

        outcome = accounts.create_payout_connector(sandbox_context, AccountRequestFactory.connector())

        assert outcome.shape is Shape.SKIPPED
        assert sandbox_context.get_optional(ContextKey.PAYOUTS_EXECUTION) is False
        assert sandbox.get_requests() == []
