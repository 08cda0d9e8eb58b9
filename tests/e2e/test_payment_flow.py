"""E2E tests for payment scenarios run against the sandbox backend."""

import pytest

from src.dispatch.redirection import RedirectionHandler
from src.lifecycle.payments import PaymentsController
from src.models.envelope import ExpectedFixture
from src.models.outcome import Shape
from src.models.payment import RedirectionFlow
from src.scenario.context import ContextKey
from src.scenario.report import StepStatus
from src.scenario.runner import Scenario, ScenarioRunner
from src.utils.factories import PaymentRequestFactory


pytestmark = pytest.mark.e2e


@pytest.fixture
def payments(http_transport):
    return PaymentsController(http_transport)


def created(payment_id, amount=1000):
    return {
        "payment_id": payment_id,
        "client_secret": f"{payment_id}_secret_s3cr3t",
        "status": "requires_payment_method",
        "amount": amount,
        "amount_capturable": amount,
        "amount_received": None,
    }


class TestCardPaymentFlow:
    """Create -> confirm -> retrieve with a card."""

    def test_no_three_ds_automatic_capture_succeeds(self, payments, sandbox, sandbox_context):
        """1000 USD, automatic capture, no 3DS: confirm succeeds with nothing left to capture."""
        sandbox.route("POST", "/payments", 200, created("pay_e2e1"))
        sandbox.route("POST", "/payments/pay_e2e1/confirm", 200, {
            "payment_id": "pay_e2e1", "status": "succeeded", "amount": 1000,
            "amount_capturable": 0, "amount_received": 1000,
            "capture_method": "automatic", "authentication_type": "no_three_ds",
            "payment_method": "card", "payment_method_type": "credit",
        })
        sandbox.route("GET", "/payments/pay_e2e1", 200, {"payment_id": "pay_e2e1", "amount": 1000})

        success = ExpectedFixture(body={"status": "succeeded", "amount": 1000, "amount_capturable": 0})
        scenario = (
            Scenario("card no_three_ds automatic")
            .step("create", lambda ctx: payments.create_intent(
                ctx, PaymentRequestFactory.create_payment(amount=1000), {"currency": "USD"},
                ExpectedFixture(body={"status": "requires_payment_method"}), "no_three_ds", "automatic",
            ))
            .step("confirm", lambda ctx: payments.confirm(
                ctx, {}, PaymentRequestFactory.confirm_payment(payment_method_type="credit"), success,
            ))
            .step("retrieve", payments.retrieve)
        )

        report = ScenarioRunner().run(scenario, sandbox_context)

        assert report.passed is True, report.failed_step
        assert sandbox_context.get(ContextKey.PAYMENT_ID) == "pay_e2e1"
        assert not sandbox_context.has(ContextKey.NEXT_ACTION_URL)
        assert all(step.request_id for step in report.steps)
        confirm_request = sandbox.get_requests("POST")[1]
        assert confirm_request["headers"]["api-key"] == "pk_snd_test"
        assert confirm_request["body"]["client_secret"] == "pay_e2e1_secret_s3cr3t"

    def test_three_ds_stores_redirect_without_terminal_status(self, payments, sandbox, sandbox_context, redirector):
        """3DS confirm stores the redirect URL and hands it to the redirector."""
        sandbox.route("POST", "/payments", 200, created("pay_e2e2"))
        sandbox.route("POST", "/payments/pay_e2e2/confirm", 200, {
            "payment_id": "pay_e2e2", "status": "requires_customer_action",
            "capture_method": "automatic", "authentication_type": "three_ds",
            "payment_method": "card",
            "next_action": {"type": "redirect_to_url", "redirect_to_url": "https://acs.test/pay_e2e2"},
        })
        handler = RedirectionHandler(redirector)

        scenario = (
            Scenario("card three_ds automatic")
            .step("create", lambda ctx: payments.create_intent(
                ctx, PaymentRequestFactory.create_payment(amount=1000), {"currency": "USD"},
                ExpectedFixture(), "three_ds", "automatic",
            ))
            .step("confirm", lambda ctx: payments.confirm(
                ctx, {}, PaymentRequestFactory.confirm_payment(),
                ExpectedFixture(body={"status": "requires_customer_action"}),
            ))
        )
        report = ScenarioRunner().run(scenario, sandbox_context)
        handler.handle(sandbox_context, "https://example.com")

        assert report.passed is True, report.failed_step
        assert sandbox_context.get(ContextKey.NEXT_ACTION_URL) == "https://acs.test/pay_e2e2"
        assert redirector.requests[0].redirection_url == "https://acs.test/pay_e2e2"
        assert redirector.requests[0].flow is RedirectionFlow.THREE_DS

    def test_confirm_rejection_halts_scenario(self, payments, sandbox, sandbox_context):
        """An unexpected 400 fails confirm and skips the remaining steps."""
        sandbox.route("POST", "/payments", 200, created("pay_e2e3"))
        sandbox.route("POST", "/payments/pay_e2e3/confirm", 400, {
            "error": {"type": "invalid_request", "code": "IR_16", "message": "payment cannot be confirmed"},
        })

        scenario = (
            Scenario("confirm rejected")
            .step("create", lambda ctx: payments.create_intent(
                ctx, PaymentRequestFactory.create_payment(amount=1000), {"currency": "USD"},
                ExpectedFixture(), "no_three_ds", "automatic",
            ))
            .step("confirm", lambda ctx: payments.confirm(
                ctx, {}, PaymentRequestFactory.confirm_payment(), ExpectedFixture(),
            ))
            .step("retrieve", payments.retrieve)
        )
        report = ScenarioRunner().run(scenario, sandbox_context)

        assert report.passed is False
        assert report.failed_step.name == "confirm"
        assert "IR_16" in report.failed_step.detail
        assert report.steps[2].status is StepStatus.SKIPPED
        assert len(sandbox.get_requests("GET")) == 0


class TestManualCaptureAndRefund:
    """Manual capture followed by a refund."""

    def test_capture_then_refund(self, payments, sandbox, sandbox_context):
        sandbox.route("POST", "/payments", 200, {
            "payment_id": "pay_m1", "status": "requires_capture",
            "capture_method": "manual", "authentication_type": "no_three_ds", "amount": 6500,
        })
        sandbox.route("POST", "/payments/pay_m1/capture", 200, {"payment_id": "pay_m1", "status": "succeeded"})
        sandbox.route("POST", "/refunds", 200, {"refund_id": "ref_m1", "payment_id": "pay_m1", "status": "pending"})
        sandbox.route("GET", "/refunds/ref_m1", 200, {"refund_id": "ref_m1", "status": "succeeded"})

        scenario = (
            Scenario("manual capture refund")
            .step("create+confirm", lambda ctx: payments.create_and_confirm(
                ctx, PaymentRequestFactory.create_payment(confirm=True),
                {"payment_method": "card", "payment_method_data": PaymentRequestFactory.card_payment_method_data()},
                ExpectedFixture(body={"status": "requires_capture"}), "no_three_ds", "manual",
            ).raise_for_failure())
            .step("capture", lambda ctx: payments.capture(
                ctx, {}, ExpectedFixture(body={"status": "succeeded"}), 6500,
            ))
            .step("refund", lambda ctx: payments.refund(
                ctx, PaymentRequestFactory.refund(), ExpectedFixture(body={"status": "pending"}), 6500,
            ))
            .step("sync refund", lambda ctx: payments.sync_refund(
                ctx, ExpectedFixture(body={"status": "succeeded"}),
            ))
        )
        report = ScenarioRunner().run(scenario, sandbox_context)

        assert report.passed is True, report.failed_step
        assert report.steps[0].request_id is not None
        assert sandbox_context.get(ContextKey.REFUND_ID) == "ref_m1"
        assert sandbox.get_requests("POST")[2]["body"]["payment_id"] == "pay_m1"

    def test_classifier_shape_for_manual_capture(self, payments, sandbox, sandbox_context):
        sandbox.route("POST", "/payments", 200, {
            "payment_id": "pay_m2", "status": "requires_capture",
            "capture_method": "manual", "authentication_type": "no_three_ds",
        })
        outcome = payments.create_and_confirm(
            sandbox_context, PaymentRequestFactory.create_payment(confirm=True), {},
            ExpectedFixture(), "no_three_ds", "manual",
        )
        assert outcome.shape is Shape.REQUIRES_CAPTURE
