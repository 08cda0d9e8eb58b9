import logging

from src.config.credentials import ConnectorCredentials, CredentialStore
from src.models.envelope import ExpectedFixture
from src.models.outcome import ErrorKind, Shape, StepOutcome
from src.scenario.context import ContextKey, ScenarioContext
from src.transport.api import ApiController
from src.transport.client import Transport
from src.utils.factories import generate_random_string
from src.validation.errors import describe_error


logger = logging.getLogger(__name__)


class AccountsController(ApiController):
    """Merchant, API key, connector and customer setup for a scenario."""

    def __init__(self, transport: Transport, credentials: CredentialStore | None = None):
        super().__init__(transport)
        self.credentials = credentials

    def create_merchant(self, context: ScenarioContext, request: dict) -> StepOutcome:
        merchant_id = generate_random_string()
        body = {**request, "merchant_id": merchant_id}
        context.set(ContextKey.MERCHANT_ID, merchant_id)

        envelope = self.call(context, "POST", "/accounts", context.get(ContextKey.ADMIN_API_KEY), body)
        if isinstance(envelope, StepOutcome):
            return envelope
        failure = self.expect(
            envelope,
            envelope.status == 200 and bool(envelope.body.get("publishable_key")),
            f"merchant create failed: {describe_error(envelope)}",
        )
        if failure:
            return failure
        context.set(ContextKey.PUBLISHABLE_KEY, envelope.body["publishable_key"])
        context.set(ContextKey.MERCHANT_DETAILS, envelope.body.get("merchant_details"))
        return StepOutcome.passed(Shape.FIXTURE_MATCH, envelope=envelope)

    def retrieve_merchant(self, context: ScenarioContext) -> StepOutcome:
        merchant_id = context.get(ContextKey.MERCHANT_ID)
        envelope = self.call(
            context, "GET", f"/accounts/{merchant_id}", context.get(ContextKey.ADMIN_API_KEY),
        )
        if isinstance(envelope, StepOutcome):
            return envelope
        resp = envelope.body if isinstance(envelope.body, dict) else {}
        failure = self.expect(
            envelope,
            resp.get("merchant_id") == merchant_id
            and all(resp.get(k) for k in ("publishable_key", "organization_id", "default_profile")),
            f"merchant {merchant_id} retrieved incomplete",
        )
        if failure:
            return failure
        context.set(ContextKey.ORGANIZATION_ID, resp["organization_id"])
        return StepOutcome.passed(Shape.FIXTURE_MATCH, envelope=envelope)

    def create_api_key(self, context: ScenarioContext, request: dict) -> StepOutcome:
        merchant_id = context.get(ContextKey.MERCHANT_ID)
        envelope = self.call(
            context, "POST", f"/api_keys/{merchant_id}", context.get(ContextKey.ADMIN_API_KEY), dict(request),
        )
        if isinstance(envelope, StepOutcome):
            return envelope
        failure = self.expect(
            envelope,
            envelope.status == 200 and bool(envelope.body.get("api_key")),
            f"api key create failed: {describe_error(envelope)}",
        )
        if failure:
            return failure
        context.set(ContextKey.API_KEY, envelope.body["api_key"])
        context.set(ContextKey.API_KEY_ID, envelope.body.get("key_id"))
        return StepOutcome.passed(Shape.FIXTURE_MATCH, envelope=envelope)

    def _require_credentials(self) -> CredentialStore:
        if self.credentials is None:
            raise ValueError("connector steps need a CredentialStore")
        return self.credentials

    def create_connector(
        self,
        context: ScenarioContext,
        request: dict,
        connector_type: str,
        payment_methods_enabled: list,
        connector_name: str | None = None,
        connector_label: str | None = None,
    ) -> StepOutcome:
        """Create a merchant connector account; ``connector_name`` defaults to the scenario's connector."""
        connector_name = connector_name or context.get(ContextKey.CONNECTOR_ID)
        credentials = self._require_credentials().lookup(connector_name)
        if credentials is None:
            return StepOutcome.failed(
                ErrorKind.UNHANDLED_RESPONSE_SHAPE, f"no credentials for connector {connector_name!r}",
            )
        body = dict(request)
        body["connector_type"] = connector_type
        body["connector_name"] = connector_name
        body["payment_methods_enabled"] = payment_methods_enabled
        if connector_label is not None:
            body["connector_label"] = connector_label
        return self._create_connector(context, body, credentials, connector_name)

    def create_payout_connector(self, context: ScenarioContext, request: dict) -> StepOutcome:
        """Create the payout processor, or skip when no payout credentials exist.

        The ``payouts_execution`` flag records which of the two happened.
        """
        connector_name = context.get(ContextKey.CONNECTOR_ID)
        credentials = self._require_credentials().payout_credentials(connector_name)
        if credentials is None:
            logger.info("No payout credentials for %s, payouts disabled", connector_name)
            context.set(ContextKey.PAYOUTS_EXECUTION, False)
            return StepOutcome.passed(Shape.SKIPPED, detail=f"no payout credentials for {connector_name}")
        context.set(ContextKey.PAYOUTS_EXECUTION, True)

        body = dict(request)
        body["connector_name"] = connector_name
        body["connector_type"] = "payout_processor"
        return self._create_connector(context, body, credentials, connector_name)

    def _create_connector(
        self,
        context: ScenarioContext,
        body: dict,
        credentials: ConnectorCredentials,
        connector_name: str,
    ) -> StepOutcome:
        body["connector_account_details"] = credentials.connector_account_details
        if credentials.metadata:
            body["metadata"] = {**(body.get("metadata") or {}), **credentials.metadata}

        merchant_id = context.get(ContextKey.MERCHANT_ID)
        envelope = self.call(
            context, "POST", f"/account/{merchant_id}/connectors", context.get(ContextKey.ADMIN_API_KEY), body,
        )
        if isinstance(envelope, StepOutcome):
            return envelope
        if envelope.status != 200:
            logger.error("Connector create for %s failed: %s", connector_name, describe_error(envelope))
            return StepOutcome.failed(
                ErrorKind.UNEXPECTED_STATUS,
                f"Connector Create Call Failed {describe_error(envelope)}",
                envelope=envelope,
            )
        failure = self.expect(
            envelope,
            envelope.body.get("connector_name") == connector_name,
            f"connector created as {envelope.body.get('connector_name')!r}, not {connector_name!r}",
        )
        if failure:
            return failure
        context.set(ContextKey.MERCHANT_CONNECTOR_ID, envelope.body.get("merchant_connector_id"))
        return StepOutcome.passed(Shape.FIXTURE_MATCH, envelope=envelope)

    def create_customer(self, context: ScenarioContext, request: dict) -> StepOutcome:
        envelope = self.call(context, "POST", "/customers", context.get(ContextKey.API_KEY), dict(request))
        if isinstance(envelope, StepOutcome):
            return envelope
        failure = self.expect(
            envelope,
            envelope.status == 200 and bool(envelope.body.get("customer_id")),
            f"customer create failed: {describe_error(envelope)}",
        )
        if failure:
            return failure
        context.set(ContextKey.CUSTOMER_ID, envelope.body["customer_id"])
        return StepOutcome.passed(Shape.FIXTURE_MATCH, envelope=envelope)

    def retrieve_customer(self, context: ScenarioContext) -> StepOutcome:
        customer_id = context.get(ContextKey.CUSTOMER_ID)
        envelope = self.call(context, "GET", f"/customers/{customer_id}", context.get(ContextKey.API_KEY))
        if isinstance(envelope, StepOutcome):
            return envelope
        return self.match_fixture(envelope, ExpectedFixture(status=200, body={"customer_id": customer_id}))

    def delete_customer(self, context: ScenarioContext) -> StepOutcome:
        customer_id = context.get(ContextKey.CUSTOMER_ID)
        envelope = self.call(context, "DELETE", f"/customers/{customer_id}", context.get(ContextKey.API_KEY))
        if isinstance(envelope, StepOutcome):
            return envelope
        return self.match_fixture(envelope, ExpectedFixture(status=200, body={
            "customer_id": customer_id,
            "customer_deleted": True,
            "address_deleted": True,
            "payment_methods_deleted": True,
        }))
