import pytest

from src.config.credentials import CredentialStore
from src.lifecycle.accounts import AccountsController
from src.models.outcome import ErrorKind, Shape
from src.scenario.context import ContextKey
from src.utils.factories import AccountRequestFactory


CREDENTIALS = {
    "stripe": {
        "connector_account_details": {"auth_type": "HeaderKey", "api_key": "sk_test"},
        "metadata": {"city": "NY"},
    },
}


@pytest.fixture
def accounts(transport):
    return AccountsController(transport, credentials=CredentialStore(CREDENTIALS))


class TestMerchant:
    """Tests for merchant and API key setup."""

    @pytest.mark.unit
    def test_create_merchant_generates_id_and_stores_publishable_key(self, accounts, transport, context):
        transport.reply(200, {"publishable_key": "pk_new", "merchant_details": {"primary_email": "a@b.c"}})

        outcome = accounts.create_merchant(context, AccountRequestFactory.merchant())

        assert outcome.ok is True
        merchant_id = context.get(ContextKey.MERCHANT_ID)
        assert merchant_id.startswith("merchant_")
        assert transport.last_request["body"]["merchant_id"] == merchant_id
        assert transport.last_request["headers"]["api-key"] == "test_admin"
        assert context.get(ContextKey.PUBLISHABLE_KEY) == "pk_new"

    @pytest.mark.unit
    def test_create_merchant_without_publishable_key_fails(self, accounts, transport, context):
        transport.reply(200, {})
        assert accounts.create_merchant(context, AccountRequestFactory.merchant()).ok is False

    @pytest.mark.unit
    def test_retrieve_merchant_stores_organization(self, accounts, transport, context):
        transport.reply(200, {
            "merchant_id": "merchant_abc123", "publishable_key": "pk",
            "organization_id": "org_1", "default_profile": "pro_1",
        })
        assert accounts.retrieve_merchant(context).ok is True
        assert context.get(ContextKey.ORGANIZATION_ID) == "org_1"

    @pytest.mark.unit
    def test_create_api_key(self, accounts, transport, context):
        transport.reply(200, {"api_key": "snd_new", "key_id": "key_1"})
        assert accounts.create_api_key(context, AccountRequestFactory.api_key()).ok is True
        assert context.get(ContextKey.API_KEY) == "snd_new"
        assert transport.last_request["url"].endswith("/api_keys/merchant_abc123")


class TestConnectors:
    """Tests for connector creation."""

    @pytest.mark.unit
    def test_connector_credentials_and_metadata_are_merged(self, accounts, transport, context):
        transport.reply(200, {"connector_name": "stripe", "merchant_connector_id": "mca_1"})

        outcome = accounts.create_connector(
            context, AccountRequestFactory.connector(metadata={"region": "us"}), "payment_processor", [],
        )

        assert outcome.ok is True
        sent = transport.last_request["body"]
        assert sent["connector_account_details"]["api_key"] == "sk_test"
        assert sent["metadata"] == {"region": "us", "city": "NY"}
        assert context.get(ContextKey.MERCHANT_CONNECTOR_ID) == "mca_1"

    @pytest.mark.unit
    def test_unknown_connector_fails_without_request(self, accounts, transport, context):
        outcome = accounts.create_connector(context, {}, "payment_processor", [], connector_name="nope")
        assert outcome.ok is False
        assert transport.requests == []

    @pytest.mark.unit
    def test_connector_error_is_unexpected_status(self, accounts, transport, context):
        transport.reply(400, {"error": {"code": "IR_07", "message": "Invalid credentials"}})
        outcome = accounts.create_connector(context, {}, "payment_processor", [])
        assert outcome.error is ErrorKind.UNEXPECTED_STATUS
        assert "Connector Create Call Failed" in outcome.detail

    @pytest.mark.unit
    def test_payout_connector_skipped_without_credentials(self, accounts, transport, context):
        outcome = accounts.create_payout_connector(context, {})
        assert outcome.ok is True
        assert outcome.shape is Shape.SKIPPED
        assert context.get_optional(ContextKey.PAYOUTS_EXECUTION) is False
        assert transport.requests == []

    @pytest.mark.unit
    def test_payout_connector_created_with_payout_credentials(self, transport, context):
        store = CredentialStore({**CREDENTIALS, "stripe_payout": {"connector_account_details": {"api_key": "po"}}})
        accounts = AccountsController(transport, credentials=store)
        transport.reply(200, {"connector_name": "stripe", "merchant_connector_id": "mca_po"})

        outcome = accounts.create_payout_connector(context, {})

        assert outcome.ok is True
        assert context.get_optional(ContextKey.PAYOUTS_EXECUTION) is True
        assert transport.last_request["body"]["connector_type"] == "payout_processor"

    @pytest.mark.unit
    def test_connector_steps_need_a_credential_store(self, transport, context):
        with pytest.raises(ValueError):
            AccountsController(transport).create_connector(context, {}, "payment_processor", [])


class TestCustomers:
    """Tests for customer create, retrieve and delete."""

    @pytest.mark.unit
    def test_create_customer_stores_id(self, accounts, transport, context):
        transport.reply(200, {"customer_id": "cus_new"})
        assert accounts.create_customer(context, AccountRequestFactory.customer()).ok is True
        assert context.get(ContextKey.CUSTOMER_ID) == "cus_new"

    @pytest.mark.unit
    def test_delete_customer_requires_every_flag(self, accounts, transport, context):
        transport.reply(200, {
            "customer_id": "cus_123", "customer_deleted": True,
            "address_deleted": True, "payment_methods_deleted": False,
        })
        outcome = accounts.delete_customer(context)
        assert outcome.ok is False
        assert outcome.mismatches[0].key == "payment_methods_deleted"
