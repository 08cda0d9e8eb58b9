import random
import string
import uuid


def generate_random_string(length: int = 8, prefix: str = "merchant_") -> str:
    alphabet = string.ascii_lowercase + string.digits
    return prefix + "".join(random.choices(alphabet, k=length))


class PaymentRequestFactory:
    """Request bodies for the payments API with sensible defaults."""

    @staticmethod
    def create_payment(**overrides) -> dict:
        defaults = {
            "amount": 6500,
            "currency": "USD",
            "confirm": False,
            "capture_method": "automatic",
            "authentication_type": "no_three_ds",
            "customer_id": None,
            "email": "payflow@example.com",
            "description": f"payflow e2e {uuid.uuid4().hex[:8]}",
            "setup_future_usage": None,
        }
        defaults.update(overrides)
        return defaults

    @staticmethod
    def card_payment_method_data(card_number: str = "4242424242424242", **overrides) -> dict:
        card = {
            "card_number": card_number,
            "card_exp_month": "01",
            "card_exp_year": "50",
            "card_holder_name": "joseph Doe",
            "card_cvc": "123",
        }
        card.update(overrides)
        return {"card": card}

    @staticmethod
    def confirm_payment(payment_method: str = "card", payment_method_type: str | None = None, **overrides) -> dict:
        defaults = {
            "payment_method": payment_method,
            "payment_method_type": payment_method_type or payment_method,
            "return_url": "https://example.com",
        }
        if payment_method == "card":
            defaults["payment_method_data"] = PaymentRequestFactory.card_payment_method_data()
        defaults.update(overrides)
        return defaults

    @staticmethod
    def mandate_data(amount: int = 8000, currency: str = "USD", multi_use: bool = False) -> dict:
        usage = "multi_use" if multi_use else "single_use"
        return {
            "customer_acceptance": {
                "acceptance_type": "offline",
                "accepted_at": "1963-05-03T04:07:52.723Z",
                "online": {"ip_address": "127.0.0.1", "user_agent": "payflow"},
            },
            "mandate_type": {usage: {"amount": amount, "currency": currency}},
        }

    @staticmethod
    def refund(**overrides) -> dict:
        defaults = {"reason": "FRAUD", "refund_type": "instant", "metadata": {}}
        defaults.update(overrides)
        return defaults


class AccountRequestFactory:
    @staticmethod
    def merchant(**overrides) -> dict:
        defaults = {
            "merchant_name": "Payflow Merchant",
            "return_url": "https://example.com",
            "webhook_details": {"webhook_url": "https://example.com/webhooks"},
            "merchant_details": {"primary_email": "merchant@example.com"},
        }
        defaults.update(overrides)
        return defaults

    @staticmethod
    def api_key(**overrides) -> dict:
        defaults = {"name": "API Key 1", "description": None, "expiration": "2099-09-23T01:02:03.000Z"}
        defaults.update(overrides)
        return defaults

    @staticmethod
    def customer(**overrides) -> dict:
        suffix = uuid.uuid4().hex[:8]
        defaults = {
            "email": f"guest_{suffix}@example.com",
            "name": "John Doe",
            "phone": "999999999",
            "phone_country_code": "+65",
            "description": "First customer",
        }
        defaults.update(overrides)
        return defaults

    @staticmethod
    def connector(**overrides) -> dict:
        defaults = {
            "connector_type": "payment_processor",
            "test_mode": True,
            "disabled": False,
            "business_country": "US",
            "business_label": "default",
            "metadata": {},
        }
        defaults.update(overrides)
        return defaults


class PayoutRequestFactory:
    @staticmethod
    def create_payout(**overrides) -> dict:
        defaults = {
            "amount": 1,
            "currency": "EUR",
            "payout_type": "card",
            "description": "Its my first payout request",
            "entity_type": "Individual",
            "priority": "regular",
            "recurring": True,
            "payout_method_data": {
                "card": {
                    "card_number": "4111111111111111",
                    "expiry_month": "3",
                    "expiry_year": "2030",
                    "card_holder_name": "John Smith",
                },
            },
        }
        defaults.update(overrides)
        return defaults
