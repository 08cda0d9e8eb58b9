"""Per-scenario key/value store threading identifiers between steps."""

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from src.config.settings import Settings


logger = logging.getLogger(__name__)


class ContextKey:
    """Names of the values a scenario carries from one step to the next."""

    BASE_URL = "base_url"
    ADMIN_API_KEY = "admin_api_key"
    API_KEY = "api_key"
    API_KEY_ID = "api_key_id"
    PUBLISHABLE_KEY = "publishable_key"
    CONNECTOR_ID = "connector_id"
    MERCHANT_ID = "merchant_id"
    MERCHANT_DETAILS = "merchant_details"
    ORGANIZATION_ID = "organization_id"
    MERCHANT_CONNECTOR_ID = "merchant_connector_id"
    CUSTOMER_ID = "customer_id"
    PAYMENT_ID = "payment_id"
    PAYMENT_AMOUNT = "payment_amount"
    PAYMENT_METHOD = "payment_method"
    PAYMENT_METHOD_ID = "payment_method_id"
    PAYMENT_METHOD_TYPE = "payment_method_type"
    PAYMENT_TOKEN = "payment_token"
    CLIENT_SECRET = "client_secret"
    REFUND_ID = "refund_id"
    MANDATE_ID = "mandate_id"
    MANDATE_STATUS = "mandate_status"
    MANDATE_AMOUNT = "mandate_amount"
    PAYOUT_ID = "payout_id"
    PAYOUT_AMOUNT = "payout_amount"
    PAYOUT_STATUS = "payout_status"
    PAYOUTS_EXECUTION = "payouts_execution"
    NEXT_ACTION_URL = "next_action_url"
    NEXT_ACTION_TYPE = "next_action_type"


# Keys that may be read before any step has written them.
OPTIONAL_KEYS = frozenset({
    ContextKey.NEXT_ACTION_TYPE,
    ContextKey.PAYMENT_METHOD,
    ContextKey.PAYMENT_METHOD_TYPE,
    ContextKey.MANDATE_AMOUNT,
    ContextKey.PAYOUTS_EXECUTION,
    ContextKey.PAYOUT_STATUS,
})


class MissingContextKey(KeyError):
    """A step read a context value no earlier step wrote."""

    def __init__(self, key: str, scenario: str | None = None):
        self.key = key
        self.scenario = scenario
        where = f" in scenario {scenario!r}" if scenario else ""
        super().__init__(f"context key {key!r} was never set{where}")

    def __str__(self) -> str:
        return self.args[0]


class ScenarioContext:
    """Mutable mapping scoped to a single scenario run.

    One instance per scenario; never shared between scenarios. Reads of
    unset keys raise ``MissingContextKey`` instead of returning a default.
    Only keys in ``OPTIONAL_KEYS`` may be read with ``get_optional``.
    """

    def __init__(self, name: str | None = None, initial: dict[str, Any] | None = None):
        self.name = name
        self._values: dict[str, Any] = dict(initial or {})

    @classmethod
    def from_settings(cls, settings: "Settings", name: str | None = None) -> "ScenarioContext":
        """Fresh context seeded with the backend location and admin credentials."""
        return cls(name=name, initial={
            ContextKey.BASE_URL: settings.base_url,
            ContextKey.ADMIN_API_KEY: settings.admin_api_key,
            ContextKey.CONNECTOR_ID: settings.connector_id,
        })

    def set(self, key: str, value: Any) -> None:
        logger.debug("context[%s] %s = %r", self.name, key, value)
        self._values[key] = value

    def get(self, key: str) -> Any:
        try:
            return self._values[key]
        except KeyError:
            raise MissingContextKey(key, self.name) from None

    def get_optional(self, key: str) -> Any | None:
        if key not in OPTIONAL_KEYS:
            raise ValueError(f"{key!r} is not an optional context key")
        return self._values.get(key)

    def has(self, key: str) -> bool:
        return key in self._values

    def snapshot(self) -> dict[str, Any]:
        return dict(self._values)

    def __contains__(self, key: str) -> bool:
        return self.has(key)
