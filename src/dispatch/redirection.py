import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from src.dispatch.dispatcher import FAMILY_RULES
from src.dispatch.overrides import ConnectorOverrides, Override
from src.models.payment import PaymentMethodFamily, RedirectionFlow
from src.scenario.context import ContextKey, ScenarioContext


logger = logging.getLogger(__name__)


@dataclass
class RedirectionRequest:
    flow: RedirectionFlow
    redirection_url: str
    expected_url: str
    connector_id: str
    payment_method_type: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)


class Redirector(Protocol):
    """Follows a continuation URL (browser automation lives behind this)."""

    def follow(self, request: RedirectionRequest) -> Any: ...


class RedirectionHandler:
    """Hands the stored continuation to the redirection collaborator."""

    def __init__(self, redirector: Redirector, overrides: ConnectorOverrides | None = None):
        self.redirector = redirector
        self.overrides = overrides or ConnectorOverrides.defaults()

    def handle(
        self,
        context: ScenarioContext,
        expected_url: str,
        payment_method: str | None = None,
        payment_method_type: str | None = None,
    ) -> Any | None:
        """Follow the continuation; returns None when the pair is skipped.

        The flow is the one the payment-method family's rule names.
        ``payment_method`` and ``payment_method_type`` default to what
        confirm stored; with no stored family the payment is a card payment.

        Raises:
            ValueError: if the payment method is not a known family.
        """
        family = PaymentMethodFamily(
            payment_method
            or context.get_optional(ContextKey.PAYMENT_METHOD)
            or PaymentMethodFamily.CARD.value
        )
        flow = FAMILY_RULES[family].flow
        if payment_method_type is None:
            payment_method_type = context.get_optional(ContextKey.PAYMENT_METHOD_TYPE)
        connector_id = context.get(ContextKey.CONNECTOR_ID)
        if self.overrides.lookup(connector_id, payment_method_type) is Override.SKIP_REDIRECTION:
            logger.info(
                "Skipping redirection for %s/%s", connector_id, payment_method_type,
            )
            return None

        extra = {}
        next_action_type = context.get_optional(ContextKey.NEXT_ACTION_TYPE)
        if flow is RedirectionFlow.BANK_TRANSFER and next_action_type:
            extra["next_action_type"] = next_action_type

        request = RedirectionRequest(
            flow=flow,
            redirection_url=context.get(ContextKey.NEXT_ACTION_URL),
            expected_url=expected_url,
            connector_id=connector_id,
            payment_method_type=payment_method_type,
            extra=extra,
        )
        logger.info("Following %s continuation for %s", flow.value, connector_id)
        return self.redirector.follow(request)
