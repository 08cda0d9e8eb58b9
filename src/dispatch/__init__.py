from .classifier import DECISION_TABLE, Decision, OutcomeClassifier, ValidationMode
from .dispatcher import FAMILY_RULES, FamilyRule, PaymentMethodDispatcher
from .overrides import ConnectorOverrides, Override
from .redirection import RedirectionHandler, RedirectionRequest, Redirector

__all__ = [
    "DECISION_TABLE", "Decision", "OutcomeClassifier", "ValidationMode",
    "FAMILY_RULES", "FamilyRule", "PaymentMethodDispatcher",
    "ConnectorOverrides", "Override",
    "RedirectionHandler", "RedirectionRequest", "Redirector",
]
