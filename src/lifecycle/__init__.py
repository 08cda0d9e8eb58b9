from .accounts import AccountsController
from .mandates import MandateController
from .payments import PaymentsController
from .payouts import PayoutController

__all__ = [
    "AccountsController",
    "MandateController",
    "PaymentsController",
    "PayoutController",
]
