from dataclasses import dataclass
from enum import Enum


class PayoutStatus(Enum):
    REQUIRES_CREATION = "requires_creation"
    REQUIRES_CONFIRMATION = "requires_confirmation"
    REQUIRES_FULFILLMENT = "requires_fulfillment"
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class Payout:
    payout_id: str
    amount: int
    status: PayoutStatus | None = None


# A fulfill call against these is a scenario bug, not a backend answer
TERMINAL_PAYOUT_STATUSES = frozenset({PayoutStatus.SUCCESS, PayoutStatus.FAILED})


def confirmed_payout_statuses(auto_fulfill: bool) -> frozenset[PayoutStatus]:
    """Statuses a confirmed payout may report right after creation."""
    if auto_fulfill:
        return frozenset({PayoutStatus.SUCCESS})
    return frozenset({PayoutStatus.REQUIRES_FULFILLMENT, PayoutStatus.PENDING})
