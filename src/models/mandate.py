from dataclasses import dataclass
from enum import Enum


class MandateStatus(Enum):
    PENDING = "pending"
    ACTIVE = "active"
    REVOKED = "revoked"


@dataclass
class Mandate:
    mandate_id: str
    status: MandateStatus
    ceiling_amount: int | None = None

    def allows(self, amount: int) -> bool:
        if self.ceiling_amount is None:
            return True
        return amount <= self.ceiling_amount


# Fixed error triple the backend returns when a MIT exceeds the mandate amount.
MANDATE_CEILING_ERROR_CODE = "HE_03"
MANDATE_CEILING_ERROR_MESSAGE = "Mandate Validation Failed"
MANDATE_CEILING_ERROR_REASON = "request amount is greater than mandate amount"

MANDATE_ALREADY_REVOKED_REASON = "Mandate has already been revoked"
