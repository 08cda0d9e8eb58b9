from dataclasses import dataclass
from enum import Enum


class CaptureMethod(Enum):
    AUTOMATIC = "automatic"
    MANUAL = "manual"


class AuthenticationType(Enum):
    THREE_DS = "three_ds"
    NO_THREE_DS = "no_three_ds"


class PaymentMethodFamily(Enum):
    CARD = "card"
    BANK_REDIRECT = "bank_redirect"
    BANK_TRANSFER = "bank_transfer"
    UPI = "upi"
    WALLET = "wallet"


class ContinuationKind(Enum):
    REDIRECT_TO_URL = "redirect_to_url"
    QR_CODE_URL = "qr_code_url"
    QR_CODE_FETCH_URL = "qr_code_fetch_url"
    IMAGE_DATA_URL = "image_data_url"


class RedirectionFlow(Enum):
    """Flow tag handed to the redirection collaborator."""

    THREE_DS = "three_ds"
    BANK_REDIRECT = "bank_redirect"
    BANK_TRANSFER = "bank_transfer"
    UPI = "upi"
    WALLET = "wallet"


@dataclass(frozen=True)
class ContinuationToken:
    kind: ContinuationKind
    url: str
