from .factories import (
    AccountRequestFactory,
    PaymentRequestFactory,
    PayoutRequestFactory,
    generate_random_string,
)

__all__ = [
    "AccountRequestFactory", "PaymentRequestFactory", "PayoutRequestFactory",
    "generate_random_string",
]
