"""Cart validation and pricing package.

Validates a cart against stock, sale windows and purchase limits, then prices
it with the supplied coupons. Nothing here writes to the database.
"""

from .enums import ErrorCode, Messages
from .service import CartValidationService, validate_cart
from .types import (
    CartError,
    CartItem,
    CartRequest,
    CartSummary,
    CartValidationResult,
    Discount,
    Pricing,
)

__all__ = [
    "ErrorCode",
    "Messages",
    "CartValidationService",
    "validate_cart",
    "CartError",
    "CartItem",
    "CartRequest",
    "CartSummary",
    "CartValidationResult",
    "Discount",
    "Pricing",
]
