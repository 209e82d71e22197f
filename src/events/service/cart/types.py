"""Request and result types for cart validation."""

import uuid
from decimal import Decimal

from pydantic import Field

from common.schema import CamelSchema, Money

from .enums import ErrorCode


class CartItem(CamelSchema):
    ticket_type_id: uuid.UUID
    lot_id: uuid.UUID
    quantity: int


class CartRequest(CamelSchema):
    tenant_id: uuid.UUID
    event_id: uuid.UUID
    buyer_cpf: str
    items: list[CartItem]
    coupon_codes: list[str] = Field(default_factory=list)


class CartError(CamelSchema):
    code: ErrorCode
    message: str
    ticket_type_id: uuid.UUID | None = None
    lot_id: uuid.UUID | None = None
    coupon_code: str | None = None


class TypeQuantity(CamelSchema):
    ticket_type_id: uuid.UUID
    qty: int


class LotQuantity(CamelSchema):
    lot_id: uuid.UUID
    qty: int


class Discount(CamelSchema):
    code: str
    amount: Money
    applied_to: list[uuid.UUID]


class Pricing(CamelSchema):
    subtotal: Money
    discounts: list[Discount] = Field(default_factory=list)
    total: Money

    @property
    def discount_total(self) -> Decimal:
        return sum((d.amount for d in self.discounts), Decimal("0"))


class CartSummary(CamelSchema):
    total_items: int
    by_type: list[TypeQuantity]
    by_lot: list[LotQuantity]
    pricing: Pricing | None = None
    warnings: list[str] = Field(default_factory=list)


class CartValidationResult(CamelSchema):
    """Outcome of a cart validation: either a priced summary or the errors found."""

    ok: bool
    summary: CartSummary | None = None
    errors: list[CartError] | None = None
