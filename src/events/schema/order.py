from uuid import UUID

from common.schema import CamelSchema, Money
from events.models import Order, OrderItem
from events.service.cart import CartError


class OrderItemSchema(CamelSchema):
    ticket_type_id: UUID
    lot_id: UUID
    quantity: int
    unit_price: Money


class OrderSchema(CamelSchema):
    id: UUID
    event_id: UUID
    status: Order.OrderStatus
    subtotal: Money
    desconto: Money
    total: Money
    coupon_codes: list[str]
    items: list[OrderItemSchema]

    @staticmethod
    def resolve_items(obj: Order) -> list[OrderItem]:
        return list(obj.items.all())


class CartErrorResponse(CamelSchema):
    ok: bool = False
    errors: list[CartError]
