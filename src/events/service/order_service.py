"""Order lifecycle: checkout, payment confirmation and cancellation.

Orders only move forward. Stock and coupon counters are committed at
confirmation through the conditional updates in ``events.service.inventory``.
"""

import typing as t
from collections import defaultdict

import structlog
from django.db import transaction
from django.shortcuts import get_object_or_404
from django.utils import timezone

from accounts.models import BilheteriaUser
from events.exceptions import CartValidationError, InvalidOrderTransitionError, StockExhaustedError
from events.models import Coupon, CouponUsage, Lot, Order, OrderItem
from events.service import inventory, ticket_service
from events.service.cart import CartError, CartRequest, CartValidationService, ErrorCode, Messages

logger = structlog.get_logger(__name__)

_CANCELLABLE = (Order.OrderStatus.DRAFT, Order.OrderStatus.AWAITING_PAYMENT)


def _transition(order: Order, target: str) -> None:
    if not order.can_transition_to(target):
        raise InvalidOrderTransitionError(order.status, target)
    order.status = target


@transaction.atomic
def create_order(buyer: BilheteriaUser, request: CartRequest) -> Order:
    """Validate and price the cart, then store it as an order awaiting payment.

    Raises:
        CartValidationError: if the cart does not validate.
    """
    service = CartValidationService(request)
    result = service.validate()
    if not result.ok:
        raise CartValidationError(result.errors or [], status_code=422)
    assert result.summary is not None and result.summary.pricing is not None
    cart_pricing = result.summary.pricing

    order = Order(
        tenant_id=request.tenant_id,
        event=service.event,
        buyer=buyer,
        buyer_cpf=service.cpf,
        subtotal=cart_pricing.subtotal,
        desconto=cart_pricing.discount_total,
        total=cart_pricing.total,
        coupon_codes=sorted(d.code for d in cart_pricing.discounts),
    )
    _transition(order, Order.OrderStatus.AWAITING_PAYMENT)
    order.save()

    quantities: dict[tuple[t.Any, t.Any], int] = defaultdict(int)
    for item in service.valid_items:
        quantities[(item.ticket_type_id, item.lot_id)] += item.quantity
    OrderItem.objects.bulk_create(
        [
            OrderItem(
                order=order,
                ticket_type_id=type_id,
                lot_id=lot_id,
                quantity=quantity,
                unit_price=service.lots[lot_id].preco,
            )
            for (type_id, lot_id), quantity in quantities.items()
        ]
    )
    logger.info("order_created", order_id=str(order.id), total=str(order.total))
    return order


def confirm_order(order_id: t.Any, tenant_id: t.Any) -> Order:
    """Mark an order as paid: commit stock and coupon uses, then emit tickets.

    Confirming an already paid order is a no-op. If a lot or a coupon ran out
    since checkout, nothing is committed and the order is cancelled.

    Raises:
        StockExhaustedError: if stock or coupon uses were lost to another order.
        InvalidOrderTransitionError: if the order is cancelled.
    """
    try:
        with transaction.atomic():
            order = get_object_or_404(Order.objects.select_for_update(), pk=order_id, tenant_id=tenant_id)
            if order.status == Order.OrderStatus.PAID:
                return order
            _transition(order, Order.OrderStatus.PAID)
            _commit_stock(order)
            _commit_coupons(order)
            order.paid_at = timezone.now()
            order.save(update_fields=["status", "paid_at", "updated_at"])
            tickets = ticket_service.issue_tickets(order, issued_at=order.paid_at)
    except StockExhaustedError as e:
        Order.objects.filter(pk=order_id, tenant_id=tenant_id, status__in=_CANCELLABLE).update(
            status=Order.OrderStatus.CANCELLED, updated_at=timezone.now()
        )
        logger.warning(
            "order_confirmation_lost_race",
            order_id=str(order_id),
            error_codes=[str(c.code) for c in e.errors],
        )
        raise
    logger.info("order_paid", order_id=str(order.id), tickets=len(tickets))
    return order


def _commit_stock(order: Order) -> None:
    per_lot: dict[t.Any, int] = defaultdict(int)
    for item in order.items.all():
        per_lot[item.lot_id] += item.quantity
    # Stable lock order across concurrent confirmations.
    for lot_id in sorted(per_lot, key=str):
        if not inventory.try_increment_stock(lot_id, per_lot[lot_id]):
            lot = Lot.objects.only("nome").get(pk=lot_id)
            raise StockExhaustedError(
                [
                    CartError(
                        code=ErrorCode.LOTE_SEM_ESTOQUE,
                        lot_id=lot_id,
                        message=Messages.STOCK_LOST.format(lot=lot.nome),
                    )
                ]
            )


def _commit_coupons(order: Order) -> None:
    if not order.coupon_codes:
        return
    for coupon in Coupon.objects.filter(event_id=order.event_id, codigo__in=order.coupon_codes).order_by("codigo"):
        if not inventory.try_consume_coupon(coupon.id):
            raise StockExhaustedError(
                [
                    CartError(
                        code=ErrorCode.LIMITE_TOTAL_EXCEDIDO,
                        coupon_code=coupon.codigo,
                        message=Messages.COUPON_EXHAUSTED.format(code=coupon.codigo),
                    )
                ]
            )
        CouponUsage(coupon=coupon, order=order, cpf=order.buyer_cpf, used_by=order.buyer).save()


@transaction.atomic
def cancel_order(order_id: t.Any, tenant_id: t.Any) -> Order:
    """Cancel an order that has not been paid yet."""
    order = get_object_or_404(Order.objects.select_for_update(), pk=order_id, tenant_id=tenant_id)
    _transition(order, Order.OrderStatus.CANCELLED)
    order.save(update_fields=["status", "updated_at"])
    logger.info("order_cancelled", order_id=str(order.id))
    return order
