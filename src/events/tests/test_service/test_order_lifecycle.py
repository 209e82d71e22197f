import typing as t
from decimal import Decimal

import pytest

from accounts.models import BilheteriaUser
from events.exceptions import CartValidationError, InvalidOrderTransitionError, StockExhaustedError
from events.models import Coupon, CouponUsage, Lot, Order, Ticket
from events.service.cart import CartRequest, ErrorCode
from events.service.order_service import cancel_order, confirm_order, create_order

pytestmark = pytest.mark.django_db

MakeCart = t.Callable[..., CartRequest]
MakeCoupon = t.Callable[..., Coupon]


class TestCreateOrder:
    def test_creates_order_awaiting_payment(
        self, user: BilheteriaUser, make_cart: MakeCart, coupon_factory: MakeCoupon, lot: Lot, vip_lot: Lot
    ) -> None:
        coupon_factory("DESCONTO10")

        order = create_order(user, make_cart((lot, 2), (vip_lot, 1), coupon_codes=["desconto10"]))

        assert order.status == Order.OrderStatus.AWAITING_PAYMENT
        assert order.buyer == user
        assert order.buyer_cpf == "52998224725"
        assert order.subtotal == Decimal("400.00")
        assert order.desconto == Decimal("40.00")
        assert order.total == Decimal("360.00")
        assert order.coupon_codes == ["DESCONTO10"]
        assert {(i.lot_id, i.quantity, i.unit_price) for i in order.items.all()} == {
            (lot.id, 2, Decimal("100.00")),
            (vip_lot.id, 1, Decimal("200.00")),
        }

    def test_nothing_is_reserved_at_checkout(self, user: BilheteriaUser, make_cart: MakeCart, lot: Lot) -> None:
        create_order(user, make_cart((lot, 3)))

        lot.refresh_from_db()
        assert lot.qtd_vendida == 0
        assert not Ticket.objects.exists()

    def test_repeated_lot_lines_are_merged(self, user: BilheteriaUser, make_cart: MakeCart, lot: Lot) -> None:
        order = create_order(user, make_cart((lot, 2), (lot, 3)))

        assert list(order.items.values_list("quantity", flat=True)) == [5]

    def test_invalid_cart_creates_nothing(self, user: BilheteriaUser, make_cart: MakeCart, lot: Lot) -> None:
        with pytest.raises(CartValidationError) as exc_info:
            create_order(user, make_cart((lot, 11)))

        assert exc_info.value.status_code == 422
        assert [e.code for e in exc_info.value.errors] == [ErrorCode.LOTE_SEM_ESTOQUE]
        assert not Order.objects.exists()

    def test_empty_cart_creates_nothing(self, user: BilheteriaUser, make_cart: MakeCart) -> None:
        with pytest.raises(CartValidationError) as exc_info:
            create_order(user, make_cart())

        assert exc_info.value.status_code == 404
        assert not Order.objects.exists()


class TestConfirmOrder:
    def test_confirm_commits_stock_and_issues_tickets(
        self, user: BilheteriaUser, make_cart: MakeCart, lot: Lot, vip_lot: Lot
    ) -> None:
        order = create_order(user, make_cart((lot, 2), (vip_lot, 1)))

        confirmed = confirm_order(order.id, order.tenant_id)

        assert confirmed.status == Order.OrderStatus.PAID
        assert confirmed.paid_at is not None
        lot.refresh_from_db()
        vip_lot.refresh_from_db()
        assert lot.qtd_vendida == 2
        assert vip_lot.qtd_vendida == 1
        tickets = list(order.tickets.all())
        assert len(tickets) == 3
        assert all(tk.status == Ticket.TicketStatus.ISSUED for tk in tickets)
        assert all(tk.sector_id == lot.ticket_type.sector_id for tk in tickets)
        assert all(tk.qr_last_issued_at == confirmed.paid_at for tk in tickets)
        assert len({tk.qr_nonce for tk in tickets}) == 3

    def test_confirm_is_idempotent(self, user: BilheteriaUser, make_cart: MakeCart, lot: Lot) -> None:
        order = create_order(user, make_cart((lot, 2)))

        confirm_order(order.id, order.tenant_id)
        again = confirm_order(order.id, order.tenant_id)

        assert again.status == Order.OrderStatus.PAID
        lot.refresh_from_db()
        assert lot.qtd_vendida == 2
        assert order.tickets.count() == 2

    def test_confirm_consumes_coupons(
        self, user: BilheteriaUser, make_cart: MakeCart, coupon_factory: MakeCoupon, lot: Lot
    ) -> None:
        coupon = coupon_factory("DESCONTO10")
        order = create_order(user, make_cart((lot, 1), coupon_codes=["DESCONTO10"]))

        confirm_order(order.id, order.tenant_id)

        coupon.refresh_from_db()
        assert coupon.uso_total == 1
        usage = CouponUsage.objects.get(coupon=coupon)
        assert usage.order_id == order.id
        assert usage.cpf == "52998224725"
        assert usage.used_by == user

    def test_stock_lost_since_checkout_cancels_the_order(
        self, user: BilheteriaUser, make_cart: MakeCart, lot: Lot
    ) -> None:
        order = create_order(user, make_cart((lot, 5)))
        Lot.objects.filter(pk=lot.pk).update(qtd_vendida=8)

        with pytest.raises(StockExhaustedError) as exc_info:
            confirm_order(order.id, order.tenant_id)

        assert exc_info.value.status_code == 409
        assert [e.code for e in exc_info.value.errors] == [ErrorCode.LOTE_SEM_ESTOQUE]
        order.refresh_from_db()
        lot.refresh_from_db()
        assert order.status == Order.OrderStatus.CANCELLED
        assert lot.qtd_vendida == 8
        assert not order.tickets.exists()

    def test_coupon_exhausted_since_checkout_rolls_back_stock(
        self, user: BilheteriaUser, make_cart: MakeCart, coupon_factory: MakeCoupon, lot: Lot
    ) -> None:
        coupon = coupon_factory("UNICO", limites={"limiteTotal": 1})
        first = create_order(user, make_cart((lot, 1), coupon_codes=["UNICO"]))
        second = create_order(user, make_cart((lot, 2), coupon_codes=["UNICO"]))
        confirm_order(first.id, first.tenant_id)

        with pytest.raises(StockExhaustedError) as exc_info:
            confirm_order(second.id, second.tenant_id)

        assert [e.code for e in exc_info.value.errors] == [ErrorCode.LIMITE_TOTAL_EXCEDIDO]
        lot.refresh_from_db()
        coupon.refresh_from_db()
        second.refresh_from_db()
        assert lot.qtd_vendida == 1
        assert coupon.uso_total == 1
        assert second.status == Order.OrderStatus.CANCELLED
        assert CouponUsage.objects.filter(coupon=coupon).count() == 1

    def test_competing_orders_never_oversell(self, user: BilheteriaUser, make_cart: MakeCart, lot: Lot) -> None:
        orders = [create_order(user, make_cart((lot, 4))) for _ in range(3)]

        outcomes = []
        for order in orders:
            try:
                confirm_order(order.id, order.tenant_id)
                outcomes.append(True)
            except StockExhaustedError:
                outcomes.append(False)

        assert outcomes == [True, True, False]
        lot.refresh_from_db()
        assert lot.qtd_vendida == 8
        assert Ticket.objects.count() == 8

    def test_cancelled_order_cannot_be_confirmed(self, user: BilheteriaUser, make_cart: MakeCart, lot: Lot) -> None:
        order = create_order(user, make_cart((lot, 1)))
        cancel_order(order.id, order.tenant_id)

        with pytest.raises(InvalidOrderTransitionError):
            confirm_order(order.id, order.tenant_id)

        lot.refresh_from_db()
        assert lot.qtd_vendida == 0


class TestCancelOrder:
    def test_cancel_awaiting_payment(self, user: BilheteriaUser, make_cart: MakeCart, lot: Lot) -> None:
        order = create_order(user, make_cart((lot, 1)))

        cancelled = cancel_order(order.id, order.tenant_id)

        assert cancelled.status == Order.OrderStatus.CANCELLED

    def test_paid_order_cannot_be_cancelled(self, user: BilheteriaUser, make_cart: MakeCart, lot: Lot) -> None:
        order = create_order(user, make_cart((lot, 1)))
        confirm_order(order.id, order.tenant_id)

        with pytest.raises(InvalidOrderTransitionError):
            cancel_order(order.id, order.tenant_id)

        order.refresh_from_db()
        assert order.status == Order.OrderStatus.PAID


class TestTransitions:
    @pytest.mark.parametrize(
        "current,target,allowed",
        [
            (Order.OrderStatus.DRAFT, Order.OrderStatus.AWAITING_PAYMENT, True),
            (Order.OrderStatus.DRAFT, Order.OrderStatus.CANCELLED, True),
            (Order.OrderStatus.DRAFT, Order.OrderStatus.PAID, False),
            (Order.OrderStatus.AWAITING_PAYMENT, Order.OrderStatus.PAID, True),
            (Order.OrderStatus.AWAITING_PAYMENT, Order.OrderStatus.DRAFT, False),
            (Order.OrderStatus.PAID, Order.OrderStatus.CANCELLED, False),
            (Order.OrderStatus.CANCELLED, Order.OrderStatus.AWAITING_PAYMENT, False),
        ],
    )
    def test_forward_only(self, current: str, target: str, allowed: bool) -> None:
        assert Order(status=current).can_transition_to(target) is allowed
