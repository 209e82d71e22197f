import typing as t
from decimal import Decimal

import pytest

from accounts.models import BilheteriaUser
from events.models import Coupon, Event, Lot, Order, OrderItem, Sector, Tenant, TenantMember, Ticket, TicketType
from events.service import ticket_service
from events.service.cart import CartItem, CartRequest

BUYER_CPF = "52998224725"
OTHER_CPF = "11144477735"


@pytest.fixture
def tenant_owner(user_factory: t.Callable[..., BilheteriaUser]) -> BilheteriaUser:
    return user_factory(username="tenant_owner")


@pytest.fixture
def tenant(tenant_owner: BilheteriaUser) -> Tenant:
    return Tenant.objects.create(name="Produtora", slug="produtora", owner=tenant_owner)


@pytest.fixture
def other_tenant(user_factory: t.Callable[..., BilheteriaUser]) -> Tenant:
    return Tenant.objects.create(name="Outra", slug="outra", owner=user_factory(username="other_owner"))


@pytest.fixture
def staff_user(user_factory: t.Callable[..., BilheteriaUser], tenant: Tenant) -> BilheteriaUser:
    staff = user_factory(username="staff")
    TenantMember.objects.create(tenant=tenant, user=staff, role=TenantMember.Role.STAFF)
    return staff


@pytest.fixture
def operator_user(user_factory: t.Callable[..., BilheteriaUser], tenant: Tenant) -> BilheteriaUser:
    operator = user_factory(username="operator")
    TenantMember.objects.create(tenant=tenant, user=operator, role=TenantMember.Role.CHECKIN_OPERATOR)
    return operator


@pytest.fixture
def event(tenant: Tenant) -> Event:
    return Event.objects.create(tenant=tenant, titulo="Festival", status=Event.EventStatus.PUBLISHED)


@pytest.fixture
def sector(tenant: Tenant, event: Event) -> Sector:
    return Sector.objects.create(tenant=tenant, event=event, nome="Pista", capacidade=100)


@pytest.fixture
def ticket_type(tenant: Tenant, event: Event, sector: Sector) -> TicketType:
    return TicketType.objects.create(tenant=tenant, event=event, sector=sector, nome="Inteira", preco=Decimal("100"))


@pytest.fixture
def lot(tenant: Tenant, ticket_type: TicketType) -> Lot:
    return Lot.objects.create(
        tenant=tenant, ticket_type=ticket_type, nome="1º Lote", preco=Decimal("100.00"), qtd_total=10
    )


@pytest.fixture
def vip_type(tenant: Tenant, event: Event, sector: Sector) -> TicketType:
    return TicketType.objects.create(tenant=tenant, event=event, sector=sector, nome="VIP", preco=Decimal("200"))


@pytest.fixture
def vip_lot(tenant: Tenant, vip_type: TicketType) -> Lot:
    return Lot.objects.create(
        tenant=tenant, ticket_type=vip_type, nome="VIP Lote", preco=Decimal("200.00"), qtd_total=5
    )


class CouponFactory:
    def __init__(self, tenant: Tenant, event: Event) -> None:
        self.tenant = tenant
        self.event = event

    def __call__(
        self,
        codigo: str,
        tipo: str = Coupon.CouponType.PERCENTAGE,
        valor: Decimal | str = "10",
        **kwargs: t.Any,
    ) -> Coupon:
        return Coupon.objects.create(
            tenant=self.tenant, event=self.event, codigo=codigo, tipo=tipo, valor=Decimal(valor), **kwargs
        )


@pytest.fixture
def coupon_factory(tenant: Tenant, event: Event) -> CouponFactory:
    return CouponFactory(tenant, event)


class CartFactory:
    def __init__(self, tenant: Tenant, event: Event) -> None:
        self.tenant = tenant
        self.event = event

    def __call__(
        self,
        *lines: tuple[Lot, int],
        coupon_codes: list[str] | None = None,
        cpf: str = BUYER_CPF,
    ) -> CartRequest:
        return CartRequest(
            tenant_id=self.tenant.id,
            event_id=self.event.id,
            buyer_cpf=cpf,
            items=[CartItem(ticket_type_id=lot.ticket_type_id, lot_id=lot.id, quantity=qty) for lot, qty in lines],
            coupon_codes=coupon_codes or [],
        )


@pytest.fixture
def make_cart(tenant: Tenant, event: Event) -> CartFactory:
    return CartFactory(tenant, event)


class PaidOrderFactory:
    """Store a paid order with its tickets, bypassing checkout."""

    def __init__(self, tenant: Tenant, event: Event, buyer: BilheteriaUser) -> None:
        self.tenant = tenant
        self.event = event
        self.buyer = buyer

    def __call__(
        self, *lines: tuple[Lot, int], cpf: str = BUYER_CPF, status: str = Order.OrderStatus.PAID
    ) -> Order:
        order = Order.objects.create(
            tenant=self.tenant, event=self.event, buyer=self.buyer, buyer_cpf=cpf, status=status
        )
        for lot, qty in lines:
            OrderItem.objects.create(
                order=order, ticket_type_id=lot.ticket_type_id, lot=lot, quantity=qty, unit_price=lot.preco
            )
        if status == Order.OrderStatus.PAID:
            ticket_service.issue_tickets(order)
        return order


@pytest.fixture
def make_paid_order(tenant: Tenant, event: Event, user: BilheteriaUser) -> PaidOrderFactory:
    return PaidOrderFactory(tenant, event, user)


@pytest.fixture
def ticket(make_paid_order: PaidOrderFactory, lot: Lot) -> Ticket:
    """An issued ticket bought by ``user``."""
    order = make_paid_order((lot, 1))
    return order.tickets.get()
