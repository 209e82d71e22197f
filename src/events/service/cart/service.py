"""CartValidationService: validates and prices a cart without side effects."""

import uuid
from collections import Counter, defaultdict
from datetime import datetime, timedelta
from decimal import Decimal

import structlog
from django.conf import settings
from django.db.models import Count, Q
from django.utils import timezone

from accounts.validators import CPF_LENGTH, normalize_cpf
from common.schema import quantize_money
from events.exceptions import CartValidationError
from events.models import Coupon, CouponUsage, Event, Lot, Ticket, TicketType, normalize_coupon_code

from . import pricing
from .checks import CART_CHECKS, BaseCartCheck
from .enums import ErrorCode, Messages
from .types import CartError, CartItem, CartRequest, CartSummary, CartValidationResult, LotQuantity, TypeQuantity

logger = structlog.get_logger(__name__)


class CartValidationService:
    """The Cart Validation Service Class.

    Loads everything the checks need up front: the event, the referenced lots
    and ticket types, the buyer's paid ticket history and the coupons. The checks
    and the pricing then run in memory.

    Structurally fatal problems (bad CPF, unknown event, unknown lots or types)
    raise :class:`CartValidationError` from the constructor. Business rule
    violations are collected and returned by :meth:`validate`.
    """

    def __init__(self, request: CartRequest, now: datetime | None = None) -> None:
        """Normalize the request and prefetch the data for the checks."""
        self.request = request
        self.now = now or timezone.now()
        self.clock_skew = timedelta(seconds=settings.CART_CLOCK_SKEW_SECONDS)

        self.cpf = normalize_cpf(request.buyer_cpf)
        if len(self.cpf) != CPF_LENGTH:
            raise CartValidationError(
                [CartError(code=ErrorCode.INVALID_CPF, message=Messages.INVALID_CPF)], status_code=422
            )
        # Normalized and de-duplicated, first occurrence wins.
        self.coupon_codes = list(dict.fromkeys(c for c in map(normalize_coupon_code, request.coupon_codes) if c))

        self.event = self._fetch_event()
        self.limit_rules = self.event.limit_rules
        self.lots, self.ticket_types = self._fetch_catalog()

        self._aggregate()
        self.cpf_history_by_type = self._fetch_cpf_history()

        self._checks: list[BaseCartCheck] = [check(self) for check in CART_CHECKS]

    def _fetch_event(self) -> Event:
        event = Event.objects.for_tenant(self.request.tenant_id).filter(pk=self.request.event_id).first()
        if event is None:
            raise CartValidationError(
                [CartError(code=ErrorCode.EVENT_NOT_FOUND, message=Messages.EVENT_NOT_FOUND)], status_code=404
            )
        return event

    def _fetch_catalog(self) -> tuple[dict[uuid.UUID, Lot], dict[uuid.UUID, TicketType]]:
        lot_ids = {item.lot_id for item in self.request.items}
        if not lot_ids:
            raise CartValidationError(
                [CartError(code=ErrorCode.LOTS_NOT_FOUND, message=Messages.LOTS_NOT_FOUND)], status_code=404
            )
        type_ids = {item.ticket_type_id for item in self.request.items}
        lots = {
            lot.id: lot
            for lot in Lot.objects.filter(
                pk__in=lot_ids, tenant_id=self.request.tenant_id, ticket_type__event=self.event
            ).select_related("ticket_type")
        }
        if set(lots) != lot_ids:
            raise CartValidationError(
                [CartError(code=ErrorCode.LOTS_NOT_FOUND, message=Messages.LOTS_NOT_FOUND)], status_code=404
            )
        ticket_types = {
            tt.id: tt
            for tt in TicketType.objects.filter(
                pk__in=type_ids, tenant_id=self.request.tenant_id, event=self.event, ativo=True
            ).select_related("sector")
        }
        if set(ticket_types) != type_ids:
            raise CartValidationError(
                [CartError(code=ErrorCode.TYPES_NOT_FOUND, message=Messages.TYPES_NOT_FOUND)], status_code=404
            )
        return lots, ticket_types

    def _aggregate(self) -> None:
        """Sum quantities per type, lot and sector, and subtotals per type.

        Line items with a non-positive quantity are reported and left out.
        """
        self.quantity_errors: list[CartError] = []
        self.valid_items: list[CartItem] = []
        self.quantity_by_type: dict[uuid.UUID, int] = defaultdict(int)
        self.quantity_by_lot: dict[uuid.UUID, int] = defaultdict(int)
        self.quantity_by_sector: dict[uuid.UUID, int] = defaultdict(int)
        self.subtotal_by_type: dict[uuid.UUID, Decimal] = defaultdict(Decimal)
        for item in self.request.items:
            if item.quantity <= 0:
                self.quantity_errors.append(
                    CartError(code=ErrorCode.INVALID_QUANTITY, lot_id=item.lot_id, message=Messages.INVALID_QUANTITY)
                )
                continue
            self.valid_items.append(item)
            self.quantity_by_type[item.ticket_type_id] += item.quantity
            self.quantity_by_lot[item.lot_id] += item.quantity
            self.quantity_by_sector[self.ticket_types[item.ticket_type_id].sector_id] += item.quantity
            self.subtotal_by_type[item.ticket_type_id] += quantize_money(
                self.lots[item.lot_id].price_for(item.quantity)
            )
        self.total_quantity = sum(self.quantity_by_type.values())

    def _fetch_cpf_history(self) -> dict[uuid.UUID, int]:
        """Tickets already held by the buyer CPF from paid orders of this event, per type.

        Named tickets count for their holder; unnamed ones for the order's buyer.
        """
        held_by_cpf = Q(cpf_titular=self.cpf) | (
            (Q(cpf_titular__isnull=True) | Q(cpf_titular="")) & Q(order__buyer_cpf=self.cpf)
        )
        rows = (
            Ticket.objects.paid_for_event(self.event.pk)
            .filter(held_by_cpf)
            .values("ticket_type_id")
            .annotate(count=Count("id"))
        )
        return {row["ticket_type_id"]: row["count"] for row in rows}

    def _fetch_coupons(self) -> tuple[dict[str, Coupon], dict[uuid.UUID, int]]:
        if not self.coupon_codes:
            return {}, {}
        coupons = {c.codigo: c for c in Coupon.objects.active().for_codes(self.event.pk, self.coupon_codes)}
        usage = Counter(
            CouponUsage.objects.filter(coupon_id__in=[c.id for c in coupons.values()], cpf=self.cpf).values_list(
                "coupon_id", flat=True
            )
        )
        return coupons, dict(usage)

    def sector_warnings(self) -> list[str]:
        """Sectors whose lots allocate more tickets than the sector holds. Advisory only."""
        warnings: list[str] = []
        sectors = {tt.sector_id: tt.sector for tt in self.ticket_types.values()}
        for sector_id in self.quantity_by_sector:
            sector = sectors[sector_id]
            allocated = sector.allocated_quantity()
            if allocated > sector.capacidade:
                warnings.append(
                    Messages.SECTOR_OVER_CAPACITY.format(
                        sector=sector.nome, capacity=sector.capacidade, allocated=allocated
                    )
                )
        return warnings

    def validate(self) -> CartValidationResult:
        """Run all checks, coupon rules included, then price the cart if none failed."""
        errors = list(self.quantity_errors)
        for check in self._checks:
            errors.extend(check.check())
        warnings = self.sector_warnings()

        coupons_by_code, usage_by_coupon = self._fetch_coupons()
        errors.extend(pricing.check_coupons(self.coupon_codes, coupons_by_code, usage_by_coupon))

        if errors:
            logger.info(
                "cart_rejected",
                event_id=str(self.event.pk),
                error_codes=[str(e.code) for e in errors],
            )
            return CartValidationResult(ok=False, errors=errors)

        cart_pricing, coupon_warnings = pricing.price(self.subtotal_by_type, coupons_by_code.values())
        summary = CartSummary(
            total_items=self.total_quantity,
            by_type=[TypeQuantity(ticket_type_id=k, qty=v) for k, v in self.quantity_by_type.items()],
            by_lot=[LotQuantity(lot_id=k, qty=v) for k, v in self.quantity_by_lot.items()],
            pricing=cart_pricing,
            warnings=warnings + coupon_warnings,
        )
        logger.info(
            "cart_validated",
            event_id=str(self.event.pk),
            total_items=self.total_quantity,
            subtotal=str(cart_pricing.subtotal),
            total=str(cart_pricing.total),
            discounts=len(cart_pricing.discounts),
        )
        return CartValidationResult(ok=True, summary=summary)


def validate_cart(request: CartRequest, now: datetime | None = None) -> CartValidationResult:
    """Validate and price a cart. Raises CartValidationError for fatal problems."""
    return CartValidationService(request, now=now).validate()
