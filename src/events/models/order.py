import typing as t
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from accounts.validators import validate_cpf
from common.models import TimeStampedModel

from .event import Event, Lot, TicketType
from .tenant import Tenant


class Order(TimeStampedModel):
    class OrderStatus(models.TextChoices):
        DRAFT = "rascunho", "Rascunho"
        AWAITING_PAYMENT = "aguardando_pagto", "Aguardando pagamento"
        PAID = "pago", "Pago"
        CANCELLED = "cancelado", "Cancelado"

    # Forward-only: payment webhooks push orders along, nothing moves them back.
    TRANSITIONS: t.ClassVar[dict[str, frozenset[str]]] = {
        OrderStatus.DRAFT: frozenset({OrderStatus.AWAITING_PAYMENT, OrderStatus.CANCELLED}),
        OrderStatus.AWAITING_PAYMENT: frozenset({OrderStatus.PAID, OrderStatus.CANCELLED}),
        OrderStatus.PAID: frozenset(),
        OrderStatus.CANCELLED: frozenset(),
    }

    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="orders")
    event = models.ForeignKey(Event, on_delete=models.PROTECT, related_name="orders")
    buyer = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="orders")
    buyer_cpf = models.CharField(max_length=11, db_index=True, validators=[validate_cpf])
    status = models.CharField(
        max_length=20, choices=OrderStatus.choices, default=OrderStatus.DRAFT, db_index=True
    )
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    desconto = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"))
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0"), validators=[MinValueValidator(0)])
    coupon_codes = models.JSONField(default=list, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:  # pragma: no cover
        return f"Order {self.id} ({self.status})"

    def can_transition_to(self, status: str) -> bool:
        """Whether the forward-only state machine allows moving to ``status``."""
        return status in self.TRANSITIONS.get(self.status, frozenset())


class OrderItem(TimeStampedModel):
    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    ticket_type = models.ForeignKey(TicketType, on_delete=models.PROTECT, related_name="order_items")
    lot = models.ForeignKey(Lot, on_delete=models.PROTECT, related_name="order_items")
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)

    class Meta:
        ordering = ["created_at"]
