import typing as t

from django.conf import settings
from django.db import models

from accounts.validators import validate_cpf
from common.models import AppendOnlyModel, TimeStampedModel

from .event import Sector, TicketType
from .order import Order
from .tenant import Tenant


class TicketQuerySet(models.QuerySet["Ticket"]):
    def paid_for_event(self, event_id: t.Any) -> t.Self:
        """Tickets of paid orders for an event."""
        return self.filter(order__event_id=event_id, order__status=Order.OrderStatus.PAID)


class Ticket(TimeStampedModel):
    """An admission issued from a paid order."""

    class TicketStatus(models.TextChoices):
        ISSUED = "emitido", "Emitido"
        TRANSFERRED = "transferido", "Transferido"
        CANCELLED = "cancelado", "Cancelado"
        CHECKED_IN = "checkin", "Check-in"

    # Statuses a scanner may still admit.
    CHECKIN_ELIGIBLE: t.ClassVar[tuple[str, ...]] = (TicketStatus.ISSUED, TicketStatus.TRANSFERRED)

    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="tickets")
    order = models.ForeignKey(Order, on_delete=models.PROTECT, related_name="tickets")
    ticket_type = models.ForeignKey(TicketType, on_delete=models.PROTECT, related_name="tickets")
    sector = models.ForeignKey(Sector, on_delete=models.PROTECT, related_name="tickets")
    status = models.CharField(
        max_length=20, choices=TicketStatus.choices, default=TicketStatus.ISSUED, db_index=True
    )
    nome_titular = models.CharField(max_length=255, blank=True, default="")
    cpf_titular = models.CharField(max_length=11, null=True, blank=True, db_index=True, validators=[validate_cpf])
    qr_nonce = models.CharField(max_length=64, null=True, blank=True, editable=False)
    qr_kid = models.CharField(max_length=32, default=settings.QR_KEY_ID, editable=False)
    qr_version = models.PositiveSmallIntegerField(default=settings.QR_PAYLOAD_VERSION, editable=False)
    qr_last_issued_at = models.DateTimeField(null=True, blank=True, editable=False)

    objects = TicketQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:  # pragma: no cover
        return f"Ticket {self.id} ({self.status})"

    @property
    def is_checkin_eligible(self) -> bool:
        """Whether the ticket may still be admitted."""
        return self.status in self.CHECKIN_ELIGIBLE


class Checkin(AppendOnlyModel):
    """Audit row for one scan attempt against an existing ticket."""

    class Result(models.TextChoices):
        OK = "ok", "OK"
        DUPLICATE = "duplicado", "Duplicado"
        INVALID = "invalido", "Inválido"
        CANCELLED = "cancelado", "Cancelado"

    ticket = models.ForeignKey(Ticket, on_delete=models.PROTECT, related_name="checkins")
    operator = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="checkins")
    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="checkins")
    gate = models.CharField(max_length=100, null=True, blank=True)
    device_id = models.CharField(max_length=100, null=True, blank=True)
    resultado = models.CharField(max_length=20, choices=Result.choices, db_index=True)

    class Meta:
        ordering = ["-created_at"]
