import typing as t
from datetime import datetime, timedelta
from decimal import Decimal

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import F, Q, Sum
from django.utils.functional import cached_property
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from common.models import TimeStampedModel

from .tenant import Tenant


class LimitRules(BaseModel):
    """Purchase caps configured on an event.

    Stored as JSON on ``Event.regras_limite`` using the camelCase keys the
    organizer dashboard writes. A missing key, null or zero means no cap.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    max_total_por_pedido: int | None = Field(default=None, alias="maxTotalPorPedido")
    max_por_cpf_por_tipo: int | None = Field(default=None, alias="maxPorCPFPorTipo")
    max_por_cpf_no_evento: int | None = Field(default=None, alias="maxPorCPFNoEvento")

    @field_validator("max_total_por_pedido", "max_por_cpf_por_tipo", "max_por_cpf_no_evento")
    @classmethod
    def _zero_means_unset(cls, value: int | None) -> int | None:
        if value is None or value == 0:
            return None
        if value < 0:
            raise ValueError("limits must be positive")
        return value


def _validate_limit_rules(value: dict[str, t.Any]) -> None:
    try:
        LimitRules.model_validate(value or {})
    except PydanticValidationError as e:
        raise DjangoValidationError([f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors()])


class EventQuerySet(models.QuerySet["Event"]):
    def for_tenant(self, tenant_id: t.Any) -> t.Self:
        """Events owned by a tenant."""
        return self.filter(tenant_id=tenant_id)


class Event(TimeStampedModel):
    class EventStatus(models.TextChoices):
        DRAFT = "rascunho", "Rascunho"
        PUBLISHED = "publicado", "Publicado"
        CANCELLED = "cancelado", "Cancelado"

    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="events")
    titulo = models.CharField(max_length=255)
    status = models.CharField(max_length=20, choices=EventStatus.choices, default=EventStatus.DRAFT, db_index=True)
    inicio = models.DateTimeField(null=True, blank=True)
    fim = models.DateTimeField(null=True, blank=True)
    regras_limite = models.JSONField(default=dict, blank=True, validators=[_validate_limit_rules])

    objects = EventQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.titulo

    @cached_property
    def limit_rules(self) -> LimitRules:
        """Typed view of ``regras_limite``."""
        return LimitRules.model_validate(self.regras_limite or {})


class Sector(TimeStampedModel):
    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="sectors")
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="sectors")
    nome = models.CharField(max_length=255)
    capacidade = models.PositiveIntegerField(help_text="Soft capacity. Exceeding it only raises a warning.")

    class Meta:
        ordering = ["nome"]

    def __str__(self) -> str:
        return self.nome

    def allocated_quantity(self) -> int:
        """Sum of ``qtd_total`` across every lot sold in this sector."""
        total = Lot.objects.filter(ticket_type__sector=self).aggregate(total=Sum("qtd_total"))["total"]
        return int(total or 0)


class TicketType(TimeStampedModel):
    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="ticket_types")
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="ticket_types")
    sector = models.ForeignKey(Sector, on_delete=models.PROTECT, related_name="ticket_types")
    nome = models.CharField(max_length=255)
    preco = models.DecimalField(max_digits=10, decimal_places=2, default=0, validators=[MinValueValidator(0)])
    max_por_pedido = models.PositiveIntegerField(
        null=True, blank=True, help_text="Per-order cap for this ticket type. Null means no cap."
    )
    ativo = models.BooleanField(default=True)

    class Meta:
        ordering = ["nome"]

    def __str__(self) -> str:
        return self.nome


class Lot(TimeStampedModel):
    """A time and quantity bounded sale tranche of a ticket type.

    ``qtd_vendida`` only moves through conditional updates
    (see ``events.service.inventory``), never through read-modify-write.
    """

    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="lots")
    ticket_type = models.ForeignKey(TicketType, on_delete=models.CASCADE, related_name="lots")
    nome = models.CharField(max_length=255)
    preco = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    qtd_total = models.PositiveIntegerField()
    qtd_vendida = models.PositiveIntegerField(default=0)
    inicio_vendas = models.DateTimeField(null=True, blank=True, help_text="Null means sales are open from the start")
    fim_vendas = models.DateTimeField(null=True, blank=True, help_text="Null means sales never close")

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=Q(qtd_vendida__lte=F("qtd_total")),
                name="lot_qtd_vendida_lte_qtd_total",
            ),
        ]
        ordering = ["inicio_vendas", "nome"]

    def __str__(self) -> str:
        return self.nome

    @property
    def available(self) -> int:
        """Units left to sell, as of the last read."""
        return max(0, self.qtd_total - self.qtd_vendida)

    def is_on_sale(self, now: datetime, skew: timedelta = timedelta(0)) -> bool:
        """Whether ``now`` falls inside the sale window widened by ``skew`` on both ends."""
        if self.inicio_vendas and now < self.inicio_vendas - skew:
            return False
        if self.fim_vendas and now > self.fim_vendas + skew:
            return False
        return True

    def price_for(self, quantity: int) -> Decimal:
        """Line price for ``quantity`` units of this lot."""
        return Decimal(self.preco) * quantity
