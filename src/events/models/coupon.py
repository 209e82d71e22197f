import typing as t
import uuid

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils.functional import cached_property
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from common.models import AppendOnlyModel, TimeStampedModel

from .event import Event
from .tenant import Tenant


class CouponLimits(BaseModel):
    """Usage limits configured on a coupon (``Coupon.limites``)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    limite_total: int | None = Field(default=None, alias="limiteTotal")
    limite_por_cpf: int | None = Field(default=None, alias="limitePorCPF")
    whitelist_tipos: list[uuid.UUID] = Field(default_factory=list, alias="whitelistTipos")

    @field_validator("limite_total", "limite_por_cpf")
    @classmethod
    def _zero_means_unset(cls, value: int | None) -> int | None:
        if value is None or value == 0:
            return None
        if value < 0:
            raise ValueError("limits must be positive")
        return value

    @field_validator("whitelist_tipos", mode="before")
    @classmethod
    def _null_whitelist(cls, value: t.Any) -> t.Any:
        return value or []


def _validate_coupon_limits(value: dict[str, t.Any]) -> None:
    try:
        CouponLimits.model_validate(value or {})
    except PydanticValidationError as e:
        raise DjangoValidationError([f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors()])


def normalize_coupon_code(code: str) -> str:
    """Coupon codes are case-insensitive and stored upper-cased."""
    return (code or "").strip().upper()


class CouponQuerySet(models.QuerySet["Coupon"]):
    def active(self) -> t.Self:
        """Coupons that can still be looked up by buyers."""
        return self.filter(ativo=True)

    def for_codes(self, event_id: t.Any, codes: t.Iterable[str]) -> t.Self:
        """Coupons of an event matching any of ``codes``, case-insensitively."""
        return self.filter(event_id=event_id, codigo__in={normalize_coupon_code(c) for c in codes})


class Coupon(TimeStampedModel):
    class CouponType(models.TextChoices):
        PERCENTAGE = "percentual", "Percentual"
        FIXED = "valor", "Valor fixo"
        COMPLIMENTARY = "cortesia", "Cortesia"

    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="coupons")
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="coupons")
    codigo = models.CharField(max_length=64, db_index=True)
    tipo = models.CharField(max_length=20, choices=CouponType.choices)
    valor = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=0,
        validators=[MinValueValidator(0)],
        help_text="Percentage (0-100) or fixed amount. Ignored for complimentary coupons.",
    )
    combinavel = models.BooleanField(default=True, help_text="Whether it can be stacked with other coupons")
    limites = models.JSONField(default=dict, blank=True, validators=[_validate_coupon_limits])
    uso_total = models.PositiveIntegerField(default=0)
    ativo = models.BooleanField(default=True, db_index=True)

    objects = CouponQuerySet.as_manager()

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["event", "codigo"], name="unique_coupon_code_per_event"),
        ]
        ordering = ["codigo"]

    def __str__(self) -> str:
        return self.codigo

    def clean(self) -> None:
        """Percentages must stay within 0-100."""
        super().clean()
        if self.tipo == self.CouponType.PERCENTAGE and self.valor is not None and self.valor > 100:
            raise DjangoValidationError({"valor": ["Percentage coupons cannot exceed 100."]})

    def save(self, *args: t.Any, **kwargs: t.Any) -> None:
        """Store the code upper-cased."""
        self.codigo = normalize_coupon_code(self.codigo)
        super().save(*args, **kwargs)

    @cached_property
    def coupon_limits(self) -> CouponLimits:
        """Typed view of ``limites``."""
        return CouponLimits.model_validate(self.limites or {})


class CouponUsage(AppendOnlyModel):
    """One redemption of a coupon by a buyer CPF on a paid order."""

    coupon = models.ForeignKey(Coupon, on_delete=models.PROTECT, related_name="usages")
    order = models.ForeignKey("events.Order", on_delete=models.PROTECT, related_name="coupon_usages")
    cpf = models.CharField(max_length=11, db_index=True)
    used_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="coupon_usages",
    )

    class Meta:
        ordering = ["-created_at"]
