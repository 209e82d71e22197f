import typing as t
import uuid

from django.contrib.auth.models import AbstractUser, UserManager
from django.db import models

from accounts.validators import normalize_cpf, validate_cpf


class BilheteriaUserQueryset(models.QuerySet["BilheteriaUser"]):
    """Queryset for BilheteriaUser."""


class BilheteriaUserManager(UserManager["BilheteriaUser"]):
    def get_queryset(self) -> BilheteriaUserQueryset:
        """Get queryset for BilheteriaUser."""
        return BilheteriaUserQueryset(self.model)


class BilheteriaUser(AbstractUser):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    cpf = models.CharField(
        max_length=11, null=True, blank=True, db_index=True, validators=[validate_cpf], help_text="Buyer CPF"
    )

    objects = BilheteriaUserManager()  # type: ignore[misc]

    class Meta:
        ordering = ["username"]

    def save(self, *args: t.Any, **kwargs: t.Any) -> None:
        """Store the CPF in its normalized form."""
        if self.cpf:
            self.cpf = normalize_cpf(self.cpf)
        super().save(*args, **kwargs)
