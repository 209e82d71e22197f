import typing as t

from django.conf import settings
from django.db import models

from common.models import TimeStampedModel


class Tenant(TimeStampedModel):
    """An organizer account. Every other ticketing row is scoped to one tenant."""

    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True)
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="owned_tenants",
    )

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class TenantMemberQuerySet(models.QuerySet["TenantMember"]):
    def for_user(self, user_id: t.Any) -> t.Self:
        """Memberships held by a user."""
        return self.filter(user_id=user_id)

    def with_roles(self, *roles: str) -> t.Self:
        """Memberships holding any of the given roles."""
        return self.filter(role__in=roles)


class TenantMember(TimeStampedModel):
    """A user's role inside a tenant."""

    class Role(models.TextChoices):
        ADMIN = "admin", "Admin"
        STAFF = "staff", "Staff"
        CHECKIN_OPERATOR = "checkin_operator", "Check-in operator"

    tenant = models.ForeignKey(Tenant, on_delete=models.CASCADE, related_name="members")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="tenant_memberships",
    )
    role = models.CharField(max_length=32, choices=Role.choices, db_index=True)

    objects = TenantMemberQuerySet.as_manager()

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["tenant", "user", "role"], name="unique_tenant_member_role"),
        ]
        ordering = ["-created_at"]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.user_id} is {self.role} of {self.tenant_id}"
