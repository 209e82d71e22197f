"""Role checks consumed by the ticketing engines.

Engines only talk to :class:`AuthorizationPort`; the Django-backed
implementation lives here so tests can hand in a fake instead.
"""

import typing as t
from typing import Protocol

from accounts.models import BilheteriaUser
from events.models import Tenant, TenantMember


class AuthorizationPort(Protocol):
    """Capabilities of the caller within a tenant."""

    def has_role(self, tenant_id: t.Any, role: str) -> bool:
        """Whether the caller holds ``role`` in the tenant."""
        ...

    def is_tenant_admin(self, tenant_id: t.Any) -> bool:
        """Whether the caller administers the tenant."""
        ...

    def is_tenant_staff(self, tenant_id: t.Any) -> bool:
        """Whether the caller is admin or staff of the tenant."""
        ...


class TenantAuthorization:
    """Answers role questions from ``TenantMember`` rows and tenant ownership."""

    def __init__(self, user: BilheteriaUser) -> None:
        """Roles are loaded lazily, once per tenant."""
        self.user = user
        self._roles: dict[str, set[str]] = {}

    def _roles_for(self, tenant_id: t.Any) -> set[str]:
        key = str(tenant_id)
        if key not in self._roles:
            if not self.user.is_authenticated:
                self._roles[key] = set()
            else:
                roles = set(
                    TenantMember.objects.filter(tenant_id=tenant_id, user=self.user).values_list("role", flat=True)
                )
                if Tenant.objects.filter(pk=tenant_id, owner=self.user).exists():
                    roles.add(TenantMember.Role.ADMIN)
                self._roles[key] = roles
        return self._roles[key]

    def has_role(self, tenant_id: t.Any, role: str) -> bool:
        """Whether the user holds ``role`` in the tenant."""
        return role in self._roles_for(tenant_id)

    def is_tenant_admin(self, tenant_id: t.Any) -> bool:
        """Owners and admin members."""
        return self.has_role(tenant_id, TenantMember.Role.ADMIN)

    def is_tenant_staff(self, tenant_id: t.Any) -> bool:
        """Admins and staff members."""
        return self.is_tenant_admin(tenant_id) or self.has_role(tenant_id, TenantMember.Role.STAFF)
