import typing as t

import pytest
from django.contrib.auth.models import AnonymousUser

from accounts.models import BilheteriaUser
from events.models import Tenant, TenantMember
from events.service.authorization import TenantAuthorization

pytestmark = pytest.mark.django_db


class TestTenantAuthorization:
    def test_owner_is_admin(self, tenant: Tenant, tenant_owner: BilheteriaUser) -> None:
        authorization = TenantAuthorization(tenant_owner)

        assert authorization.is_tenant_admin(tenant.id)
        assert authorization.is_tenant_staff(tenant.id)
        assert not authorization.has_role(tenant.id, TenantMember.Role.CHECKIN_OPERATOR)

    def test_admin_member(self, tenant: Tenant, user: BilheteriaUser) -> None:
        TenantMember.objects.create(tenant=tenant, user=user, role=TenantMember.Role.ADMIN)

        assert TenantAuthorization(user).is_tenant_admin(tenant.id)

    def test_staff_member(self, tenant: Tenant, staff_user: BilheteriaUser) -> None:
        authorization = TenantAuthorization(staff_user)

        assert authorization.is_tenant_staff(tenant.id)
        assert not authorization.is_tenant_admin(tenant.id)

    def test_operator_member(self, tenant: Tenant, operator_user: BilheteriaUser) -> None:
        authorization = TenantAuthorization(operator_user)

        assert authorization.has_role(tenant.id, TenantMember.Role.CHECKIN_OPERATOR)
        assert not authorization.is_tenant_staff(tenant.id)

    def test_roles_do_not_leak_across_tenants(
        self, tenant: Tenant, other_tenant: Tenant, tenant_owner: BilheteriaUser
    ) -> None:
        authorization = TenantAuthorization(tenant_owner)

        assert authorization.is_tenant_admin(tenant.id)
        assert not authorization.is_tenant_admin(other_tenant.id)

    def test_anonymous_user_has_no_roles(self, tenant: Tenant) -> None:
        authorization = TenantAuthorization(t.cast(BilheteriaUser, AnonymousUser()))

        assert not authorization.is_tenant_staff(tenant.id)

    def test_roles_are_loaded_once_per_tenant(
        self, tenant: Tenant, operator_user: BilheteriaUser, django_assert_num_queries: t.Any
    ) -> None:
        authorization = TenantAuthorization(operator_user)

        with django_assert_num_queries(2):
            authorization.has_role(tenant.id, TenantMember.Role.CHECKIN_OPERATOR)
            authorization.is_tenant_admin(tenant.id)
            authorization.is_tenant_staff(tenant.id)
