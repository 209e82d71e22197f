import typing as t

import pytest
from django.test.client import Client
from ninja_jwt.tokens import RefreshToken

from accounts.models import BilheteriaUser


def _client_for(user: BilheteriaUser) -> Client:
    refresh = RefreshToken.for_user(user)
    return Client(HTTP_AUTHORIZATION=f"Bearer {str(refresh.access_token)}")  # type: ignore[attr-defined]


@pytest.fixture
def buyer_client(user: BilheteriaUser) -> Client:
    """API client for the buyer of the ``ticket`` fixture."""
    return _client_for(user)


@pytest.fixture
def owner_client(tenant_owner: BilheteriaUser) -> Client:
    """API client for the tenant owner, who is a tenant admin."""
    return _client_for(tenant_owner)


@pytest.fixture
def staff_client(staff_user: BilheteriaUser) -> Client:
    """API client for a tenant staff member."""
    return _client_for(staff_user)


@pytest.fixture
def operator_client(operator_user: BilheteriaUser) -> Client:
    """API client for a check-in operator."""
    return _client_for(operator_user)


@pytest.fixture
def stranger_client(user_factory: t.Callable[..., BilheteriaUser]) -> Client:
    """API client for an authenticated user with no relationship to the tenant."""
    return _client_for(user_factory(username="stranger"))
