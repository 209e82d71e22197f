import secrets
import string
import typing as t

import faker
import pytest
from django.core.cache import cache

from accounts.models import BilheteriaUser


@pytest.fixture(autouse=True)
def clear_cache() -> None:
    """Throttle counters live in the cache; start every test from a clean one."""
    cache.clear()


class BilheteriaUserFactory:
    """Factory for creating BilheteriaUser instances for testing."""

    fake = faker.Faker("pt_BR")

    def create_user(self, **kwargs: t.Any) -> BilheteriaUser:
        username = kwargs.pop("username", "".join(secrets.choice(string.ascii_lowercase) for _ in range(8)))
        email = kwargs.pop("email", f"{username}@user.test")
        password = kwargs.pop("password", "password")
        first_name = kwargs.pop("first_name", self.fake.first_name())
        last_name = kwargs.pop("last_name", self.fake.last_name())
        return BilheteriaUser.objects.create_user(
            username=username,
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            **kwargs,
        )

    def __call__(self, **kwargs: t.Any) -> BilheteriaUser:
        return self.create_user(**kwargs)


@pytest.fixture
def user_factory() -> BilheteriaUserFactory:
    return BilheteriaUserFactory()


@pytest.fixture
def user(user_factory: BilheteriaUserFactory) -> BilheteriaUser:
    return user_factory(username="buyer", cpf="52998224725")
