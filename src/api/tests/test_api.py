import pytest
from django.conf import settings
from django.test.client import Client
from django.urls import reverse

from api.exception_handlers import obfuscate


def test_version(client: Client) -> None:
    response = client.get(reverse("api:version"))

    assert response.status_code == 200
    assert response.json() == {"version": settings.VERSION}


def test_healthcheck(client: Client) -> None:
    response = client.get(reverse("api:healthcheck"))

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.parametrize("key", ["buyerCpf", "password", "Authorization", "qr"])
def test_obfuscate_hides_sensitive_keys(key: str) -> None:
    assert obfuscate({key: "secret", "eventId": "abc"}) == {key: "********", "eventId": "abc"}
