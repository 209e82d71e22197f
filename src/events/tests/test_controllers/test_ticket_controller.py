import typing as t

import orjson
import pytest
from django.test.client import Client
from django.urls import reverse

from events.models import Ticket
from events.service import qr

pytestmark = pytest.mark.django_db


def _assign(client: Client, ticket: Ticket, payload: dict[str, t.Any]) -> t.Any:
    url = reverse("api:assign_ticket", kwargs={"ticket_id": ticket.id})
    return client.post(
        url, data=orjson.dumps(payload), content_type="application/json", HTTP_X_TENANT_ID=str(ticket.tenant_id)
    )


class TestAssignTicket:
    def test_buyer_names_the_holder(self, buyer_client: Client, ticket: Ticket) -> None:
        old_nonce = ticket.qr_nonce

        response = _assign(buyer_client, ticket, {"nome": "  Maria Silva ", "cpf": "111.444.777-35"})

        assert response.status_code == 200, response.content
        data = response.json()
        assert data["ok"] is True
        assert data["ticketId"] == str(ticket.id)
        ticket.refresh_from_db()
        assert ticket.nome_titular == "Maria Silva"
        assert ticket.cpf_titular == "11144477735"
        assert ticket.qr_nonce != old_nonce
        assert qr.decode(data["qr"]).nonce == ticket.qr_nonce

    def test_staff_names_the_holder(self, staff_client: Client, ticket: Ticket) -> None:
        assert _assign(staff_client, ticket, {"nome": "Maria", "cpf": "11144477735"}).status_code == 200

    def test_stranger_is_forbidden(self, stranger_client: Client, ticket: Ticket) -> None:
        response = _assign(stranger_client, ticket, {"nome": "Maria", "cpf": "11144477735"})

        assert response.status_code == 403
        ticket.refresh_from_db()
        assert ticket.nome_titular == ""

    def test_checked_in_ticket(self, buyer_client: Client, ticket: Ticket) -> None:
        Ticket.objects.filter(pk=ticket.pk).update(status=Ticket.TicketStatus.CHECKED_IN)

        response = _assign(buyer_client, ticket, {"nome": "Maria", "cpf": "11144477735"})

        assert response.status_code == 422
        assert "detail" in response.json()

    def test_invalid_cpf(self, buyer_client: Client, ticket: Ticket) -> None:
        assert _assign(buyer_client, ticket, {"nome": "Maria", "cpf": "1234"}).status_code == 422

    def test_requires_authentication(self, ticket: Ticket) -> None:
        assert _assign(Client(), ticket, {"nome": "Maria", "cpf": "11144477735"}).status_code == 401
