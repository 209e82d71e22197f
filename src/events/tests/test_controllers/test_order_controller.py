import typing as t
import uuid

import orjson
import pytest
from django.test.client import Client
from django.urls import reverse

from events.models import Event, Lot, Order, Tenant, Ticket

pytestmark = pytest.mark.django_db


def _cart(tenant: Tenant, event: Event, lot: Lot, qty: int, **extra: t.Any) -> bytes:
    return orjson.dumps(
        {
            "tenantId": str(tenant.id),
            "eventId": str(event.id),
            "buyerCpf": "52998224725",
            "items": [{"ticketTypeId": str(lot.ticket_type_id), "lotId": str(lot.id), "quantity": qty}],
            **extra,
        }
    )


def _checkout(client: Client, tenant: Tenant, event: Event, lot: Lot, qty: int) -> t.Any:
    return client.post(reverse("api:checkout"), data=_cart(tenant, event, lot, qty), content_type="application/json")


class TestCheckout:
    def test_requires_authentication(self, tenant: Tenant, event: Event, lot: Lot) -> None:
        response = _checkout(Client(), tenant, event, lot, 1)

        assert response.status_code == 401
        assert not Order.objects.exists()

    def test_creates_order_awaiting_payment(self, buyer_client: Client, tenant: Tenant, event: Event, lot: Lot) -> None:
        response = _checkout(buyer_client, tenant, event, lot, 3)

        assert response.status_code == 200, response.content
        data = response.json()
        assert data["status"] == Order.OrderStatus.AWAITING_PAYMENT
        assert data["eventId"] == str(event.id)
        assert (data["subtotal"], data["desconto"], data["total"]) == (300.0, 0.0, 300.0)
        assert data["items"] == [
            {"ticketTypeId": str(lot.ticket_type_id), "lotId": str(lot.id), "quantity": 3, "unitPrice": 100.0}
        ]
        lot.refresh_from_db()
        assert lot.qtd_vendida == 0

    def test_invalid_cart(self, buyer_client: Client, tenant: Tenant, event: Event, lot: Lot) -> None:
        response = _checkout(buyer_client, tenant, event, lot, 11)

        assert response.status_code == 422
        assert response.json()["errors"][0]["code"] == "LOTE_SEM_ESTOQUE"
        assert not Order.objects.exists()


class TestConfirmOrder:
    @pytest.fixture
    def order(self, buyer_client: Client, tenant: Tenant, event: Event, lot: Lot) -> Order:
        response = _checkout(buyer_client, tenant, event, lot, 2)
        return Order.objects.get(pk=response.json()["id"])

    def _confirm(self, client: Client, order: Order, **headers: t.Any) -> t.Any:
        url = reverse("api:confirm_order", kwargs={"order_id": order.id})
        return client.post(url, **headers)

    def test_tenant_admin_confirms(self, owner_client: Client, order: Order, lot: Lot) -> None:
        response = self._confirm(owner_client, order, HTTP_X_TENANT_ID=str(order.tenant_id))

        assert response.status_code == 200, response.content
        assert response.json()["status"] == Order.OrderStatus.PAID
        assert Ticket.objects.filter(order=order).count() == 2
        lot.refresh_from_db()
        assert lot.qtd_vendida == 2

    def test_missing_tenant_header(self, owner_client: Client, order: Order) -> None:
        assert self._confirm(owner_client, order).status_code == 400

    def test_malformed_tenant_header(self, owner_client: Client, order: Order) -> None:
        assert self._confirm(owner_client, order, HTTP_X_TENANT_ID="produtora").status_code == 400

    def test_buyer_cannot_confirm(self, buyer_client: Client, order: Order) -> None:
        response = self._confirm(buyer_client, order, HTTP_X_TENANT_ID=str(order.tenant_id))

        assert response.status_code == 403
        order.refresh_from_db()
        assert order.status == Order.OrderStatus.AWAITING_PAYMENT

    def test_stock_lost_since_checkout(self, owner_client: Client, order: Order, lot: Lot) -> None:
        Lot.objects.filter(pk=lot.pk).update(qtd_vendida=9)

        response = self._confirm(owner_client, order, HTTP_X_TENANT_ID=str(order.tenant_id))

        assert response.status_code == 409
        assert response.json()["ok"] is False
        order.refresh_from_db()
        assert order.status == Order.OrderStatus.CANCELLED
        assert not Ticket.objects.filter(order=order).exists()


class TestCancelOrder:
    @pytest.fixture
    def order(self, buyer_client: Client, tenant: Tenant, event: Event, lot: Lot) -> Order:
        response = _checkout(buyer_client, tenant, event, lot, 1)
        return Order.objects.get(pk=response.json()["id"])

    def _cancel(self, client: Client, order_id: uuid.UUID, tenant_id: uuid.UUID) -> t.Any:
        url = reverse("api:cancel_order", kwargs={"order_id": order_id})
        return client.post(url, HTTP_X_TENANT_ID=str(tenant_id))

    def test_buyer_cancels(self, buyer_client: Client, order: Order) -> None:
        response = self._cancel(buyer_client, order.id, order.tenant_id)

        assert response.status_code == 200
        assert response.json()["status"] == Order.OrderStatus.CANCELLED

    def test_tenant_admin_cancels(self, owner_client: Client, order: Order) -> None:
        assert self._cancel(owner_client, order.id, order.tenant_id).status_code == 200

    def test_stranger_cannot_cancel(self, stranger_client: Client, order: Order) -> None:
        assert self._cancel(stranger_client, order.id, order.tenant_id).status_code == 403
        order.refresh_from_db()
        assert order.status == Order.OrderStatus.AWAITING_PAYMENT

    def test_paid_order_cannot_be_cancelled(self, buyer_client: Client, order: Order) -> None:
        Order.objects.filter(pk=order.pk).update(status=Order.OrderStatus.PAID)

        response = self._cancel(buyer_client, order.id, order.tenant_id)

        assert response.status_code == 409
        assert "detail" in response.json()

    def test_order_of_another_tenant(self, buyer_client: Client, order: Order, other_tenant: Tenant) -> None:
        assert self._cancel(buyer_client, order.id, other_tenant.id).status_code == 404

    def test_unknown_order(self, buyer_client: Client, order: Order) -> None:
        assert self._cancel(buyer_client, uuid.uuid4(), order.tenant_id).status_code == 404
