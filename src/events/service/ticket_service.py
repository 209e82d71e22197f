import typing as t
from datetime import datetime

import structlog
from django.conf import settings
from django.shortcuts import get_object_or_404
from django.utils import timezone
from ninja.errors import HttpError

from accounts.models import BilheteriaUser
from accounts.validators import CPF_LENGTH, normalize_cpf
from events.exceptions import TicketAssignmentError
from events.models import Order, Ticket
from events.service import qr
from events.service.authorization import AuthorizationPort

logger = structlog.get_logger(__name__)


def issue_tickets(order: Order, issued_at: datetime | None = None) -> list[Ticket]:
    """Emit one ticket per unit of every item of a paid order, each with its own nonce."""
    issued_at = issued_at or timezone.now()
    tickets = [
        Ticket(
            tenant_id=order.tenant_id,
            order=order,
            ticket_type=item.ticket_type,
            sector_id=item.ticket_type.sector_id,
            status=Ticket.TicketStatus.ISSUED,
            qr_nonce=qr.generate_nonce(),
            qr_kid=settings.QR_KEY_ID,
            qr_version=settings.QR_PAYLOAD_VERSION,
            qr_last_issued_at=issued_at,
        )
        for item in order.items.select_related("ticket_type")
        for _ in range(item.quantity)
    ]
    return Ticket.objects.bulk_create(tickets)


def assign_holder(
    ticket_id: t.Any,
    tenant_id: t.Any,
    *,
    nome: str,
    cpf: str,
    actor: BilheteriaUser,
    authorization: AuthorizationPort,
) -> str:
    """Name a ticket and rotate its QR nonce.

    Only the order's buyer or tenant admin/staff may do this. The previous QR
    stops matching as soon as the new nonce is stored.

    Returns:
        The encoded QR payload carrying the new nonce.
    """
    ticket = get_object_or_404(Ticket.objects.select_related("order"), pk=ticket_id, tenant_id=tenant_id)
    if ticket.order.buyer_id != actor.id and not authorization.is_tenant_staff(tenant_id):
        raise HttpError(403, "Forbidden")
    if not ticket.is_checkin_eligible:
        raise TicketAssignmentError(f"Ticket cannot be assigned while {ticket.status}.")
    normalized_cpf = normalize_cpf(cpf)
    if len(normalized_cpf) != CPF_LENGTH:
        raise TicketAssignmentError("CPF must contain exactly 11 digits.")

    issued_at = timezone.now()
    ticket.nome_titular = nome.strip()
    ticket.cpf_titular = normalized_cpf
    ticket.qr_nonce = qr.generate_nonce()
    ticket.qr_kid = settings.QR_KEY_ID
    ticket.qr_version = settings.QR_PAYLOAD_VERSION
    ticket.qr_last_issued_at = issued_at
    ticket.save(
        update_fields=[
            "nome_titular",
            "cpf_titular",
            "qr_nonce",
            "qr_kid",
            "qr_version",
            "qr_last_issued_at",
            "updated_at",
        ]
    )
    logger.info("ticket_holder_assigned", ticket_id=str(ticket.id), actor_id=str(actor.id))
    return qr.encode(ticket.id, ticket.qr_nonce, issued_at)
