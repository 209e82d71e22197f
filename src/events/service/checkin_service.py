"""Ticket check-in by QR scan.

A ticket moves from ``emitido``/``transferido`` to ``checkin`` at most once.
The only guard is a single conditional update keyed on the ticket id, its
eligible statuses and the scanned nonce; every outcome against an existing
ticket of the caller's tenant is written to the ``Checkin`` audit trail.
"""

import typing as t
import uuid
from enum import StrEnum

import structlog
from django.utils import timezone
from ninja.errors import HttpError
from pydantic import Field

from accounts.models import BilheteriaUser
from common.schema import CamelSchema
from events.models import Checkin, TenantMember, Ticket
from events.service import qr
from events.service.authorization import AuthorizationPort

logger = structlog.get_logger(__name__)


class ScanError(StrEnum):
    INVALID_QR = "QR inválido"
    TICKET_NOT_FOUND = "Ticket não encontrado"
    CROSS_TENANT = "Cross-tenant"


class ScanOutcome(CamelSchema):
    ok: bool
    result: Checkin.Result
    ticket_id: str | None = None
    error: str | None = None
    status_code: int = Field(default=200, exclude=True)


def _fetch_ticket(ticket_id: str) -> Ticket | None:
    try:
        pk = uuid.UUID(ticket_id)
    except ValueError:
        return None
    return Ticket.objects.filter(pk=pk).first()


def _audit(ticket: Ticket, operator: BilheteriaUser, result: str, gate: str | None, device_id: str | None) -> None:
    Checkin(
        ticket=ticket,
        operator=operator,
        tenant_id=ticket.tenant_id,
        gate=gate,
        device_id=device_id,
        resultado=result,
    ).save()


def scan(
    tenant_id: t.Any,
    qr_payload: str,
    *,
    operator: BilheteriaUser,
    authorization: AuthorizationPort,
    gate: str | None = None,
    device_id: str | None = None,
) -> ScanOutcome:
    """Check a ticket in from its scanned QR payload.

    Raises:
        HttpError: 403 if the operator may not scan for the tenant.
    """
    if not (
        authorization.has_role(tenant_id, TenantMember.Role.CHECKIN_OPERATOR)
        or authorization.is_tenant_admin(tenant_id)
    ):
        raise HttpError(403, "Forbidden (role required)")

    try:
        payload = qr.decode(qr_payload)
    except qr.InvalidQRPayloadError:
        logger.info("checkin_scan", result=Checkin.Result.INVALID, reason="malformed_qr")
        return ScanOutcome(ok=False, result=Checkin.Result.INVALID, error=ScanError.INVALID_QR, status_code=422)

    ticket = _fetch_ticket(payload.ticket_id)
    if ticket is None:
        logger.info("checkin_scan", result=Checkin.Result.INVALID, reason="ticket_not_found")
        return ScanOutcome(
            ok=False, result=Checkin.Result.INVALID, error=ScanError.TICKET_NOT_FOUND, status_code=404
        )
    if str(ticket.tenant_id) != str(tenant_id):
        logger.warning("checkin_scan", result=Checkin.Result.INVALID, reason="cross_tenant")
        return ScanOutcome(ok=False, result=Checkin.Result.INVALID, error=ScanError.CROSS_TENANT, status_code=403)

    ticket_id = str(ticket.id)
    if ticket.status == Ticket.TicketStatus.CHECKED_IN:
        outcome = ScanOutcome(ok=True, result=Checkin.Result.DUPLICATE, ticket_id=ticket_id)
    elif ticket.status == Ticket.TicketStatus.CANCELLED:
        outcome = ScanOutcome(ok=False, result=Checkin.Result.CANCELLED, ticket_id=ticket_id, status_code=422)
    elif ticket.qr_nonce != payload.nonce:
        outcome = ScanOutcome(ok=False, result=Checkin.Result.INVALID, ticket_id=ticket_id, status_code=422)
    else:
        updated = Ticket.objects.filter(
            pk=ticket.pk, qr_nonce=payload.nonce, status__in=Ticket.CHECKIN_ELIGIBLE
        ).update(status=Ticket.TicketStatus.CHECKED_IN, updated_at=timezone.now())
        if updated == 1:
            outcome = ScanOutcome(ok=True, result=Checkin.Result.OK, ticket_id=ticket_id)
        else:
            outcome = ScanOutcome(ok=False, result=Checkin.Result.INVALID, ticket_id=ticket_id, status_code=422)

    _audit(ticket, operator, outcome.result, gate, device_id)
    logger.info("checkin_scan", ticket_id=ticket_id, result=outcome.result, gate=gate, device_id=device_id)
    return outcome
