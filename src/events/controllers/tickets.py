from uuid import UUID

from ninja_extra import api_controller, route

from common.authentication import ContextJWTAuth
from common.throttling import WriteThrottle
from events import schema
from events.service import ticket_service

from .user_aware_controller import TenantScopedController


@api_controller("/tickets", auth=ContextJWTAuth(), tags=["Tickets"], throttle=WriteThrottle())
class TicketController(TenantScopedController):
    @route.post(
        "/{ticket_id}/assign",
        url_name="assign_ticket",
        response={200: schema.TicketAssignResponse},
        by_alias=True,
    )
    def assign(self, ticket_id: UUID, payload: schema.TicketAssignSchema) -> schema.TicketAssignResponse:
        """Name the holder of a ticket and get its new QR payload.

        Any QR shown for this ticket before stops working.
        """
        qr = ticket_service.assign_holder(
            ticket_id,
            self.tenant_id(),
            nome=payload.nome,
            cpf=payload.cpf,
            actor=self.user(),
            authorization=self.authorization(),
        )
        return schema.TicketAssignResponse(ticket_id=ticket_id, qr=qr)
