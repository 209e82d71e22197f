from uuid import UUID

from pydantic import Field

from common.schema import CamelSchema, StrippedString


class TicketAssignSchema(CamelSchema):
    nome: StrippedString = Field(..., min_length=1, max_length=255)
    cpf: str


class TicketAssignResponse(CamelSchema):
    ok: bool = True
    ticket_id: UUID
    qr: str
