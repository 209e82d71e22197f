"""Events schema package.

Request and response bodies of the ticketing API. Wire keys are camelCase.
"""

from .checkin import CheckinScanSchema
from .order import CartErrorResponse, OrderItemSchema, OrderSchema
from .ticket import TicketAssignResponse, TicketAssignSchema

__all__ = [
    "CartErrorResponse",
    "CheckinScanSchema",
    "OrderItemSchema",
    "OrderSchema",
    "TicketAssignResponse",
    "TicketAssignSchema",
]
