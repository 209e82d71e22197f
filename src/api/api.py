from django.conf import settings
from django.core.exceptions import ValidationError
from django.http import HttpRequest
from ninja_extra import NinjaExtraAPI

from common.schema import ResponseOk, VersionResponse
from common.throttling import AnonDefaultThrottle, UserDefaultThrottle
from events.controllers.cart import CartController
from events.controllers.checkin import CheckinController
from events.controllers.orders import OrderController
from events.controllers.tickets import TicketController
from events.exceptions import CartValidationError, InvalidOrderTransitionError, TicketAssignmentError

from .exception_handlers import (
    handle_cart_validation_error,
    handle_django_validation_error,
    handle_general_exception,
    handle_invalid_order_transition_error,
    handle_ticket_assignment_error,
)

api = NinjaExtraAPI(
    title="Bilheteria API",
    docs_url="/docs",
    version=settings.VERSION,
    description=f"Bilheteria API {settings.VERSION}",
    app_name=f"bilheteria-api-{settings.VERSION}",
    urls_namespace="api",
    servers=[
        {"url": settings.SERVICE_URL, "description": settings.SERVICE_DESCRIPTION},
    ],
    throttle=[AnonDefaultThrottle(), UserDefaultThrottle()],
)


@api.get("/version", tags=["Version"], response={200: VersionResponse})
def version(request: HttpRequest) -> tuple[int, VersionResponse]:
    """Get the API version.

    Args:
        request: The incoming HTTP request.

    Returns:
        The response status code and message.
    """
    return 200, VersionResponse(version=settings.VERSION)


@api.get("/healthcheck", tags=["Healthcheck"], response={200: ResponseOk})
def healthcheck(request: HttpRequest) -> tuple[int, ResponseOk]:
    """Check the health of the API.

    Args:
        request: The incoming HTTP request.

    Returns:
        The response status code and message.
    """
    return 200, ResponseOk()


api.register_controllers(
    # Buyer controllers
    CartController,
    OrderController,
    TicketController,
    # Operator controllers
    CheckinController,
)

EXCEPTION_HANDLERS = {
    Exception: handle_general_exception,
    ValidationError: handle_django_validation_error,
    CartValidationError: handle_cart_validation_error,
    InvalidOrderTransitionError: handle_invalid_order_transition_error,
    TicketAssignmentError: handle_ticket_assignment_error,
}

for exc, handler in EXCEPTION_HANDLERS.items():
    api.add_exception_handler(exc, handler)
