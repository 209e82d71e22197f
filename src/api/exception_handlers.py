"""Exception handlers for the API."""

import traceback
import typing as t
from copy import deepcopy

import orjson
import structlog
from django.conf import settings
from django.core.exceptions import ValidationError
from django.http import HttpRequest
from ninja.responses import Response

from events.exceptions import (
    CartValidationError,
    InvalidOrderTransitionError,
    TicketAssignmentError,
)
from events.service.cart import ErrorCode

logger = structlog.get_logger(__name__)


def handle_general_exception(request: HttpRequest, exc: Exception | t.Type[Exception]) -> Response:
    """Handle a general exception.

    Nothing about the failure leaks to the caller unless DEBUG is on.

    Args:
        request: The incoming HTTP request.
        exc: The exception.

    Returns:
        The response.
    """
    json_payload = None
    if request.method in ("POST", "PUT", "PATCH") and request.headers.get("Content-Type") == "application/json":
        try:
            json_payload = obfuscate(orjson.loads(request.body))
        except orjson.JSONDecodeError:  # pragma: no cover
            json_payload = None
    logger.exception(
        "INTERNAL_SERVER_ERROR",
        exc_info=True,
        headers=obfuscate(dict(request.headers)),
        query=obfuscate(request.GET.dict()),
        json_payload=json_payload,
    )
    data: dict[str, t.Any] = {
        "ok": False,
        "detail": "Internal Server Error.",
        "errors": [{"code": ErrorCode.INTERNAL_ERROR, "message": "Erro interno."}],
    }
    if settings.DEBUG:  # pragma: no cover
        data["traceback"] = traceback.format_exc()
    return Response(status=500, data=data)


def handle_django_validation_error(request: HttpRequest, exc: ValidationError | t.Type[ValidationError]) -> Response:
    """Handle a validation error.

    Args:
        request: The incoming HTTP request.
        exc: The exception.
    """
    logger.error("VALIDATION_ERROR", exc_info=True)
    if hasattr(exc, "error_dict"):
        error_dict = {k: [ee for e in v for ee in e] for k, v in exc.error_dict.items()}
    else:
        error_dict = {"__all__": list(exc.messages)}
    return Response(status=400, data={"errors": error_dict})


def handle_cart_validation_error(
    request: HttpRequest, exc: CartValidationError | t.Type[CartValidationError]
) -> Response:
    """Handle a cart that failed validation, at quote or at confirmation."""
    return Response(
        status=exc.status_code,
        data={"ok": False, "errors": [e.model_dump(mode="json", by_alias=True, exclude_none=True) for e in exc.errors]},
    )


def handle_invalid_order_transition_error(
    request: HttpRequest, exc: InvalidOrderTransitionError | t.Type[InvalidOrderTransitionError]
) -> Response:
    """Handle an order pushed out of sequence."""
    return Response(status=409, data={"detail": str(exc)})


def handle_ticket_assignment_error(
    request: HttpRequest, exc: TicketAssignmentError | t.Type[TicketAssignmentError]
) -> Response:
    """Handle a ticket that cannot be named."""
    return Response(status=422, data={"detail": str(exc)})


SENSITIVE_KEYS = {"password", "token", "authorization", "authentication", "cpf", "buyercpf", "qr"}


def obfuscate(data: dict[str, t.Any]) -> dict[str, t.Any]:
    """Obfuscate sensitive data in payloads and headers."""
    if not isinstance(data, dict):
        return data
    new_data = deepcopy(data)
    for key in data.keys():
        if key.lower() in SENSITIVE_KEYS:
            new_data[key] = "********"
    return new_data
