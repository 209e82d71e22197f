from __future__ import annotations

import typing as t

if t.TYPE_CHECKING:
    from events.service.cart.types import CartError


class CartValidationError(Exception):
    """Raised when a cart cannot be validated at all, or fails validation at checkout.

    Carries the HTTP status the failure maps to and the structured errors.
    """

    def __init__(self, errors: list[CartError], status_code: int = 422) -> None:
        """Store the errors and status."""
        super().__init__(", ".join(e.code for e in errors))
        self.errors = errors
        self.status_code = status_code


class StockExhaustedError(CartValidationError):
    """Raised when stock or coupon uses ran out between quote and confirmation."""

    def __init__(self, errors: list[CartError]) -> None:
        """Concurrency losses map to 409."""
        super().__init__(errors, status_code=409)


class InvalidOrderTransitionError(Exception):
    """Raised when an order is pushed backwards or out of a terminal state."""

    def __init__(self, current: str, target: str) -> None:
        """Store the attempted transition."""
        super().__init__(f"Cannot move order from {current} to {target}.")
        self.current = current
        self.target = target


class TicketAssignmentError(Exception):
    """Raised when a ticket cannot be named in its current state."""
