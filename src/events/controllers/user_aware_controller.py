import typing as t
from uuid import UUID

from ninja.errors import HttpError
from ninja_extra import ControllerBase

from accounts.models import BilheteriaUser
from events.service.authorization import TenantAuthorization

TENANT_HEADER = "x-tenant-id"


class UserAwareController(ControllerBase):
    def user(self) -> BilheteriaUser:
        """Get the user for this request."""
        return t.cast(BilheteriaUser, self.context.request.user)  # type: ignore[union-attr]

    def authorization(self) -> TenantAuthorization:
        """Role checks for the current user."""
        return TenantAuthorization(self.user())


class TenantScopedController(UserAwareController):
    """Controller whose endpoints act inside the tenant named by the ``x-tenant-id`` header."""

    def tenant_id(self) -> UUID:
        """The tenant of this request.

        Raises:
            HttpError: 400 if the header is missing or not a UUID.
        """
        raw = self.context.request.headers.get(TENANT_HEADER)  # type: ignore[union-attr]
        if not raw:
            raise HttpError(400, "Missing x-tenant-id")
        try:
            return UUID(raw)
        except ValueError:
            raise HttpError(400, "Invalid x-tenant-id")
