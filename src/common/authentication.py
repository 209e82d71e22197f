import typing as t

import structlog
from django.http import HttpRequest
from ninja_jwt.authentication import JWTAuth


class ContextJWTAuth(JWTAuth):
    """JWT authentication that binds the authenticated user to the log context.

    Every log line emitted while handling the request carries ``user_id``.
    The binding is cleared together with the rest of the request context by
    ``StructlogContextMiddleware``.

    Usage:
        @api_controller("/checkin", auth=ContextJWTAuth())
        class CheckinController(UserAwareController): ...
    """

    def authenticate(self, request: HttpRequest, token: str) -> t.Any:
        """Authenticate the request and bind the user id.

        Raises:
            AuthenticationFailed: If authentication fails
            InvalidToken: If the token is invalid
        """
        user = super().authenticate(request, token)
        if user is not None:
            structlog.contextvars.bind_contextvars(user_id=str(user.pk))
        return user
