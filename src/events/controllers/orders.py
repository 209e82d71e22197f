from uuid import UUID

from django.shortcuts import get_object_or_404
from ninja.errors import HttpError
from ninja_extra import api_controller, route

from common.authentication import ContextJWTAuth
from common.throttling import WriteThrottle
from events import models, schema
from events.service import order_service
from events.service.cart import CartRequest

from .user_aware_controller import TenantScopedController


@api_controller("", auth=ContextJWTAuth(), tags=["Orders"], throttle=WriteThrottle())
class OrderController(TenantScopedController):
    @route.post(
        "/checkout",
        url_name="checkout",
        response={200: schema.OrderSchema, 404: schema.CartErrorResponse, 422: schema.CartErrorResponse},
        by_alias=True,
    )
    def checkout(self, payload: CartRequest) -> models.Order:
        """Turn a valid cart into an order awaiting payment.

        The cart is validated and priced exactly as in /cart/validate; errors come back in the same shape.
        """
        return order_service.create_order(self.user(), payload)

    @route.post(
        "/orders/{order_id}/confirm",
        url_name="confirm_order",
        response={200: schema.OrderSchema, 409: schema.CartErrorResponse},
        by_alias=True,
    )
    def confirm(self, order_id: UUID) -> models.Order:
        """Record the payment of an order and emit its tickets.

        Called by the payment integration with tenant admin credentials. Returns 409 and cancels the
        order if a lot or coupon ran out since checkout.
        """
        tenant_id = self.tenant_id()
        if not self.authorization().is_tenant_admin(tenant_id):
            raise HttpError(403, "Forbidden (role required)")
        return order_service.confirm_order(order_id, tenant_id)

    @route.post(
        "/orders/{order_id}/cancel",
        url_name="cancel_order",
        response={200: schema.OrderSchema},
        by_alias=True,
    )
    def cancel(self, order_id: UUID) -> models.Order:
        """Cancel an unpaid order. Allowed for its buyer and tenant admins."""
        tenant_id = self.tenant_id()
        order = get_object_or_404(models.Order, pk=order_id, tenant_id=tenant_id)
        if order.buyer_id != self.user().id and not self.authorization().is_tenant_admin(tenant_id):
            raise HttpError(403, "Forbidden")
        return order_service.cancel_order(order.pk, tenant_id)
