from ninja_extra import api_controller, route

from common.throttling import CartThrottle
from events.service.cart import CartRequest, CartValidationResult, validate_cart

from .user_aware_controller import UserAwareController


@api_controller("/cart", auth=None, tags=["Cart"], throttle=CartThrottle())
class CartController(UserAwareController):
    @route.post(
        "/validate",
        url_name="validate_cart",
        response={200: CartValidationResult, 404: CartValidationResult, 422: CartValidationResult},
        by_alias=True,
        exclude_none=True,
    )
    def validate(self, payload: CartRequest) -> tuple[int, CartValidationResult]:
        """Validate and price a cart.

        Checks stock, sale windows and purchase limits for every line item, then applies the
        coupons. All business rule violations are returned together with 422. Nothing is reserved:
        this is a quote.
        """
        result = validate_cart(payload)
        return (200 if result.ok else 422), result
