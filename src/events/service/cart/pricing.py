"""Coupon rules and discount arithmetic.

Everything here works on already-loaded rows and plain dicts, so pricing is a
pure function of its inputs.
"""

import typing as t
import uuid
from decimal import Decimal

from common.schema import quantize_money
from events.models import Coupon

from .enums import ErrorCode, Messages
from .types import CartError, Discount, Pricing

ZERO = Decimal("0")

# Complimentary first, then fixed amounts, then percentages.
COUPON_PRECEDENCE: dict[str, int] = {
    Coupon.CouponType.COMPLIMENTARY: 0,
    Coupon.CouponType.FIXED: 1,
    Coupon.CouponType.PERCENTAGE: 2,
}


def sort_coupons(coupons: t.Iterable[Coupon]) -> list[Coupon]:
    """Evaluation order of coupons, independent of the order codes were typed in."""
    return sorted(coupons, key=lambda c: (COUPON_PRECEDENCE.get(c.tipo, len(COUPON_PRECEDENCE)), c.codigo))


def check_coupons(
    codes: list[str],
    coupons_by_code: dict[str, Coupon],
    usage_by_coupon: dict[uuid.UUID, int],
) -> list[CartError]:
    """Validate the supplied coupon codes.

    Args:
        codes: normalized, de-duplicated codes as supplied by the buyer.
        coupons_by_code: active coupons of the event, keyed by code.
        usage_by_coupon: prior uses of each coupon by the buyer CPF.

    Returns:
        The coupon errors. A combinability violation is reported alone for the
        whole set, without per-coupon limit errors.
    """
    errors = [
        CartError(
            code=ErrorCode.CUPOM_NAO_ENCONTRADO,
            coupon_code=code,
            message=Messages.COUPON_NOT_FOUND.format(code=code),
        )
        for code in sorted(codes)
        if code not in coupons_by_code
    ]
    found = sort_coupons(coupons_by_code[code] for code in codes if code in coupons_by_code)

    if len(codes) > 1:
        non_combinable = sorted(c.codigo for c in found if not c.combinavel)
        if len(non_combinable) > 1:
            errors.append(
                CartError(
                    code=ErrorCode.CUPOM_NAO_COMBINAVEL,
                    message=Messages.COUPONS_NOT_COMBINABLE.format(codes=", ".join(non_combinable)),
                )
            )
            return errors
        if non_combinable:
            errors.append(
                CartError(
                    code=ErrorCode.CUPOM_NAO_COMBINAVEL,
                    coupon_code=non_combinable[0],
                    message=Messages.COUPON_NOT_COMBINABLE.format(code=non_combinable[0]),
                )
            )
            return errors

    for coupon in found:
        limits = coupon.coupon_limits
        if limits.limite_total is not None and coupon.uso_total + 1 > limits.limite_total:
            errors.append(
                CartError(
                    code=ErrorCode.LIMITE_TOTAL_EXCEDIDO,
                    coupon_code=coupon.codigo,
                    message=Messages.COUPON_TOTAL_LIMIT.format(
                        code=coupon.codigo, used=coupon.uso_total, limit=limits.limite_total
                    ),
                )
            )
            continue
        used = usage_by_coupon.get(coupon.id, 0)
        if limits.limite_por_cpf is not None and used + 1 > limits.limite_por_cpf:
            errors.append(
                CartError(
                    code=ErrorCode.LIMITE_POR_CPF_EXCEDIDO,
                    coupon_code=coupon.codigo,
                    message=Messages.COUPON_CPF_LIMIT.format(code=coupon.codigo, used=used, limit=limits.limite_por_cpf),
                )
            )
    return errors


def eligible_types(coupon: Coupon, subtotal_by_type: dict[uuid.UUID, Decimal]) -> list[uuid.UUID]:
    """Cart ticket types a coupon applies to, in cart order."""
    whitelist = set(coupon.coupon_limits.whitelist_tipos)
    if not whitelist:
        return list(subtotal_by_type)
    return [type_id for type_id in subtotal_by_type if type_id in whitelist]


def compute_discount(coupon: Coupon, subtotal_by_type: dict[uuid.UUID, Decimal]) -> Discount | None:
    """Discount granted by one coupon against the original eligible subtotal.

    Returns:
        None when the coupon matches no ticket type in the cart.
    """
    applied_to = eligible_types(coupon, subtotal_by_type)
    if not applied_to:
        return None
    eligible = quantize_money(sum((subtotal_by_type[type_id] for type_id in applied_to), ZERO))
    value = Decimal(coupon.valor or 0)
    match coupon.tipo:
        case Coupon.CouponType.COMPLIMENTARY:
            amount = eligible
        case Coupon.CouponType.FIXED:
            amount = quantize_money(max(ZERO, min(value, eligible)))
        case Coupon.CouponType.PERCENTAGE:
            amount = quantize_money(eligible * value / Decimal("100"))
        case _:
            amount = ZERO
    return Discount(code=coupon.codigo, amount=amount, applied_to=applied_to)


def price(subtotal_by_type: dict[uuid.UUID, Decimal], coupons: t.Iterable[Coupon]) -> tuple[Pricing, list[str]]:
    """Price a validated cart.

    Discounts are additive, each computed against the original eligible
    subtotal, and the total is floored at zero.

    Returns:
        The pricing and any warnings for coupons that matched nothing.
    """
    subtotal = quantize_money(sum(subtotal_by_type.values(), ZERO))
    discounts: list[Discount] = []
    warnings: list[str] = []
    for coupon in sort_coupons(coupons):
        discount = compute_discount(coupon, subtotal_by_type)
        if discount is None:
            warnings.append(Messages.COUPON_NOT_APPLICABLE.format(code=coupon.codigo))
            continue
        discounts.append(discount)
    discount_total = quantize_money(sum((d.amount for d in discounts), ZERO))
    total = quantize_money(max(ZERO, subtotal - discount_total))
    return Pricing(subtotal=subtotal, discounts=discounts, total=total), warnings
