"""Store-level counters for lot stock and coupon uses.

Every mutation here is a single conditional ``UPDATE``; the returned row count
tells the caller whether it won. Nothing reads a counter and writes it back.
"""

import typing as t

import structlog
from django.db.models import F, Q

from events.models import Coupon, Lot

logger = structlog.get_logger(__name__)


def try_increment_stock(lot_id: t.Any, qty: int) -> bool:
    """Reserve ``qty`` units of a lot if they are still available.

    Runs ``UPDATE lot SET qtd_vendida = qtd_vendida + qty
    WHERE id = ? AND qtd_vendida + qty <= qtd_total``.

    Args:
        lot_id: the lot to sell from.
        qty: units to reserve, must be positive.

    Returns:
        True if the units were reserved, False if stock ran out.
    """
    if qty <= 0:
        raise ValueError("qty must be positive")
    updated = Lot.objects.filter(pk=lot_id, qtd_vendida__lte=F("qtd_total") - qty).update(
        qtd_vendida=F("qtd_vendida") + qty
    )
    if not updated:
        logger.info("stock_increment_rejected", lot_id=str(lot_id), qty=qty)
    return updated == 1


def try_consume_coupon(coupon_id: t.Any) -> bool:
    """Count one use of a coupon, bounded by its ``limiteTotal`` when set.

    Returns:
        True if the use was counted, False if the coupon is exhausted or inactive.
    """
    coupon = Coupon.objects.filter(pk=coupon_id).only("limites").first()
    if coupon is None:
        return False
    condition = Q(pk=coupon_id, ativo=True)
    limit = coupon.coupon_limits.limite_total
    if limit is not None:
        condition &= Q(uso_total__lt=limit)
    updated = Coupon.objects.filter(condition).update(uso_total=F("uso_total") + 1)
    if not updated:
        logger.info("coupon_consume_rejected", coupon_id=str(coupon_id), limit=limit)
    return updated == 1
