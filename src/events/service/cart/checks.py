"""Composable cart checks.

Each check reads the data prefetched by :class:`CartValidationService` and
returns the errors it found. Checks never short-circuit each other: all of them
run and every error is reported together.
"""

from __future__ import annotations

import abc
from datetime import datetime
from typing import TYPE_CHECKING

from django.utils import timezone

from .enums import ErrorCode, Messages
from .types import CartError

if TYPE_CHECKING:
    from .service import CartValidationService


def _format_moment(moment: datetime) -> str:
    return timezone.localtime(moment).strftime("%d/%m/%Y %H:%M:%S")


class BaseCartCheck(abc.ABC):
    """Abstract Base Class for a composable cart check."""

    def __init__(self, handler: CartValidationService) -> None:
        """Initialize the check."""
        self.handler = handler

    @abc.abstractmethod
    def check(self) -> list[CartError]:
        """Perform the check.

        Returns:
            The errors found, empty if the cart passes.
        """


class LineItemCheck(BaseCartCheck):
    """Lot/type consistency and sale window, per line item."""

    def check(self) -> list[CartError]:
        """Check every line item with a positive quantity."""
        errors: list[CartError] = []
        skew = self.handler.clock_skew
        now = self.handler.now
        for item in self.handler.valid_items:
            lot = self.handler.lots.get(item.lot_id)
            ticket_type = self.handler.ticket_types.get(item.ticket_type_id)
            if lot is None:
                errors.append(
                    CartError(
                        code=ErrorCode.LOT_NOT_FOUND,
                        lot_id=item.lot_id,
                        message=Messages.LOT_NOT_FOUND.format(lot_id=item.lot_id),
                    )
                )
                continue
            if ticket_type is None:
                errors.append(
                    CartError(
                        code=ErrorCode.TYPE_NOT_FOUND,
                        ticket_type_id=item.ticket_type_id,
                        message=Messages.TYPE_NOT_FOUND.format(ticket_type_id=item.ticket_type_id),
                    )
                )
                continue
            if lot.ticket_type_id != ticket_type.id:
                errors.append(
                    CartError(
                        code=ErrorCode.LOT_TYPE_MISMATCH,
                        lot_id=lot.id,
                        ticket_type_id=ticket_type.id,
                        message=Messages.LOT_TYPE_MISMATCH.format(lot=lot.nome),
                    )
                )
            if lot.is_on_sale(now, skew):
                continue
            if lot.inicio_vendas and now < lot.inicio_vendas - skew:
                errors.append(
                    CartError(
                        code=ErrorCode.LOTE_FORA_DA_JANELA,
                        lot_id=lot.id,
                        message=Messages.LOT_NOT_STARTED.format(lot=lot.nome, start=_format_moment(lot.inicio_vendas)),
                    )
                )
            else:
                assert lot.fim_vendas is not None
                errors.append(
                    CartError(
                        code=ErrorCode.LOTE_FORA_DA_JANELA,
                        lot_id=lot.id,
                        message=Messages.LOT_ENDED.format(lot=lot.nome, end=_format_moment(lot.fim_vendas)),
                    )
                )
        return errors


class StockCheck(BaseCartCheck):
    """Quantity requested per lot, summed across line items, against what is left."""

    def check(self) -> list[CartError]:
        """Report each short lot once."""
        errors: list[CartError] = []
        for lot_id, requested in self.handler.quantity_by_lot.items():
            lot = self.handler.lots.get(lot_id)
            if lot is None or requested <= lot.available:
                continue
            errors.append(
                CartError(
                    code=ErrorCode.LOTE_SEM_ESTOQUE,
                    lot_id=lot.id,
                    message=Messages.LOT_OUT_OF_STOCK.format(lot=lot.nome, available=lot.available, requested=requested),
                )
            )
        return errors


class TypeLimitCheck(BaseCartCheck):
    """Per-order cap of each ticket type."""

    def check(self) -> list[CartError]:
        """Check ``max_por_pedido`` of every type in the cart."""
        errors: list[CartError] = []
        for type_id, requested in self.handler.quantity_by_type.items():
            ticket_type = self.handler.ticket_types.get(type_id)
            if ticket_type is None or not ticket_type.max_por_pedido:
                continue
            if requested > ticket_type.max_por_pedido:
                errors.append(
                    CartError(
                        code=ErrorCode.LIMIT_MAX_POR_TIPO_POR_PEDIDO,
                        ticket_type_id=type_id,
                        message=Messages.MAX_PER_TYPE.format(
                            ticket_type=ticket_type.nome, limit=ticket_type.max_por_pedido, requested=requested
                        ),
                    )
                )
        return errors


class OrderLimitCheck(BaseCartCheck):
    """Event-wide cap on the number of tickets in one order."""

    def check(self) -> list[CartError]:
        """Check ``maxTotalPorPedido``."""
        limit = self.handler.limit_rules.max_total_por_pedido
        requested = self.handler.total_quantity
        if limit is None or requested <= limit:
            return []
        return [
            CartError(
                code=ErrorCode.LIMIT_MAX_TOTAL_POR_PEDIDO,
                message=Messages.MAX_PER_ORDER.format(limit=limit, requested=requested),
            )
        ]


class CpfHistoryCheck(BaseCartCheck):
    """Caps on tickets the buyer CPF already holds from paid orders of the event."""

    def check(self) -> list[CartError]:
        """Check ``maxPorCPFPorTipo`` and ``maxPorCPFNoEvento``."""
        errors: list[CartError] = []
        rules = self.handler.limit_rules
        history = self.handler.cpf_history_by_type
        if rules.max_por_cpf_por_tipo is not None:
            for type_id, requested in self.handler.quantity_by_type.items():
                current = history.get(type_id, 0)
                if current + requested > rules.max_por_cpf_por_tipo:
                    ticket_type = self.handler.ticket_types.get(type_id)
                    errors.append(
                        CartError(
                            code=ErrorCode.LIMIT_MAX_POR_CPF_POR_TIPO,
                            ticket_type_id=type_id,
                            message=Messages.MAX_PER_CPF_PER_TYPE.format(
                                current=current,
                                ticket_type=ticket_type.nome if ticket_type else type_id,
                                limit=rules.max_por_cpf_por_tipo,
                                requested=requested,
                            ),
                        )
                    )
        if rules.max_por_cpf_no_evento is not None:
            current_total = sum(history.values())
            requested_total = self.handler.total_quantity
            if current_total + requested_total > rules.max_por_cpf_no_evento:
                errors.append(
                    CartError(
                        code=ErrorCode.LIMIT_MAX_POR_CPF_NO_EVENTO,
                        message=Messages.MAX_PER_CPF_IN_EVENT.format(
                            current=current_total, limit=rules.max_por_cpf_no_evento, requested=requested_total
                        ),
                    )
                )
        return errors


CART_CHECKS: list[type[BaseCartCheck]] = [
    LineItemCheck,
    StockCheck,
    TypeLimitCheck,
    OrderLimitCheck,
    CpfHistoryCheck,
]
