"""Error codes and buyer-facing messages for cart validation."""

from enum import StrEnum


class ErrorCode(StrEnum):
    """Machine-readable cart error codes."""

    INVALID_CPF = "INVALID_CPF"
    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    LOTS_NOT_FOUND = "LOTS_NOT_FOUND"
    TYPES_NOT_FOUND = "TYPES_NOT_FOUND"
    LOT_NOT_FOUND = "LOT_NOT_FOUND"
    TYPE_NOT_FOUND = "TYPE_NOT_FOUND"
    LOT_TYPE_MISMATCH = "LOT_TYPE_MISMATCH"
    LOTE_FORA_DA_JANELA = "LOTE_FORA_DA_JANELA"
    LOTE_SEM_ESTOQUE = "LOTE_SEM_ESTOQUE"
    LIMIT_MAX_POR_TIPO_POR_PEDIDO = "LIMIT_MAX_POR_TIPO_POR_PEDIDO"
    LIMIT_MAX_TOTAL_POR_PEDIDO = "LIMIT_MAX_TOTAL_POR_PEDIDO"
    LIMIT_MAX_POR_CPF_POR_TIPO = "LIMIT_MAX_POR_CPF_POR_TIPO"
    LIMIT_MAX_POR_CPF_NO_EVENTO = "LIMIT_MAX_POR_CPF_NO_EVENTO"
    CUPOM_NAO_ENCONTRADO = "CUPOM_NAO_ENCONTRADO"
    CUPOM_NAO_COMBINAVEL = "CUPOM_NAO_COMBINAVEL"
    LIMITE_TOTAL_EXCEDIDO = "LIMITE_TOTAL_EXCEDIDO"
    LIMITE_POR_CPF_EXCEDIDO = "LIMITE_POR_CPF_EXCEDIDO"
    INVALID_QUANTITY = "INVALID_QUANTITY"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class Messages(StrEnum):
    """Message templates, filled with ``str.format``."""

    INVALID_CPF = "CPF inválido. Deve conter 11 dígitos numéricos."
    EVENT_NOT_FOUND = "Evento não encontrado ou não pertence ao tenant informado."
    LOTS_NOT_FOUND = "Um ou mais lotes não foram encontrados."
    TYPES_NOT_FOUND = "Um ou mais tipos de ingresso não foram encontrados."
    LOT_NOT_FOUND = "Lote não encontrado: {lot_id}"
    TYPE_NOT_FOUND = "Tipo de ingresso não encontrado: {ticket_type_id}"
    INVALID_QUANTITY = "Quantidade deve ser maior que zero"
    LOT_TYPE_MISMATCH = "Lote {lot} não pertence ao tipo de ingresso informado"
    LOT_NOT_STARTED = 'Lote "{lot}" ainda não está disponível para venda. Início: {start}'
    LOT_ENDED = 'Lote "{lot}" não está mais disponível para venda. Fim: {end}'
    LOT_OUT_OF_STOCK = 'Lote "{lot}" não tem estoque suficiente. Disponível: {available}, solicitado: {requested}'
    MAX_PER_TYPE = 'Quantidade máxima por pedido para "{ticket_type}" é {limit}. Você está tentando comprar {requested}.'
    MAX_PER_ORDER = "Quantidade máxima total por pedido é {limit}. Você está tentando comprar {requested}."
    MAX_PER_CPF_PER_TYPE = (
        'CPF já possui {current} ingresso(s) do tipo "{ticket_type}". Limite: {limit}. Tentando adicionar: {requested}.'
    )
    MAX_PER_CPF_IN_EVENT = (
        "CPF já possui {current} ingresso(s) neste evento. Limite total: {limit}. Tentando adicionar: {requested}."
    )
    SECTOR_OVER_CAPACITY = (
        'Atenção: O setor "{sector}" tem capacidade de {capacity}, mas {allocated} ingressos foram alocados '
        "nos lotes. A capacidade pode ser excedida."
    )
    COUPON_NOT_FOUND = 'Cupom "{code}" não encontrado ou inativo.'
    COUPONS_NOT_COMBINABLE = "Os cupons {codes} não são combináveis entre si."
    COUPON_NOT_COMBINABLE = 'O cupom "{code}" não é combinável com outros cupons.'
    COUPON_TOTAL_LIMIT = 'Cupom "{code}" atingiu o limite de usos. Usos: {used}/{limit}.'
    COUPON_CPF_LIMIT = 'Você já utilizou o cupom "{code}" {used} vez(es). Limite: {limit}.'
    COUPON_NOT_APPLICABLE = 'Cupom "{code}" não se aplica a nenhum item do carrinho.'
    STOCK_LOST = 'Lote "{lot}" esgotou antes da confirmação do pedido.'
    COUPON_EXHAUSTED = 'Cupom "{code}" atingiu o limite de usos antes da confirmação do pedido.'
    INTERNAL_ERROR = "Erro interno."
