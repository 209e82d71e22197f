"""Common schemas for the API."""

import typing as t
from decimal import ROUND_HALF_UP, Decimal

from ninja import Schema
from pydantic import ConfigDict, PlainSerializer, StringConstraints
from pydantic.alias_generators import to_camel

StrippedString = t.Annotated[str, StringConstraints(strip_whitespace=True)]

CENTS = Decimal("0.01")


def quantize_money(value: Decimal) -> Decimal:
    """Round a monetary amount to cents, half up."""
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


# Money is computed as Decimal and rendered as a JSON number.
Money = t.Annotated[Decimal, PlainSerializer(lambda v: float(quantize_money(v)), return_type=float)]


class CamelSchema(Schema):
    """Schema whose wire format uses camelCase keys.

    Fields are declared in snake_case and accept either spelling on input.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class VersionResponse(Schema):
    version: str


class ResponseOk(Schema):
    status: t.Literal["ok"] = "ok"
