from pydantic import Field

from common.schema import CamelSchema


class CheckinScanSchema(CamelSchema):
    qr: str = Field(..., min_length=1)
    gate: str | None = Field(default=None, max_length=100)
    device_id: str | None = Field(default=None, max_length=100)
