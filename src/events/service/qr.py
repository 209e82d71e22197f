"""Versioned QR payload codec.

The payload is ``{"v": 1, "tid": <ticket id>, "n": <nonce>, "t": <issued at, epoch millis>}``
serialized as JSON and base64url-encoded without padding.
"""

import base64
import binascii
import re
import secrets
import typing as t
from datetime import UTC, datetime, timedelta

import orjson
from django.conf import settings
from pydantic import BaseModel, Field, ValidationError

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_B64URL_ALPHABET = re.compile(r"[A-Za-z0-9_-]*")
_FROM_URLSAFE = str.maketrans("-_", "+/")


class QRPayload(BaseModel):
    version: int = Field(alias="v", ge=1)
    ticket_id: str = Field(alias="tid", min_length=1)
    nonce: str = Field(alias="n", min_length=1)
    issued_at: int = Field(alias="t")

    model_config = {"populate_by_name": True}


class InvalidQRPayloadError(ValueError):
    """Raised when a scanned payload cannot be decoded into a QRPayload."""


def generate_nonce() -> str:
    """A fresh 128-bit random nonce, base64url without padding."""
    return _b64encode(secrets.token_bytes(settings.QR_NONCE_BYTES))


def to_millis(moment: datetime) -> int:
    return (moment - EPOCH) // timedelta(milliseconds=1)


def encode(ticket_id: t.Any, nonce: str, issued_at: datetime) -> str:
    """Build the string rendered inside the QR image."""
    payload = QRPayload(
        version=settings.QR_PAYLOAD_VERSION,
        ticket_id=str(ticket_id),
        nonce=nonce,
        issued_at=to_millis(issued_at),
    )
    return _b64encode(orjson.dumps(payload.model_dump(by_alias=True)))


def decode(raw: str) -> QRPayload:
    """Parse a scanned QR string.

    Raises:
        InvalidQRPayloadError: if the string is not base64url JSON carrying v, tid, n and t,
            or its version is not the current one.
    """
    if not raw or not isinstance(raw, str):
        raise InvalidQRPayloadError("empty payload")
    try:
        data = orjson.loads(_b64decode(raw.strip()))
    except (binascii.Error, ValueError) as e:
        raise InvalidQRPayloadError("payload is not base64url JSON") from e
    if not isinstance(data, dict):
        raise InvalidQRPayloadError("payload is not an object")
    try:
        payload = QRPayload.model_validate(data)
    except ValidationError as e:
        raise InvalidQRPayloadError("payload is missing fields") from e
    if payload.version != settings.QR_PAYLOAD_VERSION:
        raise InvalidQRPayloadError(f"unsupported payload version {payload.version}")
    return payload


def _b64encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _b64decode(value: str) -> bytes:
    value = value.rstrip("=")
    if not _B64URL_ALPHABET.fullmatch(value):
        raise binascii.Error("not base64url")
    padding = "=" * (-len(value) % 4)
    return base64.b64decode(value.translate(_FROM_URLSAFE) + padding, validate=True)
