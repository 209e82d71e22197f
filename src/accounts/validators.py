import re

from django.core.exceptions import ValidationError
from django.utils.translation import gettext_lazy as _

CPF_LENGTH = 11
_NON_DIGITS = re.compile(r"\D")


def normalize_cpf(value: str) -> str:
    """Normalize a CPF to its internal key.

    Punctuation and whitespace are dropped, so "123.456.789-00",
    " 123 456 789 00 " and "12345678900" all map to "12345678900".

    Args:
        value (str): raw CPF as typed by the buyer.

    Returns:
        str: the digits only.
    """
    return _NON_DIGITS.sub("", value or "")


def is_valid_cpf(value: str | None) -> bool:
    """Whether a raw CPF normalizes to exactly eleven digits."""
    if not isinstance(value, str):
        return False
    return len(normalize_cpf(value)) == CPF_LENGTH


def validate_cpf(value: str | None) -> None:
    """Validate CPF.

    Args:
        value (str): CPF, normalized or not.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(_("CPF must be a string."))
    if not is_valid_cpf(value):
        raise ValidationError(_("CPF must contain exactly 11 digits."))
    return None
