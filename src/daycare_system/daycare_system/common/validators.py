from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional

from ..core.constants import MONEY_QUANT
from ..core.exceptions import ValidationError


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_positive_id(value, field_name: str) -> int:
    try:
        value = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} is invalid")
    if value <= 0:
        raise ValidationError(f"{field_name} is invalid")
    return value


def to_money(value, field_name: str) -> Decimal:
    """Parse a monetary amount into a 2-place Decimal, rejecting negatives."""

    try:
        amount = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field_name} is not a valid amount")
    if not amount.is_finite():
        raise ValidationError(f"{field_name} is not a valid amount")
    if amount < 0:
        raise ValidationError(f"{field_name} must not be negative")
    return amount.quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def to_optional_money(value, field_name: str) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    return to_money(value, field_name)
