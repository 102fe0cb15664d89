"""
Currency normalization.
Converts source-currency (USD) amounts to whole display-currency units.
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Optional, Union

from cost_engine.core.config import config
from cost_engine.core.errors import ValidationError


Amount = Union[Decimal, int, float, str]


def to_decimal(amount: Amount) -> Decimal:
    """Convert an amount to Decimal without binary float artifacts."""
    if isinstance(amount, Decimal):
        return amount
    try:
        # str() first so 0.1 becomes Decimal("0.1"), not its binary expansion
        return Decimal(str(amount))
    except (InvalidOperation, ValueError) as error:
        raise ValidationError(f"Invalid amount: {amount!r}") from error


def to_display_currency(amount: Amount, rate: Optional[Amount] = None) -> int:
    """
    Convert a source-currency amount to an integer display-currency amount.

    The product is rounded half away from zero (ROUND_HALF_UP on Decimal),
    so 0.5 rounds to 1. Each call rounds independently; callers that convert
    sub-costs separately keep that per-subtotal rounding.

    Args:
        amount: Non-negative amount in the source currency
        rate: Exchange rate (defaults to config.EXCHANGE_RATE)

    Returns:
        Rounded amount in the display currency

    Raises:
        ValidationError: If the amount is negative or not a number
    """
    value = to_decimal(amount)
    if value.is_nan() or value.is_infinite():
        raise ValidationError(f"Invalid amount: {amount!r}")
    if value < 0:
        raise ValidationError(f"Cost amount must not be negative (got: {amount})")

    exchange_rate = to_decimal(config.EXCHANGE_RATE if rate is None else rate)
    converted = value * exchange_rate
    return int(converted.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
