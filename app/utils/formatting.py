"""Display formatting for amounts and share counts (en-US, USD)."""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Number = Union[Decimal, int, float, str]


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def format_number(value: Number, decimals: int = 0) -> str:
    """Group thousands and fix the decimal places: 1234.5 -> '1,234.50'."""
    quantum = Decimal(1).scaleb(-decimals)
    rounded = _to_decimal(value).quantize(quantum, rounding=ROUND_HALF_UP)
    return f"{rounded:,.{decimals}f}"


def format_currency(value: Number, decimals: int = 2) -> str:
    """Dollar amount with grouping: 1000 -> '$1,000.00'."""
    return f"${format_number(value, decimals)}"


def format_share_price(share_price: Number, security_type: str = "") -> str:
    label = security_type or "Common Stock"
    return f"1 {label} = {format_currency(share_price, 2)} USD"
