"""
Integer minor-unit money arithmetic.

Every percentage step rounds to the nearest cent with ties going up, so
results never depend on float representation or banker's rounding.
"""
from decimal import Decimal, ROUND_HALF_UP

HUNDRED = Decimal(100)


def round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _pct(percent) -> Decimal:
    return Decimal(str(percent))


def apply_discount(amount: int, percent) -> int:
    """amount * (1 - percent/100), rounded half-up."""
    return round_half_up(Decimal(amount) * (HUNDRED - _pct(percent)) / HUNDRED)


def percent_of(amount: int, percent) -> int:
    """amount * percent/100, rounded half-up."""
    return round_half_up(Decimal(amount) * _pct(percent) / HUNDRED)


def format_cents(amount: int) -> str:
    return f"${amount / 100:,.2f}"
