"""
Decimal helpers for money, quantities and percentages.

All intermediate arithmetic runs at full Decimal precision; rounding happens
once, when a result is assembled.
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation, getcontext, localcontext
from typing import Optional

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")
RATE_PLACES = 4


def to_decimal(value) -> Decimal:
    """Coerce int/str/float/Decimal to Decimal (floats go through str to avoid binary noise)."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Not a numeric value: {value!r}")
    if isinstance(value, float):
        value = repr(value)
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValueError(f"Not a numeric value: {value!r}")


def to_optional_decimal(value) -> Optional[Decimal]:
    if value is None or (isinstance(value, str) and value.strip() == ""):
        return None
    return to_decimal(value)


def quantum(places: int) -> Decimal:
    """Smallest step for the given number of decimal places (2 -> 0.01, 0 -> 1)."""
    return Decimal(1).scaleb(-places)


def working_precision(amount: Decimal, places: int) -> int:
    """Significant digits needed to hold amount exactly at the given decimal places."""
    if not amount.is_finite() or amount.is_zero():
        return getcontext().prec
    return max(getcontext().prec, amount.adjusted() + places + 2)


def round_money(amount: Decimal, places: int = 2) -> Decimal:
    """Round half-up to the currency's minor unit."""
    with localcontext() as ctx:
        ctx.prec = working_precision(amount, places)
        return amount.quantize(quantum(places), rounding=ROUND_HALF_UP)


def round_rate(rate: Decimal) -> Decimal:
    return rate.quantize(quantum(RATE_PLACES), rounding=ROUND_HALF_UP)


def percent_of(amount: Decimal, rate_pct: Decimal) -> Decimal:
    return amount * rate_pct / HUNDRED

