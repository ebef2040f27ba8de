"""
Money helpers - INR amounts are Decimal, two decimal places (paise)
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

PAISE = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Union[Decimal, int, float, str, None]) -> Decimal:
    """Convert a value to a Decimal quantized to paise (ROUND_HALF_UP)"""
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        # str() first so floats don't carry binary noise into the ledger
        value = Decimal(str(value))
    return value.quantize(PAISE, rounding=ROUND_HALF_UP)


def format_money(value: Union[Decimal, None]) -> str:
    """Render an amount the way API responses carry it ("1600.00")"""
    return str(to_money(value))
