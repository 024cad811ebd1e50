import math
from decimal import Decimal, InvalidOperation
from typing import Any, Optional


def parse_number(value: Any) -> float:
    """
    Parse a venue number (float, int or numeric string, comma decimals allowed).

    Returns NaN for anything that is not a finite number.
    """
    if isinstance(value, bool):
        return math.nan
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else math.nan
    if isinstance(value, str):
        try:
            number = float(value.replace(',', '.').strip())
        except ValueError:
            return math.nan
        return number if math.isfinite(number) else math.nan
    return math.nan


def count_decimal_places(number: float) -> int:
    """
    Count fractional digits of a number from its own representation.

    Exponential notation is honored: 1e-05 -> 5, 1.5e-07 -> 8, 10.0 -> 0.
    """
    try:
        exponent = Decimal(repr(float(number))).normalize().as_tuple().exponent
    except (InvalidOperation, ValueError, TypeError):
        return 0
    if not isinstance(exponent, int):
        return 0
    return max(0, -exponent)


def to_price_key(value: Any) -> Optional[Decimal]:
    """
    Canonical Decimal key for a price so that "0.50", "0.5" and 0.5 collide.

    Returns None for non-finite or non-positive prices.
    """
    if isinstance(value, bool):
        return None
    try:
        if isinstance(value, str):
            key = Decimal(value.replace(',', '.').strip())
        elif isinstance(value, (int, float)):
            key = Decimal(repr(value)) if isinstance(value, float) else Decimal(value)
        else:
            return None
    except InvalidOperation:
        return None
    if not key.is_finite() or key <= 0:
        return None
    return key.normalize()
