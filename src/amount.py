from decimal import Decimal, ROUND_HALF_UP
from typing import Union

PRECISION = 4
SCALE = 10 ** PRECISION

_WHOLE_UNIT = Decimal(1)


def to_units(value: Union[Decimal, str, int, float]) -> int:
    """
    Convert a monetary value to fixed-point units (1 unit = 1/10000).
    Rounds half away from zero. Raises decimal.InvalidOperation for NaN/Infinity.
    """
    if isinstance(value, float):
        value = repr(value)
    scaled = Decimal(value) * SCALE
    return int(scaled.quantize(_WHOLE_UNIT, rounding=ROUND_HALF_UP))


def to_decimal(units: int) -> Decimal:
    """Scale fixed-point units back to a Decimal with 4 fractional digits."""
    return Decimal(units).scaleb(-PRECISION)


def format_units(units: int) -> str:
    return f"{to_decimal(units):.{PRECISION}f}"
