"""Input coercion shared by request schemas.

Buyers type amounts the Italian way ("1.234,56"), so decimal fields accept
either a number or a string in that format. A string without a comma is read
as a plain decimal ("12.5"). Infinity and NaN are rejected in every form.
"""
import math
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Union

MAX_AMOUNT_CENTS = 1_000_000_000
MAX_AREA_HA = 100_000
MAX_DISTANCE_KM = 20_000


def _finite(number: float, raw) -> float:
    if not math.isfinite(number):
        raise ValueError(f"Number must be finite: {raw!r}")
    return number


def parse_italian_number(value: Union[str, int, float]) -> float:
    if isinstance(value, bool):
        raise ValueError("Expected a number")
    if isinstance(value, (int, float)):
        return _finite(float(value), value)
    if not isinstance(value, str):
        raise ValueError("Expected a number")
    normalized = value.strip()
    if "," in normalized:
        normalized = normalized.replace(".", "").replace(",", ".")
    try:
        number = float(Decimal(normalized))
    except (InvalidOperation, OverflowError):
        raise ValueError(f"Invalid number format: {value!r}")
    return _finite(number, value)


def euros_to_cents(value: Union[str, int, float]) -> int:
    """Integers are already cents; strings are euro amounts such as "4.869,57"."""
    if isinstance(value, bool):
        raise ValueError("Expected an amount")
    if isinstance(value, int):
        cents = value
    elif isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise ValueError("Amounts given as numbers must be whole cents")
        cents = int(value)
    else:
        euros = parse_italian_number(value)
        if abs(euros) * 100 > MAX_AMOUNT_CENTS:
            raise ValueError(f"Amount exceeds {MAX_AMOUNT_CENTS} cents")
        cents = int((Decimal(str(euros)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if cents > MAX_AMOUNT_CENTS:
        raise ValueError(f"Amount exceeds {MAX_AMOUNT_CENTS} cents")
    return cents
