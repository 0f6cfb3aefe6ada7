"""
Numeric coercion helpers shared by every extraction point of the engine.

Statement rows arrive from several stores (JSON, ORM decimals, scraped strings),
so every read goes through `to_number`, which returns None for "no value" and
keeps a real zero as 0.0. Downstream rules rely on that null-vs-zero distinction.
"""
import math
import re
from decimal import Decimal

_LEADING_FLOAT = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def to_number(value) -> float | None:
    """Coerce a heterogeneous stored value to a finite float, or None.

    - None, booleans, empty/non-numeric strings, NaN and infinities -> None
    - int/float/Decimal -> float
    - strings are parsed by their leading numeric prefix ("12.5%" -> 12.5)
    - objects exposing to_number()/toNumber() (ORM decimal wrappers) are unwrapped
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        result = _to_float(value)
    except (ArithmeticError, TypeError, ValueError):
        # Overflow on huge integers, invalid decimals, failing unwrappers.
        return None
    if result is None or math.isnan(result) or math.isinf(result):
        return None
    return result


def _to_float(value) -> float | None:
    if isinstance(value, (int, float, Decimal)):
        return float(value)
    if isinstance(value, str):
        match = _LEADING_FLOAT.match(value.strip())
        return float(match.group(0)) if match else None
    unwrap = getattr(value, "to_number", None) or getattr(value, "toNumber", None)
    if callable(unwrap):
        unwrapped = unwrap()
        return None if unwrapped is value else to_number(unwrapped)
    return float(value)


def first_number(*values) -> float | None:
    """Return the first value that coerces to a number (zero included)."""
    for value in values:
        number = to_number(value)
        if number is not None:
            return number
    return None


def safe_div(numerator: float | None, denominator: float | None) -> float | None:
    if numerator is None or denominator is None or denominator == 0:
        return None
    result = numerator / denominator
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def is_missing(value: float | None) -> bool:
    """True for None, NaN and exact zero: the "nothing computed" states."""
    return value is None or (isinstance(value, float) and math.isnan(value)) or value == 0
