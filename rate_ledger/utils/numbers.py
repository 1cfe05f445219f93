"""Decimal helpers used for rate arithmetic."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from numbers import Real

TWO_PLACES = Decimal("0.01")


def to_decimal(value: object, *, field: str = "value") -> Decimal:
    """Coerce ``value`` into a finite :class:`Decimal`.

    Accepts ``Decimal``, ``int``, ``float``, numeric strings and BSON
    ``Decimal128`` instances. Floats go through ``str`` so ``50.5`` stays
    ``Decimal("50.5")`` rather than its binary expansion.
    """

    if isinstance(value, bool) or value is None:
        raise ValueError(f"{field} must be a number")
    to_native = getattr(value, "to_decimal", None)
    if callable(to_native):
        value = to_native()
    try:
        if isinstance(value, Decimal):
            result = value
        elif isinstance(value, Real):
            result = Decimal(str(value))
        elif isinstance(value, str):
            result = Decimal(value.strip())
        else:
            raise ValueError(f"{field} must be a number")
    except InvalidOperation as exc:
        raise ValueError(f"{field} must be a number") from exc
    if not result.is_finite():
        raise ValueError(f"{field} must be a finite number")
    return result


def round2(value: Decimal) -> Decimal:
    """Round half-up to two decimal places."""

    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def calculate_final_rate(rate: Decimal, gst: Decimal) -> Decimal:
    """Return the tax-inclusive rate ``round2(rate + rate * gst / 100)``."""

    return round2(rate + rate * gst / Decimal(100))


__all__ = ["TWO_PLACES", "to_decimal", "round2", "calculate_final_rate"]
