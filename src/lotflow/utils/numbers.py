from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Union

NumberLike = Union[Decimal, int, float, str]

ZERO = Decimal(0)


def to_decimal(value: NumberLike | None, *, default: Decimal | None = None) -> Decimal | None:
    """Coerce a number-like value to ``Decimal``.

    Floats go through ``str()`` so ``0.1`` becomes ``Decimal("0.1")`` rather
    than its binary expansion. ``NaN`` and infinities are preserved so that
    validation can reject them explicitly.

    Args:
        value: Value to convert. ``None`` returns ``default``.
        default: Returned when ``value`` is ``None``.

    Returns:
        Decimal | None: Converted value.

    Raises:
        TypeError: If the value cannot be interpreted as a number.
    """
    if value is None:
        return default
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError(f"Expected a number, got bool: {value!r}")
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(repr(value)) if value == value else Decimal("NaN")
    if isinstance(value, str):
        try:
            return Decimal(value.strip())
        except InvalidOperation as e:
            raise TypeError(f"Expected a number, got {value!r}") from e
    raise TypeError(f"Expected a number, got {type(value).__name__}: {value!r}")


def is_positive(value: Decimal | None) -> bool:
    """True for finite values strictly greater than zero."""
    return value is not None and value.is_finite() and value > ZERO


def is_non_negative(value: Decimal | None) -> bool:
    """True for finite values greater than or equal to zero."""
    return value is not None and value.is_finite() and value >= ZERO
