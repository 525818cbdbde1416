"""ORM-level checks for stock quantities.

Items and stock transactions call these from ``@validates`` hooks, so a
negative quantity is refused whichever code path writes it.
"""

from decimal import Decimal, InvalidOperation


def as_quantity(key: str, value) -> Decimal:
    """Coerce ints, floats and numeric strings to ``Decimal``."""
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"{key} must be a number, got {value!r}")


def non_negative(key: str, value):
    if value is None:
        return value
    quantity = as_quantity(key, value)
    if quantity < 0:
        raise ValueError(f"{key} cannot be negative, got {value}")
    return quantity
