"""
Module: workshop_kernel.db.types
Responsibility: Annotated type aliases for workshop column types, so every
    model declares prices, points and codes identically.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/, and selectors/.  MUST NOT import from any of those layers.

No floats: prices and points are Decimal.  The diagnosis bonus is half a
point, so points carry two decimal places.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated

from sqlalchemy import Numeric, String, Text

# Customer-facing and purchase prices
Money = Annotated[Decimal, Numeric(12, 2)]

# Mechanic scoring points (0.5 steps occur)
Points = Annotated[Decimal, Numeric(8, 2)]

# Enumerated value stored as its string form
StatusCode = Annotated[str, String(50)]

# Short names (repair types, groups, checklist items)
ShortName = Annotated[str, String(200)]

# Free text (comments, notes, descriptions)
LongText = Annotated[str, Text]

MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP


def to_decimal(value: Decimal | int | str) -> Decimal:
    """
    Coerce a price or points input to Decimal, rejecting floats.

    Floats are refused because binary fractions cannot represent prices
    such as 0.10 exactly.
    """
    if isinstance(value, float):
        raise TypeError(f"float not allowed for money/points: {value!r}")
    if isinstance(value, Decimal):
        return value
    return Decimal(value)


def round_money(value: Decimal) -> Decimal:
    quantum = Decimal(10) ** -MONEY_DECIMAL_PLACES
    return value.quantize(quantum, rounding=DEFAULT_ROUNDING)
