"""
Module: paybook_kernel.db.types
Responsibility: Decimal coercion and the single rounding rule for money.
Architecture position: Kernel > DB.  Importable from every layer; imports
    nothing from the rest of the kernel.

All money is Decimal.  Amounts are rounded half-up to the cent, and only
through round_money(), so a paycheck and the journal entry built from it
always agree to the penny.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

ZERO = Decimal("0")
CENT = Decimal("0.01")


def to_decimal(value: Any, default: Decimal = ZERO) -> Decimal:
    """
    Decimal from a Decimal, int, str or float; None gives ``default``.

    A float is read through its repr, so ``0.1`` becomes ``Decimal("0.1")``.
    """
    if value is None:
        return default
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value)) if isinstance(value, float) else Decimal(value)


def round_money(value: Any, decimal_places: int = 2) -> Decimal:
    """
    Half-up rounding of the exact decimal value.

        round_money(Decimal("1.005"))  -> Decimal("1.01")
        round_money(Decimal("-2.675")) -> Decimal("-2.68")
    """
    exponent = CENT if decimal_places == 2 else Decimal(1).scaleb(-decimal_places)
    return to_decimal(value).quantize(exponent, rounding=ROUND_HALF_UP)
