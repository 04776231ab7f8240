"""
Deduction Processor - employee pre-tax and post-tax deductions.

Pure functions with no I/O.  Definitions are applied in the order given;
each amount is clipped to the remaining headroom under its annual limit so
that YTD never exceeds the limit.

Usage:
    from decimal import Decimal
    from paybook_engines.deductions import (
        AmountType, DeductionDefinition, apply_deductions,
    )

    k401 = DeductionDefinition(
        deduction_type="401k",
        name="401(k)",
        amount_type=AmountType.PERCENTAGE,
        amount=Decimal("5"),
        pre_tax=True,
        annual_limit=Decimal("23500"),
    )
    lines, total = apply_deductions([k401], Decimal("1000"), pre_tax=True)
    # lines[0].amount == Decimal("50.00")
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from paybook_kernel.db.types import ZERO, round_money, to_decimal

_HUNDRED = Decimal("100")


class AmountType(str, Enum):
    """How a deduction amount is interpreted."""

    FIXED = "fixed"  # Dollars per period
    PERCENTAGE = "percentage"  # Percent of gross (5 == 5%)


@dataclass(frozen=True)
class DeductionDefinition:
    """One recurring employee deduction as it applies to a pay run."""

    deduction_type: str
    name: str
    amount_type: AmountType
    amount: Decimal
    pre_tax: bool
    annual_limit: Decimal | None = None
    ytd_amount: Decimal = ZERO

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount_type", AmountType(self.amount_type))
        object.__setattr__(self, "amount", to_decimal(self.amount))
        object.__setattr__(self, "ytd_amount", to_decimal(self.ytd_amount))
        if self.annual_limit is not None:
            object.__setattr__(self, "annual_limit", to_decimal(self.annual_limit))

    @property
    def remaining_limit(self) -> Decimal | None:
        """Headroom left under the annual limit, or None when unlimited."""
        if self.annual_limit is None:
            return None
        return max(ZERO, self.annual_limit - self.ytd_amount)


@dataclass(frozen=True)
class DeductionBreakdown:
    """A deduction actually taken in a pay run."""

    deduction_type: str
    name: str
    amount: Decimal
    pre_tax: bool


def compute_deduction_amount(definition: DeductionDefinition, gross_pay: Decimal) -> Decimal:
    """Raw amount for one definition, clipped to its limit and rounded."""
    if definition.amount_type == AmountType.FIXED:
        amount = definition.amount
    else:
        amount = gross_pay * definition.amount / _HUNDRED

    remaining = definition.remaining_limit
    if remaining is not None:
        amount = min(amount, remaining)
    return round_money(amount)


def apply_deductions(
    definitions: Iterable[DeductionDefinition],
    gross_pay: Decimal,
    pre_tax: bool,
) -> tuple[tuple[DeductionBreakdown, ...], Decimal]:
    """
    Apply the definitions of one phase (pre-tax or post-tax).

    Returns the emitted breakdown lines (amounts > 0 only) and their total.
    Because each line is rounded before summing, the total equals the sum
    of the line amounts exactly.
    """
    lines: list[DeductionBreakdown] = []
    total = ZERO
    for definition in definitions:
        if definition.pre_tax != pre_tax:
            continue
        amount = compute_deduction_amount(definition, gross_pay)
        if amount <= ZERO:
            continue
        lines.append(
            DeductionBreakdown(
                deduction_type=definition.deduction_type,
                name=definition.name,
                amount=amount,
                pre_tax=pre_tax,
            )
        )
        total += amount
    return tuple(lines), total
