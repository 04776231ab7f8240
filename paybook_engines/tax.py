"""
Tax Bracket Evaluator - progressive income tax withholding.

Pure functions with no I/O; the bracket tables come from a
``paybook_config.schema.IncomeTaxSchedule`` passed in by the caller.

The same estimator drives federal and state withholding: annualize the
period's taxable wages, subtract the filing-status deduction (standard
deduction federally, base exemption for the state) and allowances, run the
annual bracket table and convert back to a per-period amount.

Usage:
    from decimal import Decimal
    from paybook_config import get_tax_rules
    from paybook_engines.tax import estimate_period_income_tax

    rules = get_tax_rules(2025)
    weekly_federal = estimate_period_income_tax(
        Decimal("1000"), rules.federal, "single", 0, rules.periods_per_year,
    )
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from paybook_config.schema import Bracket, FilingStatus, IncomeTaxSchedule
from paybook_kernel.db.types import ZERO


def bracket_base_taxes(brackets: Sequence[Bracket]) -> tuple[Decimal, ...]:
    """
    Cumulative tax owed at each bracket's lower bound.

    ``result[i]`` is the tax on exactly ``lower_bound(i)`` dollars, so the
    first entry is always 0.
    """
    bases: list[Decimal] = []
    running = ZERO
    lower = ZERO
    for bracket in brackets:
        bases.append(running)
        if bracket.upper_bound is None:
            break
        running += (bracket.upper_bound - lower) * bracket.rate
        lower = bracket.upper_bound
    return tuple(bases)


def evaluate_brackets(
    income: Decimal,
    brackets: Sequence[Bracket],
    base_taxes: Sequence[Decimal] | None = None,
) -> Decimal:
    """
    Annual tax on ``income`` under a marginal bracket table.

    Finds the highest bracket whose lower bound is at or below ``income``
    and returns base tax at that lower bound plus the marginal rate on the
    excess.  Income at or below zero owes nothing.  The result is not
    rounded.
    """
    if income <= ZERO or not brackets:
        return ZERO

    bases = tuple(base_taxes) if base_taxes is not None else bracket_base_taxes(brackets)

    lower = ZERO
    for index, bracket in enumerate(brackets):
        if bracket.upper_bound is None or income <= bracket.upper_bound:
            return bases[index] + (income - lower) * bracket.rate
        if index < len(brackets) - 1:
            lower = bracket.upper_bound

    # Closed table with income above its top: the last rate keeps applying.
    return bases[-1] + (income - lower) * brackets[-1].rate


def estimate_period_income_tax(
    period_wages: Decimal,
    schedule: IncomeTaxSchedule,
    filing_status: FilingStatus | str,
    allowances: int,
    periods_per_year: int,
) -> Decimal:
    """
    Per-period withholding for one jurisdiction (unrounded).

    Returns 0 when ``periods_per_year`` is not positive.
    """
    if periods_per_year <= 0:
        return ZERO

    periods = Decimal(periods_per_year)
    annual_wages = period_wages * periods
    exemption = (
        schedule.deduction_for(filing_status)
        + Decimal(max(allowances, 0)) * schedule.allowance_value
    )
    taxable_income = max(ZERO, annual_wages - exemption)
    annual_tax = evaluate_brackets(taxable_income, schedule.brackets_for(filing_status))
    return annual_tax / periods
