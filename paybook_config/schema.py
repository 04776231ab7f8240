"""
Tax rule set and chart-of-accounts schema.

One ``TaxYearRules`` instance holds every jurisdiction constant the payroll
engine needs for one calendar year: bracket tables, wage bases, caps and
flat rates.  YAML files under ``sets/`` are parsed into these types by the
loader; nothing downstream reads YAML.

All rates are decimal fractions (``Decimal("0.062")`` == 6.2%).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum


class FilingStatus(str, Enum):
    SINGLE = "single"
    MARRIED = "married"
    HEAD_OF_HOUSEHOLD = "head_of_household"


# ---------------------------------------------------------------------------
# Income tax
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Bracket:
    """One marginal bracket; ``upper_bound`` None means open-ended."""

    upper_bound: Decimal | None
    rate: Decimal


@dataclass(frozen=True)
class IncomeTaxSchedule:
    """Progressive schedule for one jurisdiction (federal or a state)."""

    name: str
    brackets: dict[FilingStatus, tuple[Bracket, ...]]
    deductions: dict[FilingStatus, Decimal]
    allowance_value: Decimal

    def brackets_for(self, filing_status: FilingStatus | str) -> tuple[Bracket, ...]:
        return self.brackets[FilingStatus(filing_status)]

    def deduction_for(self, filing_status: FilingStatus | str) -> Decimal:
        """Standard deduction (federal) or base exemption (state)."""
        return self.deductions[FilingStatus(filing_status)]


# ---------------------------------------------------------------------------
# Contributions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WageBaseTax:
    """Flat rate on wages up to an optional annual wage base."""

    rate: Decimal
    wage_base: Decimal | None = None


@dataclass(frozen=True)
class ThresholdTax:
    """Flat rate on wages above an annual threshold."""

    rate: Decimal
    threshold: Decimal


@dataclass(frozen=True)
class CappedTax:
    """Flat rate with an optional per-period and/or annual dollar cap."""

    rate: Decimal
    per_period_max: Decimal | None = None
    annual_max: Decimal | None = None


@dataclass(frozen=True)
class UnemploymentRules:
    sui_wage_base: Decimal
    futa_wage_base: Decimal
    default_futa_rate: Decimal


@dataclass(frozen=True)
class LocalTaxRules:
    nyc_rate: Decimal
    yonkers_resident_surcharge: Decimal
    yonkers_nonresident_rate: Decimal


# ---------------------------------------------------------------------------
# Rule set
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TaxYearRules:
    """Everything the payroll engine needs for one calendar year."""

    tax_year: int
    periods_per_year: int
    federal: IncomeTaxSchedule
    state: IncomeTaxSchedule
    social_security: WageBaseTax
    medicare: WageBaseTax
    additional_medicare: ThresholdTax
    sdi: CappedTax
    pfl: CappedTax
    unemployment: UnemploymentRules
    local: LocalTaxRules
    checksum: str = ""


# ---------------------------------------------------------------------------
# Chart of accounts
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AccountDef:
    code: str
    name: str
    account_type: str
    subtype: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class ChartOfAccountsDef:
    accounts: tuple[AccountDef, ...] = field(default_factory=tuple)
    checksum: str = ""

    def codes(self) -> set[str]:
        return {a.code for a in self.accounts}
