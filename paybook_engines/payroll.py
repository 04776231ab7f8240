"""
Payroll Calculation Engine - gross-to-net for one employee and one period.

Pure function ``calculate_payroll(payroll_input, rules)``; no I/O, no clock.
Jurisdiction constants come from a ``TaxYearRules`` selected by the caller
(normally by the pay date's calendar year).

Order of operations:
    1. Gross pay (regular + overtime x multiplier; salaried normalized).
    2. Pre-tax deductions -> taxable wages.
    3. Wage-base-limited taxes on gross: Social Security (EE/ER), SUI, FUTA.
    4. Flat taxes on gross: Medicare (EE/ER), SDI, PFL.
    5. Additional Medicare above the YTD threshold.
    6. Federal and state income tax on taxable wages.
    7. Local tax (NYC resident, else Yonkers resident surcharge).
    8. Post-tax deductions.

Every component is rounded to the cent before totals are summed, so
``net_pay == gross_pay - total_pre_tax - total_tax_withholdings -
total_post_tax`` holds exactly.

Usage:
    from datetime import date
    from decimal import Decimal
    from paybook_config import get_tax_rules
    from paybook_engines.payroll import (
        EmployeeTaxProfile, PayPeriod, PayrollInput, calculate_payroll,
    )

    period = PayPeriod(date(2025, 3, 3), date(2025, 3, 9), date(2025, 3, 14))
    result = calculate_payroll(
        PayrollInput(
            profile=EmployeeTaxProfile(hourly_rate=Decimal("25")),
            regular_hours=Decimal("40"),
            period=period,
        ),
        get_tax_rules(period.tax_year),
    )
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum

from paybook_config.schema import FilingStatus, TaxYearRules
from paybook_engines.deductions import (
    DeductionBreakdown,
    DeductionDefinition,
    apply_deductions,
)
from paybook_engines.tax import estimate_period_income_tax
from paybook_engines.tracer import traced_engine
from paybook_kernel.db.types import ZERO, round_money, to_decimal

STANDARD_WEEKLY_HOURS = Decimal("40")
SALARY_PERIODS_PER_YEAR = 52
DEFAULT_OVERTIME_MULTIPLIER = Decimal("1.5")
DEFAULT_FUTA_RATE_PERCENT = Decimal("0.6")

_HUNDRED = Decimal("100")


class PayType(str, Enum):
    HOURLY = "hourly"
    SALARY = "salary"


@dataclass(frozen=True)
class EmployeeTaxProfile:
    """
    Withholding-relevant facts about one employee.

    Exactly one of ``hourly_rate`` / ``annual_salary`` is populated,
    matching ``pay_type``.
    """

    filing_status: FilingStatus = FilingStatus.SINGLE
    allowances: int = 0
    nyc_resident: bool = False
    yonkers_resident: bool = False
    federal_withholding: bool = True
    state_withholding: bool = True
    disability_withholding: bool = True
    pfl_withholding: bool = True
    pay_type: PayType = PayType.HOURLY
    hourly_rate: Decimal | None = None
    annual_salary: Decimal | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "filing_status", FilingStatus(self.filing_status))
        object.__setattr__(self, "pay_type", PayType(self.pay_type))
        if self.hourly_rate is not None:
            object.__setattr__(self, "hourly_rate", to_decimal(self.hourly_rate))
        if self.annual_salary is not None:
            object.__setattr__(self, "annual_salary", to_decimal(self.annual_salary))

        if self.pay_type == PayType.HOURLY:
            if self.hourly_rate is None or self.annual_salary is not None:
                raise ValueError("Hourly employees need hourly_rate and no annual_salary")
        elif self.annual_salary is None or self.hourly_rate is not None:
            raise ValueError("Salaried employees need annual_salary and no hourly_rate")


@dataclass(frozen=True)
class PayPeriod:
    """A pay period; ``start_date`` must not be after ``end_date``."""

    start_date: date
    end_date: date
    pay_date: date

    def __post_init__(self) -> None:
        if self.start_date > self.end_date:
            raise ValueError(
                f"Pay period start {self.start_date} is after end {self.end_date}"
            )

    @property
    def label(self) -> str:
        return f"{self.start_date.isoformat()} to {self.end_date.isoformat()}"

    @property
    def tax_year(self) -> int:
        return self.pay_date.year


@dataclass(frozen=True)
class YtdAccumulators:
    """Calendar-year totals from earlier active records of one employee."""

    gross_pay: Decimal = ZERO
    social_security: Decimal = ZERO
    medicare: Decimal = ZERO
    sdi: Decimal = ZERO
    pfl: Decimal = ZERO

    def plus(self, result: PayrollResult) -> YtdAccumulators:
        """Totals after ``result`` is added."""
        return YtdAccumulators(
            gross_pay=self.gross_pay + result.gross_pay,
            social_security=self.social_security + result.social_security_employee,
            medicare=self.medicare + result.medicare_employee + result.additional_medicare,
            sdi=self.sdi + result.sdi,
            pfl=self.pfl + result.pfl,
        )


@dataclass(frozen=True)
class CompanyRates:
    """Employer rate settings; SUI and FUTA are percents (2.1 == 2.1%)."""

    sui_rate: Decimal = ZERO
    futa_rate: Decimal | None = DEFAULT_FUTA_RATE_PERCENT
    overtime_multiplier: Decimal = DEFAULT_OVERTIME_MULTIPLIER


@dataclass(frozen=True)
class PayrollInput:
    profile: EmployeeTaxProfile
    period: PayPeriod
    regular_hours: Decimal = ZERO
    overtime_hours: Decimal = ZERO
    ytd: YtdAccumulators = field(default_factory=YtdAccumulators)
    company_rates: CompanyRates = field(default_factory=CompanyRates)
    deductions: tuple[DeductionDefinition, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "regular_hours", to_decimal(self.regular_hours))
        object.__setattr__(self, "overtime_hours", to_decimal(self.overtime_hours))
        object.__setattr__(self, "deductions", tuple(self.deductions))


@dataclass(frozen=True)
class PayrollResult:
    """Gross-to-net breakdown for one employee and one period."""

    hourly_rate: Decimal
    regular_hours: Decimal
    overtime_hours: Decimal

    # Earnings
    regular_pay: Decimal
    overtime_pay: Decimal
    gross_pay: Decimal

    # Pre-tax deductions
    pre_tax_deductions: tuple[DeductionBreakdown, ...]
    total_pre_tax_deductions: Decimal
    taxable_wages: Decimal

    # Employee withholdings
    federal_income_tax: Decimal
    state_income_tax: Decimal
    local_tax: Decimal
    social_security_employee: Decimal
    medicare_employee: Decimal
    additional_medicare: Decimal
    sdi: Decimal
    pfl: Decimal
    total_tax_withholdings: Decimal

    # Post-tax deductions
    post_tax_deductions: tuple[DeductionBreakdown, ...]
    total_post_tax_deductions: Decimal

    total_deductions: Decimal
    net_pay: Decimal

    # Employer cost (gross excluded)
    social_security_employer: Decimal
    medicare_employer: Decimal
    sui_employer: Decimal
    futa_employer: Decimal
    total_employer_cost: Decimal

    tax_year: int

    @property
    def all_deductions(self) -> tuple[DeductionBreakdown, ...]:
        return self.pre_tax_deductions + self.post_tax_deductions


def normalize_hours(
    profile: EmployeeTaxProfile,
    regular_hours: Decimal,
    overtime_hours: Decimal,
) -> tuple[Decimal, Decimal, Decimal]:
    """
    Return (hourly_rate, regular_hours, overtime_hours) for the gross step.

    Salaried employees are paid as 40 regular hours at
    ``annual_salary / 52 / 40`` with no overtime, whatever hours were sent.
    """
    if profile.pay_type == PayType.SALARY:
        rate = profile.annual_salary / SALARY_PERIODS_PER_YEAR / STANDARD_WEEKLY_HOURS
        return rate, STANDARD_WEEKLY_HOURS, ZERO
    return profile.hourly_rate, regular_hours, overtime_hours


def _wage_base_taxable(gross: Decimal, ytd_gross: Decimal, wage_base: Decimal | None) -> Decimal:
    if wage_base is None:
        return gross
    return min(gross, max(ZERO, wage_base - ytd_gross))


def _capped(amount: Decimal, per_period_max: Decimal | None, annual_max: Decimal | None,
            ytd: Decimal) -> Decimal:
    if per_period_max is not None:
        amount = min(amount, per_period_max)
    if annual_max is not None:
        amount = min(amount, max(ZERO, annual_max - ytd))
    return amount


def _additional_medicare(gross: Decimal, ytd_gross: Decimal, rate: Decimal,
                         threshold: Decimal) -> Decimal:
    new_ytd = ytd_gross + gross
    if new_ytd <= threshold:
        return ZERO
    if ytd_gross >= threshold:
        return gross * rate
    return (new_ytd - threshold) * rate


@traced_engine("payroll", "1.0", fingerprint_fields=("payroll_input",))
def calculate_payroll(payroll_input: PayrollInput, rules: TaxYearRules) -> PayrollResult:
    """
    Compute the full gross-to-net result.

    Never raises for structurally valid input.  Negative remaining caps
    clamp to zero.
    """
    profile = payroll_input.profile
    ytd = payroll_input.ytd
    rates = payroll_input.company_rates

    # 1. Gross
    hourly_rate, regular_hours, overtime_hours = normalize_hours(
        profile, payroll_input.regular_hours, payroll_input.overtime_hours
    )
    multiplier = to_decimal(rates.overtime_multiplier, DEFAULT_OVERTIME_MULTIPLIER)
    regular_pay = round_money(regular_hours * hourly_rate)
    overtime_pay = round_money(overtime_hours * hourly_rate * multiplier)
    gross = regular_pay + overtime_pay

    # 2. Pre-tax deductions
    pre_tax_lines, total_pre_tax = apply_deductions(
        payroll_input.deductions, gross, pre_tax=True
    )
    taxable_wages = gross - total_pre_tax

    # 3. Wage-base-limited taxes, on gross
    ss_taxable = _wage_base_taxable(gross, ytd.gross_pay, rules.social_security.wage_base)
    social_security = round_money(ss_taxable * rules.social_security.rate)

    sui_rate = to_decimal(rates.sui_rate) / _HUNDRED
    if rates.futa_rate is None:
        futa_rate = rules.unemployment.default_futa_rate
    else:
        futa_rate = to_decimal(rates.futa_rate) / _HUNDRED
    sui_employer = round_money(
        _wage_base_taxable(gross, ytd.gross_pay, rules.unemployment.sui_wage_base) * sui_rate
    )
    futa_employer = round_money(
        _wage_base_taxable(gross, ytd.gross_pay, rules.unemployment.futa_wage_base) * futa_rate
    )

    # 4. Flat-rate taxes, on gross
    medicare = round_money(gross * rules.medicare.rate)
    sdi = ZERO
    if profile.disability_withholding:
        sdi = round_money(
            _capped(gross * rules.sdi.rate, rules.sdi.per_period_max, rules.sdi.annual_max, ytd.sdi)
        )
    pfl = ZERO
    if profile.pfl_withholding:
        pfl = round_money(
            _capped(gross * rules.pfl.rate, rules.pfl.per_period_max, rules.pfl.annual_max, ytd.pfl)
        )

    # 5. Additional Medicare
    additional_medicare = round_money(
        _additional_medicare(
            gross,
            ytd.gross_pay,
            rules.additional_medicare.rate,
            rules.additional_medicare.threshold,
        )
    )

    # 6. Income tax, on taxable wages
    periods = rules.periods_per_year
    federal = ZERO
    if profile.federal_withholding:
        federal = round_money(
            estimate_period_income_tax(
                taxable_wages, rules.federal, profile.filing_status, profile.allowances, periods
            )
        )
    state = ZERO
    if profile.state_withholding:
        state = round_money(
            estimate_period_income_tax(
                taxable_wages, rules.state, profile.filing_status, profile.allowances, periods
            )
        )

    # 7. Local
    local = ZERO
    if profile.nyc_resident:
        annual_local = taxable_wages * periods * rules.local.nyc_rate
        local = round_money(annual_local / periods) if periods > 0 else ZERO
    elif profile.yonkers_resident:
        local = round_money(state * rules.local.yonkers_resident_surcharge)

    total_withholdings = (
        federal + state + local + social_security + medicare
        + additional_medicare + sdi + pfl
    )

    # 8. Post-tax deductions
    post_tax_lines, total_post_tax = apply_deductions(
        payroll_input.deductions, gross, pre_tax=False
    )

    total_deductions = total_pre_tax + total_withholdings + total_post_tax
    net_pay = gross - total_deductions

    return PayrollResult(
        hourly_rate=hourly_rate,
        regular_hours=regular_hours,
        overtime_hours=overtime_hours,
        regular_pay=regular_pay,
        overtime_pay=overtime_pay,
        gross_pay=gross,
        pre_tax_deductions=pre_tax_lines,
        total_pre_tax_deductions=total_pre_tax,
        taxable_wages=taxable_wages,
        federal_income_tax=federal,
        state_income_tax=state,
        local_tax=local,
        social_security_employee=social_security,
        medicare_employee=medicare,
        additional_medicare=additional_medicare,
        sdi=sdi,
        pfl=pfl,
        total_tax_withholdings=total_withholdings,
        post_tax_deductions=post_tax_lines,
        total_post_tax_deductions=total_post_tax,
        total_deductions=total_deductions,
        net_pay=net_pay,
        social_security_employer=social_security,
        medicare_employer=medicare,
        sui_employer=sui_employer,
        futa_employer=futa_employer,
        total_employer_cost=social_security + medicare + sui_employer + futa_employer,
        tax_year=rules.tax_year,
    )
