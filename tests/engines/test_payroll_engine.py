"""
Tests for the gross-to-net engine (paybook_engines.payroll).

Reference employee throughout: single, no allowances, $25/hour for 40
hours in a weekly 2025 period, no prior year-to-date wages.

    federal  (52000 - 15000) -> 4201.50 / 52 = 80.80
    state    (52000 -  7400) -> 2288.00 / 52 = 44.00
    SS 62.00, Medicare 14.50, SDI 0.60 (per-period cap), PFL 3.88
    net      1000.00 - 205.78 = 794.22
"""

from datetime import date
from decimal import Decimal

import pytest

from paybook_config import get_tax_rules
from paybook_engines.deductions import AmountType, DeductionDefinition
from paybook_engines.payroll import (
    CompanyRates,
    EmployeeTaxProfile,
    PayPeriod,
    PayrollInput,
    PayType,
    YtdAccumulators,
    calculate_payroll,
    normalize_hours,
)

PERIOD = PayPeriod(date(2025, 3, 3), date(2025, 3, 9), date(2025, 3, 14))
COMPANY = CompanyRates(sui_rate=Decimal("2.1"), futa_rate=Decimal("0.6"))


@pytest.fixture
def rules():
    return get_tax_rules(2025)


def _calc(rules, profile=None, regular="40", overtime="0", ytd=None,
          company=COMPANY, deductions=()):
    return calculate_payroll(
        PayrollInput(
            profile=profile or EmployeeTaxProfile(hourly_rate=Decimal("25")),
            period=PERIOD,
            regular_hours=Decimal(regular),
            overtime_hours=Decimal(overtime),
            ytd=ytd or YtdAccumulators(),
            company_rates=company,
            deductions=tuple(deductions),
        ),
        rules,
    )


class TestReferenceEmployee:

    def test_withholdings(self, rules):
        result = _calc(rules)
        assert result.gross_pay == Decimal("1000.00")
        assert result.taxable_wages == Decimal("1000.00")
        assert result.federal_income_tax == Decimal("80.80")
        assert result.state_income_tax == Decimal("44.00")
        assert result.social_security_employee == Decimal("62.00")
        assert result.medicare_employee == Decimal("14.50")
        assert result.additional_medicare == Decimal("0.00")
        assert result.sdi == Decimal("0.60")
        assert result.pfl == Decimal("3.88")
        assert result.local_tax == Decimal("0")
        assert result.total_tax_withholdings == Decimal("205.78")
        assert result.net_pay == Decimal("794.22")
        assert result.tax_year == 2025

    def test_employer_cost(self, rules):
        result = _calc(rules)
        assert result.social_security_employer == Decimal("62.00")
        assert result.medicare_employer == Decimal("14.50")
        assert result.sui_employer == Decimal("21.00")
        assert result.futa_employer == Decimal("6.00")
        assert result.total_employer_cost == Decimal("103.50")

    def test_default_company_rates(self, rules):
        result = _calc(rules, company=CompanyRates())
        assert result.sui_employer == Decimal("0.00")
        assert result.futa_employer == Decimal("6.00")
        assert result.total_employer_cost == Decimal("82.50")

    def test_futa_none_falls_back_to_rule_default(self, rules):
        result = _calc(rules, company=CompanyRates(futa_rate=None))
        assert result.futa_employer == Decimal("6.00")

    def test_net_pay_identity(self, rules):
        result = _calc(rules)
        assert result.net_pay == (
            result.gross_pay
            - result.total_pre_tax_deductions
            - result.total_tax_withholdings
            - result.total_post_tax_deductions
        )


class TestGross:

    def test_overtime_at_time_and_a_half(self, rules):
        profile = EmployeeTaxProfile(hourly_rate=Decimal("20"))
        result = _calc(rules, profile=profile, regular="40", overtime="5")
        assert result.regular_pay == Decimal("800.00")
        assert result.overtime_pay == Decimal("150.00")
        assert result.gross_pay == Decimal("950.00")

    def test_custom_overtime_multiplier(self, rules):
        profile = EmployeeTaxProfile(hourly_rate=Decimal("20"))
        company = CompanyRates(overtime_multiplier=Decimal("2"))
        result = _calc(rules, profile=profile, overtime="5", company=company)
        assert result.overtime_pay == Decimal("200.00")

    def test_salaried_ignores_hours(self, rules):
        profile = EmployeeTaxProfile(pay_type=PayType.SALARY, annual_salary=Decimal("52000"))
        result = _calc(rules, profile=profile, regular="12", overtime="9")
        assert result.regular_hours == Decimal("40")
        assert result.overtime_hours == Decimal("0")
        assert result.gross_pay == Decimal("1000.00")
        assert result.net_pay == Decimal("794.22")

    def test_zero_hours(self, rules):
        result = _calc(rules, regular="0")
        assert result.gross_pay == Decimal("0.00")
        assert result.net_pay == Decimal("0.00")
        assert result.total_employer_cost == Decimal("0.00")

    def test_negative_hours_give_negative_gross(self, rules):
        # Range checks on hours belong to the caller
        result = _calc(rules, regular="-2")
        assert result.gross_pay == Decimal("-50.00")
        assert result.net_pay == result.gross_pay - result.total_deductions

    def test_negative_allowances_are_computed(self, rules):
        profile = EmployeeTaxProfile(hourly_rate=Decimal("25"), allowances=-1)
        result = _calc(rules, profile=profile)
        assert result.federal_income_tax == Decimal("80.80")
        assert result.net_pay == result.gross_pay - result.total_deductions

    def test_normalize_hours_hourly_passthrough(self):
        profile = EmployeeTaxProfile(hourly_rate=Decimal("18"))
        assert normalize_hours(profile, Decimal("37.5"), Decimal("2")) == (
            Decimal("18"), Decimal("37.5"), Decimal("2"),
        )


class TestProfileValidation:

    def test_hourly_requires_rate(self):
        with pytest.raises(ValueError):
            EmployeeTaxProfile(pay_type="hourly")

    def test_salary_rejects_hourly_rate(self):
        with pytest.raises(ValueError):
            EmployeeTaxProfile(pay_type="salary", annual_salary=Decimal("1"), hourly_rate=Decimal("1"))

    def test_period_order(self):
        with pytest.raises(ValueError):
            PayPeriod(date(2025, 3, 9), date(2025, 3, 3), date(2025, 3, 14))


class TestWageBases:

    def test_social_security_stops_at_wage_base(self, rules):
        result = _calc(rules, ytd=YtdAccumulators(gross_pay=Decimal("176100")))
        assert result.social_security_employee == Decimal("0.00")
        assert result.social_security_employer == Decimal("0.00")

    def test_social_security_partial_at_wage_base(self, rules):
        result = _calc(rules, ytd=YtdAccumulators(gross_pay=Decimal("175600")))
        assert result.social_security_employee == Decimal("31.00")

    def test_unemployment_stops_at_wage_bases(self, rules):
        result = _calc(rules, ytd=YtdAccumulators(gross_pay=Decimal("13000")))
        assert result.sui_employer == Decimal("0.00")
        assert result.futa_employer == Decimal("0.00")

    def test_medicare_has_no_wage_base(self, rules):
        result = _calc(rules, ytd=YtdAccumulators(gross_pay=Decimal("500000")))
        assert result.medicare_employee == Decimal("14.50")


class TestAdditionalMedicare:

    def test_crossing_threshold_taxes_only_the_excess(self, rules):
        result = _calc(rules, ytd=YtdAccumulators(gross_pay=Decimal("199500")))
        assert result.additional_medicare == Decimal("4.50")

    def test_above_threshold_taxes_all_gross(self, rules):
        result = _calc(rules, ytd=YtdAccumulators(gross_pay=Decimal("200000")))
        assert result.additional_medicare == Decimal("9.00")

    def test_employer_does_not_match(self, rules):
        result = _calc(rules, ytd=YtdAccumulators(gross_pay=Decimal("250000")))
        assert result.medicare_employer == result.medicare_employee


class TestCappedContributions:

    def test_pfl_annual_cap(self, rules):
        result = _calc(rules, ytd=YtdAccumulators(pfl=Decimal("353.00")))
        assert result.pfl == Decimal("1.53")

    def test_sdi_annual_cap(self, rules):
        result = _calc(rules, ytd=YtdAccumulators(sdi=Decimal("31.20")))
        assert result.sdi == Decimal("0.00")

    def test_opt_outs(self, rules):
        profile = EmployeeTaxProfile(
            hourly_rate=Decimal("25"),
            federal_withholding=False,
            state_withholding=False,
            disability_withholding=False,
            pfl_withholding=False,
        )
        result = _calc(rules, profile=profile)
        assert result.federal_income_tax == Decimal("0")
        assert result.state_income_tax == Decimal("0")
        assert result.sdi == Decimal("0")
        assert result.pfl == Decimal("0")
        # FICA is never optional
        assert result.social_security_employee == Decimal("62.00")


class TestLocalTax:

    def test_nyc_resident(self, rules):
        profile = EmployeeTaxProfile(hourly_rate=Decimal("25"), nyc_resident=True)
        assert _calc(rules, profile=profile).local_tax == Decimal("38.76")

    def test_yonkers_resident_surcharge_on_state_tax(self, rules):
        profile = EmployeeTaxProfile(hourly_rate=Decimal("25"), yonkers_resident=True)
        assert _calc(rules, profile=profile).local_tax == Decimal("7.25")

    def test_nyc_takes_precedence(self, rules):
        profile = EmployeeTaxProfile(
            hourly_rate=Decimal("25"), nyc_resident=True, yonkers_resident=True
        )
        assert _calc(rules, profile=profile).local_tax == Decimal("38.76")


class TestDeductions:

    def test_pre_tax_reduces_income_tax_base_not_fica(self, rules):
        k401 = DeductionDefinition(
            deduction_type="401k",
            name="401(k)",
            amount_type=AmountType.PERCENTAGE,
            amount=Decimal("5"),
            pre_tax=True,
        )
        result = _calc(rules, deductions=[k401])
        assert result.total_pre_tax_deductions == Decimal("50.00")
        assert result.taxable_wages == Decimal("950.00")
        assert result.social_security_employee == Decimal("62.00")
        assert result.federal_income_tax < Decimal("80.80")

    def test_post_tax_reduces_net_only(self, rules):
        loan = DeductionDefinition(
            deduction_type="loan",
            name="Tool loan",
            amount_type=AmountType.FIXED,
            amount=Decimal("40"),
            pre_tax=False,
        )
        result = _calc(rules, deductions=[loan])
        assert result.taxable_wages == Decimal("1000.00")
        assert result.total_post_tax_deductions == Decimal("40.00")
        assert result.net_pay == Decimal("754.22")
        assert [d.name for d in result.all_deductions] == ["Tool loan"]
