"""
Tests for ReportingService against a populated ledger.

The ledger holds an owner contribution, parts sales, one weekly payroll
run for the reference employee ($1000 gross, $103.50 employer taxes) and
a rent payment.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from paybook_kernel.exceptions import AccountNotFoundError
from paybook_modules.payroll.models import EmployeeHours
from paybook_modules.reporting.config import ReportingConfig
from paybook_modules.reporting.models import ReportType
from paybook_modules.reporting.service import ReportingService

YEAR_START = date(2025, 1, 1)
MID_YEAR = date(2025, 6, 30)


def _manual(gl_service, company_id, actor_id, entry_date, memo, debit_code, credit_code, amount):
    return gl_service.create_manual_entry(
        company_id,
        entry_date,
        memo,
        [
            {"account": debit_code, "debit": amount},
            {"account": credit_code, "credit": amount},
        ],
        actor_id,
    )


@pytest.fixture
def reporting(session, deterministic_clock):
    return ReportingService(
        session,
        deterministic_clock,
        ReportingConfig(entity_name="Riverside Auto Salvage"),
    )


@pytest.fixture
def ledger(gl_service, payroll_service, seeded_company, make_employee, weekly_period,
           test_actor_id):
    company_id = seeded_company.id
    _manual(gl_service, company_id, test_actor_id, date(2025, 1, 2),
            "Owner contribution", "1000", "3000", "20000")
    _manual(gl_service, company_id, test_actor_id, date(2025, 4, 1),
            "Q1 parts sales", "1000", "4000", "5000")
    employee = make_employee()
    run = payroll_service.run_payroll(
        company_id, weekly_period, [EmployeeHours(employee.id, Decimal("40"))], test_actor_id,
    )
    rent = _manual(gl_service, company_id, test_actor_id, date(2025, 6, 1),
                   "June rent", "6100", "1000", "1500")
    return {"company_id": company_id, "payroll_entry_id": run.journal_entry_id, "rent": rent}


class TestTrialBalance:

    def test_balanced(self, reporting, ledger):
        report = reporting.trial_balance(ledger["company_id"], MID_YEAR)
        assert report.is_balanced
        assert report.total_debits == report.total_credits
        assert report.metadata.report_type == ReportType.TRIAL_BALANCE
        assert report.metadata.entity_name == "Riverside Auto Salvage"
        assert report.metadata.generated_at == "2025-06-30T12:00:00+00:00"

    def test_as_of_date_excludes_later_entries(self, reporting, ledger):
        report = reporting.trial_balance(ledger["company_id"], date(2025, 1, 31))
        assert {b.code for b in report.accounts} == {"1000", "3000"}
        assert report.total_debits == Decimal("20000.00")

    def test_logs_totals(self, reporting, ledger, captured_logs):
        reporting.trial_balance(ledger["company_id"], MID_YEAR)
        record = [r for r in captured_logs() if r["message"] == "trial_balance_generated"][0]
        assert record["is_balanced"] is True
        assert record["total_debits"] == record["total_credits"]


class TestProfitAndLoss:

    def test_year_to_date(self, reporting, ledger):
        report = reporting.profit_and_loss(ledger["company_id"], YEAR_START, MID_YEAR)
        assert report.total_revenue == Decimal("5000.00")
        assert report.total_expenses == Decimal("2603.50")
        assert report.net_income == Decimal("2396.50")
        expenses = {b.code: b.balance for b in report.expenses}
        assert expenses == {
            "6000": Decimal("1000.00"),
            "6010": Decimal("103.50"),
            "6100": Decimal("1500.00"),
        }

    def test_period_bounds(self, reporting, ledger):
        report = reporting.profit_and_loss(ledger["company_id"], date(2025, 4, 1), MID_YEAR)
        assert report.total_expenses == Decimal("1500.00")
        assert report.net_income == Decimal("3500.00")

    def test_voided_entries_are_excluded(self, reporting, gl_service, ledger, test_actor_id):
        gl_service.void_journal_entry(ledger["rent"].id, "Duplicate", test_actor_id)
        report = reporting.profit_and_loss(ledger["company_id"], YEAR_START, MID_YEAR)
        assert report.total_expenses == Decimal("1103.50")

    def test_end_before_start(self, reporting, ledger):
        with pytest.raises(ValueError):
            reporting.profit_and_loss(ledger["company_id"], MID_YEAR, YEAR_START)


class TestBalanceSheet:

    def test_balanced_with_retained_earnings(self, reporting, ledger):
        report = reporting.balance_sheet(ledger["company_id"], MID_YEAR)
        assert report.total_assets == Decimal("23500.00")
        assert report.total_liabilities == Decimal("1103.50")
        assert report.total_equity == Decimal("20000.00")
        assert report.retained_earnings == Decimal("2396.50")
        assert report.is_balanced

    def test_payroll_liabilities_are_listed(self, reporting, ledger):
        report = reporting.balance_sheet(ledger["company_id"], MID_YEAR)
        liabilities = {b.code: b.balance for b in report.liabilities}
        assert liabilities["2100"] == Decimal("794.22")
        assert liabilities["2130"] == Decimal("124.00")


class TestGeneralLedger:

    def test_single_account(self, reporting, accounts_by_code, ledger):
        report = reporting.general_ledger(
            ledger["company_id"], YEAR_START, MID_YEAR, accounts_by_code["1000"].id,
        )
        assert len(report.accounts) == 1
        cash = report.accounts[0]
        assert [line.entry_date for line in cash.lines] == [
            date(2025, 1, 2), date(2025, 4, 1), date(2025, 6, 1),
        ]
        assert cash.ending_balance == Decimal("23500.00")

    def test_payroll_lines_carry_source(self, reporting, accounts_by_code, ledger):
        report = reporting.general_ledger(
            ledger["company_id"], YEAR_START, MID_YEAR, accounts_by_code["6000"].id,
        )
        (line,) = report.accounts[0].lines
        assert line.source == "payroll"
        assert line.memo.startswith("Payroll: 2025-03-03 to 2025-03-09")
        assert line.running_balance == Decimal("1000.00")

    def test_all_accounts_in_code_order(self, reporting, ledger):
        report = reporting.general_ledger(ledger["company_id"], YEAR_START, MID_YEAR)
        codes = [section.code for section in report.accounts]
        assert codes == sorted(codes)
        assert "2100" in codes

    def test_unknown_account(self, reporting, ledger):
        with pytest.raises(AccountNotFoundError):
            reporting.general_ledger(ledger["company_id"], YEAR_START, MID_YEAR, uuid4())

    def test_end_before_start(self, reporting, ledger):
        with pytest.raises(ValueError):
            reporting.general_ledger(ledger["company_id"], MID_YEAR, YEAR_START)


class TestAccountBalances:

    def test_lists_every_active_account(self, reporting, gl_service, ledger):
        balances = reporting.get_account_balances(ledger["company_id"])
        assert len(balances) == len(gl_service.list_accounts(ledger["company_id"]))

    def test_to_dict(self, reporting, ledger):
        data = reporting.to_dict(reporting.balance_sheet(ledger["company_id"], MID_YEAR))
        assert data["metadata"]["report_type"] == "balance_sheet"
        assert data["total_assets"] == "23500.00"
