"""
Tests for the payroll -> ledger bridge (paybook_modules.payroll.posting).

Uses the reference weekly record: $1000 gross, $794.22 net, employer
SUI 2.1% and FUTA 0.6%.
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from paybook_kernel.domain.journal import JournalLineInput, JournalSource
from paybook_kernel.exceptions import MissingAccountsError
from paybook_modules.payroll import posting as posting_module
from paybook_modules.payroll.config import PayrollConfig
from paybook_modules.payroll.models import EmployeeHours, PayrollRecordStatus
from paybook_modules.payroll.orm import PayrollRecordModel
from paybook_modules.payroll.posting import PayrollPostingService
from paybook_modules.payroll.profiles import AccountRole


@pytest.fixture
def posting(session, deterministic_clock):
    return PayrollPostingService(session, deterministic_clock)


@pytest.fixture
def run_record(session, payroll_service, company, weekly_period, test_actor_id):
    """Persist one unposted record and return its ORM row."""

    def _run(employee):
        result = payroll_service.run_payroll(
            company.id, weekly_period,
            [EmployeeHours(employee.id, Decimal("40"))], test_actor_id,
            post_to_ledger=False,
        )
        return session.get(PayrollRecordModel, result.records[0].id)

    return _run


def _amounts(lines, accounts_by_code):
    codes = {acct.id: code for code, acct in accounts_by_code.items()}
    return {
        codes[line.account_id]: (line.debit, line.credit)
        for line in lines
    }


def _garnishment(amount="100"):
    return {
        "deduction_type": "garnishment", "name": "Child support",
        "amount_type": "fixed", "amount": amount, "pre_tax": False,
    }


def _entry_amounts(entry_info):
    return {line.account_code: (line.debit, line.credit) for line in entry_info.lines}


class TestResolveAccounts:

    def test_default_chart_resolves_every_role(self, posting, seeded_company):
        resolved = posting.resolve_accounts(seeded_company.id)
        assert set(resolved) == set(AccountRole)
        assert resolved[AccountRole.NET_PAY_PAYABLE].code == "2100"

    def test_missing_required_account(self, posting, company):
        with pytest.raises(MissingAccountsError) as exc_info:
            posting.resolve_accounts(company.id)
        assert "6000" in exc_info.value.missing_codes

    def test_optional_deductions_account(self, session, posting, seeded_company,
                                         accounts_by_code):
        session.delete(accounts_by_code["2190"])
        session.flush()
        resolved = posting.resolve_accounts(seeded_company.id)
        assert AccountRole.DEDUCTIONS_PAYABLE not in resolved

    def test_custom_mapping(self, session, deterministic_clock, gl_service, seeded_company,
                            test_actor_id):
        gl_service.create_account(seeded_company.id, "6005", "Shop Wages", "expense",
                                  test_actor_id)
        config = PayrollConfig(account_mappings={
            **PayrollConfig().account_mappings, AccountRole.WAGES_EXPENSE: "6005",
        })
        resolved = PayrollPostingService(session, deterministic_clock, config).resolve_accounts(
            seeded_company.id
        )
        assert resolved[AccountRole.WAGES_EXPENSE].code == "6005"


class TestBuildLines:

    def test_reference_record(self, posting, seeded_company, accounts_by_code, run_record,
                              make_employee):
        record = run_record(make_employee())
        lines = posting.build_lines([record], posting.resolve_accounts(seeded_company.id))
        amounts = _amounts(lines, accounts_by_code)

        zero = Decimal("0")
        assert amounts == {
            "6000": (Decimal("1000.00"), zero),
            "6010": (Decimal("103.50"), zero),
            "2110": (zero, Decimal("80.80")),
            "2120": (zero, Decimal("44.00")),
            "2130": (zero, Decimal("124.00")),
            "2140": (zero, Decimal("29.00")),
            "2150": (zero, Decimal("6.00")),
            "2160": (zero, Decimal("21.00")),
            "2170": (zero, Decimal("0.60")),
            "2180": (zero, Decimal("3.88")),
            "2100": (zero, Decimal("794.22")),
        }

    def test_deductions_line(self, posting, seeded_company, accounts_by_code, run_record,
                             make_employee):
        emp = make_employee(deductions=[_garnishment()])
        record = run_record(emp)
        amounts = _amounts(
            posting.build_lines([record], posting.resolve_accounts(seeded_company.id)),
            accounts_by_code,
        )
        assert amounts["2190"][1] == Decimal("100.00")
        assert amounts["2100"][1] == Decimal("694.22")

    def test_deductions_fold_into_net_pay_without_2190(self, session, posting, seeded_company,
                                                       accounts_by_code, run_record,
                                                       make_employee):
        emp = make_employee(deductions=[_garnishment()])
        record = run_record(emp)
        session.delete(accounts_by_code.pop("2190"))
        session.flush()

        lines = posting.build_lines([record], posting.resolve_accounts(seeded_company.id))
        amounts = _amounts(lines, accounts_by_code)
        assert amounts["2100"][1] == Decimal("794.22")
        assert sum(line.debit for line in lines) == sum(line.credit for line in lines)

    def test_local_tax_joins_state_line(self, posting, seeded_company, accounts_by_code,
                                        run_record, make_employee):
        record = run_record(make_employee(nyc_resident=True))
        amounts = _amounts(
            posting.build_lines([record], posting.resolve_accounts(seeded_company.id)),
            accounts_by_code,
        )
        assert amounts["2120"][1] == Decimal("82.76")

    def test_negative_net_pay_is_a_debit(self, session, payroll_service, posting,
                                         seeded_company, accounts_by_code, make_employee,
                                         weekly_period, test_actor_id):
        # $10 of wages against a $100 garnishment leaves net pay at -90.86
        emp = make_employee(hourly_rate="10", deductions=[_garnishment()])
        result = payroll_service.run_payroll(
            seeded_company.id, weekly_period, [EmployeeHours(emp.id, Decimal("1"))],
            test_actor_id, post_to_ledger=False,
        )
        record = session.get(PayrollRecordModel, result.records[0].id)
        assert record.net_pay == Decimal("-90.86")

        lines = posting.build_lines([record], posting.resolve_accounts(seeded_company.id))
        amounts = _amounts(lines, accounts_by_code)
        assert amounts["2100"] == (Decimal("90.86"), Decimal("0"))
        assert amounts["2190"] == (Decimal("0"), Decimal("100.00"))
        assert all(line.debit >= 0 and line.credit >= 0 for line in lines)
        assert sum(line.debit for line in lines) == sum(line.credit for line in lines)


class TestPosting:

    def test_post_stamps_records(self, posting, seeded_company, run_record, make_employee,
                                 weekly_period, test_actor_id):
        record = run_record(make_employee())
        entry = posting.create_payroll_journal_entries(
            seeded_company.id, [record.id], weekly_period.pay_date, weekly_period.label,
            test_actor_id,
        )
        assert entry is not None
        assert entry.reference_number == "PR-2025-03-03 to 2025-03-09"
        assert entry.source_id == str(record.id)
        assert record.journal_entry_id == entry.id

    def test_missing_accounts_returns_none(self, posting, company, run_record, make_employee,
                                           weekly_period, test_actor_id, captured_logs):
        record = run_record(make_employee())
        assert posting.create_payroll_journal_entries(
            company.id, [record.id], weekly_period.pay_date, weekly_period.label, test_actor_id,
        ) is None
        warning = [r for r in captured_logs()
                   if r["message"] == "payroll_posting_skipped_missing_accounts"][0]
        assert "2100" in warning["missing_codes"]

    def test_no_active_records_returns_none(self, posting, seeded_company, weekly_period,
                                            test_actor_id):
        assert posting.create_payroll_journal_entries(
            seeded_company.id, [uuid4()], weekly_period.pay_date, weekly_period.label,
            test_actor_id,
        ) is None

    def test_rounding_difference_absorbed_into_net_pay(self, posting, seeded_company,
                                                       accounts_by_code):
        net_id = accounts_by_code["2100"].id
        lines = [
            JournalLineInput(accounts_by_code["6000"].id, debit=Decimal("100.00")),
            JournalLineInput(net_id, credit=Decimal("99.99")),
        ]
        adjusted = posting._balance_on_net_pay(lines, net_id)
        assert adjusted[1].credit == Decimal("100.00")

    def test_large_difference_rejected(self, posting, accounts_by_code):
        net_id = accounts_by_code["2100"].id
        lines = [
            JournalLineInput(accounts_by_code["6000"].id, debit=Decimal("100.00")),
            JournalLineInput(net_id, credit=Decimal("90.00")),
        ]
        assert posting._balance_on_net_pay(lines, net_id) is None

    def test_negative_net_pay_batch_is_posted(self, payroll_service, gl_service,
                                              seeded_company, make_employee, weekly_period,
                                              test_actor_id):
        emp = make_employee(hourly_rate="10", deductions=[_garnishment()])
        result = payroll_service.run_payroll(
            seeded_company.id, weekly_period, [EmployeeHours(emp.id, Decimal("1"))],
            test_actor_id,
        )
        assert result.journal_entry_id is not None

        info = gl_service.get_journal_entry(result.journal_entry_id)
        assert info.total_debits == info.total_credits == Decimal("101.90")
        assert _entry_amounts(info)["2100"] == (Decimal("90.86"), Decimal("0"))

    def test_imbalance_above_tolerance_leaves_run_unposted(self, monkeypatch, session,
                                                           payroll_service, seeded_company,
                                                           make_employee, weekly_period,
                                                           test_actor_id, captured_logs):
        # Without the federal line the entry is off by the 80.80 withheld
        layout = tuple(
            m for m in posting_module.PAYROLL_POSTING_LINES
            if m.role != AccountRole.FEDERAL_TAX_PAYABLE
        )
        monkeypatch.setattr(posting_module, "PAYROLL_POSTING_LINES", layout)
        emp = make_employee()

        result = payroll_service.run_payroll(
            seeded_company.id, weekly_period, [EmployeeHours(emp.id, Decimal("40"))],
            test_actor_id,
        )

        assert result.journal_entry_id is None
        record = session.get(PayrollRecordModel, result.records[0].id)
        assert record.status == PayrollRecordStatus.ACTIVE.value
        assert record.journal_entry_id is None
        unbalanced = [r for r in captured_logs() if r["message"] == "payroll_posting_unbalanced"]
        assert unbalanced[0]["difference"] == "80.80"

    def test_lines_the_writer_would_refuse_are_skipped(self, posting, accounts_by_code,
                                                       captured_logs):
        lines = [
            JournalLineInput(accounts_by_code["6000"].id, debit=Decimal("10.00")),
            JournalLineInput(accounts_by_code["2100"].id, credit=Decimal("-10.00")),
        ]
        assert posting._rejected(lines, "payroll_posting_skipped_invalid_lines", {}) is True
        logged = [r for r in captured_logs()
                  if r["message"] == "payroll_posting_skipped_invalid_lines"][0]
        assert "MALFORMED_LINE" in logged["error_codes"]

    def test_valid_lines_are_not_rejected(self, posting, accounts_by_code):
        lines = [
            JournalLineInput(accounts_by_code["6000"].id, debit=Decimal("10.00")),
            JournalLineInput(accounts_by_code["2100"].id, credit=Decimal("10.00")),
        ]
        assert posting._rejected(lines, "payroll_posting_skipped_invalid_lines", {}) is False


class TestReversal:

    def test_reverse_one_record_of_a_batch(self, session, payroll_service, posting,
                                           gl_service, seeded_company, make_employee,
                                           weekly_period, test_actor_id):
        first, second = make_employee(), make_employee(hourly_rate="20")
        result = payroll_service.run_payroll(
            seeded_company.id, weekly_period,
            [EmployeeHours(first.id, Decimal("40")), EmployeeHours(second.id, Decimal("40"))],
            test_actor_id,
        )
        record = session.get(PayrollRecordModel, result.records[0].id)

        reversal = posting.reverse_record_posting(
            record, test_actor_id, JournalSource.PAYROLL_VOID, "Duplicate"
        )
        info = gl_service.get_journal_entry(reversal.id)
        wages = next(line for line in info.lines if line.account_code == "6000")
        assert wages.credit == record.gross_pay
        assert info.memo.startswith("Reversal of payroll 2025-03-03 to 2025-03-09")
        assert info.source_id == str(record.id)

    def test_unposted_record_is_not_reversed(self, posting, run_record, make_employee,
                                             test_actor_id):
        record = run_record(make_employee())
        assert posting.reverse_record_posting(
            record, test_actor_id, JournalSource.PAYROLL_VOID, "nothing to undo"
        ) is None

    def test_voided_entry_is_not_reversed(self, session, payroll_service, posting, gl_service,
                                          seeded_company, make_employee, weekly_period,
                                          test_actor_id):
        emp = make_employee()
        result = payroll_service.run_payroll(
            seeded_company.id, weekly_period, [EmployeeHours(emp.id, Decimal("40"))],
            test_actor_id,
        )
        gl_service.void_journal_entry(result.journal_entry_id, "posted in error", test_actor_id)
        record = session.get(PayrollRecordModel, result.records[0].id)
        assert posting.reverse_record_posting(
            record, test_actor_id, JournalSource.PAYROLL_VOID, "late void"
        ) is None

    def test_void_of_negative_net_pay_record(self, payroll_service, gl_service, seeded_company,
                                             make_employee, weekly_period, test_actor_id):
        emp = make_employee(hourly_rate="10", deductions=[_garnishment()])
        run = payroll_service.run_payroll(
            seeded_company.id, weekly_period, [EmployeeHours(emp.id, Decimal("1"))],
            test_actor_id,
        )

        voided = payroll_service.void_payroll_record(run.records[0].id, "Entered twice",
                                                     test_actor_id)

        assert voided.record.status == PayrollRecordStatus.VOIDED
        reversal = gl_service.get_journal_entry(voided.reversing_entry_id)
        assert _entry_amounts(reversal)["2100"] == (Decimal("0"), Decimal("90.86"))
