"""
Payroll Domain Models (``paybook_modules.payroll.models``).

Responsibility
--------------
Frozen dataclass value objects returned by ``PayrollService``: employees,
payroll records, lifecycle results and the tax-liability summary.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.

Invariants enforced
-------------------
* Inputs and results are frozen dataclasses; a result cannot be edited after the engine returns it.
* Wages, taxes and deductions are ``Decimal`` rounded to the cent.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from paybook_engines.deductions import DeductionBreakdown
from paybook_engines.payroll import FilingStatus, PayType
from paybook_kernel.db.types import ZERO


class PayrollRecordStatus(str, Enum):
    """Payroll record lifecycle states.  Only ACTIVE transitions."""

    ACTIVE = "active"
    VOIDED = "voided"
    CORRECTED = "corrected"


@dataclass(frozen=True)
class Employee:
    """An employee for payroll purposes."""

    id: UUID
    company_id: UUID
    employee_number: str
    first_name: str
    last_name: str
    pay_type: PayType
    hourly_rate: Decimal | None
    annual_salary: Decimal | None
    filing_status: FilingStatus = FilingStatus.SINGLE
    allowances: int = 0
    is_active: bool = True

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


@dataclass(frozen=True)
class EmployeeHours:
    """Hours worked by one employee in a pay period."""

    employee_id: UUID
    regular_hours: Decimal = ZERO
    overtime_hours: Decimal = ZERO


@dataclass(frozen=True)
class PayrollRecord:
    """A persisted payroll calculation."""

    id: UUID
    company_id: UUID
    employee_id: UUID
    period_start: date
    period_end: date
    pay_date: date
    status: PayrollRecordStatus
    regular_hours: Decimal
    overtime_hours: Decimal
    gross_pay: Decimal
    total_pre_tax_deductions: Decimal
    total_tax_withholdings: Decimal
    total_post_tax_deductions: Decimal
    net_pay: Decimal
    total_employer_cost: Decimal
    deductions: tuple[DeductionBreakdown, ...] = ()
    journal_entry_id: UUID | None = None
    original_record_id: UUID | None = None
    replacement_record_id: UUID | None = None
    voided_at: datetime | None = None
    void_reason: str | None = None


@dataclass(frozen=True)
class DeductionReversal:
    """YTD reduction applied to one employee deduction by a void/correct."""

    employee_deduction_id: UUID
    deduction_type: str
    amount_reversed: Decimal
    ytd_before: Decimal
    ytd_after: Decimal


@dataclass(frozen=True)
class VoidResult:
    record: PayrollRecord
    deduction_reversals: tuple[DeductionReversal, ...] = ()
    reversing_entry_id: UUID | None = None


@dataclass(frozen=True)
class CorrectionResult:
    original: PayrollRecord
    replacement: PayrollRecord
    deduction_reversals: tuple[DeductionReversal, ...] = ()
    reversing_entry_id: UUID | None = None
    replacement_entry_id: UUID | None = None


@dataclass(frozen=True)
class PayrollRunResult:
    """Outcome of ``run_payroll`` for one pay period."""

    records: tuple[PayrollRecord, ...]
    skipped_employee_ids: tuple[UUID, ...] = ()
    journal_entry_id: UUID | None = None

    @property
    def total_gross_pay(self) -> Decimal:
        return sum((r.gross_pay for r in self.records), ZERO)

    @property
    def total_net_pay(self) -> Decimal:
        return sum((r.net_pay for r in self.records), ZERO)


@dataclass(frozen=True)
class TaxLiabilitySummary:
    """Withholding and employer-tax totals over active records in a range."""

    company_id: UUID
    start_date: date
    end_date: date
    record_count: int = 0
    gross_wages: Decimal = ZERO
    federal_income_tax: Decimal = ZERO
    state_income_tax: Decimal = ZERO
    local_tax: Decimal = ZERO
    social_security_employee: Decimal = ZERO
    social_security_employer: Decimal = ZERO
    medicare_employee: Decimal = ZERO
    medicare_employer: Decimal = ZERO
    additional_medicare: Decimal = ZERO
    sdi: Decimal = ZERO
    pfl: Decimal = ZERO
    futa_employer: Decimal = ZERO
    sui_employer: Decimal = ZERO
    by_pay_date: dict[date, Decimal] = field(default_factory=dict)

    @property
    def form_941_liability(self) -> Decimal:
        """Federal deposit liability: income tax plus both sides of FICA."""
        return (
            self.federal_income_tax
            + self.social_security_employee
            + self.social_security_employer
            + self.medicare_employee
            + self.medicare_employer
            + self.additional_medicare
        )

    @property
    def state_liability(self) -> Decimal:
        return self.state_income_tax + self.local_tax + self.sdi + self.pfl + self.sui_employer

    @property
    def futa_liability(self) -> Decimal:
        return self.futa_employer
