"""
Payroll ORM Persistence Models (``paybook_modules.payroll.orm``).

Responsibility:
    SQLAlchemy ORM models for employees, their recurring deductions,
    payroll records and the deduction lines taken on each record.

Architecture position:
    **Modules layer** -- persistence companions to the DTOs in
    ``paybook_modules.payroll.models``.  Inherits from ``TrackedBase``
    which provides id, created_at, updated_at, created_by_id (NOT NULL)
    and updated_by_id.

Invariants enforced:
    - Money columns are Numeric(38, 9) and load as Decimal.
    - Enum fields are stored as String(30) holding the enum value.
    - A payroll record keeps a full snapshot of its calculation: hours,
      rate, every withholding and employer component, the YTD totals it was
      computed against, and the checksum of the tax rules used.
    - ``original_record_id`` is set on a correction's replacement;
      ``replacement_record_id`` on the corrected original.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from paybook_kernel.db.base import TrackedBase, UUIDString
from paybook_kernel.db.types import ZERO

# ---------------------------------------------------------------------------
# EmployeeModel
# ---------------------------------------------------------------------------


class EmployeeModel(TrackedBase):
    """
    An employee of one company.

    Guarantees:
        - ``employee_number`` is unique within the company.
        - Exactly one of ``hourly_rate`` / ``annual_salary`` is set,
          matching ``pay_type`` (enforced when the tax profile is built).
    """

    __tablename__ = "payroll_employees"

    company_id: Mapped[UUID] = mapped_column(ForeignKey("companies.id"), nullable=False)
    employee_number: Mapped[str] = mapped_column(String(50), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)

    pay_type: Mapped[str] = mapped_column(String(30), nullable=False, default="hourly")
    hourly_rate: Mapped[Decimal | None] = mapped_column(nullable=True)
    annual_salary: Mapped[Decimal | None] = mapped_column(nullable=True)
    overtime_multiplier: Mapped[Decimal | None] = mapped_column(nullable=True)

    # W-4 and residency
    filing_status: Mapped[str] = mapped_column(String(30), nullable=False, default="single")
    allowances: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    nyc_resident: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    yonkers_resident: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Withholding switches
    federal_withholding: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    state_withholding: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    disability_withholding: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    pfl_withholding: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    hire_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    termination_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    deductions: Mapped[list["EmployeeDeductionModel"]] = relationship(
        back_populates="employee",
        lazy="selectin",
        order_by=lambda: [EmployeeDeductionModel.deduction_type, EmployeeDeductionModel.name],
    )

    __table_args__ = (
        UniqueConstraint("company_id", "employee_number", name="uq_payroll_employee_number"),
        Index("idx_payroll_employee_active", "company_id", "is_active"),
    )

    def to_profile(self):
        from paybook_engines.payroll import EmployeeTaxProfile

        return EmployeeTaxProfile(
            filing_status=self.filing_status,
            allowances=self.allowances or 0,
            nyc_resident=self.nyc_resident,
            yonkers_resident=self.yonkers_resident,
            federal_withholding=self.federal_withholding,
            state_withholding=self.state_withholding,
            disability_withholding=self.disability_withholding,
            pfl_withholding=self.pfl_withholding,
            pay_type=self.pay_type,
            hourly_rate=self.hourly_rate,
            annual_salary=self.annual_salary,
        )

    def to_dto(self):
        from paybook_engines.payroll import FilingStatus, PayType
        from paybook_modules.payroll.models import Employee

        return Employee(
            id=self.id,
            company_id=self.company_id,
            employee_number=self.employee_number,
            first_name=self.first_name,
            last_name=self.last_name,
            pay_type=PayType(self.pay_type),
            hourly_rate=self.hourly_rate,
            annual_salary=self.annual_salary,
            filing_status=FilingStatus(self.filing_status),
            allowances=self.allowances or 0,
            is_active=self.is_active,
        )

    def __repr__(self) -> str:
        return f"<EmployeeModel {self.employee_number}: {self.first_name} {self.last_name}>"


# ---------------------------------------------------------------------------
# EmployeeDeductionModel
# ---------------------------------------------------------------------------


class EmployeeDeductionModel(TrackedBase):
    """
    A recurring deduction (401k, health insurance, garnishment...).

    ``ytd_amount`` is the running total taken this year; payroll runs add
    to it and voids/corrections subtract from it, floored at zero.
    """

    __tablename__ = "payroll_employee_deductions"

    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_employees.id"), nullable=False
    )
    deduction_type: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    amount_type: Mapped[str] = mapped_column(String(30), nullable=False, default="fixed")
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    pre_tax: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    annual_limit: Mapped[Decimal | None] = mapped_column(nullable=True)
    ytd_amount: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    employee: Mapped["EmployeeModel"] = relationship(back_populates="deductions")

    __table_args__ = (
        Index("idx_payroll_deduction_employee_type", "employee_id", "deduction_type"),
    )

    def to_definition(self):
        from paybook_engines.deductions import DeductionDefinition

        return DeductionDefinition(
            deduction_type=self.deduction_type,
            name=self.name,
            amount_type=self.amount_type,
            amount=self.amount,
            pre_tax=self.pre_tax,
            annual_limit=self.annual_limit,
            ytd_amount=self.ytd_amount or ZERO,
        )

    def __repr__(self) -> str:
        return f"<EmployeeDeductionModel {self.deduction_type} {self.amount} ({self.amount_type})>"


# ---------------------------------------------------------------------------
# PayrollRecordModel
# ---------------------------------------------------------------------------


class PayrollRecordModel(TrackedBase):
    """
    One employee's payroll for one period.

    Contract:
        Status moves ACTIVE -> VOIDED or ACTIVE -> CORRECTED and never
        back.  Only ACTIVE records count toward YTD totals, the tax
        liability summary and new ledger postings.
    """

    __tablename__ = "payroll_records"

    company_id: Mapped[UUID] = mapped_column(ForeignKey("companies.id"), nullable=False)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_employees.id"), nullable=False
    )

    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    pay_date: Mapped[date] = mapped_column(Date, nullable=False)

    # Hours and rate actually used (salaried employees are normalized)
    regular_hours: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    overtime_hours: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    hourly_rate: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)

    # Earnings
    regular_pay: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    overtime_pay: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    gross_pay: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    total_pre_tax_deductions: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    taxable_wages: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)

    # Employee withholdings
    federal_income_tax: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    state_income_tax: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    local_tax: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    social_security_employee: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    medicare_employee: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    additional_medicare: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    sdi: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    pfl: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    total_tax_withholdings: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)

    total_post_tax_deductions: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    total_deductions: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    net_pay: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)

    # Employer cost
    social_security_employer: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    medicare_employer: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    sui_employer: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    futa_employer: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    total_employer_cost: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)

    # YTD snapshot the calculation ran against
    ytd_gross_pay: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    ytd_social_security: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    ytd_medicare: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    ytd_sdi: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    ytd_pfl: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)

    tax_year: Mapped[int] = mapped_column(Integer, nullable=False)
    rules_checksum: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # Lifecycle
    status: Mapped[str] = mapped_column(String(30), nullable=False, default="active")
    voided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    voided_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    void_reason: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    original_record_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("payroll_records.id"), nullable=True
    )
    replacement_record_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    journal_entry_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("journal_entries.id"), nullable=True
    )

    deduction_lines: Mapped[list["PayrollDeductionLineModel"]] = relationship(
        back_populates="record",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="PayrollDeductionLineModel.line_seq",
    )

    __table_args__ = (
        Index("idx_payroll_record_employee_pay_date", "employee_id", "pay_date"),
        Index("idx_payroll_record_company_status", "company_id", "status"),
    )

    def deduction_totals_by_type(self) -> dict[str, Decimal]:
        totals: dict[str, Decimal] = {}
        for line in self.deduction_lines:
            totals[line.deduction_type] = totals.get(line.deduction_type, ZERO) + line.amount
        return totals

    def to_dto(self):
        from paybook_engines.deductions import DeductionBreakdown
        from paybook_modules.payroll.models import PayrollRecord, PayrollRecordStatus

        return PayrollRecord(
            id=self.id,
            company_id=self.company_id,
            employee_id=self.employee_id,
            period_start=self.period_start,
            period_end=self.period_end,
            pay_date=self.pay_date,
            status=PayrollRecordStatus(self.status),
            regular_hours=self.regular_hours,
            overtime_hours=self.overtime_hours,
            gross_pay=self.gross_pay,
            total_pre_tax_deductions=self.total_pre_tax_deductions,
            total_tax_withholdings=self.total_tax_withholdings,
            total_post_tax_deductions=self.total_post_tax_deductions,
            net_pay=self.net_pay,
            total_employer_cost=self.total_employer_cost,
            deductions=tuple(
                DeductionBreakdown(
                    deduction_type=line.deduction_type,
                    name=line.name,
                    amount=line.amount,
                    pre_tax=line.pre_tax,
                )
                for line in self.deduction_lines
            ),
            journal_entry_id=self.journal_entry_id,
            original_record_id=self.original_record_id,
            replacement_record_id=self.replacement_record_id,
            voided_at=self.voided_at,
            void_reason=self.void_reason,
        )

    def __repr__(self) -> str:
        return (
            f"<PayrollRecordModel {self.employee_id} {self.period_start}..{self.period_end} "
            f"gross={self.gross_pay} [{self.status}]>"
        )


# ---------------------------------------------------------------------------
# PayrollDeductionLineModel
# ---------------------------------------------------------------------------


class PayrollDeductionLineModel(TrackedBase):
    """A deduction taken on one payroll record."""

    __tablename__ = "payroll_deduction_lines"

    record_id: Mapped[UUID] = mapped_column(ForeignKey("payroll_records.id"), nullable=False)
    deduction_type: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    pre_tax: Mapped[bool] = mapped_column(Boolean, nullable=False)
    line_seq: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    record: Mapped["PayrollRecordModel"] = relationship(back_populates="deduction_lines")
