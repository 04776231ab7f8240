"""
Payroll Module Service (``paybook_modules.payroll.service``).

Responsibility
--------------
Orchestrates payroll operations: previewing a calculation, running payroll
for a period, voiding and correcting records, computing year-to-date
accumulators and summarising payroll tax liabilities.  Pure computation is
delegated to ``paybook_engines.payroll``; ledger posting to
``PayrollPostingService``; audit rows to the kernel ``AuditorService``.

Architecture position
---------------------
**Modules layer** -- ``PayrollService`` is the public entry point for
payroll operations.

Invariants enforced
-------------------
* Only ACTIVE records transition; VOIDED and CORRECTED are terminal.
* Only ACTIVE records count toward YTD.  YTD for a period sums records
  paid in the same calendar year whose period ends before it starts.
* Voiding or correcting a record reduces the YTD of every active employee
  deduction of each type the record took, floored at zero.
* A correction produces exactly one ACTIVE replacement whose
  ``original_record_id`` is the corrected record.
* The tax rules used are those of the pay date's calendar year.

Failure modes
-------------
* ``PayrollRecordNotFoundError`` / ``EmployeeNotFoundError`` /
  ``CompanyNotFoundError``.
* ``InvalidRecordStatusError`` (carries ``current_status``) when a
  non-active record is voided or corrected.
* ``TaxYearNotConfiguredError`` when no rules exist for the pay year.
* Ledger posting problems are logged and never fail the operation.

Transaction boundary
--------------------
Methods flush only.  The caller commits (``session_scope()``), so a
lifecycle operation and its ledger and audit rows commit or roll back
together.

Usage::

    with session_scope() as session:
        service = PayrollService(session, clock=clock)
        result = service.void_payroll_record(record_id, "Duplicate run", actor_id)
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from paybook_config import get_tax_rules
from paybook_config.schema import TaxYearRules
from paybook_engines.deductions import DeductionBreakdown
from paybook_engines.payroll import (
    CompanyRates,
    EmployeeTaxProfile,
    PayPeriod,
    PayrollInput,
    PayrollResult,
    PayType,
    YtdAccumulators,
    calculate_payroll,
)
from paybook_kernel.db.types import ZERO, round_money
from paybook_kernel.domain.clock import Clock, SystemClock
from paybook_kernel.domain.journal import JournalSource
from paybook_kernel.exceptions import (
    CompanyNotFoundError,
    EmployeeNotFoundError,
    InvalidRecordStatusError,
    PayrollRecordNotFoundError,
)
from paybook_kernel.logging_config import LogContext, get_logger
from paybook_kernel.models.audit_event import AuditAction
from paybook_kernel.models.company import Company
from paybook_kernel.services.auditor_service import AuditorService
from paybook_modules.payroll.config import PayrollConfig
from paybook_modules.payroll.models import (
    CorrectionResult,
    DeductionReversal,
    EmployeeHours,
    PayrollRecordStatus,
    PayrollRunResult,
    TaxLiabilitySummary,
    VoidResult,
)
from paybook_modules.payroll.orm import (
    EmployeeDeductionModel,
    EmployeeModel,
    PayrollDeductionLineModel,
    PayrollRecordModel,
)
from paybook_modules.payroll.posting import PayrollPostingService

logger = get_logger("modules.payroll.service")

_ACTIVE = PayrollRecordStatus.ACTIVE.value

# Record columns copied verbatim from a PayrollResult
_RESULT_FIELDS = (
    "hourly_rate",
    "regular_hours",
    "overtime_hours",
    "regular_pay",
    "overtime_pay",
    "gross_pay",
    "total_pre_tax_deductions",
    "taxable_wages",
    "federal_income_tax",
    "state_income_tax",
    "local_tax",
    "social_security_employee",
    "medicare_employee",
    "additional_medicare",
    "sdi",
    "pfl",
    "total_tax_withholdings",
    "total_post_tax_deductions",
    "total_deductions",
    "net_pay",
    "social_security_employer",
    "medicare_employer",
    "sui_employer",
    "futa_employer",
    "total_employer_cost",
    "tax_year",
)

# Components summed by the tax liability summary
_LIABILITY_FIELDS = (
    "federal_income_tax",
    "state_income_tax",
    "local_tax",
    "social_security_employee",
    "social_security_employer",
    "medicare_employee",
    "medicare_employer",
    "additional_medicare",
    "sdi",
    "pfl",
    "futa_employer",
    "sui_employer",
)


def _period_of(record: PayrollRecordModel) -> PayPeriod:
    return PayPeriod(record.period_start, record.period_end, record.pay_date)


def _as_decimal(value) -> Decimal:
    return round_money(Decimal(str(value if value is not None else 0)))


class PayrollService:
    """
    Payroll calculation and record lifecycle.

    Contract
    --------
    * ``preview_payroll`` never writes.
    * Every writing method flushes, records an audit event per record and
      returns frozen DTOs from ``paybook_modules.payroll.models``.

    Non-goals
    ---------
    * Does NOT commit.
    * Does NOT adjust records already posted when a correction changes an
      earlier period's YTD (later records keep their computed values).
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: PayrollConfig | None = None,
        tax_rules: Callable[[int], TaxYearRules] | None = None,
        posting: PayrollPostingService | None = None,
        auditor: AuditorService | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or PayrollConfig.with_defaults()
        self._tax_rules = tax_rules or get_tax_rules
        self._auditor = auditor or AuditorService(session, self._clock)
        self._posting = posting or PayrollPostingService(
            session, self._clock, self._config
        )

    # =========================================================================
    # Lookups
    # =========================================================================

    def _get_company(self, company_id: UUID) -> Company:
        company = self._session.get(Company, company_id)
        if company is None:
            raise CompanyNotFoundError(str(company_id))
        return company

    def _get_employee(self, employee_id: UUID, company_id: UUID | None = None) -> EmployeeModel:
        employee = self._session.get(EmployeeModel, employee_id)
        if employee is None or (company_id is not None and employee.company_id != company_id):
            raise EmployeeNotFoundError(str(employee_id))
        return employee

    def _get_record_for_update(self, record_id: UUID) -> PayrollRecordModel:
        record = self._session.execute(
            select(PayrollRecordModel)
            .where(PayrollRecordModel.id == record_id)
            .with_for_update()
        ).scalar_one_or_none()
        if record is None:
            raise PayrollRecordNotFoundError(str(record_id))
        return record

    def get_record(self, record_id: UUID):
        """Fetch one payroll record as a DTO."""
        record = self._session.get(PayrollRecordModel, record_id)
        if record is None:
            raise PayrollRecordNotFoundError(str(record_id))
        return record.to_dto()

    @staticmethod
    def _active_deductions(employee: EmployeeModel) -> list[EmployeeDeductionModel]:
        return [d for d in employee.deductions if d.is_active]

    # =========================================================================
    # YTD
    # =========================================================================

    def compute_ytd(self, employee_id: UUID, period: PayPeriod) -> YtdAccumulators:
        """
        Sum the employee's active records that precede ``period``.

        A record counts when its pay date falls in the same calendar year
        as ``period.pay_date`` and its period ends before ``period`` starts.
        """
        year = period.pay_date.year
        row = self._session.execute(
            select(
                func.coalesce(func.sum(PayrollRecordModel.gross_pay), 0),
                func.coalesce(func.sum(PayrollRecordModel.social_security_employee), 0),
                func.coalesce(func.sum(PayrollRecordModel.medicare_employee), 0),
                func.coalesce(func.sum(PayrollRecordModel.additional_medicare), 0),
                func.coalesce(func.sum(PayrollRecordModel.sdi), 0),
                func.coalesce(func.sum(PayrollRecordModel.pfl), 0),
            ).where(
                PayrollRecordModel.employee_id == employee_id,
                PayrollRecordModel.status == _ACTIVE,
                PayrollRecordModel.pay_date >= date(year, 1, 1),
                PayrollRecordModel.pay_date <= date(year, 12, 31),
                PayrollRecordModel.period_end < period.start_date,
            )
        ).one()
        gross, social_security, medicare, additional, sdi, pfl = (_as_decimal(v) for v in row)
        return YtdAccumulators(
            gross_pay=gross,
            social_security=social_security,
            medicare=medicare + additional,
            sdi=sdi,
            pfl=pfl,
        )

    # =========================================================================
    # Calculation
    # =========================================================================

    def _build_input(
        self,
        company: Company,
        employee: EmployeeModel,
        period: PayPeriod,
        regular_hours: Decimal,
        overtime_hours: Decimal,
        employee_profile: EmployeeTaxProfile | None = None,
    ) -> PayrollInput:
        return PayrollInput(
            profile=employee_profile or employee.to_profile(),
            period=period,
            regular_hours=regular_hours,
            overtime_hours=overtime_hours,
            ytd=self.compute_ytd(employee.id, period),
            company_rates=CompanyRates(
                sui_rate=company.sui_rate if company.sui_rate is not None else ZERO,
                futa_rate=company.futa_rate,
                overtime_multiplier=(
                    employee.overtime_multiplier or self._config.default_overtime_multiplier
                ),
            ),
            deductions=tuple(d.to_definition() for d in self._active_deductions(employee)),
        )

    def preview_payroll(
        self,
        employee_id: UUID,
        period: PayPeriod,
        regular_hours: Decimal,
        overtime_hours: Decimal = ZERO,
        employee_profile: EmployeeTaxProfile | None = None,
    ) -> PayrollResult:
        """Calculate without persisting anything."""
        employee = self._get_employee(employee_id)
        company = self._get_company(employee.company_id)
        payroll_input = self._build_input(
            company, employee, period, regular_hours, overtime_hours, employee_profile
        )
        result = calculate_payroll(payroll_input, self._tax_rules(period.tax_year))
        logger.info(
            "payroll_previewed",
            extra={
                "employee_id": str(employee_id),
                "period": period.label,
                "gross_pay": str(result.gross_pay),
                "net_pay": str(result.net_pay),
            },
        )
        return result

    def _persist_record(
        self,
        employee: EmployeeModel,
        period: PayPeriod,
        payroll_input: PayrollInput,
        result: PayrollResult,
        rules: TaxYearRules,
        actor_id: UUID,
        original_record_id: UUID | None = None,
    ) -> PayrollRecordModel:
        record = PayrollRecordModel(
            company_id=employee.company_id,
            employee_id=employee.id,
            period_start=period.start_date,
            period_end=period.end_date,
            pay_date=period.pay_date,
            ytd_gross_pay=payroll_input.ytd.gross_pay,
            ytd_social_security=payroll_input.ytd.social_security,
            ytd_medicare=payroll_input.ytd.medicare,
            ytd_sdi=payroll_input.ytd.sdi,
            ytd_pfl=payroll_input.ytd.pfl,
            rules_checksum=rules.checksum or None,
            status=_ACTIVE,
            original_record_id=original_record_id,
            created_by_id=actor_id,
            **{name: getattr(result, name) for name in _RESULT_FIELDS},
        )
        record.deduction_lines = [
            PayrollDeductionLineModel(
                deduction_type=line.deduction_type,
                name=line.name,
                amount=line.amount,
                pre_tax=line.pre_tax,
                line_seq=index,
                created_by_id=actor_id,
            )
            for index, line in enumerate(result.all_deductions)
        ]
        self._session.add(record)
        self._session.flush()
        return record

    def _apply_deduction_ytd(
        self,
        employee: EmployeeModel,
        taken: Iterable[DeductionBreakdown],
        actor_id: UUID,
    ) -> None:
        """Add each deduction taken to the YTD of the deduction that produced it."""
        remaining = self._active_deductions(employee)
        for line in taken:
            for deduction in remaining:
                if deduction.deduction_type == line.deduction_type and deduction.name == line.name:
                    deduction.ytd_amount = (deduction.ytd_amount or ZERO) + line.amount
                    deduction.updated_by_id = actor_id
                    remaining.remove(deduction)
                    break

    def _reverse_deduction_ytd(
        self,
        record: PayrollRecordModel,
        actor_id: UUID,
    ) -> tuple[DeductionReversal, ...]:
        """Subtract each deduction type's amount from every active deduction of that type."""
        reversals: list[DeductionReversal] = []
        employee = self._get_employee(record.employee_id)
        for deduction_type, amount in record.deduction_totals_by_type().items():
            if amount <= ZERO:
                continue
            for deduction in self._active_deductions(employee):
                if deduction.deduction_type != deduction_type:
                    continue
                before = deduction.ytd_amount or ZERO
                after = max(ZERO, before - amount)
                deduction.ytd_amount = after
                deduction.updated_by_id = actor_id
                reversals.append(
                    DeductionReversal(
                        employee_deduction_id=deduction.id,
                        deduction_type=deduction_type,
                        amount_reversed=before - after,
                        ytd_before=before,
                        ytd_after=after,
                    )
                )
        self._session.flush()
        return tuple(reversals)

    # =========================================================================
    # Payroll run
    # =========================================================================

    def run_payroll(
        self,
        company_id: UUID,
        period: PayPeriod,
        hours: Iterable[EmployeeHours],
        actor_id: UUID,
        post_to_ledger: bool = True,
    ) -> PayrollRunResult:
        """
        Calculate and persist one ACTIVE record per employee, then post
        the batch as a single journal entry.

        Hourly employees with no hours are skipped, as are inactive
        employees.
        """
        company = self._get_company(company_id)
        rules = self._tax_rules(period.tax_year)

        with LogContext.bind(company_id=company_id, actor_id=actor_id):
            logger.info("payroll_run_started", extra={"period": period.label})

            records: list[PayrollRecordModel] = []
            skipped: list[UUID] = []
            for item in hours:
                employee = self._get_employee(item.employee_id, company_id)
                regular = Decimal(str(item.regular_hours))
                overtime = Decimal(str(item.overtime_hours))
                no_hours = regular + overtime <= ZERO
                if not employee.is_active or (
                    no_hours
                    and employee.pay_type == PayType.HOURLY.value
                    and self._config.skip_zero_hour_employees
                ):
                    skipped.append(employee.id)
                    logger.info(
                        "payroll_employee_skipped",
                        extra={"employee_id": str(employee.id), "is_active": employee.is_active},
                    )
                    continue

                payroll_input = self._build_input(company, employee, period, regular, overtime)
                result = calculate_payroll(payroll_input, rules)
                record = self._persist_record(
                    employee, period, payroll_input, result, rules, actor_id
                )
                self._apply_deduction_ytd(employee, result.all_deductions, actor_id)
                self._auditor.record(
                    entity_type="PayrollRecord",
                    entity_id=record.id,
                    action=AuditAction.PAYROLL_PROCESSED,
                    actor_id=actor_id,
                    company_id=company_id,
                    payload={
                        "employee_id": employee.id,
                        "period": period.label,
                        "gross_pay": record.gross_pay,
                        "net_pay": record.net_pay,
                    },
                )
                records.append(record)
            self._session.flush()

            entry = None
            if records and post_to_ledger:
                entry = self._posting.create_payroll_journal_entries(
                    company_id,
                    [r.id for r in records],
                    period.pay_date,
                    period.label,
                    actor_id,
                )

            logger.info(
                "payroll_run_completed",
                extra={
                    "period": period.label,
                    "record_count": len(records),
                    "skipped_count": len(skipped),
                    "entry_id": str(entry.id) if entry is not None else None,
                },
            )
            return PayrollRunResult(
                records=tuple(r.to_dto() for r in records),
                skipped_employee_ids=tuple(skipped),
                journal_entry_id=entry.id if entry is not None else None,
            )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def _mark_inactive(
        self,
        record: PayrollRecordModel,
        status: PayrollRecordStatus,
        reason: str,
        actor_id: UUID,
    ) -> None:
        record.status = status.value
        record.voided_at = self._clock.now()
        record.voided_by_id = actor_id
        record.void_reason = reason
        record.updated_by_id = actor_id

    def void_payroll_record(self, record_id: UUID, reason: str, actor_id: UUID) -> VoidResult:
        """
        Void an ACTIVE record, restore deduction YTD and reverse its
        ledger posting.

        Raises:
            PayrollRecordNotFoundError, InvalidRecordStatusError.
        """
        record = self._get_record_for_update(record_id)
        with LogContext.bind(company_id=record.company_id, actor_id=actor_id, record_id=record_id):
            if record.status != _ACTIVE:
                logger.warning(
                    "payroll_void_rejected",
                    extra={"current_status": record.status},
                )
                raise InvalidRecordStatusError(str(record_id), record.status, action="void")

            self._mark_inactive(record, PayrollRecordStatus.VOIDED, reason, actor_id)
            self._session.flush()

            reversals = self._reverse_deduction_ytd(record, actor_id)
            reversing_entry = self._posting.reverse_record_posting(
                record, actor_id, JournalSource.PAYROLL_VOID, reason
            )

            self._auditor.record(
                entity_type="PayrollRecord",
                entity_id=record.id,
                action=AuditAction.PAYROLL_VOIDED,
                actor_id=actor_id,
                company_id=record.company_id,
                payload={
                    "reason": reason,
                    "employee_id": record.employee_id,
                    "gross_pay": record.gross_pay,
                    "pay_period": _period_of(record).label,
                    "reversing_entry_id": reversing_entry.id if reversing_entry else None,
                },
            )
            logger.info(
                "payroll_record_voided",
                extra={
                    "reason": reason,
                    "deduction_reversals": len(reversals),
                    "reversing_entry_id": str(reversing_entry.id) if reversing_entry else None,
                },
            )
            return VoidResult(
                record=record.to_dto(),
                deduction_reversals=reversals,
                reversing_entry_id=reversing_entry.id if reversing_entry else None,
            )

    def correct_payroll_record(
        self,
        record_id: UUID,
        reason: str,
        actor_id: UUID,
        employee_profile: EmployeeTaxProfile | None = None,
    ) -> CorrectionResult:
        """
        Mark an ACTIVE record CORRECTED and replace it with a recalculation.

        The replacement uses the employee's current profile and deductions
        (or ``employee_profile`` when given), the same period and hours,
        and YTD from the remaining active records.

        Raises:
            PayrollRecordNotFoundError, InvalidRecordStatusError,
            TaxYearNotConfiguredError.
        """
        original = self._get_record_for_update(record_id)
        with LogContext.bind(company_id=original.company_id, actor_id=actor_id, record_id=record_id):
            if original.status != _ACTIVE:
                logger.warning(
                    "payroll_correction_rejected",
                    extra={"current_status": original.status},
                )
                raise InvalidRecordStatusError(str(record_id), original.status, action="correct")

            period = _period_of(original)
            rules = self._tax_rules(period.tax_year)

            self._mark_inactive(
                original, PayrollRecordStatus.CORRECTED, f"Corrected: {reason}", actor_id
            )
            self._session.flush()
            reversals = self._reverse_deduction_ytd(original, actor_id)

            employee = self._get_employee(original.employee_id)
            company = self._get_company(original.company_id)
            payroll_input = self._build_input(
                company,
                employee,
                period,
                original.regular_hours,
                original.overtime_hours,
                employee_profile,
            )
            result = calculate_payroll(payroll_input, rules)
            replacement = self._persist_record(
                employee, period, payroll_input, result, rules, actor_id,
                original_record_id=original.id,
            )
            self._apply_deduction_ytd(employee, result.all_deductions, actor_id)
            original.replacement_record_id = replacement.id
            self._session.flush()

            reversing_entry = self._posting.reverse_record_posting(
                original, actor_id, JournalSource.PAYROLL_CORRECTION, reason
            )
            replacement_entry = None
            if original.journal_entry_id is not None:
                replacement_entry = self._posting.create_payroll_journal_entries(
                    replacement.company_id,
                    [replacement.id],
                    replacement.pay_date,
                    period.label,
                    actor_id,
                )

            self._auditor.record(
                entity_type="PayrollRecord",
                entity_id=original.id,
                action=AuditAction.PAYROLL_CORRECTED,
                actor_id=actor_id,
                company_id=original.company_id,
                payload={
                    "reason": reason,
                    "replacement_record_id": replacement.id,
                    "original_gross_pay": original.gross_pay,
                    "original_net_pay": original.net_pay,
                    "new_gross_pay": replacement.gross_pay,
                    "new_net_pay": replacement.net_pay,
                },
            )
            logger.info(
                "payroll_record_corrected",
                extra={
                    "replacement_record_id": str(replacement.id),
                    "net_pay_change": str(replacement.net_pay - original.net_pay),
                    "deduction_reversals": len(reversals),
                },
            )
            return CorrectionResult(
                original=original.to_dto(),
                replacement=replacement.to_dto(),
                deduction_reversals=reversals,
                reversing_entry_id=reversing_entry.id if reversing_entry else None,
                replacement_entry_id=replacement_entry.id if replacement_entry else None,
            )

    # =========================================================================
    # Reporting
    # =========================================================================

    def tax_liability_summary(
        self,
        company_id: UUID,
        start_date: date,
        end_date: date,
    ) -> TaxLiabilitySummary:
        """Withholding and employer-tax totals over active records paid in range."""
        records = list(
            self._session.execute(
                select(PayrollRecordModel)
                .where(
                    PayrollRecordModel.company_id == company_id,
                    PayrollRecordModel.status == _ACTIVE,
                    PayrollRecordModel.pay_date >= start_date,
                    PayrollRecordModel.pay_date <= end_date,
                )
                .order_by(PayrollRecordModel.pay_date)
            ).scalars()
        )

        totals = {name: ZERO for name in _LIABILITY_FIELDS}
        gross = ZERO
        by_pay_date: dict[date, Decimal] = {}
        for record in records:
            gross += record.gross_pay
            for name in _LIABILITY_FIELDS:
                totals[name] += getattr(record, name) or ZERO
            deposit = (
                record.federal_income_tax
                + record.social_security_employee
                + record.social_security_employer
                + record.medicare_employee
                + record.medicare_employer
                + record.additional_medicare
            )
            by_pay_date[record.pay_date] = by_pay_date.get(record.pay_date, ZERO) + deposit

        return TaxLiabilitySummary(
            company_id=company_id,
            start_date=start_date,
            end_date=end_date,
            record_count=len(records),
            gross_wages=round_money(gross),
            by_pay_date={d: round_money(v) for d, v in by_pay_date.items()},
            **{name: round_money(value) for name, value in totals.items()},
        )
