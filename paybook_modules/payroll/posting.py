"""
Payroll -> Ledger bridge (``paybook_modules.payroll.posting``).

Responsibility
--------------
Turns active payroll records into balanced journal entries using the line
layout declared in ``profiles.PAYROLL_POSTING_LINES``, and posts reversing
entries for a single record's share when that record is voided or
corrected.

Architecture position
---------------------
**Modules layer**.  Resolves account roles to company accounts through
``PayrollConfig`` and delegates persistence to the kernel
``JournalWriter``.

Invariants enforced
-------------------
* Only ACTIVE records are posted.
* Zero-amount lines are never emitted.  A negative aggregate (net pay
  below zero after a large garnishment) is posted on the opposite side.
* An imbalance of at most ``PayrollConfig.balance_tolerance`` is absorbed
  into the net-pay line; anything larger aborts the posting.

Failure modes
-------------
Posting problems never fail the payroll operation that triggered them:
* Required accounts missing  -> warning, returns ``None``.
* No matching active records  -> warning, returns ``None``.
* Every amount is zero  -> info, returns ``None``.
* Imbalance above tolerance  -> error log, returns ``None``.
* Lines the journal writer would reject  -> error log, returns ``None``.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from paybook_kernel.db.types import ZERO, round_money
from paybook_kernel.domain.clock import Clock, SystemClock
from paybook_kernel.domain.journal import (
    JournalEntryInput,
    JournalLineInput,
    JournalSource,
    validate_journal_entry,
)
from paybook_kernel.exceptions import MissingAccountsError
from paybook_kernel.logging_config import get_logger
from paybook_kernel.models.account import Account
from paybook_kernel.models.journal import JournalEntry, JournalEntryStatus, LineSide
from paybook_kernel.services.journal_writer import JournalWriter
from paybook_modules.payroll.config import PayrollConfig
from paybook_modules.payroll.models import PayrollRecordStatus
from paybook_modules.payroll.orm import PayrollRecordModel
from paybook_modules.payroll.profiles import (
    OPTIONAL_ROLES,
    PAYROLL_POSTING_LINES,
    AccountRole,
)

logger = get_logger("modules.payroll.posting")


def _employee_count_label(count: int) -> str:
    return f"{count} employee" if count == 1 else f"{count} employees"


class PayrollPostingService:
    """
    Posts payroll records to the general ledger.

    Non-goals
    ---------
    * Does NOT commit.  The caller owns the transaction.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: PayrollConfig | None = None,
        journal_writer: JournalWriter | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or PayrollConfig.with_defaults()
        self._writer = journal_writer or JournalWriter(session, self._clock)

    # =========================================================================
    # Account resolution
    # =========================================================================

    def resolve_accounts(self, company_id: UUID) -> dict[AccountRole, Account]:
        """
        Map each posting role to the company's account.

        Optional roles without an account are left out of the result.

        Raises:
            MissingAccountsError: a required role's code has no account.
        """
        codes = {
            role: code
            for role, code in self._config.account_mappings.items()
            if code
        }
        accounts_by_code = {
            acct.code: acct
            for acct in self._session.execute(
                select(Account).where(
                    Account.company_id == company_id,
                    Account.code.in_(set(codes.values())),
                )
            ).scalars()
        }

        resolved: dict[AccountRole, Account] = {}
        missing: list[str] = []
        for role, code in codes.items():
            account = accounts_by_code.get(code)
            if account is not None:
                resolved[role] = account
            elif role not in OPTIONAL_ROLES:
                missing.append(code)
        if missing:
            raise MissingAccountsError(str(company_id), sorted(missing))
        return resolved

    # =========================================================================
    # Line building
    # =========================================================================

    def build_lines(
        self,
        records: Iterable[PayrollRecordModel],
        accounts: dict[AccountRole, Account],
    ) -> list[JournalLineInput]:
        """
        Aggregate records into journal lines, one per posting role.

        Deductions fold into the net-pay line when the company has no
        deductions-payable account.
        """
        records = list(records)
        amounts: dict[AccountRole, Decimal] = {}
        for mapping in PAYROLL_POSTING_LINES:
            role = mapping.role
            if role not in accounts:
                role = AccountRole.NET_PAY_PAYABLE
            total = sum(
                (getattr(record, component) or ZERO
                 for record in records
                 for component in mapping.components),
                ZERO,
            )
            amounts[role] = amounts.get(role, ZERO) + total

        lines: list[JournalLineInput] = []
        for mapping in PAYROLL_POSTING_LINES:
            if mapping.role not in accounts:
                continue
            amount = round_money(amounts.get(mapping.role, ZERO))
            if amount == ZERO:
                continue
            account_id = accounts[mapping.role].id
            # A negative aggregate, e.g. net pay below zero, posts to the other side
            if (mapping.side == LineSide.DEBIT) == (amount > ZERO):
                lines.append(JournalLineInput(account_id, debit=abs(amount), description=mapping.description))
            else:
                lines.append(JournalLineInput(account_id, credit=abs(amount), description=mapping.description))
        return lines

    def _balance_on_net_pay(
        self,
        lines: list[JournalLineInput],
        net_pay_account_id: UUID,
    ) -> list[JournalLineInput] | None:
        """Absorb a small imbalance into the net-pay line, or return None."""
        debits = sum((line.debit for line in lines), ZERO)
        credits = sum((line.credit for line in lines), ZERO)
        difference = debits - credits
        if difference == ZERO:
            return lines
        if abs(difference) > self._config.balance_tolerance:
            logger.error(
                "payroll_posting_unbalanced",
                extra={
                    "total_debits": str(debits),
                    "total_credits": str(credits),
                    "difference": str(difference),
                },
            )
            return None

        adjusted: list[JournalLineInput] = []
        applied = False
        for line in lines:
            if (not applied and line.account_id == net_pay_account_id
                    and line.credit > ZERO and line.credit + difference > ZERO):
                line = JournalLineInput(
                    line.account_id,
                    credit=line.credit + difference,
                    description=line.description,
                )
                applied = True
            adjusted.append(line)
        if not applied:
            adjusted.append(
                JournalLineInput(net_pay_account_id, credit=difference, description="Net pay")
                if difference > ZERO
                else JournalLineInput(net_pay_account_id, debit=-difference, description="Net pay")
            )
        logger.info("payroll_posting_rounding_adjusted", extra={"difference": str(difference)})
        return adjusted

    @staticmethod
    def _rejected(lines: list[JournalLineInput], event: str, context: dict) -> bool:
        """Log and report True when the writer would refuse these lines."""
        validation = validate_journal_entry(lines)
        if validation.is_valid:
            return False
        logger.error(
            event,
            extra={
                **context,
                "error_codes": [error.code for error in validation.errors],
                "total_debits": str(validation.total_debits),
                "total_credits": str(validation.total_credits),
            },
        )
        return True

    # =========================================================================
    # Posting
    # =========================================================================

    def create_payroll_journal_entries(
        self,
        company_id: UUID,
        record_ids: Sequence[UUID],
        pay_date: date,
        period_label: str,
        actor_id: UUID,
    ) -> JournalEntry | None:
        """
        Post one aggregated entry for the given records.

        Records are stamped with the new entry's id.  Returns ``None``
        (after logging) when posting is skipped.
        """
        records = list(
            self._session.execute(
                select(PayrollRecordModel)
                .where(
                    PayrollRecordModel.company_id == company_id,
                    PayrollRecordModel.id.in_(list(record_ids)),
                    PayrollRecordModel.status == PayrollRecordStatus.ACTIVE.value,
                )
                .order_by(PayrollRecordModel.created_at, PayrollRecordModel.id)
            ).scalars()
        )
        if not records:
            logger.warning(
                "payroll_posting_skipped_no_records",
                extra={"company_id": str(company_id), "requested": len(record_ids)},
            )
            return None

        try:
            accounts = self.resolve_accounts(company_id)
        except MissingAccountsError as exc:
            logger.warning(
                "payroll_posting_skipped_missing_accounts",
                extra={"company_id": str(company_id), "missing_codes": exc.missing_codes},
            )
            return None

        lines = self.build_lines(records, accounts)
        if not lines:
            logger.info(
                "payroll_posting_skipped_zero_amounts",
                extra={"company_id": str(company_id), "record_count": len(records)},
            )
            return None

        lines = self._balance_on_net_pay(lines, accounts[AccountRole.NET_PAY_PAYABLE].id)
        if lines is None:
            return None
        if self._rejected(lines, "payroll_posting_skipped_invalid_lines",
                          {"company_id": str(company_id), "record_count": len(records)}):
            return None

        entry = self._writer.create_journal_entry(
            JournalEntryInput(
                company_id=company_id,
                entry_date=pay_date,
                memo=f"Payroll: {period_label} ({_employee_count_label(len(records))})",
                lines=lines,
                actor_id=actor_id,
                reference_number=f"PR-{period_label}",
                source=JournalSource.PAYROLL,
                source_id=",".join(str(r.id) for r in records),
            )
        )
        for record in records:
            record.journal_entry_id = entry.id
            record.updated_by_id = actor_id
        self._session.flush()

        logger.info(
            "payroll_journal_entry_created",
            extra={
                "company_id": str(company_id),
                "entry_id": str(entry.id),
                "entry_number": entry.entry_number,
                "record_count": len(records),
            },
        )
        return entry

    def reverse_record_posting(
        self,
        record: PayrollRecordModel,
        actor_id: UUID,
        source: JournalSource,
        reason: str,
    ) -> JournalEntry | None:
        """
        Post a reversing entry for one record's share of its payroll entry.

        Returns ``None`` when the record was never posted, when its entry is
        already voided, or when accounts are missing.
        """
        if record.journal_entry_id is None:
            return None

        original = self._session.get(JournalEntry, record.journal_entry_id)
        if original is None or original.status != JournalEntryStatus.POSTED:
            logger.info(
                "payroll_reversal_skipped",
                extra={"record_id": str(record.id), "entry_id": str(record.journal_entry_id)},
            )
            return None

        try:
            accounts = self.resolve_accounts(record.company_id)
        except MissingAccountsError as exc:
            logger.warning(
                "payroll_reversal_skipped_missing_accounts",
                extra={"record_id": str(record.id), "missing_codes": exc.missing_codes},
            )
            return None

        lines = self.build_lines([record], accounts)
        if not lines:
            return None
        if self._rejected(lines, "payroll_reversal_skipped_invalid_lines",
                          {"record_id": str(record.id)}):
            return None
        entry = self._writer.create_reversing_entry(
            original,
            entry_date=self._clock.today(),
            memo=f"Reversal of payroll {record.period_start} to {record.period_end}: {reason}"[:500],
            actor_id=actor_id,
            source=source,
            source_id=str(record.id),
            lines_to_reverse=lines,
        )
        logger.info(
            "payroll_reversal_posted",
            extra={
                "record_id": str(record.id),
                "original_entry_id": str(original.id),
                "entry_id": str(entry.id),
            },
        )
        return entry
