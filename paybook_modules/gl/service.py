"""
General Ledger Module Service (``paybook_modules.gl.service``).

Responsibility
--------------
Chart-of-accounts maintenance (seeding the default chart, adding and
deactivating accounts), manual journal entries and journal entry voids.
Journal persistence is delegated to the kernel ``JournalWriter``.

Architecture position
---------------------
**Modules layer** -- thin glue.  ``GeneralLedgerService`` is the public
entry point for GL operations.

Invariants enforced
-------------------
* Account codes are unique per company; seeding never overwrites an
  existing account.
* Manual entries go through the same validation as payroll entries.
* Voided entries drop out of every balance and report.

Failure modes
-------------
* ``CompanyNotFoundError`` / ``AccountNotFoundError`` /
  ``JournalEntryNotFoundError``.
* ``JournalValidationError`` subclasses for rejected manual entries.
* ``JournalEntryAlreadyVoidedError`` when voiding twice.

Transaction boundary
--------------------
Methods flush only; the caller commits.

Usage::

    service = GeneralLedgerService(session, clock=clock)
    service.seed_chart_of_accounts(company_id, actor_id)
    entry = service.create_manual_entry(
        company_id, date(2026, 1, 31), "Owner contribution",
        [{"account": "1000", "debit": "5000.00"},
         {"account": "3000", "credit": "5000.00"}],
        actor_id,
    )
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from paybook_config import get_default_chart_of_accounts
from paybook_config.schema import ChartOfAccountsDef
from paybook_kernel.db.types import to_decimal
from paybook_kernel.domain.clock import Clock, SystemClock
from paybook_kernel.domain.journal import JournalEntryInput, JournalLineInput, JournalSource
from paybook_kernel.exceptions import (
    AccountNotFoundError,
    CompanyNotFoundError,
    JournalEntryNotFoundError,
)
from paybook_kernel.logging_config import LogContext, get_logger
from paybook_kernel.models.account import Account, AccountType
from paybook_kernel.models.audit_event import AuditAction
from paybook_kernel.models.company import Company
from paybook_kernel.models.journal import JournalEntry
from paybook_kernel.services.auditor_service import AuditorService
from paybook_kernel.services.journal_writer import JournalWriter
from paybook_modules.gl.models import (
    AccountInfo,
    JournalEntryInfo,
    JournalLineInfo,
    SeedResult,
)

logger = get_logger("modules.gl.service")


def _account_info(account: Account) -> AccountInfo:
    return AccountInfo(
        id=account.id,
        company_id=account.company_id,
        code=account.code,
        name=account.name,
        account_type=AccountType(account.account_type),
        normal_balance=account.normal_balance,
        subtype=account.subtype,
        description=account.description,
        is_active=account.is_active,
    )


def _entry_info(entry: JournalEntry) -> JournalEntryInfo:
    return JournalEntryInfo(
        id=entry.id,
        company_id=entry.company_id,
        entry_number=entry.entry_number,
        entry_date=entry.entry_date,
        memo=entry.memo,
        source=str(entry.source),
        status=getattr(entry.status, "value", entry.status),
        lines=tuple(
            JournalLineInfo(
                account_id=line.account_id,
                account_code=line.account.code,
                debit=line.debit,
                credit=line.credit,
                description=line.description,
            )
            for line in entry.lines
        ),
        reference_number=entry.reference_number,
        source_id=entry.source_id,
        notes=entry.notes,
        voided_at=entry.voided_at,
        void_reason=entry.void_reason,
    )


class GeneralLedgerService:
    """
    Chart of accounts and manual journal entries for one session.

    Non-goals
    ---------
    * Does NOT commit.
    * Does NOT enforce fiscal-period locks.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        journal_writer: JournalWriter | None = None,
        auditor: AuditorService | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._auditor = auditor or AuditorService(session, self._clock)
        self._writer = journal_writer or JournalWriter(session, self._clock, self._auditor)

    def _get_company(self, company_id: UUID) -> Company:
        company = self._session.get(Company, company_id)
        if company is None:
            raise CompanyNotFoundError(str(company_id))
        return company

    def _accounts_by_code(self, company_id: UUID) -> dict[str, Account]:
        return {
            acct.code: acct
            for acct in self._session.execute(
                select(Account).where(Account.company_id == company_id)
            ).scalars()
        }

    # =========================================================================
    # Chart of accounts
    # =========================================================================

    def seed_chart_of_accounts(
        self,
        company_id: UUID,
        actor_id: UUID,
        chart: ChartOfAccountsDef | None = None,
    ) -> SeedResult:
        """
        Create every account of ``chart`` (default chart when omitted) that
        the company does not have yet.  Existing codes are left untouched.
        """
        self._get_company(company_id)
        chart = chart or get_default_chart_of_accounts()
        existing = self._accounts_by_code(company_id)

        created: list[str] = []
        skipped: list[str] = []
        for definition in chart.accounts:
            if definition.code in existing:
                skipped.append(definition.code)
                continue
            self._session.add(
                Account(
                    company_id=company_id,
                    code=definition.code,
                    name=definition.name,
                    account_type=AccountType(definition.account_type).value,
                    subtype=definition.subtype,
                    description=definition.description,
                    is_active=True,
                    created_by_id=actor_id,
                )
            )
            created.append(definition.code)
        self._session.flush()

        if created:
            self._auditor.record(
                entity_type="Company",
                entity_id=company_id,
                action=AuditAction.CHART_OF_ACCOUNTS_SEEDED,
                actor_id=actor_id,
                company_id=company_id,
                payload={"created_codes": created, "checksum": chart.checksum},
            )
        logger.info(
            "chart_of_accounts_seeded",
            extra={
                "company_id": str(company_id),
                "created_count": len(created),
                "existing_count": len(skipped),
            },
        )
        return SeedResult(
            company_id=company_id,
            created_codes=tuple(created),
            existing_codes=tuple(skipped),
            checksum=chart.checksum,
        )

    def create_account(
        self,
        company_id: UUID,
        code: str,
        name: str,
        account_type: AccountType | str,
        actor_id: UUID,
        subtype: str | None = None,
        description: str | None = None,
    ) -> AccountInfo:
        """Add one account.  Raises ``ValueError`` when the code is taken."""
        self._get_company(company_id)
        if code in self._accounts_by_code(company_id):
            raise ValueError(f"Account code {code} already exists")
        account = Account(
            company_id=company_id,
            code=code,
            name=name,
            account_type=AccountType(account_type).value,
            subtype=subtype,
            description=description,
            is_active=True,
            created_by_id=actor_id,
        )
        self._session.add(account)
        self._session.flush()
        logger.info(
            "account_created",
            extra={"company_id": str(company_id), "code": code, "account_type": account.account_type},
        )
        return _account_info(account)

    def deactivate_account(self, account_id: UUID, actor_id: UUID) -> AccountInfo:
        """Inactive accounts reject new postings but keep their history."""
        account = self._session.get(Account, account_id)
        if account is None:
            raise AccountNotFoundError(str(account_id))
        account.is_active = False
        account.updated_by_id = actor_id
        self._session.flush()
        logger.info("account_deactivated", extra={"account_id": str(account_id), "code": account.code})
        return _account_info(account)

    def list_accounts(self, company_id: UUID, include_inactive: bool = False) -> list[AccountInfo]:
        stmt = select(Account).where(Account.company_id == company_id).order_by(Account.code)
        if not include_inactive:
            stmt = stmt.where(Account.is_active.is_(True))
        return [_account_info(acct) for acct in self._session.execute(stmt).scalars()]

    # =========================================================================
    # Journal entries
    # =========================================================================

    def create_manual_entry(
        self,
        company_id: UUID,
        entry_date: date,
        memo: str,
        lines: Sequence[Mapping[str, Any]],
        actor_id: UUID,
        reference_number: str | None = None,
        notes: str | None = None,
    ) -> JournalEntryInfo:
        """
        Post a manual journal entry.

        Each line is a mapping with ``account`` (a code) or ``account_id``,
        and ``debit`` and/or ``credit``; ``description`` is optional.

        Raises:
            AccountNotFoundError: a line names an unknown code.
            JournalValidationError subclass: lines do not validate.
        """
        self._get_company(company_id)
        accounts = self._accounts_by_code(company_id)

        line_inputs: list[JournalLineInput] = []
        for line in lines:
            account_id = line.get("account_id")
            if account_id is None:
                account = accounts.get(str(line.get("account")))
                if account is None:
                    raise AccountNotFoundError(str(line.get("account")))
                account_id = account.id
            line_inputs.append(
                JournalLineInput(
                    account_id=account_id,
                    debit=to_decimal(line.get("debit")),
                    credit=to_decimal(line.get("credit")),
                    description=line.get("description"),
                )
            )

        with LogContext.bind(company_id=company_id, actor_id=actor_id):
            entry = self._writer.create_journal_entry(
                JournalEntryInput(
                    company_id=company_id,
                    entry_date=entry_date,
                    memo=memo,
                    lines=line_inputs,
                    actor_id=actor_id,
                    reference_number=reference_number,
                    source=JournalSource.MANUAL,
                    notes=notes,
                )
            )
            return _entry_info(entry)

    def get_journal_entry(self, entry_id: UUID) -> JournalEntryInfo:
        entry = self._session.get(JournalEntry, entry_id)
        if entry is None:
            raise JournalEntryNotFoundError(str(entry_id))
        return _entry_info(entry)

    def void_journal_entry(self, entry_id: UUID, reason: str, actor_id: UUID) -> JournalEntryInfo:
        """
        Void a posted entry.

        Raises:
            JournalEntryNotFoundError, JournalEntryAlreadyVoidedError.
        """
        with LogContext.bind(actor_id=actor_id, entry_id=entry_id):
            return _entry_info(self._writer.void_journal_entry(entry_id, reason, actor_id))
