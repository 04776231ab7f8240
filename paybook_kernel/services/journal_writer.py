"""
JournalWriter -- balanced journal entry creation, reversal and void.

Responsibility:
    Validates a JournalEntryInput, allocates the company's next entry number
    and persists the entry with its lines.  Also builds reversing entries
    (sides swapped) and voids posted entries.

Architecture position:
    Kernel > Services.  Called by the payroll posting bridge and by
    GeneralLedgerService; delegates entry numbering to SequenceService and
    audit rows to AuditorService.

Invariants enforced:
    - Nothing is persisted unless validate_journal_entry() passes: at least
      two lines, every line one-sided and non-negative, and
      |debits - credits| <= 0.01.
    - Entry numbers come from the locked per-company counter, in the same
      transaction as the entry insert.
    - Every line's account exists, belongs to the entry's company and is
      active.

Failure modes:
    - InsufficientLinesError / MalformedLineError / UnbalancedEntryError
      (all JournalValidationError, carrying total_debits/total_credits).
    - AccountNotFoundError, AccountInactiveError.
    - JournalEntryNotFoundError, JournalEntryAlreadyVoidedError on void.

Non-goals:
    - Does NOT manage the transaction boundary (caller's responsibility).
"""

from datetime import date
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from paybook_kernel.domain.clock import Clock, SystemClock
from paybook_kernel.domain.journal import (
    JournalEntryInput,
    JournalLineInput,
    JournalSource,
    JournalValidation,
    validate_journal_entry,
)
from paybook_kernel.exceptions import (
    AccountInactiveError,
    AccountNotFoundError,
    InsufficientLinesError,
    JournalEntryAlreadyVoidedError,
    JournalEntryNotFoundError,
    MalformedLineError,
    UnbalancedEntryError,
)
from paybook_kernel.logging_config import get_logger
from paybook_kernel.models.account import Account
from paybook_kernel.models.audit_event import AuditAction
from paybook_kernel.models.journal import JournalEntry, JournalEntryStatus, JournalLine
from paybook_kernel.services.auditor_service import AuditorService
from paybook_kernel.services.sequence_service import SequenceService

logger = get_logger("services.journal_writer")


def raise_for_validation(validation: JournalValidation, line_count: int) -> None:
    """Convert the first validation failure into its typed exception."""
    if validation.is_valid:
        return
    first = validation.errors[0]
    debits, credits = validation.total_debits, validation.total_credits
    if first.code == "INSUFFICIENT_LINES":
        raise InsufficientLinesError(line_count, debits, credits)
    if first.code == "MALFORMED_LINE":
        raise MalformedLineError(first.line_index or 0, first.message, debits, credits)
    raise UnbalancedEntryError(debits, credits)


class JournalWriter:
    """
    Creates, reverses and voids journal entries.

    Guarantees:
        - A returned JournalEntry is flushed, POSTED and balanced.
        - Entry numbers are unique per company and never reused.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        auditor: AuditorService | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._sequence = SequenceService(session)
        self._auditor = auditor or AuditorService(session, self._clock)

    def _check_accounts(self, company_id: UUID, lines: tuple[JournalLineInput, ...]) -> None:
        account_ids = {line.account_id for line in lines}
        accounts = {
            acct.id: acct
            for acct in self._session.execute(
                select(Account).where(Account.id.in_(account_ids))
            ).scalars()
        }
        for account_id in account_ids:
            acct = accounts.get(account_id)
            if acct is None or acct.company_id != company_id:
                raise AccountNotFoundError(str(account_id))
            if not acct.is_active:
                raise AccountInactiveError(str(account_id), acct.code)

    def create_journal_entry(self, entry_input: JournalEntryInput) -> JournalEntry:
        """
        Validate and persist one journal entry.

        Preconditions:
            - The caller is inside an active transaction.
        Postconditions:
            - The entry and its lines are flushed with the company's next
              entry number and status POSTED.
        Raises:
            JournalValidationError subclass when the lines are rejected;
            nothing is written in that case.
        """
        lines = entry_input.lines
        validation = validate_journal_entry(lines)
        if not validation.is_valid:
            logger.warning(
                "journal_entry_rejected",
                extra={
                    "company_id": str(entry_input.company_id),
                    "error_codes": [e.code for e in validation.errors],
                    "total_debits": str(validation.total_debits),
                    "total_credits": str(validation.total_credits),
                },
            )
            raise_for_validation(validation, len(lines))

        self._check_accounts(entry_input.company_id, lines)

        entry_number = self._sequence.next_value(
            SequenceService.journal_entry_sequence(entry_input.company_id)
        )

        entry = JournalEntry(
            company_id=entry_input.company_id,
            entry_number=entry_number,
            entry_date=entry_input.entry_date,
            memo=entry_input.memo,
            reference_number=entry_input.reference_number,
            source=JournalSource(entry_input.source).value,
            source_id=entry_input.source_id,
            notes=entry_input.notes,
            status=JournalEntryStatus.POSTED,
            created_by_id=entry_input.actor_id,
        )
        entry.lines = [
            JournalLine(
                account_id=line.account_id,
                description=line.description,
                debit=line.debit,
                credit=line.credit,
                line_seq=index,
                created_by_id=entry_input.actor_id,
            )
            for index, line in enumerate(lines)
        ]
        self._session.add(entry)
        self._session.flush()

        self._auditor.record(
            entity_type="JournalEntry",
            entity_id=entry.id,
            action=AuditAction.JOURNAL_POSTED,
            actor_id=entry_input.actor_id,
            company_id=entry_input.company_id,
            payload={
                "entry_number": entry_number,
                "source": entry.source,
                "total_debits": validation.total_debits,
                "total_credits": validation.total_credits,
            },
        )

        logger.info(
            "journal_entry_created",
            extra={
                "company_id": str(entry_input.company_id),
                "entry_id": str(entry.id),
                "entry_number": entry_number,
                "source": entry.source,
                "line_count": len(lines),
                "total_debits": str(validation.total_debits),
            },
        )
        return entry

    def create_reversing_entry(
        self,
        original: JournalEntry,
        *,
        entry_date: date,
        memo: str,
        actor_id: UUID,
        source: JournalSource,
        source_id: str | None = None,
        notes: str | None = None,
        lines_to_reverse: list[JournalLineInput] | None = None,
    ) -> JournalEntry:
        """
        Post a new entry mirroring ``original`` with debits and credits swapped.

        ``lines_to_reverse`` replaces the original's lines when only part of a
        batched entry is being reversed; those lines are swapped the same way.
        """
        if lines_to_reverse is None:
            base_lines = [
                JournalLineInput(
                    account_id=line.account_id,
                    debit=line.debit,
                    credit=line.credit,
                    description=line.description,
                )
                for line in original.lines
            ]
        else:
            base_lines = lines_to_reverse

        return self.create_journal_entry(
            JournalEntryInput(
                company_id=original.company_id,
                entry_date=entry_date,
                memo=memo,
                lines=tuple(line.reversed() for line in base_lines),
                actor_id=actor_id,
                reference_number=original.reference_number,
                source=source,
                source_id=source_id,
                notes=notes,
            )
        )

    def void_journal_entry(
        self,
        entry_id: UUID,
        reason: str,
        actor_id: UUID,
    ) -> JournalEntry:
        """
        Mark a posted entry VOIDED so it drops out of all balances.

        Raises:
            JournalEntryNotFoundError, JournalEntryAlreadyVoidedError.
        """
        entry = self._session.execute(
            select(JournalEntry).where(JournalEntry.id == entry_id).with_for_update()
        ).scalar_one_or_none()
        if entry is None:
            raise JournalEntryNotFoundError(str(entry_id))
        if entry.status != JournalEntryStatus.POSTED:
            raise JournalEntryAlreadyVoidedError(str(entry_id))

        entry.status = JournalEntryStatus.VOIDED
        entry.voided_at = self._clock.now()
        entry.voided_by_id = actor_id
        entry.void_reason = reason
        entry.updated_by_id = actor_id
        self._session.flush()

        self._auditor.record(
            entity_type="JournalEntry",
            entity_id=entry.id,
            action=AuditAction.JOURNAL_VOIDED,
            actor_id=actor_id,
            company_id=entry.company_id,
            payload={"entry_number": entry.entry_number, "reason": reason},
        )
        logger.info(
            "journal_entry_voided",
            extra={
                "entry_id": str(entry.id),
                "entry_number": entry.entry_number,
                "reason": reason,
            },
        )
        return entry
