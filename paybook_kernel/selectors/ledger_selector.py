"""
Module: paybook_kernel.selectors.ledger_selector
Responsibility: Queries over posted journal lines.  No balance is ever
    stored; every figure a report shows is summed here from the lines.
Architecture position: Kernel > Selectors.

Only entries in status ``posted`` are read.  Date bounds apply to
entry_date and include both ends; pass None to leave a side open.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select

from paybook_kernel.db.types import round_money
from paybook_kernel.models.account import Account
from paybook_kernel.models.journal import JournalEntry, JournalEntryStatus, JournalLine
from paybook_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class AccountTotalsRow:
    account_id: UUID
    debit_total: Decimal
    credit_total: Decimal
    line_count: int


@dataclass(frozen=True)
class LedgerLine:
    """One posted line joined to its entry header and account code."""

    journal_entry_id: UUID
    journal_line_id: UUID
    entry_number: int
    entry_date: date
    memo: str
    reference_number: str | None
    source: str
    account_id: UUID
    account_code: str
    description: str | None
    debit: Decimal
    credit: Decimal


def _posted_in_range(company_id: UUID, start_date: date | None, end_date: date | None) -> list:
    conditions = [
        JournalEntry.company_id == company_id,
        JournalEntry.status == JournalEntryStatus.POSTED,
    ]
    if start_date is not None:
        conditions.append(JournalEntry.entry_date >= start_date)
    if end_date is not None:
        conditions.append(JournalEntry.entry_date <= end_date)
    return conditions


class LedgerSelector(BaseSelector[JournalLine]):

    def account_totals(
        self,
        company_id: UUID,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> dict[UUID, AccountTotalsRow]:
        """Summed debits and credits keyed by account; idle accounts are left out."""
        stmt = (
            select(
                JournalLine.account_id,
                func.coalesce(func.sum(JournalLine.debit), 0).label("debits"),
                func.coalesce(func.sum(JournalLine.credit), 0).label("credits"),
                func.count(JournalLine.id).label("lines"),
            )
            .join(JournalEntry, JournalLine.journal_entry_id == JournalEntry.id)
            .where(*_posted_in_range(company_id, start_date, end_date))
            .group_by(JournalLine.account_id)
        )
        # SQLite hands sums back as float or int; go through str to stay exact
        return {
            row.account_id: AccountTotalsRow(
                row.account_id,
                round_money(Decimal(str(row.debits))),
                round_money(Decimal(str(row.credits))),
                row.lines,
            )
            for row in self.session.execute(stmt)
        }

    def ledger_lines(
        self,
        company_id: UUID,
        start_date: date | None = None,
        end_date: date | None = None,
        account_id: UUID | None = None,
    ) -> list[LedgerLine]:
        """Posted lines by entry_date, then entry_number, then line_seq."""
        stmt = (
            select(JournalLine, JournalEntry, Account.code)
            .join(JournalEntry, JournalLine.journal_entry_id == JournalEntry.id)
            .join(Account, JournalLine.account_id == Account.id)
            .where(*_posted_in_range(company_id, start_date, end_date))
            .order_by(JournalEntry.entry_date, JournalEntry.entry_number, JournalLine.line_seq)
        )
        if account_id is not None:
            stmt = stmt.where(JournalLine.account_id == account_id)

        result: list[LedgerLine] = []
        for line, entry, code in self.session.execute(stmt):
            result.append(
                LedgerLine(
                    journal_entry_id=entry.id,
                    journal_line_id=line.id,
                    entry_number=entry.entry_number,
                    entry_date=entry.entry_date,
                    memo=entry.memo,
                    reference_number=entry.reference_number,
                    source=entry.source,
                    account_id=line.account_id,
                    account_code=code,
                    description=line.description,
                    debit=round_money(line.debit),
                    credit=round_money(line.credit),
                )
            )
        return result
