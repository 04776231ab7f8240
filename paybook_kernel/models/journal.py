"""
Module: paybook_kernel.models.journal
Responsibility: Posted journal entries and their debit/credit lines.
    Balances and statements are always recomputed from these rows.
Architecture position: Kernel > Models.

Invariants enforced:
    - entry_number is unique within a company and comes from the locked
      per-company counter in SequenceService, so a voided number is never
      handed out again.
    - JournalWriter refuses to create an entry whose debits and credits
      differ by more than a cent.
    - A line has a debit or a credit, never both.

Lifecycle:
    posted -> voided.  A voided entry keeps its lines for the audit trail
    but no longer counts toward any balance.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import BigInteger, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from paybook_kernel.db.base import TrackedBase, UUIDString
from paybook_kernel.db.types import ZERO

if TYPE_CHECKING:
    from paybook_kernel.models.account import Account


class JournalEntryStatus(str, Enum):
    POSTED = "posted"
    VOIDED = "voided"


class LineSide(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"


class JournalEntry(TrackedBase):
    """Header row for one balanced posting; ``lines`` load with it."""

    __tablename__ = "journal_entries"
    __table_args__ = (
        UniqueConstraint("company_id", "entry_number", name="uq_journal_company_number"),
        Index("idx_journal_company_date", "company_id", "entry_date"),
        Index("idx_journal_status", "status"),
        Index("idx_journal_source", "source", "source_id"),
    )

    company_id: Mapped[UUID] = mapped_column(UUIDString(), ForeignKey("companies.id"))
    entry_number: Mapped[int] = mapped_column(BigInteger)
    entry_date: Mapped[date]
    memo: Mapped[str] = mapped_column(String(500))
    # e.g. "PR-2026-01-05 to 2026-01-11"
    reference_number: Mapped[str | None] = mapped_column(String(100))
    # manual, payroll, payroll_void or payroll_correction
    source: Mapped[str] = mapped_column(String(30), default="manual")
    # Comma-joined ids of the payroll records behind a payroll entry
    source_id: Mapped[str | None] = mapped_column(String(4000))
    notes: Mapped[str | None] = mapped_column(String(4000))

    status: Mapped[JournalEntryStatus] = mapped_column(
        String(20), default=JournalEntryStatus.POSTED
    )
    voided_at: Mapped[datetime | None]
    voided_by_id: Mapped[UUID | None] = mapped_column(UUIDString())
    void_reason: Mapped[str | None] = mapped_column(String(1000))

    lines: Mapped[list["JournalLine"]] = relationship(
        back_populates="entry",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="JournalLine.line_seq",
    )

    def __repr__(self) -> str:
        return f"<JournalEntry #{self.entry_number} {self.entry_date} {self.status}>"

    @property
    def total_debits(self) -> Decimal:
        return sum((line.debit for line in self.lines), ZERO)

    @property
    def total_credits(self) -> Decimal:
        return sum((line.credit for line in self.lines), ZERO)


class JournalLine(TrackedBase):
    __tablename__ = "journal_lines"
    __table_args__ = (
        Index("idx_line_entry", "journal_entry_id"),
        Index("idx_line_account", "account_id"),
    )

    journal_entry_id: Mapped[UUID] = mapped_column(UUIDString(), ForeignKey("journal_entries.id"))
    account_id: Mapped[UUID] = mapped_column(UUIDString(), ForeignKey("accounts.id"))
    description: Mapped[str | None] = mapped_column(String(500))
    debit: Mapped[Decimal] = mapped_column(default=ZERO)
    credit: Mapped[Decimal] = mapped_column(default=ZERO)
    # 0-based position inside the entry
    line_seq: Mapped[int] = mapped_column(default=0)

    entry: Mapped[JournalEntry] = relationship(back_populates="lines")
    account: Mapped["Account"] = relationship(back_populates="journal_lines")

    def __repr__(self) -> str:
        return f"<JournalLine account={self.account_id} Dr {self.debit} Cr {self.credit}>"
