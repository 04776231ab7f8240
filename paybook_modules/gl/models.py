"""
General Ledger Domain Models (``paybook_modules.gl.models``).

Responsibility
--------------
Frozen dataclass value objects returned by ``GeneralLedgerService``:
account snapshots, journal entry snapshots and chart-of-accounts seeding
results.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.

Invariants enforced
-------------------
* Snapshots are frozen and detached from the session, so callers can
  keep them after the transaction closes.
* Line amounts are ``Decimal``; an entry balances when its debit and
  credit sums are equal.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from paybook_kernel.db.types import ZERO
from paybook_kernel.models.account import AccountType, NormalBalance


@dataclass(frozen=True)
class AccountInfo:
    """One chart-of-accounts row."""

    id: UUID
    company_id: UUID
    code: str
    name: str
    account_type: AccountType
    normal_balance: NormalBalance
    subtype: str | None = None
    description: str | None = None
    is_active: bool = True


@dataclass(frozen=True)
class JournalLineInfo:
    account_id: UUID
    account_code: str
    debit: Decimal
    credit: Decimal
    description: str | None = None


@dataclass(frozen=True)
class JournalEntryInfo:
    """A journal entry with its lines."""

    id: UUID
    company_id: UUID
    entry_number: int
    entry_date: date
    memo: str
    source: str
    status: str
    lines: tuple[JournalLineInfo, ...] = ()
    reference_number: str | None = None
    source_id: str | None = None
    notes: str | None = None
    voided_at: datetime | None = None
    void_reason: str | None = None

    @property
    def total_debits(self) -> Decimal:
        return sum((line.debit for line in self.lines), ZERO)

    @property
    def total_credits(self) -> Decimal:
        return sum((line.credit for line in self.lines), ZERO)


@dataclass(frozen=True)
class SeedResult:
    """Outcome of seeding a company's chart of accounts."""

    company_id: UUID
    created_codes: tuple[str, ...] = ()
    existing_codes: tuple[str, ...] = ()
    checksum: str = ""

    @property
    def created_count(self) -> int:
        return len(self.created_codes)
