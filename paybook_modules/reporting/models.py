"""
Financial Reporting Domain Models (``paybook_modules.reporting.models``).

Responsibility
--------------
Frozen dataclass value objects for report outputs: account balances,
trial balance, profit and loss, balance sheet and general ledger.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.

Invariants enforced
-------------------
* Reports are frozen; a generated report never changes afterwards.
* Amounts are ``Decimal`` rounded to the cent.
* ``balance`` fields are natural balances: positive when the account
  sits on its normal side.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID


class ReportType(str, Enum):
    ACCOUNT_BALANCES = "account_balances"
    TRIAL_BALANCE = "trial_balance"
    PROFIT_AND_LOSS = "profit_and_loss"
    BALANCE_SHEET = "balance_sheet"
    GENERAL_LEDGER = "general_ledger"


@dataclass(frozen=True)
class ReportMetadata:
    """Metadata attached to every report."""

    report_type: ReportType
    entity_name: str
    currency: str
    generated_at: str  # ISO timestamp from the injected clock
    company_id: UUID
    as_of_date: date | None = None
    period_start: date | None = None
    period_end: date | None = None


@dataclass(frozen=True)
class AccountBalance:
    """Posted totals and natural balance of one account."""

    account_id: UUID
    code: str
    name: str
    account_type: str
    subtype: str | None
    debit_total: Decimal
    credit_total: Decimal
    balance: Decimal

    @property
    def has_activity(self) -> bool:
        return self.debit_total != 0 or self.credit_total != 0


@dataclass(frozen=True)
class TrialBalanceReport:
    metadata: ReportMetadata
    accounts: tuple[AccountBalance, ...]
    total_debits: Decimal
    total_credits: Decimal
    is_balanced: bool

    @property
    def difference(self) -> Decimal:
        return self.total_debits - self.total_credits


@dataclass(frozen=True)
class ProfitAndLossReport:
    metadata: ReportMetadata
    revenue: tuple[AccountBalance, ...]
    total_revenue: Decimal
    expenses: tuple[AccountBalance, ...]
    total_expenses: Decimal
    net_income: Decimal


@dataclass(frozen=True)
class BalanceSheetReport:
    """
    Balance sheet as of a date.

    ``retained_earnings`` is derived: all revenue less all expense up to
    the as-of date.
    """

    metadata: ReportMetadata
    assets: tuple[AccountBalance, ...]
    total_assets: Decimal
    liabilities: tuple[AccountBalance, ...]
    total_liabilities: Decimal
    equity: tuple[AccountBalance, ...]
    total_equity: Decimal
    retained_earnings: Decimal
    total_liabilities_and_equity: Decimal
    is_balanced: bool


@dataclass(frozen=True)
class GeneralLedgerLine:
    entry_date: date
    entry_number: int
    memo: str
    reference_number: str | None
    source: str
    description: str | None
    debit: Decimal
    credit: Decimal
    running_balance: Decimal


@dataclass(frozen=True)
class GeneralLedgerAccount:
    """One account's postings in chronological order."""

    account_id: UUID
    code: str
    name: str
    account_type: str
    lines: tuple[GeneralLedgerLine, ...]
    total_debits: Decimal
    total_credits: Decimal

    @property
    def ending_balance(self) -> Decimal:
        return self.lines[-1].running_balance if self.lines else Decimal("0")


@dataclass(frozen=True)
class GeneralLedgerReport:
    metadata: ReportMetadata
    accounts: tuple[GeneralLedgerAccount, ...]
