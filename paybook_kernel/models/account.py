"""
Module: paybook_kernel.models.account
Responsibility: A company's chart of accounts.  Every journal line posts
    to exactly one of these rows.
Architecture position: Kernel > Models.

Invariants enforced:
    - Codes are unique per company ("2100" appears once in each chart).
    - Debit-normal vs credit-normal follows from account_type alone and is
      computed on read: asset and expense accounts grow with debits;
      liability, equity and revenue accounts grow with credits.

Failure modes:
    - Posting to a missing or deactivated account is rejected by
      JournalWriter (AccountNotFoundError / AccountInactiveError).
"""

from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from paybook_kernel.db.base import TrackedBase, UUIDString

if TYPE_CHECKING:
    from paybook_kernel.models.journal import JournalLine


class AccountType(str, Enum):
    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"


class NormalBalance(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"


DEBIT_NORMAL_TYPES = frozenset({AccountType.ASSET, AccountType.EXPENSE})


def normal_balance_for(account_type: AccountType | str) -> NormalBalance:
    """Side on which an account of ``account_type`` carries a positive balance."""
    return (
        NormalBalance.DEBIT
        if AccountType(account_type) in DEBIT_NORMAL_TYPES
        else NormalBalance.CREDIT
    )


class Account(TrackedBase):
    """One ledger account, e.g. ``2130 Social Security Payable``."""

    __tablename__ = "accounts"
    __table_args__ = (
        UniqueConstraint("company_id", "code", name="uq_account_company_code"),
        Index("idx_account_type", "account_type"),
        Index("idx_account_active", "is_active"),
    )

    company_id: Mapped[UUID] = mapped_column(UUIDString(), ForeignKey("companies.id"))
    code: Mapped[str] = mapped_column(String(50))
    name: Mapped[str] = mapped_column(String(255))
    # Stored as the enum's string value
    account_type: Mapped[AccountType] = mapped_column(String(20))
    # "current_asset", "current_liability", "cogs", ...
    subtype: Mapped[str | None] = mapped_column(String(50))
    description: Mapped[str | None] = mapped_column(String(1000))
    # Inactive accounts keep their history but accept no new postings
    is_active: Mapped[bool] = mapped_column(default=True)

    journal_lines: Mapped[list["JournalLine"]] = relationship(back_populates="account")

    def __repr__(self) -> str:
        return f"<Account {self.code} {self.name!r} ({self.account_type})>"

    @property
    def normal_balance(self) -> NormalBalance:
        return normal_balance_for(self.account_type)
