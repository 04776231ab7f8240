"""
Statement builders: account metadata plus posted totals in, frozen report
dataclasses out.

Nothing here touches the session or the clock.  ReportingService does
the querying and passes plain values, which is what lets the tests build
a trial balance from a handful of hand-written rows.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping, Sequence
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from paybook_kernel.db.types import ZERO, round_money
from paybook_kernel.models.account import DEBIT_NORMAL_TYPES, AccountType, NormalBalance
from paybook_kernel.selectors.ledger_selector import AccountTotalsRow, LedgerLine
from paybook_modules.reporting.models import (
    AccountBalance,
    BalanceSheetReport,
    GeneralLedgerAccount,
    GeneralLedgerLine,
    GeneralLedgerReport,
    ProfitAndLossReport,
    ReportMetadata,
    TrialBalanceReport,
)

_DEFAULT_TOLERANCE = Decimal("0.01")


@dataclasses.dataclass(frozen=True)
class AccountInfo:
    """The parts of an Account row a statement needs, detached from the session."""

    account_id: UUID
    code: str
    name: str
    account_type: AccountType
    normal_balance: NormalBalance
    subtype: str | None = None
    is_active: bool = True


def compute_natural_balance(
    debit_total: Decimal,
    credit_total: Decimal,
    normal_balance: NormalBalance,
) -> Decimal:
    """
    Balance measured from the account's normal side.

    Positive means the account carries the balance it is expected to:
    cash in the bank, wages owed, revenue earned.
    """
    net = debit_total - credit_total
    return net if normal_balance == NormalBalance.DEBIT else -net


def _select(balances: Iterable[AccountBalance], account_type: AccountType,
            include_zero: bool) -> tuple[AccountBalance, ...]:
    return tuple(
        b for b in balances
        if b.account_type == account_type.value and (include_zero or b.balance != ZERO)
    )


def _sum(balances: Iterable[AccountBalance]) -> Decimal:
    return round_money(sum((b.balance for b in balances), ZERO))


def build_account_balances(
    accounts: Sequence[AccountInfo],
    totals: Mapping[UUID, AccountTotalsRow],
) -> tuple[AccountBalance, ...]:
    """Every account in code order; one with no posted lines shows zeros."""
    result = []
    for info in sorted(accounts, key=lambda a: a.code):
        row = totals.get(info.account_id)
        debits, credits = (row.debit_total, row.credit_total) if row else (ZERO, ZERO)
        result.append(
            AccountBalance(
                account_id=info.account_id,
                code=info.code,
                name=info.name,
                account_type=info.account_type.value,
                subtype=info.subtype,
                debit_total=round_money(debits),
                credit_total=round_money(credits),
                balance=round_money(compute_natural_balance(debits, credits, info.normal_balance)),
            )
        )
    return tuple(result)


def build_trial_balance(
    balances: Sequence[AccountBalance],
    metadata: ReportMetadata,
    tolerance: Decimal = _DEFAULT_TOLERANCE,
) -> TrialBalanceReport:
    """
    Trial balance over the accounts that have any posted lines.

    An account's balance is listed on its normal side.  A negative balance
    (an overdrawn bank account, say) moves to the other column as a
    positive amount.
    """
    listed = tuple(b for b in balances if b.has_activity)
    debit_column = ZERO
    credit_column = ZERO
    for b in listed:
        # Balance expressed as debit minus credit
        net_debit = b.balance if AccountType(b.account_type) in DEBIT_NORMAL_TYPES else -b.balance
        if net_debit > ZERO:
            debit_column += net_debit
        else:
            credit_column -= net_debit

    debit_column = round_money(debit_column)
    credit_column = round_money(credit_column)
    return TrialBalanceReport(
        metadata=metadata,
        accounts=listed,
        total_debits=debit_column,
        total_credits=credit_column,
        is_balanced=abs(debit_column - credit_column) < tolerance,
    )


def build_profit_and_loss(
    balances: Sequence[AccountBalance],
    metadata: ReportMetadata,
    include_zero: bool = False,
) -> ProfitAndLossReport:
    revenue = _select(balances, AccountType.REVENUE, include_zero)
    expenses = _select(balances, AccountType.EXPENSE, include_zero)
    revenue_total = _sum(revenue)
    expense_total = _sum(expenses)
    return ProfitAndLossReport(
        metadata=metadata,
        revenue=revenue,
        total_revenue=revenue_total,
        expenses=expenses,
        total_expenses=expense_total,
        net_income=round_money(revenue_total - expense_total),
    )


def build_balance_sheet(
    balances: Sequence[AccountBalance],
    metadata: ReportMetadata,
    include_zero: bool = False,
    tolerance: Decimal = _DEFAULT_TOLERANCE,
) -> BalanceSheetReport:
    """
    Balance sheet from inception-to-date balances.

    Income statement accounts are not listed.  Revenue less expenses is
    shown as a single retained earnings figure on the equity side.
    """
    assets = _select(balances, AccountType.ASSET, include_zero)
    liabilities = _select(balances, AccountType.LIABILITY, include_zero)
    equity = _select(balances, AccountType.EQUITY, include_zero)

    asset_total = _sum(assets)
    liability_total = _sum(liabilities)
    equity_total = _sum(equity)
    retained = round_money(
        _sum(_select(balances, AccountType.REVENUE, True))
        - _sum(_select(balances, AccountType.EXPENSE, True))
    )
    claims_total = round_money(liability_total + equity_total + retained)

    return BalanceSheetReport(
        metadata=metadata,
        assets=assets,
        total_assets=asset_total,
        liabilities=liabilities,
        total_liabilities=liability_total,
        equity=equity,
        total_equity=equity_total,
        retained_earnings=retained,
        total_liabilities_and_equity=claims_total,
        is_balanced=abs(asset_total - claims_total) < tolerance,
    )


def _ledger_section(info: AccountInfo, lines: list[LedgerLine]) -> GeneralLedgerAccount:
    debits = credits = ZERO
    rendered = []
    for line in lines:
        debits += line.debit
        credits += line.credit
        rendered.append(
            GeneralLedgerLine(
                entry_date=line.entry_date,
                entry_number=line.entry_number,
                memo=line.memo,
                reference_number=line.reference_number,
                source=line.source,
                description=line.description,
                debit=line.debit,
                credit=line.credit,
                running_balance=round_money(
                    compute_natural_balance(debits, credits, info.normal_balance)
                ),
            )
        )
    return GeneralLedgerAccount(
        account_id=info.account_id,
        code=info.code,
        name=info.name,
        account_type=info.account_type.value,
        lines=tuple(rendered),
        total_debits=round_money(debits),
        total_credits=round_money(credits),
    )


def build_general_ledger(
    lines: Sequence[LedgerLine],
    accounts: Mapping[UUID, AccountInfo],
    metadata: ReportMetadata,
) -> GeneralLedgerReport:
    """
    One section per account, sections in code order.

    ``lines`` arrive in posting order from LedgerSelector.ledger_lines and
    keep that order inside each section.  Lines for an account missing
    from ``accounts`` are dropped.
    """
    by_account: dict[UUID, list[LedgerLine]] = {}
    for line in lines:
        if line.account_id in accounts:
            by_account.setdefault(line.account_id, []).append(line)

    sections = sorted(
        (_ledger_section(accounts[account_id], account_lines)
         for account_id, account_lines in by_account.items()),
        key=lambda section: section.code,
    )
    return GeneralLedgerReport(metadata=metadata, accounts=tuple(sections))


def render_to_dict(obj: object) -> dict | list | str | int | float | bool | None:
    """
    JSON-ready copy of a report.

    Decimals and UUIDs become strings so no cent is lost to float, dates
    become ISO strings and enums their values.
    """
    if isinstance(obj, Enum):
        return obj.value
    if obj is None or isinstance(obj, (bool, int, float, str)):
        return obj
    if isinstance(obj, (Decimal, UUID)):
        return str(obj)
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, Mapping):
        return {str(render_to_dict(key)): render_to_dict(value) for key, value in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [render_to_dict(item) for item in obj]
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {field.name: render_to_dict(getattr(obj, field.name))
                for field in dataclasses.fields(obj)}
    return str(obj)
