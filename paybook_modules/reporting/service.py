"""
Reporting Module Service (``paybook_modules.reporting.service``).

Responsibility
--------------
Generates account balances, the trial balance, profit and loss, the
balance sheet and the general ledger by bridging ``LedgerSelector`` to
the pure builders in ``statements.py``.  This is a **read-only** service.

Architecture position
---------------------
**Modules layer** -- constructor takes ``session`` + ``clock`` + ``config``.

Invariants enforced
-------------------
* Read-only -- no mutations to the journal.
* Only POSTED entries contribute; voided entries are invisible.
* Totals come back as ``Decimal`` cents; floats never enter the sums.

Failure modes
-------------
* ``end_date`` before ``start_date`` -> ``ValueError`` before any query.
* Unknown account passed to ``general_ledger`` -> ``AccountNotFoundError``.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from paybook_kernel.domain.clock import Clock, SystemClock
from paybook_kernel.exceptions import AccountNotFoundError
from paybook_kernel.logging_config import get_logger
from paybook_kernel.models.account import Account, AccountType
from paybook_kernel.selectors.ledger_selector import LedgerSelector
from paybook_modules.reporting.config import ReportingConfig
from paybook_modules.reporting.models import (
    AccountBalance,
    BalanceSheetReport,
    GeneralLedgerReport,
    ProfitAndLossReport,
    ReportMetadata,
    ReportType,
    TrialBalanceReport,
)
from paybook_modules.reporting.statements import (
    AccountInfo,
    build_account_balances,
    build_balance_sheet,
    build_general_ledger,
    build_profit_and_loss,
    build_trial_balance,
    render_to_dict,
)

logger = get_logger("modules.reporting.service")


def _check_range(start_date: date | None, end_date: date | None) -> None:
    if start_date is not None and end_date is not None and end_date < start_date:
        raise ValueError(f"end_date {end_date} is before start_date {start_date}")


class ReportingService:
    """
    Financial report generation.

    Non-goals
    ---------
    * Does NOT post journal entries.
    * Does NOT close periods or roll retained earnings.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: ReportingConfig | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or ReportingConfig.with_defaults()
        self._ledger = LedgerSelector(session)

    # =========================================================================
    # Internal helpers
    # =========================================================================

    def _load_accounts(self, company_id: UUID, include_inactive: bool = False) -> dict[UUID, AccountInfo]:
        stmt = select(Account).where(Account.company_id == company_id)
        if not include_inactive:
            stmt = stmt.where(Account.is_active.is_(True))
        return {
            acct.id: AccountInfo(
                account_id=acct.id,
                code=acct.code,
                name=acct.name,
                account_type=AccountType(acct.account_type),
                normal_balance=acct.normal_balance,
                subtype=acct.subtype,
                is_active=acct.is_active,
            )
            for acct in self._session.execute(stmt).scalars()
        }

    def _metadata(
        self,
        report_type: ReportType,
        company_id: UUID,
        as_of_date: date | None = None,
        period_start: date | None = None,
        period_end: date | None = None,
    ) -> ReportMetadata:
        return ReportMetadata(
            report_type=report_type,
            entity_name=self._config.entity_name,
            currency=self._config.currency,
            generated_at=self._clock.now().isoformat(),
            company_id=company_id,
            as_of_date=as_of_date,
            period_start=period_start,
            period_end=period_end,
        )

    # =========================================================================
    # Reports
    # =========================================================================

    def get_account_balances(
        self,
        company_id: UUID,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> tuple[AccountBalance, ...]:
        """Every active account with posted totals in range, in code order."""
        _check_range(start_date, end_date)
        accounts = self._load_accounts(company_id)
        totals = self._ledger.account_totals(company_id, start_date, end_date)
        return build_account_balances(list(accounts.values()), totals)

    def trial_balance(self, company_id: UUID, as_of_date: date) -> TrialBalanceReport:
        balances = self.get_account_balances(company_id, None, as_of_date)
        report = build_trial_balance(
            balances,
            self._metadata(ReportType.TRIAL_BALANCE, company_id, as_of_date=as_of_date),
            self._config.balance_tolerance,
        )
        log = logger.info if report.is_balanced else logger.warning
        log(
            "trial_balance_generated",
            extra={
                "company_id": str(company_id),
                "as_of_date": as_of_date.isoformat(),
                "account_count": len(report.accounts),
                "total_debits": str(report.total_debits),
                "total_credits": str(report.total_credits),
                "is_balanced": report.is_balanced,
            },
        )
        return report

    def profit_and_loss(
        self,
        company_id: UUID,
        start_date: date,
        end_date: date,
    ) -> ProfitAndLossReport:
        balances = self.get_account_balances(company_id, start_date, end_date)
        report = build_profit_and_loss(
            balances,
            self._metadata(
                ReportType.PROFIT_AND_LOSS, company_id,
                period_start=start_date, period_end=end_date,
            ),
            self._config.include_zero_balances,
        )
        logger.info(
            "profit_and_loss_generated",
            extra={
                "company_id": str(company_id),
                "period_start": start_date.isoformat(),
                "period_end": end_date.isoformat(),
                "net_income": str(report.net_income),
            },
        )
        return report

    def balance_sheet(self, company_id: UUID, as_of_date: date) -> BalanceSheetReport:
        balances = self.get_account_balances(company_id, None, as_of_date)
        report = build_balance_sheet(
            balances,
            self._metadata(ReportType.BALANCE_SHEET, company_id, as_of_date=as_of_date),
            self._config.include_zero_balances,
            self._config.balance_tolerance,
        )
        log = logger.info if report.is_balanced else logger.warning
        log(
            "balance_sheet_generated",
            extra={
                "company_id": str(company_id),
                "as_of_date": as_of_date.isoformat(),
                "total_assets": str(report.total_assets),
                "total_liabilities_and_equity": str(report.total_liabilities_and_equity),
                "is_balanced": report.is_balanced,
            },
        )
        return report

    def general_ledger(
        self,
        company_id: UUID,
        start_date: date,
        end_date: date,
        account_id: UUID | None = None,
    ) -> GeneralLedgerReport:
        _check_range(start_date, end_date)
        accounts = self._load_accounts(company_id, include_inactive=True)
        if account_id is not None and account_id not in accounts:
            raise AccountNotFoundError(str(account_id))
        lines = self._ledger.ledger_lines(company_id, start_date, end_date, account_id)
        report = build_general_ledger(
            lines,
            accounts,
            self._metadata(
                ReportType.GENERAL_LEDGER, company_id,
                period_start=start_date, period_end=end_date,
            ),
        )
        logger.info(
            "general_ledger_generated",
            extra={
                "company_id": str(company_id),
                "account_count": len(report.accounts),
                "line_count": len(lines),
            },
        )
        return report

    @staticmethod
    def to_dict(report: object) -> dict:
        """Render any report to JSON-ready primitives."""
        return render_to_dict(report)
