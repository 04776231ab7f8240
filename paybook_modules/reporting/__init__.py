"""
Financial Reporting Module (``paybook_modules.reporting``).

Responsibility
--------------
Read-only module that generates reports from the posted ledger: account
balances, trial balance, profit and loss, balance sheet (with derived
retained earnings) and general ledger with running balances.

Architecture position
---------------------
**Modules layer** -- a read-only service over ``LedgerSelector`` plus
pure builders in ``statements.py``.

Invariants enforced
-------------------
* No journal entries are created by this module.
* Reports derive entirely from posted journal lines (no stored balances).
"""

from paybook_modules.reporting.config import ReportingConfig
from paybook_modules.reporting.models import (
    AccountBalance,
    BalanceSheetReport,
    GeneralLedgerAccount,
    GeneralLedgerLine,
    GeneralLedgerReport,
    ProfitAndLossReport,
    ReportMetadata,
    ReportType,
    TrialBalanceReport,
)
from paybook_modules.reporting.service import ReportingService
from paybook_modules.reporting.statements import render_to_dict

__all__ = [
    # Service
    "ReportingService",
    # Config
    "ReportingConfig",
    # Models
    "AccountBalance",
    "BalanceSheetReport",
    "GeneralLedgerAccount",
    "GeneralLedgerLine",
    "GeneralLedgerReport",
    "ProfitAndLossReport",
    "ReportMetadata",
    "ReportType",
    "TrialBalanceReport",
    # Serialization
    "render_to_dict",
]
