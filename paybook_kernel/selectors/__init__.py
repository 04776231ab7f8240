"""Read-only query selectors."""

from paybook_kernel.selectors.ledger_selector import (
    AccountTotalsRow,
    LedgerLine,
    LedgerSelector,
)

__all__ = ["AccountTotalsRow", "LedgerLine", "LedgerSelector"]
