"""
Paybook Modules.

Thin orchestration layers over the paybook kernel, engines and config.
Each module contains:
- Domain models (the nouns, frozen dataclasses)
- ORM persistence where the module owns tables
- Configuration schemas (settings with validation)
- A service facade

Modules:
- Payroll: Employees, deductions, payroll records and their lifecycle,
  posting of payroll batches to the ledger
- GL: Chart-of-accounts seeding, manual journal entries, voids
- Reporting: Account balances, trial balance, P&L, balance sheet,
  general ledger
"""

from paybook_modules import gl, payroll, reporting

__all__ = ["gl", "payroll", "reporting"]
