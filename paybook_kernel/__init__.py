"""
Paybook Kernel

Shared infrastructure for the payroll and ledger modules:
- Structured logging and typed exceptions
- Money rounding and database plumbing
- Chart of accounts, journal entries and the audit hash chain
- Per-company entry-number allocation
"""

__version__ = "0.1.0"
