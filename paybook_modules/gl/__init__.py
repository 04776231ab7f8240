"""
General Ledger Module (``paybook_modules.gl``).

Responsibility
--------------
Chart-of-accounts seeding and maintenance, manual journal entries and
journal entry voids over the kernel ``JournalWriter``.

Architecture position
---------------------
**Modules layer** -- a service facade and frozen DTOs.  Payroll entries
are posted by ``paybook_modules.payroll.posting``, not here.
"""

from paybook_modules.gl.models import (
    AccountInfo,
    JournalEntryInfo,
    JournalLineInfo,
    SeedResult,
)
from paybook_modules.gl.service import GeneralLedgerService

__all__ = [
    "GeneralLedgerService",
    "AccountInfo",
    "JournalEntryInfo",
    "JournalLineInfo",
    "SeedResult",
]
