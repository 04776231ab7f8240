"""
Kernel tables: companies, the chart of accounts, journal entries and the
audit log.  Importing this package registers them on ``Base.metadata``.
"""

from paybook_kernel.models.account import Account, AccountType, NormalBalance, normal_balance_for
from paybook_kernel.models.audit_event import AuditAction, AuditEvent
from paybook_kernel.models.company import Company
from paybook_kernel.models.journal import JournalEntry, JournalEntryStatus, JournalLine, LineSide

__all__ = [
    "Account", "AccountType", "NormalBalance", "normal_balance_for",
    "AuditAction", "AuditEvent",
    "Company",
    "JournalEntry", "JournalEntryStatus", "JournalLine", "LineSide",
]
