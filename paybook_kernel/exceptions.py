"""
Typed exception hierarchy for paybook.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Payroll and ledger errors have to be handled precisely.  A caller that voids
a paycheck needs to know whether the record was already voided, whether the
ledger refused an unbalanced entry, or whether the chart of accounts is simply
missing the payroll liability accounts.  Parsing messages for that is fragile,
so every error is:

  1. a TYPED exception class (catch by type, not message),
  2. carrying a machine-readable CODE class attribute,
  3. carrying structured DATA as instance attributes.

Example:

    try:
        service.void_payroll_record(record_id, reason="duplicate", actor_id=actor)
    except InvalidRecordStatusError as e:
        api_response(code=e.code, status=e.current_status)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    PaybookError (base)
    |
    +-- JournalValidationError          (rejected before persistence)
    |   +-- InsufficientLinesError
    |   +-- UnbalancedEntryError
    |   +-- MalformedLineError
    |
    +-- PreconditionError               (operation illegal in current state)
    |   +-- InvalidRecordStatusError
    |   +-- JournalEntryAlreadyVoidedError
    |   +-- AccountInactiveError
    |
    +-- ConfigurationMissingError       (required setup absent)
    |   +-- MissingAccountsError
    |   +-- TaxYearNotConfiguredError
    |
    +-- NotFoundError
    |   +-- CompanyNotFoundError
    |   +-- EmployeeNotFoundError
    |   +-- PayrollRecordNotFoundError
    |   +-- JournalEntryNotFoundError
    |   +-- AccountNotFoundError
    |
    +-- AuditError
        +-- AuditChainBrokenError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category      | Code                          | When Raised
--------------|-------------------------------|-------------------------------------
Journal       | INSUFFICIENT_LINES            | Fewer than two lines
              | UNBALANCED_ENTRY              | |debits - credits| > 0.01
              | MALFORMED_LINE                | Line has both/neither side, or < 0
--------------|-------------------------------|-------------------------------------
Precondition  | INVALID_RECORD_STATUS         | Void/correct a non-active record
              | JOURNAL_ENTRY_ALREADY_VOIDED  | Void an already voided entry
              | ACCOUNT_INACTIVE              | Posting to a deactivated account
--------------|-------------------------------|-------------------------------------
Configuration | MISSING_ACCOUNTS              | Payroll account codes absent
              | TAX_YEAR_NOT_CONFIGURED       | No rule set for the pay year
--------------|-------------------------------|-------------------------------------
Not found     | *_NOT_FOUND                   | Lookup by id/code failed
--------------|-------------------------------|-------------------------------------
Audit         | AUDIT_CHAIN_BROKEN            | Hash chain validation failed

There is no arithmetic error family.  Calculation code clamps caps at zero
and guards every division, so it never raises for structurally valid input.
"""

from decimal import Decimal


class PaybookError(Exception):
    """
    Base exception for all paybook errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "PAYBOOK_ERROR"


# Journal validation


class JournalValidationError(PaybookError):
    """A journal entry was rejected before persistence.

    Always carries the computed totals so the caller can see how far off
    the entry was.
    """

    code: str = "JOURNAL_VALIDATION_ERROR"

    def __init__(self, message: str, total_debits: Decimal, total_credits: Decimal):
        self.total_debits = total_debits
        self.total_credits = total_credits
        super().__init__(message)


class InsufficientLinesError(JournalValidationError):
    """Journal entry has fewer than two lines."""

    code: str = "INSUFFICIENT_LINES"

    def __init__(self, line_count: int, total_debits: Decimal, total_credits: Decimal):
        self.line_count = line_count
        super().__init__(
            f"Journal entry must have at least 2 lines, got {line_count}",
            total_debits,
            total_credits,
        )


class UnbalancedEntryError(JournalValidationError):
    """Journal entry debits do not equal credits."""

    code: str = "UNBALANCED_ENTRY"

    def __init__(self, total_debits: Decimal, total_credits: Decimal):
        super().__init__(
            f"Unbalanced entry: debits={total_debits}, credits={total_credits}",
            total_debits,
            total_credits,
        )

    @property
    def difference(self) -> Decimal:
        return self.total_debits - self.total_credits


class MalformedLineError(JournalValidationError):
    """A line has both a debit and a credit, neither, or a negative amount."""

    code: str = "MALFORMED_LINE"

    def __init__(
        self,
        line_index: int,
        reason: str,
        total_debits: Decimal,
        total_credits: Decimal,
    ):
        self.line_index = line_index
        self.reason = reason
        super().__init__(
            f"Line {line_index + 1}: {reason}", total_debits, total_credits,
        )


# Preconditions


class PreconditionError(PaybookError):
    """Operation is not legal in the entity's current state."""

    code: str = "PRECONDITION_FAILED"


class InvalidRecordStatusError(PreconditionError):
    """Only active payroll records can be voided or corrected."""

    code: str = "INVALID_RECORD_STATUS"

    def __init__(self, record_id: str, current_status: str, action: str = "void"):
        self.record_id = record_id
        self.current_status = current_status
        self.action = action
        super().__init__(
            f"Cannot {action} payroll record {record_id}: "
            f"status is '{current_status}', expected 'active'"
        )


class JournalEntryAlreadyVoidedError(PreconditionError):
    """Journal entry has already been voided."""

    code: str = "JOURNAL_ENTRY_ALREADY_VOIDED"

    def __init__(self, journal_entry_id: str):
        self.journal_entry_id = journal_entry_id
        super().__init__(f"Journal entry {journal_entry_id} is already voided")


class AccountInactiveError(PreconditionError):
    """Account is deactivated and cannot receive postings."""

    code: str = "ACCOUNT_INACTIVE"

    def __init__(self, account_id: str, code: str | None = None):
        self.account_id = account_id
        self.account_code = code
        super().__init__(f"Account {code or account_id} is inactive")


# Configuration


class ConfigurationMissingError(PaybookError):
    """Required configuration is absent."""

    code: str = "CONFIGURATION_MISSING"


class MissingAccountsError(ConfigurationMissingError):
    """
    Chart of accounts lacks codes required for payroll posting.

    Non-fatal for payroll: the run completes and ledger posting is skipped.
    """

    code: str = "MISSING_ACCOUNTS"

    def __init__(self, company_id: str, missing_codes: list[str]):
        self.company_id = company_id
        self.missing_codes = missing_codes
        super().__init__(
            f"Company {company_id} is missing accounts: {', '.join(missing_codes)}"
        )


class TaxYearNotConfiguredError(ConfigurationMissingError):
    """No tax rule set exists for the requested calendar year."""

    code: str = "TAX_YEAR_NOT_CONFIGURED"

    def __init__(self, tax_year: int, available_years: list[int] | None = None):
        self.tax_year = tax_year
        self.available_years = available_years or []
        super().__init__(
            f"No tax rules configured for {tax_year} "
            f"(available: {self.available_years})"
        )


# Not found


class NotFoundError(PaybookError):
    """Base exception for lookups that found nothing."""

    code: str = "NOT_FOUND"


class CompanyNotFoundError(NotFoundError):
    code: str = "COMPANY_NOT_FOUND"

    def __init__(self, company_id: str):
        self.company_id = company_id
        super().__init__(f"Company not found: {company_id}")


class EmployeeNotFoundError(NotFoundError):
    code: str = "EMPLOYEE_NOT_FOUND"

    def __init__(self, employee_id: str):
        self.employee_id = employee_id
        super().__init__(f"Employee not found: {employee_id}")


class PayrollRecordNotFoundError(NotFoundError):
    code: str = "PAYROLL_RECORD_NOT_FOUND"

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"Payroll record not found: {record_id}")


class JournalEntryNotFoundError(NotFoundError):
    code: str = "JOURNAL_ENTRY_NOT_FOUND"

    def __init__(self, journal_entry_id: str):
        self.journal_entry_id = journal_entry_id
        super().__init__(f"Journal entry not found: {journal_entry_id}")


class AccountNotFoundError(NotFoundError):
    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"Account not found: {account_id}")


# Audit


class AuditError(PaybookError):
    """Base exception for audit-related errors."""

    code: str = "AUDIT_ERROR"


class AuditChainBrokenError(AuditError):
    """Audit hash chain validation failed."""

    code: str = "AUDIT_CHAIN_BROKEN"

    def __init__(self, audit_event_id: str, expected_hash: str, actual_hash: str):
        self.audit_event_id = audit_event_id
        self.expected_hash = expected_hash
        self.actual_hash = actual_hash
        super().__init__(
            f"Audit chain broken at {audit_event_id}: "
            f"expected {expected_hash}, got {actual_hash}"
        )
