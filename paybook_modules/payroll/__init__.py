"""
Payroll Module (``paybook_modules.payroll``).

Responsibility
--------------
Employees and their recurring deductions, payroll runs, the payroll record
lifecycle (active, voided, corrected), YTD accumulation and the payroll tax
liability summary.  Each run posts one balanced journal entry per batch;
voids and corrections post reversing entries for the affected record.

Architecture position
---------------------
**Modules layer** -- account-role profiles, a config schema, ORM models
and a service facade.  Gross-to-net math lives in ``paybook_engines``;
tax tables in ``paybook_config``; journal persistence in
``paybook_kernel``.

Failure modes
-------------
* ``InvalidRecordStatusError`` -- void/correct of a non-active record.
* ``TaxYearNotConfiguredError`` -- no rules for the pay date's year.
* Ledger posting failures are logged and never abort the payroll
  operation.
"""

from paybook_modules.payroll.config import PayrollConfig
from paybook_modules.payroll.models import (
    CorrectionResult,
    DeductionReversal,
    Employee,
    EmployeeHours,
    PayrollRecord,
    PayrollRecordStatus,
    PayrollRunResult,
    TaxLiabilitySummary,
    VoidResult,
)
from paybook_modules.payroll.orm import (
    EmployeeDeductionModel,
    EmployeeModel,
    PayrollDeductionLineModel,
    PayrollRecordModel,
)
from paybook_modules.payroll.posting import PayrollPostingService
from paybook_modules.payroll.profiles import (
    DEFAULT_ACCOUNT_CODES,
    PAYROLL_POSTING_LINES,
    AccountRole,
)
from paybook_modules.payroll.service import PayrollService

__all__ = [
    # Services
    "PayrollService",
    "PayrollPostingService",
    # Config
    "PayrollConfig",
    # Profiles
    "AccountRole",
    "DEFAULT_ACCOUNT_CODES",
    "PAYROLL_POSTING_LINES",
    # Models
    "CorrectionResult",
    "DeductionReversal",
    "Employee",
    "EmployeeHours",
    "PayrollRecord",
    "PayrollRecordStatus",
    "PayrollRunResult",
    "TaxLiabilitySummary",
    "VoidResult",
    # ORM
    "EmployeeDeductionModel",
    "EmployeeModel",
    "PayrollDeductionLineModel",
    "PayrollRecordModel",
]
