"""
Module: paybook_engines
Responsibility:
    Package entrypoint re-exporting the pure payroll calculation engines.
    This is the import surface for ``paybook_modules``.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May import ``paybook_kernel.db.types``, ``paybook_kernel.logging_config``
    and ``paybook_config.schema``.  MUST NOT import ``paybook_modules``.

Invariants enforced:
    - Purity: engines never read the clock or the database.
    - Decimal-only arithmetic; floats are converted through ``str``.
    - Determinism: identical inputs always produce identical outputs.

Usage:
    from paybook_engines import calculate_payroll, PayrollInput
    from paybook_engines.tax import evaluate_brackets
    from paybook_engines.deductions import apply_deductions
"""

from paybook_engines.deductions import (
    AmountType,
    DeductionBreakdown,
    DeductionDefinition,
    apply_deductions,
    compute_deduction_amount,
)
from paybook_engines.payroll import (
    CompanyRates,
    EmployeeTaxProfile,
    FilingStatus,
    PayPeriod,
    PayrollInput,
    PayrollResult,
    PayType,
    YtdAccumulators,
    calculate_payroll,
    normalize_hours,
)
from paybook_engines.tax import (
    bracket_base_taxes,
    estimate_period_income_tax,
    evaluate_brackets,
)

__all__ = [
    "AmountType",
    "CompanyRates",
    "DeductionBreakdown",
    "DeductionDefinition",
    "EmployeeTaxProfile",
    "FilingStatus",
    "PayPeriod",
    "PayType",
    "PayrollInput",
    "PayrollResult",
    "YtdAccumulators",
    "apply_deductions",
    "bracket_base_taxes",
    "calculate_payroll",
    "compute_deduction_amount",
    "estimate_period_income_tax",
    "evaluate_brackets",
    "normalize_hours",
]
