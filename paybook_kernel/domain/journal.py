"""
Journal DTOs and pure validation.

Responsibility:
    Immutable inputs for journal entry creation and the pure balance/line
    checks run on them before anything touches the database.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  JournalWriter calls
    ``validate_journal_entry`` and converts failures into typed exceptions.

Invariants enforced:
    - An entry has at least two lines.
    - |sum(debit) - sum(credit)| <= 0.01.
    - Each line carries exactly one non-zero, non-negative side.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from paybook_kernel.db.types import ZERO, to_decimal

BALANCE_TOLERANCE = Decimal("0.01")


class JournalSource(str, Enum):
    """Where a journal entry came from."""

    MANUAL = "manual"
    PAYROLL = "payroll"
    PAYROLL_VOID = "payroll_void"
    PAYROLL_CORRECTION = "payroll_correction"


@dataclass(frozen=True)
class JournalLineInput:
    """One proposed posting line; exactly one of debit/credit is non-zero."""

    account_id: UUID
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    description: str | None = None

    def __post_init__(self):
        object.__setattr__(self, "debit", to_decimal(self.debit))
        object.__setattr__(self, "credit", to_decimal(self.credit))

    def reversed(self) -> JournalLineInput:
        """Same line with the sides swapped."""
        return JournalLineInput(
            account_id=self.account_id,
            debit=self.credit,
            credit=self.debit,
            description=self.description,
        )


@dataclass(frozen=True)
class JournalEntryInput:
    """Everything needed to create one journal entry."""

    company_id: UUID
    entry_date: date
    memo: str
    lines: tuple[JournalLineInput, ...]
    actor_id: UUID
    reference_number: str | None = None
    source: JournalSource = JournalSource.MANUAL
    source_id: str | None = None
    notes: str | None = None

    def __post_init__(self):
        if not isinstance(self.lines, tuple):
            object.__setattr__(self, "lines", tuple(self.lines))


@dataclass(frozen=True)
class ValidationError:
    """A single validation failure with a machine-readable code."""

    code: str
    message: str
    line_index: int | None = None
    details: dict[str, Any] | None = None


@dataclass(frozen=True)
class JournalValidation:
    """
    Result of ``validate_journal_entry``.

    Totals are always populated, valid or not, so callers can report how far
    off a rejected entry was.
    """

    total_debits: Decimal
    total_credits: Decimal
    errors: tuple[ValidationError, ...] = field(default_factory=tuple)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def difference(self) -> Decimal:
        return self.total_debits - self.total_credits

    def __bool__(self) -> bool:
        return self.is_valid


def validate_journal_entry(lines: tuple[JournalLineInput, ...] | list[JournalLineInput]) -> JournalValidation:
    """
    Check line count, per-line shape and overall balance.

    Every problem is collected rather than stopping at the first, but the
    errors are ordered: line count, then malformed lines, then balance.
    """
    total_debits = sum((line.debit for line in lines), ZERO)
    total_credits = sum((line.credit for line in lines), ZERO)
    errors: list[ValidationError] = []

    if len(lines) < 2:
        errors.append(ValidationError(
            code="INSUFFICIENT_LINES",
            message=f"Journal entry must have at least 2 lines, got {len(lines)}",
            details={"line_count": len(lines)},
        ))

    for index, line in enumerate(lines):
        if line.debit < 0 or line.credit < 0:
            errors.append(ValidationError(
                code="MALFORMED_LINE",
                message="amounts cannot be negative",
                line_index=index,
            ))
        elif line.debit != 0 and line.credit != 0:
            errors.append(ValidationError(
                code="MALFORMED_LINE",
                message="cannot have both debit and credit",
                line_index=index,
            ))
        elif line.debit == 0 and line.credit == 0:
            errors.append(ValidationError(
                code="MALFORMED_LINE",
                message="must have either debit or credit",
                line_index=index,
            ))

    if abs(total_debits - total_credits) > BALANCE_TOLERANCE:
        errors.append(ValidationError(
            code="UNBALANCED_ENTRY",
            message=(
                f"Debits ({total_debits}) do not equal credits ({total_credits})"
            ),
        ))

    return JournalValidation(
        total_debits=total_debits,
        total_credits=total_credits,
        errors=tuple(errors),
    )
