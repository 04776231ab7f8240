"""
Tests for pure journal validation (paybook_kernel.domain.journal).

Covers:
- Balance tolerance of one cent
- Line-count and per-line shape checks
- Conversion of validation failures into typed exceptions
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from paybook_kernel.domain.journal import JournalLineInput, validate_journal_entry
from paybook_kernel.exceptions import (
    InsufficientLinesError,
    JournalValidationError,
    MalformedLineError,
    UnbalancedEntryError,
)
from paybook_kernel.services.journal_writer import raise_for_validation

A = uuid4()
B = uuid4()
C = uuid4()


def dr(amount, account=A):
    return JournalLineInput(account, debit=Decimal(amount))


def cr(amount, account=B):
    return JournalLineInput(account, credit=Decimal(amount))


class TestBalance:

    def test_split_credit_balances(self):
        result = validate_journal_entry([dr("500"), cr("300"), cr("200", C)])
        assert result.is_valid
        assert result.total_debits == Decimal("500")
        assert result.total_credits == Decimal("500")

    def test_short_credit_rejected(self):
        result = validate_journal_entry([dr("500"), cr("300"), cr("199", C)])
        assert not result.is_valid
        assert [e.code for e in result.errors] == ["UNBALANCED_ENTRY"]
        assert result.difference == Decimal("1")

    def test_one_cent_difference_is_tolerated(self):
        assert validate_journal_entry([dr("100.00"), cr("99.99")]).is_valid

    def test_two_cent_difference_is_rejected(self):
        assert not validate_journal_entry([dr("100.00"), cr("99.98")]).is_valid


class TestLineShape:

    def test_single_line_rejected(self):
        result = validate_journal_entry([dr("100")])
        assert result.errors[0].code == "INSUFFICIENT_LINES"

    def test_both_sides_rejected(self):
        line = JournalLineInput(A, debit=Decimal("10"), credit=Decimal("10"))
        result = validate_journal_entry([line, cr("0.01")])
        assert result.errors[0].code == "MALFORMED_LINE"
        assert result.errors[0].line_index == 0

    def test_neither_side_rejected(self):
        result = validate_journal_entry([dr("10"), cr("10"), JournalLineInput(C)])
        assert any(e.code == "MALFORMED_LINE" and e.line_index == 2 for e in result.errors)

    def test_negative_amount_rejected(self):
        result = validate_journal_entry([dr("-10"), cr("-10")])
        assert result.errors[0].code == "MALFORMED_LINE"

    def test_reversed_swaps_sides(self):
        line = dr("42.00").reversed()
        assert line.debit == Decimal("0")
        assert line.credit == Decimal("42.00")


class TestRaiseForValidation:

    def test_valid_does_not_raise(self):
        raise_for_validation(validate_journal_entry([dr("1"), cr("1")]), 2)

    def test_insufficient_lines(self):
        with pytest.raises(InsufficientLinesError) as exc_info:
            raise_for_validation(validate_journal_entry([dr("1")]), 1)
        assert exc_info.value.line_count == 1
        assert exc_info.value.total_debits == Decimal("1")

    def test_malformed(self):
        with pytest.raises(MalformedLineError) as exc_info:
            raise_for_validation(validate_journal_entry([dr("1"), JournalLineInput(B)]), 2)
        assert exc_info.value.line_index == 1

    def test_unbalanced_carries_totals(self):
        with pytest.raises(UnbalancedEntryError) as exc_info:
            raise_for_validation(validate_journal_entry([dr("500"), cr("300")]), 2)
        exc = exc_info.value
        assert isinstance(exc, JournalValidationError)
        assert exc.total_debits == Decimal("500")
        assert exc.total_credits == Decimal("300")
        assert exc.difference == Decimal("200")
        assert exc.code == "UNBALANCED_ENTRY"
