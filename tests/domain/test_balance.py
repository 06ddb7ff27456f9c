"""Tests for the balance validator (bookkeeping_kernel/domain/balance.py)."""

from decimal import Decimal
from uuid import uuid4

import pytest

from bookkeeping_kernel.domain.balance import ViolationKind, validate_balance
from bookkeeping_kernel.domain.dtos import (
    AccountInfo,
    AccountType,
    AdjustmentType,
    LineInput,
    NormalBalance,
)


def _account(code, *, is_parent=False, is_active=True):
    return AccountInfo(
        id=uuid4(),
        code=code,
        name=f"Account {code}",
        account_type=AccountType.ASSET,
        normal_balance=NormalBalance.DEBIT,
        is_parent=is_parent,
        is_active=is_active,
    )


@pytest.fixture
def cash():
    return _account("1-01")


@pytest.fixture
def bank():
    return _account("1-02")


def _codes(result):
    return [v.code for v in result.violations]


class TestBalancedEntries:
    """Entries whose debits equal their credits."""

    def test_simple_entry_is_valid(self, cash, bank):
        result = validate_balance([
            LineInput.debit_line(cash.id, "100.00"),
            LineInput.credit_line(bank.id, "100.00"),
        ])

        assert result.valid
        assert bool(result) is True
        assert result.message == "Entry is balanced"
        assert result.totals.debit == Decimal("100.00")
        assert result.totals.credit == Decimal("100.00")
        assert result.totals.difference == Decimal("0")
        assert result.violations == ()

    def test_multi_line_split(self, cash, bank):
        other = _account("1-03")
        result = validate_balance([
            LineInput.debit_line(cash.id, Decimal("60.10")),
            LineInput.debit_line(other.id, Decimal("39.90")),
            LineInput.credit_line(bank.id, Decimal("100")),
        ])

        assert result.valid
        assert result.totals.debit == Decimal("100.00")

    def test_debit_credit_pair_form(self, cash, bank):
        result = validate_balance([
            LineInput(account_id=cash.id, debit="25.00", credit="0"),
            LineInput(account_id=bank.id, debit=None, credit="25.00"),
        ])

        assert result.valid

    def test_validation_is_idempotent(self, cash, bank):
        lines = [
            LineInput.debit_line(cash.id, "10.005"),
            LineInput.credit_line(bank.id, "10.00"),
        ]

        assert validate_balance(lines) == validate_balance(lines)

    def test_totals_are_rounded_half_up(self, cash, bank):
        result = validate_balance([
            LineInput.debit_line(cash.id, "10.005"),
            LineInput.credit_line(bank.id, "10.005"),
        ])

        assert result.totals.debit == Decimal("10.01")
        assert result.totals.credit == Decimal("10.01")


class TestTolerance:
    """Balanced iff |debits - credits| < tolerance on the exact sums."""

    def test_difference_below_tolerance_is_balanced(self, cash, bank):
        result = validate_balance([
            LineInput.debit_line(cash.id, "100.009999"),
            LineInput.credit_line(bank.id, "100.00"),
        ])

        assert result.valid
        assert result.totals.difference == Decimal("0.009999")

    def test_difference_equal_to_tolerance_is_unbalanced(self, cash, bank):
        result = validate_balance([
            LineInput.debit_line(cash.id, "100.01"),
            LineInput.credit_line(bank.id, "100.00"),
        ])

        assert not result.valid
        assert not result.is_balanced
        assert _codes(result) == ["UNBALANCED"]
        assert result.violations[0].kind == ViolationKind.BALANCE
        assert result.totals.difference == Decimal("0.01")

    def test_custom_tolerance(self, cash, bank):
        lines = [
            LineInput.debit_line(cash.id, "100.50"),
            LineInput.credit_line(bank.id, "100.00"),
        ]

        assert not validate_balance(lines).valid
        assert validate_balance(lines, tolerance=Decimal("1")).valid

    def test_unbalanced_message_names_both_totals(self, cash, bank):
        result = validate_balance([
            LineInput.debit_line(cash.id, "120.00"),
            LineInput.credit_line(bank.id, "80.00"),
        ])

        assert "120.00" in result.message
        assert "80.00" in result.message


class TestStructuralViolations:
    """Structural rules are reported together, never raised."""

    def test_single_line(self, cash):
        result = validate_balance([LineInput.debit_line(cash.id, "10")])

        assert "TOO_FEW_LINES" in _codes(result)
        assert "NO_CREDIT_LINE" in _codes(result)

    def test_no_lines(self):
        result = validate_balance([])

        assert _codes(result) == ["TOO_FEW_LINES"]

    def test_missing_account(self, bank):
        result = validate_balance([
            LineInput.debit_line(None, "10"),
            LineInput.credit_line(bank.id, "10"),
        ])

        assert _codes(result) == ["ACCOUNT_MISSING"]
        assert result.violations[0].line_index == 0

    @pytest.mark.parametrize("amount", ["0", "-5", "0.00"])
    def test_non_positive_amount(self, cash, bank, amount):
        result = validate_balance([
            LineInput.debit_line(cash.id, amount),
            LineInput.credit_line(bank.id, "10"),
        ])

        assert "AMOUNT_NOT_POSITIVE" in _codes(result)

    def test_non_numeric_amount(self, cash, bank):
        result = validate_balance([
            LineInput.debit_line(cash.id, "ten"),
            LineInput.credit_line(bank.id, "10"),
        ])

        assert "AMOUNT_NOT_NUMERIC" in _codes(result)

    def test_float_amount_rejected(self, cash, bank):
        result = validate_balance([
            LineInput.debit_line(cash.id, 10.0),
            LineInput.credit_line(bank.id, "10"),
        ])

        assert "AMOUNT_NOT_NUMERIC" in _codes(result)

    def test_missing_amount(self, cash, bank):
        result = validate_balance([
            LineInput(account_id=cash.id, is_debit=True),
            LineInput.credit_line(bank.id, "10"),
        ])

        assert "AMOUNT_MISSING" in _codes(result)

    def test_pair_with_both_sides(self, cash, bank):
        result = validate_balance([
            LineInput(account_id=cash.id, debit="10", credit="10"),
            LineInput(account_id=bank.id, credit="10"),
        ])

        assert "BOTH_SIDES_SET" in _codes(result)

    def test_pair_with_neither_side(self, cash, bank):
        result = validate_balance([
            LineInput(account_id=cash.id, debit="0", credit="0"),
            LineInput(account_id=bank.id, credit="10"),
        ])

        assert "AMOUNT_NOT_POSITIVE" in _codes(result)

    def test_all_debits(self, cash, bank):
        result = validate_balance([
            LineInput.debit_line(cash.id, "10"),
            LineInput.debit_line(bank.id, "10"),
        ])

        assert "NO_CREDIT_LINE" in _codes(result)
        assert "UNBALANCED" in _codes(result)

    def test_every_violation_is_reported(self, cash):
        result = validate_balance([
            LineInput.debit_line(None, "-1"),
            LineInput.debit_line(cash.id, "abc"),
        ])

        codes = _codes(result)
        assert "ACCOUNT_MISSING" in codes
        assert "AMOUNT_NOT_POSITIVE" in codes
        assert "AMOUNT_NOT_NUMERIC" in codes
        assert "NO_CREDIT_LINE" in codes
        assert result.message.count(";") == len(codes) - 1


class TestAccountChecks:
    """Accounts are checked only when an account map is supplied."""

    def test_parent_account_rejected(self, cash):
        parent = _account("1", is_parent=True)
        accounts = {cash.id: cash, parent.id: parent}

        result = validate_balance(
            [LineInput.debit_line(cash.id, "5"), LineInput.credit_line(parent.id, "5")],
            accounts=accounts,
        )

        assert _codes(result) == ["PARENT_ACCOUNT"]
        assert result.violations[0].line_index == 1

    def test_unknown_account_rejected(self, cash):
        result = validate_balance(
            [LineInput.debit_line(cash.id, "5"), LineInput.credit_line(uuid4(), "5")],
            accounts={cash.id: cash},
        )

        assert _codes(result) == ["ACCOUNT_NOT_FOUND"]

    def test_inactive_account_rejected(self, cash):
        closed = _account("1-09", is_active=False)

        result = validate_balance(
            [LineInput.debit_line(closed.id, "5"), LineInput.credit_line(cash.id, "5")],
            accounts={cash.id: cash, closed.id: closed},
        )

        assert not result.valid
        assert _codes(result) == ["ACCOUNT_INACTIVE"]
        assert result.violations[0].line_index == 0
        assert "1-09" in result.violations[0].message

    def test_accounts_not_checked_without_map(self, cash):
        result = validate_balance(
            [LineInput.debit_line(cash.id, "5"), LineInput.credit_line(uuid4(), "5")],
        )

        assert result.valid


class TestAdjustments:
    """Adjustment entries need a type; corrections also need a target."""

    def _lines(self, cash, bank):
        return [LineInput.debit_line(cash.id, "5"), LineInput.credit_line(bank.id, "5")]

    def test_adjustment_without_type(self, cash, bank):
        result = validate_balance(self._lines(cash, bank), is_adjustment=True)

        assert _codes(result) == ["ADJUSTMENT_TYPE_MISSING"]

    def test_adjustment_with_unknown_type(self, cash, bank):
        result = validate_balance(
            self._lines(cash, bank), is_adjustment=True, adjustment_type="bonus"
        )

        assert _codes(result) == ["ADJUSTMENT_TYPE_UNKNOWN"]

    def test_adjustment_type_as_string(self, cash, bank):
        result = validate_balance(
            self._lines(cash, bank), is_adjustment=True, adjustment_type="accrual"
        )

        assert result.valid

    def test_correction_requires_adjusted_entry(self, cash, bank):
        result = validate_balance(
            self._lines(cash, bank),
            is_adjustment=True,
            adjustment_type=AdjustmentType.CORRECTION,
        )

        assert _codes(result) == ["ADJUSTED_ENTRY_MISSING"]

    def test_correction_with_adjusted_entry(self, cash, bank):
        result = validate_balance(
            self._lines(cash, bank),
            is_adjustment=True,
            adjustment_type=AdjustmentType.CORRECTION,
            adjusted_entry_id=uuid4(),
        )

        assert result.valid

    def test_description_is_irrelevant(self, cash, bank):
        """Only the explicit flag makes an entry an adjustment."""
        lines = [
            LineInput.debit_line(cash.id, "5", description="Ajuste de inventario"),
            LineInput.credit_line(bank.id, "5"),
        ]

        assert validate_balance(lines).valid
