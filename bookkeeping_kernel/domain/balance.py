"""
Balance Validator -- double-entry balance and structural checks.

Responsibility:
    Given the lines of a journal entry, compute debit/credit totals with
    Decimal arithmetic and decide whether the entry may be persisted or
    approved.  Every violation is collected; nothing is raised.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Called by
    JournalService on create, update and approve, and directly by any
    presentation layer that wants to show violations before submitting.

Invariants enforced:
    - An entry is balanced iff |sum(debits) - sum(credits)| < tolerance.
      The comparison uses the exact Decimal sums; reported totals are
      rounded to ``decimal_places``.
    - At least two lines, at least one debit and one credit.
    - Every line names an account, every amount is a positive number, and
      every referenced account is an active leaf.
    - Adjustment entries carry an adjustment type; corrections also carry
      the id of the entry they correct.

Failure modes:
    - None raised.  Violations are returned in ``BalanceResult.violations``.

Audit relevance:
    The same function validates at create time and again at approval time,
    so an approved entry's frozen totals were computed by exactly this code.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from bookkeeping_kernel.db.types import MONEY_DECIMAL_PLACES, ZERO, round_money, to_decimal
from bookkeeping_kernel.domain.dtos import AccountInfo, AdjustmentType

DEFAULT_TOLERANCE = Decimal("0.01")

MIN_LINES = 2

_ADJUSTMENT_TYPE_VALUES = frozenset(t.value for t in AdjustmentType)


class ViolationKind(str, Enum):
    """Blocking violation categories reported by the validator."""

    STRUCTURAL = "structural"
    BALANCE = "balance"


@dataclass(frozen=True)
class Violation:
    """
    A single blocking problem with an entry.

    ``line_index`` is the zero-based position of the offending line, or
    None for entry-level problems.
    """

    kind: ViolationKind
    code: str
    message: str
    line_index: int | None = None


@dataclass(frozen=True)
class BalanceTotals:
    debit: Decimal
    credit: Decimal
    difference: Decimal


@dataclass(frozen=True)
class BalanceResult:
    """
    Outcome of ``validate_balance``.

    Guarantees:
        - ``valid`` is True iff ``violations`` is empty.
        - ``message`` is a single human-readable summary.
        - ``bool(result) == result.valid``.
    """

    valid: bool
    message: str
    totals: BalanceTotals
    violations: tuple[Violation, ...] = field(default_factory=tuple)

    @property
    def is_balanced(self) -> bool:
        return not any(v.kind == ViolationKind.BALANCE for v in self.violations)

    def __bool__(self) -> bool:
        return self.valid


def resolve_line(
    line: Any, index: int
) -> tuple[bool | None, Decimal | None, Violation | None]:
    """
    Resolve a line to (is_debit, amount).

    Accepts the ``is_debit`` + ``amount`` form and the explicit
    ``debit``/``credit`` pair form.
    """
    debit = getattr(line, "debit", None)
    credit = getattr(line, "credit", None)
    is_debit = getattr(line, "is_debit", None)

    # LedgerLine exposes debit/credit as derived properties; prefer amount
    # whenever the line states its side explicitly.
    if is_debit is None and (debit is not None or credit is not None):
        try:
            debit_amount = to_decimal(debit) if debit is not None else ZERO
            credit_amount = to_decimal(credit) if credit is not None else ZERO
        except ValueError:
            return None, None, Violation(
                ViolationKind.STRUCTURAL,
                "AMOUNT_NOT_NUMERIC",
                f"Line {index + 1}: amount is not a number",
                index,
            )
        if debit_amount < ZERO or credit_amount < ZERO:
            return None, None, Violation(
                ViolationKind.STRUCTURAL,
                "AMOUNT_NOT_POSITIVE",
                f"Line {index + 1}: amounts must not be negative",
                index,
            )
        if debit_amount > ZERO and credit_amount > ZERO:
            return None, None, Violation(
                ViolationKind.STRUCTURAL,
                "BOTH_SIDES_SET",
                f"Line {index + 1}: a line cannot carry both a debit and a credit",
                index,
            )
        if debit_amount == ZERO and credit_amount == ZERO:
            return None, None, Violation(
                ViolationKind.STRUCTURAL,
                "AMOUNT_NOT_POSITIVE",
                f"Line {index + 1}: amount must be greater than zero",
                index,
            )
        if debit_amount > ZERO:
            return True, debit_amount, None
        return False, credit_amount, None

    if is_debit is None:
        return None, None, Violation(
            ViolationKind.STRUCTURAL,
            "SIDE_MISSING",
            f"Line {index + 1}: debit or credit side is missing",
            index,
        )

    raw_amount = getattr(line, "amount", None)
    if raw_amount is None or raw_amount == "":
        return bool(is_debit), None, Violation(
            ViolationKind.STRUCTURAL,
            "AMOUNT_MISSING",
            f"Line {index + 1}: amount is required",
            index,
        )
    try:
        amount = to_decimal(raw_amount)
    except ValueError:
        return bool(is_debit), None, Violation(
            ViolationKind.STRUCTURAL,
            "AMOUNT_NOT_NUMERIC",
            f"Line {index + 1}: amount is not a number",
            index,
        )
    if amount <= ZERO:
        return bool(is_debit), None, Violation(
            ViolationKind.STRUCTURAL,
            "AMOUNT_NOT_POSITIVE",
            f"Line {index + 1}: amount must be greater than zero",
            index,
        )
    return bool(is_debit), amount, None


def validate_balance(
    lines: Iterable[Any],
    *,
    accounts: Mapping[UUID, AccountInfo] | None = None,
    is_adjustment: bool = False,
    adjustment_type: AdjustmentType | str | None = None,
    adjusted_entry_id: UUID | None = None,
    tolerance: Decimal = DEFAULT_TOLERANCE,
    decimal_places: int = MONEY_DECIMAL_PLACES,
) -> BalanceResult:
    """
    Validate the lines of a journal entry.

    Args:
        lines: LineInput objects, or anything exposing ``account_id`` and
            either ``is_debit``/``amount`` or ``debit``/``credit``.
        accounts: Optional id -> AccountInfo map.  When given, every
            referenced account must exist in it and be a leaf.
        is_adjustment: Entry is flagged as an adjustment.
        adjustment_type: Required when ``is_adjustment``.
        adjusted_entry_id: Required when ``adjustment_type`` is correction.
        tolerance: Strict upper bound on |debit - credit|.
        decimal_places: Precision of the reported totals.

    Returns:
        BalanceResult.  Calling twice with the same input yields equal
        results.
    """
    lines = list(lines)
    violations: list[Violation] = []
    total_debit = ZERO
    total_credit = ZERO
    debit_count = 0
    credit_count = 0

    if len(lines) < MIN_LINES:
        violations.append(Violation(
            ViolationKind.STRUCTURAL,
            "TOO_FEW_LINES",
            f"An entry needs at least {MIN_LINES} lines",
        ))

    for index, line in enumerate(lines):
        account_id = getattr(line, "account_id", None)
        if not account_id:
            violations.append(Violation(
                ViolationKind.STRUCTURAL,
                "ACCOUNT_MISSING",
                f"Line {index + 1}: an account is required",
                index,
            ))
        elif accounts is not None:
            account = accounts.get(account_id)
            if account is None:
                violations.append(Violation(
                    ViolationKind.STRUCTURAL,
                    "ACCOUNT_NOT_FOUND",
                    f"Line {index + 1}: account {account_id} does not exist",
                    index,
                ))
            elif account.is_parent:
                violations.append(Violation(
                    ViolationKind.STRUCTURAL,
                    "PARENT_ACCOUNT",
                    f"Line {index + 1}: account {account.code} is a parent "
                    "account and cannot receive postings",
                    index,
                ))
            elif not account.is_active:
                violations.append(Violation(
                    ViolationKind.STRUCTURAL,
                    "ACCOUNT_INACTIVE",
                    f"Line {index + 1}: account {account.code} is inactive",
                    index,
                ))

        is_debit, amount, problem = resolve_line(line, index)
        if problem is not None:
            violations.append(problem)
        if is_debit is True:
            debit_count += 1
        elif is_debit is False:
            credit_count += 1
        if amount is not None:
            if is_debit:
                total_debit += amount
            else:
                total_credit += amount

    if lines and debit_count == 0:
        violations.append(Violation(
            ViolationKind.STRUCTURAL,
            "NO_DEBIT_LINE",
            "An entry needs at least one debit line",
        ))
    if lines and credit_count == 0:
        violations.append(Violation(
            ViolationKind.STRUCTURAL,
            "NO_CREDIT_LINE",
            "An entry needs at least one credit line",
        ))

    if is_adjustment:
        if not adjustment_type:
            violations.append(Violation(
                ViolationKind.STRUCTURAL,
                "ADJUSTMENT_TYPE_MISSING",
                "Adjustment entries need an adjustment type",
            ))
        elif getattr(adjustment_type, "value", adjustment_type) not in _ADJUSTMENT_TYPE_VALUES:
            violations.append(Violation(
                ViolationKind.STRUCTURAL,
                "ADJUSTMENT_TYPE_UNKNOWN",
                f"Unknown adjustment type: {adjustment_type}",
            ))
        elif (
            AdjustmentType(adjustment_type) == AdjustmentType.CORRECTION
            and adjusted_entry_id is None
        ):
            violations.append(Violation(
                ViolationKind.STRUCTURAL,
                "ADJUSTED_ENTRY_MISSING",
                "Correction entries must reference the entry they correct",
            ))

    difference = abs(total_debit - total_credit)
    if lines and difference >= tolerance:
        violations.append(Violation(
            ViolationKind.BALANCE,
            "UNBALANCED",
            f"Entry is not balanced: debits {round_money(total_debit, decimal_places)} "
            f"!= credits {round_money(total_credit, decimal_places)} "
            f"(difference {round_money(difference, decimal_places)})",
        ))

    totals = BalanceTotals(
        debit=round_money(total_debit, decimal_places),
        credit=round_money(total_credit, decimal_places),
        difference=difference,
    )
    if violations:
        message = "; ".join(v.message for v in violations)
    else:
        message = "Entry is balanced"
    return BalanceResult(
        valid=not violations,
        message=message,
        totals=totals,
        violations=tuple(violations),
    )
