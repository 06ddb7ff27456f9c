"""
Module: bookkeeping_kernel.domain.statements
Responsibility:
    Financial statements and period-closing computations derived from an
    aggregated ledger: the balance sheet, the income statement and the
    lines of the entry that transfers the period result to equity.

Architecture position:
    Kernel > Domain -- pure calculation over ``LedgerNode`` forests and
    ``LedgerLine`` lists.  LedgerService and PeriodService fetch the data.

Invariants enforced:
    - A section total is the sum of its root accounts, each signed by the
      section's natural side.  A contra account (e.g. accumulated
      depreciation under assets) reduces the total.
    - The balance sheet carries the result not yet transferred to equity,
      so assets == liabilities + equity + unclosed result whenever the
      underlying entries balance.
    - Income statement amounts are period movements; balance sheet amounts
      are closing balances.
    - Order accounts appear in neither statement.

Failure modes:
    - None raised.  An out-of-balance sheet is reported through
      ``BalanceSheet.is_balanced``.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from bookkeeping_kernel.db.types import MONEY_DECIMAL_PLACES, ZERO, round_money
from bookkeeping_kernel.domain.dtos import (
    AccountInfo,
    AccountType,
    LedgerLine,
    LineInput,
    nature_for_type,
)
from bookkeeping_kernel.domain.ledger import LedgerNode, flatten_ledger

RESULT_TYPES = (AccountType.REVENUE, AccountType.COST, AccountType.EXPENSE)


@dataclass(frozen=True)
class StatementLine:
    account_id: UUID
    code: str
    name: str
    level: int
    is_summary: bool
    amount: Decimal


@dataclass(frozen=True)
class StatementSection:
    """All accounts of one type, in ledger order, with the section total."""

    account_type: AccountType
    lines: tuple[StatementLine, ...]
    total: Decimal


@dataclass(frozen=True)
class IncomeStatement:
    revenue: StatementSection
    costs: StatementSection
    expenses: StatementSection
    net_income: Decimal


@dataclass(frozen=True)
class BalanceSheet:
    """
    Position at the end of the reporting window.

    Guarantees:
        - ``total_liabilities_and_equity`` includes ``net_income``, the
          revenue, cost and expense balances not yet closed to equity.
        - ``is_balanced`` iff ``difference`` is below the tolerance used to
          build it.
    """

    assets: StatementSection
    liabilities: StatementSection
    equity: StatementSection
    net_income: Decimal
    total_liabilities_and_equity: Decimal
    difference: Decimal
    is_balanced: bool


def _closing_amount(node: LedgerNode) -> Decimal:
    return node.final_balance


def _movement(node: LedgerNode) -> Decimal:
    return node.final_balance - node.initial_balance


def _section(
    forest: Sequence[LedgerNode],
    account_type: AccountType,
    amount_of: Callable[[LedgerNode], Decimal],
    show_zero_balances: bool,
) -> StatementSection:
    roots = [root for root in forest if root.account.account_type == account_type]
    side = nature_for_type(account_type)

    total = ZERO
    for root in roots:
        amount = amount_of(root)
        total += amount if root.account.normal_balance == side else -amount

    lines = tuple(
        StatementLine(
            account_id=node.account_id,
            code=node.code,
            name=node.name,
            level=node.level,
            is_summary=node.is_summary,
            amount=amount_of(node),
        )
        for node in flatten_ledger(roots, show_zero_balances=show_zero_balances)
    )
    return StatementSection(account_type=account_type, lines=lines, total=total)


def income_statement(
    forest: Sequence[LedgerNode],
    *,
    show_zero_balances: bool = True,
) -> IncomeStatement:
    """Revenue, costs and expenses moved inside the reporting window."""
    revenue = _section(forest, AccountType.REVENUE, _movement, show_zero_balances)
    costs = _section(forest, AccountType.COST, _movement, show_zero_balances)
    expenses = _section(forest, AccountType.EXPENSE, _movement, show_zero_balances)
    return IncomeStatement(
        revenue=revenue,
        costs=costs,
        expenses=expenses,
        net_income=revenue.total - costs.total - expenses.total,
    )


def balance_sheet(
    forest: Sequence[LedgerNode],
    *,
    tolerance: Decimal = Decimal("0.01"),
    show_zero_balances: bool = True,
) -> BalanceSheet:
    """Assets, liabilities and equity at their closing balances."""
    assets = _section(forest, AccountType.ASSET, _closing_amount, show_zero_balances)
    liabilities = _section(forest, AccountType.LIABILITY, _closing_amount, show_zero_balances)
    equity = _section(forest, AccountType.EQUITY, _closing_amount, show_zero_balances)

    revenue, costs, expenses = (
        _section(forest, account_type, _closing_amount, False) for account_type in RESULT_TYPES
    )
    net_income = revenue.total - costs.total - expenses.total

    total_le = liabilities.total + equity.total + net_income
    difference = abs(assets.total - total_le)
    return BalanceSheet(
        assets=assets,
        liabilities=liabilities,
        equity=equity,
        net_income=net_income,
        total_liabilities_and_equity=total_le,
        difference=difference,
        is_balanced=difference < tolerance,
    )


# ---------------------------------------------------------------------------
# Closing entry
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ClosingComputation:
    """
    Lines that bring every revenue, cost and expense leaf to zero for one
    period, with the difference booked to the equity account.

    ``lines`` is empty when no result account moved in the period.
    """

    lines: tuple[LineInput, ...]
    total_revenue: Decimal
    total_costs: Decimal
    total_expenses: Decimal
    net_result: Decimal


def compute_closing_lines(
    accounts: Iterable[AccountInfo],
    period_lines: Iterable[LedgerLine],
    equity_account_id: UUID,
    *,
    decimal_places: int = MONEY_DECIMAL_PLACES,
) -> ClosingComputation:
    """
    Build the closing entry for the period whose posted lines are
    ``period_lines``.

    Each result leaf gets one line on the side opposite its net movement.
    A profit is credited to ``equity_account_id``, a loss debited.
    """
    result_accounts = {
        account.id: account
        for account in accounts
        if account.account_type in RESULT_TYPES and account.is_leaf
    }
    net_debit: dict[UUID, Decimal] = defaultdict(lambda: ZERO)
    for line in period_lines:
        if line.account_id in result_accounts:
            net_debit[line.account_id] += line.debit - line.credit

    totals = {account_type: ZERO for account_type in RESULT_TYPES}
    lines: list[LineInput] = []
    for account in sorted(result_accounts.values(), key=lambda a: a.code):
        raw = round_money(net_debit.get(account.id, ZERO), decimal_places)
        if raw == ZERO:
            continue
        if account.account_type == AccountType.REVENUE:
            totals[AccountType.REVENUE] -= raw
        else:
            totals[account.account_type] += raw
        description = f"Close {account.code} {account.name}"
        if raw > ZERO:
            lines.append(LineInput.credit_line(account.id, raw, description))
        else:
            lines.append(LineInput.debit_line(account.id, -raw, description))

    net_result = (
        totals[AccountType.REVENUE] - totals[AccountType.COST] - totals[AccountType.EXPENSE]
    )
    if lines and net_result > ZERO:
        lines.append(LineInput.credit_line(equity_account_id, net_result, "Period profit"))
    elif lines and net_result < ZERO:
        lines.append(LineInput.debit_line(equity_account_id, -net_result, "Period loss"))

    return ClosingComputation(
        lines=tuple(lines),
        total_revenue=totals[AccountType.REVENUE],
        total_costs=totals[AccountType.COST],
        total_expenses=totals[AccountType.EXPENSE],
        net_result=net_result,
    )
