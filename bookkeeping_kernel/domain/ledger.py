"""
Module: bookkeeping_kernel.domain.ledger
Responsibility:
    Hierarchical ledger aggregation.  Builds the account tree from flat
    parent links, assigns leaf values from posted lines, rolls totals up to
    summary accounts and computes each account's final balance in its
    natural sign.  Also derives the trial balance and per-account movement
    listings from the same data.

Architecture position:
    Kernel > Domain -- pure calculation, zero I/O apart from logging.
    Callers (LedgerService) fetch accounts and lines through the selectors.

Invariants enforced:
    - A summary account's initial balance, debits and credits are exactly
      the sum over its direct children, at every level (post-order rollup).
    - initial_balance, final_balance are expressed in the account's natural
      direction: debit-normal final = initial + debits - credits,
      credit-normal final = initial - debits + credits.
    - Siblings are ordered by account code at every level.
    - Malformed parent links never recurse forever: an account reached a
      second time is skipped, and an account only reachable through a cycle
      is promoted to a root.  Both are logged.
    - Decimal-only arithmetic.

Failure modes:
    - None raised.  Wrong-sign leaf balances are reported as anomalies and
      logged; they are never corrected.

Audit relevance:
    Parent totals have no independent source of truth; they are always
    recomputed from the leaves.  Only lines the caller supplies are summed,
    so excluding pending and voided entries is the selectors' contract.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from uuid import UUID

from bookkeeping_kernel.db.types import ZERO
from bookkeeping_kernel.domain.dtos import AccountInfo, LedgerLine, NormalBalance
from bookkeeping_kernel.logging_config import get_logger

logger = get_logger("domain.ledger")


@dataclass
class LedgerNode:
    """
    One account in the aggregated ledger tree.

    Mutable only while ``build_ledger`` is filling it in; callers treat it
    as read-only.
    """

    account: AccountInfo
    level: int
    children: list[LedgerNode] = field(default_factory=list)
    initial_balance: Decimal = ZERO
    debits: Decimal = ZERO
    credits: Decimal = ZERO
    final_balance: Decimal = ZERO
    anomaly: bool = False

    @property
    def account_id(self) -> UUID:
        return self.account.id

    @property
    def code(self) -> str:
        return self.account.code

    @property
    def name(self) -> str:
        return self.account.name

    @property
    def is_summary(self) -> bool:
        return bool(self.children) or self.account.is_parent

    @property
    def has_activity(self) -> bool:
        return any(
            value != ZERO
            for value in (self.initial_balance, self.debits, self.credits, self.final_balance)
        )

    def walk(self) -> Iterable[LedgerNode]:
        """Depth-first, parents before children."""
        yield self
        for child in self.children:
            yield from child.walk()


@dataclass(frozen=True)
class BalanceAnomaly:
    """A leaf whose final balance runs against its nature."""

    account_id: UUID
    code: str
    normal_balance: NormalBalance
    final_balance: Decimal


def final_balance(
    normal_balance: NormalBalance,
    initial: Decimal,
    debits: Decimal,
    credits: Decimal,
) -> Decimal:
    """Closing balance in the account's natural direction."""
    if normal_balance == NormalBalance.CREDIT:
        return initial - debits + credits
    return initial + debits - credits


def natural_amount(normal_balance: NormalBalance, debit: Decimal, credit: Decimal) -> Decimal:
    """Express a raw (debit, credit) pair as a signed amount in natural direction."""
    raw = debit - credit
    return -raw if normal_balance == NormalBalance.CREDIT else raw


# ---------------------------------------------------------------------------
# Tree construction
# ---------------------------------------------------------------------------


def build_account_tree(accounts: Sequence[AccountInfo]) -> list[LedgerNode]:
    """
    Arrange flat accounts into a code-ordered forest.

    Roots are accounts with no parent, a parent that is not in ``accounts``,
    or (after cycle breaking) the lowest-coded account of a parent cycle.
    """
    by_id = {account.id: account for account in accounts}
    children_by_parent: dict[UUID, list[AccountInfo]] = defaultdict(list)
    roots: list[AccountInfo] = []

    for account in accounts:
        parent_id = account.parent_id
        if parent_id is None or parent_id not in by_id or parent_id == account.id:
            roots.append(account)
        else:
            children_by_parent[parent_id].append(account)

    for siblings in children_by_parent.values():
        siblings.sort(key=lambda a: a.code)

    visited: set[UUID] = set()

    def attach(account: AccountInfo, level: int) -> LedgerNode:
        node = LedgerNode(account=account, level=level)
        for child in children_by_parent.get(account.id, ()):
            if child.id in visited:
                logger.warning(
                    "hierarchy_cycle_detected",
                    extra={
                        "account_id": str(child.id),
                        "account_code": child.code,
                        "parent_code": account.code,
                    },
                )
                continue
            visited.add(child.id)
            node.children.append(attach(child, level + 1))
        return node

    forest: list[LedgerNode] = []
    for root in sorted(roots, key=lambda a: a.code):
        visited.add(root.id)
        forest.append(attach(root, 0))

    # Anything still unvisited hangs off a parent cycle.  Promote the lowest
    # code of each remaining group to a root and walk from there.
    for account in sorted(accounts, key=lambda a: a.code):
        if account.id in visited:
            continue
        logger.warning(
            "hierarchy_cycle_detected",
            extra={
                "account_id": str(account.id),
                "account_code": account.code,
                "promoted_to_root": True,
            },
        )
        visited.add(account.id)
        forest.append(attach(account, 0))

    forest.sort(key=lambda node: node.code)
    return forest


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


def _sum_by_account(
    lines: Iterable[LedgerLine],
) -> tuple[dict[UUID, Decimal], dict[UUID, Decimal]]:
    debits: dict[UUID, Decimal] = defaultdict(lambda: ZERO)
    credits: dict[UUID, Decimal] = defaultdict(lambda: ZERO)
    for line in lines:
        if line.is_debit:
            debits[line.account_id] += line.amount
        else:
            credits[line.account_id] += line.amount
    return debits, credits


def _aggregate(
    node: LedgerNode,
    prior_debits: dict[UUID, Decimal],
    prior_credits: dict[UUID, Decimal],
    current_debits: dict[UUID, Decimal],
    current_credits: dict[UUID, Decimal],
) -> None:
    account = node.account

    if node.children:
        for child in node.children:
            _aggregate(child, prior_debits, prior_credits, current_debits, current_credits)
        node.initial_balance = sum((c.initial_balance for c in node.children), ZERO)
        node.debits = sum((c.debits for c in node.children), ZERO)
        node.credits = sum((c.credits for c in node.children), ZERO)
    elif account.is_leaf and account.is_active:
        node.initial_balance = natural_amount(
            account.normal_balance,
            prior_debits.get(account.id, ZERO),
            prior_credits.get(account.id, ZERO),
        )
        node.debits = current_debits.get(account.id, ZERO)
        node.credits = current_credits.get(account.id, ZERO)

    node.final_balance = final_balance(
        account.normal_balance, node.initial_balance, node.debits, node.credits
    )

    if not node.children and node.final_balance < ZERO:
        node.anomaly = True
        logger.warning(
            "ledger_balance_anomaly",
            extra={
                "account_id": str(account.id),
                "account_code": account.code,
                "normal_balance": account.normal_balance.value,
                "final_balance": str(node.final_balance),
            },
        )


def build_ledger(
    accounts: Sequence[AccountInfo],
    prior_lines: Iterable[LedgerLine],
    current_lines: Iterable[LedgerLine],
) -> list[LedgerNode]:
    """
    Build the aggregated ledger forest.

    Args:
        accounts: The whole chart of accounts.
        prior_lines: Posted lines dated before the reporting period; they
            form each leaf's initial balance.
        current_lines: Posted lines inside the reporting period.

    Returns:
        Root LedgerNodes ordered by code, each with its subtree filled in.
    """
    forest = build_account_tree(accounts)
    prior_debits, prior_credits = _sum_by_account(prior_lines)
    current_debits, current_credits = _sum_by_account(current_lines)

    for root in forest:
        _aggregate(root, prior_debits, prior_credits, current_debits, current_credits)

    logger.debug(
        "ledger_built",
        extra={
            "account_count": len(accounts),
            "root_count": len(forest),
        },
    )
    return forest


def collect_anomalies(forest: Iterable[LedgerNode]) -> list[BalanceAnomaly]:
    return [
        BalanceAnomaly(
            account_id=node.account_id,
            code=node.code,
            normal_balance=node.account.normal_balance,
            final_balance=node.final_balance,
        )
        for root in forest
        for node in root.walk()
        if node.anomaly
    ]


def flatten_ledger(
    forest: Iterable[LedgerNode],
    *,
    show_zero_balances: bool = True,
) -> list[LedgerNode]:
    """
    Depth-first listing for tabular display.

    With ``show_zero_balances=False`` accounts with no activity are dropped,
    but a summary account is kept whenever any descendant is kept.
    """
    result: list[LedgerNode] = []

    def visit(node: LedgerNode) -> bool:
        position = len(result)
        result.append(node)
        kept_child = False
        for child in node.children:
            kept_child = visit(child) or kept_child
        if show_zero_balances or kept_child or node.has_activity:
            return True
        del result[position:]
        return False

    for root in forest:
        visit(root)
    return result


# ---------------------------------------------------------------------------
# Trial balance
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TrialBalanceRow:
    account_id: UUID
    code: str
    name: str
    level: int
    is_summary: bool
    opening_balance: Decimal
    debits: Decimal
    credits: Decimal
    closing_balance: Decimal


@dataclass(frozen=True)
class TrialBalance:
    """
    Trial balance over one reporting window.

    Guarantees:
        - Totals are summed over leaf rows only, so summary rows are never
          double counted.
        - ``is_balanced`` iff ``difference`` is below the tolerance used to
          build it.
    """

    rows: tuple[TrialBalanceRow, ...]
    total_debits: Decimal
    total_credits: Decimal
    difference: Decimal
    is_balanced: bool


def compute_trial_balance(
    forest: Iterable[LedgerNode],
    tolerance: Decimal = Decimal("0.01"),
) -> TrialBalance:
    rows = []
    total_debits = ZERO
    total_credits = ZERO
    for root in forest:
        for node in root.walk():
            rows.append(TrialBalanceRow(
                account_id=node.account_id,
                code=node.code,
                name=node.name,
                level=node.level,
                is_summary=bool(node.children),
                opening_balance=node.initial_balance,
                debits=node.debits,
                credits=node.credits,
                closing_balance=node.final_balance,
            ))
            if not node.children:
                total_debits += node.debits
                total_credits += node.credits

    difference = abs(total_debits - total_credits)
    return TrialBalance(
        rows=tuple(rows),
        total_debits=total_debits,
        total_credits=total_credits,
        difference=difference,
        is_balanced=difference < tolerance,
    )


# ---------------------------------------------------------------------------
# Account movements
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Movement:
    entry_id: UUID
    entry_number: str
    entry_date: date
    description: str | None
    debit: Decimal
    credit: Decimal
    running_balance: Decimal


def account_movements(
    account: AccountInfo,
    opening_balance: Decimal,
    lines: Iterable[LedgerLine],
    account_ids: set[UUID] | None = None,
) -> list[Movement]:
    """
    Date-ordered movements of one account with a running natural balance.

    ``account_ids`` widens the listing to several accounts (a summary
    account and its descendants); the sign convention stays ``account``'s.
    Lines on the same date keep entry-number order.
    """
    wanted = account_ids if account_ids is not None else {account.id}
    balance = opening_balance
    movements = []
    ordered = sorted(
        (line for line in lines if line.account_id in wanted),
        key=lambda line: (line.entry_date, _entry_number_key(line.entry_number)),
    )
    for line in ordered:
        balance += natural_amount(account.normal_balance, line.debit, line.credit)
        movements.append(Movement(
            entry_id=line.entry_id,
            entry_number=line.entry_number,
            entry_date=line.entry_date,
            description=line.description,
            debit=line.debit,
            credit=line.credit,
            running_balance=balance,
        ))
    return movements


def _entry_number_key(entry_number: str) -> tuple[int, str]:
    return (int(entry_number), "") if entry_number.isdigit() else (0, entry_number)
