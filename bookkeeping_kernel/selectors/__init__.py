"""Read-only query selectors."""

from bookkeeping_kernel.selectors.account_selector import AccountSelector
from bookkeeping_kernel.selectors.journal_selector import JournalSelector
from bookkeeping_kernel.selectors.ledger_selector import LedgerSelector
from bookkeeping_kernel.selectors.period_selector import PeriodSelector

__all__ = [
    "AccountSelector",
    "JournalSelector",
    "LedgerSelector",
    "PeriodSelector",
]
