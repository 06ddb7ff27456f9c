"""Domain models for the bookkeeping kernel."""

from bookkeeping_kernel.models.account import Account
from bookkeeping_kernel.models.activity_log import ActivityAction, ActivityLog
from bookkeeping_kernel.models.fiscal_period import FiscalYear, MonthlyPeriod
from bookkeeping_kernel.models.journal import JournalEntry, JournalLine

__all__ = [
    "Account",
    "ActivityAction",
    "ActivityLog",
    "FiscalYear",
    "MonthlyPeriod",
    "JournalEntry",
    "JournalLine",
]
