"""Kernel services: every write path and the ledger reports."""

from bookkeeping_kernel.services.account_service import AccountService
from bookkeeping_kernel.services.activity_recorder import ActivityRecorder
from bookkeeping_kernel.services.base import BaseService
from bookkeeping_kernel.services.journal_service import EntryCheck, JournalService
from bookkeeping_kernel.services.ledger_service import AccountLedger, LedgerService
from bookkeeping_kernel.services.period_service import PeriodService

__all__ = [
    "AccountLedger",
    "AccountService",
    "ActivityRecorder",
    "BaseService",
    "EntryCheck",
    "JournalService",
    "LedgerService",
    "PeriodService",
]
