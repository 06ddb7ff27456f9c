"""
Typed exception hierarchy for the bookkeeping kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers must never parse error messages to decide what happened.  Every error
raised by a service is:
  1. A TYPED exception class (catch by type, not message)
  2. Tagged with a CODE class attribute (machine-readable, API-safe)
  3. Carrying structured DATA as attributes (not just a message string)

Validators (balance, period gate) do NOT raise for rule violations; they
return structured result objects so callers can display every violation at
once.  Exceptions are reserved for writes that cannot proceed and for
unexpected failures.

Example:
    try:
        journal_service.approve_entry(entry_id, actor_id, role="admin")
    except ClosedPeriodError as e:
        api_response(code=e.code, period=e.period_name)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    BookkeepingError (base)
    |
    +-- AccountError
    |   +-- AccountNotFoundError
    |   +-- ParentAccountPostingError
    |   +-- AccountTypeMismatchError
    |   +-- AccountInUseError
    |   +-- DuplicateAccountCodeError
    |
    +-- PeriodError
    |   +-- PeriodNotFoundError
    |   +-- ClosedPeriodError
    |   +-- FuturePeriodError
    |   +-- PeriodOverlapError
    |   +-- PeriodAlreadyClosedError
    |   +-- PeriodNotClosedError
    |   +-- PendingEntriesInPeriodError
    |   +-- FiscalYearClosedError
    |   +-- PeriodHasEntriesError
    |   +-- InvalidPeriodRangeError
    |   +-- ClosingEntryError
    |
    +-- EntryError
    |   +-- EntryNotFoundError
    |   +-- EntryValidationError
    |   +-- InvalidEntryTransitionError
    |   +-- VoidReasonRequiredError
    |
    +-- AuthorizationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category   | Code                        | When Raised
-----------|-----------------------------|-----------------------------------
Account    | ACCOUNT_NOT_FOUND           | Account ID doesn't exist
           | PARENT_ACCOUNT_POSTING      | Line references a summary account
           | ACCOUNT_TYPE_MISMATCH       | Child type differs from parent type
           | ACCOUNT_IN_USE              | Has lines or children
           | DUPLICATE_ACCOUNT_CODE      | Code already taken
-----------|-----------------------------|-----------------------------------
Period     | PERIOD_NOT_FOUND            | No period for id or date
           | CLOSED_PERIOD               | Write against a closed period
           | FUTURE_PERIOD               | Date or period after today
           | PERIOD_OVERLAP              | Fiscal years overlap
           | PERIOD_ALREADY_CLOSED       | Close called twice
           | PERIOD_NOT_CLOSED           | Reopen on an open period
           | PENDING_ENTRIES_IN_PERIOD   | Close with unapproved entries
           | FISCAL_YEAR_CLOSED          | Reopen month of a closed year
           | PERIOD_HAS_ENTRIES          | Delete a period with entries
           | INVALID_PERIOD_RANGE        | start_date after end_date
           | CLOSING_ENTRY_REJECTED      | Closing entry cannot be generated
-----------|-----------------------------|-----------------------------------
Entry      | ENTRY_NOT_FOUND             | Entry ID doesn't exist
           | ENTRY_VALIDATION_FAILED     | Balance or structural violations
           | INVALID_ENTRY_TRANSITION    | e.g. approve a voided entry
           | VOID_REASON_REQUIRED        | Void without a reason
-----------|-----------------------------|-----------------------------------
Auth       | NOT_AUTHORIZED              | Role lacks the permission
"""

from __future__ import annotations

from typing import Any


class BookkeepingError(Exception):
    """
    Base exception for all bookkeeping kernel errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "BOOKKEEPING_ERROR"


# Account-related exceptions


class AccountError(BookkeepingError):
    """Base exception for account-related errors."""

    code: str = "ACCOUNT_ERROR"


class AccountNotFoundError(AccountError):
    """Account with given ID was not found."""

    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"Account not found: {account_id}")


class ParentAccountPostingError(AccountError):
    """A journal line referenced a summary (parent) account."""

    code: str = "PARENT_ACCOUNT_POSTING"

    def __init__(self, account_code: str):
        self.account_code = account_code
        super().__init__(
            f"Account {account_code} is a parent account and cannot receive postings"
        )


class AccountTypeMismatchError(AccountError):
    """Child account type must match its parent's type."""

    code: str = "ACCOUNT_TYPE_MISMATCH"

    def __init__(self, account_code: str, account_type: str, parent_type: str):
        self.account_code = account_code
        self.account_type = account_type
        self.parent_type = parent_type
        super().__init__(
            f"Account {account_code} has type {account_type} "
            f"but its parent has type {parent_type}"
        )


class AccountInUseError(AccountError):
    """Account has journal lines or children and cannot be changed that way."""

    code: str = "ACCOUNT_IN_USE"

    def __init__(self, account_code: str, reason: str):
        self.account_code = account_code
        self.reason = reason
        super().__init__(f"Account {account_code} is in use: {reason}")


class DuplicateAccountCodeError(AccountError):
    """Another account already uses this code."""

    code: str = "DUPLICATE_ACCOUNT_CODE"

    def __init__(self, account_code: str):
        self.account_code = account_code
        super().__init__(f"Account code already exists: {account_code}")


# Period-related exceptions


class PeriodError(BookkeepingError):
    """Base exception for period-related errors."""

    code: str = "PERIOD_ERROR"


class PeriodNotFoundError(PeriodError):
    """No period found for the given id or date."""

    code: str = "PERIOD_NOT_FOUND"

    def __init__(self, reference: str):
        self.reference = reference
        super().__init__(f"Accounting period not found: {reference}")


class ClosedPeriodError(PeriodError):
    """Attempted to write into a closed or inactive period."""

    code: str = "CLOSED_PERIOD"

    def __init__(self, period_name: str, entry_date: str | None = None):
        self.period_name = period_name
        self.entry_date = entry_date
        detail = f" (entry_date: {entry_date})" if entry_date else ""
        super().__init__(f"Period {period_name} is closed{detail}")


class FuturePeriodError(PeriodError):
    """Entry date or target period lies in the future."""

    code: str = "FUTURE_PERIOD"

    def __init__(self, period_name: str, entry_date: str, message: str):
        self.period_name = period_name
        self.entry_date = entry_date
        super().__init__(message)


class PeriodOverlapError(PeriodError):
    """New fiscal year date range overlaps with an existing one."""

    code: str = "PERIOD_OVERLAP"

    def __init__(
        self,
        new_period_name: str,
        existing_period_name: str,
        overlap_start: str,
        overlap_end: str,
    ):
        self.new_period_name = new_period_name
        self.existing_period_name = existing_period_name
        self.overlap_start = overlap_start
        self.overlap_end = overlap_end
        super().__init__(
            f"Period {new_period_name} overlaps with {existing_period_name} "
            f"({overlap_start} to {overlap_end})"
        )


class PeriodAlreadyClosedError(PeriodError):
    """Period is already closed."""

    code: str = "PERIOD_ALREADY_CLOSED"

    def __init__(self, period_name: str):
        self.period_name = period_name
        super().__init__(f"Period {period_name} is already closed")


class PeriodNotClosedError(PeriodError):
    """Period is open; nothing to reopen."""

    code: str = "PERIOD_NOT_CLOSED"

    def __init__(self, period_name: str):
        self.period_name = period_name
        super().__init__(f"Period {period_name} is not closed")


class PendingEntriesInPeriodError(PeriodError):
    """Period still holds entries that were never approved."""

    code: str = "PENDING_ENTRIES_IN_PERIOD"

    def __init__(self, period_name: str, pending_count: int):
        self.period_name = period_name
        self.pending_count = pending_count
        super().__init__(
            f"Period {period_name} has {pending_count} pending entries; "
            "approve or delete them before closing"
        )


class FiscalYearClosedError(PeriodError):
    """Monthly period cannot be reopened while its fiscal year is closed."""

    code: str = "FISCAL_YEAR_CLOSED"

    def __init__(self, fiscal_year_name: str, period_name: str):
        self.fiscal_year_name = fiscal_year_name
        self.period_name = period_name
        super().__init__(
            f"Cannot reopen {period_name}: fiscal year {fiscal_year_name} is closed"
        )


class PeriodHasEntriesError(PeriodError):
    """Period cannot be deleted because entries reference it."""

    code: str = "PERIOD_HAS_ENTRIES"

    def __init__(self, period_name: str, entry_count: int):
        self.period_name = period_name
        self.entry_count = entry_count
        super().__init__(
            f"Period {period_name} has {entry_count} journal entries and cannot be deleted"
        )


class InvalidPeriodRangeError(PeriodError):
    """Period start date is after its end date."""

    code: str = "INVALID_PERIOD_RANGE"

    def __init__(self, start_date: str, end_date: str):
        self.start_date = start_date
        self.end_date = end_date
        super().__init__(f"Start date {start_date} is after end date {end_date}")


class ClosingEntryError(PeriodError):
    """Closing entry cannot be generated for the period."""

    code: str = "CLOSING_ENTRY_REJECTED"

    def __init__(self, period_name: str, reason: str):
        self.period_name = period_name
        self.reason = reason
        super().__init__(f"Cannot generate closing entry for {period_name}: {reason}")


# Entry-related exceptions


class EntryError(BookkeepingError):
    """Base exception for journal entry errors."""

    code: str = "ENTRY_ERROR"


class EntryNotFoundError(EntryError):
    """Journal entry with given ID was not found."""

    code: str = "ENTRY_NOT_FOUND"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Journal entry not found: {entry_id}")


class EntryValidationError(EntryError):
    """
    Entry failed balance or structural validation on write.

    ``result`` holds the full ``BalanceResult`` so the caller can render
    every violation.
    """

    code: str = "ENTRY_VALIDATION_FAILED"

    def __init__(self, result: Any):
        self.result = result
        self.messages = [v.message for v in result.violations]
        super().__init__(result.message)


class InvalidEntryTransitionError(EntryError):
    """Requested status change is not allowed from the current status."""

    code: str = "INVALID_ENTRY_TRANSITION"

    def __init__(self, entry_id: str, current_status: str, action: str):
        self.entry_id = entry_id
        self.current_status = current_status
        self.action = action
        super().__init__(
            f"Cannot {action} entry {entry_id} in status {current_status}"
        )


class VoidReasonRequiredError(EntryError):
    """Voiding requires a non-empty reason."""

    code: str = "VOID_REASON_REQUIRED"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"A reason is required to void entry {entry_id}")


# Authorization


class AuthorizationError(BookkeepingError):
    """Actor's role does not grant the requested permission."""

    code: str = "NOT_AUTHORIZED"

    def __init__(self, role: str, permission: str, reason: str):
        self.role = role
        self.permission = permission
        self.reason = reason
        super().__init__(reason)

