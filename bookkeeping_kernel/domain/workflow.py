"""
Journal entry workflow (``bookkeeping_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects describing the journal entry lifecycle: which action
moves an entry from which status to which, which permission it needs and
which guards the service must check before applying it.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.
``JournalService`` looks transitions up here and raises
``InvalidEntryTransitionError`` when none matches.

Invariants enforced
-------------------
* Only PENDING entries are edited, re-classified or deleted.
* APPROVED entries are never deleted; they can only be voided.
* VOIDED is terminal.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from bookkeeping_kernel.domain.authorization import Permission
from bookkeeping_kernel.domain.dtos import EntryStatus


class EntryAction(str, Enum):
    APPROVE = "approve"
    VOID = "void"
    DELETE = "delete"
    EDIT = "edit"
    MARK_ADJUSTMENT = "mark_adjustment"


@dataclass(frozen=True)
class Guard:
    """A condition that must hold before a transition fires.

    Descriptive only; the service evaluates it.
    """

    name: str
    description: str


@dataclass(frozen=True)
class Transition:
    """A valid status change.  ``to_status`` None means the entry is removed."""

    from_status: EntryStatus
    to_status: EntryStatus | None
    action: EntryAction
    permission: Permission
    guards: tuple[Guard, ...] = ()


@dataclass(frozen=True)
class Workflow:
    name: str
    initial_status: EntryStatus
    transitions: tuple[Transition, ...]
    terminal_statuses: frozenset[EntryStatus] = frozenset()

    def find(self, from_status: EntryStatus, action: EntryAction) -> Transition | None:
        for transition in self.transitions:
            if transition.from_status == from_status and transition.action == action:
                return transition
        return None

    def allowed_actions(self, status: EntryStatus) -> tuple[EntryAction, ...]:
        return tuple(t.action for t in self.transitions if t.from_status == status)


PERIOD_OPEN = Guard("period_open", "The entry's period is open, active and not in the future")
BALANCED = Guard("balanced", "The entry's lines pass the balance validator")
REASON_GIVEN = Guard("reason_given", "A non-empty void reason was supplied")


JOURNAL_ENTRY_WORKFLOW = Workflow(
    name="journal_entry",
    initial_status=EntryStatus.PENDING,
    transitions=(
        Transition(
            EntryStatus.PENDING, EntryStatus.APPROVED, EntryAction.APPROVE,
            Permission.APPROVE_ENTRIES, (PERIOD_OPEN, BALANCED),
        ),
        Transition(
            EntryStatus.PENDING, EntryStatus.PENDING, EntryAction.EDIT,
            Permission.EDIT_ENTRIES, (PERIOD_OPEN, BALANCED),
        ),
        Transition(
            EntryStatus.PENDING, EntryStatus.PENDING, EntryAction.MARK_ADJUSTMENT,
            Permission.EDIT_ENTRIES, (PERIOD_OPEN,),
        ),
        Transition(
            EntryStatus.PENDING, None, EntryAction.DELETE,
            Permission.DELETE_ENTRIES, (PERIOD_OPEN,),
        ),
        Transition(
            EntryStatus.APPROVED, EntryStatus.VOIDED, EntryAction.VOID,
            Permission.VOID_ENTRIES, (PERIOD_OPEN, REASON_GIVEN),
        ),
    ),
    terminal_statuses=frozenset({EntryStatus.VOIDED}),
)
