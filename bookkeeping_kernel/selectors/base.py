"""
Module: bookkeeping_kernel.selectors.base
Responsibility: Abstract base class for all read-only query selectors.
    Selectors are the persistence collaborator's read side: they fetch
    accounts, periods, entries and posted lines and hand them back as DTOs.
Architecture position: Kernel > Selectors.  May import from db/, models/ and
    domain DTOs.  MUST NOT import from services/.

Invariants enforced:
    - Read-only access: selectors never add, delete, flush or commit.
    - DTO return convention: selectors return frozen dataclasses, not ORM
      instances.
    - Session ownership: the caller owns the session and its transaction.

Audit relevance:
    Ledger selectors are the only path by which lines reach the aggregator;
    they filter to approved, non-voided entries.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseSelector(ABC):
    """
    Abstract base class for all selectors.

    Contract:
        Accepts a Session from the caller, performs read-only queries, and
        returns DTOs.
    """

    def __init__(self, session: Session):
        self.session = session
