"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Provides the common constructor, session-handling contract and role
    check for every write service.  Services receive a SQLAlchemy
    ``Session``, a ``Clock`` and ``Settings``; they persist with
    ``session.flush()`` and never commit.

Architecture position:
    Kernel > Services -- imperative shell around the pure domain.

Invariants enforced:
    - Transaction boundaries: services flush within the caller's
      transaction and never commit or roll back themselves.  The caller
      (``Database.session_scope()`` or a test harness) owns commit/rollback,
      so a status change, its cached totals and its activity row land
      together or not at all.
    - Authorization is checked before any state is touched.

Audit relevance:
    Every concrete subclass that mutates state logs the operation and
    writes an activity row through ``ActivityRecorder``.
"""

from __future__ import annotations

from abc import ABC
from uuid import UUID

from sqlalchemy.orm import Session

from bookkeeping_config.schema import DEFAULT_SETTINGS, Settings
from bookkeeping_kernel.domain.authorization import Permission, check_permission
from bookkeeping_kernel.domain.clock import Clock, SystemClock
from bookkeeping_kernel.exceptions import AuthorizationError
from bookkeeping_kernel.logging_config import get_logger

logger = get_logger("services.base")


class BaseService(ABC):
    """
    Abstract base class for all kernel services.

    Guarantees:
        - The service never calls ``session.commit()`` or
          ``session.rollback()``.

    Non-goals:
        - Does NOT provide query-only methods; those belong in
          ``bookkeeping_kernel/selectors/``.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        settings: Settings | None = None,
    ):
        self.session = session
        self._clock = clock or SystemClock()
        self._settings = settings or DEFAULT_SETTINGS

    def _authorize(self, role: str | None, permission: Permission, actor_id: UUID) -> None:
        allowed, reason = check_permission(role, permission, self._settings.roles)
        if not allowed:
            logger.warning(
                "authorization_denied",
                extra={
                    "actor_id": str(actor_id),
                    "role": role,
                    "permission": permission.value,
                },
            )
            raise AuthorizationError(role or "", permission.value, reason)
