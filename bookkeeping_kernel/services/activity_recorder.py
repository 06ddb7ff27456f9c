"""
ActivityRecorder -- append-only activity trail.

Responsibility:
    Writes one ``ActivityLog`` row per state change made by the services.
    Timestamps come from the injected clock.

Architecture position:
    Kernel > Services.  Called by the other services inside their own
    flush; never commits.

Invariants enforced:
    - Append-only: this class only ever adds rows.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from bookkeeping_kernel.domain.clock import Clock, SystemClock
from bookkeeping_kernel.models.activity_log import ActivityAction, ActivityLog


class ActivityRecorder:
    """Records service actions as ActivityLog rows."""

    def __init__(self, session: Session, clock: Clock | None = None):
        self.session = session
        self._clock = clock or SystemClock()

    def record(
        self,
        entity_type: str,
        entity_id: UUID,
        action: ActivityAction,
        actor_id: UUID,
        details: dict[str, Any] | None = None,
    ) -> ActivityLog:
        row = ActivityLog(
            entity_type=entity_type,
            entity_id=entity_id,
            action=action.value,
            actor_id=actor_id,
            occurred_at=self._clock.now(),
            details=details,
        )
        self.session.add(row)
        return row
