"""
Module: bookkeeping_kernel.db.base
Responsibility: Declarative base for the bookkeeping ORM models, the portable
    UUID column type and the TrackedBase audit columns.
Architecture position: Kernel > DB.  Imported by every model and by
    ``db.engine``; imports nothing else from the kernel.
Invariants enforced:
    - Every row has a uuid4 primary key stored as String(36), so SQLite and
      PostgreSQL hold identical values.
    - Constraint and index names follow one naming convention, so the
      schema is reproducible across backends.
    - Tracked rows always carry the id of the actor who created them.
"""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import DateTime, MetaData, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class UUIDString(TypeDecorator):
    """
    UUID stored as its 36-character string form.

    Accepts UUID objects or UUID strings on the way in and always returns
    UUID objects.  A malformed string raises ValueError at bind time.
    """

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return str(value if isinstance(value, UUID) else UUID(str(value)))

    def process_result_value(self, value, dialect):
        return UUID(value) if value is not None else None


class Base(DeclarativeBase):
    """Declarative base.  Supplies the ``id`` primary key."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)

    id: Mapped[UUID] = mapped_column(
        UUIDString(),
        primary_key=True,
        default=uuid4,
    )


class TrackedBase(Base):
    """
    Abstract base adding who/when columns.

    ``created_by_id`` is required; ``updated_by_id`` is set by services on
    every later change.  Timestamps come from the database clock.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
    created_by_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    updated_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
