"""
Module: bookkeeping_kernel.db.engine
Responsibility: Database handle owning the SQLAlchemy engine and session
    factory, plus the transactional scope utility.  The handle is constructed
    explicitly by the application entry point and passed to whoever needs
    sessions; there is no module-level engine.
Architecture position: Kernel > DB.  May import from db/base.py and models/
    (create_tables only).  MUST NOT import from services/, selectors/, or
    domain/.

Invariants enforced:
    - On PostgreSQL, sessions run at READ COMMITTED with explicit row-level
      locking (SELECT ... FOR UPDATE) in the approve/void/close paths.
    - SQLite (tests, local tools) uses a single static connection for
      in-memory URLs so every session sees the same database.

Failure modes:
    - sqlalchemy.exc.OperationalError on unreachable database; propagates.

Audit relevance:
    session_scope() gives atomic commit-or-rollback semantics.  Services only
    flush, so posting an entry and updating its cached totals either both
    land or neither does.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from bookkeeping_kernel.db.base import Base
from bookkeeping_kernel.logging_config import get_logger

logger = get_logger("db.engine")


class Database:
    """
    Persistence collaborator handle.

    Contract:
        Owns exactly one Engine and one sessionmaker for its lifetime.
        ``dispose()`` releases pooled connections; the handle is unusable
        afterwards.

    Guarantees:
        - ``session()`` returns a new Session bound to this engine.
        - ``session_scope()`` commits on success, rolls back on exception,
          always closes.

    Non-goals:
        - No retries.  Connection and deadlock errors propagate to the caller.
    """

    def __init__(
        self,
        url: str,
        *,
        echo: bool = False,
        pool_size: int = 10,
        max_overflow: int = 5,
        pool_pre_ping: bool = True,
    ):
        self.url = url
        if url.startswith("sqlite"):
            kwargs: dict = {"connect_args": {"check_same_thread": False}}
            if ":memory:" in url or url in ("sqlite://", "sqlite:///"):
                kwargs["poolclass"] = StaticPool
            self.engine: Engine = create_engine(url, echo=echo, **kwargs)
        else:
            self.engine = create_engine(
                url,
                echo=echo,
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_pre_ping=pool_pre_ping,
                isolation_level="READ COMMITTED",
            )
        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

        logger.info(
            "engine_initialized",
            extra={"dialect": self.engine.dialect.name, "echo": echo},
        )

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    def session(self) -> Session:
        """Get a new session instance."""
        return self._session_factory()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """
        Provide a transactional scope around a series of operations.

        Usage:
            with database.session_scope() as session:
                JournalService(session, clock).approve_entry(...)
        """
        session = self.session()
        logger.debug("transaction_started")
        try:
            yield session
            session.commit()
            logger.debug("transaction_committed")
        except Exception:
            session.rollback()
            logger.warning("transaction_rolled_back", exc_info=True)
            raise
        finally:
            session.close()

    def create_tables(self) -> None:
        """Create all tables defined in the models."""
        import bookkeeping_kernel.models  # noqa: F401

        Base.metadata.create_all(self.engine)

    def drop_tables(self) -> None:
        """Drop all tables. Use with caution - primarily for testing."""
        import bookkeeping_kernel.models  # noqa: F401

        Base.metadata.drop_all(self.engine)

    def dispose(self) -> None:
        self.engine.dispose()
        logger.debug("engine_disposed", extra={"dialect": self.dialect})
