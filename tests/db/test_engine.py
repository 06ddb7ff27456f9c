"""Tests for the Database handle (bookkeeping_kernel/db/engine.py)."""

from datetime import date

import pytest
from sqlalchemy import func, select

from bookkeeping_kernel.db.engine import Database
from bookkeeping_kernel.models.fiscal_period import FiscalYear


@pytest.fixture
def memory_db():
    db = Database("sqlite://")
    db.create_tables()
    yield db
    db.dispose()


def _fiscal_year(actor_id):
    return FiscalYear(
        name="FY2030",
        start_date=date(2030, 1, 1),
        end_date=date(2030, 12, 31),
        created_by_id=actor_id,
    )


class TestSessionScope:

    def test_commits_on_success(self, memory_db, test_actor_id):
        with memory_db.session_scope() as session:
            session.add(_fiscal_year(test_actor_id))

        with memory_db.session_scope() as session:
            assert session.scalar(select(func.count()).select_from(FiscalYear)) == 1

    def test_rolls_back_on_error(self, memory_db, test_actor_id, captured_logs):
        with pytest.raises(RuntimeError):
            with memory_db.session_scope() as session:
                session.add(_fiscal_year(test_actor_id))
                session.flush()
                raise RuntimeError("boom")

        with memory_db.session_scope() as session:
            assert session.scalar(select(func.count()).select_from(FiscalYear)) == 0
        assert any(r["message"] == "transaction_rolled_back" for r in captured_logs())

    def test_in_memory_sessions_share_one_database(self, memory_db, test_actor_id):
        first = memory_db.session()
        first.add(_fiscal_year(test_actor_id))
        first.commit()
        first.close()

        second = memory_db.session()
        assert second.scalar(select(func.count()).select_from(FiscalYear)) == 1
        second.close()


class TestDialect:

    def test_sqlite(self, memory_db):
        assert memory_db.dialect == "sqlite"
