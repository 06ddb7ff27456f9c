"""Tests for bookkeeping_kernel.logging_config."""

import json
import logging
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from bookkeeping_config.schema import Settings
from bookkeeping_kernel.exceptions import ClosedPeriodError
from bookkeeping_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


@pytest.fixture
def json_stream():
    """Configure logging into a buffer; call the fixture to read parsed records."""
    stream = StringIO()

    def install(**kwargs):
        handler = logging.StreamHandler(stream)
        handler.setFormatter(StructuredFormatter())
        configure_logging(handler=handler, **kwargs)

    def records():
        return [json.loads(line) for line in stream.getvalue().splitlines() if line]

    records.install = install
    return records


class TestStructuredFormatter:

    def test_base_keys(self, json_stream):
        json_stream.install()
        get_logger("test").info("hello")

        (record,) = json_stream()
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "bookkeeping_kernel.test"
        assert "ts" in record

    def test_extra_fields(self, json_stream):
        json_stream.install()
        get_logger("test").info("entry_approved", extra={"entry_number": "42", "line_count": 2})

        (record,) = json_stream()
        assert record["entry_number"] == "42"
        assert record["line_count"] == 2

    def test_bound_context(self, json_stream):
        json_stream.install()
        LogContext.set(correlation_id="abc-123", period_id="p-1")
        get_logger("test").info("test_msg")

        (record,) = json_stream()
        assert record["correlation_id"] == "abc-123"
        assert record["period_id"] == "p-1"

    def test_amounts_keep_their_digits(self, json_stream):
        json_stream.install()
        uid = uuid4()
        get_logger("test").info(
            "amounts", extra={"account_id": uid, "total": Decimal("10.50"), "codes": {"b", "a"}}
        )

        (record,) = json_stream()
        assert record["account_id"] == str(uid)
        assert record["total"] == "10.50"
        assert record["codes"] == ["a", "b"]

    def test_exception_attributes(self, json_stream):
        json_stream.install()
        try:
            raise ClosedPeriodError("January 2024", "2024-01-15")
        except ClosedPeriodError:
            get_logger("test").error("period_error", exc_info=True)

        (record,) = json_stream()
        assert record["exc_code"] == "CLOSED_PERIOD"
        assert record["exc_type"] == "ClosedPeriodError"
        assert record["exc_period_name"] == "January 2024"
        assert record["exc_entry_date"] == "2024-01-15"
        assert "traceback" in record


class TestLogContext:

    def test_set_ignores_none(self):
        LogContext.set(correlation_id="x", actor_id="y", entry_id=None)
        assert LogContext.get_all() == {"correlation_id": "x", "actor_id": "y"}

    def test_clear(self):
        LogContext.set(correlation_id="x")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_restores_outer_value(self):
        LogContext.set(entry_id="outer")
        with LogContext.bind(entry_id="inner"):
            assert LogContext.get_all()["entry_id"] == "inner"
        assert LogContext.get_all()["entry_id"] == "outer"

    def test_bind_restores_on_error(self):
        with pytest.raises(RuntimeError):
            with LogContext.bind(actor_id=uuid4()):
                raise RuntimeError("boom")
        assert "actor_id" not in LogContext.get_all()

    def test_unknown_field(self):
        with pytest.raises(ValueError):
            LogContext.set(tenant_id="t-1")


class TestConfigureLogging:

    def test_idempotent(self, json_stream):
        json_stream.install()
        json_stream.install()
        structured = [
            handler for handler in logging.getLogger("bookkeeping_kernel").handlers
            if isinstance(handler.formatter, StructuredFormatter)
        ]
        assert len(structured) == 1

    def test_default_level_is_info(self, json_stream):
        json_stream.install()
        logger = get_logger("test")
        logger.debug("hidden")
        logger.info("shown")

        assert [r["message"] for r in json_stream()] == ["shown"]

    def test_level_from_settings(self, json_stream):
        json_stream.install(settings=Settings(log_level="WARNING"))
        logger = get_logger("test")
        logger.info("hidden")
        logger.warning("shown")

        assert [r["message"] for r in json_stream()] == ["shown"]

    def test_explicit_level_wins(self, json_stream):
        json_stream.install(level=logging.DEBUG, settings=Settings(log_level="ERROR"))
        get_logger("deep.nested.module").debug("hierarchy_test")

        (record,) = json_stream()
        assert record["logger"] == "bookkeeping_kernel.deep.nested.module"
