# backend/tests/utils/test_logging.py
"""
Tests for logging setup: formatters, correlation ID filter, level validation.
"""

import json
import logging

import pytest

from portfolio_tracker.utils.context import clear_correlation_id, set_correlation_id
from portfolio_tracker.utils.logging import (
    NO_CORRELATION_ID,
    CorrelationIdFilter,
    JsonFormatter,
    setup_logging,
)


def make_record(message: str = "hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="portfolio_tracker.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestCorrelationIdFilter:
    """The filter stamps every record with the current correlation ID."""

    def test_uses_current_id(self):
        set_correlation_id("abc-123")
        try:
            record = make_record()
            assert CorrelationIdFilter().filter(record) is True
            assert record.correlation_id == "abc-123"
        finally:
            clear_correlation_id()

    def test_placeholder_outside_request(self):
        clear_correlation_id()
        record = make_record()

        CorrelationIdFilter().filter(record)

        assert record.correlation_id == NO_CORRELATION_ID


class TestJsonFormatter:
    """One JSON object per record."""

    def test_basic_fields(self):
        record = make_record("Recorded deposit", correlation_id="abc-123")

        entry = json.loads(JsonFormatter().format(record))

        assert entry["level"] == "INFO"
        assert entry["logger"] == "portfolio_tracker.test"
        assert entry["correlation_id"] == "abc-123"
        assert entry["message"] == "Recorded deposit"

    def test_non_json_extras_are_stringified(self):
        from decimal import Decimal

        record = make_record(portfolio_id=1, amount=Decimal("1000.50"))

        entry = json.loads(JsonFormatter().format(record))

        assert entry["extra"]["portfolio_id"] == 1
        assert entry["extra"]["amount"] == "1000.50"


class TestSetupLogging:
    """setup_logging installs one handler and validates the level."""

    def test_invalid_level(self):
        with pytest.raises(ValueError, match="Invalid log level"):
            setup_logging(level="LOUD")

    def test_installs_single_handler(self):
        setup_logging(level="debug", log_format="json")
        setup_logging(level="INFO", log_format="text")

        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.level == logging.INFO
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
