"""Unit tests for structured JSON logging."""

from __future__ import annotations

import json
import logging
import sys

from bank_ledger.lib.logging_config import JSONFormatter, get_logger, setup_logging


def _record(message: str = "hello %s", args: tuple = ("world",), **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="bank_ledger.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=args,
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_standard_fields(self) -> None:
        """Given a record, When formatted, Then the standard JSON fields."""
        entry = json.loads(JSONFormatter().format(_record()))

        assert entry["level"] == "INFO"
        assert entry["logger"] == "bank_ledger.test"
        assert entry["message"] == "hello world"
        assert entry["component"] == "bank_ledger"
        assert "timestamp" in entry
        assert set(entry) == {"timestamp", "level", "logger", "message", "component"}

    def test_batch_id_included(self) -> None:
        """Given a batch_id extra, When formatted, Then it is emitted."""
        entry = json.loads(JSONFormatter().format(_record(batch_id="abc123")))
        assert entry["batch_id"] == "abc123"

    def test_exception_included(self) -> None:
        """Given exc_info, When formatted, Then exception type and message."""
        try:
            raise ValueError("boom")
        except ValueError:
            record = _record()
            record.exc_info = sys.exc_info()

        entry = json.loads(JSONFormatter().format(record))

        assert entry["exception"] == {"type": "ValueError", "message": "boom"}


class TestSetupLogging:
    def test_configures_single_handler(self) -> None:
        """Given repeated setup, When configured, Then one JSON handler."""
        setup_logging("DEBUG")
        logger = setup_logging("DEBUG")

        assert logger.name == "bank_ledger"
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, JSONFormatter)
        assert logger.propagate is False

    def test_unknown_level_falls_back_to_info(self) -> None:
        """Given an unknown level, When configured, Then INFO."""
        assert setup_logging("CHATTY").level == logging.INFO


class TestGetLogger:
    def test_child_of_ledger_logger(self) -> None:
        """Given a module name, When requested, Then a bank_ledger child logger."""
        assert get_logger("ingestion.pipeline").name == "bank_ledger.ingestion.pipeline"
