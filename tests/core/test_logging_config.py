"""
Tests for the logging configuration

Covers the JSON formatter, the context adapter and setup_logging().
"""

import json
import logging

import pytest

from ado_exporter.core.logging_config import (
    ContextLoggerAdapter,
    JSONFormatter,
    get_context_logger,
    log_with_context,
    setup_logging,
)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def make_record(message="hello", **extra_fields):
    record = logging.LogRecord("ado_exporter.test", logging.INFO, __file__, 10, message, None, None)
    if extra_fields:
        record.extra_fields = extra_fields
    return record


class TestJSONFormatter:
    """Test JSON line output"""

    def test_basic_fields(self):
        payload = json.loads(JSONFormatter().format(make_record()))

        assert payload["level"] == "INFO"
        assert payload["logger"] == "ado_exporter.test"
        assert payload["message"] == "hello"
        assert payload["timestamp"].endswith("Z")

    def test_extra_fields_are_merged(self):
        payload = json.loads(JSONFormatter().format(make_record(collector="Build", units=3)))

        assert payload["collector"] == "Build"
        assert payload["units"] == 3


class TestContextLoggerAdapter:
    """Test bound context fields"""

    def test_prefix_and_extra_fields(self):
        adapter = ContextLoggerAdapter(logging.getLogger("test"), {"collector": "Build"})

        msg, kwargs = adapter.process("Fetched", {"extra": {"extra_fields": {"builds": 3}}})

        assert msg == "[collector=Build] Fetched"
        assert kwargs["extra"]["extra_fields"] == {"collector": "Build", "builds": 3}

    def test_bind_adds_context_without_mutating_parent(self):
        parent = get_context_logger("test", collector="Build")

        child = parent.bind(project="Platform")

        assert child.extra == {"collector": "Build", "project": "Platform"}
        assert parent.extra == {"collector": "Build"}

    def test_log_record_carries_context(self, caplog):
        logger = get_context_logger("ado_exporter.test_context", collector="Query")

        with caplog.at_level(logging.INFO, logger="ado_exporter.test_context"):
            logger.bind(query="q1@p1").info("done")

        record = caplog.records[-1]
        assert record.extra_fields == {"collector": "Query", "query": "q1@p1"}
        assert record.getMessage() == "[collector=Query query=q1@p1] done"


class TestSetupLogging:
    """Test root logger configuration"""

    def test_json_output(self, restore_root_logger):
        setup_logging(level="DEBUG", json_output=True)

        assert restore_root_logger.level == logging.DEBUG
        assert len(restore_root_logger.handlers) == 1
        assert isinstance(restore_root_logger.handlers[0].formatter, JSONFormatter)
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self, restore_root_logger):
        setup_logging(level="chatty")

        assert restore_root_logger.level == logging.INFO

    def test_log_with_context(self, caplog):
        logger = logging.getLogger("ado_exporter.test_helper")

        with caplog.at_level(logging.WARNING, logger="ado_exporter.test_helper"):
            log_with_context(logger, "warning", "slow pass", collector="Build", seconds=12)

        assert caplog.records[-1].extra_fields == {"collector": "Build", "seconds": 12}
