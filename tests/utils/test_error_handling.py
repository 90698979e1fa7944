#!/usr/bin/env python3
"""
Tests for Error Handling Utility Module

Tests the three core utilities:
1. log_and_continue() - Continue execution after logging
2. log_and_return_default() - Return default value after logging
3. log_and_raise() - Log and re-raise exception
"""

import logging
from unittest.mock import MagicMock

import pytest

from ado_exporter.collectors.ado_rest_client import ADOClientError
from ado_exporter.utils.error_handling import log_and_continue, log_and_raise, log_and_return_default


@pytest.fixture
def mock_logger():
    """Create a mock logger for testing log calls."""
    return MagicMock(spec=logging.Logger)


class TestLogAndContinue:
    """Test suite for log_and_continue() function."""

    def test_logs_at_warning_level(self, mock_logger):
        """Test that log_and_continue logs at WARNING level."""
        error = ADOClientError("HTTP error 404 for build/builds", status_code=404)

        log_and_continue(mock_logger, error, {"project": "Platform"}, "Build history fetch")

        mock_logger.warning.assert_called_once()
        message = mock_logger.warning.call_args[0][0]
        assert "Build history fetch failed" in message
        assert "HTTP error 404" in message

    def test_includes_structured_context(self, mock_logger):
        """Test that structured context is included in log extra."""
        log_and_continue(mock_logger, ValueError("bad"), {"project": "Platform", "repository": "api"}, "Push count")

        fields = mock_logger.warning.call_args[1]["extra"]["extra_fields"]
        assert fields["error_type"] == "Push count"
        assert fields["exception_class"] == "ValueError"
        assert fields["context"] == {"project": "Platform", "repository": "api"}

    def test_returns_none(self, mock_logger):
        assert log_and_continue(mock_logger, ValueError("bad"), {}) is None


class TestLogAndReturnDefault:
    """Test suite for log_and_return_default() function."""

    def test_returns_default_value(self, mock_logger):
        result = log_and_return_default(mock_logger, ValueError("bad"), {"project": "p1"}, default_value=[])

        assert result == []
        mock_logger.warning.assert_called_once()

    def test_default_is_none(self, mock_logger):
        assert log_and_return_default(mock_logger, ValueError("bad"), {}) is None

    def test_message_mentions_default(self, mock_logger):
        log_and_return_default(mock_logger, ValueError("bad"), {}, default_value=0, error_type="Repository discovery")

        assert "Repository discovery failed, returning default value" in mock_logger.warning.call_args[0][0]


class TestLogAndRaise:
    """Test suite for log_and_raise() function."""

    def test_logs_error_and_raises(self, mock_logger):
        error = RuntimeError("no projects")

        with pytest.raises(RuntimeError, match="no projects"):
            log_and_raise(mock_logger, error, {"key": "projects"}, "Service discovery")

        mock_logger.error.assert_called_once()
        assert mock_logger.error.call_args[1]["exc_info"] is error

    def test_raises_same_instance(self, mock_logger):
        error = ValueError("bad")

        with pytest.raises(ValueError) as exc_info:
            log_and_raise(mock_logger, error, {})

        assert exc_info.value is error
