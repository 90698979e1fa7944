"""
Centralized logging configuration with structured JSON output.

Provides:
- JSON structured logging for production (LOG_JSON=1)
- Human-readable console logging for development
- Automatic context injection (timestamp, module, level)
- Context adapters carrying collector/project/agent pool fields

Usage:
    from ado_exporter.core.logging_config import get_logger

    logger = get_logger(__name__)
    logger.info("Collection finished", extra={"extra_fields": {"collector": "Build"}})
"""

import json
import logging
import sys
from collections.abc import MutableMapping
from datetime import UTC, datetime
from typing import Any


def _iso_timestamp(created: float) -> str:
    return datetime.fromtimestamp(created, UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line, timestamped with the record creation time.

    Context bound through ContextLoggerAdapter (collector, project, agentPool,
    query) lands as top-level keys next to the standard fields.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": _iso_timestamp(record.created),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        return json.dumps(log_data, default=str)


class ContextFormatter(logging.Formatter):
    """Console formatter colouring the level name when stdout is a terminal."""

    # ANSI color codes
    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        if sys.stdout.isatty():  # Only use colors if outputting to terminal
            color = self.COLORS.get(levelname, "")
            record.levelname = f"{color}{levelname}{self.RESET}"

        try:
            return super().format(record)
        finally:
            record.levelname = levelname


class ContextLoggerAdapter(logging.LoggerAdapter):
    """
    Logger adapter binding fixed context fields to every message.

    Fields are rendered as a ``[key=value ...]`` prefix for console output and
    merged into ``extra_fields`` so the JSON formatter emits them as keys.

    Example:
        logger = ContextLoggerAdapter(get_logger(__name__), {"collector": "Build"})
        project_logger = logger.bind(project="MyProject")
        project_logger.info("Fetched 12 builds")
        # [collector=Build project=MyProject] Fetched 12 builds
    """

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        fields = dict(self.extra or {})
        fields.update(extra.get("extra_fields", {}))
        extra["extra_fields"] = fields
        kwargs["extra"] = extra

        if self.extra:
            prefix = " ".join(f"{key}={value}" for key, value in self.extra.items())
            msg = f"[{prefix}] {msg}"
        return msg, kwargs

    def bind(self, **context: Any) -> "ContextLoggerAdapter":
        """Return a new adapter with additional context fields."""
        return ContextLoggerAdapter(self.logger, {**(self.extra or {}), **context})


def setup_logging(level: str = "INFO", json_output: bool = False) -> None:
    """
    Configure application-wide logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: If True, use JSON formatter; if False, use human-readable format

    Example:
        # Development (human-readable console)
        setup_logging(level="DEBUG")

        # Production (JSON lines to stdout)
        setup_logging(level="INFO", json_output=True)
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)

    if json_output:
        console_handler.setFormatter(JSONFormatter())
    else:
        console_handler.setFormatter(
            ContextFormatter(
                fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )

    root_logger.addHandler(console_handler)

    # Reduce noise from the HTTP stack, every API call would be logged otherwise
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("hpack").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Module logger; pass __name__."""
    return logging.getLogger(name)


def get_context_logger(name: str, **context: Any) -> ContextLoggerAdapter:
    """
    Get a logger adapter with bound context fields.

    Example:
        logger = get_context_logger(__name__, collector="AgentPool")
    """
    return ContextLoggerAdapter(logging.getLogger(name), context)


def log_with_context(
    logger: logging.Logger | logging.LoggerAdapter, level: str, message: str, **context: Any
) -> None:
    """
    Log message with additional context fields.

    Args:
        logger: Logger instance
        level: Log level (debug, info, warning, error, critical)
        message: Log message
        **context: Additional context fields (key-value pairs)

    Example:
        log_with_context(
            logger,
            "info",
            "Collection finished",
            collector="Build",
            duration_seconds=1.23,
        )
    """
    log_func = getattr(logger, level.lower())
    log_func(message, extra={"extra_fields": context})


# Default configuration (can be overridden by calling setup_logging)
if not logging.getLogger().handlers:
    setup_logging(level="INFO", json_output=False)
