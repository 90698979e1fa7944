#!/usr/bin/env python3
"""
Error Handling Utility Module

Provides reusable error handling patterns for the collectors. Remote call
failures are expected during normal operation and must never abort a whole
collection pass, while programming errors have to surface loudly.

This module provides three core utilities:
1. log_and_continue() - Log error and continue execution (for expected failures)
2. log_and_return_default() - Log error and return a default value
3. log_and_raise() - Log error with context and re-raise (for unexpected errors)

All functions use structured logging with contextual information to aid debugging.
"""

import logging
from typing import Any


def _error_fields(error: Exception, context: dict[str, Any], error_type: str) -> dict[str, Any]:
    return {
        "extra_fields": {
            "error_type": error_type,
            "exception_class": error.__class__.__name__,
            "context": context,
        }
    }


def log_and_continue(
    logger: logging.Logger | logging.LoggerAdapter,
    error: Exception,
    context: dict[str, Any],
    error_type: str = "Operation",
) -> None:
    """
    Log an error with structured context and continue execution gracefully.

    Use this when encountering expected errors that should not halt execution
    (e.g., one project failing while the others of the same pass succeed).

    Args:
        logger: Logger instance from logging.getLogger(__name__)
        error: The caught exception
        context: Structured data about what failed (project, repository, ...)
        error_type: Human-readable description of the operation

    Example:
        try:
            builds = await client.list_build_history(project.id, since)
        except ADOClientError as e:
            log_and_continue(logger, e, {"project": project.id}, "Build history fetch")
            return
    """
    logger.warning(f"{error_type} failed: {error}", extra=_error_fields(error, context, error_type))


def log_and_return_default(
    logger: logging.Logger | logging.LoggerAdapter,
    error: Exception,
    context: dict[str, Any],
    default_value: Any = None,
    error_type: str = "Operation",
) -> Any:
    """
    Log an error and return a default value (for functions that need to return something).

    Args:
        logger: Logger instance
        error: The caught exception
        context: Structured data about what failed
        default_value: Value to return on error (None, [], {}, etc.)
        error_type: Human-readable description

    Returns:
        default_value

    Example:
        try:
            return await client.list_repositories(project_id)
        except ADOClientError as e:
            return log_and_return_default(
                logger, e,
                context={"project": project_id},
                default_value=[],
                error_type="Repository listing"
            )
    """
    logger.warning(
        f"{error_type} failed, returning default value: {error}",
        extra=_error_fields(error, context, error_type),
    )
    return default_value


def log_and_raise(
    logger: logging.Logger | logging.LoggerAdapter,
    error: Exception,
    context: dict[str, Any],
    error_type: str = "Operation",
) -> None:
    """
    Log an error with context and re-raise it (for unexpected errors).

    Use this for errors that should halt execution and bubble up, e.g. a
    service discovery failure with nothing cached to fall back on.

    Args:
        logger: Logger instance
        error: The caught exception
        context: Structured data about what failed
        error_type: Human-readable description

    Raises:
        The original exception after logging
    """
    logger.error(
        f"{error_type} failed critically: {error}",
        exc_info=error,
        extra=_error_fields(error, context, error_type),
    )
    raise error
