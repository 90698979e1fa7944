"""
Core infrastructure for the exporter

Provides logging configuration, the metric accumulator and the shared
exporter context.
"""

from ado_exporter.core.context import ExporterContext
from ado_exporter.core.logging_config import (
    ContextLoggerAdapter,
    get_context_logger,
    get_logger,
    log_with_context,
    setup_logging,
)
from ado_exporter.core.metric_list import MetricList, label_value

__all__ = [
    "ExporterContext",
    "ContextLoggerAdapter",
    "get_context_logger",
    "get_logger",
    "log_with_context",
    "setup_logging",
    "MetricList",
    "label_value",
]
