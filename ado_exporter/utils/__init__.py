"""Shared helpers for timestamps, durations and error logging."""

from ado_exporter.utils.datetime_utils import (
    format_ado_timestamp,
    parse_ado_timestamp,
    parse_ado_timestamp_safe,
    parse_duration,
    to_unix_seconds,
)
from ado_exporter.utils.error_handling import log_and_continue, log_and_raise, log_and_return_default

__all__ = [
    "format_ado_timestamp",
    "parse_ado_timestamp",
    "parse_ado_timestamp_safe",
    "parse_duration",
    "to_unix_seconds",
    "log_and_continue",
    "log_and_raise",
    "log_and_return_default",
]
