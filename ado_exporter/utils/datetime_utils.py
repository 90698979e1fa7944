#!/usr/bin/env python3
"""
Datetime Utility Functions

Centralized datetime and duration parsing shared by the REST transformers,
the configuration loader and the metric collectors.

Handles common patterns:
- Azure DevOps ISO timestamps with 'Z' suffix and 7-digit fractions
- The "zero" timestamp 0001-01-01T00:00:00Z returned for unset fields
- Human duration strings like "30m", "48h" or "1h30m" used in configuration
"""

import re
from datetime import UTC, datetime, timedelta

_FRACTION_PATTERN = re.compile(r"\.(\d+)")
_DURATION_PATTERN = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h|d)")
_DURATION_UNITS = {
    "ms": timedelta(milliseconds=1),
    "s": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
    "d": timedelta(days=1),
}


def parse_ado_timestamp(timestamp_str: str | None) -> datetime | None:
    """
    Parse Azure DevOps ISO timestamp with 'Z' suffix to datetime object.

    Azure DevOps returns timestamps in ISO format with 'Z' suffix indicating UTC,
    frequently with 7 fractional digits which are truncated to microseconds:
    Example: "2026-02-10T10:00:00Z" or "2026-02-10T10:00:00.1234567Z"

    Args:
        timestamp_str: ISO timestamp string with 'Z' suffix, or None

    Returns:
        Timezone aware datetime (UTC when no offset is given), or None if input is empty

    Raises:
        ValueError: If timestamp format is invalid or cannot be parsed

    Examples:
        >>> parse_ado_timestamp("2026-02-10T10:00:00Z")
        datetime.datetime(2026, 2, 10, 10, 0, tzinfo=datetime.timezone.utc)

        >>> parse_ado_timestamp(None)
        None
    """
    if not timestamp_str:
        return None

    if not isinstance(timestamp_str, str):
        raise ValueError(f"Timestamp must be a string, got {type(timestamp_str)}")

    try:
        # Replace 'Z' with '+00:00' for ISO format compatibility
        normalized = timestamp_str.strip().replace("Z", "+00:00")
        normalized = _FRACTION_PATTERN.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), normalized, count=1)
        parsed = datetime.fromisoformat(normalized)
    except (ValueError, AttributeError) as e:
        raise ValueError(f"Invalid timestamp format: {timestamp_str}") from e

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def parse_ado_timestamp_safe(timestamp_str: str | None) -> datetime | None:
    """
    Lenient variant of parse_ado_timestamp.

    Deployment and release payloads occasionally carry garbage in date fields;
    those are treated like absent values instead of failing the whole record.

    Examples:
        >>> parse_ado_timestamp_safe("not-a-date")
        None
    """
    try:
        return parse_ado_timestamp(timestamp_str)
    except ValueError:
        return None


def to_unix_seconds(value: datetime | None) -> float | None:
    """Convert datetime to unix epoch seconds, None for missing or pre-epoch values."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    seconds = value.timestamp()
    if seconds <= 0:
        return None
    return seconds


def parse_duration(value: str | int | float | timedelta | None) -> timedelta:
    """
    Parse a duration string into a timedelta.

    Accepts a sequence of number+unit pairs (ms, s, m, h, d) or a bare number
    of seconds. "0" and empty values mean a zero duration (disabled).

    Args:
        value: Duration like "30m", "1h30m", "45s", "2.5h" or "120"

    Returns:
        timedelta

    Raises:
        ValueError: If the string is not a valid duration

    Examples:
        >>> parse_duration("1h30m")
        datetime.timedelta(seconds=5400)

        >>> parse_duration("0")
        datetime.timedelta(0)
    """
    if value is None or value == "":
        return timedelta(0)
    if isinstance(value, timedelta):
        return value
    if isinstance(value, int | float):
        return timedelta(seconds=value)

    text = value.strip().lower()
    try:
        return timedelta(seconds=float(text))
    except ValueError:
        pass

    position = 0
    total = timedelta(0)
    for match in _DURATION_PATTERN.finditer(text):
        if match.start() != position:
            raise ValueError(f"Invalid duration: {value}")
        total += _DURATION_UNITS[match.group(2)] * float(match.group(1))
        position = match.end()

    if position == 0 or position != len(text):
        raise ValueError(f"Invalid duration: {value}")

    return total


def format_ado_timestamp(value: datetime) -> str:
    """
    Format datetime for Azure DevOps query parameters (minTime, fromDate, ...).

    Examples:
        >>> format_ado_timestamp(datetime(2026, 2, 10, 10, 0, tzinfo=UTC))
        '2026-02-10T10:00:00Z'
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")
