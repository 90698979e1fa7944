"""
Metric accumulator

Collect values into a MetricList first and publish them later with one of the
``*_set``/``*_add`` methods. Building the list performs no registry access, so
a collection pass can compute everything before the published metric is reset
and replayed in one go.

Usage:
    metric = MetricList()
    metric.add_info({"projectID": project.id, "projectName": project.name})
    metric.add_time({"projectID": project.id, "type": "created"}, project.created)

    # later, inside the publish step
    metric.gauge_set(self.prometheus_project_info)
"""

from collections.abc import Iterator, Mapping
from datetime import timedelta
from typing import Any

from prometheus_client import Counter, Gauge, Summary

from ado_exporter.utils.datetime_utils import to_unix_seconds

LabelSet = dict[str, str]


def label_value(value: Any) -> str:
    """
    Render a label value the way Prometheus consumers expect it.

    Examples:
        >>> label_value(True)
        'true'
        >>> label_value(None)
        ''
        >>> label_value(42)
        '42'
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class MetricList:
    """
    Ordered, append-only list of (labels, value) entries for one metric family.

    One instance belongs to exactly one fan-out unit of one pass and is never
    shared between tasks; entries are merged only through the publish callback.
    """

    def __init__(self) -> None:
        self.entries: list[tuple[LabelSet, float]] = []

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[tuple[LabelSet, float]]:
        return iter(self.entries)

    def add(self, labels: Mapping[str, Any], value: float) -> None:
        """Append an entry unconditionally."""
        self.entries.append(({name: label_value(v) for name, v in labels.items()}, float(value)))

    def add_info(self, labels: Mapping[str, Any]) -> None:
        """Append an info entry (value 1)."""
        self.add(labels, 1)

    def add_bool(self, labels: Mapping[str, Any], condition: bool) -> None:
        self.add(labels, 1 if condition else 0)

    def add_time(self, labels: Mapping[str, Any], instant: Any) -> None:
        """
        Append the unix timestamp of ``instant``.

        Missing, zero and pre-epoch instants (Azure DevOps reports unset dates
        as 0001-01-01) are skipped rather than published as 0.
        """
        seconds = to_unix_seconds(instant)
        if seconds is None:
            return
        self.add(labels, seconds)

    def add_duration(self, labels: Mapping[str, Any], duration: timedelta | float) -> None:
        """Append a duration in fractional seconds."""
        if isinstance(duration, timedelta):
            duration = duration.total_seconds()
        self.add(labels, duration)

    def add_if_not_none(self, labels: Mapping[str, Any], value: float | None) -> None:
        if value is not None:
            self.add(labels, value)

    def add_if_not_zero(self, labels: Mapping[str, Any], value: float | None) -> None:
        if value:
            self.add(labels, value)

    def add_if_greater_zero(self, labels: Mapping[str, Any], value: float | None) -> None:
        if value is not None and value > 0:
            self.add(labels, value)

    def gauge_set(self, gauge: Gauge) -> None:
        """
        Replay every entry into a gauge (last value wins per label tuple).

        Raises:
            ValueError: If an entry does not match the gauge label schema
        """
        for labels, value in self.entries:
            gauge.labels(**labels).set(value)

    def counter_add(self, counter: Counter) -> None:
        """Replay every entry into a counter, each entry increments it."""
        for labels, value in self.entries:
            counter.labels(**labels).inc(value)

    def summary_set(self, summary: Summary) -> None:
        """Replay every entry into a summary as one observation."""
        for labels, value in self.entries:
            summary.labels(**labels).observe(value)
