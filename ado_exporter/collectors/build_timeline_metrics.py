"""
Build timeline collector

Lists the builds of the configured timeline states (ADO_TIMELINE_STATES) within
the build history window and exports the stage, phase, job and task records of
every build timeline.

Timelines are fetched one call per build, so this collector keeps its own
smaller concurrency bound on top of the client wide REQUEST_CONCURRENCY gate.
"""

import asyncio
from datetime import UTC, datetime

from ado_exporter.collectors.ado_rest_client import ADOClientError
from ado_exporter.collectors.base import Callback, CollectorProcessor
from ado_exporter.core.logging_config import ContextLoggerAdapter
from ado_exporter.core.metric_list import MetricList
from ado_exporter.domain import Build, Project, TimelineRecord
from ado_exporter.utils.error_handling import log_and_continue

TIMELINE_LABELS = [
    "projectID",
    "buildID",
    "buildDefinitionID",
    "buildNumber",
    "name",
    "id",
    "parentID",
    "workerName",
    "type",
]

RECORD_TYPES = ("Stage", "Phase", "Job", "Task")

DEFAULT_TIMELINE_CONCURRENCY = 5


class BuildTimelineMetricsProcessor(CollectorProcessor[Project]):
    def __init__(self, concurrency: int = DEFAULT_TIMELINE_CONCURRENCY) -> None:
        super().__init__()
        self.concurrency = concurrency
        self.semaphore = asyncio.Semaphore(concurrency)

    def register_metrics(self) -> None:
        self.record_gauges = {
            record_type: self.gauge(
                f"azure_devops_build_{record_type.lower()}",
                f"Azure DevOps build {record_type.lower()} timeline records",
                TIMELINE_LABELS,
            )
            for record_type in RECORD_TYPES
        }

    async def collect(self, logger: ContextLoggerAdapter, callback: Callback, project: Project) -> None:
        min_time = datetime.now(UTC) - self.config.limit.build_history_duration

        builds: dict[int, Build] = {}
        for state in self.config.filter.timeline_states:
            for build in await self.client.list_build_history_with_status(project.id, min_time, state):
                builds.setdefault(build.id, build)

        logger.debug(f"Fetching timelines of {len(builds)} builds")

        metrics = {record_type: MetricList() for record_type in RECORD_TYPES}
        timelines = await asyncio.gather(*(self._fetch_timeline(logger, project, build) for build in builds.values()))
        for build, records in zip(builds.values(), timelines, strict=True):
            for record in records:
                if record.record_type in metrics:
                    self._add_record(metrics[record.record_type], project, build, record)

        def publish() -> None:
            for record_type, metric in metrics.items():
                metric.gauge_set(self.record_gauges[record_type])

        callback(publish)

    async def _fetch_timeline(self, logger: ContextLoggerAdapter, project: Project, build: Build) -> list[TimelineRecord]:
        async with self.semaphore:
            try:
                return await self.client.list_build_timeline(project.id, build.id)
            except ADOClientError as e:
                log_and_continue(logger, e, {"project": project.name, "build": build.id}, "Build timeline fetch")
                return []

    @staticmethod
    def _add_record(metric: MetricList, project: Project, build: Build, record: TimelineRecord) -> None:
        labels = {
            "projectID": project.id,
            "buildID": build.id,
            "buildDefinitionID": build.definition_id,
            "buildNumber": build.build_number,
            "name": record.name,
            "id": record.id,
            "parentID": record.parent_id,
            "workerName": record.worker_name,
        }
        metric.add({**labels, "type": "errorCount"}, record.error_count)
        metric.add({**labels, "type": "warningCount"}, record.warning_count)
        metric.add_bool({**labels, "type": "succeeded"}, record.result == "succeeded")
        metric.add_time({**labels, "type": "started"}, record.start_time)
        metric.add_time({**labels, "type": "finished"}, record.finish_time)
        if record.duration is not None:
            metric.add_duration({**labels, "type": "duration"}, record.duration)
