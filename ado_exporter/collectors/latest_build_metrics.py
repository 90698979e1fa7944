"""
Latest build collector

Exports the most recent build of every build definition on the live interval.
"""

from ado_exporter.collectors.base import Callback, CollectorProcessor
from ado_exporter.collectors.build_metrics import BUILD_INFO_LABELS, build_info_labels
from ado_exporter.core.logging_config import ContextLoggerAdapter
from ado_exporter.core.metric_list import MetricList
from ado_exporter.domain import Project


class LatestBuildMetricsProcessor(CollectorProcessor[Project]):
    def register_metrics(self) -> None:
        self.build_info = self.gauge("azure_devops_build_latest_info", "Azure DevOps latest build", BUILD_INFO_LABELS)
        self.build_status = self.gauge(
            "azure_devops_build_latest_status",
            "Azure DevOps latest build status",
            ["projectID", "buildID", "buildNumber", "type"],
        )

    async def collect(self, logger: ContextLoggerAdapter, callback: Callback, project: Project) -> None:
        builds = await self.client.list_latest_builds(project.id)

        build_metric = MetricList()
        build_status_metric = MetricList()
        for build in builds:
            build_metric.add_info(build_info_labels(project, build))

            status_labels = {"projectID": project.id, "buildID": build.id, "buildNumber": build.build_number}
            build_status_metric.add_time({**status_labels, "type": "started"}, build.start_time)
            build_status_metric.add_time({**status_labels, "type": "queued"}, build.queue_time)
            build_status_metric.add_time({**status_labels, "type": "finished"}, build.finish_time)
            if build.job_duration is not None:
                build_status_metric.add_duration({**status_labels, "type": "jobDuration"}, build.job_duration)

        def publish() -> None:
            build_metric.gauge_set(self.build_info)
            build_status_metric.gauge_set(self.build_status)

        callback(publish)
