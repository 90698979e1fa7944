"""
Build collector

Exports build definitions and the builds of the configured history window
(LIMIT_BUILD_HISTORY_DURATION) of every project.

Metric families:
- azure_devops_build_info: one info series per build
- azure_devops_build_status: succeeded flag, queued/started/finished timestamps and jobDuration
- azure_devops_build_definition_info: one info series per build definition
"""

from datetime import UTC, datetime

from ado_exporter.collectors.ado_rest_client import ADOClientError
from ado_exporter.collectors.base import Callback, CollectorProcessor
from ado_exporter.core.logging_config import ContextLoggerAdapter
from ado_exporter.core.metric_list import MetricList
from ado_exporter.domain import Build, Project
from ado_exporter.utils.error_handling import log_and_continue

BUILD_INFO_LABELS = [
    "projectID",
    "buildDefinitionID",
    "buildID",
    "agentPoolID",
    "requestedBy",
    "buildNumber",
    "buildName",
    "sourceBranch",
    "sourceVersion",
    "status",
    "reason",
    "result",
    "url",
]


def build_info_labels(project: Project, build: Build) -> dict:
    return {
        "projectID": project.id,
        "buildDefinitionID": build.definition_id,
        "buildID": build.id,
        "agentPoolID": build.agent_pool_id,
        "requestedBy": build.requested_by,
        "buildNumber": build.build_number,
        "buildName": build.definition_name,
        "sourceBranch": build.source_branch,
        "sourceVersion": build.source_version,
        "status": build.status,
        "reason": build.reason,
        "result": build.result,
        "url": build.url,
    }


class BuildMetricsProcessor(CollectorProcessor[Project]):
    def register_metrics(self) -> None:
        self.build_info = self.gauge("azure_devops_build_info", "Azure DevOps build", BUILD_INFO_LABELS)
        self.build_status = self.gauge(
            "azure_devops_build_status",
            "Azure DevOps build status",
            ["projectID", "buildID", "buildDefinitionID", "buildNumber", "type"],
        )
        self.build_definition_info = self.gauge(
            "azure_devops_build_definition_info",
            "Azure DevOps build definition",
            ["projectID", "buildDefinitionID", "buildNameFormat", "buildDefinitionName", "path", "url"],
        )

    async def collect(self, logger: ContextLoggerAdapter, callback: Callback, project: Project) -> None:
        await self.collect_definitions(logger, callback, project)
        await self.collect_builds(logger, callback, project)

    async def collect_definitions(self, logger: ContextLoggerAdapter, callback: Callback, project: Project) -> None:
        try:
            definitions = await self.client.list_build_definitions(project.id)
        except ADOClientError as e:
            log_and_continue(logger, e, {"project": project.name}, "Build definition listing")
            return

        definition_metric = MetricList()
        for definition in definitions:
            definition_metric.add_info(
                {
                    "projectID": project.id,
                    "buildDefinitionID": definition.id,
                    "buildNameFormat": definition.build_name_format,
                    "buildDefinitionName": definition.name,
                    "path": definition.path,
                    "url": definition.url,
                }
            )

        callback(lambda: definition_metric.gauge_set(self.build_definition_info))

    async def collect_builds(self, logger: ContextLoggerAdapter, callback: Callback, project: Project) -> None:
        min_time = datetime.now(UTC) - self.config.limit.build_history_duration
        try:
            builds = await self.client.list_build_history(project.id, min_time)
        except ADOClientError as e:
            log_and_continue(logger, e, {"project": project.name}, "Build history fetch")
            return

        logger.debug(f"Fetched {len(builds)} builds")

        build_metric = MetricList()
        build_status_metric = MetricList()
        for build in builds:
            build_metric.add_info(build_info_labels(project, build))

            status_labels = {
                "projectID": project.id,
                "buildID": build.id,
                "buildDefinitionID": build.definition_id,
                "buildNumber": build.build_number,
            }
            build_status_metric.add_bool({**status_labels, "type": "succeeded"}, build.succeeded)
            build_status_metric.add_time({**status_labels, "type": "queued"}, build.queue_time)
            build_status_metric.add_time({**status_labels, "type": "started"}, build.start_time)
            build_status_metric.add_time({**status_labels, "type": "finished"}, build.finish_time)
            if build.job_duration is not None:
                build_status_metric.add_duration({**status_labels, "type": "jobDuration"}, build.job_duration)

        def publish() -> None:
            build_metric.gauge_set(self.build_info)
            build_status_metric.gauge_set(self.build_status)

        callback(publish)
