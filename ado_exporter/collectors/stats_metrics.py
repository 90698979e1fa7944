"""
Statistics collector

Aggregates completed builds and deployed releases into counters and
summaries. Nothing here is a gauge, so nothing is reset between passes: the
series accumulate for the lifetime of the process.

Builds are read from the whole build history window on every pass while
releases are read incrementally since the previous pass.

Exposed names: the build counters are scraped as
`azure_devops_stats_agentpool_builds_total` and
`azure_devops_stats_project_builds_total` (`_total` is appended by
prometheus_client), and every summary is scraped as its `_count` and `_sum`
series.
"""

from datetime import UTC, datetime

from ado_exporter.collectors.ado_rest_client import ADOClientError
from ado_exporter.collectors.base import Callback, CollectorProcessor
from ado_exporter.core.logging_config import ContextLoggerAdapter
from ado_exporter.core.metric_list import MetricList
from ado_exporter.domain import Project
from ado_exporter.utils.error_handling import log_and_continue

RELEASE_FAILED_STATES = ("failed", "partiallySucceeded")


class StatsMetricsProcessor(CollectorProcessor[Project]):
    def register_metrics(self) -> None:
        agentpool_labels = ["agentPoolID", "projectID", "result"]
        project_labels = ["projectID", "buildDefinitionID", "result"]
        release_labels = ["projectID", "releaseDefinitionID", "definitionEnvironmentID"]

        self.agentpool_builds = self.counter(
            "azure_devops_stats_agentpool_builds", "Azure DevOps build count per agent pool", agentpool_labels
        )
        self.agentpool_builds_wait = self.summary(
            "azure_devops_stats_agentpool_builds_wait",
            "Azure DevOps build wait time per agent pool",
            agentpool_labels,
        )
        self.agentpool_builds_duration = self.summary(
            "azure_devops_stats_agentpool_builds_duration",
            "Azure DevOps build duration per agent pool",
            agentpool_labels,
        )
        self.project_builds = self.counter(
            "azure_devops_stats_project_builds", "Azure DevOps build count per project", project_labels
        )
        self.project_success = self.summary(
            "azure_devops_stats_project_success",
            "Azure DevOps build success per project",
            ["projectID", "buildDefinitionID"],
        )
        self.project_builds_wait = self.summary(
            "azure_devops_stats_project_builds_wait", "Azure DevOps build wait time per project", project_labels
        )
        self.project_builds_duration = self.summary(
            "azure_devops_stats_project_builds_duration", "Azure DevOps build duration per project", project_labels
        )
        self.project_release_duration = self.summary(
            "azure_devops_stats_project_release_duration",
            "Azure DevOps release duration per project",
            [*release_labels, "status"],
        )
        self.project_release_success = self.summary(
            "azure_devops_stats_project_release_success",
            "Azure DevOps release success per project",
            release_labels,
        )

    async def collect(self, logger: ContextLoggerAdapter, callback: Callback, project: Project) -> None:
        await self.collect_builds(logger, callback, project)
        await self.collect_releases(logger, callback, project)

    async def collect_builds(self, logger: ContextLoggerAdapter, callback: Callback, project: Project) -> None:
        min_time = datetime.now(UTC) - self.config.limit.build_history_duration
        try:
            builds = await self.client.list_build_history_with_status(project.id, min_time, "completed")
        except ADOClientError as e:
            log_and_continue(logger, e, {"project": project.name}, "Completed build fetch")
            return

        agentpool_count = MetricList()
        agentpool_wait = MetricList()
        agentpool_duration = MetricList()
        project_count = MetricList()
        project_success = MetricList()
        project_wait = MetricList()
        project_duration = MetricList()

        for build in builds:
            agentpool_labels = {"agentPoolID": build.agent_pool_id, "projectID": project.id, "result": build.result}
            project_labels = {"projectID": project.id, "buildDefinitionID": build.definition_id, "result": build.result}

            agentpool_count.add(agentpool_labels, 1)
            project_count.add(project_labels, 1)

            if build.result == "succeeded":
                project_success.add({"projectID": project.id, "buildDefinitionID": build.definition_id}, 1)
            elif build.result == "failed":
                project_success.add({"projectID": project.id, "buildDefinitionID": build.definition_id}, 0)

            job_duration = build.job_duration
            if job_duration is not None and job_duration.total_seconds() >= 0:
                agentpool_duration.add_duration(agentpool_labels, job_duration)
                project_duration.add_duration(project_labels, job_duration)

            queue_duration = build.queue_duration
            if queue_duration is not None and queue_duration.total_seconds() >= 0:
                agentpool_wait.add_duration(agentpool_labels, queue_duration)
                project_wait.add_duration(project_labels, queue_duration)

        def publish() -> None:
            agentpool_count.counter_add(self.agentpool_builds)
            agentpool_wait.summary_set(self.agentpool_builds_wait)
            agentpool_duration.summary_set(self.agentpool_builds_duration)
            project_count.counter_add(self.project_builds)
            project_success.summary_set(self.project_success)
            project_wait.summary_set(self.project_builds_wait)
            project_duration.summary_set(self.project_builds_duration)

        callback(publish)

    async def collect_releases(self, logger: ContextLoggerAdapter, callback: Callback, project: Project) -> None:
        try:
            releases = await self.client.list_release_history(project.id, self.runner.collection_last_time)
        except ADOClientError as e:
            log_and_continue(logger, e, {"project": project.name}, "Release history fetch")
            return

        release_success = MetricList()
        release_duration = MetricList()

        for release in releases:
            for environment in release.environments:
                labels = {
                    "projectID": project.id,
                    "releaseDefinitionID": release.definition_id,
                    "definitionEnvironmentID": environment.definition_environment_id,
                }

                if environment.status == "succeeded":
                    release_success.add(labels, 1)
                elif environment.status in RELEASE_FAILED_STATES:
                    release_success.add(labels, 0)

                release_duration.add_if_greater_zero(
                    {**labels, "status": environment.status}, environment.deploy_seconds
                )

        def publish() -> None:
            release_success.summary_set(self.project_release_success)
            release_duration.summary_set(self.project_release_duration)

        callback(publish)
