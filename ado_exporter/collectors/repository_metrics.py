"""
Repository collector

Exports repository info and size, and counts the commits and pushes since
the previous pass into monotonically growing counters.

prometheus_client appends `_total` to counter names, so the commit and push
families are scraped as `azure_devops_repository_commits_total` and
`azure_devops_repository_pushes_total`.
"""

import asyncio

from ado_exporter.collectors.ado_rest_client import ADOClientError
from ado_exporter.collectors.base import Callback, CollectorProcessor
from ado_exporter.core.logging_config import ContextLoggerAdapter
from ado_exporter.core.metric_list import MetricList
from ado_exporter.domain import Project, Repository
from ado_exporter.utils.error_handling import log_and_continue


class RepositoryMetricsProcessor(CollectorProcessor[Project]):
    def register_metrics(self) -> None:
        self.repository_info = self.gauge(
            "azure_devops_repository_info",
            "Azure DevOps repository",
            ["projectID", "repositoryID", "repositoryName"],
        )
        self.repository_stats = self.gauge(
            "azure_devops_repository_stats",
            "Azure DevOps repository",
            ["projectID", "repositoryID", "type"],
        )
        self.repository_commits = self.counter(
            "azure_devops_repository_commits",
            "Azure DevOps repository commits",
            ["projectID", "repositoryID"],
        )
        self.repository_pushes = self.counter(
            "azure_devops_repository_pushes",
            "Azure DevOps repository pushes",
            ["projectID", "repositoryID"],
        )

    async def collect(self, logger: ContextLoggerAdapter, callback: Callback, project: Project) -> None:
        await asyncio.gather(
            *(
                self.collect_repository(logger.bind(repository=repository.name), callback, project, repository)
                for repository in project.repositories
            )
        )

    async def collect_repository(
        self, logger: ContextLoggerAdapter, callback: Callback, project: Project, repository: Repository
    ) -> None:
        from_date = self.runner.collection_last_time
        labels = {"projectID": project.id, "repositoryID": repository.id}
        context = {"project": project.name, "repository": repository.name}

        info_metric = MetricList()
        stats_metric = MetricList()
        commits_metric = MetricList()
        pushes_metric = MetricList()

        info_metric.add_info({**labels, "repositoryName": repository.name})
        stats_metric.add_if_greater_zero({**labels, "type": "size"}, repository.size)

        try:
            commits_metric.add(labels, await self.client.count_commits(project.id, repository.id, from_date))
        except ADOClientError as e:
            log_and_continue(logger, e, context, "Commit count")

        try:
            pushes_metric.add(labels, await self.client.count_pushes(project.id, repository.id, from_date))
        except ADOClientError as e:
            log_and_continue(logger, e, context, "Push count")

        def publish() -> None:
            info_metric.gauge_set(self.repository_info)
            stats_metric.gauge_set(self.repository_stats)
            commits_metric.counter_add(self.repository_commits)
            pushes_metric.counter_add(self.repository_pushes)

        callback(publish)
