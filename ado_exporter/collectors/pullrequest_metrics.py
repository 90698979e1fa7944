"""
Pull request collector

Exports the active pull requests of every repository of a project. Each
repository is fetched concurrently and publishes independently, so one
failing repository does not hide the pull requests of the others.
"""

import asyncio

from ado_exporter.collectors.ado_rest_client import ADOClientError
from ado_exporter.collectors.base import Callback, CollectorProcessor
from ado_exporter.core.logging_config import ContextLoggerAdapter
from ado_exporter.core.metric_list import MetricList
from ado_exporter.domain import Project, Repository
from ado_exporter.utils.error_handling import log_and_continue


class PullRequestMetricsProcessor(CollectorProcessor[Project]):
    def register_metrics(self) -> None:
        self.pullrequest_info = self.gauge(
            "azure_devops_pullrequest_info",
            "Azure DevOps pullrequest",
            [
                "projectID",
                "repositoryID",
                "pullrequestID",
                "pullrequestTitle",
                "sourceBranch",
                "targetBranch",
                "status",
                "isDraft",
                "voteStatus",
                "creator",
            ],
        )
        self.pullrequest_status = self.gauge(
            "azure_devops_pullrequest_status",
            "Azure DevOps pullrequest status",
            ["projectID", "repositoryID", "pullrequestID", "type"],
        )
        self.pullrequest_label = self.gauge(
            "azure_devops_pullrequest_label",
            "Azure DevOps pullrequest labels",
            ["projectID", "repositoryID", "pullrequestID", "label", "active"],
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
        try:
            pull_requests = await self.client.list_pull_requests(project.id, repository.id)
        except ADOClientError as e:
            log_and_continue(
                logger, e, {"project": project.name, "repository": repository.name}, "Pull request listing"
            )
            return

        info_metric = MetricList()
        status_metric = MetricList()
        label_metric = MetricList()

        for pull_request in pull_requests:
            labels = {"projectID": project.id, "repositoryID": repository.id, "pullrequestID": pull_request.id}

            info_metric.add_info(
                {
                    **labels,
                    "pullrequestTitle": pull_request.title,
                    "sourceBranch": pull_request.source_branch,
                    "targetBranch": pull_request.target_branch,
                    "status": pull_request.status,
                    "isDraft": pull_request.is_draft,
                    "voteStatus": pull_request.vote_summary.humanize(),
                    "creator": pull_request.creator,
                }
            )
            status_metric.add_time({**labels, "type": "created"}, pull_request.creation_date)

            for label in pull_request.labels:
                label_metric.add_info({**labels, "label": label.name, "active": label.active})

        def publish() -> None:
            info_metric.gauge_set(self.pullrequest_info)
            status_metric.gauge_set(self.pullrequest_status)
            label_metric.gauge_set(self.pullrequest_label)

        callback(publish)
