"""
Release collector

Exports classic release definitions with their environments, and the releases
created within LIMIT_RELEASE_HISTORY_DURATION with their artifacts,
environments and manual approvals.
"""

from datetime import UTC, datetime

from ado_exporter.collectors.ado_rest_client import ADOClientError
from ado_exporter.collectors.base import Callback, CollectorProcessor
from ado_exporter.core.logging_config import ContextLoggerAdapter
from ado_exporter.core.metric_list import MetricList
from ado_exporter.domain import Project, Release
from ado_exporter.utils.error_handling import log_and_continue


class ReleaseMetricsProcessor(CollectorProcessor[Project]):
    def register_metrics(self) -> None:
        self.release_info = self.gauge(
            "azure_devops_release_info",
            "Azure DevOps release",
            [
                "projectID",
                "releaseID",
                "releaseDefinitionID",
                "requestedBy",
                "releaseName",
                "status",
                "reason",
                "result",
                "url",
            ],
        )
        self.release_artifact = self.gauge(
            "azure_devops_release_artifact",
            "Azure DevOps release artifact",
            [
                "projectID",
                "releaseID",
                "releaseDefinitionID",
                "sourceId",
                "repositoryID",
                "branch",
                "type",
                "alias",
                "version",
            ],
        )
        self.release_environment = self.gauge(
            "azure_devops_release_environment",
            "Azure DevOps release environment",
            [
                "projectID",
                "releaseID",
                "releaseDefinitionID",
                "environmentID",
                "environmentName",
                "status",
                "triggerReason",
                "rank",
            ],
        )
        self.release_environment_status = self.gauge(
            "azure_devops_release_environment_status",
            "Azure DevOps release environment status",
            ["projectID", "releaseID", "releaseDefinitionID", "environmentID", "type"],
        )
        self.release_approval = self.gauge(
            "azure_devops_release_approval",
            "Azure DevOps release approval",
            [
                "projectID",
                "releaseID",
                "releaseDefinitionID",
                "environmentID",
                "approvalType",
                "status",
                "isAutomated",
                "trialNumber",
                "attempt",
                "rank",
                "approver",
                "approvedBy",
            ],
        )
        self.release_definition_info = self.gauge(
            "azure_devops_release_definition_info",
            "Azure DevOps release definition",
            ["projectID", "releaseDefinitionID", "releaseNameFormat", "releaseDefinitionName", "path", "url"],
        )
        self.release_definition_environment = self.gauge(
            "azure_devops_release_definition_environment",
            "Azure DevOps release definition environment",
            [
                "projectID",
                "releaseDefinitionID",
                "environmentID",
                "environmentName",
                "rank",
                "owner",
                "releaseID",
                "badgeUrl",
            ],
        )

    async def collect(self, logger: ContextLoggerAdapter, callback: Callback, project: Project) -> None:
        await self.collect_definitions(logger, callback, project)
        await self.collect_releases(logger, callback, project)

    async def collect_definitions(self, logger: ContextLoggerAdapter, callback: Callback, project: Project) -> None:
        try:
            definitions = await self.client.list_release_definitions(project.id)
        except ADOClientError as e:
            log_and_continue(logger, e, {"project": project.name}, "Release definition listing")
            return

        definition_metric = MetricList()
        definition_environment_metric = MetricList()
        for definition in definitions:
            definition_metric.add_info(
                {
                    "projectID": project.id,
                    "releaseDefinitionID": definition.id,
                    "releaseNameFormat": definition.release_name_format,
                    "releaseDefinitionName": definition.name,
                    "path": definition.path,
                    "url": definition.url,
                }
            )

            for environment in definition.environments:
                definition_environment_metric.add_info(
                    {
                        "projectID": project.id,
                        "releaseDefinitionID": definition.id,
                        "environmentID": environment.id,
                        "environmentName": environment.name,
                        "rank": environment.rank,
                        "owner": environment.owner,
                        "releaseID": environment.current_release_id,
                        "badgeUrl": environment.badge_url,
                    }
                )

        def publish() -> None:
            definition_metric.gauge_set(self.release_definition_info)
            definition_environment_metric.gauge_set(self.release_definition_environment)

        callback(publish)

    async def collect_releases(self, logger: ContextLoggerAdapter, callback: Callback, project: Project) -> None:
        min_time = datetime.now(UTC) - self.config.limit.release_history_duration
        try:
            releases = await self.client.list_release_history(project.id, min_time)
        except ADOClientError as e:
            log_and_continue(logger, e, {"project": project.name}, "Release history fetch")
            return

        logger.debug(f"Fetched {len(releases)} releases")

        release_metric = MetricList()
        artifact_metric = MetricList()
        environment_metric = MetricList()
        environment_status_metric = MetricList()
        approval_metric = MetricList()

        for release in releases:
            self._add_release(release_metric, artifact_metric, project, release)
            self._add_environments(environment_metric, environment_status_metric, approval_metric, project, release)

        def publish() -> None:
            release_metric.gauge_set(self.release_info)
            artifact_metric.gauge_set(self.release_artifact)
            environment_metric.gauge_set(self.release_environment)
            environment_status_metric.gauge_set(self.release_environment_status)
            approval_metric.gauge_set(self.release_approval)

        callback(publish)

    @staticmethod
    def _add_release(release_metric: MetricList, artifact_metric: MetricList, project: Project, release: Release) -> None:
        release_metric.add_info(
            {
                "projectID": project.id,
                "releaseID": release.id,
                "releaseDefinitionID": release.definition_id,
                "requestedBy": release.requested_by,
                "releaseName": release.name,
                "status": release.status,
                "reason": release.reason,
                "result": release.result,
                "url": release.url,
            }
        )

        for artifact in release.artifacts:
            artifact_metric.add_info(
                {
                    "projectID": project.id,
                    "releaseID": release.id,
                    "releaseDefinitionID": release.definition_id,
                    "sourceId": artifact.source_id,
                    "repositoryID": artifact.repository,
                    "branch": artifact.branch,
                    "type": artifact.type,
                    "alias": artifact.alias,
                    "version": artifact.version,
                }
            )

    @staticmethod
    def _add_environments(
        environment_metric: MetricList,
        status_metric: MetricList,
        approval_metric: MetricList,
        project: Project,
        release: Release,
    ) -> None:
        for environment in release.environments:
            labels = {
                "projectID": project.id,
                "releaseID": release.id,
                "releaseDefinitionID": release.definition_id,
                "environmentID": environment.definition_environment_id,
            }

            environment_metric.add_info(
                {
                    **labels,
                    "environmentName": environment.name,
                    "status": environment.status,
                    "triggerReason": environment.trigger_reason,
                    "rank": environment.rank,
                }
            )

            status_metric.add_bool({**labels, "type": "succeeded"}, environment.status == "succeeded")
            status_metric.add_time({**labels, "type": "created"}, environment.created_on)
            status_metric.add_if_not_zero({**labels, "type": "jobDuration"}, environment.deploy_seconds)

            for approval in environment.approvals:
                if approval.is_automated:
                    continue

                approval_metric.add_time(
                    {
                        **labels,
                        "approvalType": approval.approval_type,
                        "status": approval.status,
                        "isAutomated": approval.is_automated,
                        "trialNumber": approval.trial_number,
                        "attempt": approval.attempt,
                        "rank": approval.rank,
                        "approver": approval.approver,
                        "approvedBy": approval.approved_by,
                    },
                    approval.created_on,
                )
