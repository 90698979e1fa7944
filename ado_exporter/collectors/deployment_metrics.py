"""
Deployment collector

Exports the latest deployments (LIMIT_DEPLOYMENTS_PER_DEFINITION) of every
classic release definition.
"""

from ado_exporter.collectors.base import Callback, CollectorProcessor
from ado_exporter.core.logging_config import ContextLoggerAdapter
from ado_exporter.core.metric_list import MetricList
from ado_exporter.domain import Project


class DeploymentMetricsProcessor(CollectorProcessor[Project]):
    def register_metrics(self) -> None:
        self.deployment_info = self.gauge(
            "azure_devops_deployment_info",
            "Azure DevOps deployment",
            [
                "projectID",
                "deploymentID",
                "releaseID",
                "releaseName",
                "releaseDefinitionID",
                "requestedBy",
                "deploymentName",
                "deploymentStatus",
                "operationStatus",
                "reason",
                "attempt",
                "environmentId",
                "environmentName",
                "approvedBy",
            ],
        )
        self.deployment_status = self.gauge(
            "azure_devops_deployment_status",
            "Azure DevOps deployment status",
            ["projectID", "deploymentID", "type"],
        )

    async def collect(self, logger: ContextLoggerAdapter, callback: Callback, project: Project) -> None:
        definitions = await self.client.list_release_definitions(project.id)

        deployment_metric = MetricList()
        deployment_status_metric = MetricList()

        for definition in definitions:
            deployments = await self.client.list_release_deployments(project.id, definition.id)

            for deployment in deployments:
                deployment_metric.add_info(
                    {
                        "projectID": project.id,
                        "deploymentID": deployment.id,
                        "releaseID": deployment.release_id,
                        "releaseName": deployment.release_name,
                        "releaseDefinitionID": definition.id,
                        "requestedBy": deployment.requested_by,
                        "deploymentName": deployment.name,
                        "deploymentStatus": deployment.deployment_status,
                        "operationStatus": deployment.operation_status,
                        "reason": deployment.reason,
                        "attempt": deployment.attempt,
                        "environmentId": deployment.environment_id,
                        "environmentName": deployment.environment_name,
                        "approvedBy": deployment.approved_by,
                    }
                )

                status_labels = {"projectID": project.id, "deploymentID": deployment.id}
                deployment_status_metric.add_time({**status_labels, "type": "queued"}, deployment.queued_on)
                deployment_status_metric.add_time({**status_labels, "type": "started"}, deployment.started_on)
                deployment_status_metric.add_time({**status_labels, "type": "finished"}, deployment.completed_on)
                if deployment.job_duration is not None:
                    deployment_status_metric.add_duration(
                        {**status_labels, "type": "jobDuration"}, deployment.job_duration
                    )

        def publish() -> None:
            deployment_metric.gauge_set(self.deployment_info)
            deployment_status_metric.gauge_set(self.deployment_status)

        callback(publish)
