"""
Project collector

Publishes one info series per discovered project.
"""

from ado_exporter.collectors.base import Callback, CollectorProcessor
from ado_exporter.core.logging_config import ContextLoggerAdapter
from ado_exporter.core.metric_list import MetricList
from ado_exporter.domain import Project


class ProjectMetricsProcessor(CollectorProcessor[Project]):
    def register_metrics(self) -> None:
        self.project_info = self.gauge(
            "azure_devops_project_info",
            "Azure DevOps project",
            ["projectID", "projectName"],
        )

    async def collect(self, logger: ContextLoggerAdapter, callback: Callback, project: Project) -> None:
        project_metric = MetricList()
        project_metric.add_info({"projectID": project.id, "projectName": project.name})

        callback(lambda: project_metric.gauge_set(self.project_info))
