"""
Resource usage collector

Exports the organization wide parallel job slots and license counts.
"""

from ado_exporter.collectors.ado_rest_client import ADOClientError
from ado_exporter.collectors.base import Callback, CollectorProcessor
from ado_exporter.core.logging_config import ContextLoggerAdapter
from ado_exporter.core.metric_list import MetricList
from ado_exporter.utils.error_handling import log_and_continue


class ResourceUsageMetricsProcessor(CollectorProcessor[None]):
    def register_metrics(self) -> None:
        self.resource_usage_build = self.gauge(
            "azure_devops_resourceusage_build", "Azure DevOps build resource usage", ["name"]
        )
        self.resource_usage_license = self.gauge(
            "azure_devops_resourceusage_license", "Azure DevOps license resource usage", ["name"]
        )

    async def collect(self, logger: ContextLoggerAdapter, callback: Callback, unit: None) -> None:
        await self.collect_build_usage(logger, callback)
        await self.collect_license_usage(logger, callback)

    async def collect_build_usage(self, logger: ContextLoggerAdapter, callback: Callback) -> None:
        try:
            usage = await self.client.get_resource_usage_build()
        except ADOClientError as e:
            log_and_continue(logger, e, {"resource": "build"}, "Build resource usage fetch")
            return

        usage_metric = MetricList()
        for name, value in usage.as_metric_values().items():
            usage_metric.add_if_not_none({"name": name}, value)

        callback(lambda: usage_metric.gauge_set(self.resource_usage_build))

    async def collect_license_usage(self, logger: ContextLoggerAdapter, callback: Callback) -> None:
        try:
            usage = await self.client.get_resource_usage_agent()
        except ADOClientError as e:
            log_and_continue(logger, e, {"resource": "license"}, "License resource usage fetch")
            return

        usage_metric = MetricList()
        for name, value in usage.details.items():
            usage_metric.add_if_not_none({"name": name}, value)

        callback(lambda: usage_metric.gauge_set(self.resource_usage_license))
