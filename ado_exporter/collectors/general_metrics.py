"""
General collector

Self observability: request count and in-flight calls of the REST client and
the duration of the latest pass of every collector.
"""

from ado_exporter.collectors.base import Callback, CollectorProcessor
from ado_exporter.core.logging_config import ContextLoggerAdapter
from ado_exporter.core.metric_list import MetricList

CLIENT_STATS_NAME = "dev.azure.com"


class GeneralMetricsProcessor(CollectorProcessor[None]):
    def register_metrics(self) -> None:
        self.stats = self.gauge("azure_devops_stats", "Azure DevOps exporter statistics", ["name", "type"])

    async def collect(self, logger: ContextLoggerAdapter, callback: Callback, unit: None) -> None:
        stats_metric = MetricList()
        stats_metric.add({"name": CLIENT_STATS_NAME, "type": "requests"}, self.client.request_count)
        stats_metric.add({"name": CLIENT_STATS_NAME, "type": "concurrency"}, self.client.current_concurrency)

        for runner in self.context.runners:
            if runner.last_scrape_duration is not None:
                stats_metric.add_duration({"name": runner.name, "type": "collectorDuration"}, runner.last_scrape_duration)

        callback(lambda: stats_metric.gauge_set(self.stats))
