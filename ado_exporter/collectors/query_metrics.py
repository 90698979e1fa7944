"""
Saved query collector

Runs every configured saved work item query (ADO_QUERIES) and exports the
result count plus one info series per returned work item.
"""

import asyncio

from ado_exporter.collectors.base import Callback, CollectorProcessor
from ado_exporter.core.logging_config import ContextLoggerAdapter
from ado_exporter.core.metric_list import MetricList
from ado_exporter.domain import QueryRef


class QueryMetricsProcessor(CollectorProcessor[QueryRef]):
    def register_metrics(self) -> None:
        self.query_result = self.gauge(
            "azure_devops_query_result",
            "Azure DevOps query result",
            ["projectId", "queryPath"],
        )
        self.workitem_data = self.gauge(
            "azure_devops_workitem_data",
            "Azure DevOps workitems",
            [
                "projectId",
                "queryPath",
                "id",
                "title",
                "path",
                "createdDate",
                "acceptedDate",
                "resolvedDate",
                "closedDate",
            ],
        )

    async def collect(self, logger: ContextLoggerAdapter, callback: Callback, query: QueryRef) -> None:
        references = await self.client.query_work_items(query)
        work_items = await asyncio.gather(*(self.client.get_work_item(reference.url) for reference in references))

        logger.debug(f"Query returned {len(references)} work items")

        labels = {"projectId": query.project_id, "queryPath": query.query_id}
        result_metric = MetricList()
        data_metric = MetricList()

        result_metric.add(labels, len(references))
        for work_item in work_items:
            data_metric.add_info(
                {
                    **labels,
                    "id": work_item.id,
                    "title": work_item.title,
                    "path": work_item.path,
                    "createdDate": work_item.created_date,
                    "acceptedDate": work_item.accepted_date,
                    "resolvedDate": work_item.resolved_date,
                    "closedDate": work_item.closed_date,
                }
            )

        def publish() -> None:
            result_metric.gauge_set(self.query_result)
            data_metric.gauge_set(self.workitem_data)

        callback(publish)
