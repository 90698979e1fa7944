"""
Agent pool collector

Exports pool info, agent composition, running jobs and the queue length of
every agent pool known to service discovery (or configured in ADO_AGENTPOOL).
"""

from ado_exporter.collectors.ado_rest_client import ADOClientError
from ado_exporter.collectors.base import Callback, CollectorProcessor
from ado_exporter.core.logging_config import ContextLoggerAdapter
from ado_exporter.core.metric_list import MetricList
from ado_exporter.utils.error_handling import log_and_continue


class AgentPoolMetricsProcessor(CollectorProcessor[int]):
    def register_metrics(self) -> None:
        self.agentpool_info = self.gauge(
            "azure_devops_agentpool_info",
            "Azure DevOps agentpool",
            ["agentPoolID", "agentPoolName", "agentPoolType", "isHosted"],
        )
        self.agentpool_size = self.gauge("azure_devops_agentpool_size", "Azure DevOps agentpool", ["agentPoolID"])
        self.agentpool_usage = self.gauge(
            "azure_devops_agentpool_usage", "Azure DevOps agentpool usage", ["agentPoolID"]
        )
        self.agentpool_agent_info = self.gauge(
            "azure_devops_agentpool_agent_info",
            "Azure DevOps agentpool agent",
            [
                "agentPoolID",
                "agentPoolAgentID",
                "agentPoolAgentName",
                "agentPoolAgentVersion",
                "provisioningState",
                "maxParallelism",
                "agentPoolAgentOs",
                "enabled",
                "status",
                "hasAssignedRequest",
            ],
        )
        self.agentpool_agent_status = self.gauge(
            "azure_devops_agentpool_agent_status",
            "Azure DevOps agentpool agent status",
            ["agentPoolAgentID", "type"],
        )
        self.agentpool_agent_job = self.gauge(
            "azure_devops_agentpool_agent_job",
            "Azure DevOps agentpool agent job",
            ["agentPoolAgentID", "jobRequestId", "definitionID", "definitionName", "planType", "scopeID"],
        )
        self.agentpool_queue_length = self.gauge(
            "azure_devops_agentpool_queue_length", "Azure DevOps agentpool queue length", ["agentPoolID"]
        )

    async def collect(self, logger: ContextLoggerAdapter, callback: Callback, agent_pool_id: int) -> None:
        await self.collect_pool(logger, callback, agent_pool_id)
        await self.collect_agents(logger, callback, agent_pool_id)
        await self.collect_jobs(logger, callback, agent_pool_id)

    async def collect_pool(self, logger: ContextLoggerAdapter, callback: Callback, agent_pool_id: int) -> None:
        try:
            pool = await self.client.get_agent_pool(agent_pool_id)
        except ADOClientError as e:
            log_and_continue(logger, e, {"agent_pool": agent_pool_id}, "Agent pool fetch")
            return

        info_metric = MetricList()
        size_metric = MetricList()
        info_metric.add_info(
            {
                "agentPoolID": pool.id,
                "agentPoolName": pool.name,
                "agentPoolType": pool.pool_type,
                "isHosted": pool.is_hosted,
            }
        )
        size_metric.add({"agentPoolID": pool.id}, pool.size)

        def publish() -> None:
            info_metric.gauge_set(self.agentpool_info)
            size_metric.gauge_set(self.agentpool_size)

        callback(publish)

    async def collect_agents(self, logger: ContextLoggerAdapter, callback: Callback, agent_pool_id: int) -> None:
        try:
            agents = await self.client.list_agent_pool_agents(agent_pool_id)
        except ADOClientError as e:
            log_and_continue(logger, e, {"agent_pool": agent_pool_id}, "Agent listing")
            return

        usage_metric = MetricList()
        agent_metric = MetricList()
        status_metric = MetricList()
        job_metric = MetricList()

        used = 0
        for agent in agents:
            agent_metric.add_info(
                {
                    "agentPoolID": agent_pool_id,
                    "agentPoolAgentID": agent.id,
                    "agentPoolAgentName": agent.name,
                    "agentPoolAgentVersion": agent.version,
                    "provisioningState": agent.provisioning_state,
                    "maxParallelism": agent.max_parallelism,
                    "agentPoolAgentOs": agent.os_description,
                    "enabled": agent.enabled,
                    "status": agent.status,
                    "hasAssignedRequest": agent.has_assigned_request,
                }
            )
            status_metric.add_time({"agentPoolAgentID": agent.id, "type": "created"}, agent.created_on)

            if agent.has_assigned_request:
                used += 1
                request = agent.assigned_request
                job_metric.add_time(
                    {
                        "agentPoolAgentID": agent.id,
                        "jobRequestId": request.request_id,
                        "definitionID": request.definition_id,
                        "definitionName": request.definition_name,
                        "planType": request.plan_type,
                        "scopeID": request.scope_id,
                    },
                    request.assign_time,
                )

        # empty pools have no meaningful usage ratio
        if agents:
            usage_metric.add({"agentPoolID": agent_pool_id}, used / len(agents))

        def publish() -> None:
            usage_metric.gauge_set(self.agentpool_usage)
            agent_metric.gauge_set(self.agentpool_agent_info)
            status_metric.gauge_set(self.agentpool_agent_status)
            job_metric.gauge_set(self.agentpool_agent_job)

        callback(publish)

    async def collect_jobs(self, logger: ContextLoggerAdapter, callback: Callback, agent_pool_id: int) -> None:
        try:
            jobs = await self.client.list_agent_pool_jobs(agent_pool_id)
        except ADOClientError as e:
            log_and_continue(logger, e, {"agent_pool": agent_pool_id}, "Job request listing")
            return

        queue_length_metric = MetricList()
        queue_length_metric.add({"agentPoolID": agent_pool_id}, sum(1 for job in jobs if job.is_queued))

        callback(lambda: queue_length_metric.gauge_set(self.agentpool_queue_length))
