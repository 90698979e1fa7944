"""
Exporter orchestration

Builds the ExporterContext, constructs one runner per enabled collector and
runs them together with the service discovery refresh loop and the HTTP
server on a single event loop.

Usage:
    config = validate_config_on_startup()
    exporter = Exporter(config)
    await exporter.run()
"""

import asyncio
from datetime import timedelta

import httpx
import uvicorn
from prometheus_client import CollectorRegistry

from ado_exporter.api import create_app
from ado_exporter.collectors.ado_rest_client import AzureDevOpsRESTClient
from ado_exporter.collectors.agentpool_metrics import AgentPoolMetricsProcessor
from ado_exporter.collectors.base import (
    AgentPoolRunner,
    CollectorProcessor,
    CollectorRunner,
    GeneralRunner,
    ProjectRunner,
    QueryRunner,
)
from ado_exporter.collectors.build_metrics import BuildMetricsProcessor
from ado_exporter.collectors.build_timeline_metrics import BuildTimelineMetricsProcessor
from ado_exporter.collectors.deployment_metrics import DeploymentMetricsProcessor
from ado_exporter.collectors.general_metrics import GeneralMetricsProcessor
from ado_exporter.collectors.latest_build_metrics import LatestBuildMetricsProcessor
from ado_exporter.collectors.project_metrics import ProjectMetricsProcessor
from ado_exporter.collectors.pullrequest_metrics import PullRequestMetricsProcessor
from ado_exporter.collectors.query_metrics import QueryMetricsProcessor
from ado_exporter.collectors.release_metrics import ReleaseMetricsProcessor
from ado_exporter.collectors.repository_metrics import RepositoryMetricsProcessor
from ado_exporter.collectors.resource_usage_metrics import ResourceUsageMetricsProcessor
from ado_exporter.collectors.service_discovery import ServiceDiscovery
from ado_exporter.collectors.stats_metrics import StatsMetricsProcessor
from ado_exporter.core.context import ExporterContext
from ado_exporter.core.logging_config import get_logger
from ado_exporter.domain import QueryRef
from ado_exporter.secure_config import ExporterConfig

logger = get_logger(__name__)

# (collector name, ScrapeConfig attribute, processor class)
PROJECT_COLLECTORS: list[tuple[str, str, type[CollectorProcessor]]] = [
    ("Project", "projects", ProjectMetricsProcessor),
    ("LatestBuild", "latest_build", LatestBuildMetricsProcessor),
    ("Repository", "repository", RepositoryMetricsProcessor),
    ("PullRequest", "pullrequest", PullRequestMetricsProcessor),
    ("Build", "build", BuildMetricsProcessor),
    ("BuildTimeline", "timeline", BuildTimelineMetricsProcessor),
    ("Release", "release", ReleaseMetricsProcessor),
    ("Deployment", "deployment", DeploymentMetricsProcessor),
    ("Stats", "stats", StatsMetricsProcessor),
]


def build_context(
    config: ExporterConfig,
    registry: CollectorRegistry | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ExporterContext:
    """Create client, service discovery and registry for one exporter instance."""
    registry = registry if registry is not None else CollectorRegistry()
    client = AzureDevOpsRESTClient.from_config(config, registry=registry, transport=transport)
    service_discovery = ServiceDiscovery(
        client,
        ttl=config.servicediscovery_refresh,
        project_whitelist=config.filter.project_whitelist,
        project_blacklist=config.filter.project_blacklist,
        agent_pools=config.filter.agent_pools,
    )
    return ExporterContext(config=config, client=client, service_discovery=service_discovery, registry=registry)


def build_runners(context: ExporterContext) -> list[CollectorRunner]:
    """
    Construct every runner with a non-zero interval and register it in the context.

    Returns:
        The constructed runners, also available as context.runners
    """
    scrape = context.config.scrape
    runners: list[CollectorRunner] = []

    def enabled(name: str, interval: timedelta) -> bool:
        if interval <= timedelta(0):
            logger.info(f"Collector {name} disabled")
            return False
        return True

    for name, attribute, processor_class in PROJECT_COLLECTORS:
        interval = getattr(scrape, attribute)
        if enabled(name, interval):
            runners.append(ProjectRunner(name, processor_class(), interval, context))

    if enabled("AgentPool", scrape.agentpool):
        runners.append(AgentPoolRunner("AgentPool", AgentPoolMetricsProcessor(), scrape.agentpool, context))

    if enabled("ResourceUsage", scrape.resource_usage):
        runners.append(
            GeneralRunner("ResourceUsage", ResourceUsageMetricsProcessor(), scrape.resource_usage, context)
        )

    queries = [QueryRef.parse(query) for query in context.config.filter.queries]
    if queries and enabled("Query", scrape.query):
        runners.append(QueryRunner("Query", QueryMetricsProcessor(), scrape.query, context, queries=queries))

    if enabled("General", scrape.general):
        runners.append(GeneralRunner("General", GeneralMetricsProcessor(), scrape.general, context))

    context.runners = runners
    return runners


def publish_discovery(context: ExporterContext, projects: list, agent_pools: list[int]) -> None:
    """Hand the current project and agent pool snapshots to the scoped runners."""
    for runner in context.runners:
        if isinstance(runner, ProjectRunner):
            runner.set_projects(projects)
        elif isinstance(runner, AgentPoolRunner):
            runner.set_agent_pools(agent_pools)


async def refresh_discovery(context: ExporterContext) -> None:
    """Force a service discovery update and publish the new snapshots."""
    discovery = context.service_discovery
    await discovery.update()
    publish_discovery(context, await discovery.project_list(), await discovery.agent_pool_list())


class Exporter:
    """
    One exporter process.

    Attributes:
        config: Validated configuration
        context: Shared collaborators of all runners
    """

    def __init__(self, config: ExporterConfig, transport: httpx.AsyncBaseTransport | None = None):
        self.config = config
        self.context = build_context(config, transport=transport)
        build_runners(self.context)

    async def discovery_loop(self) -> None:
        interval = self.config.servicediscovery_refresh.total_seconds()
        while True:
            await asyncio.sleep(interval)
            await refresh_discovery(self.context)

    async def serve(self) -> None:
        server_config = self.config.server
        app = create_app(self.context)
        server = uvicorn.Server(
            uvicorn.Config(app, host=server_config.host, port=server_config.port, log_config=None, access_log=False)
        )
        logger.info(f"Serving metrics on http://{server_config.host}:{server_config.port}/metrics")
        await server.serve()

    async def run(self) -> None:
        """
        Run until cancelled or until a fatal error escapes a task.

        Raises:
            ServiceDiscoveryError: If the initial project or agent pool list cannot be fetched
        """
        self.context.client.open()
        try:
            logger.info(
                f"Starting Azure DevOps exporter for {self.config.azure_devops.organization_url} "
                f"with {len(self.context.runners)} collectors"
            )
            await refresh_discovery(self.context)

            await asyncio.gather(
                *(runner.run() for runner in self.context.runners),
                self.discovery_loop(),
                self.serve(),
            )
        finally:
            await self.context.client.aclose()
