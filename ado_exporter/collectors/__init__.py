"""
Collectors for Azure DevOps metrics

The REST client, service discovery, the runner framework and one processor
per metric family group.
"""

from ado_exporter.collectors.ado_rest_client import ADOClientError, AzureDevOpsRESTClient
from ado_exporter.collectors.agentpool_metrics import AgentPoolMetricsProcessor
from ado_exporter.collectors.base import (
    AgentPoolRunner,
    CollectorProcessor,
    CollectorRunner,
    GeneralRunner,
    ProjectRunner,
    QueryRunner,
    RunnerState,
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
from ado_exporter.collectors.service_discovery import ServiceDiscovery, ServiceDiscoveryError
from ado_exporter.collectors.stats_metrics import StatsMetricsProcessor

__all__ = [
    "ADOClientError",
    "AzureDevOpsRESTClient",
    "ServiceDiscovery",
    "ServiceDiscoveryError",
    "RunnerState",
    "CollectorProcessor",
    "CollectorRunner",
    "GeneralRunner",
    "ProjectRunner",
    "AgentPoolRunner",
    "QueryRunner",
    "AgentPoolMetricsProcessor",
    "BuildMetricsProcessor",
    "BuildTimelineMetricsProcessor",
    "DeploymentMetricsProcessor",
    "GeneralMetricsProcessor",
    "LatestBuildMetricsProcessor",
    "ProjectMetricsProcessor",
    "PullRequestMetricsProcessor",
    "QueryMetricsProcessor",
    "ReleaseMetricsProcessor",
    "RepositoryMetricsProcessor",
    "ResourceUsageMetricsProcessor",
    "StatsMetricsProcessor",
]
