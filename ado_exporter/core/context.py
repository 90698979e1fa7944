"""
Exporter context

Bundles the process-wide collaborators (REST client, service discovery,
metric registry, configuration and the list of runners) into one object that
is handed to every runner and processor. Tests build isolated contexts with
their own registry and a mocked transport.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from prometheus_client import CollectorRegistry

from ado_exporter.secure_config import ExporterConfig

if TYPE_CHECKING:
    from ado_exporter.collectors.ado_rest_client import AzureDevOpsRESTClient
    from ado_exporter.collectors.base import CollectorRunner
    from ado_exporter.collectors.service_discovery import ServiceDiscovery


@dataclass
class ExporterContext:
    """
    Shared state of one exporter instance.

    Attributes:
        config: Validated exporter configuration
        client: Azure DevOps REST client (owns the global concurrency gate)
        service_discovery: Project and agent pool cache
        registry: Registry served on /metrics
        runners: Every constructed collector runner
    """

    config: ExporterConfig
    client: "AzureDevOpsRESTClient"
    service_discovery: "ServiceDiscovery"
    registry: CollectorRegistry = field(default_factory=CollectorRegistry)
    runners: list["CollectorRunner"] = field(default_factory=list)
