"""
Resource usage domain models - Parallel job slots and license counts
"""

from dataclasses import dataclass, field

# Fields of the build queue hub data provider exported as license metrics
LICENSE_DETAIL_FIELDS = {
    "freeLicenseCount": "FreeLicenseCount",
    "freeHostedLicenseCount": "FreeHostedLicenseCount",
    "enterpriseUsersCount": "EnterpriseUsersCount",
    "purchasedLicenseCount": "PurchasedLicenseCount",
    "purchasedHostedLicenseCount": "PurchasedHostedLicenseCount",
    "totalLicenseCount": "TotalLicenseCount",
    "msdnUsersCount": "MsdnUsersCount",
    "hostedAgentMinutesFreeCount": "HostedAgentMinutesFreeCount",
    "hostedAgentMinutesUsedCount": "HostedAgentMinutesUsedCount",
    "totalPrivateLicenseCount": "TotalPrivateLicenseCount",
    "totalHostedLicenseCount": "TotalHostedLicenseCount",
}


@dataclass
class ResourceUsageBuild:
    """
    Build resource usage of the organization.

    Every field is None when the API omits it.
    """

    distributed_task_agents: int | None = None
    paid_private_agent_slots: int | None = None
    total_usage: int | None = None
    xaml_controllers: int | None = None

    def as_metric_values(self) -> dict[str, int | None]:
        return {
            "DistributedTaskAgents": self.distributed_task_agents,
            "PaidPrivateAgentSlots": self.paid_private_agent_slots,
            "TotalUsage": self.total_usage,
            "XamlControllers": self.xaml_controllers,
        }


@dataclass
class ResourceUsageLicense:
    """
    License details of the build queue hub.

    Attributes:
        details: Metric name (e.g. "TotalLicenseCount") to value, None when omitted
    """

    details: dict[str, float | None] = field(default_factory=dict)
