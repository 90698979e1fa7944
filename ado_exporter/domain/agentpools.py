"""
Agent pool domain models - Pools, agents and job requests
"""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class AgentPool:
    """
    Represents an agent pool.

    Attributes:
        id: Pool ID
        name: Pool name
        pool_type: automation or deployment
        is_hosted: True for Microsoft-hosted pools
        size: Number of agents registered in the pool
    """

    id: int
    name: str
    pool_type: str = ""
    is_hosted: bool = False
    size: int = 0


@dataclass
class JobRequest:
    """
    A job request queued on or assigned to an agent pool.

    assign_time stays None until an agent picked the job up, which is how
    queued jobs are told apart from running ones.
    """

    request_id: int
    plan_type: str = ""
    scope_id: str = ""
    definition_id: int = 0
    definition_name: str = ""
    queue_time: datetime | None = None
    assign_time: datetime | None = None

    @property
    def is_queued(self) -> bool:
        return self.assign_time is None


@dataclass
class AgentPoolAgent:
    """
    Represents a single agent of an agent pool.

    Attributes:
        id: Agent ID
        name: Agent name
        version: Agent software version
        provisioning_state: Provisioning state reported by the pool
        max_parallelism: Maximum parallel jobs
        os_description: Operating system description
        enabled: Whether the agent accepts jobs
        status: online or offline
        created_on: Registration time
        assigned_request: Job currently running on the agent, if any
    """

    id: int
    name: str
    version: str = ""
    provisioning_state: str = ""
    max_parallelism: int = 0
    os_description: str = ""
    enabled: bool = False
    status: str = ""
    created_on: datetime | None = None
    assigned_request: JobRequest | None = None

    @property
    def has_assigned_request(self) -> bool:
        return self.assigned_request is not None and self.assigned_request.request_id > 0
