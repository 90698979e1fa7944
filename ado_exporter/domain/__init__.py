"""
Domain models for Azure DevOps entities

Typed representations of the REST resources the collectors export. The REST
transformers build these from raw JSON; collectors only ever see these types.
"""

from .agentpools import AgentPool, AgentPoolAgent, JobRequest
from .builds import Build, BuildDefinition, TimelineRecord
from .projects import Project, Repository
from .pullrequests import PullRequest, PullRequestLabel, VoteSummary
from .releases import (
    Release,
    ReleaseApproval,
    ReleaseArtifact,
    ReleaseDefinition,
    ReleaseDefinitionEnvironment,
    ReleaseDeployment,
    ReleaseEnvironment,
)
from .resource_usage import ResourceUsageBuild, ResourceUsageLicense
from .workitems import QueryRef, WorkItem, WorkItemRef

__all__ = [
    # Projects
    "Project",
    "Repository",
    # Builds
    "Build",
    "BuildDefinition",
    "TimelineRecord",
    # Releases
    "Release",
    "ReleaseApproval",
    "ReleaseArtifact",
    "ReleaseDefinition",
    "ReleaseDefinitionEnvironment",
    "ReleaseDeployment",
    "ReleaseEnvironment",
    # Agent pools
    "AgentPool",
    "AgentPoolAgent",
    "JobRequest",
    # Pull requests
    "PullRequest",
    "PullRequestLabel",
    "VoteSummary",
    # Work items
    "QueryRef",
    "WorkItem",
    "WorkItemRef",
    # Resource usage
    "ResourceUsageBuild",
    "ResourceUsageLicense",
]
