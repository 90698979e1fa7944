"""
Release domain models - Classic release pipelines and their deployments

Covers release definitions, releases with their artifacts, environments and
approvals, and the deployment records of each release definition.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta


@dataclass
class ReleaseDefinitionEnvironment:
    """
    Environment (stage) configured on a release definition.

    Attributes:
        id: Definition environment ID
        name: Environment name
        rank: Position of the environment in the pipeline
        owner: Display name of the environment owner
        current_release_id: Release currently deployed to the environment
        badge_url: Status badge URL
    """

    id: int
    name: str
    rank: int = 0
    owner: str = ""
    current_release_id: int = 0
    badge_url: str = ""


@dataclass
class ReleaseDefinition:
    """
    Represents a classic release definition.

    Attributes:
        id: Definition ID
        name: Definition name
        path: Folder path of the definition
        release_name_format: Release name format string
        url: Web URL of the definition
        environments: Configured environments
    """

    id: int
    name: str
    path: str = ""
    release_name_format: str = ""
    url: str = ""
    environments: list[ReleaseDefinitionEnvironment] = field(default_factory=list)


@dataclass
class ReleaseArtifact:
    source_id: str
    type: str = ""
    alias: str = ""
    repository: str = ""
    branch: str = ""
    version: str = ""


@dataclass
class ReleaseApproval:
    """
    Pre- or post-deployment approval of a release environment.

    Attributes:
        approval_type: preDeploy or postDeploy
        status: pending, approved, rejected, skipped, ...
        is_automated: True for automatic approvals (no approver involved)
        trial_number: Deployment trial the approval belongs to
        attempt: Deployment attempt
        rank: Approval order
        approver: Display name of the assigned approver
        approved_by: Display name of the user who approved
        created_on: When the approval was requested
    """

    approval_type: str
    status: str
    is_automated: bool = False
    trial_number: int = 0
    attempt: int = 0
    rank: int = 0
    approver: str = ""
    approved_by: str = ""
    created_on: datetime | None = None


@dataclass
class ReleaseEnvironment:
    """
    Environment of one release.

    Attributes:
        id: Release environment ID
        definition_environment_id: ID of the environment on the release definition
        name: Environment name
        status: notStarted, inProgress, succeeded, canceled, rejected, queued, scheduled, partiallySucceeded
        rank: Position of the environment
        trigger_reason: Why the deployment was triggered
        created_on: Creation time
        time_to_deploy: Deployment time in minutes (0 when not deployed)
        pre_deploy_approvals: Approvals before deployment
        post_deploy_approvals: Approvals after deployment
    """

    id: int
    definition_environment_id: int
    name: str
    status: str = ""
    rank: int = 0
    trigger_reason: str = ""
    created_on: datetime | None = None
    time_to_deploy: float = 0.0
    pre_deploy_approvals: list[ReleaseApproval] = field(default_factory=list)
    post_deploy_approvals: list[ReleaseApproval] = field(default_factory=list)

    @property
    def deploy_seconds(self) -> float:
        """Deployment duration in seconds (time_to_deploy is reported in minutes)."""
        return self.time_to_deploy * 60

    @property
    def approvals(self) -> list[ReleaseApproval]:
        return [*self.pre_deploy_approvals, *self.post_deploy_approvals]


@dataclass
class Release:
    """
    Represents one release of a release definition.

    Attributes:
        id: Release ID
        name: Release name
        definition_id: ID of the release definition
        project_id: Project GUID
        requested_by: Display name of the requester
        status: active, abandoned, draft
        reason: manual, continuousIntegration, schedule, ...
        result: Result flag reported by the API
        created_on: Creation time
        url: Web URL of the release
        artifacts: Linked artifacts
        environments: Environments of the release
    """

    id: int
    name: str
    definition_id: int
    project_id: str = ""
    requested_by: str = ""
    status: str = ""
    reason: str = ""
    result: bool = False
    created_on: datetime | None = None
    url: str = ""
    artifacts: list[ReleaseArtifact] = field(default_factory=list)
    environments: list[ReleaseEnvironment] = field(default_factory=list)


@dataclass
class ReleaseDeployment:
    """
    Deployment of a release into one environment.

    Date fields of deployments are sometimes not valid timestamps; those are
    None after transformation.

    Attributes:
        id: Deployment ID
        name: Deployment name
        release_id: Deployed release
        release_name: Name of the deployed release
        release_definition_id: Release definition of the release
        environment_id: Release environment ID
        environment_name: Release environment name
        requested_by: Display name of the requester
        deployment_status: succeeded, failed, inProgress, ...
        operation_status: Approved, Deployed, Pending, ...
        reason: automated, manual, scheduled, ...
        attempt: Deployment attempt
        queued_on: When the deployment was queued
        started_on: When the deployment started
        completed_on: When the deployment completed
        pre_deploy_approvals: Approvals before the deployment

    Example:
        if deployment.job_duration:
            print(deployment.job_duration.total_seconds())
    """

    id: int
    name: str = ""
    release_id: int = 0
    release_name: str = ""
    release_definition_id: int = 0
    environment_id: int = 0
    environment_name: str = ""
    requested_by: str = ""
    deployment_status: str = ""
    operation_status: str = ""
    reason: str = ""
    attempt: int = 0
    queued_on: datetime | None = None
    started_on: datetime | None = None
    completed_on: datetime | None = None
    pre_deploy_approvals: list[ReleaseApproval] = field(default_factory=list)

    @property
    def approved_by(self) -> str:
        """
        Comma separated approvers of all manual pre-deployment approvals.

        Examples:
            >>> ReleaseDeployment(id=1, pre_deploy_approvals=[
            ...     ReleaseApproval("preDeploy", "approved", approved_by="Ann"),
            ...     ReleaseApproval("preDeploy", "approved", is_automated=True, approved_by="bot"),
            ... ]).approved_by
            'Ann'
        """
        return ",".join(
            approval.approved_by
            for approval in self.pre_deploy_approvals
            if not approval.is_automated and approval.approved_by
        )

    @property
    def job_duration(self) -> timedelta | None:
        if self.started_on is None or self.completed_on is None:
            return None
        return self.completed_on - self.started_on
