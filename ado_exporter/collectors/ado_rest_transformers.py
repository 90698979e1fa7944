"""
Azure DevOps REST API Response Transformers

Converts REST API JSON responses into the typed domain models used by the
collectors. All knowledge about the JSON shape of a resource lives here, the
collectors never touch raw dictionaries.

Transformers are lenient: missing keys fall back to empty values and
unparseable timestamps become None, so one malformed record never fails a
whole list.

Usage:
    from ado_exporter.collectors.ado_rest_transformers import BuildTransformer

    # REST API returns:
    rest_response = {"count": 1, "value": [{"id": 42, "buildNumber": "20260210.1", ...}]}

    builds = BuildTransformer.transform_builds_response(rest_response)
    # Result: [Build(id=42, build_number="20260210.1", ...)]
"""

from typing import Any

from ado_exporter.domain import (
    AgentPool,
    AgentPoolAgent,
    Build,
    BuildDefinition,
    JobRequest,
    Project,
    PullRequest,
    PullRequestLabel,
    Release,
    ReleaseApproval,
    ReleaseArtifact,
    ReleaseDefinition,
    ReleaseDefinitionEnvironment,
    ReleaseDeployment,
    ReleaseEnvironment,
    Repository,
    ResourceUsageBuild,
    ResourceUsageLicense,
    TimelineRecord,
    WorkItem,
    WorkItemRef,
)
from ado_exporter.domain.resource_usage import LICENSE_DETAIL_FIELDS
from ado_exporter.utils.datetime_utils import parse_ado_timestamp_safe

BUILD_QUEUE_HUB_PROVIDER = "ms.vss-build-web.build-queue-hub-data-provider"


def _nested(data: dict[str, Any] | None, *keys: str, default: Any = None) -> Any:
    """
    Walk nested dictionaries, returning default as soon as a level is missing.

    Example:
        _nested(build, "queue", "pool", "id", default=0)
    """
    current: Any = data
    for key in keys:
        if not isinstance(current, dict):
            return default
        current = current.get(key)
        if current is None:
            return default
    return current


def _int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _values(rest_response: dict[str, Any] | None) -> list[dict[str, Any]]:
    """Return the 'value' list of a list response."""
    if not rest_response:
        return []
    return rest_response.get("value") or []


def _web_url(data: dict[str, Any]) -> str:
    return _nested(data, "_links", "web", "href", default="")


def _display_name(data: dict[str, Any], key: str) -> str:
    return _nested(data, key, "displayName", default="")


class ProjectTransformer:
    """
    Transform project and repository REST responses.
    """

    @staticmethod
    def transform_repository(item: dict[str, Any]) -> Repository:
        return Repository(
            id=item.get("id", ""),
            name=item.get("name", ""),
            url=item.get("url", ""),
            state=item.get("state", ""),
            size=_int(item.get("size")),
        )

    @staticmethod
    def transform_repositories_response(rest_response: dict[str, Any]) -> list[Repository]:
        return [ProjectTransformer.transform_repository(item) for item in _values(rest_response)]

    @staticmethod
    def transform_projects_response(rest_response: dict[str, Any]) -> list[Project]:
        """
        Transform project list REST response.

        REST Response:
        {
            "count": 1,
            "value": [{"id": "8f3b...", "name": "Platform", "state": "wellFormed", "visibility": "private"}]
        }

        Returns:
            List of Project objects without repositories
        """
        return [
            Project(
                id=item.get("id", ""),
                name=item.get("name", ""),
                description=item.get("description") or "",
                url=item.get("url", ""),
                state=item.get("state", ""),
                visibility=item.get("visibility", ""),
            )
            for item in _values(rest_response)
        ]


class BuildTransformer:
    """
    Transform build REST responses.

    Handles:
    - Build definitions
    - Builds (history, latest, filtered by status)
    - Build timelines
    """

    @staticmethod
    def transform_definitions_response(rest_response: dict[str, Any]) -> list[BuildDefinition]:
        return [
            BuildDefinition(
                id=_int(item.get("id")),
                name=item.get("name", ""),
                path=item.get("path", ""),
                build_name_format=item.get("buildNameFormat", ""),
                url=_web_url(item),
            )
            for item in _values(rest_response)
        ]

    @staticmethod
    def transform_build(item: dict[str, Any]) -> Build:
        """
        Transform a single build.

        REST Response item:
        {
            "id": 123,
            "buildNumber": "20260210.1",
            "status": "completed",
            "result": "succeeded",
            "queueTime": "2026-02-10T09:59:00Z",
            "startTime": "2026-02-10T10:00:00Z",
            "finishTime": "2026-02-10T10:15:00Z",
            "definition": {"id": 5, "name": "MyPipeline"},
            "queue": {"pool": {"id": 9}},
            "requestedBy": {"displayName": "Jane Doe"},
            "_links": {"web": {"href": "https://..."}}
        }
        """
        return Build(
            id=_int(item.get("id")),
            build_number=item.get("buildNumber", ""),
            definition_id=_int(_nested(item, "definition", "id")),
            definition_name=_nested(item, "definition", "name", default=""),
            project_id=_nested(item, "project", "id", default=""),
            agent_pool_id=_int(_nested(item, "queue", "pool", "id")),
            requested_by=_display_name(item, "requestedBy"),
            source_branch=item.get("sourceBranch", ""),
            source_version=item.get("sourceVersion", ""),
            status=item.get("status", ""),
            reason=item.get("reason", ""),
            result=item.get("result", ""),
            queue_time=parse_ado_timestamp_safe(item.get("queueTime")),
            start_time=parse_ado_timestamp_safe(item.get("startTime")),
            finish_time=parse_ado_timestamp_safe(item.get("finishTime")),
            url=_web_url(item),
        )

    @staticmethod
    def transform_builds_response(rest_response: dict[str, Any]) -> list[Build]:
        return [BuildTransformer.transform_build(item) for item in _values(rest_response)]

    @staticmethod
    def transform_timeline_response(rest_response: dict[str, Any] | None) -> list[TimelineRecord]:
        """
        Transform build timeline REST response.

        REST Response:
        {
            "records": [
                {"type": "Stage", "name": "Build", "id": "...", "parentId": null, "errorCount": 0, ...}
            ]
        }
        """
        records = (rest_response or {}).get("records") or []
        return [
            TimelineRecord(
                record_type=item.get("type", ""),
                name=item.get("name", ""),
                id=item.get("id", ""),
                parent_id=item.get("parentId") or "",
                error_count=float(item.get("errorCount") or 0),
                warning_count=float(item.get("warningCount") or 0),
                result=item.get("result") or "",
                worker_name=item.get("workerName") or "",
                identifier=item.get("identifier") or "",
                start_time=parse_ado_timestamp_safe(item.get("startTime")),
                finish_time=parse_ado_timestamp_safe(item.get("finishTime")),
            )
            for item in records
        ]


class ReleaseTransformer:
    """
    Transform release REST responses (served by the vsrm host).
    """

    @staticmethod
    def transform_approval(item: dict[str, Any]) -> ReleaseApproval:
        return ReleaseApproval(
            approval_type=item.get("approvalType", ""),
            status=item.get("status", ""),
            is_automated=bool(item.get("isAutomated", False)),
            trial_number=_int(item.get("trialNumber")),
            attempt=_int(item.get("attempt")),
            rank=_int(item.get("rank")),
            approver=_display_name(item, "approver"),
            approved_by=_display_name(item, "approvedBy"),
            created_on=parse_ado_timestamp_safe(item.get("createdOn")),
        )

    @staticmethod
    def transform_definitions_response(rest_response: dict[str, Any]) -> list[ReleaseDefinition]:
        definitions = []
        for item in _values(rest_response):
            environments = [
                ReleaseDefinitionEnvironment(
                    id=_int(environment.get("id")),
                    name=environment.get("name", ""),
                    rank=_int(environment.get("rank")),
                    owner=_display_name(environment, "owner"),
                    current_release_id=_int(_nested(environment, "currentRelease", "id")),
                    badge_url=environment.get("badgeUrl", ""),
                )
                for environment in item.get("environments") or []
            ]
            definitions.append(
                ReleaseDefinition(
                    id=_int(item.get("id")),
                    name=item.get("name", ""),
                    path=item.get("path", ""),
                    release_name_format=item.get("releaseNameFormat", ""),
                    url=_web_url(item),
                    environments=environments,
                )
            )
        return definitions

    @staticmethod
    def transform_release(item: dict[str, Any]) -> Release:
        artifacts = [
            ReleaseArtifact(
                source_id=artifact.get("sourceId", ""),
                type=artifact.get("type", ""),
                alias=artifact.get("alias", ""),
                repository=_nested(artifact, "definitionReference", "repository", "name", default=""),
                branch=_nested(artifact, "definitionReference", "branch", "name", default=""),
                version=_nested(artifact, "definitionReference", "version", "name", default=""),
            )
            for artifact in item.get("artifacts") or []
        ]
        environments = [
            ReleaseEnvironment(
                id=_int(environment.get("id")),
                definition_environment_id=_int(environment.get("definitionEnvironmentId")),
                name=environment.get("name", ""),
                status=environment.get("status", ""),
                rank=_int(environment.get("rank")),
                trigger_reason=environment.get("triggerReason", ""),
                created_on=parse_ado_timestamp_safe(environment.get("createdOn")),
                time_to_deploy=float(environment.get("timeToDeploy") or 0),
                pre_deploy_approvals=[
                    ReleaseTransformer.transform_approval(approval)
                    for approval in environment.get("preDeployApprovals") or []
                ],
                post_deploy_approvals=[
                    ReleaseTransformer.transform_approval(approval)
                    for approval in environment.get("postDeployApprovals") or []
                ],
            )
            for environment in item.get("environments") or []
        ]
        return Release(
            id=_int(item.get("id")),
            name=item.get("name", ""),
            definition_id=_int(_nested(item, "releaseDefinition", "id")),
            project_id=_nested(item, "projectReference", "id", default=""),
            requested_by=_display_name(item, "requestedBy"),
            status=item.get("status", ""),
            reason=item.get("reason", ""),
            result=bool(item.get("result", False)),
            created_on=parse_ado_timestamp_safe(item.get("createdOn")),
            url=_web_url(item),
            artifacts=artifacts,
            environments=environments,
        )

    @staticmethod
    def transform_releases_response(rest_response: dict[str, Any]) -> list[Release]:
        return [ReleaseTransformer.transform_release(item) for item in _values(rest_response)]

    @staticmethod
    def transform_deployments_response(rest_response: dict[str, Any]) -> list[ReleaseDeployment]:
        """
        Transform release deployment REST response.

        Date fields are parsed leniently since the API is known to return
        values that are not valid timestamps for some deployments.
        """
        return [
            ReleaseDeployment(
                id=_int(item.get("id")),
                name=item.get("name", ""),
                release_id=_int(_nested(item, "release", "id")),
                release_name=_nested(item, "release", "name", default=""),
                release_definition_id=_int(_nested(item, "releaseDefinition", "id")),
                environment_id=_int(_nested(item, "releaseEnvironment", "id")),
                environment_name=_nested(item, "releaseEnvironment", "name", default=""),
                requested_by=_display_name(item, "requestedBy"),
                deployment_status=item.get("deploymentStatus", ""),
                operation_status=item.get("operationStatus", ""),
                reason=item.get("reason", ""),
                attempt=_int(item.get("attempt")),
                queued_on=parse_ado_timestamp_safe(item.get("queuedOn")),
                started_on=parse_ado_timestamp_safe(item.get("startedOn")),
                completed_on=parse_ado_timestamp_safe(item.get("completedOn")),
                pre_deploy_approvals=[
                    ReleaseTransformer.transform_approval(approval)
                    for approval in item.get("preDeployApprovals") or []
                ],
            )
            for item in _values(rest_response)
        ]


class AgentPoolTransformer:
    """
    Transform distributed task (agent pool) REST responses.
    """

    @staticmethod
    def transform_pool(item: dict[str, Any]) -> AgentPool:
        return AgentPool(
            id=_int(item.get("id")),
            name=item.get("name", ""),
            pool_type=item.get("poolType", ""),
            is_hosted=bool(item.get("isHosted", False)),
            size=_int(item.get("size")),
        )

    @staticmethod
    def transform_pools_response(rest_response: dict[str, Any]) -> list[AgentPool]:
        return [AgentPoolTransformer.transform_pool(item) for item in _values(rest_response)]

    @staticmethod
    def transform_job_request(item: dict[str, Any] | None) -> JobRequest | None:
        if not item:
            return None
        return JobRequest(
            request_id=_int(item.get("requestId")),
            plan_type=item.get("planType", ""),
            scope_id=item.get("scopeId", ""),
            definition_id=_int(_nested(item, "definition", "id")),
            definition_name=_nested(item, "definition", "name", default=""),
            queue_time=parse_ado_timestamp_safe(item.get("queueTime")),
            assign_time=parse_ado_timestamp_safe(item.get("assignTime")),
        )

    @staticmethod
    def transform_agents_response(rest_response: dict[str, Any]) -> list[AgentPoolAgent]:
        return [
            AgentPoolAgent(
                id=_int(item.get("id")),
                name=item.get("name", ""),
                version=item.get("version", ""),
                provisioning_state=item.get("provisioningState", ""),
                max_parallelism=_int(item.get("maxParallelism")),
                os_description=item.get("osDescription", ""),
                enabled=bool(item.get("enabled", False)),
                status=item.get("status", ""),
                created_on=parse_ado_timestamp_safe(item.get("createdOn")),
                assigned_request=AgentPoolTransformer.transform_job_request(item.get("assignedRequest")),
            )
            for item in _values(rest_response)
        ]

    @staticmethod
    def transform_jobs_response(rest_response: dict[str, Any]) -> list[JobRequest]:
        jobs = [AgentPoolTransformer.transform_job_request(item) for item in _values(rest_response)]
        return [job for job in jobs if job is not None]


class PullRequestTransformer:
    """
    Transform Git pull request REST responses.
    """

    @staticmethod
    def transform_pull_requests_response(rest_response: dict[str, Any]) -> list[PullRequest]:
        return [
            PullRequest(
                id=_int(item.get("pullRequestId")),
                title=item.get("title", ""),
                status=item.get("status", ""),
                is_draft=bool(item.get("isDraft", False)),
                creator=_display_name(item, "createdBy"),
                source_branch=item.get("sourceRefName", ""),
                target_branch=item.get("targetRefName", ""),
                creation_date=parse_ado_timestamp_safe(item.get("creationDate")),
                reviewer_votes=[_int(reviewer.get("vote")) for reviewer in item.get("reviewers") or []],
                labels=[
                    PullRequestLabel(name=label.get("name", ""), active=bool(label.get("active", False)))
                    for label in item.get("labels") or []
                ],
            )
            for item in _values(rest_response)
        ]


class WorkItemTransformer:
    """
    Transform work item REST responses.

    Handles:
    - WIQL query results (references only)
    - Single work item fetches
    """

    @staticmethod
    def transform_wiql_response(rest_response: dict[str, Any]) -> list[WorkItemRef]:
        """
        Transform WIQL query REST response.

        REST Response:
        {
            "queryType": "flat",
            "workItems": [{"id": 1001, "url": "https://dev.azure.com/org/_apis/wit/workItems/1001"}]
        }
        """
        return [
            WorkItemRef(id=_int(item.get("id")), url=item.get("url", ""))
            for item in (rest_response or {}).get("workItems") or []
        ]

    @staticmethod
    def transform_work_item(rest_response: dict[str, Any]) -> WorkItem:
        fields = rest_response.get("fields") or {}
        return WorkItem(
            id=_int(rest_response.get("id")),
            title=fields.get("System.Title", ""),
            path=fields.get("System.AreaPath", ""),
            created_date=fields.get("System.CreatedDate", ""),
            accepted_date=fields.get("Microsoft.VSTS.CodeReview.AcceptedDate", ""),
            resolved_date=fields.get("Microsoft.VSTS.Common.ResolvedDate", ""),
            closed_date=fields.get("Microsoft.VSTS.Common.ClosedDate", ""),
        )


class ResourceUsageTransformer:
    """
    Transform resource usage REST responses.
    """

    @staticmethod
    def transform_build_usage(rest_response: dict[str, Any]) -> ResourceUsageBuild:
        def optional_int(key: str) -> int | None:
            value = rest_response.get(key)
            return None if value is None else _int(value)

        return ResourceUsageBuild(
            distributed_task_agents=optional_int("distributedTaskAgents"),
            paid_private_agent_slots=optional_int("paidPrivateAgentSlots"),
            total_usage=optional_int("totalUsage"),
            xaml_controllers=optional_int("xamlControllers"),
        )

    @staticmethod
    def transform_license_usage(rest_response: dict[str, Any]) -> ResourceUsageLicense:
        """
        Transform the build queue hub data provider response.

        REST Response:
        {
            "data": {
                "ms.vss-build-web.build-queue-hub-data-provider": {
                    "taskHubLicenseDetails": {"freeLicenseCount": 1, "totalLicenseCount": 11, ...}
                }
            }
        }
        """
        details = _nested(rest_response, "data", BUILD_QUEUE_HUB_PROVIDER, "taskHubLicenseDetails", default={})
        values: dict[str, float | None] = {}
        for key, name in LICENSE_DETAIL_FIELDS.items():
            value = details.get(key)
            values[name] = None if value is None else float(value)
        return ResourceUsageLicense(details=values)
