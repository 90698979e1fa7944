"""
Azure DevOps REST API Client

Async REST access to Azure DevOps for the metric collectors.
Uses AsyncSecureHTTPClient for HTTP/2, connection pooling, and SSL enforcement.

All calls of all collectors pass one shared asyncio.Semaphore, so the number
of requests in flight against Azure DevOps never exceeds the configured
concurrency regardless of how many collectors are running.

Usage:
    from ado_exporter.collectors.ado_rest_client import AzureDevOpsRESTClient

    client = AzureDevOpsRESTClient("https://dev.azure.com/myorg", pat, concurrency=10, retries=3)
    client.open()

    projects = await client.list_projects()
    builds = await client.list_build_history(projects[0].id, min_time)

    await client.aclose()

API Documentation:
    https://learn.microsoft.com/en-us/rest/api/azure/devops/?view=azure-devops-rest-7.1
"""

import asyncio
import base64
import time
from datetime import datetime
from typing import Any
from urllib.parse import quote, urlencode

import httpx
from prometheus_client import CollectorRegistry, Histogram

from ado_exporter.async_http_client import AsyncSecureHTTPClient
from ado_exporter.collectors.ado_rest_transformers import (
    AgentPoolTransformer,
    BuildTransformer,
    ProjectTransformer,
    PullRequestTransformer,
    ReleaseTransformer,
    ResourceUsageTransformer,
    WorkItemTransformer,
)
from ado_exporter.core.logging_config import get_logger
from ado_exporter.domain import (
    AgentPool,
    AgentPoolAgent,
    Build,
    BuildDefinition,
    JobRequest,
    Project,
    PullRequest,
    QueryRef,
    Release,
    ReleaseDefinition,
    ReleaseDeployment,
    Repository,
    ResourceUsageBuild,
    ResourceUsageLicense,
    TimelineRecord,
    WorkItem,
    WorkItemRef,
)
from ado_exporter.secure_config import ExporterConfig, LimitConfig
from ado_exporter.utils.datetime_utils import format_ado_timestamp

logger = get_logger(__name__)


class ADOClientError(Exception):
    """
    Raised when an Azure DevOps call fails after retries.

    Covers transport errors, non-success HTTP statuses and undecodable
    response bodies.
    """

    def __init__(self, message: str, status_code: int | None = None, url: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class AzureDevOpsRESTClient:
    """
    Azure DevOps REST API v7.1 client using direct HTTP calls.

    Features:
    - Async HTTP/2 requests with one shared connection pool
    - Base64-encoded PAT authentication
    - Global concurrency ceiling shared by every collector
    - Retry logic for rate limiting, server errors and network errors
    - Request counter and in-flight gauge for self-observability
    - Request latency histogram (azure_devops_api_request)
    """

    API_VERSION = "7.1"
    RESOURCE_USAGE_BUILD_API_VERSION = "5.1-preview.2"
    DATA_PROVIDER_API_VERSION = "5.1-preview.1"
    PROJECT_PAGE_SIZE = 1000
    MAX_RETRY_AFTER = 60  # seconds
    REQUEST_BUCKETS = (0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30)
    RETRYABLE_STATUS_CODES = (500, 502, 503, 504)

    def __init__(
        self,
        organization_url: str,
        pat: str,
        api_version: str = API_VERSION,
        concurrency: int = 10,
        retries: int = 3,
        timeout: float = AsyncSecureHTTPClient.DEFAULT_TIMEOUT,
        limits: LimitConfig | None = None,
        registry: CollectorRegistry | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        retry_backoff: float = 1.0,
    ):
        """
        Initialize Azure DevOps REST client.

        Args:
            organization_url: Azure DevOps organization URL (e.g., https://dev.azure.com/myorg)
            pat: Personal Access Token for authentication
            api_version: REST api-version sent with every call
            concurrency: Maximum number of calls in flight across all callers
            retries: Attempts per call for transient errors
            timeout: Per-request timeout in seconds
            limits: Pagination and history limits
            registry: Registry for the request histogram (no histogram when None)
            transport: Optional httpx transport (httpx.MockTransport in tests)
            retry_backoff: Base of the exponential backoff in seconds

        Raises:
            ValueError: If organization_url or pat is empty
        """
        if not organization_url or not pat:
            raise ValueError("organization_url and pat are required")
        if concurrency < 1 or retries < 1:
            raise ValueError("concurrency and retries must be at least 1")

        self.organization_url = organization_url.rstrip("/")
        self.release_url = self._build_release_url(self.organization_url)
        self.organization = self.organization_url.rsplit("/", 1)[-1]
        self.pat = pat
        self.auth_header = self._build_auth_header(pat)
        self.api_version = api_version
        self.retries = retries
        self.retry_backoff = retry_backoff
        self.limits = limits or LimitConfig()

        self.semaphore = asyncio.Semaphore(concurrency)
        self.concurrency = concurrency
        self._request_count = 0
        self._current_concurrency = 0

        self.http = AsyncSecureHTTPClient(
            headers=self.auth_header,
            max_connections=max(concurrency, AsyncSecureHTTPClient.DEFAULT_MAX_KEEPALIVE),
            timeout=timeout,
            transport=transport,
        )

        self.request_histogram: Histogram | None = None
        if registry is not None:
            self.request_histogram = Histogram(
                "azure_devops_api_request",
                "AzureDevOps API requests",
                ["endpoint", "organization", "method", "statusCode"],
                buckets=self.REQUEST_BUCKETS,
                registry=registry,
            )

    @classmethod
    def from_config(
        cls,
        config: ExporterConfig,
        registry: CollectorRegistry | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "AzureDevOpsRESTClient":
        """Create a client from validated exporter configuration."""
        return cls(
            organization_url=config.azure_devops.organization_url,
            pat=config.azure_devops.pat,
            api_version=config.azure_devops.api_version,
            concurrency=config.request.concurrency,
            retries=config.request.retries,
            timeout=config.request.timeout,
            limits=config.limit,
            registry=registry,
            transport=transport,
        )

    # ==============================
    # Lifecycle and accounting
    # ==============================

    def open(self) -> "AzureDevOpsRESTClient":
        self.http.open()
        return self

    async def aclose(self) -> None:
        await self.http.aclose()

    @property
    def request_count(self) -> int:
        """Total number of HTTP attempts issued since startup (monotonic)."""
        return self._request_count

    @property
    def current_concurrency(self) -> int:
        """Number of calls currently holding a concurrency slot."""
        return self._current_concurrency

    # ==============================
    # Request plumbing
    # ==============================

    @staticmethod
    def _build_release_url(organization_url: str) -> str:
        """
        Derive the release management (vsrm) host from the organization URL.

        Example:
            https://dev.azure.com/org -> https://vsrm.dev.azure.com/org
            https://org.visualstudio.com -> https://org.vsrm.visualstudio.com
        """
        if "://dev.azure.com" in organization_url:
            return organization_url.replace("://dev.azure.com", "://vsrm.dev.azure.com", 1)
        if ".visualstudio.com" in organization_url and ".vsrm." not in organization_url:
            return organization_url.replace(".visualstudio.com", ".vsrm.visualstudio.com", 1)
        return organization_url

    def _build_auth_header(self, pat: str) -> dict[str, str]:
        """
        Build Basic Authentication header from PAT.

        Azure DevOps uses Basic Auth with empty username and PAT as password.

        Args:
            pat: Personal Access Token

        Returns:
            Dictionary with Authorization header
        """
        credentials = f":{pat}"  # Empty username, PAT as password
        b64_credentials = base64.b64encode(credentials.encode()).decode()  # nosec B108
        return {
            "Authorization": f"Basic {b64_credentials}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def _build_url(self, project: str | None, resource: str, base_url: str | None = None, **params: Any) -> str:
        """
        Build Azure DevOps REST API URL with query parameters.

        Args:
            project: Project ID or name (None for organization-level APIs)
            resource: Resource path (e.g., "build/builds", "git/repositories")
            base_url: Host to use (defaults to the organization URL)
            **params: Query parameters (None values are filtered out)

        Returns:
            Complete API URL with query string

        Example:
            _build_url("MyProject", "build/builds", **{"api-version": "7.1"})
            -> "https://dev.azure.com/org/MyProject/_apis/build/builds?api-version=7.1"
        """
        base_url = base_url or self.organization_url
        if project:
            url = f"{base_url}/{quote(project, safe='')}/_apis/{resource}"
        else:
            url = f"{base_url}/_apis/{resource}"

        # Filter out None values and build query string
        filtered_params = {k: v for k, v in params.items() if v is not None}
        if filtered_params:
            query_string = urlencode(filtered_params)
            url = f"{url}?{query_string}"

        return url

    def _observe(self, endpoint: str, method: str, status_code: int, duration: float) -> None:
        if self.request_histogram is not None:
            self.request_histogram.labels(
                endpoint=endpoint,
                organization=self.organization,
                method=method.upper(),
                statusCode=str(status_code),
            ).observe(duration)

    async def _handle_api_call(self, method: str, url: str, endpoint: str, **kwargs: Any) -> httpx.Response:
        """
        Execute API call inside the shared concurrency gate.

        The slot is held for the whole call including retries and backoff.

        Args:
            method: HTTP method (GET or POST)
            url: Full API URL
            endpoint: Resource name used as histogram label
            **kwargs: Additional arguments for HTTP client

        Returns:
            Successful response

        Raises:
            ADOClientError: When the call fails permanently or retries are exhausted
        """
        async with self.semaphore:
            self._current_concurrency += 1
            try:
                return await self._call_with_retry(method, url, endpoint, **kwargs)
            finally:
                self._current_concurrency -= 1

    async def _call_with_retry(self, method: str, url: str, endpoint: str, **kwargs: Any) -> httpx.Response:
        """
        Retry policy.

        Handles:
        - Rate limiting (429) honouring Retry-After
        - Server errors (500, 502, 503, 504) with exponential backoff
        - Network errors with exponential backoff
        - Authentication errors (401, 403) and other statuses fail fast
        """
        last_error: Exception | None = None

        for attempt in range(self.retries):
            is_last_attempt = attempt + 1 >= self.retries
            self._request_count += 1
            started = time.perf_counter()

            try:
                response = await self.http.request(method, url, **kwargs)

                self._observe(endpoint, method, response.status_code, time.perf_counter() - started)
                response.raise_for_status()
                return response

            except httpx.HTTPStatusError as e:
                status_code = e.response.status_code
                last_error = e

                # Authentication/Authorization errors - fail fast
                if status_code in (401, 403):
                    logger.error(f"Authentication failed (HTTP {status_code}) for {endpoint}")
                    raise ADOClientError(
                        f"Authentication failed (HTTP {status_code}) for {endpoint}", status_code=status_code, url=url
                    ) from e

                # Rate limiting - retry after the advertised delay
                if status_code == 429:
                    retry_after = self._retry_after(e.response)
                    logger.warning(
                        f"Rate limited, retrying after {retry_after}s (attempt {attempt + 1}/{self.retries})"
                    )
                    if not is_last_attempt:
                        await asyncio.sleep(retry_after)
                    continue

                # Server errors - retry with exponential backoff
                if status_code in self.RETRYABLE_STATUS_CODES:
                    backoff = self.retry_backoff * 2**attempt
                    logger.warning(
                        f"Server error (HTTP {status_code}) for {endpoint}, retrying in {backoff}s "
                        f"(attempt {attempt + 1}/{self.retries})"
                    )
                    if not is_last_attempt:
                        await asyncio.sleep(backoff)
                    continue

                # Other HTTP errors - fail fast
                raise ADOClientError(f"HTTP error {status_code} for {endpoint}", status_code=status_code, url=url) from e

            except (httpx.TimeoutException, httpx.RequestError) as e:
                last_error = e
                backoff = self.retry_backoff * 2**attempt
                logger.warning(
                    f"Network error for {endpoint}, retrying in {backoff}s (attempt {attempt + 1}/{self.retries}): {e}"
                )
                if not is_last_attempt:
                    await asyncio.sleep(backoff)
                continue

        status_code = last_error.response.status_code if isinstance(last_error, httpx.HTTPStatusError) else None
        raise ADOClientError(
            f"{endpoint} failed after {self.retries} attempts: {last_error}", status_code=status_code, url=url
        ) from last_error

    def _retry_after(self, response: httpx.Response) -> float:
        try:
            retry_after = float(response.headers.get("Retry-After", self.MAX_RETRY_AFTER))
        except ValueError:
            retry_after = self.MAX_RETRY_AFTER
        return max(0.0, min(retry_after, self.MAX_RETRY_AFTER))

    @staticmethod
    def _decode(response: httpx.Response, endpoint: str) -> dict[str, Any]:
        try:
            payload = response.json()
        except ValueError as e:
            raise ADOClientError(f"Invalid JSON response from {endpoint}", url=str(response.request.url)) from e
        if not isinstance(payload, dict):
            raise ADOClientError(f"Unexpected JSON payload from {endpoint}", url=str(response.request.url))
        return payload

    async def _get_json(self, url: str, endpoint: str, **kwargs: Any) -> dict[str, Any]:
        response = await self._handle_api_call("GET", url, endpoint, **kwargs)
        return self._decode(response, endpoint)

    @staticmethod
    def _limit_per_definition(releases: list[Release], limit: int) -> list[Release]:
        """Keep the first `limit` releases of every definition, preserving order."""
        seen: dict[int, int] = {}
        kept = []
        for release in releases:
            seen[release.definition_id] = seen.get(release.definition_id, 0) + 1
            if seen[release.definition_id] <= limit:
                kept.append(release)
        return kept

    # ==============================
    # Core (projects) and Git APIs
    # ==============================

    async def list_projects(self) -> list[Project]:
        """
        List projects of the organization, bounded by the project limit.

        REST Endpoint: GET {org}/_apis/projects?$top=1000&$skip={n}&api-version=7.1

        Returns:
            Projects without repositories
        """
        projects: list[Project] = []
        page_size = min(self.PROJECT_PAGE_SIZE, self.limits.project)

        while len(projects) < self.limits.project:
            url = self._build_url(
                None,
                "projects",
                **{"$top": page_size, "$skip": len(projects) or None, "api-version": self.api_version},
            )
            page = ProjectTransformer.transform_projects_response(await self._get_json(url, "projects"))
            projects.extend(page)
            if len(page) < page_size:
                break

        return projects[: self.limits.project]

    async def list_repositories(self, project_id: str) -> list[Repository]:
        """
        List Git repositories of a project.

        REST Endpoint: GET {org}/{project}/_apis/git/repositories?api-version=7.1
        """
        url = self._build_url(project_id, "git/repositories", **{"api-version": self.api_version})
        return ProjectTransformer.transform_repositories_response(await self._get_json(url, "git/repositories"))

    async def count_commits(self, project_id: str, repository_id: str, from_date: datetime) -> int:
        """
        Count commits pushed since from_date.

        REST Endpoint: GET {org}/{project}/_apis/git/repositories/{repo}/commits?searchCriteria.fromDate=...
        """
        url = self._build_url(
            project_id,
            f"git/repositories/{quote(repository_id, safe='')}/commits",
            **{"searchCriteria.fromDate": format_ado_timestamp(from_date), "api-version": self.api_version},
        )
        payload = await self._get_json(url, "git/commits")
        return int(payload.get("count") or 0)

    async def count_pushes(self, project_id: str, repository_id: str, from_date: datetime) -> int:
        """
        Count pushes since from_date.

        REST Endpoint: GET {org}/{project}/_apis/git/repositories/{repo}/pushes?searchCriteria.fromDate=...
        """
        url = self._build_url(
            project_id,
            f"git/repositories/{quote(repository_id, safe='')}/pushes",
            **{"searchCriteria.fromDate": format_ado_timestamp(from_date), "api-version": self.api_version},
        )
        payload = await self._get_json(url, "git/pushes")
        return int(payload.get("count") or 0)

    async def list_pull_requests(self, project_id: str, repository_id: str) -> list[PullRequest]:
        """
        List active pull requests of a repository.

        REST Endpoint: GET {org}/{project}/_apis/git/repositories/{repo}/pullrequests?searchCriteria.status=active
        """
        url = self._build_url(
            project_id,
            f"git/repositories/{quote(repository_id, safe='')}/pullrequests",
            **{"searchCriteria.status": "active", "api-version": self.api_version},
        )
        return PullRequestTransformer.transform_pull_requests_response(await self._get_json(url, "git/pullrequests"))

    # ==============================
    # Build APIs
    # ==============================

    async def list_build_definitions(self, project_id: str) -> list[BuildDefinition]:
        """
        REST Endpoint: GET {org}/{project}/_apis/build/definitions?$top=9999&api-version=7.1
        """
        url = self._build_url(project_id, "build/definitions", **{"$top": 9999, "api-version": self.api_version})
        return BuildTransformer.transform_definitions_response(await self._get_json(url, "build/definitions"))

    async def list_latest_builds(self, project_id: str) -> list[Build]:
        """
        Latest build of every definition.

        REST Endpoint: GET {org}/{project}/_apis/build/builds?maxBuildsPerDefinition=1&deletedFilter=excludeDeleted
        """
        url = self._build_url(
            project_id,
            "build/builds",
            **{"maxBuildsPerDefinition": 1, "deletedFilter": "excludeDeleted", "api-version": self.api_version},
        )
        return BuildTransformer.transform_builds_response(await self._get_json(url, "build/builds"))

    async def list_build_history(self, project_id: str, min_time: datetime) -> list[Build]:
        """
        Builds finished (or still running) since min_time, newest first.

        REST Endpoint: GET {org}/{project}/_apis/build/builds?minTime=...&$top=...&queryOrder=finishTimeDescending

        Args:
            project_id: Project ID
            min_time: Lower bound of the history window

        Returns:
            At most limit.builds_per_project builds, at most limit.builds_per_definition per definition
        """
        url = self._build_url(
            project_id,
            "build/builds",
            **{
                "minTime": format_ado_timestamp(min_time),
                "$top": self.limits.builds_per_project,
                "maxBuildsPerDefinition": self.limits.builds_per_definition,
                "queryOrder": "finishTimeDescending",
                "api-version": self.api_version,
            },
        )
        return BuildTransformer.transform_builds_response(await self._get_json(url, "build/builds"))

    async def list_build_history_with_status(self, project_id: str, min_time: datetime, status_filter: str) -> list[Build]:
        """
        Builds since min_time filtered by status (completed, inProgress, ...).

        REST Endpoint: GET {org}/{project}/_apis/build/builds?minTime=...&statusFilter=...
        """
        url = self._build_url(
            project_id,
            "build/builds",
            **{
                "minTime": format_ado_timestamp(min_time),
                "statusFilter": status_filter,
                "$top": self.limits.builds_per_project,
                "api-version": self.api_version,
            },
        )
        return BuildTransformer.transform_builds_response(await self._get_json(url, "build/builds"))

    async def list_build_timeline(self, project_id: str, build_id: int) -> list[TimelineRecord]:
        """
        REST Endpoint: GET {org}/{project}/_apis/build/builds/{buildId}/timeline?api-version=7.1
        """
        url = self._build_url(project_id, f"build/builds/{build_id}/timeline", **{"api-version": self.api_version})
        return BuildTransformer.transform_timeline_response(await self._get_json(url, "build/timeline"))

    # ==============================
    # Release APIs (vsrm host)
    # ==============================

    async def list_release_definitions(self, project_id: str) -> list[ReleaseDefinition]:
        """
        REST Endpoint: GET {vsrm}/{project}/_apis/release/definitions?$expand=environments,lastRelease
        """
        url = self._build_url(
            project_id,
            "release/definitions",
            base_url=self.release_url,
            **{
                "$expand": "environments,lastRelease",
                "$top": self.limits.release_definitions_per_project,
                "api-version": self.api_version,
            },
        )
        return ReleaseTransformer.transform_definitions_response(await self._get_json(url, "release/definitions"))

    async def list_release_history(self, project_id: str, min_time: datetime) -> list[Release]:
        """
        Releases created since min_time, following continuation tokens.

        REST Endpoint: GET {vsrm}/{project}/_apis/release/releases?minCreatedTime=...&$expand=94&queryOrder=descending

        The server returns at most $top releases per page and announces further
        pages through the x-ms-continuationtoken response header.
        Only the newest limit.releases_per_definition releases of each
        definition are kept.
        """
        params = {
            "isDeleted": "false",
            "$expand": 94,
            "minCreatedTime": format_ado_timestamp(min_time),
            "$top": self.limits.releases_per_project,
            "queryOrder": "descending",
            "api-version": self.api_version,
        }
        releases: list[Release] = []
        continuation_token: str | None = None

        while True:
            url = self._build_url(
                project_id, "release/releases", base_url=self.release_url, continuationToken=continuation_token, **params
            )
            response = await self._handle_api_call("GET", url, "release/releases")
            releases.extend(ReleaseTransformer.transform_releases_response(self._decode(response, "release/releases")))

            continuation_token = response.headers.get("x-ms-continuationtoken") or None
            if not continuation_token:
                return self._limit_per_definition(releases, self.limits.releases_per_definition)

    async def list_release_deployments(self, project_id: str, release_definition_id: int) -> list[ReleaseDeployment]:
        """
        REST Endpoint: GET {vsrm}/{project}/_apis/release/deployments?definitionId=...&$top=...
        """
        url = self._build_url(
            project_id,
            "release/deployments",
            base_url=self.release_url,
            **{
                "isDeleted": "false",
                "$expand": 94,
                "definitionId": release_definition_id,
                "$top": self.limits.deployments_per_definition,
                "api-version": self.api_version,
            },
        )
        return ReleaseTransformer.transform_deployments_response(await self._get_json(url, "release/deployments"))

    # ==============================
    # Distributed task (agent pool) APIs
    # ==============================

    async def list_agent_pools(self) -> list[AgentPool]:
        """
        REST Endpoint: GET {org}/_apis/distributedtask/pools?api-version=7.1
        """
        url = self._build_url(None, "distributedtask/pools", **{"api-version": self.api_version})
        return AgentPoolTransformer.transform_pools_response(await self._get_json(url, "distributedtask/pools"))

    async def get_agent_pool(self, pool_id: int) -> AgentPool:
        """
        REST Endpoint: GET {org}/_apis/distributedtask/pools/{poolId}?api-version=7.1
        """
        url = self._build_url(None, f"distributedtask/pools/{pool_id}", **{"api-version": self.api_version})
        return AgentPoolTransformer.transform_pool(await self._get_json(url, "distributedtask/pool"))

    async def list_agent_pool_agents(self, pool_id: int) -> list[AgentPoolAgent]:
        """
        REST Endpoint: GET {org}/_apis/distributedtask/pools/{poolId}/agents?includeAssignedRequest=true
        """
        url = self._build_url(
            None,
            f"distributedtask/pools/{pool_id}/agents",
            **{"includeCapabilities": "false", "includeAssignedRequest": "true", "api-version": self.api_version},
        )
        return AgentPoolTransformer.transform_agents_response(await self._get_json(url, "distributedtask/agents"))

    async def list_agent_pool_jobs(self, pool_id: int) -> list[JobRequest]:
        """
        REST Endpoint: GET {org}/_apis/distributedtask/pools/{poolId}/jobrequests?api-version=7.1
        """
        url = self._build_url(None, f"distributedtask/pools/{pool_id}/jobrequests", **{"api-version": self.api_version})
        return AgentPoolTransformer.transform_jobs_response(await self._get_json(url, "distributedtask/jobrequests"))

    # ==============================
    # Work Item Tracking APIs
    # ==============================

    async def query_work_items(self, query: QueryRef) -> list[WorkItemRef]:
        """
        Run a saved query.

        REST Endpoint: GET {org}/{project}/_apis/wit/wiql/{queryId}?api-version=7.1
        """
        url = self._build_url(
            query.project_id, f"wit/wiql/{quote(query.query_id, safe='')}", **{"api-version": self.api_version}
        )
        return WorkItemTransformer.transform_wiql_response(await self._get_json(url, "wit/wiql"))

    async def get_work_item(self, url: str) -> WorkItem:
        """
        Fetch a work item by the URL returned from a WIQL query.

        Only URLs of the configured organization are followed so the PAT is
        never sent to another host.

        Raises:
            ADOClientError: If the URL points outside the organization or the call fails
        """
        if not url.startswith(self.organization_url + "/"):
            raise ADOClientError(f"Refusing to fetch work item outside organization: {url}", url=url)
        return WorkItemTransformer.transform_work_item(await self._get_json(url, "wit/workitems"))

    # ==============================
    # Resource usage APIs
    # ==============================

    async def get_resource_usage_build(self) -> ResourceUsageBuild:
        """
        REST Endpoint: GET {org}/_apis/build/resourceusage?api-version=5.1-preview.2
        """
        url = self._build_url(None, "build/resourceusage", **{"api-version": self.RESOURCE_USAGE_BUILD_API_VERSION})
        return ResourceUsageTransformer.transform_build_usage(await self._get_json(url, "build/resourceusage"))

    async def get_resource_usage_agent(self) -> ResourceUsageLicense:
        """
        License details of the build queue hub.

        REST Endpoint: POST {org}/_apis/Contribution/dataProviders/query?api-version=5.1-preview.1
        """
        url = self._build_url(
            None, "Contribution/dataProviders/query", **{"api-version": self.DATA_PROVIDER_API_VERSION}
        )
        payload = {"contributionIds": ["ms.vss-build-web.build-queue-hub-data-provider"]}
        response = await self._handle_api_call("POST", url, "contribution/dataproviders", json=payload)
        return ResourceUsageTransformer.transform_license_usage(self._decode(response, "contribution/dataproviders"))
