"""
Service discovery for projects and agent pools

Keeps the project list (with repositories) and the agent pool id list in a
TTL cache shared by all collectors, so the full lists are fetched once per
refresh period instead of once per collector pass.

Usage:
    discovery = ServiceDiscovery(client, ttl=timedelta(minutes=30), project_blacklist=["..."])
    projects = await discovery.project_list()
    pool_ids = await discovery.agent_pool_list()

    # from the refresh loop
    await discovery.update()
"""

import asyncio
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from ado_exporter.collectors.ado_rest_client import ADOClientError, AzureDevOpsRESTClient
from ado_exporter.core.logging_config import get_logger
from ado_exporter.domain import Project
from ado_exporter.utils.error_handling import log_and_continue, log_and_raise, log_and_return_default

logger = get_logger(__name__)

CACHE_KEY_PROJECTS = "projects"
CACHE_KEY_AGENTPOOLS = "agentpools"


class ServiceDiscoveryError(Exception):
    """Raised when a list cannot be fetched and nothing is cached to fall back on."""

    pass


@dataclass
class CacheEntry:
    value: Any
    expires_at: float

    def is_valid(self, now: float) -> bool:
        return now < self.expires_at


def filter_projects(
    projects: Iterable[Project], whitelist: Iterable[str] = (), blacklist: Iterable[str] = ()
) -> list[Project]:
    """
    Apply project id whitelist and blacklist.

    The whitelist (when non-empty) is applied first, the blacklist is applied
    on top of it, so an id present in both lists is excluded.

    Examples:
        ids {A, B, C}, whitelist {A, B}, blacklist {B} -> {A}
    """
    allowed = set(whitelist)
    denied = set(blacklist)

    result = list(projects)
    if allowed:
        result = [project for project in result if project.id in allowed]
    if denied:
        result = [project for project in result if project.id not in denied]
    return result


class ServiceDiscovery:
    """
    TTL cache for the project list and the agent pool id list.

    Each key has its own asyncio.Lock: concurrent callers during a cache miss
    wait for the one in-flight fetch instead of issuing their own. Within the
    TTL every caller receives the very same list object.

    Failure policy:
    - nothing cached yet: ServiceDiscoveryError is raised (fatal for the exporter)
    - stale value cached: the error is logged and the stale list keeps serving
      for another TTL period
    """

    def __init__(
        self,
        client: AzureDevOpsRESTClient,
        ttl: timedelta,
        project_whitelist: Iterable[str] = (),
        project_blacklist: Iterable[str] = (),
        agent_pools: Iterable[int] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.ttl = ttl
        self.project_whitelist = list(project_whitelist)
        self.project_blacklist = list(project_blacklist)
        self.static_agent_pools = list(agent_pools) if agent_pools is not None else None
        self._clock = clock
        self._cache: dict[str, CacheEntry] = {}
        self._locks = {
            CACHE_KEY_PROJECTS: asyncio.Lock(),
            CACHE_KEY_AGENTPOOLS: asyncio.Lock(),
        }

    async def project_list(self) -> list[Project]:
        """
        Filtered project list with repositories.

        Raises:
            ServiceDiscoveryError: If the list cannot be fetched and nothing is cached
        """
        return await self._get(CACHE_KEY_PROJECTS, self._fetch_projects)

    async def agent_pool_list(self) -> list[int]:
        """
        Agent pool ids, the static allow list when one is configured.

        Raises:
            ServiceDiscoveryError: If the list cannot be fetched and nothing is cached
        """
        return await self._get(CACHE_KEY_AGENTPOOLS, self._fetch_agent_pools)

    async def update(self) -> None:
        """
        Invalidate both keys and repopulate them eagerly.

        Stale values are kept as fallback until the refetch succeeded.
        """
        logger.info("Updating service discovery")
        for entry in self._cache.values():
            entry.expires_at = float("-inf")

        projects = await self.project_list()
        agent_pools = await self.agent_pool_list()
        logger.info(f"Service discovery found {len(projects)} projects and {len(agent_pools)} agent pools")

    async def _get(self, key: str, fetch: Callable[[], Awaitable[Any]]) -> Any:
        entry = self._cache.get(key)
        if entry is not None and entry.is_valid(self._clock()):
            return entry.value

        async with self._locks[key]:
            # another caller may have refreshed the entry while we waited
            entry = self._cache.get(key)
            if entry is not None and entry.is_valid(self._clock()):
                return entry.value

            try:
                value = await fetch()
            except ADOClientError as e:
                if entry is None:
                    log_and_raise(
                        logger,
                        ServiceDiscoveryError(f"Unable to fetch {key}: {e}"),
                        {"key": key},
                        "Service discovery",
                    )
                log_and_continue(logger, e, {"key": key, "stale_items": len(entry.value)}, "Service discovery refresh")
                entry.expires_at = self._clock() + self.ttl.total_seconds()
                return entry.value

            self._cache[key] = CacheEntry(value=value, expires_at=self._clock() + self.ttl.total_seconds())
            return value

    async def _fetch_projects(self) -> list[Project]:
        projects = filter_projects(await self.client.list_projects(), self.project_whitelist, self.project_blacklist)

        repositories = await asyncio.gather(*(self._fetch_repositories(project) for project in projects))
        for project, project_repositories in zip(projects, repositories, strict=True):
            project.repositories = project_repositories

        return projects

    async def _fetch_repositories(self, project: Project) -> list:
        try:
            return await self.client.list_repositories(project.id)
        except ADOClientError as e:
            return log_and_return_default(
                logger, e, {"project": project.name}, default_value=[], error_type="Repository discovery"
            )

    async def _fetch_agent_pools(self) -> list[int]:
        if self.static_agent_pools is not None:
            return list(self.static_agent_pools)
        return [pool.id for pool in await self.client.list_agent_pools()]
