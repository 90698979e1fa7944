"""
Pytest configuration and shared fixtures

Provides configuration, isolated exporter contexts and a mocked Azure DevOps
transport so no test ever talks to a real organization.
"""

import json
from collections.abc import Callable
from datetime import timedelta

import httpx
import pytest
from prometheus_client import CollectorRegistry

from ado_exporter.collectors.ado_rest_client import AzureDevOpsRESTClient
from ado_exporter.collectors.service_discovery import ServiceDiscovery
from ado_exporter.core.context import ExporterContext
from ado_exporter.domain import Project, Repository
from ado_exporter.secure_config import AzureDevOpsConfig, ExporterConfig, LimitConfig, ScrapeConfig

ORGANIZATION_URL = "https://dev.azure.com/test-org"
TEST_PAT = "abcdefghijklmnopqrstuvwxyz0123456789"


class FakeAzureDevOps:
    """
    Route table for httpx.MockTransport.

    Routes are matched on the URL path (query string ignored). Every request
    is recorded for later assertions.
    """

    def __init__(self) -> None:
        self.routes: dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: list[httpx.Request] = []

    def add_json(self, path: str, payload: dict, status_code: int = 200, headers: dict | None = None) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status_code, json=payload, headers=headers)

        self.routes[path] = handler

    def add_handler(self, path: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.routes[path] = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get(request.url.path)
        if handler is None:
            return httpx.Response(404, content=json.dumps({"message": "not found"}).encode())
        return handler(request)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


# ===== Configuration Fixtures =====


@pytest.fixture
def exporter_config():
    """Provide a valid exporter configuration with short intervals"""
    return ExporterConfig(
        azure_devops=AzureDevOpsConfig(organization_url=ORGANIZATION_URL, pat=TEST_PAT),
        scrape=ScrapeConfig(default=timedelta(minutes=30), live=timedelta(seconds=30)),
        limit=LimitConfig(build_history_duration=timedelta(minutes=2)),
    )


# ===== Client / Context Fixtures =====


@pytest.fixture
def fake_ado():
    """Provide an empty fake Azure DevOps route table"""
    return FakeAzureDevOps()


@pytest.fixture
def registry():
    return CollectorRegistry()


@pytest.fixture
def rest_client(fake_ado, registry):
    """Provide an opened REST client backed by the fake transport"""
    client = AzureDevOpsRESTClient(
        organization_url=ORGANIZATION_URL,
        pat=TEST_PAT,
        registry=registry,
        transport=fake_ado.transport(),
        retry_backoff=0,
    )
    return client.open()


@pytest.fixture
def mock_client():
    """Provide a Mock standing in for AzureDevOpsRESTClient"""
    from unittest.mock import AsyncMock, Mock

    client = Mock(spec=AzureDevOpsRESTClient)
    for name in dir(AzureDevOpsRESTClient):
        if name.startswith(("list_", "get_", "count_", "query_")):
            setattr(client, name, AsyncMock())
    client.request_count = 0
    client.current_concurrency = 0
    return client


@pytest.fixture
def context(exporter_config, mock_client, registry):
    """Provide an isolated exporter context around the mocked client"""
    return ExporterContext(
        config=exporter_config,
        client=mock_client,
        service_discovery=ServiceDiscovery(mock_client, ttl=timedelta(minutes=30)),
        registry=registry,
    )


# ===== Domain Model Fixtures =====


@pytest.fixture
def sample_project():
    """Provide a project with one repository"""
    return Project(
        id="p1",
        name="Platform",
        repositories=[Repository(id="r1", name="platform-api", size=2048)],
    )
