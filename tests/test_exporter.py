"""
Tests for exporter orchestration

Covers runner construction, discovery publication, startup failure handling
and an end-to-end pass against the fake Azure DevOps transport.
"""

from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from ado_exporter.__main__ import main, parse_args
from ado_exporter.api import create_app
from ado_exporter.collectors.base import AgentPoolRunner, GeneralRunner, ProjectRunner, QueryRunner, RunnerState
from ado_exporter.collectors.service_discovery import ServiceDiscoveryError
from ado_exporter.domain import Project
from ado_exporter.exporter import Exporter, build_runners, publish_discovery, refresh_discovery
from ado_exporter.secure_config import ConfigurationError, FilterConfig, ScrapeConfig

ORG_PATH = "/test-org"


class TestBuildRunners:
    """Test runner construction from configuration"""

    def test_default_runners(self, context):
        runners = build_runners(context)

        names = [runner.name for runner in runners]
        assert names == [
            "Project",
            "LatestBuild",
            "Repository",
            "PullRequest",
            "Build",
            "BuildTimeline",
            "Release",
            "Deployment",
            "Stats",
            "AgentPool",
            "ResourceUsage",
            "General",
        ]
        assert context.runners is runners
        assert isinstance(runners[-1], GeneralRunner)

    def test_intervals_follow_configuration(self, context):
        runners = {runner.name: runner for runner in build_runners(context)}

        assert runners["Project"].interval == timedelta(seconds=30)
        assert runners["Build"].interval == timedelta(minutes=30)

    def test_zero_interval_disables_collector(self, context):
        context.config.scrape = ScrapeConfig(timeline=timedelta(0), stats=timedelta(0))

        names = {runner.name for runner in build_runners(context)}

        assert "BuildTimeline" not in names
        assert "Stats" not in names

    def test_query_runner_only_with_queries(self, context):
        context.config.filter = FilterConfig(queries=["q1@p1", "q2@p2"])

        query_runner = [runner for runner in build_runners(context) if isinstance(runner, QueryRunner)][0]

        assert [str(query) for query in query_runner.queries] == ["q1@p1", "q2@p2"]


class TestDiscoveryPublication:
    """Test handing discovery snapshots to the runners"""

    def test_publish_discovery(self, context):
        runners = build_runners(context)
        projects = [Project(id="p1", name="Platform")]

        publish_discovery(context, projects, [9])

        for runner in runners:
            if isinstance(runner, ProjectRunner):
                assert runner.projects == tuple(projects)
                assert runner.state is RunnerState.IDLE
            elif isinstance(runner, AgentPoolRunner):
                assert runner.agent_pools == (9,)

    @pytest.mark.asyncio
    async def test_refresh_discovery(self, context, mock_client):
        mock_client.list_projects.return_value = [Project(id="p1", name="Platform")]
        mock_client.list_repositories.return_value = []
        mock_client.list_agent_pools.return_value = []
        build_runners(context)

        await refresh_discovery(context)

        project_runner = context.runners[0]
        assert [project.id for project in project_runner.projects] == ["p1"]


class TestExporter:
    """Test the exporter process"""

    @pytest.mark.asyncio
    async def test_initial_discovery_failure_is_fatal(self, exporter_config, fake_ado):
        exporter = Exporter(exporter_config, transport=fake_ado.transport())

        with pytest.raises(ServiceDiscoveryError):
            await exporter.run()

        assert exporter.context.client.http.client is None

    @pytest.mark.asyncio
    async def test_end_to_end_project_pass(self, exporter_config, fake_ado):
        """Test discovery, one collection pass and the scrape output"""
        fake_ado.add_json(f"{ORG_PATH}/_apis/projects", {"count": 1, "value": [{"id": "p1", "name": "Platform"}]})
        fake_ado.add_json(
            f"{ORG_PATH}/p1/_apis/git/repositories", {"count": 1, "value": [{"id": "r1", "name": "api", "size": 10}]}
        )
        fake_ado.add_json(f"{ORG_PATH}/_apis/distributedtask/pools", {"count": 1, "value": [{"id": 9}]})
        exporter = Exporter(exporter_config, transport=fake_ado.transport())
        context = exporter.context
        context.client.open()

        try:
            await refresh_discovery(context)
            project_runner = next(runner for runner in context.runners if runner.name == "Project")
            await project_runner.collect()
        finally:
            await context.client.aclose()

        text = TestClient(create_app(context)).get("/metrics").text
        assert 'azure_devops_project_info{projectID="p1",projectName="Platform"} 1.0' in text
        assert "azure_devops_api_request_count" in text


class TestMain:
    """Test the command line entry point"""

    def test_parse_args(self):
        args = parse_args(["--log-level", "DEBUG", "--env-file", "exporter.env"])

        assert args.log_level == "DEBUG"
        assert args.env_file == "exporter.env"
        assert args.log_json is None

    def test_invalid_configuration_exits_2(self):
        with patch("ado_exporter.__main__.validate_config_on_startup", side_effect=ConfigurationError("bad")):
            assert main([]) == 2

    def test_discovery_failure_exits_1(self, exporter_config):
        with (
            patch("ado_exporter.__main__.validate_config_on_startup", return_value=exporter_config),
            patch("ado_exporter.__main__.setup_logging") as setup_logging,
            patch("ado_exporter.__main__.Exporter") as exporter_class,
        ):
            exporter_class.return_value.run = AsyncMock(side_effect=ServiceDiscoveryError("no projects"))

            assert main(["--log-json"]) == 1

        setup_logging.assert_called_once_with(level="INFO", json_output=True)
