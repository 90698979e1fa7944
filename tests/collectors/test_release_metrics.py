"""
Unit Tests for the release and deployment collectors

Test Coverage:
- Release definitions and definition environments
- Releases, artifacts, environments and manual approvals
- Deployments per release definition
"""

from datetime import UTC, datetime, timedelta

import pytest

from ado_exporter.collectors.ado_rest_client import ADOClientError
from ado_exporter.collectors.base import ProjectRunner
from ado_exporter.collectors.deployment_metrics import DeploymentMetricsProcessor
from ado_exporter.collectors.release_metrics import ReleaseMetricsProcessor
from ado_exporter.domain import (
    Release,
    ReleaseApproval,
    ReleaseArtifact,
    ReleaseDefinition,
    ReleaseDefinitionEnvironment,
    ReleaseDeployment,
    ReleaseEnvironment,
)

INTERVAL = timedelta(minutes=5)
T0 = datetime(2026, 2, 10, 10, 0, tzinfo=UTC)


def samples(registry, name):
    return [sample for metric in registry.collect() for sample in metric.samples if sample.name == name]


@pytest.fixture
def release_definition():
    return ReleaseDefinition(
        id=11,
        name="Deploy API",
        path="\\",
        release_name_format="Release-$(rev:r)",
        environments=[ReleaseDefinitionEnvironment(id=21, name="Production", rank=1, current_release_id=31)],
    )


@pytest.fixture
def release():
    return Release(
        id=31,
        name="Release-7",
        definition_id=11,
        status="active",
        artifacts=[ReleaseArtifact(source_id="p1:5", type="Build", alias="_api", repository="api", branch="main")],
        environments=[
            ReleaseEnvironment(
                id=41,
                definition_environment_id=21,
                name="Production",
                status="succeeded",
                created_on=T0,
                time_to_deploy=2.5,
                pre_deploy_approvals=[
                    ReleaseApproval("preDeploy", "approved", approved_by="Ann", created_on=T0),
                    ReleaseApproval("preDeploy", "approved", is_automated=True, created_on=T0),
                ],
            ),
            ReleaseEnvironment(id=42, definition_environment_id=22, name="Staging", status="notStarted"),
        ],
    )


class TestReleaseMetricsProcessor:
    """Test the Release collector"""

    @pytest.mark.asyncio
    async def test_release_series(self, context, mock_client, sample_project, release_definition, release):
        mock_client.list_release_definitions.return_value = [release_definition]
        mock_client.list_release_history.return_value = [release]
        runner = ProjectRunner("Release", ReleaseMetricsProcessor(), INTERVAL, context)
        runner.set_projects([sample_project])

        await runner.collect()

        registry = context.registry
        assert len(samples(registry, "azure_devops_release_info")) == 1
        assert samples(registry, "azure_devops_release_artifact")[0].labels["repositoryID"] == "api"
        assert len(samples(registry, "azure_devops_release_environment")) == 2
        assert samples(registry, "azure_devops_release_definition_info")[0].labels["releaseDefinitionName"] == (
            "Deploy API"
        )
        assert samples(registry, "azure_devops_release_definition_environment")[0].labels["releaseID"] == "31"

    @pytest.mark.asyncio
    async def test_environment_status(self, context, mock_client, sample_project, release):
        mock_client.list_release_definitions.return_value = []
        mock_client.list_release_history.return_value = [release]
        runner = ProjectRunner("Release", ReleaseMetricsProcessor(), INTERVAL, context)
        runner.set_projects([sample_project])

        await runner.collect()

        status = {
            (sample.labels["environmentID"], sample.labels["type"]): sample.value
            for sample in samples(context.registry, "azure_devops_release_environment_status")
        }
        assert status[("21", "succeeded")] == 1
        assert status[("21", "jobDuration")] == 150
        assert status[("21", "created")] == T0.timestamp()
        assert status[("22", "succeeded")] == 0
        assert ("22", "jobDuration") not in status
        assert ("22", "created") not in status

    @pytest.mark.asyncio
    async def test_automated_approvals_are_skipped(self, context, mock_client, sample_project, release):
        mock_client.list_release_definitions.return_value = []
        mock_client.list_release_history.return_value = [release]
        runner = ProjectRunner("Release", ReleaseMetricsProcessor(), INTERVAL, context)
        runner.set_projects([sample_project])

        await runner.collect()

        approvals = samples(context.registry, "azure_devops_release_approval")
        assert [sample.labels["approvedBy"] for sample in approvals] == ["Ann"]
        assert approvals[0].labels["isAutomated"] == "false"

    @pytest.mark.asyncio
    async def test_history_failure_keeps_definitions(self, context, mock_client, sample_project, release_definition):
        """Test that definitions and releases fail independently"""
        mock_client.list_release_definitions.return_value = [release_definition]
        mock_client.list_release_history.side_effect = ADOClientError("boom", status_code=500)
        runner = ProjectRunner("Release", ReleaseMetricsProcessor(), INTERVAL, context)
        runner.set_projects([sample_project])

        await runner.collect()

        assert len(samples(context.registry, "azure_devops_release_definition_info")) == 1
        assert samples(context.registry, "azure_devops_release_info") == []

    @pytest.mark.asyncio
    async def test_history_window(self, context, mock_client, sample_project):
        mock_client.list_release_definitions.return_value = []
        mock_client.list_release_history.return_value = []
        runner = ProjectRunner("Release", ReleaseMetricsProcessor(), INTERVAL, context)
        runner.set_projects([sample_project])

        await runner.collect()

        _, min_time = mock_client.list_release_history.call_args.args
        assert datetime.now(UTC) - min_time >= context.config.limit.release_history_duration


class TestDeploymentMetricsProcessor:
    """Test the Deployment collector"""

    @pytest.mark.asyncio
    async def test_deployments_per_definition(self, context, mock_client, sample_project, release_definition):
        mock_client.list_release_definitions.return_value = [release_definition]
        mock_client.list_release_deployments.return_value = [
            ReleaseDeployment(
                id=51,
                name="Deploy to Production",
                release_id=31,
                environment_id=41,
                environment_name="Production",
                deployment_status="succeeded",
                queued_on=T0,
                started_on=T0 + timedelta(seconds=30),
                completed_on=T0 + timedelta(minutes=3),
                pre_deploy_approvals=[ReleaseApproval("preDeploy", "approved", approved_by="Ann")],
            ),
            ReleaseDeployment(id=52, release_id=32, deployment_status="inProgress", queued_on=T0),
        ]
        runner = ProjectRunner("Deployment", DeploymentMetricsProcessor(), INTERVAL, context)
        runner.set_projects([sample_project])

        await runner.collect()

        mock_client.list_release_deployments.assert_awaited_once_with("p1", 11)
        registry = context.registry
        info = {sample.labels["deploymentID"]: sample.labels for sample in samples(registry, "azure_devops_deployment_info")}
        assert info["51"]["approvedBy"] == "Ann"
        assert info["51"]["releaseDefinitionID"] == "11"
        status = {
            (sample.labels["deploymentID"], sample.labels["type"]): sample.value
            for sample in samples(registry, "azure_devops_deployment_status")
        }
        assert status[("51", "jobDuration")] == 150
        assert ("52", "jobDuration") not in status
        assert ("52", "finished") not in status
        assert status[("52", "queued")] == T0.timestamp()

    @pytest.mark.asyncio
    async def test_failure_discards_project(self, context, mock_client, sample_project, release_definition):
        mock_client.list_release_definitions.return_value = [release_definition]
        mock_client.list_release_deployments.side_effect = ADOClientError("boom", status_code=500)
        runner = ProjectRunner("Deployment", DeploymentMetricsProcessor(), INTERVAL, context)
        runner.set_projects([sample_project])

        await runner.collect()

        assert samples(context.registry, "azure_devops_deployment_info") == []
