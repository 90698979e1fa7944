"""
Unit Tests for the project scoped Git collectors

Test Coverage:
- Project info
- Repository info, size and commit / push counters
- Pull requests, vote status and labels
"""

from datetime import UTC, datetime, timedelta

import pytest

from ado_exporter.collectors.ado_rest_client import ADOClientError
from ado_exporter.collectors.base import ProjectRunner
from ado_exporter.collectors.project_metrics import ProjectMetricsProcessor
from ado_exporter.collectors.pullrequest_metrics import PullRequestMetricsProcessor
from ado_exporter.collectors.repository_metrics import RepositoryMetricsProcessor
from ado_exporter.domain import Project, PullRequest, PullRequestLabel, Repository

INTERVAL = timedelta(minutes=5)
T0 = datetime(2026, 2, 10, 10, 0, tzinfo=UTC)


def samples(registry, name):
    return [sample for metric in registry.collect() for sample in metric.samples if sample.name == name]


class TestProjectMetricsProcessor:
    """Test the Project collector"""

    @pytest.mark.asyncio
    async def test_one_info_series_per_project(self, context, mock_client):
        runner = ProjectRunner("Project", ProjectMetricsProcessor(), INTERVAL, context)
        runner.set_projects([Project(id="p1", name="Platform"), Project(id="p2", name="Mobile")])

        await runner.collect()

        assert context.registry.get_sample_value(
            "azure_devops_project_info", {"projectID": "p2", "projectName": "Mobile"}
        ) == 1
        assert len(samples(context.registry, "azure_devops_project_info")) == 2
        assert mock_client.method_calls == []


class TestRepositoryMetricsProcessor:
    """Test the Repository collector"""

    @pytest.mark.asyncio
    async def test_repository_series(self, context, mock_client, sample_project):
        mock_client.count_commits.return_value = 4
        mock_client.count_pushes.return_value = 2
        runner = ProjectRunner("Repository", RepositoryMetricsProcessor(), INTERVAL, context)
        runner.set_projects([sample_project])

        await runner.collect()

        registry = context.registry
        labels = {"projectID": "p1", "repositoryID": "r1"}
        assert registry.get_sample_value(
            "azure_devops_repository_info", {**labels, "repositoryName": "platform-api"}
        ) == 1
        assert registry.get_sample_value("azure_devops_repository_stats", {**labels, "type": "size"}) == 2048
        assert registry.get_sample_value("azure_devops_repository_commits_total", labels) == 4
        assert registry.get_sample_value("azure_devops_repository_pushes_total", labels) == 2

    @pytest.mark.asyncio
    async def test_counts_since_previous_pass(self, context, mock_client, sample_project):
        """Test that commits are counted since the start of the previous pass"""
        mock_client.count_commits.return_value = 1
        mock_client.count_pushes.return_value = 1
        runner = ProjectRunner("Repository", RepositoryMetricsProcessor(), INTERVAL, context)
        runner.set_projects([sample_project])

        await runner.collect()
        first_start = runner.last_collection_start
        first_from = mock_client.count_commits.call_args.args[2]
        await runner.collect()

        assert first_start - first_from == INTERVAL
        assert mock_client.count_commits.call_args.args[2] == first_start
        assert context.registry.get_sample_value(
            "azure_devops_repository_commits_total", {"projectID": "p1", "repositoryID": "r1"}
        ) == 2

    @pytest.mark.asyncio
    async def test_empty_repository_has_no_size(self, context, mock_client):
        mock_client.count_commits.return_value = 0
        mock_client.count_pushes.return_value = 0
        project = Project(id="p1", name="Platform", repositories=[Repository(id="r2", name="empty", size=0)])
        runner = ProjectRunner("Repository", RepositoryMetricsProcessor(), INTERVAL, context)
        runner.set_projects([project])

        await runner.collect()

        assert samples(context.registry, "azure_devops_repository_stats") == []

    @pytest.mark.asyncio
    async def test_push_failure_keeps_commits(self, context, mock_client, sample_project):
        mock_client.count_commits.return_value = 3
        mock_client.count_pushes.side_effect = ADOClientError("boom", status_code=500)
        runner = ProjectRunner("Repository", RepositoryMetricsProcessor(), INTERVAL, context)
        runner.set_projects([sample_project])

        await runner.collect()

        labels = {"projectID": "p1", "repositoryID": "r1"}
        assert context.registry.get_sample_value("azure_devops_repository_commits_total", labels) == 3
        assert context.registry.get_sample_value("azure_devops_repository_pushes_total", labels) is None


class TestPullRequestMetricsProcessor:
    """Test the PullRequest collector"""

    @pytest.fixture
    def project(self):
        return Project(
            id="p1",
            name="Platform",
            repositories=[Repository(id="r1", name="api"), Repository(id="r2", name="web")],
        )

    @pytest.mark.asyncio
    async def test_pull_request_series(self, context, mock_client, project):
        async def list_pull_requests(project_id, repository_id):
            if repository_id == "r2":
                return []
            return [
                PullRequest(
                    id=101,
                    title="Add login",
                    status="active",
                    creator="Ann",
                    source_branch="refs/heads/login",
                    target_branch="refs/heads/main",
                    creation_date=T0,
                    reviewer_votes=[10, -5],
                    labels=[PullRequestLabel("feature"), PullRequestLabel("old", active=False)],
                )
            ]

        mock_client.list_pull_requests.side_effect = list_pull_requests
        runner = ProjectRunner("PullRequest", PullRequestMetricsProcessor(), INTERVAL, context)
        runner.set_projects([project])

        await runner.collect()

        registry = context.registry
        info = samples(registry, "azure_devops_pullrequest_info")[0].labels
        assert info["voteStatus"] == "WaitingForAuthor"
        assert info["isDraft"] == "false"
        assert registry.get_sample_value(
            "azure_devops_pullrequest_status",
            {"projectID": "p1", "repositoryID": "r1", "pullrequestID": "101", "type": "created"},
        ) == T0.timestamp()
        labels = {(sample.labels["label"], sample.labels["active"]) for sample in samples(registry, "azure_devops_pullrequest_label")}
        assert labels == {("feature", "true"), ("old", "false")}

    @pytest.mark.asyncio
    async def test_repository_failure_is_isolated(self, context, mock_client, project):
        """Test that one failing repository does not drop the others"""

        async def list_pull_requests(project_id, repository_id):
            if repository_id == "r1":
                raise ADOClientError("boom", status_code=500)
            return [PullRequest(id=202, title="Fix css")]

        mock_client.list_pull_requests.side_effect = list_pull_requests
        runner = ProjectRunner("PullRequest", PullRequestMetricsProcessor(), INTERVAL, context)
        runner.set_projects([project])

        await runner.collect()

        info = samples(context.registry, "azure_devops_pullrequest_info")
        assert [sample.labels["repositoryID"] for sample in info] == ["r2"]
