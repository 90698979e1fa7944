"""
Tests for Secure Configuration Management

Covers validation of every configuration section and loading from the
environment and .env files.
"""

import os
from datetime import timedelta
from unittest.mock import patch

import pytest

from ado_exporter import secure_config
from ado_exporter.secure_config import (
    AzureDevOpsConfig,
    ConfigurationError,
    ExporterConfig,
    FilterConfig,
    LimitConfig,
    RequestConfig,
    ScrapeConfig,
    SecureConfig,
    ServerConfig,
    validate_config_on_startup,
)

VALID_URL = "https://dev.azure.com/test-org"
VALID_PAT = "abcdefghijklmnopqrstuvwxyz0123456789"


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Run with an empty environment and no cached configuration"""
    monkeypatch.setattr(secure_config, "_config_instance", None)
    monkeypatch.chdir(tmp_path)
    with patch.dict(os.environ, {}, clear=True):
        yield os.environ


class TestAzureDevOpsConfig:
    """Test Azure DevOps settings validation"""

    def test_valid_config(self):
        config = AzureDevOpsConfig(organization_url=VALID_URL, pat=VALID_PAT)

        assert config.api_version == "7.1"

    def test_visualstudio_url_is_accepted(self):
        AzureDevOpsConfig(organization_url="https://test-org.visualstudio.com", pat=VALID_PAT)

    @pytest.mark.parametrize(
        "url,match",
        [
            ("", "is required"),
            ("http://dev.azure.com/test-org", "must use HTTPS"),
            ("https://example.com/test-org", "valid Azure DevOps URL"),
        ],
    )
    def test_invalid_url(self, url, match):
        with pytest.raises(ConfigurationError, match=match):
            AzureDevOpsConfig(organization_url=url, pat=VALID_PAT)

    def test_short_pat(self):
        with pytest.raises(ConfigurationError, match="too short"):
            AzureDevOpsConfig(organization_url=VALID_URL, pat="short")

    def test_placeholder_pat(self):
        with pytest.raises(ConfigurationError, match="placeholder"):
            AzureDevOpsConfig(organization_url=VALID_URL, pat="your_pat_goes_here_123456")

    def test_invalid_api_version(self):
        with pytest.raises(ConfigurationError, match="api-version"):
            AzureDevOpsConfig(organization_url=VALID_URL, pat=VALID_PAT, api_version="latest")

    def test_preview_api_version(self):
        AzureDevOpsConfig(organization_url=VALID_URL, pat=VALID_PAT, api_version="7.1-preview.1")


class TestScrapeConfig:
    """Test collector interval defaults"""

    def test_fallbacks(self):
        """Test that unset intervals fall back to live or default"""
        config = ScrapeConfig(default=timedelta(minutes=15), live=timedelta(seconds=10))

        assert config.projects == timedelta(seconds=10)
        assert config.agentpool == timedelta(seconds=10)
        assert config.latest_build == timedelta(seconds=10)
        assert config.general == timedelta(seconds=10)
        assert config.build == timedelta(minutes=15)
        assert config.query == timedelta(minutes=15)

    def test_explicit_zero_disables(self):
        config = ScrapeConfig(timeline=timedelta(0))

        assert config.timeline == timedelta(0)

    def test_zero_default_is_rejected(self):
        with pytest.raises(ConfigurationError, match="SCRAPE_TIME"):
            ScrapeConfig(default=timedelta(0))

    def test_negative_interval_is_rejected(self):
        with pytest.raises(ConfigurationError, match="SCRAPE_TIME_BUILD"):
            ScrapeConfig(build=timedelta(seconds=-1))


class TestOtherSections:
    """Test validation of the remaining sections"""

    def test_request_concurrency(self):
        with pytest.raises(ConfigurationError, match="REQUEST_CONCURRENCY"):
            RequestConfig(concurrency=0)

    def test_request_timeout(self):
        with pytest.raises(ConfigurationError, match="REQUEST_TIMEOUT"):
            RequestConfig(timeout=0)

    def test_limit_minimum(self):
        with pytest.raises(ConfigurationError, match="LIMIT_PROJECT"):
            LimitConfig(project=0)

    def test_history_duration(self):
        with pytest.raises(ConfigurationError, match="History durations"):
            LimitConfig(build_history_duration=timedelta(0))

    def test_unknown_timeline_state(self):
        with pytest.raises(ConfigurationError, match="ADO_TIMELINE_STATES"):
            FilterConfig(timeline_states=["done"])

    @pytest.mark.parametrize("query", ["q1", "@p1", "q1@", "q1@p1@x"])
    def test_malformed_query(self, query):
        with pytest.raises(ConfigurationError, match="ADO_QUERIES"):
            FilterConfig(queries=[query])

    def test_server_port(self):
        with pytest.raises(ConfigurationError, match="SERVER_PORT"):
            ServerConfig(port=70000)

    def test_log_level(self):
        with pytest.raises(ConfigurationError, match="LOG_LEVEL"):
            ExporterConfig(azure_devops=AzureDevOpsConfig(VALID_URL, VALID_PAT), log_level="chatty")


class TestSecureConfigLoading:
    """Test loading configuration from the environment"""

    def test_minimal_environment(self, clean_env):
        clean_env.update({"ADO_ORGANIZATION_URL": VALID_URL + "/", "ADO_PAT": VALID_PAT})

        config = SecureConfig().get_exporter_config()

        assert config.azure_devops.organization_url == VALID_URL
        assert config.request.concurrency == 10
        assert config.filter.agent_pools is None
        assert config.filter.timeline_states == ["completed"]
        assert config.servicediscovery_refresh == timedelta(minutes=30)
        assert config.server.port == 8080
        assert config.log_json is False

    def test_full_environment(self, clean_env):
        clean_env.update(
            {
                "ADO_ORGANIZATION_URL": VALID_URL,
                "ADO_PAT": VALID_PAT,
                "ADO_PROJECT_WHITELIST": "p1 p2",
                "ADO_PROJECT_BLACKLIST": "p2",
                "ADO_AGENTPOOL": "1 9",
                "ADO_TIMELINE_STATES": "completed inProgress",
                "ADO_QUERIES": "q1@p1",
                "SCRAPE_TIME": "1h",
                "SCRAPE_TIME_LIVE": "15s",
                "SCRAPE_TIME_TIMELINE": "0",
                "REQUEST_CONCURRENCY": "4",
                "REQUEST_TIMEOUT": "12.5",
                "LIMIT_BUILD_HISTORY_DURATION": "6h",
                "SERVER_PORT": "9090",
                "LOG_LEVEL": "debug",
                "LOG_JSON": "true",
            }
        )

        config = SecureConfig().get_exporter_config()

        assert config.filter.project_whitelist == ["p1", "p2"]
        assert config.filter.agent_pools == [1, 9]
        assert config.filter.timeline_states == ["completed", "inProgress"]
        assert config.filter.queries == ["q1@p1"]
        assert config.scrape.build == timedelta(hours=1)
        assert config.scrape.agentpool == timedelta(seconds=15)
        assert config.scrape.timeline == timedelta(0)
        assert config.request.concurrency == 4
        assert config.request.timeout == 12.5
        assert config.limit.build_history_duration == timedelta(hours=6)
        assert config.server.port == 9090
        assert config.log_json is True

    def test_pat_file(self, clean_env, tmp_path):
        pat_file = tmp_path / "pat"
        pat_file.write_text(VALID_PAT + "\n", encoding="utf-8")
        clean_env.update({"ADO_ORGANIZATION_URL": VALID_URL, "ADO_PAT_FILE": str(pat_file)})

        assert SecureConfig().get_ado_config().pat == VALID_PAT

    def test_missing_pat_file(self, clean_env, tmp_path):
        clean_env.update({"ADO_ORGANIZATION_URL": VALID_URL, "ADO_PAT_FILE": str(tmp_path / "missing")})

        with pytest.raises(ConfigurationError, match="ADO_PAT_FILE"):
            SecureConfig().get_ado_config()

    @pytest.mark.parametrize(
        "name,value",
        [("REQUEST_CONCURRENCY", "many"), ("SCRAPE_TIME", "soon"), ("ADO_AGENTPOOL", "default"), ("REQUEST_TIMEOUT", "x")],
    )
    def test_malformed_values(self, clean_env, name, value):
        clean_env.update({"ADO_ORGANIZATION_URL": VALID_URL, "ADO_PAT": VALID_PAT, name: value})

        with pytest.raises(ConfigurationError, match=name):
            SecureConfig().get_exporter_config()

    def test_missing_pat(self, clean_env):
        clean_env.update({"ADO_ORGANIZATION_URL": VALID_URL})

        with pytest.raises(ConfigurationError, match="ADO_PAT"):
            SecureConfig().get_exporter_config()

    def test_env_file(self, clean_env, tmp_path):
        env_file = tmp_path / "exporter.env"
        env_file.write_text(f"ADO_ORGANIZATION_URL={VALID_URL}\nADO_PAT={VALID_PAT}\nSERVER_PORT=9100\n", encoding="utf-8")

        config = validate_config_on_startup(env_file)

        assert config.server.port == 9100
