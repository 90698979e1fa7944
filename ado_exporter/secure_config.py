"""
Secure Configuration Management

Provides centralized, validated configuration for the exporter.
Every value is read from the environment (optionally seeded from a .env file)
and validated up front so that misconfiguration fails at startup instead of
in the middle of a collection pass.

Usage:
    from ado_exporter.secure_config import get_config

    config = get_config().get_exporter_config()
    print(config.azure_devops.organization_url)
    print(config.scrape.build)

Security Features:
    - Strict validation of all configuration values
    - Fail-fast on missing/invalid configuration
    - Placeholder detection (e.g., "your_pat_here")
    - HTTPS enforcement for URLs
    - PAT can be read from a file (ADO_PAT_FILE) to keep it out of the environment

Raises:
    ConfigurationError: If configuration is missing or invalid
"""

import os
import re
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv

from ado_exporter.utils.datetime_utils import parse_duration


class ConfigurationError(Exception):
    """Raised when configuration is missing or invalid."""

    pass


TIMELINE_STATES = ("completed", "inProgress", "pending")


@dataclass
class AzureDevOpsConfig:
    """
    Validated Azure DevOps configuration.
    """

    organization_url: str
    pat: str
    api_version: str = "7.1"

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate()

    def _validate(self):
        """
        Validate Azure DevOps configuration.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        if not self.organization_url:
            raise ConfigurationError("ADO_ORGANIZATION_URL is required")

        if not self.organization_url.startswith("https://"):
            raise ConfigurationError(f"ADO_ORGANIZATION_URL must use HTTPS: {self.organization_url}")

        if not ("dev.azure.com" in self.organization_url or "visualstudio.com" in self.organization_url):
            raise ConfigurationError(
                f"ADO_ORGANIZATION_URL must be a valid Azure DevOps URL: {self.organization_url}"
            )

        if not self.pat:
            raise ConfigurationError("ADO_PAT or ADO_PAT_FILE is required")

        if len(self.pat) < 20:
            raise ConfigurationError(f"ADO_PAT appears invalid (too short: {len(self.pat)} chars, expected >=20)")

        # Check for placeholder values
        placeholders = ["your_pat", "your_token", "example", "placeholder", "xxx", "replace_me"]
        if any(placeholder in self.pat.lower() for placeholder in placeholders):
            raise ConfigurationError("ADO_PAT contains a placeholder value - please set a real Personal Access Token")

        if not re.match(r"^\d+\.\d+(-preview(\.\d+)?)?$", self.api_version):
            raise ConfigurationError(f"ADO_API_VERSION is not a valid api-version: {self.api_version}")


@dataclass
class ScrapeConfig:
    """
    Refresh intervals per collector.

    A per-collector interval of zero disables that collector. Unset intervals
    fall back to ``default`` (Project, AgentPool, LatestBuild and General
    fall back to ``live``).
    """

    default: timedelta = timedelta(minutes=30)
    live: timedelta = timedelta(seconds=30)
    projects: timedelta | None = None
    agentpool: timedelta | None = None
    latest_build: timedelta | None = None
    repository: timedelta | None = None
    pullrequest: timedelta | None = None
    build: timedelta | None = None
    timeline: timedelta | None = None
    release: timedelta | None = None
    deployment: timedelta | None = None
    stats: timedelta | None = None
    resource_usage: timedelta | None = None
    query: timedelta | None = None
    general: timedelta | None = None

    LIVE_COLLECTORS = ("projects", "agentpool", "latest_build", "general")

    @staticmethod
    def interval_names() -> tuple[str, ...]:
        return (
            "projects",
            "agentpool",
            "latest_build",
            "repository",
            "pullrequest",
            "build",
            "timeline",
            "release",
            "deployment",
            "stats",
            "resource_usage",
            "query",
            "general",
        )

    def __post_init__(self):
        for name in self.interval_names():
            if getattr(self, name) is None:
                setattr(self, name, self.live if name in self.LIVE_COLLECTORS else self.default)
        self._validate()

    def _validate(self):
        if self.default <= timedelta(0):
            raise ConfigurationError("SCRAPE_TIME must be greater than zero")
        for name in self.interval_names():
            if getattr(self, name) < timedelta(0):
                raise ConfigurationError(f"SCRAPE_TIME_{name.upper()} must not be negative")


@dataclass
class RequestConfig:
    """
    Remote API request policy shared by every collector.
    """

    concurrency: int = 10
    retries: int = 3
    timeout: float = 30.0

    def __post_init__(self):
        if self.concurrency < 1:
            raise ConfigurationError(f"REQUEST_CONCURRENCY must be at least 1: {self.concurrency}")
        if self.retries < 1:
            raise ConfigurationError(f"REQUEST_RETRIES must be at least 1: {self.retries}")
        if self.timeout <= 0:
            raise ConfigurationError(f"REQUEST_TIMEOUT must be greater than zero: {self.timeout}")


@dataclass
class LimitConfig:
    """
    Pagination and history limits applied to list calls.
    """

    project: int = 100
    builds_per_project: int = 100
    builds_per_definition: int = 10
    releases_per_project: int = 100
    releases_per_definition: int = 100
    deployments_per_definition: int = 100
    release_definitions_per_project: int = 100
    build_history_duration: timedelta = timedelta(hours=48)
    release_history_duration: timedelta = timedelta(hours=48)

    def __post_init__(self):
        for name in (
            "project",
            "builds_per_project",
            "builds_per_definition",
            "releases_per_project",
            "releases_per_definition",
            "deployments_per_definition",
            "release_definitions_per_project",
        ):
            if getattr(self, name) < 1:
                raise ConfigurationError(f"LIMIT_{name.upper()} must be at least 1")
        if self.build_history_duration <= timedelta(0) or self.release_history_duration <= timedelta(0):
            raise ConfigurationError("History durations must be greater than zero")


@dataclass
class FilterConfig:
    """
    Project and agent pool selection.

    ``agent_pools`` is None when agent pools are discovered from the API and a
    list of ids when a static allow list is configured.
    """

    project_whitelist: list[str] = field(default_factory=list)
    project_blacklist: list[str] = field(default_factory=list)
    agent_pools: list[int] | None = None
    timeline_states: list[str] = field(default_factory=lambda: ["completed"])
    queries: list[str] = field(default_factory=list)

    def __post_init__(self):
        for state in self.timeline_states:
            if state not in TIMELINE_STATES:
                raise ConfigurationError(f"ADO_TIMELINE_STATES contains unknown state: {state}")

        for query in self.queries:
            if query.count("@") != 1 or query.startswith("@") or query.endswith("@"):
                raise ConfigurationError(f"ADO_QUERIES entry must be <queryId>@<projectId>: {query}")


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"  # nosec B104
    port: int = 8080

    def __post_init__(self):
        if not 0 < self.port < 65536:
            raise ConfigurationError(f"SERVER_PORT out of range: {self.port}")


@dataclass
class ExporterConfig:
    """
    Complete validated exporter configuration.
    """

    azure_devops: AzureDevOpsConfig
    scrape: ScrapeConfig = field(default_factory=ScrapeConfig)
    request: RequestConfig = field(default_factory=RequestConfig)
    limit: LimitConfig = field(default_factory=LimitConfig)
    filter: FilterConfig = field(default_factory=FilterConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    servicediscovery_refresh: timedelta = timedelta(minutes=30)
    log_level: str = "INFO"
    log_json: bool = False

    def __post_init__(self):
        if self.servicediscovery_refresh <= timedelta(0):
            raise ConfigurationError("SERVICEDISCOVERY_REFRESH must be greater than zero")
        if self.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ConfigurationError(f"LOG_LEVEL is not a valid level: {self.log_level}")


class SecureConfig:
    """
    Centralized secure configuration manager.

    Loads and validates all exporter configuration from environment variables.
    Provides fail-fast behavior to catch configuration issues early.
    """

    def __init__(self, env_file: str | Path | None = None):
        """Initialize configuration (loads .env file)."""
        load_dotenv(env_file)

    # ==============================
    # Raw value helpers
    # ==============================

    @staticmethod
    def _get_int(name: str, default: int) -> int:
        raw = os.getenv(name)
        if raw is None or raw.strip() == "":
            return default
        try:
            return int(raw)
        except ValueError as e:
            raise ConfigurationError(f"{name} must be an integer: {raw}") from e

    @staticmethod
    def _get_float(name: str, default: float) -> float:
        raw = os.getenv(name)
        if raw is None or raw.strip() == "":
            return default
        try:
            return float(raw)
        except ValueError as e:
            raise ConfigurationError(f"{name} must be a number: {raw}") from e

    @staticmethod
    def _get_duration(name: str, default: timedelta | None) -> timedelta | None:
        raw = os.getenv(name)
        if raw is None or raw.strip() == "":
            return default
        try:
            return parse_duration(raw)
        except ValueError as e:
            raise ConfigurationError(f"{name} must be a duration like 30m or 1h30m: {raw}") from e

    @staticmethod
    def _get_list(name: str) -> list[str]:
        return (os.getenv(name) or "").split()

    @staticmethod
    def _get_bool(name: str, default: bool = False) -> bool:
        raw = os.getenv(name)
        if raw is None or raw.strip() == "":
            return default
        return raw.strip().lower() in ("1", "true", "yes", "on")

    # ==============================
    # Sections
    # ==============================

    def get_ado_config(self) -> AzureDevOpsConfig:
        """
        Get validated Azure DevOps configuration.

        Returns:
            AzureDevOpsConfig: Validated configuration

        Raises:
            ConfigurationError: If configuration is missing or invalid
        """
        organization_url = os.getenv("ADO_ORGANIZATION_URL")
        pat = os.getenv("ADO_PAT")

        pat_file = os.getenv("ADO_PAT_FILE")
        if not pat and pat_file:
            try:
                pat = Path(pat_file).read_text(encoding="utf-8").strip()
            except OSError as e:
                raise ConfigurationError(f"ADO_PAT_FILE could not be read: {pat_file}") from e

        return AzureDevOpsConfig(
            organization_url=(organization_url or "").rstrip("/"),
            pat=pat or "",
            api_version=os.getenv("ADO_API_VERSION") or AzureDevOpsConfig.api_version,
        )

    def get_scrape_config(self) -> ScrapeConfig:
        env_names = {
            "projects": "SCRAPE_TIME_PROJECTS",
            "agentpool": "SCRAPE_TIME_AGENTPOOL",
            "latest_build": "SCRAPE_TIME_LATESTBUILD",
            "repository": "SCRAPE_TIME_REPOSITORY",
            "pullrequest": "SCRAPE_TIME_PULLREQUEST",
            "build": "SCRAPE_TIME_BUILD",
            "timeline": "SCRAPE_TIME_TIMELINE",
            "release": "SCRAPE_TIME_RELEASE",
            "deployment": "SCRAPE_TIME_DEPLOYMENT",
            "stats": "SCRAPE_TIME_STATS",
            "resource_usage": "SCRAPE_TIME_RESOURCEUSAGE",
            "query": "SCRAPE_TIME_QUERY",
            "general": "SCRAPE_TIME_GENERAL",
        }
        intervals = {name: self._get_duration(env_name, None) for name, env_name in env_names.items()}

        return ScrapeConfig(
            default=self._get_duration("SCRAPE_TIME", ScrapeConfig.default),
            live=self._get_duration("SCRAPE_TIME_LIVE", ScrapeConfig.live),
            **intervals,
        )

    def get_request_config(self) -> RequestConfig:
        return RequestConfig(
            concurrency=self._get_int("REQUEST_CONCURRENCY", RequestConfig.concurrency),
            retries=self._get_int("REQUEST_RETRIES", RequestConfig.retries),
            timeout=self._get_float("REQUEST_TIMEOUT", RequestConfig.timeout),
        )

    def get_limit_config(self) -> LimitConfig:
        return LimitConfig(
            project=self._get_int("LIMIT_PROJECT", LimitConfig.project),
            builds_per_project=self._get_int("LIMIT_BUILDS_PER_PROJECT", LimitConfig.builds_per_project),
            builds_per_definition=self._get_int("LIMIT_BUILDS_PER_DEFINITION", LimitConfig.builds_per_definition),
            releases_per_project=self._get_int("LIMIT_RELEASES_PER_PROJECT", LimitConfig.releases_per_project),
            releases_per_definition=self._get_int(
                "LIMIT_RELEASES_PER_DEFINITION", LimitConfig.releases_per_definition
            ),
            deployments_per_definition=self._get_int(
                "LIMIT_DEPLOYMENTS_PER_DEFINITION", LimitConfig.deployments_per_definition
            ),
            release_definitions_per_project=self._get_int(
                "LIMIT_RELEASEDEFINITIONS_PER_PROJECT", LimitConfig.release_definitions_per_project
            ),
            build_history_duration=self._get_duration(
                "LIMIT_BUILD_HISTORY_DURATION", LimitConfig.build_history_duration
            ),
            release_history_duration=self._get_duration(
                "LIMIT_RELEASE_HISTORY_DURATION", LimitConfig.release_history_duration
            ),
        )

    def get_filter_config(self) -> FilterConfig:
        agent_pools: list[int] | None = None
        raw_pools = self._get_list("ADO_AGENTPOOL")
        if raw_pools:
            try:
                agent_pools = [int(pool_id) for pool_id in raw_pools]
            except ValueError as e:
                raise ConfigurationError(f"ADO_AGENTPOOL must contain numeric ids: {raw_pools}") from e

        return FilterConfig(
            project_whitelist=self._get_list("ADO_PROJECT_WHITELIST"),
            project_blacklist=self._get_list("ADO_PROJECT_BLACKLIST"),
            agent_pools=agent_pools,
            timeline_states=self._get_list("ADO_TIMELINE_STATES") or ["completed"],
            queries=self._get_list("ADO_QUERIES"),
        )

    def get_server_config(self) -> ServerConfig:
        return ServerConfig(
            host=os.getenv("SERVER_HOST") or ServerConfig.host,
            port=self._get_int("SERVER_PORT", ServerConfig.port),
        )

    def get_exporter_config(self) -> ExporterConfig:
        """
        Get the complete validated exporter configuration.

        Returns:
            ExporterConfig: Validated configuration

        Raises:
            ConfigurationError: If any section is missing or invalid
        """
        return ExporterConfig(
            azure_devops=self.get_ado_config(),
            scrape=self.get_scrape_config(),
            request=self.get_request_config(),
            limit=self.get_limit_config(),
            filter=self.get_filter_config(),
            server=self.get_server_config(),
            servicediscovery_refresh=self._get_duration("SERVICEDISCOVERY_REFRESH", timedelta(minutes=30)),
            log_level=os.getenv("LOG_LEVEL") or "INFO",
            log_json=self._get_bool("LOG_JSON"),
        )


# Convenience function for getting configuration
_config_instance = None


def get_config(env_file: str | Path | None = None) -> SecureConfig:
    """
    Get the global configuration instance (singleton pattern).

    Returns:
        SecureConfig: The configuration manager
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = SecureConfig(env_file)
    return _config_instance


def validate_config_on_startup(env_file: str | Path | None = None) -> ExporterConfig:
    """
    Load and validate the exporter configuration at application startup.

    Call this in main() to fail fast if configuration is invalid.

    Raises:
        ConfigurationError: If any required configuration is missing or invalid

    Example:
        if __name__ == '__main__':
            config = validate_config_on_startup()
    """
    return get_config(env_file).get_exporter_config()
