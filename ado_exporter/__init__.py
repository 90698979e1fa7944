"""
Azure DevOps Prometheus exporter

Polls the Azure DevOps REST API on per-collector intervals and exposes
projects, repositories, pull requests, builds, releases, deployments,
agent pools, resource usage and saved query results as Prometheus metrics.
"""

__version__ = "1.0.0"
