"""
HTTP surface of the exporter

Serves the Prometheus metrics endpoint and health probes.
"""

from .app import create_app

__all__ = ["create_app"]
