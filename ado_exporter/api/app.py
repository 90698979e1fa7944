"""
FastAPI Application - Prometheus metrics endpoint

Serves the registry of one ExporterContext together with liveness and
readiness probes.

Endpoints:
    GET /metrics  Prometheus text exposition format
    GET /healthz  Liveness probe, always "Ok"
    GET /readyz   Readiness probe, always "Ok"

Usage:
    app = create_app(context)
    await uvicorn.Server(uvicorn.Config(app, host="0.0.0.0", port=8080)).serve()
"""

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from ado_exporter import __version__
from ado_exporter.api.middleware import RequestIDMiddleware
from ado_exporter.core.context import ExporterContext
from ado_exporter.core.logging_config import get_logger

logger = get_logger(__name__)


def create_app(context: ExporterContext) -> FastAPI:
    """Create the FastAPI application serving the metrics of ``context``."""

    app = FastAPI(
        title="Azure DevOps Exporter",
        description="Prometheus exporter for Azure DevOps projects, builds, releases and agent pools",
        version=__version__,
        docs_url=None,
        redoc_url=None,
    )
    app.add_middleware(RequestIDMiddleware)

    # Handlers run on the collector event loop and never await while
    # rendering, so a scrape sees either the old or the new generation.
    @app.get("/metrics", tags=["Metrics"])
    async def metrics() -> Response:
        return Response(content=generate_latest(context.registry), media_type=CONTENT_TYPE_LATEST)

    @app.get("/healthz", tags=["Health"], response_class=PlainTextResponse)
    async def healthz() -> str:
        return "Ok"

    @app.get("/readyz", tags=["Health"], response_class=PlainTextResponse)
    async def readyz() -> str:
        return "Ok"

    return app
