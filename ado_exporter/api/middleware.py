"""
API Middleware - Request tracking

Tags every request with an X-Request-ID and logs the scrape duration at debug
level, so slow /metrics scrapes can be told apart from slow collectors.
"""

import time
import uuid
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ado_exporter.core.logging_config import get_logger

logger = get_logger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Add unique request ID to each request for tracing and debugging.

    Adds X-Request-ID header to both request state and response.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        response.headers["X-Request-ID"] = request_id

        logger.debug(
            f"{request.method} {request.url.path} {response.status_code}",
            extra={
                "extra_fields": {
                    "request_id": request_id,
                    "client_ip": request.client.host if request.client else "unknown",
                    "duration_ms": round(duration_ms, 2),
                }
            },
        )

        return response
