"""
API Middleware Tests

Tests request ID propagation.
"""

from fastapi import FastAPI
from fastapi.testclient import TestClient

from ado_exporter.api.middleware import RequestIDMiddleware


def make_app():
    app = FastAPI()
    app.add_middleware(RequestIDMiddleware)

    @app.get("/ping")
    async def ping():
        return {"ok": True}

    return app


class TestRequestIDMiddleware:
    """Test X-Request-ID handling"""

    def test_generates_request_id(self):
        response = TestClient(make_app()).get("/ping")

        assert response.status_code == 200
        assert len(response.headers["X-Request-ID"]) == 36

    def test_keeps_incoming_request_id(self):
        response = TestClient(make_app()).get("/ping", headers={"X-Request-ID": "scrape-42"})

        assert response.headers["X-Request-ID"] == "scrape-42"

    def test_unique_ids(self):
        client = TestClient(make_app())

        first = client.get("/ping").headers["X-Request-ID"]
        second = client.get("/ping").headers["X-Request-ID"]

        assert first != second
