"""
Tests for the shared async HTTP transport

Covers the open/request/aclose lifecycle and the default headers.
"""

import httpx
import pytest

from ado_exporter.async_http_client import USER_AGENT, AsyncSecureHTTPClient


def echo_transport(seen: list[httpx.Request]) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ok": True})

    return httpx.MockTransport(handler)


class TestAsyncSecureHTTPClient:
    """Test the client lifecycle"""

    @pytest.mark.asyncio
    async def test_request_before_open_raises_error(self):
        http = AsyncSecureHTTPClient()

        with pytest.raises(RuntimeError, match="not open"):
            await http.request("GET", "https://dev.azure.com/test-org/_apis/projects")

    @pytest.mark.asyncio
    async def test_default_headers_are_sent(self):
        seen: list[httpx.Request] = []
        http = AsyncSecureHTTPClient(headers={"Authorization": "Basic abc"}, transport=echo_transport(seen)).open()

        response = await http.request("get", "https://dev.azure.com/test-org/_apis/projects")
        await http.aclose()

        assert response.status_code == 200
        assert seen[0].method == "GET"
        assert seen[0].headers["Authorization"] == "Basic abc"
        assert seen[0].headers["User-Agent"] == USER_AGENT

    @pytest.mark.asyncio
    async def test_open_is_idempotent_and_aclose_releases_client(self):
        http = AsyncSecureHTTPClient(transport=echo_transport([]))

        client = http.open().client
        assert http.open().client is client

        await http.aclose()
        assert http.client is None

    def test_keepalive_never_exceeds_pool_size(self):
        http = AsyncSecureHTTPClient(max_connections=5)

        assert http.limits.max_keepalive_connections == 5
