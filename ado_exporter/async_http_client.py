"""
Shared async HTTP transport for the exporter.

A single httpx.AsyncClient is opened at startup and reused by every collector
runner, so all Azure DevOps calls share one connection pool. TLS verification
is always on and every request carries a timeout.

Usage:
    from ado_exporter.async_http_client import AsyncSecureHTTPClient

    http = AsyncSecureHTTPClient(headers={"Authorization": "Basic ..."}).open()
    response = await http.request("GET", url)
    await http.aclose()
"""

import httpx

from ado_exporter import __version__

USER_AGENT = f"ado-exporter/{__version__}"


class AsyncSecureHTTPClient:
    """
    Long-lived httpx client with enforced SSL verification.

    open() must be called before the first request; aclose() releases the
    pool.
    """

    DEFAULT_TIMEOUT = 30  # seconds
    DEFAULT_MAX_CONNECTIONS = 100
    DEFAULT_MAX_KEEPALIVE = 20

    def __init__(
        self,
        headers: dict[str, str] | None = None,
        max_connections: int = DEFAULT_MAX_CONNECTIONS,
        timeout: float = DEFAULT_TIMEOUT,
        http2: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Args:
            headers: Headers sent with every request (merged under per-call headers)
            max_connections: Pool size; keep-alive connections are capped at DEFAULT_MAX_KEEPALIVE
            timeout: Per-request timeout in seconds
            http2: Negotiate HTTP/2 when talking to the real service
            transport: Optional httpx transport (httpx.MockTransport in tests)
        """
        self.headers = {"User-Agent": USER_AGENT, **(headers or {})}
        self.limits = httpx.Limits(
            max_connections=max_connections,
            max_keepalive_connections=min(max_connections, self.DEFAULT_MAX_KEEPALIVE),
        )
        self.timeout = timeout
        self.http2 = http2
        self.transport = transport
        self.client: httpx.AsyncClient | None = None

    def open(self) -> "AsyncSecureHTTPClient":
        """Create the underlying httpx client (idempotent)."""
        if self.client is None:
            self.client = httpx.AsyncClient(
                headers=self.headers,
                limits=self.limits,
                timeout=httpx.Timeout(self.timeout),
                verify=True,  # CRITICAL: Force SSL verification
                http2=self.http2 and self.transport is None,
                follow_redirects=True,
                transport=self.transport,
            )
        return self

    async def aclose(self) -> None:
        if self.client:
            await self.client.aclose()
            self.client = None

    async def request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """
        Send one HTTP request through the shared pool.

        Raises:
            RuntimeError: If open() has not been called
            httpx.RequestError: On transport failures (callers decide on retries)
        """
        if self.client is None:
            raise RuntimeError("HTTP client is not open; call open() before issuing requests")
        return await self.client.request(method.upper(), url, **kwargs)
