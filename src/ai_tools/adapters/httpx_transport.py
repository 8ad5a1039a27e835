"""adapters.httpx_transport

Concrete transport that bridges :class:`ai_tools.core.abc.AbstractTransport`
with an **httpx** `AsyncClient`.

One attempt per call: no retries, no caching. The client is created lazily and
reused for connection pooling until `aclose()`.
"""

from __future__ import annotations

import httpx

from ai_tools.core.abc import AbstractTransport, TransportResponse
from ai_tools.core.exceptions import TransportError
from ai_tools.core.request_builder import JSON_CONTENT_TYPE


class HttpxTransport(AbstractTransport):
    """Transport backed by `httpx.AsyncClient`."""

    def __init__(
        self,
        *,
        timeout_sec: float = 120.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._timeout = httpx.Timeout(timeout_sec)
        self._client: httpx.AsyncClient | None = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, follow_redirects=True)
        return self._client

    async def _send(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: bytes | None,
    ) -> TransportResponse:
        if body is not None:
            headers.setdefault('Content-Type', JSON_CONTENT_TYPE)
        try:
            response = await self._get_client().request(method, url, headers=headers, content=body)
        except httpx.TimeoutException as exc:
            raise TransportError(f'Request timed out: {exc}') from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:  # InvalidURL is not an HTTPError
            raise TransportError(str(exc) or exc.__class__.__name__) from exc
        return TransportResponse(status_code=response.status_code, body=response.content)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
