from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, AsyncIterator

import httpx

from .config import Settings
from .errors import UpstreamAPIError, UpstreamTimeout, upstream_error_message
from .routing import Route

logger = logging.getLogger(__name__)


class UpstreamResponse:
    """An upstream response whose headers have arrived and whose body is unread.

    Owns the client connection; ``aclose`` must be called once the body has
    been consumed or abandoned.
    """

    def __init__(self, response: httpx.Response, client: httpx.AsyncClient) -> None:
        self._response = response
        self._client = client

    @property
    def status_code(self) -> int:
        return self._response.status_code

    async def aiter_chunks(self) -> AsyncIterator[bytes]:
        async for chunk in self._response.aiter_bytes():
            yield chunk

    async def read(self) -> bytes:
        return await self._response.aread()

    async def aclose(self) -> None:
        try:
            await self._response.aclose()
        finally:
            await self._client.aclose()


class UpstreamClient:
    """HTTP client wrapper for the providers' /chat/completions API."""

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "UpstreamClient":
        return cls(settings)

    def _headers(self, api_key: str) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
        }

    def _client(self) -> httpx.AsyncClient:
        # The request budget is enforced around send(); only body reads are
        # bounded here, and only when an idle timeout is configured.
        timeout = httpx.Timeout(None, read=self._settings.stream_idle_timeout)
        return httpx.AsyncClient(timeout=timeout, transport=self._transport)

    async def send(
        self, route: Route, api_key: str, payload: dict[str, Any]
    ) -> UpstreamResponse:
        """POST the payload and wait for response headers.

        Raises ``UpstreamTimeout`` if headers do not arrive within the request
        timeout and ``UpstreamAPIError`` for non-2xx statuses.
        """
        client = self._client()
        request = client.build_request(
            "POST", route.completions_url, headers=self._headers(api_key), json=payload
        )
        try:
            response = await asyncio.wait_for(
                client.send(request, stream=True),
                timeout=self._settings.request_timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            await client.aclose()
            raise UpstreamTimeout(self._settings.request_timeout) from exc
        except BaseException:
            await client.aclose()
            raise

        upstream = UpstreamResponse(response, client)
        if response.is_success:
            return upstream

        try:
            raw = await upstream.read()
        finally:
            await upstream.aclose()
        try:
            body = json.loads(raw)
        except ValueError:
            body = {}
        logger.warning(
            "upstream %s returned %s for model %s",
            route.provider,
            response.status_code,
            route.model,
        )
        raise UpstreamAPIError(upstream_error_message(body), response.status_code)
