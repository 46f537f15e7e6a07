from __future__ import annotations

import json
import logging
from typing import Any, AsyncGenerator

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse
from starlette.routing import Route

from .config import EnvSecretProvider, SecretProvider, Settings, get_settings
from .errors import (
    ConfigurationError,
    ProxyError,
    UpstreamTimeout,
    error_envelope,
)
from .models import ChatCompletionRequest
from .routing import resolve_route
from .sse import format_sse
from .upstream import UpstreamClient, UpstreamResponse

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": (
        "Content-Type, Authorization, X-API-Key, User-Agent, X-Janitor-Client"
    ),
    "Access-Control-Max-Age": "86400",
}

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}

STREAM_INTERRUPTED = format_sse(
    error_envelope("Stream interrupted", "stream_error")
).encode()


def _json(
    content: Any, status_code: int, headers: dict[str, str] | None = None
) -> JSONResponse:
    return JSONResponse(
        content, status_code=status_code, headers={**CORS_HEADERS, **(headers or {})}
    )


def _client_kind(request: Request) -> str:
    user_agent = request.headers.get("user-agent", "")
    janitor_client = request.headers.get("x-janitor-client", "")
    if "Mobile" in user_agent or "mobile" in janitor_client.lower():
        return "mobile"
    return "web"


async def _parse_body(request: Request) -> ChatCompletionRequest:
    try:
        body = json.loads(await request.body())
    except ValueError:
        body = None
    return ChatCompletionRequest.from_body(body)


async def _relay_stream(upstream: UpstreamResponse) -> AsyncGenerator[bytes, None]:
    try:
        async for chunk in upstream.aiter_chunks():
            yield chunk
    except Exception:
        logger.exception("upstream stream interrupted")
        yield STREAM_INTERRUPTED
    finally:
        await upstream.aclose()


async def _forward(
    request: Request,
    settings: Settings,
    upstream: UpstreamClient,
    secrets: SecretProvider,
) -> Response:
    req = await _parse_body(request)
    requested = req.model if isinstance(req.model, str) and req.model else None
    requested = requested or settings.default_model
    route = resolve_route(requested, settings)
    logger.info(
        "routing %s -> %s/%s (client=%s, stream=%s)",
        requested,
        route.provider,
        route.model,
        _client_kind(request),
        req.streaming,
    )

    api_key = secrets.get(route.secret_name)
    if not api_key:
        raise ConfigurationError(f"{route.secret_name} not configured")

    payload = req.to_payload(route.model, route.extra_body)
    response = await upstream.send(route, api_key, payload)

    if req.streaming:
        return StreamingResponse(
            _relay_stream(response),
            media_type="text/event-stream",
            headers={**STREAM_HEADERS, **CORS_HEADERS},
        )

    try:
        body = await response.read()
    except httpx.TimeoutException as exc:
        timeout = settings.stream_idle_timeout or settings.request_timeout
        raise UpstreamTimeout(timeout) from exc
    finally:
        await response.aclose()
    return Response(
        content=body,
        status_code=200,
        media_type="application/json",
        headers=CORS_HEADERS,
    )


def create_app(
    upstream_client: UpstreamClient | None = None,
    secrets: SecretProvider | None = None,
) -> FastAPI:
    settings = get_settings()
    upstream = upstream_client or UpstreamClient.from_settings(settings)
    secret_provider = secrets or EnvSecretProvider()
    app = FastAPI()

    async def proxy(request: Request) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=204, headers=CORS_HEADERS)
        if request.method != "POST":
            return _json(
                {"error": "Method not allowed"}, 405, {"Allow": "POST, OPTIONS"}
            )

        try:
            return await _forward(request, settings, upstream, secret_provider)
        except ProxyError as exc:
            return _json(exc.envelope(), exc.status_code)
        except Exception as exc:
            logger.exception("proxy error")
            message = str(exc) or "Internal server error"
            return _json(error_envelope(message, "internal_error"), 500)

    # No method list: every verb must reach the gating in proxy().
    app.router.routes.append(Route("/{path:path}", proxy, include_in_schema=False))
    return app
