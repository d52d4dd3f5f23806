"""FastAPI dependencies shared by the proxy routes."""

from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
from fastapi import Depends
from fastapi.responses import Response

from morphreel.config import Settings, get_settings
from morphreel.services.prompt_proxy import PromptProxy
from morphreel.services.upstream import UpstreamCaller
from morphreel.services.video_proxy import VideoProxy

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": (
        "X-CSRF-Token, X-Requested-With, Accept, Accept-Version, Content-Length, "
        "Content-MD5, Content-Type, Date, X-Api-Version, Authorization"
    ),
}


def preflight_response() -> Response:
    """Bare OPTIONS answer for clients that skip the CORS preflight headers."""
    return Response(status_code=200, headers=PREFLIGHT_HEADERS)


async def get_http_client() -> AsyncIterator[httpx.AsyncClient]:
    """One client per request; closed when the response is done."""
    async with httpx.AsyncClient() as client:
        yield client


def get_upstream_caller(
    client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> UpstreamCaller:
    return UpstreamCaller(client, diagnostics=settings.LOG_PAYLOAD_DIAGNOSTICS)


def get_prompt_proxy(
    settings: Settings = Depends(get_settings),
    caller: UpstreamCaller = Depends(get_upstream_caller),
) -> PromptProxy:
    return PromptProxy(settings, caller)


def get_video_proxy(
    settings: Settings = Depends(get_settings),
    caller: UpstreamCaller = Depends(get_upstream_caller),
) -> VideoProxy:
    return VideoProxy(settings, caller)
