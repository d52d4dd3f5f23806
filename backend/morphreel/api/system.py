"""System health endpoint — service status plus upstream DNS reachability."""

from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone
from typing import Any
from urllib.parse import urlparse

from fastapi import APIRouter, Depends

from morphreel.api.deps import preflight_response
from morphreel.config import Settings, get_settings

router = APIRouter()


def _upstream_hosts(settings: Settings) -> list[tuple[str, str]]:
    """(name, host) for every configured upstream, deduplicated by host."""
    seen: set[str] = set()
    hosts: list[tuple[str, str]] = []
    for name, url in (
        ("prompt", settings.PROMPT_API_URL),
        ("video_transition", settings.VIDEO_TRANSITION_API_URL),
        ("video_single", settings.VIDEO_SINGLE_API_URL),
    ):
        host = urlparse(url).hostname
        if host and host not in seen:
            seen.add(host)
            hosts.append((name, host))
    return hosts


async def check_dns(name: str, host: str, timeout: float) -> dict[str, Any]:
    """Best-effort DNS lookup of an upstream host (no TCP connect)."""
    loop = asyncio.get_running_loop()
    t0 = time.time()
    try:
        infos = await asyncio.wait_for(loop.getaddrinfo(host, None), timeout=timeout)
        latency_ms = round((time.time() - t0) * 1000, 1)
        return {
            "name": name,
            "host": host,
            "status": "ok",
            "address": infos[0][4][0] if infos else None,
            "latency_ms": latency_ms,
        }
    except asyncio.TimeoutError:
        return {"name": name, "host": host, "status": "error", "error": "DNS lookup timed out"}
    except OSError as e:
        return {"name": name, "host": host, "status": "error", "error": str(e)}


async def health_report(settings: Settings) -> dict[str, Any]:
    upstreams: list[dict[str, Any]] = []
    if settings.HEALTH_DNS_CHECK:
        upstreams = list(await asyncio.gather(*(
            check_dns(name, host, settings.HEALTH_DNS_TIMEOUT_SECONDS)
            for name, host in _upstream_hosts(settings)
        )))
    all_ok = all(u["status"] == "ok" for u in upstreams)
    return {
        "status": "ok" if all_ok else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "upstreams": upstreams,
    }


@router.options("/health", include_in_schema=False)
async def health_preflight():
    return preflight_response()


@router.get("/health")
async def health(settings: Settings = Depends(get_settings)):
    """Service status and upstream DNS reachability, for operators."""
    return await health_report(settings)
