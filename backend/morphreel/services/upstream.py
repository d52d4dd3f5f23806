"""Single outbound call to an upstream AI provider, with failure classification.

All provider traffic goes through ``UpstreamCaller.call()``. It performs
exactly one POST, enforces a hard deadline, pulls the expected success
field out of the response and turns every failure into a ``ProxyError``.
Retries are the caller's business (see ``services/retry.py``).
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlparse

import httpx

from morphreel.services.errors import (
    AuthError,
    UnreachableError,
    UpstreamHttpError,
    UpstreamShapeError,
    UpstreamTimeoutError,
)

logger = logging.getLogger(__name__)

AUTH_STYLES = ("bearer", "key", "x-api-key")

_MAX_ERROR_MESSAGE = 500


def mask_credential(credential: str) -> str:
    """Mask a credential for safe logging: show first 4 and last 4 chars."""
    if len(credential) <= 12:
        return "***"
    return f"{credential[:4]}...{credential[-4:]}"


@dataclass(frozen=True)
class ProviderAdapter:
    """How to talk to one upstream: where, how to authenticate, what to read back."""

    name: str
    endpoint: str
    auth_style: str = "bearer"
    response_paths: tuple[str, ...] = ("url",)
    credential_prefix: str | None = None
    timeout: float = 30.0
    extra_headers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.auth_style not in AUTH_STYLES:
            raise ValueError(
                f"Unknown auth style {self.auth_style!r} for {self.name} "
                f"(expected one of {', '.join(AUTH_STYLES)})"
            )
        if not self.response_paths:
            raise ValueError(f"Provider {self.name} needs at least one response path")

    @property
    def host(self) -> str:
        return urlparse(self.endpoint).hostname or ""

    def build_headers(self, credential: str) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.auth_style == "bearer":
            headers["Authorization"] = f"Bearer {credential}"
        elif self.auth_style == "key":
            headers["Authorization"] = f"Key {credential}"
        else:
            headers["x-api-key"] = credential
        headers.update(self.extra_headers)
        return headers


# ---------------------------------------------------------------------------
# Response inspection
# ---------------------------------------------------------------------------

def resolve_path(body: Any, path: str) -> Any:
    """Walk a dotted path such as ``content.0.text`` through dicts and lists."""
    current = body
    for part in path.split("."):
        if isinstance(current, Mapping):
            current = current.get(part)
        elif isinstance(current, list) and part.isdigit():
            index = int(part)
            current = current[index] if index < len(current) else None
        else:
            return None
        if current is None:
            return None
    return current


def extract_field(body: Any, paths: Sequence[str]) -> str:
    """Return the first non-empty string found at any of ``paths``."""
    for path in paths:
        value = resolve_path(body, path)
        if isinstance(value, str) and value.strip():
            return value
    raise UpstreamShapeError()


def extract_error_message(body: Any, status_code: int) -> str:
    """Best-effort error text from a provider error body.

    Tried in order: plain string body, ``{error: str}``,
    ``{error: {message}}``, ``{message}``, ``{detail}``.
    """
    message: Any = None
    if isinstance(body, str):
        message = body
    elif isinstance(body, Mapping):
        error = body.get("error")
        if isinstance(error, str):
            message = error
        elif isinstance(error, Mapping) and isinstance(error.get("message"), str):
            message = error["message"]
        elif isinstance(body.get("message"), str):
            message = body["message"]
        elif isinstance(body.get("detail"), str):
            message = body["detail"]
        elif isinstance(body.get("detail"), list) and body["detail"]:
            first = body["detail"][0]
            if isinstance(first, Mapping) and isinstance(first.get("msg"), str):
                message = first["msg"]

    if isinstance(message, str) and message.strip():
        return message.strip()[:_MAX_ERROR_MESSAGE]
    return f"provider error (status {status_code})"


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


# ---------------------------------------------------------------------------
# Caller
# ---------------------------------------------------------------------------

class UpstreamCaller:
    """Performs one outbound POST per ``call()``.

    When no ``http_client`` is given, a client is opened and closed around
    each call so nothing is shared between requests.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        *,
        diagnostics: bool = False,
    ) -> None:
        self.http_client = http_client
        self.diagnostics = diagnostics

    async def call(
        self,
        endpoint: str,
        payload: Mapping[str, Any],
        headers: Mapping[str, str],
        timeout: float,
        *,
        expect: Sequence[str],
    ) -> str:
        """POST ``payload`` to ``endpoint`` and return the field at ``expect``.

        Raises:
            UpstreamTimeoutError: deadline ``timeout`` (seconds) exceeded.
            UnreachableError: DNS, connect or other transport failure.
            AuthError: provider answered 401.
            UpstreamHttpError: any other non-2xx answer.
            UpstreamShapeError: 2xx answer without the expected field.
        """
        host = urlparse(endpoint).hostname or endpoint
        client = self.http_client or httpx.AsyncClient(timeout=timeout)
        own_client = self.http_client is None

        if self.diagnostics:
            logger.debug(
                "POST %s timeout=%ss payload_keys=%s",
                host, timeout, sorted(payload.keys()),
            )

        t0 = time.monotonic()
        try:
            # wait_for cancels the request even if the transport ignores its own timeout
            response = await asyncio.wait_for(
                client.post(endpoint, json=dict(payload), headers=dict(headers), timeout=timeout),
                timeout=timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            logger.warning("Upstream %s timed out after %ss", host, timeout)
            raise UpstreamTimeoutError(
                f"Connection to provider timed out after {timeout:g}s. Please try again later."
            ) from exc
        except httpx.ConnectError as exc:
            logger.warning("Upstream %s unreachable: %s", host, exc)
            raise UnreachableError(
                f"Cannot connect to provider at {host}. Please try again later."
            ) from exc
        except httpx.TransportError as exc:
            logger.warning("Upstream %s transport failure: %s", host, exc)
            raise UnreachableError("No response received from provider") from exc
        finally:
            if own_client:
                await client.aclose()

        latency_ms = round((time.monotonic() - t0) * 1000)
        logger.info("Upstream %s answered %d in %dms", host, response.status_code, latency_ms)

        if response.status_code == 401:
            raise AuthError()

        if not response.is_success:
            body = _response_body(response)
            message = extract_error_message(body, response.status_code)
            status = response.status_code if response.status_code >= 400 else 502
            logger.warning("Upstream %s error %d: %s", host, response.status_code, message)
            raise UpstreamHttpError(message, status_code=status)

        try:
            body = response.json()
        except ValueError:
            logger.error("Upstream %s returned non-JSON success body", host)
            raise UpstreamShapeError() from None

        try:
            return extract_field(body, expect)
        except UpstreamShapeError:
            shape = sorted(body.keys()) if isinstance(body, Mapping) else type(body).__name__
            logger.error("Upstream %s response missing %s (got %s)", host, list(expect), shape)
            raise

    async def call_provider(
        self,
        adapter: ProviderAdapter,
        payload: Mapping[str, Any],
        credential: str,
    ) -> str:
        """``call()`` with endpoint, headers, timeout and paths taken from ``adapter``."""
        logger.info(
            "[%s] calling %s key=%s timeout=%ss",
            adapter.name, adapter.host, mask_credential(credential), adapter.timeout,
        )
        return await self.call(
            adapter.endpoint,
            payload,
            adapter.build_headers(credential),
            adapter.timeout,
            expect=adapter.response_paths,
        )
