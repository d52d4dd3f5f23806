"""Closed error taxonomy shared by the prompt and video proxies.

Every failure a proxy can produce is one of these. The HTTP layer renders
all of them the same way: ``{"error": message}`` with ``status_code``.
"""

from __future__ import annotations

import enum


class ErrorKind(str, enum.Enum):
    """Failure classification."""

    VALIDATION = "validation"
    AUTH = "auth"
    UNREACHABLE = "unreachable"
    TIMEOUT = "timeout"
    UPSTREAM_HTTP = "upstream_http"
    UPSTREAM_SHAPE = "upstream_shape"


class ProxyError(Exception):
    """Structured proxy error with kind and HTTP status code."""

    kind: ErrorKind = ErrorKind.UPSTREAM_HTTP
    default_status: int = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code or self.default_status

    @property
    def transient(self) -> bool:
        return self.kind in (ErrorKind.UNREACHABLE, ErrorKind.TIMEOUT)

    def to_dict(self) -> dict[str, str]:
        return {"error": self.message}


class ValidationError(ProxyError):
    """Caller input is missing or malformed. Never reaches the network."""

    kind = ErrorKind.VALIDATION
    default_status = 400


class AuthError(ProxyError):
    kind = ErrorKind.AUTH
    default_status = 401

    def __init__(self, message: str = "invalid credential", status_code: int | None = None):
        super().__init__(message, status_code)


class UnreachableError(ProxyError):
    kind = ErrorKind.UNREACHABLE
    default_status = 503


class UpstreamTimeoutError(ProxyError):
    kind = ErrorKind.TIMEOUT
    default_status = 504


class UpstreamHttpError(ProxyError):
    """Provider answered with a non-2xx status; the status is passed through."""

    kind = ErrorKind.UPSTREAM_HTTP
    default_status = 502


class UpstreamShapeError(ProxyError):
    kind = ErrorKind.UPSTREAM_SHAPE
    default_status = 500

    def __init__(
        self,
        message: str = "malformed response from provider",
        status_code: int | None = None,
    ):
        super().__init__(message, status_code)
