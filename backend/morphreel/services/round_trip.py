"""Per-request round-trip state shared by the proxies.

A ``RoundTrip`` is created for every proxied request and thrown away with
it. It carries a short request id for log correlation and the current
``ProxyState``; proxies themselves keep no per-request state.
"""

from __future__ import annotations

import enum
import logging
import uuid

logger = logging.getLogger(__name__)


class ProxyState(str, enum.Enum):
    """Round-trip lifecycle. SUCCEEDED and FAILED are terminal."""

    IDLE = "IDLE"
    VALIDATING = "VALIDATING"
    NORMALIZING = "NORMALIZING"
    CALLING = "CALLING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


_TERMINAL = (ProxyState.SUCCEEDED, ProxyState.FAILED)


class RoundTrip:
    def __init__(self, label: str, *, diagnostics: bool = False) -> None:
        self.label = label
        self.request_id = uuid.uuid4().hex[:8]
        self.state = ProxyState.IDLE
        self.diagnostics = diagnostics

    def advance(self, state: ProxyState) -> None:
        if self.state in _TERMINAL:
            raise RuntimeError(f"{self.label} round trip already {self.state.value}")
        if self.diagnostics:
            logger.debug(
                "[%s %s] %s → %s", self.label, self.request_id, self.state.value, state.value,
            )
        self.state = state

    def log(self, msg: str, *args: object) -> None:
        """Diagnostic line tagged with the request id; dropped unless diagnostics are on."""
        if self.diagnostics:
            logger.debug("[%s %s] " + msg, self.label, self.request_id, *args)
