"""Caller-side bounded retry for transient upstream failures."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from morphreel.services.errors import ErrorKind, ProxyError

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSIENT_KINDS = frozenset({ErrorKind.UNREACHABLE, ErrorKind.TIMEOUT})


@dataclass(frozen=True)
class RetryPolicy:
    """Retry only the error kinds in ``retry_on``, with a fixed backoff.

    ``max_attempts=1`` means a single try. Validation and auth failures are
    never retried regardless of ``retry_on``.
    """

    max_attempts: int = 1
    backoff_seconds: float = 3.0
    retry_on: frozenset[ErrorKind] = TRANSIENT_KINDS
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    def should_retry(self, error: ProxyError, attempt: int) -> bool:
        if attempt >= self.max_attempts:
            return False
        if error.kind in (ErrorKind.VALIDATION, ErrorKind.AUTH):
            return False
        return error.kind in self.retry_on

    async def run(self, fn: Callable[[], Awaitable[T]], *, label: str = "upstream") -> T:
        attempt = 1
        while True:
            try:
                return await fn()
            except ProxyError as e:
                if not self.should_retry(e, attempt):
                    raise
                logger.warning(
                    "%s attempt %d/%d failed (%s), retrying in %ss",
                    label, attempt, self.max_attempts, e.kind.value, self.backoff_seconds,
                )
                await self.sleep(self.backoff_seconds)
                attempt += 1
