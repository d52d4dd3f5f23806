"""Prompt generation round trip: two images → descriptive transition prompt.

IDLE → VALIDATING → NORMALIZING → CALLING → SUCCEEDED | FAILED
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from morphreel.config import Settings
from morphreel.services.errors import ProxyError
from morphreel.services.normalizer import (
    normalize_image,
    validate_credential_format,
    validate_required_fields,
)
from morphreel.services.providers import vision_prompt
from morphreel.services.retry import RetryPolicy
from morphreel.services.round_trip import ProxyState, RoundTrip
from morphreel.services.upstream import UpstreamCaller, mask_credential

logger = logging.getLogger(__name__)

_REQUIRED = ("image1", "image2", "credential")


@dataclass(frozen=True)
class PromptResult:
    text: str


class PromptProxy:
    """Stateless prompt-generation proxy. Safe to share across concurrent requests."""

    def __init__(
        self,
        settings: Settings,
        caller: UpstreamCaller | None = None,
        retry: RetryPolicy | None = None,
    ) -> None:
        self.settings = settings
        self.caller = caller or UpstreamCaller(diagnostics=settings.LOG_PAYLOAD_DIAGNOSTICS)
        self.retry = retry or RetryPolicy(
            max_attempts=settings.PROMPT_MAX_ATTEMPTS,
            backoff_seconds=settings.RETRY_BACKOFF_SECONDS,
        )
        self.adapter = vision_prompt.build_adapter(settings)

    async def generate(self, image1: Any, image2: Any, credential: Any) -> PromptResult:
        rt = RoundTrip("prompt", diagnostics=self.settings.LOG_PAYLOAD_DIAGNOSTICS)
        try:
            result = await self._run(rt, image1, image2, credential)
        except ProxyError as e:
            rt.advance(ProxyState.FAILED)
            logger.info("[prompt %s] failed: %s (%d)", rt.request_id, e.kind.value, e.status_code)
            raise
        rt.advance(ProxyState.SUCCEEDED)
        logger.info("[prompt %s] succeeded, length=%d", rt.request_id, len(result.text))
        return result

    async def _run(self, rt: RoundTrip, image1: Any, image2: Any, credential: Any) -> PromptResult:
        rt.advance(ProxyState.VALIDATING)
        validate_required_fields(
            {"image1": image1, "image2": image2, "credential": credential}, _REQUIRED,
        )
        credential = validate_credential_format(credential, self.adapter.credential_prefix)

        rt.advance(ProxyState.NORMALIZING)
        allowed = self.settings.allowed_media_types
        first = normalize_image(image1, field="image1", allowed_media_types=allowed)
        second = normalize_image(image2, field="image2", allowed_media_types=allowed)
        rt.log(
            "image1=%s image2=%s key=%s",
            first.describe(), second.describe(), mask_credential(credential),
        )

        payload = vision_prompt.build_payload(
            first,
            second,
            model=self.settings.PROMPT_MODEL,
            max_tokens=self.settings.PROMPT_MAX_TOKENS,
            instruction=self.settings.PROMPT_INSTRUCTION,
        )

        rt.advance(ProxyState.CALLING)
        text = await self.retry.run(
            lambda: self.caller.call_provider(self.adapter, payload, credential),
            label=f"prompt {rt.request_id}",
        )
        return PromptResult(text=text)
