"""Video generation round trip: 1–N images + prompt → hosted video URL.

Mode is picked from the image count:
  1 image   → single-image animation
  2+ images → start/end transition (first and last image; middle ones ignored)

The generated video is never downloaded or stored; the provider's URL is
handed back as-is.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from morphreel.config import Settings
from morphreel.services.errors import ProxyError, UpstreamShapeError, ValidationError
from morphreel.services.normalizer import (
    ImagePayload,
    normalize_image,
    validate_credential_format,
    validate_required_fields,
)
from morphreel.services.providers import image_to_video
from morphreel.services.providers.image_to_video import VideoMode
from morphreel.services.retry import RetryPolicy
from morphreel.services.round_trip import ProxyState, RoundTrip
from morphreel.services.upstream import UpstreamCaller, mask_credential

logger = logging.getLogger(__name__)

_ASPECT_RATIO_RE = re.compile(r"^\d+:\d+$")


@dataclass(frozen=True)
class VideoResult:
    url: str
    mode: VideoMode


def select_mode(count: int, max_images: int) -> VideoMode:
    if count < 1:
        raise ValidationError("At least 1 image is required")
    if count > max_images:
        raise ValidationError(f"At most {max_images} images are supported (got {count})")
    return VideoMode.SINGLE if count == 1 else VideoMode.TRANSITION


def _coerce_duration(value: Any, default: int) -> float:
    if value is None:
        return default
    if isinstance(value, bool):
        raise ValidationError("durationSeconds must be a positive number")
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            raise ValidationError("durationSeconds must be a positive number") from None
    if not isinstance(value, (int, float)) or not math.isfinite(value) or value <= 0:
        raise ValidationError("durationSeconds must be a positive number")
    return value


def _coerce_aspect_ratio(value: Any, default: str) -> str:
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    if not isinstance(value, str) or not _ASPECT_RATIO_RE.match(value.strip()):
        raise ValidationError("aspectRatio must look like '16:9'")
    return value.strip()


def _optional_text(value: Any, field: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    return value.strip() or None


class VideoProxy:
    """Stateless video-generation proxy. Safe to share across concurrent requests."""

    def __init__(
        self,
        settings: Settings,
        caller: UpstreamCaller | None = None,
        retry: RetryPolicy | None = None,
    ) -> None:
        self.settings = settings
        self.caller = caller or UpstreamCaller(diagnostics=settings.LOG_PAYLOAD_DIAGNOSTICS)
        self.retry = retry or RetryPolicy(
            max_attempts=settings.VIDEO_MAX_ATTEMPTS,
            backoff_seconds=settings.RETRY_BACKOFF_SECONDS,
        )

    async def generate(
        self,
        images: Any,
        credential: Any,
        *,
        prompt: Any = None,
        negative_prompt: Any = None,
        duration_seconds: Any = None,
        aspect_ratio: Any = None,
    ) -> VideoResult:
        rt = RoundTrip("video", diagnostics=self.settings.LOG_PAYLOAD_DIAGNOSTICS)
        try:
            result = await self._run(
                rt,
                images,
                credential,
                prompt=prompt,
                negative_prompt=negative_prompt,
                duration_seconds=duration_seconds,
                aspect_ratio=aspect_ratio,
            )
        except ProxyError as e:
            rt.advance(ProxyState.FAILED)
            logger.info("[video %s] failed: %s (%d)", rt.request_id, e.kind.value, e.status_code)
            raise
        rt.advance(ProxyState.SUCCEEDED)
        logger.info("[video %s] succeeded, mode=%s", rt.request_id, result.mode.value)
        return result

    async def _run(
        self,
        rt: RoundTrip,
        images: Any,
        credential: Any,
        *,
        prompt: Any,
        negative_prompt: Any,
        duration_seconds: Any,
        aspect_ratio: Any,
    ) -> VideoResult:
        s = self.settings

        rt.advance(ProxyState.VALIDATING)
        required = ["images", "credential"]
        if s.VIDEO_REQUIRE_PROMPT:
            required.append("prompt")
        validate_required_fields(
            {"images": images, "credential": credential, "prompt": prompt}, required,
        )
        if not isinstance(images, Sequence) or isinstance(images, str):
            raise ValidationError("images must be a list")
        mode = select_mode(len(images), s.VIDEO_MAX_IMAGES)
        adapter = image_to_video.build_adapter(s, mode)
        credential = validate_credential_format(credential, adapter.credential_prefix)

        prompt_text = _optional_text(prompt, "prompt") or s.VIDEO_DEFAULT_PROMPT
        negative = _optional_text(negative_prompt, "negativePrompt")
        duration = _coerce_duration(duration_seconds, s.VIDEO_DEFAULT_DURATION)
        ratio = _coerce_aspect_ratio(aspect_ratio, s.VIDEO_DEFAULT_ASPECT_RATIO)

        rt.advance(ProxyState.NORMALIZING)
        normalized: list[ImagePayload] = [
            normalize_image(img, field=f"images[{i}]", allowed_media_types=s.allowed_media_types)
            for i, img in enumerate(images)
        ]
        rt.log(
            "mode=%s images=[%s] duration=%s aspect=%s key=%s",
            mode.value,
            ", ".join(img.describe() for img in normalized),
            duration,
            ratio,
            mask_credential(credential),
        )

        payload = image_to_video.build_payload(
            mode,
            normalized,
            prompt=prompt_text,
            duration=duration,
            aspect_ratio=ratio,
            negative_prompt=negative,
        )

        rt.advance(ProxyState.CALLING)
        url = await self.retry.run(
            lambda: self.caller.call_provider(adapter, payload, credential),
            label=f"video {rt.request_id}",
        )
        if not url.startswith(("http://", "https://")):
            logger.error("[video %s] provider returned a non-URL result", rt.request_id)
            raise UpstreamShapeError()
        return VideoResult(url=url, mode=mode)
