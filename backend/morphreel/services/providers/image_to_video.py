"""Image-to-video provider.

Supports:
- single-image animation (``image_url``)
- start/end transition (``start_image_url`` + ``end_image_url``)

Images are sent as data-URLs; the result URL is read from ``video.url``
with ``video_url`` / ``url`` as fallbacks for older response formats.
"""

from __future__ import annotations

import enum
from typing import Any

from morphreel.config import Settings, split_csv
from morphreel.services.normalizer import ImagePayload
from morphreel.services.upstream import ProviderAdapter


class VideoMode(str, enum.Enum):
    SINGLE = "single"
    TRANSITION = "transition"


def build_adapter(settings: Settings, mode: VideoMode) -> ProviderAdapter:
    endpoint = (
        settings.VIDEO_TRANSITION_API_URL
        if mode is VideoMode.TRANSITION
        else settings.VIDEO_SINGLE_API_URL
    )
    return ProviderAdapter(
        name=f"video:{mode.value}",
        endpoint=endpoint,
        auth_style=settings.VIDEO_AUTH_STYLE,
        response_paths=tuple(split_csv(settings.VIDEO_RESPONSE_PATHS)),
        credential_prefix=settings.VIDEO_CREDENTIAL_PREFIX or None,
        timeout=settings.VIDEO_TIMEOUT_SECONDS,
    )


def build_payload(
    mode: VideoMode,
    images: list[ImagePayload],
    *,
    prompt: str,
    duration: float,
    aspect_ratio: str,
    negative_prompt: str | None = None,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "prompt": prompt,
        "duration": int(duration) if float(duration).is_integer() else duration,
        "aspect_ratio": aspect_ratio,
    }
    if negative_prompt:
        body["negative_prompt"] = negative_prompt

    if mode is VideoMode.TRANSITION:
        # First image opens the clip, last image closes it
        body["start_image_url"] = images[0].to_data_url()
        body["end_image_url"] = images[-1].to_data_url()
    else:
        body["image_url"] = images[0].to_data_url()
    return body
