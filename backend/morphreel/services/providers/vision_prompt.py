"""Vision-language provider: two images + instruction → descriptive prompt.

Speaks the messages API shape (one user turn holding a text block and two
base64 image blocks); the answer text is read from ``content[0].text``.
"""

from __future__ import annotations

from typing import Any

from morphreel.config import Settings, split_csv
from morphreel.services.normalizer import ImagePayload
from morphreel.services.upstream import ProviderAdapter


def build_adapter(settings: Settings) -> ProviderAdapter:
    extra_headers: dict[str, str] = {}
    if settings.PROMPT_API_VERSION:
        extra_headers["anthropic-version"] = settings.PROMPT_API_VERSION
    return ProviderAdapter(
        name="prompt",
        endpoint=settings.PROMPT_API_URL,
        auth_style=settings.PROMPT_AUTH_STYLE,
        response_paths=tuple(split_csv(settings.PROMPT_RESPONSE_PATHS)),
        credential_prefix=settings.PROMPT_CREDENTIAL_PREFIX or None,
        timeout=settings.PROMPT_TIMEOUT_SECONDS,
        extra_headers=extra_headers,
    )


def _image_block(image: ImagePayload) -> dict[str, Any]:
    return {
        "type": "image",
        "source": {
            "type": "base64",
            "media_type": image.media_type,
            "data": image.data,
        },
    }


def build_payload(
    image1: ImagePayload,
    image2: ImagePayload,
    *,
    model: str,
    max_tokens: int,
    instruction: str,
) -> dict[str, Any]:
    return {
        "model": model,
        "max_tokens": max_tokens,
        "messages": [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": instruction},
                    _image_block(image1),
                    _image_block(image2),
                ],
            }
        ],
    }
