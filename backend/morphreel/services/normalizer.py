"""Request validation and image normalization.

Runs before any network call. Everything here is a pure transform that
either returns canonical values or raises ``ValidationError``.
"""

from __future__ import annotations

import base64
import binascii
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from morphreel.services.errors import ValidationError

DEFAULT_MEDIA_TYPE = "image/jpeg"
DEFAULT_ALLOWED_MEDIA_TYPES = ("image/jpeg", "image/png", "image/jpg")

# Browsers label JPEGs both ways; only the canonical name goes upstream.
_MEDIA_TYPE_ALIASES = {"image/jpg": "image/jpeg"}

_DATA_URL_RE = re.compile(
    r"^data:(?P<mime>[^;,]*)(?P<params>(?:;[^;,]*)*),(?P<payload>.*)$",
    re.DOTALL,
)


@dataclass(frozen=True)
class ImagePayload:
    """Canonical image: raw base64 (no data-URL prefix) plus its media type."""

    data: str
    media_type: str = DEFAULT_MEDIA_TYPE

    def to_data_url(self) -> str:
        return f"data:{self.media_type};base64,{self.data}"

    def describe(self) -> str:
        """Log-safe summary: media type and length, never the bytes."""
        return f"{self.media_type} len={len(self.data)}"


def canonical_media_type(media_type: str) -> str:
    media_type = media_type.strip().lower()
    return _MEDIA_TYPE_ALIASES.get(media_type, media_type)


def _check_media_type(media_type: str, field: str, allowed: Iterable[str]) -> str:
    allowed_set = {canonical_media_type(m) for m in allowed}
    canonical = canonical_media_type(media_type)
    if canonical not in allowed_set:
        raise ValidationError(
            f"Invalid image data for {field}: unsupported media type '{media_type}'"
        )
    return canonical


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, list, tuple, dict)) and len(value) == 0:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def validate_required_fields(fields: Mapping[str, Any], required: Iterable[str]) -> None:
    """Raise ``ValidationError`` naming the first missing field, in ``required`` order."""
    for name in required:
        if _is_missing(fields.get(name)):
            raise ValidationError(f"Missing required parameter: {name}")


def validate_credential_format(credential: Any, prefix: str | None = None) -> str:
    """Check a caller credential against an optional provider prefix rule.

    Returns the stripped credential.
    """
    if not isinstance(credential, str) or not credential.strip():
        raise ValidationError("Missing required parameter: credential")
    credential = credential.strip()
    if prefix and not credential.startswith(prefix):
        raise ValidationError("Invalid credential format")
    return credential


def normalize_image(
    value: Any,
    *,
    field: str = "image",
    allowed_media_types: Iterable[str] = DEFAULT_ALLOWED_MEDIA_TYPES,
    default_media_type: str = DEFAULT_MEDIA_TYPE,
) -> ImagePayload:
    """Convert a caller-supplied image into an ``ImagePayload``.

    Accepts a bare base64 string, a ``data:<mime>;base64,<payload>`` URL,
    or a mapping ``{"data": ..., "type": ...}`` holding either of those.
    A media type declared by the data-URL wins over the mapping's ``type``.
    """
    allowed = tuple(allowed_media_types)
    declared: str | None = None

    if value is None:
        raise ValidationError(f"Missing image data for {field}")
    if isinstance(value, Mapping):
        declared = value.get("type") or value.get("media_type") or value.get("mediaType")
        if declared is not None and not isinstance(declared, str):
            raise ValidationError(f"Invalid image data for {field}: media type must be a string")
        data = value.get("data")
    elif isinstance(value, str):
        data = value
    else:
        raise ValidationError(f"Invalid image data for {field}: expected a string or object")

    if data is None or (isinstance(data, str) and not data.strip()):
        raise ValidationError(f"Missing image data for {field}")
    if not isinstance(data, str):
        raise ValidationError(f"Invalid image data for {field}: data must be a string")

    data = data.strip()
    if data.startswith("data:"):
        match = _DATA_URL_RE.match(data)
        if not match:
            raise ValidationError(f"Invalid image data for {field}: malformed data URL")
        media_type = _check_media_type(match.group("mime"), field, allowed)
        if ";base64" not in match.group("params").lower():
            raise ValidationError(f"Invalid image data for {field}: data URL is not base64-encoded")
        payload = match.group("payload")
        if not payload:
            raise ValidationError(f"Missing image data for {field}")
        try:
            base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError):
            raise ValidationError(f"Invalid image data for {field}: not valid base64") from None
        return ImagePayload(data=payload, media_type=media_type)

    media_type = _check_media_type(declared or default_media_type, field, allowed)
    return ImagePayload(data=data, media_type=media_type)
