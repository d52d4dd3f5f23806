"""Pydantic v2 schemas for the prompt and video endpoints.

Request fields are deliberately loose (``Any``): shape checks happen in
``services/normalizer.py`` so every input problem is reported the same
way, as a 400 ``{"error": ...}`` naming the offending field.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, Field

_CREDENTIAL = AliasChoices("credential", "apiKey", "api_key")


class PromptRequest(BaseModel):
    """Two images to compare, plus the caller's provider credential."""

    image1: Any = None
    image2: Any = None
    credential: Any = Field(default=None, validation_alias=_CREDENTIAL)


class VideoRequest(BaseModel):
    """Images (first = start, last = end) and optional generation parameters."""

    images: Any = None
    prompt: Any = None
    negative_prompt: Any = Field(
        default=None, validation_alias=AliasChoices("negativePrompt", "negative_prompt"),
    )
    duration_seconds: Any = Field(
        default=None,
        validation_alias=AliasChoices("durationSeconds", "duration_seconds", "duration"),
    )
    aspect_ratio: Any = Field(
        default=None, validation_alias=AliasChoices("aspectRatio", "aspect_ratio"),
    )
    credential: Any = Field(default=None, validation_alias=_CREDENTIAL)


class PromptResponse(BaseModel):
    text: str


class VideoResponse(BaseModel):
    url: str


class ErrorResponse(BaseModel):
    error: str
