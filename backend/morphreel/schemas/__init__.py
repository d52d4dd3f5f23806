"""Pydantic v2 schemas package."""

from morphreel.schemas.proxy import (
    ErrorResponse,
    PromptRequest,
    PromptResponse,
    VideoRequest,
    VideoResponse,
)

__all__ = [
    "ErrorResponse",
    "PromptRequest",
    "PromptResponse",
    "VideoRequest",
    "VideoResponse",
]
