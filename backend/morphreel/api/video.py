"""Video generation endpoint: one or two images plus a prompt in, hosted video URL out."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from morphreel.api.deps import get_video_proxy, preflight_response
from morphreel.schemas import ErrorResponse, VideoRequest, VideoResponse
from morphreel.services.video_proxy import VideoProxy

router = APIRouter()

_ERRORS = {code: {"model": ErrorResponse} for code in (400, 401, 500, 503, 504)}


@router.options("/video", include_in_schema=False)
async def video_preflight():
    return preflight_response()


@router.post("/video", response_model=VideoResponse, responses=_ERRORS)
async def generate_video(
    req: VideoRequest,
    proxy: VideoProxy = Depends(get_video_proxy),
):
    """Generate a transition (2 images) or animation (1 image) video.

    Blocks until the provider finishes; the provider can take minutes, so
    ``VIDEO_TIMEOUT_SECONDS`` must fit inside any front proxy's limit.
    """
    result = await proxy.generate(
        req.images,
        req.credential,
        prompt=req.prompt,
        negative_prompt=req.negative_prompt,
        duration_seconds=req.duration_seconds,
        aspect_ratio=req.aspect_ratio,
    )
    return VideoResponse(url=result.url)
