"""Master API router — mounts all sub-routers."""

from __future__ import annotations

from fastapi import APIRouter

from morphreel.api.prompt import router as prompt_router
from morphreel.api.system import router as system_router
from morphreel.api.video import router as video_router

api_router = APIRouter(prefix="/api", redirect_slashes=False)

api_router.include_router(prompt_router, tags=["Prompt"])
api_router.include_router(video_router, tags=["Video"])
api_router.include_router(system_router, tags=["System"])
