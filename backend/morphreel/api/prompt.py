"""Prompt generation endpoint: two images in, descriptive transition prompt out."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from morphreel.api.deps import get_prompt_proxy, preflight_response
from morphreel.schemas import ErrorResponse, PromptRequest, PromptResponse
from morphreel.services.prompt_proxy import PromptProxy

router = APIRouter()

_ERRORS = {code: {"model": ErrorResponse} for code in (400, 401, 500, 503, 504)}


@router.options("/prompt", include_in_schema=False)
async def prompt_preflight():
    return preflight_response()


@router.post("/prompt", response_model=PromptResponse, responses=_ERRORS)
async def generate_prompt(
    req: PromptRequest,
    proxy: PromptProxy = Depends(get_prompt_proxy),
):
    """Ask the vision provider to describe a transition between two images."""
    result = await proxy.generate(req.image1, req.image2, req.credential)
    return PromptResponse(text=result.text)
