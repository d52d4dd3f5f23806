"""Morphreel — FastAPI application entry point.

Mounts the proxy routes, configures CORS, and renders every proxy failure
as a single JSON shape: ``{"error": message}``.

Run with:
    uvicorn morphreel.main:app --port 4000
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from morphreel import __version__
from morphreel.api.router import api_router
from morphreel.api.system import health_report
from morphreel.config import Settings, get_settings
from morphreel.services.errors import ProxyError

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("%s starting up...", settings.APP_NAME)
    logger.info("Prompt provider: %s (timeout %ss)", settings.PROMPT_API_URL, settings.PROMPT_TIMEOUT_SECONDS)
    logger.info(
        "Video provider: %s | %s (timeout %ss)",
        settings.VIDEO_TRANSITION_API_URL, settings.VIDEO_SINGLE_API_URL, settings.VIDEO_TIMEOUT_SECONDS,
    )
    if settings.LOG_PAYLOAD_DIAGNOSTICS:
        logger.warning("Payload diagnostics enabled (credentials stay masked)")
    yield
    logger.info("%s shut down", settings.APP_NAME)


app = FastAPI(
    title="Morphreel API",
    description="Photo sequence → AI transition prompt → AI video",
    version=__version__,
    lifespan=lifespan,
    redirect_slashes=False,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ProxyError)
async def proxy_error_handler(request: Request, exc: ProxyError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    detail = errors[0].get("msg", "invalid value") if errors else "invalid value"
    return JSONResponse(status_code=400, content={"error": f"Invalid request body: {detail}"})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "internal server error"})


app.include_router(api_router)


@app.get("/")
async def root():
    """Service banner."""
    return {
        "service": settings.APP_NAME,
        "status": "running",
    }


@app.get("/health")
async def health(current: Settings = Depends(get_settings)):
    """Same report as /api/health, at the conventional top-level path."""
    return await health_report(current)
