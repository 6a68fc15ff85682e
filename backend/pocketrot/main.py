from __future__ import annotations
"""PocketRot: FastAPI application entry point.

Builds the process-wide generation collaborators (HTTP client, provider
adapters, artifact store, subject lock) on startup, mounts the API routes,
and renders every error as a structured ``{"success": false, ...}`` body.
"""

import logging
import os
from contextlib import asynccontextmanager

import httpx
import redis.asyncio as aioredis
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from pocketrot.api.router import api_router
from pocketrot.config import get_settings
from pocketrot.database import close_db
from pocketrot.errors import PocketRotError
from pocketrot.services.artifact_store import build_artifact_store
from pocketrot.services.providers import build_image_adapter, build_video_adapter
from pocketrot.services.subject_lock import SubjectLock

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create shared clients on startup, close them on shutdown."""
    logger.info("PocketRot starting up...")
    logger.info("USE_MOCK_API: %s", settings.USE_MOCK_API)
    logger.info("Database: %s@%s/%s", settings.DB_USER, settings.DB_HOST, settings.DB_NAME)

    http_client = httpx.AsyncClient(timeout=settings.PROVIDER_TIMEOUT)
    redis_client = aioredis.from_url(settings.REDIS_URL, socket_timeout=3)

    app.state.http_client = http_client
    app.state.image_adapter = build_image_adapter(settings, http_client)
    app.state.video_adapter = build_video_adapter(settings, http_client)
    app.state.artifact_store = build_artifact_store(settings)
    app.state.subject_lock = SubjectLock(redis_client, ttl=settings.SUBJECT_LOCK_TTL)
    logger.info(
        "Providers: image=%s video=%s store=%s",
        app.state.image_adapter.name, app.state.video_adapter.name, settings.ARTIFACT_BACKEND,
    )

    yield

    await http_client.aclose()
    await redis_client.aclose()
    await close_db()
    logger.info("PocketRot shut down")


app = FastAPI(
    title="PocketRot API",
    description="Small Scale. Big Glitch. Pure Rot. Character, scenario and media generation.",
    version="0.1.0",
    lifespan=lifespan,
    redirect_slashes=False,
)


@app.exception_handler(PocketRotError)
async def pocketrot_error_handler(request: Request, exc: PocketRotError):
    if exc.http_status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Internal server error", "kind": "internal"},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Mount API routes
app.include_router(api_router)

# Local artifacts are served straight from the media volume
if settings.ARTIFACT_BACKEND == "local":
    os.makedirs(settings.MEDIA_VOLUME, exist_ok=True)
    app.mount("/media", StaticFiles(directory=settings.MEDIA_VOLUME), name="media")


@app.get("/")
async def root():
    return {
        "service": "PocketRot",
        "status": "running",
        "mock_mode": settings.USE_MOCK_API,
    }


@app.get("/health")
async def health():
    """Detailed health check."""
    return {
        "status": "healthy",
        "database": settings.DB_HOST,
        "mock_mode": settings.USE_MOCK_API,
    }
