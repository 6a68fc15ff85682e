"""System status endpoint: checks the database, Redis, Celery and artifact storage."""

from __future__ import annotations

import concurrent.futures
import os
import time
from typing import Any

import redis
from fastapi import APIRouter
from sqlalchemy import create_engine, text

from pocketrot.config import get_settings
from pocketrot.tasks import celery_app

router = APIRouter()
settings = get_settings()


def _check_redis() -> dict[str, Any]:
    t0 = time.time()
    try:
        r = redis.Redis.from_url(settings.REDIS_URL, socket_timeout=3)
        info = r.info("server")
        ping = r.ping()
        return {
            "status": "ok" if ping else "error",
            "latency_ms": round((time.time() - t0) * 1000, 1),
            "version": info.get("redis_version", "unknown"),
        }
    except redis.RedisError as e:
        return {"status": "error", "error": str(e)}


def _check_celery_workers() -> dict[str, Any]:
    """Check Celery workers via ping broadcast."""
    try:
        inspector = celery_app.control.inspect(timeout=2)
        ping_result = inspector.ping()
        if not ping_result:
            return {"status": "offline", "workers": [], "count": 0}

        workers = [
            {"name": name, "status": "ok" if pong.get("ok") == "pong" else "error"}
            for name, pong in ping_result.items()
        ]
        active = inspector.active() or {}
        return {
            "status": "ok",
            "workers": workers,
            "count": len(workers),
            "active_tasks": sum(len(tasks) for tasks in active.values()),
        }
    except Exception as e:
        return {"status": "error", "error": str(e), "workers": [], "count": 0}


def _check_artifact_store() -> dict[str, Any]:
    backend = settings.ARTIFACT_BACKEND.strip().lower()
    if backend == "local":
        writable = os.path.isdir(settings.MEDIA_VOLUME) and os.access(settings.MEDIA_VOLUME, os.W_OK)
        return {
            "status": "ok" if writable else "error",
            "backend": "local",
            "path": settings.MEDIA_VOLUME,
        }
    if backend == "gcs":
        return {
            "status": "ok" if settings.GCS_BUCKET else "error",
            "backend": "gcs",
            "bucket": settings.GCS_BUCKET or None,
        }
    return {"status": "error", "backend": backend, "error": "unknown ARTIFACT_BACKEND"}


def _check_database() -> dict[str, Any]:
    """Check database connectivity (sync, for status page)."""
    t0 = time.time()
    engine = create_engine(settings.SYNC_DATABASE_URL, pool_pre_ping=True)
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
        return {
            "status": "ok",
            "latency_ms": round((time.time() - t0) * 1000, 1),
            "host": settings.DB_HOST,
            "database": settings.DB_NAME,
        }
    except Exception as e:
        return {"status": "error", "error": str(e), "host": settings.DB_HOST}
    finally:
        engine.dispose()


@router.get("/status")
async def system_status():
    """Full system status check: database, Redis, Celery workers, artifact storage."""
    with concurrent.futures.ThreadPoolExecutor(max_workers=3) as executor:
        redis_future = executor.submit(_check_redis)
        db_future = executor.submit(_check_database)
        celery_future = executor.submit(_check_celery_workers)

    services = {
        "redis": redis_future.result(),
        "database": db_future.result(),
        "celery": celery_future.result(),
        "storage": _check_artifact_store(),
    }
    all_ok = all(s.get("status") == "ok" for s in services.values())

    return {
        "overall": "ok" if all_ok else "degraded",
        "services": services,
        "settings": {
            "image_provider": settings.IMAGE_PROVIDER,
            "video_provider": settings.VIDEO_PROVIDER,
            "artifact_backend": settings.ARTIFACT_BACKEND,
            "use_mock_api": settings.USE_MOCK_API,
        },
    }
