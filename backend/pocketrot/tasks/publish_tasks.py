from __future__ import annotations
"""Celery task that publishes a stored video to YouTube.

Bookkeeping on the video row: pending → uploading → completed | failed.
"""

import asyncio
import logging

import httpx
from celery import shared_task
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from pocketrot.config import get_settings
from pocketrot.database import async_session_factory
from pocketrot.errors import ArtifactStoreError, ConfigurationError
from pocketrot.models import Video
from pocketrot.services.artifact_store import build_artifact_store
from pocketrot.services.youtube_service import (
    UploadResult,
    YouTubePublisher,
    default_upload_options,
    mark_completed,
    mark_failed,
    mark_uploading,
)
from pocketrot.tasks import run_async

logger = logging.getLogger(__name__)
settings = get_settings()


async def _load_video_bytes(url: str) -> bytes:
    store = build_artifact_store(settings)
    if store.owns(url):
        return await store.load(url)
    async with httpx.AsyncClient(timeout=settings.PROVIDER_TIMEOUT, follow_redirects=True) as client:
        resp = await client.get(url)
    if not resp.is_success:
        raise ArtifactStoreError(f"Video download returned HTTP {resp.status_code}")
    return resp.content


async def _publish(video_id: int, overrides: dict, publisher: YouTubePublisher) -> UploadResult:
    async with async_session_factory() as session:
        result = await session.execute(
            select(Video).options(selectinload(Video.scenario)).where(Video.id == video_id)
        )
        video = result.scalar_one_or_none()
        if video is None:
            raise LookupError(f"Video {video_id} not found")

        options = default_upload_options(video, settings, overrides)
        await mark_uploading(session, video)
        await session.commit()

        data = await _load_video_bytes(video.url)
        logger.info("Uploading video %s to YouTube (%d bytes)", video_id, len(data))
        if settings.USE_MOCK_API:
            upload = UploadResult(video_id=f"mock-{video_id}", video_url=f"https://www.youtube.com/watch?v=mock-{video_id}")
        else:
            upload = await asyncio.to_thread(publisher.upload, data, options)

        await mark_completed(session, video, upload)
        await session.commit()
        return upload


async def _record_failure(video_id: int, error: str) -> None:
    async with async_session_factory() as session:
        video = await session.get(Video, video_id)
        if video is None:
            return
        await mark_failed(session, video, error)
        await session.commit()


@shared_task(bind=True, max_retries=2, default_retry_delay=60)
def publish_video_to_youtube(self, video_id: int, overrides: dict | None = None):
    """Upload a stored video; retry transient failures, record the final error."""
    publisher = YouTubePublisher(settings)
    try:
        upload = run_async(_publish(video_id, overrides or {}, publisher))
    except (ConfigurationError, LookupError) as exc:
        logger.error("YouTube publish for video %s cannot proceed: %s", video_id, exc)
        run_async(_record_failure(video_id, str(exc)))
        return {"video_id": video_id, "status": "failed", "error": str(exc)}
    except Exception as exc:
        logger.error("YouTube publish failed for video %s: %s", video_id, exc)
        if self.request.retries >= self.max_retries:
            run_async(_record_failure(video_id, str(exc)))
            return {"video_id": video_id, "status": "failed", "error": str(exc)}
        raise self.retry(exc=exc)

    return {"video_id": video_id, "status": "completed", "youtube_url": upload.video_url}
