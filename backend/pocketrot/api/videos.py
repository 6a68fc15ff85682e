from __future__ import annotations
"""Video record listing and YouTube publishing."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pocketrot.api.deps import require_operator
from pocketrot.database import get_db
from pocketrot.models import UploadStatus, Video
from pocketrot.schemas.media import PublishRequest, VideoList, VideoRead

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=VideoList)
async def list_videos(scenario_id: int | None = None, db: AsyncSession = Depends(get_db)):
    stmt = select(Video).order_by(Video.created_at.desc(), Video.id.desc())
    if scenario_id is not None:
        stmt = stmt.where(Video.scenario_id == scenario_id)
    result = await db.execute(stmt)
    videos = result.scalars().all()
    return VideoList(videos=[VideoRead.model_validate(v) for v in videos], count=len(videos))


@router.get("/{video_id}", response_model=VideoRead)
async def get_video(video_id: int, db: AsyncSession = Depends(get_db)):
    video = await db.get(Video, video_id)
    if not video:
        raise HTTPException(status_code=404, detail="Video not found")
    return video


@router.post("/{video_id}/publish", status_code=202, dependencies=[Depends(require_operator)])
async def publish_video(
    video_id: int,
    data: PublishRequest | None = None,
    db: AsyncSession = Depends(get_db),
):
    """Queue a YouTube upload for a stored video."""
    video = await db.get(Video, video_id)
    if not video:
        raise HTTPException(status_code=404, detail="Video not found")
    if video.upload_status in (UploadStatus.UPLOADING.value, UploadStatus.COMPLETED.value):
        raise HTTPException(
            status_code=409, detail=f"Video upload already {video.upload_status}"
        )

    video.upload_status = UploadStatus.PENDING.value
    video.upload_error = None
    await db.flush()

    from pocketrot.tasks.publish_tasks import publish_video_to_youtube

    overrides = data.model_dump(exclude_none=True) if data else {}
    task = publish_video_to_youtube.delay(video_id, overrides)
    logger.info("Queued YouTube upload for video %s (task %s)", video_id, task.id)
    return {"success": True, "video_id": video_id, "task_id": task.id, "status": "queued"}
