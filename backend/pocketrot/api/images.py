from __future__ import annotations
"""Image record listing, approval, url updates and deletion."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pocketrot.api.deps import require_operator
from pocketrot.database import get_db
from pocketrot.models import Image
from pocketrot.schemas.media import ImageApproval, ImageList, ImageRead, ImageUpdate

router = APIRouter()


@router.get("", response_model=ImageList)
async def list_images(
    scenario_id: int | None = Query(None),
    character_id: int | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """List image records, newest first, optionally for one subject."""
    stmt = select(Image).order_by(Image.created_at.desc(), Image.id.desc())
    if scenario_id is not None:
        stmt = stmt.where(Image.scenario_id == scenario_id)
    if character_id is not None:
        stmt = stmt.where(Image.character_id == character_id)

    result = await db.execute(stmt)
    images = result.scalars().all()
    return ImageList(images=[ImageRead.model_validate(i) for i in images], count=len(images))


@router.post("/{image_id}/approval", response_model=ImageRead, dependencies=[Depends(require_operator)])
async def set_image_approval(image_id: int, data: ImageApproval, db: AsyncSession = Depends(get_db)):
    image = await db.get(Image, image_id)
    if not image:
        raise HTTPException(status_code=404, detail="Image not found")
    image.approved = data.approved
    await db.flush()
    await db.refresh(image)
    return image


@router.patch("/{image_id}", response_model=ImageRead, dependencies=[Depends(require_operator)])
async def update_image(image_id: int, data: ImageUpdate, db: AsyncSession = Depends(get_db)):
    """Replace the stored url, e.g. after a manual re-render."""
    image = await db.get(Image, image_id)
    if not image:
        raise HTTPException(status_code=404, detail="Image not found")
    image.url = data.url
    image.generated_by = data.generated_by
    await db.flush()
    await db.refresh(image)
    return image


@router.delete("/{image_id}", status_code=204, dependencies=[Depends(require_operator)])
async def delete_image(image_id: int, db: AsyncSession = Depends(get_db)):
    """Delete the record. The stored artifact itself is left in place."""
    image = await db.get(Image, image_id)
    if not image:
        raise HTTPException(status_code=404, detail="Image not found")
    await db.delete(image)
