from __future__ import annotations
"""Lore CRUD API endpoints."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pocketrot.api.deps import require_operator
from pocketrot.database import get_db
from pocketrot.models import Lore
from pocketrot.schemas.lore import LoreCreate, LoreRead, LoreUpdate

router = APIRouter()


@router.get("", response_model=list[LoreRead])
async def list_lore(db: AsyncSession = Depends(get_db)):
    """All lore entries, grouped by category."""
    result = await db.execute(select(Lore).order_by(Lore.category, Lore.sort_order, Lore.id))
    return result.scalars().all()


@router.post("", response_model=LoreRead, status_code=201, dependencies=[Depends(require_operator)])
async def create_lore(data: LoreCreate, db: AsyncSession = Depends(get_db)):
    entry = Lore(**data.model_dump())
    db.add(entry)
    await db.flush()
    await db.refresh(entry)
    return entry


@router.patch("/{lore_id}", response_model=LoreRead, dependencies=[Depends(require_operator)])
async def update_lore(lore_id: int, data: LoreUpdate, db: AsyncSession = Depends(get_db)):
    entry = await db.get(Lore, lore_id)
    if not entry:
        raise HTTPException(status_code=404, detail="Lore entry not found")

    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(entry, key, value)

    await db.flush()
    await db.refresh(entry)
    return entry


@router.delete("/{lore_id}", status_code=204, dependencies=[Depends(require_operator)])
async def delete_lore(lore_id: int, db: AsyncSession = Depends(get_db)):
    entry = await db.get(Lore, lore_id)
    if not entry:
        raise HTTPException(status_code=404, detail="Lore entry not found")
    await db.delete(entry)
