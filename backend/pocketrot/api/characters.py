from __future__ import annotations
"""Character CRUD API endpoints."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pocketrot.api.deps import require_operator
from pocketrot.database import get_db
from pocketrot.models import Character
from pocketrot.schemas.character import CharacterCreate, CharacterRead, CharacterUpdate

router = APIRouter()


@router.get("", response_model=list[CharacterRead])
async def list_characters(db: AsyncSession = Depends(get_db)):
    """List characters: originals first, then newest."""
    result = await db.execute(
        select(Character).order_by(
            Character.is_original.desc(), Character.created_at.desc(), Character.id.desc()
        )
    )
    return result.scalars().all()


@router.post("", response_model=CharacterRead, status_code=201, dependencies=[Depends(require_operator)])
async def create_character(data: CharacterCreate, db: AsyncSession = Depends(get_db)):
    character = Character(**data.model_dump(), generated_by="manual")
    db.add(character)
    await db.flush()
    await db.refresh(character)
    return character


@router.get("/{character_id}", response_model=CharacterRead)
async def get_character(character_id: int, db: AsyncSession = Depends(get_db)):
    character = await db.get(Character, character_id)
    if not character:
        raise HTTPException(status_code=404, detail="Character not found")
    return character


@router.patch("/{character_id}", response_model=CharacterRead, dependencies=[Depends(require_operator)])
async def update_character(
    character_id: int,
    data: CharacterUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Update a character's fields."""
    character = await db.get(Character, character_id)
    if not character:
        raise HTTPException(status_code=404, detail="Character not found")

    update_data = data.model_dump(exclude_unset=True)
    for key, value in update_data.items():
        setattr(character, key, value)

    await db.flush()
    await db.refresh(character)
    return character


@router.delete("/{character_id}", status_code=204, dependencies=[Depends(require_operator)])
async def delete_character(character_id: int, db: AsyncSession = Depends(get_db)):
    """Delete a character and its images."""
    character = await db.get(Character, character_id)
    if not character:
        raise HTTPException(status_code=404, detail="Character not found")
    await db.delete(character)
