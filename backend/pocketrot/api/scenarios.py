from __future__ import annotations
"""Scenario CRUD API endpoints."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pocketrot.api.deps import require_operator
from pocketrot.database import get_db
from pocketrot.models import Character, Scenario
from pocketrot.schemas.scenario import ScenarioCreate, ScenarioRead

router = APIRouter()


@router.get("", response_model=list[ScenarioRead])
async def list_scenarios(db: AsyncSession = Depends(get_db)):
    """List scenarios, newest first."""
    result = await db.execute(
        select(Scenario).order_by(Scenario.created_at.desc(), Scenario.id.desc())
    )
    return result.scalars().all()


@router.post("", response_model=ScenarioRead, status_code=201, dependencies=[Depends(require_operator)])
async def create_scenario(data: ScenarioCreate, db: AsyncSession = Depends(get_db)):
    if data.character_ids:
        result = await db.execute(select(Character.id).where(Character.id.in_(data.character_ids)))
        unknown = set(data.character_ids) - set(result.scalars().all())
        if unknown:
            raise HTTPException(
                status_code=422, detail=f"Unknown character ids: {sorted(unknown)}"
            )

    scenario = Scenario(**data.model_dump(), generated_by="manual")
    db.add(scenario)
    await db.flush()
    await db.refresh(scenario)
    return scenario


@router.get("/{scenario_id}", response_model=ScenarioRead)
async def get_scenario(scenario_id: int, db: AsyncSession = Depends(get_db)):
    scenario = await db.get(Scenario, scenario_id)
    if not scenario:
        raise HTTPException(status_code=404, detail="Scenario not found")
    return scenario


@router.delete("/{scenario_id}", status_code=204, dependencies=[Depends(require_operator)])
async def delete_scenario(scenario_id: int, db: AsyncSession = Depends(get_db)):
    """Delete a scenario together with its images and videos."""
    scenario = await db.get(Scenario, scenario_id)
    if not scenario:
        raise HTTPException(status_code=404, detail="Scenario not found")
    await db.delete(scenario)
