from __future__ import annotations
"""Cron-triggered content generation (external scheduler, bearer CRON_SECRET)."""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from pocketrot.api.deps import require_cron
from pocketrot.database import get_db
from pocketrot.schemas.character import CharacterRead
from pocketrot.schemas.scenario import ScenarioRead
from pocketrot.services.content import create_ai_character, create_ai_scenario

logger = logging.getLogger(__name__)
router = APIRouter(dependencies=[Depends(require_cron)])


@router.get("/daily-scenario")
async def daily_scenario(request: Request, db: AsyncSession = Depends(get_db)):
    logger.info("Daily scenario cron triggered")
    scenario = await create_ai_scenario(db, request.app.state.http_client)
    return {
        "success": True,
        "message": "Daily scenario generated",
        "scenario": ScenarioRead.model_validate(scenario),
    }


@router.get("/weekly-character")
async def weekly_character(request: Request, db: AsyncSession = Depends(get_db)):
    logger.info("Weekly character cron triggered")
    character = await create_ai_character(db, request.app.state.http_client)
    return {
        "success": True,
        "message": "Weekly character generated",
        "character": CharacterRead.model_validate(character),
    }
