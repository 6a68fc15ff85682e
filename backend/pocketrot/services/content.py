"""Persist AI-written characters and scenarios.

Shared by the ``/api/generate`` routes and the scheduled Celery jobs.
"""

from __future__ import annotations

import logging

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from pocketrot.models import Character, Scenario
from pocketrot.services import ai_writer

logger = logging.getLogger(__name__)

AI_TAG = "gemini"


async def create_ai_character(
    db: AsyncSession, http_client: httpx.AsyncClient | None = None,
) -> Character:
    data = await ai_writer.generate_character(db, http_client)
    character = Character(**data, is_original=False, generated_by=AI_TAG)
    db.add(character)
    await db.flush()
    await db.refresh(character)
    logger.info("Created character %s: %s", character.id, character.name)
    return character


async def create_ai_scenario(
    db: AsyncSession, http_client: httpx.AsyncClient | None = None,
) -> Scenario:
    data = await ai_writer.generate_scenario(db, http_client)
    scenario = Scenario(**data, generated_by=AI_TAG)
    db.add(scenario)
    await db.flush()
    await db.refresh(scenario)
    logger.info("Created scenario %s: %s", scenario.id, scenario.title)
    return scenario
