from __future__ import annotations
"""Scheduled AI content: the daily scenario and the weekly character."""

import logging

from celery import shared_task

from pocketrot.database import async_session_factory
from pocketrot.services.content import create_ai_character, create_ai_scenario
from pocketrot.tasks import run_async

logger = logging.getLogger(__name__)


async def _create(factory):
    async with async_session_factory() as session:
        try:
            row = await factory(session)
            await session.commit()
            return row
        except Exception:
            await session.rollback()
            raise


@shared_task(bind=True, max_retries=1, default_retry_delay=300)
def generate_daily_scenario(self):
    try:
        scenario = run_async(_create(create_ai_scenario))
    except Exception as exc:
        logger.error("Daily scenario generation failed: %s", exc)
        raise self.retry(exc=exc)
    logger.info("Daily scenario created: %s", scenario.title)
    return {"scenario_id": scenario.id, "title": scenario.title}


@shared_task(bind=True, max_retries=1, default_retry_delay=300)
def generate_weekly_character(self):
    try:
        character = run_async(_create(create_ai_character))
    except Exception as exc:
        logger.error("Weekly character generation failed: %s", exc)
        raise self.retry(exc=exc)
    logger.info("Weekly character created: %s", character.name)
    return {"character_id": character.id, "name": character.name}
