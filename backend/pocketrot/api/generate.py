from __future__ import annotations
"""Generation API: AI-written characters/scenarios, images and videos.

Media generation runs as a task tied to the HTTP request; if the client
disconnects the task is cancelled, which stops any provider poll loop.
"""

import asyncio
import logging
from collections.abc import Awaitable
from typing import TypeVar

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from pocketrot.api.deps import get_orchestrator, require_operator
from pocketrot.config import get_settings
from pocketrot.database import get_db
from pocketrot.errors import NotFoundError
from pocketrot.models import Character, Scenario
from pocketrot.schemas.character import CharacterRead
from pocketrot.schemas.generation import (
    CharacterGenerationResponse,
    CharacterSubject,
    ImageGenerationResponse,
    ScenarioGenerationResponse,
    ScenarioSubject,
    ScenarioVideoRequest,
    VideoGenerationResponse,
)
from pocketrot.schemas.media import ImageRead, VideoRead
from pocketrot.schemas.scenario import ScenarioRead
from pocketrot.services import prompt_builder
from pocketrot.services.content import create_ai_character, create_ai_scenario
from pocketrot.services.jobs import GenerationRequest, SubjectRef, SubjectType
from pocketrot.services.orchestrator import GenerationOrchestrator, GenerationOutcome

logger = logging.getLogger(__name__)
router = APIRouter(dependencies=[Depends(require_operator)])
settings = get_settings()

T = TypeVar("T")

CLIENT_CLOSED_REQUEST = 499
SCENE_ASPECT_RATIO = "16:9"
PORTRAIT_ASPECT_RATIO = "9:16"


class ClientDisconnected(Exception):
    """The HTTP client went away before the generation finished."""


async def run_until_disconnect(request: Request, job: Awaitable[T], check_interval: float = 1.0) -> T:
    """Await ``job`` as a task, cancelling it if the client disconnects."""
    task = asyncio.ensure_future(job)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=check_interval)
            if done:
                return task.result()
            if await request.is_disconnected():
                if task.done():
                    # finished while the disconnect check was pending
                    return task.result()
                logger.warning("Client disconnected from %s, cancelling generation", request.url.path)
                task.cancel()
                try:
                    return await task
                except asyncio.CancelledError:
                    raise ClientDisconnected()
    finally:
        if not task.done():
            task.cancel()


def _failure_response(outcome: GenerationOutcome, body) -> JSONResponse:
    status = outcome.error.http_status if outcome.error else 500
    payload = body.model_dump(mode="json")
    if outcome.error is not None:
        payload["kind"] = outcome.error.kind
    return JSONResponse(status_code=status, content=payload)


async def _disconnected(db: AsyncSession) -> JSONResponse:
    await db.rollback()
    return JSONResponse(
        status_code=CLIENT_CLOSED_REQUEST,
        content={"success": False, "error": "Client disconnected", "kind": "cancelled"},
    )


async def _image_response(
    request: Request,
    db: AsyncSession,
    orchestrator: GenerationOrchestrator,
    gen_request: GenerationRequest,
):
    try:
        outcome = await run_until_disconnect(request, orchestrator.generate_image(gen_request))
    except ClientDisconnected:
        return await _disconnected(db)

    body = ImageGenerationResponse(
        success=outcome.success,
        image=ImageRead.model_validate(outcome.record) if outcome.record is not None else None,
        warning=outcome.warning,
        error=outcome.error.message if outcome.error else None,
    )
    if not outcome.success:
        return _failure_response(outcome, body)
    return body


# ---------------------------------------------------------------------------
# AI writer
# ---------------------------------------------------------------------------

@router.post("/character", response_model=CharacterGenerationResponse)
async def generate_character(request: Request, db: AsyncSession = Depends(get_db)):
    """Invent a new character with Gemini."""
    logger.info("Generating new character with Gemini...")
    character = await create_ai_character(db, request.app.state.http_client)
    return CharacterGenerationResponse(success=True, character=CharacterRead.model_validate(character))


@router.post("/scenario", response_model=ScenarioGenerationResponse)
async def generate_scenario(request: Request, db: AsyncSession = Depends(get_db)):
    """Invent a new scenario starring existing characters."""
    logger.info("Generating new scenario with Gemini...")
    scenario = await create_ai_scenario(db, request.app.state.http_client)
    return ScenarioGenerationResponse(success=True, scenario=ScenarioRead.model_validate(scenario))


# ---------------------------------------------------------------------------
# Media
# ---------------------------------------------------------------------------

@router.post("/scenario-image", response_model=ImageGenerationResponse)
async def generate_scenario_image(
    data: ScenarioSubject,
    request: Request,
    db: AsyncSession = Depends(get_db),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    scenario = await db.get(Scenario, data.scenario_id)
    if scenario is None:
        raise NotFoundError(f"Scenario {data.scenario_id} not found")

    cast = await prompt_builder.load_characters(db, scenario.character_ids or [])
    gen_request = GenerationRequest(
        subject=SubjectRef(SubjectType.SCENARIO, scenario.id),
        prompt_text=prompt_builder.build_scenario_image_prompt(scenario, cast),
        aspect_ratio=SCENE_ASPECT_RATIO,
    )
    return await _image_response(request, db, orchestrator, gen_request)


@router.post("/character-image", response_model=ImageGenerationResponse)
async def generate_character_image(
    data: CharacterSubject,
    request: Request,
    db: AsyncSession = Depends(get_db),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    character = await db.get(Character, data.character_id)
    if character is None:
        raise NotFoundError(f"Character {data.character_id} not found")

    gen_request = GenerationRequest(
        subject=SubjectRef(SubjectType.CHARACTER, character.id),
        prompt_text=prompt_builder.build_character_image_prompt(character),
        aspect_ratio=PORTRAIT_ASPECT_RATIO,
    )
    return await _image_response(request, db, orchestrator, gen_request)


@router.post("/scenario-video", response_model=VideoGenerationResponse)
async def generate_scenario_video(
    data: ScenarioVideoRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    """Generate a short scenario video, conditioned on the latest scenario image."""
    scenario = await db.get(Scenario, data.scenario_id)
    if scenario is None:
        raise NotFoundError(f"Scenario {data.scenario_id} not found")

    cast = await prompt_builder.load_characters(db, scenario.character_ids or [])
    gen_request = GenerationRequest(
        subject=SubjectRef(SubjectType.SCENARIO, scenario.id),
        prompt_text=prompt_builder.build_scenario_video_prompt(
            scenario, cast, duration=settings.VEO_DURATION_SECONDS,
        ),
        reference_asset_id=data.reference_image_id,
        aspect_ratio=SCENE_ASPECT_RATIO,
    )

    try:
        outcome = await run_until_disconnect(request, orchestrator.generate_video(gen_request))
    except ClientDisconnected:
        return await _disconnected(db)

    body = VideoGenerationResponse(
        success=outcome.success,
        video=VideoRead.model_validate(outcome.record) if outcome.record is not None else None,
        error=outcome.error.message if outcome.error else None,
    )
    if not outcome.success:
        return _failure_response(outcome, body)
    return body
