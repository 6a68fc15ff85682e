from __future__ import annotations
"""Pydantic v2 schemas for generation endpoints."""

from pydantic import BaseModel, Field

from pocketrot.schemas.character import CharacterRead
from pocketrot.schemas.media import ImageRead, VideoRead
from pocketrot.schemas.scenario import ScenarioRead


class ScenarioSubject(BaseModel):
    scenario_id: int = Field(..., ge=1)


class ScenarioVideoRequest(ScenarioSubject):
    """``reference_image_id`` pins the reference; default is the latest scenario image."""

    reference_image_id: int | None = Field(None, ge=1)


class CharacterSubject(BaseModel):
    character_id: int = Field(..., ge=1)


class ImageGenerationResponse(BaseModel):
    """Structured result of an image generation request.

    ``warning`` and ``error`` are set together when the placeholder
    fallback produced the record.
    """

    success: bool
    image: ImageRead | None = None
    warning: str | None = None
    error: str | None = None


class VideoGenerationResponse(BaseModel):
    success: bool
    video: VideoRead | None = None
    error: str | None = None


class CharacterGenerationResponse(BaseModel):
    success: bool
    character: CharacterRead


class ScenarioGenerationResponse(BaseModel):
    success: bool
    scenario: ScenarioRead
