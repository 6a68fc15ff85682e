from __future__ import annotations
"""Pydantic v2 schemas for Scenario model."""

from datetime import datetime

from pydantic import BaseModel, Field


class ScenarioCreate(BaseModel):
    """Schema for creating a scenario by hand."""

    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    character_ids: list[int] = Field(default_factory=list)
    location: str | None = Field(None, max_length=255)
    mission: str | None = None


class ScenarioRead(BaseModel):
    """Schema for reading a scenario."""

    id: int
    title: str
    description: str
    character_ids: list[int] = []
    location: str | None = None
    mission: str | None = None
    generated_by: str
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
