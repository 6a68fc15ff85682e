from __future__ import annotations
"""Pydantic v2 schemas for Character model."""

from datetime import datetime

from pydantic import BaseModel, Field


class CharacterCreate(BaseModel):
    """Schema for creating a character by hand."""

    name: str = Field(..., min_length=1, max_length=255)
    species: str = Field(..., min_length=1, max_length=100)
    pocket_artifact: str = Field(..., min_length=1, max_length=255)
    role_and_vibe: str = Field(..., min_length=1)
    backstory: str | None = None
    is_original: bool = False


class CharacterUpdate(BaseModel):
    """Schema for updating a character."""

    name: str | None = Field(None, max_length=255)
    species: str | None = Field(None, max_length=100)
    pocket_artifact: str | None = Field(None, max_length=255)
    role_and_vibe: str | None = None
    backstory: str | None = None


class CharacterRead(BaseModel):
    """Schema for reading a character."""

    id: int
    name: str
    species: str
    pocket_artifact: str
    role_and_vibe: str
    backstory: str | None = None
    is_original: bool = False
    generated_by: str
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
