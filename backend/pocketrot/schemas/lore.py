from __future__ import annotations
"""Pydantic v2 schemas for Lore model."""

from datetime import datetime

from pydantic import BaseModel, Field


class LoreCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1, max_length=100)
    sort_order: int = 0


class LoreUpdate(BaseModel):
    title: str | None = Field(None, max_length=255)
    content: str | None = None
    category: str | None = Field(None, max_length=100)
    sort_order: int | None = None


class LoreRead(BaseModel):
    id: int
    title: str
    content: str
    category: str
    sort_order: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}
