from __future__ import annotations
"""Pydantic v2 schemas for generation records (images and videos)."""

from datetime import datetime

from pydantic import BaseModel, Field


class ImageRead(BaseModel):
    """Schema for reading an image record."""

    id: int
    scenario_id: int | None = None
    character_id: int | None = None
    url: str
    prompt: str | None = None
    generated_by: str
    approved: bool = False
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class ImageList(BaseModel):
    images: list[ImageRead]
    count: int


class ImageApproval(BaseModel):
    approved: bool


class ImageUpdate(BaseModel):
    """Point an image record at an externally produced artifact."""

    url: str = Field(..., min_length=1, max_length=500)
    generated_by: str = Field("manual", min_length=1, max_length=50)


class VideoRead(BaseModel):
    """Schema for reading a video record, including YouTube bookkeeping."""

    id: int
    scenario_id: int
    url: str
    prompt: str | None = None
    duration: int | None = None
    generated_by: str
    youtube_id: str | None = None
    youtube_url: str | None = None
    upload_status: str = "pending"
    uploaded_at: datetime | None = None
    upload_error: str | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class VideoList(BaseModel):
    videos: list[VideoRead]
    count: int


class PublishRequest(BaseModel):
    """Optional metadata overrides for a YouTube upload."""

    title: str | None = Field(None, max_length=100)
    description: str | None = Field(None, max_length=5000)
    tags: list[str] | None = None
    privacy_status: str | None = Field(None, pattern="^(private|public|unlisted)$")
