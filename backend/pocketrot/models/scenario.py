from __future__ import annotations
"""Scenario ORM model: one "mundane mission" scene featuring existing characters."""

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pocketrot.database import Base


class Scenario(Base):
    """A short scene description plus the ids of the characters it features."""

    __tablename__ = "scenarios"
    __table_args__ = {
        "mysql_charset": "utf8mb4",
        "mysql_collate": "utf8mb4_unicode_ci",
    }

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    character_ids: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    mission: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    generated_by: Mapped[str] = mapped_column(String(50), nullable=False, default="gemini")

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())

    # Relationships
    images = relationship(
        "Image", back_populates="scenario", cascade="all, delete-orphan"
    )
    videos = relationship(
        "Video", back_populates="scenario", cascade="all, delete-orphan"
    )
