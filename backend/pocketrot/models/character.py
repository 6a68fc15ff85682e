from __future__ import annotations
"""Character ORM model: a 4.20-inch resident of the PocketRot universe."""

from datetime import datetime
from typing import Optional

from sqlalchemy import Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pocketrot.database import Base


class Character(Base):
    """A character with the traits the AI writer and image prompts draw on."""

    __tablename__ = "characters"
    __table_args__ = {
        "mysql_charset": "utf8mb4",
        "mysql_collate": "utf8mb4_unicode_ci",
    }

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    species: Mapped[str] = mapped_column(String(100), nullable=False)
    pocket_artifact: Mapped[str] = mapped_column(String(255), nullable=False)
    role_and_vibe: Mapped[str] = mapped_column(Text, nullable=False)
    backstory: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_original: Mapped[bool] = mapped_column(default=False)
    generated_by: Mapped[str] = mapped_column(String(50), nullable=False, default="manual")

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())

    # Relationships
    images = relationship(
        "Image", back_populates="character", cascade="all, delete-orphan"
    )
