from __future__ import annotations
"""Image ORM model: generation record for a scenario or character image."""

from datetime import datetime
from typing import Optional

from sqlalchemy import ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pocketrot.database import Base


class Image(Base):
    """A generated (or placeholder) image. Exactly one subject column is set."""

    __tablename__ = "images"
    __table_args__ = {
        "mysql_charset": "utf8mb4",
        "mysql_collate": "utf8mb4_unicode_ci",
    }

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    scenario_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("scenarios.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    character_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("characters.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    url: Mapped[str] = mapped_column(String(500), nullable=False)
    prompt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    generated_by: Mapped[str] = mapped_column(String(50), nullable=False, default="gemini")
    approved: Mapped[bool] = mapped_column(default=False)

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())

    # Relationships
    scenario = relationship("Scenario", back_populates="images")
    character = relationship("Character", back_populates="images")
