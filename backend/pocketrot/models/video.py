from __future__ import annotations
"""Video ORM model: generation record for a scenario video plus YouTube bookkeeping."""

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pocketrot.database import Base


class UploadStatus(str, enum.Enum):
    """YouTube upload lifecycle for a stored video."""

    PENDING = "pending"
    UPLOADING = "uploading"
    COMPLETED = "completed"
    FAILED = "failed"


class Video(Base):
    """A generated scenario video. Only successful generations are recorded."""

    __tablename__ = "videos"
    __table_args__ = {
        "mysql_charset": "utf8mb4",
        "mysql_collate": "utf8mb4_unicode_ci",
    }

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    scenario_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("scenarios.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    url: Mapped[str] = mapped_column(String(500), nullable=False)
    prompt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    generated_by: Mapped[str] = mapped_column(String(50), nullable=False, default="gemini")

    # YouTube publishing
    youtube_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    youtube_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    upload_status: Mapped[str] = mapped_column(
        String(50), nullable=False, default=UploadStatus.PENDING.value
    )
    uploaded_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    upload_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())

    # Relationships
    scenario = relationship("Scenario", back_populates="videos")
