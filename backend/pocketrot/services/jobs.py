"""Value types shared by the generation pipeline.

A ``GenerationRequest`` is built once per user action and never mutated.
A ``ProviderJob`` lives only as long as one orchestration run.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass


class SubjectType(str, enum.Enum):
    """Entity a generation request is about."""

    SCENARIO = "scenario"
    CHARACTER = "character"


class MediaKind(str, enum.Enum):
    IMAGE = "image"
    VIDEO = "video"


class JobStatus(str, enum.Enum):
    """Lifecycle of one provider call.

    Async jobs move SUBMITTED (pending, handle received) → POLLING (running)
    → DONE | FAILED | TIMED_OUT.
    """

    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class SubjectRef:
    type: SubjectType
    id: int

    @property
    def label(self) -> str:
        return f"{self.type.value}-{self.id}"


@dataclass(frozen=True)
class GenerationRequest:
    """One client-facing generation request."""

    subject: SubjectRef
    prompt_text: str
    reference_asset_id: int | None = None
    aspect_ratio: str | None = None

    def __post_init__(self) -> None:
        if not self.prompt_text or not self.prompt_text.strip():
            raise ValueError("prompt_text must not be empty")


@dataclass
class ProviderJob:
    provider: str
    mode: str
    operation_handle: str | None = None
    status: JobStatus = JobStatus.PENDING
    attempts: int = 0
