"""Pydantic v2 schemas package."""

from pocketrot.schemas.character import CharacterCreate, CharacterRead, CharacterUpdate
from pocketrot.schemas.scenario import ScenarioCreate, ScenarioRead
from pocketrot.schemas.lore import LoreCreate, LoreRead, LoreUpdate
from pocketrot.schemas.media import (
    ImageApproval,
    ImageList,
    ImageRead,
    ImageUpdate,
    PublishRequest,
    VideoList,
    VideoRead,
)

__all__ = [
    "CharacterCreate",
    "CharacterRead",
    "CharacterUpdate",
    "ScenarioCreate",
    "ScenarioRead",
    "LoreCreate",
    "LoreRead",
    "LoreUpdate",
    "ImageApproval",
    "ImageList",
    "ImageRead",
    "ImageUpdate",
    "PublishRequest",
    "VideoList",
    "VideoRead",
]
