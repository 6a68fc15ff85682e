"""ORM model package: registers all models with Base.metadata."""

from pocketrot.models.lore import Lore
from pocketrot.models.character import Character
from pocketrot.models.scenario import Scenario
from pocketrot.models.image import Image
from pocketrot.models.video import UploadStatus, Video

__all__ = [
    "Lore",
    "Character",
    "Scenario",
    "Image",
    "Video",
    "UploadStatus",
]
