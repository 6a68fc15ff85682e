from __future__ import annotations
"""Master API router: mounts all sub-routers."""

from fastapi import APIRouter

from pocketrot.api.auth import router as auth_router
from pocketrot.api.lore import router as lore_router
from pocketrot.api.characters import router as characters_router
from pocketrot.api.scenarios import router as scenarios_router
from pocketrot.api.generate import router as generate_router
from pocketrot.api.images import router as images_router
from pocketrot.api.videos import router as videos_router
from pocketrot.api.youtube import router as youtube_router
from pocketrot.api.cron import router as cron_router
from pocketrot.api.metrics import router as metrics_router
from pocketrot.api.system import router as system_router

api_router = APIRouter(prefix="/api", redirect_slashes=False)

api_router.include_router(auth_router, prefix="/auth", tags=["Auth"])
api_router.include_router(lore_router, prefix="/lore", tags=["Lore"])
api_router.include_router(characters_router, prefix="/characters", tags=["Characters"])
api_router.include_router(scenarios_router, prefix="/scenarios", tags=["Scenarios"])
api_router.include_router(generate_router, prefix="/generate", tags=["Generation"])
api_router.include_router(images_router, prefix="/images", tags=["Images"])
api_router.include_router(videos_router, prefix="/videos", tags=["Videos"])
api_router.include_router(youtube_router, prefix="/youtube", tags=["YouTube"])
api_router.include_router(cron_router, prefix="/cron", tags=["Cron"])
api_router.include_router(metrics_router, prefix="/metrics", tags=["Metrics"])
api_router.include_router(system_router, prefix="/system", tags=["System"])
