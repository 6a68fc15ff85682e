"""Video/Image provider implementations.

Each provider module implements ``ProviderAdapter``:
  sync   generate() returns the artifact bytes
  async  generate() returns an operation handle → poll() → fetch()

The concrete adapter is picked by ``IMAGE_PROVIDER`` / ``VIDEO_PROVIDER``
through ``build_image_adapter`` / ``build_video_adapter``.
"""

from __future__ import annotations

import enum

import httpx

from pocketrot.config import Settings
from pocketrot.errors import ConfigurationError
from pocketrot.services.providers.base import (
    AsyncHandle,
    PollResult,
    ProviderAdapter,
    ProviderMode,
    ReferenceAsset,
    SyncResult,
)


class ImageProvider(str, enum.Enum):
    GEMINI = "gemini"
    MOCK = "mock"


class VideoProvider(str, enum.Enum):
    VEO = "veo"
    SORA = "sora"
    MOCK = "mock"


def _parse(enum_cls: type[enum.Enum], value: str, setting: str):
    try:
        return enum_cls(value.strip().lower())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ConfigurationError(f"Unknown {setting}={value!r} (expected one of: {allowed})")


def build_image_adapter(settings: Settings, http_client: httpx.AsyncClient) -> ProviderAdapter:
    """Instantiate the configured image adapter around a shared HTTP client."""
    from pocketrot.services.providers.gemini_image import GeminiImageAdapter
    from pocketrot.services.providers.mock import MockImageAdapter

    provider = ImageProvider.MOCK if settings.USE_MOCK_API else _parse(
        ImageProvider, settings.IMAGE_PROVIDER, "IMAGE_PROVIDER"
    )
    if provider is ImageProvider.MOCK:
        return MockImageAdapter(http_client)
    return GeminiImageAdapter(
        http_client,
        api_key=settings.GEMINI_API_KEY,
        model=settings.GEMINI_IMAGE_MODEL,
        base_url=settings.GEMINI_API_BASE,
    )


def build_video_adapter(settings: Settings, http_client: httpx.AsyncClient) -> ProviderAdapter:
    """Instantiate the configured video adapter around a shared HTTP client."""
    from pocketrot.services.providers.mock import MockVideoAdapter
    from pocketrot.services.providers.sora_video import SoraVideoAdapter
    from pocketrot.services.providers.veo_video import VeoVideoAdapter

    provider = VideoProvider.MOCK if settings.USE_MOCK_API else _parse(
        VideoProvider, settings.VIDEO_PROVIDER, "VIDEO_PROVIDER"
    )
    if provider is VideoProvider.MOCK:
        return MockVideoAdapter(http_client)
    if provider is VideoProvider.SORA:
        return SoraVideoAdapter(
            http_client,
            api_key=settings.SORA_API_KEY,
            base_url=settings.SORA_BASE_URL,
            model=settings.SORA_MODEL,
        )
    return VeoVideoAdapter(
        http_client,
        api_key=settings.GEMINI_API_KEY,
        model=settings.VEO_MODEL,
        base_url=settings.GEMINI_API_BASE,
        duration_seconds=settings.VEO_DURATION_SECONDS,
    )


__all__ = [
    "AsyncHandle",
    "ImageProvider",
    "PollResult",
    "ProviderAdapter",
    "ProviderMode",
    "ReferenceAsset",
    "SyncResult",
    "VideoProvider",
    "build_image_adapter",
    "build_video_adapter",
]
