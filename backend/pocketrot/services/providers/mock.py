"""Mock providers for local development (USE_MOCK_API=true).

The image mock renders the prompt onto a PNG; the video mock behaves like an
async provider that finishes on the first poll.
"""

from __future__ import annotations

import io
import logging
import uuid

from pocketrot.services.providers.base import (
    AsyncHandle,
    PollResult,
    ProviderAdapter,
    ProviderMode,
    ReferenceAsset,
    SyncResult,
)

logger = logging.getLogger(__name__)

# Minimal ISO-BMFF header; enough for browsers to recognise an mp4 container
_MOCK_MP4 = b"\x00\x00\x00\x18ftypmp42\x00\x00\x00\x00mp42isom"


class MockImageAdapter(ProviderAdapter):
    name = "mock-image"
    mode = ProviderMode.SYNC

    async def generate(
        self,
        prompt_text: str,
        reference: ReferenceAsset | None = None,
        *,
        aspect_ratio: str | None = None,
    ) -> SyncResult:
        size = (576, 1024) if aspect_ratio == "9:16" else (1024, 576)
        return SyncResult(data=_render_png(prompt_text, size), content_type="image/png")


class MockVideoAdapter(ProviderAdapter):
    name = "mock-video"
    mode = ProviderMode.ASYNC
    duration_seconds = 8

    async def generate(
        self,
        prompt_text: str,
        reference: ReferenceAsset | None = None,
        *,
        aspect_ratio: str | None = None,
    ) -> AsyncHandle:
        return AsyncHandle(operation=f"mock-op-{uuid.uuid4().hex[:12]}")

    async def poll(self, handle: AsyncHandle) -> PollResult:
        return PollResult(done=True, locator=f"mock://{handle.operation}.mp4")

    async def fetch(self, locator: str) -> SyncResult:
        return SyncResult(data=_MOCK_MP4, content_type="video/mp4")


def _render_png(prompt: str, size: tuple[int, int]) -> bytes:
    """Render a solid placeholder PNG with the prompt's first line on it."""
    from PIL import Image, ImageDraw, ImageFont

    img = Image.new("RGB", size, color=(26, 26, 46))
    draw = ImageDraw.Draw(img)
    font = ImageFont.load_default()

    first_line = prompt.strip().splitlines()[0] if prompt.strip() else ""
    wrapped = first_line[:80] + "..." if len(first_line) > 80 else first_line
    draw.text((24, 24), wrapped, fill=(233, 69, 96), font=font)
    draw.text((24, size[1] - 40), "[MOCK IMAGE | PocketRot]", fill=(120, 120, 160), font=font)

    buf = io.BytesIO()
    img.save(buf, "PNG")
    return buf.getvalue()
