"""Gemini image provider (synchronous).

Calls ``models/{model}:generateContent`` on an image-capable Gemini model and
returns the first inline image part.
"""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Any

import httpx

from pocketrot.errors import MalformedResponse
from pocketrot.services.providers.base import (
    ProviderAdapter,
    ProviderMode,
    ReferenceAsset,
    SyncResult,
    mask_key,
)

logger = logging.getLogger(__name__)

_DEFAULT_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta"


class GeminiImageAdapter(ProviderAdapter):
    mode = ProviderMode.SYNC

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        api_key: str,
        model: str = "gemini-2.5-flash-image",
        base_url: str | None = None,
    ):
        super().__init__(http_client)
        self.api_key = api_key
        self.model = model
        self.base_url = (base_url or _DEFAULT_ENDPOINT).rstrip("/")
        self.name = model

    async def generate(
        self,
        prompt_text: str,
        reference: ReferenceAsset | None = None,
        *,
        aspect_ratio: str | None = None,
    ) -> SyncResult:
        api_key = self._require(self.api_key, "GEMINI_API_KEY")

        parts: list[dict[str, Any]] = [{"text": prompt_text}]
        if reference is not None:
            parts.append({
                "inlineData": {
                    "mimeType": reference.mime_type,
                    "data": base64.b64encode(reference.data).decode("ascii"),
                }
            })

        body: dict[str, Any] = {"contents": [{"parts": parts}]}
        if aspect_ratio:
            body["generationConfig"] = {"imageConfig": {"aspectRatio": aspect_ratio}}

        logger.info(
            "Calling Gemini image model=%s key=%s reference=%s",
            self.model, mask_key(api_key), reference is not None,
        )
        data = await self._request_json(
            "POST",
            f"{self.base_url}/models/{self.model}:generateContent",
            json=body,
            headers={"x-goog-api-key": api_key},
        )
        return _extract_image(data, self.name)


def _extract_image(data: dict[str, Any], provider: str) -> SyncResult:
    """Pull the first inline image out of a generateContent response."""
    candidates = data.get("candidates") or []
    if not candidates:
        raise MalformedResponse("No candidates in image response", provider=provider)

    parts = (candidates[0].get("content") or {}).get("parts") or []
    for part in parts:
        inline = part.get("inlineData") or part.get("inline_data")
        if not inline or not inline.get("data"):
            continue
        try:
            payload = base64.b64decode(inline["data"])
        except (binascii.Error, ValueError) as e:
            raise MalformedResponse(
                f"Image payload is not valid base64: {e}", provider=provider
            ) from e
        mime_type = inline.get("mimeType") or inline.get("mime_type") or "image/png"
        return SyncResult(data=payload, content_type=mime_type)

    raise MalformedResponse("No image data in response", provider=provider)
