"""Gemini Veo video provider (asynchronous).

Submits ``models/{model}:predictLongRunning`` and hands the operation name
back to the orchestrator, which polls ``poll()`` until the operation is done
and then downloads the generated sample through ``fetch()``.
"""

from __future__ import annotations

import base64
import logging
from typing import Any
from urllib.parse import quote

import httpx

from pocketrot.errors import MalformedResponse
from pocketrot.services.providers.base import (
    AsyncHandle,
    PollResult,
    ProviderAdapter,
    ProviderMode,
    ReferenceAsset,
    SyncResult,
)

logger = logging.getLogger(__name__)

_DEFAULT_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta"

# Known locations of the video URI in a finished operation's response
_VIDEO_URI_PATHS: tuple[tuple[Any, ...], ...] = (
    ("generateVideoResponse", "generatedSamples", 0, "video", "uri"),
    ("generatedVideos", 0, "video", "uri"),
    ("generated_videos", 0, "video", "uri"),
)


class VeoVideoAdapter(ProviderAdapter):
    mode = ProviderMode.ASYNC

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        api_key: str,
        model: str = "veo-3.1-fast-generate-preview",
        base_url: str | None = None,
        duration_seconds: int = 8,
        aspect_ratio: str = "16:9",
    ):
        super().__init__(http_client)
        self.api_key = api_key
        self.model = model
        self.base_url = (base_url or _DEFAULT_ENDPOINT).rstrip("/")
        self.duration_seconds = duration_seconds
        self.aspect_ratio = aspect_ratio
        self.name = model

    async def generate(
        self,
        prompt_text: str,
        reference: ReferenceAsset | None = None,
        *,
        aspect_ratio: str | None = None,
    ) -> AsyncHandle:
        api_key = self._require(self.api_key, "GEMINI_API_KEY")

        instance: dict[str, Any] = {"prompt": prompt_text.strip()}
        if reference is not None:
            instance["image"] = {
                "inlineData": {
                    "mimeType": reference.mime_type,
                    "data": base64.b64encode(reference.data).decode("ascii"),
                }
            }

        body = {
            "instances": [instance],
            "parameters": {
                "aspectRatio": aspect_ratio or self.aspect_ratio,
                "durationSeconds": self.duration_seconds,
            },
        }

        data = await self._request_json(
            "POST",
            f"{self.base_url}/models/{self.model}:predictLongRunning",
            json=body,
            headers={"x-goog-api-key": api_key},
        )
        operation_name = str(data.get("name") or "")
        if not operation_name:
            raise MalformedResponse(
                "Veo did not return a long-running operation name", provider=self.name
            )

        logger.info(
            "Veo operation submitted: %s (model=%s, reference=%s)",
            operation_name, self.model, reference is not None,
        )
        return AsyncHandle(operation=operation_name)

    async def poll(self, handle: AsyncHandle) -> PollResult:
        api_key = self._require(self.api_key, "GEMINI_API_KEY")
        data = await self._request_json(
            "GET",
            f"{self.base_url}/{quote(handle.operation, safe='/')}",
            headers={"x-goog-api-key": api_key},
        )

        if not data.get("done"):
            return PollResult(done=False)

        if data.get("error"):
            return PollResult(done=True, error=_format_google_error(data["error"]))

        return PollResult(done=True, locator=_extract_video_uri(data))

    async def fetch(self, locator: str) -> SyncResult:
        api_key = self._require(self.api_key, "GEMINI_API_KEY")
        resp = await self._request(
            "GET",
            locator,
            headers={"x-goog-api-key": api_key},
            follow_redirects=True,
        )
        if not resp.content:
            raise MalformedResponse("Veo video download was empty", provider=self.name)

        content_type = resp.headers.get("content-type", "video/mp4")
        content_type = content_type.split(";", 1)[0].strip()
        if not content_type.startswith("video/"):
            content_type = "video/mp4"
        return SyncResult(data=resp.content, content_type=content_type)


def _extract_video_uri(operation: dict[str, Any]) -> str | None:
    response = operation.get("response") or {}
    if not isinstance(response, dict):
        return None
    for path in _VIDEO_URI_PATHS:
        uri = _dig(response, path)
        if isinstance(uri, str) and uri:
            return uri
    return None


def _dig(payload: Any, path: tuple[Any, ...]) -> Any:
    current = payload
    for segment in path:
        if isinstance(segment, int):
            if not isinstance(current, list) or len(current) <= segment:
                return None
        elif not isinstance(current, dict):
            return None
        current = current[segment] if isinstance(segment, int) else current.get(segment)
    return current


def _format_google_error(error: Any) -> str:
    if isinstance(error, dict):
        code = error.get("code")
        message = error.get("message") or "unknown error"
        return f"Veo operation failed ({code}): {message}" if code else f"Veo operation failed: {message}"
    return f"Veo operation failed: {error}"
