"""Sora video provider (asynchronous) over a task-style REST API.

POST create task → poll status → download. Reference images are uploaded
first and passed by URL.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from pocketrot.errors import ConfigurationError, MalformedResponse
from pocketrot.services.providers.base import (
    AsyncHandle,
    PollResult,
    ProviderAdapter,
    ProviderMode,
    ReferenceAsset,
    SyncResult,
)

logger = logging.getLogger(__name__)

_DONE_STATES = ("completed", "succeeded", "success")
_FAILED_STATES = ("failed", "error", "cancelled")
_RUNNING_STATES = ("pending", "processing", "queued", "running")


class SoraVideoAdapter(ProviderAdapter):
    mode = ProviderMode.ASYNC

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        api_key: str,
        base_url: str,
        model: str = "sora-2",
        duration: int = 10,
        aspect_ratio: str = "16:9",
    ):
        super().__init__(http_client)
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.duration_seconds = duration
        self.aspect_ratio = aspect_ratio
        self.name = model

    def _headers(self) -> dict[str, str]:
        api_key = self._require(self.api_key, "SORA_API_KEY")
        if not self.base_url:
            raise ConfigurationError(f"SORA_BASE_URL is not set (provider={self.name})")
        return {"Authorization": f"Bearer {api_key}"}

    async def generate(
        self,
        prompt_text: str,
        reference: ReferenceAsset | None = None,
        *,
        aspect_ratio: str | None = None,
    ) -> AsyncHandle:
        headers = self._headers()

        body: dict[str, Any] = {
            "model": self.model,
            "prompt": prompt_text,
            "duration": self.duration_seconds,
            "aspect_ratio": aspect_ratio or self.aspect_ratio,
        }
        if reference is not None:
            body["image_url"] = await self._upload_image(reference, headers)

        result = await self._request_json(
            "POST", f"{self.base_url}/api/v1/video/generate", json=body, headers=headers,
        )
        task_id = result.get("task_id") or result.get("id")
        if not task_id:
            raise MalformedResponse(
                f"Sora task creation returned no task id: {result}", provider=self.name
            )

        logger.info("Sora task created: %s (model=%s)", task_id, self.model)
        return AsyncHandle(operation=str(task_id))

    async def poll(self, handle: AsyncHandle) -> PollResult:
        data = await self._request_json(
            "GET",
            f"{self.base_url}/api/v1/video/status/{handle.operation}",
            headers=self._headers(),
        )
        status = str(data.get("status", "")).lower()

        if status in _DONE_STATES:
            return PollResult(done=True, locator=data.get("video_url") or data.get("url"))
        if status in _FAILED_STATES:
            return PollResult(done=True, error=f"Sora task failed: {data.get('error', 'unknown')}")
        if status not in _RUNNING_STATES:
            logger.warning("Sora unknown status for task %s: %s", handle.operation, status)
        return PollResult(done=False)

    async def fetch(self, locator: str) -> SyncResult:
        resp = await self._request("GET", locator, follow_redirects=True)
        if not resp.content:
            raise MalformedResponse("Sora video download was empty", provider=self.name)
        content_type = resp.headers.get("content-type", "").split(";", 1)[0].strip()
        if not content_type.startswith("video/"):
            content_type = "video/mp4"
        return SyncResult(data=resp.content, content_type=content_type)

    async def _upload_image(self, reference: ReferenceAsset, headers: dict[str, str]) -> str:
        """Upload the reference image, return its hosted URL."""
        extension = reference.mime_type.rsplit("/", 1)[-1] or "png"
        files = {"file": (f"reference.{extension}", reference.data, reference.mime_type)}
        result = await self._request_json(
            "POST", f"{self.base_url}/api/v1/upload", headers=headers, files=files,
        )
        url = result.get("url")
        if not url:
            raise MalformedResponse("Sora image upload returned no URL", provider=self.name)
        return url
