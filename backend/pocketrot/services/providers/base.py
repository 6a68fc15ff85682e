"""Provider adapter contract.

Every generative backend is wrapped in a ``ProviderAdapter``. A synchronous
adapter answers ``generate()`` with the artifact bytes; an asynchronous one
answers with an operation handle and implements ``poll()`` / ``fetch()`` so
the orchestrator can drive it to completion.
"""

from __future__ import annotations

import enum
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import httpx

from pocketrot.errors import ConfigurationError, MalformedResponse, ProviderError

logger = logging.getLogger(__name__)


class ProviderMode(str, enum.Enum):
    SYNC = "sync"
    ASYNC = "async"


@dataclass(frozen=True)
class ReferenceAsset:
    """Previously stored artifact passed to a provider as visual context."""

    data: bytes
    mime_type: str
    source_url: str = ""


@dataclass(frozen=True)
class SyncResult:
    data: bytes
    content_type: str


@dataclass(frozen=True)
class AsyncHandle:
    operation: str


@dataclass(frozen=True)
class PollResult:
    """One status observation of an async job.

    ``done`` with ``error`` is a provider-side failure; ``done`` with neither
    ``error`` nor ``locator`` is a contract violation.
    """

    done: bool
    locator: str | None = None
    error: str | None = None


class ProviderAdapter(ABC):
    """Uniform interface to one image or video provider."""

    name: str = "unknown"
    mode: ProviderMode = ProviderMode.SYNC
    # clip length in seconds, video adapters only
    duration_seconds: int | None = None

    def __init__(self, http_client: httpx.AsyncClient):
        self.http_client = http_client

    @abstractmethod
    async def generate(
        self,
        prompt_text: str,
        reference: ReferenceAsset | None = None,
        *,
        aspect_ratio: str | None = None,
    ) -> SyncResult | AsyncHandle:
        """Submit a generation call."""
        ...

    async def poll(self, handle: AsyncHandle) -> PollResult:
        raise NotImplementedError(f"{self.name} is a synchronous provider")

    async def fetch(self, locator: str) -> SyncResult:
        raise NotImplementedError(f"{self.name} is a synchronous provider")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _require(self, value: str, setting: str) -> str:
        """Fail fast on a missing credential, before any network call."""
        if not value:
            raise ConfigurationError(f"{setting} is not set (provider={self.name})")
        return value

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request and map transport or non-2xx failures to ProviderError."""
        try:
            resp = await self.http_client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise ProviderError(
                f"{self.name} request failed: {e}", provider=self.name
            ) from e

        if not resp.is_success:
            raise ProviderError(
                f"{self.name} API failed: {resp.status_code} - {resp.text[:500]}",
                status_code=resp.status_code,
                provider=self.name,
            )
        return resp

    async def _request_json(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        resp = await self._request(method, url, **kwargs)
        try:
            data = resp.json()
        except ValueError as e:
            raise MalformedResponse(
                f"{self.name} returned non-JSON body", provider=self.name
            ) from e
        if not isinstance(data, dict):
            raise MalformedResponse(
                f"{self.name} returned unexpected {type(data).__name__} body",
                provider=self.name,
            )
        return data


def mask_key(key: str) -> str:
    """Mask an API key for safe logging: show first 4 and last 4 chars."""
    if len(key) <= 12:
        return "***"
    return f"{key[:4]}...{key[-4:]}"
