"""Gemini text client with retry + exponential backoff and structured errors.

All text-generation calls (character and scenario writing) go through
``llm_call()``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from pocketrot.config import get_settings
from pocketrot.errors import ConfigurationError, MalformedResponse, ProviderError
from pocketrot.services.providers.base import mask_key

logger = logging.getLogger(__name__)
settings = get_settings()

_RETRIABLE_STATUS = {408, 429, 500, 502, 503, 504}


class LLMError(ProviderError):
    """Text generation failed after retries, or failed non-retriably."""

    kind = "llm"

    def __init__(self, message: str, status_code: int = 0, retriable: bool = False):
        super().__init__(message, status_code=status_code, provider="gemini-text")
        self.retriable = retriable


def _extract_text(data: dict[str, Any]) -> str:
    candidates = data.get("candidates") or []
    if not candidates:
        raise MalformedResponse("Gemini returned no candidates", provider="gemini-text")
    parts = (candidates[0].get("content") or {}).get("parts") or []
    text = "".join(p.get("text", "") for p in parts if isinstance(p, dict))
    if not text:
        raise MalformedResponse("Gemini returned an empty text response", provider="gemini-text")
    return text


async def llm_call(
    prompt: str,
    *,
    http_client: httpx.AsyncClient | None = None,
    json_mode: bool = False,
    model: str | None = None,
    temperature: float = 0.9,
    caller: str = "unknown",
    sleep=asyncio.sleep,
) -> str:
    """Send one prompt to Gemini ``generateContent`` and return the text.

    Args:
        prompt: Full user prompt (lore + roster + instructions).
        http_client: Shared client; a temporary one is opened when omitted.
        json_mode: Ask for ``application/json`` output.
        model: Override ``GEMINI_TEXT_MODEL``.
        caller: Identifier for logging.

    Raises:
        ConfigurationError: ``GEMINI_API_KEY`` is not set.
        LLMError: All retries exhausted, or a non-retriable HTTP error.
    """
    if not settings.GEMINI_API_KEY:
        raise ConfigurationError("GEMINI_API_KEY is not set")

    model = model or settings.GEMINI_TEXT_MODEL
    url = f"{settings.GEMINI_API_BASE}/models/{model}:generateContent"
    headers = {
        "Content-Type": "application/json",
        "x-goog-api-key": settings.GEMINI_API_KEY,
    }
    body: dict[str, Any] = {
        "contents": [{"parts": [{"text": prompt}]}],
        "generationConfig": {"temperature": temperature},
    }
    if json_mode:
        body["generationConfig"]["responseMimeType"] = "application/json"

    own_client = http_client is None
    client = http_client or httpx.AsyncClient(timeout=settings.PROVIDER_TIMEOUT)
    max_retries = max(settings.LLM_MAX_RETRIES, 1)
    last_error: LLMError | None = None

    try:
        for attempt in range(1, max_retries + 1):
            logger.info(
                "[%s] LLM call attempt %d/%d model=%s key=%s json=%s",
                caller, attempt, max_retries, model, mask_key(settings.GEMINI_API_KEY), json_mode,
            )
            backoff = min(2 ** attempt, 30)
            try:
                response = await client.post(url, headers=headers, json=body)
            except httpx.TimeoutException:
                logger.warning("[%s] Timeout on attempt %d, backing off %ds...", caller, attempt, backoff)
                last_error = LLMError("LLM call timed out", status_code=408, retriable=True)
                if attempt < max_retries:
                    await sleep(backoff)
                continue
            except httpx.HTTPError as e:
                raise LLMError(f"LLM request failed: {e}") from e

            if response.status_code in _RETRIABLE_STATUS:
                logger.warning(
                    "[%s] HTTP %d (retriable), backing off %ds...",
                    caller, response.status_code, backoff,
                )
                last_error = LLMError(
                    f"HTTP {response.status_code}", status_code=response.status_code, retriable=True,
                )
                if attempt < max_retries:
                    await sleep(backoff)
                continue

            if not response.is_success:
                logger.error("[%s] HTTP error %d: %s", caller, response.status_code, response.text[:300])
                raise LLMError(
                    f"LLM HTTP error: {response.status_code}", status_code=response.status_code,
                )

            try:
                data = response.json()
            except ValueError as e:
                raise MalformedResponse("Gemini returned non-JSON body", provider="gemini-text") from e
            content = _extract_text(data)
            logger.info("[%s] LLM response OK, length=%d", caller, len(content))
            return content
    finally:
        if own_client:
            await client.aclose()

    raise last_error or LLMError("All LLM retry attempts exhausted")
