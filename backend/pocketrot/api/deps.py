from __future__ import annotations
"""Shared FastAPI dependencies: operator auth, cron auth, orchestrator wiring."""

import secrets

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from pocketrot.config import get_settings
from pocketrot.database import get_db
from pocketrot.errors import ConfigurationError, Unauthorized
from pocketrot.services.orchestrator import GenerationOrchestrator, PollPolicy
from pocketrot.services.record_repository import GenerationRecordRepository
from pocketrot.services.reference_fetcher import ReferenceAssetFetcher

settings = get_settings()

SESSION_COOKIE = "sid"


def _bearer(request: Request) -> str:
    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer":
        return ""
    return token.strip()


def _matches(candidate: str, expected: str) -> bool:
    return bool(candidate) and secrets.compare_digest(candidate.encode(), expected.encode())


def is_operator(request: Request) -> bool:
    expected = settings.OPERATOR_TOKEN
    if not expected:
        raise ConfigurationError("OPERATOR_TOKEN is not set")
    return _matches(_bearer(request), expected) or _matches(
        request.cookies.get(SESSION_COOKIE, ""), expected
    )


async def require_operator(request: Request) -> None:
    """Reject callers without the operator token (bearer header or session cookie)."""
    if not is_operator(request):
        raise Unauthorized("Unauthorized")


async def require_cron(request: Request) -> None:
    if not settings.CRON_SECRET:
        raise ConfigurationError("CRON_SECRET is not set")
    if not _matches(_bearer(request), settings.CRON_SECRET):
        raise Unauthorized("Unauthorized")


def get_orchestrator(
    request: Request, db: AsyncSession = Depends(get_db)
) -> GenerationOrchestrator:
    """Build a per-request orchestrator from the process-wide collaborators on app.state."""
    state = request.app.state
    repository = GenerationRecordRepository(db)
    return GenerationOrchestrator(
        image_adapter=state.image_adapter,
        video_adapter=state.video_adapter,
        store=state.artifact_store,
        repository=repository,
        fetcher=ReferenceAssetFetcher(repository, state.artifact_store, state.http_client),
        poll_policy=PollPolicy(
            interval=settings.POLL_INTERVAL_SECONDS,
            max_attempts=settings.POLL_MAX_ATTEMPTS,
        ),
        subject_lock=getattr(state, "subject_lock", None),
        placeholder_base=settings.PLACEHOLDER_IMAGE_BASE,
    )
