from __future__ import annotations
"""Metrics API: generation outcome counters."""

from fastapi import APIRouter

from pocketrot.services.orchestrator import get_generation_metrics

router = APIRouter()


@router.get("/generation")
async def generation_metrics():
    """Return per-media counters (completed, placeholders, failed, timed out)."""
    return {"services": get_generation_metrics().get_metrics()}
