from __future__ import annotations
"""YouTube OAuth helper: hand out the consent URL, exchange the returned code."""

from fastapi import APIRouter, Depends, Request

from pocketrot.api.deps import require_operator
from pocketrot.config import get_settings
from pocketrot.services.youtube_service import YouTubePublisher

router = APIRouter()
settings = get_settings()


@router.get("/auth", dependencies=[Depends(require_operator)])
async def youtube_auth(request: Request, code: str | None = None):
    """Without ``code``: return the authorization URL. With it: return the tokens."""
    publisher = YouTubePublisher(settings)

    if code:
        tokens = await publisher.exchange_code(code, request.app.state.http_client)
        return {
            "success": True,
            "message": "Authorization successful! Store refresh_token as YOUTUBE_REFRESH_TOKEN",
            "tokens": {
                "access_token": tokens.get("access_token"),
                "refresh_token": tokens.get("refresh_token"),
                "scope": tokens.get("scope"),
                "token_type": tokens.get("token_type"),
                "expires_in": tokens.get("expires_in"),
            },
        }

    return {
        "message": "Visit this URL to authorize the application",
        "auth_url": publisher.auth_url(),
    }
