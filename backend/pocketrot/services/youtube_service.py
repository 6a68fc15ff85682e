"""YouTube publishing: OAuth2 code exchange, resumable upload, upload bookkeeping.

The upload itself uses google-api-python-client, which is blocking; callers
run it from a Celery worker or through ``asyncio.to_thread``.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable
from urllib.parse import urlencode

import httpx
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.http import MediaIoBaseUpload
from sqlalchemy.ext.asyncio import AsyncSession

from pocketrot.config import Settings
from pocketrot.errors import ConfigurationError, MalformedResponse, ProviderError
from pocketrot.models import UploadStatus, Video

logger = logging.getLogger(__name__)

YOUTUBE_SCOPES = [
    "https://www.googleapis.com/auth/youtube.upload",
    "https://www.googleapis.com/auth/youtube",
]
AUTH_URI = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URI = "https://oauth2.googleapis.com/token"
WATCH_URL = "https://www.youtube.com/watch?v={}"
UPLOAD_CHUNK_SIZE = 8 * 1024 * 1024


@dataclass
class UploadOptions:
    title: str
    description: str
    tags: list[str] = field(default_factory=list)
    category_id: str = "24"
    privacy_status: str = "private"


@dataclass(frozen=True)
class UploadResult:
    video_id: str
    video_url: str


class YouTubePublisher:
    """Wraps the YouTube Data API v3 for a single channel.

    ``service_factory`` builds the API client from credentials; tests swap
    it for a fake.
    """

    def __init__(self, settings: Settings, service_factory: Callable[[Credentials], Any] | None = None):
        self.settings = settings
        self._service_factory = service_factory or _build_service

    def _require_client(self) -> None:
        if not self.settings.YOUTUBE_CLIENT_ID or not self.settings.YOUTUBE_CLIENT_SECRET:
            raise ConfigurationError("YOUTUBE_CLIENT_ID and YOUTUBE_CLIENT_SECRET must be set")

    def auth_url(self) -> str:
        """Consent URL that yields an offline (refreshable) token."""
        self._require_client()
        params = {
            "client_id": self.settings.YOUTUBE_CLIENT_ID,
            "redirect_uri": self.settings.YOUTUBE_REDIRECT_URI,
            "response_type": "code",
            "scope": " ".join(YOUTUBE_SCOPES),
            "access_type": "offline",
            "prompt": "consent",
        }
        return f"{AUTH_URI}?{urlencode(params)}"

    async def exchange_code(self, code: str, http_client: httpx.AsyncClient) -> dict[str, Any]:
        """Trade a one-time authorization code for access + refresh tokens."""
        self._require_client()
        try:
            resp = await http_client.post(
                TOKEN_URI,
                data={
                    "code": code,
                    "client_id": self.settings.YOUTUBE_CLIENT_ID,
                    "client_secret": self.settings.YOUTUBE_CLIENT_SECRET,
                    "redirect_uri": self.settings.YOUTUBE_REDIRECT_URI,
                    "grant_type": "authorization_code",
                },
            )
        except httpx.HTTPError as e:
            raise ProviderError(f"Token exchange failed: {e}", provider="youtube") from e
        if not resp.is_success:
            raise ProviderError(
                f"Token exchange failed: {resp.status_code} - {resp.text[:300]}",
                status_code=resp.status_code,
                provider="youtube",
            )
        tokens = resp.json()
        if not tokens.get("refresh_token"):
            logger.warning("Token exchange returned no refresh_token; was consent forced?")
        return tokens

    def credentials(self) -> Credentials:
        self._require_client()
        if not self.settings.YOUTUBE_REFRESH_TOKEN:
            raise ConfigurationError(
                "YOUTUBE_REFRESH_TOKEN is not set; authorize via /api/youtube/auth first"
            )
        return Credentials(
            token=None,
            refresh_token=self.settings.YOUTUBE_REFRESH_TOKEN,
            token_uri=TOKEN_URI,
            client_id=self.settings.YOUTUBE_CLIENT_ID,
            client_secret=self.settings.YOUTUBE_CLIENT_SECRET,
            scopes=YOUTUBE_SCOPES,
        )

    def upload(self, video_bytes: bytes, options: UploadOptions) -> UploadResult:
        """Resumable upload of ``video_bytes``. Blocking."""
        service = self._service_factory(self.credentials())
        body = {
            "snippet": {
                "title": options.title,
                "description": options.description,
                "tags": options.tags,
                "categoryId": options.category_id,
            },
            "status": {"privacyStatus": options.privacy_status},
        }
        media = MediaIoBaseUpload(
            io.BytesIO(video_bytes),
            mimetype="video/mp4",
            chunksize=UPLOAD_CHUNK_SIZE,
            resumable=True,
        )
        request = service.videos().insert(part="snippet,status", body=body, media_body=media)

        response = None
        while response is None:
            status, response = request.next_chunk()
            if status:
                logger.info("YouTube upload progress: %.1f%%", status.progress() * 100)

        video_id = (response or {}).get("id")
        if not video_id:
            raise MalformedResponse("No video ID returned from YouTube", provider="youtube")

        url = WATCH_URL.format(video_id)
        logger.info("Video uploaded to YouTube: %s", url)
        return UploadResult(video_id=video_id, video_url=url)


def _build_service(credentials: Credentials):
    return build("youtube", "v3", credentials=credentials, cache_discovery=False)


def default_upload_options(video: Video, settings: Settings, overrides: dict[str, Any] | None = None) -> UploadOptions:
    """Title/description defaults derived from the scenario, with caller overrides."""
    overrides = {k: v for k, v in (overrides or {}).items() if v is not None}
    scenario = video.scenario
    title = scenario.title if scenario is not None else f"PocketRot #{video.id}"
    description = scenario.description if scenario is not None else ""
    return UploadOptions(
        title=overrides.get("title", title)[:100],
        description=overrides.get("description", f"{description}\n\n#PocketRot #Shorts"),
        tags=overrides.get("tags", ["PocketRot", "AI", "Shorts"]),
        category_id=settings.YOUTUBE_CATEGORY_ID,
        privacy_status=overrides.get("privacy_status", settings.YOUTUBE_PRIVACY_STATUS),
    )


# ---------------------------------------------------------------------------
# Upload bookkeeping
# ---------------------------------------------------------------------------

async def mark_uploading(db: AsyncSession, video: Video) -> None:
    video.upload_status = UploadStatus.UPLOADING.value
    video.upload_error = None
    await db.flush()


async def mark_completed(db: AsyncSession, video: Video, result: UploadResult) -> None:
    video.upload_status = UploadStatus.COMPLETED.value
    video.youtube_id = result.video_id
    video.youtube_url = result.video_url
    video.uploaded_at = datetime.now(timezone.utc).replace(tzinfo=None)
    video.upload_error = None
    await db.flush()


async def mark_failed(db: AsyncSession, video: Video, error: str) -> None:
    video.upload_status = UploadStatus.FAILED.value
    video.upload_error = error[:2000]
    await db.flush()
