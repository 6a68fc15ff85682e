"""Reference asset fetcher.

Loads the image a video (or image) request should be conditioned on. A
reference is an enhancement, so every failure here degrades to "no
reference" with a warning instead of aborting the generation.
"""

from __future__ import annotations

import logging
import mimetypes

import httpx

from pocketrot.errors import ReferenceFetchError
from pocketrot.services.artifact_store import ArtifactStore
from pocketrot.services.jobs import SubjectRef
from pocketrot.services.providers.base import ReferenceAsset
from pocketrot.services.record_repository import GenerationRecordRepository

logger = logging.getLogger(__name__)

PLACEHOLDER_TAG = "placeholder"


class ReferenceAssetFetcher:
    def __init__(
        self,
        repository: GenerationRecordRepository,
        store: ArtifactStore,
        http_client: httpx.AsyncClient,
    ):
        self.repository = repository
        self.store = store
        self.http_client = http_client

    async def fetch(self, subject: SubjectRef, asset_id: int | None = None) -> ReferenceAsset | None:
        """Return the reference asset for ``subject``, or None on any failure."""
        try:
            return await self._fetch(subject, asset_id)
        except Exception as e:
            logger.warning(
                "Could not fetch reference image for %s, proceeding without it: %s",
                subject.label, e,
            )
            return None

    async def _fetch(self, subject: SubjectRef, asset_id: int | None) -> ReferenceAsset | None:
        if asset_id is not None:
            record = await self.repository.get_image(asset_id)
            if record is None:
                raise ReferenceFetchError(f"Reference image {asset_id} not found")
        else:
            record = await self.repository.latest_image(subject)

        if record is None:
            logger.info("No reference image found for %s", subject.label)
            return None
        if record.generated_by == PLACEHOLDER_TAG:
            logger.info("Latest image for %s is a placeholder, skipping reference", subject.label)
            return None

        logger.info("Fetching reference image %s for %s: %s", record.id, subject.label, record.url)
        if self.store.owns(record.url):
            data = await self.store.load(record.url)
            mime_type = mimetypes.guess_type(record.url)[0] or "image/png"
            return ReferenceAsset(data=data, mime_type=mime_type, source_url=record.url)

        try:
            resp = await self.http_client.get(record.url, follow_redirects=True)
        except httpx.HTTPError as e:
            raise ReferenceFetchError(f"Reference download failed: {e}") from e
        if not resp.is_success:
            raise ReferenceFetchError(f"Reference download returned HTTP {resp.status_code}")

        mime_type = resp.headers.get("content-type", "").split(";", 1)[0].strip()
        if not mime_type.startswith("image/"):
            mime_type = mimetypes.guess_type(record.url)[0] or "image/png"
        return ReferenceAsset(data=resp.content, mime_type=mime_type, source_url=record.url)
