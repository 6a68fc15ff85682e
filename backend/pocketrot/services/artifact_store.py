from __future__ import annotations
"""Artifact store: durable storage for generated images and videos.

Two backends:
  local  files under MEDIA_VOLUME, served by the app at /media
  gcs    a Google Cloud Storage bucket

Object names are ``{type}s/{type}-{id}-{time_ns}-{token}.{ext}``. The random
token keeps two uploads for the same subject distinct even when the clock
returns the same value, and both backends refuse to overwrite.
"""

import asyncio
import json
import logging
import mimetypes
import os
import time
import uuid
from abc import ABC, abstractmethod
from collections.abc import Callable

from pocketrot.config import Settings
from pocketrot.errors import ArtifactStoreError, ConfigurationError
from pocketrot.services.jobs import SubjectRef

logger = logging.getLogger(__name__)

_EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/webp": ".webp",
    "video/mp4": ".mp4",
    "video/webm": ".webm",
    "video/quicktime": ".mov",
}


def _default_token() -> str:
    return uuid.uuid4().hex[:12]


def extension_for(content_type: str) -> str:
    base = content_type.split(";", 1)[0].strip().lower()
    return _EXTENSIONS.get(base) or mimetypes.guess_extension(base) or ".bin"


class ArtifactStore(ABC):
    """Write-once object storage returning public URLs."""

    def __init__(
        self,
        *,
        clock: Callable[[], int] = time.time_ns,
        token_factory: Callable[[], str] = _default_token,
    ):
        self._clock = clock
        self._token_factory = token_factory

    def object_name(self, subject: SubjectRef, content_type: str) -> str:
        return (
            f"{subject.type.value}s/{subject.label}-{self._clock()}-"
            f"{self._token_factory()}{extension_for(content_type)}"
        )

    @abstractmethod
    async def store(self, data: bytes, content_type: str, subject: SubjectRef) -> str:
        """Upload ``data`` under a fresh name and return its URL."""
        ...

    @abstractmethod
    def owns(self, url: str) -> bool:
        ...

    @abstractmethod
    async def load(self, url: str) -> bytes:
        """Read back an artifact previously returned by ``store``."""
        ...


class LocalArtifactStore(ArtifactStore):
    """Files under a media directory, exposed at ``base_url``."""

    def __init__(self, root: str, base_url: str, **kwargs):
        super().__init__(**kwargs)
        self.root = root
        self.base_url = base_url.rstrip("/")

    async def store(self, data: bytes, content_type: str, subject: SubjectRef) -> str:
        name = self.object_name(subject, content_type)
        path = os.path.join(self.root, *name.split("/"))
        try:
            await asyncio.to_thread(_write_new_file, path, data)
        except FileExistsError as e:
            raise ArtifactStoreError(f"Refusing to overwrite existing artifact {name}") from e
        except OSError as e:
            raise ArtifactStoreError(f"Could not write artifact {name}: {e}") from e

        logger.info("Artifact stored: %s (%d bytes)", name, len(data))
        return f"{self.base_url}/{name}"

    def owns(self, url: str) -> bool:
        return url.startswith(f"{self.base_url}/")

    async def load(self, url: str) -> bytes:
        if not self.owns(url):
            raise ArtifactStoreError(f"URL is not served by this store: {url}")
        rel = url[len(self.base_url) + 1:]
        path = os.path.normpath(os.path.join(self.root, *rel.split("/")))
        if not path.startswith(os.path.normpath(self.root) + os.sep):
            raise ArtifactStoreError(f"Artifact path escapes media root: {url}")
        try:
            return await asyncio.to_thread(_read_file, path)
        except OSError as e:
            raise ArtifactStoreError(f"Could not read artifact {rel}: {e}") from e


class GCSArtifactStore(ArtifactStore):
    """Google Cloud Storage bucket with public object URLs."""

    def __init__(self, bucket_name: str, credentials_json: str = "", client=None, **kwargs):
        super().__init__(**kwargs)
        self.bucket_name = bucket_name
        self._credentials_json = credentials_json
        self._client = client

    @property
    def _public_prefix(self) -> str:
        return f"https://storage.googleapis.com/{self.bucket_name}/"

    def _get_client(self):
        if self._client is None:
            from google.cloud import storage
            from google.oauth2 import service_account

            if not self._credentials_json:
                self._client = storage.Client()
            else:
                info = json.loads(self._credentials_json)
                credentials = service_account.Credentials.from_service_account_info(info)
                self._client = storage.Client(credentials=credentials, project=info.get("project_id"))
        return self._client

    def _bucket(self):
        if not self.bucket_name:
            raise ConfigurationError("GCS_BUCKET is not set (ARTIFACT_BACKEND=gcs)")
        return self._get_client().bucket(self.bucket_name)

    async def store(self, data: bytes, content_type: str, subject: SubjectRef) -> str:
        from google.api_core import exceptions as gcs_exceptions

        name = self.object_name(subject, content_type)
        blob = self._bucket().blob(name)
        try:
            # if_generation_match=0: only create, never replace
            await asyncio.to_thread(
                blob.upload_from_string, data, content_type=content_type, if_generation_match=0,
            )
        except gcs_exceptions.PreconditionFailed as e:
            raise ArtifactStoreError(f"Refusing to overwrite existing artifact {name}") from e
        except gcs_exceptions.GoogleAPIError as e:
            raise ArtifactStoreError(f"GCS upload failed for {name}: {e}") from e

        logger.info("Artifact uploaded to gs://%s/%s (%d bytes)", self.bucket_name, name, len(data))
        return f"{self._public_prefix}{name}"

    def owns(self, url: str) -> bool:
        return bool(self.bucket_name) and url.startswith(self._public_prefix)

    async def load(self, url: str) -> bytes:
        from google.api_core import exceptions as gcs_exceptions

        if not self.owns(url):
            raise ArtifactStoreError(f"URL is not served by this store: {url}")
        blob = self._bucket().blob(url[len(self._public_prefix):])
        try:
            return await asyncio.to_thread(blob.download_as_bytes)
        except gcs_exceptions.GoogleAPIError as e:
            raise ArtifactStoreError(f"GCS download failed for {url}: {e}") from e


def _write_new_file(path: str, data: bytes) -> None:
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "xb") as f:
        f.write(data)


def _read_file(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


def build_artifact_store(settings: Settings) -> ArtifactStore:
    """Create the store selected by ARTIFACT_BACKEND."""
    backend = settings.ARTIFACT_BACKEND.strip().lower()
    if backend == "local":
        return LocalArtifactStore(settings.MEDIA_VOLUME, settings.MEDIA_BASE_URL)
    if backend == "gcs":
        return GCSArtifactStore(settings.GCS_BUCKET, settings.GCP_CREDENTIALS)
    raise ConfigurationError(f"Unknown ARTIFACT_BACKEND={settings.ARTIFACT_BACKEND!r} (expected local or gcs)")
