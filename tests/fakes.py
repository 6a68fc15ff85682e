"""In-memory stand-ins for the orchestrator's collaborators."""

from __future__ import annotations

import itertools
from types import SimpleNamespace

from pocketrot.errors import ArtifactStoreError, NotFoundError
from pocketrot.services.artifact_store import ArtifactStore
from pocketrot.services.jobs import MediaKind, SubjectRef, SubjectType
from pocketrot.services.providers.base import (
    AsyncHandle,
    PollResult,
    ProviderAdapter,
    ProviderMode,
    SyncResult,
)


class FakeRepository:
    def __init__(self, subjects=()):
        self.subjects = set(subjects)
        self.images: list[SimpleNamespace] = []
        self.videos: list[SimpleNamespace] = []
        self._ids = itertools.count(1)

    async def get_subject(self, subject: SubjectRef):
        if subject not in self.subjects:
            raise NotFoundError(f"{subject.type.value.capitalize()} {subject.id} not found")
        return SimpleNamespace(id=subject.id)

    async def record_outcome(
        self, subject, url, prompt_text, generated_by, approved=False, *, media=MediaKind.IMAGE, duration=None,
    ):
        record = SimpleNamespace(
            id=next(self._ids),
            scenario_id=subject.id if subject.type is SubjectType.SCENARIO else None,
            character_id=subject.id if subject.type is SubjectType.CHARACTER else None,
            url=url,
            prompt=prompt_text,
            generated_by=generated_by,
            approved=approved,
            duration=duration,
        )
        (self.videos if media is MediaKind.VIDEO else self.images).append(record)
        return record

    def add_image(self, subject: SubjectRef, url: str, generated_by: str = "gemini-2.5-flash-image"):
        record = SimpleNamespace(
            id=next(self._ids),
            scenario_id=subject.id if subject.type is SubjectType.SCENARIO else None,
            character_id=subject.id if subject.type is SubjectType.CHARACTER else None,
            url=url,
            prompt="earlier prompt",
            generated_by=generated_by,
            approved=False,
        )
        self.images.append(record)
        return record

    async def latest_image(self, subject: SubjectRef):
        field = "scenario_id" if subject.type is SubjectType.SCENARIO else "character_id"
        matches = [i for i in self.images if getattr(i, field) == subject.id]
        return matches[-1] if matches else None

    async def get_image(self, image_id: int):
        return next((i for i in self.images if i.id == image_id), None)


class MemoryStore(ArtifactStore):
    BASE = "https://artifacts.test/"

    def __init__(self, fail: bool = False, **kwargs):
        super().__init__(**kwargs)
        self.objects: dict[str, bytes] = {}
        self.fail = fail

    async def store(self, data, content_type, subject):
        if self.fail:
            raise ArtifactStoreError("bucket unavailable")
        url = self.BASE + self.object_name(subject, content_type)
        self.objects[url] = data
        return url

    def owns(self, url):
        return url.startswith(self.BASE)

    async def load(self, url):
        try:
            return self.objects[url]
        except KeyError:
            raise ArtifactStoreError(f"missing {url}")


class SyncAdapter(ProviderAdapter):
    """Image adapter that returns ``result`` or raises ``error``."""

    name = "fake-image"
    mode = ProviderMode.SYNC

    def __init__(self, result: bytes = b"\x89PNG fake", error: Exception | None = None):
        super().__init__(http_client=None)
        self.result = result
        self.error = error
        self.calls: list[dict] = []

    async def generate(self, prompt_text, reference=None, *, aspect_ratio=None):
        self.calls.append({"prompt": prompt_text, "reference": reference, "aspect_ratio": aspect_ratio})
        if self.error is not None:
            raise self.error
        return SyncResult(data=self.result, content_type="image/png")


class AsyncAdapter(ProviderAdapter):
    """Video adapter whose poll results are scripted.

    ``polls`` is consumed in order; the last entry repeats forever.
    """

    name = "fake-video"
    mode = ProviderMode.ASYNC
    duration_seconds = 8

    def __init__(self, polls=None, generate_error: Exception | None = None):
        super().__init__(http_client=None)
        self.polls = list(polls or [PollResult(done=True, locator="https://provider.test/v.mp4")])
        self.generate_error = generate_error
        self.generate_calls: list[dict] = []
        self.poll_count = 0
        self.fetched: list[str] = []

    async def generate(self, prompt_text, reference=None, *, aspect_ratio=None):
        self.generate_calls.append({"prompt": prompt_text, "reference": reference, "aspect_ratio": aspect_ratio})
        if self.generate_error is not None:
            raise self.generate_error
        return AsyncHandle(operation="operations/fake-1")

    async def poll(self, handle):
        index = min(self.poll_count, len(self.polls) - 1)
        self.poll_count += 1
        return self.polls[index]

    async def fetch(self, locator):
        self.fetched.append(locator)
        return SyncResult(data=b"fake-mp4", content_type="video/mp4")


class RaisingFetcher:
    async def fetch(self, subject, asset_id=None):
        raise RuntimeError("reference backend exploded")


class NullFetcher:
    def __init__(self):
        self.calls = []

    async def fetch(self, subject, asset_id=None):
        self.calls.append((subject, asset_id))
        return None


class SleepRecorder:
    """Drop-in for ``asyncio.sleep`` that returns immediately."""

    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds):
        self.calls.append(seconds)
