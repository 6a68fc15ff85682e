from __future__ import annotations
"""Generation job orchestrator.

Drives one generation request through the provider adapter (polling async
providers to completion), the artifact store and the record repository, and
maps every failure onto the error taxonomy so callers always get a
structured outcome.

Outcome rules:
  image  exactly one record, either the real asset or a placeholder when the
         provider or store step fails after the prompt was built
  video  a record only when both the provider call and the upload
         succeed; no placeholder
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote_plus

from pocketrot.errors import (
    ConfigurationError,
    GenerationTimeout,
    MalformedResponse,
    NotFoundError,
    PocketRotError,
    ProviderError,
)
from pocketrot.services.artifact_store import ArtifactStore
from pocketrot.services.jobs import (
    GenerationRequest,
    JobStatus,
    MediaKind,
    ProviderJob,
    SubjectRef,
)
from pocketrot.services.providers.base import (
    AsyncHandle,
    ProviderAdapter,
    ReferenceAsset,
    SyncResult,
)
from pocketrot.services.record_repository import GenerationRecordRepository
from pocketrot.services.reference_fetcher import PLACEHOLDER_TAG, ReferenceAssetFetcher
from pocketrot.services.subject_lock import SubjectLock

logger = logging.getLogger(__name__)

DEFAULT_PLACEHOLDER_BASE = "https://placehold.co/1024x576/1a1a2e/e94560"


@dataclass
class PollPolicy:
    """Fixed-interval polling bounded by an attempt cap."""

    interval: float = 5.0
    max_attempts: int = 60


@dataclass
class GenerationOutcome:
    """Structured result handed back to API callers and tasks."""

    success: bool
    record: Any = None
    error: PocketRotError | None = None
    warning: str | None = None
    job: ProviderJob | None = None


@dataclass
class _MediaCounters:
    total_calls: int = 0
    completed: int = 0
    placeholders: int = 0
    failed: int = 0
    timed_out: int = 0
    total_latency_ms: int = 0


@dataclass
class GenerationMetrics:
    """Process-wide counters for /api/metrics."""

    counters: dict[str, _MediaCounters] = field(
        default_factory=lambda: {m.value: _MediaCounters() for m in MediaKind}
    )

    def record(self, media: MediaKind, outcome: GenerationOutcome, latency_ms: int) -> None:
        c = self.counters[media.value]
        c.total_calls += 1
        c.total_latency_ms += latency_ms
        if outcome.success and outcome.warning:
            c.placeholders += 1
        elif outcome.success:
            c.completed += 1
        elif isinstance(outcome.error, GenerationTimeout):
            c.timed_out += 1
        else:
            c.failed += 1

    def get_metrics(self) -> list[dict[str, Any]]:
        return [
            {
                "service": f"{media}_generation",
                "total_calls": c.total_calls,
                "completed": c.completed,
                "placeholders": c.placeholders,
                "failed": c.failed,
                "timed_out": c.timed_out,
                "error_rate": round((c.failed + c.timed_out) / max(c.total_calls, 1), 3),
                "avg_latency_ms": round(c.total_latency_ms / max(c.total_calls, 1)),
            }
            for media, c in self.counters.items()
        ]

    def reset(self) -> None:
        for media in self.counters:
            self.counters[media] = _MediaCounters()


_metrics = GenerationMetrics()


def get_generation_metrics() -> GenerationMetrics:
    """Return the process-wide metrics singleton."""
    return _metrics


def placeholder_url(subject: SubjectRef, base: str = DEFAULT_PLACEHOLDER_BASE) -> str:
    """Deterministic stand-in image URL for a subject."""
    label = f"{subject.type.value.capitalize()} {subject.id}"
    return f"{base.rstrip('/')}?text={quote_plus(label)}"


class GenerationOrchestrator:
    """Runs image and video generation requests end to end.

    Collaborators are injected; one orchestrator is built per HTTP request
    (the repository is bound to that request's DB session) while adapters,
    the store and the HTTP client live for the whole process.
    """

    def __init__(
        self,
        *,
        image_adapter: ProviderAdapter,
        video_adapter: ProviderAdapter,
        store: ArtifactStore,
        repository: GenerationRecordRepository,
        fetcher: ReferenceAssetFetcher,
        poll_policy: PollPolicy | None = None,
        subject_lock: SubjectLock | None = None,
        placeholder_base: str = DEFAULT_PLACEHOLDER_BASE,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        metrics: GenerationMetrics | None = None,
    ):
        self.image_adapter = image_adapter
        self.video_adapter = video_adapter
        self.store = store
        self.repository = repository
        self.fetcher = fetcher
        self.poll_policy = poll_policy or PollPolicy()
        self.subject_lock = subject_lock
        self.placeholder_base = placeholder_base
        self._sleep = sleep
        self.metrics = metrics or _metrics

    # ------------------------------------------------------------------
    # Image
    # ------------------------------------------------------------------

    async def generate_image(self, request: GenerationRequest) -> GenerationOutcome:
        start = time.monotonic()
        outcome = await self._generate_image(request)
        self.metrics.record(MediaKind.IMAGE, outcome, int((time.monotonic() - start) * 1000))
        return outcome

    async def _generate_image(self, request: GenerationRequest) -> GenerationOutcome:
        adapter = self.image_adapter
        job = ProviderJob(provider=adapter.name, mode=adapter.mode.value)
        subject = request.subject

        try:
            await self.repository.get_subject(subject)
        except NotFoundError as e:
            return GenerationOutcome(success=False, error=e, job=job)

        logger.info("Generating image for %s via %s", subject.label, adapter.name)

        reference = None
        if request.reference_asset_id is not None:
            reference = await self._fetch_reference(request)

        try:
            artifact = await self._run_job(adapter, job, request, reference)
            url = await self.store.store(artifact.data, artifact.content_type, subject)
        except ConfigurationError as e:
            job.status = JobStatus.FAILED
            logger.error("Image generation misconfigured for %s: %s", subject.label, e)
            return GenerationOutcome(success=False, error=e, job=job)
        except PocketRotError as e:
            return await self._record_placeholder(request, job, e)
        except Exception as e:
            logger.exception("Unexpected image generation failure for %s", subject.label)
            return await self._record_placeholder(request, job, ProviderError(str(e), provider=adapter.name))

        try:
            record = await self.repository.record_outcome(
                subject, url, request.prompt_text, adapter.name, media=MediaKind.IMAGE,
            )
        except Exception as e:
            job.status = JobStatus.FAILED
            logger.exception("Could not record image for %s, stored artifact orphaned: %s", subject.label, url)
            return GenerationOutcome(
                success=False,
                error=ProviderError(f"Could not record generated image: {e}", provider=adapter.name),
                job=job,
            )
        return GenerationOutcome(success=True, record=record, job=job)

    async def _record_placeholder(
        self, request: GenerationRequest, job: ProviderJob, error: PocketRotError,
    ) -> GenerationOutcome:
        if job.status not in (JobStatus.FAILED, JobStatus.TIMED_OUT):
            job.status = JobStatus.FAILED
        logger.warning(
            "Image generation failed for %s, using placeholder: %s",
            request.subject.label, error,
        )
        record = await self.repository.record_outcome(
            request.subject,
            placeholder_url(request.subject, self.placeholder_base),
            request.prompt_text,
            PLACEHOLDER_TAG,
            media=MediaKind.IMAGE,
        )
        return GenerationOutcome(
            success=True,
            record=record,
            error=error,
            warning="Image generation failed, using placeholder",
            job=job,
        )

    # ------------------------------------------------------------------
    # Video
    # ------------------------------------------------------------------

    async def generate_video(self, request: GenerationRequest) -> GenerationOutcome:
        start = time.monotonic()
        outcome = await self._generate_video(request)
        self.metrics.record(MediaKind.VIDEO, outcome, int((time.monotonic() - start) * 1000))
        return outcome

    async def _generate_video(self, request: GenerationRequest) -> GenerationOutcome:
        adapter = self.video_adapter
        job = ProviderJob(provider=adapter.name, mode=adapter.mode.value)
        subject = request.subject

        try:
            await self.repository.get_subject(subject)
            if self.subject_lock is None:
                record = await self._produce_video(adapter, job, request)
            else:
                async with self.subject_lock.hold(subject, MediaKind.VIDEO.value):
                    record = await self._produce_video(adapter, job, request)
        except PocketRotError as e:
            if job.status is not JobStatus.TIMED_OUT:
                job.status = JobStatus.FAILED
            logger.error("Video generation failed for %s: %s", subject.label, e)
            return GenerationOutcome(success=False, error=e, job=job)
        except Exception as e:
            job.status = JobStatus.FAILED
            logger.exception("Unexpected video generation failure for %s", subject.label)
            return GenerationOutcome(
                success=False, error=ProviderError(str(e), provider=adapter.name), job=job,
            )

        return GenerationOutcome(success=True, record=record, job=job)

    async def _produce_video(
        self, adapter: ProviderAdapter, job: ProviderJob, request: GenerationRequest,
    ):
        logger.info("Generating video for %s via %s", request.subject.label, adapter.name)
        reference = await self._fetch_reference(request)
        artifact = await self._run_job(adapter, job, request, reference)
        url = await self.store.store(artifact.data, artifact.content_type, request.subject)
        try:
            return await self.repository.record_outcome(
                request.subject,
                url,
                request.prompt_text,
                adapter.name,
                media=MediaKind.VIDEO,
                duration=adapter.duration_seconds,
            )
        except Exception:
            logger.error("Could not record video for %s, stored artifact orphaned: %s", request.subject.label, url)
            raise

    # ------------------------------------------------------------------
    # Shared steps
    # ------------------------------------------------------------------

    async def _fetch_reference(self, request: GenerationRequest) -> ReferenceAsset | None:
        try:
            return await self.fetcher.fetch(request.subject, request.reference_asset_id)
        except Exception as e:
            logger.warning(
                "Reference fetch raised for %s, proceeding without reference: %s",
                request.subject.label, e,
            )
            return None

    async def _run_job(
        self,
        adapter: ProviderAdapter,
        job: ProviderJob,
        request: GenerationRequest,
        reference: ReferenceAsset | None,
    ) -> SyncResult:
        """Call the adapter and, for async providers, poll to completion."""
        job.status = JobStatus.RUNNING
        result = await adapter.generate(
            request.prompt_text, reference, aspect_ratio=request.aspect_ratio,
        )
        if isinstance(result, SyncResult):
            job.status = JobStatus.DONE
            return result

        job.operation_handle = result.operation
        locator = await self.poll_until_complete(adapter, job, result)
        artifact = await adapter.fetch(locator)
        job.status = JobStatus.DONE
        return artifact

    async def poll_until_complete(
        self, adapter: ProviderAdapter, job: ProviderJob, handle: AsyncHandle,
    ) -> str:
        """Poll ``handle`` at a fixed interval until done or out of attempts.

        Returns the result locator. Raises ``ProviderError`` when the
        provider reports failure, ``MalformedResponse`` when it reports
        completion without a locator, and ``GenerationTimeout`` after
        ``max_attempts`` polls. Cancelling the calling task stops the loop
        at the next sleep or poll.
        """
        policy = self.poll_policy
        logger.info(
            "Polling %s operation %s (every %ss, max %d attempts)",
            adapter.name, handle.operation, policy.interval, policy.max_attempts,
        )
        try:
            for attempt in range(1, policy.max_attempts + 1):
                await self._sleep(policy.interval)
                job.attempts = attempt
                state = await adapter.poll(handle)

                if not state.done:
                    logger.debug("%s operation %s: attempt %d pending", adapter.name, handle.operation, attempt)
                    continue

                if state.error:
                    job.status = JobStatus.FAILED
                    raise ProviderError(state.error, provider=adapter.name)
                if not state.locator:
                    job.status = JobStatus.FAILED
                    raise MalformedResponse(
                        f"{adapter.name} completed without a usable result", provider=adapter.name,
                    )
                logger.info(
                    "%s operation %s complete after %d attempt(s)", adapter.name, handle.operation, attempt,
                )
                return state.locator
        except asyncio.CancelledError:
            logger.warning(
                "%s operation %s polling cancelled after %d attempt(s)",
                adapter.name, handle.operation, job.attempts,
            )
            raise

        job.status = JobStatus.TIMED_OUT
        raise GenerationTimeout(
            f"{adapter.name} operation {handle.operation} did not finish "
            f"after {policy.max_attempts} attempts"
        )
