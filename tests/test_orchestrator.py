"""Generation orchestrator: record invariants, polling bounds, soft failures."""

from __future__ import annotations

import asyncio

import pytest

from fakes import (
    AsyncAdapter,
    FakeRepository,
    MemoryStore,
    NullFetcher,
    RaisingFetcher,
    SleepRecorder,
    SyncAdapter,
)
from pocketrot.errors import (
    ConfigurationError,
    GenerationInProgress,
    GenerationTimeout,
    MalformedResponse,
    NotFoundError,
    ProviderError,
)
from pocketrot.services.jobs import GenerationRequest, JobStatus, SubjectRef, SubjectType
from pocketrot.services.orchestrator import (
    GenerationMetrics,
    GenerationOrchestrator,
    PollPolicy,
    placeholder_url,
)
from pocketrot.services.providers.base import PollResult
from pocketrot.services.reference_fetcher import ReferenceAssetFetcher

SCENARIO_42 = SubjectRef(SubjectType.SCENARIO, 42)
CHARACTER_7 = SubjectRef(SubjectType.CHARACTER, 7)


class BrokenRepository(FakeRepository):
    async def record_outcome(self, *args, **kwargs):
        raise RuntimeError("Deadlock found when trying to get lock")


def make_orchestrator(
    *,
    repository=None,
    image_adapter=None,
    video_adapter=None,
    store=None,
    fetcher=None,
    sleep=None,
    policy=None,
    subject_lock=None,
):
    repository = repository or FakeRepository({SCENARIO_42, CHARACTER_7})
    return GenerationOrchestrator(
        image_adapter=image_adapter or SyncAdapter(),
        video_adapter=video_adapter or AsyncAdapter(),
        store=store or MemoryStore(),
        repository=repository,
        fetcher=fetcher or NullFetcher(),
        poll_policy=policy or PollPolicy(interval=5.0, max_attempts=60),
        subject_lock=subject_lock,
        sleep=sleep or SleepRecorder(),
        metrics=GenerationMetrics(),
    )


def image_request(subject=SCENARIO_42, **kwargs):
    return GenerationRequest(subject=subject, prompt_text="Cinematic scene from PocketRot universe", **kwargs)


def video_request(subject=SCENARIO_42, **kwargs):
    return GenerationRequest(subject=subject, prompt_text="Cinematic 8-second video scene", **kwargs)


# ---------------------------------------------------------------------------
# Image
# ---------------------------------------------------------------------------

def test_image_success_records_one_real_asset() -> None:
    repo = FakeRepository({SCENARIO_42})
    store = MemoryStore()
    orchestrator = make_orchestrator(repository=repo, store=store)

    outcome = asyncio.run(orchestrator.generate_image(image_request()))

    assert outcome.success is True
    assert outcome.warning is None
    assert len(repo.images) == 1
    record = repo.images[0]
    assert record.generated_by == "fake-image"
    assert record.scenario_id == 42
    assert store.objects[record.url] == b"\x89PNG fake"
    assert outcome.job.status is JobStatus.DONE


@pytest.mark.parametrize(
    "error",
    [
        ProviderError("Imagen API failed: 500", status_code=500),
        MalformedResponse("No image data in response"),
        RuntimeError("socket closed"),
    ],
)
def test_image_provider_failure_falls_back_to_placeholder(error) -> None:
    repo = FakeRepository({SCENARIO_42})
    orchestrator = make_orchestrator(repository=repo, image_adapter=SyncAdapter(error=error))

    outcome = asyncio.run(orchestrator.generate_image(image_request()))

    assert outcome.success is True
    assert outcome.warning == "Image generation failed, using placeholder"
    assert outcome.error is not None
    assert len(repo.images) == 1
    assert repo.images[0].generated_by == "placeholder"
    assert repo.images[0].url == placeholder_url(SCENARIO_42, orchestrator.placeholder_base)
    assert outcome.job.status is JobStatus.FAILED


def test_image_store_failure_falls_back_to_placeholder() -> None:
    repo = FakeRepository({SCENARIO_42})
    orchestrator = make_orchestrator(repository=repo, store=MemoryStore(fail=True))

    outcome = asyncio.run(orchestrator.generate_image(image_request()))

    assert outcome.success is True
    assert [r.generated_by for r in repo.images] == ["placeholder"]
    assert outcome.error.kind == "storage"


def test_image_missing_credential_creates_no_record() -> None:
    repo = FakeRepository({SCENARIO_42})
    adapter = SyncAdapter(error=ConfigurationError("GEMINI_API_KEY is not set"))
    orchestrator = make_orchestrator(repository=repo, image_adapter=adapter)

    outcome = asyncio.run(orchestrator.generate_image(image_request()))

    assert outcome.success is False
    assert isinstance(outcome.error, ConfigurationError)
    assert repo.images == []


def test_image_record_failure_is_reported_without_placeholder() -> None:
    repo = BrokenRepository({SCENARIO_42})
    store = MemoryStore()
    orchestrator = make_orchestrator(repository=repo, store=store)

    outcome = asyncio.run(orchestrator.generate_image(image_request()))

    assert outcome.success is False
    assert outcome.warning is None
    assert isinstance(outcome.error, ProviderError)
    assert "Deadlock" in outcome.error.message
    assert outcome.job.status is JobStatus.FAILED
    assert repo.images == []
    assert len(store.objects) == 1


def test_unknown_subject_is_rejected_before_provider_call() -> None:
    adapter = SyncAdapter()
    repo = FakeRepository()
    orchestrator = make_orchestrator(repository=repo, image_adapter=adapter)

    outcome = asyncio.run(orchestrator.generate_image(image_request(SubjectRef(SubjectType.SCENARIO, 999))))

    assert outcome.success is False
    assert isinstance(outcome.error, NotFoundError)
    assert adapter.calls == []
    assert repo.images == []


def test_character_image_passes_aspect_ratio() -> None:
    adapter = SyncAdapter()
    orchestrator = make_orchestrator(image_adapter=adapter)

    asyncio.run(orchestrator.generate_image(image_request(CHARACTER_7, aspect_ratio="9:16")))

    assert adapter.calls[0]["aspect_ratio"] == "9:16"
    assert adapter.calls[0]["reference"] is None


def test_placeholder_url_is_deterministic() -> None:
    base = "https://placehold.co/1024x576/1a1a2e/e94560"
    assert placeholder_url(SCENARIO_42, base) == placeholder_url(SCENARIO_42, base)
    assert placeholder_url(SCENARIO_42, base).endswith("?text=Scenario+42")


def test_empty_prompt_is_rejected() -> None:
    with pytest.raises(ValueError):
        GenerationRequest(subject=SCENARIO_42, prompt_text="   ")


# ---------------------------------------------------------------------------
# Video
# ---------------------------------------------------------------------------

def test_video_success_polls_then_records() -> None:
    repo = FakeRepository({SCENARIO_42})
    adapter = AsyncAdapter(polls=[
        PollResult(done=False),
        PollResult(done=False),
        PollResult(done=True, locator="https://provider.test/v.mp4"),
    ])
    sleep = SleepRecorder()
    orchestrator = make_orchestrator(repository=repo, video_adapter=adapter, sleep=sleep)

    outcome = asyncio.run(orchestrator.generate_video(video_request()))

    assert outcome.success is True
    assert adapter.poll_count == 3
    assert sleep.calls == [5.0, 5.0, 5.0]
    assert adapter.fetched == ["https://provider.test/v.mp4"]
    assert len(repo.videos) == 1
    assert repo.videos[0].generated_by == "fake-video"
    assert repo.videos[0].duration == 8
    assert outcome.job.operation_handle == "operations/fake-1"
    assert outcome.job.attempts == 3


def test_video_never_completing_times_out_after_exact_attempt_cap() -> None:
    repo = FakeRepository({SCENARIO_42})
    adapter = AsyncAdapter(polls=[PollResult(done=False)])
    sleep = SleepRecorder()
    orchestrator = make_orchestrator(repository=repo, video_adapter=adapter, sleep=sleep)

    outcome = asyncio.run(orchestrator.generate_video(video_request()))

    assert outcome.success is False
    assert isinstance(outcome.error, GenerationTimeout)
    assert outcome.job.status is JobStatus.TIMED_OUT
    assert adapter.poll_count == 60
    assert sum(sleep.calls) == pytest.approx(300.0)
    assert adapter.fetched == []
    assert repo.videos == []


def test_video_completion_without_locator_is_malformed_not_timeout() -> None:
    repo = FakeRepository({SCENARIO_42})
    adapter = AsyncAdapter(polls=[PollResult(done=False), PollResult(done=True)])
    orchestrator = make_orchestrator(repository=repo, video_adapter=adapter)

    outcome = asyncio.run(orchestrator.generate_video(video_request()))

    assert outcome.success is False
    assert isinstance(outcome.error, MalformedResponse)
    assert outcome.job.status is JobStatus.FAILED
    assert adapter.poll_count == 2
    assert repo.videos == []


def test_video_provider_reported_failure_creates_no_record() -> None:
    repo = FakeRepository({SCENARIO_42})
    adapter = AsyncAdapter(polls=[PollResult(done=True, error="Veo operation failed (400): blocked")])
    orchestrator = make_orchestrator(repository=repo, video_adapter=adapter)

    outcome = asyncio.run(orchestrator.generate_video(video_request()))

    assert outcome.success is False
    assert isinstance(outcome.error, ProviderError)
    assert "blocked" in outcome.error.message
    assert repo.videos == []
    assert repo.images == []


def test_video_submit_failure_has_no_placeholder() -> None:
    repo = FakeRepository({SCENARIO_42})
    adapter = AsyncAdapter(generate_error=ProviderError("Veo API failed: 429", status_code=429))
    orchestrator = make_orchestrator(repository=repo, video_adapter=adapter)

    outcome = asyncio.run(orchestrator.generate_video(video_request()))

    assert outcome.success is False
    assert outcome.error.status_code == 429
    assert repo.videos == []
    assert repo.images == []


def test_video_upload_failure_creates_no_record() -> None:
    repo = FakeRepository({SCENARIO_42})
    orchestrator = make_orchestrator(repository=repo, store=MemoryStore(fail=True))

    outcome = asyncio.run(orchestrator.generate_video(video_request()))

    assert outcome.success is False
    assert outcome.error.kind == "storage"
    assert repo.videos == []


def test_video_record_failure_is_reported() -> None:
    repo = BrokenRepository({SCENARIO_42})
    orchestrator = make_orchestrator(repository=repo)

    outcome = asyncio.run(orchestrator.generate_video(video_request()))

    assert outcome.success is False
    assert isinstance(outcome.error, ProviderError)
    assert outcome.job.status is JobStatus.FAILED
    assert repo.videos == []


def test_throwing_reference_fetcher_does_not_block_generation() -> None:
    repo = FakeRepository({SCENARIO_42})
    adapter = AsyncAdapter()
    orchestrator = make_orchestrator(repository=repo, video_adapter=adapter, fetcher=RaisingFetcher())

    outcome = asyncio.run(orchestrator.generate_video(video_request()))

    assert outcome.success is True
    assert adapter.generate_calls[0]["reference"] is None
    assert len(repo.videos) == 1


def test_video_for_subject_42_uses_prior_image_as_reference() -> None:
    repo = FakeRepository({SCENARIO_42})
    store = MemoryStore()
    prior_url = MemoryStore.BASE + "scenarios/scenario-42-1-abc.png"
    store.objects[prior_url] = b"prior-image-bytes"
    repo.add_image(SCENARIO_42, prior_url)

    adapter = AsyncAdapter()
    fetcher = ReferenceAssetFetcher(repo, store, http_client=None)
    orchestrator = make_orchestrator(repository=repo, video_adapter=adapter, store=store, fetcher=fetcher)

    outcome = asyncio.run(orchestrator.generate_video(video_request()))

    assert outcome.success is True
    reference = adapter.generate_calls[0]["reference"]
    assert reference is not None
    assert reference.data == b"prior-image-bytes"
    assert reference.mime_type == "image/png"
    assert reference.source_url == prior_url


def test_cancelling_the_caller_stops_polling() -> None:
    repo = FakeRepository({SCENARIO_42})
    adapter = AsyncAdapter(polls=[PollResult(done=False)])

    async def scenario():
        gate = asyncio.Event()

        async def blocking_sleep(_seconds):
            await gate.wait()

        orchestrator = make_orchestrator(repository=repo, video_adapter=adapter, sleep=blocking_sleep)
        task = asyncio.create_task(orchestrator.generate_video(video_request()))
        for _ in range(10):
            await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(scenario())

    assert len(adapter.generate_calls) == 1
    assert adapter.poll_count == 0
    assert repo.videos == []


def test_video_rejected_while_subject_locked() -> None:
    class HeldLock:
        def hold(self, subject, media):
            raise GenerationInProgress(f"A {media} generation for {subject.label} is already running")

    repo = FakeRepository({SCENARIO_42})
    adapter = AsyncAdapter()
    orchestrator = make_orchestrator(repository=repo, video_adapter=adapter, subject_lock=HeldLock())

    outcome = asyncio.run(orchestrator.generate_video(video_request()))

    assert outcome.success is False
    assert outcome.error.http_status == 409
    assert adapter.generate_calls == []
    assert repo.videos == []


def test_metrics_count_outcomes_per_media() -> None:
    orchestrator = make_orchestrator(
        image_adapter=SyncAdapter(error=ProviderError("boom")),
        video_adapter=AsyncAdapter(polls=[PollResult(done=False)]),
        policy=PollPolicy(interval=0.0, max_attempts=2),
    )

    asyncio.run(orchestrator.generate_image(image_request()))
    asyncio.run(orchestrator.generate_video(video_request()))

    by_service = {m["service"]: m for m in orchestrator.metrics.get_metrics()}
    assert by_service["image_generation"]["placeholders"] == 1
    assert by_service["video_generation"]["timed_out"] == 1
    assert by_service["video_generation"]["error_rate"] == 1.0
