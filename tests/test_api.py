"""HTTP surface: auth, generation responses, cron, publishing."""

from __future__ import annotations

import asyncio
from datetime import datetime
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from fakes import AsyncAdapter, FakeRepository, MemoryStore, NullFetcher, SleepRecorder, SyncAdapter
from pocketrot.api import cron as cron_api
from pocketrot.api.deps import get_orchestrator
from pocketrot.api.generate import CLIENT_CLOSED_REQUEST, ClientDisconnected, _disconnected, run_until_disconnect
from pocketrot.database import get_db
from pocketrot.errors import ConfigurationError, ProviderError
from pocketrot.main import app
from pocketrot.models import Character, Image, Scenario, Video
from pocketrot.services.jobs import SubjectRef, SubjectType
from pocketrot.services.orchestrator import GenerationMetrics, GenerationOrchestrator, PollPolicy
from pocketrot.services.providers.base import PollResult

OPERATOR = {"Authorization": "Bearer test-operator-token"}
CRON = {"Authorization": "Bearer test-cron-secret"}

SCENARIO = SimpleNamespace(
    id=42, title="The Great Crumb Heist", description="They rappel down a seatbelt.",
    character_ids=[7], location="Under a car seat", mission="Retrieve a fry",
    generated_by="gemini", created_at=datetime(2026, 10, 19, 9, 0),
)
CHARACTER = SimpleNamespace(
    id=7, name="Mossback", species="Turtle", pocket_artifact="A bottle cap shield",
    role_and_vibe="The unbothered elder.", backstory=None, is_original=True,
    generated_by="seed", created_at=datetime(2026, 10, 1),
)


class FakeSession:
    def __init__(self, rows=None):
        self.rows = rows or {}
        self.flushes = 0
        self.rollbacks = 0

    async def get(self, model, ident):
        return self.rows.get((model, ident))

    async def execute(self, stmt):
        characters = [row for (model, _), row in self.rows.items() if model is Character]
        return SimpleNamespace(scalars=lambda: SimpleNamespace(all=lambda: characters))

    async def flush(self):
        self.flushes += 1

    async def refresh(self, obj):
        pass

    async def rollback(self):
        self.rollbacks += 1


class Harness:
    def __init__(self):
        self.session = FakeSession({(Scenario, 42): SCENARIO, (Character, 7): CHARACTER})
        self.repository = FakeRepository({SubjectRef(SubjectType.SCENARIO, 42), SubjectRef(SubjectType.CHARACTER, 7)})
        self.image_adapter = SyncAdapter()
        self.video_adapter = AsyncAdapter()

    def orchestrator(self) -> GenerationOrchestrator:
        return GenerationOrchestrator(
            image_adapter=self.image_adapter,
            video_adapter=self.video_adapter,
            store=MemoryStore(),
            repository=self.repository,
            fetcher=NullFetcher(),
            poll_policy=PollPolicy(interval=0.0, max_attempts=3),
            sleep=SleepRecorder(),
            metrics=GenerationMetrics(),
        )


@pytest.fixture
def harness():
    h = Harness()

    async def fake_db():
        yield h.session

    app.state.http_client = None
    app.dependency_overrides[get_db] = fake_db
    app.dependency_overrides[get_orchestrator] = h.orchestrator
    yield h
    app.dependency_overrides.clear()


@pytest.fixture
def client(harness):
    return TestClient(app)


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

def test_login_returns_token_and_cookie(client) -> None:
    resp = client.post("/api/auth/login", json={"email": "Operator@PocketRot.test", "password": "hunter2"})

    assert resp.status_code == 200
    assert resp.json() == {"success": True, "token": "test-operator-token"}
    assert "sid=test-operator-token" in resp.headers["set-cookie"]


def test_login_rejects_wrong_password(client) -> None:
    resp = client.post("/api/auth/login", json={"email": "operator@pocketrot.test", "password": "nope"})

    assert resp.status_code == 401
    assert resp.json() == {"success": False, "error": "Invalid credentials", "kind": "unauthorized"}


def test_session_reports_operator(client) -> None:
    assert client.get("/api/auth/session").json() == {"authenticated": False}
    assert client.get("/api/auth/session", headers=OPERATOR).json() == {"authenticated": True}


def test_generation_requires_operator(client, harness) -> None:
    resp = client.post("/api/generate/scenario-image", json={"scenario_id": 42})

    assert resp.status_code == 401
    assert harness.image_adapter.calls == []


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------

def test_scenario_image_success(client, harness) -> None:
    resp = client.post("/api/generate/scenario-image", json={"scenario_id": 42}, headers=OPERATOR)

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["warning"] is None
    assert body["image"]["generated_by"] == "fake-image"
    call = harness.image_adapter.calls[0]
    assert call["aspect_ratio"] == "16:9"
    assert "Mossback (Turtle)" in call["prompt"]


def test_scenario_image_provider_failure_returns_placeholder(client, harness) -> None:
    harness.image_adapter.error = ProviderError("Imagen API failed: 500", status_code=500)

    resp = client.post("/api/generate/scenario-image", json={"scenario_id": 42}, headers=OPERATOR)

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["warning"] == "Image generation failed, using placeholder"
    assert body["image"]["generated_by"] == "placeholder"
    assert len(harness.repository.images) == 1


def test_character_image_misconfigured_is_structured_500(client, harness) -> None:
    harness.image_adapter.error = ConfigurationError("GEMINI_API_KEY is not set")

    resp = client.post("/api/generate/character-image", json={"character_id": 7}, headers=OPERATOR)

    assert resp.status_code == 500
    assert resp.json()["kind"] == "configuration"
    assert resp.json()["success"] is False
    assert harness.image_adapter.calls[0]["aspect_ratio"] == "9:16"
    assert harness.repository.images == []


def test_unknown_scenario_is_404(client) -> None:
    resp = client.post("/api/generate/scenario-image", json={"scenario_id": 999}, headers=OPERATOR)

    assert resp.status_code == 404
    assert resp.json()["kind"] == "not_found"


def test_scenario_video_success(client, harness) -> None:
    resp = client.post("/api/generate/scenario-video", json={"scenario_id": 42}, headers=OPERATOR)

    assert resp.status_code == 200
    assert resp.json()["video"]["scenario_id"] == 42
    assert len(harness.repository.videos) == 1


def test_scenario_video_timeout_is_504_without_record(client, harness) -> None:
    harness.video_adapter.polls = [PollResult(done=False)]

    resp = client.post("/api/generate/scenario-video", json={"scenario_id": 42}, headers=OPERATOR)

    assert resp.status_code == 504
    body = resp.json()
    assert body == {"success": False, "video": None, "error": body["error"], "kind": "timeout"}
    assert harness.video_adapter.poll_count == 3
    assert harness.repository.videos == []


def test_run_until_disconnect_cancels_job() -> None:
    cancelled = []

    class GoneRequest:
        url = SimpleNamespace(path="/api/generate/scenario-video")

        async def is_disconnected(self):
            return True

    async def endless():
        try:
            await asyncio.sleep(3600)
        except asyncio.CancelledError:
            cancelled.append(True)
            raise

    async def scenario():
        with pytest.raises(ClientDisconnected):
            await run_until_disconnect(GoneRequest(), endless(), check_interval=0.01)

    asyncio.run(scenario())

    assert cancelled == [True]


def test_run_until_disconnect_keeps_result_finished_during_check() -> None:
    class SlowGoneRequest:
        url = SimpleNamespace(path="/api/generate/scenario-video")

        async def is_disconnected(self):
            await asyncio.sleep(0.05)
            return True

    async def quick_job():
        await asyncio.sleep(0.02)
        return "record"

    result = asyncio.run(run_until_disconnect(SlowGoneRequest(), quick_job(), check_interval=0.01))

    assert result == "record"


def test_disconnect_response_rolls_back_session() -> None:
    session = FakeSession()

    resp = asyncio.run(_disconnected(session))

    assert resp.status_code == CLIENT_CLOSED_REQUEST
    assert session.rollbacks == 1


# ---------------------------------------------------------------------------
# Image records
# ---------------------------------------------------------------------------

def image_row(**overrides):
    values = dict(
        id=11, scenario_id=42, character_id=None, url="https://artifacts.test/old.png",
        prompt="Cinematic scene", generated_by="placeholder", approved=False,
        created_at=datetime(2026, 10, 19, 9, 5),
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def test_update_image_url(client, harness) -> None:
    image = image_row()
    harness.session.rows[(Image, 11)] = image

    resp = client.patch(
        "/api/images/11",
        json={"url": "https://artifacts.test/rerender.png", "generated_by": "imagen-3"},
        headers=OPERATOR,
    )

    assert resp.status_code == 200
    assert resp.json()["url"] == "https://artifacts.test/rerender.png"
    assert resp.json()["generated_by"] == "imagen-3"
    assert image.url == "https://artifacts.test/rerender.png"
    assert harness.session.flushes == 1


def test_update_image_defaults_generated_by(client, harness) -> None:
    harness.session.rows[(Image, 11)] = image_row()

    resp = client.patch("/api/images/11", json={"url": "https://cdn.test/x.png"}, headers=OPERATOR)

    assert resp.json()["generated_by"] == "manual"


@pytest.mark.parametrize(
    ("image_id", "body", "headers", "status"),
    [
        (11, {"url": "https://cdn.test/x.png"}, {}, 401),
        (99, {"url": "https://cdn.test/x.png"}, OPERATOR, 404),
        (11, {"url": ""}, OPERATOR, 422),
    ],
)
def test_update_image_rejections(client, harness, image_id, body, headers, status) -> None:
    image = image_row()
    harness.session.rows[(Image, 11)] = image

    resp = client.patch(f"/api/images/{image_id}", json=body, headers=headers)

    assert resp.status_code == status
    assert image.url == "https://artifacts.test/old.png"


# ---------------------------------------------------------------------------
# Cron, publishing, metrics
# ---------------------------------------------------------------------------

def test_cron_requires_secret(client) -> None:
    assert client.get("/api/cron/daily-scenario").status_code == 401
    assert client.get("/api/cron/daily-scenario", headers=OPERATOR).status_code == 401


def test_cron_daily_scenario(client, monkeypatch) -> None:
    async def fake_create(db, http_client=None):
        return SCENARIO

    monkeypatch.setattr(cron_api, "create_ai_scenario", fake_create)

    resp = client.get("/api/cron/daily-scenario", headers=CRON)

    assert resp.status_code == 200
    assert resp.json()["scenario"]["title"] == "The Great Crumb Heist"


def test_publish_queues_upload(client, harness, monkeypatch) -> None:
    from pocketrot.tasks import publish_tasks

    queued = []
    video = SimpleNamespace(id=5, upload_status="failed", upload_error="quota")
    harness.session.rows[(Video, 5)] = video

    def fake_delay(video_id, overrides):
        queued.append((video_id, overrides))
        return SimpleNamespace(id="task-123")

    monkeypatch.setattr(publish_tasks, "publish_video_to_youtube", SimpleNamespace(delay=fake_delay))

    resp = client.post("/api/videos/5/publish", json={"title": "Heist"}, headers=OPERATOR)

    assert resp.status_code == 202
    assert resp.json()["task_id"] == "task-123"
    assert queued == [(5, {"title": "Heist"})]
    assert video.upload_status == "pending"
    assert video.upload_error is None


def test_publish_rejects_completed_upload(client, harness) -> None:
    harness.session.rows[(Video, 6)] = SimpleNamespace(id=6, upload_status="completed", upload_error=None)

    resp = client.post("/api/videos/6/publish", headers=OPERATOR)

    assert resp.status_code == 409


def test_metrics_endpoint_lists_both_media(client) -> None:
    services = client.get("/api/metrics/generation").json()["services"]

    assert {s["service"] for s in services} == {"image_generation", "video_generation"}
