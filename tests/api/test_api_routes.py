# File: tests/api/test_api_routes.py

import uuid

import pytest
from fastapi.testclient import TestClient

from voicecrm.api.app import create_app
from voicecrm.core.config.settings import settings
from voicecrm.core.model_lifecycle.orchestrator import ModelOrchestrator
from voicecrm.core.model_lifecycle.types import ModelType
from voicecrm.features.transcription.domain.models import TranscriptResult, TranscriptStatus
from voicecrm.features.transcription.service.gateway import TranscriptionGateway

ALICE = {"Authorization": "Bearer alice-token"}
BOB = {"Authorization": "Bearer bob-token"}


@pytest.fixture
def client(session_factory):
    app = create_app(
        tokens={"alice-token": "alice", "bob-token": "bob"},
        gateway=TranscriptionGateway(),
        session_factory=session_factory,
    )
    with TestClient(app) as test_client:
        yield test_client


def create_activity(client, headers=ALICE, **overrides):
    body = {"title": "โทรหาสมชาย", "customerName": "สมชาย", "notes": "โอเค แล้วคุยกัน"}
    body.update(overrides)
    response = client.post("/activities", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


# --- Auth & health ---

def test_health_is_public(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["transcriptionBackend"] == "fallback-only"


@pytest.mark.parametrize("headers", [
    {},
    {"Authorization": "Bearer wrong-token"},
    {"Authorization": "Basic alice-token"},
    {"Authorization": "alice-token"},
])
def test_protected_routes_need_a_valid_bearer_token(client, headers):
    response = client.get("/activities/pending-review", headers=headers)

    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"
    assert response.json()["success"] is False
    assert response.json()["error"] == "unauthorized"


# --- Audio ---

def test_upload_returns_tagged_fallback_transcript(client, wav_bytes):
    response = client.post(
        "/audio/upload",
        files={"audio": ("note.wav", wav_bytes, "audio/wav")},
        headers=ALICE,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "fallback"
    assert data["confidence"] == settings.FALLBACK_CONFIDENCE
    assert data["duration"] == pytest.approx(0.5)
    assert data["enhanced"] is False
    assert data["transcription"]


def test_upload_rejects_unsupported_types(client):
    response = client.post(
        "/audio/upload",
        files={"audio": ("notes.txt", b"hello", "text/plain")},
        headers=ALICE,
    )

    assert response.status_code == 400
    assert response.json()["error"] == "bad_request"


def test_upload_rejects_large_files(client, monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 16)

    response = client.post(
        "/audio/upload",
        files={"audio": ("big.webm", b"x" * 17, "audio/webm")},
        headers=ALICE,
    )

    assert response.status_code == 413
    assert response.json()["error"] == "payload_too_large"


def test_upload_requires_a_file(client):
    response = client.post("/audio/upload", headers=ALICE)

    assert response.status_code == 422
    assert response.json()["error"] == "validation_error"


def test_draft_endpoint_runs_the_pipeline(session_factory, wav_bytes):
    class SalesCallTranscriber:
        async def transcribe(self, clip):
            return TranscriptResult(
                text="คุยกับคุณสมชาย บริษัท ABC สนใจสั่งผัก 50000 บาท",
                status=TranscriptStatus.SUCCESS, confidence=0.95, backend="fake",
            )

    app = create_app(
        tokens={"alice-token": "alice"},
        gateway=TranscriptionGateway(transcriber=SalesCallTranscriber()),
        session_factory=session_factory,
    )
    with TestClient(app) as client:
        response = client.post(
            "/audio/draft",
            files={"audio": ("note.wav", wav_bytes, "audio/wav")},
            headers=ALICE,
        )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["transcript"]["status"] == "success"
    assert data["draft"]["customerName"] == "สมชาย"
    assert data["draft"]["estimatedValue"] == 50000
    assert data["draft"]["confidence"] == 0.82
    assert {s["state"] for s in data["draft"]["suggestions"]} == {"applied"}
    assert "suggestions_auto_applied" in [e["kind"] for e in data["events"]]


# --- Activities ---

def test_create_activity(client):
    data = create_activity(client, estimatedValue=50000, dueDate="2026-03-08", tags=["vip"])

    assert data["createdBy"] == "alice"
    assert data["customerName"] == "สมชาย"
    assert data["estimatedValue"] == 50000
    assert data["dueDate"].startswith("2026-03-08")
    assert data["aiClassification"]["state"] == "pending"
    assert data["aiClassification"]["suggestedCategory"] == "qualification"
    assert 0 <= data["activityScore"] <= 100


def test_create_activity_missing_fields(client):
    response = client.post("/activities", json={"title": ""}, headers=ALICE)

    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert set(body["fields"]) == {"title", "customerName"}


def test_create_activity_with_bad_enum(client):
    response = client.post(
        "/activities",
        json={"title": "t", "customerName": "c", "priority": "whenever"},
        headers=ALICE,
    )

    assert response.status_code == 422
    assert "priority" in response.json()["fields"]


def test_create_from_voice(client):
    response = client.post(
        "/activities/from-voice",
        json={"transcription": "คุยกับคุณสมชาย บริษัท ABC สนใจสั่งผัก 50000 บาท", "transcriptionConfidence": 0.9},
        headers=BOB,
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["createdBy"] == "bob"
    assert data["status"] == "pending"
    assert "voice-recording" in data["tags"]


def test_review_flow(client):
    """
    Verifies that:
    1. New low-confidence activities show up in the pending list.
    2. Confirming with a category update stores it and empties the queue.
    3. Rejecting another activity falls back to the default category.
    """
    first = create_activity(client)
    second = create_activity(client, title="ประชุม")

    pending = client.get("/activities/pending-review", headers=ALICE).json()
    assert pending["count"] == 2

    response = client.put(
        f"/activities/{first['id']}/confirm-classification",
        json={"confirmed": True, "updates": {"category": "closing"}},
        headers=BOB,
    )
    assert response.status_code == 200
    confirmed = response.json()["data"]
    assert confirmed["category"] == "closing"
    assert confirmed["aiClassification"]["humanConfirmed"] is True
    assert confirmed["aiClassification"]["reviewedBy"] == "bob"

    response = client.put(
        f"/activities/{second['id']}/confirm-classification",
        json={"confirmed": False},
        headers=ALICE,
    )
    rejected = response.json()["data"]
    assert rejected["category"] == settings.DEFAULT_CATEGORY
    assert rejected["aiClassification"]["suggestedCategory"] is None
    assert rejected["aiClassification"]["state"] == "rejected"

    assert client.get("/activities/pending-review", headers=ALICE).json()["count"] == 0


def test_pending_review_limit(client):
    for _ in range(3):
        create_activity(client)

    assert client.get("/activities/pending-review?limit=2", headers=ALICE).json()["count"] == 2
    assert client.get("/activities/pending-review?limit=0", headers=ALICE).status_code == 422


def test_confirm_unknown_activity(client):
    response = client.put(
        f"/activities/{uuid.uuid4()}/confirm-classification",
        json={"confirmed": True},
        headers=ALICE,
    )

    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


def test_confirm_with_invalid_updates(client):
    activity = create_activity(client)

    response = client.put(
        f"/activities/{activity['id']}/confirm-classification",
        json={"confirmed": True, "updates": {"estimatedValue": -1}},
        headers=ALICE,
    )

    assert response.status_code == 422
    assert response.json()["error"] == "validation_error"


# --- Analytics ---

def test_dashboard(client):
    create_activity(client, estimatedValue=1000)
    create_activity(client, headers=BOB)

    response = client.get("/activities/analytics/dashboard?months=3", headers=ALICE)

    assert response.status_code == 200
    data = response.json()["data"]
    assert len(data["monthlyData"]) == 3
    assert data["overview"]["totalActivities"] == 2
    assert data["overview"]["totalEstimatedValue"] == 1000
    assert data["trends"]["last7Days"] == 2
    assert data["trends"]["growth"] == 0.0


def test_performance(client):
    create_activity(client)
    create_activity(client, headers=BOB)

    mine = client.get("/activities/performance/user", headers=ALICE).json()["data"]
    bobs = client.get("/activities/performance/user/bob?days=7", headers=ALICE).json()["data"]
    nobody = client.get("/activities/performance/user/carol", headers=ALICE).json()["data"]

    assert mine["userId"] == "alice"
    assert mine["activityCount"] == 1
    assert bobs["userId"] == "bob"
    assert bobs["activityCount"] == 1
    assert nobody["activityCount"] == 0
    assert nobody["rank"] == 0


def test_score_breakdown(client):
    activity = create_activity(client)

    response = client.get(f"/activities/score/{activity['id']}", headers=ALICE)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["activityId"] == activity["id"]
    assert data["totalScore"] == activity["activityScore"]
    assert client.get(f"/activities/score/{uuid.uuid4()}", headers=ALICE).status_code == 404


def test_shutdown_releases_resident_models(session_factory):
    orchestrator = ModelOrchestrator()
    orchestrator.request_model(ModelType.WHISPER, lambda: object())
    app = create_app(tokens={}, gateway=TranscriptionGateway(), session_factory=session_factory)

    with TestClient(app):
        assert orchestrator.get_current_model_type() == ModelType.WHISPER

    assert orchestrator.get_current_model_type() is None
