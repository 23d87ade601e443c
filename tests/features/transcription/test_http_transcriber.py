# File: tests/features/transcription/test_http_transcriber.py

import asyncio
import json

import httpx
import pytest

from voicecrm.core.errors import TranscriptionFailure
from voicecrm.features.audio_capture.domain.models import AudioClip
from voicecrm.features.transcription.data.http_adapter import DEFAULT_REMOTE_CONFIDENCE, HttpTranscriber
from voicecrm.features.transcription.domain.models import TranscriptStatus
from voicecrm.features.transcription.service.gateway import TranscriptionGateway

URL = "https://asr.example.test/v1/audio/transcriptions"


def make_clip():
    return AudioClip(data=b"webm-bytes", mime_type="audio/webm", sample_rate_hz=None, channels=1,
                     duration_seconds=None)


def transcriber_for(handler, api_key="secret"):
    return HttpTranscriber(url=URL, api_key=api_key, model="whisper-1", language="th", timeout=5,
                           transport=httpx.MockTransport(handler))


def test_successful_response_is_parsed():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = request.content
        return httpx.Response(200, json={
            "text": " สวัสดีครับ ",
            "language": "thai",
            "duration": 2.5,
            "segments": [{"start": 0.0, "end": 2.5, "text": "สวัสดีครับ"}],
        })

    result = asyncio.run(transcriber_for(handler).transcribe(make_clip()))

    assert seen["auth"] == "Bearer secret"
    assert b"verbose_json" in seen["body"]
    assert b"whisper-1" in seen["body"]
    assert result.status == TranscriptStatus.SUCCESS
    assert result.text == "สวัสดีครับ"
    assert result.confidence == DEFAULT_REMOTE_CONFIDENCE
    assert result.duration_seconds == 2.5
    assert result.backend == "remote"
    assert len(result.segments) == 1


@pytest.mark.parametrize("response", [
    httpx.Response(500, text="upstream exploded"),
    httpx.Response(200, json={"text": "   "}),
    httpx.Response(200, content=b"not json"),
    httpx.Response(200, content=json.dumps(["a list"]).encode()),
])
def test_bad_responses_raise_transcription_failure(response):
    transcriber = transcriber_for(lambda request: response)

    with pytest.raises(TranscriptionFailure):
        asyncio.run(transcriber.transcribe(make_clip()))


def test_network_errors_raise_transcription_failure():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TranscriptionFailure):
        asyncio.run(transcriber_for(handler).transcribe(make_clip()))


def test_timeouts_raise_transcription_failure():
    def handler(request):
        raise httpx.ReadTimeout("too slow", request=request)

    with pytest.raises(TranscriptionFailure, match="timed out"):
        asyncio.run(transcriber_for(handler).transcribe(make_clip()))


def test_missing_api_key_fails_without_a_request():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={"text": "x"})

    with pytest.raises(TranscriptionFailure):
        asyncio.run(transcriber_for(handler, api_key="").transcribe(make_clip()))
    assert calls == []


def test_http_500_through_gateway_yields_tagged_fallback():
    """
    A server error from the remote backend never surfaces as an exception:
    the caller receives a fallback transcript at the fallback confidence.
    """
    transcriber = transcriber_for(lambda request: httpx.Response(500))
    gateway = TranscriptionGateway(transcriber=transcriber, fallback_confidence=0.85)

    result = asyncio.run(gateway.transcribe(make_clip()))

    assert result.status == TranscriptStatus.FALLBACK
    assert result.confidence == 0.85
    assert "HTTP 500" in result.failure_reason
    assert gateway.backend_name == "HttpTranscriber"
