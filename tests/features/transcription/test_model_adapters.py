# File: tests/features/transcription/test_model_adapters.py

import asyncio
import math

import pytest

from voicecrm.core.errors import ExtractionFailure, TranscriptionFailure
from voicecrm.features.audio_capture.domain.models import AudioClip
from voicecrm.features.intelligence.data.qwen_adapter import QwenEnhancementAdapter
from voicecrm.features.transcription.data.whisper_adapter import WhisperAdapter
from voicecrm.features.transcription.domain.models import TranscriptStatus


class FakeWhisperModel:
    def __init__(self, payload):
        self.payload = payload
        self.paths = []

    def transcribe(self, path, language=None, fp16=False):
        self.paths.append(path)
        return self.payload


class FakeOrchestrator:
    def __init__(self, model=None, error=None):
        self.model = model
        self.error = error

    def request_model(self, model_type, loader):
        if self.error is not None:
            raise self.error
        return self.model


def make_clip(wav_bytes):
    return AudioClip.from_upload(wav_bytes, "audio/wav")


def test_whisper_segments_become_confidence(wav_bytes):
    model = FakeWhisperModel({
        "text": " สวัสดีครับ ",
        "language": "th",
        "segments": [
            {"start": 0.0, "end": 1.0, "text": "สวัสดี", "avg_logprob": math.log(0.9)},
            {"start": 1.0, "end": 2.0, "text": "ครับ", "avg_logprob": math.log(0.7)},
        ],
    })
    adapter = WhisperAdapter(model_size="tiny", language="th")
    adapter.orchestrator = FakeOrchestrator(model=model)

    result = asyncio.run(adapter.transcribe(make_clip(wav_bytes)))

    assert result.status == TranscriptStatus.SUCCESS
    assert result.text == "สวัสดีครับ"
    assert result.confidence == pytest.approx(0.8)
    assert result.duration_seconds == 2.0
    assert result.backend == "whisper-tiny"
    assert model.paths[0].endswith(".wav")


def test_whisper_load_failure_is_a_transcription_failure(wav_bytes):
    adapter = WhisperAdapter(model_size="tiny")
    adapter.orchestrator = FakeOrchestrator(error=ImportError("No module named 'whisper'"))

    with pytest.raises(TranscriptionFailure):
        asyncio.run(adapter.transcribe(make_clip(wav_bytes)))


def test_whisper_empty_text_is_a_transcription_failure(wav_bytes):
    adapter = WhisperAdapter(model_size="tiny")
    adapter.orchestrator = FakeOrchestrator(model=FakeWhisperModel({"text": "  ", "segments": []}))

    with pytest.raises(TranscriptionFailure):
        asyncio.run(adapter.transcribe(make_clip(wav_bytes)))


def test_enhancer_parses_json_wrapped_in_chatter():
    adapter = QwenEnhancementAdapter(model_path="unused")
    response = (
        'Here is the result:\n'
        '{"enhancedText": "คุยกับคุณสมชาย", '
        '"customerInfo": {"name": "สมชาย", "company": "", "phone": "081-234-5678"}, '
        '"dealInfo": {"value": "50,000", "status": "qualified"}, '
        '"actionItems": ["ส่งใบเสนอราคา", " "], '
        '"summary": "ลูกค้าสนใจ"}'
    )

    hints = adapter._parse_response(response)

    assert hints.customer_info == {"name": "สมชาย", "phone": "081-234-5678"}
    assert hints.deal_info == {"value": "50,000", "status": "qualified"}
    assert hints.action_items == ["ส่งใบเสนอราคา"]
    assert hints.summary == "ลูกค้าสนใจ"
    assert hints.enhanced_text == "คุยกับคุณสมชาย"


@pytest.mark.parametrize("response", ["no json at all", "{broken", "[1, 2]"])
def test_enhancer_rejects_malformed_output(response):
    with pytest.raises(ExtractionFailure):
        QwenEnhancementAdapter(model_path="unused")._parse_response(response)


def test_enhancer_skips_empty_text():
    adapter = QwenEnhancementAdapter(model_path="unused")
    adapter.orchestrator = FakeOrchestrator(error=AssertionError("must not load"))

    assert adapter.enhance("   ").is_empty()


def test_enhancer_load_failure_is_an_extraction_failure():
    adapter = QwenEnhancementAdapter(model_path="unused")
    adapter.orchestrator = FakeOrchestrator(error=OSError("model not found"))

    with pytest.raises(ExtractionFailure):
        adapter.enhance("สวัสดีครับ")
