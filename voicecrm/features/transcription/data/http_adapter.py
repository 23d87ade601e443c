# File: voicecrm/features/transcription/data/http_adapter.py
import logging
from typing import Optional

import httpx

from voicecrm.core.config.settings import settings
from voicecrm.core.errors import TranscriptionFailure
from voicecrm.features.audio_capture.domain.models import AudioClip
from ..domain.interfaces import ITranscriber
from ..domain.models import TranscriptionSegment, TranscriptResult, TranscriptStatus

logger = logging.getLogger(__name__)

# The hosted Whisper endpoint reports no confidence.
DEFAULT_REMOTE_CONFIDENCE = 0.95


class HttpTranscriber(ITranscriber):
    """
    Remote transcription through an OpenAI-compatible /audio/transcriptions endpoint.
    """

    def __init__(self,
                 url: Optional[str] = None,
                 api_key: Optional[str] = None,
                 model: Optional[str] = None,
                 language: Optional[str] = None,
                 timeout: Optional[float] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = url or settings.TRANSCRIPTION_API_URL
        self.api_key = api_key if api_key is not None else settings.TRANSCRIPTION_API_KEY
        self.model = model or settings.TRANSCRIPTION_MODEL
        self.language = language or settings.TRANSCRIPTION_LANGUAGE
        self.timeout = timeout or settings.TRANSCRIPTION_TIMEOUT_SECONDS
        self._transport = transport

    async def transcribe(self, clip: AudioClip) -> TranscriptResult:
        if not self.api_key:
            raise TranscriptionFailure("Transcription API key is not configured.")

        logger.info(f"Sending clip {clip.clip_id} ({clip.size_bytes} bytes) to {self.url}")

        files = {"file": (clip.filename, clip.data, clip.mime_type)}
        data = {
            "model": self.model,
            "language": self.language,
            "response_format": "verbose_json",
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.url, data=data, files=files, headers=headers)
        except httpx.TimeoutException as e:
            raise TranscriptionFailure(f"Transcription request timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise TranscriptionFailure(f"Transcription request failed: {e}") from e

        if not response.is_success:
            raise TranscriptionFailure(f"Transcription backend returned HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise TranscriptionFailure("Transcription backend returned invalid JSON") from e
        if not isinstance(payload, dict):
            raise TranscriptionFailure("Transcription backend returned an unexpected payload")

        text = (payload.get("text") or "").strip()
        if not text:
            raise TranscriptionFailure("Transcription backend returned an empty transcript")

        segments = [
            TranscriptionSegment(
                start=float(seg.get("start", 0.0)),
                end=float(seg.get("end", 0.0)),
                text=(seg.get("text") or "").strip(),
            )
            for seg in payload.get("segments") or []
        ]

        duration = payload.get("duration")
        return TranscriptResult(
            text=text,
            status=TranscriptStatus.SUCCESS,
            language=payload.get("language") or self.language,
            confidence=DEFAULT_REMOTE_CONFIDENCE,
            duration_seconds=float(duration) if duration is not None else clip.duration_seconds,
            backend="remote",
            segments=segments,
        )
