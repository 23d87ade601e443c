# File: voicecrm/features/transcription/data/whisper_adapter.py
import asyncio
import logging
import math
import tempfile
from pathlib import Path

from voicecrm.core.config.settings import settings
from voicecrm.core.errors import TranscriptionFailure
from voicecrm.core.model_lifecycle.orchestrator import ModelOrchestrator
from voicecrm.core.model_lifecycle.types import ModelType
from voicecrm.features.audio_capture.domain.models import AudioClip
from ..domain.interfaces import ITranscriber
from ..domain.models import TranscriptionSegment, TranscriptResult, TranscriptStatus

logger = logging.getLogger(__name__)


class WhisperAdapter(ITranscriber):
    """Local Whisper model. The blocking inference runs in a worker thread."""

    def __init__(self, model_size: str = None, language: str = None):
        self.orchestrator = ModelOrchestrator()
        self.device = settings.WHISPER_DEVICE
        self.model_size = model_size or settings.WHISPER_MODEL_NAME
        self.language = language or settings.TRANSCRIPTION_LANGUAGE

    async def transcribe(self, clip: AudioClip) -> TranscriptResult:
        return await asyncio.to_thread(self._transcribe_sync, clip)

    def _transcribe_sync(self, clip: AudioClip) -> TranscriptResult:
        logger.info(f"Requesting Whisper ({self.model_size}) for clip {clip.clip_id}...")

        def loader():
            import whisper
            logger.debug(f"Loading Whisper {self.model_size} on {self.device}...")
            return whisper.load_model(self.model_size, device=self.device)

        try:
            model = self.orchestrator.request_model(ModelType.WHISPER, loader)
        except Exception as e:
            raise TranscriptionFailure(f"Whisper model unavailable: {e}") from e

        suffix = Path(clip.filename).suffix
        with tempfile.NamedTemporaryFile(suffix=suffix) as tmp:
            tmp.write(clip.data)
            tmp.flush()
            try:
                result_raw = model.transcribe(
                    tmp.name,
                    language=self.language,
                    fp16=(self.device == "cuda"),
                )
            except Exception as e:
                raise TranscriptionFailure(f"Whisper inference failed: {e}") from e

        text = result_raw.get("text", "").strip()
        if not text:
            raise TranscriptionFailure("Whisper produced an empty transcript")

        segments = []
        for seg in result_raw.get("segments", []):
            segments.append(TranscriptionSegment(
                start=float(seg["start"]),
                end=float(seg["end"]),
                text=seg["text"].strip(),
                confidence=math.exp(float(seg.get("avg_logprob", 0.0))),  # logprob -> probability
            ))

        confidence = None
        if segments:
            confidence = min(1.0, sum(s.confidence for s in segments) / len(segments))

        return TranscriptResult(
            text=text,
            status=TranscriptStatus.SUCCESS,
            language=result_raw.get("language", self.language),
            confidence=confidence,
            duration_seconds=segments[-1].end if segments else clip.duration_seconds,
            backend=f"whisper-{self.model_size}",
            segments=segments,
        )
