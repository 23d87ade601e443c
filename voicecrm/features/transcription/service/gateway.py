# File: voicecrm/features/transcription/service/gateway.py
import asyncio
import logging
from typing import Optional

from voicecrm.core.config.settings import settings
from voicecrm.core.errors import ExtractionFailure, TranscriptionFailure
from voicecrm.features.audio_capture.domain.models import AudioClip
from ..data.fallback_pool import FallbackPool
from ..domain.interfaces import ITranscriber, ITranscriptEnhancer
from ..domain.models import TranscriptResult, TranscriptStatus

logger = logging.getLogger(__name__)


class TranscriptionGateway:
    """
    Turns a finished clip into a TranscriptResult.

    The configured backend is tried exactly once. Any backend failure is
    absorbed into a fallback result, so callers never see an exception;
    they inspect `status` instead.
    """

    def __init__(self,
                 transcriber: Optional[ITranscriber] = None,
                 enhancer: Optional[ITranscriptEnhancer] = None,
                 fallback_pool: Optional[FallbackPool] = None,
                 fallback_confidence: Optional[float] = None):
        self.transcriber = transcriber
        self.enhancer = enhancer
        self.fallback_pool = fallback_pool or FallbackPool()
        self.fallback_confidence = (
            fallback_confidence if fallback_confidence is not None else settings.FALLBACK_CONFIDENCE
        )

    @property
    def backend_name(self) -> str:
        return type(self.transcriber).__name__ if self.transcriber is not None else "fallback-only"

    async def transcribe(self, clip: AudioClip) -> TranscriptResult:
        if clip.released:
            logger.warning(f"Clip {clip.clip_id} was already released; nothing to transcribe")
            return TranscriptResult(
                text="",
                status=TranscriptStatus.ERROR,
                confidence=0.0,
                backend="none",
                failure_reason="clip already released",
            )

        if self.transcriber is None:
            return self._fallback(clip, "no backend configured")

        try:
            result = await self.transcriber.transcribe(clip)
        except TranscriptionFailure as e:
            return self._fallback(clip, str(e))
        except Exception as e:
            logger.exception(f"Unexpected transcription error for clip {clip.clip_id}")
            return self._fallback(clip, f"unexpected error: {e}")

        logger.info(f"Transcribed clip {clip.clip_id} with {result.backend} ({len(result.text)} chars)")
        return await self._enhance(result)

    async def _enhance(self, result: TranscriptResult) -> TranscriptResult:
        if self.enhancer is None:
            return result
        try:
            # Model generation blocks, so it runs off the event loop
            hints = await asyncio.to_thread(self.enhancer.enhance, result.text)
        except ExtractionFailure as e:
            logger.warning(f"Enhancement skipped: {e}")
            return result
        if hints.is_empty():
            return result
        return result.with_hints(hints)

    def _fallback(self, clip: AudioClip, reason: str) -> TranscriptResult:
        logger.warning(f"Transcription failed for clip {clip.clip_id} ({reason}); using fallback transcript")
        return TranscriptResult(
            text=self.fallback_pool.pick(clip.data),
            status=TranscriptStatus.FALLBACK,
            language=settings.TRANSCRIPTION_LANGUAGE,
            confidence=self.fallback_confidence,
            duration_seconds=clip.duration_seconds,
            enhanced=False,
            backend="fallback",
            failure_reason=reason,
        )
