# File: voicecrm/features/voice_pipeline/service/pipeline.py
import logging
from datetime import date
from typing import List, Optional

from voicecrm.core.errors import ExtractionFailure
from voicecrm.features.audio_capture.domain.models import AudioClip
from voicecrm.features.intelligence.domain.interfaces import IExtractionEngine
from voicecrm.features.intelligence.domain.models import SuggestionState
from voicecrm.features.intelligence.service.extraction_engine import ExtractionEngine
from voicecrm.features.suggestions.domain.models import ActivityDraft
from voicecrm.features.suggestions.domain.policy import DEFAULT_POLICY, MergePolicy
from voicecrm.features.suggestions.service.merger import merge
from voicecrm.features.transcription.domain.models import TranscriptResult, TranscriptStatus
from voicecrm.features.transcription.service.gateway import TranscriptionGateway
from ..domain.models import EventKind, EventLevel, PipelineEvent, PipelineResult

logger = logging.getLogger(__name__)


class VoicePipeline:
    """
    clip -> transcript -> draft seed -> merged draft, strictly in that order.

    No stage raises to the caller: failures become events on the result and
    the draft degrades to manual entry.
    """

    def __init__(self,
                 gateway: TranscriptionGateway,
                 engine: Optional[IExtractionEngine] = None,
                 policy: MergePolicy = DEFAULT_POLICY):
        self.gateway = gateway
        self.engine = engine or ExtractionEngine()
        self.policy = policy

    async def process_clip(self, clip: AudioClip, reference_date: Optional[date] = None) -> PipelineResult:
        transcript = await self.gateway.transcribe(clip)
        return self.process_transcript(transcript, audio_ref=str(clip.clip_id), reference_date=reference_date)

    def process_transcript(self,
                           transcript: TranscriptResult,
                           audio_ref: Optional[str] = None,
                           reference_date: Optional[date] = None) -> PipelineResult:
        events: List[PipelineEvent] = []

        if transcript.status == TranscriptStatus.ERROR:
            events.append(PipelineEvent(
                EventKind.TRANSCRIPTION_ERROR, EventLevel.ERROR,
                f"Recording could not be transcribed: {transcript.failure_reason}",
            ))
            return PipelineResult(transcript=transcript, draft=ActivityDraft(), events=events)

        if transcript.status == TranscriptStatus.FALLBACK:
            events.append(PipelineEvent(
                EventKind.TRANSCRIPTION_FALLBACK, EventLevel.WARNING,
                "Transcription service unavailable; a template transcript was used",
            ))
        elif transcript.enhanced:
            events.append(PipelineEvent(
                EventKind.TRANSCRIPT_ENHANCED, EventLevel.INFO, "Transcript was enhanced with extracted hints",
            ))

        hints = transcript.hints if transcript.enhanced else None
        try:
            seed = self.engine.extract(transcript.text, audio_ref=audio_ref, hints=hints,
                                       reference_date=reference_date)
        except ExtractionFailure as e:
            logger.warning(f"Extraction failed, falling back to manual entry: {e}")
            events.append(PipelineEvent(
                EventKind.EXTRACTION_FAILED, EventLevel.WARNING,
                "Could not extract activity details; please fill the form manually",
            ))
            return PipelineResult(transcript=transcript, draft=ActivityDraft(notes=transcript.text), events=events)

        if seed.confidence == 0:
            events.append(PipelineEvent(
                EventKind.EXTRACTION_EMPTY, EventLevel.INFO, "Nothing could be extracted from the transcript",
            ))

        draft = merge(seed, self.policy)
        applied = sum(1 for s in draft.suggestions if s.state == SuggestionState.APPLIED)
        if applied or draft.title:
            events.append(PipelineEvent(
                EventKind.SUGGESTIONS_AUTO_APPLIED, EventLevel.INFO,
                f"{applied} suggested values were filled in automatically; please review them",
            ))

        return PipelineResult(transcript=transcript, draft=draft, seed=seed, events=events)
