# File: voicecrm/features/voice_pipeline/domain/models.py
from dataclasses import dataclass, field
from enum import Enum, unique
from typing import List, Optional

from voicecrm.features.intelligence.domain.models import ActivityDraftSeed
from voicecrm.features.suggestions.domain.models import ActivityDraft
from voicecrm.features.transcription.domain.models import TranscriptResult


@unique
class EventKind(str, Enum):
    TRANSCRIPTION_FALLBACK = "transcription_fallback"
    TRANSCRIPTION_ERROR = "transcription_error"
    TRANSCRIPT_ENHANCED = "transcript_enhanced"
    EXTRACTION_EMPTY = "extraction_empty"
    EXTRACTION_FAILED = "extraction_failed"
    SUGGESTIONS_AUTO_APPLIED = "suggestions_auto_applied"


@unique
class EventLevel(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class PipelineEvent:
    """Something the presentation layer may want to tell the user about."""
    kind: EventKind
    level: EventLevel
    message: str


@dataclass
class PipelineResult:
    transcript: TranscriptResult
    draft: ActivityDraft
    seed: Optional[ActivityDraftSeed] = None
    events: List[PipelineEvent] = field(default_factory=list)

    def has_event(self, kind: EventKind) -> bool:
        return any(e.kind == kind for e in self.events)
