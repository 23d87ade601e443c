# File: voicecrm/features/transcription/domain/models.py
from dataclasses import dataclass, field, replace
from enum import Enum, unique
from typing import Any, Dict, List, Optional


@unique
class TranscriptStatus(str, Enum):
    SUCCESS = "success"
    FALLBACK = "fallback"
    ERROR = "error"


@dataclass(frozen=True)
class TranscriptionSegment:
    """
    A phrase with timing, as reported by engines that segment (Whisper).
    """
    start: float
    end: float
    text: str
    confidence: float = 0.0


@dataclass(frozen=True)
class ExtractedHints:
    """
    Model-extracted structure attached to an enhanced transcript.
    Empty strings / empty dicts mean "not mentioned".
    """
    customer_info: Dict[str, str] = field(default_factory=dict)   # name, company, position, email, phone
    deal_info: Dict[str, str] = field(default_factory=dict)       # value, status
    action_items: List[str] = field(default_factory=list)
    summary: str = ""
    enhanced_text: str = ""

    def is_empty(self) -> bool:
        return not (self.customer_info or self.deal_info or self.action_items or self.summary)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "customerInfo": dict(self.customer_info),
            "dealInfo": dict(self.deal_info),
            "actionItems": list(self.action_items),
            "summary": self.summary,
        }


@dataclass(frozen=True)
class TranscriptResult:
    """
    The outcome of one transcription attempt for one clip. Never mutated.
    Callers tell real from fallback results by `status`, not by content.
    """
    text: str
    status: TranscriptStatus
    language: Optional[str] = None
    confidence: Optional[float] = None
    duration_seconds: Optional[float] = None
    enhanced: bool = False
    hints: Optional[ExtractedHints] = None
    backend: str = "unknown"
    failure_reason: Optional[str] = None
    segments: List[TranscriptionSegment] = field(default_factory=list)

    def __post_init__(self):
        if self.confidence is not None and not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be within [0, 1], got {self.confidence}")
        if self.enhanced and self.hints is None:
            raise ValueError("Enhanced transcripts must carry hints.")

    @property
    def is_fallback(self) -> bool:
        return self.status == TranscriptStatus.FALLBACK

    def with_hints(self, hints: ExtractedHints) -> "TranscriptResult":
        """Returns an enhanced copy; the original stays untouched."""
        return replace(self, text=hints.enhanced_text or self.text, enhanced=True, hints=hints)
