# File: voicecrm/features/intelligence/domain/interfaces.py
from abc import ABC, abstractmethod
from datetime import date
from typing import Optional

from voicecrm.core.enums import ActivityType
from voicecrm.features.transcription.domain.models import ExtractedHints
from .models import ActivityDraftSeed, ClassificationResult


class IActivityClassifier(ABC):
    """Assigns a sales-stage category to a conversation."""

    @abstractmethod
    def classify(self, text: str, activity_type: Optional[ActivityType] = None) -> ClassificationResult:
        pass


class IExtractionEngine(ABC):
    """
    Turns transcript text into a draft seed.
    Raises ExtractionFailure only on internal faults, never for poor input.
    """

    @abstractmethod
    def extract(self,
                text: str,
                audio_ref: Optional[str] = None,
                hints: Optional[ExtractedHints] = None,
                reference_date: Optional[date] = None) -> ActivityDraftSeed:
        pass
