# File: voicecrm/features/intelligence/domain/models.py
from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Any, Dict, List, Optional

from voicecrm.core.enums import ActivityType, Category, Priority


@unique
class SuggestionState(str, Enum):
    UNTOUCHED = "untouched"
    APPLIED = "applied"
    DISMISSED = "dismissed"


@dataclass
class Suggestion:
    """
    A candidate value for one draft field. Once it leaves UNTOUCHED its state is final.
    """
    field: str
    value: str
    confidence: float
    reason: str
    state: SuggestionState = SuggestionState.UNTOUCHED

    def __post_init__(self):
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Suggestion confidence must be within [0, 1], got {self.confidence}")

    @property
    def is_terminal(self) -> bool:
        return self.state != SuggestionState.UNTOUCHED

    def mark(self, state: SuggestionState) -> bool:
        """Moves an untouched suggestion to `state`. Returns False when already terminal."""
        if self.is_terminal:
            return False
        self.state = state
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field": self.field,
            "value": self.value,
            "confidence": self.confidence,
            "reason": self.reason,
            "state": self.state.value,
        }


@dataclass(frozen=True)
class ClassificationResult:
    category: Category
    sub_category: str
    confidence: float
    extracted_data: Dict[str, Any] = field(default_factory=dict)
    reasoning: str = ""
    quality_score: int = 50


@dataclass
class ActivityDraftSeed:
    """Everything one extraction run inferred from a transcript."""
    title: str
    description: str
    activity_type: ActivityType
    priority: Priority
    category: Category
    sub_category: Optional[str] = None
    action_items: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    customer_name: Optional[str] = None
    contact_info: Optional[str] = None
    estimated_value: Optional[float] = None
    customer_info: Dict[str, Any] = field(default_factory=dict)
    deal_info: Dict[str, Any] = field(default_factory=dict)
    notes: str = ""
    confidence: float = 0.0
    classification: Optional[ClassificationResult] = None
    suggestions: List[Suggestion] = field(default_factory=list)
    audio_ref: Optional[str] = None
    # Title without the customer name, for drafts where the name is not applied
    anonymous_title: str = ""

    def suggestion_for(self, field_name: str) -> Optional[Suggestion]:
        return next((s for s in self.suggestions if s.field == field_name), None)
