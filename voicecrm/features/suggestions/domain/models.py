# File: voicecrm/features/suggestions/domain/models.py
import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

from voicecrm.core.enums import ActivityStatus, ActivityType, Category, Priority
from voicecrm.core.errors import ValidationError
from voicecrm.features.intelligence.domain.models import Suggestion, SuggestionState

logger = logging.getLogger(__name__)


def _parse_number(value: str) -> float:
    return float(str(value).replace(",", "").strip())


def _parse_date(value: str) -> date:
    return date.fromisoformat(str(value).strip()[:10])


# Suggestion field -> (draft attribute, parser)
FIELD_MAP: Dict[str, tuple] = {
    "title": ("title", str),
    "description": ("description", str),
    "customerName": ("customer_name", str),
    "contactInfo": ("contact_info", str),
    "estimatedValue": ("estimated_value", _parse_number),
    "activityType": ("activity_type", ActivityType),
    "priority": ("priority", Priority),
    "category": ("category", Category),
    "actionItems": ("action_items", list),
    "tags": ("tags", list),
    "dueDate": ("due_date", _parse_date),
}

# customer_info keys that mirror a suggestion-gated field
CUSTOMER_INFO_FIELDS: Dict[str, str] = {
    "name": "customerName",
    "phone": "contactInfo",
    "email": "contactInfo",
}


@dataclass
class ActivityDraft:
    """
    Editable form state built from one extraction run. Defaults mirror an
    empty activity form; `suggestions` keeps the run's order so indices stay stable.
    """
    title: str = ""
    description: str = ""
    customer_name: Optional[str] = None
    contact_info: Optional[str] = None
    activity_type: ActivityType = ActivityType.VOICE_NOTE
    priority: Priority = Priority.MEDIUM
    category: Category = Category.PROSPECTING
    sub_category: Optional[str] = None
    status: ActivityStatus = ActivityStatus.COMPLETED
    estimated_value: Optional[float] = None
    action_items: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    due_date: Optional[date] = None
    notes: str = ""
    customer_info: Dict[str, Any] = field(default_factory=dict)
    deal_info: Dict[str, Any] = field(default_factory=dict)
    confidence: float = 0.0
    suggestions: List[Suggestion] = field(default_factory=list)

    # --- Suggestions ---

    def set_field(self, field_name: str, raw_value) -> None:
        """Writes a suggestion-keyed value into the draft, parsing it for the target type."""
        if field_name not in FIELD_MAP:
            raise ValidationError(f"Unknown draft field '{field_name}'", fields=[field_name])
        attribute, parser = FIELD_MAP[field_name]
        try:
            value = parser(raw_value)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Invalid value for {field_name}: {raw_value!r}", fields=[field_name]) from e
        setattr(self, attribute, value)

    def apply_suggestion(self, index: int) -> bool:
        """Writes the suggestion's value into the draft. Returns False if it was already decided."""
        suggestion = self._suggestion_at(index)
        if suggestion.is_terminal:
            return False
        self.set_field(suggestion.field, suggestion.value)
        if suggestion.field == "customerName":
            self.customer_info["name"] = self.customer_name
        elif suggestion.field == "contactInfo":
            self.customer_info["email" if "@" in self.contact_info else "phone"] = self.contact_info
        suggestion.mark(SuggestionState.APPLIED)
        logger.debug(f"Applied suggestion {suggestion.field}={suggestion.value}")
        return True

    def dismiss_suggestion(self, index: int) -> bool:
        """Hides the suggestion; the draft is left as is."""
        return self._suggestion_at(index).mark(SuggestionState.DISMISSED)

    @property
    def visible_suggestions(self) -> List[Suggestion]:
        return [s for s in self.suggestions if s.state != SuggestionState.DISMISSED]

    def state_counts(self) -> Dict[SuggestionState, int]:
        counts = Counter(s.state for s in self.suggestions)
        return {state: counts.get(state, 0) for state in SuggestionState}

    def _suggestion_at(self, index: int) -> Suggestion:
        if not 0 <= index < len(self.suggestions):
            raise ValidationError(f"No suggestion at index {index}", fields=["suggestions"])
        return self.suggestions[index]

    # --- Submission ---

    def validate(self) -> None:
        missing = []
        if not (self.title or "").strip():
            missing.append("title")
        if not (self.customer_name or "").strip():
            missing.append("customerName")
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}", fields=missing)
        if self.estimated_value is not None and self.estimated_value < 0:
            raise ValidationError("estimatedValue must not be negative", fields=["estimatedValue"])
