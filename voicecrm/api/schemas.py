# File: voicecrm/api/schemas.py
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from voicecrm.core.enums import ActivityStatus, ActivityType, Category, Priority
from voicecrm.features.activities.data.sql_models import ActivityModel
from voicecrm.features.suggestions.domain.models import ActivityDraft
from voicecrm.features.transcription.domain.models import ExtractedHints, TranscriptResult, TranscriptStatus
from voicecrm.features.voice_pipeline.domain.models import PipelineResult


class ActivityCreate(BaseModel):
    """A reviewed activity form. Required fields are checked by the draft, not here."""
    model_config = ConfigDict(populate_by_name=True)

    title: str = ""
    description: str = ""
    customer_name: Optional[str] = Field(default=None, alias="customerName")
    contact_info: Optional[str] = Field(default=None, alias="contactInfo")
    activity_type: ActivityType = Field(default=ActivityType.VOICE_NOTE, alias="activityType")
    priority: Priority = Priority.MEDIUM
    category: Category = Category.PROSPECTING
    sub_category: Optional[str] = Field(default=None, alias="subCategory")
    status: ActivityStatus = ActivityStatus.COMPLETED
    estimated_value: Optional[float] = Field(default=None, alias="estimatedValue")
    action_items: List[str] = Field(default_factory=list, alias="actionItems")
    tags: List[str] = Field(default_factory=list)
    due_date: Optional[date] = Field(default=None, alias="dueDate")
    notes: str = ""
    customer_info: Dict[str, Any] = Field(default_factory=dict, alias="customerInfo")
    deal_info: Dict[str, Any] = Field(default_factory=dict, alias="dealInfo")

    # Transcription metadata, present when the form came from a recording
    transcription: Optional[str] = None
    transcription_language: Optional[str] = Field(default=None, alias="transcriptionLanguage")
    transcription_confidence: Optional[float] = Field(default=None, alias="transcriptionConfidence", ge=0, le=1)
    transcription_duration: Optional[float] = Field(default=None, alias="transcriptionDuration", ge=0)
    is_enhanced: bool = Field(default=False, alias="isEnhanced")

    def to_draft(self) -> ActivityDraft:
        return ActivityDraft(
            title=self.title,
            description=self.description,
            customer_name=self.customer_name,
            contact_info=self.contact_info,
            activity_type=self.activity_type,
            priority=self.priority,
            category=self.category,
            sub_category=self.sub_category,
            status=self.status,
            estimated_value=self.estimated_value,
            action_items=list(self.action_items),
            tags=list(self.tags),
            due_date=self.due_date,
            notes=self.notes,
            customer_info=dict(self.customer_info),
            deal_info=dict(self.deal_info),
        )

    def to_transcript(self) -> Optional[TranscriptResult]:
        if not self.transcription:
            return None
        hints = None
        if self.is_enhanced:
            hints = ExtractedHints(
                customer_info={k: str(v) for k, v in self.customer_info.items() if v},
                deal_info={k: str(v) for k, v in self.deal_info.items() if v},
                action_items=list(self.action_items),
            )
        return TranscriptResult(
            text=self.transcription,
            status=TranscriptStatus.SUCCESS,
            language=self.transcription_language,
            confidence=self.transcription_confidence,
            duration_seconds=self.transcription_duration,
            enhanced=hints is not None,
            hints=hints,
            backend="client",
        )


class ConfirmClassificationRequest(BaseModel):
    confirmed: bool
    updates: Optional[Dict[str, Any]] = None


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _value(item) -> Optional[str]:
    return item.value if item is not None else None


def serialize_activity(activity: ActivityModel) -> Dict[str, Any]:
    return {
        "id": str(activity.id),
        "title": activity.title,
        "description": activity.description,
        "customerName": activity.customer_name,
        "contactInfo": activity.contact_info,
        "activityType": _value(activity.activity_type),
        "status": _value(activity.status),
        "priority": _value(activity.priority),
        "category": _value(activity.category),
        "subCategory": activity.sub_category,
        "actionItems": list(activity.action_items or []),
        "tags": list(activity.tags or []),
        "estimatedValue": activity.estimated_value,
        "notes": activity.notes,
        "dueDate": _iso(activity.due_date),
        "completedDate": _iso(activity.completed_date),
        "isOverdue": activity.is_overdue,
        "daysUntilDue": activity.days_until_due,
        "transcription": activity.transcription,
        "transcriptionLanguage": activity.transcription_language,
        "transcriptionConfidence": activity.transcription_confidence,
        "transcriptionDuration": activity.transcription_duration,
        "isEnhanced": bool(activity.is_enhanced),
        "customerInfo": dict(activity.customer_info or {}),
        "dealInfo": dict(activity.deal_info or {}),
        "activityScore": activity.activity_score,
        "aiClassification": {
            "state": activity.classification_state.value,
            "suggestedCategory": _value(activity.ai_suggested_category),
            "suggestedSubCategory": activity.ai_suggested_sub_category,
            "confidence": activity.ai_confidence,
            "humanConfirmed": bool(activity.ai_human_confirmed),
            "reviewOutcome": _value(activity.ai_review_outcome),
            "reviewedBy": activity.ai_reviewed_by,
            "reviewedAt": _iso(activity.ai_reviewed_at),
            "extractedData": activity.ai_extracted_data,
        },
        "createdBy": activity.created_by,
        "assignedTo": activity.assigned_to,
        "createdAt": _iso(activity.created_at),
        "updatedAt": _iso(activity.updated_at),
    }


def serialize_transcript(transcript: TranscriptResult) -> Dict[str, Any]:
    data = {
        "transcription": transcript.text,
        "language": transcript.language,
        "confidence": transcript.confidence,
        "duration": transcript.duration_seconds,
        "enhanced": transcript.enhanced,
        "status": transcript.status.value,
    }
    if transcript.hints is not None:
        data.update(transcript.hints.to_dict())
    return data


def serialize_draft(draft: ActivityDraft) -> Dict[str, Any]:
    return {
        "title": draft.title,
        "description": draft.description,
        "customerName": draft.customer_name,
        "contactInfo": draft.contact_info,
        "activityType": draft.activity_type.value,
        "priority": draft.priority.value,
        "category": draft.category.value,
        "subCategory": draft.sub_category,
        "status": draft.status.value,
        "estimatedValue": draft.estimated_value,
        "actionItems": list(draft.action_items),
        "tags": list(draft.tags),
        "dueDate": draft.due_date.isoformat() if draft.due_date else None,
        "notes": draft.notes,
        "customerInfo": dict(draft.customer_info),
        "dealInfo": dict(draft.deal_info),
        "confidence": draft.confidence,
        "suggestions": [s.to_dict() for s in draft.suggestions],
    }


def serialize_pipeline_result(result: PipelineResult) -> Dict[str, Any]:
    return {
        "transcript": serialize_transcript(result.transcript),
        "draft": serialize_draft(result.draft),
        "events": [
            {"kind": e.kind.value, "level": e.level.value, "message": e.message}
            for e in result.events
        ],
    }
