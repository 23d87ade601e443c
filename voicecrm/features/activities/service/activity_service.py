# File: voicecrm/features/activities/service/activity_service.py
import logging
from datetime import date, datetime, time, timezone
from typing import Optional

from voicecrm.core.config.settings import settings
from voicecrm.core.enums import ActivityStatus, ActivityType
from voicecrm.features.intelligence.data.patterns import parse_amount
from voicecrm.features.intelligence.domain.interfaces import IActivityClassifier, IExtractionEngine
from voicecrm.features.intelligence.service.classifier import ActivityClassifier
from voicecrm.features.intelligence.service.extraction_engine import ExtractionEngine
from voicecrm.features.suggestions.domain.models import CUSTOMER_INFO_FIELDS, ActivityDraft
from voicecrm.features.suggestions.service.merger import merge
from voicecrm.features.scoring.service.scoring_engine import ScoringEngine
from voicecrm.features.transcription.domain.models import ExtractedHints, TranscriptResult, TranscriptStatus
from ..data.repository import SqlActivityRepository
from ..data.sql_models import ActivityModel
from ..domain.interfaces import IActivityRepository
from ..domain.models import VoiceActivityPayload

logger = logging.getLogger(__name__)

VOICE_CUSTOMER_PLACEHOLDER = "ลูกค้าจากการบันทึกเสียง"
VOICE_TAG = "voice-recording"
VOICE_NOTE = "สร้างจากการบันทึกเสียงอัตโนมัติ"


def _due_datetime(value: Optional[date]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.combine(value, time(23, 59, 59), tzinfo=timezone.utc)


class ActivityService:
    """
    Persists reviewed drafts as activities. Each new activity is classified;
    classifications under the confirmation bar wait in the review queue.
    """

    def __init__(self,
                 repository: Optional[IActivityRepository] = None,
                 classifier: Optional[IActivityClassifier] = None,
                 engine: Optional[IExtractionEngine] = None,
                 scoring: Optional[ScoringEngine] = None,
                 confirmation_bar: Optional[float] = None):
        self.repository = repository or SqlActivityRepository()
        self.classifier = classifier or ActivityClassifier()
        self.engine = engine or ExtractionEngine(self.classifier)
        self.scoring = scoring or ScoringEngine()
        self.confirmation_bar = confirmation_bar if confirmation_bar is not None else settings.CONFIRMATION_BAR

    def submit(self,
               draft: ActivityDraft,
               transcript: Optional[TranscriptResult] = None,
               user_id: Optional[str] = None) -> ActivityModel:
        draft.validate()
        user_id = user_id or settings.DEFAULT_USER_ID

        activity = ActivityModel(
            title=draft.title.strip(),
            description=draft.description,
            customer_name=draft.customer_name.strip(),
            contact_info=draft.contact_info,
            activity_type=draft.activity_type,
            priority=draft.priority,
            category=draft.category,
            sub_category=draft.sub_category,
            action_items=list(draft.action_items),
            tags=list(draft.tags),
            estimated_value=draft.estimated_value,
            notes=draft.notes,
            due_date=_due_datetime(draft.due_date),
            customer_info=dict(draft.customer_info),
            deal_info=dict(draft.deal_info),
            status=draft.status,
            created_by=user_id,
            assigned_to=user_id,
        )

        if transcript is not None and transcript.status != TranscriptStatus.ERROR:
            activity.transcription = transcript.text
            activity.transcription_language = transcript.language or settings.TRANSCRIPTION_LANGUAGE
            activity.transcription_confidence = transcript.confidence
            activity.transcription_duration = transcript.duration_seconds
            activity.is_enhanced = transcript.enhanced

        text = activity.transcription or draft.notes or draft.description
        if text and text.strip():
            self._classify(activity, text)

        activity.quality_metrics = {
            "duration": activity.transcription_duration or 0,
            "followUpCompleted": False,
        }
        activity.activity_score = self.scoring.score(activity).total_score

        saved = self.repository.add(activity)
        logger.info(
            f"Activity {saved.id} created by {user_id}: category={saved.category.value}, "
            f"ai_confidence={saved.ai_confidence}, confirmed={saved.ai_human_confirmed}, score={saved.activity_score}"
        )
        return saved

    def create_from_voice(self, payload: VoiceActivityPayload, user_id: Optional[str] = None) -> ActivityModel:
        """Builds and submits a draft straight from a transcription, filling defaults for missing fields."""
        hints = None
        if payload.is_enhanced:
            hints = ExtractedHints(
                customer_info={k: str(v) for k, v in payload.customer_info.items() if v},
                deal_info={k: str(v) for k, v in payload.deal_info.items() if v},
                action_items=list(payload.action_items),
                summary=payload.summary or "",
            )
        recorded_on = (payload.recorded_at or datetime.now(timezone.utc)).date()

        seed = self.engine.extract(payload.transcription, hints=hints, reference_date=recorded_on)
        draft = merge(seed)

        draft.title = payload.title or f"บันทึกเสียง - {recorded_on.isoformat()}"
        draft.customer_name = (
            payload.customer_name
            or payload.customer_info.get("name")
            or draft.customer_name
            or VOICE_CUSTOMER_PLACEHOLDER
        )
        draft.description = payload.summary or payload.transcription
        draft.activity_type = ActivityType.VOICE_NOTE
        draft.status = ActivityStatus.PENDING
        draft.tags = [VOICE_TAG] + [t for t in (draft.tags or seed.tags) if t != VOICE_TAG]
        draft.notes = VOICE_NOTE
        if payload.action_items:
            draft.action_items = list(payload.action_items)
        elif not draft.action_items:
            draft.action_items = list(seed.action_items)
        if draft.estimated_value is None:
            draft.estimated_value = seed.estimated_value
        if draft.estimated_value is None and payload.deal_info.get("value"):
            draft.estimated_value = parse_amount(str(payload.deal_info["value"]))
        draft.customer_info.update(payload.customer_info)
        draft.deal_info.update(payload.deal_info)
        contact = payload.customer_info.get("email") or payload.customer_info.get("phone")
        if contact:
            draft.contact_info = contact

        transcript = TranscriptResult(
            text=payload.transcription,
            status=TranscriptStatus.SUCCESS,
            language=payload.transcription_language or settings.TRANSCRIPTION_LANGUAGE,
            confidence=payload.transcription_confidence,
            duration_seconds=payload.transcription_duration,
            enhanced=hints is not None,
            hints=hints,
            backend="client",
        )
        return self.submit(draft, transcript, user_id)

    def _classify(self, activity: ActivityModel, text: str) -> None:
        classification = self.classifier.classify(text, activity.activity_type)
        activity.ai_suggested_category = classification.category
        activity.ai_suggested_sub_category = classification.sub_category
        activity.ai_confidence = classification.confidence
        activity.ai_extracted_data = classification.extracted_data
        activity.ai_human_confirmed = classification.confidence >= self.confirmation_bar
        if activity.sub_category is None:
            activity.sub_category = classification.sub_category

        # Fill gaps only; values the user already has stay. Name and contact
        # come from the reviewed form, never from the classifier.
        extracted = classification.extracted_data
        gaps = {k: v for k, v in extracted.get("customerInfo", {}).items() if k not in CUSTOMER_INFO_FIELDS}
        activity.customer_info = {**gaps, **(activity.customer_info or {})}
        activity.deal_info = {**extracted.get("dealInfo", {}), **(activity.deal_info or {})}
