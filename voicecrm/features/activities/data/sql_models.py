# File: voicecrm/features/activities/data/sql_models.py
import math
import uuid
from typing import Optional

from sqlalchemy import (
    JSON, Boolean, Column, DateTime, Enum as SQLEnum, Float, Index, Integer, String, Text, Uuid,
)
from sqlalchemy.orm import validates

from voicecrm.core.database.base import Base, as_utc, utc_now
from voicecrm.core.enums import (
    ActivityStatus, ActivityType, Category, ClassificationState, Priority, ReviewOutcome,
)


class ActivityModel(Base):
    __tablename__ = "activities"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # --- Form fields ---
    title = Column(String(200), nullable=False)
    description = Column(Text, default="")
    customer_name = Column(String(200), nullable=False)
    contact_info = Column(String(500))
    activity_type = Column(SQLEnum(ActivityType), nullable=False, default=ActivityType.VOICE_NOTE)
    status = Column(SQLEnum(ActivityStatus), nullable=False, default=ActivityStatus.PENDING)
    priority = Column(SQLEnum(Priority), nullable=False, default=Priority.MEDIUM)
    category = Column(SQLEnum(Category), nullable=False, default=Category.PROSPECTING)
    sub_category = Column(String)
    action_items = Column(JSON, default=list)
    tags = Column(JSON, default=list)
    estimated_value = Column(Float)
    actual_value = Column(Float)
    notes = Column(Text)
    due_date = Column(DateTime(timezone=True))
    completed_date = Column(DateTime(timezone=True))

    # --- Transcription metadata ---
    transcription = Column(Text)
    transcription_language = Column(String, default="th")
    transcription_confidence = Column(Float)
    transcription_duration = Column(Float)
    is_enhanced = Column(Boolean, default=False)
    customer_info = Column(JSON, default=dict)
    deal_info = Column(JSON, default=dict)

    # --- Scoring ---
    activity_score = Column(Integer, nullable=False, default=0)
    quality_metrics = Column(JSON, default=dict)

    # --- AI classification ---
    ai_suggested_category = Column(SQLEnum(Category))
    ai_suggested_sub_category = Column(String)
    ai_confidence = Column(Float)
    ai_extracted_data = Column(JSON)
    ai_human_confirmed = Column(Boolean, nullable=False, default=False)
    ai_review_outcome = Column(SQLEnum(ReviewOutcome))
    ai_reviewed_by = Column(String)
    ai_reviewed_at = Column(DateTime(timezone=True))

    # --- Ownership ---
    created_by = Column(String, nullable=False, index=True)
    assigned_to = Column(String)
    created_at = Column(DateTime(timezone=True), default=utc_now, index=True)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    __table_args__ = (
        Index("ix_activities_review_queue", "ai_human_confirmed", "created_at"),
    )

    @validates("status")
    def _stamp_completion(self, _key, status):
        if status == ActivityStatus.COMPLETED and self.completed_date is None:
            self.completed_date = utc_now()
        return status

    @property
    def classification_state(self) -> ClassificationState:
        if self.ai_confidence is None:
            return ClassificationState.UNCLASSIFIED
        if not self.ai_human_confirmed:
            return ClassificationState.PENDING
        if self.ai_review_outcome == ReviewOutcome.REJECTED:
            return ClassificationState.REJECTED
        return ClassificationState.CONFIRMED

    @property
    def is_overdue(self) -> bool:
        if self.due_date is None or self.status in (ActivityStatus.COMPLETED, ActivityStatus.CANCELLED):
            return False
        return utc_now() > as_utc(self.due_date)

    @property
    def days_until_due(self) -> Optional[int]:
        if self.due_date is None:
            return None
        return math.ceil((as_utc(self.due_date) - utc_now()).total_seconds() / 86400)
