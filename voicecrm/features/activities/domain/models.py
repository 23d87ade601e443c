# File: voicecrm/features/activities/domain/models.py
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from voicecrm.core.enums import Category, Priority


class ClassificationUpdates(BaseModel):
    """
    Human corrections sent along with a confirm/reject decision.
    Unknown keys are rejected so a typo never silently drops a correction.
    """
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    category: Optional[Category] = None
    sub_category: Optional[str] = Field(default=None, alias="subCategory")
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    customer_name: Optional[str] = Field(default=None, alias="customerName", min_length=1, max_length=200)
    priority: Optional[Priority] = None
    estimated_value: Optional[float] = Field(default=None, alias="estimatedValue", ge=0)
    customer_info: Optional[Dict[str, Any]] = Field(default=None, alias="customerInfo")
    deal_info: Optional[Dict[str, Any]] = Field(default=None, alias="dealInfo")
    action_items: Optional[List[str]] = Field(default=None, alias="actionItems")
    tags: Optional[List[str]] = None


class VoiceActivityPayload(BaseModel):
    """A finished transcription handed over for automatic activity creation."""
    model_config = ConfigDict(populate_by_name=True)

    transcription: str = Field(min_length=1)
    transcription_language: Optional[str] = Field(default=None, alias="transcriptionLanguage")
    transcription_confidence: Optional[float] = Field(default=None, alias="transcriptionConfidence", ge=0, le=1)
    transcription_duration: Optional[float] = Field(default=None, alias="transcriptionDuration", ge=0)
    is_enhanced: bool = Field(default=False, alias="isEnhanced")
    customer_info: Dict[str, Any] = Field(default_factory=dict, alias="customerInfo")
    deal_info: Dict[str, Any] = Field(default_factory=dict, alias="dealInfo")
    action_items: List[str] = Field(default_factory=list, alias="actionItems")
    summary: Optional[str] = None
    title: Optional[str] = None
    customer_name: Optional[str] = Field(default=None, alias="customerName")
    recorded_at: Optional[datetime] = Field(default=None, alias="recordedAt")
