# File: voicecrm/features/intelligence/service/extraction_engine.py
import logging
import re
from datetime import date, timedelta
from typing import List, Optional

from voicecrm.core.enums import ActivityType, Category, Priority
from voicecrm.core.errors import ExtractionFailure
from voicecrm.features.transcription.domain.models import ExtractedHints
from ..data import patterns
from ..domain.interfaces import IActivityClassifier, IExtractionEngine
from ..domain.models import ActivityDraftSeed, Suggestion
from .classifier import ActivityClassifier

logger = logging.getLogger(__name__)

# Evidence weights for the overall confidence.
BASE_CONFIDENCE = 0.40
CONFIDENCE_WEIGHTS = {
    "customer_name": 0.14,
    "company": 0.10,
    "estimated_value": 0.10,
    "tags": 0.08,
    "contact": 0.05,
    "action_items": 0.05,
    "activity_type": 0.03,
    "category": 0.03,
    "hints": 0.05,
}
MAX_CONFIDENCE = 0.95

# Per-field suggestion confidences.
VALUE_CONFIDENCE = 0.55
BUDGET_VALUE_CONFIDENCE = 0.70
EMAIL_CONFIDENCE = 0.75
PHONE_CONFIDENCE = 0.60
PRIORITY_CONFIDENCE = 0.75
ACTIVITY_TYPE_CONFIDENCE = 0.70
DUE_DATE_CONFIDENCE = 0.60
FOLLOW_UP_DAYS = 7

# Model-extracted hints are trusted above regex matches.
HINT_NAME_CONFIDENCE = 0.90
HINT_CONTACT_CONFIDENCE = 0.85
HINT_VALUE_CONFIDENCE = 0.80


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value}"


class ExtractionEngine(IExtractionEngine):
    """
    Rule-based extraction of CRM fields from a transcript.

    Output is a pure function of (text, hints, reference_date): the same
    transcript always yields the same fields and suggestions.
    """

    def __init__(self, classifier: Optional[IActivityClassifier] = None):
        self.classifier = classifier or ActivityClassifier()

    def extract(self,
                text: str,
                audio_ref: Optional[str] = None,
                hints: Optional[ExtractedHints] = None,
                reference_date: Optional[date] = None) -> ActivityDraftSeed:
        text = (text or "").strip()
        if not patterns.has_letters(text):
            logger.info("Transcript has no usable text; returning an empty draft seed")
            return self._empty_seed(text, audio_ref)

        try:
            return self._extract(text, audio_ref, hints, reference_date or date.today())
        except (re.error, ValueError, TypeError, KeyError) as e:
            raise ExtractionFailure(f"Extraction failed: {e}") from e

    def _extract(self, text: str, audio_ref: Optional[str], hints: Optional[ExtractedHints],
                 reference_date: date) -> ActivityDraftSeed:
        lowered = text.lower()
        suggestions: List[Suggestion] = []
        evidence = set()

        # --- Customer ---
        customer_name, name_confidence = patterns.find_customer_name(text)
        name_reason = "ตรวจพบชื่อลูกค้าในการสนทนา"
        company = patterns.find_company(text)
        phone = patterns.find_phone(text)
        email = patterns.find_email(text)

        if hints is not None and hints.customer_info.get("name"):
            customer_name = hints.customer_info["name"]
            name_confidence = HINT_NAME_CONFIDENCE
            name_reason = "ชื่อลูกค้าจากการวิเคราะห์ถอดความ"
        if customer_name:
            evidence.add("customer_name")
            suggestions.append(Suggestion("customerName", customer_name, name_confidence, name_reason))

        if hints is not None and hints.customer_info.get("company"):
            company = hints.customer_info["company"]
        if company:
            evidence.add("company")

        contact_info, contact_confidence, contact_reason = None, 0.0, ""
        if phone:
            contact_info, contact_confidence, contact_reason = phone, PHONE_CONFIDENCE, "ตรวจพบหมายเลขโทรศัพท์"
        elif email:
            contact_info, contact_confidence, contact_reason = email, EMAIL_CONFIDENCE, "ตรวจพบอีเมล"
        if hints is not None:
            hinted = hints.customer_info.get("phone") or hints.customer_info.get("email")
            if hinted:
                contact_info, contact_confidence = hinted, HINT_CONTACT_CONFIDENCE
                contact_reason = "ข้อมูลติดต่อจากการวิเคราะห์ถอดความ"
        if contact_info:
            evidence.add("contact")
            suggestions.append(Suggestion("contactInfo", contact_info, contact_confidence, contact_reason))

        customer_info = {k: v for k, v in (
            ("name", customer_name), ("company", company), ("phone", phone), ("email", email)
        ) if v}
        if hints is not None:
            customer_info.update(hints.customer_info)

        # --- Deal ---
        estimated_value, raw_value = patterns.find_value(text)
        value_confidence = BUDGET_VALUE_CONFIDENCE if patterns.contains_any(lowered, patterns.BUDGET_KEYWORDS) \
            else VALUE_CONFIDENCE
        value_reason = "ตรวจพบมูลค่าดีลในการสนทนา"
        if hints is not None and hints.deal_info.get("value"):
            hinted_value = patterns.parse_amount(hints.deal_info["value"])
            if hinted_value is not None:
                estimated_value, raw_value = hinted_value, hints.deal_info["value"]
                value_confidence = HINT_VALUE_CONFIDENCE
                value_reason = "มูลค่าดีลจากการวิเคราะห์ถอดความ"
        if estimated_value is not None:
            evidence.add("estimated_value")
            suggestions.append(Suggestion(
                "estimatedValue", _format_number(estimated_value), value_confidence, value_reason
            ))

        deal_info = {}
        if raw_value:
            deal_info["value"] = raw_value
        status = patterns.find_deal_status(lowered)
        if status:
            deal_info["status"] = status
        probability = patterns.find_deal_probability(lowered)
        if probability is not None:
            deal_info["probability"] = probability
        if hints is not None and hints.deal_info.get("status"):
            deal_info["status"] = hints.deal_info["status"]

        # --- Classification ---
        activity_type, type_matched = patterns.find_activity_type(lowered)
        if type_matched:
            evidence.add("activity_type")
            suggestions.append(Suggestion(
                "activityType", activity_type.value, ACTIVITY_TYPE_CONFIDENCE, "ตรวจพบคำที่บ่งบอกประเภทกิจกรรม"
            ))

        priority, priority_matched = patterns.find_priority(lowered)
        if priority_matched:
            suggestions.append(Suggestion(
                "priority", priority.value, PRIORITY_CONFIDENCE, "ตรวจพบคำที่บ่งบอกความเร่งด่วน"
            ))

        classification = self.classifier.classify(text, activity_type)
        if classification.confidence > patterns.DEFAULT_CLASSIFICATION_CONFIDENCE:
            evidence.add("category")
        suggestions.append(Suggestion(
            "category", classification.category.value, classification.confidence,
            f"จัดหมวดหมู่เป็น {classification.sub_category}",
        ))

        if patterns.contains_any(lowered, patterns.FOLLOW_UP_KEYWORDS):
            due = reference_date + timedelta(days=FOLLOW_UP_DAYS)
            suggestions.append(Suggestion(
                "dueDate", due.isoformat(), DUE_DATE_CONFIDENCE, f"แนะนำให้ติดตามภายใน {FOLLOW_UP_DAYS} วัน"
            ))

        # --- Content ---
        action_items = patterns.find_action_items(text)
        if hints is not None and hints.action_items:
            action_items = list(hints.action_items)[:patterns.MAX_ACTION_ITEMS]
        if action_items:
            evidence.add("action_items")

        tags = patterns.find_tags(lowered)
        if tags:
            evidence.add("tags")

        if hints is not None and not hints.is_empty():
            evidence.add("hints")

        description = self._describe(text)
        if hints is not None and hints.summary:
            description = self._describe(hints.summary)

        anonymous_title = f"{patterns.TITLE_PHRASES[activity_type]} {patterns.DEFAULT_CUSTOMER_LABEL}"
        title = f"{patterns.TITLE_PHRASES[activity_type]} {customer_name}" if customer_name else anonymous_title

        confidence = BASE_CONFIDENCE + sum(CONFIDENCE_WEIGHTS[e] for e in evidence)
        confidence = round(min(MAX_CONFIDENCE, confidence), 2)

        logger.info(f"Extracted draft seed at confidence {confidence} with {len(suggestions)} suggestions")
        return ActivityDraftSeed(
            title=title,
            description=description,
            activity_type=activity_type,
            priority=priority,
            category=classification.category,
            sub_category=classification.sub_category,
            action_items=action_items,
            tags=tags,
            customer_name=customer_name,
            contact_info=contact_info,
            estimated_value=estimated_value,
            customer_info=customer_info,
            deal_info=deal_info,
            notes=text,
            confidence=confidence,
            classification=classification,
            suggestions=suggestions,
            audio_ref=audio_ref,
            anonymous_title=anonymous_title,
        )

    @staticmethod
    def _describe(text: str) -> str:
        if len(text) > patterns.DESCRIPTION_LIMIT:
            return text[:patterns.DESCRIPTION_LIMIT] + "..."
        return text

    @staticmethod
    def _empty_seed(text: str, audio_ref: Optional[str]) -> ActivityDraftSeed:
        return ActivityDraftSeed(
            title="",
            description="",
            activity_type=ActivityType.VOICE_NOTE,
            priority=Priority.MEDIUM,
            category=Category.QUALIFICATION,
            notes=text,
            confidence=0.0,
            audio_ref=audio_ref,
        )
