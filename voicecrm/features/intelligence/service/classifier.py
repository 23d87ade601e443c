# File: voicecrm/features/intelligence/service/classifier.py
import logging
from typing import Optional

from voicecrm.core.enums import ActivityType, Category
from ..data import patterns
from ..domain.interfaces import IActivityClassifier
from ..domain.models import ClassificationResult

logger = logging.getLogger(__name__)


class ActivityClassifier(IActivityClassifier):
    """
    Keyword-rule sales-stage classifier. Rules are checked in funnel order and
    a later match overrides an earlier one, so the most advanced stage
    mentioned in the conversation wins.
    """

    def classify(self, text: str, activity_type: Optional[ActivityType] = None) -> ClassificationResult:
        lowered = (text or "").lower()

        category = Category.QUALIFICATION
        sub_category = patterns.DEFAULT_SUB_CATEGORY
        confidence = patterns.DEFAULT_CLASSIFICATION_CONFIDENCE
        matched = []

        for keywords, rule_category, rule_sub, rule_confidence in patterns.CATEGORY_RULES:
            if not patterns.contains_any(lowered, keywords):
                continue
            if rule_category == Category.PROSPECTING and patterns.PROSPECTING_GREETING not in lowered:
                continue
            category, sub_category, confidence = rule_category, rule_sub, rule_confidence
            matched.append(rule_category.value)

        extracted = self._extract_basic_info(text or "")
        quality = self._quality_score(text or "", extracted)

        if matched:
            reasoning = f"Rule-based classification; matched stages: {', '.join(matched)}"
        else:
            reasoning = "Rule-based classification; no stage keywords, defaulted"
        if activity_type is not None:
            reasoning += f" (activity type {activity_type.value})"

        logger.debug(f"Classified as {category.value}/{sub_category} at {confidence}")
        return ClassificationResult(
            category=category,
            sub_category=sub_category,
            confidence=confidence,
            extracted_data=extracted,
            reasoning=reasoning,
            quality_score=quality,
        )

    def _extract_basic_info(self, text: str) -> dict:
        name, _ = patterns.find_customer_name(text)
        company = patterns.find_company(text)
        _, raw_value = patterns.find_value(text)

        customer_info = {k: v for k, v in (("name", name), ("company", company)) if v}
        deal_info = {"value": raw_value} if raw_value else {}
        return {
            "customerInfo": customer_info,
            "dealInfo": deal_info,
            "actionItems": patterns.find_action_items(text),
        }

    @staticmethod
    def _quality_score(text: str, extracted: dict) -> int:
        score = 50
        if len(text) > 500:
            score += 20
        if extracted["actionItems"]:
            score += 15
        if extracted["customerInfo"]:
            score += 15
        return min(100, score)
