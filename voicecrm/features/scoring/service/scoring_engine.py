# File: voicecrm/features/scoring/service/scoring_engine.py
import logging
from datetime import datetime
from typing import Dict, List, Optional

from voicecrm.core.database.base import as_utc, utc_now
from voicecrm.core.enums import ActivityStatus, Category
from ..domain.models import ScoreBreakdown

logger = logging.getLogger(__name__)

# (upper bound in seconds, points). Longer conversations score higher.
DURATION_STEPS = ((60, 5), (300, 10), (900, 15), (1800, 18))
DURATION_MAX = 20

# (max age in days, points)
RECENCY_STEPS = ((7, 10), (30, 7), (90, 4))
RECENCY_FLOOR = 1

CLASSIFICATION_MAX = 15

CATEGORY_BONUS: Dict[Category, int] = {
    Category.PROSPECTING: 2,
    Category.QUALIFICATION: 4,
    Category.PRESENTATION: 6,
    Category.NEGOTIATION: 8,
    Category.CLOSING: 10,
    Category.FOLLOW_UP: 3,
    Category.SUPPORT: 2,
}

GRADE_STEPS = ((90, "A"), (80, "B"), (70, "C"), (60, "D"))


def _filled(value) -> bool:
    return bool(value and str(value).strip())


class ScoringEngine:
    """
    Scores one activity on a 0..100 scale.

    Every component only ever grows with its input (more fields filled, higher
    confidence, newer record, longer call), and the sum is clamped.
    """

    def score(self, activity, now: Optional[datetime] = None) -> ScoreBreakdown:
        now = now or utc_now()
        components = {
            "completeness": self._completeness(activity),
            "classification": self._classification(activity),
            "recency": self._recency(activity, now),
            "duration": self._duration(activity),
            "engagement": self._engagement(activity),
            "outcomes": self._outcomes(activity),
            "categoryBonus": self._category_bonus(activity),
        }
        total = int(round(max(0.0, min(100.0, sum(components.values())))))
        return ScoreBreakdown(
            total_score=total,
            components=components,
            grade=self.grade(total),
            recommendations=self._recommendations(activity, components, total),
        )

    @staticmethod
    def grade(total: int) -> str:
        for bound, letter in GRADE_STEPS:
            if total >= bound:
                return letter
        return "F"

    # --- Components ---

    @staticmethod
    def _completeness(activity) -> float:
        score = 0.0
        for value in (activity.title, activity.customer_name, activity.description):
            if _filled(value):
                score += 4
        score += min(8, 2 * len(activity.action_items or []))
        return score

    @staticmethod
    def _classification(activity) -> float:
        if activity.ai_human_confirmed:
            return float(CLASSIFICATION_MAX)
        if activity.ai_confidence is None:
            return 0.0
        return round(CLASSIFICATION_MAX * max(0.0, min(1.0, activity.ai_confidence)), 2)

    @staticmethod
    def _recency(activity, now: datetime) -> float:
        created_at = as_utc(activity.created_at) or now
        age_days = max(0.0, (now - created_at).total_seconds() / 86400)
        for max_age, points in RECENCY_STEPS:
            if age_days <= max_age:
                return float(points)
        return float(RECENCY_FLOOR)

    @staticmethod
    def _duration(activity) -> float:
        seconds = activity.transcription_duration or (activity.quality_metrics or {}).get("duration") or 0
        for bound, points in DURATION_STEPS:
            if seconds < bound:
                return float(points)
        return float(DURATION_MAX)

    @staticmethod
    def _engagement(activity) -> float:
        score = 0.0
        if activity.is_enhanced:
            score += 5
        customer_info = activity.customer_info or {}
        if customer_info.get("name") or customer_info.get("company"):
            score += 5
        deal_info = activity.deal_info or {}
        if deal_info.get("value") or deal_info.get("status"):
            score += 5
        return score

    @staticmethod
    def _outcomes(activity) -> float:
        score = 0.0
        if activity.estimated_value and activity.estimated_value > 0:
            score += 5
        if activity.status == ActivityStatus.COMPLETED:
            score += 10
        elif activity.status == ActivityStatus.FOLLOW_UP:
            score += 5
        return score

    @staticmethod
    def _category_bonus(activity) -> float:
        try:
            return float(CATEGORY_BONUS[Category(activity.category)])
        except (KeyError, ValueError):
            return float(min(CATEGORY_BONUS.values()))

    @staticmethod
    def _recommendations(activity, components: Dict[str, float], total: int) -> List[str]:
        tips = []
        if components["duration"] < 10:
            tips.append("ใช้เวลาในการสนทนากับลูกค้าให้มากขึ้นเพื่อสร้างความสัมพันธ์")
        if components["engagement"] < 10:
            tips.append("ถามคำถามเพิ่มเติมเพื่อเข้าใจความต้องการของลูกค้า")
        if components["outcomes"] < 10:
            tips.append("กำหนด action items และขั้นตอนถัดไปให้ชัดเจน")
        if not activity.action_items:
            tips.append("บันทึก action items หลังการสนทนาเสมอ")
        if not activity.estimated_value:
            tips.append("ประเมินมูลค่าของโอกาสทางการขาย")
        if activity.category == Category.PROSPECTING and total < 60:
            tips.append("เพิ่มการวิจัยข้อมูลลูกค้าก่อนติดต่อ")
        return tips
