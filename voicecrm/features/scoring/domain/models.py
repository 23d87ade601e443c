# File: voicecrm/features/scoring/domain/models.py
from dataclasses import dataclass, field
from typing import Any, Dict, List

from voicecrm.core.enums import PerformanceLevel


@dataclass(frozen=True)
class ScoreBreakdown:
    total_score: int
    components: Dict[str, float]
    grade: str
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalScore": self.total_score,
            "breakdown": dict(self.components),
            "grade": self.grade,
            "recommendations": list(self.recommendations),
        }


@dataclass(frozen=True)
class TrendStats:
    last_7_days: int
    previous_7_days: int
    last_30_days: int
    growth: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "last7Days": self.last_7_days,
            "previous7Days": self.previous_7_days,
            "last30Days": self.last_30_days,
            "growth": self.growth,
        }


@dataclass(frozen=True)
class DashboardStats:
    overview: Dict[str, Any]
    monthly_data: List[Dict[str, Any]]
    category_breakdown: Dict[str, Dict[str, Any]]
    trends: TrendStats
    recent_activities: List[Dict[str, Any]]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overview": dict(self.overview),
            "monthlyData": [dict(m) for m in self.monthly_data],
            "categoryBreakdown": {k: dict(v) for k, v in self.category_breakdown.items()},
            "trends": self.trends.to_dict(),
            "recentActivities": [dict(r) for r in self.recent_activities],
        }


@dataclass(frozen=True)
class UserPerformance:
    user_id: str
    total_score: int
    average_activity_score: float
    activity_count: int
    category_scores: Dict[str, Dict[str, float]]
    trends: Dict[str, float]
    rank: int
    level: PerformanceLevel

    def to_dict(self) -> Dict[str, Any]:
        return {
            "userId": self.user_id,
            "totalScore": self.total_score,
            "averageActivityScore": self.average_activity_score,
            "activityCount": self.activity_count,
            "categoryScores": {k: dict(v) for k, v in self.category_scores.items()},
            "trends": dict(self.trends),
            "rank": self.rank,
            "level": self.level.value,
        }
