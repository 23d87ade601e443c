# File: voicecrm/features/scoring/service/aggregation.py
"""
Read-time folds over activity collections. Nothing here writes to the
activities it is given.
"""
import logging
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from voicecrm.core.database.base import as_utc, utc_now
from voicecrm.core.enums import ActivityStatus, PerformanceLevel
from ..domain.models import DashboardStats, TrendStats, UserPerformance

logger = logging.getLogger(__name__)

RECENT_LIMIT = 5

# (min average score, min activity count, level), best first.
LEVEL_STEPS = (
    (85, 50, PerformanceLevel.MASTER),
    (75, 30, PerformanceLevel.EXPERT),
    (65, 20, PerformanceLevel.ADVANCED),
    (55, 0, PerformanceLevel.INTERMEDIATE),
)
MIN_RANKED_ACTIVITIES = 10


def _value(item) -> str:
    return getattr(item, "value", item)


def _created(activity) -> datetime:
    return as_utc(activity.created_at)


def growth_rate(current: float, baseline: float) -> float:
    """Percent change from baseline; 0 when there is no baseline."""
    if not baseline:
        return 0.0
    return round((current - baseline) / baseline * 100, 2)


def month_start(moment: datetime, months_back: int = 0) -> datetime:
    year, month = divmod(moment.year * 12 + moment.month - 1 - months_back, 12)
    return moment.replace(year=year, month=month + 1, day=1, hour=0, minute=0, second=0, microsecond=0)


def dashboard_window_start(months: int, now: Optional[datetime] = None) -> datetime:
    """Earliest creation time the dashboard needs, including the 30-day trend."""
    now = now or utc_now()
    return min(month_start(now, max(months, 1) - 1), now - timedelta(days=30))


def performance_level(average_score: float, activity_count: int) -> PerformanceLevel:
    if activity_count < MIN_RANKED_ACTIVITIES:
        return PerformanceLevel.BEGINNER
    for min_score, min_count, level in LEVEL_STEPS:
        if average_score >= min_score and activity_count >= min_count:
            return level
    return PerformanceLevel.BEGINNER


def compute_trends(activities: Iterable, now: datetime) -> TrendStats:
    week_ago = now - timedelta(days=7)
    two_weeks_ago = now - timedelta(days=14)
    month_ago = now - timedelta(days=30)

    last_7 = previous_7 = last_30 = 0
    for activity in activities:
        created = _created(activity)
        if created is None or created > now:
            continue
        if created >= week_ago:
            last_7 += 1
        elif created >= two_weeks_ago:
            previous_7 += 1
        if created >= month_ago:
            last_30 += 1

    return TrendStats(
        last_7_days=last_7,
        previous_7_days=previous_7,
        last_30_days=last_30,
        growth=growth_rate(last_7, previous_7),
    )


def build_dashboard(activities: Iterable, months: int = 12, now: Optional[datetime] = None) -> DashboardStats:
    now = now or utc_now()
    months = max(months, 1)
    activities = list(activities)
    window_start = month_start(now, months - 1)
    windowed = [a for a in activities if _created(a) is not None and window_start <= _created(a) <= now]

    monthly_data = []
    for back in range(months - 1, -1, -1):
        start = month_start(now, back)
        end = month_start(now, back - 1)
        bucket = [a for a in windowed if start <= _created(a) < end]
        total_score = sum(a.activity_score or 0 for a in bucket)
        monthly_data.append({
            "month": start.strftime("%Y-%m"),
            "activityCount": len(bucket),
            "averageScore": round(total_score / len(bucket)) if bucket else 0,
            "totalScore": total_score,
            "estimatedValue": sum(a.estimated_value or 0 for a in bucket),
            "completedActivities": sum(1 for a in bucket if a.status == ActivityStatus.COMPLETED),
        })

    category_breakdown: Dict[str, Dict] = {}
    for activity in windowed:
        entry = category_breakdown.setdefault(
            _value(activity.category) or "uncategorized",
            {"count": 0, "totalScore": 0, "averageScore": 0, "estimatedValue": 0},
        )
        entry["count"] += 1
        entry["totalScore"] += activity.activity_score or 0
        entry["estimatedValue"] += activity.estimated_value or 0
    for entry in category_breakdown.values():
        entry["averageScore"] = round(entry["totalScore"] / entry["count"])

    total = len(windowed)
    completed = sum(1 for a in windowed if a.status == ActivityStatus.COMPLETED)
    overview = {
        "totalActivities": total,
        "completedActivities": completed,
        "pendingActivities": sum(1 for a in windowed if a.status == ActivityStatus.PENDING),
        "totalEstimatedValue": sum(a.estimated_value or 0 for a in windowed),
        "averageActivityScore": round(sum(a.activity_score or 0 for a in windowed) / total) if total else 0,
        "completionRate": round(completed / total * 100) if total else 0,
    }

    recent = sorted(windowed, key=_created, reverse=True)[:RECENT_LIMIT]
    recent_activities = [{
        "id": str(a.id),
        "title": a.title,
        "customerName": a.customer_name,
        "category": _value(a.category),
        "activityScore": a.activity_score,
        "createdAt": _created(a).isoformat(),
        "status": _value(a.status),
    } for a in recent]

    return DashboardStats(
        overview=overview,
        monthly_data=monthly_data,
        category_breakdown=category_breakdown,
        trends=compute_trends(activities, now),
        recent_activities=recent_activities,
    )


def _average(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def user_performance(activities: Iterable, user_id: str, now: Optional[datetime] = None) -> UserPerformance:
    """
    Performance summary for one user. `activities` may hold other users' records,
    which are only used to rank this user.
    """
    now = now or utc_now()
    scores_by_user: Dict[str, List[int]] = defaultdict(list)
    own = []
    for activity in activities:
        scores_by_user[activity.created_by].append(activity.activity_score or 0)
        if activity.created_by == user_id:
            own.append(activity)

    if not own:
        return UserPerformance(
            user_id=user_id,
            total_score=0,
            average_activity_score=0.0,
            activity_count=0,
            category_scores={},
            trends={"last7Days": 0.0, "last30Days": 0.0, "growth": 0.0},
            rank=0,
            level=PerformanceLevel.BEGINNER,
        )

    total_score = sum(a.activity_score or 0 for a in own)
    average = total_score / len(own)

    category_scores: Dict[str, Dict[str, float]] = {}
    for activity in own:
        entry = category_scores.setdefault(_value(activity.category), {"score": 0, "count": 0, "average": 0.0})
        entry["score"] += activity.activity_score or 0
        entry["count"] += 1
    for entry in category_scores.values():
        entry["average"] = round(entry["score"] / entry["count"], 2)

    last_7 = _average([a.activity_score or 0 for a in own if _created(a) >= now - timedelta(days=7)])
    last_30 = _average([a.activity_score or 0 for a in own if _created(a) >= now - timedelta(days=30)])

    rank = 1 + sum(1 for uid, scores in scores_by_user.items() if uid != user_id and _average(scores) > average)

    return UserPerformance(
        user_id=user_id,
        total_score=total_score,
        average_activity_score=round(average, 2),
        activity_count=len(own),
        category_scores=category_scores,
        trends={"last7Days": round(last_7, 2), "last30Days": round(last_30, 2), "growth": growth_rate(last_7, last_30)},
        rank=rank,
        level=performance_level(average, len(own)),
    )
