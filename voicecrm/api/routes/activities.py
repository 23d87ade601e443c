# File: voicecrm/api/routes/activities.py
import logging
from datetime import timedelta
from typing import Any, Dict
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status

from voicecrm.core.database.base import utc_now
from voicecrm.core.errors import NotFound
from voicecrm.features.activities.domain.models import VoiceActivityPayload
from voicecrm.features.scoring.service.aggregation import build_dashboard, dashboard_window_start, user_performance
from ..auth import require_user
from ..schemas import ActivityCreate, ConfirmClassificationRequest, serialize_activity

router = APIRouter(prefix="/activities", tags=["activities"])
logger = logging.getLogger(__name__)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_activity(body: ActivityCreate,
                    request: Request,
                    user_id: str = Depends(require_user)) -> Dict[str, Any]:
    activity = request.app.state.activity_service.submit(body.to_draft(), body.to_transcript(), user_id)
    return {"success": True, "data": serialize_activity(activity)}


@router.post("/from-voice", status_code=status.HTTP_201_CREATED)
def create_from_voice(body: VoiceActivityPayload,
                      request: Request,
                      user_id: str = Depends(require_user)) -> Dict[str, Any]:
    activity = request.app.state.activity_service.create_from_voice(body, user_id)
    return {"success": True, "data": serialize_activity(activity)}


@router.get("/pending-review")
def pending_review(request: Request,
                   limit: int = Query(10),
                   user_id: str = Depends(require_user)) -> Dict[str, Any]:
    activities = request.app.state.review_queue.list_pending(limit)
    return {
        "success": True,
        "data": [serialize_activity(a) for a in activities],
        "count": len(activities),
    }


@router.put("/{activity_id}/confirm-classification")
def confirm_classification(activity_id: UUID,
                           body: ConfirmClassificationRequest,
                           request: Request,
                           user_id: str = Depends(require_user)) -> Dict[str, Any]:
    activity = request.app.state.review_queue.confirm_classification(
        activity_id, body.confirmed, body.updates, reviewer_id=user_id,
    )
    return {
        "success": True,
        "data": serialize_activity(activity),
        "message": "Classification confirmed" if body.confirmed else "Classification rejected",
    }


@router.get("/analytics/dashboard")
def dashboard(request: Request,
              months: int = Query(12, ge=1, le=120),
              user_id: str = Depends(require_user)) -> Dict[str, Any]:
    now = utc_now()
    activities = request.app.state.repository.list_created_since(dashboard_window_start(months, now))
    stats = build_dashboard(activities, months=months, now=now)
    return {"success": True, "data": stats.to_dict()}


@router.get("/performance/user")
def my_performance(request: Request,
                   days: int = Query(30, ge=1, le=3650),
                   user_id: str = Depends(require_user)) -> Dict[str, Any]:
    return _performance(request, user_id, days)


@router.get("/performance/user/{target_user_id}")
def user_performance_for(target_user_id: str,
                         request: Request,
                         days: int = Query(30, ge=1, le=3650),
                         user_id: str = Depends(require_user)) -> Dict[str, Any]:
    return _performance(request, target_user_id, days)


def _performance(request: Request, target_user_id: str, days: int) -> Dict[str, Any]:
    now = utc_now()
    # All users in the window, so the rank is meaningful
    activities = request.app.state.repository.list_created_since(now - timedelta(days=days))
    performance = user_performance(activities, target_user_id, now=now)
    return {"success": True, "data": performance.to_dict()}


@router.get("/score/{activity_id}")
def activity_score(activity_id: UUID,
                   request: Request,
                   user_id: str = Depends(require_user)) -> Dict[str, Any]:
    activity = request.app.state.repository.get(activity_id)
    if activity is None:
        raise NotFound(f"Activity {activity_id} not found")
    breakdown = request.app.state.scoring.score(activity)
    return {"success": True, "data": {"activityId": str(activity.id), **breakdown.to_dict()}}
