# File: voicecrm/features/activities/data/repository.py
import logging
from datetime import datetime
from typing import Callable, List, Optional
from uuid import UUID

from voicecrm.core.database.connection import SessionLocal
from .sql_models import ActivityModel
from ..domain.interfaces import IActivityRepository

logger = logging.getLogger(__name__)


class SqlActivityRepository(IActivityRepository):
    def __init__(self, session_factory=None):
        self.session_factory = session_factory or SessionLocal

    def add(self, activity: ActivityModel) -> ActivityModel:
        with self.session_factory() as db:
            try:
                db.add(activity)
                db.commit()
                db.refresh(activity)
                return activity
            except Exception:
                db.rollback()
                raise

    def get(self, activity_id: UUID) -> Optional[ActivityModel]:
        with self.session_factory() as db:
            return db.get(ActivityModel, activity_id)

    def update(self, activity_id: UUID, mutate: Callable[[ActivityModel], bool]) -> Optional[ActivityModel]:
        with self.session_factory() as db:
            try:
                # Row lock where the backend supports it; last writer wins otherwise.
                activity = db.get(ActivityModel, activity_id, with_for_update=True)
                if activity is None:
                    return None
                if mutate(activity):
                    db.commit()
                    db.refresh(activity)
                return activity
            except Exception:
                db.rollback()
                raise

    def list_pending_review(self, limit: int) -> List[ActivityModel]:
        with self.session_factory() as db:
            return (
                db.query(ActivityModel)
                .filter(ActivityModel.ai_confidence.isnot(None))
                .filter(ActivityModel.ai_human_confirmed.is_(False))
                .order_by(ActivityModel.created_at.desc())
                .limit(limit)
                .all()
            )

    def list_created_since(self, since: datetime, created_by: Optional[str] = None) -> List[ActivityModel]:
        with self.session_factory() as db:
            query = db.query(ActivityModel).filter(ActivityModel.created_at >= since)
            if created_by is not None:
                query = query.filter(ActivityModel.created_by == created_by)
            return query.order_by(ActivityModel.created_at.asc()).all()
