# File: voicecrm/features/activities/service/review_queue.py
import logging
from typing import Any, Dict, List, Optional, Union
from uuid import UUID

import pydantic

from voicecrm.core.config.settings import settings
from voicecrm.core.database.base import utc_now
from voicecrm.core.enums import Category, ReviewOutcome
from voicecrm.core.errors import NotFound, ValidationError
from voicecrm.features.scoring.service.scoring_engine import ScoringEngine
from ..data.repository import SqlActivityRepository
from ..data.sql_models import ActivityModel
from ..domain.interfaces import IActivityRepository
from ..domain.models import ClassificationUpdates

logger = logging.getLogger(__name__)

DEFAULT_PENDING_LIMIT = 10

# Plain (non-classification) columns a reviewer may correct.
_PLAIN_FIELDS = ("title", "description", "customer_name", "priority", "estimated_value", "tags", "action_items")


def parse_updates(updates: Union[None, ClassificationUpdates, Dict[str, Any]]) -> Optional[ClassificationUpdates]:
    if updates is None or isinstance(updates, ClassificationUpdates):
        return updates
    try:
        return ClassificationUpdates.model_validate(updates)
    except pydantic.ValidationError as e:
        fields = [".".join(str(part) for part in err["loc"]) for err in e.errors()]
        raise ValidationError(f"Invalid classification updates: {', '.join(fields)}", fields=fields) from e


class ReviewQueueService:
    """
    Human review of AI classifications: UNCLASSIFIED -> PENDING -> CONFIRMED | REJECTED.
    Deciding an already-decided activity is a no-op.
    """

    def __init__(self,
                 repository: Optional[IActivityRepository] = None,
                 scoring: Optional[ScoringEngine] = None,
                 default_category: Optional[str] = None):
        self.repository = repository or SqlActivityRepository()
        self.scoring = scoring or ScoringEngine()
        self.default_category = Category(default_category or settings.DEFAULT_CATEGORY)

    def list_pending(self, limit: int = DEFAULT_PENDING_LIMIT) -> List[ActivityModel]:
        if limit < 1:
            raise ValidationError("limit must be at least 1", fields=["limit"])
        return self.repository.list_pending_review(limit)

    def confirm_classification(self,
                               activity_id: UUID,
                               confirmed: bool,
                               updates: Union[None, ClassificationUpdates, Dict[str, Any]] = None,
                               reviewer_id: Optional[str] = None) -> ActivityModel:
        parsed = parse_updates(updates)
        reviewer_id = reviewer_id or settings.DEFAULT_USER_ID
        unclassified = []

        def decide(activity: ActivityModel) -> bool:
            if activity.ai_confidence is None:
                unclassified.append(activity.id)
                return False
            if activity.ai_human_confirmed:
                logger.info(f"Activity {activity.id} already reviewed; ignoring repeat decision")
                return False

            if confirmed:
                self._confirm(activity, parsed)
            else:
                self._reject(activity, parsed)

            activity.ai_human_confirmed = True
            activity.ai_reviewed_by = reviewer_id
            activity.ai_reviewed_at = utc_now()
            activity.activity_score = self.scoring.score(activity).total_score
            return True

        activity = self.repository.update(activity_id, decide)
        if activity is None:
            raise NotFound(f"Activity {activity_id} not found")
        if unclassified:
            raise ValidationError(f"Activity {activity_id} has no AI classification to review", fields=["id"])

        logger.info(
            f"Classification of {activity_id} {'confirmed' if confirmed else 'rejected'} by {reviewer_id}; "
            f"category={activity.category.value}, score={activity.activity_score}"
        )
        return activity

    def _confirm(self, activity: ActivityModel, updates: Optional[ClassificationUpdates]) -> None:
        activity.ai_review_outcome = ReviewOutcome.CONFIRMED
        if activity.ai_suggested_category is not None:
            activity.category = activity.ai_suggested_category
        if activity.ai_suggested_sub_category:
            activity.sub_category = activity.ai_suggested_sub_category
        if updates is None:
            return
        if updates.category is not None:
            activity.category = updates.category
            activity.ai_suggested_category = updates.category
        if updates.sub_category is not None:
            activity.sub_category = updates.sub_category
            activity.ai_suggested_sub_category = updates.sub_category
        self._apply_plain(activity, updates)

    def _reject(self, activity: ActivityModel, updates: Optional[ClassificationUpdates]) -> None:
        activity.ai_review_outcome = ReviewOutcome.REJECTED
        activity.ai_suggested_category = None
        activity.ai_suggested_sub_category = None
        activity.category = (updates.category if updates and updates.category else self.default_category)
        activity.sub_category = updates.sub_category if updates else None
        if updates is not None:
            self._apply_plain(activity, updates)

    @staticmethod
    def _apply_plain(activity: ActivityModel, updates: ClassificationUpdates) -> None:
        for name in _PLAIN_FIELDS:
            value = getattr(updates, name)
            if value is not None:
                setattr(activity, name, list(value) if isinstance(value, list) else value)
        # JSON columns are replaced, not mutated in place, so the change is tracked.
        if updates.customer_info is not None:
            activity.customer_info = {**(activity.customer_info or {}), **updates.customer_info}
        if updates.deal_info is not None:
            activity.deal_info = {**(activity.deal_info or {}), **updates.deal_info}
