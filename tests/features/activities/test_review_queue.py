# File: tests/features/activities/test_review_queue.py

import uuid

import pytest

from voicecrm.core.enums import Category, ClassificationState, ReviewOutcome
from voicecrm.core.errors import NotFound, ValidationError
from voicecrm.features.activities.data.repository import SqlActivityRepository
from voicecrm.features.activities.data.sql_models import ActivityModel
from voicecrm.features.activities.service.activity_service import ActivityService
from voicecrm.features.activities.service.review_queue import ReviewQueueService
from voicecrm.features.suggestions.domain.models import ActivityDraft


@pytest.fixture
def repository(session_factory):
    return SqlActivityRepository(session_factory)


@pytest.fixture
def service(repository):
    return ActivityService(repository=repository, confirmation_bar=0.75)


@pytest.fixture
def queue(repository):
    return ReviewQueueService(repository=repository, default_category="qualification")


def submit(service, notes, title="โทรหาลูกค้า", customer="สมชาย"):
    return service.submit(ActivityDraft(title=title, customer_name=customer, notes=notes), user_id="alice")


def test_low_confidence_classifications_wait_for_review(service, queue):
    pending = submit(service, "โอเค แล้วคุยกัน")          # default rule, 0.6
    confident = submit(service, "ลูกค้าตกลงเซ็นสัญญาแล้ว")  # closing, 0.9

    assert pending.classification_state == ClassificationState.PENDING
    assert confident.classification_state == ClassificationState.CONFIRMED

    ids = [a.id for a in queue.list_pending()]
    assert ids == [pending.id]


def test_unclassified_activities_are_not_pending(service, queue):
    activity = submit(service, "")

    assert activity.classification_state == ClassificationState.UNCLASSIFIED
    assert queue.list_pending() == []


def test_pending_list_is_newest_first_and_limited(service, queue):
    created = [submit(service, f"โอเค ครั้งที่ {i}") for i in range(3)]

    listed = queue.list_pending(limit=2)

    assert len(listed) == 2
    assert {a.id for a in listed} <= {a.id for a in created}
    assert listed[0].created_at >= listed[1].created_at

    with pytest.raises(ValidationError):
        queue.list_pending(limit=0)


def test_confirm_with_category_update(service, queue):
    """
    Verifies that:
    1. Confirming with a category update stores the corrected category.
    2. The activity leaves the pending queue.
    3. Confirming a second time changes nothing.
    """
    activity = submit(service, "โอเค แล้วคุยกัน")
    assert activity.ai_suggested_category == Category.QUALIFICATION
    assert activity.ai_confidence == 0.6
    assert activity.classification_state == ClassificationState.PENDING

    confirmed = queue.confirm_classification(activity.id, True, {"category": "closing"}, reviewer_id="bob")

    assert confirmed.category == Category.CLOSING
    assert confirmed.ai_suggested_category == Category.CLOSING
    assert confirmed.ai_human_confirmed is True
    assert confirmed.ai_review_outcome == ReviewOutcome.CONFIRMED
    assert confirmed.ai_reviewed_by == "bob"
    assert confirmed.ai_reviewed_at is not None
    assert queue.list_pending() == []

    again = queue.confirm_classification(activity.id, True, {"category": "support"}, reviewer_id="carol")
    assert again.category == Category.CLOSING
    assert again.ai_reviewed_by == "bob"


def test_confirm_without_updates_adopts_the_suggestion(service, queue):
    activity = submit(service, "โอเค แล้วคุยกัน")

    confirmed = queue.confirm_classification(activity.id, True)

    assert confirmed.category == Category.QUALIFICATION
    assert confirmed.sub_category == "general"
    assert confirmed.classification_state == ClassificationState.CONFIRMED


def test_reject_falls_back_to_default_category(service, queue):
    activity = submit(service, "โอเค แล้วคุยกัน")

    rejected = queue.confirm_classification(activity.id, False)

    assert rejected.ai_suggested_category is None
    assert rejected.ai_suggested_sub_category is None
    assert rejected.category == Category.QUALIFICATION
    assert rejected.ai_review_outcome == ReviewOutcome.REJECTED
    assert rejected.classification_state == ClassificationState.REJECTED
    assert queue.list_pending() == []


def test_confirming_twice_equals_confirming_once(service, queue, repository):
    activity = submit(service, "โอเค แล้วคุยกัน")

    first = queue.confirm_classification(activity.id, True, reviewer_id="bob")
    second = queue.confirm_classification(activity.id, True, reviewer_id="bob")

    stored = repository.get(activity.id)
    assert second.category == first.category
    assert second.ai_reviewed_at == first.ai_reviewed_at
    assert second.activity_score == first.activity_score
    assert stored.ai_review_outcome == ReviewOutcome.CONFIRMED
    assert stored.ai_reviewed_by == "bob"


def test_reject_with_corrections(service, queue):
    activity = submit(service, "โอเค แล้วคุยกัน")

    rejected = queue.confirm_classification(activity.id, False, {
        "category": "support",
        "subCategory": "after-sales",
        "customerName": "สมหญิง",
        "estimatedValue": 1200,
        "tags": ["vip"],
        "dealInfo": {"status": "won"},
    })

    assert rejected.category == Category.SUPPORT
    assert rejected.sub_category == "after-sales"
    assert rejected.customer_name == "สมหญิง"
    assert rejected.estimated_value == 1200
    assert rejected.tags == ["vip"]
    assert rejected.deal_info["status"] == "won"


def test_unknown_activity_is_not_found(queue):
    with pytest.raises(NotFound):
        queue.confirm_classification(uuid.uuid4(), True)


def test_unclassified_activity_cannot_be_reviewed(service, queue):
    activity = submit(service, "")

    with pytest.raises(ValidationError):
        queue.confirm_classification(activity.id, True)


@pytest.mark.parametrize("updates", [
    {"category": "not-a-stage"},
    {"estimatedValue": -5},
    {"unknownField": 1},
])
def test_invalid_updates_are_rejected(service, queue, updates):
    activity = submit(service, "โอเค แล้วคุยกัน")

    with pytest.raises(ValidationError):
        queue.confirm_classification(activity.id, True, updates)

    assert queue.list_pending()[0].id == activity.id


def test_review_rescores_the_activity(service, queue, repository):
    activity = submit(service, "โอเค แล้วคุยกัน")
    before = activity.activity_score

    confirmed = queue.confirm_classification(activity.id, True)

    assert confirmed.activity_score > before
    assert repository.get(activity.id).activity_score == confirmed.activity_score


def test_overdue_flags(service):
    activity = service.submit(
        ActivityDraft(title="t", customer_name="c", notes="โอเค"),
        user_id="alice",
    )
    assert isinstance(activity, ActivityModel)
    assert activity.is_overdue is False
    assert activity.days_until_due is None
