# File: tests/features/suggestions/test_merger.py

from datetime import date

import pytest

from voicecrm.core.enums import ActivityType, Category, Priority
from voicecrm.core.errors import ValidationError
from voicecrm.features.intelligence.domain.models import ActivityDraftSeed, Suggestion, SuggestionState
from voicecrm.features.intelligence.service.extraction_engine import ExtractionEngine
from voicecrm.features.suggestions.domain.models import ActivityDraft
from voicecrm.features.suggestions.domain.policy import Basis, FieldPolicy, MergePolicy
from voicecrm.features.suggestions.service.merger import merge


def make_seed(confidence, suggestions=None):
    return ActivityDraftSeed(
        title="โทรหา สมชาย",
        description="คุยเรื่องสั่งผัก",
        activity_type=ActivityType.CALL,
        priority=Priority.HIGH,
        category=Category.NEGOTIATION,
        sub_category="price-discussion",
        action_items=["ส่งใบเสนอราคา"],
        tags=["interested"],
        customer_name="สมชาย",
        notes="raw transcript",
        confidence=confidence,
        suggestions=list(suggestions or []),
    )


def test_confident_extraction_auto_fills_the_form():
    """
    Overall confidence 0.82 fills the bulk fields, and the name (0.65) and
    value (0.55) suggestions clear their per-field thresholds.
    """
    seed = ExtractionEngine().extract("คุยกับคุณสมชาย บริษัท ABC สนใจสั่งผัก 50000 บาท")

    draft = merge(seed)

    assert draft.title == "บันทึกเสียงเกี่ยวกับ สมชาย"
    assert draft.customer_name == "สมชาย"
    assert draft.estimated_value == 50000
    assert draft.category == Category.QUALIFICATION
    assert draft.tags == ["interested"]
    assert all(s.state == SuggestionState.APPLIED for s in draft.suggestions)


def test_high_overall_confidence_fills_bulk_fields():
    draft = merge(make_seed(0.75))

    assert draft.title == "โทรหา สมชาย"
    assert draft.description == "คุยเรื่องสั่งผัก"
    assert draft.activity_type == ActivityType.CALL
    assert draft.priority == Priority.HIGH
    assert draft.category == Category.NEGOTIATION
    assert draft.sub_category == "price-discussion"
    assert draft.action_items == ["ส่งใบเสนอราคา"]
    assert draft.tags == ["interested"]
    assert draft.notes == "raw transcript"


def test_threshold_is_inclusive():
    assert merge(make_seed(0.70)).title == "โทรหา สมชาย"


def test_low_overall_confidence_keeps_form_defaults():
    draft = merge(make_seed(0.69))

    assert draft.title == ""
    assert draft.activity_type == ActivityType.VOICE_NOTE
    assert draft.priority == Priority.MEDIUM
    assert draft.category == Category.PROSPECTING
    assert draft.tags == []


def test_field_suggestions_below_threshold_wait_for_the_user():
    seed = make_seed(0.5, [
        Suggestion("customerName", "สมชาย", 0.59, "name"),
        Suggestion("estimatedValue", "1,500", 0.49, "value"),
    ])

    draft = merge(seed)

    assert draft.customer_name is None
    assert draft.estimated_value is None
    assert draft.state_counts()[SuggestionState.UNTOUCHED] == 2

    assert draft.apply_suggestion(1) is True
    assert draft.estimated_value == 1500
    assert draft.suggestions[1].state == SuggestionState.APPLIED


def test_low_confidence_name_stays_out_of_the_draft():
    """
    A name heard only as "ลูกค้า X" (0.45) is below its threshold, so neither
    the name field, the title nor customer_info may carry it until applied.
    """
    seed = ExtractionEngine().extract("ลูกค้า สมศรี สนใจซื้อบริการ 50000 บาท")
    draft = merge(seed)
    index = next(i for i, s in enumerate(draft.suggestions) if s.field == "customerName")

    assert draft.suggestions[index].state == SuggestionState.UNTOUCHED
    assert draft.customer_name is None
    assert "สมศรี" not in draft.title
    assert "name" not in draft.customer_info

    assert draft.apply_suggestion(index) is True
    assert draft.customer_name == "สมศรี"
    assert draft.customer_info["name"] == "สมศรี"


def test_applying_contact_info_records_it_in_customer_info():
    draft = ActivityDraft(suggestions=[Suggestion("contactInfo", "somsri@example.com", 0.4, "email")])

    draft.apply_suggestion(0)

    assert draft.contact_info == "somsri@example.com"
    assert draft.customer_info == {"email": "somsri@example.com"}


def test_due_dates_are_never_auto_applied():
    seed = make_seed(0.95, [Suggestion("dueDate", "2026-03-08", 0.99, "follow up")])

    draft = merge(seed)

    assert draft.due_date is None
    draft.apply_suggestion(0)
    assert draft.due_date == date(2026, 3, 8)


def test_merge_leaves_the_seed_untouched():
    seed = make_seed(0.9, [Suggestion("customerName", "สมชาย", 0.9, "name")])

    draft = merge(seed)

    assert draft.suggestions[0].state == SuggestionState.APPLIED
    assert seed.suggestions[0].state == SuggestionState.UNTOUCHED


def test_dismissed_suggestions_stay_hidden():
    seed = make_seed(0.1, [
        Suggestion("customerName", "สมชาย", 0.3, "name"),
        Suggestion("priority", "urgent", 0.3, "priority"),
    ])
    draft = merge(seed)

    assert draft.dismiss_suggestion(0) is True
    assert draft.dismiss_suggestion(0) is False
    assert draft.apply_suggestion(0) is False

    assert [s.field for s in draft.visible_suggestions] == ["priority"]
    assert draft.customer_name is None
    assert draft.state_counts() == {
        SuggestionState.UNTOUCHED: 1,
        SuggestionState.APPLIED: 0,
        SuggestionState.DISMISSED: 1,
    }


def test_applying_twice_is_idempotent():
    draft = merge(make_seed(0.1, [Suggestion("customerName", "สมชาย", 0.3, "name")]))

    assert draft.apply_suggestion(0) is True
    draft.customer_name = "แก้ไขแล้ว"
    assert draft.apply_suggestion(0) is False
    assert draft.customer_name == "แก้ไขแล้ว"


def test_bad_indices_and_values_are_validation_errors():
    draft = merge(make_seed(0.1, [Suggestion("estimatedValue", "lots", 0.3, "value")]))

    with pytest.raises(ValidationError):
        draft.apply_suggestion(5)
    with pytest.raises(ValidationError):
        draft.apply_suggestion(0)
    with pytest.raises(ValidationError):
        draft.set_field("favouriteColour", "blue")


def test_custom_policy():
    policy = MergePolicy(rules=(FieldPolicy(("customerName",), Basis.NEVER),))
    seed = make_seed(0.99, [Suggestion("customerName", "สมชาย", 1.0, "name")])

    draft = merge(seed, policy)

    assert draft.customer_name is None
    assert draft.title == ""


def test_draft_validation():
    with pytest.raises(ValidationError) as excinfo:
        ActivityDraft().validate()
    assert excinfo.value.fields == ["title", "customerName"]

    with pytest.raises(ValidationError):
        ActivityDraft(title="t", customer_name="c", estimated_value=-1).validate()

    ActivityDraft(title="t", customer_name="c").validate()


def test_suggestion_confidence_bounds():
    with pytest.raises(ValueError):
        Suggestion("customerName", "x", 1.2, "bad")
