# File: voicecrm/features/suggestions/service/merger.py
import dataclasses
import logging

from voicecrm.features.intelligence.domain.models import ActivityDraftSeed, SuggestionState
from ..domain.models import CUSTOMER_INFO_FIELDS, FIELD_MAP, ActivityDraft
from ..domain.policy import Basis, DEFAULT_POLICY, MergePolicy

logger = logging.getLogger(__name__)

# Seed attribute for each bulk field.
_SEED_ATTRIBUTES = {
    "title": "title",
    "description": "description",
    "activityType": "activity_type",
    "priority": "priority",
    "category": "category",
    "actionItems": "action_items",
    "tags": "tags",
}


def merge(seed: ActivityDraftSeed, policy: MergePolicy = DEFAULT_POLICY) -> ActivityDraft:
    """
    Builds a draft from an extraction seed, auto-applying every field that
    clears its policy threshold. The seed's suggestions are copied, so the
    seed itself is never modified.
    """
    draft = ActivityDraft(
        notes=seed.notes,
        customer_info=dict(seed.customer_info),
        deal_info=dict(seed.deal_info),
        confidence=seed.confidence,
        suggestions=[dataclasses.replace(s) for s in seed.suggestions],
    )

    overall_fields = set()
    for rule in policy.rules:
        if rule.basis == Basis.OVERALL and seed.confidence >= rule.threshold:
            overall_fields.update(rule.fields)

    for field_name in overall_fields:
        attribute = _SEED_ATTRIBUTES.get(field_name)
        if attribute is None:
            continue
        value = getattr(seed, attribute)
        setattr(draft, FIELD_MAP[field_name][0], list(value) if isinstance(value, list) else value)
    if "category" in overall_fields:
        draft.sub_category = seed.sub_category

    applied = 0
    for index, suggestion in enumerate(draft.suggestions):
        rule = policy.rule_for(suggestion.field)
        if rule is None or rule.basis == Basis.NEVER:
            continue
        if rule.basis == Basis.OVERALL:
            if suggestion.field in overall_fields:
                # The bulk value is already in the draft.
                suggestion.mark(SuggestionState.APPLIED)
                applied += 1
        elif suggestion.confidence >= rule.threshold:
            draft.apply_suggestion(index)
            applied += 1

    # Values behind an undecided suggestion stay out of the draft until applied.
    withheld = {s.field for s in draft.suggestions if s.state != SuggestionState.APPLIED}
    for key, field_name in CUSTOMER_INFO_FIELDS.items():
        if field_name in withheld:
            draft.customer_info.pop(key, None)
    if "title" in overall_fields and "customerName" in withheld and seed.anonymous_title:
        draft.title = seed.anonymous_title

    logger.info(f"Merged draft at confidence {seed.confidence}: "
                f"{len(overall_fields)} bulk fields, {applied}/{len(draft.suggestions)} suggestions applied")
    return draft
