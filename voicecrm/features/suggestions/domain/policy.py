# File: voicecrm/features/suggestions/domain/policy.py
from dataclasses import dataclass
from enum import Enum, unique
from typing import Optional, Tuple


@unique
class Basis(str, Enum):
    OVERALL = "overall"   # the extraction run's overall confidence
    FIELD = "field"       # the matching suggestion's own confidence
    NEVER = "never"       # always left for the user


@dataclass(frozen=True)
class FieldPolicy:
    fields: Tuple[str, ...]
    basis: Basis
    threshold: float = 1.0


@dataclass(frozen=True)
class MergePolicy:
    rules: Tuple[FieldPolicy, ...]

    def rule_for(self, field_name: str) -> Optional[FieldPolicy]:
        return next((r for r in self.rules if field_name in r.fields), None)


BULK_FIELDS = ("title", "description", "activityType", "priority", "category", "actionItems", "tags")

DEFAULT_POLICY = MergePolicy(rules=(
    FieldPolicy(BULK_FIELDS, Basis.OVERALL, 0.70),
    FieldPolicy(("customerName",), Basis.FIELD, 0.60),
    FieldPolicy(("contactInfo",), Basis.FIELD, 0.60),
    FieldPolicy(("estimatedValue",), Basis.FIELD, 0.50),
    FieldPolicy(("dueDate",), Basis.NEVER),
))
