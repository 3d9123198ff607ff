"""Post-generation roadmap checks.

A failing roadmap is rejected outright. Nothing here repairs the step list:
a broken list means the matcher has a bug, and repairing it would hide that.
"""

from collections import Counter
from collections.abc import Collection, Sequence
from enum import Enum

from pydantic import BaseModel

from app.schemas.roadmap import CandidateStep
from app.services.content_matcher import MAX_STEPS, MIN_STEPS


class ValidationReason(str, Enum):
    STEP_COUNT = "step_count"
    ORDER_NOT_CONTIGUOUS = "order_not_contiguous"
    UNKNOWN_CONTENT = "unknown_content"
    DUPLICATE_CONTENT = "duplicate_content"


class ValidationIssue(BaseModel):
    reason: ValidationReason
    detail: str


class RoadmapValidation(BaseModel):
    issues: list[ValidationIssue] = []

    @property
    def is_valid(self) -> bool:
        return not self.issues

    @property
    def reasons(self) -> set[ValidationReason]:
        return {issue.reason for issue in self.issues}


def validate_roadmap(
    steps: Sequence[CandidateStep],
    known_content_ids: Collection[str],
) -> RoadmapValidation:
    """Check a candidate step list before it is persisted."""
    issues: list[ValidationIssue] = []

    if not MIN_STEPS <= len(steps) <= MAX_STEPS:
        issues.append(
            ValidationIssue(
                reason=ValidationReason.STEP_COUNT,
                detail=f"Roadmap should have {MIN_STEPS}-{MAX_STEPS} steps, but has {len(steps)}",
            )
        )

    orders = sorted(step.order for step in steps)
    if orders != list(range(len(steps))):
        issues.append(
            ValidationIssue(
                reason=ValidationReason.ORDER_NOT_CONTIGUOUS,
                detail=f"Step orders {orders} are not unique and contiguous from 0",
            )
        )

    unknown = sorted(
        {s.knowledge_content_id for s in steps if s.knowledge_content_id not in known_content_ids}
    )
    if unknown:
        issues.append(
            ValidationIssue(
                reason=ValidationReason.UNKNOWN_CONTENT,
                detail=f"Unknown knowledge content ids: {', '.join(unknown)}",
            )
        )

    counts = Counter(step.knowledge_content_id for step in steps)
    duplicates = sorted(content_id for content_id, n in counts.items() if n > 1)
    if duplicates:
        issues.append(
            ValidationIssue(
                reason=ValidationReason.DUPLICATE_CONTENT,
                detail=f"Duplicate knowledge content ids: {', '.join(duplicates)}",
            )
        )

    return RoadmapValidation(issues=issues)
