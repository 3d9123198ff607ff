"""Tests for post-generation roadmap checks."""

from app.schemas.roadmap import CandidateStep
from app.services.roadmap_validator import ValidationReason, validate_roadmap


def _steps(*content_ids: str) -> list[CandidateStep]:
    return [CandidateStep(knowledge_content_id=cid, order=i) for i, cid in enumerate(content_ids)]


KNOWN = {f"kc-{i}" for i in range(10)}


def test_valid_roadmap() -> None:
    result = validate_roadmap(_steps("kc-0", "kc-1", "kc-2", "kc-3", "kc-4"), KNOWN)
    assert result.is_valid
    assert result.issues == []


def test_too_few_steps() -> None:
    result = validate_roadmap(_steps("kc-0", "kc-1", "kc-2"), KNOWN)
    assert result.reasons == {ValidationReason.STEP_COUNT}


def test_too_many_steps() -> None:
    result = validate_roadmap(_steps(*[f"kc-{i}" for i in range(8)]), KNOWN)
    assert result.reasons == {ValidationReason.STEP_COUNT}


def test_order_gap() -> None:
    steps = _steps("kc-0", "kc-1", "kc-2", "kc-3", "kc-4")
    steps[4] = CandidateStep(knowledge_content_id="kc-4", order=6)
    result = validate_roadmap(steps, KNOWN)
    assert result.reasons == {ValidationReason.ORDER_NOT_CONTIGUOUS}


def test_duplicate_order() -> None:
    steps = _steps("kc-0", "kc-1", "kc-2", "kc-3", "kc-4")
    steps[1] = CandidateStep(knowledge_content_id="kc-1", order=0)
    result = validate_roadmap(steps, KNOWN)
    assert ValidationReason.ORDER_NOT_CONTIGUOUS in result.reasons


def test_unknown_content() -> None:
    result = validate_roadmap(_steps("kc-0", "kc-1", "kc-2", "kc-3", "ghost"), KNOWN)
    assert result.reasons == {ValidationReason.UNKNOWN_CONTENT}
    assert "ghost" in result.issues[0].detail


def test_duplicate_content() -> None:
    result = validate_roadmap(_steps("kc-0", "kc-1", "kc-1", "kc-3", "kc-4"), KNOWN)
    assert result.reasons == {ValidationReason.DUPLICATE_CONTENT}


def test_reports_every_issue() -> None:
    result = validate_roadmap(_steps("kc-0", "kc-0", "ghost"), KNOWN)
    assert result.reasons == {
        ValidationReason.STEP_COUNT,
        ValidationReason.UNKNOWN_CONTENT,
        ValidationReason.DUPLICATE_CONTENT,
    }
    assert not result.is_valid
