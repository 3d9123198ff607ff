"""Roadmap step API routes."""

from fastapi import APIRouter, status

from app.api.deps import CurrentUser, DBDep
from app.api.errors import to_http_exception
from app.core.errors import StepStateError
from app.schemas.roadmap import (
    ReflectionCreate,
    ReflectionResponse,
    RoadmapStepResponse,
    StepCompletion,
    StepPlan,
)
from app.services import roadmap_service

router = APIRouter(prefix="/steps", tags=["steps"])


@router.put("/{step_id}/plan", response_model=RoadmapStepResponse)
async def save_plan(step_id: int, plan: StepPlan, db: DBDep, user_id: CurrentUser) -> dict:
    """Save the plan for the current step without completing it."""
    try:
        step = await roadmap_service.save_plan(db, step_id, plan, user_id)
    except StepStateError as exc:
        raise to_http_exception(exc) from exc
    return RoadmapStepResponse.model_validate(step).model_dump(mode="json")


@router.post("/{step_id}/complete", response_model=StepCompletion)
async def complete_step(
    step_id: int,
    plan: StepPlan,
    db: DBDep,
    user_id: CurrentUser,
) -> StepCompletion:
    """Complete the current step and unlock the next one in a single transaction.

    A 409 with ``kind=already_completed`` means an earlier call succeeded.
    """
    try:
        return await roadmap_service.complete_step(db, step_id, plan, user_id)
    except StepStateError as exc:
        raise to_http_exception(exc) from exc


@router.post(
    "/{step_id}/reflections",
    response_model=ReflectionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def record_reflection(
    step_id: int,
    data: ReflectionCreate,
    db: DBDep,
    user_id: CurrentUser,
) -> dict:
    """Record how applying a completed step went."""
    try:
        log = await roadmap_service.record_reflection(db, step_id, user_id, data)
    except StepStateError as exc:
        raise to_http_exception(exc) from exc
    return ReflectionResponse.model_validate(log).model_dump(mode="json")
