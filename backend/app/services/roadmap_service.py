"""Roadmap persistence and the step state machine.

Step lifecycle is ``locked -> unlocked -> completed``. Every transition is a
conditional UPDATE on the expected current status (compare-and-set) inside a
single transaction, so two requests racing on one step cannot both win, and
the "complete this step, unlock the next" pair is never half-applied.
"""

from collections.abc import Sequence

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import (
    ActiveRoadmapExistsError,
    InvalidStateTransition,
    RoadmapNotFoundError,
    StepNotFoundError,
    StepStateError,
)
from app.core.logging import get_logger
from app.models.roadmap import (
    ApplicationLog,
    Roadmap,
    RoadmapStatus,
    RoadmapStep,
    StepStatus,
    utcnow,
)
from app.schemas.roadmap import (
    CandidateStep,
    ReflectionCreate,
    RoadmapProgress,
    StepCompletion,
    StepPlan,
)

logger = get_logger(__name__)


# ============================================================================
# Reads
# ============================================================================


async def get_roadmap(
    db: AsyncSession,
    roadmap_id: int,
    user_id: int | None = None,
) -> Roadmap | None:
    """Get a roadmap with its steps, optionally scoped to an owner.

    Args:
        db: Database session
        roadmap_id: Roadmap ID
        user_id: Owner to check against; ``None`` skips the check

    Returns:
        Roadmap or None
    """
    stmt = (
        select(Roadmap)
        .where(Roadmap.id == roadmap_id)
        .options(selectinload(Roadmap.steps))
        .execution_options(populate_existing=True)
    )
    if user_id is not None:
        stmt = stmt.where(Roadmap.user_id == user_id)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_active_roadmap(db: AsyncSession, user_id: int) -> Roadmap | None:
    """Get the user's active roadmap, if any."""
    result = await db.execute(
        select(Roadmap)
        .where(
            Roadmap.user_id == user_id,
            Roadmap.status == RoadmapStatus.ACTIVE,
        )
        .options(selectinload(Roadmap.steps))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def has_active_roadmap(db: AsyncSession, user_id: int) -> bool:
    result = await db.execute(
        select(Roadmap.id).where(
            Roadmap.user_id == user_id,
            Roadmap.status == RoadmapStatus.ACTIVE,
        )
    )
    return result.first() is not None


async def list_user_roadmaps(db: AsyncSession, user_id: int) -> list[Roadmap]:
    """List all roadmaps for a user, newest first."""
    result = await db.execute(
        select(Roadmap)
        .where(Roadmap.user_id == user_id)
        .options(selectinload(Roadmap.steps))
        .order_by(Roadmap.created_at.desc(), Roadmap.id.desc())
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def get_step(db: AsyncSession, step_id: int) -> RoadmapStep | None:
    """Get a step by ID, bypassing any stale copy in the session."""
    result = await db.execute(
        select(RoadmapStep)
        .where(RoadmapStep.id == step_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


def calc_progress(roadmap: Roadmap) -> RoadmapProgress:
    """Summarize step completion for a roadmap with loaded steps."""
    total = len(roadmap.steps)
    completed = sum(1 for step in roadmap.steps if step.status == StepStatus.COMPLETED)
    current = next((step.id for step in roadmap.steps if step.status == StepStatus.UNLOCKED), None)
    return RoadmapProgress(
        roadmap_id=roadmap.id,
        goal=roadmap.goal_description,
        status=roadmap.status,
        total_steps=total,
        completed_steps=completed,
        progress_percentage=round(completed / total * 100, 1) if total else 0.0,
        current_step_id=current,
    )


# ============================================================================
# Creation
# ============================================================================


async def create_roadmap(
    db: AsyncSession,
    *,
    user_id: int,
    goal_description: str,
    normalized_goal: str,
    steps: Sequence[CandidateStep],
) -> Roadmap:
    """Create an active roadmap and all of its steps in one transaction.

    Step 0 starts ``unlocked``; every other step starts ``locked``.

    Note: This function commits the transaction. On failure nothing is kept.
    """
    roadmap = Roadmap(
        user_id=user_id,
        goal_description=goal_description,
        normalized_goal=normalized_goal,
        status=RoadmapStatus.ACTIVE,
    )
    roadmap.steps = [
        RoadmapStep(
            knowledge_content_id=step.knowledge_content_id,
            order=step.order,
            status=StepStatus.UNLOCKED if step.order == 0 else StepStatus.LOCKED,
        )
        for step in sorted(steps, key=lambda s: s.order)
    ]
    db.add(roadmap)

    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        if await has_active_roadmap(db, user_id):
            raise ActiveRoadmapExistsError(
                "User already has an active roadmap", details={"user_id": user_id}
            ) from exc
        logger.error("Roadmap creation failed", user_id=user_id, error=str(exc))
        raise
    except Exception:
        await db.rollback()
        logger.error("Roadmap creation failed", user_id=user_id, exc_info=True)
        raise

    logger.info(
        "Roadmap created",
        roadmap_id=roadmap.id,
        user_id=user_id,
        step_count=len(roadmap.steps),
    )
    created = await get_roadmap(db, roadmap.id)
    assert created is not None
    return created


# ============================================================================
# Transitions
# ============================================================================


async def _step_rejection(
    db: AsyncSession,
    step_id: int,
    user_id: int | None,
    *,
    expected: StepStatus,
) -> StepStateError:
    """Explain why a compare-and-set on a step matched no row."""
    stmt = (
        select(RoadmapStep.status, Roadmap.status, Roadmap.user_id)
        .join(Roadmap, RoadmapStep.roadmap_id == Roadmap.id)
        .where(RoadmapStep.id == step_id)
    )
    row = (await db.execute(stmt)).one_or_none()
    if row is None or (user_id is not None and row[2] != user_id):
        return StepNotFoundError(step_id)

    step_status, roadmap_status, _ = row

    if expected == StepStatus.UNLOCKED:
        if step_status == StepStatus.COMPLETED:
            return InvalidStateTransition(
                "already_completed", f"Step {step_id} is already completed", step_id
            )
        if roadmap_status != RoadmapStatus.ACTIVE:
            return InvalidStateTransition(
                "roadmap_not_active", f"Roadmap of step {step_id} is {roadmap_status.value}", step_id
            )
        return InvalidStateTransition(
            "step_locked", f"Step {step_id} is locked until the previous step is completed", step_id
        )

    return InvalidStateTransition(
        "step_not_completed", f"Step {step_id} is {step_status.value}, not completed", step_id
    )


def _active_roadmap_ids(user_id: int | None):
    stmt = select(Roadmap.id).where(Roadmap.status == RoadmapStatus.ACTIVE)
    if user_id is not None:
        stmt = stmt.where(Roadmap.user_id == user_id)
    return stmt


async def complete_step(
    db: AsyncSession,
    step_id: int,
    plan: StepPlan,
    user_id: int | None = None,
) -> StepCompletion:
    """Complete an unlocked step and unlock its successor, atomically.

    In one transaction:

    1. ``unlocked -> completed`` on the step, storing the plan
    2. ``locked -> unlocked`` on the step with the next ``order``, or
       ``active -> completed`` on the roadmap when there is no next step

    Raises:
        StepNotFoundError: no such step (or not owned by ``user_id``)
        InvalidStateTransition: ``already_completed`` when retried after a
            success, ``step_locked`` when out of order, ``roadmap_not_active``
            for archived roadmaps, ``successor_not_locked`` when the next step
            is in an unexpected state. Nothing is changed in any case.

    Note: This function commits the transaction.
    """
    now = utcnow()
    try:
        # Compare-and-set first: this is the write that serializes racers
        result = await db.execute(
            update(RoadmapStep)
            .where(
                RoadmapStep.id == step_id,
                RoadmapStep.status == StepStatus.UNLOCKED,
                RoadmapStep.roadmap_id.in_(_active_roadmap_ids(user_id)),
            )
            .values(
                status=StepStatus.COMPLETED,
                completed_at=now,
                plan_situation=plan.plan_situation,
                plan_trigger=plan.plan_trigger,
                plan_action=plan.plan_action,
                plan_created_at=func.coalesce(RoadmapStep.plan_created_at, now),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise await _step_rejection(db, step_id, user_id, expected=StepStatus.UNLOCKED)

        roadmap_id, order = (
            await db.execute(
                select(RoadmapStep.roadmap_id, RoadmapStep.order).where(RoadmapStep.id == step_id)
            )
        ).one()

        successor = (
            await db.execute(
                select(RoadmapStep.id, RoadmapStep.status).where(
                    RoadmapStep.roadmap_id == roadmap_id,
                    RoadmapStep.order == order + 1,
                )
            )
        ).one_or_none()

        unlocked_step_id: int | None = None
        roadmap_completed = False

        if successor is None:
            await db.execute(
                update(Roadmap)
                .where(Roadmap.id == roadmap_id, Roadmap.status == RoadmapStatus.ACTIVE)
                .values(status=RoadmapStatus.COMPLETED, completed_at=now, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            roadmap_completed = True
        else:
            next_id, next_status = successor
            unlocked = await db.execute(
                update(RoadmapStep)
                .where(RoadmapStep.id == next_id, RoadmapStep.status == StepStatus.LOCKED)
                .values(status=StepStatus.UNLOCKED)
                .execution_options(synchronize_session=False)
            )
            if unlocked.rowcount != 1:
                logger.error(
                    "Successor step not locked",
                    step_id=step_id,
                    next_step_id=next_id,
                    next_status=next_status,
                )
                raise InvalidStateTransition(
                    "successor_not_locked",
                    f"Step {next_id} is {next_status.value}, expected locked",
                    next_id,
                )
            await db.execute(
                update(Roadmap)
                .where(Roadmap.id == roadmap_id)
                .values(updated_at=now)
                .execution_options(synchronize_session=False)
            )
            unlocked_step_id = next_id

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(
        "Step completed",
        step_id=step_id,
        roadmap_id=roadmap_id,
        unlocked_step_id=unlocked_step_id,
        roadmap_completed=roadmap_completed,
    )
    return StepCompletion(
        completed_step_id=step_id,
        unlocked_step_id=unlocked_step_id,
        roadmap_completed=roadmap_completed,
    )


async def save_plan(
    db: AsyncSession,
    step_id: int,
    plan: StepPlan,
    user_id: int | None = None,
) -> RoadmapStep:
    """Store plan fields on the current (unlocked) step without completing it.

    Note: This function commits the transaction.
    """
    try:
        result = await db.execute(
            update(RoadmapStep)
            .where(
                RoadmapStep.id == step_id,
                RoadmapStep.status == StepStatus.UNLOCKED,
                RoadmapStep.roadmap_id.in_(_active_roadmap_ids(user_id)),
            )
            .values(
                plan_situation=plan.plan_situation,
                plan_trigger=plan.plan_trigger,
                plan_action=plan.plan_action,
                plan_created_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            rejection = await _step_rejection(db, step_id, user_id, expected=StepStatus.UNLOCKED)
            if isinstance(rejection, InvalidStateTransition) and rejection.kind != "roadmap_not_active":
                rejection = InvalidStateTransition(
                    "step_not_unlocked",
                    f"Plans can only be edited on the current step, not step {step_id}",
                    step_id,
                )
            raise rejection
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info("Step plan saved", step_id=step_id)
    step = await get_step(db, step_id)
    assert step is not None
    return step


async def archive_roadmap(
    db: AsyncSession,
    roadmap_id: int,
    user_id: int | None = None,
) -> Roadmap:
    """Move an active roadmap to ``archived``. Steps are left as they are.

    Note: This function commits the transaction.
    """
    stmt = (
        update(Roadmap)
        .where(Roadmap.id == roadmap_id, Roadmap.status == RoadmapStatus.ACTIVE)
        .values(status=RoadmapStatus.ARCHIVED, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if user_id is not None:
        stmt = stmt.where(Roadmap.user_id == user_id)

    try:
        result = await db.execute(stmt)
        if result.rowcount != 1:
            existing = await get_roadmap(db, roadmap_id, user_id)
            if existing is None:
                raise RoadmapNotFoundError(roadmap_id)
            raise InvalidStateTransition(
                "roadmap_not_active",
                f"Roadmap {roadmap_id} is {existing.status.value}",
                roadmap_id,
            )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info("Roadmap archived", roadmap_id=roadmap_id)
    roadmap = await get_roadmap(db, roadmap_id)
    assert roadmap is not None
    return roadmap


async def record_reflection(
    db: AsyncSession,
    step_id: int,
    user_id: int,
    data: ReflectionCreate,
) -> ApplicationLog:
    """Append a reflection to a completed step.

    Note: This function commits the transaction.
    """
    row = (
        await db.execute(
            select(RoadmapStep.status)
            .join(Roadmap, RoadmapStep.roadmap_id == Roadmap.id)
            .where(RoadmapStep.id == step_id, Roadmap.user_id == user_id)
        )
    ).one_or_none()
    if row is None:
        raise StepNotFoundError(step_id)
    if row[0] != StepStatus.COMPLETED:
        raise await _step_rejection(db, step_id, user_id, expected=StepStatus.COMPLETED)

    log = ApplicationLog(
        user_id=user_id,
        roadmap_step_id=step_id,
        situation_text=data.situation_text,
        learning_text=data.learning_text,
        effectiveness_rating=data.effectiveness_rating,
    )
    db.add(log)
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    await db.refresh(log)

    logger.info("Reflection recorded", step_id=step_id, log_id=log.id)
    return log
