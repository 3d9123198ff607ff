"""Roadmap generation pipeline.

goal validation -> edge-case check -> matching -> roadmap validation -> persistence

Cheap checks run first: an invalid goal never touches the catalog, and an
exhausted catalog never reaches the embedding provider.
"""

from typing import NamedTuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.ai.embeddings import GoalEmbedder
from app.core.errors import (
    ActiveRoadmapExistsError,
    DatabaseSearchError,
    InsufficientContentError,
    RoadmapGenerationError,
    ValidationFailed,
)
from app.core.logging import get_logger
from app.models.roadmap import Roadmap
from app.services import knowledge_service, roadmap_service
from app.services.content_matcher import DEFAULT_SIMILARITY_FLOOR, ContentMatcher
from app.services.goal_validator import handle_edge_cases, validate_goal
from app.services.roadmap_validator import validate_roadmap

logger = get_logger(__name__)


class GenerationResult(NamedTuple):
    roadmap: Roadmap
    notice: str | None


async def _read_history(db: AsyncSession, user_id: int) -> tuple[set[str], int]:
    try:
        learned = await knowledge_service.learned_content_ids(db, user_id)
        catalog_count = await knowledge_service.count_content(db)
    except SQLAlchemyError as exc:
        logger.error("Learning history read failed", dependency="database", error=str(exc))
        raise DatabaseSearchError(
            "Failed to read learning history",
            details={"dependency": "database", "error": str(exc)},
        ) from exc
    return learned, catalog_count


async def generate_roadmap(
    db: AsyncSession,
    *,
    user_id: int,
    goal_text: str,
    embedder: GoalEmbedder,
    similarity_floor: float = DEFAULT_SIMILARITY_FLOOR,
) -> GenerationResult:
    """Turn a free-text goal into a persisted roadmap of 5 to 7 steps.

    Raises:
        InvalidGoalError: goal text rejected, nothing else was touched
        ActiveRoadmapExistsError: user must finish or archive first
        InsufficientContentError: catalog or history leaves too few items
        EmbeddingServiceError: goal could not be embedded
        DatabaseSearchError: catalog or history could not be read
        ValidationFailed: matcher produced an invalid step list
    """
    try:
        normalized = validate_goal(goal_text)

        if await roadmap_service.has_active_roadmap(db, user_id):
            raise ActiveRoadmapExistsError(
                "User already has an active roadmap", details={"user_id": user_id}
            )

        learned, catalog_count = await _read_history(db, user_id)

        decision = handle_edge_cases(catalog_count, len(learned))
        if not decision.should_proceed:
            raise InsufficientContentError(
                "Catalog cannot support a new roadmap",
                details={"catalog_count": catalog_count, "learned_count": len(learned)},
                fallback_strategy=decision.fallback_strategy,
                user_message=decision.message,
            )

        matcher = ContentMatcher(
            embedder,
            lambda excluded: knowledge_service.list_content(db, excluded),
            similarity_floor=similarity_floor,
        )
        steps = await matcher.match(normalized, learned)

        known_ids = await knowledge_service.existing_content_ids(
            db, {step.knowledge_content_id for step in steps}
        )
        validation = validate_roadmap(steps, known_ids)
        if not validation.is_valid:
            logger.error(
                "Generated roadmap failed validation",
                user_id=user_id,
                issues=[issue.model_dump(mode="json") for issue in validation.issues],
            )
            raise ValidationFailed("Generated roadmap failed validation", issues=validation.issues)

        roadmap = await roadmap_service.create_roadmap(
            db,
            user_id=user_id,
            goal_description=goal_text,
            normalized_goal=normalized,
            steps=steps,
        )
    except RoadmapGenerationError as exc:
        logger.warning(
            "Roadmap generation failed",
            user_id=user_id,
            code=exc.code,
            retryable=exc.is_retryable,
            details=exc.details,
        )
        raise

    return GenerationResult(roadmap=roadmap, notice=decision.message)
