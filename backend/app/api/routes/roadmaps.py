"""Roadmap API routes."""

from fastapi import APIRouter, HTTPException, status

from app.api.deps import CurrentUser, DBDep, EmbedderDep
from app.api.errors import to_http_exception
from app.core.config import get_settings
from app.core.errors import RoadmapGenerationError, StepStateError
from app.core.logging import get_logger
from app.schemas.roadmap import (
    GeneratedRoadmapResponse,
    RoadmapCreate,
    RoadmapProgress,
    RoadmapResponse,
)
from app.services import generation_service, roadmap_service

logger = get_logger(__name__)
router = APIRouter(prefix="/roadmaps", tags=["roadmaps"])


@router.post("", response_model=GeneratedRoadmapResponse, status_code=status.HTTP_201_CREATED)
async def create_roadmap(
    data: RoadmapCreate,
    db: DBDep,
    embedder: EmbedderDep,
    user_id: CurrentUser,
) -> dict:
    """Generate a roadmap for a free-text goal."""
    try:
        result = await generation_service.generate_roadmap(
            db,
            user_id=user_id,
            goal_text=data.goal_description,
            embedder=embedder,
            similarity_floor=get_settings().MATCH_SIMILARITY_FLOOR,
        )
    except RoadmapGenerationError as exc:
        raise to_http_exception(exc) from exc

    response = RoadmapResponse.model_validate(result.roadmap).model_dump(mode="json")
    response["notice"] = result.notice
    return response


@router.get("/active", response_model=RoadmapResponse)
async def get_active_roadmap(db: DBDep, user_id: CurrentUser) -> dict:
    """Get the current user's active roadmap."""
    roadmap = await roadmap_service.get_active_roadmap(db, user_id)
    if not roadmap:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No active roadmap found",
        )
    return RoadmapResponse.model_validate(roadmap).model_dump(mode="json")


@router.get("", response_model=list[RoadmapResponse])
async def list_roadmaps(db: DBDep, user_id: CurrentUser) -> list[dict]:
    """List all roadmaps for the current user (including history)."""
    roadmaps = await roadmap_service.list_user_roadmaps(db, user_id)
    return [RoadmapResponse.model_validate(r).model_dump(mode="json") for r in roadmaps]


@router.get("/{roadmap_id}", response_model=RoadmapResponse)
async def get_roadmap(roadmap_id: int, db: DBDep, user_id: CurrentUser) -> dict:
    """Get a roadmap by ID."""
    roadmap = await roadmap_service.get_roadmap(db, roadmap_id, user_id)
    if not roadmap:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Roadmap not found",
        )
    return RoadmapResponse.model_validate(roadmap).model_dump(mode="json")


@router.get("/{roadmap_id}/progress", response_model=RoadmapProgress)
async def get_roadmap_progress(roadmap_id: int, db: DBDep, user_id: CurrentUser) -> RoadmapProgress:
    """Get step completion progress for a roadmap."""
    roadmap = await roadmap_service.get_roadmap(db, roadmap_id, user_id)
    if not roadmap:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Roadmap not found",
        )
    return roadmap_service.calc_progress(roadmap)


@router.post("/{roadmap_id}/archive", response_model=RoadmapResponse)
async def archive_roadmap(roadmap_id: int, db: DBDep, user_id: CurrentUser) -> dict:
    """Archive the active roadmap so a new one can be generated."""
    try:
        roadmap = await roadmap_service.archive_roadmap(db, roadmap_id, user_id)
    except StepStateError as exc:
        raise to_http_exception(exc) from exc
    return RoadmapResponse.model_validate(roadmap).model_dump(mode="json")
