"""Knowledge catalog API routes."""

from fastapi import APIRouter, HTTPException, status

from app.api.deps import CurrentUser, DBDep
from app.schemas.knowledge import KnowledgeContentResponse, UnlockedKnowledgeItem
from app.services import knowledge_service

router = APIRouter(prefix="/knowledge", tags=["knowledge"])


@router.get("/unlocked", response_model=list[UnlockedKnowledgeItem])
async def list_unlocked_knowledge(db: DBDep, user_id: CurrentUser) -> list[UnlockedKnowledgeItem]:
    """List concepts the current user has completed."""
    return await knowledge_service.list_unlocked_knowledge(db, user_id)


@router.get("/{content_id}", response_model=KnowledgeContentResponse)
async def get_knowledge_content(content_id: str, db: DBDep) -> dict:
    """Get a catalog entry by ID."""
    content = await knowledge_service.get_content(db, content_id)
    if not content:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Knowledge content not found",
        )
    return KnowledgeContentResponse.model_validate(content).model_dump(mode="json")
