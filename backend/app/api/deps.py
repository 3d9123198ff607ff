"""API dependencies."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.ai.embeddings import GoalEmbedder, get_goal_embedder
from app.core.auth import get_auth_user
from app.core.database import get_session


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    async for session in get_session():
        yield session


def get_embedder() -> GoalEmbedder:
    """Get the goal embedder dependency."""
    return get_goal_embedder()


# Database dependency
DBDep = Annotated[AsyncSession, Depends(get_db)]

# Embedding capability dependency
EmbedderDep = Annotated[GoalEmbedder, Depends(get_embedder)]

# Auth user dependency - returns user_id (default: 1 for anonymous access)
CurrentUser = Annotated[int, Depends(get_auth_user)]
