"""Knowledge catalog schemas."""

from datetime import datetime

from pydantic import BaseModel

from app.models.knowledge import KnowledgeType


class KnowledgeContentSummary(BaseModel):
    """Catalog fields shown on a roadmap step."""

    id: str
    title: str
    type: KnowledgeType
    category: str | None
    summary: str | None

    class Config:
        from_attributes = True


class KnowledgeContentResponse(KnowledgeContentSummary):
    """Full catalog entry (embedding omitted)."""

    description: str | None
    application: str | None
    keywords: list[str]


class UnlockedKnowledgeItem(BaseModel):
    """A concept the user has completed in some roadmap."""

    id: str
    title: str
    type: KnowledgeType
    category: str | None
    completed_at: datetime | None


class KnowledgeContentCreate(BaseModel):
    """Catalog entry as curated in a seed file."""

    id: str
    title: str
    type: KnowledgeType
    category: str | None = None
    summary: str | None = None
    description: str | None = None
    application: str | None = None
    keywords: list[str] = []
