"""Database models."""

from app.models.knowledge import KnowledgeContent, KnowledgeType
from app.models.roadmap import ApplicationLog, Roadmap, RoadmapStatus, RoadmapStep, StepStatus
from app.models.user import User

__all__ = [
    "User",
    "KnowledgeContent",
    "KnowledgeType",
    "Roadmap",
    "RoadmapStatus",
    "RoadmapStep",
    "StepStatus",
    "ApplicationLog",
]
