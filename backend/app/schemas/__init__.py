"""Pydantic schemas."""

from app.schemas.knowledge import (
    KnowledgeContentCreate,
    KnowledgeContentResponse,
    KnowledgeContentSummary,
    UnlockedKnowledgeItem,
)
from app.schemas.roadmap import (
    CandidateStep,
    GeneratedRoadmapResponse,
    ReflectionCreate,
    ReflectionResponse,
    RoadmapCreate,
    RoadmapProgress,
    RoadmapResponse,
    RoadmapStepResponse,
    StepCompletion,
    StepPlan,
)

__all__ = [
    "KnowledgeContentCreate",
    "KnowledgeContentResponse",
    "KnowledgeContentSummary",
    "UnlockedKnowledgeItem",
    "CandidateStep",
    "GeneratedRoadmapResponse",
    "ReflectionCreate",
    "ReflectionResponse",
    "RoadmapCreate",
    "RoadmapProgress",
    "RoadmapResponse",
    "RoadmapStepResponse",
    "StepCompletion",
    "StepPlan",
]
