"""Service layer modules."""

from app.services import (
    content_matcher,
    generation_service,
    goal_validator,
    knowledge_service,
    roadmap_service,
    roadmap_validator,
    user_service,
)

__all__ = [
    "content_matcher",
    "generation_service",
    "goal_validator",
    "knowledge_service",
    "roadmap_service",
    "roadmap_validator",
    "user_service",
]
