"""Roadmap schemas for API requests and responses."""

from datetime import datetime

from pydantic import BaseModel, Field

from app.models.roadmap import RoadmapStatus, StepStatus
from app.schemas.knowledge import KnowledgeContentSummary


class CandidateStep(BaseModel):
    """A matched catalog item and its position in the roadmap."""

    knowledge_content_id: str
    order: int
    similarity: float | None = None


class RoadmapCreate(BaseModel):
    """Generate a roadmap from a goal."""

    goal_description: str = Field(max_length=5000)


class StepPlan(BaseModel):
    """Implementation intention the user commits to for a step."""

    plan_situation: str = Field(min_length=1)
    plan_trigger: str = Field(min_length=1)
    plan_action: str = Field(min_length=1)


class RoadmapStepResponse(BaseModel):
    """A step within a roadmap."""

    id: int
    roadmap_id: int
    knowledge_content_id: str
    order: int
    status: StepStatus
    plan_situation: str | None
    plan_trigger: str | None
    plan_action: str | None
    plan_created_at: datetime | None
    completed_at: datetime | None
    knowledge_content: KnowledgeContentSummary | None = None

    class Config:
        from_attributes = True


class RoadmapResponse(BaseModel):
    """Roadmap response."""

    id: int
    user_id: int
    goal_description: str
    normalized_goal: str
    status: RoadmapStatus
    steps: list[RoadmapStepResponse]
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None

    class Config:
        from_attributes = True


class GeneratedRoadmapResponse(RoadmapResponse):
    """Roadmap returned right after generation."""

    notice: str | None = None


class StepCompletion(BaseModel):
    """Everything a caller needs to know after completing a step."""

    completed_step_id: int
    unlocked_step_id: int | None
    roadmap_completed: bool


class RoadmapProgress(BaseModel):
    """Progress data for a roadmap."""

    roadmap_id: int
    goal: str
    status: RoadmapStatus
    total_steps: int
    completed_steps: int
    progress_percentage: float  # 0.0 to 100.0
    current_step_id: int | None


class ReflectionCreate(BaseModel):
    """Reflection on how applying a step went."""

    situation_text: str | None = None
    learning_text: str | None = None
    effectiveness_rating: int | None = Field(default=None, ge=1, le=5)


class ReflectionResponse(BaseModel):
    id: int
    roadmap_step_id: int
    situation_text: str | None
    learning_text: str | None
    effectiveness_rating: int | None
    created_at: datetime

    class Config:
        from_attributes = True
