"""Roadmap and step models for learning path persistence."""

from datetime import UTC, datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Text, UniqueConstraint, text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base
from app.models.knowledge import KnowledgeContent, enum_values


def utcnow() -> datetime:
    return datetime.now(UTC)


class RoadmapStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class StepStatus(str, Enum):
    """Step lifecycle: locked -> unlocked -> completed, never backwards."""

    LOCKED = "locked"
    UNLOCKED = "unlocked"
    COMPLETED = "completed"


class Roadmap(Base):
    __tablename__ = "roadmaps"
    __table_args__ = (
        # One active roadmap per user
        Index(
            "uq_roadmaps_user_active",
            "user_id",
            unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'"),
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)

    goal_description: Mapped[str] = mapped_column(Text)
    normalized_goal: Mapped[str] = mapped_column(Text)
    status: Mapped[RoadmapStatus] = mapped_column(
        SAEnum(
            RoadmapStatus,
            name="roadmap_status",
            native_enum=False,
            values_callable=enum_values,
        ),
        default=RoadmapStatus.ACTIVE,
    )

    steps: Mapped[list["RoadmapStep"]] = relationship(
        back_populates="roadmap",
        order_by="RoadmapStep.order",
        cascade="all, delete-orphan",
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, default=None)


class RoadmapStep(Base):
    __tablename__ = "roadmap_steps"
    __table_args__ = (UniqueConstraint("roadmap_id", "order", name="uq_roadmap_step_order"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    roadmap_id: Mapped[int] = mapped_column(ForeignKey("roadmaps.id"), index=True)
    knowledge_content_id: Mapped[str] = mapped_column(ForeignKey("knowledge_content.id"))

    # 0-based, contiguous, fixed at creation
    order: Mapped[int] = mapped_column(Integer)
    status: Mapped[StepStatus] = mapped_column(
        SAEnum(
            StepStatus,
            name="roadmap_step_status",
            native_enum=False,
            values_callable=enum_values,
        ),
        default=StepStatus.LOCKED,
    )

    # Implementation intention: "when <situation>, if <trigger>, then <action>"
    plan_situation: Mapped[str | None] = mapped_column(Text, default=None)
    plan_trigger: Mapped[str | None] = mapped_column(Text, default=None)
    plan_action: Mapped[str | None] = mapped_column(Text, default=None)
    plan_created_at: Mapped[datetime | None] = mapped_column(DateTime, default=None)

    completed_at: Mapped[datetime | None] = mapped_column(DateTime, default=None)

    roadmap: Mapped[Roadmap] = relationship(back_populates="steps")
    knowledge_content: Mapped[KnowledgeContent] = relationship(lazy="joined")


class ApplicationLog(Base):
    """Reflection recorded after applying a completed step."""

    __tablename__ = "application_logs"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    roadmap_step_id: Mapped[int] = mapped_column(ForeignKey("roadmap_steps.id"), index=True)

    situation_text: Mapped[str | None] = mapped_column(Text)
    learning_text: Mapped[str | None] = mapped_column(Text)
    effectiveness_rating: Mapped[int | None] = mapped_column(Integer)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
