"""Knowledge catalog model."""

from enum import Enum

from sqlalchemy import JSON, String, Text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class KnowledgeType(str, Enum):
    """Kind of catalog entry. Closed set; the diversity rule counts these."""

    MENTAL_MODEL = "mental-model"
    COGNITIVE_BIAS = "cognitive-bias"
    FALLACY = "fallacy"


def enum_values(enum_cls: type[Enum]) -> list[str]:
    """Persist enum values (``mental-model``) rather than member names."""
    return [member.value for member in enum_cls]


class KnowledgeContent(Base):
    """Curated mental model, cognitive bias or fallacy."""

    __tablename__ = "knowledge_content"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    title: Mapped[str] = mapped_column(String)
    type: Mapped[KnowledgeType] = mapped_column(
        SAEnum(
            KnowledgeType,
            name="knowledge_content_type",
            native_enum=False,
            values_callable=enum_values,
        )
    )
    category: Mapped[str | None] = mapped_column(String)

    # Content
    summary: Mapped[str | None] = mapped_column(Text)
    description: Mapped[str | None] = mapped_column(Text)
    application: Mapped[str | None] = mapped_column(Text)
    keywords: Mapped[list[str]] = mapped_column(JSON, default=list)

    # Precomputed by the embedding refresh script
    embedding: Mapped[list[float] | None] = mapped_column(JSON(none_as_null=True), default=None)
