"""Knowledge catalog and learning history reads."""

from langchain_core.embeddings import Embeddings
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.ai.embeddings import build_embedding_text
from app.core.logging import get_logger
from app.models.knowledge import KnowledgeContent
from app.models.roadmap import Roadmap, RoadmapStep, StepStatus
from app.schemas.knowledge import KnowledgeContentCreate, UnlockedKnowledgeItem

logger = get_logger(__name__)


async def list_content(
    db: AsyncSession,
    exclude_ids: set[str] | None = None,
) -> list[KnowledgeContent]:
    """List catalog items, skipping ``exclude_ids``. Ordered by id."""
    stmt = select(KnowledgeContent).order_by(KnowledgeContent.id)
    if exclude_ids:
        stmt = stmt.where(KnowledgeContent.id.not_in(exclude_ids))
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def count_content(db: AsyncSession) -> int:
    """Count catalog items."""
    result = await db.execute(select(func.count()).select_from(KnowledgeContent))
    return int(result.scalar_one())


async def get_content(db: AsyncSession, content_id: str) -> KnowledgeContent | None:
    """Get a catalog item by ID."""
    return await db.get(KnowledgeContent, content_id)


async def existing_content_ids(db: AsyncSession, content_ids: set[str]) -> set[str]:
    """Return the subset of ``content_ids`` that exist in the catalog."""
    if not content_ids:
        return set()
    result = await db.execute(
        select(KnowledgeContent.id).where(KnowledgeContent.id.in_(content_ids))
    )
    return set(result.scalars().all())


async def learned_content_ids(db: AsyncSession, user_id: int) -> set[str]:
    """Catalog ids the user has completed in any roadmap."""
    result = await db.execute(
        select(RoadmapStep.knowledge_content_id)
        .join(Roadmap, RoadmapStep.roadmap_id == Roadmap.id)
        .where(
            Roadmap.user_id == user_id,
            RoadmapStep.status == StepStatus.COMPLETED,
        )
        .distinct()
    )
    return set(result.scalars().all())


async def list_unlocked_knowledge(db: AsyncSession, user_id: int) -> list[UnlockedKnowledgeItem]:
    """Concepts the user has completed, most recent first, one entry per concept."""
    result = await db.execute(
        select(
            KnowledgeContent.id,
            KnowledgeContent.title,
            KnowledgeContent.type,
            KnowledgeContent.category,
            func.max(RoadmapStep.completed_at).label("completed_at"),
        )
        .join(RoadmapStep, RoadmapStep.knowledge_content_id == KnowledgeContent.id)
        .join(Roadmap, RoadmapStep.roadmap_id == Roadmap.id)
        .where(
            Roadmap.user_id == user_id,
            RoadmapStep.status == StepStatus.COMPLETED,
        )
        .group_by(
            KnowledgeContent.id,
            KnowledgeContent.title,
            KnowledgeContent.type,
            KnowledgeContent.category,
        )
        .order_by(func.max(RoadmapStep.completed_at).desc(), KnowledgeContent.id)
    )
    return [
        UnlockedKnowledgeItem(
            id=row.id,
            title=row.title,
            type=row.type,
            category=row.category,
            completed_at=row.completed_at,
        )
        for row in result.all()
    ]


async def refresh_embeddings(
    db: AsyncSession,
    embeddings: Embeddings,
    *,
    only_missing: bool = True,
) -> int:
    """Compute and store catalog embeddings in one batch.

    Returns:
        Number of items updated

    Note: This function assumes the caller will commit the transaction
    (e.g., via get_db_session context manager).
    """
    stmt = select(KnowledgeContent).order_by(KnowledgeContent.id)
    if only_missing:
        stmt = stmt.where(KnowledgeContent.embedding.is_(None))
    result = await db.execute(stmt)
    items = list(result.scalars().all())
    if not items:
        logger.info("No catalog items need embeddings")
        return 0

    vectors = await embeddings.aembed_documents([build_embedding_text(item) for item in items])
    for item, vector in zip(items, vectors, strict=True):
        item.embedding = [float(value) for value in vector]
    await db.flush()

    logger.info("Catalog embeddings refreshed", count=len(items), only_missing=only_missing)
    return len(items)


async def upsert_content(db: AsyncSession, items: list[KnowledgeContentCreate]) -> int:
    """Insert or update curated catalog entries by id.

    Changed entries lose their stored embedding so the next refresh recomputes it.

    Note: This function assumes the caller will commit the transaction
    (e.g., via get_db_session context manager).
    """
    changed = 0
    for item in items:
        fields = item.model_dump()
        existing = await db.get(KnowledgeContent, item.id)
        if existing is None:
            db.add(KnowledgeContent(**fields))
            changed += 1
            continue

        if any(getattr(existing, key) != value for key, value in fields.items()):
            for key, value in fields.items():
                setattr(existing, key, value)
            existing.embedding = None
            changed += 1

    await db.flush()
    logger.info("Catalog upserted", total=len(items), changed=changed)
    return changed
