"""Builders for catalog items and deterministic embeddings."""

import math
from collections.abc import Sequence

from langchain_core.embeddings import Embeddings

from app.ai.embeddings import GoalEmbedder
from app.models import KnowledgeContent, KnowledgeType

GOAL_VECTOR = [1.0, 0.0, 0.0, 0.0]

ALL_TYPES = [KnowledgeType.MENTAL_MODEL, KnowledgeType.COGNITIVE_BIAS, KnowledgeType.FALLACY]


def vector_with_similarity(similarity: float) -> list[float]:
    """A unit vector whose cosine similarity with GOAL_VECTOR is ``similarity``."""
    return [similarity, math.sqrt(max(0.0, 1.0 - similarity**2)), 0.0, 0.0]


def make_content(
    content_id: str,
    content_type: KnowledgeType = KnowledgeType.MENTAL_MODEL,
    similarity: float = 0.8,
    *,
    category: str = "Decision Making",
) -> KnowledgeContent:
    return KnowledgeContent(
        id=content_id,
        title=f"Concept {content_id}",
        type=content_type,
        category=category,
        summary=f"Summary of {content_id}",
        description=f"Description of {content_id}",
        application=f"Apply {content_id} daily",
        keywords=["focus", content_id],
        embedding=vector_with_similarity(similarity),
    )


def make_catalog(count: int, types: Sequence[KnowledgeType] = ALL_TYPES) -> list[KnowledgeContent]:
    """``count`` items cycling through ``types`` with strictly falling similarity."""
    return [
        make_content(f"kc-{i:03d}", types[i % len(types)], round(0.95 - i * 0.02, 4))
        for i in range(count)
    ]


class FakeEmbeddings(Embeddings):
    """Deterministic embeddings: every query maps to GOAL_VECTOR unless overridden."""

    def __init__(
        self,
        vector: list[float] | None = None,
        failures: int = 0,
        error: Exception | None = None,
    ) -> None:
        self.vector = vector if vector is not None else GOAL_VECTOR
        self.failures = failures
        self.error = error or ConnectionError("embedding provider unavailable")
        self.query_calls: list[str] = []
        self.document_calls: list[list[str]] = []

    def embed_query(self, text: str) -> list[float]:
        self.query_calls.append(text)
        if self.failures > 0:
            self.failures -= 1
            raise self.error
        return list(self.vector)

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        self.document_calls.append(list(texts))
        return [vector_with_similarity(0.5) for _ in texts]

    async def aembed_query(self, text: str) -> list[float]:
        return self.embed_query(text)

    async def aembed_documents(self, texts: list[str]) -> list[list[float]]:
        return self.embed_documents(texts)


def make_embedder(embeddings: Embeddings | None = None, max_attempts: int = 1) -> GoalEmbedder:
    return GoalEmbedder(
        embeddings or FakeEmbeddings(),
        max_attempts=max_attempts,
        cache_size=0,
        wait_multiplier=0,
    )
