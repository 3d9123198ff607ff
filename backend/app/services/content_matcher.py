"""Goal-to-content matching.

Ranks catalog items by cosine similarity to the goal embedding and picks
5 to 7 of them, keeping any one knowledge type from taking more than ~70%
of the slots when there are enough strong alternatives.

Order policy: steps are ordered by descending similarity, ties broken by
catalog id. This is relevance ordering, not a curriculum sequencer.
``order_by_relevance`` is the single place to change if a difficulty or
prerequisite weighting is ever introduced.
"""

import math
from collections import Counter
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, NamedTuple

import numpy as np

from app.ai.embeddings import GoalEmbedder
from app.core.errors import DatabaseSearchError, InsufficientContentError
from app.core.logging import get_logger
from app.models.knowledge import KnowledgeType
from app.schemas.roadmap import CandidateStep

logger = get_logger(__name__)

MIN_STEPS = 5
MAX_STEPS = 7
DIVERSITY_CAP = 0.7
DEFAULT_SIMILARITY_FLOOR = 0.3

CatalogReader = Callable[[set[str]], Awaitable[Sequence[Any]]]


class ScoredCandidate(NamedTuple):
    content_id: str
    type: KnowledgeType
    similarity: float


def rank_candidates(
    goal_vector: Sequence[float],
    items: Sequence[Any],
    excluded_ids: set[str] | frozenset[str] = frozenset(),
) -> list[ScoredCandidate]:
    """Score every eligible item against the goal, best first.

    Items that are excluded, have no embedding, or whose embedding does not
    match the goal's dimension are skipped.
    """
    goal = np.asarray(goal_vector, dtype=float)
    goal_norm = float(np.linalg.norm(goal))
    if goal_norm == 0.0:
        return []

    eligible = []
    vectors = []
    for item in items:
        if item.id in excluded_ids:
            continue
        if not item.embedding or len(item.embedding) != goal.shape[0]:
            logger.warning("Skipping catalog item without usable embedding", content_id=item.id)
            continue
        eligible.append(item)
        vectors.append(item.embedding)

    if not eligible:
        return []

    matrix = np.asarray(vectors, dtype=float)
    norms = np.linalg.norm(matrix, axis=1)
    with np.errstate(divide="ignore", invalid="ignore"):
        scores = (matrix @ goal) / (norms * goal_norm)
    scores = np.nan_to_num(scores, nan=0.0, posinf=0.0, neginf=0.0)

    ranked = [
        ScoredCandidate(item.id, KnowledgeType(item.type), float(score))
        for item, score in zip(eligible, scores, strict=True)
    ]
    ranked.sort(key=lambda c: (-c.similarity, c.content_id))
    return ranked


def select_diverse(
    ranked: Sequence[ScoredCandidate],
    similarity_floor: float = DEFAULT_SIMILARITY_FLOOR,
) -> list[ScoredCandidate]:
    """Pick up to ``MAX_STEPS`` candidates under the type diversity cap.

    Fill order, each pass only touching what is still unselected:

    1. above the floor, within the cap, up to ``MAX_STEPS``
    2. above the floor, cap relaxed, up to ``MIN_STEPS``
    3. below the floor, within the cap, up to ``MIN_STEPS``
    4. below the floor, cap relaxed, up to ``MIN_STEPS``
    """
    strong = [c for c in ranked if c.similarity >= similarity_floor]
    weak = [c for c in ranked if c.similarity < similarity_floor]

    target = min(max(len(strong), MIN_STEPS), MAX_STEPS)
    type_cap = max(1, math.floor(DIVERSITY_CAP * target))

    selected: list[ScoredCandidate] = []
    chosen: set[str] = set()
    type_counts: Counter[KnowledgeType] = Counter()

    passes = [
        (strong, True, MAX_STEPS),
        (strong, False, MIN_STEPS),
        (weak, True, MIN_STEPS),
        (weak, False, MIN_STEPS),
    ]
    for pool, capped, limit in passes:
        for candidate in pool:
            if len(selected) >= limit:
                break
            if candidate.content_id in chosen:
                continue
            if capped and type_counts[candidate.type] >= type_cap:
                continue
            selected.append(candidate)
            chosen.add(candidate.content_id)
            type_counts[candidate.type] += 1

    return selected


def order_by_relevance(selected: Sequence[ScoredCandidate]) -> list[CandidateStep]:
    """Assign ``order`` 0..N-1, most similar first."""
    ordered = sorted(selected, key=lambda c: (-c.similarity, c.content_id))
    return [
        CandidateStep(knowledge_content_id=c.content_id, order=index, similarity=c.similarity)
        for index, c in enumerate(ordered)
    ]


def match_content(
    goal_vector: Sequence[float],
    items: Sequence[Any],
    excluded_ids: set[str] | frozenset[str] = frozenset(),
    similarity_floor: float = DEFAULT_SIMILARITY_FLOOR,
) -> list[CandidateStep]:
    """Pure matching over already-fetched inputs.

    Raises:
        InsufficientContentError: fewer than ``MIN_STEPS`` eligible items.
    """
    ranked = rank_candidates(goal_vector, items, excluded_ids)
    if len(ranked) < MIN_STEPS:
        raise InsufficientContentError(
            "Not enough relevant content found for your goal",
            details={"candidate_count": len(ranked), "required": MIN_STEPS},
        )

    selected = select_diverse(ranked, similarity_floor)
    steps = order_by_relevance(selected)

    logger.info(
        "Content matched",
        candidate_count=len(ranked),
        step_count=len(steps),
        type_counts={t.value: n for t, n in Counter(c.type for c in selected).items()},
        below_floor=sum(1 for c in selected if c.similarity < similarity_floor),
    )
    return steps


class ContentMatcher:
    """Embeds the goal, reads the catalog, and runs :func:`match_content`."""

    def __init__(
        self,
        embedder: GoalEmbedder,
        catalog_reader: CatalogReader,
        similarity_floor: float = DEFAULT_SIMILARITY_FLOOR,
    ) -> None:
        self._embedder = embedder
        self._catalog_reader = catalog_reader
        self._similarity_floor = similarity_floor

    async def match(self, goal: str, excluded_ids: set[str]) -> list[CandidateStep]:
        goal_vector = await self._embedder.embed(goal)

        try:
            items = await self._catalog_reader(excluded_ids)
        except Exception as exc:
            logger.error("Catalog search failed", dependency="catalog", error=str(exc))
            raise DatabaseSearchError(
                "Failed to search knowledge content",
                details={"dependency": "catalog", "error": str(exc)},
            ) from exc

        return match_content(goal_vector, items, excluded_ids, self._similarity_floor)
