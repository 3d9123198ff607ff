"""Tests for goal-to-content matching."""

from collections import Counter

import pytest

from app.core.errors import DatabaseSearchError, EmbeddingServiceError, InsufficientContentError
from app.models import KnowledgeType
from app.services.content_matcher import (
    MAX_STEPS,
    MIN_STEPS,
    ContentMatcher,
    match_content,
    rank_candidates,
    select_diverse,
)
from tests.factories import (
    GOAL_VECTOR,
    FakeEmbeddings,
    make_catalog,
    make_content,
    make_embedder,
)

MM = KnowledgeType.MENTAL_MODEL
CB = KnowledgeType.COGNITIVE_BIAS
FA = KnowledgeType.FALLACY


def _type_counts(steps, items) -> Counter:
    types = {item.id: item.type for item in items}
    return Counter(types[step.knowledge_content_id] for step in steps)


class TestRankCandidates:
    def test_orders_by_similarity(self):
        items = [make_content("low", similarity=0.2), make_content("high", similarity=0.9)]
        ranked = rank_candidates(GOAL_VECTOR, items)
        assert [c.content_id for c in ranked] == ["high", "low"]
        assert ranked[0].similarity == pytest.approx(0.9)

    def test_ties_broken_by_id(self):
        items = [make_content(cid, similarity=0.5) for cid in ("b", "c", "a")]
        assert [c.content_id for c in rank_candidates(GOAL_VECTOR, items)] == ["a", "b", "c"]

    def test_skips_excluded_items(self):
        items = make_catalog(6)
        ranked = rank_candidates(GOAL_VECTOR, items, {"kc-000", "kc-003"})
        assert {c.content_id for c in ranked} == {"kc-001", "kc-002", "kc-004", "kc-005"}

    def test_skips_unusable_embeddings(self):
        missing = make_content("missing")
        missing.embedding = None
        short = make_content("short")
        short.embedding = [1.0, 0.0]
        ranked = rank_candidates(GOAL_VECTOR, [missing, short, make_content("ok")])
        assert [c.content_id for c in ranked] == ["ok"]

    def test_zero_goal_vector_matches_nothing(self):
        assert rank_candidates([0.0, 0.0, 0.0, 0.0], make_catalog(5)) == []


class TestSelectDiverse:
    def test_mixed_catalog_fills_to_max(self):
        ranked = rank_candidates(GOAL_VECTOR, make_catalog(20))
        selected = select_diverse(ranked)
        assert [c.content_id for c in selected] == [f"kc-{i:03d}" for i in range(MAX_STEPS)]

    def test_type_cap_makes_room_for_other_types(self):
        items = [make_content(f"mm-{i}", MM, 0.9 - i * 0.01) for i in range(10)]
        items += [make_content(f"cb-{i}", CB, 0.5 - i * 0.01) for i in range(3)]
        selected = select_diverse(rank_candidates(GOAL_VECTOR, items))

        counts = Counter(c.type for c in selected)
        assert len(selected) == MAX_STEPS
        assert counts[MM] == 4
        assert counts[CB] == 3

    def test_cap_relaxed_only_to_reach_minimum(self):
        items = [make_content(f"mm-{i}", MM, 0.9 - i * 0.01) for i in range(10)]
        items.append(make_content("cb-0", CB, 0.4))
        selected = select_diverse(rank_candidates(GOAL_VECTOR, items))

        counts = Counter(c.type for c in selected)
        assert len(selected) == MIN_STEPS
        assert counts == Counter({MM: 4, CB: 1})

    def test_single_type_catalog_still_produces_minimum(self):
        items = [make_content(f"mm-{i}", MM, 0.8 - i * 0.01) for i in range(8)]
        selected = select_diverse(rank_candidates(GOAL_VECTOR, items))
        assert len(selected) == MIN_STEPS
        assert all(c.type == MM for c in selected)

    def test_weak_candidates_fill_up_to_minimum(self):
        items = [
            make_content("s-1", MM, 0.8),
            make_content("s-2", CB, 0.7),
            make_content("s-3", FA, 0.6),
            make_content("w-1", MM, 0.25),
            make_content("w-2", CB, 0.2),
            make_content("w-3", FA, 0.15),
            make_content("w-4", MM, 0.1),
        ]
        selected = select_diverse(rank_candidates(GOAL_VECTOR, items), similarity_floor=0.3)
        assert [c.content_id for c in selected] == ["s-1", "s-2", "s-3", "w-1", "w-2"]


class TestMatchContent:
    def test_thesis_sized_catalog(self):
        items = make_catalog(20)
        steps = match_content(GOAL_VECTOR, items)

        assert MIN_STEPS <= len(steps) <= MAX_STEPS
        assert [s.order for s in steps] == list(range(len(steps)))
        assert len({s.knowledge_content_id for s in steps}) == len(steps)
        assert max(_type_counts(steps, items).values()) <= 0.7 * len(steps)

    def test_orders_by_descending_similarity(self):
        steps = match_content(GOAL_VECTOR, make_catalog(20))
        similarities = [s.similarity for s in steps]
        assert similarities == sorted(similarities, reverse=True)

    def test_deterministic(self):
        items = make_catalog(12)
        assert match_content(GOAL_VECTOR, items) == match_content(GOAL_VECTOR, items)

    def test_excluded_ids_never_selected(self):
        items = make_catalog(12)
        excluded = {"kc-000", "kc-001", "kc-002"}
        steps = match_content(GOAL_VECTOR, items, excluded)
        assert not excluded & {s.knowledge_content_id for s in steps}

    def test_too_few_candidates(self):
        with pytest.raises(InsufficientContentError) as exc_info:
            match_content(GOAL_VECTOR, make_catalog(4))
        assert exc_info.value.details == {"candidate_count": 4, "required": MIN_STEPS}
        assert exc_info.value.is_retryable is False

    def test_exclusion_can_exhaust_catalog(self):
        items = make_catalog(7)
        with pytest.raises(InsufficientContentError):
            match_content(GOAL_VECTOR, items, {"kc-000", "kc-001", "kc-002"})


class TestContentMatcher:
    @pytest.mark.asyncio
    async def test_match_reads_catalog_with_exclusions(self):
        seen: list[set[str]] = []
        items = make_catalog(10)

        async def reader(excluded: set[str]):
            seen.append(excluded)
            return [item for item in items if item.id not in excluded]

        matcher = ContentMatcher(make_embedder(), reader)
        steps = await matcher.match("Stop procrastinating on my thesis", {"kc-000"})

        assert seen == [{"kc-000"}]
        assert "kc-000" not in {s.knowledge_content_id for s in steps}

    @pytest.mark.asyncio
    async def test_catalog_failure_is_database_search_error(self):
        async def reader(excluded: set[str]):
            raise RuntimeError("connection reset")

        matcher = ContentMatcher(make_embedder(), reader)
        with pytest.raises(DatabaseSearchError) as exc_info:
            await matcher.match("Stop procrastinating on my thesis", set())
        assert exc_info.value.is_retryable is True
        assert exc_info.value.details["dependency"] == "catalog"

    @pytest.mark.asyncio
    async def test_embedding_failure_skips_catalog(self):
        calls = []

        async def reader(excluded: set[str]):
            calls.append(excluded)
            return make_catalog(10)

        matcher = ContentMatcher(make_embedder(FakeEmbeddings(failures=5)), reader)
        with pytest.raises(EmbeddingServiceError):
            await matcher.match("Stop procrastinating on my thesis", set())
        assert calls == []
