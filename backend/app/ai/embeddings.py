"""Embedding provider configuration and the goal embedder."""

import math
from collections import OrderedDict
from functools import lru_cache
from typing import Any

from langchain_core.embeddings import Embeddings
from langchain_openai import OpenAIEmbeddings
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential

from app.core.config import get_settings
from app.core.errors import EmbeddingServiceError
from app.core.logging import get_logger

logger = get_logger(__name__)


@lru_cache
def get_embeddings() -> OpenAIEmbeddings:
    """Get configured embedding model instance."""
    settings = get_settings()

    kwargs: dict = {"model": settings.EMBEDDING_MODEL}

    if settings.OPENAI_API_KEY:
        kwargs["api_key"] = settings.OPENAI_API_KEY
    if settings.OPENAI_API_BASE_URL:
        kwargs["base_url"] = settings.OPENAI_API_BASE_URL
    if settings.EMBEDDING_DIMENSIONS:
        kwargs["dimensions"] = settings.EMBEDDING_DIMENSIONS

    logger.info("Initializing embeddings", model=settings.EMBEDDING_MODEL)
    return OpenAIEmbeddings(**kwargs)


def build_embedding_text(content: Any) -> str:
    """Combine the descriptive fields of a catalog item into one embedding input."""
    content_type = getattr(content.type, "value", content.type)
    parts = [
        f"Title: {content.title}" if content.title else "",
        f"Category: {content.category}" if content.category else "",
        f"Type: {content_type}" if content_type else "",
        f"Summary: {content.summary}" if content.summary else "",
        f"Description: {content.description}" if content.description else "",
        f"Application: {content.application}" if content.application else "",
        f"Keywords: {', '.join(content.keywords)}" if content.keywords else "",
    ]
    return "\n\n".join(part for part in parts if part)


def _check_vector(vector: list[float]) -> list[float]:
    if not vector:
        raise ValueError("Embedding provider returned an empty vector")
    if not all(math.isfinite(value) for value in vector):
        raise ValueError("Embedding provider returned non-finite values")
    return [float(value) for value in vector]


class GoalEmbedder:
    """Embeds goal text with bounded retries and a small LRU cache.

    Retries are capped at ``max_attempts``; after that the call fails with
    :class:`EmbeddingServiceError` and the caller decides what to do.
    """

    def __init__(
        self,
        embeddings: Embeddings,
        *,
        max_attempts: int = 3,
        cache_size: int = 100,
        wait_multiplier: float = 0.5,
    ) -> None:
        self._embeddings = embeddings
        self._max_attempts = max(1, max_attempts)
        self._wait_multiplier = wait_multiplier
        self._cache: OrderedDict[str, list[float]] = OrderedDict()
        self._cache_size = max(0, cache_size)

    @staticmethod
    def _cache_key(text: str) -> str:
        return text.strip().lower()

    def _cache_get(self, text: str) -> list[float] | None:
        key = self._cache_key(text)
        vector = self._cache.get(key)
        if vector is not None:
            self._cache.move_to_end(key)
        return vector

    def _cache_put(self, text: str, vector: list[float]) -> None:
        if not self._cache_size:
            return
        key = self._cache_key(text)
        self._cache[key] = vector
        self._cache.move_to_end(key)
        while len(self._cache) > self._cache_size:
            self._cache.popitem(last=False)

    async def embed(self, text: str) -> list[float]:
        cached = self._cache_get(text)
        if cached is not None:
            logger.debug("Goal embedding cache hit")
            return cached

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._max_attempts),
                wait=wait_exponential(multiplier=self._wait_multiplier, max=10),
                reraise=True,
            ):
                with attempt:
                    if attempt.retry_state.attempt_number > 1:
                        logger.warning(
                            "Retrying goal embedding",
                            attempt=attempt.retry_state.attempt_number,
                        )
                    vector = _check_vector(await self._embeddings.aembed_query(text))
        except Exception as exc:
            logger.error(
                "Goal embedding failed",
                dependency="embeddings",
                attempts=self._max_attempts,
                error=str(exc),
            )
            raise EmbeddingServiceError(
                "Failed to generate embedding for goal",
                details={"dependency": "embeddings", "error": str(exc)},
            ) from exc

        self._cache_put(text, vector)
        return vector


@lru_cache
def get_goal_embedder() -> GoalEmbedder:
    """Get the process-wide goal embedder backed by the configured provider."""
    settings = get_settings()
    return GoalEmbedder(
        get_embeddings(),
        max_attempts=settings.EMBEDDING_MAX_ATTEMPTS,
        cache_size=settings.EMBEDDING_CACHE_SIZE,
    )
