"""Embedding capability."""

from app.ai.embeddings import GoalEmbedder, get_embeddings, get_goal_embedder

__all__ = ["GoalEmbedder", "get_embeddings", "get_goal_embedder"]
