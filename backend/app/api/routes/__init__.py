"""API routes."""

from app.api.routes import knowledge, roadmaps, steps

__all__ = ["roadmaps", "steps", "knowledge"]
