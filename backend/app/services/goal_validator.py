"""Goal text validation and pre-matching edge-case checks.

Everything here is pure: no catalog, database or embedding access. The
generation pipeline runs these checks before any expensive work.
"""

import re

from pydantic import BaseModel

from app.core.errors import InvalidGoalError

MIN_GOAL_LENGTH = 10
MAX_GOAL_LENGTH = 500
MIN_ROADMAP_STEPS = 5

_WHITESPACE = re.compile(r"\s+")

_VAGUE_GOALS = [
    re.compile(r"^i want to be better$", re.IGNORECASE),
    re.compile(r"^be better$", re.IGNORECASE),
    re.compile(r"^improve( myself)?$", re.IGNORECASE),
    re.compile(r"^get better$", re.IGNORECASE),
    re.compile(r"^be good$", re.IGNORECASE),
]

_MULTIPLE_GOALS = [
    re.compile(r" and also ", re.IGNORECASE),
    re.compile(r" as well as ", re.IGNORECASE),
    re.compile(r"(^|\s)\d+\.\s"),  # numbered lists
    re.compile(r";"),
]


class EdgeCaseDecision(BaseModel):
    """Whether generation should go ahead, and what to tell the user."""

    should_proceed: bool
    message: str | None = None
    fallback_strategy: str | None = None


def normalize_goal(raw: str | None) -> str:
    """Collapse whitespace runs and cap the length. Wording is left alone."""
    text = _WHITESPACE.sub(" ", raw or "").strip()
    return text[:MAX_GOAL_LENGTH].rstrip()


def validate_goal(raw: str | None) -> str:
    """Validate goal text and return its normalized form.

    Raises:
        InvalidGoalError: empty, shorter than ``MIN_GOAL_LENGTH`` after
            trimming, a bare vague phrase, or several goals in one.
    """
    normalized = normalize_goal(raw)

    if len(normalized) < MIN_GOAL_LENGTH:
        raise InvalidGoalError(
            f"Goal description must be at least {MIN_GOAL_LENGTH} characters long",
            details={"length": len(normalized)},
        )

    if any(pattern.match(normalized) for pattern in _VAGUE_GOALS):
        raise InvalidGoalError(
            "Please provide a more specific goal. What exactly do you want to improve?"
        )

    if any(pattern.search(normalized) for pattern in _MULTIPLE_GOALS):
        raise InvalidGoalError(
            "Please focus on one primary goal. "
            "You can create additional roadmaps for other goals later."
        )

    return normalized


def handle_edge_cases(catalog_count: int, learned_count: int) -> EdgeCaseDecision:
    """Decide whether the catalog can support a new roadmap for this user."""
    if catalog_count < MIN_ROADMAP_STEPS:
        return EdgeCaseDecision(
            should_proceed=False,
            message=(
                "Your goal might be too specific or technical. Try rephrasing it in "
                "more general terms or breaking it down into smaller goals."
            ),
            fallback_strategy="rephrase-goal",
        )

    if catalog_count - learned_count < MIN_ROADMAP_STEPS:
        return EdgeCaseDecision(
            should_proceed=False,
            message=(
                "You've mastered most of our mental models! Consider an 'advanced "
                "synthesis' goal that combines concepts you've already learned."
            ),
            fallback_strategy="advanced-synthesis",
        )

    if learned_count > 0:
        return EdgeCaseDecision(
            should_proceed=True,
            message="Welcome back! We'll build on the concepts you've already learned.",
            fallback_strategy="re-engagement",
        )

    return EdgeCaseDecision(should_proceed=True)
