"""Tests for goal validation and edge-case decisions."""

import pytest

from app.core.errors import InvalidGoalError
from app.services.goal_validator import (
    MAX_GOAL_LENGTH,
    handle_edge_cases,
    normalize_goal,
    validate_goal,
)


class TestNormalizeGoal:
    def test_collapses_whitespace(self):
        assert normalize_goal("  Write   my\n\tthesis  ") == "Write my thesis"

    def test_none_becomes_empty(self):
        assert normalize_goal(None) == ""

    def test_truncates_long_goals(self):
        assert len(normalize_goal("a" * (MAX_GOAL_LENGTH + 50))) == MAX_GOAL_LENGTH

    def test_keeps_wording(self):
        """Negations and casing are not rewritten."""
        assert normalize_goal("Stop Procrastinating on my thesis") == "Stop Procrastinating on my thesis"


class TestValidateGoal:
    def test_accepts_specific_goal(self):
        goal = "I want to stop procrastinating on my thesis"
        assert validate_goal(goal) == goal

    def test_returns_normalized_text(self):
        assert validate_goal("  Make better   hiring decisions ") == "Make better hiring decisions"

    @pytest.mark.parametrize("goal", ["", "   ", "Help", "  Help me  "])
    def test_rejects_short_goals(self, goal):
        with pytest.raises(InvalidGoalError) as exc_info:
            validate_goal(goal)
        assert exc_info.value.code == "INVALID_GOAL"
        assert exc_info.value.is_retryable is False

    def test_rejects_none(self):
        with pytest.raises(InvalidGoalError):
            validate_goal(None)

    def test_short_goal_message_is_user_facing(self):
        with pytest.raises(InvalidGoalError) as exc_info:
            validate_goal("Help")
        assert "at least 10 characters" in exc_info.value.user_message
        assert exc_info.value.to_dict()["message"] == exc_info.value.user_message

    @pytest.mark.parametrize("goal", ["I want to be better", "improve myself", "GET BETTER"])
    def test_rejects_vague_goals(self, goal):
        with pytest.raises(InvalidGoalError) as exc_info:
            validate_goal(goal)
        assert "more specific" in exc_info.value.message

    @pytest.mark.parametrize(
        "goal",
        [
            "Finish my thesis and also learn to negotiate",
            "Save money as well as get fit this year",
            "1. Exercise more 2. Sleep earlier",
            "Read more books; call my parents weekly",
        ],
    )
    def test_rejects_multiple_goals(self, goal):
        with pytest.raises(InvalidGoalError) as exc_info:
            validate_goal(goal)
        assert "one primary goal" in exc_info.value.message

    def test_plain_and_is_allowed(self):
        goal = "Communicate clearly and calmly in meetings"
        assert validate_goal(goal) == goal


class TestHandleEdgeCases:
    def test_tiny_catalog_asks_to_rephrase(self):
        decision = handle_edge_cases(catalog_count=3, learned_count=0)
        assert decision.should_proceed is False
        assert decision.fallback_strategy == "rephrase-goal"
        assert decision.message

    def test_exhausted_catalog_suggests_synthesis(self):
        decision = handle_edge_cases(catalog_count=20, learned_count=17)
        assert decision.should_proceed is False
        assert decision.fallback_strategy == "advanced-synthesis"

    def test_exactly_enough_remaining_proceeds(self):
        decision = handle_edge_cases(catalog_count=20, learned_count=15)
        assert decision.should_proceed is True
        assert decision.fallback_strategy == "re-engagement"

    def test_returning_user_gets_notice(self):
        decision = handle_edge_cases(catalog_count=20, learned_count=3)
        assert decision.should_proceed is True
        assert "Welcome back" in decision.message

    def test_new_user_proceeds_silently(self):
        decision = handle_edge_cases(catalog_count=20, learned_count=0)
        assert decision.should_proceed is True
        assert decision.message is None
        assert decision.fallback_strategy is None
