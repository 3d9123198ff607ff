"""Error taxonomy for roadmap generation and step progression.

Generation errors carry a stable ``code`` and an ``is_retryable`` flag so the
HTTP layer can pick a status and a message without inspecting exception types.
Step-state errors are kept in a separate hierarchy: a client has to tell
"already done" apart from "something went wrong".
"""

from typing import Any

INFRASTRUCTURE_MESSAGE = "Something went wrong on our side. Please try again in a moment."


class RoadmapGenerationError(Exception):
    """Base class for everything that can stop a roadmap from being generated."""

    code = "ROADMAP_GENERATION_ERROR"
    is_retryable = False
    default_user_message = "We couldn't create your roadmap. Please try again."

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    @property
    def user_message(self) -> str:
        return self.default_user_message

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.user_message,
            "retryable": self.is_retryable,
        }


class InvalidGoalError(RoadmapGenerationError):
    """Goal text is too short, empty, vague or mixes several goals."""

    code = "INVALID_GOAL"

    @property
    def user_message(self) -> str:
        # Validation messages are written for the user already
        return self.message


class InsufficientContentError(RoadmapGenerationError):
    """Catalog or learning history leaves fewer than five usable items."""

    code = "INSUFFICIENT_CONTENT"
    default_user_message = (
        "We couldn't find enough relevant content for your goal. "
        "Try rephrasing it in more general terms."
    )

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        fallback_strategy: str | None = None,
        user_message: str | None = None,
    ) -> None:
        super().__init__(message, details)
        self.fallback_strategy = fallback_strategy
        self._user_message = user_message

    @property
    def user_message(self) -> str:
        return self._user_message or self.default_user_message

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        if self.fallback_strategy:
            data["fallback_strategy"] = self.fallback_strategy
        return data


class EmbeddingServiceError(RoadmapGenerationError):
    """The embedding provider is unavailable or returned an error."""

    code = "EMBEDDING_SERVICE_ERROR"
    is_retryable = True
    default_user_message = INFRASTRUCTURE_MESSAGE


class DatabaseSearchError(RoadmapGenerationError):
    """The knowledge catalog could not be read."""

    code = "DATABASE_SEARCH_ERROR"
    is_retryable = True
    default_user_message = INFRASTRUCTURE_MESSAGE


class ValidationFailed(RoadmapGenerationError):
    """Generated roadmap failed the post-generation checks."""

    code = "VALIDATION_FAILED"
    default_user_message = "Failed to generate a valid roadmap. Please try rephrasing your goal."

    def __init__(self, message: str, issues: list[Any], details: dict[str, Any] | None = None) -> None:
        super().__init__(message, details)
        self.issues = issues


class ActiveRoadmapExistsError(RoadmapGenerationError):
    """User already has an active roadmap."""

    code = "ACTIVE_ROADMAP_EXISTS"
    default_user_message = (
        "You already have an active roadmap. Please complete or archive it first."
    )


class StepStateError(Exception):
    """Base class for step and roadmap state errors."""

    code = "STATE_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message}


class StepNotFoundError(StepStateError):
    code = "STEP_NOT_FOUND"

    def __init__(self, step_id: int) -> None:
        super().__init__(f"Step {step_id} not found")
        self.step_id = step_id


class RoadmapNotFoundError(StepStateError):
    code = "ROADMAP_NOT_FOUND"

    def __init__(self, roadmap_id: int) -> None:
        super().__init__(f"Roadmap {roadmap_id} not found")
        self.roadmap_id = roadmap_id


class InvalidStateTransition(StepStateError):
    """A transition the state machine does not allow.

    ``kind`` tells the caller what happened:

    - ``already_completed``: the step was completed before; treat as success
    - ``step_locked``: the previous step is not done yet
    - ``successor_not_locked``: the next step is in an unexpected state
    - ``step_not_unlocked``: plan edits on a locked or completed step
    - ``step_not_completed``: reflection on a step that is not completed
    - ``roadmap_not_active``: archive of a completed or archived roadmap
    """

    code = "INVALID_STATE_TRANSITION"

    def __init__(self, kind: str, message: str, entity_id: int | None = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.entity_id = entity_id

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["kind"] = self.kind
        return data
