"""Translate core errors into HTTP errors."""

from fastapi import HTTPException, status

from app.core.errors import (
    InvalidStateTransition,
    RoadmapGenerationError,
    RoadmapNotFoundError,
    StepNotFoundError,
    StepStateError,
)

ERROR_STATUS_CODES: dict[str, int] = {
    "INVALID_GOAL": status.HTTP_400_BAD_REQUEST,
    "INSUFFICIENT_CONTENT": status.HTTP_404_NOT_FOUND,
    "ACTIVE_ROADMAP_EXISTS": status.HTTP_409_CONFLICT,
    "VALIDATION_FAILED": status.HTTP_500_INTERNAL_SERVER_ERROR,
    "EMBEDDING_SERVICE_ERROR": status.HTTP_503_SERVICE_UNAVAILABLE,
    "DATABASE_SEARCH_ERROR": status.HTTP_503_SERVICE_UNAVAILABLE,
}


def to_http_exception(exc: RoadmapGenerationError | StepStateError) -> HTTPException:
    """Map a core error to an HTTPException carrying its structured body."""
    if isinstance(exc, RoadmapGenerationError):
        code = ERROR_STATUS_CODES.get(exc.code, status.HTTP_500_INTERNAL_SERVER_ERROR)
    elif isinstance(exc, StepNotFoundError | RoadmapNotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, InvalidStateTransition):
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_400_BAD_REQUEST
    return HTTPException(status_code=code, detail=exc.to_dict())
