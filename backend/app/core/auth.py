"""Authentication utilities.

This module provides a simple authentication system that defaults to
a guest user (id=1). Login screens and session handling live outside
this service; callers that front it are expected to pass the resolved
user through.

WARNING: This is a placeholder implementation for development only.
Always returns user_id=1 (guest user).
"""

from typing import Annotated

from fastapi import Depends, Request

# Default guest user - used when no authentication is required
DEFAULT_USER_ID = 1


def get_auth_user(request: Request) -> int:
    """Get the current authenticated user ID for HTTP requests.

    Args:
        request: HTTP request object (injected by FastAPI)

    Returns:
        User ID (int)

    Example:
        @router.post("/roadmaps")
        async def create_roadmap(user_id: Annotated[int, Depends(get_auth_user)]):
            return {"user_id": user_id}
    """
    return DEFAULT_USER_ID


# Type alias for FastAPI dependency
CurrentUserDep = Annotated[int, Depends(get_auth_user)]
