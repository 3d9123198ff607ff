"""User service."""

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_logger
from app.models.user import User

logger = get_logger(__name__)


async def ensure_user(db: AsyncSession, user_id: int) -> User:
    """Get a user, creating a bare record if it does not exist yet.

    Note: This function assumes the caller will commit the transaction
    (e.g., via get_db_session context manager).
    """
    user = await db.get(User, user_id)
    if user:
        return user

    user = User(id=user_id)
    db.add(user)
    await db.flush()
    logger.info("User created", user_id=user_id)
    return user
