"""Shared test fixtures."""

import uuid
from collections.abc import AsyncGenerator

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from app.core.database import Base, build_engine, build_session_factory
from app.models import KnowledgeContent, User
from tests.factories import make_catalog


@pytest_asyncio.fixture
async def test_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """File-backed SQLite so separate sessions really use separate connections."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(test_engine)


@pytest_asyncio.fixture
async def test_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seed_user(test_session: AsyncSession) -> User:
    """Create a test user."""
    user = User(username=f"test-{uuid.uuid4().hex[:8]}", email=f"{uuid.uuid4().hex[:8]}@test.com")
    test_session.add(user)
    await test_session.commit()
    return user


@pytest_asyncio.fixture
async def seed_catalog(test_session: AsyncSession) -> list[KnowledgeContent]:
    """Twenty catalog items spanning all three knowledge types."""
    items = make_catalog(20)
    test_session.add_all(items)
    await test_session.commit()
    return items
