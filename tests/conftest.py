"""Shared test fixtures."""

import os
from collections.abc import AsyncGenerator

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from whale_tracker.db.database import make_engine
from whale_tracker.models import Base


def sqlite_url(tmp_path, name: str = "whale_tracker.db") -> str:
    return f"sqlite+aiosqlite:///{tmp_path / name}"


@pytest_asyncio.fixture(scope="function")
async def db_session(tmp_path) -> AsyncGenerator[AsyncSession, None]:
    """Session on a freshly created schema, rolled back after the test.

    Runs on TEST_DATABASE_URL (a throwaway PostgreSQL) when set, otherwise on
    a SQLite file under tmp_path. NullPool keeps asyncpg connections from
    outliving the test's event loop.
    """
    engine = make_engine(os.getenv("TEST_DATABASE_URL") or sqlite_url(tmp_path), poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session
        await session.rollback()

    await engine.dispose()
