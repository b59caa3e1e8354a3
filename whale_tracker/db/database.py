"""Engine and session factory for the tracker database."""

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from config.settings import settings


def make_engine(url: str, **kwargs) -> AsyncEngine:
    """Create an async engine, sizing the pool only for server databases.

    SQLite (aiosqlite) is used for local runs and tests; pool sizing and
    pre-ping are skipped there.
    """
    if make_url(url).get_backend_name() != "sqlite" and "poolclass" not in kwargs:
        kwargs = {
            "pool_size": 5,
            "max_overflow": 5,
            "pool_pre_ping": True,
            "pool_recycle": 3600,
            **kwargs,
        }
    return create_async_engine(url, echo=False, **kwargs)


engine = make_engine(settings.database_url)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)
