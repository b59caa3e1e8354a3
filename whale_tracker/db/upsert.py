"""Dialect-aware INSERT .. ON CONFLICT for PostgreSQL (prod) and SQLite (tests)."""

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession


def conflict_insert(session: AsyncSession, model):
    """Return an ``insert(model)`` construct supporting ``on_conflict_*``."""
    if session.get_bind().dialect.name == "sqlite":
        return sqlite_insert(model)
    return pg_insert(model)
