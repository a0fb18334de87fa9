"""Database engine and session management utilities."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from . import models  # noqa: F401 - ensure models are imported for metadata


def create_engine(database_url: str) -> AsyncEngine:
    """Build the async engine used by the chat log."""

    return create_async_engine(database_url, future=True, pool_pre_ping=True)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


__all__ = ["create_engine", "create_session_factory"]
