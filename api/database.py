"""Database connection and session management."""

from collections.abc import AsyncGenerator
from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""


@lru_cache
def get_engine() -> AsyncEngine:
    """Create the async engine on first use; nothing connects at import time."""
    from api.config import get_settings

    settings = get_settings()
    return create_async_engine(
        str(settings.database_url),
        echo=settings.debug,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
    )


@lru_cache
def get_session_maker() -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        get_engine(),
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


def async_session_maker() -> AsyncSession:
    """Open a new session from the (lazily created) session maker."""
    return get_session_maker()()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that provides a request-scoped session, committed on success."""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


DbSession = Annotated[AsyncSession, Depends(get_db)]


def reset_engine() -> None:
    """
    Drop the cached engine and session maker.

    RQ jobs run each scan in a fresh event loop; pooled connections from an
    earlier loop cannot be reused there.
    """
    get_engine.cache_clear()
    get_session_maker.cache_clear()
