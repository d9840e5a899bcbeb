"""
Database session management with SQLAlchemy async
"""

from functools import lru_cache
from typing import Callable

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool
from core.config import settings
import logging

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AsyncSession]


@lru_cache(maxsize=1)
def get_engine() -> AsyncEngine:
    """Create the process-wide async engine on first use"""
    logger.info("Creating database engine")
    return create_async_engine(
        settings.DATABASE_URL,
        echo=settings.DB_ECHO,
        poolclass=NullPool,
        future=True
    )


@lru_cache(maxsize=1)
def get_session_factory() -> async_sessionmaker:
    """Session factory bound to the default engine"""
    return create_session_factory(get_engine())


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False
    )
